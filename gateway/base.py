# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Reminder Gateway - Boundary to the platform that actually delivers reminders
"""
from typing import Iterable, Set

from cal_ops.triggers import Trigger


class GatewayError(Exception):
    """Base exception for reminder gateway failures"""
    pass


class PermissionDeniedError(GatewayError):
    """Reminder delivery has not been authorized"""
    pass


class TransportError(GatewayError):
    """The gateway could not be reached or failed to answer"""
    pass


class ReminderGateway:
    """
    Abstract base class for reminder gateways.

    Implementations must treat identifiers as opaque keys: adding an
    identifier that already exists replaces the reminder stored under it.
    """

    def request_authorization(self) -> bool:
        """
        Ask the platform for permission to deliver reminders.

        Returns False when the user declines; raises TransportError when the
        question could not be asked.
        """
        raise NotImplementedError

    def list_known_identifiers(self, namespace_prefix: str) -> Set[str]:
        """Identifiers of every pending reminder whose id starts with the prefix"""
        raise NotImplementedError

    def remove(self, identifiers: Iterable[str]) -> None:
        """Remove pending reminders; unknown identifiers are ignored"""
        raise NotImplementedError

    def add(self, identifier: str, title: str, body: str, trigger: Trigger) -> None:
        """Schedule a repeating reminder under the identifier"""
        raise NotImplementedError
