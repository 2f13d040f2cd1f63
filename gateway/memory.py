# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
In-memory reminder gateway for local development and tests
"""
import logging
from threading import Lock
from typing import Dict, Iterable, List, Optional, Set, Tuple

from cal_ops.triggers import Trigger
from gateway.base import PermissionDeniedError, ReminderGateway

logger = logging.getLogger(__name__)


class PendingReminder:
    """A reminder as held by the gateway"""

    def __init__(self, identifier: str, title: str, body: str, trigger: Trigger):
        self.identifier = identifier
        self.title = title
        self.body = body
        self.trigger = trigger

    def to_dict(self) -> Dict:
        return {
            'identifier': self.identifier,
            'title': self.title,
            'body': self.body,
            'trigger': self.trigger.to_dict(),
        }

    def __eq__(self, other):
        return isinstance(other, PendingReminder) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"PendingReminder({self.identifier!r}, {self.title!r})"


class InMemoryReminderGateway(ReminderGateway):
    """
    Keeps pending reminders in a dict.

    Failures can be injected per identifier (fail_add / fail_remove) or for
    the listing call, and every call is appended to `operations` so callers
    can check the order removals and additions happened in.
    """

    def __init__(self, authorized: Optional[bool] = True):
        self._lock = Lock()
        self.pending: Dict[str, PendingReminder] = {}
        self.operations: List[Tuple[str, str]] = []

        # None means "not yet asked"; delivery is refused until granted
        self.authorization_answer = authorized
        self.authorized = authorized
        self.fail_add: Dict[str, Exception] = {}
        self.fail_remove: Dict[str, Exception] = {}
        self.fail_list: Optional[Exception] = None
        self.fail_authorization: Optional[Exception] = None

    def request_authorization(self) -> bool:
        if self.fail_authorization is not None:
            raise self.fail_authorization
        with self._lock:
            self.authorized = bool(self.authorization_answer)
            self.operations.append(('authorize', str(self.authorized)))
            return self.authorized

    def list_known_identifiers(self, namespace_prefix: str) -> Set[str]:
        if self.fail_list is not None:
            raise self.fail_list
        with self._lock:
            return {identifier for identifier in self.pending if identifier.startswith(namespace_prefix)}

    def remove(self, identifiers: Iterable[str]) -> None:
        identifiers = set(identifiers)
        for identifier in identifiers:
            if identifier in self.fail_remove:
                raise self.fail_remove[identifier]

        with self._lock:
            for identifier in sorted(identifiers):
                self.pending.pop(identifier, None)
                self.operations.append(('remove', identifier))
            logger.debug(f"Removed {len(identifiers)} reminder(s)")

    def add(self, identifier: str, title: str, body: str, trigger: Trigger) -> None:
        if identifier in self.fail_add:
            raise self.fail_add[identifier]
        if not self.authorized:
            raise PermissionDeniedError("Reminder delivery is not authorized")

        with self._lock:
            self.pending[identifier] = PendingReminder(identifier, title, body, trigger)
            self.operations.append(('add', identifier))
            logger.debug(f"Added reminder {identifier}")

    def snapshot(self) -> Dict[str, Dict]:
        """Copy of every pending reminder keyed by identifier"""
        with self._lock:
            return {identifier: reminder.to_dict() for identifier, reminder in self.pending.items()}

    def clear_operations(self):
        with self._lock:
            self.operations.clear()
