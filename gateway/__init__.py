# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Reminder gateways: the boundary to whatever delivers reminders to the faithful
"""
from gateway.base import GatewayError, PermissionDeniedError, ReminderGateway, TransportError
from gateway.memory import InMemoryReminderGateway
