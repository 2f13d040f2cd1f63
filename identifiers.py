# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
CRITICAL: Shared Reminder Identifier Utilities

Every reminder the service places with the gateway is keyed by an identifier
derived from the rule id ONLY. Time, label and weekday are deliberately not
part of it, so an edited rule replaces its existing reminder instead of
leaving the old one behind.

Any change to the scheme below orphans every reminder already scheduled.
"""

import logging
from typing import Dict, Iterable, Optional

import config
from models import RecurrenceRule

logger = logging.getLogger(__name__)


def get_namespace() -> str:
    """Prefix that marks reminders owned by this service"""
    return config.REMINDER_NAMESPACE


def reminder_identifier(rule_id: str, namespace: Optional[str] = None) -> str:
    """
    Generate the reminder identifier for a rule.

    Args:
        rule_id: Stable id of the recurrence rule
        namespace: Override for the configured namespace prefix

    Returns:
        Identifier string used with the reminder gateway
    """
    if not rule_id:
        raise ValueError("rule_id is required to build a reminder identifier")
    prefix = get_namespace() if namespace is None else namespace
    return f"{prefix}{rule_id}"


def is_reminder_identifier(identifier: str, namespace: Optional[str] = None) -> bool:
    """True when the identifier belongs to this service's namespace"""
    prefix = get_namespace() if namespace is None else namespace
    return bool(identifier) and identifier.startswith(prefix) and len(identifier) > len(prefix)


def rule_id_from_identifier(identifier: str, namespace: Optional[str] = None) -> Optional[str]:
    """Recover the rule id from a reminder identifier, or None if it is not ours"""
    prefix = get_namespace() if namespace is None else namespace
    if not is_reminder_identifier(identifier, prefix):
        return None
    return identifier[len(prefix):]


def target_identifiers(rules: Iterable[RecurrenceRule],
                       namespace: Optional[str] = None) -> Dict[str, RecurrenceRule]:
    """
    Map identifier -> rule for the given rules, preserving rule order.

    Rule ids are unique within a schedule, so no two rules share an identifier.
    """
    targets = {}
    for rule in rules:
        identifier = reminder_identifier(rule.id, namespace)
        if identifier in targets:
            logger.warning(f"Duplicate reminder identifier ignored: {identifier}")
            continue
        targets[identifier] = rule
    return targets
