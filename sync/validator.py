# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Sync Validator - Confirm the gateway holds exactly the reminders a schedule needs
"""
import logging
from typing import Dict, Iterable, List, Set, Tuple

from identifiers import reminder_identifier, rule_id_from_identifier
from models import RecurrenceRule

logger = logging.getLogger(__name__)


class SyncValidator:
    """Validates reminder state after a reschedule"""

    def __init__(self):
        self.validation_rules = [
            self._validate_all_rules_scheduled,
            self._validate_no_orphaned_reminders,
            self._validate_reminder_count,
        ]

    def validate_sync_result(
        self,
        rules: List[RecurrenceRule],
        known_identifiers: Iterable[str],
        namespace: str
    ) -> Tuple[bool, List[Tuple[str, bool]]]:
        """
        Validate reminders against the enabled rules

        Args:
            rules: Rules that should each have one reminder
            known_identifiers: Identifiers the gateway reports in our namespace
            namespace: Identifier prefix owned by this service

        Returns:
            Tuple of (overall_valid, list of (check_name, passed) tuples)
        """
        expected = {reminder_identifier(rule.id, namespace) for rule in rules}
        known = set(known_identifiers)

        validations = []
        for rule in self.validation_rules:
            check_name, passed, details = rule(expected, known, namespace)
            validations.append((check_name, passed))

            if not passed:
                logger.warning(f"Validation failed: {check_name} - {details}")

        overall_valid = all(passed for _, passed in validations)
        return overall_valid, validations

    def _validate_all_rules_scheduled(self, expected: Set[str], known: Set[str],
                                      namespace: str) -> Tuple[str, bool, str]:
        missing = sorted(expected - known)
        return "all_rules_scheduled", not missing, f"Missing: {missing}"

    def _validate_no_orphaned_reminders(self, expected: Set[str], known: Set[str],
                                        namespace: str) -> Tuple[str, bool, str]:
        orphans = sorted(known - expected)
        rule_ids = [rule_id_from_identifier(identifier, namespace) for identifier in orphans]
        return "no_orphaned_reminders", not orphans, f"Orphaned rule ids: {rule_ids}"

    def _validate_reminder_count(self, expected: Set[str], known: Set[str],
                                 namespace: str) -> Tuple[str, bool, str]:
        return "reminder_count_match", len(expected) == len(known), \
            f"Expected: {len(expected)}, Found: {len(known)}"

    def generate_validation_report(self, rules: List[RecurrenceRule], known_identifiers: Iterable[str],
                                   namespace: str) -> Dict:
        """Generate a detailed validation report"""
        known = set(known_identifiers)
        is_valid, validations = self.validate_sync_result(rules, known, namespace)

        report = {
            'is_valid': is_valid,
            'rule_count': len(rules),
            'reminder_count': len(known),
            'validation_results': {check: passed for check, passed in validations},
            'warnings': [],
            'errors': []
        }

        for check, passed in validations:
            if passed:
                continue
            if check == 'all_rules_scheduled':
                report['errors'].append(f"Critical validation failed: {check}")
            else:
                report['warnings'].append(f"Validation warning: {check}")

        if rules and not known:
            report['warnings'].append("No reminders are scheduled for a non-empty schedule")

        return report
