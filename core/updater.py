# =============================================================================
# core/updater.py - Conditional attribute updater
# =============================================================================

import logging
from typing import List

from core.ad_client import ActiveDirectoryClient
from core.models import ComparisonResult, UpdateResult, UpdateStatus


class AttributeUpdater:
    """
    Writes corrections back to the directory for reconciled records.

    Callers confirm the batch once before calling apply(); nothing is
    re-confirmed per record. A failing record never stops the batch and
    sub-updates within a record are not rolled back.
    """

    def __init__(self, directory: ActiveDirectoryClient, update_manager: bool = True,
                 update_title: bool = False, update_description: bool = False):
        self.directory = directory
        self.update_manager = update_manager
        self.update_title = update_title
        self.update_description = update_description
        self.logger = logging.getLogger(self.__class__.__name__)

    def apply(self, results: List[ComparisonResult]) -> List[UpdateResult]:
        """Apply every pending update in order and report each outcome"""
        outcomes: List[UpdateResult] = []

        for result in results:
            try:
                outcomes.extend(self.apply_one(result))
            except Exception as e:
                self.logger.error(f"Unexpected error updating {result.employee_id}: {e}")
                outcomes.append(UpdateResult(
                    result.employee_id, '*', '', '', UpdateStatus.FAILED, str(e)
                ))

        applied = sum(1 for outcome in outcomes if outcome.status == UpdateStatus.APPLIED)
        self.logger.info(f"Applied {applied} of {len(outcomes)} attempted updates")
        return outcomes

    def apply_one(self, result: ComparisonResult) -> List[UpdateResult]:
        """Manager, title and description updates for a single record"""
        outcomes = []

        if self.update_manager and self.needs_manager_update(result):
            outcomes.append(self._update_manager(result))

        if self.update_title and result.expected_title:
            if result.current_title != result.expected_title:
                outcomes.append(self._write(result.employee_id, 'title',
                                            result.current_title, result.expected_title))

        if self.update_description and result.expected_title:
            if result.current_description != result.expected_title:
                outcomes.append(self._write(result.employee_id, 'description',
                                            result.current_description, result.expected_title))

        return outcomes

    def needs_manager_update(self, result: ComparisonResult) -> bool:
        """Manager differs and the expected manager id could be parsed"""
        return not result.manager_match and result.expected_manager_id.isdigit()

    def _update_manager(self, result: ComparisonResult) -> UpdateResult:
        employee_id = result.employee_id
        new_manager_id = result.expected_manager_id

        try:
            target = self.directory.lookup_by_employee_id(employee_id)
            new_manager = self.directory.lookup_by_employee_id(new_manager_id)
        except Exception as e:
            self.logger.error(f"Lookup failed while updating manager for {employee_id}: {e}")
            return UpdateResult(employee_id, 'manager', result.current_manager_id, new_manager_id,
                                UpdateStatus.SKIPPED, f"Lookup failed: {e}")

        if target is None:
            self.logger.warning(f"Skipping manager update: employee {employee_id} not found")
            return UpdateResult(employee_id, 'manager', result.current_manager_id, new_manager_id,
                                UpdateStatus.SKIPPED, "Employee not found")
        if new_manager is None:
            self.logger.warning(f"Skipping manager update for {employee_id}: manager {new_manager_id} not found")
            return UpdateResult(employee_id, 'manager', result.current_manager_id, new_manager_id,
                                UpdateStatus.SKIPPED, f"Manager {new_manager_id} not found")

        outcome = self._write(employee_id, 'manager', result.current_manager_id,
                              new_manager.distinguished_name)
        outcome.new_value = new_manager_id
        return outcome

    def _write(self, employee_id: str, attribute: str, old_value: str, new_value: str) -> UpdateResult:
        try:
            self.directory.write_attribute(employee_id, attribute, new_value)
        except Exception as e:
            self.logger.error(f"Failed to update {attribute} for {employee_id}: {e}")
            return UpdateResult(employee_id, attribute, old_value, new_value, UpdateStatus.FAILED, str(e))

        self.logger.info(f"Updated {attribute} for {employee_id}: '{old_value}' -> '{new_value}'")
        return UpdateResult(employee_id, attribute, old_value, new_value, UpdateStatus.APPLIED)
