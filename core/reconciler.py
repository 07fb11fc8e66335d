# =============================================================================
# core/reconciler.py - Manager/record reconciliation engine
# =============================================================================

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.ad_client import ActiveDirectoryClient
from core.exceptions import DirectoryError
from core.models import (
    AccountStatus, ComparisonResult, DirectoryEntry, InputRecord,
    ReconciliationReport, RecordError
)
from core.parsing import (
    ManagerRef, NO_MANAGER, classify_suspension_action,
    parse_manager_string, strip_qualifier
)


class ReconciliationEngine:
    """
    Compares each input record against the directory.

    One engine instance is one run: the manager cache lives on the instance
    and nothing carries over between runs.

    Args:
        directory: directory client used for the current-manager lookup
        tracked_groups: group names to report membership flags for
        compare_titles: report job_title_match against the record's new title
        classify_action: classify the suspension action from the AD title
        cache_managers: memoize manager lookups by reference for this run
        extra_columns: builds the pass-through csv_data for a record
    """

    def __init__(self, directory: ActiveDirectoryClient, tracked_groups: Iterable[str] = (),
                 compare_titles: bool = False, classify_action: bool = False,
                 cache_managers: bool = True,
                 extra_columns: Optional[Callable[[InputRecord], Dict[str, Any]]] = None):
        self.directory = directory
        self.extra_columns = extra_columns
        self.tracked_groups = list(tracked_groups)
        self.compare_titles = compare_titles
        self.classify_action = classify_action
        self.cache_managers = cache_managers
        self._manager_cache: Dict[str, ManagerRef] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self, records: List[InputRecord]) -> ReconciliationReport:
        """Reconcile every record in order, one at a time"""
        report = ReconciliationReport(total_records=len(records))

        for record in records:
            try:
                entry = self.directory.lookup_by_employee_id(record.employee_id)
                result = self.reconcile(record, entry)
            except DirectoryError as e:
                self.logger.error(f"Row {record.row_number}: error reconciling {record.employee_id}: {e}")
                report.errors.append(RecordError(record.employee_id, record.row_number, str(e)))
                continue

            if result is None:
                report.not_found.append(record)
            else:
                report.results.append(result)

        self.logger.info(
            f"Reconciled {len(report.results)} of {report.total_records} records "
            f"({len(report.not_found)} not found, {len(report.errors)} errors)"
        )
        return report

    def reconcile(self, record: InputRecord, entry: Optional[DirectoryEntry]) -> Optional[ComparisonResult]:
        """Build the ComparisonResult for one record; None when the user is not in AD"""
        if entry is None:
            self.logger.warning(f"Row {record.row_number}: employee {record.employee_id} not found in AD")
            return None

        current = self.resolve_current_manager(entry)
        expected = parse_manager_string(record.expected_manager_raw)
        if not expected.is_valid and record.expected_manager_raw:
            self.logger.warning(
                f"Row {record.row_number}: unrecognised manager value '{record.expected_manager_raw}'"
            )

        # "N/A" == "N/A" counts as a match: no manager in AD and an unparseable
        # expected manager compare equal. Kept for compatibility with existing reports.
        manager_match = current.employee_id == expected.employee_id

        result = ComparisonResult(
            employee_id=record.employee_id,
            display_name=strip_qualifier(entry.display_name),
            account_name=entry.account_name,
            account_status=AccountStatus.from_enabled(entry.enabled),
            current_manager_name=current.name,
            current_manager_id=current.employee_id,
            expected_manager_name=expected.name,
            expected_manager_id=expected.employee_id,
            manager_match=manager_match,
            current_title=entry.title or "",
            expected_title=record.new_job_title,
            current_description=entry.description or "",
            row_number=record.row_number
        )

        if self.compare_titles:
            result.job_title_match = (entry.title or "") == record.new_job_title

        if self.classify_action:
            result.action = classify_suspension_action(entry.title)

        if self.tracked_groups:
            result.group_flags = self.group_flags(entry)

        if self.extra_columns is not None:
            result.csv_data = self.extra_columns(record)

        return result

    def resolve_current_manager(self, entry: DirectoryEntry) -> ManagerRef:
        """Name and employee id of the manager the directory currently holds"""
        if not entry.manager_ref:
            return NO_MANAGER

        if self.cache_managers and entry.manager_ref in self._manager_cache:
            return self._manager_cache[entry.manager_ref]

        manager = self.directory.lookup_by_reference(entry.manager_ref)
        current = ManagerRef(strip_qualifier(manager.display_name), manager.employee_id)

        if self.cache_managers:
            self._manager_cache[entry.manager_ref] = current
        return current

    def group_flags(self, entry: DirectoryEntry) -> Dict[str, bool]:
        """Membership flag for each tracked group"""
        # AD group names are case-insensitive
        memberships = {self.directory.lookup_group_name(ref).casefold() for ref in entry.group_refs}
        return {group: group.casefold() in memberships for group in self.tracked_groups}
