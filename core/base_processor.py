# =============================================================================
# core/base_processor.py - Abstract reconciliation workflow
# =============================================================================

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Callable, List, Dict, Any, Iterable, Optional
import logging

from core.ad_client import ActiveDirectoryClient
from core.exceptions import ColumnMappingError
from core.models import (
    ComparisonResult, InputRecord, ProcessingStats, ReconciliationReport,
    UpdateResult, UpdateStatus
)
from core.reconciler import ReconciliationEngine
from core.updater import AttributeUpdater
from utils.csv_utils import CSVHandler
from utils.reporting import parse_date, render_table


EMPLOYEE_ID_ALIASES = ['Employee_ID', 'Employee ID', 'EmployeeID']
MANAGER_ALIASES = ['New_Manager', 'Manager', 'New Manager']

BASE_FIELDNAMES = [
    'employee_id', 'display_name', 'account_name', 'account_status',
    'current_manager_name', 'current_manager_id',
    'expected_manager_name', 'expected_manager_id', 'manager_match'
]

UPDATE_FIELDNAMES = ['employee_id', 'attribute', 'old_value', 'new_value', 'status', 'message']


class BaseReconciliationProcessor(ABC):
    """Abstract base class for HR export reconciliation workflows"""

    # InputRecord field -> accepted header names, first match wins
    COLUMN_ALIASES: Dict[str, List[str]] = {
        'employee_id': EMPLOYEE_ID_ALIASES,
        'expected_manager_raw': MANAGER_ALIASES,
    }
    REQUIRED_FIELDS: List[str] = ['employee_id', 'expected_manager_raw']

    COMPARE_TITLES = False
    CLASSIFY_ACTION = False
    USES_GROUPS = False

    SUPPORTS_UPDATES = False
    UPDATE_TITLE = False
    UPDATE_DESCRIPTION = False

    def __init__(self, ad_client: ActiveDirectoryClient, tracked_groups: Iterable[str] = (),
                 cache_managers: bool = True, as_of: Optional[date] = None):
        self.ad_client = ad_client
        self.tracked_groups = list(tracked_groups) if self.USES_GROUPS else []
        self.cache_managers = cache_managers
        self.as_of = as_of or date.today()
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def get_csv_data(self, record: InputRecord) -> Dict[str, Any]:
        """Variant-specific input columns carried through to the output"""
        pass

    @abstractmethod
    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for CSV output"""
        pass

    @classmethod
    def map_columns(cls, headers: List[str]) -> Dict[str, str]:
        """Resolve each InputRecord field to a header of the input file"""
        mapping = {}
        for field_name, aliases in cls.COLUMN_ALIASES.items():
            for alias in aliases:
                if alias in headers:
                    mapping[field_name] = alias
                    break

        missing = [
            '/'.join(cls.COLUMN_ALIASES[field_name])
            for field_name in cls.REQUIRED_FIELDS if field_name not in mapping
        ]
        if missing:
            raise ColumnMappingError(missing, headers)

        return mapping

    @classmethod
    def load_records(cls, input_csv: str) -> List[InputRecord]:
        """Read the export and map it into typed records before any AD access"""
        logger = logging.getLogger(cls.__name__)

        csv_data, headers = CSVHandler.read_csv(input_csv)
        mapping = cls.map_columns(headers)
        logger.debug(f"Column mapping: {mapping}")

        records = []
        for index, row in enumerate(csv_data):
            values = {
                field_name: (row.get(header) or '').strip()
                for field_name, header in mapping.items()
            }
            # Spreadsheet row number: header is row 1
            record = InputRecord(row_number=index + 2, **values)

            if not record.employee_id:
                logger.warning(f"Skipping row {record.row_number} with empty employee ID")
                continue
            records.append(record)

        logger.info(f"Loaded {len(records)} records from {input_csv}")
        return records

    def apply_filters(self, records: List[InputRecord]) -> List[InputRecord]:
        """Apply processor-specific filters to the loaded records"""
        # Default implementation - can be overridden
        return records

    def filter_not_yet_effective(self, records: List[InputRecord]) -> List[InputRecord]:
        """Drop records whose effective date is still in the future"""
        kept = []
        for record in records:
            effective = parse_date(record.effective_date)
            if effective and effective > self.as_of:
                self.logger.info(
                    f"Skipping {record.employee_id}: change effective {effective.isoformat()}"
                )
                continue
            kept.append(record)

        self.logger.info(f"Filtered to {len(kept)} effective records from {len(records)} total records")
        return kept

    def create_engine(self) -> ReconciliationEngine:
        return ReconciliationEngine(
            self.ad_client,
            tracked_groups=self.tracked_groups,
            compare_titles=self.COMPARE_TITLES,
            classify_action=self.CLASSIFY_ACTION,
            cache_managers=self.cache_managers,
            extra_columns=self.get_csv_data
        )

    def create_updater(self) -> AttributeUpdater:
        return AttributeUpdater(
            self.ad_client,
            update_manager=True,
            update_title=self.UPDATE_TITLE,
            update_description=self.UPDATE_DESCRIPTION
        )

    def reconcile(self, records: List[InputRecord], apply_filters: bool = True) -> ReconciliationReport:
        """Filter and reconcile records, attaching the pass-through columns"""
        if apply_filters:
            records = self.apply_filters(records)
            self.logger.info(f"After filtering: {len(records)} records")

        return self.create_engine().run(records)

    def process_users(self, records: List[InputRecord], output_csv: str,
                      apply_filters: bool = True, apply_updates: bool = False,
                      confirm: Optional[Callable[[int], bool]] = None,
                      show_table: bool = False) -> ProcessingStats:
        """Main processing workflow with optional write-back"""
        self.logger.info(f"Starting {self.__class__.__name__} processing workflow")

        try:
            report = self.reconcile(records, apply_filters=apply_filters)

            output_data = [self.result_to_dict(result) for result in report.results]
            fieldnames = self.get_output_fieldnames()

            if show_table:
                print(render_table(output_data, fieldnames))

            CSVHandler.write_csv(output_data, output_csv, fieldnames)

            updates: List[UpdateResult] = []
            if apply_updates:
                updates = self.run_updates(report.results, confirm)
                if updates:
                    CSVHandler.write_csv(
                        [self.update_to_dict(update) for update in updates],
                        self.updates_output_path(output_csv),
                        UPDATE_FIELDNAMES
                    )

            stats = self.calculate_stats(report, updates)
            self.log_statistics(stats)

            return stats

        except Exception as e:
            self.logger.error(f"Processing failed: {e}")
            raise

    def run_updates(self, results: List[ComparisonResult],
                    confirm: Optional[Callable[[int], bool]] = None) -> List[UpdateResult]:
        """Apply write-back once the batch has been confirmed"""
        if not self.SUPPORTS_UPDATES:
            self.logger.warning(f"{self.__class__.__name__} is report-only; no updates applied")
            return []

        updater = self.create_updater()
        pending = [result for result in results if self.has_pending_update(result, updater)]

        if not pending:
            self.logger.info("No updates required")
            return []

        if confirm is not None and not confirm(len(pending)):
            self.logger.info("Updates cancelled by operator")
            return []

        return updater.apply(pending)

    def has_pending_update(self, result: ComparisonResult, updater: AttributeUpdater) -> bool:
        if updater.needs_manager_update(result):
            return True
        if not result.expected_title:
            return False
        if updater.update_title and result.current_title != result.expected_title:
            return True
        return updater.update_description and result.current_description != result.expected_title

    def base_fieldnames(self) -> List[str]:
        return list(BASE_FIELDNAMES)

    def group_fieldnames(self) -> List[str]:
        return list(self.tracked_groups)

    def result_to_dict(self, result: ComparisonResult) -> Dict[str, Any]:
        """Convert ComparisonResult to dictionary for CSV output"""
        base_dict = {
            'employee_id': result.employee_id,
            'display_name': result.display_name,
            'account_name': result.account_name,
            'account_status': result.account_status.value,
            'current_manager_name': result.current_manager_name,
            'current_manager_id': result.current_manager_id,
            'expected_manager_name': result.expected_manager_name,
            'expected_manager_id': result.expected_manager_id,
            'manager_match': result.manager_match,
            'current_title': result.current_title,
            'expected_title': result.expected_title,
            'job_title_match': '' if result.job_title_match is None else result.job_title_match,
            'action': result.action or '',
        }
        base_dict.update(result.group_flags)
        base_dict.update(result.csv_data)
        return base_dict

    def update_to_dict(self, update: UpdateResult) -> Dict[str, Any]:
        return {
            'employee_id': update.employee_id,
            'attribute': update.attribute,
            'old_value': update.old_value,
            'new_value': update.new_value,
            'status': update.status.value,
            'message': update.message
        }

    @staticmethod
    def updates_output_path(output_csv: str) -> str:
        path = Path(output_csv)
        return str(path.with_name(f"{path.stem}_updates{path.suffix or '.csv'}"))

    def calculate_stats(self, report: ReconciliationReport,
                        updates: Optional[List[UpdateResult]] = None) -> ProcessingStats:
        """Calculate processing statistics"""
        stats = ProcessingStats()
        stats.total_records = report.total_records
        stats.found = len(report.results)
        stats.not_found = len(report.not_found)
        stats.errors = len(report.errors)
        stats.manager_mismatches = sum(1 for result in report.results if not result.manager_match)

        for update in updates or []:
            stats.update_counts[update.status] = stats.update_counts.get(update.status, 0) + 1

        return stats

    def log_statistics(self, stats: ProcessingStats) -> None:
        """Log processing statistics"""
        self.logger.info(
            f"Records: {stats.total_records}, found: {stats.found}, "
            f"not found: {stats.not_found}, errors: {stats.errors}"
        )
        self.logger.info(f"Manager mismatches: {stats.manager_mismatches}")
        if stats.update_counts:
            update_counts = {status.value: count for status, count in stats.update_counts.items()}
            self.logger.info(f"Update summary: {update_counts}")
        self.logger.info(f"Success rate: {stats.success_rate:.1f}% ({stats.found}/{stats.total_records})")

        failed = stats.update_counts.get(UpdateStatus.FAILED, 0)
        if failed:
            self.logger.warning(f"{failed} updates failed - see the updates report")
