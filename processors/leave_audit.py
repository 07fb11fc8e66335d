# =============================================================================
# processors/leave_audit.py - Leave of absence audit
# =============================================================================

from typing import List, Dict, Any

from core.base_processor import BaseReconciliationProcessor, EMPLOYEE_ID_ALIASES, MANAGER_ALIASES
from core.models import InputRecord
from utils.reporting import parse_date


class LeaveAuditProcessor(BaseReconciliationProcessor):
    """Reports account state, manager and tracked group membership for employees on leave"""

    COLUMN_ALIASES = {
        'employee_id': EMPLOYEE_ID_ALIASES,
        'expected_manager_raw': MANAGER_ALIASES,
        'leave_started': ['Leave_Started', 'Leave Started'],
        'estimated_return': ['Estimated_Return', 'Estimated Return'],
        'actual_end_date': ['Actual_End_Date', 'Actual End Date'],
    }

    USES_GROUPS = True

    def apply_filters(self, records: List[InputRecord]) -> List[InputRecord]:
        """Drop employees whose leave has already ended"""
        kept = []
        for record in records:
            ended = parse_date(record.actual_end_date)
            if ended and ended < self.as_of:
                self.logger.debug(f"Skipping {record.employee_id}: returned {ended.isoformat()}")
                continue
            kept.append(record)

        self.logger.info(f"Filtered to {len(kept)} open leave records from {len(records)} total records")
        return kept

    def get_csv_data(self, record: InputRecord) -> Dict[str, Any]:
        return {
            'leave_started': record.leave_started,
            'estimated_return': record.estimated_return,
            'actual_end_date': record.actual_end_date
        }

    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for leave audit CSV output"""
        return self.base_fieldnames() + self.group_fieldnames() + [
            'leave_started', 'estimated_return', 'actual_end_date'
        ]
