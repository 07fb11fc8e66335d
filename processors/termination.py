# =============================================================================
# processors/termination.py - Termination audit with mailbox action
# =============================================================================

from typing import List, Dict, Any

from core.base_processor import BaseReconciliationProcessor, EMPLOYEE_ID_ALIASES, MANAGER_ALIASES
from core.models import InputRecord


class TerminationProcessor(BaseReconciliationProcessor):
    """Terminated employees: account state, manager, group flags and suspension action"""

    COLUMN_ALIASES = {
        'employee_id': EMPLOYEE_ID_ALIASES,
        'expected_manager_raw': MANAGER_ALIASES,
        'termination_date': ['Termination_Date', 'Termination Date'],
        'initiated': ['Initiated'],
    }

    CLASSIFY_ACTION = True
    USES_GROUPS = True

    def get_csv_data(self, record: InputRecord) -> Dict[str, Any]:
        return {
            'termination_date': record.termination_date,
            'initiated': record.initiated
        }

    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for termination CSV output"""
        return self.base_fieldnames() + ['current_title', 'action'] + self.group_fieldnames() + [
            'termination_date', 'initiated'
        ]
