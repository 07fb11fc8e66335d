# =============================================================================
# processors/manager_sync.py - Manager change reconciliation
# =============================================================================

from typing import List, Dict, Any

from core.base_processor import BaseReconciliationProcessor, EMPLOYEE_ID_ALIASES, MANAGER_ALIASES
from core.models import InputRecord


class ManagerSyncProcessor(BaseReconciliationProcessor):
    """Compares the HR manager change export against AD and fixes the manager attribute"""

    COLUMN_ALIASES = {
        'employee_id': EMPLOYEE_ID_ALIASES,
        'expected_manager_raw': MANAGER_ALIASES,
        'effective_date': ['Effective_Date', 'Effective Date'],
    }

    SUPPORTS_UPDATES = True

    def apply_filters(self, records: List[InputRecord]) -> List[InputRecord]:
        """Only changes that have already taken effect"""
        return self.filter_not_yet_effective(records)

    def get_csv_data(self, record: InputRecord) -> Dict[str, Any]:
        return {'effective_date': record.effective_date}

    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for manager sync CSV output"""
        return self.base_fieldnames() + ['effective_date']
