# =============================================================================
# processors/training.py - Training compliance check
# =============================================================================

from typing import List, Dict, Any

from core.base_processor import BaseReconciliationProcessor, EMPLOYEE_ID_ALIASES, MANAGER_ALIASES
from core.models import InputRecord


class TrainingComplianceProcessor(BaseReconciliationProcessor):
    """Training vendor export: who has not completed training, and who manages them"""

    COLUMN_ALIASES = {
        'employee_id': EMPLOYEE_ID_ALIASES,
        'expected_manager_raw': MANAGER_ALIASES,
        'company': ["Employee's Company", 'Employee Company', 'Company'],
        'completion_status': ['Completion Status', 'Completion_Status'],
    }
    REQUIRED_FIELDS = ['employee_id']

    COMPLETED_STATUSES = {'completed', 'complete'}

    def apply_filters(self, records: List[InputRecord]) -> List[InputRecord]:
        """Keep only employees who have not completed training"""
        filtered = [
            record for record in records
            if record.completion_status.strip().lower() not in self.COMPLETED_STATUSES
        ]

        self.logger.info(f"Filtered to {len(filtered)} incomplete records from {len(records)} total records")
        return filtered

    def get_csv_data(self, record: InputRecord) -> Dict[str, Any]:
        return {
            'company': record.company,
            'completion_status': record.completion_status
        }

    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for training compliance CSV output"""
        return self.base_fieldnames() + ['company', 'completion_status']
