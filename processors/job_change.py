# =============================================================================
# processors/job_change.py - Job change reconciliation (manager + title)
# =============================================================================

from typing import List, Dict, Any

from core.base_processor import BaseReconciliationProcessor, EMPLOYEE_ID_ALIASES, MANAGER_ALIASES
from core.models import InputRecord


class JobChangeProcessor(BaseReconciliationProcessor):
    """
    Job change export: new manager and new job title per employee.

    Updates write the manager, and the title and description when they
    differ from the new job title.
    """

    COLUMN_ALIASES = {
        'employee_id': EMPLOYEE_ID_ALIASES,
        'expected_manager_raw': MANAGER_ALIASES,
        'new_job_title': ['New_Job', 'New Job', 'New_Job_Title'],
        'effective_date': ['Effective_Date', 'Effective Date'],
    }
    REQUIRED_FIELDS = ['employee_id', 'expected_manager_raw', 'new_job_title']

    COMPARE_TITLES = True
    SUPPORTS_UPDATES = True
    UPDATE_TITLE = True
    UPDATE_DESCRIPTION = True

    def apply_filters(self, records: List[InputRecord]) -> List[InputRecord]:
        """Only changes that have already taken effect"""
        return self.filter_not_yet_effective(records)

    def get_csv_data(self, record: InputRecord) -> Dict[str, Any]:
        return {'effective_date': record.effective_date}

    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for job change CSV output"""
        return self.base_fieldnames() + [
            'current_title', 'expected_title', 'job_title_match', 'effective_date'
        ]
