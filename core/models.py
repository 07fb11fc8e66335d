# =============================================================================
# core/models.py - Reconciliation data models
# =============================================================================

from dataclasses import dataclass, field
from typing import Dict, Any, FrozenSet, List, Optional
from enum import Enum


class AccountStatus(Enum):
    """Directory account state"""
    ACTIVE = "Active"
    INACTIVE = "Inactive"

    @classmethod
    def from_enabled(cls, enabled: bool) -> "AccountStatus":
        return cls.ACTIVE if enabled else cls.INACTIVE


class UpdateStatus(Enum):
    """Outcome of a single attribute write"""
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class InputRecord:
    """One row of the source export after column mapping"""
    employee_id: str
    expected_manager_raw: str = ""
    effective_date: str = ""
    new_job_title: str = ""
    termination_date: str = ""
    leave_started: str = ""
    estimated_return: str = ""
    actual_end_date: str = ""
    initiated: str = ""
    company: str = ""
    completion_status: str = ""
    row_number: int = 0


@dataclass
class DirectoryEntry:
    """User account as returned by the directory"""
    employee_id: str
    display_name: str = ""
    account_name: str = ""
    enabled: bool = False
    manager_ref: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    group_refs: FrozenSet[str] = frozenset()
    distinguished_name: str = ""


@dataclass
class ComparisonResult:
    """Expected vs. actual directory state for one input record"""
    employee_id: str
    display_name: str
    account_name: str
    account_status: AccountStatus
    current_manager_name: str
    current_manager_id: str
    expected_manager_name: str
    expected_manager_id: str
    manager_match: bool
    current_title: str = ""
    expected_title: str = ""
    job_title_match: Optional[bool] = None
    action: Optional[str] = None
    group_flags: Dict[str, bool] = field(default_factory=dict)
    current_description: str = ""
    row_number: int = 0
    csv_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RecordError:
    """A record whose reconciliation failed on a directory error"""
    employee_id: str
    row_number: int
    message: str


@dataclass
class ReconciliationReport:
    """Everything one reconciliation pass produced, in input order"""
    results: List[ComparisonResult] = field(default_factory=list)
    errors: List[RecordError] = field(default_factory=list)
    not_found: List[InputRecord] = field(default_factory=list)
    total_records: int = 0


@dataclass
class UpdateResult:
    """Outcome of one attribute write attempt"""
    employee_id: str
    attribute: str
    old_value: str
    new_value: str
    status: UpdateStatus
    message: str = ""


@dataclass
class ProcessingStats:
    """Statistics for processing results"""
    total_records: int = 0
    found: int = 0
    not_found: int = 0
    errors: int = 0
    manager_mismatches: int = 0
    update_counts: Dict[UpdateStatus, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Calculate percentage of records found in the directory"""
        if self.total_records == 0:
            return 0.0
        return (self.found / self.total_records) * 100
