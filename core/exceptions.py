# =============================================================================
# core/exceptions.py - Reconciliation error types
# =============================================================================


class ReconciliationError(Exception):
    """Base class for reconciliation failures"""


class ColumnMappingError(ReconciliationError):
    """Input file is missing one or more required columns"""

    def __init__(self, missing_fields, available_headers):
        self.missing_fields = list(missing_fields)
        self.available_headers = list(available_headers)
        super().__init__(
            f"Missing required columns: {', '.join(self.missing_fields)} "
            f"(available: {', '.join(self.available_headers)})"
        )


class DirectoryError(ReconciliationError):
    """Base class for directory access failures"""


class DirectoryLookupError(DirectoryError):
    """A directory lookup failed or the referenced entry does not exist"""


class DirectoryWriteError(DirectoryError):
    """A directory attribute write was rejected"""
