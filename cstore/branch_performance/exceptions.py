# cstore/branch_performance/exceptions.py
"""Errors surfaced to the pages (shown with st.error, never fatal)."""


class DataStoreError(Exception):
    """Record/target store unavailable or a write was rejected."""

    def __init__(self, operation: str, cause: Exception = None):
        self.operation = operation
        self.cause = cause
        message = f"Failed to {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class UploadValidationError(ValueError):
    """Uploaded file has missing columns or no usable rows."""

    def __init__(self, message: str, issues: list = None):
        self.issues = list(issues or [])
        super().__init__(message)
