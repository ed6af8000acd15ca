"""
Custom Exceptions Module.

The computation core never raises on malformed financial input; it
degrades to defaults instead. These exceptions belong to the outer
surfaces: reading invoice files and writing exports.

Exception Hierarchy:
    InvoiceEngineError (base)
    ├── InputError
    │   └── InvoiceFileError
    └── ExportError
        ├── CsvExportError
        └── ExcelExportError
"""


class InvoiceEngineError(Exception):
    """
    Base exception for all invoice engine errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceEngineError):
    """Base exception for input handling errors."""
    pass


class InvoiceFileError(InputError):
    """
    Raised when an invoice file is missing or is not valid JSON.

    Example:
        >>> raise InvoiceFileError("invoices.json", "Expecting value: line 1")
    """

    def __init__(self, filepath: str, reason: str = None):
        message = f"Cannot read invoice file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# EXPORT ERRORS
# =============================================================================

class ExportError(InvoiceEngineError):
    """Base exception for export errors."""
    pass


class CsvExportError(ExportError):
    """Raised when CSV export fails."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Failed to export CSV file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


class ExcelExportError(ExportError):
    """Raised when Excel export fails."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Failed to export Excel file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


__all__ = [
    'InvoiceEngineError',
    'InputError',
    'InvoiceFileError',
    'ExportError',
    'CsvExportError',
    'ExcelExportError',
]
