"""Extraction errors"""


class ExtractionError(Exception):
    """Base error for the extraction engine."""
    pass


class SchemaError(ExtractionError):
    """Raised when a schema or field spec is malformed."""
    pass


class FieldResolutionError(ExtractionError):
    """Raised when a single field's locator, handler or filter fails."""

    def __init__(self, field: str, cause: Exception):
        self.field = field
        self.cause = cause
        super().__init__(f"{field or '<field>'}: {type(cause).__name__}: {cause}")
