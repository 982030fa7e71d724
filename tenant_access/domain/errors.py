from __future__ import annotations


class StoreUnavailableError(Exception):
    """The record store could not be reached or rejected the query."""

    def __init__(self, table: str, operation: str, cause: Exception | None = None):
        self.table = table
        self.operation = operation
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause else "unknown error"
        super().__init__(f"{operation} on {table} failed ({detail})")


class RecordMappingError(ValueError):
    """A store row is missing a field the core cannot do without."""

    def __init__(self, record_type: str, field: str):
        self.record_type = record_type
        self.field = field
        super().__init__(f"{record_type} row is missing required field '{field}'")


class DevLoginDisabledError(RuntimeError):
    pass
