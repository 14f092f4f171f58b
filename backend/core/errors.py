"""
Engine Errors

Structural errors raised when a caller references tables or columns
that do not exist. Data problems never raise; they degrade to empty results.
"""


class EngineError(Exception):
    """Base error for structurally invalid engine requests."""


class UnknownSourceError(EngineError):
    """A data source id is not registered."""

    def __init__(self, source_id: str):
        super().__init__(f"Unknown data source: {source_id}")
        self.source_id = source_id


class UnknownColumnError(EngineError):
    """A column is not part of a data source's schema."""

    def __init__(self, source_id: str, column: str):
        super().__init__(f"Column '{column}' not found in data source {source_id}")
        self.source_id = source_id
        self.column = column
