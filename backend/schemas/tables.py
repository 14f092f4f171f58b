"""
Table Schemas

Pydantic models for the caller-owned tabular inputs: columns, schemas,
data sources and the relations between them.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnType(str, Enum):
    """Inferred column types."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATETIME = "datetime"
    TEXT = "text"


class Cardinality(str, Enum):
    """Multiplicity between two joined columns."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class Column(BaseModel):
    """A single column of a table schema."""

    name: str
    type: ColumnType
    is_metric: bool = False
    is_dimension: bool = False
    unique_count: int = Field(default=0, ge=0)
    null_count: int = Field(default=0, ge=0)
    sample: list[str] = []


class DataSchema(BaseModel):
    """Ordered column list of a table, unique by name."""

    columns: list[Column] = []
    row_count: int = 0
    summary: str = ""

    def column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return self.column(name) is not None

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]


class DataSource(BaseModel):
    """A named table: raw records plus their schema."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    data: list[dict[str, Any]] = []
    table_schema: DataSchema = Field(default_factory=DataSchema, alias="schema")

    @property
    def row_count(self) -> int:
        return len(self.data)


class DataRelation(BaseModel):
    """
    A directional link between a column of one table and a column of another.

    Direction follows discovery order or the user's drag gesture, not meaning.
    """

    id: str
    source_id: str
    target_id: str
    source_column: str
    target_column: str
    cardinality: Cardinality = Cardinality.ONE_TO_MANY
    is_manual_match: bool = False

    def connects(self, table_a: str, column_a: str, table_b: str, column_b: str) -> bool:
        """True when this relation links the two columns in either direction."""
        forward = (
            self.source_id == table_a and self.source_column == column_a
            and self.target_id == table_b and self.target_column == column_b
        )
        backward = (
            self.source_id == table_b and self.source_column == column_b
            and self.target_id == table_a and self.target_column == column_a
        )
        return forward or backward

    def touches(self, source_id: str) -> bool:
        return source_id in (self.source_id, self.target_id)
