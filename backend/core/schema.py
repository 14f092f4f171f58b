"""
Schema Classifier

Infers a table schema from raw records and classifies columns into the
roles the detectors work with (metrics, dates, categories). Detectors
receive ColumnRoles instead of re-deriving roles from the schema.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import polars as pl

from core.values import Record, is_blank, to_datetime, to_number, to_text
from schemas.tables import Column, ColumnType, DataSchema

_DATE_PATTERN = re.compile(r"^\d{4}[-/]\d{1,2}[-/]\d{1,2}|^\d{1,2}[-/]\d{1,2}[-/]\d{2,4}")


@dataclass
class ColumnRoles:
    """Column names grouped by analytical role, in schema order."""

    numeric_fields: list[str] = field(default_factory=list)
    date_fields: list[str] = field(default_factory=list)
    category_fields: list[str] = field(default_factory=list)

    @property
    def primary_date(self) -> Optional[str]:
        return self.date_fields[0] if self.date_fields else None

    @property
    def primary_category(self) -> Optional[str]:
        return self.category_fields[0] if self.category_fields else None


class SchemaClassifier:
    """Type detection and role classification for tabular records."""

    SAMPLE_SIZE = 100
    SAMPLE_VALUES = 5
    MAX_CATEGORIES = 20
    CATEGORY_RATIO = 0.3

    def infer_column_type(self, values: Sequence[Any]) -> ColumnType:
        """Detect a column type from its first non-empty values."""
        sample = [v for v in values[: self.SAMPLE_SIZE] if not is_blank(v)]

        if not sample:
            return ColumnType.TEXT

        if all(to_number(v) is not None for v in sample):
            return ColumnType.NUMERIC

        if all(self._looks_like_date(v) for v in sample):
            return ColumnType.DATETIME

        unique_count = len({to_text(v) for v in sample})
        if unique_count <= min(self.MAX_CATEGORIES, len(sample) * self.CATEGORY_RATIO):
            return ColumnType.CATEGORICAL

        return ColumnType.TEXT

    def _looks_like_date(self, value: Any) -> bool:
        if isinstance(value, str):
            return bool(_DATE_PATTERN.match(value.strip())) or to_datetime(value) is not None
        return to_datetime(value) is not None and not isinstance(value, (int, float))

    def infer_schema(self, records: Sequence[Record]) -> DataSchema:
        """
        Build a schema for a list of records.

        Column order follows first appearance across rows.
        """
        if not records:
            return DataSchema(columns=[], row_count=0, summary="Empty dataset")

        names: dict[str, None] = {}
        for row in records:
            for key in row.keys():
                names.setdefault(key, None)

        columns = []
        for name in names:
            values = [row.get(name) for row in records]
            col_type = self.infer_column_type(values)
            rendered = pl.Series(name, [to_text(v) for v in values], dtype=pl.Utf8)
            unique_values = rendered.unique(maintain_order=True)

            columns.append(Column(
                name=name,
                type=col_type,
                sample=unique_values.head(self.SAMPLE_VALUES).to_list(),
                unique_count=len(unique_values),
                null_count=sum(1 for v in values if is_blank(v)),
                is_metric=col_type == ColumnType.NUMERIC,
                is_dimension=col_type in (ColumnType.CATEGORICAL, ColumnType.DATETIME),
            ))

        return DataSchema(
            columns=columns,
            row_count=len(records),
            summary=self._summarize(len(records), columns),
        )

    def _summarize(self, row_count: int, columns: list[Column]) -> str:
        metrics = [c.name for c in columns if c.is_metric]
        dimensions = [c.name for c in columns if c.is_dimension]
        dates = [c.name for c in columns if c.type == ColumnType.DATETIME]

        summary = f"Dataset contains {row_count:,} rows and {len(columns)} columns."
        if metrics:
            summary += f" Metrics: {', '.join(metrics)}."
        if dimensions:
            summary += f" Dimensions: {', '.join(dimensions)}."
        if dates:
            summary += f" Time series detected on: {', '.join(dates)}."
        return summary

    def classify(self, schema: DataSchema) -> ColumnRoles:
        """Group schema columns by the role each detector needs."""
        roles = ColumnRoles()
        for col in schema.columns:
            if col.type == ColumnType.NUMERIC or col.is_metric:
                roles.numeric_fields.append(col.name)
            if col.type == ColumnType.DATETIME or "date" in col.name.lower():
                roles.date_fields.append(col.name)
            if col.type in (ColumnType.CATEGORICAL, ColumnType.TEXT):
                roles.category_fields.append(col.name)
        return roles


# Global instance
schema_classifier = SchemaClassifier()
