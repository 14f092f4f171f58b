"""
Join / Merge Engine

Materializes a relation as a left outer join: every source row is kept,
matching target rows are attached (one output row per match), and target
columns that collide with source columns are prefixed with the target
table's identifier. Inputs are never mutated.
"""

import re
from collections import defaultdict
from typing import Any, Iterator, Optional, Sequence

from core.logging_config import relations_logger as logger
from core.schema import schema_classifier
from core.values import Record, is_blank, to_text
from schemas.tables import DataRelation, DataSource

_EXTENSION = re.compile(r"\.(csv|tsv|xlsx?|json|parquet)$", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class JoinLookup:
    """Target rows grouped by their rendered join key."""

    def __init__(self, column: str):
        self.column = column
        self._rows: dict[str, list[Record]] = defaultdict(list)

    def add(self, row: Record) -> None:
        key = join_key(row.get(self.column))
        if key is not None:
            self._rows[key].append(row)

    def get(self, key: Optional[str]) -> list[Record]:
        if key is None:
            return []
        return self._rows.get(key, [])

    def iter_matches(self, rows: Sequence[Record], column: str) -> Iterator[tuple[str, Record]]:
        """Yield (key, row) for rows whose key has at least one match."""
        for row in rows:
            key = join_key(row.get(column))
            if key is not None and key in self._rows:
                yield key, row

    def __len__(self) -> int:
        return len(self._rows)


def join_key(value: Any) -> Optional[str]:
    """Join key of a cell; blanks never match anything."""
    if is_blank(value):
        return None
    return to_text(value)


def build_lookup(rows: Sequence[Record], column: str) -> JoinLookup:
    lookup = JoinLookup(column)
    for row in rows:
        lookup.add(row)
    return lookup


def table_identifier(name: str) -> str:
    """Name-normalized identifier used to prefix colliding columns."""
    stem = _EXTENSION.sub("", name.strip())
    identifier = _NON_ALNUM.sub("_", stem.lower()).strip("_")
    return identifier or "target"


def orient(
    relation: DataRelation,
    source: DataSource,
    target: DataSource,
) -> Optional[tuple[str, str]]:
    """
    Column pair of a relation as seen from (source, target).

    Returns None when the relation does not link these two tables or a
    column is missing from its table's schema.
    """
    if relation.source_id == source.id and relation.target_id == target.id:
        source_column, target_column = relation.source_column, relation.target_column
    elif relation.source_id == target.id and relation.target_id == source.id:
        source_column, target_column = relation.target_column, relation.source_column
    else:
        return None

    if not source.table_schema.has_column(source_column):
        return None
    if not target.table_schema.has_column(target_column):
        return None

    return source_column, target_column


class MergeEngine:
    """Left outer join of two related tables."""

    def merge_rows(
        self,
        source_rows: Sequence[Record],
        target_rows: Sequence[Record],
        source_column: str,
        target_column: str,
        prefix: str,
        source_columns: Sequence[str],
    ) -> list[dict[str, Any]]:
        lookup = build_lookup(target_rows, target_column)
        renames = self.target_names(target_rows, prefix, source_columns)

        merged: list[dict[str, Any]] = []
        for row in source_rows:
            matches = lookup.get(join_key(row.get(source_column)))
            if not matches:
                merged.append(dict(row))
                continue

            for match in matches:
                combined = dict(row)
                for column, value in match.items():
                    combined[renames[column]] = value
                merged.append(combined)

        return merged

    def target_names(
        self,
        target_rows: Sequence[Record],
        prefix: str,
        source_columns: Sequence[str],
    ) -> dict[str, str]:
        """
        Output name of every target column.

        Colliding columns get the table prefix, then a numeric suffix until
        the name is free.
        """
        taken = set(source_columns)
        renames: dict[str, str] = {}
        for row in target_rows:
            for column in row:
                if column in renames:
                    continue
                name = column
                if name in taken:
                    name = f"{prefix}_{column}"
                    suffix = 2
                    while name in taken:
                        name = f"{prefix}_{column}_{suffix}"
                        suffix += 1
                taken.add(name)
                renames[column] = name
        return renames

    def merge(
        self,
        relation: DataRelation,
        source: DataSource,
        target: DataSource,
    ) -> DataSource:
        """
        Join target onto source through a relation.

        Returns a new DataSource with a re-inferred schema. When the relation
        does not apply to these tables the source rows come back unjoined.
        """
        logger.info(f"Merging '{target.name}' into '{source.name}' via relation {relation.id}")

        prefix = table_identifier(target.name)
        oriented = orient(relation, source, target)

        if oriented is None:
            logger.warning(f"Relation {relation.id} does not link '{source.name}' and '{target.name}'")
            rows = [dict(row) for row in source.data]
        else:
            source_column, target_column = oriented
            source_columns = list(source.table_schema.column_names)
            for row in source.data:
                for column in row:
                    if column not in source_columns:
                        source_columns.append(column)

            rows = self.merge_rows(
                source.data, target.data,
                source_column, target_column,
                prefix, source_columns,
            )

        merged = DataSource(
            id=f"merged-{source.id}-{target.id}",
            name=f"{source.name} + {target.name}",
            data=rows,
            schema=schema_classifier.infer_schema(rows),
        )
        logger.success(f"Merged table has {merged.row_count:,} rows from {source.row_count:,} source rows")
        return merged


# Global instance
merge_engine = MergeEngine()
