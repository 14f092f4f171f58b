"""
Relationship Inference

Scans every pair of tables for columns whose names look like the same key
and classifies the multiplicity of each link from column uniqueness.
"""

from typing import Optional, Sequence

from config import get_settings
from core.logging_config import relations_logger as logger
from relations.matcher import ColumnMatcher, default_matcher
from schemas.tables import Cardinality, Column, DataRelation, DataSource


def relation_id(source_id: str, source_column: str, target_id: str, target_column: str) -> str:
    """Deterministic relation identifier."""
    return f"rel-{source_id}-{source_column}-{target_id}-{target_column}"


def is_unique(source: DataSource, column: Column) -> bool:
    return column.unique_count == source.row_count


def classify_cardinality(source_unique: bool, target_unique: bool) -> Cardinality:
    """
    Multiplicity of a link given which side holds unique values.

    The source side is the table that comes first in scan order.
    """
    if source_unique and target_unique:
        return Cardinality.ONE_TO_ONE
    if not source_unique and not target_unique:
        return Cardinality.MANY_TO_MANY
    if source_unique:
        return Cardinality.ONE_TO_MANY
    return Cardinality.MANY_TO_ONE


def relation_exists(
    relations: Sequence[DataRelation],
    table_a: str,
    column_a: str,
    table_b: str,
    column_b: str,
) -> bool:
    return any(r.connects(table_a, column_a, table_b, column_b) for r in relations)


class RelationshipInferrer:
    """Name-based relationship discovery across tables."""

    def __init__(self, matcher: Optional[ColumnMatcher] = None):
        self.settings = get_settings()
        self.matcher = matcher or default_matcher

    def cardinality_for(
        self,
        source: DataSource,
        source_column: str,
        target: DataSource,
        target_column: str,
    ) -> Optional[Cardinality]:
        """
        Recompute the cardinality of a link from current schemas.

        Returns None when either column is gone from its table.
        """
        left = source.table_schema.column(source_column)
        right = target.table_schema.column(target_column)
        if left is None or right is None:
            return None
        return classify_cardinality(is_unique(source, left), is_unique(target, right))

    def infer_relations(
        self,
        sources: Sequence[DataSource],
        existing: Sequence[DataRelation] = (),
    ) -> list[DataRelation]:
        """
        Propose relations between every pair of tables.

        Column pairs already linked by an existing relation, in either
        direction, are skipped, so repeated scans never duplicate a link.

        Returns:
            Only the newly discovered relations, in scan order
        """
        if len(sources) < 2:
            return []

        logger.info(f"Scanning {len(sources)} tables for relationships")

        known = list(existing)
        discovered: list[DataRelation] = []

        for i in range(len(sources)):
            for j in range(i + 1, len(sources)):
                table1 = sources[i]
                table2 = sources[j]

                for col1 in table1.table_schema.columns:
                    for col2 in table2.table_schema.columns:
                        if not self.matcher.matches(col1, col2):
                            continue
                        if relation_exists(known, table1.id, col1.name, table2.id, col2.name):
                            continue

                        relation = DataRelation(
                            id=relation_id(table1.id, col1.name, table2.id, col2.name),
                            source_id=table1.id,
                            target_id=table2.id,
                            source_column=col1.name,
                            target_column=col2.name,
                            cardinality=classify_cardinality(
                                is_unique(table1, col1), is_unique(table2, col2)
                            ),
                        )
                        logger.debug(
                            f"Matched {table1.name}.{col1.name} -> {table2.name}.{col2.name} "
                            f"({relation.cardinality.value})"
                        )
                        known.append(relation)
                        discovered.append(relation)

        logger.success(f"Discovered {len(discovered)} new relationships")
        return discovered

    def create_manual_relation(
        self,
        source_id: str,
        source_column: str,
        target_id: str,
        target_column: str,
        cardinality: Optional[Cardinality] = None,
    ) -> DataRelation:
        """A user-drawn link; bypasses name matching."""
        if cardinality is None:
            cardinality = Cardinality(self.settings.relations.manual_default_cardinality)

        return DataRelation(
            id=relation_id(source_id, source_column, target_id, target_column),
            source_id=source_id,
            target_id=target_id,
            source_column=source_column,
            target_column=target_column,
            cardinality=cardinality,
            is_manual_match=True,
        )


# Global instance
relationship_inferrer = RelationshipInferrer()
