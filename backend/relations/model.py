"""
Data Model Registry

Caller-side registry of tables and the relations between them. Adding a
table triggers relationship inference. Replacing a table drops links whose
columns disappeared and recomputes the cardinality of automatic ones.
"""

from typing import Optional, Sequence

from config import get_settings
from core.errors import EngineError, UnknownColumnError, UnknownSourceError
from core.logging_config import relations_logger as logger
from core.schema import schema_classifier
from relations.inference import RelationshipInferrer, relationship_inferrer
from relations.merge import merge_engine
from schemas.tables import Cardinality, DataRelation, DataSchema, DataSource


class DataModel:
    """
    Registry of DataSources and DataRelations.

    Sources are immutable; replacing data swaps in a new DataSource.
    """

    def __init__(self, inferrer: Optional[RelationshipInferrer] = None):
        self.settings = get_settings()
        self.inferrer = inferrer or relationship_inferrer
        self._sources: dict[str, DataSource] = {}
        self._relations: dict[str, DataRelation] = {}

    @property
    def sources(self) -> list[DataSource]:
        return list(self._sources.values())

    @property
    def relations(self) -> list[DataRelation]:
        return list(self._relations.values())

    def get_source(self, source_id: str) -> DataSource:
        try:
            return self._sources[source_id]
        except KeyError:
            raise UnknownSourceError(source_id) from None

    def get_relation(self, relation_id: str) -> DataRelation:
        try:
            return self._relations[relation_id]
        except KeyError:
            raise EngineError(f"Unknown relation: {relation_id}") from None

    def add_source(self, source: DataSource, detect: Optional[bool] = None) -> list[DataRelation]:
        """
        Register a table.

        Returns:
            Relations discovered because of this table
        """
        replaced = source.id in self._sources
        self._sources[source.id] = source
        if replaced:
            logger.info(f"Replaced data source '{source.name}' ({source.row_count:,} rows)")
            self._reconcile_relations(source.id)
        else:
            logger.info(f"Added data source '{source.name}' ({source.row_count:,} rows)")

        if detect is None:
            detect = self.settings.relations.auto_detect
        if not detect or len(self._sources) < 2:
            return []

        return self.detect_relations()

    def detect_relations(self) -> list[DataRelation]:
        """Run inference over all registered tables."""
        discovered = self.inferrer.infer_relations(self.sources, self.relations)
        for relation in discovered:
            self._relations[relation.id] = relation
        return discovered

    def remove_source(self, source_id: str) -> None:
        self.get_source(source_id)
        del self._sources[source_id]

        dropped = [r.id for r in self._relations.values() if r.touches(source_id)]
        for rid in dropped:
            del self._relations[rid]

        logger.info(f"Removed data source {source_id} and {len(dropped)} relations")

    def _require_column(self, source_id: str, column: str) -> DataSource:
        source = self.get_source(source_id)
        if not source.table_schema.has_column(column):
            raise UnknownColumnError(source_id, column)
        return source

    def connect_columns(
        self,
        source_id: str,
        source_column: str,
        target_id: str,
        target_column: str,
        cardinality: Optional[Cardinality] = None,
    ) -> DataRelation:
        """
        Manually link two columns.

        An existing link between the same columns, in either direction, is
        returned unchanged.
        """
        self._require_column(source_id, source_column)
        self._require_column(target_id, target_column)
        if source_id == target_id:
            raise EngineError("Cannot relate a table to itself")

        for relation in self._relations.values():
            if relation.connects(source_id, source_column, target_id, target_column):
                logger.debug(f"Relation {relation.id} already links these columns")
                return relation

        relation = self.inferrer.create_manual_relation(
            source_id, source_column, target_id, target_column, cardinality
        )
        self._relations[relation.id] = relation
        logger.info(f"Connected {source_id}.{source_column} -> {target_id}.{target_column}")
        return relation

    def update_relation(self, relation_id: str, cardinality: Cardinality) -> DataRelation:
        relation = self.get_relation(relation_id)
        updated = relation.model_copy(update={"cardinality": Cardinality(cardinality)})
        self._relations[relation_id] = updated
        return updated

    def remove_relation(self, relation_id: str) -> None:
        self.get_relation(relation_id)
        del self._relations[relation_id]

    def replace_source_data(
        self,
        source_id: str,
        data: Sequence[dict],
        schema: Optional[DataSchema] = None,
    ) -> DataSource:
        """
        Swap a table's rows.

        The schema is re-inferred unless given. Relations touching the
        table are reconciled against it; manual relations keep the
        cardinality the user chose.
        """
        current = self.get_source(source_id)
        rows = [dict(row) for row in data]
        replacement = DataSource(
            id=current.id,
            name=current.name,
            data=rows,
            schema=schema or schema_classifier.infer_schema(rows),
        )
        self._sources[source_id] = replacement
        self._reconcile_relations(source_id)
        return replacement

    def _reconcile_relations(self, source_id: str) -> None:
        """
        Bring relations touching a table in line with its current schema.

        Relations whose columns no longer exist are dropped, manual ones
        included. Automatic relations get their cardinality recomputed.
        """
        for rid, relation in list(self._relations.items()):
            if not relation.touches(source_id):
                continue
            source = self._sources.get(relation.source_id)
            target = self._sources.get(relation.target_id)
            if source is None or target is None:
                continue

            cardinality = self.inferrer.cardinality_for(
                source, relation.source_column, target, relation.target_column
            )
            if cardinality is None:
                logger.warning(
                    f"Dropping relation {rid}: "
                    f"{relation.source_id}.{relation.source_column} or "
                    f"{relation.target_id}.{relation.target_column} no longer exists"
                )
                del self._relations[rid]
                continue

            if not relation.is_manual_match and cardinality != relation.cardinality:
                logger.info(f"Relation {rid} is now {cardinality.value}")
                self._relations[rid] = relation.model_copy(update={"cardinality": cardinality})

    def merge(self, relation_id: str) -> DataSource:
        """Materialize a relation as a merged table."""
        relation = self.get_relation(relation_id)
        source = self.get_source(relation.source_id)
        target = self.get_source(relation.target_id)
        return merge_engine.merge(relation, source, target)
