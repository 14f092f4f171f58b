"""
Correlation Analyzer

Pairwise Pearson correlation across numeric columns: threshold scans,
full matrices, key drivers of a target metric and correlations across
related tables.
"""

import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
from scipy import stats as scipy_stats

from analysis.statistical import correlation
from config import get_settings
from core.values import Record, numeric_pairs, to_number
from relations.merge import build_lookup, orient
from schemas.tables import ColumnType, DataRelation, DataSchema, DataSource

_TARGET_METRIC_PATTERN = re.compile(
    r"revenue|sales|profit|total|amount|value|count|quantity", re.IGNORECASE
)


@dataclass
class CorrelationPair:
    """Correlation between two columns."""

    column1: str
    column2: str
    correlation: float
    p_value: float
    sample_size: int
    strength: str  # strong, moderate, weak
    direction: str  # positive, negative

    def to_dict(self) -> dict[str, Any]:
        return {
            "column1": self.column1,
            "column2": self.column2,
            "correlation": round(self.correlation, 4),
            "p_value": round(self.p_value, 6),
            "sample_size": self.sample_size,
            "strength": self.strength,
            "direction": self.direction,
        }


@dataclass
class CorrelationMatrix:
    """Full correlation matrix result."""

    columns: list[str]
    matrix: list[list[float]]

    def get(self, column1: str, column2: str) -> float:
        return self.matrix[self.columns.index(column1)][self.columns.index(column2)]

    def to_dict(self) -> dict[str, Any]:
        return {
            "columns": self.columns,
            "matrix": [[round(v, 4) for v in row] for row in self.matrix],
        }


def _p_value(r: float, n: int) -> float:
    """Two-sided p-value of a Pearson r under the t distribution."""
    if n < 3:
        return 1.0
    if abs(r) >= 1.0:
        return 0.0
    t_stat = r * np.sqrt((n - 2) / (1 - r * r))
    return float(2 * scipy_stats.t.sf(abs(t_stat), n - 2))


class CorrelationAnalyzer:
    """Pairwise correlation engine."""

    def __init__(self):
        self.settings = get_settings()

    def classify_strength(self, r: float) -> str:
        abs_corr = abs(r)
        if abs_corr >= self.settings.analysis.strong_correlation:
            return "strong"
        if abs_corr >= self.settings.analysis.moderate_correlation:
            return "moderate"
        return "weak"

    def compute_correlation_pair(
        self,
        records: Sequence[Record],
        col1: str,
        col2: str,
    ) -> CorrelationPair:
        """Correlate two fields over rows where both values parse."""
        xs, ys = numeric_pairs(records, col1, col2)
        r = correlation(xs, ys)

        return CorrelationPair(
            column1=col1,
            column2=col2,
            correlation=r,
            p_value=_p_value(r, len(xs)),
            sample_size=len(xs),
            strength=self.classify_strength(r),
            direction="positive" if r > 0 else "negative",
        )

    def find_correlations(
        self,
        records: Sequence[Record],
        numeric_fields: Sequence[str],
        threshold: Optional[float] = None,
    ) -> list[CorrelationPair]:
        """
        Scan every unordered pair of numeric fields.

        Returns pairs with |r| >= threshold, strongest first.
        """
        if threshold is None:
            threshold = self.settings.analysis.correlation_threshold

        pairs = []
        for i in range(len(numeric_fields)):
            for j in range(i + 1, len(numeric_fields)):
                pair = self.compute_correlation_pair(records, numeric_fields[i], numeric_fields[j])
                if pair.sample_size == 0:
                    continue
                if abs(pair.correlation) >= threshold:
                    pairs.append(pair)

        pairs.sort(key=lambda p: abs(p.correlation), reverse=True)
        return pairs

    def compute_correlation_matrix(
        self,
        records: Sequence[Record],
        columns: Sequence[str],
    ) -> CorrelationMatrix:
        """Symmetric Pearson matrix with a unit diagonal."""
        n = len(columns)
        matrix = [[0.0] * n for _ in range(n)]

        for i in range(n):
            matrix[i][i] = 1.0
            for j in range(i + 1, n):
                xs, ys = numeric_pairs(records, columns[i], columns[j])
                r = correlation(xs, ys)
                matrix[i][j] = r
                matrix[j][i] = r

        return CorrelationMatrix(columns=list(columns), matrix=matrix)

    def likely_target_metric(self, schema: DataSchema) -> Optional[str]:
        """The metric most likely to be a business outcome."""
        metrics = [c.name for c in schema.columns if c.is_metric]
        if not metrics:
            return None
        for name in metrics:
            if _TARGET_METRIC_PATTERN.search(name):
                return name
        return metrics[0]

    def find_key_drivers(
        self,
        records: Sequence[Record],
        target: str,
        numeric_fields: Sequence[str],
        threshold: Optional[float] = None,
        top_n: int = 3,
    ) -> list[CorrelationPair]:
        """Fields most correlated with a target metric."""
        if threshold is None:
            threshold = self.settings.analysis.key_driver_threshold

        related = [
            self.compute_correlation_pair(records, target, other)
            for other in numeric_fields
            if other != target
        ]
        related.sort(key=lambda p: abs(p.correlation), reverse=True)

        return [p for p in related if abs(p.correlation) >= threshold][:top_n]

    def cross_table_correlations(
        self,
        source: DataSource,
        target: DataSource,
        relation: DataRelation,
        min_pairs: Optional[int] = None,
    ) -> list[CorrelationPair]:
        """
        Correlate numeric columns of two related tables.

        Rows are paired through the relation's join key; a column pair is
        reported once it has more than min_pairs joined observations.
        """
        if min_pairs is None:
            min_pairs = self.settings.relations.cross_table_min_pairs

        oriented = orient(relation, source, target)
        if oriented is None:
            return []
        source_column, target_column = oriented

        lookup = build_lookup(target.data, target_column)
        source_label = _table_label(source.name)
        target_label = _table_label(target.name)

        numeric1 = [c.name for c in source.table_schema.columns if c.type == ColumnType.NUMERIC]
        numeric2 = [c.name for c in target.table_schema.columns if c.type == ColumnType.NUMERIC]

        results = []
        for col1 in numeric1:
            for col2 in numeric2:
                xs: list[float] = []
                ys: list[float] = []
                for key, row1 in lookup.iter_matches(source.data, source_column):
                    for row2 in lookup.get(key):
                        v1 = to_number(row1.get(col1))
                        v2 = to_number(row2.get(col2))
                        if v1 is not None and v2 is not None:
                            xs.append(v1)
                            ys.append(v2)

                if len(xs) > min_pairs:
                    r = correlation(xs, ys)
                    results.append(CorrelationPair(
                        column1=f"{source_label}.{col1}",
                        column2=f"{target_label}.{col2}",
                        correlation=r,
                        p_value=_p_value(r, len(xs)),
                        sample_size=len(xs),
                        strength=self.classify_strength(r),
                        direction="positive" if r > 0 else "negative",
                    ))

        results.sort(key=lambda p: abs(p.correlation), reverse=True)
        return results


def _table_label(name: str) -> str:
    return re.sub(r"\.(csv|xlsx?|json)$", "", name, flags=re.IGNORECASE)


# Global instance
correlation_analyzer = CorrelationAnalyzer()
