"""
Insight Ranker

Orders insights for display: most severe first, then most confident.
"""

from typing import Optional, Sequence

from schemas.results import Insight, InsightSeverity

SEVERITY_ORDER = {
    InsightSeverity.CRITICAL: 0,
    InsightSeverity.WARNING: 1,
    InsightSeverity.SUCCESS: 2,
    InsightSeverity.INFO: 3,
}


class InsightRanker:
    """
    Ranks insights by severity and confidence.

    The sort is stable, so insights that tie on both keep the order in
    which the generator produced them.
    """

    def rank_insights(
        self,
        insights: Sequence[Insight],
        top_n: Optional[int] = None,
    ) -> list[Insight]:
        """
        Sort insights and optionally keep the first N.

        Args:
            insights: Insights to rank
            top_n: Number of insights to return (all when None)
        """
        ranked = sorted(insights, key=self._sort_key)
        return ranked if top_n is None else ranked[:top_n]

    def _sort_key(self, insight: Insight) -> tuple[int, float]:
        return SEVERITY_ORDER[insight.severity], -insight.confidence


# Global instance
insight_ranker = InsightRanker()
