"""
What-If Simulator

Linear elasticity model: a percent change in a target metric moves each
impacted metric by change * elasticity percent. No cross-field
interaction and no learned coefficients.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from analysis.statistical import mean
from config import get_settings
from core.logging_config import analysis_logger as logger
from core.values import Record, numeric_values
from schemas.results import ImpactedMetric, WhatIfScenario


@dataclass
class ImpactedField:
    """A metric expected to respond to the target's change."""

    field: str
    elasticity: Optional[float] = None


@dataclass
class ScenarioQuestion:
    """A ready-made scenario prompt."""

    text: str
    field: str
    change: float

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "field": self.field, "change": self.change}


# Canned prompts for well-known business fields
_KNOWN_QUESTIONS = [
    ScenarioQuestion("What if Sales increase by 20%?", "Sales", 20),
    ScenarioQuestion("What if Cost decreases by 15%?", "Cost", -15),
    ScenarioQuestion("What if Quantity doubles?", "Quantity", 100),
    ScenarioQuestion("What if Price goes up 10%?", "Price", 10),
    ScenarioQuestion("What if Revenue drops 25%?", "Revenue", -25),
]


def _fmt_percent(value: float) -> str:
    return f"{value:g}"


class WhatIfSimulator:
    """Elasticity propagation engine."""

    MAX_QUESTIONS = 3
    GENERIC_CHANGE = 15

    def __init__(self):
        self.settings = get_settings()

    def run_scenario(
        self,
        records: Sequence[Record],
        target_field: str,
        change_percent: float,
        impacted_fields: Sequence[ImpactedField] = (),
    ) -> WhatIfScenario:
        """
        Apply a percent change to a target metric and propagate it.

        Baselines are the means of the parseable values of each field; a
        field without numbers has a zero baseline.
        """
        baseline_value = mean(numeric_values(records, target_field))
        modified_value = baseline_value * (1 + change_percent / 100)

        impacted_metrics = []
        for impacted in impacted_fields:
            elasticity = impacted.elasticity
            if elasticity is None:
                elasticity = self.settings.what_if.default_elasticity

            baseline = mean(numeric_values(records, impacted.field))
            field_change_percent = change_percent * elasticity
            projected = baseline * (1 + field_change_percent / 100)

            impacted_metrics.append(ImpactedMetric(
                metric=impacted.field,
                baseline=baseline,
                projected=projected,
                change=projected - baseline,
                change_percent=field_change_percent,
            ))

        direction = "increase" if change_percent > 0 else "decrease"
        sign = "+" if change_percent > 0 else ""

        logger.debug(f"Scenario on {target_field}: {change_percent:+g}% across {len(impacted_metrics)} metrics")

        return WhatIfScenario(
            name=f"{target_field} {direction} by {_fmt_percent(abs(change_percent))}%",
            description=f"What if {target_field} changed by {sign}{_fmt_percent(change_percent)}%?",
            baseline_value=baseline_value,
            modified_value=modified_value,
            percent_change=change_percent,
            impacted_metrics=impacted_metrics,
        )

    def run_default_scenario(
        self,
        records: Sequence[Record],
        target_field: str,
        change_percent: float,
        numeric_fields: Sequence[str],
    ) -> WhatIfScenario:
        """Propagate to the first other numeric fields at the default elasticity."""
        limit = self.settings.what_if.max_impacted_fields
        impacted = [
            ImpactedField(field=name)
            for name in numeric_fields
            if name != target_field
        ][:limit]
        return self.run_scenario(records, target_field, change_percent, impacted)

    def suggest_questions(self, numeric_fields: Sequence[str]) -> list[ScenarioQuestion]:
        """Example prompts for the fields present, padded with generic ones."""
        questions = [q for q in _KNOWN_QUESTIONS if q.field in numeric_fields]

        if len(questions) < self.MAX_QUESTIONS:
            asked = {q.field for q in questions}
            remaining = [name for name in numeric_fields if name not in asked]
            for name in remaining[: self.MAX_QUESTIONS - len(questions)]:
                questions.append(ScenarioQuestion(
                    f"What if {name} changes by {self.GENERIC_CHANGE}%?",
                    name,
                    self.GENERIC_CHANGE,
                ))

        return questions[: self.MAX_QUESTIONS]


# Global instance
what_if_simulator = WhatIfSimulator()
