"""Backward-compatible single-score helper.

Older consumers expect a flat score, a flat ``<axis>Score`` dict and the
reasons list. The earlier formula was an arithmetic blend (wind 0.35,
direction 0.35, period 0.2, size 0.1) multiplied by a tide gate of
``0.4 + 0.6 * tide``. That gate is approximated here by giving tide a
large weight inside the geometric mean, so scores are close to but not
numerically equal to the old formula.

LEGACY_WEIGHTS must not change.
"""

from dataclasses import dataclass, field

from surfcast.core.rating import (
    AXIS_ORDER,
    RatingInputs,
    WeightProfile,
    evaluate_rating,
)


LEGACY_WEIGHTS = WeightProfile(
    wind=0.35,
    dir=0.35,
    period=0.2,
    size=0.1,
    tide=0.6,
)

LEGACY_COMPONENT_KEYS = tuple(f"{axis.value}Score" for axis in AXIS_ORDER)


@dataclass
class LegacyScore:
    """Flat rating shape used by older integrations."""
    score: float
    components: dict[str, float]
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "components": dict(self.components),
            "reasons": list(self.reasons),
        }


def score_forecast(inputs: RatingInputs) -> LegacyScore:
    """Rate one hour with the frozen legacy weights.

    Args:
        inputs: Observation and spot

    Returns:
        LegacyScore with score 0-10, flat components and reasons
    """
    result = evaluate_rating(inputs, LEGACY_WEIGHTS)

    components = {f"{c.axis.value}Score": c.score for c in result.components}

    return LegacyScore(
        score=result.aggregate.score if result.aggregate else 0.0,
        components=components,
        reasons=result.reasons,
    )
