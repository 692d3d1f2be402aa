from typing import Dict, Iterable, Optional

from homescore.utils.numbers import clamp, round_half_up
from .schemas import Confidence, UncertaintyBand

CONFIDENCE_RANK = {Confidence.LOW: 1, Confidence.MEDIUM: 2, Confidence.HIGH: 3}
CONFIDENCE_POINTS = {Confidence.HIGH: 1.0, Confidence.MEDIUM: 0.6, Confidence.LOW: 0.25}

MIN_SPREAD = 3
MAX_SPREAD = 20
CONFIDENCE_SHARE = 0.7
COMPLETENESS_SHARE = 0.3


def confidence_from_ratio(ratio: float) -> Confidence:
    if ratio >= 0.75:
        return Confidence.HIGH
    if ratio >= 0.45:
        return Confidence.MEDIUM
    return Confidence.LOW


def cap_confidence(value: Confidence, ceiling: Confidence) -> Confidence:
    return value if CONFIDENCE_RANK[value] <= CONFIDENCE_RANK[ceiling] else ceiling


def weakest(values: Iterable[Confidence]) -> Confidence:
    """Overall confidence is the weakest component, not an average."""
    return min(values, key=lambda c: CONFIDENCE_RANK[c])


def accuracy(confidences: Dict[str, Confidence], weights: Dict[str, float], completeness: float) -> float:
    total_weight = sum(weights.values()) or 1.0
    weighted = sum(CONFIDENCE_POINTS[confidences[k]] * w for k, w in weights.items()) / total_weight
    return clamp(CONFIDENCE_SHARE * weighted + COMPLETENESS_SHARE * clamp(completeness, 0.0, 1.0), 0.0, 1.0)


def spread_for(accuracy_ratio: float) -> int:
    spread = round_half_up(MIN_SPREAD + (MAX_SPREAD - MIN_SPREAD) * (1 - accuracy_ratio))
    return int(clamp(spread, MIN_SPREAD, MAX_SPREAD))


def uncertainty_band(
    home_score: float,
    confidences: Dict[str, Confidence],
    weights: Dict[str, float],
    completeness: float,
    risk_confidence: Confidence,
    risk_exposure: Optional[float],
) -> UncertaintyBand:
    acc = accuracy(confidences, weights, completeness)
    spread = spread_for(acc)

    exposure_low = exposure_high = None
    if risk_exposure is not None:
        risk_acc = accuracy({"risk": risk_confidence}, {"risk": 1.0}, completeness)
        risk_spread = spread_for(risk_acc) / 100
        exposure_low = round_half_up(max(0.0, risk_exposure * (1 - risk_spread)), 2)
        exposure_high = round_half_up(risk_exposure * (1 + risk_spread), 2)

    accuracy_score = int(round_half_up(acc * 100))
    return UncertaintyBand(
        score_range_low=round_half_up(clamp(home_score - spread, 0, 100), 1),
        score_range_high=round_half_up(clamp(home_score + spread, 0, 100), 1),
        spread=spread,
        accuracy_score=accuracy_score,
        risk_exposure_low=exposure_low,
        risk_exposure_high=exposure_high,
        detail=(
            f"Estimated accuracy is {accuracy_score}% from component confidence and "
            f"{int(round_half_up(completeness * 100))}% profile completeness; the score could range by ±{spread} points."
        ),
    )
