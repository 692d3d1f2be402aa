from dataclasses import dataclass
from typing import Optional

from homescore.utils.numbers import round_half_up
from .schemas import FinancialStatus

NEUTRAL_SCORE = 50.0
MAX_SCORE = 100.0


@dataclass
class EfficiencyResult:
    status: FinancialStatus
    score: Optional[float]


def score_efficiency(actual_total: float, benchmark_total: Optional[float]) -> EfficiencyResult:
    """Score annual ownership cost against the market benchmark.

    Spending exactly at the benchmark yields 100; spending far above it trends
    toward 50. With no user cost data the neutral 50 is reported as
    MISSING_DATA, and without a usable benchmark no number is produced at all.
    """
    if not benchmark_total or benchmark_total <= 0:
        return EfficiencyResult(status=FinancialStatus.NO_BENCHMARK, score=None)
    if actual_total <= 0:
        return EfficiencyResult(status=FinancialStatus.MISSING_DATA, score=NEUTRAL_SCORE)
    raw = (benchmark_total / actual_total) * 50 + 50
    return EfficiencyResult(status=FinancialStatus.CALCULATED, score=round_half_up(min(MAX_SCORE, raw), 1))
