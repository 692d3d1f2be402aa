from datetime import date, datetime

import pytest

from homescore.financial.service import FinancialEfficiencyService
from homescore.models import InsurancePolicy, ScoreSnapshot
from homescore.risk.service import RiskAssessmentService
from homescore.snapshots.engine import (
    FinancialSnapshotDetail,
    HealthSnapshotDetail,
    RiskSnapshotDetail,
    ScoreType,
    build_series,
    clamp_weeks,
    parse_detail,
    score_band,
    week_start,
)
from homescore.snapshots.service import SnapshotService


def point(week: date, score: float) -> dict:
    return {"week_start": week, "score": score, "score_max": 100.0, "computed_at": datetime.combine(week, datetime.min.time())}


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2026, 3, 16), date(2026, 3, 16)),
        (date(2026, 3, 18), date(2026, 3, 16)),
        (date(2026, 3, 22), date(2026, 3, 16)),
        (datetime(2026, 3, 23, 0, 5), date(2026, 3, 23)),
    ],
)
def test_week_start_is_iso_monday(day, expected):
    assert week_start(day) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(None, 52), ("abc", 52), (3, 8), (500, 104), ("26", 26), (12.4, 12)],
)
def test_clamp_weeks(value, expected):
    assert clamp_weeks(value) == expected


def test_clamp_weeks_custom_default():
    assert clamp_weeks(None, default=26) == 26


def test_score_bands():
    assert score_band(85) == "EXCELLENT"
    assert score_band(84.9) == "GOOD"
    assert score_band(50) == "FAIR"
    assert score_band(49.9) == "NEEDS_ATTENTION"


def test_build_series_orders_points_and_keeps_gaps():
    rows = [
        point(date(2026, 3, 16), 72.0),
        point(date(2026, 2, 23), 60.0),
        point(date(2026, 3, 2), 65.5),
    ]

    series = build_series(ScoreType.RISK, rows)

    assert [p.week_start for p in series.trend] == [date(2026, 2, 23), date(2026, 3, 2), date(2026, 3, 16)]
    assert series.latest.score == 72.0
    assert series.previous.score == 65.5
    assert series.delta_from_previous_week == 6.5


def test_build_series_without_history():
    series = build_series(ScoreType.HEALTH, [])
    assert series.latest is None
    assert series.previous is None
    assert series.delta_from_previous_week is None
    assert series.trend == []


def test_single_point_has_no_delta():
    series = build_series(ScoreType.HEALTH, [point(date(2026, 3, 16), 80.0)])
    assert series.latest.score == 80.0
    assert series.delta_from_previous_week is None


def test_record_is_append_only_within_a_week(db, clock, make_property):
    prop = make_property()
    snapshots = SnapshotService(db, clock)

    first = snapshots.record(prop.id, ScoreType.HEALTH, 70.0)
    clock.advance(days=2)
    second = snapshots.record(prop.id, ScoreType.HEALTH, 90.0)

    assert first.created is True
    assert second.created is False
    assert second.score == 70.0
    assert second.week_start == date(2026, 3, 16)
    assert db.query(ScoreSnapshot).count() == 1


def test_summary_tracks_week_over_week_delta(db, clock, make_property):
    prop = make_property()
    snapshots = SnapshotService(db, clock)

    snapshots.record(prop.id, ScoreType.HEALTH, 70.0)
    clock.advance(days=7)
    snapshots.record(prop.id, ScoreType.HEALTH, 76.0)

    summary = snapshots.get_summary(prop.id, weeks=8)
    health = summary.series(ScoreType.HEALTH)

    assert summary.weeks == 8
    assert [p.score for p in health.trend] == [70.0, 76.0]
    assert health.delta_from_previous_week == 6.0
    assert summary.series(ScoreType.RISK).latest is None


def test_capture_weekly_records_calculated_reports(db, clock, catalog, make_property):
    prop = make_property()
    db.add(InsurancePolicy(property_id=prop.id, premium_amount=1500))
    db.commit()
    risk = RiskAssessmentService(db, clock=clock).calculate_and_save(prop.id).report
    financial = FinancialEfficiencyService(db, clock=clock).calculate_and_save(prop.id)

    writes = SnapshotService(db, clock).capture_weekly(prop.id)

    assert {w.score_type: w.score for w in writes} == {
        ScoreType.RISK: float(risk.risk_score),
        ScoreType.FINANCIAL: financial.financial_efficiency_score,
    }
    assert all(w.created for w in writes)
    assert not any(w.created for w in SnapshotService(db, clock).capture_weekly(prop.id))


def test_capture_weekly_skips_incomplete_reports(db, clock, catalog, make_property):
    prop = make_property(property_size=None)
    RiskAssessmentService(db, clock=clock).calculate_and_save(prop.id)
    FinancialEfficiencyService(db, clock=clock).calculate_and_save(prop.id)

    assert SnapshotService(db, clock).capture_weekly(prop.id) == []


def test_details_are_parsed_per_score_type():
    rows = [dict(point(date(2026, 3, 16), 70.0), detail={"factor_count": 9, "missing_count": 2})]

    series = build_series(ScoreType.HEALTH, rows)

    assert series.latest.detail == HealthSnapshotDetail(factor_count=9, missing_count=2)
    assert parse_detail(ScoreType.RISK, {"financial_exposure_total": 1200.5}) == RiskSnapshotDetail(
        financial_exposure_total=1200.5
    )
    assert parse_detail(ScoreType.FINANCIAL, None) is None


def test_invalid_detail_payload_is_rejected():
    with pytest.raises(ValueError):
        parse_detail(ScoreType.RISK, {"financial_exposure_total": -5})


def test_unknown_schema_version_is_rejected(db, clock, make_property):
    prop = make_property()
    db.add(ScoreSnapshot(
        property_id=prop.id,
        score_type=ScoreType.RISK.value,
        week_start=date(2026, 3, 16),
        score=55.0,
        score_max=100.0,
        detail={"financial_exposure_total": 100.0},
        schema_version=2,
        computed_at=clock(),
    ))
    db.commit()

    with pytest.raises(ValueError):
        SnapshotService(db, clock).get_summary(prop.id)


def test_captured_snapshots_carry_typed_details(db, clock, catalog, make_property):
    prop = make_property()
    db.add(InsurancePolicy(property_id=prop.id, premium_amount=1500))
    db.commit()
    risk = RiskAssessmentService(db, clock=clock).calculate_and_save(prop.id).report
    financial = FinancialEfficiencyService(db, clock=clock).calculate_and_save(prop.id)
    SnapshotService(db, clock).capture_weekly(prop.id)

    summary = SnapshotService(db, clock).get_summary(prop.id)

    assert summary.series(ScoreType.RISK).latest.detail == RiskSnapshotDetail(
        financial_exposure_total=risk.financial_exposure_total
    )
    assert summary.series(ScoreType.FINANCIAL).latest.detail == FinancialSnapshotDetail(
        market_average_total=financial.market_average_total
    )
