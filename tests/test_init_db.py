import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from homescore.db import init_db, session as db_session
from homescore.financial.repository import DEFAULT_BENCHMARKS
from homescore.models import AssetConfig, FinancialBenchmark, Property
from homescore.risk.catalog import DEFAULT_ASSET_CATALOG
from homescore.risk.schemas import RiskReportStatus
from homescore.risk.service import RiskAssessmentService


@pytest.fixture
def blank_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'blank.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def blank_sessions(blank_engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=blank_engine)


def test_init_db_creates_tables_and_reference_data(blank_engine, blank_sessions):
    assert "asset_configs" in init_db.missing_tables(blank_engine)

    seeded = init_db.init_db(blank_engine, blank_sessions)

    assert init_db.missing_tables(blank_engine) == []
    assert seeded == {"asset_configs": len(DEFAULT_ASSET_CATALOG), "financial_benchmarks": len(DEFAULT_BENCHMARKS)}
    with blank_sessions() as db:
        assert db.query(AssetConfig).count() == len(DEFAULT_ASSET_CATALOG)
        assert db.query(FinancialBenchmark).count() == len(DEFAULT_BENCHMARKS)


def test_init_db_is_idempotent(blank_engine, blank_sessions):
    init_db.init_db(blank_engine, blank_sessions)
    init_db.init_db(blank_engine, blank_sessions)

    with blank_sessions() as db:
        assert db.query(AssetConfig).count() == len(DEFAULT_ASSET_CATALOG)
        assert {c.config_version for c in db.query(AssetConfig).all()} == {1}


def test_bootstrapped_database_scores_real_assets(blank_engine, blank_sessions, clock):
    init_db.init_db(blank_engine, blank_sessions)
    with blank_sessions() as db:
        prop = Property(
            owner_user_id=1,
            property_type="SINGLE_FAMILY",
            year_built=1995,
            property_size=2000,
            heating_type="FURNACE",
            hvac_install_year=2012,
        )
        db.add(prop)
        db.commit()

        report = RiskAssessmentService(db, clock=clock).calculate_and_save(prop.id).report

    assert report.status == RiskReportStatus.CALCULATED
    assert "HVAC_FURNACE" in {d.system_type for d in report.details}
    assert report.risk_score < 100


def test_cli_check_only_reports_missing_tables(monkeypatch, blank_engine, blank_sessions):
    monkeypatch.setattr(db_session, "engine", blank_engine)
    monkeypatch.setattr(db_session, "SessionLocal", blank_sessions)

    assert init_db.main(["--check-only"]) == 1
    assert init_db.main([]) == 0
    assert init_db.main(["--check-only"]) == 0
