import os
import tempfile
from datetime import datetime, timedelta

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault(
    "HOMESCORE_SQLALCHEMY_DATABASE_URI",
    "sqlite:///" + os.path.join(tempfile.gettempdir(), "homescore-app.db"),
)
os.environ.setdefault("HOMESCORE_METRICS_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from homescore.db.base import Base
from homescore.financial.repository import seed_benchmarks
from homescore.models import Property
from homescore.risk.catalog import seed_asset_catalog

NOW = datetime(2026, 3, 18, 12, 0, 0)


class FixedClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryJobQueue:
    """Records enqueued jobs and dedupes on key like the Redis-backed queue."""

    def __init__(self):
        self.pending = set()
        self.enqueued = []

    def enqueue(self, job_type, payload, dedupe_key):
        if dedupe_key in self.pending:
            return False
        self.pending.add(dedupe_key)
        self.enqueued.append((job_type, payload))
        return True

    def is_pending(self, dedupe_key):
        return dedupe_key in self.pending

    def release(self, dedupe_key):
        self.pending.discard(dedupe_key)


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'homescore.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def job_queue():
    return InMemoryJobQueue()


@pytest.fixture
def catalog(db):
    seed_asset_catalog(db)
    seed_benchmarks(db)


@pytest.fixture
def make_property(db):
    def _make(**overrides) -> Property:
        values = dict(
            owner_user_id=1,
            name="12 Maple St",
            zip_code="94107",
            property_type="SINGLE_FAMILY",
            is_primary=True,
            year_built=1995,
            property_size=2000,
            heating_type="FURNACE",
            water_heater_type="TANK",
            roof_type="SHINGLE",
            foundation_type="SLAB",
            hvac_install_year=2012,
            water_heater_install_year=2020,
            roof_replacement_year=2015,
            detectors_install_year=2022,
            electrical_panel_age=10,
            has_smoke_detectors=True,
            has_co_detectors=True,
            is_detector_expired=False,
            has_drainage_issues=False,
        )
        values.update(overrides)
        prop = Property(**values)
        db.add(prop)
        db.commit()
        db.refresh(prop)
        return prop

    return _make
