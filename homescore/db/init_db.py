"""
HomeScore database setup
========================

Creates the tables and loads the reference data (asset catalog and
type-level cost benchmarks) the risk and financial calculations read.
Both steps are idempotent, so the script is safe to re-run after a catalog
change.

Usage:
    homescore-init-db [--check-only]
"""

import argparse
import logging
import sys
from typing import Callable, Dict, List

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from homescore import models  # noqa: F401  registers every table on Base.metadata
from homescore.db.base import Base
from homescore.financial.repository import seed_benchmarks
from homescore.risk.catalog import seed_asset_catalog

logger = logging.getLogger(__name__)


def check_connection(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"[InitDB] Database connection failed: {e}")
        return False


def missing_tables(engine: Engine) -> List[str]:
    existing = set(inspect(engine).get_table_names())
    return [name for name in Base.metadata.tables if name not in existing]


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info(f"[InitDB] Tables ready: {', '.join(sorted(Base.metadata.tables))}")


def seed_reference_data(db: Session) -> Dict[str, int]:
    return {
        "asset_configs": seed_asset_catalog(db),
        "financial_benchmarks": seed_benchmarks(db),
    }


def init_db(engine: Engine, session_factory: Callable[[], Session]) -> Dict[str, int]:
    """Create missing tables, then upsert the reference data."""
    create_tables(engine)
    db = session_factory()
    try:
        seeded = seed_reference_data(db)
    finally:
        db.close()
    logger.info(f"[InitDB] Seeded reference data: {seeded}")
    return seeded


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="HomeScore database setup")
    parser.add_argument("--check-only", action="store_true", help="Only check that all tables exist")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    from homescore.db.session import SessionLocal, engine

    if not check_connection(engine):
        return 1

    if args.check_only:
        missing = missing_tables(engine)
        if missing:
            logger.error(f"[InitDB] Missing tables: {missing}")
            return 1
        logger.info("[InitDB] All required tables exist")
        return 0

    init_db(engine, SessionLocal)
    return 0


if __name__ == "__main__":
    sys.exit(main())
