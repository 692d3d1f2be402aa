import logging
from typing import Any, Dict, Optional

from celery import shared_task
from sqlalchemy.orm import Session

from homescore.db.session import SessionLocal
from homescore.financial.service import FinancialEfficiencyService
from homescore.properties.repository import PropertyRepository
from homescore.risk.service import RiskAssessmentService
from homescore.snapshots.service import SnapshotService
from .queue import CeleryJobQueue
from .types import JobType, dedupe_key as job_dedupe_key

logger = logging.getLogger(__name__)


def _release(key: Optional[str]) -> None:
    if not key:
        return
    try:
        CeleryJobQueue().release(key)
    except Exception as exc:
        # The key still expires on its TTL.
        logger.warning(f"[Jobs] Could not release {key}: {exc}")


@shared_task(name="homescore.calculate_risk_report")
def calculate_risk_report_task(payload: Dict[str, Any], dedupe_key: Optional[str] = None) -> Dict[str, Any]:
    db: Session = SessionLocal()
    try:
        outcome = RiskAssessmentService(db).calculate_and_save(int(payload["property_id"]))
        return {
            "status": outcome.report.status.value,
            "risk_score": outcome.report.risk_score,
            "side_effect": outcome.side_effect.model_dump(),
        }
    finally:
        db.close()
        _release(dedupe_key)


@shared_task(name="homescore.calculate_financial_report")
def calculate_financial_report_task(payload: Dict[str, Any], dedupe_key: Optional[str] = None) -> Dict[str, Any]:
    db: Session = SessionLocal()
    try:
        report = FinancialEfficiencyService(db).calculate_and_save(int(payload["property_id"]))
        return {"status": report.status.value, "score": report.financial_efficiency_score}
    finally:
        db.close()
        _release(dedupe_key)


@shared_task(name="homescore.capture_score_snapshots")
def capture_score_snapshots_task(payload: Dict[str, Any], dedupe_key: Optional[str] = None) -> int:
    db: Session = SessionLocal()
    try:
        writes = SnapshotService(db).capture_weekly(int(payload["property_id"]))
        return sum(1 for w in writes if w.created)
    finally:
        db.close()
        _release(dedupe_key)


@shared_task(name="homescore.capture_all_score_snapshots")
def capture_all_score_snapshots_task() -> int:
    """Fan out one snapshot capture job per property. Returns number enqueued."""
    db: Session = SessionLocal()
    enqueued = 0
    try:
        queue = CeleryJobQueue()
        job_type = JobType.CAPTURE_SCORE_SNAPSHOTS
        for property_id in PropertyRepository(db).list_property_ids():
            if queue.enqueue(job_type, {"property_id": property_id}, job_dedupe_key(property_id, job_type)):
                enqueued += 1
    finally:
        db.close()
    logger.info(f"[Jobs] Enqueued {enqueued} snapshot captures")
    return enqueued
