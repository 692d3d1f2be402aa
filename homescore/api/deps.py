from datetime import datetime
from functools import lru_cache
from typing import Callable

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from homescore.corrections.service import CorrectionLedger
from homescore.db.session import SessionLocal, get_db
from homescore.financial.service import FinancialEfficiencyService
from homescore.home_score.service import HomeScoreAggregator
from homescore.jobs.queue import CeleryJobQueue, JobQueue
from homescore.risk.service import RiskAssessmentService
from homescore.utils.timezone import utcnow


def get_current_user_id(x_user_id: int = Header(..., alias="X-User-Id", ge=1)) -> int:
    # Authentication lives in the gateway; it forwards the caller id.
    return x_user_id


@lru_cache()
def get_job_queue() -> JobQueue:
    return CeleryJobQueue()


def get_session_factory() -> Callable[[], Session]:
    return SessionLocal


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_risk_service(
    db: Session = Depends(get_db),
    job_queue: JobQueue = Depends(get_job_queue),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RiskAssessmentService:
    return RiskAssessmentService(db, job_queue=job_queue, clock=clock)


def get_financial_service(
    db: Session = Depends(get_db),
    job_queue: JobQueue = Depends(get_job_queue),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> FinancialEfficiencyService:
    return FinancialEfficiencyService(db, job_queue=job_queue, clock=clock)


def get_correction_ledger(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> CorrectionLedger:
    return CorrectionLedger(db, clock=clock)


def get_aggregator(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    job_queue: JobQueue = Depends(get_job_queue),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> HomeScoreAggregator:
    return HomeScoreAggregator(session_factory, job_queue=job_queue, clock=clock)
