from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from homescore.core.errors import NotFoundError
from homescore.corrections.schemas import CorrectionCreate, CorrectionRecord, CorrectionTransition
from homescore.corrections.service import CorrectionLedger
from homescore.db.session import get_db
from homescore.financial.schemas import FinancialLookup
from homescore.financial.service import FinancialEfficiencyService
from homescore.home_score.health import HealthScore, publish_health_score
from homescore.home_score.schemas import HomeScoreReport, Reason, TrendPoint
from homescore.home_score.service import HomeScoreAggregator
from homescore.properties.repository import PropertyRepository
from homescore.risk.schemas import RiskReportLookup, RiskReportView, RiskSummary
from homescore.risk.service import RiskAssessmentService
from homescore.snapshots.service import SnapshotWrite
from . import deps


router = APIRouter(prefix="/properties/{property_id}", tags=["home-score"])
summary_router = APIRouter(tags=["home-score"])
internal_router = APIRouter(prefix="/internal", tags=["home-score-internal"])


def require_owned_property(
    property_id: int,
    user_id: int = Depends(deps.get_current_user_id),
    db: Session = Depends(get_db),
) -> int:
    if PropertyRepository(db).get_owned_facts(property_id, user_id) is None:
        raise NotFoundError(f"Property {property_id} not found or access denied")
    return property_id


@router.get("/home-score", response_model=HomeScoreReport)
async def get_home_score(
    property_id: int,
    weeks: Optional[int] = Query(None),
    user_id: int = Depends(deps.get_current_user_id),
    aggregator: HomeScoreAggregator = Depends(deps.get_aggregator),
):
    return await aggregator.get_report(property_id, user_id, weeks)


@router.post("/home-score/refresh", response_model=HomeScoreReport)
async def refresh_home_score(
    property_id: int,
    weeks: Optional[int] = Query(None),
    user_id: int = Depends(deps.get_current_user_id),
    aggregator: HomeScoreAggregator = Depends(deps.get_aggregator),
):
    return await aggregator.refresh(property_id, user_id, weeks)


@router.get("/home-score/history", response_model=List[TrendPoint])
async def get_home_score_history(
    property_id: int,
    weeks: Optional[int] = Query(None),
    user_id: int = Depends(deps.get_current_user_id),
    aggregator: HomeScoreAggregator = Depends(deps.get_aggregator),
):
    return await aggregator.get_history(property_id, user_id, weeks)


@router.get("/home-score/factors", response_model=List[Reason])
async def get_home_score_factors(
    property_id: int,
    weeks: Optional[int] = Query(None),
    user_id: int = Depends(deps.get_current_user_id),
    aggregator: HomeScoreAggregator = Depends(deps.get_aggregator),
):
    return await aggregator.get_factors(property_id, user_id, weeks)


@router.get(
    "/home-score/corrections",
    response_model=List[CorrectionRecord],
    dependencies=[Depends(require_owned_property)],
)
def list_corrections(
    property_id: int,
    limit: int = Query(20, ge=1, le=100),
    ledger: CorrectionLedger = Depends(deps.get_correction_ledger),
):
    return ledger.list_corrections(property_id, limit)


@router.post("/home-score/corrections", response_model=CorrectionRecord, status_code=201)
def submit_correction(
    property_id: int,
    body: CorrectionCreate,
    user_id: int = Depends(deps.get_current_user_id),
    ledger: CorrectionLedger = Depends(deps.get_correction_ledger),
):
    return ledger.submit_correction(
        property_id,
        user_id,
        body.field_key,
        body.detail,
        proposed_value=body.proposed_value,
        title=body.title,
    )


@router.get("/risk-report", response_model=RiskReportLookup, dependencies=[Depends(require_owned_property)])
def get_risk_report(
    property_id: int,
    service: RiskAssessmentService = Depends(deps.get_risk_service),
):
    return service.get_or_queue(property_id)


@router.post(
    "/risk-report/recalculate",
    response_model=RiskReportView,
    dependencies=[Depends(require_owned_property)],
)
def recalculate_risk_report(
    property_id: int,
    service: RiskAssessmentService = Depends(deps.get_risk_service),
):
    """Recalculate unless the stored report is still inside the staleness window."""
    return service.get_cached_or_recalculate(property_id)


@router.get("/financial-report", response_model=FinancialLookup, dependencies=[Depends(require_owned_property)])
def get_financial_report(
    property_id: int,
    service: FinancialEfficiencyService = Depends(deps.get_financial_service),
):
    return service.get_or_queue(property_id)


@summary_router.get("/risk-summary", response_model=RiskSummary)
def get_primary_risk_summary(
    user_id: int = Depends(deps.get_current_user_id),
    service: RiskAssessmentService = Depends(deps.get_risk_service),
):
    return service.get_primary_summary(user_id)


@internal_router.post("/properties/{property_id}/health-score", response_model=SnapshotWrite)
def publish_health(
    property_id: int,
    body: HealthScore,
    db: Session = Depends(get_db),
    clock=Depends(deps.get_clock),
):
    if PropertyRepository(db).get_facts(property_id) is None:
        raise NotFoundError(f"Property {property_id} not found")
    return publish_health_score(db, property_id, body, clock=clock)


@internal_router.post("/corrections/{correction_id}/transition", response_model=CorrectionRecord)
def transition_correction(
    correction_id: int,
    body: CorrectionTransition,
    ledger: CorrectionLedger = Depends(deps.get_correction_ledger),
):
    return ledger.transition(correction_id, body.status, note=body.note)
