from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from homescore.models import RiskReport
from .schemas import AssetRiskDetail, RiskReportView, RiskReportStatus, DETAIL_SCHEMA_VERSION


class RiskReportRepository:
    """Upsert-by-property store for the single live risk report of each property."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, property_id: int) -> Optional[RiskReport]:
        return self.db.query(RiskReport).filter(RiskReport.property_id == property_id).first()

    def upsert(
        self,
        property_id: int,
        status: RiskReportStatus,
        risk_score: int,
        financial_exposure_total: float,
        details: List[AssetRiskDetail],
        calculated_at: datetime,
    ) -> RiskReport:
        row = self.get(property_id)
        if row is None:
            row = RiskReport(property_id=property_id)
            self.db.add(row)
        row.status = status.value
        row.risk_score = risk_score
        row.financial_exposure_total = financial_exposure_total
        row.details = [d.model_dump(mode="json") for d in details]
        row.details_schema_version = DETAIL_SCHEMA_VERSION
        row.last_calculated_at = calculated_at
        self.db.commit()
        self.db.refresh(row)
        return row


def to_view(row: RiskReport) -> RiskReportView:
    if row.details_schema_version != DETAIL_SCHEMA_VERSION:
        raise ValueError(
            f"Unsupported risk detail schema version {row.details_schema_version} for property {row.property_id}"
        )
    return RiskReportView(
        property_id=row.property_id,
        status=RiskReportStatus(row.status),
        risk_score=row.risk_score,
        financial_exposure_total=float(row.financial_exposure_total or 0.0),
        details=[AssetRiskDetail.model_validate(d) for d in (row.details or [])],
        details_schema_version=row.details_schema_version,
        last_calculated_at=row.last_calculated_at,
    )
