from enum import Enum


class JobType(str, Enum):
    CALCULATE_RISK_REPORT = "CALCULATE_RISK_REPORT"
    CALCULATE_FINANCIAL_REPORT = "CALCULATE_FINANCIAL_REPORT"
    CAPTURE_SCORE_SNAPSHOTS = "CAPTURE_SCORE_SNAPSHOTS"


# Celery task name per job type
TASK_NAMES = {
    JobType.CALCULATE_RISK_REPORT: "homescore.calculate_risk_report",
    JobType.CALCULATE_FINANCIAL_REPORT: "homescore.calculate_financial_report",
    JobType.CAPTURE_SCORE_SNAPSHOTS: "homescore.capture_score_snapshots",
}


def dedupe_key(property_id: int, job_type: JobType) -> str:
    return f"{property_id}-{job_type.value}"
