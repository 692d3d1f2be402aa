from prometheus_client import Counter


risk_reports_calculated_total = Counter(
    "homescore_risk_reports_calculated_total",
    "Total risk reports calculated, by resulting status",
    ["status"],
)

risk_calculation_failures_total = Counter(
    "homescore_risk_calculation_failures_total",
    "Total risk calculations that fell back to a fatal error detail",
)

maintenance_tasks_created_total = Counter(
    "homescore_maintenance_tasks_created_total",
    "Total maintenance tasks created from high-risk assets",
)

maintenance_task_sync_failures_total = Counter(
    "homescore_maintenance_task_sync_failures_total",
    "Total failed maintenance task syncs after a risk calculation",
)

financial_reports_calculated_total = Counter(
    "homescore_financial_reports_calculated_total",
    "Total financial reports calculated, by resulting status",
    ["status"],
)

jobs_enqueued_total = Counter(
    "homescore_jobs_enqueued_total",
    "Total recalculation jobs enqueued",
    ["job_type"],
)

jobs_deduplicated_total = Counter(
    "homescore_jobs_deduplicated_total",
    "Total recalculation requests collapsed into an already pending job",
    ["job_type"],
)

snapshots_written_total = Counter(
    "homescore_snapshots_written_total",
    "Total weekly score snapshots written",
    ["score_type"],
)

home_score_reports_built_total = Counter(
    "homescore_reports_built_total",
    "Total home score reports built",
)

home_score_degraded_components_total = Counter(
    "homescore_degraded_components_total",
    "Total component fetches that failed and were substituted",
    ["component"],
)

corrections_submitted_total = Counter(
    "homescore_corrections_submitted_total",
    "Total fact corrections submitted by users",
)
