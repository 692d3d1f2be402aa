from datetime import datetime
from typing import List

from homescore.corrections.schemas import CorrectionEventRecord, CorrectionStatus
from homescore.properties.fields import field_label
from homescore.snapshots.service import SnapshotSummary
from homescore.utils.numbers import round_half_up
from .components import LABELS, WEIGHTS, normalized
from .schemas import ChangeLogEntry, Impact, Provenance

MAX_ENTRIES = 12

COMPONENT_PROVENANCE = {
    "HEALTH": Provenance.USER_STATED,
    "RISK": Provenance.SYSTEM_COMPUTED,
    "FINANCIAL": Provenance.SYSTEM_COMPUTED,
}


def score_change_entries(summary: SnapshotSummary) -> List[ChangeLogEntry]:
    entries = []
    for score_type in WEIGHTS:
        trend = summary.series(score_type).trend
        for previous, current in zip(trend, trend[1:]):
            delta = round_half_up(normalized(current) - normalized(previous), 1)
            if delta == 0:
                continue
            entries.append(ChangeLogEntry(
                id=f"{score_type.value.lower()}-{current.week_start.isoformat()}",
                title=f"{LABELS[score_type]} {'improved' if delta > 0 else 'declined'} by {abs(delta):.1f} points",
                detail=f"Week of {current.week_start.isoformat()} compared with {previous.week_start.isoformat()}.",
                impact=Impact.POSITIVE if delta > 0 else Impact.NEGATIVE,
                occurred_at=current.computed_at,
                week_start=current.week_start,
                component=score_type,
                provenance=COMPONENT_PROVENANCE[score_type.value],
                delta=delta,
            ))
    return entries


def correction_entries(events: List[CorrectionEventRecord]) -> List[ChangeLogEntry]:
    impacts = {
        CorrectionStatus.SUBMITTED: Impact.NEUTRAL,
        CorrectionStatus.APPLIED: Impact.POSITIVE,
        CorrectionStatus.REJECTED: Impact.NEUTRAL,
    }
    entries = []
    for event in events:
        label = field_label(event.field_key)
        entries.append(ChangeLogEntry(
            id=f"correction-event-{event.id}",
            title=f"Correction {event.status.value.lower()}: {label}",
            detail=event.note or f"Correction #{event.correction_id} marked {event.status.value.lower()}.",
            impact=impacts[event.status],
            occurred_at=event.created_at,
            provenance=Provenance.USER_STATED,
        ))
    return entries


def build_change_log(summary: SnapshotSummary, events: List[CorrectionEventRecord]) -> List[ChangeLogEntry]:
    """Score deltas and correction events in one feed, newest first."""
    entries = score_change_entries(summary) + correction_entries(events)
    entries.sort(key=lambda e: e.occurred_at or datetime.min, reverse=True)
    return entries[:MAX_ENTRIES]
