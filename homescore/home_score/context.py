from dataclasses import dataclass, field
from typing import List, Set

from sqlalchemy.orm import Session

from homescore.core.errors import NotFoundError
from homescore.corrections.repository import CorrectionRepository
from homescore.corrections.schemas import CorrectionEventRecord, CorrectionRecord
from homescore.properties.fields import PROFILE_FIELDS, RISK_FIELDS, ProfileField
from homescore.properties.repository import PropertyRepository
from homescore.properties.schemas import (
    InsurancePolicyRecord,
    MaintenanceTaskRecord,
    PropertyFacts,
    WarrantyRecord,
)

CORRECTION_HISTORY_LIMIT = 10
CORRECTION_EVENT_LIMIT = 50


@dataclass
class PropertyContext:
    """Facts and records read once per report, after the access check."""

    facts: PropertyFacts
    warranties: List[WarrantyRecord] = field(default_factory=list)
    policies: List[InsurancePolicyRecord] = field(default_factory=list)
    document_types: Set[str] = field(default_factory=set)
    open_tasks: List[MaintenanceTaskRecord] = field(default_factory=list)
    corrections: List[CorrectionRecord] = field(default_factory=list)
    correction_events: List[CorrectionEventRecord] = field(default_factory=list)
    open_correction_fields: Set[str] = field(default_factory=set)

    def is_populated(self, profile_field: ProfileField) -> bool:
        return self.facts.value_of(profile_field.key) is not None

    def is_trusted(self, profile_field: ProfileField) -> bool:
        """Populated and not under an open correction."""
        return self.is_populated(profile_field) and profile_field.key not in self.open_correction_fields

    def completeness(self) -> float:
        return sum(1 for f in PROFILE_FIELDS if self.is_trusted(f)) / len(PROFILE_FIELDS)

    def risk_fact_ratio(self) -> float:
        return sum(1 for f in RISK_FIELDS if self.is_trusted(f)) / len(RISK_FIELDS)

    def missing_fields(self) -> List[ProfileField]:
        return [f for f in PROFILE_FIELDS if not self.is_populated(f)]


def load_context(db: Session, property_id: int, user_id: int) -> PropertyContext:
    properties = PropertyRepository(db)
    facts = properties.get_owned_facts(property_id, user_id)
    if facts is None:
        raise NotFoundError(f"Property {property_id} not found or access denied")

    corrections = CorrectionRepository(db)
    return PropertyContext(
        facts=facts,
        warranties=properties.list_warranties(property_id),
        policies=properties.list_insurance_policies(property_id),
        document_types=set(properties.list_document_types(property_id)),
        open_tasks=properties.list_open_tasks(property_id),
        corrections=[
            CorrectionRecord.model_validate(c)
            for c in corrections.list_for_property(property_id, CORRECTION_HISTORY_LIMIT)
        ],
        correction_events=[
            CorrectionEventRecord.model_validate(e)
            for e in corrections.list_events(property_id, CORRECTION_EVENT_LIMIT)
        ],
        open_correction_fields=corrections.open_field_keys(property_id),
    )
