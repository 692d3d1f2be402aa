from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from homescore.models import (
    Property,
    Warranty,
    InsurancePolicy,
    Expense,
    Document,
    MaintenanceTask,
)
from .schemas import (
    PropertyFacts,
    WarrantyRecord,
    InsurancePolicyRecord,
    ExpenseRecord,
    MaintenanceTaskRecord,
)

OPEN_TASK_STATUSES = ("PENDING", "IN_PROGRESS")


class PropertyRepository:
    """Read access to property facts and the records hanging off a property."""

    def __init__(self, db: Session):
        self.db = db

    def get_facts(self, property_id: int) -> Optional[PropertyFacts]:
        row = self.db.get(Property, property_id)
        return PropertyFacts.model_validate(row) if row else None

    def get_owned_facts(self, property_id: int, user_id: int) -> Optional[PropertyFacts]:
        row = (
            self.db.query(Property)
            .filter(Property.id == property_id, Property.owner_user_id == user_id)
            .first()
        )
        return PropertyFacts.model_validate(row) if row else None

    def get_primary_facts(self, user_id: int) -> Optional[PropertyFacts]:
        row = (
            self.db.query(Property)
            .filter(Property.owner_user_id == user_id)
            .order_by(Property.is_primary.desc(), Property.created_at.asc())
            .first()
        )
        return PropertyFacts.model_validate(row) if row else None

    def list_property_ids(self) -> List[int]:
        return [pid for (pid,) in self.db.query(Property.id).order_by(Property.id.asc()).all()]

    def list_warranties(self, property_id: int) -> List[WarrantyRecord]:
        rows = self.db.query(Warranty).filter(Warranty.property_id == property_id).all()
        return [WarrantyRecord.model_validate(r) for r in rows]

    def list_insurance_policies(self, property_id: int) -> List[InsurancePolicyRecord]:
        rows = self.db.query(InsurancePolicy).filter(InsurancePolicy.property_id == property_id).all()
        return [InsurancePolicyRecord.model_validate(r) for r in rows]

    def list_expenses(self, property_id: int, category: str, since: date) -> List[ExpenseRecord]:
        rows = (
            self.db.query(Expense)
            .filter(
                Expense.property_id == property_id,
                Expense.category == category,
                Expense.transaction_date >= since,
            )
            .all()
        )
        return [ExpenseRecord.model_validate(r) for r in rows]

    def list_document_types(self, property_id: int) -> List[str]:
        rows = (
            self.db.query(Document.document_type)
            .filter(Document.property_id == property_id)
            .distinct()
            .all()
        )
        return [t for (t,) in rows]

    def list_open_tasks(self, property_id: int) -> List[MaintenanceTaskRecord]:
        rows = (
            self.db.query(MaintenanceTask)
            .filter(
                MaintenanceTask.property_id == property_id,
                MaintenanceTask.status.in_(OPEN_TASK_STATUSES),
            )
            .all()
        )
        return [MaintenanceTaskRecord.model_validate(r) for r in rows]


class MaintenanceTaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def open_risk_task_system_types(self, property_id: int) -> set:
        rows = (
            self.db.query(MaintenanceTask.system_type)
            .filter(
                MaintenanceTask.property_id == property_id,
                MaintenanceTask.source == "RISK_ASSESSMENT",
                MaintenanceTask.status.in_(OPEN_TASK_STATUSES),
            )
            .all()
        )
        return {t for (t,) in rows if t}

    def create_risk_task(
        self,
        property_id: int,
        system_type: str,
        title: str,
        description: str,
        priority: str,
        risk_level: str,
    ) -> MaintenanceTask:
        task = MaintenanceTask(
            property_id=property_id,
            title=title,
            description=description,
            system_type=system_type,
            priority=priority,
            risk_level=risk_level,
            status="PENDING",
            source="RISK_ASSESSMENT",
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task
