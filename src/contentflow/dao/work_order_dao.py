from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc
from contentflow.models.work_order import WorkOrder, WorkOrderStatus
from contentflow.models.user import User
import logging

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (WorkOrderStatus.POSTADO, WorkOrderStatus.PUBLICADO)


def insert_work_order(db: Session, wo: WorkOrder) -> WorkOrder:
    db.add(wo)
    db.flush()
    return wo


def get_work_order(db: Session, wo_id: str, org_id: str) -> WorkOrder | None:
    """None when missing or owned by another org."""
    return db.query(WorkOrder).filter_by(id = wo_id, org_id = org_id).first()


def list_org_work_orders(
    db: Session, org_id: str, status: WorkOrderStatus | None = None
) -> list[WorkOrder]:
    q = db.query(WorkOrder).filter_by(org_id = org_id)
    if status:
        q = q.filter_by(status = status)
    return q.order_by(desc(WorkOrder.created_at)).all()


def list_open_work_orders(db: Session, org_id: str) -> list[WorkOrder]:
    return (
        db.query(WorkOrder)
        .filter(WorkOrder.org_id == org_id, WorkOrder.status.notin_(CLOSED_STATUSES))
        .all()
    )


def list_sla_candidates(db: Session, horizon: datetime) -> list[WorkOrder]:
    """Open work orders, any org, whose SLA falls due at or before `horizon`."""
    return (
        db.query(WorkOrder)
        .filter(
            WorkOrder.sla_due_at.isnot(None),
            WorkOrder.sla_due_at <= horizon,
            WorkOrder.status.notin_(CLOSED_STATUSES),
        )
        .order_by(WorkOrder.sla_due_at)
        .all()
    )


def find_stage_user(db: Session, org_id: str, role: str) -> User | None:
    """First user of the org holding `role`, used as default responsible for a stage."""
    return (
        db.query(User)
        .filter_by(org_id = org_id, role = role)
        .order_by(User.created_at)
        .first()
    )
