"""
Work order (OS) lifecycle.

Statuses are a flat enumeration: any authorized update may write any status.
Side effects hang off the status written, not the path taken:
  - SLA deadline recomputed from the per-stage hours table
  - default responsible user picked for the new stage
  - one audit entry per operation, in the same transaction
"""
import logging
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from contentflow.auth import Actor
from contentflow.config import settings
from contentflow.database import transaction, utcnow
from contentflow.dao.work_order_dao import (
    insert_work_order, get_work_order, list_org_work_orders, list_open_work_orders, find_stage_user,
)
from contentflow.errors import ValidationError, PermissionDeniedError, NotFoundError
from contentflow.models.idea import Idea
from contentflow.models.log_event import LogAction
from contentflow.models.user import User
from contentflow.models.work_order import WorkOrder, WorkOrderStatus
from contentflow.services.audit_service import log_event
from contentflow.states.state import WorkOrderCreate, WorkOrderPatch, Responsibilities

logger = logging.getLogger(__name__)

# Stage → (user role that owns it, key in the responsibility map)
STAGE_OWNERS: dict[WorkOrderStatus, tuple[str, str]] = {
    WorkOrderStatus.ROTEIRO: ("COPY", "script"),
    WorkOrderStatus.AUDIO: ("AUDIO", "audio"),
    WorkOrderStatus.CAPTACAO: ("VIDEO", "capture"),
    WorkOrderStatus.EDICAO: ("EDITOR", "edit"),
    WorkOrderStatus.REVISAO: ("REVISOR", "review"),
    WorkOrderStatus.APROVACAO: ("CRISPIM", "approval"),
    WorkOrderStatus.AGENDAMENTO: ("SOCIAL", "social"),
}

CREATION_STATUSES = (WorkOrderStatus.ROTEIRO, WorkOrderStatus.RASCUNHO)
# NOT NULL columns a patch may change but never clear
REQUIRED_FIELDS = ("title", "brand", "objective", "content_type", "priority",
                   "channels", "raw_media_links", "internal_approved")
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMATS = ("%H:%M", "%H:%M:%S")


# ── Pure rules ───────────────────────────────────────────────────────────────

def sla_hours_for(status: WorkOrderStatus, table: dict[str, int] | None = None) -> int:
    table = table if table is not None else settings.stage_sla_hours
    return table.get(status.value, settings.default_sla_hours)


def compute_sla_due(
    status: WorkOrderStatus,
    now: datetime | None = None,
    table: dict[str, int] | None = None,
) -> datetime | None:
    """now + stage hours; None for stages without a deadline (0 hours)."""
    hours = sla_hours_for(status, table)
    if hours <= 0:
        return None
    return (now or utcnow()) + timedelta(hours=hours)


def is_visible(wo: WorkOrder, actor: Actor) -> bool:
    """Org-wide viewers see everything in their org; everyone else only what they touch."""
    if wo.org_id != actor.org_id:
        return False
    if actor.can_view_all:
        return True
    if actor.id in (wo.current_responsible_id, wo.created_by):
        return True
    return actor.id in (wo.responsibilities or {}).values()


def parse_publish_at(publish_date: str | None, time: str | None) -> datetime | None:
    """'2025-03-01' + '14:30' → naive wall-clock datetime. No date → None."""
    if not publish_date or not publish_date.strip():
        return None
    try:
        day = datetime.strptime(publish_date.strip(), DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid data_publicacao '{publish_date}', expected YYYY-MM-DD")

    raw_time = (time or "").strip() or settings.default_publish_time
    for fmt in TIME_FORMATS:
        try:
            clock = datetime.strptime(raw_time, fmt).time()
            break
        except ValueError:
            continue
    else:
        raise ValidationError(f"Invalid horario '{time}', expected HH:MM")
    return datetime.combine(day, clock)


# ── Helpers ──────────────────────────────────────────────────────────────────

def _default_responsible(db: Session, org_id: str, status: WorkOrderStatus, responsibilities: dict) -> str | None:
    owner = STAGE_OWNERS.get(status)
    if not owner:
        return None
    role, key = owner
    if responsibilities.get(key):
        return responsibilities[key]
    user = find_stage_user(db, org_id, role)
    return user.id if user else None


def _enter_stage(db: Session, wo: WorkOrder, status: WorkOrderStatus, now: datetime | None = None) -> None:
    wo.status = status
    wo.sla_due_at = compute_sla_due(status, now)
    wo.current_responsible_id = _default_responsible(db, wo.org_id, status, wo.responsibilities or {})


def _check_org_users(db: Session, org_id: str, user_ids: set[str]) -> None:
    if not user_ids:
        return
    found = {
        u.id for u in db.query(User.id).filter(User.org_id == org_id, User.id.in_(user_ids)).all()
    }
    missing = user_ids - found
    if missing:
        raise ValidationError(f"Unknown users for this organization: {sorted(missing)}")


def _load_visible(db: Session, wo_id: str, actor: Actor) -> WorkOrder:
    wo = get_work_order(db, wo_id, actor.org_id)
    if not wo or not is_visible(wo, actor):
        raise NotFoundError(f"Work order {wo_id} not found")
    return wo


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


# ── Reads ────────────────────────────────────────────────────────────────────

def get_visible_work_order(db: Session, wo_id: str, actor: Actor) -> WorkOrder:
    return _load_visible(db, wo_id, actor)


def list_visible_work_orders(
    db: Session, actor: Actor, status: WorkOrderStatus | None = None
) -> list[WorkOrder]:
    return [wo for wo in list_org_work_orders(db, actor.org_id, status) if is_visible(wo, actor)]


# ── Writes ───────────────────────────────────────────────────────────────────

def seed_from_idea(db: Session, idea: Idea, actor: Actor) -> WorkOrder:
    """Build and flush the ROTEIRO work order for an approved idea. Caller owns the transaction."""
    wo = WorkOrder(
        title=idea.title,
        description=idea.description,
        brand=idea.brand,
        objective=idea.objective,
        content_type=idea.content_type,
        priority=idea.priority,
        channels=list(idea.channels or []),
        hook=idea.hook,
        cta=idea.cta,
        script=idea.script,
        caption=idea.caption,
        raw_media_links=list(idea.raw_media_links or []),
        deadline=idea.deadline,
        scheduled_publish_at=_publish_at_from_idea(idea.publish_date),
        responsibilities={},
        org_id=idea.org_id,
        created_by=actor.id,
    )
    _enter_stage(db, wo, WorkOrderStatus.ROTEIRO)
    insert_work_order(db, wo)
    log_event(
        db, LogAction.CREATE, actor.id,
        work_order_id=wo.id, org_id=wo.org_id,
        detail={"source_idea_id": idea.id, "status": wo.status.value},
    )
    return wo


def _publish_at_from_idea(value: str | None) -> datetime | None:
    # free text from the import; only a well formed timestamp is carried over
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d %H:%M:%S")
    except ValueError:
        logger.debug("Idea publish date %r is not a timestamp, left unscheduled", value)
        return None


def create_work_order(db: Session, actor: Actor, data: WorkOrderCreate) -> WorkOrder:
    status = data.status or WorkOrderStatus.ROTEIRO
    if status not in CREATION_STATUSES:
        raise ValidationError(f"A work order can only be created as ROTEIRO or RASCUNHO, not {status.value}")

    responsibilities = data.responsibilities.model_dump(exclude_none=True)
    assigned = data.responsibilities.user_ids()
    if data.current_responsible_id:
        assigned.add(data.current_responsible_id)

    with transaction(db):
        _check_org_users(db, actor.org_id, assigned)
        wo = WorkOrder(
            **data.model_dump(exclude={"status", "responsibilities", "current_responsible_id"}),
            responsibilities=responsibilities,
            org_id=actor.org_id,
            created_by=actor.id,
        )
        _enter_stage(db, wo, status)
        if data.current_responsible_id:
            wo.current_responsible_id = data.current_responsible_id
        insert_work_order(db, wo)
        log_event(
            db, LogAction.CREATE, actor.id,
            work_order_id=wo.id, org_id=actor.org_id,
            detail={"title": wo.title, "status": wo.status.value},
        )
    db.refresh(wo)
    logger.info("Work order %s created by %s in %s", wo.id, actor.id, wo.status.value)
    return wo


def update_work_order(db: Session, wo_id: str, actor: Actor, patch: WorkOrderPatch) -> WorkOrder:
    changes = patch.model_dump(exclude_unset=True)
    cleared = [f for f in REQUIRED_FIELDS if f in changes and changes[f] is None]
    if cleared:
        raise ValidationError(f"{', '.join(cleared)} cannot be cleared")
    if "responsibilities" in changes:
        changes["responsibilities"] = (
            patch.responsibilities.model_dump(exclude_none=True) if patch.responsibilities else {}
        )

    with transaction(db):
        wo = _load_visible(db, wo_id, actor)
        assigned = patch.responsibilities.user_ids() if patch.responsibilities else set()
        if changes.get("current_responsible_id"):
            assigned.add(changes["current_responsible_id"])
        _check_org_users(db, actor.org_id, assigned)

        changed: dict[str, list] = {}
        new_status = changes.pop("status", None)
        for field, value in changes.items():
            old = getattr(wo, field)
            if old != value:
                changed[field] = [_jsonable(old), _jsonable(value)]
                setattr(wo, field, value)

        if new_status is not None and new_status != wo.status:
            old_status = wo.status
            _enter_stage(db, wo, new_status)
            if "current_responsible_id" in changes:
                wo.current_responsible_id = changes["current_responsible_id"]
            changed["status"] = [old_status.value, new_status.value]

        log_event(
            db, LogAction.STATUS_CHANGE, actor.id,
            work_order_id=wo.id, org_id=actor.org_id,
            detail={"changed": changed},
        )
    db.refresh(wo)
    return wo


def approve_work_order(
    db: Session,
    wo_id: str,
    actor: Actor,
    publish_date: str | None = None,
    time: str | None = None,
) -> WorkOrder:
    if not actor.can_approve:
        raise PermissionDeniedError("Only approvers can approve work orders")
    publish_at = parse_publish_at(publish_date, time)

    with transaction(db):
        wo = _load_visible(db, wo_id, actor)
        previous = wo.status
        _enter_stage(db, wo, WorkOrderStatus.AGENDAMENTO)
        wo.brand_owner_approved = True
        if publish_at:
            wo.scheduled_publish_at = publish_at
        log_event(
            db, LogAction.APPROVE, actor.id,
            work_order_id=wo.id, org_id=actor.org_id,
            detail={"from": previous.value, "scheduled_publish_at": _jsonable(wo.scheduled_publish_at)},
        )
    db.refresh(wo)
    logger.info("Work order %s approved by %s", wo.id, actor.id)
    return wo


def reject_work_order(db: Session, wo_id: str, actor: Actor, reason: str | None) -> WorkOrder:
    if not reason or not reason.strip():
        raise ValidationError("motivo is required to reject a work order")

    with transaction(db):
        wo = _load_visible(db, wo_id, actor)
        previous = wo.status
        _enter_stage(db, wo, WorkOrderStatus.REVISAO)
        wo.brand_owner_approved = False
        log_event(
            db, LogAction.REJECT, actor.id,
            work_order_id=wo.id, org_id=actor.org_id,
            detail={"from": previous.value, "reason": reason.strip()},
        )
    db.refresh(wo)
    logger.info("Work order %s sent back to REVISAO by %s", wo.id, actor.id)
    return wo


def schedule_work_order(
    db: Session, wo_id: str, actor: Actor, publish_date: str, time: str | None = None
) -> WorkOrder:
    publish_at = parse_publish_at(publish_date, time)
    if publish_at is None:
        raise ValidationError("data_publicacao is required to schedule a work order")

    with transaction(db):
        wo = _load_visible(db, wo_id, actor)
        wo.scheduled_publish_at = publish_at
        log_event(
            db, LogAction.SCHEDULE, actor.id,
            work_order_id=wo.id, org_id=actor.org_id,
            detail={"scheduled_publish_at": publish_at.isoformat()},
        )
    db.refresh(wo)
    return wo


def mark_posted(db: Session, wo_id: str, actor: Actor) -> WorkOrder:
    with transaction(db):
        wo = _load_visible(db, wo_id, actor)
        previous = wo.status
        wo.status = WorkOrderStatus.POSTADO
        wo.sla_due_at = None
        wo.current_responsible_id = None
        log_event(
            db, LogAction.POST, actor.id,
            work_order_id=wo.id, org_id=actor.org_id,
            detail={"from": previous.value},
        )
    db.refresh(wo)
    logger.info("Work order %s posted", wo.id)
    return wo


def recalculate_sla(db: Session, actor: Actor, now: datetime | None = None) -> int:
    """Recompute the SLA of every open work order in the actor's org. Returns how many changed."""
    if not (actor.can_approve or actor.can_view_all):
        raise PermissionDeniedError("Only approvers or org-wide viewers can recalculate SLAs")
    now = now or utcnow()
    updated = 0

    with transaction(db):
        for wo in list_open_work_orders(db, actor.org_id):
            due = compute_sla_due(wo.status, now)
            if due == wo.sla_due_at:
                continue
            log_event(
                db, LogAction.STATUS_CHANGE, actor.id,
                work_order_id=wo.id, org_id=wo.org_id,
                detail={"changed": {"sla_due_at": [_jsonable(wo.sla_due_at), _jsonable(due)]}},
            )
            wo.sla_due_at = due
            updated += 1

    logger.info("SLA recalculated for %d work orders in org %s", updated, actor.org_id)
    return updated


def responsibilities_of(wo: WorkOrder) -> Responsibilities:
    return Responsibilities(**(wo.responsibilities or {}))
