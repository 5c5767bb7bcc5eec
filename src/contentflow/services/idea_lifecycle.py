"""
Idea review: PENDENTE → APROVADA | REJEITADA, each exactly once.
Guards run before any write, so a refused call leaves no trace.
"""
import logging
from sqlalchemy.orm import Session
from contentflow.auth import Actor
from contentflow.database import transaction
from contentflow.dao.idea_dao import get_idea as _get_idea, list_ideas as _list_ideas, find_duplicate
from contentflow.errors import ValidationError, PermissionDeniedError, NotFoundError, InvalidStateError
from contentflow.models.idea import Idea, IdeaStatus
from contentflow.models.log_event import LogAction
from contentflow.models.work_order import WorkOrder
from contentflow.services.audit_service import log_event
from contentflow.services.work_order_lifecycle import seed_from_idea
from contentflow.states.state import IdeaPatch

logger = logging.getLogger(__name__)


def _load_pending(db: Session, idea_id: str, actor: Actor) -> Idea:
    idea = _get_idea(db, idea_id, actor.org_id)
    if not idea:
        raise NotFoundError(f"Idea {idea_id} not found")
    if idea.status != IdeaStatus.PENDENTE:
        raise InvalidStateError(f"Idea {idea_id} is already {idea.status.value}")
    return idea


def get_idea(db: Session, idea_id: str, actor: Actor) -> Idea:
    idea = _get_idea(db, idea_id, actor.org_id)
    if not idea:
        raise NotFoundError(f"Idea {idea_id} not found")
    return idea


def list_ideas(db: Session, actor: Actor, status: IdeaStatus | None = None) -> list[Idea]:
    return _list_ideas(db, actor.org_id, status)


def approve_idea(db: Session, idea_id: str, actor: Actor) -> tuple[Idea, WorkOrder]:
    if not actor.can_approve:
        raise PermissionDeniedError("Only approvers can approve ideas")

    with transaction(db):
        idea = _load_pending(db, idea_id, actor)
        wo = seed_from_idea(db, idea, actor)
        idea.status = IdeaStatus.APROVADA
        idea.approved_by = actor.id
        idea.created_work_order_id = wo.id
        log_event(
            db, LogAction.APPROVE, actor.id,
            idea_id=idea.id, org_id=actor.org_id,
            detail={"work_order_id": wo.id},
        )

    db.refresh(idea)
    db.refresh(wo)
    logger.info("Idea %s approved by %s → work order %s", idea.id, actor.id, wo.id)
    return idea, wo


def reject_idea(db: Session, idea_id: str, actor: Actor, reason: str | None) -> Idea:
    if not reason or not reason.strip():
        raise ValidationError("motivo is required to reject an idea")
    if not actor.can_approve:
        raise PermissionDeniedError("Only approvers can reject ideas")

    with transaction(db):
        idea = _load_pending(db, idea_id, actor)
        idea.status = IdeaStatus.REJEITADA
        idea.rejected_by = actor.id
        idea.rejection_reason = reason.strip()
        log_event(
            db, LogAction.REJECT, actor.id,
            idea_id=idea.id, org_id=actor.org_id,
            detail={"reason": idea.rejection_reason},
        )

    db.refresh(idea)
    logger.info("Idea %s rejected by %s", idea.id, actor.id)
    return idea


def edit_idea(db: Session, idea_id: str, actor: Actor, patch: IdeaPatch) -> Idea:
    """Field edit while PENDENTE. Reviewed ideas are frozen."""
    changes = patch.model_dump(exclude_unset=True)

    with transaction(db):
        idea = _load_pending(db, idea_id, actor)
        changed = {}
        for field, value in changes.items():
            if value is None and field in ("title", "description", "brand", "objective",
                                            "content_type", "priority", "channels", "raw_media_links"):
                raise ValidationError(f"{field} cannot be cleared")
            old = getattr(idea, field)
            if old != value:
                changed[field] = [getattr(old, "value", old), getattr(value, "value", value)]
                setattr(idea, field, value)
        if "title" in changed or "brand" in changed:
            clash = find_duplicate(db, idea.org_id, idea.brand, idea.title)
            if clash and clash.id != idea.id:
                raise ValidationError(f"An idea titled '{idea.title}' already exists for {idea.brand}")
        log_event(
            db, LogAction.STATUS_CHANGE, actor.id,
            idea_id=idea.id, org_id=actor.org_id,
            detail={"changed": changed},
        )

    db.refresh(idea)
    return idea
