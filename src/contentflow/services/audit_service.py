import json
import logging
from sqlalchemy.orm import Session
from contentflow.models.log_event import LogEvent, LogAction

logger = logging.getLogger(__name__)


def log_event(
        db: Session,
        action: LogAction,
        actor_id: str | None = None,
        work_order_id: str | None = None,
        idea_id: str | None = None,
        org_id: str | None = None,
        detail: dict | str | None = None,
        commit: bool = False,
) -> LogEvent:
    """
    Central audit logging utility.
    Call this everywhere instead of inline LogEvent() inserts.
    Lifecycle operations leave commit=False so the entry lands in the
    same transaction as the state change it describes.

    Usage:
        log_event(db, LogAction.APPROVE, actor.id, idea_id=idea.id,
                  org_id=actor.org_id, detail={"work_order_id": wo.id})
    """
    if isinstance(detail, dict):
        detail = json.dumps(detail, ensure_ascii=False, default=str)

    entry = LogEvent(
        action=action,
        actor_id=actor_id,
        work_order_id=work_order_id,
        idea_id=idea_id,
        org_id=org_id,
        detail=detail,
    )
    db.add(entry)
    if commit:
        db.commit()
    else:
        db.flush()
    logger.info(
        "AUDIT [%s] work_order=%s idea=%s actor=%s",
        action.value, work_order_id, idea_id, actor_id or "system",
    )
    return entry
