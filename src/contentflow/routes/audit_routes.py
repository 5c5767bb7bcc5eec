"""
Audit trail routes.
GET /audit-logs — org-scoped event log, filterable by work order, idea or action
"""
import json
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from contentflow.auth import Actor, get_current_actor
from contentflow.database import get_db
from contentflow.dao.log_dao import get_logs
from contentflow.models.log_event import LogEvent, LogAction

router = APIRouter(tags=["Audit"])


def _detail(raw: str | None):
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def serialize_log(l: LogEvent) -> dict:
    return {
        "id"            : l.id,
        "action"        : l.action.value,
        "work_order_id" : l.work_order_id,
        "idea_id"       : l.idea_id,
        "actor_id"      : l.actor_id,
        "detail"        : _detail(l.detail),
        "created_at"    : str(l.created_at),
    }


@router.get("/audit-logs")
def list_audit_logs(
    work_order_id: Optional[str] = Query(None),
    idea_id: Optional[str] = Query(None),
    action: Optional[LogAction] = Query(None),
    limit: int = Query(100, le=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    logs = get_logs(db, actor.org_id, work_order_id=work_order_id, idea_id=idea_id, action=action, limit=limit)
    return [serialize_log(l) for l in logs]
