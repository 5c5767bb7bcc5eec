from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc
from contentflow.models.log_event import LogEvent, LogAction


def get_logs(
    db: Session,
    org_id: str,
    work_order_id: str | None = None,
    idea_id: str | None = None,
    action: LogAction | None = None,
    limit: int = 200,
) -> list[LogEvent]:
    q = db.query(LogEvent).filter_by(org_id = org_id)
    if work_order_id:
        q = q.filter_by(work_order_id = work_order_id)
    if idea_id:
        q = q.filter_by(idea_id = idea_id)
    if action:
        q = q.filter_by(action = action)
    return q.order_by(desc(LogEvent.created_at)).limit(limit).all()


def logged_since(db: Session, work_order_id: str, action: LogAction, since: datetime) -> bool:
    return (
        db.query(LogEvent.id)
        .filter(
            LogEvent.work_order_id == work_order_id,
            LogEvent.action == action,
            LogEvent.created_at >= since,
        )
        .first()
        is not None
    )
