"""
SLA sweep — finds work orders past or close to their stage deadline and
writes SLA_OVERDUE / SLA_AT_RISK audit entries, at most once per cooldown
window per work order. Notification fan-out (Slack, WhatsApp) is not done here.
"""
import logging
from datetime import datetime, timedelta
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from contentflow.config import settings
from contentflow.database import SessionLocal, transaction, utcnow
from contentflow.dao.log_dao import logged_since
from contentflow.dao.work_order_dao import list_sla_candidates
from contentflow.models.log_event import LogAction
from contentflow.services.audit_service import log_event

logger = logging.getLogger(__name__)


class SlaSweepResult(BaseModel):
    overdue: list[str] = Field(default_factory=list)      # work order ids logged this run
    at_risk: list[str] = Field(default_factory=list)
    suppressed: int = 0                                   # already logged inside the cooldown


def sweep_sla(db: Session, now: datetime | None = None) -> SlaSweepResult:
    now = now or utcnow()
    horizon = now + timedelta(hours=settings.sla_at_risk_hours)
    cooldown_start = now - timedelta(hours=settings.sla_notify_cooldown_hours)
    result = SlaSweepResult()

    with transaction(db):
        for wo in list_sla_candidates(db, horizon):
            overdue = wo.sla_due_at < now
            action = LogAction.SLA_OVERDUE if overdue else LogAction.SLA_AT_RISK
            if logged_since(db, wo.id, action, cooldown_start):
                result.suppressed += 1
                continue

            hours_left = (wo.sla_due_at - now).total_seconds() / 3600
            log_event(
                db, action, None,
                work_order_id=wo.id, org_id=wo.org_id,
                detail={
                    "status": wo.status.value,
                    "sla_due_at": wo.sla_due_at.isoformat(),
                    "hours_left": round(hours_left, 1),
                    "responsible_id": wo.current_responsible_id,
                },
            )
            (result.overdue if overdue else result.at_risk).append(wo.id)

    logger.info(
        "SLA sweep: %d overdue, %d at risk, %d suppressed",
        len(result.overdue), len(result.at_risk), result.suppressed,
    )
    return result


def scheduled_sla_sweep():
    """Job executed by APScheduler at cron time, with its own session."""
    db: Session = SessionLocal()
    try:
        sweep_sla(db)
    except Exception as e:
        logger.error("[Scheduler] SLA sweep failed: %s", e)
    finally:
        db.close()
