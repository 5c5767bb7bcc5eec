"""
Work order (OS) routes.
GET   /ordens                 — work orders visible to the caller
GET   /ordens/{id}            — detail (404 when not visible)
POST  /ordens                 — create in ROTEIRO or RASCUNHO
PATCH /ordens/{id}            — field / status update
POST  /ordens/{id}/approve    — approver sign-off → AGENDAMENTO
POST  /ordens/{id}/reject     — back to REVISAO with a reason
POST  /ordens/{id}/schedule   — set publish date/time
POST  /ordens/{id}/posted     — mark as POSTADO
POST  /ordens/sla/recalc      — recompute SLA for the org's open work orders
GET   /ordens/{id}/logs       — audit trail of one work order
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from contentflow.auth import Actor, get_current_actor
from contentflow.database import get_db
from contentflow.dao.log_dao import get_logs
from contentflow.models.work_order import WorkOrder, WorkOrderStatus
from contentflow.routes.audit_routes import serialize_log
from contentflow.services.work_order_lifecycle import (
    list_visible_work_orders, get_visible_work_order, create_work_order, update_work_order,
    approve_work_order, reject_work_order, schedule_work_order, mark_posted, recalculate_sla,
    responsibilities_of,
)
from contentflow.states.state import WorkOrderCreate, WorkOrderPatch

router = APIRouter(prefix="/ordens", tags=["Work Orders"])


class ApproveRequest(BaseModel):
    data_publicacao: Optional[str] = None
    horario: Optional[str] = None


class ScheduleRequest(BaseModel):
    data_publicacao: str
    horario: Optional[str] = None


class RejectRequest(BaseModel):
    motivo: Optional[str] = None


def serialize_work_order(wo: WorkOrder) -> dict:
    return {
        "id"                     : wo.id,
        "title"                  : wo.title,
        "description"            : wo.description,
        "brand"                  : wo.brand,
        "objective"              : wo.objective.value,
        "type"                   : wo.content_type.value,
        "status"                 : wo.status.value,
        "priority"               : wo.priority.value,
        "channels"               : wo.channels or [],
        "hook"                   : wo.hook,
        "cta"                    : wo.cta,
        "script"                 : wo.script,
        "caption"                : wo.caption,
        "raw_media_links"        : wo.raw_media_links or [],
        "deadline"               : wo.deadline,
        "scheduled_publish_at"   : wo.scheduled_publish_at.isoformat() if wo.scheduled_publish_at else None,
        "sla_due_at"             : wo.sla_due_at.isoformat() if wo.sla_due_at else None,
        "current_responsible_id" : wo.current_responsible_id,
        "responsibilities"       : responsibilities_of(wo).model_dump(exclude_none=True),
        "internal_approved"      : wo.internal_approved,
        "brand_owner_approved"   : wo.brand_owner_approved,
        "created_by"             : wo.created_by,
        "created_at"             : str(wo.created_at),
        "updated_at"             : str(wo.updated_at),
    }


@router.get("")
def list_work_orders(
    status: Optional[WorkOrderStatus] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return [serialize_work_order(wo) for wo in list_visible_work_orders(db, actor, status)]


@router.post("", status_code=201)
def create_work_order_endpoint(
    req: WorkOrderCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_work_order(create_work_order(db, actor, req))


@router.post("/sla/recalc")
def recalc_sla_endpoint(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return {"updated": recalculate_sla(db, actor)}


@router.get("/{wo_id}")
def get_work_order_endpoint(
    wo_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_work_order(get_visible_work_order(db, wo_id, actor))


@router.patch("/{wo_id}")
def update_work_order_endpoint(
    wo_id: str,
    req: WorkOrderPatch,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_work_order(update_work_order(db, wo_id, actor, req))


@router.post("/{wo_id}/approve")
def approve_work_order_endpoint(
    wo_id: str,
    req: ApproveRequest | None = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    req = req or ApproveRequest()
    wo = approve_work_order(db, wo_id, actor, req.data_publicacao, req.horario)
    return serialize_work_order(wo)


@router.post("/{wo_id}/reject")
def reject_work_order_endpoint(
    wo_id: str,
    req: RejectRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_work_order(reject_work_order(db, wo_id, actor, req.motivo))


@router.post("/{wo_id}/schedule")
def schedule_work_order_endpoint(
    wo_id: str,
    req: ScheduleRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_work_order(schedule_work_order(db, wo_id, actor, req.data_publicacao, req.horario))


@router.post("/{wo_id}/posted")
def mark_posted_endpoint(
    wo_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_work_order(mark_posted(db, wo_id, actor))


@router.get("/{wo_id}/logs")
def work_order_logs(
    wo_id: str,
    limit: int = Query(100, le=500),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    wo = get_visible_work_order(db, wo_id, actor)
    return [serialize_log(l) for l in get_logs(db, actor.org_id, work_order_id=wo.id, limit=limit)]
