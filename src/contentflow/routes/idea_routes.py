"""
Idea review routes.
GET  /ideias               — org ideas, filterable by status
GET  /ideias/{id}          — idea detail
PUT  /ideias/{id}          — edit a PENDENTE idea
POST /ideias/{id}/approve  — approve → new work order in ROTEIRO
POST /ideias/{id}/reject   — reject with a reason
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from contentflow.auth import Actor, get_current_actor
from contentflow.database import get_db
from contentflow.models.idea import Idea, IdeaStatus
from contentflow.routes.work_order_routes import serialize_work_order
from contentflow.services.idea_lifecycle import list_ideas, get_idea, edit_idea, approve_idea, reject_idea
from contentflow.states.state import IdeaPatch

router = APIRouter(prefix="/ideias", tags=["Ideas"])


class RejectRequest(BaseModel):
    motivo: Optional[str] = None


def serialize_idea(i: Idea) -> dict:
    return {
        "id"                    : i.id,
        "title"                 : i.title,
        "description"           : i.description,
        "brand"                 : i.brand,
        "objective"             : i.objective.value,
        "type"                  : i.content_type.value,
        "priority"              : i.priority.value,
        "channels"              : i.channels or [],
        "hook"                  : i.hook,
        "cta"                   : i.cta,
        "script"                : i.script,
        "caption"               : i.caption,
        "deadline"              : i.deadline,
        "publish_date"          : i.publish_date,
        "raw_media_links"       : i.raw_media_links or [],
        "status"                : i.status.value,
        "approved_by"           : i.approved_by,
        "rejected_by"           : i.rejected_by,
        "rejection_reason"      : i.rejection_reason,
        "created_work_order_id" : i.created_work_order_id,
        "import_session_id"     : i.import_session_id,
        "created_by"            : i.created_by,
        "created_at"            : str(i.created_at),
        "updated_at"            : str(i.updated_at),
    }


@router.get("")
def list_ideas_endpoint(
    status: Optional[IdeaStatus] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return [serialize_idea(i) for i in list_ideas(db, actor, status)]


@router.get("/{idea_id}")
def get_idea_endpoint(
    idea_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_idea(get_idea(db, idea_id, actor))


@router.put("/{idea_id}")
def edit_idea_endpoint(
    idea_id: str,
    req: IdeaPatch,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_idea(edit_idea(db, idea_id, actor, req))


@router.post("/{idea_id}/approve")
def approve_idea_endpoint(
    idea_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    idea, wo = approve_idea(db, idea_id, actor)
    return {
        "success"   : True,
        "ideia"     : serialize_idea(idea),
        "os_criada" : serialize_work_order(wo),
    }


@router.post("/{idea_id}/reject")
def reject_idea_endpoint(
    idea_id: str,
    req: RejectRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return serialize_idea(reject_idea(db, idea_id, actor, req.motivo))
