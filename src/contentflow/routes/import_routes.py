"""
Idea import routes.
POST /import/parse            — free text → parsed ideas (nothing persisted)
POST /import/upload           — .txt/.md/.pdf file → parsed ideas
POST /import/commit           — parsed ideas → PENDENTE ideas
GET  /import/sessions         — recent commit runs
GET  /import/sessions/{id}    — one commit run
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session

from contentflow.auth import Actor, get_current_actor
from contentflow.config import settings
from contentflow.database import get_db
from contentflow.agents.import_agent import parse_text
from contentflow.dao.import_session_dao import get_session, list_sessions
from contentflow.models.import_session import ImportSession, ImportSourceType, ImportProvider
from contentflow.services.import_service import commit_items
from contentflow.states.state import ApiModel, ParsedIdea
from contentflow.tools.file_tools import extract_upload_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["Import"])


class ParseRequest(ApiModel):
    text: Optional[str] = None
    brand_default: Optional[str] = None


class CommitRequest(ApiModel):
    items: list[ParsedIdea] = Field(default_factory=list)
    source_type: ImportSourceType = ImportSourceType.TEXT_PASTE
    text_size: Optional[int] = Field(None, ge=0)
    file_names: Optional[list[str]] = None
    provider: ImportProvider = ImportProvider.HEURISTIC


def _serialize_session(s: ImportSession) -> dict:
    return {
        "id"                 : s.id,
        "user_id"            : s.user_id,
        "source_type"        : s.source_type.value,
        "file_names"         : s.file_names or [],
        "text_size_bytes"    : s.text_size_bytes,
        "provider"           : s.provider,
        "items_detected"     : s.items_detected,
        "items_created"      : s.items_created,
        "items_skipped"      : s.items_skipped,
        "error_details"      : s.error_details or [],
        "processing_time_ms" : s.processing_time_ms,
        "created_at"         : str(s.created_at),
    }


# ── POST /import/parse ───────────────────────────────────────────────────────

@router.post("/parse")
def parse_import_text(req: ParseRequest, actor: Actor = Depends(get_current_actor)):
    if not req.text or not req.text.strip():
        raise HTTPException(status_code=400, detail="text is required")
    result = parse_text(req.text, brand_default=req.brand_default)
    logger.info(
        "Parse by %s: %d chars → %d items (%s)",
        actor.id, result.metadata.text_length, result.metadata.items_detected, result.metadata.provider,
    )
    return result.model_dump(by_alias=True, mode="json")


# ── POST /import/upload ──────────────────────────────────────────────────────

@router.post("/upload")
async def parse_import_file(
    file: UploadFile = File(...),
    brand_default: Optional[str] = Form(None, alias="brandDefault"),
    actor: Actor = Depends(get_current_actor),
):
    """Upload a plan document and parse it like pasted text."""
    data = await file.read()
    text = extract_upload_text(file.filename or "", data, settings.max_upload_bytes)
    if not text.strip():
        raise HTTPException(status_code=400, detail=f"No text found in '{file.filename}'")
    result = parse_text(text, brand_default=brand_default)
    logger.info("Upload by %s: '%s' → %d items", actor.id, file.filename, result.metadata.items_detected)
    return result.model_dump(by_alias=True, mode="json")


# ── POST /import/commit ──────────────────────────────────────────────────────

@router.post("/commit")
def commit_import(
    req: CommitRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    result = commit_items(
        db,
        req.items,
        actor,
        source_type=req.source_type,
        text_size=req.text_size,
        file_names=req.file_names,
        provider=req.provider.value,
    )
    return result.model_dump(by_alias=True, mode="json")


# ── GET /import/sessions ─────────────────────────────────────────────────────

@router.get("/sessions")
def list_import_sessions(
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return [_serialize_session(s) for s in list_sessions(db, actor.org_id)]


@router.get("/sessions/{session_id}")
def get_import_session(
    session_id: str,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    s = get_session(db, session_id, actor.org_id)
    if not s:
        raise HTTPException(status_code=404, detail="Import session not found")
    return _serialize_session(s)
