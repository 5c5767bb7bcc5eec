# contentflow/models/import_session.py
import enum
import uuid
from sqlalchemy import Column, String, Integer, DateTime, Enum, JSON
from contentflow.database import Base, utcnow


class ImportSourceType(str, enum.Enum):
    FILE_UPLOAD = "FILE_UPLOAD"
    TEXT_PASTE  = "TEXT_PASTE"
    API_IMPORT  = "API_IMPORT"


class ImportSession(Base):
    """One row per commit run. Updated once with the final counts, never deleted."""
    __tablename__ = "import_sessions"

    id                 = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    org_id             = Column(String(36), nullable=False, index=True)
    user_id            = Column(String(36), nullable=True)
    source_type        = Column(Enum(ImportSourceType), nullable=False, default=ImportSourceType.TEXT_PASTE)
    file_names         = Column(JSON, nullable=True)             # list of uploaded file names
    text_size_bytes    = Column(Integer, nullable=True)
    provider           = Column(String(32), nullable=True)       # HEURISTIC | GEMINI
    items_detected     = Column(Integer, nullable=False, default=0)
    items_created      = Column(Integer, nullable=False, default=0)
    items_skipped      = Column(Integer, nullable=False, default=0)
    error_details      = Column(JSON, nullable=True)             # [{item, error}]
    processing_time_ms = Column(Integer, nullable=True)
    created_at         = Column(DateTime, default=utcnow)


class ImportProvider(str, enum.Enum):
    HEURISTIC = "HEURISTIC"
    GEMINI    = "GEMINI"
