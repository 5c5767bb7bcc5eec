import enum
import uuid
from sqlalchemy import (
    Column, String, Text, DateTime, Enum, JSON, ForeignKey, UniqueConstraint
)
from contentflow.database import Base, utcnow
from contentflow.models.taxonomy import Objective, ContentType, Priority


class IdeaStatus(str, enum.Enum):
    PENDENTE = "PENDENTE"
    APROVADA = "APROVADA"
    REJEITADA = "REJEITADA"


class Idea(Base):
    """
    Imported content proposal awaiting review.
    Created PENDENTE by the import commit, moved exactly once to APROVADA or REJEITADA.
    """
    __tablename__ = "ideias"
    __table_args__ = (
        # Backs the title+brand+org de-duplication done in the commit loop
        UniqueConstraint("org_id", "brand", "title", name="uq_ideias_org_brand_title"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=False)
    brand = Column(String(64), nullable=False)
    objective = Column(Enum(Objective), nullable=False)
    content_type = Column(Enum(ContentType), nullable=False)
    priority = Column(Enum(Priority), nullable=False, default=Priority.MEDIUM)
    channels = Column(JSON, nullable=False, default=list)
    hook = Column(Text, nullable=True)
    cta = Column(Text, nullable=True)
    script = Column(Text, nullable=True)
    caption = Column(Text, nullable=True)
    deadline = Column(String(64), nullable=True)                 # free-form, as typed in the source text
    publish_date = Column(String(64), nullable=True)             # "YYYY-MM-DD HH:MM:SS" when well formed
    raw_media_links = Column(JSON, nullable=False, default=list)

    status = Column(Enum(IdeaStatus), nullable=False, default=IdeaStatus.PENDENTE)
    approved_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    rejected_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_work_order_id = Column(String(36), ForeignKey("ordens_de_servico.id"), nullable=True)
    import_session_id = Column(String(36), ForeignKey("import_sessions.id"), nullable=True)

    org_id = Column(String(36), nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
