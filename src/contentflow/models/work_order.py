import enum
import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, Enum, JSON, ForeignKey
from contentflow.database import Base, utcnow
from contentflow.models.taxonomy import Objective, ContentType, Priority


class WorkOrderStatus(str, enum.Enum):
    """Flat stage enumeration — any status may be written by an authorized update."""
    ROTEIRO = "ROTEIRO"
    AUDIO = "AUDIO"
    CAPTACAO = "CAPTACAO"
    EDICAO = "EDICAO"
    REVISAO = "REVISAO"
    APROVACAO = "APROVACAO"
    APROVADO = "APROVADO"
    REPROVADO = "REPROVADO"
    AGENDAMENTO = "AGENDAMENTO"
    POSTADO = "POSTADO"
    PUBLICADO = "PUBLICADO"
    RASCUNHO = "RASCUNHO"


class WorkOrder(Base):
    __tablename__ = "ordens_de_servico"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(512), nullable=False)
    description = Column(Text, nullable=True)
    brand = Column(String(64), nullable=False)
    objective = Column(Enum(Objective), nullable=False)
    content_type = Column(Enum(ContentType), nullable=False)
    status = Column(Enum(WorkOrderStatus), nullable=False, default=WorkOrderStatus.ROTEIRO)
    priority = Column(Enum(Priority), nullable=False, default=Priority.MEDIUM)

    channels = Column(JSON, nullable=False, default=list)
    hook = Column(Text, nullable=True)
    cta = Column(Text, nullable=True)
    script = Column(Text, nullable=True)
    caption = Column(Text, nullable=True)
    raw_media_links = Column(JSON, nullable=False, default=list)
    deadline = Column(String(64), nullable=True)                    # prazo

    scheduled_publish_at = Column(DateTime, nullable=True)
    sla_due_at = Column(DateTime, nullable=True)                    # sla_atual
    current_responsible_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    responsibilities = Column(JSON, nullable=False, default=dict)  # {role: user_id}
    internal_approved = Column(Boolean, nullable=False, default=False)
    brand_owner_approved = Column(Boolean, nullable=False, default=False)  # aprovado_crispim

    org_id = Column(String(36), nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
