import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Enum, ForeignKey, event
from contentflow.database import Base, utcnow, install_log_immutability


class LogAction(str, enum.Enum):
    CREATE = "CREATE"
    STATUS_CHANGE = "STATUS_CHANGE"
    ATTACH_ASSET = "ATTACH_ASSET"
    REJECT = "REJECT"
    APPROVE = "APPROVE"
    SCHEDULE = "SCHEDULE"
    POST = "POST"
    SLA_OVERDUE = "SLA_OVERDUE"
    SLA_AT_RISK = "SLA_AT_RISK"


class LogEvent(Base):
    """
    INSERT-only table. DB-level triggers installed on create
    reject any UPDATE or DELETE (see database.install_log_immutability).
    """
    __tablename__ = "logs_evento"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    work_order_id = Column(String(36), ForeignKey("ordens_de_servico.id"), nullable=True, index=True)
    idea_id = Column(String(36), ForeignKey("ideias.id"), nullable=True, index=True)
    org_id = Column(String(36), nullable=True, index=True)
    actor_id = Column(String(36), nullable=True)                 # user id, None for system jobs
    action = Column(Enum(LogAction), nullable=False)
    detail = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)


event.listen(LogEvent.__table__, "after_create", install_log_immutability)
