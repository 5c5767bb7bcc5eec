import uuid
from sqlalchemy import Column, String, Boolean, DateTime
from contentflow.database import Base, utcnow


class User(Base):
    """
    Minimal user record — only what the workflow core consumes:
    org membership, approver flag, org-wide visibility flag, bearer token.
    """
    __tablename__ = "users"

    id            = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    org_id        = Column(String(36), nullable=False, index=True)
    name          = Column(String(256), nullable=False)
    email         = Column(String(256), unique=True, nullable=False)
    role          = Column(String(32), nullable=False)          # COPY | AUDIO | VIDEO | EDITOR | REVISOR | CRISPIM | SOCIAL
    can_approve   = Column(Boolean, nullable=False, default=False)   # pode_aprovar
    can_view_all  = Column(Boolean, nullable=False, default=False)   # pode_ver_todas_os
    api_token     = Column(String(128), unique=True, nullable=True)
    created_at    = Column(DateTime, default=utcnow)
