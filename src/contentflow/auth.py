"""
Bearer-token actor resolution.
Token management is out of scope: users.api_token is provisioned externally.
"""
import logging
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session
from contentflow.database import get_db
from contentflow.models.user import User

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


class Actor(BaseModel):
    """The acting user as the workflow core sees it."""
    id: str
    org_id: str
    name: str = ""
    role: str = ""
    can_approve: bool = False
    can_view_all: bool = False

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(
            id=user.id,
            org_id=user.org_id,
            name=user.name,
            role=user.role,
            can_approve=bool(user.can_approve),
            can_view_all=bool(user.can_view_all),
        )


def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    user = db.query(User).filter_by(api_token=credentials.credentials).first()
    if not user:
        logger.warning("Rejected unknown bearer token")
        raise HTTPException(status_code=401, detail="Invalid token")
    return Actor.from_user(user)
