from sqlalchemy.orm import Session
from sqlalchemy import desc
from contentflow.models.idea import Idea, IdeaStatus
import logging

logger = logging.getLogger(__name__)


def find_duplicate(db: Session, org_id: str, brand: str, title: str) -> Idea | None:
    """Same title + brand inside the org, whatever its status."""
    return db.query(Idea).filter_by(org_id = org_id, brand = brand, title = title).first()


def insert_idea(db: Session, idea: Idea) -> Idea:
    db.add(idea)
    db.flush()
    return idea


def get_idea(db: Session, idea_id: str, org_id: str) -> Idea | None:
    """None when missing or owned by another org."""
    return db.query(Idea).filter_by(id = idea_id, org_id = org_id).first()


def list_ideas(
    db: Session, org_id: str, status: IdeaStatus | None = None, limit: int = 200
) -> list[Idea]:
    q = db.query(Idea).filter_by(org_id = org_id)
    if status:
        q = q.filter_by(status = status)
    return q.order_by(desc(Idea.created_at)).limit(limit).all()
