from sqlalchemy.orm import Session
from sqlalchemy import desc
from contentflow.models.import_session import ImportSession


def create_session(db: Session, session: ImportSession) -> ImportSession:
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


def get_session(db: Session, session_id: str, org_id: str) -> ImportSession | None:
    return db.query(ImportSession).filter_by(id = session_id, org_id = org_id).first()


def list_sessions(db: Session, org_id: str, limit: int = 50) -> list[ImportSession]:
    return (
        db.query(ImportSession)
        .filter_by(org_id = org_id)
        .order_by(desc(ImportSession.created_at))
        .limit(limit)
        .all()
    )
