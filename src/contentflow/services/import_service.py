"""
Commit of parsed ideas into PENDENTE Idea rows.
Sequential, per-item transactions: one failure never aborts the batch.
"""
import time
import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from contentflow.auth import Actor
from contentflow.dao.idea_dao import find_duplicate, insert_idea
from contentflow.dao.import_session_dao import create_session
from contentflow.models.idea import Idea, IdeaStatus
from contentflow.models.import_session import ImportSession, ImportSourceType, ImportProvider
from contentflow.models.log_event import LogAction
from contentflow.services.audit_service import log_event
from contentflow.states.state import ParsedIdea, CommitResult, CommitError

logger = logging.getLogger(__name__)


def _idea_from_parsed(item: ParsedIdea, actor: Actor, session_id: str) -> Idea:
    return Idea(
        title=item.title,
        description=item.description,
        brand=item.brand,
        objective=item.objective,
        content_type=item.content_type,
        priority=item.priority,
        channels=list(item.channels),
        hook=item.hook,
        cta=item.cta,
        script=item.script,
        caption=item.caption,
        deadline=item.deadline,
        publish_date=item.publish_date,
        raw_media_links=list(item.raw_media_links),
        status=IdeaStatus.PENDENTE,
        import_session_id=session_id,
        org_id=actor.org_id,
        created_by=actor.id,
    )


def commit_items(
    db: Session,
    items: list[ParsedIdea],
    actor: Actor,
    source_type: ImportSourceType = ImportSourceType.TEXT_PASTE,
    text_size: int | None = None,
    file_names: list[str] | None = None,
    provider: str = ImportProvider.HEURISTIC.value,
) -> CommitResult:
    started = time.perf_counter()
    session = create_session(db, ImportSession(
        org_id=actor.org_id,
        user_id=actor.id,
        source_type=source_type,
        file_names=file_names,
        text_size_bytes=text_size,
        provider=provider,
        items_detected=len(items),
    ))

    result = CommitResult()
    for item in items:
        try:
            if find_duplicate(db, actor.org_id, item.brand, item.title):
                result.skipped += 1
                logger.debug("Commit: skipping duplicate '%s' (%s)", item.title, item.brand)
                continue

            idea = insert_idea(db, _idea_from_parsed(item, actor, session.id))
            log_event(
                db, LogAction.CREATE, actor.id,
                idea_id=idea.id, org_id=actor.org_id,
                detail={"title": idea.title, "brand": idea.brand, "import_session_id": session.id},
            )
            db.commit()
            result.created += 1

        except IntegrityError:
            # a concurrent commit inserted the same title+brand first
            db.rollback()
            result.skipped += 1
            logger.info("Commit: '%s' (%s) lost an insert race, counted as skipped", item.title, item.brand)
        except SQLAlchemyError as e:
            db.rollback()
            result.errors.append(CommitError(item=item.title, error=str(e)))
            logger.error("Commit: failed to persist '%s': %s", item.title, e)

    session.items_created = result.created
    session.items_skipped = result.skipped
    session.error_details = [e.model_dump() for e in result.errors] or None
    session.processing_time_ms = int((time.perf_counter() - started) * 1000)
    db.commit()

    logger.info(
        "Import session %s: created=%d skipped=%d errors=%d",
        session.id, result.created, result.skipped, len(result.errors),
    )
    return result
