from contextlib import contextmanager
from datetime import datetime, timezone
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from contentflow.config import settings
from contentflow.errors import WorkflowError, PersistenceError


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across request threads
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_POSTGRES_IMMUTABILITY = [
    """
    CREATE OR REPLACE FUNCTION logs_evento_immutable() RETURNS trigger AS $$
    BEGIN
        RAISE EXCEPTION 'logs_evento is immutable: % not allowed', TG_OP;
    END;
    $$ LANGUAGE plpgsql
    """,
    "DROP TRIGGER IF EXISTS prevent_log_mutation ON logs_evento",
    """
    CREATE TRIGGER prevent_log_mutation
    BEFORE UPDATE OR DELETE ON logs_evento
    FOR EACH ROW EXECUTE FUNCTION logs_evento_immutable()
    """,
]

_SQLITE_IMMUTABILITY = [
    """
    CREATE TRIGGER IF NOT EXISTS prevent_log_update
    BEFORE UPDATE ON logs_evento
    BEGIN
        SELECT RAISE(ABORT, 'logs_evento is immutable: UPDATE not allowed');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS prevent_log_delete
    BEFORE DELETE ON logs_evento
    BEGIN
        SELECT RAISE(ABORT, 'logs_evento is immutable: DELETE not allowed');
    END
    """,
]


def install_log_immutability(target, connection, **_):
    """
    Install DB-level triggers on logs_evento — immutability enforced at DB level.
    Runs as an after_create hook on the table, so it fires once per create_all.
    """
    dialect = connection.dialect.name
    if dialect == "postgresql":
        statements = _POSTGRES_IMMUTABILITY
    elif dialect == "sqlite":
        statements = _SQLITE_IMMUTABILITY
    else:
        return
    for stmt in statements:
        connection.exec_driver_sql(stmt)


def utcnow() -> datetime:
    """Naive UTC timestamp — every DateTime column in this schema stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@contextmanager
def transaction(db):
    """
    One lifecycle operation = one commit.
    Domain errors roll back and propagate; driver errors surface as PersistenceError.
    """
    try:
        yield db
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Database error: {e.__class__.__name__}") from e
