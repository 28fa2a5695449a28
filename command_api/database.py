from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool

from command_api.config import get_settings

Base = declarative_base()

engine: Engine
SessionLocal: sessionmaker


def configure(url: str) -> Engine:
    """Bind the module-level engine and session factory to a database URL.

    Route handlers and tools use their session directly on the event loop
    thread, which need not be the thread that opened a pooled SQLite
    connection, so the driver's same-thread check is disabled. An in-memory
    SQLite database additionally needs a single static connection, otherwise
    every new connection would see an empty database.
    """
    global engine, SessionLocal

    parsed = make_url(url)
    kwargs = {}
    if parsed.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool

    engine = create_engine(url, **kwargs)
    # Important: prevent attribute expiration on commit so ORM instances remain
    # usable after the session is closed (responses are serialized from them,
    # and a deleted row is echoed back after its commit).
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    return engine


def init_db():
    """Initialize database tables."""
    from command_api import models  # noqa: F401  registers the mappers
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope():
    """Provide a transactional scope around a series of operations.

    Ensures commit on success and rollback on exception, and always closes
    the session. Usage:

        with session_scope() as db:
            db.add(obj)
    """
    db: Session = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


configure(get_settings().database_url)
