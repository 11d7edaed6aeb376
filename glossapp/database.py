# glossapp/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL. All models are auto-imported here
so create_tables() creates every table in one call.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import declarative_base, sessionmaker
from glossapp.config import settings
from glossapp.exceptions import ConflictError
from glossapp.utils.logger import get_logger

logger = get_logger(__name__)

_engine_kwargs = {"pool_pre_ping": True, "echo": False}   # echo=True logs all SQL (debug only)
if not settings.DATABASE_URL.startswith("sqlite"):
    _engine_kwargs.update(pool_size=10, max_overflow=20)

engine = create_engine(settings.DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db):
    """
    All-or-nothing unit of work on a session.
    Commits when the block exits cleanly, rolls back on any exception.
    Unique-constraint violations from the store surface as ConflictError.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity violation, transaction rolled back: {e.orig}")
        raise ConflictError("Uniqueness constraint violated", code="DUPLICATE") from e
    except Exception:
        db.rollback()
        raise


def create_tables(bind=None):
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from glossapp.models.type_config import CarTypeConfig, WashTypeConfig   # noqa
    from glossapp.models.pricing import PricingEntry                        # noqa
    from glossapp.models.vehicle import Vehicle                             # noqa
    from glossapp.models.washer import Washer                               # noqa
    from glossapp.models.company import Company, Discount                   # noqa
    from glossapp.models.wash_record import WashRecord                      # noqa

    Base.metadata.create_all(bind=bind or engine)
