"""
Database engine and session management.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from habit_ledger.constants import DATABASE_URL
from habit_ledger.exceptions import StoreInitializationException

logger = logging.getLogger("habit_ledger.database")

Base = declarative_base()


def create_session_factory(url: str = DATABASE_URL):
    """
    Build an engine and a bound session factory.

    "sqlite://" gives an in-memory store shared by every session of the
    factory, with no durable writes.
    """
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
    else:
        engine = create_engine(url)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine, SessionLocal = create_session_factory()


def init_db(bind=None) -> None:
    """
    Create all tables.

    Raises:
        StoreInitializationException: If the schema cannot be created
    """
    # Import models so they register with Base
    from habit_ledger import models  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind or engine)
    except SQLAlchemyError as e:
        logger.critical(f"Store initialization failed: {e}")
        raise StoreInitializationException(str(e)) from e


def get_db():
    """FastAPI dependency yielding a session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
