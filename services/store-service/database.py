"""Database connection and session management."""
import logging
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import Settings
from models import Base
from services.account_service import AccountService

logger = logging.getLogger(__name__)


def create_db_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        Engine with pool settings suited to the backend
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_timeout=30,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting database session.

    Yields:
        Database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine, session_factory: sessionmaker, settings: Settings) -> None:
    """Create tables and seed the bootstrap admin account."""
    Base.metadata.create_all(bind=engine)

    if not settings.root_user or not settings.root_pass:
        logger.warning("STORE_ROOT_USER/STORE_ROOT_PASS not set, skipping bootstrap admin")
        return

    db = session_factory()
    try:
        AccountService().ensure_root_admin(db, settings.root_user, settings.root_pass)
    finally:
        db.close()
