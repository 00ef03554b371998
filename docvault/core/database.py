"""
Database engine and session factory
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from docvault.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_db_engine(database_url: str, **kwargs):
    """
    Create a SQLAlchemy engine.

    SQLite needs check_same_thread disabled because FastAPI runs sync
    code in a threadpool.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    return create_engine(database_url, pool_pre_ping=True, **kwargs)


def create_session_factory(bind) -> sessionmaker:
    """Session factory used by SQLStorage; objects stay readable after commit."""
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, expire_on_commit=False)


engine = create_db_engine(settings.DATABASE_URL)
SessionLocal = create_session_factory(engine)


def init_db(bind=None) -> None:
    """Create tables from ORM metadata (use migrations in production)."""
    # Import models so they register with Base.metadata
    from docvault import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created/checked")
