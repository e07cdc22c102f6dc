from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing import Optional
import os
import logging
from dotenv import load_dotenv
load_dotenv()

logger = logging.getLogger(__name__)

# Storage backend selection: "memory" keeps records in process, "sql" uses DATABASE_URL
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory").strip().lower()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./nomad_planner.db")

# There is no login yet; every request acts for this user
DEMO_USER_ID = int(os.getenv("DEMO_USER_ID", "1"))

Base = declarative_base()


def build_engine(url: str = DATABASE_URL):
    """Create an engine for the given URL (SQLite gets thread-safe settings)."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_size=12,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1000
    )


def build_session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


_storage_instance = None


def build_storage(backend: Optional[str] = None, url: Optional[str] = None):
    """
    Build a record store for the requested backend.

    Args:
        backend: "memory" or "sql" (defaults to STORAGE_BACKEND)
        url: Database URL for the sql backend (defaults to DATABASE_URL)

    Returns:
        A Storage implementation
    """
    # Imported here because models.py needs Base from this module
    import models
    from storage import MemStorage, SqlStorage

    backend = (backend or STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.info("Using in-memory storage")
        return MemStorage()
    if backend == "sql":
        engine = build_engine(url or DATABASE_URL)
        models.Base.metadata.create_all(bind=engine)
        logger.info(f"Using SQL storage: {engine.url.render_as_string(hide_password=True)}")
        return SqlStorage(build_session_factory(engine))

    raise ValueError(f"Unknown STORAGE_BACKEND '{backend}' (expected 'memory' or 'sql')")


def get_storage():
    """Dependency returning the shared record store."""
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = build_storage()
    return _storage_instance
