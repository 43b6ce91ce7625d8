from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings

DATABASE_URL = settings.database_url

# SQLite connections are shared across FastAPI's threadpool
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC, the form stored in plain DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    """One session per request; services own commit and rollback."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    import app.models  # noqa: F401  table registration
    Base.metadata.create_all(bind=engine)
