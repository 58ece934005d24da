from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from authgate.core.config import settings


def _connect_args(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    # Requests run on the threadpool; concurrent writers wait for the file lock
    return {"check_same_thread": False, "timeout": 15}


engine = create_engine(
    settings.DATABASE_URL,
    connect_args=_connect_args(settings.DATABASE_URL),
    echo=False,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base for the account tables."""


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
