from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import validates

from authgate.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    last_name = Column(String(100), default="")
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    mobile = Column(String(10), default="")

    # One-time reset code; both columns are set or cleared together
    reset_code = Column(String(6), nullable=True, default=None)
    reset_code_expires_at = Column(DateTime(timezone=True), nullable=True, default=None)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if value is not None else value

    @validates("name", "last_name", "mobile")
    def _strip(self, key, value):
        return value.strip() if isinstance(value, str) else value

    @property
    def has_pending_reset(self) -> bool:
        return bool(self.reset_code) and self.reset_code_expires_at is not None

    def set_reset_code(self, code: str, expires_at: datetime) -> None:
        self.reset_code = code
        self.reset_code_expires_at = expires_at

    def clear_reset_code(self) -> None:
        self.reset_code = None
        self.reset_code_expires_at = None

    def reset_code_valid(self, code: str, now: datetime) -> bool:
        if not self.has_pending_reset:
            return False
        return self.reset_code == code and now < as_utc(self.reset_code_expires_at)
