import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authgate.core.errors import Conflict, Unexpected
from authgate.models.account import Account

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _store_failure(db: Session, action: str, exc: SQLAlchemyError) -> Unexpected:
    db.rollback()
    logger.error("Account store %s failed: %s", action, exc)
    return Unexpected(f"Account store {action} failed")


class AccountRepository:
    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[Account]:
        try:
            return db.query(Account).filter(Account.email == normalize_email(email)).first()
        except SQLAlchemyError as e:
            raise _store_failure(db, "lookup", e) from e

    @staticmethod
    def find_by_id(db: Session, account_id: int) -> Optional[Account]:
        try:
            return db.query(Account).filter(Account.id == account_id).first()
        except SQLAlchemyError as e:
            raise _store_failure(db, "lookup", e) from e

    @staticmethod
    def create(db: Session, account: Account) -> Account:
        # The unique index on email settles concurrent signups: the loser lands here
        db.add(account)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise Conflict("Email already in use")
        except SQLAlchemyError as e:
            raise _store_failure(db, "insert", e) from e
        db.refresh(account)
        return account

    @staticmethod
    def save(db: Session, account: Account) -> Account:
        db.add(account)
        try:
            db.commit()
        except SQLAlchemyError as e:
            raise _store_failure(db, "update", e) from e
        db.refresh(account)
        return account
