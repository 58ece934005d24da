"""
Code-based password reset.

States per account: no reset pending -> code issued -> consumed / expired.
Issuing a new code overwrites any pending one (last request wins). Every
attempt against a pending code consumes it, whatever the outcome, so a
code can be tried exactly once.

There is no mail channel: the code goes back to the caller, and the
notifier hook is where a real delivery integration plugs in.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from authgate.core.auth import hash_password
from authgate.core.errors import InvalidResetCode, NotFound
from authgate.models.account import Account
from authgate.repositories.account_repository import AccountRepository

logger = logging.getLogger(__name__)

RESET_CODE_LIFETIME = timedelta(minutes=15)


class ResetCodeNotifier(Protocol):
    def send(self, account: Account, code: str, expires_at: datetime) -> None:
        ...


class ResponseNotifier:
    """Delivers nothing; the route hands the code back in its response."""

    def send(self, account: Account, code: str, expires_at: datetime) -> None:
        logger.info("Reset code issued for account %s (expires %s)", account.id, expires_at.isoformat())


def generate_reset_code() -> str:
    return str(100000 + secrets.randbelow(900000))


def request_reset(
    db: Session,
    email: str,
    lifetime: timedelta = RESET_CODE_LIFETIME,
    now: Optional[datetime] = None,
    notifier: Optional[ResetCodeNotifier] = None,
) -> str:
    account = AccountRepository.find_by_email(db, email)
    if account is None:
        raise NotFound("User not found")

    code = generate_reset_code()
    expires_at = (now or datetime.now(timezone.utc)) + lifetime
    account.set_reset_code(code, expires_at)
    AccountRepository.save(db, account)

    (notifier or ResponseNotifier()).send(account, code, expires_at)
    return code


def perform_reset(
    db: Session,
    email: str,
    code: str,
    new_password: str,
    rounds: int = 10,
    now: Optional[datetime] = None,
) -> Account:
    account = AccountRepository.find_by_email(db, email)
    if account is None:
        raise NotFound("User not found")
    if not account.has_pending_reset:
        raise InvalidResetCode()

    valid = account.reset_code_valid(str(code).strip(), now or datetime.now(timezone.utc))
    account.clear_reset_code()
    if valid:
        account.password_hash = hash_password(new_password, rounds=rounds)
    AccountRepository.save(db, account)

    if not valid:
        logger.info("Rejected reset attempt for account %s", account.id)
        raise InvalidResetCode()
    logger.info("Password reset completed for account %s", account.id)
    return account
