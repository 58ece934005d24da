from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

import bcrypt
from fastapi import Depends, Request
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from authgate.core.config import get_settings
from authgate.core.database import get_db
from authgate.core.errors import NotFound, Unauthorized


# bcrypt only looks at the first 72 bytes; newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ─── Session tokens ───

class TokenError(Exception):
    """Raised when a session token is missing, malformed, forged or expired."""


@dataclass(frozen=True)
class SessionClaims:
    subject: int
    expires_at: datetime


def issue_token(
    account_id: int,
    secret: str,
    lifetime: timedelta = timedelta(days=7),
    now: Optional[datetime] = None,
    algorithm: str = "HS256",
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + lifetime
    claims = {
        "sub": str(account_id),
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def verify_token(
    token: str,
    secret: str,
    now: Optional[datetime] = None,
    algorithm: str = "HS256",
) -> SessionClaims:
    """
    Check signature and expiry of a session token and return its claims.

    Expiry is compared against ``now`` (defaults to the current UTC time)
    rather than left to the JWT library, so callers can pin the clock.
    A token is accepted strictly before its ``exp`` instant.
    """
    if not token:
        raise TokenError("Token missing")
    try:
        payload = jwt.decode(
            token, secret, algorithms=[algorithm], options={"verify_exp": False}
        )
    except JWTError as e:
        raise TokenError(f"Token rejected: {e}") from e

    exp = payload.get("exp")
    sub = payload.get("sub")
    if not isinstance(exp, (int, float)) or sub is None:
        raise TokenError("Token missing required claims")
    try:
        subject = int(sub)
    except (TypeError, ValueError):
        raise TokenError("Token subject is not an account id")

    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if current >= expires_at:
        raise TokenError("Token expired")
    return SessionClaims(subject=subject, expires_at=expires_at)


# ─── Token extraction (cookie first, then Authorization: Bearer) ───

TokenExtractor = Callable[[Request], Optional[str]]


def token_from_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(get_settings(request).COOKIE_NAME) or None


def token_from_bearer(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


TOKEN_EXTRACTORS: Sequence[TokenExtractor] = (token_from_cookie, token_from_bearer)


def extract_token(request: Request, extractors: Sequence[TokenExtractor] = TOKEN_EXTRACTORS) -> Optional[str]:
    for extractor in extractors:
        token = extractor(request)
        if token:
            return token
    return None


def get_current_account(
    request: Request,
    db: Session = Depends(get_db),
):
    from authgate.repositories.account_repository import AccountRepository

    settings = get_settings(request)
    token = extract_token(request)
    if not token:
        raise Unauthorized()
    try:
        claims = verify_token(token, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    except TokenError:
        raise Unauthorized()

    account = AccountRepository.find_by_id(db, claims.subject)
    if account is None:
        raise NotFound("User not found")
    return account
