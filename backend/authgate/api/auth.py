import logging
import re

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from authgate.core.auth import (
    hash_password, verify_password, password_too_long, issue_token, get_current_account,
    MAX_PASSWORD_BYTES,
)
from authgate.core.config import Settings, get_settings
from authgate.core.cookies import set_session_cookie, clear_session_cookie
from authgate.core.database import get_db
from authgate.core.errors import InvalidRequest, Unauthorized
from authgate.models.account import Account
from authgate.repositories.account_repository import AccountRepository
from authgate.schemas.auth import (
    SignupRequest, LoginRequest, ForgotPasswordRequest, ResetPasswordRequest,
    AccountResponse, SessionResponse, MessageResponse, ResetCodeResponse,
)
from authgate.services import password_reset

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

# ASCII digits only
MOBILE_PATTERN = re.compile(r"^[0-9]{10}$")
PASSWORD_TOO_LONG = f"Password must be at most {MAX_PASSWORD_BYTES} bytes"


def _start_session(
    request: Request,
    response: Response,
    account: Account,
    settings: Settings,
) -> SessionResponse:
    token = issue_token(
        account.id,
        settings.JWT_SECRET,
        lifetime=settings.token_lifetime,
        algorithm=settings.JWT_ALGORITHM,
    )
    set_session_cookie(response, request, token, settings)
    return SessionResponse(**AccountResponse.from_account(account).model_dump(), token=token)


# ─── Signup ───
@router.post("/signup", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def signup(
    data: SignupRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not data.name or not data.email or not data.password:
        raise InvalidRequest("All fields are required")
    if data.mobile and not MOBILE_PATTERN.match(data.mobile):
        raise InvalidRequest("Mobile number must be exactly 10 digits")
    if password_too_long(data.password):
        raise InvalidRequest(PASSWORD_TOO_LONG)

    account = AccountRepository.create(db, Account(
        name=data.name,
        last_name=data.last_name or "",
        mobile=data.mobile or "",
        email=data.email,
        password_hash=hash_password(data.password, rounds=settings.BCRYPT_ROUNDS),
    ))
    logger.info("Account %s created", account.id)
    return _start_session(request, response, account, settings)


# ─── Login ───
@router.post("/login", response_model=SessionResponse)
def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not data.email or not data.password:
        raise InvalidRequest("Email and password required")

    account = AccountRepository.find_by_email(db, data.email)
    # Same answer for unknown email and wrong password
    if not account or not verify_password(data.password, account.password_hash):
        raise Unauthorized("Invalid credentials")
    return _start_session(request, response, account, settings)


# ─── Session check ───
@router.get("/me", response_model=AccountResponse)
def me(account: Account = Depends(get_current_account)):
    return AccountResponse.from_account(account)


# ─── Logout ───
@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
):
    clear_session_cookie(response, request, settings)
    return MessageResponse(message="Logged out")


# ─── Password reset: request a code ───
@router.post("/forgot", response_model=ResetCodeResponse)
def forgot_password(
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not data.email:
        raise InvalidRequest("Email is required")

    code = password_reset.request_reset(db, data.email, lifetime=settings.reset_code_lifetime)
    # No mail integration: the code is relayed to the caller directly
    return ResetCodeResponse(message="Reset code generated", code=code, token=code)


# ─── Password reset: redeem the code ───
@router.post("/reset", response_model=MessageResponse)
def reset_password(
    data: ResetPasswordRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not data.email or not data.reset_code or not data.chosen_password:
        raise InvalidRequest("All fields are required")
    if password_too_long(data.chosen_password):
        raise InvalidRequest(PASSWORD_TOO_LONG)

    password_reset.perform_reset(
        db,
        data.email,
        data.reset_code,
        data.chosen_password,
        rounds=settings.BCRYPT_ROUNDS,
    )
    return MessageResponse(message="Password updated successfully")
