from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        v = str(v)
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


# ─── Requests ───
# Fields are optional at the schema level; routes report missing ones with
# the service's own 400 messages.

class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    last_name: Optional[str] = Field(default=None, alias="lastName")
    mobile: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("name", "last_name", "mobile", "email", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)


class ResetPasswordRequest(BaseModel):
    """Accepts the bundled front end's ``token``/``password`` names as well."""

    email: Optional[str] = None
    code: Optional[str] = None
    token: Optional[str] = None
    new_password: Optional[str] = Field(default=None, alias="newPassword")
    password: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("email", "code", "token", mode="before")
    @classmethod
    def strip_blank(cls, v):
        return _blank_to_none(v)

    @property
    def reset_code(self) -> Optional[str]:
        return self.code or self.token

    @property
    def chosen_password(self) -> Optional[str]:
        return self.new_password or self.password


# ─── Responses ───

class AccountResponse(BaseModel):
    id: int
    name: str
    lastName: str = ""
    email: str
    mobile: str = ""

    @classmethod
    def from_account(cls, account) -> "AccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            lastName=account.last_name or "",
            email=account.email,
            mobile=account.mobile or "",
        )


class SessionResponse(AccountResponse):
    # Raw token for clients that cannot rely on the cookie (Authorization: Bearer)
    token: str


class MessageResponse(BaseModel):
    message: str


class ResetCodeResponse(BaseModel):
    message: str
    code: str
    token: str
