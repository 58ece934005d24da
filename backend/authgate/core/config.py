from datetime import timedelta

from fastapi import Request
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "AuthGate"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    PORT: int = 5000

    # Required — the process refuses to start without them
    DATABASE_URL: str
    JWT_SECRET: str

    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_DAYS: int = 7
    COOKIE_NAME: str = "token"

    # Comma-separated list of front-end origins allowed to make credentialed calls
    FRONTEND_ORIGINS: str = "http://localhost:5173"

    # "production" forces Secure + SameSite=None cookies
    ENVIRONMENT: str = "development"

    RESET_CODE_EXPIRE_MINUTES: int = 15
    BCRYPT_ROUNDS: int = 10

    class Config:
        env_file = ".env"

    @field_validator("JWT_SECRET")
    @classmethod
    def secret_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.FRONTEND_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(days=self.TOKEN_EXPIRE_DAYS)

    @property
    def reset_code_lifetime(self) -> timedelta:
        return timedelta(minutes=self.RESET_CODE_EXPIRE_MINUTES)


settings = Settings()


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with, falling back to the module instance."""
    app = request.scope.get("app")
    return getattr(getattr(app, "state", None), "settings", None) or settings
