"""
Session cookie transport.

The front end and the API live on different sites, so in production the
cookie has to be ``Secure; SameSite=None`` to travel on cross-site XHR.
Browsers only drop a cookie when the deletion carries the same attributes
it was set with, so issuing and clearing both go through ``cookie_policy``.
"""

from dataclasses import dataclass

from fastapi import Request, Response

from authgate.core.config import Settings, settings as default_settings


@dataclass(frozen=True)
class CookiePolicy:
    secure: bool
    samesite: str


def is_secure_request(request: Request, settings: Settings = default_settings) -> bool:
    # Behind a TLS-terminating proxy the scheme arrives in X-Forwarded-Proto
    forwarded = request.headers.get("x-forwarded-proto", "").split(",")[0].strip().lower()
    return (
        request.url.scheme == "https"
        or forwarded == "https"
        or settings.is_production
    )


def cookie_policy(request: Request, settings: Settings = default_settings) -> CookiePolicy:
    if is_secure_request(request, settings):
        return CookiePolicy(secure=True, samesite="none")
    return CookiePolicy(secure=False, samesite="lax")


def set_session_cookie(
    response: Response,
    request: Request,
    token: str,
    settings: Settings = default_settings,
) -> None:
    policy = cookie_policy(request, settings)
    response.set_cookie(
        key=settings.COOKIE_NAME,
        value=token,
        max_age=int(settings.token_lifetime.total_seconds()),
        path="/",
        httponly=True,
        secure=policy.secure,
        samesite=policy.samesite,
    )


def clear_session_cookie(
    response: Response,
    request: Request,
    settings: Settings = default_settings,
) -> None:
    policy = cookie_policy(request, settings)
    response.delete_cookie(
        key=settings.COOKIE_NAME,
        path="/",
        httponly=True,
        secure=policy.secure,
        samesite=policy.samesite,
    )
