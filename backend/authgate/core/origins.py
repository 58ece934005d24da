"""
Origin gatekeeping for cross-site, credentialed requests.

An origin is allowed when its host equals an allow-list entry or is a
subdomain of one. Matching is done on parsed hostnames, never on raw
substrings, so ``https://app.example.com.attacker.com`` does not pass for
``example.com``.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlsplit

from starlette.datastructures import Headers
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]
PREFLIGHT_MAX_AGE = 600
DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class AllowedOrigin:
    host: str
    scheme: Optional[str] = None
    port: Optional[int] = None

    @classmethod
    def parse(cls, entry: str) -> Optional["AllowedOrigin"]:
        entry = entry.strip().rstrip("/").lower()
        if not entry:
            return None
        if "://" not in entry:
            # Bare host ("example.com" or "example.com:8080")
            parts = urlsplit(f"//{entry}")
            if not parts.hostname:
                return None
            return cls(host=parts.hostname, port=parts.port)
        parts = urlsplit(entry)
        if not parts.hostname:
            return None
        return cls(host=parts.hostname, scheme=parts.scheme, port=parts.port)

    def matches(self, scheme: str, host: str, port: Optional[int]) -> bool:
        if self.scheme is not None:
            # A full origin pins its port, implicitly the scheme default
            if self.scheme != scheme:
                return False
            expected = self.port or DEFAULT_PORTS.get(self.scheme)
            if (port or DEFAULT_PORTS.get(scheme)) != expected:
                return False
        elif self.port is not None and self.port != port:
            return False
        return host == self.host or host.endswith("." + self.host)


class OriginGatekeeper:
    def __init__(self, allowed: Iterable[str]):
        self.entries = [e for e in (AllowedOrigin.parse(a) for a in allowed) if e is not None]

    def allows(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        try:
            parts = urlsplit(origin.strip().lower())
            host = parts.hostname
            port = parts.port
        except ValueError:
            return False
        if not host or parts.scheme not in ("http", "https"):
            return False
        return any(entry.matches(parts.scheme, host, port) for entry in self.entries)


class OriginGateMiddleware(CORSMiddleware):
    """
    CORS handling with a hard stop for unknown origins.

    Requests that declare an ``Origin`` outside the allow-list never reach a
    route; they get a bare 403 with no CORS headers, which the browser
    surfaces as a blocked cross-origin request. Requests without an
    ``Origin`` (curl, server-to-server) pass through untouched.
    """

    def __init__(self, app: ASGIApp, allowed_origins: Iterable[str]):
        super().__init__(
            app,
            allow_origins=(),
            allow_methods=ALLOWED_METHODS,
            allow_headers=ALLOWED_HEADERS,
            allow_credentials=True,
            max_age=PREFLIGHT_MAX_AGE,
        )
        self.gatekeeper = OriginGatekeeper(allowed_origins)

    def is_allowed_origin(self, origin: str) -> bool:
        return self.gatekeeper.allows(origin)

    def preflight_headers_for(self, origin: Optional[str]) -> dict:
        if origin is None:
            return {"Allow": ", ".join(ALLOWED_METHODS)}
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
            "Access-Control-Allow-Headers": ", ".join(ALLOWED_HEADERS),
            "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE),
            "Vary": "Origin",
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        if origin is not None and not self.is_allowed_origin(origin):
            logger.warning("Blocked origin: %s", origin)
            response = PlainTextResponse("Not allowed by CORS", status_code=403)
            await response(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = Response(status_code=204, headers=self.preflight_headers_for(origin))
            await response(scope, receive, send)
            return

        await super().__call__(scope, receive, send)
