"""Apps built from explicit settings, including the production cookie policy."""
from fastapi.testclient import TestClient
from starlette.requests import Request

from authgate.core.auth import verify_token
from authgate.core.config import Settings
from authgate.core.cookies import cookie_policy
from main import create_app


def _plain_http_request(headers=None):
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "path": "/",
        "query_string": b"",
        "headers": raw,
        "server": ("testserver", 80),
    })


def _production_settings(**overrides):
    values = dict(ENVIRONMENT="production", JWT_SECRET="prod-secret", COOKIE_NAME="sid")
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_cookie_policy_over_plain_http():
    development = Settings(_env_file=None, ENVIRONMENT="development")
    assert cookie_policy(_plain_http_request(), development).secure is False
    assert cookie_policy(_plain_http_request(), development).samesite == "lax"

    production = cookie_policy(_plain_http_request(), _production_settings())
    assert production.secure is True
    assert production.samesite == "none"


def test_forwarded_proto_uses_first_hop():
    development = Settings(_env_file=None, ENVIRONMENT="development")
    request = _plain_http_request({"X-Forwarded-Proto": "https, http"})
    assert cookie_policy(request, development).secure is True


def test_production_app_sets_and_clears_secure_cookie():
    config = _production_settings()
    client = TestClient(create_app(config))

    resp = client.post("/api/auth/signup", json={"name": "A", "email": "a@x.com", "password": "secret1"})
    assert resp.status_code == 201
    issued = resp.headers["set-cookie"]
    assert issued.startswith("sid=")
    attrs = {p.strip().lower() for p in issued.split(";")[1:]}
    assert {"secure", "samesite=none", "httponly", "path=/"} <= attrs

    cleared = client.post("/api/auth/logout").headers["set-cookie"]
    assert cleared.startswith("sid=")
    attrs = {p.strip().lower() for p in cleared.split(";")[1:]}
    assert {"secure", "samesite=none", "httponly", "path=/", "max-age=0"} <= attrs


def test_app_signs_with_its_own_secret(client):
    config = _production_settings()
    prod_client = TestClient(create_app(config))

    token = prod_client.post(
        "/api/auth/signup", json={"name": "A", "email": "a@x.com", "password": "secret1"}
    ).json()["token"]
    assert verify_token(token, "prod-secret").subject > 0

    headers = {"Authorization": f"Bearer {token}"}
    assert prod_client.get("/api/auth/me", headers=headers).status_code == 200
    # The default app holds a different secret
    assert client.get("/api/auth/me", headers=headers).status_code == 401


def test_app_uses_its_own_allow_list():
    client = TestClient(create_app(_production_settings(FRONTEND_ORIGINS="https://only.example.net")))
    assert client.get("/", headers={"Origin": "https://only.example.net"}).status_code == 200
    assert client.get("/", headers={"Origin": "https://app.example.com"}).status_code == 403


def test_health_reports_app_settings():
    client = TestClient(create_app(_production_settings(APP_NAME="Gate", APP_VERSION="9.9.9")))
    body = client.get("/api/health").json()
    assert body["app"] == "Gate"
    assert body["version"] == "9.9.9"
