import pytest

from authgate.core.origins import OriginGatekeeper


@pytest.mark.parametrize("allowed", [["example.com"], ["app.example.com"], ["https://app.example.com/"]])
def test_subdomain_and_exact_match(allowed):
    assert OriginGatekeeper(allowed).allows("https://app.example.com")


@pytest.mark.parametrize("origin", [
    "https://evilapp.example.com.attacker.com",
    "https://notexample.com",
    "https://example.com.evil.org",
    "null",
    "",
    None,
    "file:///etc/passwd",
])
def test_lookalike_origins_rejected(origin):
    assert not OriginGatekeeper(["example.com"]).allows(origin)


def test_scheme_and_port_pinned_when_given():
    gate = OriginGatekeeper(["http://localhost:5173"])
    assert gate.allows("http://localhost:5173")
    assert not gate.allows("http://localhost:3000")
    assert not gate.allows("https://localhost:5173")


def test_host_match_is_case_insensitive():
    assert OriginGatekeeper(["Example.COM"]).allows("https://APP.example.com")


def test_empty_allow_list_rejects_everything():
    assert not OriginGatekeeper([]).allows("https://app.example.com")


# ─── Middleware ───

def test_allowed_origin_gets_credentialed_cors(client):
    resp = client.get("/", headers={"Origin": "https://app.example.com"})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "https://app.example.com"
    assert resp.headers["access-control-allow-credentials"] == "true"
    assert "Origin" in resp.headers.get("vary", "")


def test_subdomain_of_bare_entry_allowed(client):
    resp = client.get("/", headers={"Origin": "https://www.example.org"})
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "https://www.example.org"


def test_disallowed_origin_blocked_before_handler(client, signup):
    resp = client.post(
        "/api/auth/signup",
        json={"name": "A", "email": "blocked@x.com", "password": "secret1"},
        headers={"Origin": "https://evilapp.example.com.attacker.com"},
    )
    assert resp.status_code == 403
    assert resp.text == "Not allowed by CORS"
    assert "access-control-allow-origin" not in resp.headers

    # Nothing reached the store
    assert signup(email="blocked@x.com").status_code == 201


def test_no_origin_passes_without_cors_headers(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == "API running"
    assert "access-control-allow-origin" not in resp.headers


def test_preflight_allowed(client):
    resp = client.options("/api/auth/login", headers={
        "Origin": "http://localhost:5173",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "content-type",
    })
    assert resp.status_code == 204
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert resp.headers["access-control-allow-credentials"] == "true"
    assert "POST" in resp.headers["access-control-allow-methods"]


def test_preflight_any_path(client):
    resp = client.options("/does/not/exist", headers={"Origin": "https://app.example.com"})
    assert resp.status_code == 204


def test_preflight_without_origin(client):
    assert client.options("/api/auth/me").status_code == 204


def test_preflight_disallowed(client):
    resp = client.options("/api/auth/login", headers={
        "Origin": "https://attacker.com",
        "Access-Control-Request-Method": "POST",
    })
    assert resp.status_code == 403
    assert "access-control-allow-origin" not in resp.headers


def test_wildcard_never_reflected(client):
    resp = client.get("/api/health", headers={"Origin": "https://app.example.com"})
    assert resp.headers["access-control-allow-origin"] != "*"


def test_full_origin_entry_pins_default_port():
    gate = OriginGatekeeper(["https://app.example.com"])
    assert gate.allows("https://app.example.com")
    assert gate.allows("https://app.example.com:443")
    assert not gate.allows("https://app.example.com:8443")
    assert not gate.allows("https://api.app.example.com:8443")


def test_bare_host_entry_allows_any_port():
    assert OriginGatekeeper(["example.com"]).allows("https://app.example.com:8443")
