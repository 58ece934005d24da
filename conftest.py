import os
import tempfile

# Settings are read on import, so the environment has to be in place first
_tmp_dir = tempfile.mkdtemp(prefix="authgate-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["FRONTEND_ORIGINS"] = "https://app.example.com,example.org,http://localhost:5173"
os.environ["ENVIRONMENT"] = "development"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from authgate.core.database import Base, SessionLocal, engine
from main import app


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def signup(client):
    def _signup(email="a@x.com", password="secret1", name="A", **extra):
        payload = {"name": name, "email": email, "password": password, **extra}
        return client.post("/api/auth/signup", json=payload)
    return _signup
