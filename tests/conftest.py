# tests/conftest.py
import os
import sys
import tempfile

# Project root on the path and test configuration before any app import
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="scholarvault-uploads-"))
os.environ.pop("OPENAI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from database.db import Base, engine, init_db
from api.main import app
from api.dependencies.metadata import get_metadata_pipeline


@pytest.fixture
def client():
    init_db()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.pop(get_metadata_pipeline, None)
    Base.metadata.drop_all(bind=engine)


def register(client, email="reader@example.com", password="correct-horse", username=None):
    payload = {"email": email, "password": password}
    if username:
        payload["username"] = username
    return client.post("/api/auth/register", json=payload)


@pytest.fixture
def auth_headers(client):
    r = register(client)
    assert r.status_code == 201
    return {"Authorization": f"Bearer {r.json()['token']}"}
