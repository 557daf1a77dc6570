import os
import tempfile

# settings are read at import time, so they must be in place before the app loads
_DB_DIR = tempfile.mkdtemp(prefix="zipflow-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAX_FILE_SIZE"] = str(1024)
os.environ["MAX_STORAGE_SIZE"] = str(4096)

import pytest
from fastapi.testclient import TestClient

from db import engine
from main import app
from models import Base


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def register(client, name="Alice", email="alice@example.com", password="secret123"):
    return client.post("/api/register", json={"name": name, "email": email, "password": password})


def login_headers(client, name="Alice", email="alice@example.com", password="secret123"):
    """Register and log in a user, returning bearer auth headers.

    The session cookie set by login is dropped so that each request states
    explicitly which user it acts as.
    """
    assert register(client, name, email, password).status_code == 201
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def upload(client, headers, name="notes.txt", data=b"hello world", mime="text/plain"):
    return client.post("/api/upload", files={"file": (name, data, mime)}, headers=headers)


@pytest.fixture
def alice(client):
    return login_headers(client)


@pytest.fixture
def bob(client):
    return login_headers(client, name="Bob", email="bob@example.com", password="hunter22")
