# tests/conftest.py
import os
import tempfile

# configure before the app (and its engine/settings) is imported
_TMP_DIR = tempfile.mkdtemp(prefix="shankai-tests-")
os.environ["SQLALCHEMY_DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("OPENROUTER_API_KEY", None)

import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from shankai.ai.client import get_ai_client
from shankai.database.session import Base, SessionLocal, engine
from shankai.files.storage import BlobStorage, get_storage
from shankai.main import app

API = "/api"


def make_chunk(content=None, finish_reason=None):
    delta = SimpleNamespace(content=content)
    return SimpleNamespace(
        choices=[SimpleNamespace(delta=delta, finish_reason=finish_reason)]
    )


class FakeStream:
    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __iter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed = True


class FakeCompletions:
    """
    Stands in for ``client.chat.completions`` of the openai SDK.
    """

    def __init__(self):
        self.reply = "Hello from the model"
        self.fragments = ["Hel", "lo ", "there"]
        self.finish = True
        self.finish_reason = "stop"
        self.error = None  # raised by create()
        self.mid_stream_error = None  # raised after the fragments
        self.calls = []
        self.streams = []

    def create(self, **params):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        if params.get("stream"):
            chunks = [make_chunk(text) for text in self.fragments]
            if self.finish:
                chunks.append(make_chunk(None, finish_reason=self.finish_reason))
            stream = FakeStream(chunks, error=self.mid_stream_error)
            self.streams.append(stream)
            return stream
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeAIClient:
    def __init__(self):
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_llm():
    fake = FakeAIClient()
    app.dependency_overrides[get_ai_client] = lambda: fake
    return fake.completions


@pytest.fixture
def storage(tmp_path):
    blob_storage = BlobStorage(str(tmp_path / "uploads"))
    app.dependency_overrides[get_storage] = lambda: blob_storage
    return blob_storage


@pytest.fixture
def client():
    return TestClient(app)


def register(client, email="alice@example.com", name="Alice", password="secret123"):
    resp = client.post(
        f"{API}/auth/register",
        json={"email": email, "name": name, "password": password},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    return bearer(register(client)["token"])


@pytest.fixture
def bob(client):
    return bearer(register(client, email="bob@example.com", name="Bob")["token"])


def create_project(client, headers, name="Helper", system_prompt=None):
    payload = {"name": name}
    if system_prompt is not None:
        payload["system_prompt"] = system_prompt
    resp = client.post(f"{API}/projects", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["project"]


def parse_sse(body):
    """Return the list of {"type", "data"} payloads in an SSE body."""
    events = []
    for frame in body.split("\n\n"):
        for line in frame.splitlines():
            if line.startswith("data: "):
                events.append(json.loads(line[len("data: "):]))
    return events
