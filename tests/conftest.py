import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app
from app.services.email.mailer import get_mailer
from app.services.flows.store import FlowStore, get_store
from app.services.stt.transcriber import get_transcriber
from fakes import FakeAssistant, FakeMailer, FakeTranscriber


@pytest.fixture
def assistant():
    return FakeAssistant()


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def fast_timers(monkeypatch):
    monkeypatch.setattr(settings, "SPIN_SECONDS", 0.06)
    monkeypatch.setattr(settings, "SPIN_TICK_SECONDS", 0.01)
    monkeypatch.setattr(settings, "SPIN_SETTLE_SECONDS", 0.02)
    monkeypatch.setattr(settings, "TICK_SECONDS", 0.01)
    monkeypatch.setattr(settings, "ANSWER_WINDOW_SECONDS", 3)


@pytest.fixture
def store(assistant, fast_timers):
    return FlowStore(assistant, maxsize=16, ttl=600)


@pytest.fixture
def client(store, transcriber, mailer):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_transcriber] = lambda: transcriber
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
        # controllers' tasks live on the client's loop
        c.portal.call(store.close)
    app.dependency_overrides.clear()
