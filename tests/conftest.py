import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.api import deps
from app.main import app
from app.services import accounts, sessions
from app.services.dispatch import Dispatcher
from app.services.push import PushDeliveryError


class RecordingTransport:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, message):
        if self.fail:
            raise PushDeliveryError("push service down")
        self.sent.append(message)
        return {"status": "ok", "id": f"ticket-{len(self.sent)}"}


class RecordingHub:
    def __init__(self):
        self.published = []
        self.fail = False

    def publish(self, topic, payload):
        if self.fail:
            raise RuntimeError("realtime down")
        self.published.append((topic, payload))
        return 0


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def push_transport():
    return RecordingTransport()


@pytest.fixture
def realtime_hub():
    return RecordingHub()


@pytest.fixture
def dispatcher(engine, push_transport, realtime_hub):
    return Dispatcher(
        hub=realtime_hub,
        transport=push_transport,
        session_factory=lambda: Session(engine),
    )


@pytest.fixture(name="client")
def client_fixture(engine, session, dispatcher):
    app.dependency_overrides[deps.get_session] = lambda: session
    app.dependency_overrides[deps.get_session_factory] = lambda: lambda: Session(engine)
    app.dependency_overrides[deps.get_dispatcher] = lambda: dispatcher
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    def _make_user(email="test@example.com", display_name=None, **kwargs):
        return accounts.create_user(
            session, email=email, display_name=display_name or email.split("@")[0], **kwargs
        )
    return _make_user


@pytest.fixture
def auth_headers(session):
    def _auth_headers(user):
        token = sessions.login(session, user)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
def pair(session):
    def _pair(first, second):
        accounts.update_partner(session, first.id, second.id)
        session.refresh(first)
        session.refresh(second)
    return _pair
