import asyncio
import threading

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import QueuePool
from sqlmodel import Session, SQLModel, create_engine
from starlette.websockets import WebSocketDisconnect

from app.api import deps
from app.main import app
from app.services import accounts, realtime, sessions
from app.services.realtime import RealtimeHub, user_topic


def test_publish_without_subscribers_is_dropped():
    hub = RealtimeHub()
    assert hub.publish(user_topic(1), {"id": 1}) == 0


def test_subscriber_receives_messages_for_its_topic():
    hub = RealtimeHub()

    async def scenario():
        mine = hub.subscribe(user_topic(1))
        other = hub.subscribe(user_topic(2))
        delivered = hub.publish(user_topic(1), {"id": 10})
        payload = await asyncio.wait_for(mine.get(), timeout=1)
        hub.unsubscribe(mine)
        hub.unsubscribe(other)
        return delivered, payload, other.queue.empty()

    delivered, payload, other_empty = asyncio.run(scenario())
    assert delivered == 1
    assert payload == {"id": 10}
    assert other_empty


def test_publish_from_worker_thread():
    hub = RealtimeHub()

    async def scenario():
        subscription = hub.subscribe("user:5")
        worker = threading.Thread(target=hub.publish, args=("user:5", {"id": 3}))
        worker.start()
        payload = await asyncio.wait_for(subscription.get(), timeout=1)
        worker.join()
        return payload

    assert asyncio.run(scenario()) == {"id": 3}


def test_full_queue_drops_newest_message():
    hub = RealtimeHub(queue_size=1)

    async def scenario():
        subscription = hub.subscribe("user:1")
        hub.publish("user:1", {"id": 1})
        hub.publish("user:1", {"id": 2})
        await asyncio.sleep(0)
        return subscription.queue.qsize(), await subscription.get()

    assert asyncio.run(scenario()) == (1, {"id": 1})


def test_unsubscribe_removes_topic():
    hub = RealtimeHub()

    async def scenario():
        subscription = hub.subscribe("user:1")
        assert hub.subscriber_count("user:1") == 1
        hub.unsubscribe(subscription)
        return hub.subscriber_count("user:1")

    assert asyncio.run(scenario()) == 0


@pytest.fixture
def pooled_client(tmp_path):
    # One pooled connection, so a socket holding it would starve every request
    engine = create_engine(
        f"sqlite:///{tmp_path / 'realtime.db'}",
        connect_args={"check_same_thread": False},
        poolclass=QueuePool,
        pool_size=1,
        max_overflow=0,
        pool_timeout=2,
    )
    SQLModel.metadata.create_all(engine)

    def get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[deps.get_session] = get_session
    app.dependency_overrides[deps.get_session_factory] = lambda: lambda: Session(engine)
    yield TestClient(app), engine
    app.dependency_overrides.clear()
    engine.dispose()


def test_socket_does_not_hold_a_database_connection(pooled_client):
    client, engine = pooled_client
    with Session(engine) as session:
        user = accounts.create_user(session, email="alex@example.com", display_name="Alex")
        topic = user_topic(user.id)
        token = sessions.login(session, user)
    headers = {"Authorization": f"Bearer {token}"}

    with client.websocket_connect(f"/api/v1/realtime/ws?token={token}") as websocket:
        assert engine.pool.checkedout() == 0
        assert client.get("/api/v1/users/me", headers=headers).status_code == 200

        assert realtime.hub.publish(topic, {"id": 1}) == 1
        assert websocket.receive_json() == {"id": 1}

    # Closing the socket ends the handler without waiting for another message
    assert realtime.hub.subscriber_count(topic) == 0


def test_socket_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/api/v1/realtime/ws?token=not-a-token"):
            pass
    assert exc_info.value.code == 1008
