from unittest import mock

import pytest
import requests

from app.services.push import ExpoPushTransport, PushDeliveryError, PushMessage

MESSAGE = PushMessage(
    to="ExponentPushToken[abc]",
    title="Ping from Alex! 👋",
    body="Just saying hi!",
    data={"eventId": "7"},
)


def fake_response(status_code=200, payload=None, text=""):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = text
    return response


def test_send_posts_message():
    transport = ExpoPushTransport(url="https://push.test/send", access_token="secret", timeout=3)
    with mock.patch("requests.post", return_value=fake_response(payload={"data": {"status": "ok", "id": "t1"}})) as post:
        ticket = transport.send(MESSAGE)

    assert ticket == {"status": "ok", "id": "t1"}
    args, kwargs = post.call_args
    assert args == ("https://push.test/send",)
    assert kwargs["json"] == {
        "to": "ExponentPushToken[abc]",
        "title": "Ping from Alex! 👋",
        "body": "Just saying hi!",
        "data": {"eventId": "7"},
    }
    assert kwargs["timeout"] == 3
    assert kwargs["headers"]["Authorization"] == "Bearer secret"


def test_http_error_raises():
    transport = ExpoPushTransport(url="https://push.test/send")
    with mock.patch("requests.post", return_value=fake_response(status_code=500, text="boom")):
        with pytest.raises(PushDeliveryError):
            transport.send(MESSAGE)


def test_ticket_error_raises():
    transport = ExpoPushTransport(url="https://push.test/send")
    payload = {"data": [{"status": "error", "message": "DeviceNotRegistered"}]}
    with mock.patch("requests.post", return_value=fake_response(payload=payload)):
        with pytest.raises(PushDeliveryError, match="DeviceNotRegistered"):
            transport.send(MESSAGE)


def test_timeout_raises():
    transport = ExpoPushTransport(url="https://push.test/send")
    with mock.patch("requests.post", side_effect=requests.Timeout("slow")):
        with pytest.raises(PushDeliveryError):
            transport.send(MESSAGE)
