import logging
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)


class PushDeliveryError(Exception):
    pass


class PushMessage(BaseModel):
    to: str
    title: str
    body: str
    data: Dict[str, Any] = {}


class ExpoPushTransport:
    """Sends one message per call to the Expo push API."""

    def __init__(
        self,
        url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.url = url or settings.EXPO_PUSH_URL
        self.access_token = access_token if access_token is not None else settings.EXPO_ACCESS_TOKEN
        self.timeout = timeout or settings.PUSH_TIMEOUT_SECONDS

    def send(self, message: PushMessage) -> Dict[str, Any]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = requests.post(
                self.url, json=message.model_dump(), headers=headers, timeout=self.timeout
            )
        except requests.RequestException as exc:
            raise PushDeliveryError(f"Push transport unreachable: {exc}") from exc

        if response.status_code >= 400:
            raise PushDeliveryError(f"Push API returned {response.status_code}: {response.text}")

        ticket = response.json().get("data") or {}
        if isinstance(ticket, list):
            ticket = ticket[0] if ticket else {}
        if ticket.get("status") == "error":
            raise PushDeliveryError(f"Push rejected: {ticket.get('message')}")
        logger.debug("Push ticket for %s: %s", message.to, ticket)
        return ticket
