# detailing/services/telegram/telegram_client.py
"""Minimal Telegram Bot API client used for outbound notifications"""
from typing import Optional
import logging

import httpx

from detailing.config.settings import get_settings

logger = logging.getLogger(__name__)


class TelegramDeliveryError(Exception):
    """Bot API refused or failed to deliver a message"""


class TelegramClient:
    """Sends plain-text messages through the Bot API"""

    def __init__(self, token: Optional[str] = None, http_client: Optional[httpx.Client] = None):
        settings = get_settings()
        self.token = token if token is not None else settings.TELEGRAM_BOT_TOKEN
        self.base_url = f"{settings.TELEGRAM_API_URL.rstrip('/')}/bot{self.token}"
        self.http_client = http_client or httpx.Client(timeout=settings.TELEGRAM_TIMEOUT_SECONDS)

    def send_message(self, chat_id: int, text: str) -> int:
        """Send a message and return its Telegram message id"""
        if not self.token:
            raise TelegramDeliveryError("Telegram bot token is not configured")

        try:
            response = self.http_client.post(
                f"{self.base_url}/sendMessage",
                json={"chat_id": chat_id, "text": text},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TelegramDeliveryError(f"Error sending message to chat {chat_id}: {e}") from e

        body = response.json()
        if not body.get("ok"):
            raise TelegramDeliveryError(
                f"Telegram rejected message to chat {chat_id}: {body.get('description')}"
            )

        return body["result"]["message_id"]

    def close(self):
        self.http_client.close()
