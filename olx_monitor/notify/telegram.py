"""Telegram Bot API notifications."""
import logging
from typing import Optional, Union
import httpx

from olx_monitor.config import config

logger = logging.getLogger(__name__)

ChatId = Union[int, str]


class TelegramNotifier:
    """Sends plain text messages through the Bot API sendMessage method."""

    def __init__(
        self,
        token: str | None = None,
        default_chat_id: Optional[ChatId] = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else config.TELEGRAM_TOKEN
        self.default_chat_id = default_chat_id if default_chat_id is not None else config.TELEGRAM_CHAT_ID
        self.api_url = (api_url or config.TELEGRAM_API_URL).rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else config.NOTIFY_TIMEOUT,
            transport=transport,
        )
        self.sent = 0
        self.failed = 0
        if not self.token:
            logger.warning("Telegram token not provided. Notifications will be disabled.")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def send(self, message: str, chat_id: Optional[ChatId] = None) -> bool:
        """Deliver message to chat_id (or the default chat). Never raises."""
        if not self.token:
            return False

        target = chat_id or self.default_chat_id
        if not target:
            logger.warning("No chat id for notification, message dropped")
            self.failed += 1
            return False

        url = f"{self.api_url}/bot{self.token}/sendMessage"
        try:
            response = await self.client.post(url, json={"chat_id": target, "text": message})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.failed += 1
            logger.error(f"Telegram rejected message for chat {target}: {e.response.status_code}")
            logger.debug(f"Response text: {e.response.text}")
            return False
        except httpx.HTTPError as e:
            self.failed += 1
            logger.error(f"Error sending Telegram notification to chat {target}: {e}")
            return False

        self.sent += 1
        return True


class LogNotifier:
    """Dry-run notifier: logs messages instead of sending them."""

    def __init__(self):
        self.sent = 0
        self.failed = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def send(self, message: str, chat_id: Optional[ChatId] = None) -> bool:
        self.sent += 1
        logger.info(f"[DRY-RUN] Notification for chat {chat_id or 'default'}: {message!r}")
        return True
