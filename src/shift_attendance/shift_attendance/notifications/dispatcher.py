from __future__ import annotations

import html
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

from ..core.enums import NotificationChannel, NotificationType
from ..core.exceptions import DispatchError
from ..users.model import User

logger = logging.getLogger(__name__)

DEFAULT_TELEGRAM_API_BASE = "https://api.telegram.org"


class NotificationDispatcher(Protocol):
    def send(
        self,
        user: User,
        *,
        title: str,
        body: str,
        type: NotificationType,
        payload: Dict[str, Any],
        channel: NotificationChannel,
    ) -> None:
        """Deliver one message; raises ``DispatchError`` when the channel fails."""

        raise NotImplementedError


class TelegramDispatcher(NotificationDispatcher):
    """Delivers messages through the Telegram Bot API ``sendMessage`` method.

    ``SYSTEM`` notifications are stored only and never leave the process.
    """

    def __init__(
        self,
        bot_token: Optional[str],
        *,
        api_base: str = DEFAULT_TELEGRAM_API_BASE,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        self._token = bot_token
        self._api_base = api_base.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def send(
        self,
        user: User,
        *,
        title: str,
        body: str,
        type: NotificationType,
        payload: Dict[str, Any],
        channel: NotificationChannel,
    ) -> None:
        if channel != NotificationChannel.TELEGRAM:
            return
        if not user.telegram_chat_id:
            raise DispatchError(f"User {user.user_id} belum menautkan Telegram")
        if not self._token:
            raise DispatchError("TELEGRAM_BOT_TOKEN belum di-set")

        text = f"<b>{html.escape(title)}</b>\n\n{html.escape(body)}"
        try:
            resp = self._client.post(
                f"{self._api_base}/bot{self._token}/sendMessage",
                json={"chat_id": user.telegram_chat_id, "text": text, "parse_mode": "HTML"},
            )
            resp.raise_for_status()
            result = resp.json()
        except httpx.HTTPError as e:
            raise DispatchError(f"Gagal mengirim Telegram ke user {user.user_id}: {e}") from e
        except ValueError as e:
            raise DispatchError(f"Respons Telegram tidak valid: {e}") from e

        if not result.get("ok", False):
            raise DispatchError(f"Telegram menolak pesan: {result.get('description', 'unknown error')}")
        logger.debug("Telegram %s delivered to user %s", type.value, user.user_id)

    def close(self) -> None:
        self._client.close()
