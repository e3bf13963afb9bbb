"""Thin Telegram Bot API client over httpx.

Why a wrapper:
- Standardizes timeouts, base URL and error handling for every call.
- Eases testing: tests pass an `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from core.config import AppSettings


class TelegramError(Exception):
    """The Bot API answered with `ok: false`."""


class TelegramUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str | None = None
    first_name: str | None = None


class TelegramMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message_id: int
    sender: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None


class TelegramUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    update_id: int
    message: TelegramMessage | None = None


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` for the Bot API.

    The read timeout leaves room for the long-poll window on top of the usual budget.
    """

    settings = settings or AppSettings()
    if not settings.telegram_token:
        raise TelegramError("Telegram token is not configured")
    base_url = f"{settings.telegram_api_url.rstrip('/')}/bot{settings.telegram_token}/"
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(10.0, read=settings.poll_timeout_seconds + 10.0),
        transport=transport,
    )


class TelegramClient:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def __aenter__(self) -> "TelegramClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self._client.aclose()

    async def _call(self, method: str, payload: dict[str, Any] | None = None) -> Any:
        response = await self._client.post(method, json=payload or {})
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise
        if not body.get("ok"):
            raise TelegramError(f"{method}: {body.get('description', response.status_code)}")
        return body.get("result")

    async def get_me(self) -> TelegramUser:
        return TelegramUser.model_validate(await self._call("getMe"))

    async def get_updates(self, *, offset: int | None = None, timeout: int = 30) -> list[TelegramUpdate]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", payload)
        return [TelegramUpdate.model_validate(item) for item in result or []]

    async def send_message(self, chat_id: int, text: str) -> None:
        await self._call("sendMessage", {"chat_id": chat_id, "text": text})
