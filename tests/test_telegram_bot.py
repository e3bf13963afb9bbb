"""Tests for the Telegram client and the polling loop (httpx.MockTransport)."""

from __future__ import annotations

import json

import httpx
import pytest
from conftest import FakeResolver, FakeStore, in_days

from adapters.telegram_client import TelegramClient, TelegramError, build_async_client
from core.config import AppSettings
from core.domain.models import ExpiryResult
from core.services.bot_loop import run_bot, send_summaries
from core.services.dispatcher import HELP_TEXT
from core.services.host_registry import HostRegistry


def _message(update_id: int, user: int, text: str | None) -> dict:
    message = {"message_id": update_id, "from": {"id": user, "username": f"u{user}", "is_bot": False}}
    if text is not None:
        message["text"] = text
    return {"update_id": update_id, "message": message}


class FakeBotAPI:
    """Records calls and serves canned Bot API answers."""

    def __init__(self, updates: list[dict] | None = None) -> None:
        self.updates = updates or []
        self.sent: list[dict] = []
        self.offsets: list[int | None] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        payload = json.loads(request.content or b"{}")
        if method == "getMe":
            return httpx.Response(200, json={"ok": True, "result": {"id": 99, "username": "certbot", "is_bot": True}})
        if method == "getUpdates":
            self.offsets.append(payload.get("offset"))
            updates, self.updates = self.updates, []
            return httpx.Response(200, json={"ok": True, "result": updates})
        if method == "sendMessage":
            self.sent.append(payload)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": len(self.sent)}})
        return httpx.Response(404, json={"ok": False, "description": "Not Found"})


def _client(api: FakeBotAPI) -> TelegramClient:
    settings = AppSettings(_env_file=None, telegram_token="123:abc")
    return TelegramClient(build_async_client(settings, transport=httpx.MockTransport(api)))


class TestTelegramClient:
    def test_token_required(self):
        with pytest.raises(TelegramError):
            build_async_client(AppSettings(_env_file=None, telegram_token=None))

    @pytest.mark.asyncio
    async def test_token_in_path(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"ok": True, "result": {"id": 1}})

        settings = AppSettings(_env_file=None, telegram_token="123:abc")
        async with TelegramClient(build_async_client(settings, transport=httpx.MockTransport(handler))) as tg:
            await tg.get_me()

        assert seen == ["/bot123:abc/getMe"]

    @pytest.mark.asyncio
    async def test_get_updates_parses_sender(self):
        api = FakeBotAPI([_message(5, 42, "/list")])
        async with _client(api) as tg:
            updates = await tg.get_updates(offset=3, timeout=0)

        assert api.offsets == [3]
        assert updates[0].update_id == 5
        assert updates[0].message.sender.id == 42
        assert updates[0].message.text == "/list"

    @pytest.mark.asyncio
    async def test_not_ok_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"ok": False, "description": "Unauthorized"})

        settings = AppSettings(_env_file=None, telegram_token="bad")
        async with TelegramClient(build_async_client(settings, transport=httpx.MockTransport(handler))) as tg:
            with pytest.raises(TelegramError, match="Unauthorized"):
                await tg.get_me()


class TestRunBot:
    @pytest.mark.asyncio
    async def test_replies_to_each_message(self):
        api = FakeBotAPI(
            [
                _message(10, 1, "/start"),
                _message(11, 2, "/list"),
                _message(12, 3, None),
            ]
        )
        async with _client(api) as tg:
            await run_bot(
                telegram=tg,
                registry=HostRegistry(),
                resolver=FakeResolver(),
                store=FakeStore(),
                poll_timeout=0,
                max_polls=2,
            )

        replies = {m["chat_id"]: m["text"] for m in api.sent}
        assert replies == {1: HELP_TEXT, 2: "Nothing to show."}
        assert api.offsets == [None, 13]

    @pytest.mark.asyncio
    async def test_check_message_tracks_sanitized_host(self):
        api = FakeBotAPI([_message(1, 7, "https://a.example/login")])
        resolver = FakeResolver({"a.example": ExpiryResult.success(in_days(20))})
        registry = HostRegistry()
        store = FakeStore()

        async with _client(api) as tg:
            await run_bot(telegram=tg, registry=registry, resolver=resolver, store=store, poll_timeout=0, max_polls=1)

        assert registry.list_for(7) == ("a.example",)
        assert store.saves[-1].hosts == {7: ["a.example"]}
        assert api.sent[0]["text"].startswith("a.example will expire in ")

    @pytest.mark.asyncio
    async def test_polling_error_is_survived(self, monkeypatch):
        monkeypatch.setattr("core.services.bot_loop.RETRY_DELAY_SECONDS", 0)
        calls = {"n": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            method = request.url.path.rsplit("/", 1)[-1]
            if method == "getMe":
                return httpx.Response(200, json={"ok": True, "result": {"id": 99}})
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(502, json={"ok": False, "description": "Bad Gateway"})
            return httpx.Response(200, json={"ok": True, "result": []})

        settings = AppSettings(_env_file=None, telegram_token="123:abc")
        async with TelegramClient(build_async_client(settings, transport=httpx.MockTransport(handler))) as tg:
            await run_bot(
                telegram=tg, registry=HostRegistry(), resolver=FakeResolver(), poll_timeout=0, max_polls=2
            )

        assert calls["n"] == 2


class TestSendSummaries:
    @pytest.mark.asyncio
    async def test_every_user_gets_a_message(self):
        api = FakeBotAPI()
        registry = HostRegistry({1: ["a.example"], 2: []})
        resolver = FakeResolver({"a.example": ExpiryResult.success(in_days(9))})

        async with _client(api) as tg:
            summaries = await send_summaries(telegram=tg, registry=registry, resolver=resolver)

        assert {m["chat_id"]: m["text"] for m in api.sent} == summaries
        assert summaries[2] == "Nothing to show."
