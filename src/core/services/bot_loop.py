"""Long-polling bot loop and the batch summary mode.

Each inbound message is handled in its own task; the loop only acknowledges
updates and never waits for a reply to be produced.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from adapters.telegram_client import TelegramClient, TelegramError, TelegramUpdate
from core.interfaces.resolver import ExpiryResolver
from core.interfaces.store import RegistryStore
from core.services.classifier import classify
from core.services.dispatcher import dispatch
from core.services.host_registry import HostRegistry
from core.services.summary import summarize_all

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 1.0


async def handle_update(
    update: TelegramUpdate,
    *,
    telegram: TelegramClient,
    registry: HostRegistry,
    resolver: ExpiryResolver,
    store: RegistryStore | None,
) -> None:
    message = update.message
    if message is None or message.text is None or message.sender is None:
        return

    user = message.sender.id
    logger.info("[%s] %s", message.sender.username or user, message.text)
    reply = await dispatch(
        user=user,
        action=classify(message.text),
        registry=registry,
        resolver=resolver,
        store=store,
    )
    try:
        await telegram.send_message(user, reply)
    except (httpx.HTTPError, TelegramError):
        logger.exception("Could not deliver reply to %s", user)


async def run_bot(
    *,
    telegram: TelegramClient,
    registry: HostRegistry,
    resolver: ExpiryResolver,
    store: RegistryStore | None = None,
    poll_timeout: int = 30,
    max_polls: int | None = None,
) -> None:
    """Poll for updates forever (or `max_polls` times), one task per message."""

    me = await telegram.get_me()
    logger.info("Started %s", me.username or me.id)

    pending: set[asyncio.Task[None]] = set()
    offset: int | None = None
    polls = 0
    try:
        while max_polls is None or polls < max_polls:
            polls += 1
            try:
                updates = await telegram.get_updates(offset=offset, timeout=poll_timeout)
            except (httpx.HTTPError, TelegramError) as exc:
                logger.warning("Polling failed: %s", exc)
                await asyncio.sleep(RETRY_DELAY_SECONDS)
                continue

            for update in updates:
                offset = update.update_id + 1
                task = asyncio.create_task(
                    handle_update(
                        update,
                        telegram=telegram,
                        registry=registry,
                        resolver=resolver,
                        store=store,
                    )
                )
                pending.add(task)
                task.add_done_callback(pending.discard)
    finally:
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


async def send_summaries(
    *,
    telegram: TelegramClient,
    registry: HostRegistry,
    resolver: ExpiryResolver,
) -> dict[int, str]:
    """Send every user their summary; returns what was sent."""

    summaries = await summarize_all(registry=registry, resolver=resolver)
    for user, text in summaries.items():
        try:
            await telegram.send_message(user, text)
        except (httpx.HTTPError, TelegramError):
            logger.exception("Could not deliver summary to %s", user)
    return summaries
