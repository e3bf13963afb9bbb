"""Per-user expiry summaries.

Fan-out/fan-in: one resolution task per tracked host, a barrier until all of
them finish, then a single deterministic ordering:
- resolved hosts first, ascending by expiry (stable),
- failed hosts last, in their registry order.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Sequence

from core.domain.models import ErrorKind, ExpiryResult, SummaryMessage
from core.interfaces.resolver import ExpiryResolver
from core.services.formatter import format_expiry
from core.services.host_registry import HostRegistry

logger = logging.getLogger(__name__)

NOTHING_TO_SHOW = "Nothing to show."


async def _safe_resolve(resolver: ExpiryResolver, host: str) -> ExpiryResult:
    try:
        return await resolver.resolve(host)
    except Exception as exc:  # a misbehaving resolver must not abort sibling tasks
        logger.exception("Resolver raised for %s", host)
        return ExpiryResult.failure(ErrorKind.OTHER, detail=str(exc))


def order_messages(messages: Sequence[SummaryMessage]) -> list[SummaryMessage]:
    resolved = [m for m in messages if m.expires_at is not None]
    failed = [m for m in messages if m.expires_at is None]
    resolved.sort(key=lambda m: m.expires_at)
    return resolved + failed


async def summarize_hosts(
    hosts: Sequence[str],
    *,
    resolver: ExpiryResolver,
    now: datetime | None = None,
) -> str:
    if not hosts:
        return NOTHING_TO_SHOW

    # gather keeps one result slot per host, in host order.
    results = await asyncio.gather(*(_safe_resolve(resolver, host) for host in hosts))

    now = now or datetime.now(timezone.utc)
    messages = [
        SummaryMessage(expires_at=result.expires_at, text=format_expiry(host, result, now=now))
        for host, result in zip(hosts, results)
    ]
    return "\n".join(m.text for m in order_messages(messages))


async def summarize(
    *,
    user: int,
    registry: HostRegistry,
    resolver: ExpiryResolver,
    now: datetime | None = None,
) -> str:
    """Summary for one user, computed from a snapshot of their list."""

    async with registry.lock(user):
        hosts = registry.list_for(user)
    return await summarize_hosts(hosts, resolver=resolver, now=now)


async def summarize_all(
    *,
    registry: HostRegistry,
    resolver: ExpiryResolver,
    now: datetime | None = None,
) -> dict[int, str]:
    """Summaries for every known user (batch "send everyone a summary" mode)."""

    users = registry.users()
    texts = await asyncio.gather(
        *(summarize(user=user, registry=registry, resolver=resolver, now=now) for user in users)
    )
    return dict(zip(users, texts))
