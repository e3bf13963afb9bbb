"""In-memory registry of tracked hostnames per user.

The registry is the single writable source of truth for tracked hosts. It is
built once at startup and handed to every handler; callers that mutate a
user's list hold `lock(user)` so a summary snapshot never races a delete.
"""

from __future__ import annotations

import asyncio

from core.domain.models import BotData


class HostRegistry:
    def __init__(self, hosts: dict[int, list[str]] | None = None) -> None:
        self._hosts: dict[int, list[str]] = {
            user: list(entries) for user, entries in (hosts or {}).items()
        }
        self._locks: dict[int, asyncio.Lock] = {}

    @classmethod
    def from_data(cls, data: BotData) -> "HostRegistry":
        return cls(data.hosts)

    def to_data(self) -> BotData:
        return BotData(hosts={user: list(entries) for user, entries in self._hosts.items()})

    def lock(self, user: int) -> asyncio.Lock:
        """Per-user mutex; users never contend with each other."""

        lock = self._locks.get(user)
        if lock is None:
            lock = self._locks[user] = asyncio.Lock()
        return lock

    def add(self, user: int, host: str) -> bool:
        """Append `host` unless already tracked. Returns whether the list changed."""

        entries = self._hosts.setdefault(user, [])
        if host in entries:
            return False
        entries.append(host)
        return True

    def remove(self, user: int, host: str) -> bool:
        """Drop every occurrence of `host`. Returns whether the list changed."""

        entries = self._hosts.get(user)
        if not entries or host not in entries:
            return False
        entries[:] = [entry for entry in entries if entry != host]
        return True

    def list_for(self, user: int) -> tuple[str, ...]:
        return tuple(self._hosts.get(user, ()))

    def users(self) -> tuple[int, ...]:
        return tuple(self._hosts)
