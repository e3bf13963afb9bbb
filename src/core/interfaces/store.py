"""Registry persistence contract."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import BotData


class RegistryStoreError(Exception):
    """Persisted registry state could not be read or written."""


@runtime_checkable
class RegistryStore(Protocol):
    def load(self) -> BotData:
        """Load the full registry; a missing store loads as empty."""

        ...

    def save(self, data: BotData) -> None:
        """Persist the full registry, preserving per-user order."""

        ...
