"""Expiry resolver contract.

Why Protocol:
- Structural contract (duck typing) without rigid inheritance.
- Lets the aggregator run against the live TLS adapter or a test fake.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ExpiryResult


@runtime_checkable
class ExpiryResolver(Protocol):
    """Minimal contract for resolving a host's certificate expiry.

    Design rules:
    - `resolve` is async because it performs network I/O (TLS handshake).
    - It never raises for network failures: they come back as `ExpiryResult.error`.
    """

    async def resolve(self, host: str) -> ExpiryResult:
        """Resolve `host` (``host[:port]``) to its earliest certificate expiry."""

        ...
