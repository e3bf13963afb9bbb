"""Shared fixtures: fake resolver, fake store and throwaway certificates."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from core.domain.models import BotData, ErrorKind, ExpiryResult
from core.interfaces.store import RegistryStoreError

NOW = datetime(2030, 6, 1, 12, 0, tzinfo=timezone.utc)


def in_days(days: int, *, now: datetime = NOW) -> datetime:
    """A timestamp that floors to exactly `days` whole days from `now`."""

    return now + timedelta(days=days, hours=1)


def make_cert_der(not_after: datetime, *, common_name: str = "example.com") -> bytes:
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_after - timedelta(days=365))
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


class FakeResolver:
    """Answers from a fixed table; unknown hosts resolve to NO_SUCH_HOST."""

    def __init__(self, results: dict[str, ExpiryResult] | None = None, *, delay: float = 0.0) -> None:
        self.results = results or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def resolve(self, host: str) -> ExpiryResult:
        self.calls.append(host)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.results.get(host, ExpiryResult.failure(ErrorKind.NO_SUCH_HOST))
        finally:
            self.in_flight -= 1


class FakeStore:
    def __init__(self, data: BotData | None = None, *, fail: bool = False) -> None:
        self.data = data or BotData()
        self.fail = fail
        self.saves: list[BotData] = []

    def load(self) -> BotData:
        return self.data

    def save(self, data: BotData) -> None:
        if self.fail:
            raise RegistryStoreError("disk full")
        self.saves.append(data)
        self.data = data


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
