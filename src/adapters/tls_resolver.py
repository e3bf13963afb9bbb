"""Expiry resolver over a live TLS handshake.

Phases, each bounded:
- TCP connect (`connect_timeout_seconds`),
- TLS handshake with the platform's default verification (`handshake_timeout_seconds`),
- the whole resolution (`resolve_deadline_seconds`), reported as a timeout.

The expiry is the earliest notAfter across every certificate in the verified
chain: one expired certificate anywhere in the chain breaks the link.
"""

from __future__ import annotations

import _ssl
import asyncio
import errno
import logging
import socket
import ssl
from datetime import datetime
from typing import Any, Iterable

from cryptography import x509

from core.config import AppSettings
from core.domain.models import ErrorKind, ExpiryResult
from core.interfaces.resolver import ExpiryResolver

logger = logging.getLogger(__name__)

_NO_ROUTE_ERRNOS = frozenset({errno.ENETUNREACH, errno.EHOSTUNREACH})

# Only consulted for OSErrors without an errno (e.g. asyncio's
# "Multiple exceptions" aggregate when several addresses fail differently).
_NO_ROUTE_TEXT = ("no route to host", "network is unreachable")
_NO_SUCH_HOST_TEXT = ("no such host", "name or service not known", "nodename nor servname")


def split_host_port(host: str, default_port: int = 443) -> tuple[str, int]:
    """Split ``host[:port]`` (IPv6 in brackets) into its parts."""

    if host.startswith("["):
        end = host.find("]")
        if end != -1:
            name, rest = host[1:end], host[end + 1:]
            if rest.startswith(":") and rest[1:].isdigit():
                return name, int(rest[1:])
            return name, default_port

    name, sep, port = host.rpartition(":")
    if sep and port.isdigit() and ":" not in name:
        return name, int(port)
    return host, default_port


def earliest_expiry(chain: Iterable[bytes]) -> datetime:
    """Minimum notAfter (UTC) over DER-encoded certificates."""

    expiries = [x509.load_der_x509_certificate(der).not_valid_after_utc for der in chain]
    if not expiries:
        raise ssl.SSLError("peer presented no certificate")
    return min(expiries)


def _der_chain(source: Any) -> list[bytes]:
    get_chain = getattr(source, "get_verified_chain", None)
    if not callable(get_chain):
        return []
    out: list[bytes] = []
    for item in get_chain() or []:
        if isinstance(item, (bytes, bytearray)):
            out.append(bytes(item))
        elif hasattr(item, "public_bytes"):
            out.append(item.public_bytes(_ssl.ENCODING_DER))
    return out


def verified_chain(ssl_object: Any) -> list[bytes]:
    """DER certificates of the verified chain, leaf first.

    `SSLObject.get_verified_chain` is public from Python 3.13; on 3.11 and 3.12
    the same chain comes from the underlying `_ssl` object as `Certificate`s.
    The verified leaf alone is the last resort.
    """

    for source in (ssl_object, getattr(ssl_object, "_sslobj", None)):
        chain = _der_chain(source)
        if chain:
            return chain

    leaf = ssl_object.getpeercert(binary_form=True)
    return [leaf] if leaf else []


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorKind.TIMEOUT
    if isinstance(exc, socket.gaierror):
        return ErrorKind.NO_SUCH_HOST
    if isinstance(exc, ssl.SSLError):
        return ErrorKind.OTHER
    if isinstance(exc, OSError):
        if exc.errno in _NO_ROUTE_ERRNOS:
            return ErrorKind.NO_ROUTE
        if exc.errno is None:
            text = str(exc).lower()
            if any(part in text for part in _NO_ROUTE_TEXT):
                return ErrorKind.NO_ROUTE
            if any(part in text for part in _NO_SUCH_HOST_TEXT):
                return ErrorKind.NO_SUCH_HOST
    return ErrorKind.OTHER


class TLSExpiryResolver(ExpiryResolver):
    """Resolves `host[:port]` to its earliest certificate expiry."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._ssl_context = ssl_context or ssl.create_default_context()

    async def resolve(self, host: str) -> ExpiryResult:
        if not host:
            return ExpiryResult.failure(ErrorKind.OTHER, detail="empty hostname")

        hostname, port = split_host_port(host, self._settings.default_port)
        try:
            expires_at = await asyncio.wait_for(
                self._handshake(hostname, port),
                timeout=self._settings.resolve_deadline_seconds,
            )
        except Exception as exc:
            kind = classify_error(exc)
            if kind is not ErrorKind.OTHER:
                logger.debug("Resolving %s failed (%s): %r", host, kind.value, exc)
            return ExpiryResult.failure(kind, detail=str(exc) or exc.__class__.__name__)
        return ExpiryResult.success(expires_at)

    async def _handshake(self, hostname: str, port: int) -> datetime:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(hostname, port),
            timeout=self._settings.connect_timeout_seconds,
        )
        try:
            await asyncio.wait_for(
                writer.start_tls(
                    self._ssl_context,
                    server_hostname=hostname,
                    ssl_handshake_timeout=self._settings.handshake_timeout_seconds,
                ),
                timeout=self._settings.handshake_timeout_seconds,
            )
            ssl_object = writer.get_extra_info("ssl_object")
            if ssl_object is None:
                raise ssl.SSLError("TLS session not established")
            return earliest_expiry(verified_chain(ssl_object))
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
