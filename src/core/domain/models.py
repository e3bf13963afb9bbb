"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  core to I/O libraries.
- The persisted registry round-trips through the same models it is validated by.

Note:
- These models describe *what* the information is, not *how* it is obtained.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class ErrorKind(str, Enum):
    """Why a host resolution failed, as far as the user needs to know."""

    TIMEOUT = "timeout"
    NO_SUCH_HOST = "no_such_host"
    NO_ROUTE = "no_route"
    OTHER = "other"


class ExpiryResult(BaseModel):
    """Outcome of resolving one host: either an expiry timestamp or an error.

    `detail` carries the underlying error text for operator logs only; it is
    never shown to the end user.
    """

    expires_at: datetime | None = Field(
        default=None,
        description="Earliest notAfter across every verified chain (UTC).",
    )
    error: ErrorKind | None = Field(
        default=None,
        description="Failure classification when the handshake did not succeed.",
    )
    detail: str | None = Field(
        default=None,
        description="Underlying error message, for diagnostics.",
    )

    @model_validator(mode="after")
    def _exactly_one(self) -> "ExpiryResult":
        if (self.expires_at is None) == (self.error is None):
            raise ValueError("exactly one of expires_at or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, expires_at: datetime) -> "ExpiryResult":
        return cls(expires_at=expires_at)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str | None = None) -> "ExpiryResult":
        return cls(error=error, detail=detail)


class SummaryMessage(BaseModel):
    """One line of a summary, paired with the timestamp it is ordered by."""

    expires_at: datetime | None = None
    text: str


class ActionKind(str, Enum):
    HELP = "help"
    LIST = "list"
    DELETE = "delete"
    CHECK = "check"


class Action(BaseModel):
    """What an inbound message asks for.

    `host` is set for DELETE and CHECK only.
    """

    kind: ActionKind
    host: str | None = None


class BotData(BaseModel):
    """Persisted state: tracked hostnames per user id, in insertion order."""

    hosts: dict[int, list[str]] = Field(
        default_factory=dict,
        description="User id -> ordered hostnames.",
    )
