"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without leaking into the CLI.
- Lets adapters (TLS/Telegram/storage) read config consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "certbot-expiry"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "certbot-expiry"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "certbot-expiry"
    return Path.home() / ".config" / "certbot-expiry"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        try:
            existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))
        except OSError:
            existing = {}

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# certbot-expiry user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typing + validation at the edge (env vars) without polluting the core.
    - A single configuration contract for the CLI and adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="CERTBOT_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    telegram_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("CERTBOT_TELEGRAM_TOKEN", "BOTAPI", "telegram_token"),
        description="Telegram Bot API token.",
    )
    telegram_api_url: str = Field(
        default="https://api.telegram.org",
        min_length=8,
        description="Base URL of the Telegram Bot API.",
    )
    poll_timeout_seconds: int = Field(
        default=30,
        ge=0,
        le=300,
        description="Long-poll timeout for getUpdates (seconds).",
    )

    connect_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        description="TCP connect timeout per host (seconds).",
    )
    handshake_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="TLS handshake timeout per host (seconds).",
    )
    resolve_deadline_seconds: float = Field(
        default=8.0,
        gt=0,
        description="Overall deadline for a single host resolution (seconds).",
    )
    default_port: int = Field(
        default=443,
        ge=1,
        le=65535,
        description="Port appended to hostnames that carry none.",
    )

    data_file: Path = Field(
        default=Path("botdata.json"),
        description="JSON file holding the tracked hosts per user.",
    )
    log_level: str = Field(
        default="INFO",
        min_length=1,
        description="Root logging level.",
    )
