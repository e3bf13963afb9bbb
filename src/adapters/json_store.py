"""JSON persistence for the host registry.

Format (stable, human-editable):
    {"hosts": {"<user id>": ["host", ...]}}

Duplicates already present in the file are kept as-is on load so that a
delete can prune them.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from core.domain.models import BotData
from core.interfaces.store import RegistryStore, RegistryStoreError

logger = logging.getLogger(__name__)


class JSONRegistryStore(RegistryStore):
    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> BotData:
        if not self.path.exists():
            logger.info("No registry at %s, starting empty", self.path)
            return BotData()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return BotData.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as exc:
            raise RegistryStoreError(f"cannot load {self.path}: {exc}") from exc

    def save(self, data: BotData) -> None:
        payload = data.model_dump(mode="json")
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise RegistryStoreError(f"cannot write {self.path}: {exc}") from exc
