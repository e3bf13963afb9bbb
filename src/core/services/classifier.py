"""Inbound text classification.

Every input maps to exactly one `Action`; there is no parse-error case.
Malformed text becomes a literal hostname and fails later, at resolution.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from core.domain.models import Action, ActionKind

HELP_COMMAND = "/start"
LIST_COMMAND = "/list"

# /d, /del, /delete, /r, /rem, /remove, plus any trailing whitespace.
_DELETE_COMMAND = re.compile(r"^/(?:d(?:el(?:ete)?)?|r(?:em(?:ove)?)?)\s*")


def sanitize(text: str) -> str:
    """Reduce URL-shaped input to its ``host[:port]``; pass anything else through.

    The host keeps the case it was typed in, so a later delete matches it.
    """

    if not text.startswith("http"):
        return text
    try:
        parts = urlsplit(text)
        port = parts.port
    except ValueError:
        return text
    if not parts.hostname:
        return text
    host = parts.netloc.rpartition("@")[2]
    return host if port else host.removesuffix(":")


def classify(text: str) -> Action:
    if text == HELP_COMMAND:
        return Action(kind=ActionKind.HELP)
    if text == LIST_COMMAND:
        return Action(kind=ActionKind.LIST)

    match = _DELETE_COMMAND.match(text)
    if match:
        return Action(kind=ActionKind.DELETE, host=text[match.end():])

    return Action(kind=ActionKind.CHECK, host=sanitize(text))
