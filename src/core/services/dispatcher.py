"""Single integration point for the transport layer.

`dispatch` turns a classified `Action` into the exact reply text, mutating the
registry (and persisting it) where the action calls for it.
"""

from __future__ import annotations

import logging

from core.domain.models import Action, ActionKind
from core.interfaces.resolver import ExpiryResolver
from core.interfaces.store import RegistryStore, RegistryStoreError
from core.services.formatter import format_expiry
from core.services.host_registry import HostRegistry
from core.services.summary import summarize

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "Give me website hostname and I'll tell you the expiry date of the certificates.\n"
    "\n"
    "If I don't reply you within 5 seconds, that means I'm offline."
)


def _persist(registry: HostRegistry, store: RegistryStore | None) -> None:
    if store is None:
        return
    try:
        store.save(registry.to_data())
    except RegistryStoreError:
        logger.exception("Could not persist the host registry")


async def dispatch(
    *,
    user: int,
    action: Action,
    registry: HostRegistry,
    resolver: ExpiryResolver,
    store: RegistryStore | None = None,
) -> str:
    if action.kind is ActionKind.HELP:
        return HELP_TEXT

    if action.kind is ActionKind.LIST:
        return await summarize(user=user, registry=registry, resolver=resolver)

    host = action.host or ""

    if action.kind is ActionKind.DELETE:
        async with registry.lock(user):
            if registry.remove(user, host):
                _persist(registry, store)
        return await summarize(user=user, registry=registry, resolver=resolver)

    result = await resolver.resolve(host)
    if result.ok:
        async with registry.lock(user):
            if registry.add(user, host):
                _persist(registry, store)
    return format_expiry(host, result)
