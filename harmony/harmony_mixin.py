"""
Delegation-based mixins.

A delegating object carries a chain of mixed-in modules in its meta
record. Member lookup walks own storage, then the chain from the most
recently mixed module to the oldest, then the ancestor chain, so the
last module mixed in shadows earlier ones. Modules are shared
references: changing a module is visible to every host it is mixed into.
"""

import logging
import warnings
from typing import Any, List, Optional

from harmony.harmony_config import current_config
from harmony.harmony_datatypes import NamingConflictWarning
from harmony.harmony_handler import (
    Handler, VirtualObject, as_store, meta_of,
    enumerate_keys, get_property, has_property, property_names
)

logger = logging.getLogger(__name__)


def install_delegation_traps(handler: Handler, chain: List[Any]) -> Handler:
    store = handler.store

    def get(receiver, key):
        if store.has_own(key):
            return store.get(key, receiver)
        # Newest module first; each module resolves through its own chain.
        for module in reversed(chain):
            if has_property(module, key):
                return get_property(module, key, receiver)
        return store.get(key, receiver)

    def has(key):
        if store.has(key):
            return True
        return any(has_property(module, key) for module in chain)

    def merge(*groups):
        names, seen = [], set()
        for group in groups:
            for name in group:
                if name not in seen:
                    seen.add(name)
                    names.append(name)
        return names

    def enumerate():
        return merge(store.keys(), *(enumerate_keys(m) for m in reversed(chain)), store.enumerate())

    def get_property_names():
        return merge(store.own_keys(), *(property_names(m) for m in reversed(chain)), store.property_names())

    handler["get"] = get
    handler["has"] = has
    handler["enumerate"] = enumerate
    handler["get_property_names"] = get_property_names
    return handler


def new_delegating(target: Any = None, *, proto: Any = None) -> VirtualObject:
    """Creates a virtual object with an empty delegation chain."""
    chain: List[Any] = []
    handler = install_delegation_traps(Handler(as_store(target, proto)), chain)
    return VirtualObject(handler, {"mixins": chain})


def _chain_of(host: Any) -> List[Any]:
    chain = meta_of(host).get("mixins") if isinstance(host, VirtualObject) else None
    if chain is None:
        raise TypeError("host does not support delegation; create it with new_delegating()")
    return chain


def mix(module: Any, host: VirtualObject, *, traits_mode: Optional[bool] = None) -> VirtualObject:
    """
    Appends module to host's delegation chain and returns host.

    In traits mode every module member already resolvable on host (own,
    delegated or inherited) emits a NamingConflictWarning; the mix
    still happens. `traits_mode` defaults to the active composition config.

    Python's default warning filter shows a given message from a given call
    site once, so a repeated conflict can be silent there; each conflict is
    also logged at WARNING level.
    """
    chain = _chain_of(host)
    if traits_mode is None:
        traits_mode = current_config().traits_mode
    if traits_mode:
        for name in enumerate_keys(module):
            if has_property(host, name):
                logger.warning("naming conflict while mixing: %r is already in the object.", name)
                warnings.warn(f"{name!r} is already in the object.", NamingConflictWarning, stacklevel=2)
    chain.append(module)
    logger.debug("mixed module into host, chain length %d", len(chain))
    return host


def mixins_of(host: VirtualObject) -> List[Any]:
    """Returns a snapshot of host's delegation chain, oldest first."""
    return list(_chain_of(host))


__all__ = [
    "install_delegation_traps",
    "new_delegating",
    "mix",
    "mixins_of",
]
