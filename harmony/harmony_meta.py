"""
Stratified objects: a data level and a separate meta level.

    foo = new_stratified(
        data={"x": {"value": 10, "writable": True}},   # normal level, descriptors
        meta={"no_such_method": handle_missing},        # meta level, hooks
        proto=None,                                     # ancestor
    )

The meta level observes the data level but is never part of it. Writing
`foo.no_such_method = 20` creates a data member of that name and leaves
the hook alone; hooks change only through `hooks_of(foo)` or `set_meta`.
Each stratified object has its own resolver, so its activator is reused
across misses on that object only.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from harmony.harmony_datatypes import HookTable, PropertyStore
from harmony.harmony_handler import Handler, VirtualObject, meta_of
from harmony.harmony_hooks import hooks_of, install_hook_traps
from harmony.harmony_missing import MissingMemberResolver

logger = logging.getLogger(__name__)


def new_stratified(data: Optional[Mapping[Any, Any]] = None,
                   meta: Optional[Mapping[str, Callable]] = None,
                   proto: Any = None) -> VirtualObject:
    """Builds a stratified virtual object from a descriptor map, a hook table and an ancestor."""
    store = PropertyStore(data, proto=proto)
    resolver = MissingMemberResolver()
    record = {
        "hooks": HookTable(meta),
        "count": len(store.own),
        "resolver": resolver,
    }
    handler = install_hook_traps(Handler(store), record, resolver, route_magic=False)
    logger.debug("stratified object created with hooks=%s", list(record["hooks"]))
    return VirtualObject(handler, record)


def set_meta(obj: VirtualObject, meta: Mapping[str, Callable]) -> VirtualObject:
    """Replaces obj's whole hook table; later operations use the new hooks."""
    hooks_of(obj).replace(meta)
    return obj


def resolver_of(obj: VirtualObject) -> MissingMemberResolver:
    resolver = meta_of(obj).get("resolver")
    if resolver is None:
        raise TypeError("object does not resolve missing members")
    return resolver


__all__ = [
    "new_stratified",
    "set_meta",
    "resolver_of",
]
