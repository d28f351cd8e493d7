"""
Hook-augmented objects.

`new_hooked` wraps a target so that member reads, writes and deletions
are observed by hooks, missing members are resolved through the shared
resolver, and the object keeps a live count of its own data members.

Hooks are assigned like ordinary members under their magic names
(`obj.__get__ = fn`), but they are stored in the object's hook table,
not in its data: they never show up in own-key listings or the count.
"""

import logging
from typing import Any, Dict, Optional

from harmony.harmony_datatypes import (
    HookTable, MAGIC_NAMES, NotCallableError, Undefined
)
from harmony.harmony_handler import Handler, VirtualObject, as_store, meta_of
from harmony.harmony_missing import MissingMemberResolver, shared_resolver
from harmony.harmony_mixin import install_delegation_traps

logger = logging.getLogger(__name__)


def install_hook_traps(handler: Handler, meta: Dict[str, Any],
                       resolver: MissingMemberResolver, *, route_magic: bool) -> Handler:
    """Layers hook dispatch and count bookkeeping over a handler's current traps.

    With `route_magic`, writes, reads and deletes of magic names act on the
    hook table instead of the store. Count updates happen only after the
    store mutation succeeded, so a raising hook leaves the count untouched.
    """
    store = handler.store
    hooks: HookTable = meta["hooks"]
    # Wraps whatever get/has are installed now, so delegated members stay present.
    read = resolver.wrap(handler["get"], handler["has"], hooks)

    def observe(hook_name, *args):
        hook = hooks.get(hook_name)
        if hook is not None:
            hook(*args)

    def is_magic(key):
        return route_magic and isinstance(key, str) and key in MAGIC_NAMES

    def get(receiver, key):
        observe("get", key)
        if is_magic(key):
            return hooks.get(key, Undefined)
        return read(receiver, key)

    def set(receiver, key, value):
        observe("set", key, value)
        if is_magic(key):
            hooks[key] = value
            return True
        existed = store.has_own(key)
        ok = store.set(key, value, receiver)
        # An inherited accessor absorbs the write without creating a key.
        if ok and not existed and store.has_own(key):
            meta["count"] += 1
        return ok

    def delete(key):
        observe("delete", key)
        if is_magic(key):
            hooks.pop(key, None)
            return True
        existed = store.has_own(key)
        ok = store.delete(key)
        if ok and existed:
            meta["count"] -= 1
        return ok

    def define_property(key, desc):
        if is_magic(key):
            hooks[key] = desc.value
            return True
        existed = store.has_own(key)
        ok = store.define(key, desc)
        if ok and not existed:
            meta["count"] += 1
        return ok

    def call(receiver, args, kwargs):
        hook = hooks.get("call") or hooks.get("construct")
        if hook is None:
            raise NotCallableError("object is not callable")
        return hook(*args, **kwargs)

    def construct(args, kwargs):
        hook = hooks.get("construct") or hooks.get("call")
        if hook is None:
            raise NotCallableError("object is not a constructor")
        return hook(*args, **kwargs)

    handler["get"] = get
    handler["set"] = set
    handler["delete"] = delete
    handler["define_property"] = define_property
    handler["call"] = call
    handler["construct"] = construct
    return handler


def new_hooked(target: Any = None, *, proto: Any = None, delegating: bool = False) -> VirtualObject:
    """
    Creates a hook-augmented virtual object.

    Magic names present in the initial target (`__get__`, `__set__`,
    `__delete__`, `__no_such_property__`, `__no_such_method__`, `__call__`,
    `__construct__`) are moved into the hook table; everything else stays
    as data and seeds the live count. With `delegating`, the object also
    carries a delegation chain and accepts `mix`; mixed-in members count as
    present for missing-member resolution.
    """
    store = as_store(target, proto)
    hooks = HookTable()
    for key in store.own_keys():
        if isinstance(key, str) and key in MAGIC_NAMES:
            hooks[key] = store.own.pop(key).value
    meta = {
        "hooks": hooks,
        "count": len(store.own),
        "resolver": shared_resolver,
    }
    handler = Handler(store)
    if delegating:
        meta["mixins"] = []
        install_delegation_traps(handler, meta["mixins"])
    handler = install_hook_traps(handler, meta, shared_resolver, route_magic=True)
    logger.debug("hooked object created with hooks=%s count=%d", list(hooks), meta["count"])
    return VirtualObject(handler, meta)


def count(obj: VirtualObject) -> int:
    """Returns the live count of own data members of a hook-augmented object."""
    meta = meta_of(obj)
    if "count" not in meta:
        raise TypeError("object does not keep a member count")
    return meta["count"]


def hooks_of(obj: VirtualObject) -> HookTable:
    """Returns the live hook table; assigning into it takes effect immediately."""
    meta = meta_of(obj)
    hooks: Optional[HookTable] = meta.get("hooks")
    if hooks is None:
        raise TypeError("object has no hook table")
    return hooks


__all__ = [
    "install_hook_traps",
    "new_hooked",
    "count",
    "hooks_of",
]
