"""
The interception layer: trap tables, virtual objects, and the generic
reflection operations that dispatch through them.

A virtual object owns a `Handler`, a mapping from trap name to trap
function. Every member operation on the object (attribute or item access,
assignment, deletion, membership, iteration, call) is routed to the
handler; the handler's default traps pass straight through to the
object's `PropertyStore`.
"""

import collections.abc
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from harmony.harmony_config import current_config
from harmony.harmony_datatypes import (
    Descriptor, PropertyStore, Undefined, NotCallableError, WriteRejected,
    UnfixableError, PropertyNotFound, bind
)

logger = logging.getLogger(__name__)


TRAP_NAMES = (
    "get", "set", "delete",
    "define_property",
    "get_own_property_descriptor", "get_property_descriptor",
    "get_own_property_names", "get_property_names",
    "has", "has_own",
    "enumerate", "keys",
    "fix",
    "call", "construct",
)


def noop_traps(store: PropertyStore) -> Dict[str, Callable]:
    """Builds the pass-through trap set for a store."""

    def get_own_property_descriptor(key):
        desc = store.get_own_descriptor(key)
        # A trapping object's properties must always be reported configurable,
        # otherwise a later fix would be rejected.
        return None if desc is None else desc.copy(configurable=True)

    def get_property_descriptor(key):
        desc = store.get_descriptor(key)
        return None if desc is None else desc.copy(configurable=True)

    def get_own_property_names():
        return store.own_keys()

    def get_property_names():
        return store.property_names()

    def define_property(key, desc):
        return store.define(key, desc)

    def delete(key):
        return store.delete(key)

    def fix():
        if store.is_frozen():
            return {key: store.get_own_descriptor(key).copy() for key in store.own_keys()}
        # As long as the store is not frozen the object refuses to be fixed.
        return None

    def has(key):
        return store.has(key)

    def has_own(key):
        return store.has_own(key)

    def get(receiver, key):
        return store.get(key, receiver)

    def set(receiver, key, value):
        return store.set(key, value, receiver)

    def enumerate():
        return store.enumerate()

    def keys():
        return store.keys()

    def call(receiver, args, kwargs):
        raise NotCallableError("object is not callable")

    def construct(args, kwargs):
        raise NotCallableError("object is not a constructor")

    return {
        "get": get,
        "set": set,
        "delete": delete,
        "define_property": define_property,
        "get_own_property_descriptor": get_own_property_descriptor,
        "get_property_descriptor": get_property_descriptor,
        "get_own_property_names": get_own_property_names,
        "get_property_names": get_property_names,
        "has": has,
        "has_own": has_own,
        "enumerate": enumerate,
        "keys": keys,
        "fix": fix,
        "call": call,
        "construct": construct,
    }


class Handler(collections.abc.MutableMapping):
    """A total trap table over a store.

    Overrides are installed by item assignment. Deleting an override
    restores the pass-through trap, so every trap name always resolves
    to a function.
    """
    def __init__(self, store: PropertyStore, traps: Optional[Mapping[str, Callable]] = None):
        self.store = store
        self._defaults = noop_traps(store)
        self._traps: Dict[str, Callable] = {}
        if traps:
            self.update(traps)

    def _check(self, name: str):
        if name not in self._defaults:
            raise KeyError(f"unknown trap {name!r}")

    def __getitem__(self, name: str) -> Callable:
        self._check(name)
        trap = self._traps.get(name)
        return trap if trap is not None else self._defaults[name]

    def __setitem__(self, name: str, trap: Callable):
        self._check(name)
        self._traps[name] = trap

    def __delitem__(self, name: str):
        self._check(name)
        self._traps.pop(name, None)

    def __iter__(self):
        return iter(TRAP_NAMES)

    def __len__(self) -> int:
        return len(TRAP_NAMES)

    def default(self, name: str) -> Callable:
        """Returns the pass-through trap, for overrides that call through to it."""
        self._check(name)
        return self._defaults[name]

    def overridden(self) -> List[str]:
        return list(self._traps.keys())

    def dispatch(self, name: str, *args) -> Any:
        return self[name](*args)

    def __repr__(self) -> str:
        return f"<Handler overrides=[{', '.join(self._traps.keys())}]>"


class VirtualObject:
    """An object whose member operations are routed through a trap handler.

    Bookkeeping (hook tables, counts, delegation chains) lives in the
    per-object `_meta` slot, never in the data keyspace. Every attribute
    read that is not a dunder goes to the get trap, including the slot
    names, so `obj._meta` is an ordinary data member. Use the module
    level functions (`get_property`, `set_property`, ...) for operations
    that need a return value instead of Python's attribute protocol.
    """
    __slots__ = ("_handler", "_meta", "__weakref__")

    def __init__(self, handler: Handler, meta: Optional[Dict[str, Any]] = None):
        object.__setattr__(self, "_handler", handler)
        object.__setattr__(self, "_meta", meta if meta is not None else {})

    def __getattribute__(self, name: str):
        # Dunder lookups (copy, pickle, pytest probes) never reach the traps.
        if name.startswith("__") and name.endswith("__"):
            return object.__getattribute__(self, name)
        value = get_property(self, name)
        if value is Undefined:
            raise AttributeError(name)
        return value

    def __setattr__(self, name: str, value: Any):
        set_property(self, name, value)

    def __delattr__(self, name: str):
        delete_property(self, name)

    def __getitem__(self, key: Any) -> Any:
        value = get_property(self, key)
        if value is Undefined:
            raise PropertyNotFound(key)
        return value

    def __setitem__(self, key: Any, value: Any):
        set_property(self, key, value)

    def __delitem__(self, key: Any):
        delete_property(self, key)

    def __contains__(self, key: Any) -> bool:
        return has_property(self, key)

    def __iter__(self):
        return iter(enumerate_keys(self))

    def __call__(self, *args, **kwargs):
        return handler_of(self).dispatch("call", self, args, kwargs)

    def __dir__(self):
        return sorted(k for k in property_names(self) if isinstance(k, str))

    def __repr__(self) -> str:
        from harmony.harmony_printer import Printer
        return Printer().pformat(self)


def handler_of(obj: VirtualObject) -> Handler:
    if not isinstance(obj, VirtualObject):
        raise TypeError(f"expected a virtual object, not {type(obj).__name__}")
    return object.__getattribute__(obj, "_handler")


def meta_of(obj: VirtualObject) -> Dict[str, Any]:
    if not isinstance(obj, VirtualObject):
        raise TypeError(f"expected a virtual object, not {type(obj).__name__}")
    return object.__getattribute__(obj, "_meta")


def as_store(target: Any = None, proto: Any = None) -> PropertyStore:
    if target is None:
        return PropertyStore(proto=proto)
    if isinstance(target, PropertyStore):
        if proto is not None:
            target.proto = proto
        return target
    if isinstance(target, collections.abc.Mapping):
        return PropertyStore.from_values(target, proto=proto)
    raise TypeError(f"cannot build a property store from {type(target).__name__}")


def new_object(target: Any = None, traps: Optional[Mapping[str, Callable]] = None, *,
               proto: Any = None) -> VirtualObject:
    """Wraps target (None, a PropertyStore, or a mapping of values) in a virtual object."""
    return VirtualObject(Handler(as_store(target, proto), traps))


# =================================================================
# Generic reflection operations
# =================================================================

def _reject(operation: str, key: Any) -> bool:
    logger.debug("%s of %r refused", operation, key)
    if current_config().strict:
        raise WriteRejected(operation, key)
    return False


def get_property(obj: Any, key: Any, receiver: Any = None) -> Any:
    """Reads key from obj; returns Undefined when it is absent."""
    if isinstance(obj, VirtualObject):
        return handler_of(obj).dispatch("get", obj if receiver is None else receiver, key)
    if isinstance(obj, PropertyStore):
        return obj.get(key, receiver)
    if isinstance(obj, collections.abc.Mapping):
        return bind(obj[key], receiver) if key in obj else Undefined
    raise TypeError(f"{type(obj).__name__} does not support property access")


def set_property(obj: Any, key: Any, value: Any, receiver: Any = None) -> bool:
    """Assigns key on obj; a refused write returns False, or raises in strict mode."""
    if isinstance(obj, VirtualObject):
        ok = handler_of(obj).dispatch("set", obj if receiver is None else receiver, key, value)
    elif isinstance(obj, PropertyStore):
        ok = obj.set(key, value, receiver)
    elif isinstance(obj, collections.abc.MutableMapping):
        obj[key] = value
        ok = True
    else:
        raise TypeError(f"{type(obj).__name__} does not support property assignment")
    if not ok:
        return _reject("set", key)
    return True


def delete_property(obj: Any, key: Any) -> bool:
    if isinstance(obj, VirtualObject):
        ok = handler_of(obj).dispatch("delete", key)
    elif isinstance(obj, PropertyStore):
        ok = obj.delete(key)
    elif isinstance(obj, collections.abc.MutableMapping):
        obj.pop(key, None)
        ok = True
    else:
        raise TypeError(f"{type(obj).__name__} does not support property deletion")
    if not ok:
        return _reject("delete", key)
    return True


def define_property(obj: Any, key: Any, desc: Any) -> bool:
    desc = Descriptor.coerce(desc)
    if isinstance(obj, VirtualObject):
        ok = handler_of(obj).dispatch("define_property", key, desc)
    elif isinstance(obj, PropertyStore):
        ok = obj.define(key, desc)
    else:
        raise TypeError(f"{type(obj).__name__} does not support property definition")
    if not ok:
        return _reject("define", key)
    return True


def has_property(obj: Any, key: Any) -> bool:
    if isinstance(obj, VirtualObject):
        return bool(handler_of(obj).dispatch("has", key))
    if isinstance(obj, PropertyStore):
        return obj.has(key)
    if isinstance(obj, collections.abc.Mapping):
        return key in obj
    return False


def has_own_property(obj: Any, key: Any) -> bool:
    if isinstance(obj, VirtualObject):
        return bool(handler_of(obj).dispatch("has_own", key))
    if isinstance(obj, PropertyStore):
        return obj.has_own(key)
    if isinstance(obj, collections.abc.Mapping):
        return key in obj
    return False


def get_own_property_descriptor(obj: Any, key: Any) -> Optional[Descriptor]:
    if isinstance(obj, VirtualObject):
        return handler_of(obj).dispatch("get_own_property_descriptor", key)
    if isinstance(obj, PropertyStore):
        return obj.get_own_descriptor(key)
    if isinstance(obj, collections.abc.Mapping):
        return Descriptor.data(obj[key]) if key in obj else None
    return None


def get_property_descriptor(obj: Any, key: Any) -> Optional[Descriptor]:
    if isinstance(obj, VirtualObject):
        return handler_of(obj).dispatch("get_property_descriptor", key)
    if isinstance(obj, PropertyStore):
        return obj.get_descriptor(key)
    return get_own_property_descriptor(obj, key)


def own_keys(obj: Any) -> List[Any]:
    if isinstance(obj, VirtualObject):
        return list(handler_of(obj).dispatch("get_own_property_names"))
    if isinstance(obj, PropertyStore):
        return obj.own_keys()
    if isinstance(obj, collections.abc.Mapping):
        return list(obj.keys())
    return []


def property_names(obj: Any) -> List[Any]:
    if isinstance(obj, VirtualObject):
        return list(handler_of(obj).dispatch("get_property_names"))
    if isinstance(obj, PropertyStore):
        return obj.property_names()
    return own_keys(obj)


def enumerate_keys(obj: Any) -> List[Any]:
    """Enumerable keys, own and inherited (the for-in view)."""
    if isinstance(obj, VirtualObject):
        return list(handler_of(obj).dispatch("enumerate"))
    if isinstance(obj, PropertyStore):
        return obj.enumerate()
    return own_keys(obj)


def keys(obj: Any) -> List[Any]:
    """Own enumerable keys."""
    if isinstance(obj, VirtualObject):
        return list(handler_of(obj).dispatch("keys"))
    if isinstance(obj, PropertyStore):
        return obj.keys()
    return own_keys(obj)


def get_prototype(obj: Any) -> Any:
    if isinstance(obj, VirtualObject):
        return handler_of(obj).store.proto
    if isinstance(obj, PropertyStore):
        return obj.proto
    return None


# =================================================================
# Integrity, call and construct
# =================================================================

def fix(obj: VirtualObject) -> VirtualObject:
    """Turns obj into a plain frozen object built from its fix trap.

    Raises UnfixableError when the trap reports it cannot be fixed.
    """
    handler = handler_of(obj)
    descriptors = handler.dispatch("fix")
    if descriptors is None:
        raise UnfixableError("virtual object cannot be fixed: its store is not frozen")
    store = PropertyStore(descriptors, proto=handler.store.proto).freeze()
    object.__setattr__(obj, "_handler", Handler(store))
    meta_of(obj)["fixed"] = True
    logger.debug("fixed virtual object with %d properties", len(descriptors))
    return obj


def freeze(obj: Any) -> Any:
    if isinstance(obj, PropertyStore):
        return obj.freeze()
    return fix(obj)


def is_fixed(obj: VirtualObject) -> bool:
    return bool(meta_of(obj).get("fixed", False))


def call_method(obj: Any, name: Any, *args, **kwargs) -> Any:
    """Reads name from obj and calls it.

    An existing member that is not callable is a caller error; a missing
    member resolves to whatever the get path yields (an activator when a
    missing-method hook is registered).
    """
    member = get_property(obj, name)
    if not callable(member):
        raise NotCallableError(f"{name!r} is not callable")
    return member(*args, **kwargs)


def construct(obj: Any, *args, **kwargs) -> Any:
    if isinstance(obj, VirtualObject):
        return handler_of(obj).dispatch("construct", args, kwargs)
    if not callable(obj):
        raise NotCallableError(f"{type(obj).__name__} is not a constructor")
    return obj(*args, **kwargs)
