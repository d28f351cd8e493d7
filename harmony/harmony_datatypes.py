"""
Defines the core data types for the harmony runtime.

This module provides the storage-level building blocks that virtual
objects are layered on: the `Undefined` sentinel, property descriptors,
the descriptor store, the hook table, and the error types raised by
the trap machinery.
"""

import collections.abc
import types
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional


# =================================================================
# Errors
# =================================================================

class HarmonyError(Exception):
    """Base class for errors raised by the harmony runtime."""
    pass


class NotCallableError(HarmonyError, TypeError):
    """Raised when something that is not callable is invoked."""
    pass


class WriteRejected(HarmonyError, TypeError):
    """Raised in strict compositions when a write or delete is refused."""
    def __init__(self, operation: str, key: Any):
        super().__init__(f"cannot {operation} property {key!r}")
        self.operation = operation
        self.key = key


class UnfixableError(HarmonyError, TypeError):
    """Raised when a virtual object cannot be fixed (its store is not frozen)."""
    pass


class PropertyNotFound(KeyError):
    def __init__(self, key: Any):
        super().__init__(key)
        self.key = key


class NamingConflictWarning(UserWarning):
    """Emitted in traits mode when a mixed-in name is already resolvable."""
    pass


# =================================================================
# Sentinels and markers
# =================================================================

class _UndefinedType:
    """The absent value. There is exactly one instance, `Undefined`."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "Undefined"

    def __reduce__(self):
        return "Undefined"

Undefined = _UndefinedType()


def method(func):
    """A decorator marking a stored function to be bound to its receiver on read."""
    func._is_harmony_method = True
    return func


def is_method(value: Any) -> bool:
    # Only plain functions can carry the marker; checking anything else
    # with getattr could fire traps on a virtual object.
    return isinstance(value, types.FunctionType) and getattr(value, "_is_harmony_method", False) is True


def bind(value: Any, receiver: Any) -> Any:
    if receiver is not None and is_method(value):
        return types.MethodType(value, receiver)
    return value


# =================================================================
# Descriptors
# =================================================================

class Descriptor:
    """A property descriptor: either a data value or a getter/setter pair.

    Accessor descriptors ignore `writable`. Getters are called with the
    receiver; setters with the receiver and the new value.
    """
    __slots__ = ("value", "getter", "setter", "writable", "enumerable", "configurable")

    FIELDS = ("value", "get", "set", "writable", "enumerable", "configurable")

    def __init__(self, value: Any = Undefined, *,
                 getter: Optional[Callable] = None,
                 setter: Optional[Callable] = None,
                 writable: bool = False,
                 enumerable: bool = False,
                 configurable: bool = False):
        if (getter is not None or setter is not None) and value is not Undefined:
            raise TypeError("a descriptor cannot have both a value and an accessor")
        self.value = value
        self.getter = getter
        self.setter = setter
        self.writable = bool(writable)
        self.enumerable = bool(enumerable)
        self.configurable = bool(configurable)

    @classmethod
    def data(cls, value: Any) -> 'Descriptor':
        """The descriptor ordinary assignment creates."""
        return cls(value, writable=True, enumerable=True, configurable=True)

    @classmethod
    def from_mapping(cls, attrs: Mapping[str, Any]) -> 'Descriptor':
        unknown = set(attrs) - set(cls.FIELDS)
        if unknown:
            raise ValueError(f"unknown descriptor fields: {sorted(unknown)}")
        return cls(
            attrs.get("value", Undefined),
            getter=attrs.get("get"),
            setter=attrs.get("set"),
            writable=attrs.get("writable", False),
            enumerable=attrs.get("enumerable", False),
            configurable=attrs.get("configurable", False),
        )

    @classmethod
    def coerce(cls, attrs: Any) -> 'Descriptor':
        if isinstance(attrs, Descriptor):
            return attrs
        if isinstance(attrs, collections.abc.Mapping):
            return cls.from_mapping(attrs)
        raise TypeError(f"property descriptor must be a mapping, not {type(attrs).__name__}")

    @property
    def is_accessor(self) -> bool:
        return self.getter is not None or self.setter is not None

    def copy(self, **changes) -> 'Descriptor':
        fields = {
            "getter": self.getter,
            "setter": self.setter,
            "writable": self.writable,
            "enumerable": self.enumerable,
            "configurable": self.configurable,
        }
        fields.update(changes)
        value = fields.pop("value", self.value)
        return Descriptor(value, **fields)

    def read(self, receiver: Any) -> Any:
        """Produces the value this descriptor yields for a read by `receiver`."""
        if self.is_accessor:
            if self.getter is None:
                return Undefined
            return self.getter(receiver)
        return bind(self.value, receiver)

    def to_mapping(self) -> Dict[str, Any]:
        if self.is_accessor:
            out = {"get": self.getter, "set": self.setter}
        else:
            out = {"value": self.value, "writable": self.writable}
        out["enumerable"] = self.enumerable
        out["configurable"] = self.configurable
        return out

    def __eq__(self, other):
        if not isinstance(other, Descriptor):
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self.__slots__)

    def __repr__(self) -> str:
        from harmony.harmony_printer import Printer
        return Printer().pformat(self)


# =================================================================
# Property store
# =================================================================

class PropertyStore:
    """Key to descriptor storage with an ancestor (prototype) reference.

    Lookup walks own descriptors first and then the ancestor, which may be
    another store, a virtual object, or a plain mapping. Reads of the
    ancestor go through the generic reflection operations so that a
    virtual ancestor's traps run.
    """
    def __init__(self, descriptors: Optional[Mapping[Any, Any]] = None, proto: Any = None):
        self.own: Dict[Any, Descriptor] = {}
        self.proto = proto
        self.extensible = True
        for key, attrs in (descriptors or {}).items():
            self.own[key] = Descriptor.coerce(attrs)

    @classmethod
    def from_values(cls, values: Mapping[Any, Any], proto: Any = None) -> 'PropertyStore':
        return cls({k: Descriptor.data(v) for k, v in values.items()}, proto=proto)

    # --- descriptor access -----------------------------------------

    def get_own_descriptor(self, key: Any) -> Optional[Descriptor]:
        return self.own.get(key)

    def get_descriptor(self, key: Any) -> Optional[Descriptor]:
        """Finds the descriptor for key on this store or its ancestors."""
        desc = self.own.get(key)
        if desc is not None or self.proto is None:
            return desc
        from harmony.harmony_handler import get_property_descriptor  # local import to avoid cycle
        return get_property_descriptor(self.proto, key)

    def define(self, key: Any, desc: Any) -> bool:
        desc = Descriptor.coerce(desc)
        current = self.own.get(key)
        if current is None:
            if not self.extensible:
                return False
            self.own[key] = desc.copy()
            return True
        if not current.configurable:
            # Only a writable data property may still change, and only its
            # value or a writable -> read-only transition.
            if desc.configurable or desc.is_accessor or current.is_accessor:
                return False
            if desc.enumerable != current.enumerable:
                return False
            if not current.writable and (desc.writable or desc.value != current.value):
                return False
        self.own[key] = desc.copy()
        return True

    # --- member operations ------------------------------------------

    def has_own(self, key: Any) -> bool:
        return key in self.own

    def has(self, key: Any) -> bool:
        if key in self.own:
            return True
        if self.proto is None:
            return False
        from harmony.harmony_handler import has_property
        return has_property(self.proto, key)

    def get(self, key: Any, receiver: Any = None) -> Any:
        if receiver is None:
            receiver = self
        desc = self.own.get(key)
        if desc is not None:
            return desc.read(receiver)
        if self.proto is None:
            return Undefined
        from harmony.harmony_handler import get_property
        return get_property(self.proto, key, receiver)

    def set(self, key: Any, value: Any, receiver: Any = None) -> bool:
        """Assigns key; returns False instead of raising when the write is refused."""
        if receiver is None:
            receiver = self
        desc = self.own.get(key)
        inherited = False
        if desc is None and self.proto is not None:
            desc = self.get_descriptor(key)
            inherited = True
        if desc is not None:
            if desc.is_accessor:
                if desc.setter is None:
                    return False
                desc.setter(receiver, value)
                return True
            if not desc.writable:
                return False
            if not inherited:
                desc.value = value
                return True
        if not self.extensible:
            return False
        self.own[key] = Descriptor.data(value)
        return True

    def delete(self, key: Any) -> bool:
        desc = self.own.get(key)
        if desc is None:
            return True
        if not desc.configurable:
            return False
        del self.own[key]
        return True

    # --- enumeration -------------------------------------------------

    def own_keys(self) -> List[Any]:
        return list(self.own.keys())

    def keys(self) -> List[Any]:
        """Own enumerable keys."""
        return [k for k, d in self.own.items() if d.enumerable]

    def property_names(self) -> List[Any]:
        """Own and inherited keys, each listed once, nearest first."""
        names = self.own_keys()
        if self.proto is not None:
            from harmony.harmony_handler import property_names
            seen = set(names)
            names.extend(k for k in property_names(self.proto) if k not in seen)
        return names

    def enumerate(self) -> List[Any]:
        """Enumerable keys, own first, then inherited ones not shadowed."""
        names = self.keys()
        if self.proto is not None:
            from harmony.harmony_handler import enumerate_keys
            seen = set(self.own)
            names.extend(k for k in enumerate_keys(self.proto) if k not in seen)
        return names

    # --- integrity ---------------------------------------------------

    def prevent_extensions(self):
        self.extensible = False

    def freeze(self) -> 'PropertyStore':
        for desc in self.own.values():
            desc.configurable = False
            if not desc.is_accessor:
                desc.writable = False
        self.extensible = False
        return self

    def is_frozen(self) -> bool:
        if self.extensible:
            return False
        for desc in self.own.values():
            if desc.configurable:
                return False
            if not desc.is_accessor and desc.writable:
                return False
        return True

    def __repr__(self) -> str:
        from harmony.harmony_printer import Printer
        return Printer().pformat(self)


# =================================================================
# Hook table (meta level)
# =================================================================

HOOK_NAMES = ("get", "set", "delete", "no_such_property", "no_such_method", "call", "construct")

# The spelling hook-augmented objects use when hooks are assigned as members.
MAGIC_NAMES: Dict[str, str] = {f"__{name}__": name for name in HOOK_NAMES}


class HookTable(collections.abc.MutableMapping):
    """Hook name to function, restricted to the recognized hook names.

    Kept apart from the data keyspace: a data member named like a hook
    never shadows or alters the hook.
    """
    def __init__(self, hooks: Optional[Mapping[str, Callable]] = None):
        self._hooks: Dict[str, Callable] = {}
        if hooks:
            self.update(hooks)

    def _normalize_key(self, name: str) -> str:
        name = MAGIC_NAMES.get(name, name)
        if name not in HOOK_NAMES:
            raise KeyError(f"unknown hook {name!r}")
        return name

    def __getitem__(self, name: str) -> Callable:
        return self._hooks[self._normalize_key(name)]

    def __setitem__(self, name: str, hook: Callable):
        self._hooks[self._normalize_key(name)] = hook

    def __delitem__(self, name: str):
        del self._hooks[self._normalize_key(name)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def get(self, name: str, default: Any = None) -> Any:
        """Gets a hook, returning a default for absent or unrecognized names."""
        try:
            return self[name]
        except KeyError:
            return default

    def replace(self, hooks: Mapping[str, Callable]):
        """Swaps the whole table in place so existing references see the change."""
        normalized = {self._normalize_key(k): v for k, v in hooks.items()}
        self._hooks.clear()
        self._hooks.update(normalized)

    def __repr__(self) -> str:
        names = ', '.join(self._hooks.keys())
        return f"<HookTable hooks=[{names}]>"
