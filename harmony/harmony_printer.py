"""
A pretty-printer for harmony objects.

Virtual objects are formatted from their own property descriptors, not
through the get trap, so printing never fires member-read or
missing-member hooks.
"""
import collections.abc

from harmony.harmony_datatypes import Descriptor, PropertyStore, HookTable, Undefined
from harmony.harmony_handler import (
    VirtualObject, get_own_property_descriptor, handler_of, meta_of, own_keys
)
from harmony.harmony_missing import Activator


class Printer:
    """Formats harmony objects into short, readable strings."""

    def __init__(self):
        self._handlers = self._create_handlers()
        self._active = set()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        if obj is Undefined: return self._pformat_undefined

        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, VirtualObject): return self._pformat_virtual
        if isinstance(obj, collections.abc.Mapping): return self._pformat_dict
        if isinstance(obj, (list, tuple)): return self._pformat_sequence
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_primitive,
            bool: self._pformat_primitive,
            type(None): self._pformat_primitive,
            VirtualObject: self._pformat_virtual,
            Descriptor: self._pformat_descriptor,
            PropertyStore: self._pformat_store,
            HookTable: lambda o, l: repr(o),
            Activator: self._pformat_activator,
            dict: self._pformat_dict,
            list: self._pformat_sequence,
            tuple: self._pformat_sequence,
        }

    def _pformat_primitive(self, obj, level):
        return repr(obj)

    def _pformat_str(self, obj, level):
        return repr(obj)

    def _pformat_undefined(self, obj, level):
        return "Undefined"

    def _pformat_key(self, key):
        return key if isinstance(key, str) and key.isidentifier() else repr(key)

    def _pformat_slot(self, desc, level):
        if desc is None:
            return "Undefined"
        if desc.is_accessor:
            return "<accessor>"
        return self.pformat(desc.value, level + 1)

    def _pformat_members(self, pairs, level):
        if not pairs:
            return "{}"
        return "{" + ", ".join(f"{self._pformat_key(k)}: {v}" for k, v in pairs) + "}"

    def _pformat_virtual(self, obj, level):
        # Cycles through shared modules are common; print a back reference.
        if id(obj) in self._active:
            return "<VirtualObject ...>"
        self._active.add(id(obj))
        try:
            pairs = [
                (key, self._pformat_slot(get_own_property_descriptor(obj, key), level))
                for key in own_keys(obj)
            ]
        finally:
            self._active.discard(id(obj))
        meta = meta_of(obj)
        extras = []
        if meta.get("mixins"):
            extras.append(f"mixins={len(meta['mixins'])}")
        if meta.get("hooks"):
            extras.append(f"hooks=[{', '.join(meta['hooks'])}]")
        if meta.get("fixed"):
            extras.append("fixed")
        overrides = handler_of(obj).overridden()
        if overrides and not meta:
            extras.append(f"traps=[{', '.join(overrides)}]")
        suffix = (" " + " ".join(extras)) if extras else ""
        return f"<VirtualObject {self._pformat_members(pairs, level)}{suffix}>"

    def _pformat_store(self, obj, level):
        pairs = [(key, self._pformat_slot(obj.get_own_descriptor(key), level)) for key in obj.own_keys()]
        proto = " proto" if obj.proto is not None else ""
        return f"<PropertyStore {self._pformat_members(pairs, level)}{proto}>"

    def _pformat_descriptor(self, obj, level):
        if obj.is_accessor:
            head = f"get={obj.getter!r}, set={obj.setter!r}"
        else:
            head = f"value={self.pformat(obj.value, level + 1)}, writable={obj.writable}"
        return f"Descriptor({head}, enumerable={obj.enumerable}, configurable={obj.configurable})"

    def _pformat_activator(self, obj, level):
        return f"<Activator {obj.captured_name!r}>"

    def _pformat_dict(self, obj, level):
        return self._pformat_members([(k, self.pformat(v, level + 1)) for k, v in obj.items()], level)

    def _pformat_sequence(self, obj, level):
        items = ", ".join(self.pformat(v, level + 1) for v in obj)
        return f"({items})" if isinstance(obj, tuple) else f"[{items}]"
