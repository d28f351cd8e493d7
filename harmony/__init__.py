"""
harmony: interceptable objects for Python.

Virtual objects route every member read, write, deletion and call
through a table of trap functions. On top of that sit hook-augmented
objects with missing-member resolution, delegation-based mixins, and
objects with a stratified data/meta split.
"""

from harmony.harmony_config import HarmonyConfig, composition, current_config
from harmony.harmony_datatypes import (
    Descriptor, PropertyStore, HookTable, Undefined, method,
    HarmonyError, NotCallableError, WriteRejected, UnfixableError,
    PropertyNotFound, NamingConflictWarning, HOOK_NAMES, MAGIC_NAMES
)
from harmony.harmony_handler import (
    TRAP_NAMES, Handler, VirtualObject, new_object, handler_of,
    get_property, set_property, delete_property, define_property,
    has_property, has_own_property, get_own_property_descriptor,
    get_property_descriptor, own_keys, property_names, enumerate_keys, keys,
    get_prototype, fix, freeze, is_fixed, call_method, construct
)
from harmony.harmony_missing import Activator, MissingMemberResolver, shared_resolver
from harmony.harmony_hooks import new_hooked, count, hooks_of
from harmony.harmony_mixin import new_delegating, mix, mixins_of
from harmony.harmony_meta import new_stratified, set_meta, resolver_of

__all__ = [
    "HarmonyConfig", "composition", "current_config",
    "Descriptor", "PropertyStore", "HookTable", "Undefined", "method",
    "HarmonyError", "NotCallableError", "WriteRejected", "UnfixableError",
    "PropertyNotFound", "NamingConflictWarning", "HOOK_NAMES", "MAGIC_NAMES",
    "TRAP_NAMES", "Handler", "VirtualObject", "new_object", "handler_of",
    "get_property", "set_property", "delete_property", "define_property",
    "has_property", "has_own_property", "get_own_property_descriptor",
    "get_property_descriptor", "own_keys", "property_names", "enumerate_keys", "keys",
    "get_prototype", "fix", "freeze", "is_fixed", "call_method", "construct",
    "Activator", "MissingMemberResolver", "shared_resolver",
    "new_hooked", "count", "hooks_of",
    "new_delegating", "mix", "mixins_of",
    "new_stratified", "set_meta", "resolver_of",
]
