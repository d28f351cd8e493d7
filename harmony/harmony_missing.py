"""
Missing-member resolution.

A resolver wraps a get trap. Reads of members that exist pass through
untouched. On a miss the `no_such_property` hook is told about it, and if
a `no_such_method` hook is registered the read yields the resolver's
activator: a callable placeholder that forwards `(name, args)` to that
hook when invoked.

Each resolver owns exactly one activator and reuses it for every miss,
overwriting the captured name each time. Consecutive misses therefore
yield the same object (`obj.foo is obj.bar`), and so do misses on
different objects that share a resolver. Hook-augmented objects share
`shared_resolver`; stratified objects get a resolver each.
"""

import logging
from typing import Any, Callable, Mapping, Optional

from harmony.harmony_datatypes import NotCallableError

logger = logging.getLogger(__name__)


class Activator:
    """The reusable placeholder handed out for missing members."""
    __slots__ = ("captured_name", "owner", "resolver")

    def __init__(self, resolver: 'MissingMemberResolver'):
        self.captured_name: Any = None
        # Hook table of the object whose read missed last.
        self.owner: Optional[Mapping[str, Callable]] = None
        self.resolver = resolver

    def __call__(self, *args, **kwargs):
        hook = self.owner.get("no_such_method") if self.owner is not None else None
        if not callable(hook):
            raise NotCallableError(f"{self.captured_name!r} is not callable")
        return hook(self.captured_name, list(args), **kwargs)

    def __repr__(self) -> str:
        from harmony.harmony_printer import Printer
        return Printer().pformat(self)


class MissingMemberResolver:
    def __init__(self):
        self.activator = Activator(self)

    def resolve(self, name: Any, hooks: Mapping[str, Callable],
                present: Callable[[Any], bool], read: Callable[[Any], Any]) -> Any:
        """Resolves one read.

        `present(name)` tells whether the composed view has the member;
        `read(name)` performs the ordinary get. Hooks are looked up at
        call time so reassigning them takes effect immediately.
        """
        if present(name):
            return read(name)

        no_such_property = hooks.get("no_such_property")
        if no_such_property is not None:
            no_such_property(name)

        if hooks.get("no_such_method") is not None:
            activator = self.activator
            activator.captured_name = name
            activator.owner = hooks
            logger.debug("missing member %r resolved to activator", name)
            return activator

        return read(name)

    def wrap(self, get_trap: Callable, has_trap: Callable,
             hooks: Mapping[str, Callable]) -> Callable:
        """Returns a get trap `(receiver, name)` that resolves misses through this resolver."""
        def get(receiver, name):
            return self.resolve(name, hooks, has_trap, lambda key: get_trap(receiver, key))
        return get


# The process-wide default, shared by every hook-augmented object.
shared_resolver = MissingMemberResolver()


__all__ = [
    "Activator",
    "MissingMemberResolver",
    "shared_resolver",
]
