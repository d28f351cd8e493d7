import pytest
from harmony import (
    Activator, MissingMemberResolver, HookTable, Undefined, NotCallableError,
    new_object, handler_of
)


def _resolve(resolver, name, hooks, members):
    return resolver.resolve(name, hooks, lambda n: n in members, lambda n: members.get(n, Undefined))


# --- MissingMemberResolver Tests ---

def test_present_member_is_transparent():
    log = []
    hooks = HookTable({"no_such_property": log.append, "no_such_method": lambda n, a: None})
    resolver = MissingMemberResolver()
    assert _resolve(resolver, "x", hooks, {"x": 0}) == 0
    assert log == []

def test_miss_without_hooks_falls_through():
    resolver = MissingMemberResolver()
    assert _resolve(resolver, "x", HookTable(), {}) is Undefined

def test_miss_reports_missing_property_once_and_discards_result():
    log = []
    def no_such_property(name):
        log.append(name)
        return "ignored"
    resolver = MissingMemberResolver()
    assert _resolve(resolver, "x", HookTable({"no_such_property": no_such_property}), {}) is Undefined
    assert log == ["x"]

def test_miss_with_missing_method_returns_activator():
    calls = []
    hooks = HookTable({"no_such_method": lambda name, args: calls.append((name, args)) or "result"})
    resolver = MissingMemberResolver()
    activator = _resolve(resolver, "foo", hooks, {})
    assert activator is resolver.activator
    assert activator.captured_name == "foo"
    assert activator.owner is hooks
    assert activator(1, 2, 3) == "result"
    assert calls == [("foo", [1, 2, 3])]

def test_consecutive_misses_reuse_the_activator():
    hooks = HookTable({"no_such_method": lambda name, args: name})
    resolver = MissingMemberResolver()
    first = _resolve(resolver, "bar", hooks, {})
    second = _resolve(resolver, "baz", hooks, {})
    assert first is second
    # Invoking now reflects the most recent miss.
    assert first() == "baz"

def test_distinct_resolvers_have_distinct_activators():
    assert MissingMemberResolver().activator is not MissingMemberResolver().activator

def test_activator_without_hook_is_not_callable():
    activator = Activator(MissingMemberResolver())
    activator.captured_name = "gone"
    with pytest.raises(NotCallableError, match="'gone' is not callable"):
        activator()

def test_activator_uses_hook_registered_at_call_time():
    hooks = HookTable({"no_such_method": lambda name, args: "old"})
    resolver = MissingMemberResolver()
    activator = _resolve(resolver, "m", hooks, {})
    hooks["no_such_method"] = lambda name, args: "new"
    assert activator() == "new"
    del hooks["no_such_method"]
    with pytest.raises(NotCallableError):
        activator()

def test_hook_exceptions_propagate():
    def boom(name):
        raise LookupError(name)
    resolver = MissingMemberResolver()
    with pytest.raises(LookupError):
        _resolve(resolver, "x", HookTable({"no_such_property": boom}), {})


# --- wrap Tests ---

def test_wrap_installs_on_a_plain_handler():
    log = []
    obj = new_object({"x": 1})
    handler = handler_of(obj)
    hooks = HookTable({
        "no_such_property": log.append,
        "no_such_method": lambda name, args: (name, args),
    })
    resolver = MissingMemberResolver()
    handler["get"] = resolver.wrap(handler.default("get"), handler.default("has"), hooks)
    assert obj.x == 1
    assert obj.missing("a") == ("missing", ["a"])
    assert log == ["missing"]
