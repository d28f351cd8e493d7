import pytest
from harmony import (
    Descriptor, Undefined, new_stratified, new_object, hooks_of, set_meta,
    resolver_of, count, construct, own_keys, keys, get_property,
    NotCallableError
)


def _foo(log):
    return new_stratified(
        data={"x": {"value": 10, "writable": True}},
        meta={
            "no_such_property": lambda name: log.append(("no_such_property", name)),
            "no_such_method": lambda name, args: log.append(("no_such_method", name, args)),
        },
        proto=None,
    )


# --- Data level Tests ---

def test_data_descriptors_initialize_storage():
    foo = _foo([])
    assert foo.x == 10
    assert own_keys(foo) == ["x"]
    # Descriptor maps default to non-enumerable.
    assert keys(foo) == []
    assert count(foo) == 1

def test_descriptor_instances_accepted_as_data():
    foo = new_stratified(data={"y": Descriptor.data(1)})
    assert foo.y == 1
    assert list(foo) == ["y"]

def test_read_only_data():
    foo = new_stratified(data={"k": {"value": 1}})
    foo.k = 2
    assert foo.k == 1

def test_proto_lookup():
    parent = new_object({"inherited": "yes"})
    log = []
    foo = new_stratified(data={}, meta={"no_such_property": log.append}, proto=parent)
    assert foo.inherited == "yes"
    assert log == []


# --- Missing member Tests ---

def test_missing_property_then_missing_method():
    log = []
    foo = _foo(log)
    foo.bar
    assert log == [("no_such_property", "bar")]
    foo.bar(1, 2, 3)
    assert log[1:] == [("no_such_property", "bar"), ("no_such_method", "bar", [1, 2, 3])]

def test_data_writes_do_not_disturb_meta():
    log = []
    foo = _foo(log)
    foo.no_such_property = 10
    foo.no_such_method = 20
    assert foo.no_such_property == 10
    assert own_keys(foo) == ["x", "no_such_property", "no_such_method"]
    assert count(foo) == 3

    foo.baz(10, 20, 30)
    assert log == [("no_such_property", "baz"), ("no_such_method", "baz", [10, 20, 30])]

def test_activator_is_scoped_to_each_object():
    a = _foo([])
    b = _foo([])
    assert a.one is a.two
    assert a.one is resolver_of(a).activator
    assert a.one is not b.one

def test_falsy_present_members_are_not_misses():
    log = []
    foo = new_stratified(data={"zero": {"value": 0}}, meta={"no_such_property": log.append})
    assert foo.zero == 0
    assert log == []

def test_without_missing_method_reads_are_absent():
    log = []
    foo = new_stratified(meta={"no_such_property": log.append})
    assert get_property(foo, "nothing") is Undefined
    assert log == ["nothing"]


# --- Meta level Tests ---

def test_reassigning_a_hook_at_runtime():
    log = []
    foo = new_stratified(data={"x": {"value": 1}})
    hooks_of(foo)["get"] = lambda name: log.append(name)
    assert foo.x == 1
    assert log == ["x"]
    hooks_of(foo)["get"] = lambda name: log.append(("replaced", name))
    foo.x
    assert log[-1] == ("replaced", "x")

def test_set_meta_replaces_whole_table():
    log = []
    foo = _foo(log)
    table = hooks_of(foo)
    set_meta(foo, {"no_such_property": lambda name: log.append(("new", name))})
    assert hooks_of(foo) is table
    assert get_property(foo, "gone") is Undefined
    assert log == [("new", "gone")]

def test_observer_hooks_and_count():
    log = []
    foo = new_stratified(meta={
        "set": lambda name, value: log.append(("set", name, value)),
        "delete": lambda name: log.append(("delete", name)),
    })
    foo.a = 1
    foo.a = 2
    del foo.a
    assert log == [("set", "a", 1), ("set", "a", 2), ("delete", "a")]
    assert count(foo) == 0

def test_unknown_meta_names_rejected():
    with pytest.raises(KeyError):
        new_stratified(meta={"render": print})

def test_call_and_construct_from_meta():
    foo = new_stratified(meta={"call": lambda *args: sum(args), "construct": lambda *args: list(args)})
    assert foo(1, 2, 3) == 6
    assert construct(foo, 1, 2) == [1, 2]
    bare = new_stratified()
    with pytest.raises(NotCallableError):
        bare()
