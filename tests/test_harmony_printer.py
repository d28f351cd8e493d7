from harmony import (
    Descriptor, PropertyStore, Undefined, new_object, new_hooked, new_delegating,
    new_stratified, mix, fix, handler_of
)
from harmony.harmony_printer import Printer


def test_pformat_plain_virtual_object():
    assert repr(new_object({"x": 1, "name": "n"})) == "<VirtualObject {x: 1, name: 'n'}>"
    assert repr(new_object()) == "<VirtualObject {}>"

def test_pformat_shows_overridden_traps():
    obj = new_object({"x": 1})
    handler_of(obj)["get"] = lambda receiver, key: None
    assert repr(obj) == "<VirtualObject {x: 1} traps=[get]>"

def test_pformat_hooked_object_without_firing_hooks():
    log = []
    foo = new_hooked({"__get__": log.append, "__no_such_property__": log.append, "x": 10})
    assert repr(foo) == "<VirtualObject {x: 10} hooks=[get, no_such_property]>"
    assert log == []

def test_pformat_delegating_object_and_cycles():
    m = new_delegating({"v": 1})
    host = mix(m, new_delegating({"self_ref": None}))
    host.self_ref = host
    assert repr(host) == "<VirtualObject {self_ref: <VirtualObject ...>} mixins=1>"

def test_pformat_accessors_and_fixed():
    store = PropertyStore({"size": Descriptor(getter=lambda r: 1), "k": Descriptor(2)}).freeze()
    obj = fix(new_object(store))
    assert repr(obj) == "<VirtualObject {size: <accessor>, k: 2} fixed>"

def test_pformat_stratified_object():
    foo = new_stratified(data={"x": {"value": [1, 2]}}, meta={"no_such_method": lambda n, a: None})
    assert repr(foo) == "<VirtualObject {x: [1, 2]} hooks=[no_such_method]>"

def test_pformat_descriptor_and_store():
    assert repr(Descriptor(1, writable=True)) == \
        "Descriptor(value=1, writable=True, enumerable=False, configurable=False)"
    assert repr(PropertyStore.from_values({"a": "b"})) == "<PropertyStore {a: 'b'}>"
    assert repr(PropertyStore(proto=PropertyStore())) == "<PropertyStore {} proto>"

def test_pformat_activator_and_undefined():
    foo = new_hooked({"__no_such_method__": lambda n, a: None})
    assert repr(foo.missing) == "<Activator 'missing'>"
    assert Printer().pformat(Undefined) == "Undefined"

def test_pformat_nested_containers():
    p = Printer()
    assert p.pformat({"a": (1, "x"), 2: [None, True]}) == "{a: (1, 'x'), 2: [None, True]}"
