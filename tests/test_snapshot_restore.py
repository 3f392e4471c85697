"""
Round-trip tests for the snapshot and restore engines.

Scope
-----
1.  **Scalar round trip**: a ``person`` record survives node, buffer and file.
2.  **Composite round trip**: ``people`` keeps child count and order.
3.  **Failure modes**: unknown classes, missing callbacks, failing callbacks
    (no partial node), depth bound.
4.  **Registration side effects**: restored objects are registered with their
    node; snapshots record the node on registered objects.
5.  **Failure cleanup**: a failed restore leaves no registrations behind and a
    failed snapshot leaves registered nodes as they were.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from people import PEOPLE, PERSON, People, Person, alice, bob, make_prefs

from niftyprefs import (
    ErrorKind,
    Prefs,
    PrefsError,
    PrefsNode,
    Result,
    err,
    ok,
    prop_string_set,
)


@pytest.fixture  # type: ignore[misc]
def prefs() -> Prefs:
    """A fresh context with ``person`` and ``people`` registered."""
    return make_prefs()


# --------------------------------------------------------------------------- #
# Round trips
# --------------------------------------------------------------------------- #


def test_person_round_trip_through_node(prefs: Prefs) -> None:
    """Snapshot then restore reproduces name, age and alive exactly."""
    original = bob()
    node = prefs.obj_to_node(PERSON, original).unwrap()

    assert node.name == PERSON
    assert node.props() == {
        "name": "Bob",
        "email": "bob@example.com",
        "age": "30",
        "alive": "true",
    }

    restored = prefs.obj_from_node(node).unwrap()
    assert isinstance(restored, Person)
    assert restored is not original
    assert (restored.name, restored.age, restored.alive) == ("Bob", 30, True)


def test_people_round_trip_through_buffer_keeps_order(prefs: Prefs) -> None:
    """A two-child composite comes back with the same children, left to right."""
    group = People([bob(), alice()])
    text = prefs.obj_to_buffer(PEOPLE, group).unwrap()

    assert text.index('name="Bob"') < text.index('name="Alice"')

    restored = prefs.obj_from_buffer(text).unwrap()
    assert isinstance(restored, People)
    assert [p.name for p in restored.people] == ["Bob", "Alice"]
    assert [p.alive for p in restored.people] == [True, False]
    assert [p.email for p in restored.people] == ["bob@example.com", "alice@example.com"]


def test_people_round_trip_through_file(prefs: Prefs, tmp_path: Path) -> None:
    """Files carry an XML declaration and restore into an equal object graph."""
    target = tmp_path / "people.xml"
    written = prefs.obj_to_file(PEOPLE, People([bob(), alice()]), target)
    assert written.unwrap() == target

    content = target.read_text(encoding="utf-8")
    assert content.startswith("<?xml")
    assert "<people>" in content

    fresh = make_prefs()
    restored = fresh.obj_from_file(target).unwrap()
    assert [(p.name, p.age) for p in restored.people] == [("Bob", 30), ("Alice", 30)]


def test_user_data_is_threaded_to_children(prefs: Prefs) -> None:
    """The same ``user_data`` reaches nested callbacks unchanged."""
    seen: list[Any] = []

    def leaf_from(p: Prefs, node: PrefsNode, obj: Any, user_data: Any) -> Result[None, PrefsError]:
        seen.append(user_data)
        return ok(None)

    def root_from(p: Prefs, node: PrefsNode, obj: Any, user_data: Any) -> Result[None, PrefsError]:
        seen.append(user_data)
        for child in obj:
            node.add_child(p.obj_to_node("leaf", child, user_data).unwrap())
        return ok(None)

    prefs.class_register("leaf", from_object=leaf_from).unwrap()
    prefs.class_register("root", from_object=root_from).unwrap()

    token = object()
    node = prefs.obj_to_node("root", [object(), object()], token).unwrap()
    assert node.child_count() == 2
    assert seen == [token, token, token]


# --------------------------------------------------------------------------- #
# Failure modes
# --------------------------------------------------------------------------- #


def test_snapshot_unknown_class(prefs: Prefs) -> None:
    res = prefs.obj_to_node("robot", object())
    assert res.unwrap_err().kind is ErrorKind.UNKNOWN_CLASS


def test_restore_unknown_tag(prefs: Prefs) -> None:
    """The tag drives dispatch; an unregistered tag is UNKNOWN_CLASS."""
    res = prefs.obj_from_buffer("<robot serial='1'/>")
    assert res.unwrap_err().kind is ErrorKind.UNKNOWN_CLASS


def test_snapshot_none_object(prefs: Prefs) -> None:
    assert prefs.obj_to_node(PERSON, None).unwrap_err().kind is ErrorKind.NULL_ARGUMENT


def test_missing_callbacks_are_unsupported(prefs: Prefs) -> None:
    """A restore-only class cannot snapshot and vice versa."""
    prefs.class_register("readonly", to_object=lambda p, n, u: ok(object())).unwrap()
    prefs.class_register("writeonly", from_object=lambda p, n, o, u: ok(None)).unwrap()

    assert prefs.obj_to_node("readonly", object()).unwrap_err().kind is ErrorKind.UNSUPPORTED
    assert prefs.obj_from_buffer("<writeonly/>").unwrap_err().kind is ErrorKind.UNSUPPORTED


def test_child_failure_aborts_whole_snapshot(prefs: Prefs) -> None:
    """A failing child callback surfaces as CALLBACK_FAILED with the chain kept."""

    def broken(p: Prefs, node: PrefsNode, obj: Any, user_data: Any) -> Result[None, PrefsError]:
        return err(PrefsError(ErrorKind.MALFORMED_VALUE, "cannot describe this one"))

    prefs.class_unregister(PERSON)
    prefs.class_register(PERSON, from_object=broken).unwrap()

    res = prefs.obj_to_node(PEOPLE, People([bob()]))
    error = res.unwrap_err()
    assert error.kind is ErrorKind.CALLBACK_FAILED
    assert error.cause is not None and error.cause.kind is ErrorKind.CALLBACK_FAILED
    assert error.root().kind is ErrorKind.MALFORMED_VALUE


def test_failed_snapshot_does_not_touch_registered_node(prefs: Prefs) -> None:
    """No partial node is recorded on the object when the callback fails."""
    person = bob()
    prefs.obj_register(PERSON, person).unwrap()
    prefs.class_register(
        "failing", from_object=lambda p, n, o, u: err(PrefsError(ErrorKind.NOT_FOUND, "x"))
    ).unwrap()

    assert prefs.obj_to_node("failing", person).is_err()
    entry = prefs.obj_find(person)
    assert entry is not None and entry.node is None


def test_callback_must_return_result(prefs: Prefs) -> None:
    prefs.class_register("sloppy", from_object=lambda p, n, o, u: True).unwrap()  # type: ignore[arg-type,return-value]
    res = prefs.obj_to_node("sloppy", object())
    assert res.unwrap_err().kind is ErrorKind.CALLBACK_FAILED


def test_callback_exceptions_propagate(prefs: Prefs) -> None:
    """Exceptions are the caller's own bugs; they are not turned into errors."""

    def explode(p: Prefs, node: PrefsNode, obj: Any, user_data: Any) -> Result[None, PrefsError]:
        raise KeyError("missing field")

    prefs.class_register("explosive", from_object=explode).unwrap()
    with pytest.raises(KeyError):
        prefs.obj_to_node("explosive", object())
    assert prefs.depth == 0


def test_restore_child_with_missing_property_fails(prefs: Prefs) -> None:
    """A person without ``age`` makes the whole restore fail, not default to 0."""
    text = "<people><person name='Bob' email='b@x' alive='true'/></people>"
    error = prefs.obj_from_buffer(text).unwrap_err()
    assert error.kind is ErrorKind.CALLBACK_FAILED
    assert error.root().kind is ErrorKind.NOT_FOUND


def test_recursion_depth_is_bounded() -> None:
    """A self-referencing object graph stops at ``max_depth``."""
    prefs = make_prefs(max_depth=5)

    def loop(p: Prefs, node: PrefsNode, obj: Any, user_data: Any) -> Result[None, PrefsError]:
        child = p.obj_to_node("loop", obj, user_data)
        if child.is_err():
            return err(child.unwrap_err())
        return node.add_child(child.unwrap())

    prefs.class_register("loop", from_object=loop).unwrap()
    error = prefs.obj_to_node("loop", object()).unwrap_err()

    assert error.root().kind is ErrorKind.DEPTH_EXCEEDED
    assert prefs.depth == 0


# --------------------------------------------------------------------------- #
# Registration side effects
# --------------------------------------------------------------------------- #


def test_restore_registers_objects_with_their_nodes(prefs: Prefs) -> None:
    """Every restored object (parent and children) is registered with its node."""
    group = prefs.obj_from_buffer(
        "<people><person name='A' email='a' age='1' alive='false'/></people>"
    ).unwrap()

    parent = prefs.obj_find(group)
    child = prefs.obj_find(group.people[0])
    assert parent is not None and parent.class_name == PEOPLE
    assert child is not None and child.class_name == PERSON
    assert parent.node == prefs.document.root  # type: ignore[union-attr]
    assert child.node == parent.node.first_child()  # type: ignore[union-attr]


def test_restore_returning_none_is_not_fatal(prefs: Prefs) -> None:
    prefs.class_register("ghost", to_object=lambda p, n, u: ok(None)).unwrap()
    res = prefs.obj_from_buffer("<ghost/>")
    assert res.is_ok() and res.unwrap() is None
    assert len(prefs.objects) == 0


def test_snapshot_records_node_on_registered_object(prefs: Prefs) -> None:
    person = bob()
    entry = prefs.obj_register(PERSON, person).unwrap()
    assert entry.node is None

    node = prefs.obj_to_node(PERSON, person).unwrap()
    assert entry.node == node


def test_snapshot_to_unwritable_path_reports_io_error(prefs: Prefs, tmp_path: Path) -> None:
    """Writing into a missing directory fails cleanly and leaves nothing behind."""
    target = tmp_path / "missing" / "people.xml"
    res = prefs.obj_to_file(PEOPLE, People([bob()]), target)
    assert res.unwrap_err().kind is ErrorKind.IO_ERROR
    assert not target.exists()


# --------------------------------------------------------------------------- #
# Failure cleanup
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(  # type: ignore[misc]
    ("prop", "value", "kind"),
    [
        ("my key", "v", ErrorKind.INVALID_NAME),
        ("note", "a\x01b", ErrorKind.MALFORMED_VALUE),
    ],
)
def test_unwritable_property_fails_the_snapshot(
    prefs: Prefs, tmp_path: Path, prop: str, value: str, kind: ErrorKind
) -> None:
    """A snapshot never reports success for XML that could not be read back."""

    def write_prop(p: Prefs, node: PrefsNode, obj: Any, user_data: Any) -> Result[None, PrefsError]:
        return prop_string_set(node, prop, value)

    prefs.class_register("memo", from_object=write_prop).unwrap()

    error = prefs.obj_to_buffer("memo", object()).unwrap_err()
    assert error.kind is ErrorKind.CALLBACK_FAILED
    assert error.root().kind is kind

    target = tmp_path / "memo.xml"
    assert prefs.obj_to_file("memo", object(), target).is_err()
    assert not target.exists()


def test_failed_composite_restore_registers_nothing(prefs: Prefs) -> None:
    """Children restored before a failing sibling are forgotten again."""
    keeper = bob()
    prefs.obj_register(PERSON, keeper).unwrap()
    text = (
        "<people>"
        "<person name='A' email='a' age='1' alive='true'/>"
        "<person name='B' email='b' age='x' alive='true'/>"
        "</people>"
    )

    error = prefs.obj_from_buffer(text).unwrap_err()
    assert error.root().kind is ErrorKind.MALFORMED_VALUE
    assert len(prefs.objects) == 1
    assert prefs.obj_find(keeper) is not None


def test_repeated_failed_restores_do_not_grow_the_registry(prefs: Prefs) -> None:
    text = "<people><person name='A' email='a' age='1' alive='true'/><person/></people>"
    for _ in range(3):
        assert prefs.obj_from_buffer(text).is_err()
    assert len(prefs.objects) == 0

    good = "<people><person name='A' email='a' age='1' alive='true'/></people>"
    group = prefs.obj_from_buffer(good).unwrap()
    assert len(prefs.objects) == 2
    assert prefs.obj_find(group.people[0]) is not None


def test_failed_parent_snapshot_keeps_children_nodes(prefs: Prefs) -> None:
    """Registered children keep their previous node when the parent snapshot fails."""
    first, second = bob(), alice()
    first_entry = prefs.obj_register(PERSON, first).unwrap()
    second_entry = prefs.obj_register(PERSON, second).unwrap()
    earlier = prefs.obj_to_node(PERSON, first).unwrap()

    def strict_people(
        p: Prefs, node: PrefsNode, obj: Any, user_data: Any
    ) -> Result[None, PrefsError]:
        for person in obj.people:
            child = p.obj_to_node(PERSON, person, user_data)
            if child.is_err():
                return err(child.unwrap_err())
            node.add_child(child.unwrap())
        return err(PrefsError(ErrorKind.MALFORMED_VALUE, "group too small"))

    prefs.class_register("strict", from_object=strict_people).unwrap()
    assert prefs.obj_to_node("strict", People([first, second])).is_err()

    assert first_entry.node == earlier
    assert second_entry.node is None


def test_nested_snapshot_records_child_nodes_on_success(prefs: Prefs) -> None:
    person = bob()
    entry = prefs.obj_register(PERSON, person).unwrap()

    root = prefs.obj_to_node(PEOPLE, People([person])).unwrap()
    assert entry.node == root.first_child()


def test_children_restored_as_nothing_are_skipped(prefs: Prefs) -> None:
    prefs.class_register("ghost", to_object=lambda p, n, u: ok(None)).unwrap()
    text = "<people><ghost/><person name='A' email='a' age='1' alive='true'/></people>"

    group = prefs.obj_from_buffer(text).unwrap()
    assert [p.name for p in group.people] == ["A"]
