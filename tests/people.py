"""
Shared test fixtures: a tiny "people" object model and its class callbacks.

Two classes are used throughout the test-suite:

- ``person``: a scalar record (name, email, age, alive) with both callbacks,
- ``people``: a composite holding an ordered list of persons; its callbacks
  recurse into ``prefs.obj_to_node`` / ``prefs.obj_from_node`` for children.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from niftyprefs import (
    Err,
    Prefs,
    PrefsError,
    PrefsNode,
    Result,
    ok,
    prop_boolean_get,
    prop_boolean_set,
    prop_int_get,
    prop_int_set,
    prop_string_get,
    prop_string_set,
)
from niftyprefs.core.settings import Settings

PERSON = "person"
PEOPLE = "people"


@dataclass(eq=False)
class Person:
    name: str
    email: str
    age: int
    alive: bool


@dataclass(eq=False)
class People:
    people: list[Person] = field(default_factory=list)


def person_from_object(
    prefs: Prefs, node: PrefsNode, obj: Person, user_data: Any
) -> Result[None, PrefsError]:
    for res in (
        prop_string_set(node, "name", obj.name),
        prop_string_set(node, "email", obj.email),
        prop_int_set(node, "age", obj.age),
        prop_boolean_set(node, "alive", obj.alive),
    ):
        if res.is_err():
            return res
    return ok(None)


def person_to_object(prefs: Prefs, node: PrefsNode, user_data: Any) -> Result[Any, PrefsError]:
    name = prop_string_get(node, "name")
    email = prop_string_get(node, "email")
    age = prop_int_get(node, "age")
    alive = prop_boolean_get(node, "alive")
    for res in (name, email, age, alive):
        if res.is_err():
            return Err(res.unwrap_err())
    return ok(Person(name.unwrap(), email.unwrap(), age.unwrap(), alive.unwrap()))


def people_from_object(
    prefs: Prefs, node: PrefsNode, obj: People, user_data: Any
) -> Result[None, PrefsError]:
    for person in obj.people:
        child = prefs.obj_to_node(PERSON, person, user_data)
        if child.is_err():
            return Err(child.unwrap_err())
        added = node.add_child(child.unwrap())
        if added.is_err():
            return added
    return ok(None)


def people_to_object(prefs: Prefs, node: PrefsNode, user_data: Any) -> Result[Any, PrefsError]:
    people = People()
    for child in node.children():
        restored = prefs.obj_from_node(child, user_data)
        if restored.is_err():
            return restored
        person = restored.unwrap()
        # a child class may produce no object
        if person is not None:
            people.people.append(person)
    return ok(people)


def make_prefs(**overrides: Any) -> Prefs:
    """Build an isolated context with both classes registered."""
    prefs = Prefs(Settings(**overrides))
    prefs.class_register(PERSON, person_to_object, person_from_object).unwrap()
    prefs.class_register(PEOPLE, people_to_object, people_from_object).unwrap()
    return prefs


def bob() -> Person:
    return Person("Bob", "bob@example.com", 30, True)


def alice() -> Person:
    return Person("Alice", "alice@example.com", 30, False)
