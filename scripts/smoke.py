# scripts/smoke.py
"""
Smoke Test Script for niftyprefs.

Registers a tiny ``person``/``people`` object model, snapshots a group of
people to an XML file, restores it into a fresh context and compares.

Usage
-----
1. Round trip through a temporary file:
    $ uv run python scripts/smoke.py

2. Keep the written file for inspection:
    $ uv run python scripts/smoke.py --file people.xml
    $ uv run niftyprefs show people.xml
"""

import argparse
import logging
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

import niftyprefs
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

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
env_path = Path(".env")
if env_path.exists():
    load_dotenv(env_path)
    print("✅ Loaded .env file")

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)


# --------------------------------------------------------------------------- #
# Object model
# --------------------------------------------------------------------------- #
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
    fields = (
        prop_string_get(node, "name"),
        prop_string_get(node, "email"),
        prop_int_get(node, "age"),
        prop_boolean_get(node, "alive"),
    )
    for res in fields:
        if res.is_err():
            return Err(res.unwrap_err())
    name, email, age, alive = (res.unwrap() for res in fields)
    return ok(Person(name, email, age, alive))


def people_from_object(
    prefs: Prefs, node: PrefsNode, obj: People, user_data: Any
) -> Result[None, PrefsError]:
    for person in obj.people:
        child = prefs.obj_to_node("person", person, user_data)
        if child.is_err():
            return Err(child.unwrap_err())
        node.add_child(child.unwrap())
    return ok(None)


def people_to_object(prefs: Prefs, node: PrefsNode, user_data: Any) -> Result[Any, PrefsError]:
    group = People()
    for child in node.children():
        restored = prefs.obj_from_node(child, user_data)
        if restored.is_err():
            return restored
        if restored.unwrap() is not None:
            group.people.append(restored.unwrap())
    return ok(group)


def make_prefs() -> Prefs:
    prefs = niftyprefs.init()
    prefs.class_register("person", person_to_object, person_from_object).expect("person")
    prefs.class_register("people", people_to_object, people_from_object).expect("people")
    return prefs


def main() -> int:
    """Execute the smoke test workflow."""
    parser = argparse.ArgumentParser(description="Run niftyprefs Smoke Test")
    parser.add_argument("--file", "-f", type=str, help="Where to write the XML preferences file")
    args = parser.parse_args()

    if not niftyprefs.check_version("0.1"):
        print("❌ Incompatible niftyprefs version")
        return 1

    group = People(
        [
            Person("Bob", "bob@example.com", 30, True),
            Person("Alice", "alice@example.com", 30, False),
        ]
    )

    with tempfile.TemporaryDirectory() as tmp:
        target = Path(args.file) if args.file else Path(tmp) / "people.xml"

        # 1. Snapshot
        with make_prefs() as prefs:
            written = prefs.obj_to_file("people", group, target)
            if written.is_err():
                print(f"\n❌ Snapshot failed: {written.unwrap_err()}")
                return 1
            print(f"\n💾 Wrote {target}")
            print(prefs.obj_to_buffer("people", group).unwrap())

        # 2. Restore into a fresh context
        with make_prefs() as prefs:
            restored = prefs.obj_from_file(target)
            if restored.is_err():
                print(f"\n❌ Restore failed: {restored.unwrap_err()}")
                return 1
            copy = restored.unwrap()
            for person in copy.people:
                prefs.obj_unregister("person", person)
            prefs.obj_unregister("people", copy)

    # 3. Inspection Phase
    before = [(p.name, p.email, p.age, p.alive) for p in group.people]
    after = [(p.name, p.email, p.age, p.alive) for p in copy.people]
    print("=" * 60)
    for row in after:
        print(f"  - {row[0]} <{row[1]}> age={row[2]} alive={row[3]}")
    if before != after:
        print("❌ Round trip changed the data")
        return 1
    print("✅ Round trip OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
