"""
Names of the attributes a mock generates for each member.

Given a member identifier ``fetch_user`` the mock exposes
``fetch_user_call_count``, ``fetch_user_call_args`` and
``fetch_user_handler``; mutable indexed accessors add ``<id>_set_handler``.
Properties store their value in ``_<name>`` unless they are plain fields.
"""

from __future__ import annotations

RESET_METHOD = "reset_mock"
STORAGE_ATTRIBUTE = "_storage"
STORAGE_CLASS = "_Storage"

# Names evaluated in the generated class body at class-creation time
CLASS_BODY_NAMES = frozenset({"property", "overload", "nonisolated", "dataclasses"})

RESERVED_NAMES = frozenset({RESET_METHOD, STORAGE_ATTRIBUTE, STORAGE_CLASS}) | CLASS_BODY_NAMES

# Names that generated method bodies reference besides their parameters
RESERVED_PARAMETERS = frozenset({"self", "new_value", "cast", "fatal_error"})


def call_count(identifier: str) -> str:
    return f"{identifier}_call_count"


def call_args(identifier: str) -> str:
    return f"{identifier}_call_args"


def handler(identifier: str) -> str:
    return f"{identifier}_handler"


def set_handler(identifier: str) -> str:
    return f"{identifier}_set_handler"


def backing(name: str) -> str:
    return f"_{name}"


def implementation(identifier: str) -> str:
    """Private method holding one overload's body."""
    return f"_{identifier}"


def setter_implementation(identifier: str) -> str:
    return f"_{identifier}_set"
