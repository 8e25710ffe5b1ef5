"""Tests for generic type erasure."""

from __future__ import annotations

import pytest

from protomock.core.erasure import contains_generic, erase, strip_capture_attributes
from protomock.core.model import ANY
from protomock.core.type_parser import parse_type

GENERICS = frozenset({"T", "U"})


class TestErase:
    @pytest.mark.parametrize(
        ("annotation", "expected"),
        [
            ("T", "Any"),
            ("list[T]", "list[Any]"),
            ("T | None", "Any"),
            ("Key[T]", "Any"),
            ("dict[str, list[T]]", "Any"),
            ("Key[int]", "Key[int]"),
            ("Callable[[T], U]", "Callable[[Any], Any]"),
            ("Callable[[int], Awaitable[T]]", "Callable[[int], Awaitable[Any]]"),
            ("int | T", "Any"),
            ("list[int] | None", "list[int] | None"),
        ],
    )
    def test_erasure(self, annotation: str, expected: str) -> None:
        assert str(erase(parse_type(annotation), GENERICS)) == expected

    def test_unchanged_type_is_returned_as_is(self) -> None:
        original = parse_type("dict[str, list[int]] | None")
        assert erase(original, GENERICS) is original

    def test_escaping_is_stripped_without_generics(self) -> None:
        parsed = parse_type('Annotated[Callable[[], None], "escaping"]')
        assert str(strip_capture_attributes(parsed)) == "Callable[[], None]"

    def test_other_attributes_survive(self) -> None:
        parsed = parse_type('Annotated[T, "escaping", "sendable"]')
        assert str(erase(parsed, GENERICS)) == "Annotated[Any, 'sendable']"

    def test_erased_generic_is_any(self) -> None:
        assert erase(parse_type("T"), GENERICS) == ANY


class TestContainsGeneric:
    def test_nested_reference(self) -> None:
        assert contains_generic(parse_type("dict[str, list[T]]"), GENERICS)
        assert contains_generic(parse_type("Callable[[int], U]"), GENERICS)

    def test_concrete_types(self) -> None:
        assert not contains_generic(parse_type("Key[int]"), GENERICS)
        assert not contains_generic(parse_type("Tee"), GENERICS)

    def test_no_generics(self) -> None:
        assert not contains_generic(parse_type("T"), frozenset())
