"""Shared pytest fixtures for protomock tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from protomock import (
    ConcurrencyRequirement,
    IndexedAccessor,
    MockSpecification,
    Mutability,
    Operation,
    Parameter,
    Property,
    SynthesisOptions,
    load_mock,
    unload_mock,
)

LoadMock = Callable[..., type]


@pytest.fixture
def load() -> Iterator[LoadMock]:
    """
    Load a mock class, supplying an empty interface base class unless the
    namespace already provides one. Loaded modules are unloaded afterwards.
    """
    loaded: list[type] = []

    def _load(
        spec: MockSpecification, options: SynthesisOptions | None = None, **namespace: Any
    ) -> type:
        namespace.setdefault(spec.interface_name, type(spec.interface_name, (), {}))
        mock_cls = load_mock(spec, namespace, options)
        loaded.append(mock_cls)
        return mock_cls

    yield _load
    for mock_cls in loaded:
        unload_mock(mock_cls)


@pytest.fixture
def user_service_spec() -> MockSpecification:
    """An unsynchronized interface with one operation and two properties."""
    return MockSpecification(
        interface_name="UserService",
        members=(
            Operation(
                name="fetch_user",
                parameters=(Parameter(name="id", type="int"),),
                returns="str",
            ),
            Property(name="name", type="str"),
            Property(name="nickname", type="str | None", mutability=Mutability.GET_SET),
        ),
    )


@pytest.fixture
def storage_spec() -> MockSpecification:
    """A thread-safe interface with a failable save and a void counter."""
    return MockSpecification(
        interface_name="Storage",
        concurrency=ConcurrencyRequirement.THREAD_SAFE,
        members=(
            Operation(
                name="save",
                parameters=(Parameter(name="data", type="bytes"),),
                returns="bool",
                may_fail=True,
            ),
            Operation(name="increment", parameters=(Parameter(name="amount", type="int"),)),
            Property(name="label", type="str", mutability=Mutability.GET_SET),
        ),
    )


@pytest.fixture
def processor_spec() -> MockSpecification:
    """An interface with an overloaded pair of void operations."""
    return MockSpecification(
        interface_name="Processor",
        members=(
            Operation(name="process", parameters=(Parameter(name="value", type="int"),)),
            Operation(name="process", parameters=(Parameter(name="value", type="str"),)),
        ),
    )


@pytest.fixture
def grid_spec() -> MockSpecification:
    """An interface with a two-key mutable indexed accessor."""
    return MockSpecification(
        interface_name="Grid",
        members=(
            IndexedAccessor(
                parameters=(
                    Parameter(name="row", type="int"),
                    Parameter(name="column", type="int"),
                ),
                returns="float",
                mutability=Mutability.GET_SET,
            ),
        ),
    )


@pytest.fixture
def spec_file(tmp_path: Path) -> Path:
    """A TOML specification file holding two mocks."""
    path = tmp_path / "mocks.toml"
    path.write_text(
        """\
[[mocks]]
interface_name = "UserService"
access_scope = "public"

[[mocks.members]]
kind = "operation"
name = "fetch_user"
parameters = [{ name = "id", type = "int" }]
returns = "str"

[[mocks.members]]
kind = "property"
name = "token"
type = "str"

[[mocks.members]]
kind = "property"
name = "nickname"
type = "str | None"
mutability = "get_set"

[[mocks]]
interface_name = "Processor"

[[mocks.members]]
kind = "operation"
name = "process"
parameters = [{ name = "value", type = "int" }]

[[mocks.members]]
kind = "operation"
name = "process"
parameters = [{ name = "value", type = "str" }]
"""
    )
    return path
