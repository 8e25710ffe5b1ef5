"""Behavior of generated mocks, executed through load_mock."""

from __future__ import annotations

import abc
import asyncio
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pytest

from protomock import (
    BuildCondition,
    ConcurrencyRequirement,
    IndexedAccessor,
    MockSpecification,
    Operation,
    Parameter,
    SynthesisOptions,
    TypePlaceholder,
    load_mock,
    unload_mock,
)
from protomock.loader import GENERATED_PACKAGE
from protomock.runtime import (
    LegacyLock,
    Mutex,
    OverloadResolutionError,
    UnconfiguredHandlerError,
    is_nonisolated,
)

LoadMock = Callable[..., type]

LEGACY = SynthesisOptions(force_legacy_lock=True)


@dataclass(frozen=True)
class Record:
    id: int
    label: str


def _run_threads(target: object, count: int = 8) -> None:
    threads = [threading.Thread(target=target) for _ in range(count)]  # type: ignore[arg-type]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


# ---------------------------------------------------------------------------
# Direct storage
# ---------------------------------------------------------------------------


class TestUserServiceMock:
    def test_fetch_user_scenario(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock = load(user_service_spec)()
        mock.fetch_user_handler = lambda id: f"User {id}"

        assert mock.fetch_user(42) == "User 42"
        assert mock.fetch_user_call_count == 1
        assert mock.fetch_user_call_args == [42]

    def test_unset_handler_is_fatal(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock = load(user_service_spec)()

        with pytest.raises(UnconfiguredHandlerError) as exc_info:
            mock.fetch_user(1)
        assert exc_info.value.message == "UserServiceMock.fetch_user_handler is not set"
        assert mock.fetch_user_call_count == 1

    def test_unset_handler_escapes_except_exception(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock = load(user_service_spec)()

        def code_under_test() -> str:
            try:
                return mock.fetch_user(1)
            except Exception:  # noqa: BLE001
                return "swallowed"

        with pytest.raises(UnconfiguredHandlerError):
            code_under_test()

    def test_handler_exceptions_propagate(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock = load(user_service_spec)()

        def fail(id: int) -> str:
            raise LookupError(id)

        mock.fetch_user_handler = fail
        with pytest.raises(LookupError):
            mock.fetch_user(7)
        assert mock.fetch_user_call_args == [7]

    def test_get_only_property(self, load: LoadMock, user_service_spec: MockSpecification) -> None:
        mock = load(user_service_spec)()

        with pytest.raises(UnconfiguredHandlerError, match="UserServiceMock.name is not set"):
            _ = mock.name
        mock._name = "Ada"
        assert mock.name == "Ada"
        with pytest.raises(AttributeError):
            mock.name = "Grace"

    def test_optional_property_is_plain_attribute(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock = load(user_service_spec)()

        assert mock.nickname is None
        mock.nickname = "ada"
        assert mock.nickname == "ada"

    def test_reset_is_idempotent(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock = load(user_service_spec)()
        mock.fetch_user_handler = str
        mock.fetch_user(1)
        mock.fetch_user(2)
        mock._name = "Ada"
        mock.nickname = "ada"

        mock.reset_mock()
        first = (mock.fetch_user_call_count, mock.fetch_user_call_args, mock.nickname)
        mock.reset_mock()

        assert first == (0, [], None)
        assert (mock.fetch_user_call_count, mock.fetch_user_call_args, mock.nickname) == first
        assert mock.fetch_user_handler is None
        with pytest.raises(UnconfiguredHandlerError):
            _ = mock.name

    def test_instances_are_independent(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        mock_cls = load(user_service_spec)
        first, second = mock_cls(), mock_cls()
        first.fetch_user_handler = str
        first.fetch_user(1)

        assert second.fetch_user_call_count == 0
        assert second.fetch_user_call_args == []

    def test_subclasses_abstract_interface(
        self, load: LoadMock, user_service_spec: MockSpecification
    ) -> None:
        class UserService(abc.ABC):
            @abc.abstractmethod
            def fetch_user(self, id: int) -> str: ...

        mock_cls = load(user_service_spec, UserService=UserService)
        mock = mock_cls()

        assert isinstance(mock, UserService)
        assert mock_cls.__name__ == "UserServiceMock"


# ---------------------------------------------------------------------------
# Lock-based storage
# ---------------------------------------------------------------------------


class TestStorageMock:
    @pytest.fixture(params=[None, LEGACY], ids=["preferred", "legacy"])
    def options(self, request: pytest.FixtureRequest) -> SynthesisOptions | None:
        return request.param

    def test_save_scenario(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()

        with pytest.raises(UnconfiguredHandlerError, match="save_handler is not set"):
            mock.save(b"payload")
        assert mock.save_call_args == [b"payload"]

    def test_void_without_handler_returns(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()

        assert mock.increment(3) is None
        assert mock.increment_call_count == 1

    def test_tracking_under_threads(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()
        calls = 250

        def worker() -> None:
            for value in range(calls):
                mock.increment(value)

        _run_threads(worker)

        assert mock.increment_call_count == 8 * calls
        assert sorted(mock.increment_call_args) == sorted(list(range(calls)) * 8)

    def test_handler_can_reenter_mock(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()

        def save(data: bytes) -> bool:
            mock.increment(len(data))
            return True

        mock.save_handler = save
        assert mock.save(b"abc") is True
        assert mock.increment_call_args == [3]

    def test_call_args_are_copies(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()
        mock.increment(1)

        snapshot = mock.increment_call_args
        snapshot.append(99)

        assert mock.increment_call_args == [1]

    def test_non_optional_property(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()

        with pytest.raises(UnconfiguredHandlerError, match="StorageMock.label is not set"):
            _ = mock.label
        mock.label = "primary"
        assert mock.label == "primary"

        mock.reset_mock()
        with pytest.raises(UnconfiguredHandlerError):
            _ = mock.label

    def test_reset(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock = load(storage_spec, options)()
        mock.save_handler = lambda data: True
        mock.save(b"x")
        mock.increment(1)

        mock.reset_mock()
        mock.reset_mock()

        assert mock.save_call_count == 0
        assert mock.save_call_args == []
        assert mock.save_handler is None
        assert mock.increment_call_count == 0

    def test_storage_lock_type(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        options: SynthesisOptions | None,
    ) -> None:
        mock_cls = load(storage_spec, options)
        expected = LegacyLock if options is LEGACY else Mutex

        assert isinstance(mock_cls()._storage, expected)
        assert getattr(mock_cls, "__final__", False)

    def test_capability_guard_selects_legacy_variant(
        self,
        load: LoadMock,
        storage_spec: MockSpecification,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr("protomock.runtime.HAS_MUTEX", False)
        mock = load(storage_spec)()

        assert isinstance(mock._storage, LegacyLock)
        mock.increment(2)
        assert mock.increment_call_args == [2]


class TestIsolationDomain:
    def test_accessors_are_nonisolated(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Session",
            concurrency=ConcurrencyRequirement.ISOLATION_DOMAIN,
            members=(
                Operation(
                    name="send",
                    parameters=(Parameter(name="message", type="str"),),
                    returns="int",
                ),
            ),
        )
        mock_cls = load(spec)

        assert is_nonisolated(mock_cls.__dict__["send_call_count"])
        assert is_nonisolated(mock_cls.__dict__["send_handler"])
        assert is_nonisolated(mock_cls.__dict__["reset_mock"])
        assert not is_nonisolated(mock_cls.__dict__["send"])

        mock = mock_cls()
        mock.send_handler = len
        assert mock.send("hello") == 5


# ---------------------------------------------------------------------------
# Overloads
# ---------------------------------------------------------------------------


class TestProcessorMock:
    def test_reset_after_overloaded_calls(
        self, load: LoadMock, processor_spec: MockSpecification
    ) -> None:
        mock = load(processor_spec)()
        mock.process(1)
        mock.process("one")

        assert mock.process_Int_call_count == 1
        assert mock.process_Str_call_count == 1

        mock.reset_mock()

        assert mock.process_Int_call_count == 0
        assert mock.process_Str_call_count == 0
        assert mock.process_Int_call_args == []
        assert mock.process_Str_call_args == []

    def test_overloads_are_isolated(
        self, load: LoadMock, processor_spec: MockSpecification
    ) -> None:
        mock = load(processor_spec)()
        seen: list[object] = []
        mock.process_Str_handler = seen.append

        mock.process(5)
        mock.process(value="five")

        assert mock.process_Int_call_args == [5]
        assert mock.process_Str_call_args == ["five"]
        assert seen == ["five"]

    def test_no_matching_overload(
        self, load: LoadMock, processor_spec: MockSpecification
    ) -> None:
        mock = load(processor_spec)()

        with pytest.raises(OverloadResolutionError, match="ProcessorMock.process"):
            mock.process(1.5)
        with pytest.raises(TypeError):
            mock.process(True)

    def test_overloads_under_lock(
        self, load: LoadMock, processor_spec: MockSpecification
    ) -> None:
        spec = processor_spec.model_copy(
            update={"concurrency": ConcurrencyRequirement.THREAD_SAFE}
        )
        mock = load(spec, LEGACY)()

        mock.process(1)
        mock.process("a")
        mock.reset_mock()

        assert mock.process_Int_call_count == 0
        assert mock.process_Str_call_args == []

    def test_overload_returning_values(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Formatter",
            members=(
                Operation(
                    name="format",
                    parameters=(Parameter(name="value", type="int"),),
                    returns="str",
                ),
                Operation(
                    name="format",
                    parameters=(Parameter(name="value", type="Record"),),
                    returns="str",
                ),
            ),
        )
        mock = load(spec, Record=Record)()
        mock.format_Int_handler = lambda value: f"#{value}"
        mock.format_Record_handler = lambda value: value.label

        assert mock.format(3) == "#3"
        assert mock.format(Record(1, "one")) == "one"

    def test_literal_overloads_dispatch_on_value(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Opener",
            members=(
                Operation(
                    name="open",
                    parameters=(Parameter(name="mode", type='Literal["r"]'),),
                    returns="str",
                ),
                Operation(
                    name="open",
                    parameters=(Parameter(name="mode", type='Literal["w", "a"]'),),
                    returns="str",
                ),
            ),
        )
        mock = load(spec)()
        mock.open_LiteralR_handler = lambda mode: "reader"
        mock.open_LiteralWA_handler = lambda mode: "writer"

        assert mock.open("r") == "reader"
        assert mock.open("a") == "writer"
        assert mock.open_LiteralWA_call_args == ["a"]
        with pytest.raises(OverloadResolutionError):
            mock.open("x")


# ---------------------------------------------------------------------------
# Generics and async
# ---------------------------------------------------------------------------


class TestGenerics:
    @pytest.fixture
    def echo_spec(self) -> MockSpecification:
        return MockSpecification(
            interface_name="Echo",
            members=(
                Operation(
                    name="echo",
                    parameters=(Parameter(name="value", type="T"),),
                    returns="T",
                    generic_parameters=frozenset({"T"}),
                ),
            ),
        )

    def test_erasure_round_trip(self, load: LoadMock, echo_spec: MockSpecification) -> None:
        mock = load(echo_spec)()
        mock.echo_handler = lambda value: value
        record = Record(1, "one")

        assert mock.echo(1) == 1
        assert mock.echo("text") == "text"
        assert mock.echo(record) is record
        assert mock.echo_call_args == [1, "text", record]

    def test_erasure_round_trip_under_lock(
        self, load: LoadMock, echo_spec: MockSpecification
    ) -> None:
        spec = echo_spec.model_copy(update={"concurrency": ConcurrencyRequirement.THREAD_SAFE})
        mock = load(spec)()
        mock.echo_handler = lambda value: value

        assert mock.echo(Record(2, "two")) == Record(2, "two")


class TestAsync:
    def test_async_operation(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Client",
            members=(
                Operation(
                    name="fetch",
                    parameters=(Parameter(name="url", type="str"),),
                    returns="bytes",
                    suspends=True,
                ),
                Operation(
                    name="notify",
                    parameters=(Parameter(name="message", type="str"),),
                    suspends=True,
                ),
            ),
        )
        mock = load(spec)()

        async def fetch(url: str) -> bytes:
            return url.encode()

        mock.fetch_handler = fetch

        assert asyncio.run(mock.fetch("a")) == b"a"
        assert asyncio.run(mock.notify("hi")) is None
        assert mock.fetch_call_args == ["a"]
        assert mock.notify_call_count == 1

    def test_async_unset_handler(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Client",
            members=(Operation(name="fetch", returns="bytes", suspends=True),),
        )
        mock = load(spec)()

        with pytest.raises(UnconfiguredHandlerError):
            asyncio.run(mock.fetch())


# ---------------------------------------------------------------------------
# Indexed accessors
# ---------------------------------------------------------------------------


class TestSubscripts:
    def test_tuple_key(self, load: LoadMock, grid_spec: MockSpecification) -> None:
        mock = load(grid_spec)()
        written: list[tuple[int, int, float]] = []
        mock.subscript_handler = lambda row, column: row * 10.0 + column
        mock.subscript_set_handler = lambda row, column, value: written.append(
            (row, column, value)
        )

        assert mock[1, 2] == 12.0
        mock[3, 4] = 0.5

        assert mock.subscript_call_args == [(1, 2)]
        assert written == [(3, 4, 0.5)]

    def test_set_without_handler_is_ignored(
        self, load: LoadMock, grid_spec: MockSpecification
    ) -> None:
        mock = load(grid_spec)()
        mock[0, 0] = 1.0
        assert mock.subscript_call_count == 0

    def test_get_without_handler_is_fatal(
        self, load: LoadMock, grid_spec: MockSpecification
    ) -> None:
        mock = load(grid_spec)()
        with pytest.raises(UnconfiguredHandlerError, match="subscript_handler"):
            _ = mock[0, 0]

    def test_zero_parameter_accessor(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Singleton", members=(IndexedAccessor(returns="int"),)
        )
        mock = load(spec)()
        mock.subscript_handler = lambda: 7

        assert mock[()] == 7
        assert mock.subscript_call_args == [()]

    def test_overloaded_accessors(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Table",
            members=(
                IndexedAccessor(parameters=(Parameter(name="key", type="str"),), returns="int"),
                IndexedAccessor(
                    parameters=(Parameter(name="index", type="int"),),
                    returns="str",
                    mutability="get_set",
                ),
            ),
        )
        mock = load(spec)()
        stored: dict[int, str] = {}
        mock.subscript_Str_handler = len
        mock.subscript_Int_handler = lambda index: stored.get(index, "")
        mock.subscript_Int_set_handler = stored.__setitem__

        mock[1] = "one"

        assert mock["abc"] == 3
        assert mock[1] == "one"
        assert mock.subscript_Str_call_args == ["abc"]
        with pytest.raises(OverloadResolutionError):
            _ = mock[1.5]
        with pytest.raises(OverloadResolutionError):
            mock["abc"] = "read-only"


# ---------------------------------------------------------------------------
# Build conditions
# ---------------------------------------------------------------------------


class TestBuildConditions:
    @pytest.fixture
    def feature_spec(self) -> MockSpecification:
        return MockSpecification(
            interface_name="Feature",
            members=(
                Operation(name="always", returns="int"),
                Operation(
                    name="dump",
                    returns="str",
                    condition=BuildCondition(expression="DEBUG"),
                ),
                Operation(
                    name="process",
                    parameters=(Parameter(name="value", type="int"),),
                ),
                Operation(
                    name="process",
                    parameters=(Parameter(name="value", type="str"),),
                    condition=BuildCondition(expression="BETA"),
                ),
            ),
        )

    def test_condition_holds(self, load: LoadMock, feature_spec: MockSpecification) -> None:
        mock = load(feature_spec, DEBUG=True, BETA=True)()
        mock.dump_handler = lambda: "state"

        assert mock.dump() == "state"
        mock.process("x")
        assert mock.process_Str_call_args == ["x"]

        mock.reset_mock()
        assert mock.dump_call_count == 0
        assert mock.process_Str_call_count == 0

    def test_condition_fails(self, load: LoadMock, feature_spec: MockSpecification) -> None:
        mock = load(feature_spec, DEBUG=False, BETA=False)()

        assert not hasattr(mock, "dump")
        assert not hasattr(mock, "dump_call_count")
        assert not hasattr(mock, "process_Str_call_count")
        mock.process(1)
        with pytest.raises(OverloadResolutionError):
            mock.process("x")
        mock.reset_mock()

    def test_condition_under_lock(self, load: LoadMock, feature_spec: MockSpecification) -> None:
        spec = feature_spec.model_copy(update={"concurrency": ConcurrencyRequirement.THREAD_SAFE})
        mock = load(spec, LEGACY, DEBUG=False, BETA=True)()

        assert not hasattr(mock, "dump_call_count")
        mock.process("x")
        assert mock.process_Str_call_args == ["x"]


class TestPlaceholders:
    def test_aliases_on_class(self, load: LoadMock) -> None:
        spec = MockSpecification(
            interface_name="Container",
            members=(
                TypePlaceholder(name="Element", default="int"),
                Operation(
                    name="first",
                    parameters=(Parameter(name="items", type="list[Element]"),),
                    returns="Element",
                ),
            ),
            type_placeholders=(TypePlaceholder(name="Key"),),
        )
        mock_cls = load(spec)
        mock = mock_cls()
        mock.first_handler = lambda items: items[0]

        assert mock_cls.Element is int
        assert mock_cls.Key is Any
        assert mock.first([3, 4]) == 3
        assert mock.first_call_args == [[3, 4]]


# ---------------------------------------------------------------------------
# Module registration
# ---------------------------------------------------------------------------


class TestModuleRegistration:
    def test_each_load_registers_a_module(self, user_service_spec: MockSpecification) -> None:
        namespace = {"UserService": type("UserService", (), {})}
        first = load_mock(user_service_spec, namespace)
        second = load_mock(user_service_spec, namespace)

        assert first is not second
        assert first.__module__ != second.__module__
        assert first.__module__.startswith(f"{GENERATED_PACKAGE}.")
        assert sys.modules[first.__module__].UserServiceMock is first

        unload_mock(first)
        unload_mock(second)

        assert first.__module__ not in sys.modules
        assert second.__module__ not in sys.modules

    def test_unload_is_idempotent(self, user_service_spec: MockSpecification) -> None:
        mock_cls = load_mock(user_service_spec, {"UserService": type("UserService", (), {})})

        unload_mock(mock_cls)
        unload_mock(mock_cls)

        assert mock_cls().reset_mock() is None

    def test_unload_rejects_other_classes(self) -> None:
        with pytest.raises(ValueError, match="Record was not loaded by load_mock"):
            unload_mock(Record)
