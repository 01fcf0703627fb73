"""Tests for the dependency injection container."""

from __future__ import annotations

import enum
import threading
import time
import uuid
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

import pytest

from darkheim.contracts import LoggerInterface
from darkheim.di import (
    Binding,
    CircularDependencyError,
    Container,
    ContainerError,
    ContainerFrozenError,
    UnresolvableAbstractError,
    UnresolvableParameterError,
)
from darkheim.services.cache import CacheService

if TYPE_CHECKING:
    from decimal import Decimal

# ---------------------------------------------------------------------------
# Module-level fixtures for reflection (annotations must resolve at import)
# ---------------------------------------------------------------------------


class ConsoleLogger(LoggerInterface):
    def __init__(self) -> None:
        self.lines: list[str] = []

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.lines.append(message)

    info = warning = error = critical = debug


class RequestId(ABC):
    value: str


class RandomIdGenerator(RequestId):
    def __init__(self) -> None:
        self.value = uuid.uuid4().hex


class Bar:
    pass


class Foo:
    def __init__(self, bar: Bar) -> None:
        self.bar = bar


class UnknownScalar(ABC):
    @abstractmethod
    def read(self) -> int: ...


class Baz:
    def __init__(self, x: UnknownScalar) -> None:
        self.x = x


class WithDefaults:
    def __init__(self, name: str = "default", retries: int = 3, bar: Bar | None = None) -> None:
        self.name = name
        self.retries = retries
        self.bar = bar


class OptionalMissing:
    def __init__(self, dep: UnknownScalar | None = None) -> None:
        self.dep = dep


class NeedsPrimitive:
    def __init__(self, port: int) -> None:
        self.port = port


class Untyped:
    def __init__(self, thing) -> None:  # noqa: ANN001
        self.thing = thing


class KeywordOnly:
    def __init__(self, *, bar: Bar, label: str = "kw") -> None:
        self.bar = bar
        self.label = label


class Variadic:
    def __init__(self, bar: Bar, *args: Any, **kwargs: Any) -> None:
        self.bar = bar
        self.args = args
        self.kwargs = kwargs


class CycleA:
    def __init__(self, b: CycleB) -> None:
        self.b = b


class CycleB:
    def __init__(self, a: CycleA) -> None:
        self.a = a


class Mode(enum.Enum):
    SLOW = "slow"
    FAST = "fast"


class WithEnumDefault:
    def __init__(self, mode: Mode = Mode.SLOW) -> None:
        self.mode = mode


class NeedsMode:
    def __init__(self, mode: Mode) -> None:
        self.mode = mode


class TypeCheckingOnly:
    def __init__(self, bar: Bar, amount: Decimal | None = None) -> None:
        self.bar = bar
        self.amount = amount


class TypeCheckingRequired:
    def __init__(self, amount: Decimal) -> None:
        self.amount = amount


class Exploding:
    def __init__(self) -> None:
        raise RuntimeError("boom")


class NeedsExploding:
    def __init__(self, dep: Exploding) -> None:
        self.dep = dep


# ---------------------------------------------------------------------------
# Lifetimes
# ---------------------------------------------------------------------------


class TestLifetimes:
    def test_singleton_returns_same_instance(self, container: Container):
        container.singleton(LoggerInterface, ConsoleLogger)
        first = container.make(LoggerInterface)
        second = container.make(LoggerInterface)
        assert isinstance(first, ConsoleLogger)
        assert first is second

    def test_plain_bind_returns_fresh_instances(self, container: Container):
        container.bind(RequestId, RandomIdGenerator)
        first = container.make(RequestId)
        second = container.make(RequestId)
        assert first is not second
        assert first.value != second.value

    def test_unbound_class_is_built_fresh_each_time(self, container: Container):
        assert container.make(Bar) is not container.make(Bar)

    def test_bind_without_concrete_builds_abstract_itself(self, container: Container):
        container.singleton(Bar)
        assert isinstance(container.make(Bar), Bar)
        assert container.make(Bar) is container.make(Bar)

    def test_resolved_tracks_singleton_construction(self, container: Container):
        container.singleton(Bar)
        assert container.resolved(Bar) is False
        container.make(Bar)
        assert container.resolved(Bar) is True

    def test_rebinding_drops_cached_singleton(self, container: Container):
        container.singleton(LoggerInterface, ConsoleLogger)
        first = container.make(LoggerInterface)
        container.singleton(LoggerInterface, ConsoleLogger)
        assert container.make(LoggerInterface) is not first

    def test_last_registration_wins(self, container: Container):
        container.bind(RequestId, lambda c: "first")
        container.bind(RequestId, RandomIdGenerator)
        assert isinstance(container.make(RequestId), RandomIdGenerator)

    def test_singleton_built_once_across_threads(self, container: Container):
        calls: list[int] = []
        lock = threading.Lock()

        def slow_factory(c: Container) -> Bar:
            with lock:
                calls.append(1)
            time.sleep(0.01)
            return Bar()

        container.singleton(Bar, slow_factory)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: container.make(Bar), range(16)))

        assert len(calls) == 1
        assert all(r is results[0] for r in results)


# ---------------------------------------------------------------------------
# Instances and values
# ---------------------------------------------------------------------------


class TestInstancesAndValues:
    def test_instance_takes_precedence_over_binding(self, container: Container):
        prebuilt = ConsoleLogger()
        container.singleton(LoggerInterface, ConsoleLogger)
        container.instance(LoggerInterface, prebuilt)
        assert container.make(LoggerInterface) is prebuilt

    def test_instance_never_calls_factory(self, container: Container):
        def exploding(c: Container) -> Bar:
            raise AssertionError("factory must not run")

        container.bind(Bar, exploding)
        container.instance(Bar, Bar())
        container.make(Bar)

    def test_value_scenario(self, container: Container):
        container.value("app.name", "Darkheim")
        assert container.get("app.name") == "Darkheim"
        assert container.get("app.missing", "fallback") == "fallback"
        assert container.make("app.name") == "Darkheim"

    def test_value_accepts_non_objects(self, container: Container):
        settings = {"email": {"from_address": {"value": "a@b.c"}}}
        container.value("site_settings", settings)
        assert container.make("site_settings") is settings

    def test_get_never_constructs(self, container: Container):
        container.singleton(Bar)
        assert container.get(Bar) is None
        assert container.resolved(Bar) is False

    def test_has(self, container: Container):
        assert container.has(Bar) is False
        container.bind(Bar)
        container.value("key", 1)
        assert container.has(Bar) is True
        assert container.has("key") is True

    def test_has_does_not_guarantee_resolution(self, container: Container):
        container.bind("broken", "no.such.module.Thing")
        assert container.has("broken") is True
        with pytest.raises(UnresolvableAbstractError):
            container.make("broken")

    def test_bindings_snapshot(self, container: Container):
        container.singleton(LoggerInterface, ConsoleLogger)
        snapshot = container.bindings()
        assert snapshot[LoggerInterface] == Binding(LoggerInterface, ConsoleLogger, True)
        snapshot.clear()
        assert container.has(LoggerInterface)


# ---------------------------------------------------------------------------
# Factories and indirection
# ---------------------------------------------------------------------------


class TestFactories:
    def test_factory_receives_container(self, container: Container):
        seen: list[Container] = []

        def factory(c: Container) -> Bar:
            seen.append(c)
            return Bar()

        container.bind(Bar, factory)
        container.make(Bar)
        assert seen == [container]

    def test_factory_can_pull_dependencies(self, container: Container):
        container.singleton(Bar)
        container.singleton(Foo, lambda c: Foo(c.make(Bar)))
        assert container.make(Foo).bar is container.make(Bar)

    def test_factory_may_return_non_objects(self, container: Container):
        container.singleton("answer", lambda c: 42)
        assert container.make("answer") == 42

    def test_interface_to_singleton_implementation(self, container: Container):
        container.singleton(ConsoleLogger)
        container.bind(LoggerInterface, ConsoleLogger)
        assert container.make(LoggerInterface) is container.make(ConsoleLogger)

    def test_dotted_path_concrete(self, container: Container):
        container.singleton("cache", "darkheim.services.cache.CacheService")
        cache = container.make("cache")
        assert isinstance(cache, CacheService)
        assert container.make("cache") is cache


# ---------------------------------------------------------------------------
# Constructor reflection
# ---------------------------------------------------------------------------


class TestReflection:
    def test_recursive_resolution(self, container: Container):
        foo = container.make(Foo)
        assert isinstance(foo.bar, Bar)

    def test_recursive_resolution_uses_singleton(self, container: Container):
        container.singleton(Bar)
        assert container.make(Foo).bar is container.make(Bar)

    def test_primitive_defaults_are_used(self, container: Container):
        obj = container.make(WithDefaults)
        assert obj.name == "default"
        assert obj.retries == 3

    def test_defaulted_class_parameter_keeps_default_when_unregistered(self, container: Container):
        assert container.make(WithDefaults).bar is None

    def test_defaulted_class_parameter_uses_registered_service(self, container: Container):
        container.singleton(Bar)
        assert container.make(WithDefaults).bar is container.make(Bar)

    def test_enum_default_is_used(self, container: Container):
        assert container.make(WithEnumDefault).mode is Mode.SLOW

    def test_enum_without_default_fails(self, container: Container):
        with pytest.raises(UnresolvableParameterError) as exc_info:
            container.make(NeedsMode)
        assert exc_info.value.owner == "NeedsMode"
        assert exc_info.value.parameter == "mode"

    def test_type_checking_only_annotation_falls_back_to_default(self, container: Container):
        obj = container.make(TypeCheckingOnly)
        assert isinstance(obj.bar, Bar)
        assert obj.amount is None

    def test_type_checking_only_annotation_without_default_fails(self, container: Container):
        with pytest.raises(UnresolvableParameterError, match="Decimal") as exc_info:
            container.make(TypeCheckingRequired)
        assert exc_info.value.owner == "TypeCheckingRequired"
        assert exc_info.value.parameter == "amount"

    def test_dependency_constructor_failure_names_parameter(self, container: Container):
        with pytest.raises(UnresolvableParameterError, match="boom") as exc_info:
            container.make(NeedsExploding)
        assert exc_info.value.parameter == "dep"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_optional_unresolvable_falls_back_to_default(self, container: Container):
        assert container.make(OptionalMissing).dep is None

    def test_keyword_only_parameters(self, container: Container):
        obj = container.make(KeywordOnly)
        assert isinstance(obj.bar, Bar)
        assert obj.label == "kw"

    def test_variadic_parameters_are_skipped(self, container: Container):
        obj = container.make(Variadic)
        assert isinstance(obj.bar, Bar)
        assert obj.args == ()
        assert obj.kwargs == {}

    def test_unresolvable_parameter_names_class_and_parameter(self, container: Container):
        with pytest.raises(UnresolvableParameterError) as exc_info:
            container.make(Baz)
        assert exc_info.value.owner == "Baz"
        assert exc_info.value.parameter == "x"
        assert "Baz" in str(exc_info.value)
        assert "'x'" in str(exc_info.value)

    def test_primitive_without_default_fails(self, container: Container):
        with pytest.raises(UnresolvableParameterError, match="port"):
            container.make(NeedsPrimitive)

    def test_untyped_without_default_fails(self, container: Container):
        with pytest.raises(UnresolvableParameterError, match="no type hint"):
            container.make(Untyped)

    def test_binding_the_parameter_type_fixes_resolution(self, container: Container):
        class FixedScalar(UnknownScalar):
            def read(self) -> int:
                return 7

        container.bind(UnknownScalar, FixedScalar)
        assert container.make(Baz).x.read() == 7

    def test_abstract_class_without_binding(self, container: Container):
        with pytest.raises(UnresolvableAbstractError, match="not instantiable"):
            container.make(LoggerInterface)

    def test_unknown_string_abstract(self, container: Container):
        with pytest.raises(UnresolvableAbstractError, match="not found"):
            container.make("app.missing")

    def test_malformed_dotted_path(self, container: Container):
        with pytest.raises(UnresolvableAbstractError, match="not found") as exc_info:
            container.make(".Thing")
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_circular_dependency(self, container: Container):
        with pytest.raises(CircularDependencyError) as exc_info:
            container.make(CycleA)
        assert exc_info.value.chain == ["CycleA", "CycleB", "CycleA"]

    def test_failed_resolution_leaves_container_usable(self, container: Container):
        with pytest.raises(ContainerError):
            container.make(CycleA)
        assert isinstance(container.make(Foo), Foo)


# ---------------------------------------------------------------------------
# Freezing
# ---------------------------------------------------------------------------


class TestFreeze:
    def test_registration_rejected_after_freeze(self, container: Container):
        container.singleton(Bar)
        container.freeze()
        assert container.frozen is True
        with pytest.raises(ContainerFrozenError):
            container.bind(Foo)
        with pytest.raises(ContainerFrozenError):
            container.value("late", 1)

    def test_singletons_still_resolve_after_freeze(self, container: Container):
        container.singleton(Bar)
        container.freeze()
        assert container.make(Bar) is container.make(Bar)
