"""Dependency injection container with automatic constructor resolution.

Abstracts are either classes or string keys. Bindings map an abstract to a
concrete class, another abstract, or a factory taking the container. Pre-built
instances and plain values short-circuit resolution; singleton-bound
abstracts are constructed once and cached for the life of the container.

Unbound classes are built by inspecting ``__init__`` type hints and resolving
each class-typed parameter recursively. Resolution failures are programmer
errors and always propagate as ``ContainerError`` subclasses.
"""

from __future__ import annotations

import enum
import importlib
import inspect
import threading
import types
import typing
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar, Union, overload

from loguru import logger

T = TypeVar("T")

Abstract = type | str
Factory = Callable[["Container"], Any]

_BUILTIN_TYPES: frozenset[type] = frozenset(
    {int, float, complex, str, bytes, bytearray, bool, list, dict, tuple, set, frozenset, object, type}
)


class ContainerError(Exception):
    """Base class for all resolution and registration errors."""

    def __init__(self, message: str, *, abstract: Abstract | None = None) -> None:
        self.abstract = abstract
        super().__init__(message)


class UnresolvableAbstractError(ContainerError):
    """Abstract is unknown, cannot be imported, or is not instantiable."""


class UnresolvableParameterError(ContainerError):
    """A constructor parameter has no resolvable type and no default."""

    def __init__(self, message: str, *, abstract: Abstract | None = None, owner: str, parameter: str) -> None:
        self.owner = owner
        self.parameter = parameter
        super().__init__(message, abstract=abstract)


class CircularDependencyError(ContainerError):
    """An abstract depends on itself through its constructor chain."""

    def __init__(self, message: str, *, abstract: Abstract | None = None, chain: list[str]) -> None:
        self.chain = chain
        super().__init__(message, abstract=abstract)


class ContainerFrozenError(ContainerError):
    """Registration attempted after the binding table was frozen."""


def describe(abstract: Any) -> str:
    """Human-readable name of an abstract or concrete for logs and errors."""
    if isinstance(abstract, str):
        return abstract
    if isinstance(abstract, type):
        return abstract.__qualname__
    name = getattr(abstract, "__qualname__", None) or getattr(abstract, "__name__", None)
    return name or repr(abstract)


@dataclass(frozen=True, slots=True)
class Binding:
    """Registered association between an abstract and how to build it."""

    abstract: Abstract
    concrete: Abstract | Factory
    singleton: bool = False

    @property
    def is_factory(self) -> bool:
        return callable(self.concrete) and not isinstance(self.concrete, type)


class Container:
    """Service container: bindings, instances, and a lazy singleton cache."""

    def __init__(self) -> None:
        self._bindings: dict[Abstract, Binding] = {}
        self._instances: dict[Abstract, Any] = {}
        self._singletons: dict[Abstract, Any] = {}
        self._resolving: list[Abstract] = []
        self._lock = threading.RLock()
        self._frozen = False

    # -- registration ------------------------------------------------------

    def bind(
        self,
        abstract: Abstract,
        concrete: Abstract | Factory | None = None,
        singleton: bool = False,
    ) -> None:
        """Register how to build ``abstract``. Defaults to building it directly."""
        self._ensure_mutable(abstract)
        binding = Binding(abstract, concrete if concrete is not None else abstract, singleton)
        with self._lock:
            self._bindings[abstract] = binding
            self._singletons.pop(abstract, None)
        logger.debug(
            "Registered {}: {} -> {}",
            "singleton" if singleton else "binding",
            describe(abstract),
            describe(binding.concrete),
        )

    def singleton(self, abstract: Abstract, concrete: Abstract | Factory | None = None) -> None:
        """Register a binding that is constructed once and then cached."""
        self.bind(abstract, concrete, singleton=True)

    def instance(self, abstract: Abstract, obj: Any) -> None:
        """Register an already-built object. It wins over any binding."""
        self._ensure_mutable(abstract)
        with self._lock:
            self._instances[abstract] = obj
        logger.debug("Registered instance: {}", describe(abstract))

    def value(self, abstract: Abstract, value: Any) -> None:
        """Register a plain value (dict, scalar, ...) that must never be constructed."""
        self.instance(abstract, value)

    def freeze(self) -> None:
        """Reject further registrations. Singletons still resolve lazily."""
        self._frozen = True
        logger.debug("Container frozen with {} binding(s)", len(self._bindings))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _ensure_mutable(self, abstract: Abstract) -> None:
        if self._frozen:
            raise ContainerFrozenError(
                f"Cannot register {describe(abstract)}: container is frozen",
                abstract=abstract,
            )

    # -- lookup ------------------------------------------------------------

    def has(self, abstract: Abstract) -> bool:
        """True if a binding or instance exists. Does not guarantee resolution."""
        return abstract in self._bindings or abstract in self._instances

    def get(self, abstract: Abstract, default: Any = None) -> Any:
        """Return a registered instance/value, or ``default``. Never constructs."""
        return self._instances.get(abstract, default)

    def bindings(self) -> dict[Abstract, Binding]:
        """Snapshot of every registered binding."""
        return dict(self._bindings)

    def resolved(self, abstract: Abstract) -> bool:
        """True once a singleton for ``abstract`` has been constructed."""
        return abstract in self._singletons

    # -- resolution --------------------------------------------------------

    @overload
    def make(self, abstract: type[T]) -> T: ...

    @overload
    def make(self, abstract: str) -> Any: ...

    def make(self, abstract: Abstract) -> Any:
        """Resolve ``abstract`` to a value, constructing it if needed.

        Construction runs under the container lock, which is re-entrant for
        the calling thread only. A factory must resolve its dependencies on
        the thread that called it; waiting on another thread that calls
        ``make`` on the same container deadlocks.
        """
        if abstract in self._instances:
            return self._instances[abstract]

        with self._lock:
            if abstract in self._singletons:
                return self._singletons[abstract]

            if abstract in self._resolving:
                chain = [describe(a) for a in self._resolving] + [describe(abstract)]
                raise CircularDependencyError(
                    f"Circular dependency detected: {' -> '.join(chain)}",
                    abstract=abstract,
                    chain=chain,
                )

            binding = self._bindings.get(abstract)
            self._resolving.append(abstract)
            try:
                if binding is None:
                    return self._build(abstract)
                obj = self._create(binding)
            finally:
                self._resolving.pop()

            if binding.singleton:
                self._singletons[abstract] = obj
                logger.debug("Constructed singleton: {}", describe(abstract))
            return obj

    def _create(self, binding: Binding) -> Any:
        if binding.is_factory:
            return binding.concrete(self)
        if binding.concrete == binding.abstract:
            return self._build(binding.concrete)
        # interface -> implementation indirection goes through make() so the
        # implementation's own binding and cache are honoured
        return self.make(binding.concrete)

    def _build(self, concrete: Abstract) -> Any:
        """Construct ``concrete`` by reflecting over its constructor."""
        cls = self._load_class(concrete)

        if inspect.isabstract(cls) or getattr(cls, "_is_protocol", False):
            raise UnresolvableAbstractError(
                f"Class {describe(cls)} is not instantiable; bind a concrete implementation",
                abstract=concrete,
            )

        if cls.__init__ is object.__init__:
            return cls()

        try:
            signature = inspect.signature(cls.__init__)
        except (TypeError, ValueError):
            return cls()

        params = list(signature.parameters.values())[1:]
        try:
            hints: dict[str, Any] = typing.get_type_hints(cls.__init__)
        except Exception as exc:
            # e.g. names imported under TYPE_CHECKING only
            logger.debug("Evaluating annotations of {} one by one: {}", describe(cls), exc)
            hints = _parameter_hints(cls.__init__, params)

        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for param in params:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            resolved = self._resolve_parameter(cls, param, hints.get(param.name))
            if param.kind == param.KEYWORD_ONLY:
                kwargs[param.name] = resolved
            else:
                args.append(resolved)
        return cls(*args, **kwargs)

    def _resolve_parameter(self, owner: type, param: inspect.Parameter, hint: Any) -> Any:
        has_default = param.default is not inspect.Parameter.empty

        def fail(reason: str) -> UnresolvableParameterError:
            return UnresolvableParameterError(
                f"Cannot resolve parameter '{param.name}' of {describe(owner)}: {reason}",
                abstract=owner,
                owner=describe(owner),
                parameter=param.name,
            )

        if hint is None:
            if has_default:
                return param.default
            raise fail("no type hint")

        if isinstance(hint, _UnresolvedHint):
            if has_default:
                return param.default
            raise fail(f"annotation {hint.annotation!r} does not resolve: {hint.error}")

        target = _unwrap_optional(hint)
        if target is None:
            if has_default:
                return param.default
            raise fail(f"complex type {hint!r}")

        if not isinstance(target, type) or target in _BUILTIN_TYPES or issubclass(target, enum.Enum):
            if has_default:
                return param.default
            raise fail(f"value type '{describe(target)}'")

        # a default wins over auto-wiring; only registered types replace it
        if has_default and not self.has(target):
            return param.default

        try:
            return self.make(target)
        except CircularDependencyError:
            raise
        except ContainerError as exc:
            if has_default:
                return param.default
            raise fail(str(exc)) from exc
        except Exception as exc:
            raise fail(f"{type(exc).__name__}: {exc}") from exc

    @staticmethod
    def _load_class(concrete: Abstract) -> type:
        if isinstance(concrete, type):
            return concrete
        if isinstance(concrete, str) and "." in concrete:
            module_name, _, attr = concrete.rpartition(".")
            try:
                cls = getattr(importlib.import_module(module_name), attr)
            except Exception as exc:
                raise UnresolvableAbstractError(
                    f"Class {concrete} not found: {exc}", abstract=concrete
                ) from exc
            if isinstance(cls, type):
                return cls
        raise UnresolvableAbstractError(f"Class {describe(concrete)} not found", abstract=concrete)


@dataclass(frozen=True, slots=True)
class _UnresolvedHint:
    annotation: str
    error: str


def _parameter_hints(func: Any, params: list[inspect.Parameter]) -> dict[str, Any]:
    """Evaluate string annotations per parameter, keeping failures as ``_UnresolvedHint``."""
    globalns = getattr(func, "__globals__", {})
    hints: dict[str, Any] = {}
    for param in params:
        annotation = param.annotation
        if annotation is inspect.Parameter.empty:
            continue
        if isinstance(annotation, str):
            try:
                annotation = eval(annotation, globalns)  # noqa: S307
            except Exception as exc:
                annotation = _UnresolvedHint(param.annotation, f"{type(exc).__name__}: {exc}")
        hints[param.name] = annotation
    return hints


def _unwrap_optional(hint: Any) -> Any:
    """Return the single non-None member of ``X | None``; None for wider unions."""
    if hint is Any:
        return object
    origin = typing.get_origin(hint)
    if origin in (Union, types.UnionType):
        members = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(members) != 1:
            return None
        return _unwrap_optional(members[0])
    if origin is not None:
        # parametrised generics (list[int], dict[str, Any], ...) are never services
        return origin
    return hint
