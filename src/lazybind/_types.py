from __future__ import annotations

import importlib
import inspect
import logging
import threading
import typing
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, cast, overload


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    F = TypeVar("F", bound=Callable[..., object])


class TypeTable:
    """Maps fully-qualified type names to constructors.

    - names match case-insensitively, the registered spelling is kept
    - constructors are classes or any callable returning the service
    - with ``autoimport=True`` unknown dotted names are imported on demand.
    """

    def __init__(self, *, autoimport: bool = False) -> None:
        self._entries: dict[str, tuple[str, Callable[..., object]]] = {}
        self._autoimport = autoimport
        self._lock = threading.RLock()

    @overload
    def register(self, name: str, /, factory: None = ...) -> Callable[[F], F]: ...

    @overload
    def register(self, name: str, /, factory: Callable[..., object]) -> None: ...

    def register(self, name: str, /, factory: Callable[..., object] | None = None) -> Any:
        """Bind ``name`` to ``factory``; without a factory, return a decorator.

        Example:
          types.register("app.Db", Database)

          @types.register("app.Cache")
          class Cache: ...

        """
        if factory is None:

            def decorator(obj: F) -> F:
                self.register(name, obj)
                return obj

            return decorator

        if not callable(factory):
            msg = f"Constructor for {name!r} must be callable, got {type(factory).__name__}"
            raise TypeError(msg)

        with self._lock:
            self._entries[name.lower()] = (name, factory)

    def find(self, name: str) -> Callable[..., object] | None:
        try:
            return self.lookup(name)
        except LookupError:
            return None

    def lookup(self, name: str) -> Callable[..., object]:
        with self._lock:
            entry = self._entries.get(name.lower())
        if entry is not None:
            return entry[1]
        if self._autoimport:
            return _import_attribute(name)
        msg = f"Unknown type {name!r}"
        raise LookupError(msg)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find(name) is not None

    def names(self) -> list[str]:
        with self._lock:
            return sorted(spelling for spelling, _ in self._entries.values())


def _import_attribute(name: str) -> Callable[..., object]:
    module_name, _, attr = name.rpartition(".")
    if not module_name:
        msg = f"Unknown type {name!r}: not a dotted import path"
        raise LookupError(msg)

    try:
        module = importlib.import_module(module_name)
    except Exception as exc:
        logger.debug("autoimport of %s failed: %r", name, exc)
        msg = f"Cannot import {module_name!r} for type {name!r}: {type(exc).__name__}: {exc}"
        raise LookupError(msg) from exc

    obj = getattr(module, attr, None)
    if obj is None or not callable(obj):
        msg = f"Unknown type {name!r}: {module_name!r} has no callable {attr!r}"
        raise LookupError(msg)
    return cast("Callable[..., object]", obj)


def capabilities_of(instance: object) -> frozenset[type]:
    """Classes a constructed instance satisfies nominally."""
    return frozenset(type(instance).__mro__)


def satisfies(impl: type, capabilities: frozenset[type], requested: Callable[..., object]) -> bool:
    """Check whether an instance of ``impl`` can be handed out as ``requested``.

    - plain callables (factories) are never satisfied by name alone
    - normal classes/ABCs must appear in the capability set
    - Protocols are satisfied nominally or by structural conformance.
    """
    if not inspect.isclass(requested):
        return False

    if requested in capabilities:
        return True

    if not is_protocol(requested):
        return False

    mismatches = protocol_mismatches(requested, impl)
    if mismatches:
        logger.debug("%s does not conform to %s: %s", impl.__name__, requested.__name__, "; ".join(mismatches))
        return False
    return True


def is_protocol(tp: object) -> bool:
    """Detect whether 'tp' is a typing.Protocol subclass (safe)."""
    if not inspect.isclass(tp):
        return False
    if hasattr(typing, "is_protocol"):
        # https://docs.python.org/3/library/typing.html#typing.is_protocol
        return typing.is_protocol(tp)
    return issubclass(tp, cast("type", Protocol)) and bool(getattr(tp, "_is_protocol", False))


def protocol_mismatches(proto_cls: type, impl: type) -> list[str]:  # noqa: C901
    """Differences between the methods of ``proto_cls`` and ``impl``; empty when ``impl`` conforms.

    Only methods are compared: presence, required positional arity (``impl`` must
    not require fewer than the protocol) and class-based return covariance.
    """
    if proto_cls in getattr(impl, "__mro__", ()):
        return []

    missing: list[str] = []
    signature_mismatches: list[str] = []

    for name, proto_attr in proto_cls.__dict__.items():
        if name.startswith("_") or not inspect.isfunction(proto_attr):
            continue

        if not hasattr(impl, name):
            missing.append(name)
            continue

        impl_attr = getattr(impl, name)
        if not callable(impl_attr):
            signature_mismatches.append(f"{name}: not callable on {impl.__name__}")
            continue

        try:
            proto_sig = inspect.signature(proto_attr)
            impl_sig = inspect.signature(impl_attr)
        except (TypeError, ValueError) as e:
            signature_mismatches.append(f"{name}: unable to compare signatures ({e})")
            continue

        proto_arity = _positional_arity(proto_sig)
        impl_arity = _positional_arity(impl_sig)
        if impl_arity < proto_arity:
            signature_mismatches.append(
                f"{name}: fewer required positional params ({impl_arity}) than protocol ({proto_arity})"
            )

        proto_ret = proto_sig.return_annotation
        impl_ret = impl_sig.return_annotation
        if (
            proto_ret is not inspect.Signature.empty
            and impl_ret is not inspect.Signature.empty
            and proto_ret is not Any
            and impl_ret is not Any
            and not _is_return_type_compatible(impl_ret, proto_ret)
        ):
            signature_mismatches.append(f"{name}: return type {impl_ret!r} is not compatible with {proto_ret!r}")

    if missing:
        signature_mismatches.insert(0, f"missing members: {', '.join(missing)}")
    return signature_mismatches


def _positional_arity(sig: inspect.Signature) -> int:
    return sum(
        1
        for p in sig.parameters.values()
        if p.name != "self"
        and p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    )


def _is_return_type_compatible(impl_ret: object, proto_ret: object) -> bool:
    if impl_ret == proto_ret:
        return True

    # Handle class-based covariance
    if isinstance(impl_ret, type) and isinstance(proto_ret, type):
        return issubclass(impl_ret, proto_ret)

    # Union, TypeVar, string annotations etc.: conservative failure
    return False
