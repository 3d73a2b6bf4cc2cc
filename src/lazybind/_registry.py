from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, overload

from ._deferred import Deferred
from ._errors import ConstructionFailure, CyclicDeferral, InstanceConflict, ResolutionError
from ._keys import DEFAULT_NAMESPACE, qualify, resolve_identifier
from ._types import TypeTable, capabilities_of, satisfies


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._keys import InstanceKey


@dataclass
class ArgumentRecord:
    type_name: str
    args: tuple[Any, ...]
    kwargs: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class InstanceEntry:
    type_name: str
    instance: object
    capabilities: frozenset[type]


class Registry:
    """Lazy service registry.

    - ``prepare`` deposits constructor arguments for an instance name
    - ``load`` builds the instance on first use and returns it afterwards
    - ``Deferred`` arguments are loaded right before the dependent service is built
    - one live instance per canonical instance name.
    """

    def __init__(
        self,
        types: TypeTable | None = None,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        autoimport: bool = False,
    ) -> None:
        self._types = types if types is not None else TypeTable(autoimport=autoimport)
        self._namespace = namespace
        self._arguments: dict[str, ArgumentRecord] = {}
        self._instances: dict[str, InstanceEntry] = {}
        # instance names whose construction is in progress, outermost first
        self._constructing: list[str] = []
        self._lock = threading.RLock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def types(self) -> TypeTable:
        return self._types

    @overload
    def register_type(self, name: str, /, factory: None = ...) -> Callable[[Any], Any]: ...

    @overload
    def register_type(self, name: str, /, factory: Callable[..., object]) -> None: ...

    def register_type(self, name: str, /, factory: Callable[..., object] | None = None) -> Any:
        """Register a constructor under ``name``, namespaced like identifiers are.

        Example:
          registry.register_type("Db", Database)           # -> "<namespace>.Db"
          registry.register_type(".app.cache.Cache", Cache)  # verbatim

        """
        return self._types.register(qualify(name, self._namespace), factory)

    def resolve(self, identifier: str) -> InstanceKey:
        return resolve_identifier(identifier, self._namespace)

    def prepare(self, identifier: str, /, *args: Any, **kwargs: Any) -> None:
        """Deposit constructor arguments for a later ``load`` of ``identifier``.

        A later ``prepare`` for the same instance name replaces the earlier one.
        """
        type_name, instance_name = self.resolve(identifier)

        with self._lock:
            replaced = instance_name in self._arguments
            self._arguments[instance_name] = ArgumentRecord(type_name, args, kwargs)

        logger.debug("prepared %r as %s (replaced=%s)", instance_name, type_name, replaced)

    def load(self, identifier: str, /, *args: Any, **kwargs: Any) -> Any:
        """Return the instance for ``identifier``, constructing it on first use.

        Arguments given here take precedence over prepared ones. Without
        arguments the prepared record (type name included) is used, or the
        type is constructed without arguments.
        """
        type_name, instance_name = self.resolve(identifier)

        with self._lock:
            if not args and not kwargs:
                record = self._arguments.get(instance_name)
                if record is not None:
                    type_name = record.type_name
                    args, kwargs = record.args, dict(record.kwargs)

            entry = self._instances.get(instance_name)
            if entry is not None:
                if not self._is_compatible(entry, type_name):
                    raise InstanceConflict(instance_name, type_name, entry.type_name)
                logger.debug("returning existing instance %r", instance_name)
                return entry.instance

            if instance_name in self._constructing:
                chain = [*self._constructing[self._constructing.index(instance_name) :], instance_name]
                raise CyclicDeferral(chain)

            self._constructing.append(instance_name)
            try:
                instance = self._construct(type_name, instance_name, args, kwargs)
            finally:
                self._constructing.pop()

            self._instances[instance_name] = InstanceEntry(type_name, instance, capabilities_of(instance))
            return instance

    def is_prepared(self, identifier: str) -> bool:
        _, instance_name = self.resolve(identifier)
        with self._lock:
            return instance_name in self._arguments

    def is_loaded(self, identifier: str) -> bool:
        _, instance_name = self.resolve(identifier)
        with self._lock:
            return instance_name in self._instances

    def accessor(self) -> ServiceAccessor:
        return ServiceAccessor(self)

    def _construct(
        self,
        type_name: str,
        instance_name: str,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> object:
        try:
            factory = self._types.lookup(type_name)
        except LookupError as e:
            logger.debug("no constructor for %s (%s)", type_name, instance_name)
            raise ConstructionFailure(type_name, instance_name, str(e)) from e

        args = tuple(self._substitute(a) for a in args)
        kwargs = {k: self._substitute(v) for k, v in kwargs.items()}

        logger.debug("constructing %r as %s", instance_name, type_name)
        try:
            instance = factory(*args, **kwargs)
        except ResolutionError:
            raise
        except Exception as e:
            logger.debug("constructor of %s raised %r", type_name, e)
            raise ConstructionFailure(type_name, instance_name, f"{type(e).__name__}: {e}") from e

        logger.debug("constructed %r", instance_name)
        return instance

    def _substitute(self, value: Any) -> Any:
        if not isinstance(value, Deferred):
            return value
        logger.debug("resolving %r", value)
        return self.load(*value.arguments, **value.keywords)

    def _is_compatible(self, entry: InstanceEntry, type_name: str) -> bool:
        if entry.type_name.lower() == type_name.lower():
            return True

        requested = self._types.find(type_name)
        if requested is None:
            return False
        return satisfies(type(entry.instance), entry.capabilities, requested)

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"{type(self).__name__}(namespace={self._namespace!r}, "
                f"prepared={len(self._arguments)}, loaded={len(self._instances)})"
            )


class ServiceAccessor:
    """Per-object cache of services loaded by name.

    ``accessor.get("db")`` is ``registry.load("Db")`` the first time and the
    cached object afterwards.
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry
        self._cache: dict[str, Any] = {}

    def get(self, name: str) -> Any:
        try:
            return self._cache[name]
        except KeyError:
            pass

        instance = self._registry.load(name[:1].upper() + name[1:])
        self._cache[name] = instance
        return instance

    def __contains__(self, name: object) -> bool:
        return name in self._cache
