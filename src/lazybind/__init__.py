"""Lazy service registry with deferred dependency injection.

Services are addressed by identifiers of the form ``"Type"`` or
``"Type:instance"``. Constructor arguments can be deposited ahead of time with
``prepare`` and the service is only built on its first ``load``; every later
``load`` of the same instance name returns that same object.

Exports:
- `Registry`: owns prepared arguments and live instances; ``prepare``/``load``.
- `Deferred`: an unresolved reference to another service, usable as a
  constructor argument and loaded right before the dependent service is built.
- `TypeTable`: the name -> constructor table the registry builds from.
- `ServiceAccessor`: per-object cache of services loaded by name.
- `resolve_identifier` / `InstanceKey`: identifier canonicalization.
- Errors: `ResolutionError` and its subclasses.
"""

from ._deferred import Deferred
from ._errors import ConstructionFailure, CyclicDeferral, InstanceConflict, InvalidIdentifier, ResolutionError
from ._keys import DEFAULT_NAMESPACE, ROOT_MARKER, InstanceKey, resolve_identifier
from ._registry import Registry, ServiceAccessor
from ._types import TypeTable


__all__ = [
    "DEFAULT_NAMESPACE",
    "ROOT_MARKER",
    "ConstructionFailure",
    "CyclicDeferral",
    "Deferred",
    "InstanceConflict",
    "InstanceKey",
    "InvalidIdentifier",
    "Registry",
    "ResolutionError",
    "ServiceAccessor",
    "TypeTable",
    "resolve_identifier",
]
