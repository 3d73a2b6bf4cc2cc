"""Canonicalization of instance identifiers.

An identifier is ``TypePart[':' InstancePart]``. The type part is a dotted
name; unless it starts with ``ROOT_MARKER`` it is taken relative to the
registry namespace. The instance part (or, when missing, the last segment of
the type name) is lower-cased to form the canonical instance name.
"""

from __future__ import annotations

from typing import NamedTuple

from ._errors import InvalidIdentifier


DEFAULT_NAMESPACE = "lazybind"
ROOT_MARKER = "."


class InstanceKey(NamedTuple):
    type_name: str
    instance_name: str


def qualify(type_part: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Return the fully-qualified type name for ``type_part``.

    Example:
      qualify("Widget")                      -> "lazybind.Widget"
      qualify("views.Json", "app")           -> "app.views.Json"
      qualify(".collections.OrderedDict")    -> "collections.OrderedDict"

    """
    if type_part.startswith(ROOT_MARKER):
        type_name = type_part[len(ROOT_MARKER) :]
    elif namespace:
        type_name = f"{namespace}.{type_part}"
    else:
        type_name = type_part

    if not type_name:
        msg = "empty type name"
        raise InvalidIdentifier(type_part, msg)

    for segment in type_name.split("."):
        if not segment.isidentifier():
            msg = f"{segment!r} is not a valid name segment"
            raise InvalidIdentifier(type_part, msg)

    return type_name


def resolve_identifier(identifier: str, namespace: str = DEFAULT_NAMESPACE) -> InstanceKey:
    if not isinstance(identifier, str):
        msg = f"expected str, got {type(identifier).__name__}"
        raise InvalidIdentifier(identifier, msg)

    type_part, _, instance_part = identifier.partition(":")
    if not type_part:
        msg = "empty type part"
        raise InvalidIdentifier(identifier, msg)

    type_name = qualify(type_part, namespace)
    instance_name = instance_part or type_name.rpartition(".")[2]

    return InstanceKey(type_name, instance_name.lower())
