from __future__ import annotations

from typing import Any


class Deferred:
    """Lightweight stand-in for a service that is not built yet.

    Pass it as a constructor argument to ``Registry.prepare`` (or ``load``);
    when the dependent service is constructed the registry replaces it with
    ``registry.load(*deferred.arguments, **deferred.keywords)``.

    Example:
      registry.prepare("Mailer", Deferred("Smtp", "mail.example.org"))
      registry.load("Mailer")  # builds Smtp first, then Mailer(smtp)

    """

    __slots__ = ("_arguments", "_keywords")

    def __init__(self, identifier: str, /, *args: Any, **kwargs: Any) -> None:
        self._arguments = (identifier, *args)
        self._keywords = kwargs

    @property
    def arguments(self) -> tuple[Any, ...]:
        return self._arguments

    @property
    def keywords(self) -> dict[str, Any]:
        return dict(self._keywords)

    @property
    def identifier(self) -> str:
        return self._arguments[0]

    def __repr__(self) -> str:
        parts = [repr(a) for a in self._arguments]
        parts.extend(f"{k}={v!r}" for k, v in self._keywords.items())
        return f"Deferred({', '.join(parts)})"
