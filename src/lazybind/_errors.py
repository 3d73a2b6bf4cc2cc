from __future__ import annotations


class ResolutionError(RuntimeError):
    pass


class InvalidIdentifier(ResolutionError, ValueError):
    def __init__(self, identifier: object, reason: str) -> None:
        super().__init__(f"Invalid instance identifier {identifier!r}: {reason}")
        self.identifier = identifier


class InstanceConflict(ResolutionError):
    """Raised when a stored instance does not satisfy the type requested for its name."""

    def __init__(self, instance_name: str, requested_type: str, existing_type: str) -> None:
        super().__init__(
            f'instance "{instance_name}" already defined of type "{existing_type}", '
            f'which is not compatible with "{requested_type}"'
        )
        self.instance_name = instance_name
        self.requested_type = requested_type
        self.existing_type = existing_type


class ConstructionFailure(ResolutionError):
    """Raised when a type cannot be found or its constructor fails.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, type_name: str, instance_name: str, reason: str) -> None:
        super().__init__(f'Cannot construct "{type_name}" for instance "{instance_name}": {reason}')
        self.type_name = type_name
        self.instance_name = instance_name


class CyclicDeferral(ResolutionError):
    def __init__(self, chain: list[str]) -> None:
        super().__init__(f"Cyclic deferred reference: {' -> '.join(chain)}")
        self.chain = chain
