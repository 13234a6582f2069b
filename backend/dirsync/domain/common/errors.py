"""Domain error taxonomy.

Recoverable conditions (an unreachable directory, a single bad record) have
their own types so callers can handle them locally.  ``PersistenceError`` and
``ConfigValueError`` are the ones that must reach the job scheduler.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for every error raised by the domain and its adapters."""


class EntityNotFoundError(DomainError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier!r}")


class DirectoryUnavailableError(DomainError):
    """The directory server for a profile could not be reached or bound."""

    def __init__(self, prefix: str, reason: str = "") -> None:
        self.prefix = prefix
        self.reason = reason
        message = f"Directory for profile {prefix!r} is not available"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedRecordError(DomainError):
    """A fetched directory record cannot be applied to the identity store."""

    def __init__(self, dn: str, reason: str) -> None:
        self.dn = dn
        self.reason = reason
        super().__init__(f"Malformed record {dn!r}: {reason}")


class PersistenceError(DomainError):
    """State could not be durably written.  Fatal for the current invocation."""


class ConfigValueError(DomainError):
    """A stored config value cannot be interpreted.  Fatal, like persistence failures."""

    def __init__(self, namespace: str, key: str, value: object, expected: str = "an integer") -> None:
        self.namespace = namespace
        self.key = key
        self.value = value
        super().__init__(f"Config value {namespace}/{key} = {value!r} is not {expected}")
