from dataclasses import dataclass
from typing import ClassVar


@dataclass(eq=False)
class DomainError(Exception):
    """Base class for all domain-level errors.

    These represent business or validation failures that occur within
    the relay's core logic, independent of transport concerns.
    Raise subclasses of this in services, repositories, or adapters
    when the problem is related to business rules or domain state.
    """

    message: str
    code: ClassVar[str] = 'domain_error'

    def __str__(self) -> str:
        return self.message


class ConfigError(DomainError):
    """Raised when the system is misconfigured.

    Use this for missing or invalid environment variables, API keys,
    or other critical configuration values that prevent the app from
    starting or operating correctly.
    """

    code = 'config_error'


# 4xx
class InvalidMessage(DomainError):  # 400
    code = 'validation_error'


class RequestTimeout(DomainError):  # 408
    code = 'request_timeout'


class ConversationNotFound(DomainError):  # 404
    code = 'not_found'


# persistence
class PersistenceError(DomainError):  # 500
    """The store failed or refused a write/read."""

    code = 'persistence_error'


class ConversationConflict(PersistenceError):
    """The store rejected a conversation id (duplicate key or bad format)."""

    code = 'persistence_error'


class PersistenceUnavailable(PersistenceError):
    """The store could not be reached."""

    code = 'persistence_error'


# model
class ModelTimeout(DomainError):  # 504
    code = 'model_timeout'


class ModelServiceError(DomainError):  # 502
    code = 'model_error'
