"""Exceptions raised by the lock recipes.

Waiting for a lock and timing out is not an error; those calls return
``None``. Everything here is raised for conditions a retry would not fix.
"""


class RecipeError(Exception):
    """Base exception for all recipe errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigurationError(RecipeError):
    """Missing or invalid base path or host list."""

    def __init__(self, message: str, field: str | None = None, details: str | None = None):
        self.field = field
        super().__init__(message, details)


class ConnectionTimeoutError(RecipeError):
    """The session never reached the connected state."""

    def __init__(self, hosts: str, timeout: float):
        self.hosts = hosts
        self.timeout = timeout
        super().__init__(
            "Coordination service connection timed out",
            f"no connection to {hosts} within {timeout:g}s",
        )


class CoordinationError(RecipeError):
    """A call to the coordination service failed.

    Attributes:
        path: Node path the failing call was made on
        original_error: The client library's exception, if any
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        original_error: Exception | None = None,
    ):
        self.path = path
        self.original_error = original_error
        details = str(original_error) if original_error else None
        super().__init__(message, details)


class NodeExistsError(CoordinationError):
    """The node being created is already there."""


class PathCreationError(RecipeError):
    """An ancestor directory of a lock node could not be created."""

    def __init__(self, path: str, details: str | None = None):
        self.path = path
        super().__init__(f"Failed creating path [{path}]", details)


class CreationError(RecipeError):
    """A lock node could not be created."""

    def __init__(self, path: str, details: str | None = None):
        self.path = path
        super().__init__(f"Failed creating lock node {path}", details)


class InvalidArgumentError(RecipeError, TypeError):
    """A caller passed something that cannot be a key or a lock handle."""
