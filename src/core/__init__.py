"""Core - settings, errors and logging shared by every recipe."""

from .config import Settings, get_settings
from .errors import (
    ConfigurationError,
    ConnectionTimeoutError,
    CoordinationError,
    CreationError,
    InvalidArgumentError,
    NodeExistsError,
    PathCreationError,
    RecipeError,
)
from .logging import configure_logging

__all__ = [
    "ConfigurationError",
    "ConnectionTimeoutError",
    "CoordinationError",
    "CreationError",
    "InvalidArgumentError",
    "NodeExistsError",
    "PathCreationError",
    "RecipeError",
    "Settings",
    "configure_logging",
    "get_settings",
]
