"""Session layer - coordination client adapter and shared sessions."""

from .client import (
    AccessControlEntry,
    ConnectionState,
    CoordinationClient,
    KazooCoordinationClient,
)
from .manager import (
    Session,
    SessionManager,
    get_session_manager,
    normalize_base_path,
    resolve_key,
)

__all__ = [
    "AccessControlEntry",
    "ConnectionState",
    "CoordinationClient",
    "KazooCoordinationClient",
    "Session",
    "SessionManager",
    "get_session_manager",
    "normalize_base_path",
    "resolve_key",
]
