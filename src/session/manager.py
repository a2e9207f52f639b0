"""Session management - one shared coordination session per host list."""

import os
import posixpath
import threading
import time
from collections.abc import Callable

import structlog

from src.core.config import Settings, get_settings
from src.core.errors import (
    ConfigurationError,
    ConnectionTimeoutError,
    CoordinationError,
    NodeExistsError,
    PathCreationError,
)

from .client import (
    AccessControlEntry,
    ConnectionState,
    CoordinationClient,
    KazooCoordinationClient,
)

logger = structlog.get_logger()

SEPARATOR = "/"


def normalize_base_path(path: str) -> str:
    """Strip trailing separators; an empty result means the root."""
    if not isinstance(path, str) or not path:
        raise ConfigurationError(
            "The path needs to be a non-empty string",
            field="base_path",
        )
    return path.rstrip(SEPARATOR) or SEPARATOR


def resolve_key(base_path: str, key: str) -> str:
    """Full path for key: unchanged if absolute, else under base_path."""
    if key.startswith(SEPARATOR):
        return key
    if base_path == SEPARATOR:
        # Avoid "//key" when working in the root
        return SEPARATOR + key
    return base_path + SEPARATOR + key


def parent_of(path: str) -> str:
    return posixpath.dirname(path) or SEPARATOR


class Session:
    """A connected coordination client plus what we remember about it.

    ``known_paths`` holds directories confirmed to exist. Nothing in the
    recipes ever deletes a directory, so entries are never invalidated.
    """

    def __init__(
        self,
        client: CoordinationClient,
        hosts: str,
        settings: Settings,
    ):
        self.client = client
        self.hosts = hosts
        self.sleep_cycle = settings.sleep_cycle
        self.connection_timeout = settings.connection_timeout
        self.default_acl = AccessControlEntry(
            scheme=settings.acl_scheme,
            credential=settings.acl_credential,
        )
        self.known_paths: set[str] = {SEPARATOR}
        self.pid = os.getpid()
        self.reuse_warned = False

    @property
    def state(self) -> ConnectionState:
        return self.client.get_state()

    def wait_for_connection(self) -> None:
        """Poll the client until connected or connection_timeout elapses."""
        deadline = time.monotonic() + self.connection_timeout
        while self.client.get_state() != ConnectionState.CONNECTED:
            if deadline <= time.monotonic():
                logger.error(
                    "Coordination service connection timed out",
                    hosts=self.hosts,
                    timeout=self.connection_timeout,
                )
                raise ConnectionTimeoutError(self.hosts, self.connection_timeout)
            time.sleep(self.sleep_cycle)

    def ensure_path(self, path: str) -> None:
        """Make sure every ancestor directory of path exists (not path itself).

        Walks up from the parent to the nearest directory known or found to
        exist, then creates the missing ones top-down. A directory created
        concurrently by someone else counts as success.
        """
        missing: list[str] = []
        current = parent_of(path)
        while current not in self.known_paths:
            if self.client.exists(current):
                self.known_paths.add(current)
                break
            missing.append(current)
            current = parent_of(current)

        for directory in reversed(missing):
            try:
                self.client.create(directory, b"1", self.default_acl)
            except NodeExistsError:
                pass
            except CoordinationError as e:
                logger.error("Failed creating path", path=directory, error=str(e))
                raise PathCreationError(directory, details=str(e)) from e
            self.known_paths.add(directory)

    def close(self) -> None:
        self.client.close()


class SessionManager:
    """Hands out one shared Session per host list.

    Lock objects share sessions through a manager rather than each holding
    their own connection, so all locks in a process own their ephemeral
    nodes under the same session identity.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: Callable[[], CoordinationClient] = KazooCoordinationClient,
    ):
        self.settings = settings or get_settings()
        self.client_factory = client_factory
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def resolve_hosts(self, hosts: str | None) -> str:
        """Explicit host list, or the configured default."""
        if hosts is None:
            hosts = self.settings.hosts
        if not hosts or not hosts.strip():
            raise ConfigurationError(
                "Either specify the host list explicitly or set ZR_HOSTS",
                field="hosts",
            )
        return ",".join(h.strip() for h in hosts.split(",") if h.strip())

    def get(self, hosts: str | None = None, renew: bool = False) -> Session:
        """Shared session for hosts, connecting if there is none yet.

        renew drops the current session first; use it after a fork so the
        child gets its own ephemeral identity instead of the parent's.
        """
        hosts = self.resolve_hosts(hosts)
        with self._lock:
            session = self._sessions.get(hosts)
            if renew and session is not None:
                del self._sessions[hosts]
                self._discard(session)
                session = None

            if session is not None:
                if session.pid != os.getpid() and not session.reuse_warned:
                    session.reuse_warned = True
                    logger.warning(
                        "Reusing a session created by another process; "
                        "pass renew=True after forking",
                        hosts=hosts,
                        owner_pid=session.pid,
                    )
                return session

            session = self._connect(hosts)
            self._sessions[hosts] = session
            return session

    def _connect(self, hosts: str) -> Session:
        client = self.client_factory()
        session = Session(client, hosts, self.settings)
        client.connect(hosts)
        try:
            session.wait_for_connection()
        except ConnectionTimeoutError:
            session.close()
            raise
        logger.info("Coordination session established", hosts=hosts)
        return session

    def _discard(self, session: Session) -> None:
        if session.pid != os.getpid():
            # Inherited across a fork: the connection belongs to the parent
            return
        try:
            session.close()
        except CoordinationError as e:
            logger.warning("Error closing discarded session", hosts=session.hosts, error=str(e))

    def close_all(self) -> None:
        """Close every managed session."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            self._discard(session)


_default_manager: SessionManager | None = None
_default_manager_lock = threading.Lock()


def get_session_manager() -> SessionManager:
    """The process default SessionManager."""
    global _default_manager
    with _default_manager_lock:
        if _default_manager is None:
            _default_manager = SessionManager()
        return _default_manager
