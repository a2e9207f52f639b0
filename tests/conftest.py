"""Shared fixtures - an in-memory coordination service and sessions on top of it."""

import itertools
import posixpath
import threading

import pytest

from src.core.config import Settings
from src.core.errors import CoordinationError, NodeExistsError
from src.session.client import AccessControlEntry, ConnectionState
from src.session.manager import SessionManager

TEST_HOSTS = "zk-test:2181"


class FakeCoordinationService:
    """Hierarchical node store with per-parent sequence counters.

    Ephemeral nodes are owned by the client session that created them and
    disappear when that client closes.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.nodes: dict[str, int | None] = {"/": None}  # path -> owning session
        self._counters: dict[str, int] = {}
        self._session_ids = itertools.count(1)

    def client(self, connects: bool = True) -> "FakeCoordinationClient":
        return FakeCoordinationClient(self, connects=connects)

    def new_session_id(self) -> int:
        return next(self._session_ids)

    def children(self, path: str) -> list[str]:
        with self._lock:
            return sorted(
                posixpath.basename(node)
                for node in self.nodes
                if node != "/" and posixpath.dirname(node) == path
            )

    def create(self, path: str, ephemeral: bool, sequence: bool, owner: int) -> str:
        with self._lock:
            parent = posixpath.dirname(path) or "/"
            if parent not in self.nodes:
                raise CoordinationError("Parent node does not exist", path=path)
            if self.nodes[parent] is not None:
                raise CoordinationError("Ephemeral nodes cannot have children", path=path)
            if sequence:
                counter = self._counters.get(parent, 0)
                self._counters[parent] = counter + 1
                path = f"{path}{counter:010d}"
            if path in self.nodes:
                raise NodeExistsError("Node already exists", path=path)
            self.nodes[path] = owner if ephemeral else None
            return path

    def delete(self, path: str) -> bool:
        with self._lock:
            if path not in self.nodes:
                return False
            if self.children(path):
                raise CoordinationError("Node not empty", path=path)
            del self.nodes[path]
            return True

    def expire(self, owner: int) -> None:
        with self._lock:
            for path in [p for p, o in self.nodes.items() if o == owner]:
                del self.nodes[path]


class FakeCoordinationClient:
    """CoordinationClient backed by a FakeCoordinationService."""

    def __init__(self, service: FakeCoordinationService, connects: bool = True):
        self.service = service
        self.connects = connects
        self.session_id: int | None = None
        self.hosts: str | None = None
        self.state = ConnectionState.CLOSED

    def connect(self, hosts: str) -> None:
        self.hosts = hosts
        self.session_id = self.service.new_session_id()
        self.state = ConnectionState.CONNECTED if self.connects else ConnectionState.CONNECTING

    def get_state(self) -> ConnectionState:
        return self.state

    def _check_open(self, path: str) -> None:
        if self.state == ConnectionState.CLOSED:
            raise CoordinationError("Connection has been closed", path=path)

    def exists(self, path: str) -> bool:
        self._check_open(path)
        return path in self.service.nodes

    def get_children(self, path: str) -> list[str]:
        self._check_open(path)
        return self.service.children(path)

    def create(
        self,
        path: str,
        value: bytes,
        acl: AccessControlEntry,
        ephemeral: bool = False,
        sequence: bool = False,
    ) -> str:
        self._check_open(path)
        return self.service.create(path, ephemeral, sequence, self.session_id)

    def delete(self, path: str) -> bool:
        self._check_open(path)
        return self.service.delete(path)

    def close(self) -> None:
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        self.service.expire(self.session_id)


@pytest.fixture
def settings():
    """Create test settings with a short poll interval."""
    return Settings(
        hosts=TEST_HOSTS,
        sleep_cycle=0.01,
        connection_timeout=0.2,
    )


@pytest.fixture
def zk_service():
    return FakeCoordinationService()


@pytest.fixture
def make_sessions(settings, zk_service):
    """Factory for SessionManagers on the shared service, one per simulated process."""
    managers = []

    def factory() -> SessionManager:
        manager = SessionManager(settings, client_factory=zk_service.client)
        managers.append(manager)
        return manager

    yield factory

    for manager in managers:
        manager.close_all()


@pytest.fixture
def sessions(make_sessions):
    return make_sessions()
