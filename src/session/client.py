"""Coordination service client - the adapter the recipes talk to."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import structlog
from kazoo.client import KazooClient
from kazoo.exceptions import KazooException, NoNodeError
from kazoo.exceptions import NodeExistsError as KazooNodeExistsError
from kazoo.protocol.states import KazooState
from kazoo.security import make_acl

from src.core.errors import CoordinationError, NodeExistsError

logger = structlog.get_logger()


class ConnectionState(str, Enum):
    """Client connection states."""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SUSPENDED = "suspended"
    CLOSED = "closed"


@dataclass(frozen=True)
class AccessControlEntry:
    """ACL entry applied to created nodes. Defaults to world:anyone, all perms."""
    scheme: str = "world"
    credential: str = "anyone"
    read: bool = True
    write: bool = True
    create: bool = True
    delete: bool = True
    admin: bool = True


class CoordinationClient(Protocol):
    """What the recipes need from a coordination service client.

    Sequence numbers of siblings created under one parent must increase
    in creation order, and ephemeral nodes must vanish with the session
    that created them.
    """

    def connect(self, hosts: str) -> None:
        """Start connecting; readiness is observed through get_state()."""

    def get_state(self) -> ConnectionState:
        ...

    def exists(self, path: str) -> bool:
        ...

    def get_children(self, path: str) -> list[str]:
        """Child names (not full paths) of path."""

    def create(
        self,
        path: str,
        value: bytes,
        acl: AccessControlEntry,
        ephemeral: bool = False,
        sequence: bool = False,
    ) -> str:
        """Create a node and return its assigned path.

        Raises NodeExistsError if the node is already there, and
        CoordinationError for any other failure.
        """

    def delete(self, path: str) -> bool:
        """Delete a node. False if it was not there."""

    def close(self) -> None:
        ...


class KazooCoordinationClient:
    """ZooKeeper client built on kazoo."""

    def __init__(self, **kazoo_options):
        self.kazoo_options = kazoo_options
        self.client: KazooClient | None = None
        self._closed = False

    def _get_client(self) -> KazooClient:
        if self.client is None:
            raise CoordinationError("Client is not connected; call connect() first")
        return self.client

    def connect(self, hosts: str) -> None:
        self.client = KazooClient(hosts=hosts, **self.kazoo_options)
        self._closed = False
        # Do not block here; the session manager polls get_state()
        self.client.start_async()

    def get_state(self) -> ConnectionState:
        if self._closed or self.client is None:
            return ConnectionState.CLOSED
        if self.client.connected:
            return ConnectionState.CONNECTED
        if self.client.state == KazooState.SUSPENDED:
            return ConnectionState.SUSPENDED
        return ConnectionState.CONNECTING

    def exists(self, path: str) -> bool:
        try:
            return self._get_client().exists(path) is not None
        except KazooException as e:
            raise CoordinationError("exists() failed", path=path, original_error=e) from e

    def get_children(self, path: str) -> list[str]:
        try:
            return self._get_client().get_children(path)
        except NoNodeError:
            # Parent vanished between the caller's exists() and this call
            return []
        except KazooException as e:
            raise CoordinationError("get_children() failed", path=path, original_error=e) from e

    def create(
        self,
        path: str,
        value: bytes,
        acl: AccessControlEntry,
        ephemeral: bool = False,
        sequence: bool = False,
    ) -> str:
        kazoo_acl = make_acl(
            acl.scheme,
            acl.credential,
            read=acl.read,
            write=acl.write,
            create=acl.create,
            delete=acl.delete,
            admin=acl.admin,
        )
        try:
            return self._get_client().create(
                path,
                value,
                acl=[kazoo_acl],
                ephemeral=ephemeral,
                sequence=sequence,
            )
        except KazooNodeExistsError as e:
            raise NodeExistsError("Node already exists", path=path, original_error=e) from e
        except KazooException as e:
            raise CoordinationError("create() failed", path=path, original_error=e) from e

    def delete(self, path: str) -> bool:
        try:
            self._get_client().delete(path)
        except NoNodeError:
            return False
        except KazooException as e:
            raise CoordinationError("delete() failed", path=path, original_error=e) from e
        return True

    def close(self) -> None:
        if self.client is None or self._closed:
            return
        self._closed = True
        try:
            self.client.stop()
            self.client.close()
        except KazooException as e:
            logger.warning("Error closing ZooKeeper client", error=str(e))
