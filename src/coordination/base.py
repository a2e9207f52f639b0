"""Base lock recipe - behaviour shared by exclusive and shared locks."""

import posixpath
import time
from collections.abc import Callable

import structlog

from src.core.errors import (
    CoordinationError,
    CreationError,
    InvalidArgumentError,
    PathCreationError,
)
from src.session.manager import (
    Session,
    SessionManager,
    get_session_manager,
    normalize_base_path,
    resolve_key,
)

from .acquisition import Acquisition, AcquisitionState
from .sequence import any_sibling_below, extract_index

logger = structlog.get_logger()


class LockRecipe:
    """Common ground for the lock recipes.

    Args:
        base_path: Path under which relative keys live. Keys starting with
            "/" are used as given.
        hosts: Comma separated host list. Defaults to ZR_HOSTS.
        renew: Drop the shared session for these hosts and connect afresh.
            You want this only after forking: the child must not share the
            parent's ephemeral nodes. Renewing in the same process closes
            the old session and with it every node it owns; lock objects
            already using these hosts move to the new session.
        sessions: SessionManager to take the session from. Defaults to the
            process-wide one.
    """

    def __init__(
        self,
        base_path: str,
        hosts: str | None = None,
        renew: bool = False,
        *,
        sessions: SessionManager | None = None,
    ):
        self.base_path = normalize_base_path(base_path)
        if sessions is None:
            sessions = get_session_manager()
        self.sessions = sessions
        self.hosts = sessions.resolve_hosts(hosts)
        sessions.get(self.hosts, renew=renew)

    @property
    def session(self) -> Session:
        """Current session for our hosts, as held by the manager."""
        return self.sessions.get(self.hosts)

    @property
    def sleep_cycle(self) -> float:
        return self.session.sleep_cycle

    def compute_full_key(self, key: str, lock_name: str = "") -> str:
        """Absolute path for key, with lock_name appended as a child if given."""
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError("Lock keys must be non-empty strings")
        full_key = resolve_key(self.base_path, key)
        if lock_name:
            full_key = posixpath.join(full_key, lock_name)
        return full_key

    def unlock(self, handle: str) -> bool:
        """Release a lock by the handle its lock call returned.

        Returns False if the node was already gone (unlocked before, or
        reclaimed when its session expired).
        """
        if not isinstance(handle, str) or not handle:
            raise InvalidArgumentError("unlock() expects the handle string returned by a lock call")
        deleted = self.session.client.delete(handle)
        if deleted:
            logger.info("Released lock", handle=handle)
        else:
            logger.warning("Lock node already gone", handle=handle)
        return deleted

    def _create_lock_node(self, session: Session, full_key: str) -> str:
        """Create the ephemeral sequential node for a request."""
        session.ensure_path(full_key)
        try:
            return session.client.create(
                full_key,
                b"1",
                session.default_acl,
                ephemeral=True,
                sequence=True,
            )
        except CoordinationError as e:
            logger.error("Failed creating lock node", path=full_key, error=str(e))
            raise CreationError(full_key, details=str(e)) from e

    def _acquire(
        self,
        key: str,
        full_key: str,
        timeout: float,
        mode: str,
        name_filter: bool | str = False,
    ) -> str | None:
        """Create a request node and wait until nothing earlier blocks it.

        Returns the handle, or None if timeout passed first; the request
        node is removed in that case.
        """
        # Pinned for the whole request
        session = self.session
        acquisition = Acquisition(key=key, mode=mode)
        try:
            handle = self._create_lock_node(session, full_key)
        except (CreationError, PathCreationError):
            acquisition.transition(AcquisitionState.FAILED)
            raise
        acquisition.handle = handle
        acquisition.index = extract_index(handle)
        if acquisition.index is None:
            acquisition.transition(AcquisitionState.FAILED)
            self._cleanup(session, handle)
            raise CreationError(full_key, details=f"{handle} carries no sequence number")
        acquisition.transition(AcquisitionState.WAITING)

        try:
            held = self._wait_for_turn(session, full_key, acquisition.index, timeout, name_filter)
        except BaseException:
            # Includes KeyboardInterrupt: never leave a phantom request behind
            acquisition.transition(AcquisitionState.FAILED)
            self._cleanup(session, handle)
            raise

        if not held:
            acquisition.transition(AcquisitionState.TIMED_OUT)
            logger.warning("Timed out waiting for lock", key=key, mode=mode, timeout=timeout)
            self._cleanup(session, handle)
            return None

        acquisition.transition(AcquisitionState.HELD)
        logger.info("Acquired lock", key=key, mode=mode, handle=handle)
        return handle

    def _wait_for_turn(
        self,
        session: Session,
        full_key: str,
        index: int,
        timeout: float,
        name_filter: bool | str,
    ) -> bool:
        """Poll until no matching earlier sibling exists, or the deadline.

        A timeout of 0 checks exactly once.
        """
        deadline = time.monotonic() + timeout
        while True:
            if not any_sibling_below(session, full_key, index, name_filter):
                return True
            if deadline <= time.monotonic():
                return False
            time.sleep(session.sleep_cycle)

    def _wait_until_clear(self, is_locked: Callable[[], bool], timeout: float) -> bool:
        """Poll is_locked until it is False. A timeout of 0 waits forever."""
        deadline = time.monotonic() + timeout if timeout else None
        while True:
            if not is_locked():
                return True
            if deadline is not None and deadline <= time.monotonic():
                return False
            time.sleep(self.sleep_cycle)

    def _cleanup(self, session: Session, handle: str) -> None:
        """Best-effort removal of a request node that did not get the lock."""
        try:
            session.client.delete(handle)
        except CoordinationError as e:
            # The node is ephemeral; session expiry removes it eventually
            logger.warning("Failed removing abandoned lock request", handle=handle, error=str(e))
