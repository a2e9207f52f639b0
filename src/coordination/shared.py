"""Shared (read/write) lock.

Read and write requests for a key are sequential nodes in the same
directory, so they draw sequence numbers from one counter and can be
ordered against each other. A writer waits for every earlier request;
a reader waits only for earlier writers, so readers never block each
other but cannot overtake a writer that asked first.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from .base import LockRecipe
from .sequence import SAME_NAME, any_sibling_below


class LockMode(str, Enum):
    """Shared lock modes."""
    READ = "read"
    WRITE = "write"

    @property
    def prefix(self) -> str:
        """Default node name prefix for requests in this mode."""
        return f"{self.value}-"

    @property
    def blocked_by(self) -> "LockMode | None":
        """Mode of earlier requests this mode waits for; None means all of them."""
        if self is LockMode.READ:
            return LockMode.WRITE
        return None


class SharedLock(LockRecipe):
    """Read/write lock on named keys.

    Requests are ``<key>/read-NNNNNNNNNN`` and ``<key>/write-NNNNNNNNNN``;
    override read_lock_name and write_lock_name to change the prefixes.
    The two must differ and neither may be a prefix of the other.
    """

    read_lock_name = LockMode.READ.prefix
    write_lock_name = LockMode.WRITE.prefix

    def get_lock_name(self, key: str, mode: LockMode) -> str:
        """Lock node path prefix for requests on key in mode."""
        if mode is LockMode.READ:
            lock_name = self.read_lock_name
        else:
            lock_name = self.write_lock_name
        return self.compute_full_key(key, lock_name)

    def wlock(self, key: str, timeout: float = 0) -> str | None:
        """Write lock key, waiting up to timeout seconds (0 means try once).

        Write locks are exclusive: granted once no earlier read or write
        request is left.

        Returns the lock handle to pass to unlock(), or None on timeout.
        """
        return self._lock(key, timeout, LockMode.WRITE)

    def rlock(self, key: str, timeout: float = 0) -> str | None:
        """Read lock key, waiting up to timeout seconds (0 means try once).

        Read locks are shared: granted once no earlier write request is left.

        Returns the lock handle to pass to unlock(), or None on timeout.
        """
        return self._lock(key, timeout, LockMode.READ)

    def _lock(self, key: str, timeout: float, mode: LockMode) -> str | None:
        full_key = self.get_lock_name(key, mode)
        blocking_mode = mode.blocked_by
        if blocking_mode is None:
            name_filter: bool | str = False
        else:
            name_filter = self.get_lock_name(key, blocking_mode)
        return self._acquire(key, full_key, timeout, mode=mode.value, name_filter=name_filter)

    def is_write_locked(self, key: str) -> bool:
        """Whether a write lock on key would have to wait.

        True if any read or write lock or request exists, ours included.
        """
        return any_sibling_below(self.session, self.get_lock_name(key, LockMode.READ))

    def is_read_locked(self, key: str) -> bool:
        """Whether a read lock on key would have to wait.

        True if any write lock or request exists, ours included.
        """
        return any_sibling_below(
            self.session,
            self.get_lock_name(key, LockMode.WRITE),
            name_filter=SAME_NAME,
        )

    def wait_for_all_write_locks(self, key: str, timeout: float = 0) -> bool:
        """Wait until no write lock exists for key (0 means wait indefinitely).

        Like wait_for_all_locks(), this includes write locks taken after the
        call started and the caller's own.
        """
        return self._wait_until_clear(lambda: self.is_read_locked(key), timeout)

    def wait_for_all_locks(self, key: str, timeout: float = 0) -> bool:
        """Wait until no lock of either mode exists for key (0 means wait indefinitely).

        Returns:
            True once clear, False if timeout passed first.
        """
        return self._wait_until_clear(lambda: self.is_write_locked(key), timeout)

    @contextmanager
    def reading(self, key: str, timeout: float = 0) -> Iterator[str | None]:
        """Hold a read lock for a with block; yields the handle or None."""
        handle = self.rlock(key, timeout)
        try:
            yield handle
        finally:
            if handle is not None:
                self.unlock(handle)

    @contextmanager
    def writing(self, key: str, timeout: float = 0) -> Iterator[str | None]:
        """Hold a write lock for a with block; yields the handle or None."""
        handle = self.wlock(key, timeout)
        try:
            yield handle
        finally:
            if handle is not None:
                self.unlock(handle)
