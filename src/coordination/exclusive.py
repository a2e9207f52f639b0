"""Exclusive lock - one holder per key, granted in request order."""

from collections.abc import Iterator
from contextlib import contextmanager

from .base import LockRecipe
from .sequence import any_sibling_below


class ExclusiveLock(LockRecipe):
    """Mutual exclusion on named keys.

    Each request is an ephemeral sequential node ``<key>/lock-NNNNNNNNNN``.
    A request holds the lock once no sibling with a smaller sequence
    number is left.
    """

    lock_name = "lock-"

    def get_lock_name(self, key: str) -> str:
        """Lock node path prefix for key; sequences are per parent, so one directory per key."""
        return self.compute_full_key(key, self.lock_name)

    def lock(self, key: str, timeout: float = 0) -> str | None:
        """Lock key, waiting up to timeout seconds (0 means try once).

        Returns the lock handle to pass to unlock(), or None on timeout.
        """
        return self._acquire(key, self.get_lock_name(key), timeout, mode="exclusive")

    def is_locked(self, key: str) -> bool:
        """Whether any lock or pending request exists for key, ours included."""
        return any_sibling_below(self.session, self.get_lock_name(key))

    def wait_for_all_locks(self, key: str, timeout: float = 0) -> bool:
        """Wait until no lock exists for key (0 means wait indefinitely).

        This waits for every lock on key, not just those that predate the
        call, so it also waits for a lock the caller itself holds.

        Returns:
            True once clear, False if timeout passed first.
        """
        return self._wait_until_clear(lambda: self.is_locked(key), timeout)

    @contextmanager
    def holding(self, key: str, timeout: float = 0) -> Iterator[str | None]:
        """Hold the lock for the duration of a with block.

        Yields the handle, or None if the lock was not acquired in time.
        """
        handle = self.lock(key, timeout)
        try:
            yield handle
        finally:
            if handle is not None:
                self.unlock(handle)
