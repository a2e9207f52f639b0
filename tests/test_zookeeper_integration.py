"""Lock behaviour against a real ZooKeeper.

Set ZR_TEST_HOSTS (e.g. "127.0.0.1:2181") to run these.
"""

import os
import time
import uuid

import pytest

from src.coordination.exclusive import ExclusiveLock
from src.coordination.shared import SharedLock
from src.core.config import Settings
from src.session.manager import SessionManager

HOSTS = os.environ.get("ZR_TEST_HOSTS")

pytestmark = pytest.mark.skipif(not HOSTS, reason="Requires ZooKeeper (set ZR_TEST_HOSTS)")


@pytest.fixture
def zk_sessions():
    manager = SessionManager(Settings(hosts=HOSTS, sleep_cycle=0.05))
    yield manager
    manager.close_all()


@pytest.fixture
def key():
    return f"key-{uuid.uuid4().hex}"


def test_exclusive_lock(zk_sessions, key):
    xlock = ExclusiveLock("/zr_xlock_test", sessions=zk_sessions)
    assert not xlock.is_locked(key)

    handle = xlock.lock(key)
    assert handle is not None
    assert xlock.lock(key) is None

    started = time.monotonic()
    assert not xlock.wait_for_all_locks(key, 1)
    assert time.monotonic() - started >= 1

    assert xlock.unlock(handle)
    assert not xlock.unlock(handle)
    assert not xlock.is_locked(key)


def test_shared_lock(zk_sessions, key):
    slock = SharedLock("/zr_slock_test", sessions=zk_sessions)

    read = slock.rlock(key)
    assert read is not None
    assert not slock.is_read_locked(key)
    assert slock.is_write_locked(key)
    assert slock.wlock(key) is None

    read2 = slock.rlock(key)
    assert read2 is not None
    assert slock.unlock(read)
    assert slock.unlock(read2)
    assert not slock.is_write_locked(key)

    write = slock.wlock(key)
    assert slock.is_read_locked(key)
    assert slock.rlock(key) is None
    assert slock.unlock(write)
