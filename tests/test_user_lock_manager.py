"""
Tests for the learner/language advisory lock
"""

from datetime import timedelta

import pytest

from lexireview.core.locks.user_lock_manager import UserLockManager, get_lock_manager
from lexireview.errors import SessionLockedError


class TestUserLockManager:
    """Test UserLockManager behaviour"""

    @pytest.fixture
    def lock_manager(self):
        return UserLockManager(lock_timeout_minutes=5)

    def test_acquire_and_release(self, lock_manager):
        assert lock_manager.acquire_lock("alice", "de", "start_session") is True
        assert lock_manager.is_locked("alice", "de")
        assert lock_manager.get_lock_info("alice", "de").operation == "start_session"

        assert lock_manager.release_lock("alice", "de") is True
        assert not lock_manager.is_locked("alice", "de")
        assert lock_manager.release_lock("alice", "de") is False

    def test_second_acquire_fails(self, lock_manager):
        assert lock_manager.acquire_lock("alice", "de", "start_session")
        assert lock_manager.acquire_lock("alice", "de", "start_session") is False

    def test_keys_are_independent(self, lock_manager):
        assert lock_manager.acquire_lock("alice", "de", "start_session")
        assert lock_manager.acquire_lock("alice", "fr", "start_session")
        assert lock_manager.acquire_lock("bob", "de", "start_session")
        assert lock_manager.get_active_locks_count() == 3

    def test_hold_releases_on_exit(self, lock_manager):
        with lock_manager.hold("alice", "de", "start_session"):
            assert lock_manager.is_locked("alice", "de")
        assert not lock_manager.is_locked("alice", "de")

    def test_hold_releases_on_error(self, lock_manager):
        with pytest.raises(RuntimeError):
            with lock_manager.hold("alice", "de", "start_session"):
                raise RuntimeError("boom")
        assert not lock_manager.is_locked("alice", "de")

    def test_hold_raises_when_taken(self, lock_manager):
        with lock_manager.hold("alice", "de", "start_session"):
            with pytest.raises(SessionLockedError):
                with lock_manager.hold("alice", "de", "start_session"):
                    pass
            assert lock_manager.is_locked("alice", "de")

    def test_expired_lock_is_reaped(self, lock_manager):
        lock_manager.acquire_lock("alice", "de", "start_session")
        lock_manager._locks[("alice", "de")].locked_at -= timedelta(minutes=10)

        assert not lock_manager.is_locked("alice", "de")
        assert lock_manager.acquire_lock("alice", "de", "start_session") is True

    def test_global_lock_manager_is_shared(self):
        """Every caller in the process sees the same locks"""
        assert get_lock_manager() is get_lock_manager(lock_timeout_minutes=30)
