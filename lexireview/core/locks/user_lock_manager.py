"""Advisory locks that keep two session starts for one learner/language apart"""

import contextlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from ...errors import SessionLockedError
from ...utils import utc_now

logger = logging.getLogger(__name__)

LockKey = tuple[str, str]


@dataclass
class LockInfo:
    """Information about a held lock"""

    locked_at: datetime
    operation: str
    lock_id: str


class UserLockManager:
    """Manages (learner, language) locks to prevent overlapping session starts"""

    def __init__(self, lock_timeout_minutes: int = 5):
        """
        Initialize the user lock manager

        Args:
            lock_timeout_minutes: Minutes after which locks expire automatically
        """
        self._locks: dict[LockKey, LockInfo] = {}
        self._lock_timeout = timedelta(minutes=lock_timeout_minutes)
        self._mutex = threading.Lock()

    def is_locked(self, learner_id: str, language: str) -> bool:
        """Check if the learner/language pair is currently locked"""
        with self._mutex:
            self._cleanup_expired_locks()
            return (learner_id, language) in self._locks

    def get_lock_info(self, learner_id: str, language: str) -> LockInfo | None:
        """Get lock information for the learner/language pair"""
        with self._mutex:
            self._cleanup_expired_locks()
            return self._locks.get((learner_id, language))

    def acquire_lock(self, learner_id: str, language: str, operation: str) -> bool:
        """
        Try to acquire the lock

        Returns:
            True if lock acquired, False if the pair is already locked
        """
        key = (learner_id, language)
        with self._mutex:
            self._cleanup_expired_locks()

            if key in self._locks:
                logger.warning(
                    f"Learner {learner_id} ({language}) already locked for "
                    f"operation: {self._locks[key].operation}"
                )
                return False

            now = utc_now()
            self._locks[key] = LockInfo(
                locked_at=now,
                operation=operation,
                lock_id=f"{learner_id}_{language}_{operation}_{now.timestamp()}",
            )
        logger.debug(f"Acquired lock for learner {learner_id} ({language}): {operation}")
        return True

    def release_lock(self, learner_id: str, language: str) -> bool:
        """
        Release the lock

        Returns:
            True if lock was released, False if the pair was not locked
        """
        with self._mutex:
            lock_info = self._locks.pop((learner_id, language), None)
        if lock_info is None:
            logger.warning(
                f"Attempted to release non-existent lock for learner {learner_id} ({language})"
            )
            return False

        logger.debug(
            f"Released lock for learner {learner_id} ({language}): {lock_info.operation}"
        )
        return True

    @contextlib.contextmanager
    def hold(self, learner_id: str, language: str, operation: str):
        """Hold the lock for the duration of a block, raise if it is taken"""
        if not self.acquire_lock(learner_id, language, operation):
            raise SessionLockedError(
                f"Another {operation} is running for learner {learner_id} ({language})"
            )
        try:
            yield
        finally:
            self.release_lock(learner_id, language)

    def get_active_locks_count(self) -> int:
        """Get number of currently active locks"""
        with self._mutex:
            self._cleanup_expired_locks()
            return len(self._locks)

    def _cleanup_expired_locks(self):
        """Remove expired locks, caller holds the mutex"""
        current_time = utc_now()
        expired = [
            key
            for key, lock_info in self._locks.items()
            if current_time - lock_info.locked_at > self._lock_timeout
        ]

        for key in expired:
            lock_info = self._locks.pop(key)
            logger.warning(
                f"Expired lock removed for learner {key[0]} ({key[1]}), "
                f"operation: {lock_info.operation}"
            )


# Global instance
_lock_manager = None


def get_lock_manager(lock_timeout_minutes: int = 5) -> UserLockManager:
    """Get the process-wide lock manager shared by every review service"""
    global _lock_manager
    if _lock_manager is None:
        _lock_manager = UserLockManager(lock_timeout_minutes=lock_timeout_minutes)
    return _lock_manager
