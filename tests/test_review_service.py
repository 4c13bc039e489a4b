"""
Tests for learner resolution and the dashboard operations of ReviewService
"""

import os
import tempfile
from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from lexireview.config import Settings
from lexireview.core.database.database_manager import DatabaseManager
from lexireview.errors import SessionLockedError, UnauthenticatedError
from lexireview.review_service import ReviewService

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class TestReviewService:
    """Test ReviewService operations"""

    @pytest.fixture
    def temp_db_manager(self):
        """Create temporary database manager for testing"""
        temp_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
        temp_file.close()

        db_manager = DatabaseManager(temp_file.name)
        db_manager.init_database()

        yield db_manager

        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(temp_file.name + suffix):
                os.unlink(temp_file.name + suffix)

    @pytest.fixture
    def settings(self):
        return Settings(supported_languages="de,fr", allowed_learners="alice,carol")

    def _service(self, db_manager, settings, learner_id, now=NOW):
        return ReviewService(
            Mock(return_value=learner_id),
            db_manager=db_manager,
            settings=settings,
            clock=lambda: now,
        )

    def test_identity_is_resolved_per_call(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, "alice")

        service.get_due_count("de")
        service.get_known_count("de")

        assert service.identity_provider.call_count == 2

    def test_unauthenticated_queries_return_defaults(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, None)

        assert service.get_due_count("de") == 0
        assert service.get_known_count("de") == 0
        assert service.get_due_cards("de") == []
        assert service.get_language_stats("de") is None
        assert service.get_all_language_stats() == []
        assert service.get_today_overview() == {"due_count": 0, "learning_count": 0}
        assert service.get_session(1) is None
        assert service.get_vocab_profile("de") == []
        assert service.get_progress() is None
        assert service.get_daily_stats() == []
        assert service.get_today_stats()["review_count"] == 0
        assert service.get_weekly_stats()["accuracy"] == 0

    def test_unauthenticated_mutations_raise(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, None)

        with pytest.raises(UnauthenticatedError):
            service.start_session("de")
        with pytest.raises(UnauthenticatedError):
            service.grade_card(1, 4)
        with pytest.raises(UnauthenticatedError):
            service.abandon_session(1)
        with pytest.raises(UnauthenticatedError):
            service.set_card_status("de", "Haus", 1)

    def test_learner_outside_allow_list(self, temp_db_manager, settings):
        """A learner missing from allowed_learners is treated as unauthenticated"""
        temp_db_manager.set_card_status("bob", "de", "Haus", 1, NOW)
        service = self._service(temp_db_manager, settings, "bob")

        assert service.get_due_count("de") == 0
        with pytest.raises(UnauthenticatedError):
            service.start_session("de")

    def test_empty_allow_list_accepts_any_learner(self, temp_db_manager):
        settings = Settings(supported_languages="de", allowed_learners="")
        temp_db_manager.set_card_status("bob", "de", "Haus", 1, NOW)
        service = self._service(temp_db_manager, settings, "bob")

        assert service.get_due_count("de") == 1

    def test_default_progress(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, "alice")

        progress = service.get_progress()

        assert progress["total_xp"] == 0
        assert progress["level"] == 1
        assert progress["title"] == "Beginner"
        assert progress["current_streak"] == 0
        assert progress["streak_shields"] == 0
        assert progress["xp_progress"] == 0
        assert progress["xp_for_next_level"] == 100
        assert progress["current_xp_in_level"] == 0

    def test_set_card_status_and_profile(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, "alice")

        service.set_card_status("de", "Haus", 1, display="das Haus", meaning="house")
        service.set_card_status("de", "Baum", 4)

        profile = service.get_vocab_profile("de")
        assert [card["term"] for card in profile] == ["Baum", "Haus"]
        assert service.get_due_count("de") == 1
        assert service.get_known_count("de") == 1
        assert service.get_language_stats("de")["language_name"] == "German"

    def test_weekly_stats_accuracy(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, "alice")
        for term in ("Haus", "Baum", "Hund"):
            service.set_card_status("de", term, 1)

        items = service.start_session("de")["items"]
        for item, quality in zip(items, (4, 1, 5)):
            service.grade_card(item["id"], quality)

        weekly = service.get_weekly_stats()
        assert weekly["review_count"] == 3
        assert weekly["correct_count"] == 2
        assert weekly["xp_earned"] == 35 + 1 + 15
        assert weekly["accuracy"] == 67

    def test_daily_stats_over_several_days(self, temp_db_manager, settings):
        temp_db_manager.set_card_status("alice", "de", "Haus", 1, NOW - timedelta(hours=1))
        day_one = self._service(temp_db_manager, settings, "alice")
        day_one.grade_card(day_one.start_session("de")["items"][0]["id"], 4)

        day_two = self._service(
            temp_db_manager, settings, "alice", now=NOW + timedelta(days=1)
        )
        day_two.grade_card(day_two.start_session("de")["items"][0]["id"], 4)

        stats = day_two.get_daily_stats(90)
        assert [row["stat_date"] for row in stats] == [date(2026, 3, 10), date(2026, 3, 11)]
        assert [row["stat_date"] for row in day_two.get_daily_stats(1)] == [date(2026, 3, 11)]
        assert day_two.get_today_stats()["review_count"] == 1
        assert day_two.get_progress()["current_streak"] == 2
        assert day_two.get_daily_stats(-1) == []
        assert day_two.get_daily_stats(0) == []

    def test_lock_shared_between_services(self, temp_db_manager, settings):
        """A start running through one service blocks the same start in another"""
        temp_db_manager.set_card_status("alice", "de", "Haus", 1, NOW)
        first = self._service(temp_db_manager, settings, "alice")
        second = self._service(temp_db_manager, settings, "alice")

        assert first.session_manager.lock_manager is second.session_manager.lock_manager
        with first.session_manager.lock_manager.hold("alice", "de", "start_session"):
            with pytest.raises(SessionLockedError):
                second.start_session("de")

        assert second.start_session("de")["session_id"] is not None

    def test_level_thresholds(self, temp_db_manager, settings):
        service = self._service(temp_db_manager, settings, None)
        thresholds = service.get_level_thresholds()
        assert thresholds[0] == {"level": 1, "xp_required": 0, "title": "Beginner"}
        assert len(thresholds) == 15
