"""
Tests for configuration loading
"""

import pytest
from pydantic import ValidationError

from lexireview.config import Settings, get_database_path, get_settings


class TestSettings:
    """Test Settings defaults and derived values"""

    def test_defaults(self):
        settings = Settings()
        assert settings.timezone == "UTC"
        assert settings.default_cards_per_session == 20
        assert settings.max_cards_per_session == 100
        assert settings.default_ease_factor == 2.5
        assert settings.min_ease_factor == 1.3
        assert settings.daily_stats_default_days == 90

    def test_language_list(self):
        settings = Settings(supported_languages=" de , fr ,ja,")
        assert settings.supported_languages_list == ["de", "fr", "ja"]

    def test_allowed_learners_list(self):
        assert Settings(allowed_learners="").allowed_learners_list == []
        assert Settings(allowed_learners="   ").allowed_learners_list == []
        assert Settings(allowed_learners="alice, bob").allowed_learners_list == ["alice", "bob"]

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MAX_CARDS_PER_SESSION", "40")
        monkeypatch.setenv("TIMEZONE", "Europe/Berlin")
        settings = Settings()
        assert settings.max_cards_per_session == 40
        assert settings.timezone == "Europe/Berlin"

    def test_database_path(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/reviews.db")
        get_settings.cache_clear()
        try:
            assert get_database_path() == "tmp/reviews.db"
        finally:
            get_settings.cache_clear()

    def test_unknown_timezone_rejected_at_load(self, monkeypatch):
        """A bad calendar timezone fails when settings load, not on first grade"""
        with pytest.raises(ValidationError):
            Settings(timezone="Mars/Olympus_Mons")

        monkeypatch.setenv("TIMEZONE", "Not/A_Zone")
        with pytest.raises(ValidationError):
            Settings()

    def test_known_timezone_accepted(self):
        assert Settings(timezone="Asia/Tokyo").timezone == "Asia/Tokyo"
