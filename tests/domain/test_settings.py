"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from pokedex.domain.settings import AppSettings


class TestAppSettings:
    """Tests for AppSettings defaults and validation."""

    def test_defaults(self):
        settings = AppSettings()

        assert settings.api.endpoint == "https://beta.pokeapi.co/graphql/v1beta"
        assert settings.paging.page_size == 50
        assert settings.search.debounce_ms == 500
        assert settings.scroll.threshold == 0.9
        assert settings.logging.level == "INFO"

    def test_assignment_is_validated(self):
        settings = AppSettings()

        with pytest.raises(ValidationError):
            settings.paging.page_size = 0

    def test_threshold_bounds(self):
        settings = AppSettings()

        with pytest.raises(ValidationError):
            settings.scroll.threshold = 1.5

    def test_log_level_pattern(self):
        with pytest.raises(ValidationError):
            AppSettings.model_validate({"logging": {"level": "LOUD"}})

    def test_round_trip_json(self):
        settings = AppSettings()
        settings.search.debounce_ms = 250

        loaded = AppSettings.model_validate_json(settings.model_dump_json())
        assert loaded.search.debounce_ms == 250
