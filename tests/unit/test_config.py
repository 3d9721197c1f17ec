"""
Unit tests for configuration loading and validation.

Run with: pytest tests/unit/test_config.py -v
"""

import pytest
from pydantic import ValidationError

from tcrd_core.config import Settings


class TestSettings:
    """Test Settings validation."""

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(log_level="verbose")

    def test_log_format(self):
        assert Settings(log_format="TEXT").log_format == "text"
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_global_ontologies_normalized(self):
        settings = Settings(global_ontologies=[" DO", "dto ", ""])
        assert settings.global_ontologies == ["do", "dto"]

    def test_facet_timeout_bounds(self):
        with pytest.raises(ValidationError):
            Settings(facet_timeout_ms=10)

    def test_store_config(self):
        settings = Settings(db_host="db.example.org", db_password="secret")

        assert settings.has_store_config
        settings.validate_connectivity()

    def test_missing_store_config(self):
        settings = Settings(db_host=None, db_password=None)

        assert not settings.has_store_config
        with pytest.raises(ValueError, match="No relational store configured"):
            settings.validate_connectivity()
