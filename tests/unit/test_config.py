"""
Unit tests for configuration loading and validation.

These tests ensure:
  1. Config loads from environment variables correctly
  2. Required fields are validated at startup
  3. Type conversions work (e.g., strings to ints and floats)
  4. Inconsistent page sizes and timeouts are rejected
"""

import pytest
from unittest.mock import patch
from discover.config import Config, validate_config


class TestConfigLoading:
    """Test configuration loading from environment."""

    @patch.dict("os.environ", {"FIREBASE_PROJECT_ID": "test-project"})
    def test_required_config_loads(self):
        """Required config fields should load from environment."""
        config = Config(_env_file=None)
        assert config.FIREBASE_PROJECT_ID == "test-project"

    @patch.dict("os.environ", {
        "FIREBASE_PROJECT_ID": "test-project",
        "PORT": "9000",
        "MAX_PAGE_SIZE": "25",
        "REQUEST_DEADLINE": "2.5",
    })
    def test_numeric_config_conversion(self):
        """Numeric environment variables should be converted."""
        config = Config(_env_file=None)
        assert config.PORT == 9000
        assert config.MAX_PAGE_SIZE == 25
        assert config.REQUEST_DEADLINE == 2.5

    @patch.dict("os.environ", {"FIREBASE_PROJECT_ID": "test-project", "DEBUG": "false"})
    def test_optional_config_defaults(self):
        """Optional config should have sensible defaults."""
        config = Config(_env_file=None)
        assert config.PORT == 8000
        assert config.DEFAULT_PAGE_SIZE == 20
        assert config.MAX_PAGE_SIZE == 50
        assert config.MAX_MAP_PAGE_SIZE == 500
        assert config.DEFAULT_FAME_RATING == 50
        assert config.QUERY_BATCH_SIZE == 500
        assert config.DEBUG is False

    @patch.dict("os.environ", {"FIREBASE_PROJECT_ID": "test-project", "SERVICE_TOKEN": ""})
    def test_service_token_optional(self):
        config = Config(_env_file=None)
        assert not config.SERVICE_TOKEN


def _valid(mock_config):
    mock_config.FIREBASE_PROJECT_ID = "test"
    mock_config.SERVICE_TOKEN = None
    mock_config.DEFAULT_PAGE_SIZE = 20
    mock_config.MAX_PAGE_SIZE = 50
    mock_config.MAX_MAP_PAGE_SIZE = 500
    mock_config.REQUEST_DEADLINE = 10.0
    mock_config.STORE_TIMEOUT = 5.0
    mock_config.DEFAULT_FAME_RATING = 50
    mock_config.QUERY_BATCH_SIZE = 500
    mock_config.MAX_CANDIDATES = 50000


class TestConfigValidation:
    """Test configuration validation function."""

    @patch("discover.config.config")
    def test_validate_firebase_required(self, mock_config):
        """Firebase project ID must be set."""
        _valid(mock_config)
        mock_config.FIREBASE_PROJECT_ID = ""

        with pytest.raises(ValueError, match="FIREBASE_PROJECT_ID"):
            validate_config()

    @patch("discover.config.config")
    def test_default_page_size_within_max(self, mock_config):
        _valid(mock_config)
        mock_config.DEFAULT_PAGE_SIZE = 80

        with pytest.raises(ValueError, match="DEFAULT_PAGE_SIZE"):
            validate_config()

    @patch("discover.config.config")
    def test_store_timeout_within_deadline(self, mock_config):
        _valid(mock_config)
        mock_config.STORE_TIMEOUT = 30.0

        with pytest.raises(ValueError, match="STORE_TIMEOUT"):
            validate_config()

    @patch("discover.config.config")
    def test_query_batch_size_positive(self, mock_config):
        _valid(mock_config)
        mock_config.QUERY_BATCH_SIZE = 0

        with pytest.raises(ValueError, match="QUERY_BATCH_SIZE"):
            validate_config()

    @patch("discover.config.config")
    def test_default_fame_rating_range(self, mock_config):
        _valid(mock_config)
        mock_config.DEFAULT_FAME_RATING = 150

        with pytest.raises(ValueError, match="DEFAULT_FAME_RATING"):
            validate_config()

    @patch("discover.config.config")
    def test_validate_success_returns_status(self, mock_config):
        """Successful validation should return status dict."""
        _valid(mock_config)

        result = validate_config()
        assert result["firebase"] == "✓ Configured"
        assert result["service_token"] == "✗ Not set"
        assert result["page_sizes"] == "20/50/500"
