"""Tests for AccessConfig."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from spacegrants import AccessConfig, LogLevel, load_config_from_env


class TestAccessConfig:
    """Tests for AccessConfig model."""

    def test_create_default_config(self) -> None:
        """Test creating an AccessConfig with defaults."""
        config = AccessConfig()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.service_name is None
        assert config.organization_uuid is None
        assert config.deletion_protection is True
        assert config.skip_converged_adds is True

    def test_create_custom_config(self) -> None:
        """Test creating an AccessConfig with custom values."""
        config = AccessConfig(
            log_level=LogLevel.DEBUG,
            log_json=True,
            service_name="space-sync",
            organization_uuid="org-123",
            deletion_protection=False,
            skip_converged_adds=False,
        )
        assert config.log_level == LogLevel.DEBUG
        assert config.log_json is True
        assert config.service_name == "space-sync"
        assert config.organization_uuid == "org-123"
        assert config.deletion_protection is False
        assert config.skip_converged_adds is False

    def test_log_level_from_string(self) -> None:
        """Test creating config with log level as string."""
        config = AccessConfig(log_level="debug")
        assert config.log_level == LogLevel.DEBUG

    def test_log_level_invalid(self) -> None:
        """Test creating config with invalid log level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            AccessConfig(log_level="INVALID")

    def test_organization_uuid_stripped(self) -> None:
        """Test surrounding whitespace is removed from the organization UUID."""
        config = AccessConfig(organization_uuid="  org-1 ")
        assert config.organization_uuid == "org-1"

    def test_organization_uuid_blank(self) -> None:
        """Test blank organization UUIDs are rejected."""
        with pytest.raises(ValueError, match="must not be blank"):
            AccessConfig(organization_uuid="   ")

    def test_extra_fields_forbidden(self) -> None:
        """Test that extra fields are forbidden."""
        with pytest.raises(Exception):  # Pydantic validation error
            AccessConfig(extra_field="value")  # type: ignore[call-arg]


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env function."""

    @patch.dict(os.environ, {}, clear=True)
    def test_load_defaults(self) -> None:
        """Test loading config with no environment variables."""
        config = load_config_from_env()
        assert config.log_level == LogLevel.INFO
        assert config.log_json is False
        assert config.organization_uuid is None
        assert config.deletion_protection is True
        assert config.skip_converged_adds is True

    @patch.dict(
        os.environ,
        {
            "LOG_LEVEL": "DEBUG",
            "LOG_JSON": "true",
            "SERVICE_NAME": "space-sync",
            "SPACEGRANTS_ORGANIZATION_UUID": "org-123",
            "SPACEGRANTS_DELETION_PROTECTION": "false",
            "SPACEGRANTS_SKIP_CONVERGED_ADDS": "0",
        },
        clear=True,
    )
    def test_load_from_env(self) -> None:
        """Test loading config from environment variables."""
        config = load_config_from_env()
        assert config.log_level == LogLevel.DEBUG
        assert config.log_json is True
        assert config.service_name == "space-sync"
        assert config.organization_uuid == "org-123"
        assert config.deletion_protection is False
        assert config.skip_converged_adds is False

    def test_flag_variants(self) -> None:
        """Test boolean flags accept various true values."""
        for value in ("true", "1", "yes", "on", "TRUE"):
            with patch.dict(os.environ, {"LOG_JSON": value}, clear=True):
                config = load_config_from_env()
                assert config.log_json is True

    @patch.dict(os.environ, {"SPACEGRANTS_ORGANIZATION_UUID": ""}, clear=True)
    def test_empty_organization_uuid_is_none(self) -> None:
        """Test an empty organization variable leaves the field unset."""
        config = load_config_from_env()
        assert config.organization_uuid is None
