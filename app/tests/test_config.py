"""
Tests for configuration validation
"""
import pytest
from datetime import time
from pydantic import ValidationError
from app.core.config import Settings
from app.services.policy_context import LeavePolicyContext


def test_prod_settings_rejects_wildcard_origins():
    """Test that production settings reject wildcard origins"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        APP_ENV="prod",
        ALLOWED_ORIGINS="*"
    )

    with pytest.raises(ValueError, match="ALLOWED_ORIGINS"):
        settings.validate_production()


def test_prod_settings_rejects_sqlite():
    """Test that production settings reject a SQLite database"""
    settings = Settings(
        DATABASE_URL="sqlite:///./prod.db",
        APP_ENV="prod",
        ALLOWED_ORIGINS="https://example.com"
    )

    with pytest.raises(ValueError, match="DATABASE_URL"):
        settings.validate_production()


def test_local_settings_allows_wildcard_origins():
    """Test that local settings allow wildcard origins"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        APP_ENV="local",
        ALLOWED_ORIGINS="*"
    )

    # Should not raise error
    settings.validate_production()

    assert settings.get_allowed_origins_list() == ["*"]


def test_get_allowed_origins_list():
    """Test parsing of ALLOWED_ORIGINS"""
    settings = Settings(
        DATABASE_URL="postgresql://test",
        ALLOWED_ORIGINS="https://example.com, https://app.example.com"
    )
    origins = settings.get_allowed_origins_list()
    assert origins == ["https://example.com", "https://app.example.com"]


def test_invalid_app_env_rejected():
    with pytest.raises(ValidationError):
        Settings(APP_ENV="dev")


def test_lunch_window_must_be_ordered():
    with pytest.raises(ValidationError):
        Settings(LUNCH_BREAK_START="13:00", LUNCH_BREAK_END="12:00")


def test_lunch_window_must_be_clock_time():
    with pytest.raises(ValidationError):
        Settings(LUNCH_BREAK_START="noon")


def test_approval_depth_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(LEAVE_APPROVAL_MAX_DEPTH=0)


def test_policy_context_from_settings():
    settings = Settings(
        LEAVE_APPROVAL_MAX_DEPTH=2,
        LUNCH_BREAK_START="12:30",
        LUNCH_BREAK_END="13:15",
        HOURS_PER_LEAVE_DAY=7.5,
    )
    ctx = LeavePolicyContext.from_settings(settings)
    assert ctx.approval_max_depth == 2
    assert ctx.lunch_break_start == time(12, 30)
    assert ctx.lunch_break_end == time(13, 15)
    assert ctx.hours_per_leave_day == 7.5
    assert ctx.daily_work_hours == 8.0
