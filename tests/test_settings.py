"""Tests for environment-driven settings."""

import pytest

from chatview_core.settings import load_settings


class TestLoadSettings:
    def test_defaults(self):
        s = load_settings({})
        assert s.max_text_bytes == 300_000
        assert s.mobile is False
        assert s.log_level == "INFO"

    @pytest.mark.parametrize("raw", ["FALSE", "No", "OFF", "0", " false "])
    def test_falsy_values_any_case(self, raw):
        assert load_settings({"CHATVIEW_MOBILE": raw}).mobile is False

    @pytest.mark.parametrize("raw", ["1", "true", "YES", "on"])
    def test_truthy_values(self, raw):
        assert load_settings({"CHATVIEW_LEGACY_ALIGN": raw}).legacy_align is True

    def test_blank_uses_default(self):
        s = load_settings({"CHATVIEW_RATE_LIMIT_MAX": "  ", "CHATVIEW_LOG_LEVEL": "debug"})
        assert s.rate_limit_max_requests == 30
        assert s.log_level == "DEBUG"
