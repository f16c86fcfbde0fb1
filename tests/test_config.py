"""
test_config.py — Settings validation and the origin allow-list.
"""

from __future__ import annotations

import pytest

from backend.app.core.config import load_alert_config, parse_recipients
from backend.app.core.cors import OriginAllowList
from backend.app.core.errors import ConfigurationError

from tests.conftest import make_settings

COMPLETE = dict(
    TWILIO_ACCOUNT_SID="AC123",
    TWILIO_AUTH_TOKEN="secret",
    TWILIO_PHONE_NUMBER="+17753681889",
    TWILIO_WHATSAPP_NUMBER="+14155238886",
    EMERGENCY_RECIPIENTS="+918788293663, +919876543210",
)


class TestLoadAlertConfig:

    def test_complete(self):
        config = load_alert_config(make_settings(**COMPLETE))
        assert config.account_sid == "AC123"
        assert config.recipients == ("+918788293663", "+919876543210")
        assert (config.fallback_latitude, config.fallback_longitude) == (21.082225, 80.006333)
        assert config.geolocation_timeout_ms == 10_000

    @pytest.mark.parametrize("name", sorted(COMPLETE))
    def test_each_missing_var_is_named(self, name):
        values = dict(COMPLETE, **{name: None})
        with pytest.raises(ConfigurationError) as info:
            load_alert_config(make_settings(**values))
        assert info.value.missing == [name]
        assert name in info.value.message

    def test_blank_recipient_list_counts_as_missing(self):
        values = dict(COMPLETE, EMERGENCY_RECIPIENTS=" , ,")
        with pytest.raises(ConfigurationError) as info:
            load_alert_config(make_settings(**values))
        assert info.value.missing == ["EMERGENCY_RECIPIENTS"]

    def test_config_is_frozen(self):
        config = load_alert_config(make_settings(**COMPLETE))
        with pytest.raises(AttributeError):
            config.recipients = ()


class TestParseRecipients:

    def test_strips_and_drops_blanks(self):
        assert parse_recipients(" +1 ,, +2 ,") == ("+1", "+2")

    def test_empty(self):
        assert parse_recipients(None) == ()
        assert parse_recipients("") == ()


class TestOriginAllowListPatterns:

    def test_exact_match_only(self):
        allow = OriginAllowList(["https://zenith-ai.tech"])
        assert allow.is_allowed("https://zenith-ai.tech")
        assert not allow.is_allowed("https://zenith-ai.tech.evil.example")
        assert not allow.is_allowed("http://zenith-ai.tech")

    def test_wildcard_is_one_label(self):
        allow = OriginAllowList(["https://*.netlify.app"])
        assert allow.is_allowed("https://zenith-preview.netlify.app")
        assert not allow.is_allowed("https://a.b.netlify.app")
        assert not allow.is_allowed("https://netlify.app")
        assert not allow.is_allowed("https://-bad.netlify.app")
        assert not allow.is_allowed("https://x.netlify.app.evil.example")

    def test_dots_are_literal(self):
        allow = OriginAllowList(["https://*.netlify.app"])
        assert not allow.is_allowed("https://x.netlifyXapp")

    def test_empty_origin(self):
        allow = OriginAllowList(["https://zenith-ai.tech"])
        assert not allow.is_allowed("")
        assert not allow.is_allowed(None)

    def test_trailing_slash_and_blank_entries(self):
        allow = OriginAllowList(["https://zenith-ai.tech/", "  "])
        assert allow.exact == ("https://zenith-ai.tech",)
        assert len(allow) == 1
        assert allow.as_regex() is None

    def test_more_than_one_wildcard(self):
        with pytest.raises(ConfigurationError):
            OriginAllowList(["https://*.*.netlify.app"])

    def test_default_settings_list(self):
        allow = OriginAllowList(make_settings().CORS_ORIGINS)
        assert allow.is_allowed("https://zenith-frontend-1.netlify.app")
        assert allow.is_allowed("http://localhost:8080")
        assert not allow.is_allowed("http://localhost:9999")
