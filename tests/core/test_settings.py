"""Tests for FeedSpineSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from feedspine.core.settings import (
    DEFAULT_LAYERS,
    FeedSpineSettings,
    RetryPolicy,
    SiteVariant,
    get_settings,
)


class TestDefaults:
    def test_timeouts_and_delays(self, settings):
        assert settings.site_variant is SiteVariant.FULL
        assert settings.live_timeout_seconds == 15.0
        assert settings.feed_timeout_seconds == 12.0
        assert settings.populate_delay_seconds == 3.0
        assert settings.flash_cooldown_seconds == 600.0

    def test_all_layers_enabled(self, settings):
        assert all(settings.layer_enabled(layer) for layer in DEFAULT_LAYERS)
        assert settings.layer_enabled("unknown_layer") is False

    def test_generative_keys_absent(self, settings):
        assert settings.xai_api_key is None
        assert settings.openai_api_key is None


class TestRetryPolicies:
    @pytest.mark.parametrize(
        ("domain", "attempts", "delay"),
        [("commodities", 3, 20), ("crypto", 2, 20), ("economic", 2, 20), ("ucdp_events", 3, 15)],
    )
    def test_per_domain_policies(self, settings, domain, attempts, delay):
        policy = settings.retry_policy(domain)
        assert (policy.attempts, policy.delay_seconds) == (attempts, delay)

    def test_unconfigured_domain_gets_single_attempt(self, settings):
        assert settings.retry_policy("weather") == RetryPolicy()

    def test_policy_validation(self):
        with pytest.raises(ValidationError):
            RetryPolicy(attempts=0)


class TestVariantHelpers:
    def test_tech_variant_caps_category_concurrency(self):
        assert FeedSpineSettings(site_variant="tech").category_cap == 4
        assert FeedSpineSettings(site_variant="tech", category_concurrency=2).category_cap == 2

    def test_other_variants_use_configured_concurrency(self):
        assert FeedSpineSettings(site_variant="finance").category_cap == 5

    def test_source_enabled(self):
        settings = FeedSpineSettings(disabled_sources={"Reuters World"})
        assert settings.source_enabled("AP News")
        assert not settings.source_enabled("Reuters World")


class TestEnvironment:
    def test_prefixed_env_vars(self, monkeypatch):
        monkeypatch.setenv("FEEDSPINE_SITE_VARIANT", "happy")
        monkeypatch.setenv("FEEDSPINE_XAI_API_KEY", "xai-secret")
        settings = FeedSpineSettings()
        assert settings.site_variant is SiteVariant.HAPPY
        assert settings.xai_api_key.get_secret_value() == "xai-secret"
        assert "xai-secret" not in repr(settings)

    def test_invalid_variant_rejected(self, monkeypatch):
        monkeypatch.setenv("FEEDSPINE_SITE_VARIANT", "sports")
        with pytest.raises(ValidationError):
            FeedSpineSettings()

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
