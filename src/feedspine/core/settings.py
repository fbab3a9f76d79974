"""Loader settings for FeedSpine.

Every knob the load cycle reads lives here: which variant of the dashboard
is being fed, which layers are enabled, which sources are switched off,
the generative-provider credentials, and the tuning constants for the
fetch pipeline and the correlation engine.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    Thresholds that differ per domain (retry counts, backoffs) stay as
    per-domain configuration instead of being folded into one global rule.

Features:
    - **FeedSpineSettings:** ``FEEDSPINE_`` prefixed environment variables
    - **.env file support:** Automatic loading via pydantic-settings
    - **Per-domain retry policies:** ``retry_policies["commodities"]`` etc.
    - **Variant-aware helpers:** ``category_cap`` and ``layer_enabled``

Examples:
    >>> settings = FeedSpineSettings(site_variant="tech")
    >>> settings.category_cap
    4
    >>> settings.retry_policy("ucdp_events").attempts
    3

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SiteVariant(str, Enum):
    """Dashboard flavours; each schedules a different set of domains."""

    FULL = "full"
    TECH = "tech"
    FINANCE = "finance"
    HAPPY = "happy"


class RetryPolicy(BaseModel):
    """Fixed-backoff retry policy for one domain's live fetch."""

    attempts: int = Field(default=1, ge=1)
    delay_seconds: float = Field(default=0.0, ge=0.0)


DEFAULT_LAYERS: dict[str, bool] = {
    "protests": True,
    "military": True,
    "ais": True,
    "weather": True,
    "natural": True,
    "outages": True,
    "flights": True,
    "cyber_threats": True,
    "hunger": True,
    "natural_resources": True,
    "fires": True,
    "population": True,
}

DEFAULT_RETRY_POLICIES: dict[str, RetryPolicy] = {
    "commodities": RetryPolicy(attempts=3, delay_seconds=20),
    "crypto": RetryPolicy(attempts=2, delay_seconds=20),
    "economic": RetryPolicy(attempts=2, delay_seconds=20),
    "ucdp_events": RetryPolicy(attempts=3, delay_seconds=15),
}

TECH_CATEGORY_CAP = 4


class FeedSpineSettings(BaseSettings):
    """Settings for one dashboard loader process.

    Fields
    ──────
    site_variant        : Which dashboard variant is being fed
    enabled_layers      : Map layer name → enabled
    disabled_sources    : Feed/source names switched off administratively
    xai_* / openai_*    : Generative provider credentials and endpoints
    category_*          : Fetch pipeline tuning
    convergence_*       : Geo-convergence radius and window
    baseline_*          : Rolling baseline window and minimum history
    retry_policies      : Per-domain live-fetch retry policies
    """

    model_config = SettingsConfigDict(
        env_prefix="FEEDSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Variant / layers ─────────────────────────────────────────
    site_variant: SiteVariant = SiteVariant.FULL
    enabled_layers: dict[str, bool] = Field(default_factory=lambda: dict(DEFAULT_LAYERS))
    disabled_sources: set[str] = Field(default_factory=set)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Generative providers ─────────────────────────────────────
    xai_api_key: SecretStr | None = None
    xai_enabled: bool = True
    xai_url: str = "https://api.x.ai/v1/chat/completions"
    xai_model: str = "grok-3-mini-fast"
    openai_api_key: SecretStr | None = None
    openai_url: str = "https://api.openai.com/v1/chat/completions"
    openai_model: str = "gpt-4o-mini"

    # ── Fetch pipeline ───────────────────────────────────────────
    category_concurrency: int = Field(default=5, ge=1)
    render_interval_ms: int = Field(default=100, ge=0)
    live_timeout_seconds: float = Field(default=15.0, gt=0)
    feed_timeout_seconds: float = Field(default=12.0, gt=0)
    populate_delay_seconds: float = Field(default=3.0, ge=0)

    # ── Correlation ──────────────────────────────────────────────
    flash_cooldown_seconds: float = Field(default=600.0, gt=0)
    convergence_radius_km: float = Field(default=50.0, gt=0)
    convergence_window_hours: float = Field(default=6.0, gt=0)
    baseline_window: int = Field(default=30, ge=2)
    baseline_min_samples: int = Field(default=3, ge=2)
    learning_mode: bool = False

    # ── Retry ────────────────────────────────────────────────────
    retry_policies: dict[str, RetryPolicy] = Field(
        default_factory=lambda: dict(DEFAULT_RETRY_POLICIES)
    )

    @property
    def category_cap(self) -> int:
        """Concurrency cap for the category-chunked news fetch."""
        if self.site_variant is SiteVariant.TECH:
            return min(self.category_concurrency, TECH_CATEGORY_CAP)
        return self.category_concurrency

    def layer_enabled(self, layer: str) -> bool:
        return self.enabled_layers.get(layer, False)

    def source_enabled(self, source: str) -> bool:
        return source not in self.disabled_sources

    def retry_policy(self, domain: str) -> RetryPolicy:
        """Retry policy for ``domain``; a single attempt when none is configured."""
        return self.retry_policies.get(domain, RetryPolicy())


@lru_cache(maxsize=1)
def get_settings() -> FeedSpineSettings:
    """Process-wide settings loaded from the environment."""
    return FeedSpineSettings()


__all__ = [
    "SiteVariant",
    "RetryPolicy",
    "FeedSpineSettings",
    "DEFAULT_LAYERS",
    "DEFAULT_RETRY_POLICIES",
    "get_settings",
]
