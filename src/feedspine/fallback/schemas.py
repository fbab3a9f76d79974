"""Pydantic models for generative payload sections.

A generative provider returns one JSON object per bundle; each top-level
key is a *section* (``"weather"``, ``"stocks"``, ``"series"``, …). Items
in a section are validated one by one: invalid items are dropped, unknown
extra fields are kept, and the surviving items are handed on as plain
dicts so every rung of a ladder yields the same shape.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from feedspine.core.logging import get_logger

logger = get_logger(__name__)


class SectionItem(BaseModel):
    model_config = ConfigDict(extra="allow")


class GeoItem(SectionItem):
    id: str
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


# ── Layers ───────────────────────────────────────────────────────


class ProtestEvent(GeoItem):
    title: str
    country: str = ""
    date: str = ""
    size: str = ""
    type: str = "protest"


class MilitaryFlight(GeoItem):
    callsign: str
    altitude: float = 0
    type: str = ""
    country: str = ""


class WeatherAlert(GeoItem):
    event: str
    severity: str = "Moderate"
    area: str = ""
    onset: str = ""


class CyberThreat(GeoItem):
    name: str
    type: str = ""
    severity: str = ""
    target: str = ""


class HungerZone(GeoItem):
    country: str
    region: str = ""
    level: int = Field(ge=1, le=5)
    levelName: str = ""
    populationAffected: int = 0
    description: str = ""


class Outage(GeoItem):
    country: str
    severity: str = ""
    usersAffected: int = 0
    provider: str = ""


class FlightDelay(GeoItem):
    airport: str
    code: str
    delayMinutes: int = 0
    reason: str = ""


class NaturalResource(GeoItem):
    resource: str
    type: str = ""
    country: str = ""
    region: str = ""
    production: str = ""
    globalShare: str = ""
    significance: str = ""


# ── Markets ──────────────────────────────────────────────────────


class MarketQuote(SectionItem):
    symbol: str
    name: str
    display: str = ""
    price: float
    change: float = 0.0


class CryptoQuote(SectionItem):
    name: str
    symbol: str
    price: float
    change: float = 0.0


class SectorQuote(SectionItem):
    name: str
    change: float = 0.0


# ── Panels ───────────────────────────────────────────────────────


class FredSeries(SectionItem):
    id: str
    name: str
    value: float
    previousValue: float = 0.0
    change: float = 0.0
    changePercent: float = 0.0
    date: str = ""
    unit: str = ""


class TradeRestriction(SectionItem):
    country: str
    measure: str
    status: str = ""
    affectedSectors: list[str] = Field(default_factory=list)
    imposedDate: str = ""
    severity: str = ""


class TariffDatapoint(SectionItem):
    year: int
    avgTariff: float
    sector: str = ""


class TradeFlow(SectionItem):
    reporter: str
    partner: str
    exports: float = 0.0
    imports: float = 0.0
    balance: float = 0.0
    year: int = 0


class TradeBarrier(SectionItem):
    country: str
    type: str = ""
    description: str = ""
    affectedProducts: str = ""
    notificationDate: str = ""


class ShippingIndex(SectionItem):
    name: str
    value: float
    change: float = 0.0
    unit: str = ""
    spikeAlert: bool = False


class Chokepoint(SectionItem):
    name: str
    status: str = "normal"
    disruption: float = 0.0
    vesselCount: int = 0
    avgDelay: float = 0.0
    region: str = ""


class CriticalMineral(SectionItem):
    mineral: str
    hhi: float = 0.0
    topProducers: list[dict[str, Any]] = Field(default_factory=list)
    riskRating: str = ""
    priceChange: float = 0.0


SECTION_MODELS: dict[str, type[SectionItem]] = {
    "protests": ProtestEvent,
    "military": MilitaryFlight,
    "weather": WeatherAlert,
    "cyber": CyberThreat,
    "hunger": HungerZone,
    "outages": Outage,
    "flights": FlightDelay,
    "naturalResources": NaturalResource,
    "stocks": MarketQuote,
    "commodities": MarketQuote,
    "crypto": CryptoQuote,
    "sectors": SectorQuote,
    "series": FredSeries,
    "restrictions": TradeRestriction,
    "tariffs": TariffDatapoint,
    "flows": TradeFlow,
    "barriers": TradeBarrier,
    "shipping": ShippingIndex,
    "chokepoints": Chokepoint,
    "minerals": CriticalMineral,
}


def validate_section(section: str, raw: Any) -> list[dict[str, Any]]:
    """Validate the items of one payload section, dropping invalid ones."""
    if not isinstance(raw, list):
        return []
    model = SECTION_MODELS.get(section)
    if model is None:
        return [item for item in raw if isinstance(item, dict)]

    valid: list[dict[str, Any]] = []
    dropped = 0
    for item in raw:
        try:
            valid.append(model.model_validate(item).model_dump())
        except ValidationError:
            dropped += 1
    if dropped:
        logger.debug("schemas.items_dropped", section=section, dropped=dropped, kept=len(valid))
    return valid


__all__ = ["SECTION_MODELS", "SectionItem", "GeoItem", "validate_section"]
