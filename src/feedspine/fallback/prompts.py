"""Prompt templates for the generative bundles.

Each prompt embeds a shape example taken from the static datasets, so the
generative rung and the static rung agree on item fields, and asks for a
bare JSON object keyed by section.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import date
from typing import Any

from feedspine.fallback import static_data

PromptBuilder = Callable[[date], str]

_RULES = (
    "Respond with ONLY a JSON object, no markdown fences and no commentary. "
    "Use realistic, plausible values for today's date. Keep every field shown "
    "in the example; numbers must be numbers."
)


def _example(sections: dict[str, Any], limit: int = 2) -> str:
    trimmed = {
        name: value[:limit] if isinstance(value, list) else value
        for name, value in sections.items()
    }
    return json.dumps(trimmed, ensure_ascii=False)


def _compose(intro: str, today: date, sections: dict[str, Any], limit: int = 2) -> str:
    return (
        f"Today is {today.isoformat()}. {intro}\n\n"
        f"Example of the exact shape:\n{_example(sections, limit)}\n\n"
        f"{_RULES}"
    )


def market_prompt(today: date) -> str:
    return _compose(
        "Estimate current market levels for major US indices and mega-cap stocks "
        "(stocks, 14 entries), key commodities and the VIX (commodities, 6), the top "
        "cryptocurrencies (crypto, 4) and US sector ETF daily moves (sectors, 12). "
        "change is the daily percent change.",
        today,
        {
            "stocks": static_data.stocks(),
            "commodities": static_data.commodities(),
            "crypto": static_data.crypto(),
            "sectors": static_data.sectors(),
        },
    )


def layers_prompt(today: date) -> str:
    return _compose(
        "Produce a global situational snapshot for a map dashboard: ongoing protests "
        "(protests, 10-15), publicly reported military reconnaissance flights "
        "(military, 6-10), active severe weather alerts (weather, 6-10), notable cyber "
        "threat campaigns (cyber, 8-10), IPC food insecurity zones with level 1-5 "
        "(hunger, 8-10), internet outages (outages, 4-6), major airport delays "
        "(flights, 6-8) and strategic natural resource sites (naturalResources, 10-20). "
        "Every item needs an id and lat/lon in decimal degrees.",
        today,
        {
            "protests": static_data.protests(),
            "military": static_data.military_flights(),
            "weather": static_data.weather_alerts(),
            "cyber": static_data.cyber_threats(),
            "hunger": static_data.hunger_zones(),
            "outages": static_data.outages(),
            "flights": static_data.flight_delays(),
            "naturalResources": static_data.natural_resources(),
        },
        limit=1,
    )


def fred_prompt(today: date) -> str:
    return _compose(
        "Estimate the latest readings of these FRED series: WALCL, FEDFUNDS, T10Y2Y, "
        "UNRATE, CPIAUCSL, DGS10 and VIXCLS, with the previous reading for each.",
        today,
        {"series": static_data.economic_series()},
    )


def trade_prompt(today: date) -> str:
    payload = static_data.trade_policy()[0]
    return _compose(
        "Summarise the current global trade policy picture: active trade restrictions "
        "(restrictions), the average applied tariff over the last five years (tariffs), "
        "major bilateral trade flows in USD millions (flows) and recently notified "
        "non-tariff barriers (barriers).",
        today,
        payload,
    )


def supply_chain_prompt(today: date) -> str:
    payload = static_data.supply_chain()[0]
    return _compose(
        "Summarise global supply chain stress: freight indices (shipping, 5), maritime "
        "chokepoint status with a 0-100 disruption score (chokepoints, 6) and critical "
        "mineral concentration as HHI with top producers (minerals, 5).",
        today,
        payload,
    )


PROMPTS: dict[str, PromptBuilder] = {
    "market": market_prompt,
    "layers": layers_prompt,
    "fred": fred_prompt,
    "trade": trade_prompt,
    "supply_chain": supply_chain_prompt,
}


__all__ = [
    "PROMPTS",
    "PromptBuilder",
    "market_prompt",
    "layers_prompt",
    "fred_prompt",
    "trade_prompt",
    "supply_chain_prompt",
]
