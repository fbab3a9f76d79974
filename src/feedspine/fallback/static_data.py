"""Embedded datasets: the last rung of every fallback ladder.

Each function returns a fresh list (callers may mutate it) with time
fields stamped relative to ``now``. Item shapes match the generative
payload schemas in ``feedspine.fallback.schemas`` so a layer renders the
same way whichever rung produced its data.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from feedspine.core.timestamps import utc_now

Item = dict[str, Any]


def _iso(moment: datetime) -> str:
    return moment.isoformat()


# ── Layers ───────────────────────────────────────────────────────


def weather_alerts(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("w-1", "Tropical Cyclone", "Extreme", "Western Pacific", 125.5, 12.5, 24, "Category 3 tropical cyclone approaching Philippines"),
        ("w-2", "Heat Wave", "Severe", "Northern India", 77.2, 28.6, 48, "Temperatures exceeding 45°C across northern India"),
        ("w-3", "Flooding", "Severe", "East Africa", 36.8, -1.3, 24, "Heavy rainfall causing severe flooding in Kenya"),
        ("w-4", "Severe Thunderstorm", "Moderate", "Central United States", -97.5, 35.5, 12, "Tornado-producing supercells expected across Tornado Alley"),
        ("w-5", "Wildfire", "Extreme", "Southern Europe", 23.7, 38.0, 48, "Extreme fire risk across southern Europe"),
        ("w-6", "Blizzard", "Severe", "Western Siberia", 73.4, 61.0, 24, "Heavy snowfall and high winds across western Siberia"),
        ("w-7", "Drought", "Moderate", "Horn of Africa", 45.0, 5.0, 168, "Prolonged drought affecting Somalia and Ethiopia"),
        ("w-8", "Tsunami Warning", "Extreme", "South Pacific", -175.2, -21.2, 6, "Minor tsunami waves following 7.2 earthquake near Tonga"),
    ]
    return [
        {
            "id": alert_id,
            "event": event,
            "severity": severity,
            "area": area,
            "lon": lon,
            "lat": lat,
            "onset": _iso(now),
            "expires": _iso(now + timedelta(hours=hours)),
            "description": description,
        }
        for alert_id, event, severity, area, lon, lat, hours, description in rows
    ]


def protests(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("p-1", "Anti-government protests in Dhaka", "protest", "Bangladesh", "Dhaka", 23.8, 90.4, "high"),
        ("p-2", "Cost of living demonstrations in Nairobi", "demonstration", "Kenya", "Nairobi", -1.3, 36.8, "medium"),
        ("p-3", "Labour strikes in Paris", "strike", "France", "Paris", 48.9, 2.3, "medium"),
        ("p-4", "Pro-democracy rally in Caracas", "protest", "Venezuela", "Caracas", 10.5, -66.9, "high"),
        ("p-5", "Student protests in Bogotá", "demonstration", "Colombia", "Bogotá", 4.7, -74.1, "low"),
        ("p-6", "Anti-austerity marches in Buenos Aires", "protest", "Argentina", "Buenos Aires", -34.6, -58.4, "medium"),
        ("p-7", "Farmers protest in New Delhi", "protest", "India", "New Delhi", 28.6, 77.2, "high"),
        ("p-8", "Environmental protests in Jakarta", "demonstration", "Indonesia", "Jakarta", -6.2, 106.8, "low"),
        ("p-9", "Civil unrest in Khartoum", "civil_unrest", "Sudan", "Khartoum", 15.6, 32.5, "high"),
        ("p-10", "Public sector strikes in Lagos", "strike", "Nigeria", "Lagos", 6.5, 3.4, "medium"),
        ("p-11", "Anti-corruption rallies in São Paulo", "protest", "Brazil", "São Paulo", -23.5, -46.6, "medium"),
        ("p-12", "Healthcare worker demonstrations in Manila", "demonstration", "Philippines", "Manila", 14.6, 121.0, "low"),
    ]
    return [
        {
            "id": event_id,
            "title": title,
            "type": event_type,
            "country": country,
            "city": city,
            "lat": lat,
            "lon": lon,
            "severity": severity,
            "date": _iso(now),
        }
        for event_id, title, event_type, country, city, lat, lon, severity in rows
    ]


def military_flights(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("fm-1", "FORTE12", 46.5, 36.8, 55000, "RQ-4 Global Hawk", "USA"),
        ("fm-2", "JAKE11", 35.2, 33.5, 25000, "RC-135", "USA"),
        ("fm-3", "LAGR223", 55.3, 38.2, 30000, "Il-76", "Russia"),
        ("fm-4", "DRAGON01", 24.5, 120.3, 35000, "P-8 Poseidon", "USA"),
        ("fm-5", "RAF201", 53.5, -1.5, 22000, "RC-135W", "UK"),
        ("fm-6", "NAVY05", 10.5, 65.2, 30000, "P-8A Poseidon", "USA"),
        ("fm-7", "FRAIR22", 44.0, 5.0, 38000, "Rafale", "France"),
        ("fm-8", "SIGNT07", 60.5, 25.0, 40000, "RC-37", "USA"),
    ]
    return [
        {
            "id": flight_id,
            "callsign": callsign,
            "lat": lat,
            "lon": lon,
            "altitude": altitude,
            "type": platform,
            "country": country,
            "timestamp": _iso(now),
        }
        for flight_id, callsign, lat, lon, altitude, platform, country in rows
    ]


def cyber_threats(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("ct-1", "APT29 Campaign", "APT", "Critical", "Russia", 55.75, 37.62),
        ("ct-2", "Ransomware Wave", "Ransomware", "High", "UK", 51.51, -0.12),
        ("ct-3", "DDoS Attack", "DDoS", "Medium", "Singapore", 1.35, 103.82),
        ("ct-4", "Supply Chain Compromise", "Supply Chain", "Critical", "USA", 37.77, -122.42),
        ("ct-5", "APT41 Intrusion", "APT", "Critical", "China", 39.9, 116.4),
        ("ct-6", "Wiper Malware", "Wiper", "Critical", "Ukraine", 50.45, 30.52),
        ("ct-7", "Banking Trojan", "Trojan", "High", "Brazil", -23.55, -46.63),
        ("ct-8", "Zero-Day Exploit", "Zero-Day", "Critical", "South Korea", 37.57, 126.98),
        ("ct-9", "IoT Botnet", "Botnet", "Medium", "Netherlands", 52.37, 4.89),
        ("ct-10", "Phishing Campaign", "Phishing", "High", "Japan", 35.68, 139.69),
    ]
    return [
        {
            "id": threat_id,
            "name": name,
            "type": threat_type,
            "severity": severity,
            "country": country,
            "lat": lat,
            "lon": lon,
            "firstSeen": _iso(now),
            "lastSeen": _iso(now),
        }
        for threat_id, name, threat_type, severity, country, lat, lon in rows
    ]


def outages(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("o-1", "Internet disruption in Sudan", "Sudan", 15.6, 32.5, "total", "Nationwide internet shutdown amid conflict"),
        ("o-2", "Connectivity issues in Myanmar", "Myanmar", 16.9, 96.2, "major", "Partial internet blackout in multiple regions"),
        ("o-3", "Internet throttling in Iran", "Iran", 35.7, 51.4, "partial", "Social media platforms blocked nationwide"),
        ("o-4", "Submarine cable damage, Red Sea", "Yemen", 13.0, 45.0, "major", "Undersea cable damage affecting East Africa connectivity"),
        ("o-5", "Network disruption in Ethiopia", "Ethiopia", 13.5, 39.5, "partial", "Internet slowdown in Tigray region"),
        ("o-6", "Internet restrictions in Russia", "Russia", 55.8, 37.6, "partial", "VPN and social media restrictions expanded"),
    ]
    return [
        {
            "id": outage_id,
            "title": title,
            "country": country,
            "lat": lat,
            "lon": lon,
            "severity": severity,
            "description": description,
            "pubDate": _iso(now),
        }
        for outage_id, title, country, lat, lon, severity, description in rows
    ]


def flight_delays(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("f-1", "JFK", "John F. Kennedy Intl", 40.6, -73.8, "departure_delay", "moderate", 45, ""),
        ("f-2", "LHR", "Heathrow", 51.5, -0.5, "arrival_delay", "minor", 25, ""),
        ("f-3", "DXB", "Dubai Intl", 25.3, 55.4, "ground_delay", "moderate", 35, ""),
        ("f-4", "HND", "Tokyo Haneda", 35.6, 139.8, "departure_delay", "minor", 20, ""),
        ("f-5", "ORD", "O'Hare Intl", 42.0, -87.9, "ground_stop", "major", 90, "Severe weather"),
        ("f-6", "CDG", "Charles de Gaulle", 49.0, 2.6, "departure_delay", "minor", 15, ""),
        ("f-7", "SIN", "Changi", 1.4, 104.0, "arrival_delay", "minor", 18, ""),
        ("f-8", "ATL", "Hartsfield-Jackson", 33.6, -84.4, "departure_delay", "moderate", 40, ""),
    ]
    return [
        {
            "id": delay_id,
            "code": code,
            "airport": airport,
            "lat": lat,
            "lon": lon,
            "delayType": delay_type,
            "severity": severity,
            "delayMinutes": minutes,
            "reason": reason,
            "updatedAt": _iso(now),
        }
        for delay_id, code, airport, lat, lon, delay_type, severity, minutes, reason in rows
    ]


def hunger_zones(now: datetime | None = None) -> list[Item]:
    rows = [
        ("h-1", "Somalia", "East Africa", 2.0, 45.3, 4, "Emergency", 4_200_000, "Severe drought and conflict-driven food crisis"),
        ("h-2", "Yemen", "Middle East", 15.4, 44.2, 4, "Emergency", 17_400_000, "Ongoing conflict disrupting food supply chains"),
        ("h-3", "South Sudan", "East Africa", 6.9, 31.6, 5, "Famine", 7_700_000, "Famine conditions in multiple states"),
        ("h-4", "Afghanistan", "South Asia", 33.9, 67.7, 4, "Emergency", 15_300_000, "Economic collapse and drought"),
        ("h-5", "DR Congo", "Central Africa", -4.3, 15.3, 4, "Emergency", 26_400_000, "Conflict and displacement driving food insecurity"),
        ("h-6", "Haiti", "Caribbean", 18.5, -72.3, 4, "Emergency", 4_900_000, "Gang violence disrupting food distribution"),
        ("h-7", "Sudan", "East Africa", 15.6, 32.5, 5, "Famine", 18_000_000, "Civil war causing widespread famine"),
        ("h-8", "Ethiopia", "East Africa", 9.0, 38.7, 3, "Crisis", 12_600_000, "Drought and conflict in northern regions"),
        ("h-9", "Madagascar", "Southern Africa", -18.9, 47.5, 3, "Crisis", 1_600_000, "Severe drought in southern regions"),
        ("h-10", "Myanmar", "Southeast Asia", 19.8, 96.2, 3, "Crisis", 3_400_000, "Conflict disrupting agriculture and trade"),
    ]
    return [
        {
            "id": zone_id,
            "country": country,
            "region": region,
            "lat": lat,
            "lon": lon,
            "level": level,
            "levelName": level_name,
            "populationAffected": population,
            "description": description,
        }
        for zone_id, country, region, lat, lon, level, level_name, population, description in rows
    ]


def fires(now: datetime | None = None) -> list[Item]:
    today = (now or utc_now()).date().isoformat()
    rows = [
        (-34.6, 138.6, 350, 120, 90, "South Australia", "D"),
        (-12.5, -55.0, 320, 95, 85, "Amazon Brazil", "D"),
        (36.5, -121.5, 380, 200, 95, "California USA", "D"),
        (-2.5, 112.0, 340, 80, 70, "Kalimantan Indonesia", "D"),
        (37.5, 23.5, 310, 70, 80, "Greece", "D"),
        (-8.5, 25.0, 330, 85, 75, "DRC Central Africa", "D"),
        (62.0, 130.0, 290, 60, 65, "Yakutia Russia", "N"),
        (9.0, 7.5, 305, 75, 80, "Nigeria", "D"),
        (-20.0, 30.0, 315, 65, 70, "Zimbabwe", "D"),
        (55.0, 85.0, 280, 50, 60, "Siberia Russia", "D"),
    ]
    return [
        {
            "id": f"fire-{index}",
            "lat": lat,
            "lon": lon,
            "brightness": brightness,
            "frp": frp,
            "confidence": confidence,
            "region": region,
            "acq_date": today,
            "daynight": daynight,
        }
        for index, (lat, lon, brightness, frp, confidence, region, daynight) in enumerate(rows, start=1)
    ]


def earthquakes(now: datetime | None = None) -> list[Item]:
    now = now or utc_now()
    rows = [
        ("eq-1", "Near Coast of Central Chile", 5.2, 35, -33.4, -71.6, 3_600),
        ("eq-2", "Mindanao, Philippines", 5.8, 45, 6.9, 126.3, 7_200),
        ("eq-3", "Off East Coast of Honshu, Japan", 6.1, 30, 37.4, 141.6, 10_800),
        ("eq-4", "Southern Iran", 4.8, 10, 28.5, 57.2, 14_400),
        ("eq-5", "Papua New Guinea", 5.5, 55, -5.5, 151.8, 18_000),
        ("eq-6", "Hindu Kush Region, Afghanistan", 4.6, 190, 36.5, 71.1, 21_600),
        ("eq-7", "Near Coast of Peru", 5.0, 28, -15.5, -75.1, 25_200),
        ("eq-8", "Vanuatu Region", 5.3, 35, -15.4, 167.1, 28_800),
        ("eq-9", "Central Turkey", 4.2, 12, 38.4, 38.7, 32_400),
        ("eq-10", "South of Fiji Islands", 5.7, 580, -21.0, -179.0, 36_000),
        ("eq-11", "Sumatra, Indonesia", 5.4, 25, 2.1, 98.9, 43_200),
        ("eq-12", "Tonga Islands", 5.1, 10, -19.8, -174.8, 50_000),
    ]
    return [
        {
            "id": quake_id,
            "place": place,
            "magnitude": magnitude,
            "depthKm": depth,
            "lat": lat,
            "lon": lon,
            "occurredAt": _iso(now - timedelta(seconds=seconds_ago)),
        }
        for quake_id, place, magnitude, depth, lat, lon, seconds_ago in rows
    ]


def natural_resources(now: datetime | None = None) -> list[Item]:
    rows = [
        ("nr-ng1", "Crude Oil", "oil", "Nigeria", "Niger Delta", 5.3, 6.5, "1.4M bbl/day", "1.7%", "Africa's largest oil producer, OPEC member"),
        ("nr-ng2", "Natural Gas", "gas", "Nigeria", "Bonny Island LNG", 4.43, 7.17, "28B m³/yr", "1.3%", "Major LNG exporter to Europe & Asia"),
        ("nr-1", "Crude Oil", "oil", "Saudi Arabia", "Ghawar Field", 25.4, 49.6, "10.8M bbl/day", "12%", "Largest conventional oil field"),
        ("nr-uae", "Crude Oil", "oil", "UAE", "Abu Dhabi Offshore", 24.4, 54.3, "3.2M bbl/day", "3.8%", "ADNOC expanding capacity"),
        ("nr-qatar", "Natural Gas", "gas", "Qatar", "North Field", 26.0, 52.0, "177B m³/yr", "4.5%", "World's largest LNG exporter"),
        ("nr-2", "Crude Oil", "oil", "USA", "Permian Basin", 31.9, -101.9, "13.2M bbl/day", "14%", "Top global producer"),
        ("nr-11", "Copper", "copper", "Chile", "Atacama Desert", -22.3, -68.9, "5.3M tonnes/yr", "27%", "Escondida mine"),
        ("nr-3", "Crude Oil", "oil", "Russia", "Western Siberia", 61.0, 73.0, "10.5M bbl/day", "11%", "Under sanctions, pipeline exporter"),
        ("nr-14", "Uranium", "uranium", "Kazakhstan", "South Kazakhstan", 44.0, 66.9, "21K tonnes/yr", "43%", "In-situ leach mining"),
        ("nr-9", "Cobalt", "cobalt", "DR Congo", "Katanga Province", -11.0, 27.5, "130K tonnes/yr", "73%", "Critical for EV batteries"),
        ("nr-10", "Diamonds", "diamond", "Botswana", "Jwaneng Mine", -21.2, 25.5, "24M carats/yr", "15%", "Richest diamond mine by value"),
        ("nr-15", "Bauxite", "bauxite", "Guinea", "Boke Region", 10.9, -14.3, "110M tonnes/yr", "28%", "World's largest bauxite reserves"),
        ("nr-18", "Platinum", "platinum", "South Africa", "Bushveld Complex", -25.0, 29.5, "130 tonnes/yr", "72%", "Dominates global supply"),
        ("nr-19", "Rare Earths", "cobalt", "China", "Inner Mongolia", 40.8, 109.9, "210K tonnes/yr", "60%", "Bayan Obo mine, global dominance"),
        ("nr-12", "Iron Ore", "iron", "Australia", "Pilbara", -22.3, 118.3, "900M tonnes/yr", "38%", "BHP & Rio Tinto operations"),
        ("nr-20", "Lithium", "copper", "Australia", "Greenbushes", -33.8, 116.1, "55K tonnes/yr", "47%", "World's largest lithium mine"),
        ("nr-23", "Nickel", "cobalt", "Indonesia", "Sulawesi", -2.5, 121.5, "1.6M tonnes/yr", "48%", "Dominant global smelting hub"),
        ("nr-norway", "Natural Gas", "gas", "Norway", "North Sea", 61.5, 3.5, "114B m³/yr", "3%", "Europe's key gas supplier"),
    ]
    return [
        {
            "id": resource_id,
            "resource": resource,
            "type": resource_type,
            "country": country,
            "region": region,
            "lat": lat,
            "lon": lon,
            "production": production,
            "globalShare": share,
            "significance": significance,
        }
        for resource_id, resource, resource_type, country, region, lat, lon, production, share, significance in rows
    ]


def population_exposure(now: datetime | None = None) -> list[Item]:
    rows = [
        ("pe-1", "Sudan", "Khartoum", 15.6, 32.5, 6_300_000, "conflict"),
        ("pe-2", "DR Congo", "North Kivu", -1.7, 29.2, 8_900_000, "conflict"),
        ("pe-3", "Gaza", "Gaza Strip", 31.4, 34.4, 2_100_000, "conflict"),
        ("pe-4", "Ukraine", "Donetsk", 48.0, 37.8, 1_900_000, "conflict"),
        ("pe-5", "Myanmar", "Sagaing", 22.0, 95.9, 5_300_000, "conflict"),
        ("pe-6", "Bangladesh", "Dhaka", 23.8, 90.4, 22_000_000, "flood"),
        ("pe-7", "Philippines", "Eastern Visayas", 11.2, 125.0, 4_500_000, "cyclone"),
        ("pe-8", "Somalia", "Bay", 2.0, 45.3, 4_200_000, "drought"),
    ]
    return [
        {
            "id": exposure_id,
            "country": country,
            "region": region,
            "lat": lat,
            "lon": lon,
            "exposedPopulation": population,
            "hazard": hazard,
        }
        for exposure_id, country, region, lat, lon, population, hazard in rows
    ]


# ── Markets ──────────────────────────────────────────────────────


def stocks(now: datetime | None = None) -> list[Item]:
    rows = [
        ("^GSPC", "S&P 500", "SPX", 5800, 0.3), ("^DJI", "Dow Jones", "DOW", 42500, 0.2),
        ("^IXIC", "NASDAQ", "NDX", 18500, 0.4), ("AAPL", "Apple", "AAPL", 230, -0.1),
        ("MSFT", "Microsoft", "MSFT", 430, 0.5), ("NVDA", "NVIDIA", "NVDA", 135, 1.2),
        ("GOOGL", "Alphabet", "GOOGL", 175, 0.3), ("AMZN", "Amazon", "AMZN", 200, 0.6),
        ("META", "Meta", "META", 580, 0.4), ("BRK-B", "Berkshire", "BRK.B", 460, 0.1),
        ("TSM", "TSMC", "TSM", 180, 0.8), ("JPM", "JPMorgan", "JPM", 240, 0.3),
        ("XOM", "Exxon", "XOM", 110, 0.4), ("TSLA", "Tesla", "TSLA", 350, 1.5),
    ]
    return [
        {"symbol": symbol, "name": name, "display": display, "price": price, "change": change}
        for symbol, name, display, price, change in rows
    ]


def commodities(now: datetime | None = None) -> list[Item]:
    rows = [
        ("^VIX", "VIX", "VIX", 15, -2.1), ("GC=F", "Gold", "GOLD", 2950, 0.3),
        ("CL=F", "Crude Oil", "OIL", 72, -0.5), ("NG=F", "Natural Gas", "NATGAS", 3.8, 1.2),
        ("SI=F", "Silver", "SILVER", 33, 0.4), ("HG=F", "Copper", "COPPER", 4.5, 0.2),
    ]
    return [
        {"symbol": symbol, "name": name, "display": display, "price": price, "change": change}
        for symbol, name, display, price, change in rows
    ]


def crypto(now: datetime | None = None) -> list[Item]:
    rows = [
        ("Bitcoin", "BTC", 87000, 1.5), ("Ethereum", "ETH", 3200, 2.1),
        ("Solana", "SOL", 140, 3.2), ("XRP", "XRP", 2.3, 1.8),
    ]
    return [
        {"name": name, "symbol": symbol, "price": price, "change": change}
        for name, symbol, price, change in rows
    ]


def sectors(now: datetime | None = None) -> list[Item]:
    rows = [
        ("Tech", 0.5), ("Finance", 0.3), ("Energy", -0.2), ("Health", 0.1),
        ("Consumer", 0.4), ("Industrial", 0.2), ("Staples", 0.1), ("Utilities", -0.1),
        ("Materials", 0.3), ("Real Est", -0.3), ("Comms", 0.6), ("Semis", 0.8),
    ]
    return [{"name": name, "change": change} for name, change in rows]


# ── Panels ───────────────────────────────────────────────────────


def economic_series(now: datetime | None = None) -> list[Item]:
    today = (now or utc_now()).date().isoformat()
    rows = [
        ("WALCL", "Fed Total Assets", 6_900_000, 6_950_000, "$B"),
        ("FEDFUNDS", "Fed Funds Rate", 4.33, 4.58, "%"),
        ("T10Y2Y", "10Y-2Y Spread", 0.25, 0.18, "%"),
        ("UNRATE", "Unemployment", 4.1, 4.0, "%"),
        ("CPIAUCSL", "CPI Index", 315.5, 314.8, ""),
        ("DGS10", "10Y Treasury", 4.35, 4.28, "%"),
        ("VIXCLS", "VIX", 15.2, 14.8, ""),
    ]
    series = []
    for series_id, name, value, previous, unit in rows:
        change = round(value - previous, 4)
        series.append(
            {
                "id": series_id,
                "name": name,
                "value": value,
                "previousValue": previous,
                "change": change,
                "changePercent": round(change / previous * 100, 1) if previous else 0.0,
                "date": today,
                "unit": unit,
            }
        )
    return series


def trade_policy(now: datetime | None = None) -> list[Item]:
    return [
        {
            "restrictions": [
                {"country": "United States", "measure": "Section 301 Tariffs on China", "status": "active", "affectedSectors": ["Technology", "Steel", "Aluminum"], "imposedDate": "2024-05", "severity": "high"},
                {"country": "European Union", "measure": "Carbon Border Adjustment (CBAM)", "status": "active", "affectedSectors": ["Steel", "Cement", "Aluminum", "Fertilizers"], "imposedDate": "2023-10", "severity": "moderate"},
                {"country": "China", "measure": "Rare Earth Export Controls", "status": "active", "affectedSectors": ["Electronics", "Defense", "Green Energy"], "imposedDate": "2024-07", "severity": "high"},
                {"country": "India", "measure": "Electronics Import Duties", "status": "active", "affectedSectors": ["Consumer Electronics", "Semiconductors"], "imposedDate": "2024-01", "severity": "moderate"},
            ],
            "tariffs": [
                {"year": year, "avgTariff": tariff, "sector": "All Goods"}
                for year, tariff in ((2021, 6.5), (2022, 7.1), (2023, 7.8), (2024, 8.2), (2025, 8.9))
            ],
            "flows": [
                {"reporter": "United States", "partner": "China", "exports": 148000, "imports": 427000, "balance": -279000, "year": 2025},
                {"reporter": "United States", "partner": "EU", "exports": 372000, "imports": 558000, "balance": -186000, "year": 2025},
                {"reporter": "China", "partner": "ASEAN", "exports": 520000, "imports": 410000, "balance": 110000, "year": 2025},
            ],
            "barriers": [
                {"country": "United States", "type": "TBT", "description": "AI chip export restrictions", "affectedProducts": "Semiconductors, GPU", "notificationDate": "2024-10"},
                {"country": "EU", "type": "SPS", "description": "Deforestation-linked import ban", "affectedProducts": "Palm oil, Soy, Cocoa, Coffee", "notificationDate": "2024-12"},
            ],
        }
    ]


def supply_chain(now: datetime | None = None) -> list[Item]:
    return [
        {
            "shipping": [
                {"name": "Baltic Dry Index", "value": 1450, "change": -2.3, "unit": "points", "spikeAlert": False},
                {"name": "SCFI (Shanghai)", "value": 1680, "change": 5.1, "unit": "$/TEU", "spikeAlert": False},
                {"name": "VLCC Tanker Rate", "value": 42000, "change": -1.5, "unit": "$/day", "spikeAlert": False},
            ],
            "chokepoints": [
                {"name": "Strait of Hormuz", "status": "elevated", "disruption": 25, "vesselCount": 85, "avgDelay": 2.5, "region": "Middle East"},
                {"name": "Suez Canal", "status": "normal", "disruption": 10, "vesselCount": 52, "avgDelay": 0.5, "region": "Middle East/Africa"},
                {"name": "Panama Canal", "status": "elevated", "disruption": 35, "vesselCount": 28, "avgDelay": 4.0, "region": "Americas"},
                {"name": "Bab el-Mandeb", "status": "critical", "disruption": 65, "vesselCount": 15, "avgDelay": 12.0, "region": "Middle East/Africa"},
            ],
            "minerals": [
                {"mineral": "Lithium", "hhi": 3200, "topProducers": [{"country": "Australia", "share": 47}, {"country": "Chile", "share": 25}], "riskRating": "high", "priceChange": -8.5},
                {"mineral": "Cobalt", "hhi": 4500, "topProducers": [{"country": "DR Congo", "share": 73}], "riskRating": "critical", "priceChange": -3.2},
                {"mineral": "Rare Earths", "hhi": 5800, "topProducers": [{"country": "China", "share": 70}], "riskRating": "critical", "priceChange": 2.1},
            ],
        }
    ]


__all__ = [
    "weather_alerts",
    "protests",
    "military_flights",
    "cyber_threats",
    "outages",
    "flight_delays",
    "hunger_zones",
    "fires",
    "earthquakes",
    "natural_resources",
    "population_exposure",
    "stocks",
    "commodities",
    "crypto",
    "sectors",
    "economic_series",
    "trade_policy",
    "supply_chain",
]
