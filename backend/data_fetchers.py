"""Clearly Politics Backend — External Data Fetchers (Census, GVA, static scorecards)

Every fetcher is best-effort: network or parse failures are logged and the
caller gets fallback data of the same shape, never an exception.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

import httpx
import numpy as np
from bs4 import BeautifulSoup

from config import (
    GVA_BASE_URL, CENSUS_POPULATION_URL, CENSUS_YEAR, SCRAPE_HEADERS,
)
from cache import census_cache, scrape_cache
from models import RecentIncident
from reference_data import (
    STATE_POPULATIONS, GUN_LAW_SCORES, GUN_LAW_CATEGORIES, GUN_LAW_SOURCES,
    GVA_BASELINE, GVA_STATE_BASELINE, GVA_GROWTH_FACTOR,
    POLITICAL_VIOLENCE_DATA, get_state_abbreviation,
)

logger = logging.getLogger("clearly.fetchers")

# Shared async HTTP client
client = httpx.AsyncClient(timeout=15.0, follow_redirects=True)

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _year_progress(now: Optional[datetime] = None) -> float:
    """Fraction of the calendar year elapsed, in [0, 1]."""
    now = now or _utc_now()
    start = datetime(now.year, 1, 1, tzinfo=now.tzinfo)
    return min(1.0, (now - start).days / 365)


def _parse_count(text: str) -> Optional[int]:
    digits = text.replace(",", "").strip()
    try:
        return int(digits)
    except ValueError:
        return None


# ─────────────────────────── Census ─────────────────────────────

def get_fallback_census_data() -> dict:
    return {
        "populations": dict(STATE_POPULATIONS),
        "source": "Static Census Estimates",
        "year": CENSUS_YEAR,
        "collectedAt": _utc_now().isoformat(),
    }


async def fetch_census_populations() -> dict:
    """State populations from the Census PEP API, keyed by state code."""
    cached = census_cache.get("census:states")
    if cached is not None:
        return cached

    try:
        r = await client.get(CENSUS_POPULATION_URL, params={
            "get": f"POP_{CENSUS_YEAR},NAME",
            "for": "state:*",
        })
        r.raise_for_status()
        rows = r.json()

        populations = {}
        # First row is the header: ["POP_2023", "NAME", "state"]
        for row in rows[1:]:
            population, name = row[0], row[1]
            abbr = get_state_abbreviation(name)
            if abbr and _parse_count(str(population)):
                populations[abbr] = int(population)

        if not populations:
            raise ValueError("Census response contained no recognised states")

        result = {
            "populations": populations,
            "source": "US Census Bureau",
            "year": CENSUS_YEAR,
            "collectedAt": _utc_now().isoformat(),
        }
        census_cache.set("census:states", result)
        logger.info(f"Census: {len(populations)} state populations")
        return result
    except Exception as e:
        logger.warning(f"Census API error, using static populations: {e}")
        return get_fallback_census_data()


# ─────────────────────────── Gun Violence Archive ───────────────

async def _fetch_html(path: str) -> Optional[str]:
    """GET a GVA page. Returns None when blocked or unreachable."""
    cache_key = f"gva:{path}"
    cached = scrape_cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        r = await client.get(f"{GVA_BASE_URL}{path}", headers=SCRAPE_HEADERS)
    except httpx.HTTPError as e:
        logger.warning(f"GVA request failed for {path}: {e}")
        return scrape_cache.get_stale(cache_key)

    if r.status_code == 403:
        logger.warning(f"GVA blocked request for {path} (403)")
        return scrape_cache.get_stale(cache_key)
    if r.status_code != 200:
        logger.warning(f"GVA returned {r.status_code} for {path}")
        return scrape_cache.get_stale(cache_key)

    scrape_cache.set(cache_key, r.text)
    return r.text


def _first_count(html: Optional[str], selector: str) -> Optional[int]:
    if not html:
        return None
    node = BeautifulSoup(html, "html.parser").select_one(selector)
    return _parse_count(node.get_text()) if node else None


def parse_state_rankings(html: str) -> list[dict]:
    """Extract ``{state, incidents}`` rows from the state-rankings table."""
    soup = BeautifulSoup(html, "html.parser")
    rows = []
    for tr in soup.select("table.state-rankings tr"):
        cells = tr.find_all("td")
        if len(cells) < 3:
            continue
        state = cells[1].get_text(strip=True)
        incidents = _parse_count(cells[2].get_text())
        if not state or incidents is None:
            continue
        if len(state) > 2:
            state = get_state_abbreviation(state) or state
        rows.append({"state": state.upper(), "incidents": incidents})
    return rows


def get_fallback_gva_data(year_progress: Optional[float] = None) -> dict:
    """Estimate year-to-date totals from last year's figures."""
    progress = _year_progress() if year_progress is None else year_progress
    scale = progress * GVA_GROWTH_FACTOR
    return {
        "totalIncidents": math.floor(GVA_BASELINE["totalIncidents"] * scale),
        "massShootings": math.floor(GVA_BASELINE["massShootings"] * scale),
        "deaths": math.floor(GVA_BASELINE["deaths"] * scale),
        "injuries": math.floor(GVA_BASELINE["injuries"] * scale),
        "stateBreakdown": [
            {"state": state, "incidents": math.floor(base * scale)}
            for state, base in GVA_STATE_BASELINE.items()
        ],
        "lastUpdated": _utc_now().isoformat(),
        "source": "Gun Violence Archive (Estimated)",
        "methodology": "Estimated based on historical trends",
    }


async def fetch_gva_data() -> dict:
    """Scrape year-to-date totals and the state breakdown from GVA."""
    stats_html = await _fetch_html("/reports/total-number-of-incidents")
    if stats_html is None:
        logger.info("GVA unavailable, falling back to estimated data")
        return get_fallback_gva_data()

    try:
        total = _first_count(stats_html, ".statistical-count")
        if total is None:
            total = math.floor(GVA_BASELINE["totalIncidents"] * _year_progress() * GVA_GROWTH_FACTOR)

        mass_html = await _fetch_html("/reports/mass-shootings")
        casualty_html = await _fetch_html("/reports/casualties")
        ranking_html = await _fetch_html("/reports/state-rankings")

        state_breakdown = parse_state_rankings(ranking_html) if ranking_html else []
        if not state_breakdown:
            logger.warning("GVA state rankings empty, using estimated state breakdown")
            state_breakdown = get_fallback_gva_data()["stateBreakdown"]

        return {
            "totalIncidents": total,
            "massShootings": _first_count(mass_html, ".statistical-count") or 0,
            "deaths": _first_count(casualty_html, ".deaths .statistical-count") or 0,
            "injuries": _first_count(casualty_html, ".injuries .statistical-count") or 0,
            "stateBreakdown": state_breakdown,
            "lastUpdated": _utc_now().isoformat(),
            "source": "Gun Violence Archive (Live Data)",
            "methodology": "Real-time data from GVA website scraping",
            "year": _utc_now().year,
        }
    except Exception as e:
        logger.warning(f"GVA parse error, falling back to estimated data: {e}")
        return get_fallback_gva_data()


def parse_recent_incidents(html: str) -> list[RecentIncident]:
    """Rows of the "last 72 hours" table; the first row is the header."""
    soup = BeautifulSoup(html, "html.parser")
    incidents = []
    for i, tr in enumerate(soup.select(".responsive tr")):
        if i == 0:
            continue
        cells = tr.find_all("td")
        if len(cells) < 6:
            continue
        incident_id = cells[0].get_text(strip=True)
        date = cells[1].get_text(strip=True)
        if not incident_id or not date:
            continue
        link = cells[0].find("a")
        href = link.get("href", "") if link else ""
        incidents.append(RecentIncident(
            id=incident_id,
            date=date,
            state=cells[2].get_text(strip=True),
            city=cells[3].get_text(strip=True),
            killed=_parse_count(cells[4].get_text()) or 0,
            injured=_parse_count(cells[5].get_text()) or 0,
            sourceUrl=f"{GVA_BASE_URL}{href}" if href else "",
        ))
    return incidents


async def fetch_recent_incidents(strict: bool = False) -> list[RecentIncident]:
    """Incidents from the last 72 hours.

    Failures yield ``[]``; with ``strict`` they raise instead, so callers can
    tell an empty table from an unreachable one.
    """
    html = await _fetch_html("/last-72-hours")
    if html is None:
        if strict:
            raise RuntimeError("GVA recent incidents page unavailable")
        return []
    try:
        incidents = parse_recent_incidents(html)
    except Exception as e:
        logger.warning(f"Failed to parse recent incidents: {e}")
        if strict:
            raise
        return []
    logger.info(f"GVA: {len(incidents)} incidents in the last 72 hours")
    return incidents


# ─────────────────────────── Static sources ─────────────────────

def get_gun_law_data() -> dict:
    return {
        "scores": dict(GUN_LAW_SCORES),
        "categories": list(GUN_LAW_CATEGORIES),
        "sources": list(GUN_LAW_SOURCES),
        "methodology": "Composite score based on strength of gun regulations in 6 key categories",
        "lastUpdated": "2024-01-01",
        "collectedAt": _utc_now().isoformat(),
    }


def get_political_violence_data(year: Optional[int] = None) -> dict:
    year = year or _utc_now().year
    return {
        **POLITICAL_VIOLENCE_DATA,
        "timeframe": f"{year}-01-01 to present",
        "collectedAt": _utc_now().isoformat(),
    }


def generate_monthly_trends(year: int, through_month: int, seed: Optional[int] = None) -> dict:
    """Placeholder monthly series with a summer peak, Jan..through_month (0-based).

    GVA publishes no monthly time series, so until one is scraped the
    dashboard gets a seasonal approximation.
    """
    rng = np.random.default_rng(seed)
    data = []
    for i in range(min(through_month, 11) + 1):
        seasonal = math.sin(i / 12 * math.pi * 2) * 500
        noise = (rng.random() - 0.5) * 500
        data.append({
            "month": MONTHS[i],
            "year": year,
            "incidents": int(round(3500 + seasonal + noise)),
        })
    return {
        "data": data,
        "source": "Mock Data (placeholder for time-series scraping)",
        "collectedAt": _utc_now().isoformat(),
    }
