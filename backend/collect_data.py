"""Clearly Politics — Collect, Process & Save Dashboard Data

Pulls every source (Census populations, Gun Violence Archive, gun-law
scorecard, political-violence compilation, monthly trends, recent incidents
with motivation analysis), runs the aggregations and writes:

  data/raw/raw-data-YYYY-MM-DD.json
  data/processed/processed-data-YYYY-MM-DD.json
  data/processed/latest.json          <- read by the dashboard and the API
  data/processed/historical_gva_data.json  (when the GVA CSV export is present)

Usage:
    python collect_data.py            # Live sources with fallbacks
    python collect_data.py --offline  # Static/fallback data only, no network
    python collect_data.py --historical-csv gva_mass_shootings.csv
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from config import (
    RAW_DIR, PROCESSED_DIR, SNAPSHOT_VERSION, HISTORICAL_GVA_CSV, HISTORICAL_OUTPUT_PATH,
)
from aggregator import DataProcessor, parse_state_records
from classifier import analyze_incidents
from data_fetchers import (
    fetch_census_populations, fetch_gva_data, fetch_recent_incidents,
    get_fallback_census_data, get_fallback_gva_data,
    get_gun_law_data, get_political_violence_data, generate_monthly_trends,
)
from models import MonthlyRecord
from reference_data import ReferenceTables, DEFAULT_TABLES

logger = logging.getLogger("clearly.collect")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def _collect_recent_incidents() -> dict:
    result = {
        "incidents": [],
        "lastUpdated": _utc_now().isoformat(),
        "source": "Gun Violence Archive",
        "timeframe": "72 hours",
    }
    try:
        incidents = await fetch_recent_incidents(strict=True)
        analyzed = await analyze_incidents(incidents) if incidents else []
    except Exception as e:
        logger.error(f"Error fetching recent incidents: {e}")
        result["error"] = str(e)
        return result
    result["incidents"] = [inc.model_dump() for inc in analyzed]
    return result


async def collect_all_data(offline: bool = False) -> dict:
    """Collect every source, recording which ones succeeded."""
    now = _utc_now()
    results = {
        "timestamp": now.isoformat(),
        "successful": [],
        "failed": [],
        "data": {"year": now.year},
    }

    async def _census():
        return get_fallback_census_data() if offline else await fetch_census_populations()

    async def _gva():
        return get_fallback_gva_data() if offline else await fetch_gva_data()

    async def _political():
        return get_political_violence_data(now.year)

    async def _laws():
        return get_gun_law_data()

    async def _monthly():
        return generate_monthly_trends(now.year, now.month - 1)

    async def _recent():
        if offline:
            return {"incidents": [], "lastUpdated": now.isoformat(),
                    "source": "Gun Violence Archive", "timeframe": "72 hours"}
        return await _collect_recent_incidents()

    steps = [
        ("census", "Census population", _census),
        ("gunViolence", "Gun Violence Archive", _gva),
        ("politicalViolence", "political violence", _political),
        ("gunLaws", "gun law", _laws),
        ("monthlyTrends", "monthly trend", _monthly),
        ("recentIncidents", "recent incident", _recent),
    ]

    logger.info(f"Collecting {len(steps)} sources...")
    outcomes = await asyncio.gather(*(step() for _, _, step in steps), return_exceptions=True)

    for (key, label, _), outcome in zip(steps, outcomes):
        if isinstance(outcome, Exception):
            logger.error(f"Failed to collect {label} data: {outcome}")
            results["failed"].append(key)
        else:
            results["data"][key] = outcome
            results["successful"].append(key)

    logger.info(f"Data collection finished: {len(results['successful'])} sources successful")
    if results["failed"]:
        logger.warning(f"Failed sources: {', '.join(results['failed'])}")
    return results


def _parse_monthly(raw_months: list[dict]) -> list[MonthlyRecord]:
    records = []
    for m in raw_months:
        try:
            records.append(MonthlyRecord(**m))
        except ValidationError as e:
            logger.warning(f"Skipping invalid monthly record {m}: {e}")
    return records


def process_data(raw: dict, tables: Optional[ReferenceTables] = None) -> dict:
    """Build the processed snapshot the dashboard reads.

    Census populations from ``raw`` are layered over the static table, so a
    failed census fetch still yields complete per-capita rates.
    """
    census = raw.get("census", {})
    tables = (tables or DEFAULT_TABLES).with_populations(census.get("populations", {}))
    processor = DataProcessor(tables)

    gun_violence = raw.get("gunViolence", {})
    political_violence = raw.get("politicalViolence", {})
    records = parse_state_records(gun_violence.get("stateBreakdown", []))
    monthly = _parse_monthly(raw.get("monthlyTrends", {}).get("data", []))

    unclassified = processor.unclassified_states(records)
    if unclassified:
        logger.warning(f"States without a political classification: {unclassified}")

    return {
        "metadata": {
            "processedAt": _utc_now().isoformat(),
            "version": SNAPSHOT_VERSION,
            "year": raw.get("year"),
            "unclassifiedStates": unclassified,
        },
        "gunViolenceSummary": gun_violence,
        "politicalViolenceBreakdown": political_violence,
        "politicalViolenceByIdeology": processor.process_political_violence_by_ideology(
            political_violence
        ).model_dump(),
        "gunViolenceByPolitics": processor.process_by_politics(records).model_dump(),
        "gunLawCorrelation": processor.process_gun_law_correlation(
            records, raw.get("gunLaws", {}).get("scores")
        ).model_dump(),
        "massShootingsByPolitics": processor.process_mass_shootings_by_politics(
            records, int(gun_violence.get("massShootings", 0) or 0)
        ).model_dump(),
        "monthlyTrends": processor.process_monthly_trends(monthly).model_dump(),
        "summary": processor.generate_summary_stats({
            "gunViolence": gun_violence,
            "politicalViolence": political_violence,
        }).model_dump(),
        "recentIncidents": raw.get("recentIncidents", {}),
    }


def _write_json(path: Path, data: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def save_raw_data(data: dict, raw_dir: Path = RAW_DIR) -> Path:
    path = raw_dir / f"raw-data-{_utc_now().date().isoformat()}.json"
    _write_json(path, data)
    logger.info(f"Raw data saved to {path.name}")
    return path


def save_processed_data(data: dict, processed_dir: Path = PROCESSED_DIR) -> Path:
    """Write the dated snapshot plus ``latest.json``; returns the latest path."""
    dated = processed_dir / f"processed-data-{_utc_now().date().isoformat()}.json"
    _write_json(dated, data)
    latest = processed_dir / "latest.json"
    _write_json(latest, data)
    logger.info(f"Processed data saved to {dated.name}, latest.json updated")
    return latest


def load_gva_historical_data(csv_path: Path = HISTORICAL_GVA_CSV) -> Optional[str]:
    """Text of the GVA mass-shooting CSV export, or None when it can't be read."""
    try:
        with open(csv_path, encoding="utf-8", errors="replace", newline="") as f:
            return f.read()
    except OSError as e:
        logger.warning(f"No historical GVA data at {csv_path}: {e}")
        return None


def process_historical_data(
    csv_path: Path = HISTORICAL_GVA_CSV,
    output_path: Path = HISTORICAL_OUTPUT_PATH,
) -> Optional[Path]:
    """Tally the GVA CSV export into ``historical_gva_data.json``; None if absent."""
    csv_text = load_gva_historical_data(csv_path)
    if csv_text is None:
        return None
    historical = DataProcessor.process_gva_data(csv_text)
    _write_json(output_path, historical.model_dump())
    logger.info(f"Historical data ({historical.statistics.total} incidents) saved to {output_path.name}")
    return output_path


async def run(
    offline: bool = False,
    raw_dir: Path = RAW_DIR,
    processed_dir: Path = PROCESSED_DIR,
    historical_csv: Path = HISTORICAL_GVA_CSV,
) -> dict:
    results = await collect_all_data(offline=offline)
    save_raw_data(results["data"], raw_dir)
    processed = process_data(results["data"])
    save_processed_data(processed, processed_dir)
    process_historical_data(historical_csv, processed_dir / HISTORICAL_OUTPUT_PATH.name)
    return results


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Collect and process Clearly Politics dashboard data")
    parser.add_argument("--offline", action="store_true", help="Use static/fallback data only")
    parser.add_argument("--historical-csv", type=Path, default=HISTORICAL_GVA_CSV,
                        help="GVA mass-shooting CSV export to tally")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    try:
        results = asyncio.run(run(offline=args.offline, historical_csv=args.historical_csv))
    except Exception as e:
        logger.error(f"Data collection failed: {e}")
        return 1
    logger.info(f"Data collection completed ({len(results['successful'])} sources)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
