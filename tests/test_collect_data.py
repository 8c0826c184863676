"""Tests for collect_data.py: source collection, snapshot processing and file output."""

import asyncio
import json

import pytest

import collect_data
from aggregator import GVA_HISTORICAL_COLUMNS
from collect_data import collect_all_data, process_data, run, save_processed_data
from validate_data import DataValidator

RAW = {
    "year": 2026,
    "census": {"populations": {"TX": 30_000_000, "CA": 40_000_000}},
    "gunViolence": {
        "totalIncidents": 5010,
        "massShootings": 100,
        "stateBreakdown": [
            {"state": "TX", "incidents": "3,000"},
            {"state": "CA", "incidents": 2000},
            {"state": "PR", "incidents": 10},
        ],
    },
    "politicalViolence": {
        "rightWingExtremism": 300,
        "leftWingExtremism": 100,
        "islamistExtremism": 0,
        "otherIdeology": 100,
        "timeframe": "2026-01-01 to present",
    },
    "gunLaws": {"scores": {"TX": 20, "CA": 85}},
    "monthlyTrends": {"data": [
        {"month": "Jan", "year": 2026, "incidents": 100},
        {"month": "Feb", "year": 2026, "incidents": 150},
        {"month": "Mar", "year": 2026, "incidents": 120},
        {"month": "Apr", "year": 2026, "incidents": -5},
    ]},
    "recentIncidents": {"incidents": [], "timeframe": "72 hours"},
}


# ── process_data ─────────────────────────────────────────────────


class TestProcessData:
    @pytest.fixture
    def processed(self):
        return process_data(RAW)

    def test_metadata(self, processed):
        meta = processed["metadata"]
        assert meta["version"] == "1.1"
        assert meta["year"] == 2026
        assert meta["unclassifiedStates"] == ["PR"]
        assert meta["processedAt"]

    def test_census_populations_override_static(self, processed):
        politics = processed["gunViolenceByPolitics"]
        assert politics["red"]["incidents"] == 3000
        assert politics["red"]["population"] == 30_000_000
        assert politics["red"]["rate"] == pytest.approx(10.0)
        assert politics["blue"]["population"] == 40_000_000
        assert politics["blue"]["rate"] == pytest.approx(5.0)
        assert politics["swing"]["incidents"] == 0

    def test_correlation_uses_collected_scores(self, processed):
        corr = processed["gunLawCorrelation"]
        assert [p["stateCode"] for p in corr["points"]] == ["TX", "CA"]
        assert corr["coefficient"] == pytest.approx(-1.0)
        assert corr["strength"] == "strong"
        assert corr["direction"] == "negative"

    def test_mass_shootings_apportioned(self, processed):
        mass = processed["massShootingsByPolitics"]
        assert mass["red"]["massShootings"] == 60
        assert mass["blue"]["massShootings"] == 40

    def test_monthly_trends_skip_invalid_rows(self, processed):
        trends = processed["monthlyTrends"]
        assert [m["growthRate"] for m in trends["data"]] == [0.0, 50.0, -20.0]
        assert trends["totalIncidents"] == 370
        assert trends["trend"] == "increasing"

    def test_ideology_and_summary(self, processed):
        shares = {d["category"]: d["percentage"] for d in processed["politicalViolenceByIdeology"]["data"]}
        assert shares["Right-Wing Extremism"] == 60.0
        assert shares["Left-Wing Extremism"] == 20.0

        summary = processed["summary"]
        assert summary["redVsBlueRatio"] == 2.0
        assert summary["politicalViolenceSkew"] == 3.0

    def test_raw_sections_passed_through(self, processed):
        assert processed["gunViolenceSummary"] is RAW["gunViolence"]
        assert processed["recentIncidents"] == RAW["recentIncidents"]

    def test_snapshot_passes_validation(self, processed):
        validator = DataValidator()
        assert validator.validate(processed), validator.errors

    def test_empty_raw_data(self):
        processed = process_data({})
        assert processed["gunViolenceByPolitics"]["red"]["rate"] == 0.0
        assert processed["gunLawCorrelation"]["coefficient"] == 0.0
        assert processed["monthlyTrends"]["trend"] == "insufficient data"


# ── collect_all_data ─────────────────────────────────────────────


def test_failed_source_is_recorded(monkeypatch):
    async def broken():
        raise RuntimeError("scraper exploded")

    async def census():
        return {"populations": {}}

    async def no_incidents(strict=False):
        return []

    monkeypatch.setattr(collect_data, "fetch_census_populations", census)
    monkeypatch.setattr(collect_data, "fetch_gva_data", broken)
    monkeypatch.setattr(collect_data, "fetch_recent_incidents", no_incidents)

    results = asyncio.run(collect_all_data())

    assert results["failed"] == ["gunViolence"]
    assert "gunViolence" not in results["data"]
    assert set(results["successful"]) == {
        "census", "politicalViolence", "gunLaws", "monthlyTrends", "recentIncidents",
    }


def test_offline_collection_uses_fallbacks():
    results = asyncio.run(collect_all_data(offline=True))

    assert results["failed"] == []
    data = results["data"]
    assert data["census"]["source"] == "Static Census Estimates"
    assert data["gunViolence"]["source"] == "Gun Violence Archive (Estimated)"
    assert data["recentIncidents"]["incidents"] == []
    assert "error" not in data["recentIncidents"]


def _patch_live_sources(monkeypatch, recent):
    async def census():
        return {"populations": {}}

    async def gva():
        return {"stateBreakdown": []}

    monkeypatch.setattr(collect_data, "fetch_census_populations", census)
    monkeypatch.setattr(collect_data, "fetch_gva_data", gva)
    monkeypatch.setattr(collect_data, "fetch_recent_incidents", recent)


def test_recent_incident_failure_is_reported(monkeypatch):
    async def blocked(strict=False):
        assert strict
        raise RuntimeError("GVA recent incidents page unavailable")

    _patch_live_sources(monkeypatch, blocked)
    recent = asyncio.run(collect_all_data())["data"]["recentIncidents"]

    assert recent["incidents"] == []
    assert recent["error"] == "GVA recent incidents page unavailable"
    assert recent["timeframe"] == "72 hours"


def test_empty_recent_incidents_have_no_error(monkeypatch):
    async def none_today(strict=False):
        return []

    _patch_live_sources(monkeypatch, none_today)
    recent = asyncio.run(collect_all_data())["data"]["recentIncidents"]

    assert recent["incidents"] == []
    assert "error" not in recent


# ── Output files ─────────────────────────────────────────────────


def test_offline_run_writes_snapshots(tmp_path):
    raw_dir = tmp_path / "raw"
    processed_dir = tmp_path / "processed"
    asyncio.run(run(
        offline=True, raw_dir=raw_dir, processed_dir=processed_dir,
        historical_csv=tmp_path / "no-export.csv",
    ))

    assert len(list(raw_dir.glob("raw-data-*.json"))) == 1
    assert len(list(processed_dir.glob("processed-data-*.json"))) == 1

    latest = json.loads((processed_dir / "latest.json").read_text())
    assert latest["metadata"]["unclassifiedStates"] == []
    assert set(latest["gunViolenceByPolitics"]) == {"red", "blue", "swing"}
    assert DataValidator().validate(latest)
    assert not (processed_dir / "historical_gva_data.json").exists()


def test_run_tallies_historical_export(tmp_path):
    csv_path = tmp_path / "gva.csv"
    csv_path.write_text(
        ",".join(GVA_HISTORICAL_COLUMNS) + "\n"
        + "7,,,,Ohio,Dayton,,N/A,,,,,9,17,0,0,0,Mass Shooting,,2019-08-04,2019\n"
    )
    processed_dir = tmp_path / "processed"
    asyncio.run(run(offline=True, raw_dir=tmp_path / "raw", processed_dir=processed_dir, historical_csv=csv_path))

    historical = json.loads((processed_dir / "historical_gva_data.json").read_text())
    assert historical["statistics"]["byYear"]["2019"] == {"incidents": 1, "killed": 9, "injured": 17}


def test_save_processed_data_overwrites_latest(tmp_path):
    save_processed_data({"n": 1}, tmp_path)
    latest = save_processed_data({"n": 2}, tmp_path)

    assert latest == tmp_path / "latest.json"
    assert json.loads(latest.read_text()) == {"n": 2}
