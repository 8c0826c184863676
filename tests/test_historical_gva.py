"""Tests for tallying the GVA mass-shooting CSV export."""

import csv
import io
import json

import pytest

from aggregator import DataProcessor, GVA_HISTORICAL_COLUMNS, parse_sources
from collect_data import load_gva_historical_data, process_historical_data


def _row(**values) -> list[str]:
    return [values.get(col, "") for col in GVA_HISTORICAL_COLUMNS]


ROWS = [
    _row(
        id="1001", state="Texas", city="Odessa", address="123 Main St", venue="N/A",
        lat="31.84", lon="-102.36", numKilled="4", numInjured="2",
        numChildrenKilled="1", numTeensKilled="0", numChildrenInjured="1",
        characteristics="Mass Shooting (4+ victims shot), Drive-by",
        sources='c("http://a.example", "http://b.example")',
        incidentDate="2025-09-01", year="2025",
    ),
    _row(
        id="1002", state="Texas", city="Austin", venue="Sixth Street",
        numKilled="1", numInjured="5", numTeensKilled="1",
        characteristics="Mass Shooting (4+ victims shot)",
        sources="http://c.example", incidentDate="08/15/2024",
    ),
    _row(
        id="1003", state="Ohio", city="Dayton", numKilled="0", numInjured="4",
        sources="N/A", incidentDate="sometime",
    ),
]


def _csv_text(rows, extra_lines: str = "") -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(GVA_HISTORICAL_COLUMNS)
    writer.writerows(rows)
    return buf.getvalue() + extra_lines


@pytest.fixture
def historical():
    return DataProcessor.process_gva_data(_csv_text(ROWS, "\n1004,too,short\n"))


# ── Row parsing ──────────────────────────────────────────────────


class TestIncidents:
    def test_short_and_blank_rows_skipped(self, historical):
        assert [i.id for i in historical.incidents] == ["1001", "1002", "1003"]
        assert historical.statistics.total == 3

    def test_fields(self, historical):
        first = historical.incidents[0]
        assert first.date == "2025-09-01"
        assert first.venue is None
        assert first.location.lat == 31.84
        assert first.location.lon == -102.36
        assert first.casualties.killed == 4
        assert first.characteristics == ["Mass Shooting (4+ victims shot)", "Drive-by"]
        assert first.sources == ["http://a.example", "http://b.example"]
        assert first.year == 2025

    def test_year_falls_back_to_incident_date(self, historical):
        second = historical.incidents[1]
        assert second.date == "2024-08-15"
        assert second.year == 2024
        assert second.venue == "Sixth Street"
        assert second.location.lat is None

    def test_unparseable_date(self, historical):
        third = historical.incidents[2]
        assert third.date is None
        assert third.year is None
        assert third.sources == []
        assert third.characteristics == []


# ── Statistics ───────────────────────────────────────────────────


class TestStatistics:
    def test_by_state(self, historical):
        by_state = historical.statistics.byState
        assert by_state["Texas"].model_dump() == {"incidents": 2, "killed": 5, "injured": 7}
        assert by_state["Ohio"].model_dump() == {"incidents": 1, "killed": 0, "injured": 4}

    def test_by_year(self, historical):
        by_year = {k: v.incidents for k, v in historical.statistics.byYear.items()}
        assert by_year == {"2025": 1, "2024": 1, "unknown": 1}

    def test_by_characteristic(self, historical):
        assert historical.statistics.byCharacteristic == {
            "Mass Shooting (4+ victims shot)": 2,
            "Drive-by": 1,
        }

    def test_total_casualties(self, historical):
        assert historical.statistics.totalCasualties.model_dump() == {
            "killed": 5, "injured": 11, "childrenKilled": 1, "teensKilled": 1, "childrenInjured": 1,
        }

    def test_header_only(self):
        result = DataProcessor.process_gva_data(_csv_text([]))
        assert result.statistics.total == 0
        assert result.statistics.byState == {}
        assert result.source == "Gun Violence Archive Historical Data"

    def test_garbage_counts_are_zero(self):
        row = _row(id="9", state="Iowa", numKilled="inf", numInjured="n/a")
        result = DataProcessor.process_gva_data(_csv_text([row]))
        assert result.statistics.totalCasualties.killed == 0
        assert result.statistics.totalCasualties.injured == 0


@pytest.mark.parametrize("raw, expected", [
    ('c("http://a", "http://b")', ["http://a", "http://b"]),
    ("http://only", ["http://only"]),
    ("N/A", []),
    ("", []),
])
def test_parse_sources(raw, expected):
    assert parse_sources(raw) == expected


# ── Collector step ───────────────────────────────────────────────


def test_process_historical_data_writes_json(tmp_path):
    csv_path = tmp_path / "gva.csv"
    csv_path.write_text(_csv_text(ROWS))
    output = tmp_path / "processed" / "historical_gva_data.json"

    assert process_historical_data(csv_path, output) == output
    saved = json.loads(output.read_text())
    assert saved["statistics"]["total"] == 3
    assert saved["statistics"]["byState"]["Texas"]["incidents"] == 2


def test_missing_csv_is_skipped(tmp_path):
    missing = tmp_path / "absent.csv"
    assert load_gva_historical_data(missing) is None
    assert process_historical_data(missing, tmp_path / "out.json") is None
    assert not (tmp_path / "out.json").exists()
