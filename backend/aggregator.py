"""Clearly Politics Backend — Statistical Aggregation

Turns raw per-state and per-month incident counts into the numbers the
dashboard charts:
  - per-capita rates grouped by political lean (red / blue / swing)
  - Pearson correlation between gun-law strength and violence rate
  - monthly growth rates, moving averages and overall trend direction

Everything here is pure arithmetic over small in-memory tables. Missing
lookups are skipped, zero denominators yield 0, and short series yield an
"insufficient data" label. Nothing in this module raises on bad data.
"""

import csv
import io
import logging
import math
from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

import numpy as np

from config import (
    PER_CAPITA_BASE, MOVING_AVERAGE_WINDOW, TREND_THRESHOLD_PCT,
    CORRELATION_STRENGTHS, SNAPSHOT_VERSION,
)
from models import (
    PoliticalCategory, StateRecord, MonthlyRecord,
    CategoryAggregate, PoliticsBreakdown,
    CorrelationPoint, CorrelationResult,
    TrendRecord, TrendSummary,
    IdeologyShare, IdeologyBreakdown,
    MassShootingAggregate, MassShootingsByPolitics,
    SummaryStats,
    Casualties, Location, HistoricalIncident, IncidentTally,
    HistoricalStatistics, HistoricalGVAData,
)
from reference_data import ReferenceTables, DEFAULT_TABLES

logger = logging.getLogger("clearly.aggregator")

INSUFFICIENT_DATA = "insufficient data"

_IDEOLOGY_FIELDS = [
    ("Right-Wing Extremism", "rightWingExtremism"),
    ("Left-Wing Extremism", "leftWingExtremism"),
    ("Islamist Extremism", "islamistExtremism"),
    ("Other/Unknown", "otherIdeology"),
]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _round_to(value: float, places: int = 1) -> float:
    """Round to ``places`` decimals with exact halves going away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def merge_state_records(records: Iterable[StateRecord]) -> dict[str, int]:
    """Sum incidents per state code, preserving first-seen order."""
    merged: dict[str, int] = {}
    for rec in records:
        merged[rec.stateCode] = merged.get(rec.stateCode, 0) + rec.incidents
    return merged


def parse_state_records(raw: Iterable[dict]) -> list[StateRecord]:
    """Build StateRecords from scraped ``{state, incidents}`` dicts.

    Counts are coerced through ``validate_and_clean_data``; rows without a
    state code or with a negative count are dropped with a warning.
    """
    records = []
    for row in raw:
        cleaned = DataProcessor.validate_and_clean_data(row)
        code = str(cleaned.get("state") or cleaned.get("stateCode") or "").strip().upper()
        incidents = cleaned.get("incidents", 0)
        if not code:
            logger.warning(f"Dropping state row without a state code: {row}")
            continue
        if incidents < 0:
            logger.warning(f"Dropping {code}: negative incident count {incidents}")
            continue
        records.append(StateRecord(stateCode=code, incidents=incidents))
    return records


def calculate_pearson_correlation(x: list[float], y: list[float]) -> float:
    """Pearson's r over two equal-length series.

    Returns 0.0 when either series is constant (zero denominator) or has
    fewer than two values.
    """
    if len(x) != len(y):
        raise ValueError(f"Series length mismatch: {len(x)} vs {len(y)}")
    n = len(x)
    if n < 2:
        return 0.0

    sum_x = sum(x)
    sum_y = sum(y)
    sum_xy = sum(xi * yi for xi, yi in zip(x, y))
    sum_x2 = sum(xi * xi for xi in x)
    sum_y2 = sum(yi * yi for yi in y)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if variance_product <= 0:
        return 0.0
    denominator = math.sqrt(variance_product)
    if denominator == 0:
        return 0.0

    # float error can push a perfect correlation just past ±1
    return max(-1.0, min(1.0, numerator / denominator))


def interpret_correlation(r: float) -> tuple[str, str, str]:
    """Return (strength, direction, description) for a coefficient."""
    abs_r = abs(r)
    strength = "very-weak"
    for threshold, label in CORRELATION_STRENGTHS:
        if abs_r >= threshold:
            strength = label
            break
    direction = "negative" if r < 0 else "positive"
    description = f"{strength.replace('-', ' ')} {direction} correlation"
    return strength, direction, description


def analyze_trend(values: list[float], threshold_pct: float = TREND_THRESHOLD_PCT) -> str:
    """Compare first-half and second-half means of a chronological series.

    The split point is ``len(values) // 2``, so for odd lengths the middle
    value belongs to the second half.
    """
    if len(values) < 2:
        return INSUFFICIENT_DATA

    mid = len(values) // 2
    first_avg = float(np.mean(values[:mid]))
    second_avg = float(np.mean(values[mid:]))

    if first_avg == 0:
        return "increasing" if second_avg > 0 else "stable"

    percent_change = (second_avg - first_avg) / first_avg * 100
    if percent_change > threshold_pct:
        return "increasing"
    if percent_change < -threshold_pct:
        return "decreasing"
    return "stable"


def calculate_moving_average(values: list[int], index: int, window: int = MOVING_AVERAGE_WINDOW) -> int:
    """Centered moving average at ``index``; the window is clipped at both ends."""
    start = max(0, index - window // 2)
    end = min(len(values), start + window)
    chunk = values[start:end]
    if not chunk:
        return 0
    return _round_half_up(sum(chunk) / len(chunk))


def calculate_growth_rate(current: int, previous: int) -> float:
    """Month-over-month change in percent, one decimal. 0 when previous is 0."""
    if previous == 0:
        return 0.0
    return _round_to((current - previous) / previous * 100)


# ─────────────────────────── Historical GVA export ──────────────

# Column order of the GVA mass-shooting CSV export
GVA_HISTORICAL_COLUMNS = [
    "id", "date", "operation", "timestamp", "state", "city", "address", "venue",
    "lat", "lon", "killed", "injured", "numKilled", "numInjured",
    "numChildrenKilled", "numTeensKilled", "numChildrenInjured",
    "characteristics", "sources", "incidentDate", "year",
]

_INCIDENT_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%B %d, %Y",
    "%m/%d/%Y",
)


def _parse_count(value: str) -> int:
    """Integer count from a CSV cell; blank, garbage or non-finite -> 0."""
    try:
        return int(float(value.replace(",", "").strip()))
    except (ValueError, OverflowError):
        return 0


def _parse_coordinate(value: str) -> Optional[float]:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_incident_date(raw: str) -> Optional[datetime]:
    raw = raw.strip()
    for fmt in _INCIDENT_DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def parse_sources(raw: str) -> list[str]:
    """Source URLs from an R-style ``c("url1", "url2")`` cell or a single URL."""
    if not raw:
        return []
    raw = raw.strip()
    if raw.startswith('c("'):
        raw = raw[3:]
    if raw.endswith('")'):
        raw = raw[:-2]
    return [url for url in raw.split('", "') if url and url != "N/A"]


def parse_historical_row(row: list[str]) -> Optional[HistoricalIncident]:
    """One CSV row as a HistoricalIncident; None when the row is too short."""
    if len(row) < len(GVA_HISTORICAL_COLUMNS):
        return None
    fields = dict(zip(GVA_HISTORICAL_COLUMNS, row))

    incident_date = _parse_incident_date(fields["incidentDate"])
    year = _parse_count(fields["year"]) or (incident_date.year if incident_date else None)
    venue = fields["venue"].strip()

    return HistoricalIncident(
        id=fields["id"].strip(),
        date=incident_date.date().isoformat() if incident_date else None,
        state=fields["state"].strip(),
        city=fields["city"].strip(),
        address=fields["address"].strip(),
        venue=None if venue in ("", "N/A") else venue,
        location=Location(lat=_parse_coordinate(fields["lat"]), lon=_parse_coordinate(fields["lon"])),
        casualties=Casualties(
            killed=_parse_count(fields["numKilled"]),
            injured=_parse_count(fields["numInjured"]),
            childrenKilled=_parse_count(fields["numChildrenKilled"]),
            teensKilled=_parse_count(fields["numTeensKilled"]),
            childrenInjured=_parse_count(fields["numChildrenInjured"]),
        ),
        characteristics=[c.strip() for c in fields["characteristics"].split(",") if c.strip()],
        sources=parse_sources(fields["sources"]),
        year=year,
    )


class DataProcessor:
    """Aggregates incident data against a set of reference tables."""

    def __init__(self, tables: Optional[ReferenceTables] = None):
        self.tables = tables or DEFAULT_TABLES

    # ── Helpers ──

    @staticmethod
    def calculate_per_capita(incidents: float, population: float, multiplier: int = PER_CAPITA_BASE) -> float:
        if population <= 0:
            return 0.0
        return incidents / population * multiplier

    def get_state_politics(self, state_code: str) -> str:
        category = self.tables.category_of(state_code)
        return category.value if category else "unknown"

    def unclassified_states(self, records: Iterable[StateRecord]) -> list[str]:
        """State codes that grouping by politics would silently drop."""
        return [
            code for code in merge_state_records(records)
            if self.tables.category_of(code) is None
        ]

    # ── Category aggregation ──

    def process_by_politics(self, records: Iterable[StateRecord]) -> PoliticsBreakdown:
        """Total incidents and population per political category.

        Repeated state codes are merged first so each state's population is
        counted once. States without a category are skipped.
        """
        totals = {category: [0, 0] for category in PoliticalCategory}
        merged = merge_state_records(records)

        dropped = []
        for code, incidents in merged.items():
            category = self.tables.category_of(code)
            if category is None:
                dropped.append(code)
                continue
            totals[category][0] += incidents
            totals[category][1] += self.tables.population_of(code)

        if dropped:
            logger.debug(f"Unclassified states excluded from politics breakdown: {dropped}")

        return PoliticsBreakdown(**{
            category.value: CategoryAggregate(
                incidents=incidents,
                population=population,
                rate=self.calculate_per_capita(incidents, population),
            )
            for category, (incidents, population) in totals.items()
        })

    def process_mass_shootings_by_politics(
        self, records: Iterable[StateRecord], mass_shootings: int,
    ) -> MassShootingsByPolitics:
        """Apportion a national mass-shooting count by each state's incident share."""
        merged = merge_state_records(records)
        total_incidents = sum(merged.values())
        if total_incidents == 0:
            logger.warning("Total incidents is zero, cannot apportion mass shootings")
            return MassShootingsByPolitics()

        shares = {category: 0.0 for category in PoliticalCategory}
        populations = {category: 0 for category in PoliticalCategory}
        for code, incidents in merged.items():
            category = self.tables.category_of(code)
            if category is None:
                continue
            populations[category] += self.tables.population_of(code)
            shares[category] += incidents / total_incidents * mass_shootings

        return MassShootingsByPolitics(**{
            category.value: MassShootingAggregate(
                population=populations[category],
                massShootings=_round_half_up(shares[category]),
            )
            for category in PoliticalCategory
        })

    # ── Correlation ──

    def process_gun_law_correlation(
        self,
        records: Iterable[StateRecord],
        law_scores: Optional[dict[str, float]] = None,
    ) -> CorrelationResult:
        """Correlate gun-law strength with per-capita incident rate across states.

        Only states present in both the incident data and the score table,
        and with a known positive population, take part.
        """
        scores = self.tables.law_scores if law_scores is None else law_scores
        points = []
        for code, incidents in merge_state_records(records).items():
            law_score = scores.get(code)
            population = self.tables.population_of(code)
            if law_score is None or population <= 0:
                continue
            points.append(CorrelationPoint(
                stateCode=code,
                lawScore=float(law_score),
                violenceRate=self.calculate_per_capita(incidents, population),
                political=self.get_state_politics(code),
            ))

        r = calculate_pearson_correlation(
            [p.lawScore for p in points],
            [p.violenceRate for p in points],
        )
        strength, direction, description = interpret_correlation(r)
        logger.info(f"Gun law correlation over {len(points)} states: r={r:.3f} ({description})")
        return CorrelationResult(
            points=points,
            coefficient=r,
            strength=strength,
            direction=direction,
            description=description,
        )

    # ── Monthly trends ──

    def process_monthly_trends(
        self, records: list[MonthlyRecord], window: int = MOVING_AVERAGE_WINDOW,
    ) -> TrendSummary:
        values = [rec.incidents for rec in records]
        processed = []
        for i, rec in enumerate(records):
            processed.append(TrendRecord(
                **rec.model_dump(),
                growthRate=0.0 if i == 0 else calculate_growth_rate(values[i], values[i - 1]),
                movingAverage=calculate_moving_average(values, i, window),
            ))

        total = sum(values)
        return TrendSummary(
            data=processed,
            totalIncidents=total,
            averageMonthly=_round_half_up(total / len(values)) if values else 0,
            trend=analyze_trend(values),
        )

    # ── Political violence ──

    @staticmethod
    def process_political_violence_by_ideology(data: dict) -> IdeologyBreakdown:
        counts = {key: int(data.get(key, 0) or 0) for _, key in _IDEOLOGY_FIELDS}
        total = sum(counts.values())
        shares = [
            IdeologyShare(
                category=label,
                incidents=counts[key],
                percentage=_round_to(counts[key] / total * 100) if total else 0.0,
            )
            for label, key in _IDEOLOGY_FIELDS
        ]
        return IdeologyBreakdown(data=shares, total=total, timeframe=data.get("timeframe", ""))

    # ── Summary ──

    def generate_summary_stats(self, all_data: dict) -> SummaryStats:
        """Headline numbers for the dashboard's key-findings panel.

        ``all_data`` holds the raw ``gunViolence`` (with ``stateBreakdown``
        and ``massShootings``) and ``politicalViolence`` sections.
        """
        gun_violence = all_data.get("gunViolence", {})
        political_violence = all_data.get("politicalViolence", {})

        records = parse_state_records(gun_violence.get("stateBreakdown", []))
        by_politics = self.process_by_politics(records)
        ideology = self.process_political_violence_by_ideology(political_violence)

        red_rate = by_politics.red.rate
        blue_rate = by_politics.blue.rate
        right = ideology.data[0].incidents
        left = ideology.data[1].incidents

        findings = [
            f"Gun violence rate in red states: {red_rate:.1f} per 100k residents",
            f"Gun violence rate in blue states: {blue_rate:.1f} per 100k residents",
            f"{ideology.data[0].percentage}% of political violence is right-wing extremism",
            f"{ideology.data[1].percentage}% of political violence is left-wing extremism",
            f"Total mass shootings: {gun_violence.get('massShootings', 0)}",
        ]

        return SummaryStats(
            keyFindings=findings,
            redVsBlueRatio=_round_to(red_rate / blue_rate, 2) if blue_rate else None,
            politicalViolenceSkew=_round_to(right / left) if left else None,
            lastUpdated=datetime.now(timezone.utc).isoformat(),
        )

    # ── Cleaning & export ──

    @staticmethod
    def validate_and_clean_data(raw: dict) -> dict:
        """Drop None values and coerce count fields to int (unparseable -> 0)."""
        cleaned = {k: v for k, v in raw.items() if v is not None}
        for key in ("incidents", "deaths", "injuries"):
            if key not in cleaned:
                continue
            value = cleaned[key]
            try:
                if isinstance(value, str):
                    value = value.replace(",", "").strip()
                cleaned[key] = int(float(value))
            except (TypeError, ValueError, OverflowError):
                cleaned[key] = 0
        return cleaned

    @staticmethod
    def process_gva_data(csv_text: str) -> HistoricalGVAData:
        """Parse a GVA mass-shooting CSV export and tally it.

        The first row is the header. Blank and short rows are skipped.
        Tallies are by state, by year (``"unknown"`` when no year can be
        read) and by incident characteristic, plus casualty totals.
        """
        reader = csv.reader(io.StringIO(csv_text))
        next(reader, None)

        incidents = []
        for line_no, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            incident = parse_historical_row(row)
            if incident is None:
                logger.warning(f"Skipping GVA CSV line {line_no}: {len(row)} columns")
                continue
            incidents.append(incident)

        by_state: dict[str, IncidentTally] = {}
        by_year: dict[str, IncidentTally] = {}
        by_characteristic: Counter = Counter()
        totals = Casualties()

        for incident in incidents:
            year_key = str(incident.year) if incident.year else "unknown"
            for table, key in ((by_state, incident.state), (by_year, year_key)):
                tally = table.setdefault(key, IncidentTally())
                tally.incidents += 1
                tally.killed += incident.casualties.killed
                tally.injured += incident.casualties.injured

            by_characteristic.update(incident.characteristics)

            for field in Casualties.model_fields:
                setattr(totals, field, getattr(totals, field) + getattr(incident.casualties, field))

        logger.info(f"Historical GVA data: {len(incidents)} incidents across {len(by_state)} states")
        return HistoricalGVAData(
            incidents=incidents,
            statistics=HistoricalStatistics(
                total=len(incidents),
                byState=by_state,
                byYear=by_year,
                byCharacteristic=dict(by_characteristic),
                totalCasualties=totals,
            ),
            lastUpdated=datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def export_processed_data(processed: dict) -> dict:
        return {
            "data": processed,
            "processedAt": datetime.now(timezone.utc).isoformat(),
            "version": SNAPSHOT_VERSION,
        }

