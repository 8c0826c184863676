"""Clearly Politics Backend — Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)

# ── API Keys ──
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")

# ── News providers (tried in this order) ──
MEDIASTACK_API_KEY = os.environ.get("MEDIASTACK_API_KEY", "")
GNEWS_API_KEY = os.environ.get("GNEWS_API_KEY", "")
NEWSDATA_API_KEY = os.environ.get("NEWSDATA_API_KEY", "")
NYT_API_KEY = os.environ.get("NYT_API_KEY", "")

# Mediastack free tier allows 100 requests a month
MEDIASTACK_REQUEST_LIMIT = 100

# ── Data directories ──
DATA_DIR = Path(os.environ.get(
    "CLEARLY_DATA_DIR",
    str(Path(__file__).resolve().parent.parent / "data"),
))
RAW_DIR = DATA_DIR / "raw"
PROCESSED_DIR = DATA_DIR / "processed"
LATEST_PATH = PROCESSED_DIR / "latest.json"
VALIDATION_REPORT_PATH = DATA_DIR / "validation-report.json"

# GVA mass-shooting CSV export, processed into historical_gva_data.json
HISTORICAL_GVA_CSV = Path(os.environ.get(
    "CLEARLY_GVA_HISTORICAL_CSV",
    str(DATA_DIR / "gva_mass_shootings.csv"),
))
HISTORICAL_OUTPUT_PATH = PROCESSED_DIR / "historical_gva_data.json"

# ── API server ──
API_HOST = os.environ.get("CLEARLY_API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("CLEARLY_API_PORT", "8000"))

# ── External sources ──
GVA_BASE_URL = "https://www.gunviolencearchive.org"
CENSUS_POPULATION_URL = "https://api.census.gov/data/2023/pep/population"
CENSUS_YEAR = 2023

SOURCES = {
    "gunViolenceArchive": {
        "name": "Gun Violence Archive",
        "url": f"{GVA_BASE_URL}/query",
        "method": "scrape",  # no public API
        "frequency": "daily",
    },
    "census": {
        "name": "US Census Bureau",
        "url": CENSUS_POPULATION_URL,
        "method": "api",
        "frequency": "annual",
    },
    "bradyScores": {
        "name": "Brady Gun Law Scores",
        "url": "https://www.bradyunited.org/state-gun-laws",
        "method": "static",
        "frequency": "annual",
    },
}

# Browser-like headers; GVA blocks default client user agents
SCRAPE_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Cache-Control": "no-cache",
}

# ── Aggregation constants ──
PER_CAPITA_BASE = 100_000
MOVING_AVERAGE_WINDOW = 3
TREND_THRESHOLD_PCT = 5.0
SNAPSHOT_VERSION = "1.1"

# Correlation strength thresholds on |r|, checked top-down
CORRELATION_STRENGTHS = [
    (0.7, "strong"),
    (0.4, "moderate"),
    (0.2, "weak"),
]

# Political-motivation labels the classifier may return
MOTIVATION_TYPES = [
    "right-wing-extremism",
    "left-wing-extremism",
    "islamist-extremism",
    "other-extremism",
    "non-political",
]

# ── Validation rules for the processed snapshot ──
VALIDATION_REQUIRED_FIELDS = [
    "gunViolenceByPolitics",
    "politicalViolenceBreakdown",
    "metadata",
]
VALIDATION_NUMERIC_RANGES = {
    "gunViolenceByPolitics.red.rate": (0, 1000),
    "gunViolenceByPolitics.blue.rate": (0, 1000),
    "politicalViolenceBreakdown.rightWingExtremism": (0, 10000),
    "politicalViolenceBreakdown.leftWingExtremism": (0, 10000),
}
VALIDATION_MAX_AGE_SECONDS = 7 * 24 * 60 * 60
