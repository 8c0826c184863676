import sys
from pathlib import Path

import pytest

# Modules live flat under backend/ and import each other by bare name.
BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from models import PoliticalCategory  # noqa: E402
from reference_data import ReferenceTables  # noqa: E402


@pytest.fixture(autouse=True)
def clear_caches():
    """Start every test with empty shared caches."""
    import cache
    import classifier

    for c in (cache.news_cache, cache.scrape_cache, cache.census_cache):
        c.clear()
    classifier._CLASSIFY_CACHE.clear()
    yield


@pytest.fixture
def synthetic_tables():
    """Small hand-made reference tables, independent of the real data."""
    return ReferenceTables(
        populations={"AA": 100_000, "BB": 200_000, "CC": 50_000, "ZZ": 0},
        classifications={
            "AA": PoliticalCategory.RED,
            "BB": PoliticalCategory.BLUE,
            "CC": PoliticalCategory.SWING,
            "ZZ": PoliticalCategory.RED,
        },
        law_scores={"AA": 10, "BB": 80, "CC": 40, "ZZ": 50},
    )
