"""Clearly Politics Backend — Static Reference Tables

State-level reference data used to normalise and group incident counts:
  - U.S. Census Bureau 2023 population estimates (fallback when the
    Census API is unreachable)
  - Political lean of each state (red / blue / swing) from recent
    presidential and statewide voting history
  - Composite gun-law strength scores (0-100) from the Brady Campaign
    scorecard, Giffords Law Center and Everytown for Gun Safety

The tables are bundled into a single ``ReferenceTables`` object that is
passed explicitly to the aggregator, so tests can swap in synthetic data.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from models import PoliticalCategory

logger = logging.getLogger("clearly.reference")

# ═══════════════════════════════════════════════════════════════
# U.S. Census Bureau 2023 Population Estimates
# ═══════════════════════════════════════════════════════════════

STATE_POPULATIONS: dict[str, int] = {
    "AL": 5108468, "AK": 733406, "AZ": 7359197, "AR": 3045637,
    "CA": 38965193, "CO": 5895630, "CT": 3626205, "DE": 1003384,
    "FL": 22610726, "GA": 10912876, "HI": 1440196, "ID": 1964726,
    "IL": 12620571, "IN": 6833037, "IA": 3207004, "KS": 2940865,
    "KY": 4512310, "LA": 4590241, "ME": 1395722, "MD": 6164660,
    "MA": 7001399, "MI": 10037261, "MN": 5737915, "MS": 2940057,
    "MO": 6196994, "MT": 1122069, "NE": 1986765, "NV": 3194176,
    "NH": 1402054, "NJ": 9261699, "NM": 2113344, "NY": 19469232,
    "NC": 10835491, "ND": 783926, "OH": 11785935, "OK": 4019800,
    "OR": 4233358, "PA": 12972008, "RI": 1095962, "SC": 5282634,
    "SD": 909824, "TN": 7126489, "TX": 30503301, "UT": 3380800,
    "VT": 647464, "VA": 8715698, "WA": 7812880, "WV": 1775156,
    "WI": 5892539, "WY": 581381,
}

# ═══════════════════════════════════════════════════════════════
# Political Lean
# ═══════════════════════════════════════════════════════════════

POLITICAL_CLASSIFICATIONS: dict[PoliticalCategory, list[str]] = {
    PoliticalCategory.RED: [
        "AL", "AK", "AR", "FL", "ID", "IN", "IA", "KS", "KY", "LA",
        "MS", "MO", "MT", "NE", "ND", "OH", "OK", "SC", "SD", "TN",
        "TX", "UT", "WV", "WY",
    ],
    PoliticalCategory.BLUE: [
        "CA", "CO", "CT", "DE", "HI", "IL", "ME", "MD", "MA", "MI",
        "MN", "NV", "NH", "NJ", "NM", "NY", "OR", "RI", "VT", "VA",
        "WA", "DC",
    ],
    PoliticalCategory.SWING: ["AZ", "GA", "NC", "PA", "WI"],
}

# ═══════════════════════════════════════════════════════════════
# Gun Law Strength Scores (0 = weakest, 100 = strongest)
# Categories: background checks, assault weapons, magazine limits,
# permits, safe storage, extreme risk protection orders
# ═══════════════════════════════════════════════════════════════

GUN_LAW_SCORES: dict[str, float] = {
    # Strong
    "CA": 85, "CT": 82, "NJ": 80, "NY": 78, "MA": 75, "HI": 72,
    "MD": 70, "RI": 68, "IL": 65, "WA": 62, "CO": 58, "OR": 55,
    "DE": 52, "NV": 50, "VT": 48, "MN": 45, "VA": 42, "MI": 40,
    # Moderate
    "PA": 38, "NC": 35, "FL": 32, "WI": 30, "OH": 28, "AZ": 25,
    "GA": 22, "TX": 20, "IN": 18, "IA": 15, "TN": 12, "MO": 10,
    # Weak
    "AL": 8, "AK": 6, "WY": 4, "MS": 3, "LA": 5, "KY": 7,
    "WV": 9, "OK": 8, "KS": 6, "ND": 4, "SD": 5, "MT": 7,
    "ID": 6, "UT": 8, "AR": 5, "SC": 7, "NE": 6,
}

GUN_LAW_CATEGORIES = [
    "Background Checks",
    "Assault Weapons Regulations",
    "High Capacity Magazine Restrictions",
    "Permit Requirements",
    "Safe Storage Laws",
    "Extreme Risk Protection Orders",
]

GUN_LAW_SOURCES = [
    "Brady Campaign Gun Law Scorecard",
    "Giffords Law Center",
    "Everytown for Gun Safety",
]

STATE_NAMES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota", "MS": "Mississippi",
    "MO": "Missouri", "MT": "Montana", "NE": "Nebraska", "NV": "Nevada",
    "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico", "NY": "New York",
    "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma",
    "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington", "WV": "West Virginia",
    "WI": "Wisconsin", "WY": "Wyoming",
}

_NAME_TO_ABBR = {name.lower(): abbr for abbr, name in STATE_NAMES.items()}

# ═══════════════════════════════════════════════════════════════
# Fallback incident data (Gun Violence Archive, prior-year totals)
# ═══════════════════════════════════════════════════════════════

GVA_BASELINE = {
    "totalIncidents": 48247,
    "massShootings": 693,
    "deaths": 15208,
    "injuries": 33039,
}

# Top-10 states by incident count, used to estimate a partial year
GVA_STATE_BASELINE: dict[str, int] = {
    "TX": 4234, "CA": 3892, "FL": 3456, "IL": 2845, "PA": 2456,
    "OH": 2234, "GA": 2134, "NC": 1987, "MI": 1876, "AZ": 1765,
}

# Year-over-year growth applied to baseline estimates
GVA_GROWTH_FACTOR = 1.03

# Incidents by perpetrator ideology (CSIS, ADL, FBI domestic terrorism reports)
POLITICAL_VIOLENCE_DATA = {
    "rightWingExtremism": 315,
    "leftWingExtremism": 47,
    "islamistExtremism": 34,
    "otherIdeology": 23,
    "breakdown": {
        "whiteSupremacist": 187,
        "antiGovernment": 89,
        "neoNazi": 39,
        "antifa": 23,
        "ecoTerrorism": 8,
        "other": 44,
    },
    "sources": [
        "Center for Strategic & International Studies",
        "Anti-Defamation League",
        "FBI Domestic Terrorism reports",
        "Academic research compilation",
    ],
    "methodology": (
        "Incidents classified by perpetrator ideology based on manifesto, "
        "social media, and law enforcement reports"
    ),
}


# ═══════════════════════════════════════════════════════════════
# Helper Functions
# ═══════════════════════════════════════════════════════════════


def get_state_abbreviation(full_name: str) -> Optional[str]:
    """Map a full state name (as returned by the Census API) to its code."""
    return _NAME_TO_ABBR.get(full_name.strip().lower())


def build_classification_table(
    lists: dict[PoliticalCategory, list[str]],
) -> dict[str, PoliticalCategory]:
    """Invert category -> [codes] into code -> category.

    A code listed under two categories keeps the first one and logs a warning.
    """
    table: dict[str, PoliticalCategory] = {}
    for category, codes in lists.items():
        for code in codes:
            if code in table:
                logger.warning(
                    f"{code} listed as both {table[code].value} and {category.value}; "
                    f"keeping {table[code].value}"
                )
                continue
            table[code] = category
    return table


@dataclass(frozen=True)
class ReferenceTables:
    """Population, political lean and gun-law score lookups, keyed by state code."""

    populations: dict[str, int] = field(default_factory=lambda: dict(STATE_POPULATIONS))
    classifications: dict[str, PoliticalCategory] = field(
        default_factory=lambda: build_classification_table(POLITICAL_CLASSIFICATIONS)
    )
    law_scores: dict[str, float] = field(default_factory=lambda: dict(GUN_LAW_SCORES))

    def category_of(self, state_code: str) -> Optional[PoliticalCategory]:
        return self.classifications.get(state_code)

    def population_of(self, state_code: str) -> int:
        return self.populations.get(state_code, 0)

    def with_populations(self, populations: dict[str, int]) -> "ReferenceTables":
        """Copy with census populations layered over the current table.

        Non-positive values are ignored so the static estimate survives.
        """
        merged = dict(self.populations)
        for code, pop in populations.items():
            if pop > 0:
                merged[code] = pop
        return ReferenceTables(
            populations=merged,
            classifications=dict(self.classifications),
            law_scores=dict(self.law_scores),
        )


DEFAULT_TABLES = ReferenceTables()

logger.debug(
    f"Reference data loaded: {len(STATE_POPULATIONS)} populations, "
    f"{len(DEFAULT_TABLES.classifications)} classified states, "
    f"{len(GUN_LAW_SCORES)} gun-law scores"
)
