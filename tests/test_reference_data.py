"""Tests for reference_data.py lookups and the ReferenceTables container."""

from models import PoliticalCategory
from reference_data import (
    DEFAULT_TABLES,
    GUN_LAW_SCORES,
    POLITICAL_CLASSIFICATIONS,
    STATE_POPULATIONS,
    ReferenceTables,
    build_classification_table,
    get_state_abbreviation,
)


def test_every_populated_state_has_one_category():
    for code in STATE_POPULATIONS:
        assert DEFAULT_TABLES.category_of(code) is not None, code


def test_category_lists_are_disjoint():
    seen = set()
    for codes in POLITICAL_CLASSIFICATIONS.values():
        assert not seen & set(codes)
        seen |= set(codes)


def test_populations_positive_and_scores_in_range():
    assert all(pop > 0 for pop in STATE_POPULATIONS.values())
    assert all(0 <= score <= 100 for score in GUN_LAW_SCORES.values())


def test_dc_is_classified_without_population():
    assert DEFAULT_TABLES.category_of("DC") == PoliticalCategory.BLUE
    assert DEFAULT_TABLES.population_of("DC") == 0


def test_state_abbreviation_lookup():
    assert get_state_abbreviation("Texas") == "TX"
    assert get_state_abbreviation("  new york ") == "NY"
    assert get_state_abbreviation("Puerto Rico") is None


def test_build_classification_table_keeps_first_duplicate():
    table = build_classification_table({
        PoliticalCategory.RED: ["AA"],
        PoliticalCategory.BLUE: ["AA", "BB"],
    })
    assert table == {"AA": PoliticalCategory.RED, "BB": PoliticalCategory.BLUE}


def test_with_populations_layers_positive_values():
    tables = ReferenceTables(
        populations={"AA": 10, "BB": 20},
        classifications={"AA": PoliticalCategory.RED},
        law_scores={"AA": 5},
    )
    updated = tables.with_populations({"AA": 15, "BB": 0, "CC": 30})

    assert updated.populations == {"AA": 15, "BB": 20, "CC": 30}
    assert updated.classifications == tables.classifications
    # original is untouched
    assert tables.populations == {"AA": 10, "BB": 20}


def test_default_tables_are_independent_copies():
    a = ReferenceTables()
    a.populations["TX"] = 1
    assert ReferenceTables().populations["TX"] == STATE_POPULATIONS["TX"] != 1
