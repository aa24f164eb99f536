import pytest

from catalog_discovery import config
from catalog_discovery.similarity import array_field_score, edit_distance, field_score, similarity


def test_edit_distance_classic_cases():
    assert edit_distance("kitten", "sitting") == 3
    assert edit_distance("", "abc") == 3
    assert edit_distance("abc", "") == 3
    assert edit_distance("abc", "abc") == 0
    assert edit_distance("flaw", "lawn") == 2
    assert edit_distance("café", "cafe") == 1


def test_similarity_bounds():
    pairs = [("", ""), ("a", ""), ("abc", "abd"), ("london", "tokyo"), ("same", "same")]
    for a, b in pairs:
        assert 0.0 <= similarity(a, b) <= 1.0
    assert similarity("", "") == 1.0
    assert similarity("same", "same") == 1.0
    assert similarity("abc", "abd") == pytest.approx(2 / 3)
    assert similarity("kitten", "sitting") == pytest.approx(1 - 3 / 7)


def test_field_score_exact_match_ignores_field_case():
    assert field_score("Beijing", "beijing") == 1.0


def test_field_score_substring_scales_with_coverage():
    assert field_score("Beijing Olympic", "beijing") == pytest.approx(0.8 * 7 / 15)
    assert field_score("Beijing Olympic", "beijing") < field_score("Beijing Mall", "beijing")


def test_field_score_fuzzy_match():
    # one edit in six characters
    assert field_score("London", "londn") == pytest.approx((5 / 6) * 0.6)
    assert field_score("London", "londn", fuzzy=False) == 0.0


def test_field_score_fuzzy_threshold_is_inclusive():
    assert similarity("abcde", "abxye") == pytest.approx(config.FUZZY_SIMILARITY_THRESHOLD)
    assert field_score("abcde", "abxye") == pytest.approx(0.6 * 0.6)
    assert field_score("abcde", "axyze") == 0.0


def test_field_score_empty_field():
    assert field_score("", "beijing") == 0.0
    assert field_score(None, "beijing") == 0.0


def test_array_field_score_takes_best_item():
    assert array_field_score(["outdoor", "billboard"], "billboard") == 1.0
    assert array_field_score(["beijing-mall", "indoor"], "beijing") == pytest.approx(0.8 * 7 / 12)
    assert array_field_score([], "beijing") == 0.0
