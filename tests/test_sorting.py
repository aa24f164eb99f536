from datetime import datetime, timezone

import pytest

from catalog_discovery.models import CatalogValidationError, SortKey
from catalog_discovery.sorting import resolve_sort_key, sort_records, text_sort_key


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def _titles(records):
    return [r.title for r in records]


def _ids(records):
    return [r.id for r in records]


def test_title_sort_is_case_insensitive(make_record):
    records = [make_record("1", title="Beta"), make_record("2", title="alpha"), make_record("3", title="Gamma")]
    assert _titles(sort_records(records, SortKey.TITLE_ASC)) == ["alpha", "Beta", "Gamma"]
    assert _titles(sort_records(records, "title_desc")) == ["Gamma", "Beta", "alpha"]


def test_title_sort_ignores_accents(make_record):
    records = [make_record("1", title="Frank"), make_record("2", title="Émile"), make_record("3", title="dan")]
    assert _titles(sort_records(records, SortKey.TITLE_ASC)) == ["dan", "Émile", "Frank"]
    assert text_sort_key("Émile") == "emile"


def test_default_sort_is_newest_first(make_record):
    records = [
        make_record("old", created_at=_utc(2022, 1, 1)),
        make_record("new", created_at=_utc(2024, 1, 1)),
        make_record("mid", created_at=_utc(2023, 1, 1)),
    ]
    assert _ids(sort_records(records)) == ["new", "mid", "old"]
    assert _ids(sort_records(records, SortKey.CREATED_ASC)) == ["old", "mid", "new"]
    assert resolve_sort_key(None) == SortKey.CREATED_DESC
    assert resolve_sort_key("") == SortKey.CREATED_DESC


@pytest.mark.parametrize("sort_key", list(SortKey))
def test_every_sort_key_is_stable_for_ties(make_record, sort_key):
    records = [make_record(str(i), title="Same", view_count=7, screen_area=10, investment=5) for i in range(5)]
    assert _ids(sort_records(records, sort_key)) == ["0", "1", "2", "3", "4"]


def test_numeric_sorts_treat_missing_as_zero(make_record):
    records = [
        make_record("mid", investment=500),
        make_record("none"),
        make_record("high", investment=9000),
    ]
    assert _ids(sort_records(records, SortKey.INVESTMENT_ASC)) == ["none", "mid", "high"]
    assert _ids(sort_records(records, SortKey.INVESTMENT_DESC)) == ["high", "mid", "none"]


def test_view_count_and_area_sorts(make_record):
    records = [
        make_record("a", view_count=10, screen_area=300),
        make_record("b", view_count=30, screen_area=100),
        make_record("c", view_count=20, screen_area=200),
    ]
    assert _ids(sort_records(records, SortKey.VIEW_COUNT_DESC)) == ["b", "c", "a"]
    assert _ids(sort_records(records, SortKey.AREA_ASC)) == ["b", "c", "a"]


def test_project_and_updated_date_sorts(make_record):
    records = [
        make_record("a", project_start=_utc(2023, 5, 1), updated_at=_utc(2024, 3, 1)),
        make_record("b", project_start=_utc(2021, 5, 1), updated_at=_utc(2024, 1, 1)),
    ]
    assert _ids(sort_records(records, SortKey.PROJECT_DATE_ASC)) == ["b", "a"]
    assert _ids(sort_records(records, SortKey.UPDATED_DESC)) == ["a", "b"]


def test_featured_first_then_newest(make_record):
    records = [
        make_record("plain-new", created_at=_utc(2024, 5, 1)),
        make_record("feat-old", is_featured=True, created_at=_utc(2022, 1, 1)),
        make_record("feat-new", is_featured=True, created_at=_utc(2023, 1, 1)),
        make_record("plain-old", created_at=_utc(2021, 1, 1)),
    ]
    assert _ids(sort_records(records, SortKey.FEATURED)) == ["feat-new", "feat-old", "plain-new", "plain-old"]


def test_showcase_first(make_record):
    records = [make_record("a"), make_record("b", is_showcase=True)]
    assert _ids(sort_records(records, "showcase")) == ["b", "a"]


def test_unknown_sort_key_is_rejected(make_record):
    with pytest.raises(CatalogValidationError) as excinfo:
        sort_records([make_record()], "popularity")
    assert excinfo.value.kind == "invalid_enum"
    assert excinfo.value.field == "sort_by"


def test_sort_returns_new_list(make_record):
    records = [make_record("b", title="B"), make_record("a", title="A")]
    sorted_records = sort_records(records, SortKey.TITLE_ASC)
    assert _ids(records) == ["b", "a"]
    assert sorted_records is not records
