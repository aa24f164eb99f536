import pytest

from catalog_discovery import config
from catalog_discovery.models import CatalogValidationError
from catalog_discovery.pagination import paginate


def _records(make_record, n):
    return [make_record(str(i)) for i in range(1, n + 1)]


def test_page_two_of_ten_by_four(make_record):
    page = paginate(_records(make_record, 10), page=2, limit=4)
    assert [r.id for r in page.items] == ["5", "6", "7", "8"]
    assert page.meta.total == 10
    assert page.meta.total_pages == 3
    assert page.meta.has_next_page is True
    assert page.meta.has_prev_page is True


def test_last_and_past_end_pages(make_record):
    records = _records(make_record, 10)
    last = paginate(records, page=3, limit=4)
    assert [r.id for r in last.items] == ["9", "10"]
    assert last.meta.has_next_page is False

    beyond = paginate(records, page=7, limit=4)
    assert beyond.items == []
    assert beyond.meta.total_pages == 3
    assert beyond.meta.has_next_page is False
    assert beyond.meta.has_prev_page is True


def test_empty_input():
    page = paginate([], page=1, limit=5)
    assert page.items == []
    assert page.meta.total == 0
    assert page.meta.total_pages == 0
    assert page.meta.has_next_page is False
    assert page.meta.has_prev_page is False


def test_pages_cover_input_exactly(make_record):
    records = _records(make_record, 11)
    seen = []
    for number in range(1, paginate(records, 1, 3).meta.total_pages + 1):
        seen.extend(r.id for r in paginate(records, number, 3).items)
    assert seen == [r.id for r in records]


def test_default_limit_comes_from_config(make_record, monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_PAGE_SIZE", 5)
    page = paginate(_records(make_record, 12))
    assert page.meta.limit == 5
    assert len(page.items) == 5


@pytest.mark.parametrize("page, limit", [(0, 5), (-1, 5), (1, 0), (1, -3), (True, 5), (1, 2.5)])
def test_invalid_page_or_limit(make_record, page, limit):
    with pytest.raises(CatalogValidationError) as excinfo:
        paginate(_records(make_record, 3), page=page, limit=limit)
    assert excinfo.value.kind == "invalid_pagination"
