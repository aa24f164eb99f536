from datetime import datetime, timezone

import pytest

from catalog_discovery import models
from catalog_discovery.filtering import apply_filters, record_date
from catalog_discovery.models import (
    CaseStatus,
    CatalogValidationError,
    DateField,
    DateRange,
    FilterCriteria,
    ProjectType,
    RadiusFilter,
)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def _ids(records):
    return [r.id for r in records]


def test_empty_criteria_is_identity(make_record):
    records = [make_record("a"), make_record("b"), make_record("c")]
    assert _ids(apply_filters(records)) == ["a", "b", "c"]
    assert _ids(apply_filters(records, FilterCriteria())) == ["a", "b", "c"]
    assert apply_filters([], FilterCriteria(country="Japan")) == []


def test_country_filter_example(make_record):
    records = [
        make_record("ny", title="Times Square Billboard", city="New York", country="United States"),
        make_record("bj", title="Beijing Mall", city="Beijing", country="China"),
    ]
    assert _ids(apply_filters(records, FilterCriteria(country="United States"))) == ["ny"]


def test_multi_value_is_or_and_criteria_are_and(make_record):
    records = [
        make_record("a", country="China", is_featured=True),
        make_record("b", country="Japan", is_featured=False),
        make_record("c", country="Japan", is_featured=True),
        make_record("d", country="France", is_featured=True),
    ]
    assert _ids(apply_filters(records, FilterCriteria(country=["China", "Japan"]))) == ["a", "b", "c"]
    both = FilterCriteria(country=["China", "Japan"], is_featured=True)
    assert _ids(apply_filters(records, both)) == ["a", "c"]


def test_filters_only_narrow(make_record):
    records = [
        make_record("a", country="China", tags=("indoor",), screen_area=50),
        make_record("b", country="Japan", tags=("outdoor",), screen_area=500),
        make_record("c", country="Japan", tags=("indoor", "curved"), screen_area=90),
    ]
    for criteria in (
        FilterCriteria(country="Japan"),
        FilterCriteria(tags="indoor"),
        FilterCriteria(min_area=80),
        FilterCriteria(country="Japan", tags=["curved"], max_area=100),
    ):
        narrowed = apply_filters(records, criteria)
        assert set(_ids(narrowed)) <= {"a", "b", "c"}
        assert len(narrowed) <= len(records)
    assert _ids(apply_filters(records, FilterCriteria(country="Japan", tags=["curved"], max_area=100))) == ["c"]


def test_enum_filters_accept_strings_and_reject_unknown(make_record):
    records = [
        make_record("a", project_type=ProjectType.OUTDOOR_ADVERTISING),
        make_record("b", project_type=ProjectType.CORPORATE, status=CaseStatus.DRAFT),
    ]
    assert _ids(apply_filters(records, FilterCriteria(project_type="Outdoor_Advertising"))) == ["a"]
    assert _ids(apply_filters(records, FilterCriteria(status="draft"))) == ["b"]

    with pytest.raises(CatalogValidationError) as excinfo:
        apply_filters(records, FilterCriteria(project_type="spaceship"))
    assert excinfo.value.kind == "invalid_enum"
    assert excinfo.value.field == "project_type"


def test_region_filter_requires_region(make_record):
    records = [make_record("a", region="NY"), make_record("b"), make_record("c", region="CA")]
    assert _ids(apply_filters(records, FilterCriteria(region=["NY", "CA"]))) == ["a", "c"]


def test_tags_and_features_match_any(make_record):
    records = [
        make_record("a", tags=("outdoor", "billboard"), features=("weatherproof",)),
        make_record("b", tags=("indoor",), features=("fine pitch",)),
        make_record("c"),
    ]
    assert _ids(apply_filters(records, FilterCriteria(tags=["billboard", "indoor"]))) == ["a", "b"]
    assert _ids(apply_filters(records, FilterCriteria(features="fine pitch"))) == ["b"]


def test_area_bounds_treat_missing_area_as_zero(make_record):
    records = [make_record("none"), make_record("small", screen_area=40), make_record("big", screen_area=400)]
    assert _ids(apply_filters(records, FilterCriteria(max_area=50))) == ["none", "small"]
    assert _ids(apply_filters(records, FilterCriteria(min_area=40, max_area=400))) == ["small", "big"]


def test_investment_bounds_exclude_unknown_investment(make_record):
    records = [
        make_record("none"),
        make_record("cheap", investment=100_000),
        make_record("pricey", investment=2_000_000),
    ]
    assert _ids(apply_filters(records, FilterCriteria(max_investment=500_000))) == ["cheap"]
    assert _ids(apply_filters(records, FilterCriteria(min_investment=0))) == ["cheap", "pricey"]


def test_inverted_numeric_bounds_match_nothing(make_record):
    records = [make_record("a", screen_area=100)]
    assert apply_filters(records, FilterCriteria(min_area=200, max_area=50)) == []


def test_date_range_is_inclusive(make_record):
    records = [
        make_record("jan", created_at=_utc(2024, 1, 1)),
        make_record("feb", created_at=_utc(2024, 2, 1)),
        make_record("mar", created_at=_utc(2024, 3, 1)),
    ]
    window = DateRange(start=_utc(2024, 1, 1), end=_utc(2024, 2, 1))
    assert _ids(apply_filters(records, FilterCriteria(date_range=window))) == ["jan", "feb"]


def test_date_range_on_project_start(make_record):
    records = [
        make_record("old", project_start=_utc(2021, 5, 1)),
        make_record("new", project_start=_utc(2023, 5, 1)),
    ]
    window = DateRange(start=_utc(2023, 1, 1), end=_utc(2023, 12, 31), field="project_start")
    assert _ids(apply_filters(records, FilterCriteria(date_range=window))) == ["new"]


def test_published_date_falls_back_to_created(make_record):
    unpublished = make_record("draft", created_at=_utc(2024, 6, 1))
    published = make_record("pub", created_at=_utc(2023, 1, 1), published_at=_utc(2024, 6, 2))
    assert record_date(unpublished, DateField.PUBLISHED_AT) == _utc(2024, 6, 1)

    window = DateRange(start=_utc(2024, 6, 1), end=_utc(2024, 6, 30), field=DateField.PUBLISHED_AT)
    assert _ids(apply_filters([unpublished, published], FilterCriteria(date_range=window))) == [
        "draft",
        "pub",
    ]


def test_date_range_validation():
    with pytest.raises(CatalogValidationError) as excinfo:
        DateRange(start=_utc(2024, 2, 1), end=_utc(2024, 1, 1))
    assert excinfo.value.kind == "invalid_date_range"

    with pytest.raises(CatalogValidationError) as excinfo:
        DateRange(start=_utc(2024, 1, 1), end=_utc(2024, 2, 1), field="deleted_at")
    assert excinfo.value.kind == "invalid_enum"


def test_naive_date_range_is_taken_as_utc(make_record):
    records = [
        make_record("early", created_at=_utc(2024, 1, 1, 0, 30)),
        make_record("late", created_at=_utc(2024, 1, 2, 12)),
    ]
    window = DateRange(start=datetime(2024, 1, 1, 1), end=datetime(2100, 1, 1))
    assert window.start == _utc(2024, 1, 1, 1)
    assert _ids(apply_filters(records, FilterCriteria(date_range=window))) == ["late"]

    mixed = DateRange(start=datetime(2000, 1, 1), end=_utc(2100, 1, 1))
    assert _ids(apply_filters(records, FilterCriteria(date_range=mixed))) == ["early", "late"]


def test_naive_record_timestamps_compare_as_utc(make_record):
    record = make_record("naive", created_at=datetime(2024, 3, 1, 12))
    assert record_date(record, DateField.CREATED_AT) == _utc(2024, 3, 1, 12)

    window = DateRange(start=_utc(2024, 3, 1), end=_utc(2024, 3, 2))
    assert _ids(apply_filters([record], FilterCriteria(date_range=window))) == ["naive"]


def test_search_criterion_is_case_insensitive_substring(make_record):
    records = [
        make_record("a", title="Times Square Billboard"),
        make_record("b", solutions=("P10 outdoor modules",)),
        make_record("c", title="Dubai Hall"),
    ]
    assert _ids(apply_filters(records, FilterCriteria(search="BILLBOARD"))) == ["a"]
    assert _ids(apply_filters(records, FilterCriteria(search="outdoor"))) == ["b"]
    assert _ids(apply_filters(records, FilterCriteria(search="   "))) == ["a", "b", "c"]


def test_media_and_rating_filters(make_record):
    records = [
        make_record("video", videos=("https://videos.example.com/a.mp4",)),
        make_record(
            "rated",
            testimonials=(
                models.Testimonial(customer_name="A", rating=5),
                models.Testimonial(customer_name="B", rating=4),
            ),
        ),
        make_record(
            "unrated",
            testimonials=(
                models.Testimonial(customer_name="C", rating=5),
                models.Testimonial(customer_name="D"),
            ),
        ),
    ]
    assert _ids(apply_filters(records, FilterCriteria(has_video=True))) == ["video"]
    assert _ids(apply_filters(records, FilterCriteria(has_video=False))) == ["rated", "unrated"]
    assert _ids(apply_filters(records, FilterCriteria(has_testimonial=True))) == ["rated", "unrated"]
    # a testimonial without a rating counts as 0
    assert _ids(apply_filters(records, FilterCriteria(min_rating=4))) == ["rated"]


def test_near_filter(make_record):
    records = [
        make_record("ny", latitude=40.7128, longitude=-74.006),
        make_record("boston", latitude=42.3601, longitude=-71.0589),
    ]
    criteria = FilterCriteria(near=RadiusFilter(latitude=40.7, longitude=-74.0, radius_km=50))
    assert _ids(apply_filters(records, criteria)) == ["ny"]

    with pytest.raises(CatalogValidationError):
        apply_filters(records, FilterCriteria(near=RadiusFilter(latitude=95, longitude=0, radius_km=5)))


def test_apply_filters_does_not_mutate_input(make_record):
    records = [make_record("a", country="China"), make_record("b", country="Japan")]
    snapshot = list(records)
    apply_filters(records, FilterCriteria(country="Japan"))
    assert records == snapshot
