"""Tests for academia_profiles.extract (ORCID fundings -> grants)."""

from academia_profiles.extract import (
    DEFAULT_FUNDING_BODY,
    DEFAULT_GRANT_TITLE,
    construct_date,
    extract_funding_summaries,
    extract_grants,
    funding_urls,
    transform_funding_summary,
)

from conftest import make_funding


# ── construct_date ───────────────────────────────────────────────────────


def test_construct_date_year_only():
    assert construct_date({"year": {"value": "2021"}}) == {
        "dateTime": "2021-01-01T00:00:00.000Z",
        "year": 2021,
    }


def test_construct_date_pads_month_and_day():
    date = construct_date({"year": {"value": "2025"}, "month": {"value": "9"}, "day": {"value": "3"}})
    assert date == {"dateTime": "2025-09-03T00:00:00.000Z", "year": 2025}


def test_construct_date_without_year():
    assert construct_date({"month": {"value": "05"}}) is None
    assert construct_date({"year": None}) is None
    assert construct_date({"year": {"value": ""}}) is None
    assert construct_date(None) is None


def test_construct_date_invalid_values():
    assert construct_date({"year": {"value": "20x1"}}) is None
    assert construct_date({"year": {"value": "2021"}, "month": {"value": "13"}}) is None


def test_construct_date_month_object_without_value_defaults():
    assert construct_date({"year": {"value": "2021"}, "month": {}})["dateTime"] == "2021-01-01T00:00:00.000Z"


# ── transform_funding_summary ────────────────────────────────────────────


def test_funding_urls_dedup():
    funding = make_funding(url="https://a", id_urls=["https://a", "https://b", "https://b"])
    assert funding_urls(funding) == ["https://a", "https://b"]


def test_transform_funding_summary():
    funding = make_funding(
        "Digital Twins", "EPSRC",
        start={"year": {"value": "2022"}},
        end={"year": {"value": "2025"}, "month": {"value": "09"}},
        url="https://gtr.example.org/dt",
    )
    assert transform_funding_summary(funding) == {
        "title": "Digital Twins",
        "fundingBody": "EPSRC",
        "startDate": {"dateTime": "2022-01-01T00:00:00.000Z", "year": 2022},
        "endDate": {"dateTime": "2025-09-01T00:00:00.000Z", "year": 2025},
        "publicUrls": ["https://gtr.example.org/dt"],
    }


def test_transform_funding_summary_defaults():
    grant = transform_funding_summary({})
    assert grant == {
        "title": DEFAULT_GRANT_TITLE,
        "fundingBody": DEFAULT_FUNDING_BODY,
        "startDate": None,
        "endDate": None,
        "publicUrls": [],
    }


# ── extract_funding_summaries ────────────────────────────────────────────


def test_two_groups_flatten_to_two_grants():
    record = {
        "activities-summary": {
            "fundings": {
                "group": [
                    {"funding-summary": [make_funding("A")]},
                    {"funding-summary": [make_funding("B")]},
                ]
            }
        }
    }
    grants = extract_grants(record)
    assert [g["title"] for g in grants] == ["A", "B"]


def test_group_with_several_summaries_keeps_all(orcid_record):
    summaries = extract_funding_summaries(orcid_record)
    assert len(summaries) == 3


def test_missing_fundings_yield_empty_list(orcid_record):
    assert extract_grants({}) == []
    assert extract_grants({"activities-summary": {"fundings": None}}) == []
    assert extract_grants({"activities-summary": {"fundings": {"group": "bad"}}}) == []


def test_malformed_groups_are_skipped():
    record = {
        "activities-summary": {
            "fundings": {
                "group": [
                    {},
                    {"funding-summary": None},
                    "junk",
                    {"funding-summary": [None, make_funding("Kept")]},
                ]
            }
        }
    }
    assert [g["title"] for g in extract_grants(record)] == ["Kept"]
