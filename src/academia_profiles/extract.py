"""Extract funding summaries from ORCID records as profile-service style grants."""

import logging
from datetime import datetime, timezone

from academia_profiles.normalize import dig
from academia_profiles.schema import FundingSummary, FuzzyDate, Grant, GrantDate, OrcidRecord

# Module logger
logger = logging.getLogger("academia_profiles.extract")

DEFAULT_GRANT_TITLE = "No Title Available"
DEFAULT_FUNDING_BODY = "Funder Not Available"


def _date_part(date_obj: FuzzyDate, part: str) -> str:
    """Zero-padded month/day value, "01" when the part is absent."""
    value = dig(date_obj, part, "value")
    if value in (None, ""):
        return "01"
    return str(value).zfill(2)


def construct_date(date_obj: FuzzyDate | None) -> GrantDate | None:
    """Turn an ORCID fuzzy date into ``{"dateTime", "year"}``.

    Month and day default to January 1st. The timestamp is midnight UTC of
    that day, formatted the way the profile service formats its own dates.

    Returns:
        GrantDate, or None when there is no year or the date is invalid
    """
    year = dig(date_obj, "year", "value")
    if not year:
        return None

    try:
        moment = datetime(
            int(year),
            int(_date_part(date_obj, "month")),
            int(_date_part(date_obj, "day")),
            tzinfo=timezone.utc,
        )
    except (TypeError, ValueError):
        logger.debug(f"Ignoring invalid ORCID date: {date_obj}")
        return None

    return {
        "dateTime": moment.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        "year": moment.year,
    }


def funding_urls(funding: FundingSummary) -> list[str]:
    """Collect the funding URL and every external-identifier URL, de-duplicated."""
    urls = []

    url = dig(funding, "url", "value", expected=str)
    if url:
        urls.append(url)

    for external_id in dig(funding, "external-ids", "external-id", default=[], expected=list):
        id_url = dig(external_id, "external-id-url", "value", expected=str)
        if id_url:
            urls.append(id_url)

    return list(dict.fromkeys(urls))


def transform_funding_summary(funding: FundingSummary) -> Grant:
    """Map one ORCID funding summary onto the canonical grant shape."""
    return {
        "title": dig(funding, "title", "title", "value", expected=str) or DEFAULT_GRANT_TITLE,
        "fundingBody": dig(funding, "organization", "name", expected=str) or DEFAULT_FUNDING_BODY,
        "startDate": construct_date(dig(funding, "start-date")),
        "endDate": construct_date(dig(funding, "end-date")),
        "publicUrls": funding_urls(funding),
    }


def extract_funding_summaries(record: OrcidRecord) -> list[FundingSummary]:
    """Flatten every funding group of an ORCID record into one list of summaries.

    A group can hold several summaries (the same award reported by different
    sources); all of them are kept. Malformed groups contribute nothing.
    """
    summaries = []
    groups = dig(record, "activities-summary", "fundings", "group", default=[], expected=list)

    for group in groups:
        for summary in dig(group, "funding-summary", default=[], expected=list):
            if isinstance(summary, dict):
                summaries.append(summary)

    return summaries


def extract_grants(record: OrcidRecord) -> list[Grant]:
    """Extract all fundings of an ORCID record as canonical grants."""
    return [transform_funding_summary(summary) for summary in extract_funding_summaries(record)]
