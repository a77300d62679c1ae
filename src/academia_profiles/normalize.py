"""Normalize and merge raw upstream payloads into one profile document.

Everything here is pure: no I/O, inputs are never mutated, and malformed or
sparse records degrade to default values instead of raising.

- dig()                      -- safe nested lookup with an explicit default
- capitalize_words()         -- display-name casing
- collect_publication_urls() -- ordered, de-duplicated links of a publication
- normalize_grant()          -- guarantee ``publicUrls`` on either grant shape
- sort_grants()              -- end date descending, undated last, stable
- merge_profile()            -- the full document
"""

import re
from datetime import datetime, timezone

from academia_profiles import LINKEDIN_LABEL, TWITTER_LABEL
from academia_profiles.schema import (
    Envelope,
    Grant,
    Profile,
    ProfileDocument,
    RawGrantNative,
    RawProfile,
    RawPublication,
)

DOI_RESOLVER = "https://doi.org/"

# First letter of the string, or a letter following whitespace or a hyphen
_WORD_START_RE = re.compile(r'(^|[\s-])(\w)')

_MISSING = object()


# ── Safe access ──────────────────────────────────────────────────────────

def dig(data, *path, default=None, expected: type | tuple | None = None):
    """Walk ``path`` through nested dicts/lists, returning ``default`` on any gap.

    String keys index dicts, integer keys index lists. A None value, a missing
    key, an out-of-range index or a container of the wrong kind all yield
    ``default``. When ``expected`` is given the final value must be an instance
    of it, otherwise ``default`` is returned.
    """
    current = data
    for key in path:
        if isinstance(key, int) and isinstance(current, list):
            current = current[key] if -len(current) <= key < len(current) else _MISSING
        elif isinstance(key, str) and isinstance(current, dict):
            current = current.get(key, _MISSING)
        else:
            return default
        if current is _MISSING or current is None:
            return default

    if expected is not None and not isinstance(current, expected):
        return default
    return current


def _resource(envelope: Envelope) -> list:
    """Return the ``resource`` list of a response envelope (empty if absent)."""
    return dig(envelope, "resource", default=[], expected=list)


def _unique(values) -> list[str]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(values))


# ── Profile ──────────────────────────────────────────────────────────────

def capitalize_words(text: str | None) -> str:
    """Capitalize each word and each hyphen segment, lower-casing the rest.

    >>> capitalize_words("john-paul SMITH")
    'John-Paul Smith'
    """
    if not text or not isinstance(text, str):
        return ""
    return _WORD_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), text.lower())


def _website_url(websites: list, label: str) -> str | None:
    for site in websites:
        if isinstance(site, dict) and site.get("typeDisplayName") == label:
            url = site.get("url")
            return url if isinstance(url, str) and url else None
    return None


def build_profile_section(raw_profile: RawProfile) -> Profile:
    """Build the identity/affiliation summary from a raw user record."""
    websites = dig(raw_profile, "personalWebsites", default=[], expected=list)

    return {
        "name": capitalize_words(dig(raw_profile, "firstNameLastName", expected=str)),
        "prefix": dig(raw_profile, "title", default="", expected=str),
        "title": dig(raw_profile, "positions", 0, "position", default="", expected=str),
        "affiliation": dig(raw_profile, "positions", 0, "department", default="", expected=str),
        "educationInfo": dig(raw_profile, "tabSummaryTeachingActivities", "htmlStripped", default="", expected=str),
        "researchInterests": list(dig(raw_profile, "tags", "explicit", default=[], expected=list)),
        "researchInfo": dig(raw_profile, "tabSummaryGrants", "htmlStripped", default="", expected=str),
        "meta": {
            "discoveryUrlId": dig(raw_profile, "discoveryUrlId"),
            "profileUrl": dig(raw_profile, "elementsUserProfileUrl"),
            "orcidId": dig(raw_profile, "orcid", "value") or None,
            "orcidUri": dig(raw_profile, "orcid", "uri") or None,
            "linkedIn": _website_url(websites, LINKEDIN_LABEL),
            "twitter": _website_url(websites, TWITTER_LABEL),
        },
    }


# ── Publications ─────────────────────────────────────────────────────────

def _attached_urls(items) -> list[str]:
    if not isinstance(items, list):
        return []
    return [item["url"] for item in items
            if isinstance(item, dict) and isinstance(item.get("url"), str) and item["url"]]


def collect_publication_urls(publication: RawPublication) -> list[str]:
    """Collect every distinct link of a publication.

    Precedence: public page, DOI link, attached files, other links.
    The first occurrence of a URL wins.
    """
    urls = []

    public_url = dig(publication, "publicUrl", expected=str)
    if public_url:
        urls.append(public_url)

    doi = dig(publication, "doi", expected=str)
    if doi:
        urls.append(f"{DOI_RESOLVER}{doi}")

    urls.extend(_attached_urls(dig(publication, "files")))
    urls.extend(_attached_urls(dig(publication, "links")))

    return _unique(urls)


def normalize_publication(publication: RawPublication) -> dict:
    """Return a copy of the publication with ``publicUrls`` added."""
    normalized = dict(publication)
    normalized["publicUrls"] = collect_publication_urls(publication)
    return normalized


# ── Grants ───────────────────────────────────────────────────────────────

def normalize_grant(grant: RawGrantNative | Grant) -> Grant:
    """Return a copy of the grant that always exposes ``publicUrls``.

    ORCID-derived grants already carry ``publicUrls`` and keep it as is.
    Native grants have a single ``publicUrl``, which is wrapped in a list.
    """
    normalized = dict(grant)
    existing = grant.get("publicUrls")
    if isinstance(existing, list):
        normalized["publicUrls"] = list(existing)
    else:
        public_url = dig(grant, "publicUrl", expected=str)
        normalized["publicUrls"] = [public_url] if public_url else []
    return normalized


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO-8601 timestamp, or None when absent/unparseable.

    Naive timestamps are taken as UTC so that both grant shapes compare.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _grant_sort_key(grant: dict) -> tuple:
    end = parse_timestamp(dig(grant, "endDate", "dateTime"))
    if end is None:
        return (1, 0.0)
    return (0, -end.timestamp())


def sort_grants(grants: list[dict]) -> list[dict]:
    """Sort grants by end date, most recent first; undated grants go last.

    The sort is stable, so undated grants keep their original relative order.
    """
    return sorted(grants, key=_grant_sort_key)


# ── Merge ────────────────────────────────────────────────────────────────

def merge_profile(
    raw_profile: RawProfile,
    raw_publications: Envelope,
    raw_teaching: Envelope,
    raw_grants: Envelope,
) -> ProfileDocument:
    """Merge raw payloads into the canonical profile document.

    Args:
        raw_profile: User record from the profile service
        raw_publications: Publications envelope (``resource`` list)
        raw_teaching: Teaching activities envelope
        raw_grants: Grants envelope, native or ORCID-derived

    Returns:
        Dict with ``profile``, ``publications``, ``grants`` and ``teaching``
    """
    publications = [
        normalize_publication(pub)
        for pub in _resource(raw_publications)
        if isinstance(pub, dict)
    ]

    grants = sort_grants([
        normalize_grant(grant)
        for grant in _resource(raw_grants)
        if isinstance(grant, dict)
    ])

    return {
        "profile": build_profile_section(raw_profile),
        "publications": publications,
        "grants": grants,
        "teaching": list(_resource(raw_teaching)),
    }
