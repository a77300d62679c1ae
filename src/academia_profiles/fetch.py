"""Upstream fetchers for the profile service and the internal ORCID endpoint.

Each fetcher issues exactly one HTTP request and returns the parsed JSON body.
Nothing is retried here: a failed call raises ``UpstreamFetchFailure``
immediately and the caller decides what to do with it.
"""

import logging
import re

import requests

from academia_profiles import PAGE_SIZE, PAGE_START, SORT_ORDER
from academia_profiles.config import Config, get_config
from academia_profiles.schema import Envelope, OrcidRecord, RawProfile

# Module logger
logger = logging.getLogger("academia_profiles.fetch")

# SECURITY: identifiers are interpolated into URLs and cache paths
_ORCID_ID_PATTERN = re.compile(r'^\d{4}-\d{4}-\d{4}-\d{3}[0-9X]$')
_USER_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class ProfileError(Exception):
    """Base class for errors raised by academia-profiles."""


class UpstreamFetchFailure(ProfileError):
    """An upstream service answered with a non-success status (or not at all)."""

    def __init__(self, service: str, status_text: str, status_code: int | None = None, target: str | None = None):
        self.service = service
        self.status_text = status_text
        self.status_code = status_code
        self.target = target
        subject = f"{service} for {target}" if target else service
        super().__init__(f"Failed to fetch {subject}: {status_text}")


# Name used by callers that only care about "a fetch failed"
FetchFailure = UpstreamFetchFailure


class OrcidAdapterFailure(ProfileError):
    """Grants could not be obtained from ORCID; the native service is used instead."""


def validate_orcid_id(orcid_id: str) -> bool:
    """Validate ORCID ID format.

    ORCID IDs must match the pattern: XXXX-XXXX-XXXX-XXXX where X is a digit,
    and the last character can be a digit or 'X'.

    Args:
        orcid_id: The ORCID ID to validate

    Returns:
        True if valid format, False otherwise
    """
    if not orcid_id or not isinstance(orcid_id, str):
        return False
    return _ORCID_ID_PATTERN.match(orcid_id) is not None


def validate_user_id(user_id: str) -> bool:
    """Validate a profile service user id (numeric id or discovery URL id)."""
    if not user_id or not isinstance(user_id, str):
        return False
    return _USER_ID_PATTERN.match(user_id) is not None


def _require_user_id(user_id: str) -> None:
    if not validate_user_id(user_id):
        raise ValueError(f"Invalid user id: {user_id!r}")


def linked_to_body(user_id: str, favourites_first: bool, with_category: bool = True) -> dict:
    """Build the fixed request body for a "linkedTo" endpoint.

    Only the first PAGE_SIZE records are requested.
    """
    body = {
        "objectId": user_id,
        "objectType": "user",
        "pagination": {"perPage": PAGE_SIZE, "startFrom": PAGE_START},
        "sort": SORT_ORDER,
        "favouritesFirst": favourites_first,
    }
    if with_category:
        body["category"] = "user"
    return body


def _parse_response(response, service: str, target: str) -> dict:
    """Return the JSON body of a 2xx response, raise UpstreamFetchFailure otherwise."""
    if not 200 <= response.status_code < 300:
        status_text = response.reason or str(response.status_code)
        logger.warning(f"{service} returned {response.status_code} for {target}")
        raise UpstreamFetchFailure(service, status_text, response.status_code, target)

    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Failed to parse JSON response from {service} for {target}: {e}")
        raise UpstreamFetchFailure(service, f"invalid JSON body ({e})", response.status_code, target) from e


def _get(url: str, service: str, target: str, timeout: int) -> dict:
    try:
        response = requests.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"Network error fetching {service} for {target}: {type(e).__name__}: {e}")
        raise UpstreamFetchFailure(service, f"{type(e).__name__}: {e}", None, target) from e
    return _parse_response(response, service, target)


def _post(url: str, body: dict, service: str, target: str, timeout: int) -> dict:
    try:
        response = requests.post(url, json=body, headers=JSON_HEADERS, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"Network error fetching {service} for {target}: {type(e).__name__}: {e}")
        raise UpstreamFetchFailure(service, f"{type(e).__name__}: {e}", None, target) from e
    return _parse_response(response, service, target)


def fetch_profile(user_id: str, config: Config | None = None) -> RawProfile:
    """Fetch the main profile record for a user."""
    _require_user_id(user_id)
    config = config or get_config()
    url = f"{config.profiles_base_url}/users/{user_id}"
    logger.debug(f"Fetching profile for {user_id}: {url}")
    return _get(url, "profile", user_id, config.profiles_timeout)


def fetch_publications(user_id: str, config: Config | None = None) -> Envelope:
    """Fetch the first page of publications linked to a user."""
    _require_user_id(user_id)
    config = config or get_config()
    url = f"{config.profiles_base_url}/publications/linkedTo"
    body = linked_to_body(user_id, favourites_first=False)
    return _post(url, body, "publications", user_id, config.profiles_timeout)


def fetch_teaching(user_id: str, config: Config | None = None) -> Envelope:
    """Fetch the first page of teaching activities linked to a user."""
    _require_user_id(user_id)
    config = config or get_config()
    url = f"{config.profiles_base_url}/teachingActivities/linkedTo"
    body = linked_to_body(user_id, favourites_first=True)
    return _post(url, body, "teaching activities", user_id, config.profiles_timeout)


def fetch_grants_native(user_id: str, config: Config | None = None) -> Envelope:
    """Fetch the first page of grants linked to a user from the profile service."""
    _require_user_id(user_id)
    config = config or get_config()
    url = f"{config.profiles_base_url}/grants/linkedTo"
    body = linked_to_body(user_id, favourites_first=True, with_category=False)
    return _post(url, body, "grants", user_id, config.profiles_timeout)


def fetch_orcid_profile(orcid_id: str, config: Config | None = None) -> OrcidRecord:
    """Fetch a full ORCID record through the internal caching endpoint.

    Raises:
        UpstreamFetchFailure: the endpoint is not configured or did not succeed
        ValueError: the ORCID id is malformed
    """
    if not validate_orcid_id(orcid_id):
        raise ValueError(f"Invalid ORCID ID format: {orcid_id!r}")

    config = config or get_config()
    base_url = config.internal_api_base_url
    if not base_url:
        raise UpstreamFetchFailure("ORCID profile", "INTERNAL_API_BASE_URL is not configured", None, orcid_id)

    url = f"{base_url}/api/orcid/{orcid_id}"
    logger.info(f"Fetching ORCID profile via internal endpoint: {url}")
    return _get(url, "ORCID profile", orcid_id, config.orcid_timeout)
