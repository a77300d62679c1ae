"""ORCID API access: record fetching, JSON file cache and OAuth helpers.

This is the collaborator behind the internal ORCID endpoint that
``fetch.fetch_orcid_profile`` calls: it reads the public API with a bearer
token and keeps one JSON file per ORCID iD.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlencode

import requests

from academia_profiles.config import Config, get_config
from academia_profiles.fetch import ProfileError, validate_orcid_id

# Module logger
logger = logging.getLogger("academia_profiles.orcid")

CACHE_METADATA_KEY = "_cache_metadata"


class OrcidApiError(ProfileError):
    """The ORCID API (or its OAuth endpoint) could not be used."""


# ── API ──────────────────────────────────────────────────────────────────

def fetch_orcid_record(
    orcid_id: str,
    access_token: str,
    endpoint: str = "record",
    config: Config | None = None,
) -> dict:
    """Fetch a record (or a record section) from the ORCID public API.

    Args:
        orcid_id: ORCID iD of the person
        access_token: ORCID API access token
        endpoint: API endpoint ("record", "person", "works", "fundings", ...)
        config: Configuration (defaults to the global config)

    Returns:
        Parsed JSON record

    Raises:
        OrcidApiError: on network failure, a non-200 status or invalid JSON
    """
    # SECURITY: Validate ORCID ID format to prevent injection
    if not validate_orcid_id(orcid_id):
        raise OrcidApiError(f"Invalid ORCID ID format: {orcid_id}")

    config = config or get_config()
    url = f"{config.orcid_api_base_url}/{orcid_id}/{endpoint}"
    headers = {
        "Accept": "application/json",
        "Authorization": f"Bearer {access_token}",
    }

    try:
        response = requests.get(url, headers=headers, timeout=config.orcid_timeout)
    except requests.RequestException as e:
        raise OrcidApiError(f"Network error fetching ORCID {endpoint} for {orcid_id}: {type(e).__name__}: {e}") from e

    if response.status_code != 200:
        raise OrcidApiError(
            f"Failed to fetch ORCID record for endpoint '{endpoint}': {response.reason} - {response.text}"
        )

    try:
        return response.json()
    except ValueError as e:
        raise OrcidApiError(f"Failed to parse JSON response for {orcid_id}: {e}") from e


def get_orcid_profile_with_token(orcid_id: str, config: Config | None = None) -> dict:
    """Fetch a full ORCID record using the configured access token."""
    if not orcid_id:
        raise OrcidApiError("An ORCID iD must be provided to fetch the profile.")

    config = config or get_config()
    if not config.orcid_access_configured:
        raise OrcidApiError("ORCID_ACCESS_TOKEN is not configured. Cannot fetch profile.")

    logger.info(f"Fetching ORCID record for {orcid_id} using pre-configured token...")
    return fetch_orcid_record(orcid_id, config.orcid_access_token, "record", config)


# ── Cache ────────────────────────────────────────────────────────────────

def is_cache_fresh(record: dict, ttl_seconds: int) -> bool:
    """Check if a cached ORCID record is still fresh.

    Args:
        record: ORCID record dict with optional _cache_metadata
        ttl_seconds: Time to live in seconds

    Returns:
        True if cache is fresh, False if stale or no metadata
    """
    metadata = record.get(CACHE_METADATA_KEY)
    if not metadata:
        return False

    cached_at_str = metadata.get("cached_at")
    if not cached_at_str:
        return False

    try:
        cached_at = datetime.fromisoformat(cached_at_str)
        age_seconds = (datetime.now(timezone.utc) - cached_at).total_seconds()
        return age_seconds < ttl_seconds
    except (ValueError, TypeError):
        # Invalid timestamp format - consider stale
        return False


def add_cache_metadata(record: dict, ttl_seconds: int) -> dict:
    """Stamp a record with the time it was cached."""
    record[CACHE_METADATA_KEY] = {
        "cached_at": datetime.now(timezone.utc).isoformat(),
        "ttl_seconds": ttl_seconds,
    }
    return record


def cache_path(cache_dir: Path, orcid_id: str) -> Path:
    """Location of the cache file for an ORCID iD."""
    if not validate_orcid_id(orcid_id):
        raise ValueError(f"Invalid ORCID ID format: {orcid_id}")
    return cache_dir / f"{orcid_id}.json"


def load_cached_record(cache_dir: Path, orcid_id: str) -> dict | None:
    """Load an ORCID record from the cache, or None when missing or unreadable."""
    if not validate_orcid_id(orcid_id):
        logger.error(f"Invalid ORCID ID format: {orcid_id}")
        return None

    json_file = cache_path(cache_dir, orcid_id)
    if not json_file.exists():
        return None

    try:
        with open(json_file, encoding="utf-8") as f:
            record = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from {json_file}: {e}")
        return None

    return record if isinstance(record, dict) else None


def save_cached_record(cache_dir: Path, orcid_id: str, record: dict, ttl_seconds: int) -> Path:
    """Write a record to the cache and return the file path."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    json_file = cache_path(cache_dir, orcid_id)
    with open(json_file, "w", encoding="utf-8") as f:
        json.dump(add_cache_metadata(record, ttl_seconds), f, indent=2)
    logger.info(f"Cached ORCID record to {json_file}")
    return json_file


def get_or_fetch_orcid_record(
    cache_dir: Path,
    orcid_id: str,
    fetch: bool = True,
    force: bool = False,
    config: Config | None = None,
) -> dict | None:
    """Get an ORCID record from cache, or fetch it from the API.

    Args:
        cache_dir: Directory holding one JSON file per ORCID iD
        orcid_id: ORCID iD to look up
        fetch: If True, fetch from API when not cached or stale
        force: If True, always fetch from API (ignore cache)
        config: Configuration (defaults to the global config)

    Returns:
        ORCID record dict, or None if not cached and fetching is disabled

    Raises:
        OrcidApiError: fetching was needed and failed
    """
    if not validate_orcid_id(orcid_id):
        raise OrcidApiError(f"Invalid ORCID ID format: {orcid_id}")

    config = config or get_config()
    ttl = config.cache_ttl

    def _fetch_and_cache() -> dict:
        record = get_orcid_profile_with_token(orcid_id, config)
        try:
            save_cached_record(cache_dir, orcid_id, record, ttl)
        except OSError as e:
            logger.warning(f"Failed to write cache file for {orcid_id}: {e}")
        return record

    if force and fetch:
        logger.info("Force fetching ORCID record (ignoring cache)...")
        return _fetch_and_cache()

    record = load_cached_record(cache_dir, orcid_id)
    if record:
        if is_cache_fresh(record, ttl):
            logger.info(f"Serving ORCID profile for {orcid_id} from cache.")
            return record
        if not fetch:
            logger.warning("Using stale cache (fetch disabled)")
            return record
        logger.info(f"Cached ORCID record for {orcid_id} is stale (age > {ttl}s), refetching...")
        return _fetch_and_cache()

    if fetch:
        logger.info(f"Cache miss for {orcid_id}. Fetching from ORCID API.")
        return _fetch_and_cache()

    return None


# ── OAuth ────────────────────────────────────────────────────────────────

def _require_oauth_settings(config: Config, *keys: str) -> dict:
    values = {key: config.get("orcid", key) for key in keys}
    missing = [key for key, value in values.items() if not value]
    if missing:
        raise OrcidApiError(f"ORCID OAuth settings missing: {', '.join(missing)}")
    return values


def build_authorize_url(config: Config | None = None, scope: str = "/authenticate") -> str:
    """URL the user visits to grant access and obtain an authorization code."""
    config = config or get_config()
    settings = _require_oauth_settings(config, "client_id", "redirect_uri", "auth_site")
    query = urlencode({
        "client_id": settings["client_id"],
        "response_type": "code",
        "scope": scope,
        "redirect_uri": settings["redirect_uri"],
    })
    return f"{settings['auth_site'].rstrip('/')}/oauth/authorize?{query}"


def exchange_code_for_token(code: str, config: Config | None = None) -> dict:
    """Exchange an authorization code for an access token.

    Returns:
        Token response from ORCID (access_token, orcid, name, ...)
    """
    if not code:
        raise OrcidApiError("Authorization code is required to proceed.")

    config = config or get_config()
    settings = _require_oauth_settings(
        config, "client_id", "client_secret", "token_path", "redirect_uri"
    )
    data = {
        "client_id": settings["client_id"],
        "client_secret": settings["client_secret"],
        "grant_type": "authorization_code",
        "scope": "/read-public",
        "code": code,
        "redirect_uri": settings["redirect_uri"],
    }

    try:
        response = requests.post(
            settings["token_path"],
            data=data,
            headers={"Accept": "application/json"},
            timeout=config.orcid_timeout,
        )
    except requests.RequestException as e:
        raise OrcidApiError(f"Network error exchanging code for token: {e}") from e

    if not 200 <= response.status_code < 300:
        raise OrcidApiError(f"Failed to exchange code for token: {response.reason} - {response.text}")

    try:
        token = response.json()
    except ValueError as e:
        raise OrcidApiError(f"Invalid JSON in token response: {e}") from e

    if not isinstance(token, dict) or not token.get("access_token"):
        raise OrcidApiError("Token response did not include an access token.")
    return token
