"""Grant sources: ORCID fundings when available, the profile service otherwise."""

import logging

import requests

from academia_profiles.config import Config, get_config
from academia_profiles.extract import extract_grants
from academia_profiles.fetch import (
    OrcidAdapterFailure,
    UpstreamFetchFailure,
    fetch_grants_native,
    fetch_orcid_profile,
)
from academia_profiles.schema import Envelope

# Module logger
logger = logging.getLogger("academia_profiles.grants")


def fetch_grants_from_orcid(orcid_id: str, config: Config | None = None) -> Envelope:
    """Fetch grants from an ORCID record, shaped like the profile service envelope.

    Returns:
        ``{"resource": [grant, ...]}``; empty when the record has no fundings

    Raises:
        OrcidAdapterFailure: the ORCID record could not be obtained
    """
    try:
        record = fetch_orcid_profile(orcid_id, config)
    except (UpstreamFetchFailure, requests.RequestException, ValueError) as e:
        raise OrcidAdapterFailure(f"Failed to fetch ORCID profile for {orcid_id}: {e}") from e

    grants = extract_grants(record)
    logger.info(f"Transformed {len(grants)} ORCID funding summaries for {orcid_id}")
    return {"resource": grants}


def fetch_grants(user_id: str, orcid_id: str | None = None, config: Config | None = None) -> Envelope:
    """Fetch a user's grants, preferring ORCID.

    ORCID is tried only when the profile has an ORCID iD and an ORCID access
    token is configured. Any ORCID failure falls back to the profile service,
    whose own failures propagate.
    """
    config = config or get_config()

    if orcid_id and config.orcid_access_configured:
        logger.info(f"ORCID iD {orcid_id} found. Fetching grants from ORCID.")
        try:
            return fetch_grants_from_orcid(orcid_id, config)
        except OrcidAdapterFailure as e:
            logger.warning(f"{e}. Falling back to the profile service grants.")

    return fetch_grants_native(user_id, config)
