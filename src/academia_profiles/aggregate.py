"""Profile aggregation: fetch everything for a user and merge it."""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

from academia_profiles.config import Config, get_config
from academia_profiles.fetch import fetch_profile, fetch_publications, fetch_teaching
from academia_profiles.grants import fetch_grants
from academia_profiles.normalize import dig, merge_profile
from academia_profiles.schema import ProfileDocument

# Module logger
logger = logging.getLogger("academia_profiles.aggregate")


def gather_all(calls: list) -> list:
    """Run ``(func, *args)`` calls concurrently and return results in order.

    All-or-nothing: as soon as one call raises, calls not yet started are
    cancelled and the first failure (in call order) is re-raised. Calls
    already in flight are left to finish on their own.
    """
    executor = ThreadPoolExecutor(max_workers=len(calls))
    try:
        futures = [executor.submit(func, *args) for func, *args in calls]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [f for f in futures if f in done and f.exception() is not None]
        if failed:
            for future in pending:
                future.cancel()
            raise failed[0].exception()

        return [future.result() for future in futures]
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def get_profile(user_id: str, config: Config | None = None) -> ProfileDocument:
    """Fetch and merge the complete profile document for a user.

    The profile record is fetched first because it carries the ORCID iD that
    decides where grants come from. Publications, teaching and grants are then
    fetched concurrently; if any of them fails the whole call fails.

    Args:
        user_id: Profile service user id
        config: Configuration (defaults to the global config)

    Returns:
        The merged profile document

    Raises:
        UpstreamFetchFailure: a required upstream call failed
    """
    config = config or get_config()

    logger.info(f"Fetching profile data for user {user_id}")
    profile_data = fetch_profile(user_id, config)
    orcid_id = dig(profile_data, "orcid", "value", expected=str) or None

    publications_data, teaching_data, grants_data = gather_all([
        (fetch_publications, user_id, config),
        (fetch_teaching, user_id, config),
        (fetch_grants, user_id, orcid_id, config),
    ])

    document = merge_profile(profile_data, publications_data, teaching_data, grants_data)
    logger.info(
        f"Merged profile for {user_id}: {len(document['publications'])} publications, "
        f"{len(document['grants'])} grants, {len(document['teaching'])} teaching activities"
    )
    return document
