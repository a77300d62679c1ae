"""Command-line interfaces for profile aggregation, ORCID records and generation."""

import argparse
import json
import logging
import sys
from pathlib import Path

from academia_profiles.aggregate import get_profile
from academia_profiles.comfyui import generate_image
from academia_profiles.config import get_config
from academia_profiles.fetch import ProfileError, validate_orcid_id, validate_user_id
from academia_profiles.generate import (
    generate_blog_post,
    generate_bluesky_posts,
    generate_linkedin_post,
    generate_playground_reply,
)
from academia_profiles.json_export import export_profile, write_profile
from academia_profiles.logging_config import setup_logging
from academia_profiles.orcid import (
    OrcidApiError,
    build_authorize_url,
    exchange_code_for_token,
    fetch_orcid_record,
    get_or_fetch_orcid_record,
)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

ORCID_ENDPOINTS = ["record", "person", "works", "fundings", "employments", "educations"]

# CLI kind -> text generator
TEXT_KINDS = {
    "bluesky": generate_bluesky_posts,
    "linkedin": generate_linkedin_post,
    "blog": generate_blog_post,
    "prompt": generate_playground_reply,
}


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML configuration file (optional, defaults to .academia-profiles.yaml)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (logs to stderr if not specified)"
    )


def _setup(args, logger_name: str):
    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(level=args.log_level, log_file=log_file)
    logger = logging.getLogger(f"academia_profiles.{logger_name}")

    config_file = Path(args.config) if args.config else None
    config = get_config(config_file)
    return logger, config


def main(argv: list[str] | None = None):
    """Fetch, merge and export a researcher's profile document."""
    parser = argparse.ArgumentParser(
        description="Aggregate a researcher profile (profile, publications, grants, teaching) as JSON."
    )
    parser.add_argument("user_id", help="Profile service user id")
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Write profile-<user_id>.json here instead of printing to stdout"
    )
    _add_common_arguments(parser)
    args = parser.parse_args(argv)

    logger, config = _setup(args, "cli")

    if not validate_user_id(args.user_id):
        logger.error(f"Invalid user id: {args.user_id}")
        logger.error("User ids may only contain letters, digits, '-' and '_'")
        sys.exit(1)

    logger.info(f"Fetching data for user ID: {args.user_id}...")
    try:
        document = get_profile(args.user_id, config)
    except ProfileError as e:
        logger.error(f"An error occurred while fetching data. {e}")
        sys.exit(2)

    if args.output_dir:
        output_file = write_profile(document, Path(args.output_dir), args.user_id, config.json_indent)
        logger.info(f"Generated: {output_file}")
        print(str(output_file))
    else:
        print(export_profile(document, config.json_indent))


def orcid_main(argv: list[str] | None = None):
    """Fetch an ORCID record through the local JSON cache."""
    parser = argparse.ArgumentParser(description="Fetch (and cache) an ORCID record.")
    parser.add_argument(
        "orcid_id",
        nargs="?",
        default=None,
        help="ORCID iD (XXXX-XXXX-XXXX-XXXX); optional with --login"
    )
    parser.add_argument(
        "--login",
        action="store_true",
        help="Obtain an access token through the ORCID OAuth flow first"
    )
    parser.add_argument("--cache-dir", default=None, help="Cache directory (default: orcid.cache_dir_name)")
    parser.add_argument("--no-fetch", action="store_true", help="Only use cached records")
    parser.add_argument("--force-fetch", action="store_true", help="Always fetch from API (refreshes cache)")
    parser.add_argument(
        "--endpoint",
        default="record",
        choices=ORCID_ENDPOINTS,
        help="Record section to fetch; sections other than \"record\" bypass the cache"
    )
    _add_common_arguments(parser)
    args = parser.parse_args(argv)

    logger, config = _setup(args, "cli")

    if args.login:
        try:
            token = _orcid_login(config)
        except ProfileError as e:
            logger.error(f"ORCID login failed: {e}")
            sys.exit(2)
        config.set("orcid", "access_token", token["access_token"])
        args.orcid_id = args.orcid_id or token.get("orcid")
        logger.info(f"Obtained ORCID access token for {token.get('orcid')}")
    elif not args.orcid_id:
        parser.error("an ORCID iD is required unless --login is given")

    if not validate_orcid_id(args.orcid_id):
        logger.error(f"Invalid ORCID ID format: {args.orcid_id}")
        logger.error("ORCID IDs must match the pattern: XXXX-XXXX-XXXX-XXXX")
        sys.exit(1)

    cache_dir = Path(args.cache_dir) if args.cache_dir else Path(config.cache_dir_name)
    try:
        if args.endpoint == "record":
            record = get_or_fetch_orcid_record(
                cache_dir, args.orcid_id, fetch=not args.no_fetch, force=args.force_fetch, config=config
            )
        else:
            if not config.orcid_access_configured:
                raise OrcidApiError("ORCID_ACCESS_TOKEN is not configured. Cannot fetch profile.")
            record = fetch_orcid_record(args.orcid_id, config.orcid_access_token, args.endpoint, config)
    except ProfileError as e:
        logger.error(f"ORCID API fetch failed for {args.orcid_id}: {e}")
        sys.exit(2)

    if record is None:
        logger.warning(f"No cached ORCID record for {args.orcid_id} (fetch disabled).")
        sys.exit(1)

    print(json.dumps(record, indent=config.json_indent, ensure_ascii=False))


def _orcid_login(config) -> dict:
    """Run the interactive OAuth flow and return the token response.

    Prompts go to stderr so stdout stays free for the record JSON.
    """
    print("Please go to the following URL in your browser to authorize this application:", file=sys.stderr)
    print(build_authorize_url(config), file=sys.stderr)
    print("After authorizing, copy the `code` from the redirect URL and paste it here.", file=sys.stderr)
    print("Authorization code: ", end="", file=sys.stderr, flush=True)
    code = sys.stdin.readline().strip()
    return exchange_code_for_token(code, config)


def _read_context(args, parser: argparse.ArgumentParser):
    if args.context is not None:
        return args.context
    if args.context_file:
        text = Path(args.context_file).read_text(encoding="utf-8")
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    parser.error("Either --context or --context-file is required")


def generate_main(argv: list[str] | None = None):
    """Generate social copy or an image from a context."""
    parser = argparse.ArgumentParser(description="Generate social-media copy or an image.")
    parser.add_argument("kind", choices=[*TEXT_KINDS, "image"], help="What to generate")
    parser.add_argument("--context", default=None, help="Context text (or positive prompt for images)")
    parser.add_argument("--context-file", default=None, help="File with context (JSON is passed through as JSON)")
    parser.add_argument("--model", default=None, help="Model name (default: openwebui.model)")
    parser.add_argument("--negative", default=None, help="Negative prompt (image only)")
    _add_common_arguments(parser)
    args = parser.parse_args(argv)

    logger, config = _setup(args, "cli")
    context = _read_context(args, parser)

    try:
        if args.kind == "image":
            prompt = {"positive": context if isinstance(context, str) else json.dumps(context)}
            if args.negative:
                prompt["negative"] = args.negative
            image_url = generate_image(prompt, config)
            print(json.dumps({"imageUrl": image_url}))
        else:
            print(TEXT_KINDS[args.kind](context, args.model, config))
    except ProfileError as e:
        logger.error(f"Failed to generate {args.kind}: {e}")
        sys.exit(2)
