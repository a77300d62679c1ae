"""JSON export of merged profile documents."""

import json
from pathlib import Path

from academia_profiles.schema import ProfileDocument


def export_profile(document: ProfileDocument, indent: int = 2) -> str:
    """Serialize a profile document as JSON text."""
    return json.dumps(document, indent=indent, ensure_ascii=False)


def profile_filename(user_id: str) -> str:
    return f"profile-{user_id}.json"


def write_profile(document: ProfileDocument, output_dir: Path, user_id: str, indent: int = 2) -> Path:
    """Write a profile document to ``<output_dir>/profile-<user_id>.json``.

    Returns:
        Path of the written file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / profile_filename(user_id)
    output_file.write_text(export_profile(document, indent), encoding="utf-8")
    return output_file
