"""Tests for JSON export module."""

import json

from academia_profiles.json_export import export_profile, profile_filename, write_profile

from conftest import USER_ID

DOCUMENT = {
    "profile": {"name": "Zoë Ng", "meta": {"orcidId": None}},
    "publications": [{"title": "Street Networks", "publicUrls": ["https://doi.org/10.1/x"]}],
    "grants": [],
    "teaching": [],
}


def test_export_profile_is_valid_json():
    text = export_profile(DOCUMENT)
    assert json.loads(text) == DOCUMENT


def test_export_profile_keeps_unicode_and_nulls():
    text = export_profile(DOCUMENT)
    assert "Zoë" in text
    assert '"orcidId": null' in text


def test_export_profile_indent():
    assert "\n    \"profile\"" in export_profile(DOCUMENT, indent=4)


def test_profile_filename():
    assert profile_filename(USER_ID) == "profile-12345-jane-doe.json"


def test_write_profile_creates_directory(tmp_path):
    output_dir = tmp_path / "out" / "nested"

    path = write_profile(DOCUMENT, output_dir, USER_ID)

    assert path == output_dir / "profile-12345-jane-doe.json"
    assert json.loads(path.read_text(encoding="utf-8")) == DOCUMENT
