"""Shared pytest fixtures for academia_profiles tests."""

import logging
from unittest.mock import Mock

import pytest

from academia_profiles import config as config_module
from academia_profiles.config import Config

ORCID_ID = "0000-0002-1825-0097"
USER_ID = "12345-jane-doe"

# Environment variables that would leak into Config() during tests
_ENV_VARS = [
    "PROFILES_API_BASE_URL", "INTERNAL_API_BASE_URL", "ORCID_ACCESS_TOKEN",
    "ORCID_CLIENT_ID", "ORCID_CLIENT_SECRET", "ORCID_REDIRECT_URI",
    "ORCID_TOKEN_PATH", "ORCID_AUTH_SITE", "ORCID_CACHE_TTL",
    "OPENWEBUI_API_URL", "OPENWEBUI_API_KEY", "OPENWEBUI_MODEL",
    "COMFYUI_URL", "COMFYUI_WORKFLOW_FILE", "PROFILES_API_TIMEOUT",
]


def make_response(status_code=200, json_data=None, reason="OK", text=""):
    """Build a mock ``requests`` response."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    response.json.return_value = json_data
    return response


def make_funding(title="Research Grant", funder="NSF", start=None, end=None, url=None, id_urls=()):
    """Helper to build a minimal ORCID funding-summary entry."""
    summary = {
        "type": "grant",
        "title": {"title": {"value": title}} if title else None,
        "organization": {"name": funder} if funder else None,
        "start-date": start,
        "end-date": end,
        "url": {"value": url} if url else None,
        "external-ids": {
            "external-id": [
                {
                    "external-id-type": "grant_number",
                    "external-id-value": f"G-{i}",
                    "external-id-url": {"value": id_url},
                }
                for i, id_url in enumerate(id_urls)
            ]
        },
    }
    return summary


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep tests independent of the caller's environment and global config."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config_module.reset_config()
    yield
    config_module.reset_config()
    # CLI tests attach stream handlers bound to captured streams
    package_logger = logging.getLogger("academia_profiles")
    for handler in list(package_logger.handlers):
        handler.close()
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def config():
    """Configuration with no ORCID credential and no internal endpoint."""
    return Config(environ={})


@pytest.fixture
def orcid_config():
    """Configuration with the ORCID preferred path enabled."""
    return Config(environ={
        "ORCID_ACCESS_TOKEN": "token-123",
        "INTERNAL_API_BASE_URL": "http://localhost:3000",
    })


@pytest.fixture
def raw_profile():
    """A user record from the profile service."""
    return {
        "objectId": 12345,
        "discoveryUrlId": USER_ID,
        "firstNameLastName": "JANE mary-ann DOE",
        "title": "Dr",
        "positions": [
            {"position": "Associate Professor", "department": "Centre for Advanced Spatial Analysis"},
            {"position": "Visiting Fellow", "department": "Geography"},
        ],
        "personalWebsites": [
            {"typeDisplayName": "Personal website", "url": "https://janedoe.example.org"},
            {"typeDisplayName": "LinkedIn", "url": "https://www.linkedin.com/in/janedoe"},
        ],
        "orcid": {"value": ORCID_ID, "uri": f"https://orcid.org/{ORCID_ID}"},
        "tags": {"explicit": ["urban analytics", "spatial networks"]},
        "tabSummaryTeachingActivities": {"html": "<p>Teaches GIS</p>", "htmlStripped": "Teaches GIS"},
        "tabSummaryGrants": {"htmlStripped": "Funded by UKRI"},
        "elementsUserProfileUrl": "https://profiles.example.ac.uk/12345-jane-doe",
    }


@pytest.fixture
def raw_publications():
    return {
        "resource": [
            {
                "objectId": 1,
                "title": "Street Networks",
                "publicUrl": "https://profiles.example.ac.uk/publications/1",
                "doi": "10.1000/streets",
                "files": [{"url": "https://discovery.example.ac.uk/1.pdf"}],
                "links": [{"url": "https://arxiv.org/abs/1234"}],
            },
            {
                "objectId": 2,
                "title": "Mobility Flows",
                "doi": "10.1000/flows",
            },
        ],
        "pagination": {"total": 2},
    }


@pytest.fixture
def native_grants():
    return {
        "resource": [
            {
                "objectId": 10,
                "title": "Urban Data Observatory",
                "fundingBody": "UKRI",
                "startDate": {"dateTime": "2019-01-01T00:00:00", "year": 2019},
                "endDate": {"dateTime": "2022-12-31T00:00:00", "year": 2022},
                "publicUrl": "https://profiles.example.ac.uk/grants/10",
            },
        ],
    }


@pytest.fixture
def orcid_record():
    """An ORCID record with two funding groups, one holding two summaries."""
    return {
        "orcid-identifier": {"path": ORCID_ID},
        "activities-summary": {
            "fundings": {
                "group": [
                    {
                        "funding-summary": [
                            make_funding(
                                "City Dynamics", "ESRC",
                                start={"year": {"value": "2018"}},
                                end={"year": {"value": "2021"}, "month": {"value": "6"}},
                                url="https://gtr.example.org/city",
                                id_urls=["https://gtr.example.org/city", "https://esrc.example.org/123"],
                            ),
                            make_funding(
                                "City Dynamics", "ESRC",
                                start={"year": {"value": "2018"}},
                                end={"year": {"value": "2021"}},
                            ),
                        ],
                    },
                    {
                        "funding-summary": [
                            make_funding(
                                "Digital Twins", "EPSRC",
                                start={"year": {"value": "2022"}, "month": {"value": "10"}, "day": {"value": "1"}},
                                end={"year": {"value": "2025"}, "month": {"value": "9"}, "day": {"value": "30"}},
                            ),
                        ],
                    },
                ],
            },
        },
    }
