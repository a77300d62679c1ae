"""Record shapes used by this repository.

Two families of upstream JSON are consumed:

1. Profile service (Symplectic Elements "Discovery" style API)
   Endpoints: GET  {base}/users/{userId}
              POST {base}/publications/linkedTo
              POST {base}/teachingActivities/linkedTo
              POST {base}/grants/linkedTo

2. ORCID record, read only for its funding summaries.
   Endpoint: GET https://pub.orcid.org/v3.0/{orcid}/record
   Docs: https://info.orcid.org/documentation/integration-guide/orcid-record/

The canonical document produced by ``normalize.merge_profile`` is described at
the bottom of this file. Every field is optional on input: the normalizer reads
them with ``normalize.dig`` and falls back to defaults.
"""

from typing import TypedDict


# =============================================================================
# Profile service: user record
# =============================================================================

class HtmlSummary(TypedDict, total=False):
    """Rich-text tab summary. Only the stripped variant is used."""
    html: str
    htmlStripped: str


class Position(TypedDict, total=False):
    """Current appointment. The first listed position is the primary one."""
    position: str    # "Professor of Urban Analytics"
    department: str  # "The Bartlett Centre for Advanced Spatial Analysis"
    institution: str


class PersonalWebsite(TypedDict, total=False):
    """Entry in a user's personal-websites list."""
    url: str
    typeDisplayName: str  # "LinkedIn", "X (Twitter)", "Personal website", ...


class ProfileOrcid(TypedDict, total=False):
    """ORCID block attached to a profile."""
    value: str  # "0000-0002-1825-0097"
    uri: str    # "https://orcid.org/0000-0002-1825-0097"


class Tags(TypedDict, total=False):
    explicit: list[str]  # Research interests entered by the user


class RawProfile(TypedDict, total=False):
    """User record returned by GET {base}/users/{userId}."""
    objectId: int
    discoveryUrlId: str
    firstNameLastName: str
    title: str  # Honorific prefix ("Dr", "Prof")
    positions: list[Position]
    personalWebsites: list[PersonalWebsite]
    orcid: ProfileOrcid
    tags: Tags
    tabSummaryTeachingActivities: HtmlSummary
    tabSummaryGrants: HtmlSummary
    elementsUserProfileUrl: str


# =============================================================================
# Profile service: linked objects
# =============================================================================

class LinkedUrl(TypedDict, total=False):
    """File or link attached to a publication."""
    url: str
    type: str


class RawPublication(TypedDict, total=False):
    """Publication record. Fields not listed here pass through untouched."""
    objectId: int
    title: str
    doi: str            # Bare DOI ("10.1000/xyz"), not a URL
    publicUrl: str      # Public page on the profile service
    files: list[LinkedUrl]
    links: list[LinkedUrl]


class ServiceDate(TypedDict, total=False):
    """Date object as returned by the profile service."""
    dateTime: str  # ISO-8601 timestamp
    year: int


class RawGrantNative(TypedDict, total=False):
    """Grant from the profile service: a single ``publicUrl``."""
    objectId: int
    title: str
    fundingBody: str
    startDate: ServiceDate
    endDate: ServiceDate
    publicUrl: str


class Envelope(TypedDict, total=False):
    """Response envelope shared by the "linkedTo" endpoints."""
    resource: list[dict]
    pagination: dict


# =============================================================================
# ORCID funding summaries
# =============================================================================

class StringValue(TypedDict, total=False):
    """Wrapper for string values."""
    value: str


class DatePart(TypedDict, total=False):
    """Year, month, or day component."""
    value: str  # e.g., "2024", "01", "15"


class FuzzyDate(TypedDict, total=False):
    """Partial date: year only, year+month, or full date."""
    year: DatePart
    month: DatePart
    day: DatePart


class ExternalId(TypedDict, total=False):
    """External identifier of a funding (grant number, proposal id).

    Path: fundings/group[]/funding-summary[]/external-ids/external-id[]
    """
    external_id_type: str   # "grant_number", "proposal-id", ...
    external_id_value: str
    external_id_url: StringValue


class ExternalIds(TypedDict, total=False):
    external_id: list[ExternalId]


class FundingTitle(TypedDict, total=False):
    """Funding/grant title."""
    title: StringValue


class Organization(TypedDict, total=False):
    """Funder organization."""
    name: str


class FundingSummary(TypedDict, total=False):
    """Summary of a funding/grant entry.

    Path: activities-summary/fundings/group[]/funding-summary[]
    Docs: https://info.orcid.org/documentation/integration-guide/orcid-record/#h-fundings

    Funding types: "award", "contract", "grant", "salary-award"
    """
    put_code: int
    type: str
    title: FundingTitle
    url: StringValue
    external_ids: ExternalIds
    start_date: FuzzyDate
    end_date: FuzzyDate
    organization: Organization  # Funder


class FundingGroup(TypedDict, total=False):
    """Group of related fundings.

    A group holds several summaries when the same award is reported by more
    than one source.
    """
    funding_summary: list[FundingSummary]


class Fundings(TypedDict, total=False):
    group: list[FundingGroup]


class ActivitiesSummary(TypedDict, total=False):
    fundings: Fundings


class OrcidRecord(TypedDict, total=False):
    """Top-level ORCID record structure (only the parts read here)."""
    activities_summary: ActivitiesSummary


# ORCID JSON uses kebab-case, the TypedDicts above use snake_case.
# When accessing the actual JSON, use the kebab-case keys:
#
#   record["activities-summary"]["fundings"]["group"]
#   group["funding-summary"]
#   summary["external-ids"]["external-id"]
#   external_id["external-id-url"]["value"]
#   summary["start-date"]["year"]["value"]


# =============================================================================
# Canonical document
# =============================================================================

class GrantDate(TypedDict):
    """Structured date. ``dateTime`` is an ISO-8601 timestamp."""
    dateTime: str
    year: int


class Grant(TypedDict, total=False):
    """Canonical grant. ``publicUrls`` is always present after normalization."""
    title: str
    fundingBody: str
    startDate: GrantDate | None
    endDate: GrantDate | None
    publicUrls: list[str]


class ProfileMeta(TypedDict):
    discoveryUrlId: str | None
    profileUrl: str | None
    orcidId: str | None
    orcidUri: str | None
    linkedIn: str | None
    twitter: str | None


class Profile(TypedDict):
    name: str
    prefix: str
    title: str
    affiliation: str
    educationInfo: str
    researchInterests: list
    researchInfo: str
    meta: ProfileMeta


class ProfileDocument(TypedDict):
    profile: Profile
    publications: list[dict]
    grants: list[Grant]
    teaching: list[dict]
