#!/usr/bin/env python3
"""Pydantic models for Play Developer API resources and operation results.

Wire payloads use camelCase field names; the models expose snake_case
attributes with camelCase aliases. Dump with ``to_wire()`` to get the JSON
body expected by the API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


# Release status values used by the API
STATUS_DRAFT = "draft"
STATUS_IN_PROGRESS = "inProgress"
STATUS_HALTED = "halted"
STATUS_COMPLETED = "completed"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON-ready body, without unset (None) fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LocalizedText(_WireModel):
    """Release notes text in one language."""

    language: str
    text: str


class CountryTargeting(_WireModel):
    countries: List[str] = Field(default_factory=list)
    include_rest_of_world: Optional[bool] = None


class TrackRelease(_WireModel):
    """One release within a track."""

    name: Optional[str] = None
    version_codes: List[int] = Field(default_factory=list)
    status: Optional[str] = None
    user_fraction: Optional[float] = None
    release_notes: Optional[List[LocalizedText]] = None
    country_targeting: Optional[CountryTargeting] = None
    in_app_update_priority: Optional[int] = None

    @field_serializer("version_codes")
    def _serialize_version_codes(self, codes: List[int]) -> List[str]:
        # int64 values travel as JSON strings
        return [str(code) for code in codes]


class Track(_WireModel):
    """A named release channel (internal, alpha, beta, production, ...)."""

    track: Optional[str] = None
    releases: List[TrackRelease] = Field(default_factory=list)


class Listing(_WireModel):
    language: Optional[str] = None
    title: Optional[str] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    video: Optional[str] = None


class AppDetails(_WireModel):
    default_language: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_website: Optional[str] = None


class Subscription(_WireModel):
    """Monetization subscription; everything beyond the ids is kept opaque."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    package_name: Optional[str] = None
    product_id: Optional[str] = None
    base_plans: Optional[List[Dict[str, Any]]] = None
    listings: Optional[List[Dict[str, Any]]] = None

    def listing_languages(self) -> List[str]:
        return [lst["languageCode"] for lst in (self.listings or []) if lst.get("languageCode")]


class ReleaseRecord(_WireModel):
    """Flat view of one release, as reported by get_releases."""

    package_name: str
    track: str
    name: Optional[str] = None
    status: str
    version_code: int
    version_codes: List[int] = Field(default_factory=list)
    user_fraction: Optional[float] = None
    rollout_percentage: int


class ReleasesSummary(_WireModel):
    total_releases: int
    active_releases: int
    completed_releases: int


class ReleasesSnapshot(_WireModel):
    """Point-in-time view of every release of a package."""

    package_name: str
    releases: List[ReleaseRecord] = Field(default_factory=list)
    summary: ReleasesSummary
    last_update: str


@dataclass(frozen=True)
class Edit:
    """An open edit (transaction scope) for one package."""

    id: str
    package_name: str


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a listing/details/image/data-safety/subscription operation."""

    success: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Exception] = None


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a deploy or promote operation."""

    success: bool
    package_name: str
    track: str
    version_code: int
    message: str
    deployment_id: Optional[str] = None
    error: Optional[Exception] = None
