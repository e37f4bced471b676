#!/usr/bin/env python3
"""Pure helpers that derive track releases from operation inputs."""

from __future__ import annotations

from typing import Optional, Sequence

from configs.config import Config
from utils.play_models import (
    STATUS_COMPLETED,
    STATUS_DRAFT,
    STATUS_IN_PROGRESS,
    LocalizedText,
    TrackRelease,
)


def build_release(
    version_codes: Sequence[int],
    rollout_fraction: float = 1.0,
    notes: Optional[str] = None,
    language: Optional[str] = None,
) -> TrackRelease:
    """Build the release for a deploy.

    A fraction below 1.0 is a staged rollout (``inProgress`` with the fraction
    stored as given); anything else is a full rollout (``completed``, no
    fraction). Range is not checked here.
    """
    codes = [int(code) for code in version_codes]
    release = TrackRelease(name=f"Release {codes[0]}" if codes else None, version_codes=codes)
    if rollout_fraction < 1.0:
        release.status = STATUS_IN_PROGRESS
        release.user_fraction = rollout_fraction
    else:
        release.status = STATUS_COMPLETED

    if notes is not None and notes.strip():
        release.release_notes = [LocalizedText(language=language or Config.PLAY_DEFAULT_LANGUAGE, text=notes)]
    return release


def as_draft_release(release: TrackRelease) -> TrackRelease:
    """Copy of ``release`` with status forced to draft, other fields preserved."""
    return TrackRelease(
        name=release.name,
        version_codes=list(release.version_codes),
        release_notes=release.release_notes,
        user_fraction=release.user_fraction,
        country_targeting=release.country_targeting,
        in_app_update_priority=release.in_app_update_priority,
        status=STATUS_DRAFT,
    )


def promoted_release(source: TrackRelease) -> TrackRelease:
    """Release for the target track of a promotion: always a full rollout."""
    return TrackRelease(
        name=source.name,
        version_codes=list(source.version_codes),
        release_notes=source.release_notes,
        status=STATUS_COMPLETED,
    )
