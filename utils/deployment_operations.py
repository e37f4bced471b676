#!/usr/bin/env python3
"""Release-affecting workflows: deploy, promote and release listing.

Deploy and promote run inside one edit and commit through the draft-fallback
``CommitOrchestrator``. They do not delete their edit when a step fails; the
edit is left for the API to expire. Release listing always deletes its edit.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import List, Optional

from configs.config import Config
from utils.commit_orchestrator import CommitOrchestrator
from utils.edit_transaction import EditTransaction
from utils.play_errors import ResourceNotFound, gateway_error_or_none
from utils.play_models import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    DeploymentResult,
    OperationResult,
    ReleaseRecord,
    ReleasesSnapshot,
    ReleasesSummary,
    Track,
    TrackRelease,
)
from utils.release_builder import build_release, promoted_release

logger = logging.getLogger(__name__)


def find_release(track: Track, version_code: int) -> Optional[TrackRelease]:
    """First release of ``track`` whose version codes contain ``version_code``.

    Order is whatever the API returned; version codes are expected to be
    unique within a track.
    """
    for release in track.releases:
        if version_code in release.version_codes:
            return release
    return None


def to_release_record(package_name: str, track: Track, release: TrackRelease) -> ReleaseRecord:
    fraction = release.user_fraction
    return ReleaseRecord(
        package_name=package_name,
        track=track.track or "unknown",
        name=release.name,
        status=release.status or "unknown",
        version_code=release.version_codes[0] if release.version_codes else 0,
        version_codes=list(release.version_codes),
        user_fraction=fraction,
        rollout_percentage=int(fraction * 100) if fraction is not None else 100,
    )


class DeploymentOperations:
    """Deploy, promote and list releases for a package."""

    def __init__(self, gateway, orchestrator: Optional[CommitOrchestrator] = None, *, language: Optional[str] = None):
        self.gateway = gateway
        self.orchestrator = orchestrator or CommitOrchestrator()
        self.language = language or Config.PLAY_DEFAULT_LANGUAGE

    def deploy(
        self,
        package_name: str,
        track: str,
        artifact_path: str,
        version_code: int,
        release_notes: Optional[str] = None,
        rollout_fraction: float = 1.0,
    ) -> DeploymentResult:
        """Upload a build and release it on ``track``.

        ``version_code`` must exceed the published one; that is left to the API.
        """
        logger.info(
            f"Deploying {package_name} version {version_code} to {track} "
            f"with {int(rollout_fraction * 100)}% rollout"
        )
        try:
            transaction = EditTransaction.open(self.gateway, package_name)

            if not os.path.isfile(artifact_path):
                raise ResourceNotFound(f"APK/AAB file not found: {artifact_path}")
            transaction.upload_binary(artifact_path)
            logger.debug(f"Upload completed, version code: {version_code}")

            release = build_release([version_code], rollout_fraction, release_notes, self.language)
            transaction.update_track(Track(track=track, releases=[release]))
            self.orchestrator.commit(transaction)
        except Exception as e:
            logger.error(f"Failed to deploy {package_name}: {e}")
            return DeploymentResult(
                success=False,
                package_name=package_name,
                track=track,
                version_code=version_code,
                message=f"Deployment failed: {e}",
                error=gateway_error_or_none(e),
            )

        logger.info(f"Successfully deployed {package_name} version {version_code} to {track}")
        return DeploymentResult(
            success=True,
            deployment_id=transaction.edit_id,
            package_name=package_name,
            track=track,
            version_code=version_code,
            message=f"Successfully deployed to {track} track",
        )

    def promote(self, package_name: str, from_track: str, to_track: str, version_code: int) -> DeploymentResult:
        """Copy a release from ``from_track`` to ``to_track`` at full rollout."""
        logger.info(f"Promoting {package_name} version {version_code} from {from_track} to {to_track}")
        try:
            transaction = EditTransaction.open(self.gateway, package_name)

            source = find_release(transaction.get_track(from_track), version_code)
            if source is None:
                raise ResourceNotFound(f"Version {version_code} not found in {from_track} track")

            transaction.update_track(Track(track=to_track, releases=[promoted_release(source)]))
            self.orchestrator.commit(transaction)
        except Exception as e:
            logger.error(f"Failed to promote {package_name} version {version_code}: {e}")
            return DeploymentResult(
                success=False,
                package_name=package_name,
                track=to_track,
                version_code=version_code,
                message=f"Promotion failed: {e}",
                error=gateway_error_or_none(e),
            )

        logger.info(f"Successfully promoted {package_name} version {version_code} to {to_track}")
        return DeploymentResult(
            success=True,
            deployment_id=transaction.edit_id,
            package_name=package_name,
            track=to_track,
            version_code=version_code,
            message=f"Successfully promoted from {from_track} to {to_track}",
        )

    def list_releases(self, package_name: str) -> ReleasesSnapshot:
        """Snapshot of every release on every track.

        Track listing is only readable inside an edit, so a throwaway edit is
        opened and always deleted afterwards.

        Raises:
            GatewayError: If the edit cannot be opened or tracks cannot be read
        """
        logger.debug(f"Fetching releases for: {package_name}")
        transaction = EditTransaction.open(self.gateway, package_name)
        try:
            tracks = transaction.list_tracks()
        finally:
            transaction.abort()

        records: List[ReleaseRecord] = [
            to_release_record(package_name, track, release) for track in tracks for release in track.releases
        ]
        return ReleasesSnapshot(
            package_name=package_name,
            releases=records,
            summary=ReleasesSummary(
                total_releases=len(records),
                active_releases=sum(1 for r in records if r.status == STATUS_IN_PROGRESS),
                completed_releases=sum(1 for r in records if r.status == STATUS_COMPLETED),
            ),
            last_update=datetime.now(timezone.utc).isoformat(),
        )

    def get_releases(self, package_name: str) -> OperationResult:
        try:
            snapshot = self.list_releases(package_name)
        except Exception as e:
            logger.error(f"Failed to fetch releases for {package_name}: {e}")
            return OperationResult(
                success=False,
                message=f"Failed to fetch releases: {e}",
                details={"packageName": package_name},
                error=gateway_error_or_none(e),
            )
        return OperationResult(
            success=True,
            message=f"Found {snapshot.summary.total_releases} releases for {package_name}",
            details=snapshot.to_wire(),
        )
