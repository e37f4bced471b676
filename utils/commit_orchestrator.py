#!/usr/bin/env python3
"""Edit commit with a single draft-fallback retry.

An app that has never left draft state only accepts draft releases. When a
commit is rejected for that reason, every pending release on the edit is
rewritten to ``draft`` (all other release fields kept) and the commit is
retried once. The retry outcome is final.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict

from utils import metrics
from utils.edit_transaction import EditTransaction
from utils.error_classifier import matches_draft_only_signature
from utils.play_errors import GatewayError
from utils.play_models import Track
from utils.release_builder import as_draft_release

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitReport:
    recovered: bool = False
    # track name -> number of releases forced to draft
    forced_releases: Dict[str, int] = field(default_factory=dict)


class CommitOrchestrator:
    def __init__(self, classifier: Callable[[BaseException], bool] = matches_draft_only_signature) -> None:
        self.classifier = classifier

    def commit(self, transaction: EditTransaction) -> CommitReport:
        """Commit ``transaction``, recovering once from the draft-only rejection.

        Raises:
            GatewayError: If the commit fails for any other reason, or if the
                retry after the draft rewrite fails
        """
        try:
            transaction.commit()
            return CommitReport()
        except GatewayError as e:
            if not self.classifier(e):
                raise
            logger.warning(
                f"Commit of edit {transaction.edit_id} rejected for draft app {transaction.package_name}. "
                "Converting existing releases to draft and retrying."
            )

        forced = self._force_draft_releases(transaction)
        try:
            transaction.commit()
        finally:
            metrics.incr(
                "play.commit.draft_fallback",
                package=transaction.package_name,
                tracks=len(forced),
                committed=transaction.closed,
            )
        logger.info(f"Commit of edit {transaction.edit_id} succeeded after draft fallback")
        return CommitReport(recovered=True, forced_releases=forced)

    def _force_draft_releases(self, transaction: EditTransaction) -> Dict[str, int]:
        forced: Dict[str, int] = {}
        for track in transaction.list_tracks():
            if not track.track or not track.releases:
                continue
            logger.info(
                f"Updating {len(track.releases)} releases to draft for {transaction.package_name} track {track.track}"
            )
            drafts = [as_draft_release(release) for release in track.releases]
            transaction.update_track(Track(track=track.track, releases=drafts))
            forced[track.track] = len(drafts)
        return forced
