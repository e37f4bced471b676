"""In-memory stand-in for the Play Developer API used across the tests."""

import itertools
from collections import defaultdict
from typing import Any, Dict, List, Optional

from utils.play_errors import GatewayError
from utils.play_models import Subscription, Track
from utils.error_classifier import DRAFT_ONLY_SIGNATURE


def draft_only_error() -> GatewayError:
    """The commit rejection returned for apps that were never published."""
    return GatewayError(
        "Edit commit rejected",
        code="BAD_REQUEST",
        details=[f"{DRAFT_ONLY_SIGNATURE}."],
    )


class FakePublisherGateway:
    """In-memory gateway recording calls as (method, args) tuples."""

    def __init__(self, tracks: Optional[List[Track]] = None):
        self.tracks: Dict[str, Track] = {t.track: t for t in tracks or []}
        self.calls: List[tuple] = []
        self.failures: Dict[str, List[Exception]] = defaultdict(list)
        self.uploads: List[Dict[str, Any]] = []
        self._edit_ids = itertools.count(1)

    def fail_on(self, method: str, *errors: Exception) -> None:
        """Queue errors; each call to ``method`` raises the next one."""
        self.failures[method].extend(errors)

    def _record(self, method: str, *args) -> None:
        self.calls.append((method,) + args)
        if self.failures.get(method):
            raise self.failures[method].pop(0)

    def methods(self) -> List[str]:
        return [call[0] for call in self.calls]

    def count(self, method: str) -> int:
        return self.methods().count(method)

    # ---- Edits ----
    def insert_edit(self, package_name):
        self._record("insert_edit", package_name)
        return f"edit-{next(self._edit_ids)}"

    def commit_edit(self, package_name, edit_id):
        self._record("commit_edit", package_name, edit_id)

    def delete_edit(self, package_name, edit_id):
        self._record("delete_edit", package_name, edit_id)

    # ---- Tracks ----
    def list_tracks(self, package_name, edit_id):
        self._record("list_tracks", package_name, edit_id)
        return list(self.tracks.values())

    def get_track(self, package_name, edit_id, track):
        self._record("get_track", package_name, edit_id, track)
        return self.tracks.get(track, Track(track=track))

    def update_track(self, package_name, edit_id, track, body):
        self._record("update_track", package_name, edit_id, track, body)
        self.tracks[track] = body
        return body

    # ---- Binaries ----
    def upload_bundle(self, package_name, edit_id, content):
        self._record("upload_bundle", package_name, edit_id)
        self.uploads.append({"kind": "bundle", "bytes": content.read()})
        return {"versionCode": 1}

    def upload_package(self, package_name, edit_id, content):
        self._record("upload_package", package_name, edit_id)
        self.uploads.append({"kind": "apk", "bytes": content.read()})
        return {"versionCode": 1}

    # ---- Listing ----
    def patch_listing(self, package_name, edit_id, language, listing):
        self._record("patch_listing", package_name, edit_id, language, listing)
        return listing.to_wire()

    def patch_details(self, package_name, edit_id, details):
        self._record("patch_details", package_name, edit_id, details)
        return details.to_wire()

    def upload_image(self, package_name, edit_id, language, image_type, content, mime_type):
        self._record("upload_image", package_name, edit_id, language, image_type, mime_type)
        self.uploads.append({"kind": "image", "bytes": content.read()})
        return {"image": {"id": "img-1"}}

    def delete_images(self, package_name, edit_id, language, image_type):
        self._record("delete_images", package_name, edit_id, language, image_type)

    # ---- Non-versioned ----
    def update_data_safety(self, package_name, safety_labels_csv):
        self._record("update_data_safety", package_name, safety_labels_csv)

    def create_subscription(self, package_name, product_id, regions_version, payload):
        self._record("create_subscription", package_name, product_id, regions_version, payload)
        return Subscription.model_validate(payload)

    def patch_subscription(self, package_name, product_id, regions_version, update_mask, allow_missing, payload):
        self._record(
            "patch_subscription", package_name, product_id, regions_version, update_mask, allow_missing, payload
        )
        return Subscription.model_validate(payload)


