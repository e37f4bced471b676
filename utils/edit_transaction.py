#!/usr/bin/env python3
"""Edit transaction lifecycle for the Play Developer API.

Every versioned change (tracks, binaries, listings, details, images) happens
inside an edit: insert, mutate, then commit or delete. ``EditTransaction``
owns one edit and scopes every call to it.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, List, TypeVar

from utils.play_errors import GatewayError
from utils.play_models import AppDetails, Edit, Listing, Track

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
}


def detect_image_mime_type(path: str) -> str:
    ext = os.path.splitext(path)[1].lstrip(".").lower()
    return _IMAGE_MIME_TYPES.get(ext, "application/octet-stream")


def is_bundle(path: str) -> bool:
    return path.lower().endswith(".aab")


def _wrap_gateway_call(action: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except GatewayError as e:
        raise GatewayError(f"{action} failed: {e}", code=e.code, details=e.details) from e
    except Exception as e:
        raise GatewayError(f"{action} failed: {e}") from e


class EditTransaction:
    """One open edit for one package.

    Obtain with ``EditTransaction.open``. After ``commit`` succeeds or
    ``abort`` runs the transaction is closed; further calls raise
    ``GatewayError`` with code ``EDIT_CLOSED``.
    """

    def __init__(self, gateway, edit: Edit) -> None:
        self.gateway = gateway
        self.edit = edit
        self._closed = False

    @classmethod
    def open(cls, gateway, package_name: str) -> "EditTransaction":
        """Insert a new edit for ``package_name``.

        Raises:
            GatewayError: If the edit cannot be created
        """
        edit_id = _wrap_gateway_call(f"Creating edit for {package_name}", lambda: gateway.insert_edit(package_name))
        logger.debug(f"Created edit {edit_id} for {package_name}")
        return cls(gateway, Edit(id=edit_id, package_name=package_name))

    @property
    def edit_id(self) -> str:
        return self.edit.id

    @property
    def package_name(self) -> str:
        return self.edit.package_name

    @property
    def closed(self) -> bool:
        return self._closed

    def _require_open(self) -> None:
        if self._closed:
            raise GatewayError(f"Edit {self.edit_id} for {self.package_name} is no longer open", code="EDIT_CLOSED")

    def _call(self, action: str, fn: Callable[[], T]) -> T:
        self._require_open()
        return _wrap_gateway_call(action, fn)

    # ---- Tracks ----
    def list_tracks(self) -> List[Track]:
        return self._call("Listing tracks", lambda: self.gateway.list_tracks(self.package_name, self.edit_id))

    def get_track(self, track: str) -> Track:
        return self._call(
            f"Reading track {track}", lambda: self.gateway.get_track(self.package_name, self.edit_id, track)
        )

    def update_track(self, track: Track) -> Track:
        name = track.track or ""
        return self._call(
            f"Updating track {name}",
            lambda: self.gateway.update_track(self.package_name, self.edit_id, name, track),
        )

    # ---- Binaries ----
    def upload_binary(self, path: str) -> Dict[str, Any]:
        """Upload an app bundle (.aab) or a single package (anything else).

        Raises:
            OSError: If the local file cannot be read
            GatewayError: If the upload is rejected
        """
        self._require_open()
        upload = self.gateway.upload_bundle if is_bundle(path) else self.gateway.upload_package
        with open(path, "rb") as fh:
            result = _wrap_gateway_call(
                f"Uploading {os.path.basename(path)}", lambda: upload(self.package_name, self.edit_id, fh)
            )
        logger.debug(f"Upload completed for {self.package_name}: {result}")
        return result

    # ---- Store listing ----
    def patch_listing(self, language: str, listing: Listing) -> Dict[str, Any]:
        return self._call(
            f"Patching listing {language}",
            lambda: self.gateway.patch_listing(self.package_name, self.edit_id, language, listing),
        )

    def patch_details(self, details: AppDetails) -> Dict[str, Any]:
        return self._call(
            "Patching app details", lambda: self.gateway.patch_details(self.package_name, self.edit_id, details)
        )

    def upload_image(self, language: str, image_type: str, path: str) -> Dict[str, Any]:
        self._require_open()
        mime_type = detect_image_mime_type(path)
        with open(path, "rb") as fh:
            return _wrap_gateway_call(
                f"Uploading {image_type} image",
                lambda: self.gateway.upload_image(
                    self.package_name, self.edit_id, language, image_type, fh, mime_type
                ),
            )

    def delete_images(self, language: str, image_type: str) -> None:
        self._call(
            f"Deleting {image_type} images",
            lambda: self.gateway.delete_images(self.package_name, self.edit_id, language, image_type),
        )

    # ---- Lifecycle ----
    def commit(self) -> None:
        """Commit the edit. The transaction stays open if the commit fails."""
        self._call("Committing edit", lambda: self.gateway.commit_edit(self.package_name, self.edit_id))
        self._closed = True
        logger.debug(f"Committed edit {self.edit_id} for {self.package_name}")

    def abort(self) -> bool:
        """Delete the edit, best effort. Returns True if the delete went through."""
        if self._closed:
            return False
        self._closed = True
        try:
            self.gateway.delete_edit(self.package_name, self.edit_id)
        except Exception as e:
            logger.warning(f"Failed to delete edit {self.edit_id} for {self.package_name}: {e}")
            return False
        logger.debug(f"Deleted edit {self.edit_id} for {self.package_name}")
        return True
