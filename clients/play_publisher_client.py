#!/usr/bin/env python3
"""Google Play Developer API (androidpublisher v3) REST client.

This module is the gateway between the release operations and the remote API.
It authenticates with a service account key, maps HTTP failures to typed
``PlayApiError`` codes and parses responses into the models of
``utils.play_models``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, BinaryIO, Dict, List, Optional, Protocol, Tuple

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from configs.config import Config
from utils.play_errors import ConfigurationError, GatewayError
from utils.play_models import AppDetails, Listing, Subscription, Track

logger = logging.getLogger(__name__)


class PlayApiError(GatewayError):
    """HTTP or transport failure returned by the Play Developer API."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN",
        status: Optional[int] = None,
        details: Optional[List[str]] = None,
    ) -> None:
        super().__init__(message, code=code, details=details)
        self.status = status


class PublisherGateway(Protocol):
    """Remote API surface consumed by the edit transaction and operations."""

    def insert_edit(self, package_name: str) -> str: ...
    def commit_edit(self, package_name: str, edit_id: str) -> None: ...
    def delete_edit(self, package_name: str, edit_id: str) -> None: ...
    def list_tracks(self, package_name: str, edit_id: str) -> List[Track]: ...
    def get_track(self, package_name: str, edit_id: str, track: str) -> Track: ...
    def update_track(self, package_name: str, edit_id: str, track: str, body: Track) -> Track: ...
    def upload_bundle(self, package_name: str, edit_id: str, content: BinaryIO) -> Dict[str, Any]: ...
    def upload_package(self, package_name: str, edit_id: str, content: BinaryIO) -> Dict[str, Any]: ...
    def patch_listing(self, package_name: str, edit_id: str, language: str, listing: Listing) -> Dict[str, Any]: ...
    def patch_details(self, package_name: str, edit_id: str, details: AppDetails) -> Dict[str, Any]: ...
    def upload_image(
        self, package_name: str, edit_id: str, language: str, image_type: str, content: BinaryIO, mime_type: str
    ) -> Dict[str, Any]: ...
    def delete_images(self, package_name: str, edit_id: str, language: str, image_type: str) -> None: ...
    def update_data_safety(self, package_name: str, safety_labels_csv: str) -> None: ...
    def create_subscription(
        self, package_name: str, product_id: str, regions_version: Optional[str], payload: Dict[str, Any]
    ) -> Subscription: ...
    def patch_subscription(
        self,
        package_name: str,
        product_id: str,
        regions_version: Optional[str],
        update_mask: Optional[str],
        allow_missing: Optional[bool],
        payload: Dict[str, Any],
    ) -> Subscription: ...


def _error_details(body: Any) -> Tuple[str, List[str]]:
    """Extract the top-level message and detail messages from a Google JSON error body."""
    if not isinstance(body, dict):
        return "", []
    err = body.get("error")
    if not isinstance(err, dict):
        return "", []
    details: List[str] = []
    for key in ("errors", "details"):
        for item in err.get(key) or []:
            if isinstance(item, dict) and item.get("message"):
                details.append(str(item["message"]))
    return str(err.get("message") or ""), details


def _code_for_status(status: int) -> str:
    if status in (401, 403):
        return "UNAUTHORIZED"
    if status == 404:
        return "NOT_FOUND"
    if status == 409:
        return "CONFLICT"
    if status == 429:
        return "RATE_LIMIT"
    if status >= 500:
        return "NETWORK"
    return "BAD_REQUEST"


class PlayPublisherClient:
    """Client for the androidpublisher v3 REST API.

    The session is created once and reused; ``requests`` sessions are safe to
    share between worker threads for independent requests.
    """

    def __init__(
        self,
        session: requests.Session,
        *,
        base_url: Optional[str] = None,
        connect_timeout_s: Optional[int] = None,
        read_timeout_s: Optional[int] = None,
    ) -> None:
        play_config = Config.get_play_config()
        self.session = session
        self.base_url = (base_url or play_config["base_url"]).rstrip("/")
        self.timeout = (
            connect_timeout_s or play_config["connect_timeout_s"],
            read_timeout_s or play_config["read_timeout_s"],
        )

    @classmethod
    def from_service_account_file(
        cls,
        key_path: Optional[str] = None,
        *,
        application_name: Optional[str] = None,
        read_retries: Optional[int] = None,
    ) -> "PlayPublisherClient":
        """Build a client authenticated with a service account key file.

        Raises:
            ConfigurationError: If the key file is missing or cannot be loaded
        """
        play_config = Config.get_play_config()
        key_path = key_path or play_config["key_path"]
        if not os.path.exists(key_path):
            raise ConfigurationError(f"Service account key not found: {key_path}")

        logger.info("Initializing Google Play Developer API client...")
        try:
            credentials = service_account.Credentials.from_service_account_file(
                key_path, scopes=[Config.PLAY_API_SCOPE]
            )
        except (GoogleAuthError, ValueError, OSError) as e:
            logger.error(f"Failed to load service account key {key_path}: {e}")
            raise ConfigurationError(f"Failed to initialize API client: {e}") from e

        session = AuthorizedSession(credentials)
        session.headers.update({
            "User-Agent": application_name or play_config["application_name"],
        })
        # Only idempotent reads are retried; edits must not be replayed blindly
        retry_strategy = Retry(
            total=read_retries if read_retries is not None else play_config["read_retries"],
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=1,
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )
        session.mount("https://", HTTPAdapter(max_retries=retry_strategy))

        logger.info("Google Play Developer API client initialized successfully")
        return cls(session)

    # ---- URL helpers ----
    def _app_url(self, package_name: str) -> str:
        return f"{self.base_url}/androidpublisher/v3/applications/{package_name}"

    def _edit_url(self, package_name: str, edit_id: str) -> str:
        return f"{self._app_url(package_name)}/edits/{edit_id}"

    def _upload_url(self, package_name: str, edit_id: str, suffix: str) -> str:
        return f"{self.base_url}/upload/androidpublisher/v3/applications/{package_name}/edits/{edit_id}/{suffix}"

    # ---- HTTP ----
    def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        content_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"Accept": "application/json"}
        if content_type:
            headers["Content-Type"] = content_type
        try:
            logger.debug(f"{method} {url}")
            resp = self.session.request(
                method,
                url,
                json=json_body,
                params=params,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            raise PlayApiError(f"Timeout calling {method} {url}", code="TIMEOUT") from e
        except requests.RequestException as e:
            raise PlayApiError(f"Request failed for {method} {url}: {e}", code="NETWORK") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message, details = _error_details(body)
            raise PlayApiError(
                message or f"HTTP {resp.status_code}",
                code=_code_for_status(resp.status_code),
                status=resp.status_code,
                details=details,
            )
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise PlayApiError(f"Invalid JSON in response from {method} {url}", code="BAD_RESPONSE") from e

    # ---- Edits ----
    def insert_edit(self, package_name: str) -> str:
        data = self._request("POST", f"{self._app_url(package_name)}/edits", json_body={})
        edit_id = data.get("id")
        if not edit_id:
            raise PlayApiError("Edit insert returned no id", code="BAD_RESPONSE")
        return str(edit_id)

    def commit_edit(self, package_name: str, edit_id: str) -> None:
        self._request("POST", f"{self._edit_url(package_name, edit_id)}:commit")

    def delete_edit(self, package_name: str, edit_id: str) -> None:
        self._request("DELETE", self._edit_url(package_name, edit_id))

    # ---- Tracks ----
    def list_tracks(self, package_name: str, edit_id: str) -> List[Track]:
        data = self._request("GET", f"{self._edit_url(package_name, edit_id)}/tracks")
        return [Track.model_validate(item) for item in data.get("tracks") or []]

    def get_track(self, package_name: str, edit_id: str, track: str) -> Track:
        data = self._request("GET", f"{self._edit_url(package_name, edit_id)}/tracks/{track}")
        return Track.model_validate(data)

    def update_track(self, package_name: str, edit_id: str, track: str, body: Track) -> Track:
        data = self._request(
            "PUT", f"{self._edit_url(package_name, edit_id)}/tracks/{track}", json_body=body.to_wire()
        )
        return Track.model_validate(data)

    # ---- Binaries ----
    def upload_bundle(self, package_name: str, edit_id: str, content: BinaryIO) -> Dict[str, Any]:
        return self._request(
            "POST",
            self._upload_url(package_name, edit_id, "bundles"),
            params={"uploadType": "media"},
            data=content,
            content_type="application/octet-stream",
        )

    def upload_package(self, package_name: str, edit_id: str, content: BinaryIO) -> Dict[str, Any]:
        return self._request(
            "POST",
            self._upload_url(package_name, edit_id, "apks"),
            params={"uploadType": "media"},
            data=content,
            content_type="application/vnd.android.package-archive",
        )

    # ---- Listings, details, images ----
    def patch_listing(self, package_name: str, edit_id: str, language: str, listing: Listing) -> Dict[str, Any]:
        return self._request(
            "PATCH", f"{self._edit_url(package_name, edit_id)}/listings/{language}", json_body=listing.to_wire()
        )

    def patch_details(self, package_name: str, edit_id: str, details: AppDetails) -> Dict[str, Any]:
        return self._request("PATCH", f"{self._edit_url(package_name, edit_id)}/details", json_body=details.to_wire())

    def upload_image(
        self, package_name: str, edit_id: str, language: str, image_type: str, content: BinaryIO, mime_type: str
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            self._upload_url(package_name, edit_id, f"listings/{language}/{image_type}"),
            params={"uploadType": "media"},
            data=content,
            content_type=mime_type,
        )

    def delete_images(self, package_name: str, edit_id: str, language: str, image_type: str) -> None:
        self._request("DELETE", f"{self._edit_url(package_name, edit_id)}/listings/{language}/{image_type}")

    # ---- Non-versioned endpoints ----
    def update_data_safety(self, package_name: str, safety_labels_csv: str) -> None:
        self._request("POST", f"{self._app_url(package_name)}/dataSafety", json_body={"safetyLabels": safety_labels_csv})

    def create_subscription(
        self, package_name: str, product_id: str, regions_version: Optional[str], payload: Dict[str, Any]
    ) -> Subscription:
        params: Dict[str, Any] = {"productId": product_id}
        if regions_version:
            params["regionsVersion.version"] = regions_version
        data = self._request(
            "POST", f"{self._app_url(package_name)}/subscriptions", json_body=payload, params=params
        )
        return Subscription.model_validate(data)

    def patch_subscription(
        self,
        package_name: str,
        product_id: str,
        regions_version: Optional[str],
        update_mask: Optional[str],
        allow_missing: Optional[bool],
        payload: Dict[str, Any],
    ) -> Subscription:
        params: Dict[str, Any] = {}
        if regions_version:
            params["regionsVersion.version"] = regions_version
        if update_mask:
            params["updateMask"] = update_mask
        if allow_missing is not None:
            params["allowMissing"] = json.dumps(allow_missing)
        data = self._request(
            "PATCH", f"{self._app_url(package_name)}/subscriptions/{product_id}", json_body=payload, params=params
        )
        return Subscription.model_validate(data)
