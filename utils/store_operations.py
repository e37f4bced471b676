#!/usr/bin/env python3
"""Store presence and monetization operations.

Listing, details and image changes run in their own edit; on any failure the
edit is deleted before the failure is reported. Data safety labels and
subscriptions live on non-versioned endpoints and need no edit.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Dict, Optional

from configs.config import Config
from utils.commit_orchestrator import CommitOrchestrator
from utils.edit_transaction import EditTransaction
from utils.play_errors import gateway_error_or_none
from utils.play_models import AppDetails, Listing, OperationResult, Subscription

logger = logging.getLogger(__name__)


def parse_subscription_payload(subscription_json: str, package_name: str, product_id: str) -> Dict[str, Any]:
    """Parse an opaque subscription JSON object and stamp it with the ids.

    Raises:
        ValueError: If the text is not a JSON object
    """
    payload = json.loads(subscription_json)
    if not isinstance(payload, dict):
        raise ValueError("Subscription JSON must be an object")
    payload["packageName"] = package_name
    payload["productId"] = product_id
    return payload


def _subscription_details(package_name: str, product_id: str, subscription: Subscription) -> Dict[str, Any]:
    return {
        "packageName": package_name,
        "productId": product_id,
        "basePlans": len(subscription.base_plans or []),
        "listings": subscription.listing_languages(),
    }


class StoreOperations:
    """Listing, details, image, data safety and subscription changes.

    ``draft_fallback`` routes edit commits through the ``CommitOrchestrator``
    instead of a plain commit.
    """

    def __init__(
        self,
        gateway,
        orchestrator: Optional[CommitOrchestrator] = None,
        *,
        draft_fallback: Optional[bool] = None,
    ) -> None:
        self.gateway = gateway
        self.orchestrator = orchestrator or CommitOrchestrator()
        self.draft_fallback = Config.PLAY_LISTING_DRAFT_FALLBACK if draft_fallback is None else draft_fallback

    def _run_in_edit(self, package_name: str, mutate: Callable[[EditTransaction], None]) -> None:
        transaction = EditTransaction.open(self.gateway, package_name)
        try:
            mutate(transaction)
            if self.draft_fallback:
                self.orchestrator.commit(transaction)
            else:
                transaction.commit()
        except Exception:
            transaction.abort()
            raise

    def update_listing(
        self,
        package_name: str,
        language: str,
        title: Optional[str] = None,
        short_description: Optional[str] = None,
        full_description: Optional[str] = None,
        video: Optional[str] = None,
    ) -> OperationResult:
        logger.info(f"Updating store listing for {package_name} ({language})")
        listing = Listing(
            language=language,
            title=title,
            short_description=short_description,
            full_description=full_description,
            video=video,
        )
        try:
            self._run_in_edit(package_name, lambda tx: tx.patch_listing(language, listing))
        except Exception as e:
            logger.error(f"Failed to update store listing for {package_name} ({language}): {e}")
            return OperationResult(
                success=False,
                message=f"Store listing update failed: {e}",
                details={"packageName": package_name, "language": language},
                error=gateway_error_or_none(e),
            )
        logger.info(f"Store listing updated for {package_name} ({language})")
        return OperationResult(
            success=True,
            message=f"Store listing updated for {package_name} ({language})",
            details={
                "packageName": package_name,
                "language": language,
                "title": title,
                "shortDescription": short_description,
                "fullDescription": full_description,
                "video": video,
            },
        )

    def update_details(
        self,
        package_name: str,
        default_language: Optional[str] = None,
        contact_email: Optional[str] = None,
        contact_phone: Optional[str] = None,
        contact_website: Optional[str] = None,
    ) -> OperationResult:
        logger.info(f"Updating app details for {package_name}")
        details = AppDetails(
            default_language=default_language,
            contact_email=contact_email,
            contact_phone=contact_phone,
            contact_website=contact_website,
        )
        try:
            self._run_in_edit(package_name, lambda tx: tx.patch_details(details))
        except Exception as e:
            logger.error(f"Failed to update app details for {package_name}: {e}")
            return OperationResult(
                success=False,
                message=f"App details update failed: {e}",
                details={"packageName": package_name},
                error=gateway_error_or_none(e),
            )
        logger.info(f"App details updated for {package_name}")
        return OperationResult(
            success=True,
            message=f"App details updated for {package_name}",
            details={
                "packageName": package_name,
                "defaultLanguage": default_language,
                "contactEmail": contact_email,
                "contactPhone": contact_phone,
                "contactWebsite": contact_website,
            },
        )

    def upload_image(
        self,
        package_name: str,
        language: str,
        image_type: str,
        image_path: str,
        clear_existing: bool = False,
    ) -> OperationResult:
        logger.info(f"Uploading {image_type} for {package_name} ({language})")
        failure_details = {"packageName": package_name, "language": language, "imageType": image_type}
        if not os.path.isfile(image_path):
            return OperationResult(
                success=False,
                message=f"Image upload failed: Image file not found: {image_path}",
                details=failure_details,
            )

        def _mutate(tx: EditTransaction) -> None:
            if clear_existing:
                tx.delete_images(language, image_type)
            tx.upload_image(language, image_type, image_path)

        try:
            self._run_in_edit(package_name, _mutate)
        except Exception as e:
            logger.error(f"Failed to upload image for {package_name} ({language}) [{image_type}]: {e}")
            return OperationResult(
                success=False,
                message=f"Image upload failed: {e}",
                details=failure_details,
                error=gateway_error_or_none(e),
            )
        logger.info(f"Image uploaded for {package_name} ({language}) [{image_type}]")
        return OperationResult(
            success=True,
            message=f"Image uploaded for {package_name} ({language}) [{image_type}]",
            details={
                "packageName": package_name,
                "language": language,
                "imageType": image_type,
                "imagePath": image_path,
                "clearExisting": clear_existing,
            },
        )

    def set_data_safety(self, package_name: str, safety_labels_csv: str) -> OperationResult:
        logger.info(f"Updating data safety for {package_name}")
        try:
            self.gateway.update_data_safety(package_name, safety_labels_csv)
        except Exception as e:
            logger.error(f"Failed to update data safety for {package_name}: {e}")
            return OperationResult(
                success=False,
                message=f"Data safety update failed: {e}",
                details={"packageName": package_name},
                error=gateway_error_or_none(e),
            )
        logger.info(f"Data safety updated for {package_name}")
        return OperationResult(
            success=True,
            message=f"Data safety updated for {package_name}",
            details={"packageName": package_name},
        )

    def create_subscription(
        self, package_name: str, product_id: str, regions_version: Optional[str], subscription_json: str
    ) -> OperationResult:
        logger.info(f"Creating subscription {product_id} for {package_name}")
        try:
            payload = parse_subscription_payload(subscription_json, package_name, product_id)
            subscription = self.gateway.create_subscription(package_name, product_id, regions_version, payload)
        except Exception as e:
            logger.error(f"Failed to create subscription {product_id} for {package_name}: {e}")
            return OperationResult(
                success=False,
                message=f"Subscription create failed: {e}",
                details={"packageName": package_name, "productId": product_id},
                error=gateway_error_or_none(e),
            )
        return OperationResult(
            success=True,
            message=f"Subscription created for {package_name} ({product_id})",
            details=_subscription_details(package_name, product_id, subscription),
        )

    def update_subscription(
        self,
        package_name: str,
        product_id: str,
        regions_version: Optional[str],
        subscription_json: str,
        update_mask: Optional[str] = None,
        allow_missing: Optional[bool] = None,
    ) -> OperationResult:
        logger.info(f"Updating subscription {product_id} for {package_name}")
        try:
            payload = parse_subscription_payload(subscription_json, package_name, product_id)
            subscription = self.gateway.patch_subscription(
                package_name, product_id, regions_version, update_mask, allow_missing, payload
            )
        except Exception as e:
            logger.error(f"Failed to update subscription {product_id} for {package_name}: {e}")
            return OperationResult(
                success=False,
                message=f"Subscription update failed: {e}",
                details={"packageName": package_name, "productId": product_id},
                error=gateway_error_or_none(e),
            )
        return OperationResult(
            success=True,
            message=f"Subscription updated for {package_name} ({product_id})",
            details=_subscription_details(package_name, product_id, subscription),
        )
