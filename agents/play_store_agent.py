#!/usr/bin/env python3
"""Play Store release agent.

Exposes the release operations (deploy, promote, releases, listing, details,
images, data safety, subscriptions) as named tools with typed arguments.
Each tool call runs its blocking API work in a worker thread so several calls
can be in flight at once.
"""

import asyncio
import json
import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

from configs.config import Config
from clients.play_publisher_client import PlayPublisherClient
from utils import metrics
from utils.audit_log import audit_operation
from utils.deployment_operations import DeploymentOperations
from utils.payload_loader import load_payload
from utils.play_errors import ConfigurationError, ResourceNotFound
from utils.play_models import DeploymentResult, OperationResult
from utils.report_renderer import render_releases, render_report, shorten
from utils.schema_utils import to_json_schema
from utils.store_operations import StoreOperations
from utils.tool_requests import (
	CreateSubscriptionRequest,
	DeployAppRequest,
	GetReleasesRequest,
	PromoteReleaseRequest,
	SetDataSafetyRequest,
	ToolArgumentError,
	UpdateAppDetailsRequest,
	UpdateStoreListingRequest,
	UpdateSubscriptionRequest,
	UploadListingImageRequest,
	parse_request,
)

# Set up logging
logger = logging.getLogger(__name__)

Result = Any  # OperationResult | DeploymentResult


@dataclass(frozen=True)
class ToolResponse:
	success: bool
	text: str


@dataclass(frozen=True)
class ToolSpec:
	name: str
	request_model: Type
	mutating: bool = True

	@property
	def description(self) -> str:
		return (self.request_model.__doc__ or "").strip()

	def catalogue_entry(self) -> Dict[str, Any]:
		return {
			"name": self.name,
			"description": self.description,
			"inputSchema": to_json_schema(self.request_model),
		}


TOOLS: Dict[str, ToolSpec] = {
	spec.name: spec
	for spec in (
		ToolSpec("deploy_app", DeployAppRequest),
		ToolSpec("promote_release", PromoteReleaseRequest),
		ToolSpec("get_releases", GetReleasesRequest, mutating=False),
		ToolSpec("update_store_listing", UpdateStoreListingRequest),
		ToolSpec("update_app_details", UpdateAppDetailsRequest),
		ToolSpec("upload_listing_image", UploadListingImageRequest),
		ToolSpec("set_data_safety", SetDataSafetyRequest),
		ToolSpec("create_subscription", CreateSubscriptionRequest),
		ToolSpec("update_subscription", UpdateSubscriptionRequest),
	)
}


def _audit_details(result: Result) -> Dict[str, Any]:
	if isinstance(result, DeploymentResult):
		return {"track": result.track, "versionCode": result.version_code, "deploymentId": result.deployment_id}
	return dict(result.details)


def kill_switch_active() -> bool:
	return os.path.exists(Config.EMERGENCY_KILL_SWITCH)


class PlayStoreService:
	"""Async facade over the release operations.

	The gateway is shared by every operation and must tolerate concurrent use.
	"""

	def __init__(
		self,
		gateway,
		*,
		deployments: Optional[DeploymentOperations] = None,
		store: Optional[StoreOperations] = None,
	) -> None:
		self.gateway = gateway
		self.deployments = deployments or DeploymentOperations(gateway)
		self.store = store or StoreOperations(gateway, self.deployments.orchestrator)
		self._handlers: Dict[str, Callable[[Any], Awaitable[Tuple[Result, str]]]] = {
			"deploy_app": self._deploy_app,
			"promote_release": self._promote_release,
			"get_releases": self._get_releases,
			"update_store_listing": self._update_store_listing,
			"update_app_details": self._update_app_details,
			"upload_listing_image": self._upload_listing_image,
			"set_data_safety": self._set_data_safety,
			"create_subscription": self._create_subscription,
			"update_subscription": self._update_subscription,
		}
		logger.info("Play Store service initialized")

	# ---- Operations ----
	async def deploy_app(self, req: DeployAppRequest) -> DeploymentResult:
		return await asyncio.to_thread(
			self.deployments.deploy,
			req.package_name,
			req.track,
			req.apk_path,
			req.version_code,
			req.release_notes,
			req.rollout_percentage,
		)

	async def promote_release(self, req: PromoteReleaseRequest) -> DeploymentResult:
		return await asyncio.to_thread(
			self.deployments.promote, req.package_name, req.from_track, req.to_track, req.version_code
		)

	async def get_releases(self, req: GetReleasesRequest) -> OperationResult:
		return await asyncio.to_thread(self.deployments.get_releases, req.package_name)

	async def update_store_listing(self, req: UpdateStoreListingRequest) -> OperationResult:
		return await asyncio.to_thread(
			self.store.update_listing,
			req.package_name,
			req.language,
			req.title,
			req.short_description,
			req.full_description,
			req.video,
		)

	async def update_app_details(self, req: UpdateAppDetailsRequest) -> OperationResult:
		return await asyncio.to_thread(
			self.store.update_details,
			req.package_name,
			req.default_language,
			req.contact_email,
			req.contact_phone,
			req.contact_website,
		)

	async def upload_listing_image(self, req: UploadListingImageRequest) -> OperationResult:
		return await asyncio.to_thread(
			self.store.upload_image, req.package_name, req.language, req.image_type, req.image_path, req.clear_existing
		)

	async def set_data_safety(self, req: SetDataSafetyRequest) -> OperationResult:
		def _run() -> OperationResult:
			try:
				csv_text = load_payload(req.safety_labels_csv, req.csv_path, kind="CSV")
			except ResourceNotFound as e:
				return OperationResult(
					success=False, message=f"Data safety update failed: {e}", details={"packageName": req.package_name}
				)
			return self.store.set_data_safety(req.package_name, csv_text)

		return await asyncio.to_thread(_run)

	async def create_subscription(self, req: CreateSubscriptionRequest) -> OperationResult:
		def _run() -> OperationResult:
			try:
				payload = load_payload(req.subscription_json, req.subscription_json_path, kind="Subscription JSON")
			except ResourceNotFound as e:
				return OperationResult(
					success=False,
					message=f"Subscription create failed: {e}",
					details={"packageName": req.package_name, "productId": req.product_id},
				)
			return self.store.create_subscription(req.package_name, req.product_id, req.regions_version, payload)

		return await asyncio.to_thread(_run)

	async def update_subscription(self, req: UpdateSubscriptionRequest) -> OperationResult:
		def _run() -> OperationResult:
			try:
				payload = load_payload(req.subscription_json, req.subscription_json_path, kind="Subscription JSON")
			except ResourceNotFound as e:
				return OperationResult(
					success=False,
					message=f"Subscription update failed: {e}",
					details={"packageName": req.package_name, "productId": req.product_id},
				)
			return self.store.update_subscription(
				req.package_name, req.product_id, req.regions_version, payload, req.update_mask, req.allow_missing
			)

		return await asyncio.to_thread(_run)

	# ---- Tool dispatch ----
	async def invoke_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> ToolResponse:
		"""Validate arguments, run the tool and render its report.

		Raises:
			ToolArgumentError: If the tool is unknown or arguments are invalid
		"""
		spec = TOOLS.get(name)
		if spec is None:
			raise ToolArgumentError(name, f"unknown tool (available: {', '.join(TOOLS)})")
		req = parse_request(name, spec.request_model, arguments)

		if spec.mutating and kill_switch_active():
			logger.error(f"Emergency kill switch active; refusing {name}")
			return ToolResponse(False, "❌ Emergency kill switch active. No changes were made.\n")

		logger.info(f"{name} tool called for {req.package_name}")
		with metrics.Timer("play.tool", tool=name):
			result, text = await self._handlers[name](req)
		metrics.incr("play.tool.result", tool=name, success=result.success)
		if spec.mutating:
			audit_operation(name, req.package_name, result.success, result.message, _audit_details(result))
		return ToolResponse(result.success, text)

	async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
		return (await self.invoke_tool(name, arguments)).text

	# ---- Tool handlers: run + render ----
	async def _deploy_app(self, req: DeployAppRequest) -> Tuple[Result, str]:
		result = await self.deploy_app(req)
		fields = [("Package Name", req.package_name), ("Track", req.track), ("Version Code", req.version_code)]
		return result, render_report(
			result,
			success_title="🚀 App Deployment Successful",
			failure_title="❌ App Deployment Failed",
			fields=fields,
			success_fields=[("Rollout", f"{int(req.rollout_percentage * 100)}%"), ("Deployment ID", result.deployment_id)],
			timestamp_label="Started at",
		)

	async def _promote_release(self, req: PromoteReleaseRequest) -> Tuple[Result, str]:
		result = await self.promote_release(req)
		fields = [
			("Package Name", req.package_name),
			("Version Code", req.version_code),
			("From Track", req.from_track),
			("To Track", req.to_track),
		]
		return result, render_report(
			result,
			success_title="⬆️ Release Promotion Successful",
			failure_title="❌ Release Promotion Failed",
			fields=fields,
			success_fields=[("Promotion ID", result.deployment_id)],
		)

	async def _get_releases(self, req: GetReleasesRequest) -> Tuple[Result, str]:
		result = await self.get_releases(req)
		return result, render_releases(result)

	async def _update_store_listing(self, req: UpdateStoreListingRequest) -> Tuple[Result, str]:
		result = await self.update_store_listing(req)
		return result, render_report(
			result,
			success_title="📝 Store Listing Updated",
			failure_title="❌ Store Listing Update Failed",
			fields=[("Package Name", req.package_name), ("Language", req.language)],
			success_fields=[
				("Title", req.title),
				("Short Description", req.short_description),
				("Full Description", shorten(req.full_description)),
				("Video", req.video),
			],
		)

	async def _update_app_details(self, req: UpdateAppDetailsRequest) -> Tuple[Result, str]:
		result = await self.update_app_details(req)
		return result, render_report(
			result,
			success_title="📇 App Details Updated",
			failure_title="❌ App Details Update Failed",
			fields=[("Package Name", req.package_name)],
			success_fields=[
				("Default Language", req.default_language),
				("Contact Email", req.contact_email),
				("Contact Phone", req.contact_phone),
				("Contact Website", req.contact_website),
			],
		)

	async def _upload_listing_image(self, req: UploadListingImageRequest) -> Tuple[Result, str]:
		result = await self.upload_listing_image(req)
		return result, render_report(
			result,
			success_title="🖼️ Listing Image Uploaded",
			failure_title="❌ Listing Image Upload Failed",
			fields=[("Package Name", req.package_name), ("Language", req.language), ("Image Type", req.image_type)],
			success_fields=[("Image Path", req.image_path), ("Clear Existing", req.clear_existing)],
		)

	async def _set_data_safety(self, req: SetDataSafetyRequest) -> Tuple[Result, str]:
		result = await self.set_data_safety(req)
		return result, render_report(
			result,
			success_title="🛡️ Data Safety Updated",
			failure_title="❌ Data Safety Update Failed",
			fields=[("Package Name", req.package_name)],
			success_fields=[("CSV Path", req.csv_path)],
		)

	async def _create_subscription(self, req: CreateSubscriptionRequest) -> Tuple[Result, str]:
		result = await self.create_subscription(req)
		return result, render_report(
			result,
			success_title="✅ Subscription Created",
			failure_title="❌ Subscription Create Failed",
			fields=[("Package Name", req.package_name), ("Product ID", req.product_id)],
			success_fields=[
				("Regions Version", req.regions_version),
				("Base Plans", result.details.get("basePlans")),
			],
			success_marker="",
		)

	async def _update_subscription(self, req: UpdateSubscriptionRequest) -> Tuple[Result, str]:
		result = await self.update_subscription(req)
		return result, render_report(
			result,
			success_title="✅ Subscription Updated",
			failure_title="❌ Subscription Update Failed",
			fields=[("Package Name", req.package_name), ("Product ID", req.product_id)],
			success_fields=[
				("Regions Version", req.regions_version),
				("Update Mask", req.update_mask),
				("Allow Missing", req.allow_missing),
			],
			success_marker="",
		)


def tool_catalogue() -> List[Dict[str, Any]]:
	return [spec.catalogue_entry() for spec in TOOLS.values()]


def build_service(key_path: Optional[str] = None) -> PlayStoreService:
	"""Create the API client once and wire every operation to it.

	Raises:
		ConfigurationError: If the service account key is missing or invalid
	"""
	gateway = PlayPublisherClient.from_service_account_file(key_path)
	return PlayStoreService(gateway)


def main():
	"""CLI entry point for the Play Store release agent."""
	import argparse

	parser = argparse.ArgumentParser(
		description="Play Store Release Agent - deploy, promote and manage Google Play releases",
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  python -m agents.play_store_agent tools
  python -m agents.play_store_agent call get_releases --arguments '{"packageName": "com.example.app"}'
  python -m agents.play_store_agent call deploy_app --arguments '{"packageName": "com.example.app", "track": "internal", "apkPath": "app.aab", "versionCode": 42}'
		""",
	)
	parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
	parser.add_argument("--key", required=False, help="Service account key file (defaults to PLAY_SERVICE_ACCOUNT_KEY)")
	sub = parser.add_subparsers(dest="command", required=True)

	sub.add_parser("tools", help="List available tools and their input schemas")

	call = sub.add_parser("call", help="Call a tool")
	call.add_argument("tool", choices=sorted(TOOLS))
	call.add_argument("--arguments", default="{}", help="Tool arguments as a JSON object")

	args = parser.parse_args()

	log_level = logging.DEBUG if args.verbose else logging.INFO
	logging.basicConfig(
		level=log_level,
		format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
	)
	if not args.verbose:
		logging.getLogger("clients.play_publisher_client").setLevel(logging.WARNING)
		logging.getLogger("urllib3").setLevel(logging.WARNING)

	if args.command == "tools":
		print(json.dumps(tool_catalogue(), indent=2))
		sys.exit(0)

	if kill_switch_active():
		print("Error: Emergency kill switch active. Aborting.", file=sys.stderr)
		sys.exit(1)

	try:
		arguments = json.loads(args.arguments)
	except json.JSONDecodeError as e:
		print(f"Error: --arguments is not valid JSON: {e}", file=sys.stderr)
		sys.exit(1)
	if not isinstance(arguments, dict):
		print("Error: --arguments must be a JSON object", file=sys.stderr)
		sys.exit(1)

	try:
		service = build_service(args.key)
		response = asyncio.run(service.invoke_tool(args.tool, arguments))
	except ConfigurationError as e:
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)
	except ToolArgumentError as e:
		print(f"Error: {e}", file=sys.stderr)
		sys.exit(1)

	print(response.text)
	sys.exit(0 if response.success else 1)


if __name__ == "__main__":
	main()
