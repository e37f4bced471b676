#!/usr/bin/env python3
"""Typed argument models for the agent-facing tools.

Each tool validates its raw argument mapping once, at the boundary, before
anything reaches the release operations. Argument names are camelCase, as
published in the tool schemas.
"""
from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, confloat, constr, field_validator, model_validator
from pydantic.alias_generators import to_camel

RequiredText = constr(strip_whitespace=True, min_length=1)

ImageType = Literal[
	"phoneScreenshots",
	"sevenInchScreenshots",
	"tenInchScreenshots",
	"tvScreenshots",
	"wearScreenshots",
	"icon",
	"featureGraphic",
	"promoGraphic",
	"tvBanner",
]


def _is_blank(value: Any) -> bool:
	return value is None or (isinstance(value, str) and not value.strip())


class ToolArgumentError(ValueError):
	"""Raised when tool arguments are missing or malformed."""

	def __init__(self, tool: str, message: str) -> None:
		super().__init__(f"Invalid arguments for {tool}: {message}")
		self.tool = tool
		self.code = "INVALID_ARGUMENTS"


class _ToolRequest(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

	@field_validator("*", mode="before")
	@classmethod
	def _blank_to_none(cls, value: Any) -> Any:
		# Blank optional text is treated as absent
		return None if _is_blank(value) else value


class DeployAppRequest(_ToolRequest):
	"""Deploy a new version of an app to Play Store."""

	package_name: RequiredText = Field(..., description="Package name of the app (e.g., com.example.myapp)")
	track: RequiredText = Field(..., description="Release track: internal, alpha, beta, production")
	apk_path: RequiredText = Field(..., description="Path to APK or AAB file")
	version_code: int = Field(..., description="Version code (must be higher than current)")
	release_notes: Optional[str] = Field(None, description="Release notes for this version")
	rollout_percentage: confloat(ge=0.0, le=1.0) = Field(
		1.0, description="Rollout percentage (0.0 to 1.0, default: 1.0 for full rollout)"
	)

	@field_validator("rollout_percentage", mode="before")
	@classmethod
	def _default_rollout(cls, value: Any) -> Any:
		# Runs ahead of the blank-to-None pass, so blanks are handled here too
		return 1.0 if _is_blank(value) else value


class PromoteReleaseRequest(_ToolRequest):
	"""Promote a release from one track to another (e.g., alpha to beta)."""

	package_name: RequiredText = Field(..., description="Package name of the app")
	from_track: RequiredText = Field(..., description="Source track")
	to_track: RequiredText = Field(..., description="Target track")
	version_code: int = Field(..., description="Version code to promote")


class GetReleasesRequest(_ToolRequest):
	"""Get current status of app releases and deployments for a specific package."""

	package_name: RequiredText = Field(..., description="Package name of the app (e.g., com.example.myapp)")


class UpdateStoreListingRequest(_ToolRequest):
	"""Update localized store listing fields (title, short description, full description, video)."""

	package_name: RequiredText = Field(..., description="Package name of the app")
	language: RequiredText = Field(..., description="BCP-47 language tag for the listing (e.g., en-US)")
	title: Optional[str] = Field(None, description="Store listing title")
	short_description: Optional[str] = Field(None, description="Short description")
	full_description: Optional[str] = Field(None, description="Full description")
	video: Optional[str] = Field(None, description="YouTube video URL")

	@model_validator(mode="after")
	def _require_one_field(self) -> "UpdateStoreListingRequest":
		if not any([self.title, self.short_description, self.full_description, self.video]):
			raise ValueError("At least one of title, shortDescription, fullDescription, or video is required")
		return self


class UpdateAppDetailsRequest(_ToolRequest):
	"""Update app details such as contact info and default language."""

	package_name: RequiredText = Field(..., description="Package name of the app")
	default_language: Optional[str] = Field(None, description="Default language for the app (e.g., en-US)")
	contact_email: Optional[str] = Field(None, description="Contact email address")
	contact_phone: Optional[str] = Field(None, description="Contact phone number")
	contact_website: Optional[str] = Field(None, description="Contact website URL")

	@model_validator(mode="after")
	def _require_one_field(self) -> "UpdateAppDetailsRequest":
		if not any([self.default_language, self.contact_email, self.contact_phone, self.contact_website]):
			raise ValueError(
				"At least one of defaultLanguage, contactEmail, contactPhone, or contactWebsite is required"
			)
		return self


class UploadListingImageRequest(_ToolRequest):
	"""Upload store listing images, including screenshots."""

	package_name: RequiredText = Field(..., description="Package name of the app")
	language: RequiredText = Field(..., description="BCP-47 language tag for the listing (e.g., en-US)")
	image_type: ImageType = Field(..., description="Image type (screenshots, icons, graphics)")
	image_path: RequiredText = Field(..., description="Path to the image file (PNG/JPG/WEBP)")
	clear_existing: bool = Field(False, description="Delete existing images for this type before upload")

	@field_validator("clear_existing", mode="before")
	@classmethod
	def _default_clear(cls, value: Any) -> Any:
		return False if _is_blank(value) else value


class SetDataSafetyRequest(_ToolRequest):
	"""Update Data Safety labels using a CSV payload."""

	package_name: RequiredText = Field(..., description="Package name of the app")
	safety_labels_csv: Optional[str] = Field(None, description="CSV content for Data Safety labels")
	csv_path: Optional[str] = Field(None, description="Path to a CSV file containing Data Safety labels")

	@model_validator(mode="after")
	def _require_payload(self) -> "SetDataSafetyRequest":
		if self.safety_labels_csv is None and self.csv_path is None:
			raise ValueError("Either safetyLabelsCsv or csvPath is required")
		return self


class CreateSubscriptionRequest(_ToolRequest):
	"""Create a monetization subscription from a JSON payload."""

	package_name: RequiredText = Field(..., description="Package name of the app")
	product_id: RequiredText = Field(..., description="Subscription product ID")
	regions_version: RequiredText = Field(..., description="Regions version for pricing/availability")
	subscription_json: Optional[str] = Field(None, description="Subscription JSON payload")
	subscription_json_path: Optional[str] = Field(
		None, description="Path to a JSON file containing subscription payload"
	)

	@model_validator(mode="after")
	def _require_payload(self):
		if self.subscription_json is None and self.subscription_json_path is None:
			raise ValueError("Either subscriptionJson or subscriptionJsonPath is required")
		return self


class UpdateSubscriptionRequest(CreateSubscriptionRequest):
	"""Patch a monetization subscription from a JSON payload."""

	update_mask: RequiredText = Field(..., description="Comma-separated field mask for the update")
	allow_missing: Optional[bool] = Field(None, description="Create subscription if it does not exist")


def parse_request(tool: str, model_cls: Type[_ToolRequest], arguments: Optional[Dict[str, Any]]) -> _ToolRequest:
	"""Validate raw tool arguments into ``model_cls``.

	Raises:
		ToolArgumentError: If required fields are missing or values are invalid
	"""
	try:
		return model_cls.model_validate(arguments or {})
	except ValidationError as e:
		problems = []
		for err in e.errors():
			loc = ".".join(str(part) for part in err.get("loc", ()))
			problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
		raise ToolArgumentError(tool, "; ".join(problems)) from e
