import os
from typing import Dict, Any

from dotenv import load_dotenv

load_dotenv()


class Config:
	"""Configuration for the Play Store release agent."""

	# Google Play Developer API
	PLAY_SERVICE_ACCOUNT_KEY = os.getenv("PLAY_SERVICE_ACCOUNT_KEY", "service-account.json")
	PLAY_APPLICATION_NAME = os.getenv("PLAY_APPLICATION_NAME", "Play Store Release Agent")
	PLAY_API_BASE_URL = os.getenv("PLAY_API_BASE_URL", "https://androidpublisher.googleapis.com").rstrip('/')
	PLAY_API_SCOPE = "https://www.googleapis.com/auth/androidpublisher"
	# Large bundle uploads need a generous read timeout
	PLAY_CONNECT_TIMEOUT_S = int(os.getenv("PLAY_CONNECT_TIMEOUT_S", "60"))
	PLAY_READ_TIMEOUT_S = int(os.getenv("PLAY_READ_TIMEOUT_S", "600"))
	PLAY_READ_RETRIES = int(os.getenv("PLAY_READ_RETRIES", "3"))

	# Release defaults
	PLAY_DEFAULT_LANGUAGE = os.getenv("PLAY_DEFAULT_LANGUAGE", "en-US")
	PLAY_LISTING_DRAFT_FALLBACK = bool(int(os.getenv("PLAY_LISTING_DRAFT_FALLBACK", "0")))

	# Observability
	METRICS_ROOT = os.getenv("METRICS_ROOT", ".cache/play_store/metrics")
	METRICS_ENABLED = bool(int(os.getenv("METRICS_ENABLED", "1")))
	AUDIT_ROOT = os.getenv("AUDIT_ROOT", ".cache/play_store/audit")
	AUDIT_ENABLED = bool(int(os.getenv("AUDIT_ENABLED", "1")))

	EMERGENCY_KILL_SWITCH = os.getenv("EMERGENCY_KILL_SWITCH", ".cache/play_store/KILL")

	@classmethod
	def get_play_config(cls) -> Dict[str, Any]:
		"""Get Google Play client configuration."""
		return {
			"key_path": cls.PLAY_SERVICE_ACCOUNT_KEY,
			"application_name": cls.PLAY_APPLICATION_NAME,
			"base_url": cls.PLAY_API_BASE_URL,
			"connect_timeout_s": cls.PLAY_CONNECT_TIMEOUT_S,
			"read_timeout_s": cls.PLAY_READ_TIMEOUT_S,
			"read_retries": cls.PLAY_READ_RETRIES,
		}

	@classmethod
	def observability(cls) -> Dict[str, Any]:
		return {
			"metrics_root": cls.METRICS_ROOT,
			"metrics_enabled": cls.METRICS_ENABLED,
			"audit_root": cls.AUDIT_ROOT,
			"audit_enabled": cls.AUDIT_ENABLED,
			"kill_switch": cls.EMERGENCY_KILL_SWITCH,
		}
