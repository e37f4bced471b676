"""
Shared fixtures for the Play Store agent tests.
"""

import pytest

from configs.config import Config
from tests.fakes import FakePublisherGateway
from utils.play_models import Track, TrackRelease


@pytest.fixture(autouse=True)
def isolated_observability(tmp_path, monkeypatch):
    """Keep metrics, audit records and the kill switch inside tmp_path."""
    monkeypatch.setattr(Config, "METRICS_ENABLED", True)
    monkeypatch.setattr(Config, "METRICS_ROOT", str(tmp_path / "metrics"))
    monkeypatch.setattr(Config, "AUDIT_ENABLED", True)
    monkeypatch.setattr(Config, "AUDIT_ROOT", str(tmp_path / "audit"))
    monkeypatch.setattr(Config, "EMERGENCY_KILL_SWITCH", str(tmp_path / "KILL"))
    monkeypatch.setattr(Config, "PLAY_LISTING_DRAFT_FALLBACK", False)
    return tmp_path


@pytest.fixture
def gateway():
    """Gateway with an internal track holding one staged release."""
    return FakePublisherGateway(
        tracks=[
            Track(
                track="internal",
                releases=[
                    TrackRelease(
                        name="Release 42",
                        version_codes=[42],
                        status="inProgress",
                        user_fraction=0.1,
                    )
                ],
            )
        ]
    )


@pytest.fixture
def bundle(tmp_path):
    path = tmp_path / "app-release.aab"
    path.write_bytes(b"bundle-bytes")
    return str(path)
