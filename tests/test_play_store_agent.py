"""
Unit tests for the async agent facade.

Tests cover:
- Tool dispatch and report rendering
- Argument validation escalation
- Kill switch and audit records
- Concurrent tool calls
"""

import asyncio
import json

import pytest

from agents.play_store_agent import TOOLS, PlayStoreService, tool_catalogue
from configs.config import Config
from tests.fakes import draft_only_error
from utils.play_errors import GatewayError
from utils.tool_requests import ToolArgumentError


PKG = "com.example.app"


@pytest.fixture
def service(gateway):
    return PlayStoreService(gateway)


class TestCatalogue:
    """Tests for the published tool list."""

    def test_all_tools_listed(self):
        names = [entry["name"] for entry in tool_catalogue()]
        assert names == [
            "deploy_app",
            "promote_release",
            "get_releases",
            "update_store_listing",
            "update_app_details",
            "upload_listing_image",
            "set_data_safety",
            "create_subscription",
            "update_subscription",
        ]

    def test_entries_have_schema_and_description(self):
        for entry in tool_catalogue():
            assert entry["description"]
            assert entry["inputSchema"]["type"] == "object"

    def test_only_get_releases_is_read_only(self):
        assert [name for name, spec in TOOLS.items() if not spec.mutating] == ["get_releases"]


class TestDeployTool:
    """Tests for deploy_app through the facade."""

    @pytest.mark.asyncio
    async def test_success_report(self, service, bundle):
        text = await service.call_tool(
            "deploy_app",
            {"packageName": PKG, "track": "beta", "apkPath": bundle, "versionCode": 42, "rolloutPercentage": 0.5},
        )
        assert text.startswith("🚀 App Deployment Successful\n================================\n")
        assert "Package Name: com.example.app" in text
        assert "Rollout: 50%" in text
        assert "Deployment ID: edit-1" in text
        assert "✅ Successfully deployed to beta track" in text
        assert "Started at:" in text

    @pytest.mark.asyncio
    async def test_draft_app_recovered(self, service, gateway, bundle):
        gateway.fail_on("commit_edit", draft_only_error())
        response = await service.invoke_tool(
            "deploy_app", {"packageName": PKG, "track": "alpha", "apkPath": bundle, "versionCode": 42}
        )
        assert response.success
        assert gateway.count("commit_edit") == 2

    @pytest.mark.asyncio
    async def test_failure_report(self, service, gateway, bundle):
        gateway.fail_on("upload_bundle", GatewayError("Upload rejected", code="BAD_REQUEST"))
        response = await service.invoke_tool(
            "deploy_app", {"packageName": PKG, "track": "alpha", "apkPath": bundle, "versionCode": 42}
        )
        assert not response.success
        assert response.text.startswith("❌ App Deployment Failed")
        assert "Error: Deployment failed:" in response.text
        assert "Details: Uploading app-release.aab failed: Upload rejected" in response.text
        assert "Deployment ID" not in response.text

    @pytest.mark.asyncio
    async def test_invalid_arguments_escalate(self, service, gateway):
        with pytest.raises(ToolArgumentError):
            await service.call_tool("deploy_app", {"packageName": PKG})
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_unknown_tool(self, service):
        with pytest.raises(ToolArgumentError, match="unknown tool"):
            await service.call_tool("rollback_release", {})


class TestOtherTools:
    """Tests for the remaining tools."""

    @pytest.mark.asyncio
    async def test_promote_not_found(self, service):
        text = await service.call_tool(
            "promote_release", {"packageName": PKG, "fromTrack": "alpha", "toTrack": "production", "versionCode": 99}
        )
        assert text.startswith("❌ Release Promotion Failed")
        assert "not found" in text

    @pytest.mark.asyncio
    async def test_promote_success(self, service):
        text = await service.call_tool(
            "promote_release", {"packageName": PKG, "fromTrack": "internal", "toTrack": "beta", "versionCode": 42}
        )
        assert text.startswith("⬆️ Release Promotion Successful")
        assert "Promotion ID: edit-1" in text

    @pytest.mark.asyncio
    async def test_get_releases_json(self, service):
        text = await service.call_tool("get_releases", {"packageName": PKG})
        data = json.loads(text)
        assert data["summary"]["activeReleases"] == 1
        assert data["releases"][0]["track"] == "internal"

    @pytest.mark.asyncio
    async def test_store_listing(self, service):
        text = await service.call_tool(
            "update_store_listing", {"packageName": PKG, "language": "en-US", "fullDescription": "d" * 200}
        )
        assert text.startswith("📝 Store Listing Updated")
        assert "Full Description: " + "d" * 120 + "..." in text
        assert "Title:" not in text

    @pytest.mark.asyncio
    async def test_data_safety_from_file(self, service, gateway, tmp_path):
        csv = tmp_path / "labels.csv"
        csv.write_text("Question ID,Response\n")
        text = await service.call_tool("set_data_safety", {"packageName": PKG, "csvPath": str(csv)})
        assert text.startswith("🛡️ Data Safety Updated")
        assert gateway.calls[0][2] == "Question ID,Response\n"

    @pytest.mark.asyncio
    async def test_data_safety_missing_file(self, service, gateway, tmp_path):
        response = await service.invoke_tool(
            "set_data_safety", {"packageName": PKG, "csvPath": str(tmp_path / "missing.csv")}
        )
        assert not response.success
        assert "CSV file not found" in response.text
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_create_subscription(self, service):
        text = await service.call_tool(
            "create_subscription",
            {
                "packageName": PKG,
                "productId": "pro",
                "regionsVersion": "2022/02",
                "subscriptionJson": json.dumps({"basePlans": [{"basePlanId": "m"}, {"basePlanId": "y"}]}),
            },
        )
        assert text.startswith("✅ Subscription Created")
        assert "Base Plans: 2" in text
        assert "✅ Subscription created" not in text

    @pytest.mark.asyncio
    async def test_update_subscription(self, service):
        response = await service.invoke_tool(
            "update_subscription",
            {
                "packageName": PKG,
                "productId": "pro",
                "regionsVersion": "2022/02",
                "subscriptionJson": "{}",
                "updateMask": "listings",
            },
        )
        assert response.success
        assert "Update Mask: listings" in response.text


class TestSafetyControls:
    """Tests for kill switch, audit and metrics."""

    @pytest.mark.asyncio
    async def test_kill_switch_blocks_mutations(self, service, gateway, bundle, isolated_observability):
        (isolated_observability / "KILL").write_text("stop")
        response = await service.invoke_tool(
            "deploy_app", {"packageName": PKG, "track": "alpha", "apkPath": bundle, "versionCode": 42}
        )
        assert not response.success
        assert "kill switch" in response.text
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_kill_switch_allows_reads(self, service, isolated_observability):
        (isolated_observability / "KILL").write_text("stop")
        response = await service.invoke_tool("get_releases", {"packageName": PKG})
        assert response.success

    @pytest.mark.asyncio
    async def test_mutations_audited(self, service, bundle, isolated_observability):
        await service.call_tool(
            "deploy_app", {"packageName": PKG, "track": "alpha", "apkPath": bundle, "versionCode": 42}
        )
        await service.call_tool("get_releases", {"packageName": PKG})

        lines = (isolated_observability / "audit" / f"{PKG}.audit.log").read_text().splitlines()
        assert len(lines) == 1
        record = json.loads(lines[0])
        assert record["tool"] == "deploy_app"
        assert record["success"] is True
        assert record["details"]["deploymentId"] == "edit-1"

    @pytest.mark.asyncio
    async def test_tool_latency_recorded(self, service, isolated_observability):
        await service.call_tool("get_releases", {"packageName": PKG})
        records = [
            json.loads(line)
            for line in (isolated_observability / "metrics" / "metrics.log").read_text().splitlines()
        ]
        metrics = {r["metric"] for r in records}
        assert "play.tool.latency_s" in metrics
        assert "play.tool.result" in metrics

    @pytest.mark.asyncio
    async def test_unwritable_observability_does_not_fail_tool(self, service, gateway, bundle, tmp_path, monkeypatch):
        """Metrics and audit write failures never escape a tool call."""
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("")
        monkeypatch.setattr(Config, "METRICS_ROOT", str(blocker / "metrics"))
        monkeypatch.setattr(Config, "AUDIT_ROOT", str(blocker / "audit"))
        gateway.fail_on("commit_edit", draft_only_error())

        response = await service.invoke_tool(
            "deploy_app", {"packageName": PKG, "track": "alpha", "apkPath": bundle, "versionCode": 42}
        )

        assert response.success
        assert gateway.count("commit_edit") == 2


class TestConcurrency:
    """Tests for concurrent tool calls."""

    @pytest.mark.asyncio
    async def test_parallel_calls_use_separate_edits(self, service, gateway, bundle):
        results = await asyncio.gather(
            service.invoke_tool(
                "deploy_app", {"packageName": PKG, "track": "alpha", "apkPath": bundle, "versionCode": 50}
            ),
            service.invoke_tool("update_app_details", {"packageName": PKG, "contactEmail": "dev@example.com"}),
            service.invoke_tool("get_releases", {"packageName": PKG}),
        )
        assert all(r.success for r in results)
        assert gateway.count("insert_edit") == 3
        committed = {call[2] for call in gateway.calls if call[0] == "commit_edit"}
        assert len(committed) == 2
