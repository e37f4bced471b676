"""
Unit tests for the edit transaction.

Tests cover:
- Scoping of calls to the open edit
- Binary format selection
- Commit and abort lifecycle
"""

import pytest

from utils.edit_transaction import EditTransaction, detect_image_mime_type, is_bundle
from utils.play_errors import GatewayError
from utils.play_models import Track


class TestHelpers:
    """Tests for path helpers."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("shot.png", "image/png"),
            ("shot.JPG", "image/jpeg"),
            ("shot.jpeg", "image/jpeg"),
            ("icon.webp", "image/webp"),
            ("graphic.gif", "application/octet-stream"),
        ],
    )
    def test_image_mime_type(self, path, expected):
        assert detect_image_mime_type(path) == expected

    def test_bundle_by_suffix(self):
        assert is_bundle("app.aab")
        assert is_bundle("APP.AAB")
        assert not is_bundle("app.apk")


class TestEditTransaction:
    """Tests for EditTransaction."""

    def test_open_inserts_edit(self, gateway):
        tx = EditTransaction.open(gateway, "com.example.app")
        assert tx.edit_id == "edit-1"
        assert tx.package_name == "com.example.app"
        assert not tx.closed

    def test_open_failure_wrapped(self, gateway):
        """Insert failures surface as GatewayError with the cause kept."""
        cause = GatewayError("denied", code="UNAUTHORIZED")
        gateway.fail_on("insert_edit", cause)
        with pytest.raises(GatewayError) as exc_info:
            EditTransaction.open(gateway, "com.example.app")
        assert exc_info.value.code == "UNAUTHORIZED"
        assert exc_info.value.__cause__ is cause

    def test_calls_scoped_to_edit(self, gateway):
        tx = EditTransaction.open(gateway, "com.example.app")
        tx.update_track(Track(track="beta", releases=[]))
        assert gateway.calls[-1][:4] == ("update_track", "com.example.app", "edit-1", "beta")

    def test_bundle_upload(self, gateway, bundle):
        tx = EditTransaction.open(gateway, "com.example.app")
        tx.upload_binary(bundle)
        assert gateway.count("upload_bundle") == 1
        assert gateway.uploads[0]["bytes"] == b"bundle-bytes"

    def test_package_upload(self, gateway, tmp_path):
        apk = tmp_path / "app.apk"
        apk.write_bytes(b"apk")
        tx = EditTransaction.open(gateway, "com.example.app")
        tx.upload_binary(str(apk))
        assert gateway.count("upload_package") == 1
        assert gateway.count("upload_bundle") == 0

    def test_image_upload_passes_mime_type(self, gateway, tmp_path):
        image = tmp_path / "icon.png"
        image.write_bytes(b"png")
        tx = EditTransaction.open(gateway, "com.example.app")
        tx.upload_image("en-US", "icon", str(image))
        assert gateway.calls[-1][-1] == "image/png"

    def test_commit_closes(self, gateway):
        tx = EditTransaction.open(gateway, "com.example.app")
        tx.commit()
        assert tx.closed
        with pytest.raises(GatewayError) as exc_info:
            tx.list_tracks()
        assert exc_info.value.code == "EDIT_CLOSED"

    def test_failed_commit_stays_open(self, gateway):
        """A rejected commit can be retried on the same edit."""
        gateway.fail_on("commit_edit", GatewayError("rejected"))
        tx = EditTransaction.open(gateway, "com.example.app")
        with pytest.raises(GatewayError):
            tx.commit()
        assert not tx.closed
        tx.commit()
        assert tx.closed

    def test_abort_deletes_once(self, gateway):
        tx = EditTransaction.open(gateway, "com.example.app")
        assert tx.abort() is True
        assert tx.abort() is False
        assert gateway.count("delete_edit") == 1

    def test_abort_after_commit_is_noop(self, gateway):
        tx = EditTransaction.open(gateway, "com.example.app")
        tx.commit()
        assert tx.abort() is False
        assert gateway.count("delete_edit") == 0

    def test_abort_swallows_delete_failure(self, gateway):
        gateway.fail_on("delete_edit", GatewayError("gone"))
        tx = EditTransaction.open(gateway, "com.example.app")
        assert tx.abort() is False
        assert tx.closed

    def test_unreadable_binary_is_local_error(self, gateway, tmp_path):
        """Local read failures are not reported as API failures."""
        build = tmp_path / "build.aab"
        build.mkdir()
        tx = EditTransaction.open(gateway, "com.example.app")
        with pytest.raises(OSError) as exc_info:
            tx.upload_binary(str(build))
        assert not isinstance(exc_info.value, GatewayError)
        assert gateway.count("upload_bundle") == 0

    def test_unreadable_image_is_local_error(self, gateway, tmp_path):
        folder = tmp_path / "icon.png"
        folder.mkdir()
        tx = EditTransaction.open(gateway, "com.example.app")
        with pytest.raises(OSError):
            tx.upload_image("en-US", "icon", str(folder))
        assert gateway.count("upload_image") == 0
