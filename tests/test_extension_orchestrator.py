# Test Extension Download Orchestrator
#
# Unit and integration tests for ExtensionDownloadOrchestrator with mocked HTTP.

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from offline_vsix.constants import (
    ERROR_TYPE_FETCH,
    ERROR_TYPE_FILE_NAME,
    ERROR_TYPE_IDENTIFIER,
    ERROR_TYPE_QUERY,
    ERROR_TYPE_RESOLUTION,
    ERROR_TYPE_VERSION,
)
from offline_vsix.exceptions import DestinationError
from offline_vsix.extensions import orchestrator as orchestrator_module
from offline_vsix.extensions.files import FileOperations
from offline_vsix.extensions.orchestrator import ExtensionDownloadOrchestrator, run

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]

BASE = "https://marketplace.visualstudio.com/_apis/public/gallery"
PAYLOAD = b"PK\x03\x04python-extension"


def _query_document(versions):
    return {"results": [{"extensions": [{"versions": versions}]}]}


@pytest.fixture
def session(make_response):
    """
    Provide a mocked session answering every query with a win32-x64 build of 1.2.3
    and every download with PAYLOAD.
    """
    mock_session = MagicMock()
    mock_session.post.return_value = make_response(
        json_data=_query_document([{"version": "1.2.3", "targetPlatform": "win32-x64"}])
    )
    mock_session.get.return_value = make_response(body=PAYLOAD)
    return mock_session


class TestEndToEnd:
    """Full pipeline runs against a mocked marketplace."""

    @pytest.mark.integration
    def test_platform_specific_download(self, tmp_path, session):
        destination = tmp_path / "extensions"
        orch = ExtensionDownloadOrchestrator(
            destination, session=session, native_platform="win32-x64"
        )

        results = orch.run(["ms.python"])

        assert len(results) == 1
        result = results[0]
        expected_url = f"{BASE}/publishers/ms/vsextensions/python/1.2.3/vspackage?targetPlatform=win32-x64"
        assert result.success is True
        assert result.was_downloaded is True
        assert result.version == "1.2.3"
        assert result.platform == "win32-x64"
        assert result.download_url == expected_url
        assert result.file_path == destination / "ms.python-1.2.3@win32-x64.vsix"
        assert result.bytes_written == len(PAYLOAD)
        assert (destination / "ms.python-1.2.3@win32-x64.vsix").read_bytes() == PAYLOAD
        assert session.get.call_args[0][0] == expected_url

    @pytest.mark.integration
    def test_override_platform_download(self, tmp_path, session):
        orch = ExtensionDownloadOrchestrator(
            tmp_path,
            platform_override="win32-x64",
            session=session,
            native_platform="linux-x64",
        )
        results = orch.run(["ms.python"])
        assert results[0].file_path.name == "ms.python-1.2.3@win32-x64.vsix"

    @pytest.mark.integration
    def test_agnostic_release(self, tmp_path, session, make_response):
        session.post.return_value = make_response(
            json_data=_query_document([{"version": "0.9.0"}])
        )
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="linux-x64"
        )
        result = orch.run(["redhat.vscode-yaml"])[0]
        assert result.platform is None
        assert result.download_url == f"{BASE}/publishers/redhat/vsextensions/vscode-yaml/0.9.0/vspackage"
        assert (tmp_path / "redhat.vscode-yaml-0.9.0.vsix").exists()

    def test_unsupported_override_uses_agnostic_with_warning(
        self, tmp_path, session, make_response
    ):
        session.post.return_value = make_response(
            json_data=_query_document(
                [{"version": "2.0.0", "targetPlatform": "win32-x64"}, {"version": "1.0.0"}]
            )
        )
        orch = ExtensionDownloadOrchestrator(
            tmp_path,
            platform_override="darwin-arm64",
            session=session,
            native_platform="linux-x64",
        )
        logger = logging.getLogger("offline_vsix")
        with patch.object(logger, "warning") as mock_warning:
            result = orch.run(["pub.ext"])[0]
        assert result.success is True
        assert result.platform is None
        assert result.version == "1.0.0"
        mock_warning.assert_called_once()
        assert "darwin-arm64" in mock_warning.call_args[0][0]


class TestCaching:
    """Cache gate behaviour inside the pipeline."""

    def test_existing_file_is_skipped(self, tmp_path, session):
        (tmp_path / "ms.python-1.2.3@win32-x64.vsix").write_bytes(b"cached")
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64"
        )

        result = orch.run(["ms.python"])[0]

        assert result.success is True
        assert result.was_skipped is True
        assert result.was_downloaded is False
        assert result.bytes_written is None
        session.get.assert_not_called()
        assert (tmp_path / "ms.python-1.2.3@win32-x64.vsix").read_bytes() == b"cached"

    def test_force_redownloads(self, tmp_path, session):
        (tmp_path / "ms.python-1.2.3@win32-x64.vsix").write_bytes(b"stale")
        orch = ExtensionDownloadOrchestrator(
            tmp_path, force=True, session=session, native_platform="win32-x64"
        )

        result = orch.run(["ms.python"])[0]

        assert result.was_downloaded is True
        session.get.assert_called_once()
        assert (tmp_path / "ms.python-1.2.3@win32-x64.vsix").read_bytes() == PAYLOAD


class TestFailures:
    """Per-identifier failures are recorded and the batch continues."""

    def test_batch_continues_after_failures(self, tmp_path, session, make_response):
        good = make_response(
            json_data=_query_document([{"version": "1.2.3", "targetPlatform": "win32-x64"}])
        )
        session.post.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            make_response(status_code=404),
            good,
        ]
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64"
        )

        results = orch.run(["bad-identifier", "pub.one", "pub.two", "ms.python"])

        assert [r.success for r in results] == [False, False, False, True]
        assert results[0].error_type == ERROR_TYPE_IDENTIFIER
        assert results[1].error_type == ERROR_TYPE_QUERY
        assert results[2].error_type == ERROR_TYPE_QUERY
        assert results[2].http_status_code == 404
        assert results[3].was_downloaded is True
        # invalid identifiers never reach the network
        assert session.post.call_count == 3

    def test_resolution_failure(self, tmp_path, session, make_response):
        session.post.return_value = make_response(
            json_data=_query_document([{"version": "1.0.0", "targetPlatform": "win32-x64"}])
        )
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="linux-arm64"
        )
        result = orch.run(["pub.ext"])[0]
        assert result.success is False
        assert result.error_type == ERROR_TYPE_RESOLUTION
        session.get.assert_not_called()

    def test_version_failure(self, tmp_path, session, make_response):
        session.post.return_value = make_response(
            json_data=_query_document(
                [{"version": "2.0", "targetPlatform": "linux-x64"}, {"version": "1.0.0"}]
            )
        )
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="linux-x64"
        )
        result = orch.run(["pub.ext"])[0]
        assert result.error_type == ERROR_TYPE_VERSION

    def test_fetch_failure(self, tmp_path, session, make_response):
        session.get.return_value = make_response(status_code=500)
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64"
        )
        result = orch.run(["ms.python"])[0]
        assert result.success is False
        assert result.error_type == ERROR_TYPE_FETCH
        assert result.http_status_code == 500
        assert result.download_url is not None
        assert not (tmp_path / "ms.python-1.2.3@win32-x64.vsix").exists()

    def test_destination_failure_is_fatal(self, tmp_path, session):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")
        orch = ExtensionDownloadOrchestrator(
            blocker / "sub", session=session, native_platform="win32-x64"
        )
        with pytest.raises(DestinationError) as exc_info:
            orch.run(["ms.python"])
        assert exc_info.value.path == str(blocker / "sub")
        session.post.assert_not_called()


class TestSessionLifecycle:
    """Session creation and cleanup."""

    @patch("offline_vsix.extensions.orchestrator.create_session")
    def test_owned_session_is_created_once_and_closed(
        self, mock_create_session, tmp_path, make_response
    ):
        created = mock_create_session.return_value
        created.post.return_value = make_response(json_data=_query_document([{"version": "1.0.0"}]))
        created.get.return_value = make_response(body=PAYLOAD)
        orch = ExtensionDownloadOrchestrator(
            tmp_path,
            proxy="http://proxy:3128",
            native_platform="linux-x64",
            retries=2,
            backoff_factor=0.5,
        )

        orch.run(["a.one", "b.two"])

        mock_create_session.assert_called_once_with(
            "http://proxy:3128", retries=2, backoff_factor=0.5
        )
        created.close.assert_called_once()

    def test_injected_session_is_not_closed(self, tmp_path, session):
        ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64"
        ).run(["ms.python"])
        session.close.assert_not_called()

    @patch("offline_vsix.extensions.orchestrator.current_platform", return_value="darwin-arm64")
    def test_native_platform_detected_once(self, mock_current_platform, tmp_path, session):
        orch = ExtensionDownloadOrchestrator(tmp_path, session=session)
        assert orch.native_platform == "darwin-arm64"
        mock_current_platform.assert_called_once_with()


class TestStatistics:
    """Test get_statistics and the module-level run()."""

    def test_statistics(self, tmp_path, session):
        (tmp_path / "ms.python-1.2.3@win32-x64.vsix").write_bytes(b"cached")
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64"
        )
        orch.run(["ms.python", "oops", "ms.other"])

        stats = orch.get_statistics()

        assert stats["total"] == 3
        assert stats["downloaded"] == 1
        assert stats["skipped"] == 1
        assert stats["failed"] == 1
        assert stats["failed_identifiers"] == ["oops"]
        assert stats["elapsed_seconds"] >= 0

    def test_module_run(self, tmp_path, session):
        with patch.object(
            orchestrator_module, "ExtensionDownloadOrchestrator", wraps=ExtensionDownloadOrchestrator
        ) as mock_cls:
            results = run(
                ["ms.python"],
                tmp_path,
                True,
                None,
                "win32-x64",
                session=session,
                native_platform="linux-x64",
            )
        mock_cls.assert_called_once_with(
            tmp_path, True, None, "win32-x64", session=session, native_platform="linux-x64"
        )
        assert results[0].was_downloaded is True


class TestUnsafeMarketplaceValues:
    """Marketplace values that cannot become a file name fail only their own identifier."""

    def test_bad_version_does_not_stop_batch(self, tmp_path, session, make_response):
        session.post.side_effect = [
            make_response(json_data=_query_document([{"version": "1.0.0\x00x"}])),
            make_response(
                json_data=_query_document([{"version": "1.2.3", "targetPlatform": "win32-x64"}])
            ),
        ]
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64"
        )

        results = orch.run(["ms.python", "ms.other"])

        assert [r.success for r in results] == [False, True]
        assert results[0].error_type == ERROR_TYPE_FILE_NAME
        assert results[0].file_path is None
        assert results[1].was_downloaded is True
        assert (tmp_path / "ms.other-1.2.3@win32-x64.vsix").read_bytes() == PAYLOAD
        session.get.assert_called_once()

    def test_unreadable_cached_file_size(self, tmp_path, session):
        (tmp_path / "ms.python-1.2.3@win32-x64.vsix").write_bytes(b"cached")
        files = FileOperations()
        orch = ExtensionDownloadOrchestrator(
            tmp_path, session=session, native_platform="win32-x64", file_operations=files
        )
        with patch.object(files, "get_file_size", side_effect=PermissionError("denied")):
            results = orch.run(["ms.python", "ms.other"])
        assert results[0].was_skipped is True
        assert results[1].was_downloaded is True
