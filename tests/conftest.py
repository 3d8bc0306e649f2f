import time

import platformdirs
import pytest
import requests

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used to group the offline-vsix test suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object.
    """
    for marker in (
        "unit: fast, isolated tests",
        "core_downloads: resolve-and-fetch pipeline tests",
        "configuration: settings and extension list tests",
        "user_interface: command-line interface tests",
        "integration: multi-stage tests with mocked HTTP",
    ):
        config.addinivalue_line("markers", marker)


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the settings file location at a temporary directory.

    Also clears OFFLINE_VSIX_LOG_LEVEL so the environment of the developer running
    the suite cannot change logging behaviour.
    """
    base = tmp_path_factory.mktemp("offline_vsix")
    config_dir = base / "config"
    log_dir = base / "log"
    for path in (config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.delenv("OFFLINE_VSIX_LOG_LEVEL", raising=False)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )

    import offline_vsix.config as config

    monkeypatch.setattr(config, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(
        config, "CONFIG_FILE", str(config_dir / config.CONFIG_FILE_NAME)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests so retry backoff never delays the suite.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


@pytest.fixture
def version_map():
    """
    Provide a version map as returned by the metadata query.

    Returns:
        dict: win32-x64 and linux-x64 builds plus a platform-agnostic release.
    """
    return {"win32-x64": "1.2.3", "linux-x64": "1.2.2", None: "1.2.0"}


@pytest.fixture
def make_response():
    """
    Factory for mocked `requests.Response` objects.

    The returned callable accepts `status_code`, `json_data`, `body` (raw bytes
    returned by `response.raw.read`) and `headers`.
    """
    from unittest.mock import MagicMock

    def _make(status_code=200, json_data=None, body=b"", headers=None):
        response = MagicMock()
        response.status_code = status_code
        response.headers = headers or {}
        response.json.return_value = json_data
        response.raw.read.return_value = body
        response.raw.chunked = False
        return response

    return _make
