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
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast, isolated unit test")
    config.addinivalue_line(
        "markers", "core_downloads: resolution, URL building and download pipeline"
    )
    config.addinivalue_line("markers", "user_interface: command-line interface test")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point the per-user config location at a temporary directory and block real HTTP.

    Patches platformdirs.user_config_dir and the dotfetch.config CONFIG_DIR/CONFIG_FILE
    constants, and replaces requests.Session.request with a blocker.
    """
    base = tmp_path_factory.mktemp("dotfetch")
    config_dir = base / "config"
    config_dir.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )

    import dotfetch.config as config_module

    monkeypatch.setattr(config_module, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(
        config_module,
        "CONFIG_FILE",
        str(config_dir / config_module.CONFIG_FILE_NAME),
    )

    monkeypatch.setattr(requests.Session, "request", _block_network)
    monkeypatch.setattr(requests, "get", _block_network)


@pytest.fixture
def no_sleep(mocker):
    """Replace time.sleep in the retry helper so retry tests run instantly."""
    return mocker.patch("dotfetch.utils.time.sleep")
