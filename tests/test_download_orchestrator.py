# Test Download Orchestrator
#
# Unit tests for DownloadOrchestrator with a fake transport.

import os
from unittest.mock import Mock

import pytest
import requests

from dotfetch.config import FetchConfig
from dotfetch.download.interfaces import (
    ArtifactKind,
    DownloadStatus,
    PackageFormat,
    Platform,
)
from dotfetch.download.orchestrator import DownloadOrchestrator
from dotfetch.exceptions import ConfigValidationError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]

FEED = "https://cdn.example/dotnet"
UNCACHED = "https://origin.example/dotnet"


def _metadata_response(body, content_type="text/plain"):
    response = Mock()
    response.headers = {"Content-Type": content_type}
    response.text = body
    response.content = body.encode("utf-8")
    return response


class FakeTransport:
    """Serves latest.version documents from a dict and writes artifacts to disk."""

    def __init__(self, metadata, failing_urls=()):
        self.metadata = metadata
        self.failing_urls = set(failing_urls)
        self.calls = []

    def get(self, url, out_file=None):
        self.calls.append((url, out_file))
        if out_file is None:
            if url not in self.metadata:
                raise requests.HTTPError(f"404 for {url}")
            value = self.metadata[url]
            if isinstance(value, Mock):
                return value
            return _metadata_response(value)
        if url in self.failing_urls:
            raise requests.ConnectionError(f"connection reset for {url}")
        with open(out_file, "wb") as f:
            f.write(b"payload")
        return None

    @property
    def download_calls(self):
        return [call for call in self.calls if call[1] is not None]


@pytest.fixture
def config(tmp_path):
    return FetchConfig(
        channels=["LTS"],
        kinds=[ArtifactKind.SDK],
        platforms=[Platform.WIN_X64],
        formats=[PackageFormat.ZIP],
        output_dir=str(tmp_path / "out"),
        feed=FEED,
        uncached_feed=UNCACHED,
    )


def test_downloads_every_combination(config, tmp_path):
    config.channels = ["LTS"]
    config.kinds = [ArtifactKind.SDK, ArtifactKind.RUNTIME]
    config.platforms = [Platform.WIN_X64, Platform.LINUX_X64]
    config.formats = [PackageFormat.ZIP, PackageFormat.TAR_GZ]
    transport = FakeTransport(
        {
            f"{UNCACHED}/Sdk/LTS/latest.version": "hash\n3.1.201",
            f"{UNCACHED}/Sdk/3.1/latest.version": "hash\n3.1.201",
            f"{UNCACHED}/Runtime/3.1/latest.version": "hash\n3.1.3",
        }
    )

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert summary.channels == ["3.1"]
    assert len(summary.downloaded) == 8
    assert not summary.has_failures
    sdk_file = tmp_path / "out" / "3.1" / "SDK" / "dotnet-sdk-3.1.201-linux-x64.tar.gz"
    runtime_file = (
        tmp_path / "out" / "3.1" / "Runtime" / "dotnet-runtime-3.1.3-win-x64.zip"
    )
    assert sdk_file.read_bytes() == b"payload"
    assert runtime_file.exists()
    assert (
        f"{FEED}/Sdk/3.1.201/dotnet-sdk-3.1.201-win-x64.zip",
        str(tmp_path / "out" / "3.1" / "SDK" / "dotnet-sdk-3.1.201-win-x64.zip"),
    ) in transport.download_calls


def test_existing_file_is_skipped_without_network(config, tmp_path):
    config.channels = ["3.1"]
    target_dir = tmp_path / "out" / "3.1" / "SDK"
    target_dir.mkdir(parents=True)
    (target_dir / "dotnet-sdk-3.1.201-win-x64.zip").write_bytes(b"old")
    transport = FakeTransport({f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201"})

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert transport.download_calls == []
    assert [r.status for r in summary.results] == [DownloadStatus.SKIPPED]
    assert not summary.has_failures
    assert (target_dir / "dotnet-sdk-3.1.201-win-x64.zip").read_bytes() == b"old"


def test_download_failure_does_not_abort_run(config):
    config.channels = ["3.1"]
    config.platforms = [Platform.WIN_X64, Platform.LINUX_X64]
    failing = f"{FEED}/Sdk/3.1.201/dotnet-sdk-3.1.201-win-x64.zip"
    transport = FakeTransport(
        {f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201"}, failing_urls=[failing]
    )

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert len(summary.failed) == 1
    failure = summary.failed[0]
    assert failure.error_type == "ArtifactDownloadError"
    assert failure.download_url == failing
    assert failure.platform is Platform.WIN_X64
    assert len(summary.downloaded) == 1
    assert summary.downloaded[0].platform is Platform.LINUX_X64


def test_unknown_content_type_skips_only_that_kind(config):
    config.channels = ["3.1"]
    config.kinds = [ArtifactKind.RUNTIME, ArtifactKind.SDK]
    transport = FakeTransport(
        {
            f"{UNCACHED}/Runtime/3.1/latest.version": _metadata_response(
                '{"version": "3.1.3"}', "application/json"
            ),
            f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201",
        }
    )

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert len(summary.failed) == 1
    assert summary.failed[0].kind is ArtifactKind.RUNTIME
    assert summary.failed[0].error_type == "UnknownContentTypeError"
    assert [r.kind for r in summary.downloaded] == [ArtifactKind.SDK]


def test_unresolvable_channel_is_reported_and_others_continue(config):
    config.channels = ["Current", "3.1"]
    transport = FakeTransport({f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201"})

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert summary.channels == ["3.1"]
    assert len(summary.failed) == 1
    assert summary.failed[0].channel == "Current"
    assert summary.failed[0].error_type == "MetadataFetchError"
    assert len(summary.downloaded) == 1


def test_selectors_resolving_to_same_channel_are_processed_once(config):
    config.channels = ["LTS", "Current", "3.1"]
    transport = FakeTransport(
        {
            f"{UNCACHED}/Sdk/LTS/latest.version": "3.1.201",
            f"{UNCACHED}/Sdk/Current/latest.version": "3.1.300",
            f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201",
        }
    )

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert summary.channels == ["3.1"]
    assert len(transport.download_calls) == 1


def test_hosting_bundle_duplicates_are_tolerated(config):
    config.channels = ["3.1"]
    config.kinds = [ArtifactKind.HOSTING_BUNDLE]
    config.platforms = [Platform.WIN_X64, Platform.LINUX_X64]
    config.formats = [PackageFormat.EXE, PackageFormat.ZIP]
    transport = FakeTransport({f"{UNCACHED}/Runtime/3.1/latest.version": "3.1.3"})

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert len(transport.download_calls) == 1
    assert len(summary.downloaded) == 1
    assert len(summary.skipped) == 3
    assert not summary.has_failures


def test_uncached_feed_is_used_for_downloads_when_forced(config):
    config.channels = ["3.1"]
    config.use_uncached_feed = True
    transport = FakeTransport({f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201"})

    DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert transport.download_calls[0][0].startswith(f"{UNCACHED}/Sdk/3.1.201/")


def test_dry_run_plans_without_downloading(config, tmp_path):
    config.channels = ["3.1"]
    config.dry_run = True
    transport = FakeTransport({f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201"})

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert transport.download_calls == []
    assert [r.status for r in summary.results] == [DownloadStatus.PLANNED]
    assert summary.planned[0].download_url == (
        f"{FEED}/Sdk/3.1.201/dotnet-sdk-3.1.201-win-x64.zip"
    )


@pytest.mark.parametrize("field_name", ["channels", "kinds", "platforms", "formats"])
def test_empty_list_fails_before_any_io(config, tmp_path, field_name):
    setattr(config, field_name, [])
    transport = FakeTransport({})

    with pytest.raises(ConfigValidationError):
        DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert transport.calls == []
    assert not os.path.exists(tmp_path / "out")


def test_download_statistics(config):
    config.channels = ["3.1"]
    config.platforms = [Platform.WIN_X64, Platform.LINUX_X64]
    failing = f"{FEED}/Sdk/3.1.201/dotnet-sdk-3.1.201-linux-x64.zip"
    transport = FakeTransport(
        {f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201"}, failing_urls=[failing]
    )
    orchestrator = DownloadOrchestrator(config, transport=transport)
    orchestrator.run_download_pipeline()

    stats = orchestrator.get_download_statistics()

    assert stats["total_downloads"] == 2
    assert stats["successful_downloads"] == 1
    assert stats["failed_downloads"] == 1
    assert stats["skipped_downloads"] == 0
    assert stats["success_rate"] == 50.0


def test_statistics_before_any_run(config):
    orchestrator = DownloadOrchestrator(config, transport=FakeTransport({}))
    assert orchestrator.get_download_statistics()["success_rate"] == 100.0


def test_undecodable_metadata_skips_only_that_kind(config):
    config.channels = ["3.1"]
    config.kinds = [ArtifactKind.RUNTIME, ArtifactKind.SDK]
    binary = Mock()
    binary.headers = {"Content-Type": "application/octet-stream"}
    binary.content = b"\xff\xfe3.1.3"
    transport = FakeTransport(
        {
            f"{UNCACHED}/Runtime/3.1/latest.version": binary,
            f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201",
        }
    )

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert len(summary.failed) == 1
    assert summary.failed[0].kind is ArtifactKind.RUNTIME
    assert summary.failed[0].error_type == "MetadataFetchError"
    assert [r.kind for r in summary.downloaded] == [ArtifactKind.SDK]


def test_output_directory_error_does_not_abort_run(config, tmp_path):
    config.channels = ["3.1", "6.0"]
    out = tmp_path / "out"
    out.mkdir()
    (out / "3.1").write_text("not a directory")
    transport = FakeTransport(
        {
            f"{UNCACHED}/Sdk/3.1/latest.version": "3.1.201",
            f"{UNCACHED}/Sdk/6.0/latest.version": "6.0.100",
        }
    )

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert len(summary.failed) == 1
    failure = summary.failed[0]
    assert failure.channel == "3.1"
    assert failure.platform is Platform.WIN_X64
    assert failure.package_format is PackageFormat.ZIP
    assert "output directory" in failure.error_message
    assert [r.channel for r in summary.downloaded] == ["6.0"]
    assert (out / "6.0" / "SDK" / "dotnet-sdk-6.0.100-win-x64.zip").exists()


def test_dry_run_plans_shared_file_once(config):
    config.channels = ["3.1"]
    config.dry_run = True
    config.kinds = [ArtifactKind.HOSTING_BUNDLE]
    config.platforms = [Platform.WIN_X64, Platform.LINUX_X64]
    config.formats = [PackageFormat.EXE, PackageFormat.ZIP]
    transport = FakeTransport({f"{UNCACHED}/Runtime/3.1/latest.version": "3.1.3"})

    summary = DownloadOrchestrator(config, transport=transport).run_download_pipeline()

    assert transport.download_calls == []
    assert len(summary.planned) == 1
    assert len(summary.skipped) == 3
