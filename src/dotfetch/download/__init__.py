"""
dotfetch Download Subsystem

Resolves release channels to concrete versions and downloads the matching
artifacts from the feed.

Core Components:
- interfaces: Enumerations and result types
- builder: Artifact URL and file name construction
- transport: HTTP GET with proxy handling and retries
- version: Channel and latest-version resolution
- orchestrator: Download pipeline coordination
"""

from .builder import build_download_info, build_download_task, output_directory_for
from .interfaces import (
    ArtifactKind,
    DownloadInfo,
    DownloadResult,
    DownloadStatus,
    DownloadTask,
    PackageFormat,
    Platform,
    RunSummary,
)
from .orchestrator import DownloadOrchestrator
from .transport import Transport
from .version import VersionResolver

__all__ = [
    # Interfaces
    "ArtifactKind",
    "Platform",
    "PackageFormat",
    "DownloadStatus",
    "DownloadInfo",
    "DownloadTask",
    "DownloadResult",
    "RunSummary",
    # Building
    "build_download_info",
    "build_download_task",
    "output_directory_for",
    # Core components
    "Transport",
    "VersionResolver",
    "DownloadOrchestrator",
]
