"""
Core Interfaces for the dotfetch Download Subsystem

This module defines the enumerations and data structures shared by the
resolver, builder and orchestrator.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ArtifactKind(str, Enum):
    """Category of binary published to the feed."""

    SDK = "sdk"
    RUNTIME = "runtime"
    ASPNET_RUNTIME = "aspnet-runtime"
    HOSTING_BUNDLE = "hosting-bundle"
    WINDOWS_DESKTOP_RUNTIME = "windows-desktop-runtime"

    def __str__(self) -> str:
        return self.value


class Platform(str, Enum):
    """Operating system and CPU architecture of a binary."""

    WIN_X86 = "win-x86"
    WIN_X64 = "win-x64"
    WIN_ARM64 = "win-arm64"
    LINUX_X64 = "linux-x64"
    LINUX_ARM = "linux-arm"
    LINUX_ARM64 = "linux-arm64"
    ALPINE_X64 = "alpine-x64"
    ALPINE_ARM64 = "alpine-arm64"
    RHEL6_X64 = "rhel6-x64"
    OSX_X64 = "osx-x64"
    OSX_ARM64 = "osx-arm64"

    def __str__(self) -> str:
        return self.value


class PackageFormat(str, Enum):
    """Packaging format; doubles as the file extension."""

    EXE = "exe"
    ZIP = "zip"
    TAR_GZ = "tar.gz"
    PKG = "pkg"

    def __str__(self) -> str:
        return self.value


class DownloadStatus(str, Enum):
    """Outcome of a single combination in a run."""

    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    FAILED = "failed"
    PLANNED = "planned"


@dataclass(frozen=True)
class DownloadInfo:
    """Remote location and file name for one artifact."""

    remote_url: str
    file_name: str


@dataclass(frozen=True)
class DownloadTask:
    """A fully resolved download: where to fetch from and where to write."""

    remote_url: str
    file_name: str
    local_directory: str

    @property
    def local_path(self) -> str:
        return os.path.join(self.local_directory, self.file_name)


@dataclass
class DownloadResult:
    """Result of one (channel, kind, platform, format) combination."""

    channel: str
    """Resolved two-part channel version, or the raw selector if resolution failed"""

    status: DownloadStatus
    """What happened to this combination"""

    kind: Optional[ArtifactKind] = None
    platform: Optional[Platform] = None
    package_format: Optional[PackageFormat] = None

    version: Optional[str] = None
    """Concrete version, when it was resolved"""

    download_url: Optional[str] = None
    file_path: Optional[str] = None

    error_message: Optional[str] = None
    """Error message (if failed)"""

    error_type: Optional[str] = None
    """Exception class name of the failure (if failed)"""

    @property
    def success(self) -> bool:
        return self.status is not DownloadStatus.FAILED

    def describe(self) -> str:
        """Human-readable identification of the combination for log lines."""
        parts = [self.channel]
        for value in (self.kind, self.platform, self.package_format):
            if value is not None:
                parts.append(str(value))
        return "/".join(parts)


@dataclass
class RunSummary:
    """Aggregated results of one download pipeline run."""

    channels: List[str] = field(default_factory=list)
    results: List[DownloadResult] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def _with_status(self, status: DownloadStatus) -> List[DownloadResult]:
        return [result for result in self.results if result.status is status]

    @property
    def downloaded(self) -> List[DownloadResult]:
        return self._with_status(DownloadStatus.DOWNLOADED)

    @property
    def skipped(self) -> List[DownloadResult]:
        return self._with_status(DownloadStatus.SKIPPED)

    @property
    def failed(self) -> List[DownloadResult]:
        return self._with_status(DownloadStatus.FAILED)

    @property
    def planned(self) -> List[DownloadResult]:
        return self._with_status(DownloadStatus.PLANNED)

    @property
    def has_failures(self) -> bool:
        return any(not result.success for result in self.results)
