"""
URL and Path Builder

Translates a concrete version, artifact kind, platform and packaging format
into the feed URL and local file name of a release artifact.
"""

import os
from typing import Dict

from dotfetch.constants import RUNTIME_DIR_NAME, SDK_DIR_NAME

from .interfaces import (
    ArtifactKind,
    DownloadInfo,
    DownloadTask,
    PackageFormat,
    Platform,
)

URL_PATH_SEGMENTS: Dict[ArtifactKind, str] = {
    ArtifactKind.SDK: "Sdk",
    ArtifactKind.RUNTIME: "Runtime",
    ArtifactKind.ASPNET_RUNTIME: "aspnetcore/Runtime",
    ArtifactKind.HOSTING_BUNDLE: "aspnetcore/Runtime",
    ArtifactKind.WINDOWS_DESKTOP_RUNTIME: "Runtime",
}

FILE_NAME_PREFIXES: Dict[ArtifactKind, str] = {
    ArtifactKind.SDK: "dotnet-sdk",
    ArtifactKind.RUNTIME: "dotnet-runtime",
    ArtifactKind.ASPNET_RUNTIME: "aspnetcore-runtime",
    ArtifactKind.HOSTING_BUNDLE: "dotnet-hosting",
    ArtifactKind.WINDOWS_DESKTOP_RUNTIME: "windowsdesktop-runtime",
}

# Applies to file names only; feed paths keep the original identifier.
FILE_NAME_PLATFORM_REMAP: Dict[Platform, str] = {
    Platform.ALPINE_X64: "linux-musl-x64",
    Platform.ALPINE_ARM64: "linux-musl-arm64",
    Platform.RHEL6_X64: "rhel.6-x64",
}


def file_name_platform(platform: Platform) -> str:
    """Return the platform identifier as it appears inside artifact file names."""
    return FILE_NAME_PLATFORM_REMAP.get(platform, platform.value)


def build_file_name(
    version: str,
    platform: Platform,
    kind: ArtifactKind,
    package_format: PackageFormat,
) -> str:
    """
    Build the artifact file name for a combination.

    The hosting bundle is a single Windows installer, so its name ignores
    `platform` and `package_format` entirely.
    """
    prefix = FILE_NAME_PREFIXES[kind]
    if kind is ArtifactKind.HOSTING_BUNDLE:
        return f"{prefix}-{version}-win.exe"
    return f"{prefix}-{version}-{file_name_platform(platform)}.{package_format.value}"


def build_download_info(
    feed: str,
    version: str,
    platform: Platform,
    kind: ArtifactKind,
    package_format: PackageFormat,
) -> DownloadInfo:
    """
    Build the remote URL and file name for one artifact.

    Parameters:
        feed (str): Feed base URL; a trailing slash is ignored.
        version (str): Concrete version such as "3.1.201".
        platform (Platform): Target platform.
        kind (ArtifactKind): Artifact kind.
        package_format (PackageFormat): Packaging format.

    Returns:
        DownloadInfo: `{feed}/{segment}/{version}/{file_name}` and the file name.
    """
    file_name = build_file_name(version, platform, kind, package_format)
    remote_url = f"{feed.rstrip('/')}/{URL_PATH_SEGMENTS[kind]}/{version}/{file_name}"
    return DownloadInfo(remote_url=remote_url, file_name=file_name)


def output_directory_for(output_root: str, channel: str, kind: ArtifactKind) -> str:
    """
    Return `{output_root}/{channel}/SDK` or `{output_root}/{channel}/Runtime`, creating it.
    """
    sub_dir = SDK_DIR_NAME if kind is ArtifactKind.SDK else RUNTIME_DIR_NAME
    directory = os.path.join(output_root, channel, sub_dir)
    os.makedirs(directory, exist_ok=True)
    return directory


def build_download_task(
    feed: str,
    version: str,
    platform: Platform,
    kind: ArtifactKind,
    package_format: PackageFormat,
    local_directory: str,
) -> DownloadTask:
    """Combine the remote location of an artifact with the directory it is saved to."""
    info = build_download_info(feed, version, platform, kind, package_format)
    return DownloadTask(
        remote_url=info.remote_url,
        file_name=info.file_name,
        local_directory=local_directory,
    )
