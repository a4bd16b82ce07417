"""
Version Resolution for the dotfetch Download Subsystem

This module maps release selectors ("LTS", "Current", "3.1") to concrete
channel and artifact versions using the feed's latest.version documents.
"""

import re
from typing import List, Sequence, Tuple

import requests

from dotfetch.constants import (
    CHANNEL_ALIASES,
    LATEST_VERSION_FILE,
    METADATA_BINARY_CONTENT_TYPE,
    METADATA_TEXT_CONTENT_TYPES,
)
from dotfetch.exceptions import (
    ChannelResolutionError,
    DotfetchError,
    MetadataFetchError,
    UnknownContentTypeError,
)
from dotfetch.log_utils import logger

from .interfaces import ArtifactKind
from .transport import Transport


def normalize_channel(selector: str) -> str:
    """Map known aliases to their canonical spelling; other selectors are returned stripped."""
    selector = selector.strip()
    return CHANNEL_ALIASES.get(selector.lower(), selector)


def metadata_url(feed: str, channel: str, kind: ArtifactKind) -> str:
    """
    Build the latest.version URL for a channel.

    Only the SDK has its own document; every other kind reads the shared
    Runtime one, including the ASP.NET Core based kinds.
    """
    segment = "Sdk" if kind is ArtifactKind.SDK else "Runtime"
    return f"{feed.rstrip('/')}/{segment}/{channel}/{LATEST_VERSION_FILE}"


class VersionResolver:
    """
    Resolves release selectors and per-kind latest versions.

    The first configured kind acts as the probe when turning a symbolic
    channel into its two-part version.
    """

    CHANNEL_VERSION_RX = re.compile(r"^\d+\.\d+$")
    VERSION_PREFIX_RX = re.compile(r"\d+\.\d+")

    def __init__(
        self, feed: str, kinds: Sequence[ArtifactKind], transport: Transport
    ):
        self.feed = feed
        self.kinds = list(kinds)
        self.transport = transport
        self.resolution_failures: List[Tuple[str, DotfetchError]] = []

    def fetch_latest_version(self, channel: str, kind: ArtifactKind) -> str:
        """
        Fetch the latest concrete version published for `channel` and `kind`.

        Returns:
            str: The last whitespace-delimited token of the latest.version body.

        Raises:
            MetadataFetchError: The request failed after all retries, or the body was
                empty or not valid UTF-8.
            UnknownContentTypeError: The response content type is not a supported one.
        """
        url = metadata_url(self.feed, channel, kind)
        try:
            response = self.transport.get(url)
        except (requests.RequestException, OSError) as e:
            raise MetadataFetchError(
                f"Failed to fetch latest version for {channel} ({kind})",
                url=url,
                details=str(e),
            ) from e

        content_type = (response.headers.get("Content-Type") or "").strip()
        if content_type == METADATA_BINARY_CONTENT_TYPE:
            try:
                body = response.content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MetadataFetchError(
                    f"Latest version document for {channel} ({kind}) is not valid UTF-8",
                    url=url,
                    details=str(e),
                ) from e
        elif content_type in METADATA_TEXT_CONTENT_TYPES:
            body = response.text
        else:
            raise UnknownContentTypeError(
                f"Unexpected content type for {url}",
                content_type=content_type,
                url=url,
            )

        tokens = body.split()
        if not tokens:
            raise MetadataFetchError(
                f"Empty latest version document for {channel} ({kind})", url=url
            )
        version = tokens[-1]
        logger.debug(f"Latest version for {channel} ({kind}): {version}")
        return version

    def resolve_channel_version(self, selector: str) -> str:
        """
        Resolve a selector to a two-part channel version such as "3.1".

        Explicit two-part versions are returned unchanged without any network call.

        Raises:
            ChannelResolutionError: No two-part version appears in the latest version.
            MetadataFetchError: See fetch_latest_version().
            UnknownContentTypeError: See fetch_latest_version().
        """
        if self.CHANNEL_VERSION_RX.match(selector.strip()):
            return selector.strip()

        if not self.kinds:
            raise ValueError(
                "At least one artifact kind is required to resolve a channel"
            )
        channel = normalize_channel(selector)
        latest = self.fetch_latest_version(channel, self.kinds[0])
        match = self.VERSION_PREFIX_RX.search(latest)
        if not match:
            raise ChannelResolutionError(
                f"Could not determine a version for channel {channel}",
                channel=channel,
                details=f"latest version was {latest!r}",
            )
        logger.debug(f"Channel {selector} resolved to {match.group(0)}")
        return match.group(0)

    def resolve_distinct_channel_versions(self, selectors: Sequence[str]) -> List[str]:
        """
        Resolve every selector, keeping first-seen order and dropping duplicates.

        Selectors that fail to resolve are logged, recorded in
        `resolution_failures` and skipped.
        """
        self.resolution_failures = []
        channels: List[str] = []
        for selector in selectors:
            try:
                channel = self.resolve_channel_version(selector)
            except DotfetchError as e:
                logger.error(f"Failed to resolve channel {selector}: {e}")
                self.resolution_failures.append((selector, e))
                continue
            if channel in channels:
                logger.debug(f"Channel {selector} duplicates {channel}, skipping")
                continue
            channels.append(channel)
        return channels
