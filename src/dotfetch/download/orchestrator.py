"""
Download Pipeline Orchestrator

This module drives a dotfetch run: it resolves the configured channels, walks
the channel x kind x platform x format cross-product and records one result
per combination.
"""

import os
import time
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

import requests

from dotfetch.exceptions import ArtifactDownloadError, DotfetchError
from dotfetch.log_utils import logger

from .builder import build_download_task, output_directory_for
from .interfaces import (
    ArtifactKind,
    DownloadResult,
    DownloadStatus,
    DownloadTask,
    PackageFormat,
    Platform,
    RunSummary,
)
from .transport import Transport
from .version import VersionResolver

if TYPE_CHECKING:
    from dotfetch.config import FetchConfig


class DownloadOrchestrator:
    """
    Orchestrates the download pipeline for every configured combination.

    A failure is recorded against the narrowest scope it affects (selector,
    channel/kind pair or single combination) and the run continues.
    """

    def __init__(
        self, config: "FetchConfig", transport: Optional[Transport] = None
    ):
        """
        Parameters:
            config (FetchConfig): Selection, feeds, proxy and retry settings for the run.
            transport (Optional[Transport]): Transport to use; one is built from `config` if omitted.
        """
        self.config = config
        self.transport = transport or Transport(
            proxy_address=config.proxy_address,
            proxy_use_default_credentials=config.proxy_use_default_credentials,
            max_attempts=config.max_attempts,
            retry_delay=config.retry_delay,
        )
        self.resolver = VersionResolver(
            config.metadata_feed, config.kinds, self.transport
        )
        self.results: List[DownloadResult] = []
        self._output_dirs: Dict[Tuple[str, ArtifactKind], str] = {}
        self._planned_paths: Set[str] = set()

    def run_download_pipeline(self) -> RunSummary:
        """
        Validate the configuration, then resolve and download every combination.

        Returns:
            RunSummary: Per-combination results and the resolved channel list.

        Raises:
            ConfigValidationError: The configuration is invalid; nothing was fetched.
        """
        self.config.validate()

        start_time = time.time()
        self.results = []
        self._planned_paths = set()
        logger.info("Starting download pipeline...")
        if self.config.dry_run:
            logger.info("Dry run: no files will be downloaded")

        channels = self.resolver.resolve_distinct_channel_versions(
            self.config.channels
        )
        for selector, error in self.resolver.resolution_failures:
            self._record(self._failure_result(error, channel=selector))

        if channels:
            logger.info(f"Channels: {', '.join(channels)}")
        for channel in channels:
            for kind in self.config.kinds:
                self._process_channel_kind(channel, kind)

        summary = RunSummary(
            channels=channels,
            results=list(self.results),
            elapsed_seconds=time.time() - start_time,
        )
        self._log_download_summary(summary)
        return summary

    def _process_channel_kind(self, channel: str, kind: ArtifactKind) -> None:
        try:
            version = self.resolver.fetch_latest_version(channel, kind)
        except DotfetchError as e:
            logger.error(f"Failed to resolve {kind} version for channel {channel}: {e}")
            self._record(self._failure_result(e, channel=channel, kind=kind))
            return

        logger.info(f"Channel {channel}: latest {kind} is {version}")
        for platform in self.config.platforms:
            for package_format in self.config.formats:
                self._record(
                    self._process_combination(
                        channel, version, kind, platform, package_format
                    )
                )

    def _process_combination(
        self,
        channel: str,
        version: str,
        kind: ArtifactKind,
        platform: Platform,
        package_format: PackageFormat,
    ) -> DownloadResult:
        try:
            task = self._build_task(channel, version, kind, platform, package_format)
        except OSError as e:
            result = DownloadResult(
                channel=channel,
                status=DownloadStatus.FAILED,
                kind=kind,
                platform=platform,
                package_format=package_format,
                version=version,
                error_message=f"Cannot create output directory: {e}",
                error_type=type(e).__name__,
            )
            logger.error(f"Failed {result.describe()}: {result.error_message}")
            return result

        result = DownloadResult(
            channel=channel,
            status=DownloadStatus.DOWNLOADED,
            kind=kind,
            platform=platform,
            package_format=package_format,
            version=version,
            download_url=task.remote_url,
            file_path=task.local_path,
        )

        if os.path.exists(task.local_path):
            logger.info(f"Skipped: {task.file_name} (already present)")
            result.status = DownloadStatus.SKIPPED
            return result

        if self.config.dry_run:
            if task.local_path in self._planned_paths:
                logger.info(f"Skipped: {task.file_name} (already planned)")
                result.status = DownloadStatus.SKIPPED
                return result
            self._planned_paths.add(task.local_path)
            logger.info(f"Would download {task.remote_url} -> {task.local_path}")
            result.status = DownloadStatus.PLANNED
            return result

        logger.info(f"Downloading {task.file_name}")
        logger.debug(f"URL: {task.remote_url}")
        try:
            self.download(task)
        except ArtifactDownloadError as e:
            logger.error(f"Failed {result.describe()}: {e}")
            result.status = DownloadStatus.FAILED
            result.error_message = str(e)
            result.error_type = type(e).__name__
            return result

        logger.info(f"Successfully downloaded {task.file_name}")
        return result

    def download(self, task: DownloadTask) -> None:
        """
        Fetch `task` to its local path through the retrying transport.

        Raises:
            ArtifactDownloadError: The download failed on every attempt.
        """
        try:
            self.transport.get(task.remote_url, out_file=task.local_path)
        except (requests.RequestException, OSError) as e:
            raise ArtifactDownloadError(
                f"Failed to download {task.file_name}",
                url=task.remote_url,
                details=str(e),
            ) from e

    def _build_task(
        self,
        channel: str,
        version: str,
        kind: ArtifactKind,
        platform: Platform,
        package_format: PackageFormat,
    ) -> DownloadTask:
        return build_download_task(
            self.config.download_feed,
            version,
            platform,
            kind,
            package_format,
            self._output_directory(channel, kind),
        )

    def _output_directory(self, channel: str, kind: ArtifactKind) -> str:
        key = (channel, kind)
        if key not in self._output_dirs:
            self._output_dirs[key] = output_directory_for(
                self.config.output_dir, channel, kind
            )
        return self._output_dirs[key]

    def _failure_result(
        self,
        error: DotfetchError,
        channel: str,
        kind: Optional[ArtifactKind] = None,
    ) -> DownloadResult:
        return DownloadResult(
            channel=channel,
            status=DownloadStatus.FAILED,
            kind=kind,
            download_url=getattr(error, "url", None),
            error_message=str(error),
            error_type=type(error).__name__,
        )

    def _record(self, result: DownloadResult) -> None:
        self.results.append(result)

    def _log_download_summary(self, summary: RunSummary) -> None:
        """
        Log elapsed time and downloaded/skipped/failed counts for the run.

        Emits a warning if any combination failed.
        """
        logger.info("Download pipeline completed")
        logger.info(f"Time taken: {summary.elapsed_seconds:.2f} seconds")
        if self.config.dry_run:
            logger.info(
                "Downloads: %d planned, %d skipped, %d failed",
                len(summary.planned),
                len(summary.skipped),
                len(summary.failed),
            )
        else:
            logger.info(
                "Downloads: %d downloaded, %d skipped, %d failed",
                len(summary.downloaded),
                len(summary.skipped),
                len(summary.failed),
            )

        if summary.failed:
            logger.warning(
                f"{len(summary.failed)} downloads failed - check logs for details"
            )
            for result in summary.failed:
                logger.debug(
                    f"  {result.describe()}: {result.error_type}: {result.error_message}"
                )

    def get_download_statistics(self) -> Dict[str, Any]:
        """
        Summarize the outcomes of the most recent run.

        Returns:
            dict: "total_downloads" (attempted, excludes skipped and planned),
                "successful_downloads", "skipped_downloads", "planned_downloads",
                "failed_downloads" and "success_rate" (0-100, 100.0 when nothing was attempted).
        """
        counts = {status: 0 for status in DownloadStatus}
        for result in self.results:
            counts[result.status] += 1
        attempted = counts[DownloadStatus.DOWNLOADED] + counts[DownloadStatus.FAILED]
        success_rate = (
            counts[DownloadStatus.DOWNLOADED] / attempted * 100
            if attempted > 0
            else 100.0
        )
        return {
            "total_downloads": attempted,
            "successful_downloads": counts[DownloadStatus.DOWNLOADED],
            "skipped_downloads": counts[DownloadStatus.SKIPPED],
            "planned_downloads": counts[DownloadStatus.PLANNED],
            "failed_downloads": counts[DownloadStatus.FAILED],
            "success_rate": success_rate,
        }
