# src/dotfetch/cli.py

import argparse
import importlib.metadata
import sys
from pathlib import Path
from typing import List, Optional

from dotfetch import config as config_module
from dotfetch import log_utils
from dotfetch.config import FetchConfig
from dotfetch.constants import APP_NAME, EXIT_CONFIG_ERROR, EXIT_INTERRUPTED
from dotfetch.download.interfaces import ArtifactKind, PackageFormat, Platform
from dotfetch.download.orchestrator import DownloadOrchestrator
from dotfetch.download.transport import Transport
from dotfetch.download.version import VersionResolver
from dotfetch.exceptions import ConfigurationError, DotfetchError


def get_dotfetch_version() -> str:
    """Return the installed dotfetch version, or "unknown" when not installed."""
    try:
        return importlib.metadata.version(APP_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _add_selection_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the options shared by the download and resolve commands."""
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file to load (default: the per-user dotfetch.yaml)",
    )
    parser.add_argument(
        "-c",
        "--channel",
        action="append",
        metavar="CHANNEL",
        help="Release channel: LTS, Current or A.B (repeatable, comma-separated)",
    )
    parser.add_argument(
        "-k",
        "--kind",
        action="append",
        metavar="KIND",
        help=f"Artifact kind: {', '.join(k.value for k in ArtifactKind)}",
    )
    parser.add_argument(
        "--feed", metavar="URL", help="Primary (CDN) feed base URL"
    )
    parser.add_argument(
        "--uncached-feed",
        dest="uncached_feed",
        metavar="URL",
        help="Secondary (origin) feed base URL, also used for version lookups",
    )
    parser.add_argument(
        "--use-uncached-feed",
        dest="use_uncached_feed",
        action="store_true",
        default=None,
        help="Download artifacts from the uncached feed instead of the CDN",
    )
    parser.add_argument(
        "--proxy-address",
        dest="proxy_address",
        metavar="URL",
        help="Proxy to use for all requests (default: system proxy settings)",
    )
    parser.add_argument(
        "--proxy-use-default-credentials",
        dest="proxy_use_default_credentials",
        action="store_true",
        default=None,
        help="Authenticate to the proxy with the credentials stored in ~/.netrc",
    )
    parser.add_argument(
        "--max-attempts",
        dest="max_attempts",
        type=int,
        metavar="N",
        help="Attempts per request before giving up (default: 3)",
    )
    parser.add_argument(
        "--retry-delay",
        dest="retry_delay",
        type=float,
        metavar="SECONDS",
        help="Delay between attempts (default: 0.3)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show diagnostic output",
    )
    parser.add_argument(
        "--log-dir",
        dest="log_dir",
        metavar="DIR",
        help="Also write a rotating log file to this directory",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="dotfetch - .NET SDK and runtime release downloader",
    )
    subparsers = parser.add_subparsers(dest="command")

    download_parser = subparsers.add_parser(
        "download",
        help="Download artifacts for the selected channels",
        description=(
            "Resolve the selected channels and download every "
            "channel/kind/platform/format combination, skipping files already present."
        ),
    )
    _add_selection_arguments(download_parser)
    download_parser.add_argument(
        "-p",
        "--platform",
        action="append",
        metavar="PLATFORM",
        help=f"Target platform: {', '.join(p.value for p in Platform)}",
    )
    download_parser.add_argument(
        "-f",
        "--format",
        action="append",
        dest="formats",
        metavar="FORMAT",
        help=f"Package format: {', '.join(f.value for f in PackageFormat)}",
    )
    download_parser.add_argument(
        "-o",
        "--output",
        dest="output_dir",
        metavar="DIR",
        help="Output root directory",
    )
    download_parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=None,
        help="Resolve versions and print URLs without downloading",
    )

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the versions the selected channels resolve to",
    )
    _add_selection_arguments(resolve_parser)

    subparsers.add_parser("version", help="Display dotfetch version")

    return parser


def build_config(args: argparse.Namespace) -> FetchConfig:
    """
    Layer command-line flags over the configuration file and defaults.

    Raises:
        ConfigurationError: The file cannot be loaded or a value is invalid.
    """
    file_config = config_module.load_config(args.config)
    fetch_config = FetchConfig.from_mapping(file_config)
    return fetch_config.with_overrides(
        channels=args.channel,
        kinds=args.kind,
        platforms=getattr(args, "platform", None),
        formats=getattr(args, "formats", None),
        output_dir=getattr(args, "output_dir", None),
        feed=args.feed,
        uncached_feed=args.uncached_feed,
        use_uncached_feed=args.use_uncached_feed,
        proxy_address=args.proxy_address,
        proxy_use_default_credentials=args.proxy_use_default_credentials,
        dry_run=getattr(args, "dry_run", None),
        max_attempts=args.max_attempts,
        retry_delay=args.retry_delay,
        log_dir=args.log_dir,
    )


def _configure_logging(args: argparse.Namespace, fetch_config: FetchConfig) -> None:
    if args.verbose:
        log_utils.set_log_level("DEBUG")
    elif fetch_config.log_level:
        log_utils.set_log_level(fetch_config.log_level)

    if fetch_config.log_dir:
        log_utils.add_file_logging(
            Path(fetch_config.log_dir).expanduser(),
            "DEBUG" if args.verbose else (fetch_config.log_level or "INFO"),
        )


def run_download(fetch_config: FetchConfig) -> int:
    """
    Run the download pipeline.

    Per-combination failures are reported in the log but do not change the
    exit status; only configuration errors do.
    """
    with Transport(
        proxy_address=fetch_config.proxy_address,
        proxy_use_default_credentials=fetch_config.proxy_use_default_credentials,
        max_attempts=fetch_config.max_attempts,
        retry_delay=fetch_config.retry_delay,
    ) as transport:
        orchestrator = DownloadOrchestrator(fetch_config, transport=transport)
        orchestrator.run_download_pipeline()
    return 0


def run_resolve(fetch_config: FetchConfig) -> int:
    """Print each resolved channel and the latest version of every selected kind."""
    fetch_config.validate()
    with Transport(
        proxy_address=fetch_config.proxy_address,
        proxy_use_default_credentials=fetch_config.proxy_use_default_credentials,
        max_attempts=fetch_config.max_attempts,
        retry_delay=fetch_config.retry_delay,
    ) as transport:
        resolver = VersionResolver(
            fetch_config.metadata_feed, fetch_config.kinds, transport
        )
        channels = resolver.resolve_distinct_channel_versions(fetch_config.channels)
        for channel in channels:
            print(channel)
            for kind in fetch_config.kinds:
                try:
                    version = resolver.fetch_latest_version(channel, kind)
                except DotfetchError as e:
                    log_utils.logger.error(
                        f"Failed to resolve {kind} version for channel {channel}: {e}"
                    )
                    continue
                print(f"  {kind}: {version}")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the dotfetch command-line interface.

    Dispatches the download, resolve and version subcommands. Configuration
    errors exit with status 1 before any network activity; an interrupt exits
    with status 130.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        log_utils.logger.info(f"dotfetch v{get_dotfetch_version()}")
        return
    if args.command not in ("download", "resolve"):
        parser.print_help()
        return

    try:
        fetch_config = build_config(args)
        _configure_logging(args, fetch_config)
        if args.command == "download":
            exit_code = run_download(fetch_config)
        else:
            exit_code = run_resolve(fetch_config)
    except ConfigurationError as e:
        log_utils.logger.error(f"Configuration error: {e}")
        sys.exit(EXIT_CONFIG_ERROR)
    except KeyboardInterrupt:
        log_utils.logger.warning("Interrupted")
        sys.exit(EXIT_INTERRUPTED)

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
