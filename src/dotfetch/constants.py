"""
Constants and configuration values for dotfetch.

This module contains the feed URLs, timeouts, retry settings, directory names
and logging settings used throughout the application.
"""

# Feed base URLs
DEFAULT_FEED = "https://dotnetcli.azureedge.net/dotnet"
DEFAULT_UNCACHED_FEED = "https://dotnetcli.blob.core.windows.net/dotnet"
LATEST_VERSION_FILE = "latest.version"

# Channel aliases (matched case-insensitively)
CHANNEL_ALIASES = {
    "lts": "LTS",
    "current": "Current",
}

# Content types accepted for latest.version responses
METADATA_BINARY_CONTENT_TYPE = "application/octet-stream"
METADATA_TEXT_CONTENT_TYPES = ("text/plain", "text/plain; charset=UTF-8")

# Network timeouts and retry settings (in seconds)
DEFAULT_REQUEST_TIMEOUT = 1200  # large SDK archives on slow links
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 0.3
DEFAULT_CHUNK_SIZE = 8192

# Output layout
SDK_DIR_NAME = "SDK"
RUNTIME_DIR_NAME = "Runtime"
DEFAULT_OUTPUT_DIR = "dotnet-downloads"

# Default selection
DEFAULT_CHANNELS = ["LTS"]
DEFAULT_KINDS = ["sdk"]
DEFAULT_PLATFORMS = ["win-x64"]
DEFAULT_FORMATS = ["zip"]

# Configuration file
CONFIG_FILE_NAME = "dotfetch.yaml"
APP_NAME = "dotfetch"

# Logging configuration
LOGGER_NAME = "dotfetch"
LOG_FILE_NAME = "dotfetch.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "DOTFETCH_LOG_LEVEL"

# Exit codes
EXIT_CONFIG_ERROR = 1
EXIT_INTERRUPTED = 130
