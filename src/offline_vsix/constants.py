"""
Constants and configuration values for offline-vsix.

This module contains all hardcoded values, URLs, timeouts, and other constants
used throughout the application.
"""

# Marketplace gallery API
MARKETPLACE_GALLERY_BASE = "https://marketplace.visualstudio.com/_apis/public/gallery"
MARKETPLACE_QUERY_URL = f"{MARKETPLACE_GALLERY_BASE}/extensionquery"
MARKETPLACE_DOWNLOAD_URL_TEMPLATE = (
    f"{MARKETPLACE_GALLERY_BASE}/publishers/{{publisher}}/vsextensions/"
    "{name}/{version}/vspackage"
)
MARKETPLACE_API_VERSION = "3.0-preview.1"
MARKETPLACE_ACCEPT_HEADER = f"application/json;api-version={MARKETPLACE_API_VERSION}"
TARGET_PLATFORM_PARAM = "targetPlatform"

# Extension query payload values
QUERY_FILTER_TYPE_EXTENSION_NAME = 7
# IncludeFiles | IncludeVersionProperties | IncludeAssetUri | IncludeStatistics | IncludeLatestVersionOnly
QUERY_FLAGS = 914

# Identifier and artifact naming
IDENTIFIER_SEPARATOR = "."
VSIX_EXTENSION = ".vsix"
PLATFORM_FILE_SEPARATOR = "@"

# Network timeouts and retry settings (in seconds)
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_CONNECT_RETRIES = 0
DEFAULT_BACKOFF_FACTOR = 0.3
RETRY_STATUS_FORCELIST = (408, 429, 500, 502, 503, 504)
GZIP_ENCODING = "gzip"
IDENTITY_ENCODING = "identity"

# Default locations, relative to the working directory
DEFAULT_INPUT_FILE = "./.vscode/extensions.json"
DEFAULT_DESTINATION_DIR = "./.vscode/extensions"
RECOMMENDATIONS_KEY = "recommendations"

# Settings file
APP_NAME = "offline-vsix"
CONFIG_FILE_NAME = "offline_vsix.yaml"

# Result error types
ERROR_TYPE_IDENTIFIER = "identifier"
ERROR_TYPE_QUERY = "query"
ERROR_TYPE_RESOLUTION = "resolution"
ERROR_TYPE_VERSION = "version"
ERROR_TYPE_FILE_NAME = "file_name"
ERROR_TYPE_FETCH = "fetch"
ERROR_TYPE_UNKNOWN = "unknown"

# Platform normalization tables (python platform values -> marketplace values)
PLATFORM_OS_MAP = {
    "windows": "win32",
    "win32": "win32",
    "darwin": "darwin",
    "macos": "darwin",
    "linux": "linux",
}
PLATFORM_ARCH_MAP = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "armv7": "armhf",
    "armhf": "armhf",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
}
ALPINE_RELEASE_FILE = "/etc/alpine-release"

# Logging configuration
LOGGER_NAME = "offline_vsix"
LOG_FILE_NAME = "offline_vsix.log"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "OFFLINE_VSIX_LOG_LEVEL"

# Exit codes
EXIT_OK = 0
EXIT_FAILURE = 1
