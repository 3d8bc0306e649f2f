"""
offline-vsix Extension Pipeline

This package resolves VS Code extension identifiers to concrete marketplace
releases and fetches the matching .vsix artifacts for offline installation.

Core Components:
- identifier: `publisher.name` parsing
- query: Marketplace metadata query and response schema
- platform: Native platform detection and target resolution
- version: `major.minor.patch` ordering
- locator: Download URLs and local file names
- cache: Skip-if-present gate
- fetcher: Artifact download and gzip decoding
- files: Atomic file operations
- orchestrator: Download pipeline coordination
"""

from .cache import should_fetch
from .fetcher import fetch_and_save
from .files import FileOperations
from .identifier import parse_identifier
from .interfaces import ExtensionIdentifier, ExtensionResult, ResolvedTarget
from .locator import download_url, file_name, locate
from .orchestrator import ExtensionDownloadOrchestrator, run
from .platform import current_platform, resolve, select_target
from .query import query_versions
from .version import Version, compare_versions

__all__ = [
    # Interfaces
    "ExtensionIdentifier",
    "ResolvedTarget",
    "ExtensionResult",
    # Pipeline stages
    "parse_identifier",
    "query_versions",
    "current_platform",
    "resolve",
    "select_target",
    "download_url",
    "file_name",
    "locate",
    "should_fetch",
    "fetch_and_save",
    # Orchestration
    "ExtensionDownloadOrchestrator",
    "run",
    # Core components
    "FileOperations",
    "Version",
    "compare_versions",
]
