"""
Core data structures for the offline-vsix extension pipeline.

These types flow between the pipeline stages for a single extension and are
discarded once that extension has been processed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

Pathish = Union[str, Path]

VersionMap = Mapping[Optional[str], str]
"""Latest published version per target platform; the `None` key is the platform-agnostic release."""


@dataclass(frozen=True)
class ExtensionIdentifier:
    """A marketplace extension named by its publisher and extension name."""

    publisher: str
    """Publisher part of `publisher.name`"""

    name: str
    """Extension name part of `publisher.name`"""

    def __str__(self) -> str:
        return f"{self.publisher}.{self.name}"


@dataclass(frozen=True)
class ResolvedTarget:
    """The build chosen for download."""

    platform: Optional[str]
    """Target platform (e.g. 'linux-x64'), or None for the platform-agnostic build"""

    version: str
    """The version string published for that platform"""


@dataclass
class ExtensionResult:
    """Result of processing one extension identifier."""

    identifier: str
    """The raw identifier as given in the extension list"""

    success: bool
    """Whether the extension is present in the destination after processing"""

    was_skipped: bool = False
    """Whether the fetch was skipped because the artifact was already cached"""

    version: Optional[str] = None
    """Resolved version, when resolution got that far"""

    platform: Optional[str] = None
    """Resolved target platform; None for platform-agnostic builds"""

    download_url: Optional[str] = None
    """Canonical download URL of the artifact"""

    file_path: Optional[Pathish] = None
    """Local path of the artifact"""

    bytes_written: Optional[int] = None
    """Number of bytes saved (only for fresh downloads)"""

    error_message: Optional[str] = None
    """Error message (if failed)"""

    error_type: Optional[str] = None
    """Pipeline stage that failed (identifier, query, resolution, version, fetch)"""

    http_status_code: Optional[int] = None
    """HTTP status code if the failure was an HTTP error"""

    @property
    def was_downloaded(self) -> bool:
        """True when the artifact was fetched during this run."""
        return self.success and not self.was_skipped
