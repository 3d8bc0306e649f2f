"""
Download Pipeline Orchestrator

This module sequences the pipeline stages for each extension identifier and is
the single place that renders user-facing log output for a run.
"""

import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import requests

from offline_vsix.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    ERROR_TYPE_FETCH,
    ERROR_TYPE_FILE_NAME,
    ERROR_TYPE_IDENTIFIER,
    ERROR_TYPE_QUERY,
    ERROR_TYPE_RESOLUTION,
    ERROR_TYPE_UNKNOWN,
    ERROR_TYPE_VERSION,
    GZIP_ENCODING,
)
from offline_vsix.exceptions import (
    DestinationError,
    FetchError,
    FetchHTTPError,
    InvalidIdentifierError,
    OfflineVsixError,
    QueryError,
    QueryHTTPError,
    ResolutionError,
    UnsafeFileNameError,
    VersionError,
)
from offline_vsix.log_utils import logger
from offline_vsix.utils import create_session, format_size

from .cache import should_fetch
from .fetcher import fetch_and_save
from .files import FileOperations
from .identifier import parse_identifier
from .interfaces import ExtensionResult, Pathish
from .locator import locate
from .platform import current_platform, is_override_supported, select_target
from .query import query_versions


def _error_type(error: Exception) -> str:
    if isinstance(error, InvalidIdentifierError):
        return ERROR_TYPE_IDENTIFIER
    if isinstance(error, VersionError):
        return ERROR_TYPE_VERSION
    if isinstance(error, UnsafeFileNameError):
        return ERROR_TYPE_FILE_NAME
    if isinstance(error, QueryError):
        return ERROR_TYPE_QUERY
    if isinstance(error, ResolutionError):
        return ERROR_TYPE_RESOLUTION
    if isinstance(error, FetchError):
        return ERROR_TYPE_FETCH
    return ERROR_TYPE_UNKNOWN


class ExtensionDownloadOrchestrator:
    """
    Orchestrates the resolve-and-fetch pipeline for a batch of extensions.

    This class coordinates:
    - Destination directory creation
    - Identifier parsing, metadata queries and platform resolution
    - Cache checks and downloads
    - Result aggregation and reporting

    A failure for one identifier is recorded and the batch continues.
    """

    def __init__(
        self,
        destination: Pathish,
        force: bool = False,
        proxy: Optional[str] = None,
        platform_override: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        file_operations: Optional[FileOperations] = None,
        native_platform: Optional[str] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        retries: int = DEFAULT_CONNECT_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        accept_encoding: Optional[str] = GZIP_ENCODING,
    ):
        """
        Create an orchestrator for one run.

        Parameters:
            destination (Pathish): Directory the artifacts are saved to (created if missing).
            force (bool): Re-download artifacts that already exist.
            proxy (Optional[str]): Proxy URL for every request of the run.
            platform_override (Optional[str]): Platform to fetch instead of the native one.
            session (Optional[requests.Session]): HTTP session to use; one is created from
                `proxy`, `retries` and `backoff_factor` when omitted.
            file_operations (Optional[FileOperations]): Filesystem capability.
            native_platform (Optional[str]): Marketplace platform of this machine; detected
                with current_platform() when omitted.
            timeout (float): Per-request timeout in seconds.
            retries (int): Retry count for a session created here.
            backoff_factor (float): Retry backoff for a session created here.
            accept_encoding (Optional[str]): "gzip" to accept gzip-encoded downloads.
        """
        self.destination = Path(destination)
        self.force = force
        self.proxy = proxy
        self.platform_override = platform_override or None
        self.native_platform = native_platform or current_platform()
        self.timeout = timeout
        self.retries = retries
        self.backoff_factor = backoff_factor
        self.accept_encoding = accept_encoding
        self.file_operations = file_operations or FileOperations()

        self._session = session
        self._owns_session = session is None

        self.results: List[ExtensionResult] = []
        self.elapsed_seconds: float = 0.0

    @property
    def session(self) -> requests.Session:
        """The HTTP session of the run, created on first use."""
        if self._session is None:
            self._session = create_session(
                self.proxy, retries=self.retries, backoff_factor=self.backoff_factor
            )
        return self._session

    def close(self) -> None:
        """Close the HTTP session if this orchestrator created it."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def prepare_destination(self) -> Path:
        """
        Ensure the destination directory exists.

        Raises:
            DestinationError: If it cannot be created; this aborts the run.
        """
        try:
            return self.file_operations.ensure_directory_exists(self.destination)
        except OSError as e:
            raise DestinationError(
                f"Could not create destination directory {self.destination}",
                path=str(self.destination),
                details=str(e),
            ) from e

    def run(self, identifiers: Iterable[str]) -> List[ExtensionResult]:
        """
        Process every identifier in order and return one result per identifier.

        Raises:
            DestinationError: If the destination directory cannot be created.
        """
        start_time = time.time()
        self.results = []
        self.prepare_destination()

        if self.platform_override:
            logger.info(f"Using platform override: {self.platform_override}")
        else:
            logger.debug(f"Native platform: {self.native_platform}")

        try:
            for raw_identifier in identifiers:
                self.results.append(self.process_extension(raw_identifier))
        finally:
            self.close()

        self.elapsed_seconds = time.time() - start_time
        self._log_download_summary()
        return self.results

    def process_extension(self, raw_identifier: str) -> ExtensionResult:
        """
        Run the pipeline for one identifier.

        Pipeline failures are logged and returned as a failed ExtensionResult.
        """
        result = ExtensionResult(identifier=str(raw_identifier), success=False)
        logger.debug(f"Processing extension: {raw_identifier}")
        try:
            self._run_pipeline(raw_identifier, result)
        except OfflineVsixError as e:
            self._record_failure(result, e)
        return result

    def _run_pipeline(self, raw_identifier: str, result: ExtensionResult) -> None:
        identifier = parse_identifier(raw_identifier)
        label = str(identifier)

        versions = query_versions(
            identifier.publisher,
            identifier.name,
            self.proxy,
            session=self.session,
            timeout=self.timeout,
        )

        target = select_target(
            self.native_platform, self.platform_override, versions, identifier=label
        )
        if (
            self.platform_override
            and target.platform is None
            and not is_override_supported(self.platform_override, versions)
        ):
            logger.warning(
                f"{label}: no build for platform {self.platform_override}, "
                "using the platform-agnostic release"
            )
        result.version = target.version
        result.platform = target.platform

        url, name = locate(identifier, target)
        file_path = self.destination / name
        result.download_url = url
        result.file_path = file_path
        logger.debug(f"Download URL for {label}: {url}")

        if not should_fetch(file_path, self.force):
            result.success = True
            result.was_skipped = True
            try:
                size = format_size(self.file_operations.get_file_size(file_path))
            except OSError as e:
                logger.debug(f"Could not read size of {file_path}: {e}")
                size = "size unknown"
            logger.info(f"Skipped: {name} (already present, {size})")
            return

        written = fetch_and_save(
            url,
            file_path,
            self.proxy,
            self.accept_encoding,
            session=self.session,
            timeout=self.timeout,
            file_operations=self.file_operations,
        )
        result.success = True
        result.bytes_written = written
        logger.info(f"Downloaded: {name} ({format_size(written)})")

    def _record_failure(self, result: ExtensionResult, error: OfflineVsixError) -> None:
        result.success = False
        result.error_message = str(error)
        result.error_type = _error_type(error)
        if isinstance(error, (QueryHTTPError, FetchHTTPError)):
            result.http_status_code = error.status_code
        logger.error(f"Failed to process {result.identifier}: {error}")

    @property
    def downloaded(self) -> List[ExtensionResult]:
        return [r for r in self.results if r.was_downloaded]

    @property
    def skipped(self) -> List[ExtensionResult]:
        return [r for r in self.results if r.success and r.was_skipped]

    @property
    def failed(self) -> List[ExtensionResult]:
        return [r for r in self.results if not r.success]

    def get_statistics(self) -> Dict[str, Any]:
        """
        Summarize the last run.

        Returns:
            Dict[str, Any]: Counts of total/downloaded/skipped/failed extensions,
            elapsed seconds, and the identifiers that failed.
        """
        return {
            "total": len(self.results),
            "downloaded": len(self.downloaded),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
            "elapsed_seconds": self.elapsed_seconds,
            "failed_identifiers": [r.identifier for r in self.failed],
        }

    def _log_download_summary(self) -> None:
        stats = self.get_statistics()
        logger.info(
            f"Completed in {stats['elapsed_seconds']:.1f}s: "
            f"{stats['downloaded']} downloaded, {stats['skipped']} skipped, "
            f"{stats['failed']} failed"
        )
        for failure in self.failed:
            logger.info(f"  {failure.identifier}: {failure.error_message}")


def run(
    identifiers: Iterable[str],
    destination: Pathish,
    force: bool = False,
    proxy: Optional[str] = None,
    platform_override: Optional[str] = None,
    **kwargs: Any,
) -> List[ExtensionResult]:
    """
    Resolve and fetch every identifier into `destination`.

    Extra keyword arguments are passed to ExtensionDownloadOrchestrator.

    Raises:
        DestinationError: If the destination directory cannot be created.
    """
    orchestrator = ExtensionDownloadOrchestrator(
        destination, force, proxy, platform_override, **kwargs
    )
    return orchestrator.run(identifiers)
