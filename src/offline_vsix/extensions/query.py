"""
Marketplace Metadata Query

This module sends the extension query to the marketplace gallery API and turns
its response into a per-platform version map. The JSON document is validated
once into typed dataclasses so that later stages never re-check field presence.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Optional

import requests

from offline_vsix.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    MARKETPLACE_ACCEPT_HEADER,
    MARKETPLACE_QUERY_URL,
    QUERY_FILTER_TYPE_EXTENSION_NAME,
    QUERY_FLAGS,
)
from offline_vsix.exceptions import (
    MalformedResponseError,
    QueryHTTPError,
    QueryTimeoutError,
    QueryTransportError,
)
from offline_vsix.log_utils import logger
from offline_vsix.utils import create_session, get_user_agent

from .interfaces import VersionMap


@dataclass(frozen=True)
class VersionEntry:
    """One published version of an extension."""

    version: str
    target_platform: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["VersionEntry"]:
        """
        Build an entry from a raw `versions[]` element.

        Returns:
            Optional[VersionEntry]: The entry, or None when the element has no string `version`.
        """
        if not isinstance(data, dict):
            return None
        version = data.get("version")
        if not isinstance(version, str):
            return None
        platform = data.get("targetPlatform")
        return cls(version=version, target_platform=platform if isinstance(platform, str) else None)


@dataclass(frozen=True)
class ExtensionEntry:
    """An extension in a query result, with its versions newest first."""

    versions: List[VersionEntry] = field(default_factory=list)


@dataclass(frozen=True)
class QueryResult:
    """One result block of the query response."""

    extensions: List[ExtensionEntry] = field(default_factory=list)


@dataclass(frozen=True)
class QueryResponse:
    """The validated shape of an `extensionquery` response."""

    results: List[QueryResult]

    @classmethod
    def from_json(cls, document: Any, identifier: Optional[str] = None) -> "QueryResponse":
        """
        Validate a decoded JSON document.

        Only the path `results[0].extensions[0].versions` is required; it must
        be present and be a list. Elements of that list lacking a string
        `version` are dropped.

        Raises:
            MalformedResponseError: If the required path is absent or of the wrong type.
        """

        def _malformed(reason: str) -> MalformedResponseError:
            return MalformedResponseError(
                "Unexpected marketplace response",
                identifier=identifier,
                url=MARKETPLACE_QUERY_URL,
                details=reason,
            )

        if not isinstance(document, dict):
            raise _malformed("response is not a JSON object")

        results = document.get("results")
        if not isinstance(results, list) or not results:
            raise _malformed("missing results")
        if not isinstance(results[0], dict):
            raise _malformed("results[0] is not an object")

        extensions = results[0].get("extensions")
        if not isinstance(extensions, list) or not extensions:
            raise _malformed("extension not found in results[0]")
        if not isinstance(extensions[0], dict):
            raise _malformed("results[0].extensions[0] is not an object")

        versions = extensions[0].get("versions")
        if not isinstance(versions, list):
            raise _malformed("missing versions array")

        entries = [
            entry
            for entry in (VersionEntry.from_json(item) for item in versions)
            if entry is not None
        ]
        return cls(results=[QueryResult(extensions=[ExtensionEntry(versions=entries)])])

    @property
    def versions(self) -> List[VersionEntry]:
        """Versions of the first extension of the first result."""
        return self.results[0].extensions[0].versions

    def version_map(self) -> VersionMap:
        """
        Reduce the versions list to the latest version per platform key.

        The marketplace lists versions newest first, so the first occurrence of
        each platform key is kept.

        Returns:
            VersionMap: Read-only mapping of platform (None for agnostic) to version.
        """
        latest: Dict[Optional[str], str] = {}
        for entry in self.versions:
            if entry.target_platform not in latest:
                latest[entry.target_platform] = entry.version
        return MappingProxyType(latest)


def build_query_payload(publisher: str, name: str) -> Dict[str, Any]:
    """Return the `extensionquery` request body selecting `publisher.name`."""
    return {
        "filters": [
            {
                "criteria": [
                    {
                        "filterType": QUERY_FILTER_TYPE_EXTENSION_NAME,
                        "value": f"{publisher}.{name}",
                    }
                ]
            }
        ],
        "flags": QUERY_FLAGS,
    }


def build_query_headers() -> Dict[str, str]:
    """Return the headers sent with the metadata query."""
    return {
        "Content-Type": "application/json",
        "Accept": MARKETPLACE_ACCEPT_HEADER,
        "User-Agent": get_user_agent(),
    }


def parse_query_response(document: Any, identifier: Optional[str] = None) -> VersionMap:
    """Validate a decoded response document and return its version map."""
    return QueryResponse.from_json(document, identifier).version_map()


def query_versions(
    publisher: str,
    name: str,
    proxy: Optional[str] = None,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> VersionMap:
    """
    Query the marketplace for the published versions of one extension.

    Parameters:
        publisher (str): Extension publisher.
        name (str): Extension name.
        proxy (Optional[str]): Proxy URL; only used when no `session` is supplied.
        session (Optional[requests.Session]): Session to send the request with. A
            temporary one is created (and closed) when omitted.
        timeout (float): Request timeout in seconds.

    Returns:
        VersionMap: Latest version per platform key.

    Raises:
        QueryTimeoutError: If the request timed out.
        QueryTransportError: For connection, TLS or proxy failures.
        QueryHTTPError: If the marketplace answered with a non-success status.
        MalformedResponseError: If the body is not JSON or lacks the versions array.
    """
    identifier = f"{publisher}.{name}"
    owns_session = session is None
    http = session if session is not None else create_session(proxy)
    response = None
    try:
        logger.debug(f"Sending marketplace query for {identifier}")
        try:
            response = http.post(
                MARKETPLACE_QUERY_URL,
                json=build_query_payload(publisher, name),
                headers=build_query_headers(),
                timeout=timeout,
            )
        except requests.exceptions.Timeout as e:
            raise QueryTimeoutError(
                f"Marketplace query timed out after {timeout}s",
                identifier=identifier,
                url=MARKETPLACE_QUERY_URL,
                details=str(e),
            ) from e
        except requests.exceptions.RequestException as e:
            raise QueryTransportError(
                "Marketplace query failed",
                identifier=identifier,
                url=MARKETPLACE_QUERY_URL,
                details=str(e),
            ) from e

        logger.debug(
            f"Received HTTP status {response.status_code} for query of {identifier}"
        )
        if not 200 <= response.status_code < 300:
            raise QueryHTTPError(
                f"Marketplace query returned HTTP {response.status_code}",
                status_code=response.status_code,
                identifier=identifier,
                url=MARKETPLACE_QUERY_URL,
            )

        try:
            document = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Marketplace response is not valid JSON",
                identifier=identifier,
                url=MARKETPLACE_QUERY_URL,
                details=str(e),
            ) from e

        versions = parse_query_response(document, identifier)
        logger.debug(f"Latest versions of {identifier}: {dict(versions)}")
        return versions
    finally:
        if response is not None:
            response.close()
        if owns_session:
            http.close()
