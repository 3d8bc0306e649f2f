"""
Artifact Fetcher

Downloads one .vsix artifact, decompressing a gzip-encoded body, and saves it
atomically so that a failed transfer never replaces a good file.
"""

import gzip
import time
import zlib
from typing import Optional

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from urllib3.exceptions import ReadTimeoutError

from offline_vsix.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    GZIP_ENCODING,
    IDENTITY_ENCODING,
)
from offline_vsix.exceptions import (
    DecodeError,
    FetchHTTPError,
    FetchTimeoutError,
    FetchTransportError,
    FileWriteError,
)
from offline_vsix.log_utils import logger
from offline_vsix.utils import create_session, get_user_agent

from .files import FileOperations
from .interfaces import Pathish

ENCODING_HEADERS = ("Content-Encoding", "Transfer-Encoding")


def is_gzip_encoded(headers) -> bool:
    """
    Return True if the response headers declare a gzip-encoded body.

    Both Content-Encoding and Transfer-Encoding are inspected; either may list
    several comma-separated codings.
    """
    for header in ENCODING_HEADERS:
        value = headers.get(header) if headers is not None else None
        if not value:
            continue
        codings = [coding.strip().lower() for coding in str(value).split(",")]
        if GZIP_ENCODING in codings or "x-gzip" in codings:
            return True
    return False


def decompress_body(body: bytes, url: Optional[str] = None) -> bytes:
    """
    Fully decompress a gzip body.

    Raises:
        DecodeError: If the body is not valid gzip data.
    """
    try:
        return gzip.decompress(body)
    except (OSError, EOFError, zlib.error) as e:
        raise DecodeError(
            "Failed to decompress gzip data", url=url, details=str(e)
        ) from e


def _read_raw_body(response) -> bytes:
    """
    Read the undecoded response body.

    http.client only removes chunked framing when Transfer-Encoding is exactly
    `chunked`; with a list such as `gzip, chunked` the chunks are read here
    through urllib3 so that only the gzip coding is left to undo.
    """
    raw = response.raw
    if raw.chunked is True:
        return b"".join(raw.read_chunked(decode_content=False))
    return raw.read(decode_content=False)


def fetch_and_save(
    url: str,
    file_path: Pathish,
    proxy: Optional[str] = None,
    accept_encoding: Optional[str] = GZIP_ENCODING,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    file_operations: Optional[FileOperations] = None,
) -> int:
    """
    Download `url` and save the (decoded) body to `file_path`.

    The whole body is buffered before anything is written. The body is read raw,
    so a gzip Content-Encoding/Transfer-Encoding is undone here rather than by
    the HTTP library.

    Parameters:
        url (str): Artifact URL.
        file_path (Pathish): Destination file.
        proxy (Optional[str]): Proxy URL; only used when no `session` is supplied.
        accept_encoding (Optional[str]): "gzip" to advertise gzip support; any
            other value (or None) requests an identity-encoded body.
        session (Optional[requests.Session]): Session to download with. A
            temporary one is created (and closed) when omitted.
        timeout (float): Request timeout in seconds.
        file_operations (Optional[FileOperations]): Filesystem capability used for the write.

    Returns:
        int: Number of bytes written to `file_path`.

    Raises:
        FetchTimeoutError: If the request timed out.
        FetchTransportError: For connection failures.
        FetchHTTPError: For non-2xx answers.
        DecodeError: If a gzip body cannot be decompressed.
        FileWriteError: If the file cannot be written.
    """
    files = file_operations or FileOperations()
    owns_session = session is None
    http = session if session is not None else create_session(proxy)
    headers = {
        "Accept-Encoding": GZIP_ENCODING
        if accept_encoding == GZIP_ENCODING
        else IDENTITY_ENCODING,
        "User-Agent": get_user_agent(),
    }
    response = None
    try:
        logger.debug(f"Attempting to download {url} to {file_path}")
        start_time = time.time()
        try:
            response = http.get(url, headers=headers, stream=True, timeout=timeout)
            logger.debug(
                f"Received HTTP response status code: {response.status_code} for URL: {url}"
            )
            if not 200 <= response.status_code < 300:
                raise FetchHTTPError(
                    f"Download returned HTTP {response.status_code}",
                    status_code=response.status_code,
                    url=url,
                )
            body = _read_raw_body(response)
        except (requests.exceptions.Timeout, ReadTimeoutError) as e:
            raise FetchTimeoutError(
                f"Download timed out after {timeout}s", url=url, details=str(e)
            ) from e
        except requests.exceptions.RequestException as e:
            raise FetchTransportError("Download failed", url=url, details=str(e)) from e
        except (Urllib3HTTPError, OSError) as e:
            # raised by response.raw.read() when the stream breaks
            raise FetchTransportError(
                "Connection lost while reading the download", url=url, details=str(e)
            ) from e

        if is_gzip_encoded(response.headers):
            logger.debug(f"Decompressing gzip body ({len(body)} bytes) from {url}")
            body = decompress_body(body, url)

        try:
            written = files.atomic_write_bytes(file_path, body)
        except (OSError, ValueError) as e:
            # ValueError: the path is unusable, e.g. it contains a null byte
            raise FileWriteError(
                f"Could not write {file_path}", path=str(file_path), url=url, details=str(e)
            ) from e

        logger.debug("Download elapsed time: %.2fs for %s", time.time() - start_time, url)
        return written
    finally:
        if response is not None:
            response.close()
        if owns_session:
            http.close()
