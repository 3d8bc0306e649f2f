# src/offline_vsix/utils.py
import importlib.metadata
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry  # type: ignore

from offline_vsix.constants import (
    APP_NAME,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CONNECT_RETRIES,
    RETRY_STATUS_FORCELIST,
)
from offline_vsix.log_utils import logger

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None


def get_app_version() -> str:
    """Return the installed offline-vsix version, or `unknown` when it is not installed."""
    try:
        return importlib.metadata.version(APP_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `offline-vsix/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        _USER_AGENT_CACHE = f"{APP_NAME}/{get_app_version()}"

    return _USER_AGENT_CACHE


def build_retry_strategy(
    retries: int = DEFAULT_CONNECT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> Retry:
    """
    Build the urllib3 retry policy mounted on every session.

    With `retries == 0` (the default) no request is ever repeated. Otherwise
    connect/read failures and 408/429/5xx answers are retried with exponential
    backoff for both the query POST and the download GET.

    Parameters:
        retries (int): Maximum number of retries; negative values are treated as 0.
        backoff_factor (float): urllib3 backoff factor between attempts.

    Returns:
        Retry: The configured retry policy.
    """
    retries = max(0, int(retries))
    if retries == 0:
        return Retry(0, read=False)
    return Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=list(RETRY_STATUS_FORCELIST),
        allowed_methods=frozenset({"GET", "HEAD", "POST"}),
        raise_on_status=False,
        respect_retry_after_header=True,
    )


def create_session(
    proxy: Optional[str] = None,
    retries: int = DEFAULT_CONNECT_RETRIES,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
) -> requests.Session:
    """
    Create the HTTP session shared by the metadata query and the artifact download.

    Parameters:
        proxy (Optional[str]): Proxy URL applied to both http and https requests.
        retries (int): Retry count handed to build_retry_strategy().
        backoff_factor (float): Backoff factor handed to build_retry_strategy().

    Returns:
        requests.Session: A session carrying the user agent, proxy and retry adapter.
    """
    session = requests.Session()
    session.headers["User-Agent"] = get_user_agent()

    adapter = HTTPAdapter(max_retries=build_retry_strategy(retries, backoff_factor))
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    if proxy:
        logger.debug(f"Using proxy for marketplace requests: {proxy}")
        session.proxies.update({"http": proxy, "https": proxy})

    return session


def format_size(num_bytes: int) -> str:
    """
    Render a byte count for log messages.

    Returns:
        str: `"<n> bytes"` below one megabyte, otherwise `"<x.y> MB"`.
    """
    size_mb = num_bytes / (1024 * 1024)
    if size_mb >= 1.0:
        return f"{size_mb:.1f} MB"
    return f"{num_bytes} bytes"
