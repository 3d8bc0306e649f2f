"""Canonical download URLs and local file names of .vsix artifacts."""

from typing import Optional, Tuple
from urllib.parse import quote, urlencode

from offline_vsix.constants import (
    MARKETPLACE_DOWNLOAD_URL_TEMPLATE,
    PLATFORM_FILE_SEPARATOR,
    TARGET_PLATFORM_PARAM,
    VSIX_EXTENSION,
)
from offline_vsix.exceptions import UnsafeFileNameError

from .files import _sanitize_path_component
from .interfaces import ExtensionIdentifier, ResolvedTarget


def download_url(
    publisher: str, name: str, version: str, platform: Optional[str] = None
) -> str:
    """
    Build the marketplace download URL of one artifact.

    The `targetPlatform` query parameter is appended only when `platform` is given.
    """
    url = MARKETPLACE_DOWNLOAD_URL_TEMPLATE.format(
        publisher=quote(publisher, safe=""),
        name=quote(name, safe=""),
        version=quote(version, safe=""),
    )
    if platform is not None:
        url = f"{url}?{urlencode({TARGET_PLATFORM_PARAM: platform})}"
    return url


def file_name(
    publisher: str, name: str, version: str, platform: Optional[str] = None
) -> str:
    """
    Build the local file name of one artifact: `publisher.name-version[@platform].vsix`.

    Raises:
        UnsafeFileNameError: If any part is not a safe path component, e.g. a
            marketplace version containing a path separator or a null byte.
    """
    parts = {"publisher": publisher, "name": name, "version": version}
    if platform is not None:
        parts["platform"] = platform
    for field, value in parts.items():
        if _sanitize_path_component(value) != value:
            raise UnsafeFileNameError(
                f"Unsafe {field} for a file name: {value!r}",
                field=field,
                value=repr(value),
            )

    base = f"{publisher}.{name}-{version}"
    if platform is not None:
        base = f"{base}{PLATFORM_FILE_SEPARATOR}{platform}"
    return f"{base}{VSIX_EXTENSION}"


def locate(identifier: ExtensionIdentifier, target: ResolvedTarget) -> Tuple[str, str]:
    """Return `(download_url, file_name)` for a resolved target."""
    args = (identifier.publisher, identifier.name, target.version, target.platform)
    return download_url(*args), file_name(*args)
