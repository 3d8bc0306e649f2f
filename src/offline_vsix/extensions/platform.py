"""
Platform Resolution

Decides which build of an extension to fetch: a platform-specific build for
the requesting machine (or an explicit override) or the platform-agnostic one.
"""

import os
import platform as _platform
from typing import Optional

from offline_vsix.constants import (
    ALPINE_RELEASE_FILE,
    PLATFORM_ARCH_MAP,
    PLATFORM_OS_MAP,
)
from offline_vsix.exceptions import NoResolvableTargetError, UnsupportedPlatformError

from .interfaces import ResolvedTarget, VersionMap
from .version import Version


def current_platform(
    system: Optional[str] = None, machine: Optional[str] = None
) -> str:
    """
    Return the marketplace platform string of this machine, e.g. "linux-x64".

    Python's `platform.system()` / `platform.machine()` values are mapped to the
    names the marketplace uses (`Darwin` -> `darwin`, `x86_64` -> `x64`, ...).
    On Linux, `alpine` replaces `linux` when /etc/alpine-release exists. Values
    without a mapping are passed through lower-cased.

    Parameters:
        system (Optional[str]): Operating system name; detected when omitted.
        machine (Optional[str]): Machine architecture; detected when omitted.
    """
    raw_system = (system if system is not None else _platform.system()).lower()
    raw_machine = (machine if machine is not None else _platform.machine()).lower()

    os_name = PLATFORM_OS_MAP.get(raw_system, raw_system)
    if os_name == "linux" and system is None and os.path.exists(ALPINE_RELEASE_FILE):
        os_name = "alpine"
    arch = PLATFORM_ARCH_MAP.get(raw_machine, raw_machine)
    return f"{os_name}-{arch}"


def resolve(
    current: str, override: Optional[str], versions: VersionMap
) -> Optional[ResolvedTarget]:
    """
    Choose the platform-specific build to download, if any.

    1. An empty map never resolves.
    2. With an override, resolve to it only if the map has a build for it.
    3. Otherwise, when the current platform has a build: take it if there is no
       platform-agnostic release, or if its version is strictly newer than the
       agnostic one.
    4. Anything else does not resolve.

    A None result leaves the choice of the platform-agnostic build to the caller
    (see select_target()).

    Raises:
        VersionError: If versions have to be compared and one is malformed.
    """
    if not versions:
        return None

    if override is not None:
        if override in versions:
            return ResolvedTarget(platform=override, version=versions[override])
        return None

    if current in versions:
        platform_version = versions[current]
        if None not in versions:
            return ResolvedTarget(platform=current, version=platform_version)
        if Version.parse(platform_version) > Version.parse(versions[None]):
            return ResolvedTarget(platform=current, version=platform_version)

    return None


def select_target(
    current: str,
    override: Optional[str],
    versions: VersionMap,
    identifier: Optional[str] = None,
) -> ResolvedTarget:
    """
    Pick the build to download for one extension.

    Uses resolve() first and falls back to the platform-agnostic release when
    the map has one.

    Raises:
        NoResolvableTargetError: If the map is empty, or nothing matches and there
            is no platform-agnostic release.
        UnsupportedPlatformError: If an override was requested, it has no build and
            there is no platform-agnostic release.
        VersionError: If a version needed for comparison is malformed.
    """
    if not versions:
        raise NoResolvableTargetError(
            "No published versions found", identifier=identifier
        )

    target = resolve(current, override, versions)
    if target is not None:
        return target

    if None in versions:
        return ResolvedTarget(platform=None, version=versions[None])

    available = [key for key in versions if key is not None]
    if override is not None:
        raise UnsupportedPlatformError(
            f"Unsupported platform: {override}",
            platform=override,
            available=available,
            identifier=identifier,
        )
    raise NoResolvableTargetError(
        f"No build published for platform {current}",
        identifier=identifier,
        details=f"available: {', '.join(sorted(available))}",
    )


def is_override_supported(override: str, versions: VersionMap) -> bool:
    """Return True if `versions` has a build for the platform `override`."""
    return override in versions
