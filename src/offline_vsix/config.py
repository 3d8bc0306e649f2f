# src/offline_vsix/config.py

import json
import os
from typing import Any, Dict, List, Mapping, Optional

import platformdirs
import yaml

from offline_vsix.constants import (
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_DESTINATION_DIR,
    DEFAULT_INPUT_FILE,
    DEFAULT_REQUEST_TIMEOUT,
    RECOMMENDATIONS_KEY,
)
from offline_vsix.exceptions import ConfigFileError, ExtensionListError
from offline_vsix.log_utils import logger

CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)
CONFIG_FILE = os.path.join(CONFIG_DIR, CONFIG_FILE_NAME)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "INPUT": DEFAULT_INPUT_FILE,
    "DESTINATION": DEFAULT_DESTINATION_DIR,
    "FORCE": False,
    "PROXY": None,
    "PLATFORM": None,
    "LOG_LEVEL": None,
    "LOG_DIR": None,
    "REQUEST_TIMEOUT": DEFAULT_REQUEST_TIMEOUT,
    "CONNECT_RETRIES": DEFAULT_CONNECT_RETRIES,
    "BACKOFF_FACTOR": DEFAULT_BACKOFF_FACTOR,
    "ACCEPT_GZIP": True,
    "STRICT": False,
}

_BOOL_KEYS = frozenset({"FORCE", "ACCEPT_GZIP", "STRICT"})
_STRING_KEYS = frozenset({"INPUT", "DESTINATION"})
_OPTIONAL_STRING_KEYS = frozenset({"PROXY", "PLATFORM", "LOG_LEVEL", "LOG_DIR"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_setting(key: str, value: Any) -> Optional[str]:
    """Return a description of what is wrong with `value`, or None if it is acceptable."""
    if key in _BOOL_KEYS:
        return None if isinstance(value, bool) else "expected true or false"
    if key in _STRING_KEYS:
        return None if isinstance(value, str) and value else "expected a non-empty string"
    if key in _OPTIONAL_STRING_KEYS:
        return None if value is None or isinstance(value, str) else "expected a string"
    if key == "REQUEST_TIMEOUT":
        return None if _is_number(value) and value > 0 else "expected a positive number"
    if key == "CONNECT_RETRIES":
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return None
        return "expected a non-negative integer"
    if key == "BACKOFF_FACTOR":
        return None if _is_number(value) and value >= 0 else "expected a non-negative number"
    return None


def validate_settings(settings: Mapping[str, Any], path: Optional[str] = None) -> Dict[str, Any]:
    """
    Validate settings values from the YAML file or the command line.

    Unknown keys are reported with a warning and dropped.

    Returns:
        Dict[str, Any]: The recognised settings.

    Raises:
        ConfigFileError: If a recognised key holds a value of the wrong type.
    """
    validated: Dict[str, Any] = {}
    for key, value in settings.items():
        if key not in DEFAULT_SETTINGS:
            logger.warning(f"Ignoring unknown setting '{key}' in {path or 'settings'}")
            continue
        problem = _check_setting(key, value)
        if problem:
            raise ConfigFileError(
                f"Invalid value for setting {key}",
                path=path,
                details=f"{problem}, got {value!r}",
            )
        validated[key] = value
    return validated


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load the settings YAML and merge it over DEFAULT_SETTINGS.

    If `path` is None the platformdirs-managed CONFIG_FILE is used, and a missing
    file simply yields the defaults. An explicitly requested file must exist.

    Parameters:
        path (str | None): Explicit settings file, e.g. from `--config`.

    Returns:
        dict: Complete settings with every key of DEFAULT_SETTINGS present.

    Raises:
        ConfigFileError: If the file is missing (explicit path only), unreadable,
            not valid YAML, not a mapping, or holds invalid values.
    """
    settings = dict(DEFAULT_SETTINGS)
    config_path = path if path else CONFIG_FILE

    if not os.path.exists(config_path):
        if path:
            raise ConfigFileError("Settings file not found", path=config_path)
        logger.debug(f"No settings file at {config_path}, using defaults")
        return settings

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(
            "Could not read settings file", path=config_path, details=str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(
            "Settings file is not valid YAML", path=config_path, details=str(e)
        ) from e

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigFileError(
            "Settings file must contain a mapping",
            path=config_path,
            details=f"got {type(loaded).__name__}",
        )

    logger.debug(f"Loaded settings from {config_path}")
    settings.update(validate_settings(loaded, config_path))
    return settings


def merge_settings(
    settings: Mapping[str, Any], overrides: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    Apply command-line overrides on top of loaded settings.

    Override values of None mean "not given on the command line" and are skipped.

    Raises:
        ConfigFileError: If an override has the wrong type or range.
    """
    given = {key: value for key, value in overrides.items() if value is not None}
    merged = dict(settings)
    merged.update(validate_settings(given, "command line"))
    return merged


def load_extension_list(path: str) -> List[str]:
    """
    Read extension identifiers from a VS Code `extensions.json` file.

    Only the `recommendations` array is used; other keys such as
    `unwantedRecommendations` are ignored. Duplicates are dropped, keeping the
    order of first occurrence.

    Returns:
        List[str]: Raw identifiers (not yet parsed).

    Raises:
        ExtensionListError: If the file is missing or unreadable, is not valid JSON,
            or has no list of strings under `recommendations`.
    """
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            document = json.load(f)
    except FileNotFoundError as e:
        raise ExtensionListError(
            "Extension list not found", path=str(path), details=str(e)
        ) from e
    except OSError as e:
        raise ExtensionListError(
            "Could not read extension list", path=str(path), details=str(e)
        ) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ExtensionListError(
            "Extension list is not valid JSON", path=str(path), details=str(e)
        ) from e

    if not isinstance(document, dict) or RECOMMENDATIONS_KEY not in document:
        raise ExtensionListError(
            f"Extension list has no '{RECOMMENDATIONS_KEY}' entry", path=str(path)
        )

    recommendations = document[RECOMMENDATIONS_KEY]
    if not isinstance(recommendations, list):
        raise ExtensionListError(
            f"'{RECOMMENDATIONS_KEY}' must be a list",
            path=str(path),
            details=f"got {type(recommendations).__name__}",
        )

    bad = [entry for entry in recommendations if not isinstance(entry, str)]
    if bad:
        raise ExtensionListError(
            f"'{RECOMMENDATIONS_KEY}' must only contain strings",
            path=str(path),
            details=f"invalid entries: {bad!r}",
        )

    identifiers = list(dict.fromkeys(recommendations))
    logger.debug(f"Read {len(identifiers)} extension(s) from {path}")
    return identifiers
