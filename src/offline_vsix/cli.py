# src/offline_vsix/cli.py

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

from offline_vsix import log_utils
from offline_vsix.config import load_extension_list, load_settings, merge_settings
from offline_vsix.constants import (
    EXIT_FAILURE,
    EXIT_OK,
    GZIP_ENCODING,
    IDENTITY_ENCODING,
)
from offline_vsix.exceptions import ConfigurationError, DestinationError
from offline_vsix.extensions import orchestrator
from offline_vsix.utils import get_app_version


def build_parser() -> argparse.ArgumentParser:
    """
    Build the command-line parser.

    Every option defaults to None so that merge_settings() can tell "not given"
    apart from an explicit value and let the settings file fill the gap.
    """
    parser = argparse.ArgumentParser(
        prog="offline-vsix",
        description="Download VS Code extensions (.vsix) for offline installation",
    )
    parser.add_argument(
        "-i",
        "--input",
        help="Extension list file with a 'recommendations' array "
        "(default: ./.vscode/extensions.json)",
    )
    parser.add_argument(
        "-d",
        "--destination",
        help="Directory to save .vsix files to (default: ./.vscode/extensions)",
    )
    parser.add_argument(
        "--no-cache",
        "--force",
        dest="force",
        action="store_true",
        default=None,
        help="Download even if the .vsix file already exists",
    )
    parser.add_argument("--proxy", metavar="URL", help="Proxy for all requests")
    parser.add_argument(
        "-a",
        "--arch",
        dest="platform",
        metavar="PLATFORM",
        help="Target platform to download for (e.g. win32-x64, linux-arm64, darwin-arm64)",
    )
    parser.add_argument(
        "-e",
        "--extension",
        dest="extensions",
        action="append",
        default=[],
        metavar="ID",
        help="Extension identifier (publisher.name); can be passed multiple times",
    )
    parser.add_argument("-c", "--config", metavar="FILE", help="Settings YAML file")
    parser.add_argument(
        "--log-file-dir", metavar="DIR", help="Also write logs to DIR/offline_vsix.log"
    )
    parser.add_argument(
        "--timeout", type=float, metavar="SECONDS", help="Per-request timeout"
    )
    parser.add_argument(
        "--retries",
        type=int,
        metavar="N",
        help="Retry failed requests N times (default: 0)",
    )
    parser.add_argument(
        "--no-gzip",
        dest="accept_gzip",
        action="store_false",
        default=None,
        help="Do not request gzip-encoded downloads",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Exit with status 1 if any extension fails",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {get_app_version()}"
    )
    return parser


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "INPUT": args.input,
        "DESTINATION": args.destination,
        "FORCE": args.force,
        "PROXY": args.proxy,
        "PLATFORM": args.platform,
        "LOG_DIR": args.log_file_dir,
        "REQUEST_TIMEOUT": args.timeout,
        "CONNECT_RETRIES": args.retries,
        "ACCEPT_GZIP": args.accept_gzip,
        "STRICT": args.strict,
    }


def _collect_identifiers(
    args: argparse.Namespace, settings: Dict[str, Any]
) -> List[str]:
    """
    Gather identifiers from the extension list file and `-e` options.

    The file is only skipped when `-e` values were given without `-i`.

    Raises:
        ExtensionListError: If the extension list cannot be used.
    """
    identifiers: List[str] = []
    if args.input is not None or not args.extensions:
        identifiers.extend(load_extension_list(settings["INPUT"]))
    identifiers.extend(args.extensions)
    return list(dict.fromkeys(identifiers))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the offline-vsix command-line interface.

    Loads settings, applies command-line overrides, reads the extension list and
    runs the download pipeline.

    Returns:
        int: 0 when the batch completed (or, with `--strict`, completed without
        failures); 1 for startup failures and, with `--strict`, for any failed extension.
    """
    # Logging is automatically initialized by importing log_utils
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        log_utils.set_log_level("DEBUG")

    try:
        settings = merge_settings(load_settings(args.config), _cli_overrides(args))
    except ConfigurationError as e:
        log_utils.logger.error(f"Invalid settings: {e}")
        return EXIT_FAILURE

    if settings["LOG_LEVEL"] and not args.verbose:
        log_utils.set_log_level(settings["LOG_LEVEL"])

    if settings["LOG_DIR"]:
        try:
            log_file = log_utils.add_file_logging(
                Path(settings["LOG_DIR"]), "DEBUG" if args.verbose else "INFO"
            )
        except OSError as e:
            log_utils.logger.error(f"Could not set up file logging: {e}")
            return EXIT_FAILURE
        log_utils.logger.debug(f"Writing logs to {log_file}")

    try:
        identifiers = _collect_identifiers(args, settings)
    except ConfigurationError as e:
        log_utils.logger.error(str(e))
        return EXIT_FAILURE

    if not identifiers:
        log_utils.logger.info("No extensions to download.")
        return EXIT_OK

    log_utils.logger.info(
        f"Downloading {len(identifiers)} extension(s) to {settings['DESTINATION']}"
    )
    try:
        results = orchestrator.run(
            identifiers,
            settings["DESTINATION"],
            force=settings["FORCE"],
            proxy=settings["PROXY"],
            platform_override=settings["PLATFORM"],
            timeout=settings["REQUEST_TIMEOUT"],
            retries=settings["CONNECT_RETRIES"],
            backoff_factor=settings["BACKOFF_FACTOR"],
            accept_encoding=GZIP_ENCODING
            if settings["ACCEPT_GZIP"]
            else IDENTITY_ENCODING,
        )
    except DestinationError as e:
        log_utils.logger.error(str(e))
        return EXIT_FAILURE

    if settings["STRICT"] and any(not result.success for result in results):
        return EXIT_FAILURE
    return EXIT_OK
