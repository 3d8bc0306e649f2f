"""Parsing of `publisher.name` extension identifiers."""

from offline_vsix.constants import IDENTIFIER_SEPARATOR
from offline_vsix.exceptions import InvalidIdentifierError

from .interfaces import ExtensionIdentifier


def parse_identifier(raw: str) -> ExtensionIdentifier:
    """
    Split an extension identifier into publisher and name.

    Surrounding whitespace is ignored; the remaining text must contain exactly one
    "." with a non-empty segment on each side.

    Parameters:
        raw (str): Identifier such as "ms-python.python".

    Returns:
        ExtensionIdentifier: The parsed publisher/name pair.

    Raises:
        InvalidIdentifierError: If `raw` is not a string of the form `publisher.name`.
    """
    if not isinstance(raw, str):
        raise InvalidIdentifierError(
            "Extension identifier must be a string",
            field="identifier",
            value=repr(raw),
        )

    parts = raw.strip().split(IDENTIFIER_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise InvalidIdentifierError(
            f"Invalid extension identifier: {raw!r}",
            field="identifier",
            value=raw,
            details="expected the format 'publisher.name'",
        )

    publisher, name = parts
    return ExtensionIdentifier(publisher=publisher, name=name)


def is_valid_identifier(raw: str) -> bool:
    """Return True if `raw` parses as `publisher.name`."""
    try:
        parse_identifier(raw)
    except InvalidIdentifierError:
        return False
    return True
