"""Extraction of JavaScript literals embedded in HTML pages."""
import json
import logging
import re
from typing import Any, Optional, Pattern, Union

logger = logging.getLogger(__name__)

DETAIL_MARKER = 'window.offerData'
LISTING_PATTERN = re.compile(r'var\s+itemsData\s*=')

CLOSERS = {'{': '}', '[': ']'}
QUOTES = ('"', "'")


def _find_marker_end(document: str, marker: Union[str, Pattern]) -> Optional[int]:
    """Return the index right after the first occurrence of the marker."""
    if isinstance(marker, str):
        index = document.find(marker)
        if index == -1:
            return None
        return index + len(marker)

    match = marker.search(document)
    if not match:
        return None
    return match.end()


def _find_literal_end(document: str, start: int, opener: str) -> Optional[int]:
    """
    Find the index of the delimiter closing the literal opened at start.

    Args:
        document: Text containing the literal
        start: Index of the opening delimiter
        opener: Opening delimiter ('{' or '[')

    Returns:
        Index of the matching closing delimiter, or None if unbalanced
    """
    closer = CLOSERS[opener]
    depth = 0
    quote = None
    escaped = False

    for index in range(start, len(document)):
        char = document[index]

        if quote:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in QUOTES:
            quote = char
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index

    return None


def extract_literal(
    document: str,
    marker: Union[str, Pattern],
    opener: str = '{'
) -> Optional[Any]:
    """
    Locate and deserialize the literal following a marker.

    The marker may be a plain token or a compiled pattern. Only whitespace
    and an assignment sign may sit between the marker and the literal.

    Args:
        document: Raw page text
        marker: Token or pattern preceding the literal
        opener: '{' for an object literal, '[' for an array literal

    Returns:
        Deserialized value, or None when no usable literal is found
    """
    if not document:
        return None

    position = _find_marker_end(document, marker)
    if position is None:
        logger.debug(f"Marker not found: {marker}")
        return None

    while position < len(document) and (
        document[position].isspace() or document[position] in '=:'
    ):
        position += 1

    if position >= len(document) or document[position] != opener:
        logger.debug(f"No '{opener}' literal after marker: {marker}")
        return None

    end = _find_literal_end(document, position, opener)
    if end is None:
        logger.debug(f"Unbalanced literal after marker: {marker}")
        return None

    try:
        return json.loads(document[position:end + 1])
    except ValueError as e:
        logger.debug(f"Failed to deserialize literal after marker {marker}: {e}")
        return None


def extract_object(document: str, marker: Union[str, Pattern] = DETAIL_MARKER) -> Optional[dict]:
    """Extract the object literal of a detail page."""
    value = extract_literal(document, marker, '{')
    return value if isinstance(value, dict) else None


def extract_array(document: str, marker: Union[str, Pattern] = LISTING_PATTERN) -> Optional[list]:
    """Extract the array literal of an agenda listing page."""
    value = extract_literal(document, marker, '[')
    return value if isinstance(value, list) else None
