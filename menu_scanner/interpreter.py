"""Response interpreter - decodes the endpoint's JSON into a Menu.

The endpoint's response layout has changed across backend versions and carries
no version field, so each known layout is tried in a fixed priority order:

1. direct:        {"restaurant_name": ..., "currency": ..., "sections": [...]}
2. wrapped_array: [{"output": {"menu": {...}}}, ...]  (first element only)
3. legacy:        {"menu": {...}}

The first layout that structurally matches wins.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from menu_scanner.errors import DecodingError, ServerError, ShapeMismatch
from menu_scanner.models import Menu

logger = logging.getLogger(__name__)


def _direct(data: Any) -> Menu:
    return Menu.from_json(data)


def _wrapped_array(data: Any) -> Menu:
    if not isinstance(data, list):
        raise ShapeMismatch(f"Expected JSON array, got {type(data).__name__}")
    if not data:
        raise ShapeMismatch("Expected at least one element in response array")
    first = data[0]
    if not isinstance(first, dict) or not isinstance(first.get("output"), dict):
        raise ShapeMismatch("First array element has no 'output' object")
    output = first["output"]
    if "menu" not in output:
        raise ShapeMismatch("'output' has no 'menu' key")
    return Menu.from_json(output["menu"])


def _legacy(data: Any) -> Menu:
    if not isinstance(data, dict) or "menu" not in data:
        raise ShapeMismatch("Expected object with top-level 'menu' key")
    return Menu.from_json(data["menu"])


# Priority order matters: newest backend layout first, legacy fallbacks after.
SHAPE_STRATEGIES: tuple[tuple[str, Callable[[Any], Menu]], ...] = (
    ("direct", _direct),
    ("wrapped_array", _wrapped_array),
    ("legacy", _legacy),
)


def check_status(status_code: int, raw_bytes: bytes = b"") -> None:
    """Raises ServerError for any status outside 200-299."""
    if not 200 <= status_code <= 299:
        logger.error(
            "Server returned HTTP %d: %s",
            status_code,
            _as_text(raw_bytes)[:500],
        )
        raise ServerError(status_code)


def interpret_response(raw_bytes: bytes) -> Menu:
    """
    Decodes a response body into a Menu using the first matching layout.
    Raises: DecodingError if the body is not JSON or no layout matches.
    """
    raw_text = _as_text(raw_bytes)

    try:
        data = json.loads(raw_bytes)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        _log_failure(e, raw_text)
        raise DecodingError(e, raw_text) from e

    last_error: Optional[ShapeMismatch] = None
    for name, extract in SHAPE_STRATEGIES:
        try:
            menu = extract(data)
        except ShapeMismatch as e:
            logger.debug("Response shape '%s' did not match: %s", name, e)
            last_error = e
            continue
        logger.info(
            "Decoded menu using '%s' shape (%d sections)", name, len(menu.sections)
        )
        return menu

    _log_failure(last_error, raw_text)
    raise DecodingError(last_error, raw_text) from last_error


def _as_text(raw_bytes: bytes) -> str:
    return bytes(raw_bytes).decode("utf-8", errors="replace")


def _log_failure(error: Exception, raw_text: str) -> None:
    logger.warning("Decoding error: %s", error)
    logger.warning("Response received: %s", raw_text)
