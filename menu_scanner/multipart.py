"""Builds the multipart/form-data body that carries the menu photo."""

from __future__ import annotations

import uuid
from typing import Optional

from menu_scanner.config import IMAGE_FIELD_NAME

_CRLF = b"\r\n"


def new_boundary() -> str:
    return uuid.uuid4().hex


def content_type_header(boundary: str) -> str:
    return f"multipart/form-data; boundary={boundary}"


def build_multipart_body(
    image_bytes: bytes, filename: str, boundary: Optional[str] = None
) -> tuple[bytes, str]:
    """
    Wraps JPEG bytes in a single-part multipart/form-data body.

    A fresh boundary is generated unless one is given.
    Returns (body_bytes, boundary).
    """
    if boundary is None:
        boundary = new_boundary()

    head = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{IMAGE_FIELD_NAME}"; '
        f'filename="{filename}"\r\n'
        "Content-Type: image/jpeg\r\n"
        "\r\n"
    ).encode("utf-8")
    tail = _CRLF + f"--{boundary}--".encode("utf-8") + _CRLF

    return head + bytes(image_bytes) + tail, boundary
