"""Error taxonomy for the capture and upload pipeline."""

from __future__ import annotations

from typing import Optional


class MenuScanError(Exception):
    """Base class for every recoverable scan failure."""

    user_message = "Something went wrong while scanning the menu"


class EncodingFailed(MenuScanError):
    """Raised when a captured image cannot be compressed to JPEG."""

    user_message = "Failed to prepare the photo for upload"


class TransportError(MenuScanError):
    """Raised when the upload request fails at the network layer."""

    user_message = "Network request failed, please check your connection"


class TransportUnreachable(TransportError):
    """Raised on DNS, connection or TLS failure."""


class TransportTimeout(TransportError):
    """Raised when the request or total transfer timeout is exceeded."""

    user_message = "The menu analysis service took too long to respond"


class ServerError(MenuScanError):
    """Raised when the endpoint answers with a non-2xx status."""

    def __init__(self, status_code: int):
        super().__init__(f"Server returned HTTP {status_code}")
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return f"Server error (HTTP {self.status_code})"


class DecodingError(MenuScanError):
    """Raised when no known response shape matches the response body.

    ``underlying`` is the structural error from the last attempt and
    ``raw_text`` the response body, kept for diagnostics only.
    """

    user_message = "Failed to parse menu data"

    def __init__(self, underlying: Exception, raw_text: Optional[str] = None):
        super().__init__(f"Failed to decode menu response: {underlying}")
        self.underlying = underlying
        self.raw_text = raw_text


class ShapeMismatch(ValueError):
    """Raised when a JSON payload does not have the expected structure."""


class CaptureSessionError(MenuScanError):
    """Base class for camera session failures."""


class PermissionDenied(CaptureSessionError):
    """Raised when camera access is refused."""

    user_message = "Camera access was denied"


class NoDeviceAvailable(CaptureSessionError):
    """Raised when neither a rear nor a front camera exists."""

    user_message = "Camera not available"


class CaptureError(CaptureSessionError):
    """Raised when the capture device fails to start or take a photo."""

    user_message = "Failed to capture photo"


class InvalidTransition(RuntimeError):
    """Raised when a capture session operation is called in the wrong state."""
