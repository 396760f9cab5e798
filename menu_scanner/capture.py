"""Capture session - camera permission, device selection and photo capture.

The session is an explicit state machine driven from the event loop. Device
start-up is blocking and runs on a worker thread; every state change is
applied back on the loop.
"""

from __future__ import annotations

import asyncio
import io
import logging
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from PIL import Image, UnidentifiedImageError

from menu_scanner.errors import (
    CaptureError,
    CaptureSessionError,
    InvalidTransition,
    NoDeviceAvailable,
    PermissionDenied,
)

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    UNAUTHORIZED = "unauthorized"
    REQUESTING_PERMISSION = "requesting_permission"
    CONFIGURING = "configuring"
    READY = "ready"
    CAPTURING = "capturing"
    CAPTURED = "captured"
    FAILED = "failed"


class AuthorizationStatus(Enum):
    AUTHORIZED = "authorized"
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"


class CameraPosition(Enum):
    BACK = "back"
    FRONT = "front"


class CaptureDevice(Protocol):
    def check_permission(self) -> AuthorizationStatus: ...

    async def request_permission(self) -> bool: ...

    def default_device(self, position: CameraPosition) -> Optional[str]: ...

    def start_session(self, device_id: str) -> None: ...

    async def capture_photo(self) -> Any: ...


class CaptureSession:
    """Drives a CaptureDevice through permission, configuration and capture."""

    def __init__(self, device: CaptureDevice):
        self.device = device
        self.state = CaptureState.UNAUTHORIZED
        self.device_id: Optional[str] = None
        self.image: Any = None
        self.failure: Optional[CaptureSessionError] = None
        self._listeners: list[Callable[[CaptureSession], None]] = []

    @property
    def is_ready(self) -> bool:
        return self.state is CaptureState.READY

    def add_listener(self, callback: Callable[[CaptureSession], None]) -> None:
        self._listeners.append(callback)

    async def activate(self) -> CaptureState:
        """
        Checks permission, selects a device and starts the session.
        Returns the resulting state: READY or FAILED.
        """
        self._expect(CaptureState.UNAUTHORIZED, CaptureState.FAILED)
        self.failure = None

        status = self.device.check_permission()
        if status is AuthorizationStatus.NOT_DETERMINED:
            self._transition(CaptureState.REQUESTING_PERMISSION)
            granted = await self.device.request_permission()
            if not granted:
                return self._fail(PermissionDenied("Camera permission was denied"))
        elif status is not AuthorizationStatus.AUTHORIZED:
            return self._fail(PermissionDenied("Camera permission was denied"))

        return await self._configure()

    async def capture(self) -> Any:
        """
        Takes one photo. Only valid in READY.
        Returns the captured image.
        Raises: CaptureError if the device reports a failure.
        """
        self._expect(CaptureState.READY)
        self._transition(CaptureState.CAPTURING)

        try:
            image = await self.device.capture_photo()
        except Exception as e:
            logger.error("Error capturing photo: %s", e)
            error = CaptureError(f"Photo capture failed: {e}")
            self._fail(error)
            raise error from e

        self.image = image
        self._transition(CaptureState.CAPTURED)
        return image

    def rearm(self) -> None:
        """Returns a CAPTURED session to READY for the next photo."""
        self._expect(CaptureState.CAPTURED)
        self.image = None
        self._transition(CaptureState.READY)

    async def _configure(self) -> CaptureState:
        self._transition(CaptureState.CONFIGURING)

        # Prefer the rear camera; the front one covers single-camera environments
        device_id = self.device.default_device(CameraPosition.BACK)
        if device_id is None:
            device_id = self.device.default_device(CameraPosition.FRONT)
        if device_id is None:
            logger.error("No camera available")
            return self._fail(NoDeviceAvailable("No capture device available"))

        try:
            await asyncio.to_thread(self.device.start_session, device_id)
        except Exception as e:
            logger.error("Error setting up camera: %s", e)
            return self._fail(CaptureError(f"Failed to start capture session: {e}"))

        self.device_id = device_id
        self._transition(CaptureState.READY)
        return self.state

    def _expect(self, *allowed: CaptureState) -> None:
        if self.state not in allowed:
            raise InvalidTransition(
                f"Operation not allowed in state {self.state.value}"
            )

    def _fail(self, error: CaptureSessionError) -> CaptureState:
        self.failure = error
        self._transition(CaptureState.FAILED)
        return self.state

    def _transition(self, state: CaptureState) -> None:
        logger.debug("Capture session %s -> %s", self.state.value, state.value)
        self.state = state
        for callback in self._listeners:
            callback(self)


class LibraryCaptureDevice:
    """A capture device backed by a photo on disk, like picking from a library."""

    def __init__(self, path: str):
        self.path = path
        self._started = False

    def check_permission(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED

    async def request_permission(self) -> bool:
        return True

    def default_device(self, position: CameraPosition) -> Optional[str]:
        if position is CameraPosition.BACK:
            return f"library:{self.path}"
        return None

    def start_session(self, device_id: str) -> None:
        self._started = True

    async def capture_photo(self) -> Image.Image:
        if not self._started:
            raise CaptureError("Capture session has not been started")
        return await asyncio.to_thread(self._load)

    def _load(self) -> Image.Image:
        try:
            with open(self.path, "rb") as f:
                data = f.read()
            img = Image.open(io.BytesIO(data))
            img.load()
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as e:
            raise CaptureError(f"Failed to read image file: {e}") from e
        return img
