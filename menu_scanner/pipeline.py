"""Upload pipeline - encode → multipart → POST → status gate → interpret."""

from __future__ import annotations

import logging
from typing import Any, Optional

from menu_scanner.config import UPLOAD_FILENAME, UPLOAD_URL
from menu_scanner.encoder import encode_image
from menu_scanner.errors import MenuScanError
from menu_scanner.interpreter import check_status, interpret_response
from menu_scanner.models import Menu
from menu_scanner.multipart import build_multipart_body, content_type_header
from menu_scanner.presenter import Presenter
from menu_scanner.transport import TransportClient

logger = logging.getLogger(__name__)


class MenuUploader:
    """Runs one upload round trip against the analysis endpoint.

    The TransportClient is injected so that a single connection pool is
    shared by every upload the caller makes.
    """

    def __init__(self, transport: TransportClient, url: str = UPLOAD_URL):
        self.transport = transport
        self.url = url

    async def upload(self, raw_image: Any) -> Menu:
        """
        Encodes, uploads and decodes a menu photo.
        Returns the decoded Menu.
        Raises: EncodingFailed, TransportUnreachable, TransportTimeout,
        ServerError, DecodingError.
        """
        image_bytes = encode_image(raw_image)
        body, boundary = build_multipart_body(image_bytes, UPLOAD_FILENAME)
        headers = {"Content-Type": content_type_header(boundary)}

        logger.info("Uploading %d byte image to %s", len(image_bytes), self.url)
        status_code, response_bytes = await self.transport.send(
            self.url, headers, body
        )

        # Status is checked before the body is looked at
        check_status(status_code, response_bytes)
        return interpret_response(response_bytes)


class ScanController:
    """Top of the upload flow: owns the busy flag, result and error message.

    All attributes are only written from the event loop. Failures are turned
    into a user-facing message and the flow is reset so a fresh attempt can
    start.
    """

    def __init__(self, uploader: MenuUploader, presenter: Optional[Presenter] = None):
        self.uploader = uploader
        self.presenter = presenter
        self.busy = False
        self.image: Any = None
        self.menu: Optional[Menu] = None
        self.error_message: Optional[str] = None
        self._closed = False

    async def submit(self, raw_image: Any) -> Optional[Menu]:
        """
        Uploads a newly captured image and publishes the result.
        Returns the Menu, or None if the upload failed, was refused because
        another upload is in flight, or the controller was closed meanwhile.
        """
        if self.busy:
            logger.info("Upload already in progress, ignoring new image")
            return None
        if self._closed:
            logger.info("Controller closed, ignoring new image")
            return None

        # A new scan replaces whatever was shown before
        self.image = raw_image
        self.menu = None
        self.error_message = None
        self.busy = True

        try:
            menu = await self.uploader.upload(raw_image)
        except MenuScanError as e:
            logger.error("Menu upload failed: %s", e)
            if self._closed:
                return None
            self._reset()
            self.error_message = e.user_message
            if self.presenter is not None:
                self.presenter.show_error(e.user_message)
            return None
        except Exception:
            self._reset()
            raise

        if self._closed:
            logger.info("Controller closed while uploading, discarding result")
            return None

        self.menu = menu
        self.busy = False
        if self.presenter is not None:
            self.presenter.show_menu(menu)
        return menu

    def dismiss(self) -> None:
        """Discards the current menu so a new scan can start."""
        self.menu = None
        self.error_message = None

    def close(self) -> None:
        """Tears the flow down; an in-flight result is dropped on arrival."""
        self._closed = True
        self._reset()

    def _reset(self) -> None:
        self.busy = False
        self.image = None
