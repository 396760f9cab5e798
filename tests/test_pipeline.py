"""Unit tests for the upload pipeline and scan controller."""

import asyncio
import json
from unittest.mock import MagicMock

import httpx
import pytest
from PIL import Image

from menu_scanner.errors import (
    DecodingError,
    EncodingFailed,
    ServerError,
    TransportError,
    TransportUnreachable,
)
from menu_scanner.models import Menu
from menu_scanner.pipeline import MenuUploader, ScanController
from menu_scanner.transport import TransportClient
from tests.test_multipart import extract_part

URL = "https://menu.test/analyze"

MENU_BODY = json.dumps(
    {
        "restaurant_name": "Trattoria",
        "currency": "EUR",
        "sections": [
            {"category_name": "Pasta", "items": [{"name": "Carbonara", "price": 12}]}
        ],
    }
).encode("utf-8")


def _image():
    return Image.new("RGB", (16, 16), color=(120, 80, 40))


def _uploader(handler):
    return MenuUploader(TransportClient(transport=httpx.MockTransport(handler)), URL)


def _respond(status=200, content=MENU_BODY):
    return lambda request: httpx.Response(status, content=content)


def _respond_gzip_garbage():
    return lambda request: httpx.Response(
        200, headers={"Content-Encoding": "gzip"}, content=b"not gzip"
    )


# ---------------------------------------------------------------------------
# MenuUploader
# ---------------------------------------------------------------------------

class TestMenuUploader:
    def test_upload_returns_decoded_menu(self):
        menu = asyncio.run(_uploader(_respond()).upload(_image()))

        assert isinstance(menu, Menu)
        assert menu.restaurant_name == "Trattoria"
        assert menu.sections[0].items[0].price == 12.0

    def test_request_wire_format(self):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(200, content=MENU_BODY)

        asyncio.run(_uploader(handler).upload(_image()))

        request = seen["request"]
        assert request.method == "POST"
        assert str(request.url) == URL
        content_type = request.headers["Content-Type"]
        assert content_type.startswith("multipart/form-data; boundary=")
        boundary = content_type.split("boundary=", 1)[1]

        headers, payload = extract_part(request.content, boundary)
        assert headers["Content-Disposition"] == (
            'form-data; name="image"; filename="menu_image.jpg"'
        )
        assert headers["Content-Type"] == "image/jpeg"
        assert payload[:3] == b"\xff\xd8\xff"

    def test_status_checked_before_body(self):
        with pytest.raises(ServerError) as exc_info:
            asyncio.run(_uploader(_respond(404)).upload(_image()))
        assert exc_info.value.status_code == 404

    def test_server_error_with_garbage_body(self):
        with pytest.raises(ServerError):
            asyncio.run(_uploader(_respond(500, b"Internal Server Error")).upload(_image()))

    def test_decoding_error_propagates(self):
        with pytest.raises(DecodingError):
            asyncio.run(_uploader(_respond(200, b'{"unexpected":"shape"}')).upload(_image()))

    def test_encoding_failure_skips_network(self):
        handler = MagicMock()
        with pytest.raises(EncodingFailed):
            asyncio.run(_uploader(handler).upload(b"not an image"))
        handler.assert_not_called()

    def test_undecodable_body_raises_transport_error(self):
        with pytest.raises(TransportError):
            asyncio.run(_uploader(_respond_gzip_garbage()).upload(_image()))

    def test_transport_error_propagates(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransportUnreachable):
            asyncio.run(_uploader(handler).upload(_image()))

    def test_same_bytes_decode_to_fresh_ids(self):
        uploader = _uploader(_respond())

        async def run():
            return await uploader.upload(_image()), await uploader.upload(_image())

        first, second = asyncio.run(run())
        assert first == second
        assert first.sections[0].id != second.sections[0].id
        assert first.sections[0].items[0].id != second.sections[0].items[0].id


# ---------------------------------------------------------------------------
# ScanController
# ---------------------------------------------------------------------------

class TestScanControllerSuccess:
    def test_publishes_menu(self):
        presenter = MagicMock()
        controller = ScanController(_uploader(_respond()), presenter)

        menu = asyncio.run(controller.submit(_image()))

        assert controller.menu is menu
        assert controller.busy is False
        assert controller.error_message is None
        presenter.show_menu.assert_called_once_with(menu)
        presenter.show_error.assert_not_called()

    def test_dismiss_discards_menu(self):
        controller = ScanController(_uploader(_respond()))
        asyncio.run(controller.submit(_image()))

        controller.dismiss()

        assert controller.menu is None

    def test_new_scan_replaces_previous_menu(self):
        bodies = iter([MENU_BODY, b'{"currency":"USD","sections":[]}'])
        controller = ScanController(
            _uploader(lambda r: httpx.Response(200, content=next(bodies)))
        )

        asyncio.run(controller.submit(_image()))
        asyncio.run(controller.submit(_image()))

        assert controller.menu.currency == "USD"
        assert controller.menu.sections == ()


class TestScanControllerFailure:
    @pytest.mark.parametrize(
        "handler, message",
        [
            (_respond(404), "Server error (HTTP 404)"),
            (_respond(200, b"{}"), "Failed to parse menu data"),
        ],
    )
    def test_failure_becomes_message_and_resets(self, handler, message):
        presenter = MagicMock()
        controller = ScanController(_uploader(handler), presenter)

        result = asyncio.run(controller.submit(_image()))

        assert result is None
        assert controller.error_message == message
        assert controller.busy is False
        assert controller.image is None
        assert controller.menu is None
        presenter.show_error.assert_called_once_with(message)

    def test_network_failure_message(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        controller = ScanController(_uploader(handler))
        asyncio.run(controller.submit(_image()))

        assert controller.error_message == (
            "Network request failed, please check your connection"
        )

    def test_retry_after_failure_succeeds(self):
        responses = iter([httpx.Response(503), httpx.Response(200, content=MENU_BODY)])
        controller = ScanController(_uploader(lambda r: next(responses)))

        assert asyncio.run(controller.submit(_image())) is None
        menu = asyncio.run(controller.submit(_image()))

        assert menu is not None
        assert controller.error_message is None

    def test_unexpected_errors_are_not_swallowed(self):
        uploader = MagicMock()
        uploader.upload.side_effect = KeyError("bug")
        controller = ScanController(uploader)

        with pytest.raises(KeyError):
            asyncio.run(controller.submit(_image()))

        assert controller.busy is False
        assert controller.image is None

    def test_broken_response_encoding_resets_flow(self):
        presenter = MagicMock()
        handler = _respond_gzip_garbage()
        controller = ScanController(_uploader(handler), presenter)

        assert asyncio.run(controller.submit(_image())) is None
        assert controller.busy is False
        assert controller.image is None
        presenter.show_error.assert_called_once_with(
            "Network request failed, please check your connection"
        )

        controller.uploader = _uploader(_respond())
        assert asyncio.run(controller.submit(_image())) is not None


class TestScanControllerConcurrency:
    def test_refuses_second_upload_while_busy(self):
        calls = []

        async def run():
            release = asyncio.Event()

            async def handler(request):
                calls.append(request)
                await release.wait()
                return httpx.Response(200, content=MENU_BODY)

            controller = ScanController(_uploader(handler))
            first = asyncio.create_task(controller.submit(_image()))
            await asyncio.sleep(0.05)

            assert controller.busy is True
            second = await controller.submit(_image())

            release.set()
            return controller, await first, second

        controller, first, second = asyncio.run(run())

        assert second is None
        assert isinstance(first, Menu)
        assert len(calls) == 1
        assert controller.busy is False

    def test_result_discarded_after_close(self):
        presenter = MagicMock()

        async def run():
            release = asyncio.Event()

            async def handler(request):
                await release.wait()
                return httpx.Response(200, content=MENU_BODY)

            controller = ScanController(_uploader(handler), presenter)
            task = asyncio.create_task(controller.submit(_image()))
            await asyncio.sleep(0.05)

            controller.close()
            release.set()
            return controller, await task

        controller, result = asyncio.run(run())

        assert result is None
        assert controller.menu is None
        assert controller.busy is False
        presenter.show_menu.assert_not_called()

    def test_closed_controller_ignores_new_images(self):
        handler = MagicMock()
        controller = ScanController(_uploader(handler))
        controller.close()

        assert asyncio.run(controller.submit(_image())) is None
        handler.assert_not_called()
