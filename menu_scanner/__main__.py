"""Local CLI entry point for Menu Scanner.

Usage:
    python -m menu_scanner --image menu.jpg --output ./results/
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Optional

from menu_scanner.capture import CaptureSession, CaptureState, LibraryCaptureDevice
from menu_scanner.config import UPLOAD_URL
from menu_scanner.errors import CaptureError
from menu_scanner.models import Menu
from menu_scanner.pipeline import MenuUploader, ScanController
from menu_scanner.presenter import Presenter, TextPresenter
from menu_scanner.transport import TransportClient


async def scan(image_path: str, url: str, presenter: Presenter) -> Optional[Menu]:
    """Captures the photo at ``image_path`` and uploads it for analysis."""
    session = CaptureSession(LibraryCaptureDevice(image_path))
    if await session.activate() is CaptureState.FAILED:
        presenter.show_error(session.failure.user_message)
        return None

    try:
        image = await session.capture()
    except CaptureError as e:
        presenter.show_error(e.user_message)
        return None

    async with TransportClient() as transport:
        controller = ScanController(MenuUploader(transport, url), presenter)
        return await controller.submit(image)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Menu Scanner — upload a restaurant menu photo and print the structured menu"
    )
    parser.add_argument(
        "--image", required=True, help="Path to the menu image file"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Optional output directory for menu.json",
    )
    parser.add_argument(
        "--url",
        default=UPLOAD_URL,
        help=f"Menu analysis endpoint (default: {UPLOAD_URL})",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log pipeline progress"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not os.path.isfile(args.image):
        print(f"Error: image file not found: {args.image}", file=sys.stderr)
        sys.exit(1)

    print(f"Analyzing {args.image} ...")
    menu = asyncio.run(scan(args.image, args.url, TextPresenter()))
    if menu is None:
        sys.exit(1)

    if args.output:
        os.makedirs(args.output, exist_ok=True)
        menu_path = os.path.join(args.output, "menu.json")
        with open(menu_path, "w", encoding="utf-8") as f:
            json.dump(menu.to_json(), f, indent=2, ensure_ascii=False)
        print(f"\nMenu saved to {menu_path}")


if __name__ == "__main__":
    main()
