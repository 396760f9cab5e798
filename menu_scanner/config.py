"""Runtime configuration for Menu Scanner.

Values are fixed at build time; the upload endpoint and timeouts can be
overridden through environment variables.
"""

import os

UPLOAD_URL = os.environ.get(
    "MENU_SCANNER_UPLOAD_URL", "https://menu-scanner.example.com/webhook/analyze"
)
REQUEST_TIMEOUT = float(os.environ.get("MENU_SCANNER_REQUEST_TIMEOUT", "60"))
RESOURCE_TIMEOUT = float(os.environ.get("MENU_SCANNER_RESOURCE_TIMEOUT", "300"))

JPEG_QUALITY = 80  # Pillow scale (1-95), i.e. 0.8
UPLOAD_FILENAME = "menu_image.jpg"
IMAGE_FIELD_NAME = "image"
