"""
Text and image output for finished QR codes.

Images are Pillow bitmaps in mode '1': 0 is a dark module, 1 a light one.
"""

import logging
from typing import Optional

from PIL import Image

from .exceptions import InvalidArgumentError
from .generator import QRCode

logger = logging.getLogger(__name__)

DEFAULT_MODULE_SIZE = 10


def _resolve_margin(qr: QRCode, margin: Optional[int]) -> int:
    if margin is None:
        margin = qr.margin
    if margin < 0:
        raise InvalidArgumentError(f"Quiet zone must not be negative: {margin}")
    return margin


def to_string(qr: QRCode, border: Optional[int] = None) -> str:
    """Convert matrix to string with quiet zone border."""
    border = _resolve_margin(qr, border)
    lines = []

    # Top border
    for _ in range(border):
        lines.append("  " * (qr.size + 2 * border))

    for row in qr.matrix.rows():
        line = "  " * border  # Left border
        for cell in row:
            if cell == 1:
                line += "██"
            else:
                line += "  "
        line += "  " * border  # Right border
        lines.append(line)

    # Bottom border
    for _ in range(border):
        lines.append("  " * (qr.size + 2 * border))

    return "\n".join(lines)


def to_image(qr: QRCode, module_size: int = DEFAULT_MODULE_SIZE,
             margin: Optional[int] = None) -> Image.Image:
    """
    Render the QR code as a black and white Pillow image.

    Args:
        qr: finished symbol
        module_size: edge length of one module in pixels
        margin: quiet zone in modules; the code's own margin when None
    """
    if module_size <= 0:
        raise InvalidArgumentError(f"Module size must be positive: {module_size}")
    margin = _resolve_margin(qr, margin)

    size = qr.size
    img_size = (size + 2 * margin) * module_size

    img = Image.new('1', (img_size, img_size), 1)  # White background
    pixels = img.load()

    for y, row in enumerate(qr.matrix.rows()):
        for x, cell in enumerate(row):
            if cell != 1:
                continue
            # Fill scaled pixel area
            for dy in range(module_size):
                for dx in range(module_size):
                    px = (margin + x) * module_size + dx
                    py = (margin + y) * module_size + dy
                    pixels[px, py] = 0  # Black

    return img


def save_image(qr: QRCode, filename: str, module_size: int = DEFAULT_MODULE_SIZE,
               margin: Optional[int] = None):
    """Save QR code as an image; the format follows the file extension."""
    to_image(qr, module_size, margin).save(filename)
    logger.info("Saved QR code to %s", filename)
