# KuliahBot - Course Schedule Assistant for Discord
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Sticker Maker

Turns an image attachment into a 512x512 WEBP sticker. The image is scaled
to fit ("full" type: whole image visible, aspect ratio kept) and centred on
a transparent canvas. The encoding itself is Pillow's job.
"""

import asyncio
import io
import logging

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("kuliahbot.delivery.stickers")

STICKER_SIZE = 512
SUPPORTED_FORMATS = {"png", "jpg", "jpeg", "gif", "webp"}
MAX_IMAGE_BYTES = 10_000_000  # 10MB


class StickerError(Exception):
    """Raised when an image cannot be turned into a sticker."""

    pass


def is_supported_image(filename: str) -> bool:
    """Check if file extension is a supported image format."""
    if not filename or "." not in filename:
        return False
    return filename.rsplit(".", 1)[-1].lower() in SUPPORTED_FORMATS


def make_sticker(image_bytes: bytes) -> bytes:
    """
    Convert raw image bytes to sticker WEBP bytes.

    Animated inputs use their first frame.

    Raises:
        StickerError: If the bytes are not a readable image
    """
    if len(image_bytes) > MAX_IMAGE_BYTES:
        raise StickerError(f"image too large ({len(image_bytes)} bytes)")

    try:
        with Image.open(io.BytesIO(image_bytes)) as source:
            source.seek(0)
            image = source.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise StickerError(f"unreadable image: {e}") from e

    try:
        ratio = min(STICKER_SIZE / image.width, STICKER_SIZE / image.height)
        new_size = (max(1, round(image.width * ratio)), max(1, round(image.height * ratio)))
        resized = image.resize(new_size, Image.Resampling.LANCZOS)

        canvas = Image.new("RGBA", (STICKER_SIZE, STICKER_SIZE), (0, 0, 0, 0))
        offset = ((STICKER_SIZE - new_size[0]) // 2, (STICKER_SIZE - new_size[1]) // 2)
        canvas.paste(resized, offset, resized)

        output = io.BytesIO()
        canvas.save(output, format="WEBP", quality=90)
        return output.getvalue()
    finally:
        # Explicitly close PIL images to free memory
        image.close()


async def build_sticker(image_bytes: bytes) -> bytes:
    """make_sticker() in a worker thread."""
    return await asyncio.to_thread(make_sticker, image_bytes)
