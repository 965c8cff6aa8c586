"""
Image Service

Writes images received from the phone into the graph's asset folder.
Filenames are sanitized and prefixed with a timestamp and a random token,
and files are created exclusively so an existing asset is never overwritten.
"""
import base64
import binascii
import os
import re
import time
import uuid
from typing import Optional
import logging

import aiofiles

from phone_bridge.config.constants import (
    ASSETS_DIR_NAME,
    FILENAME_UNSAFE_PATTERN,
    SAVED_IMAGE_PREFIX,
)
from phone_bridge.config.settings import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(FILENAME_UNSAFE_PATTERN)


class ImageStorageError(Exception):
    """Base exception for image storage errors"""
    pass


class StorageNotConfiguredError(ImageStorageError):
    """Raised when no graph path is configured"""
    pass


class InvalidImageError(ImageStorageError):
    """Raised when the filename or base64 payload is unusable"""
    pass


class ImageTooLargeError(ImageStorageError):
    """Raised when the decoded image exceeds the size limit"""
    pass


def sanitize_filename(filename: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with '_'."""
    return _UNSAFE_CHARS.sub("_", filename)


def unique_asset_name(filename: str) -> str:
    """Prefix a sanitized filename with a millisecond timestamp and a random token."""
    timestamp_ms = int(time.time() * 1000)
    token = uuid.uuid4().hex[:8]
    return f"{SAVED_IMAGE_PREFIX}_{timestamp_ms}_{token}_{sanitize_filename(filename)}"


class ImageService:
    """Saves base64 images under <graph>/assets."""

    def __init__(self, graph_path: Optional[str] = None, max_bytes: Optional[int] = None):
        self._graph_path = graph_path
        self._max_bytes = max_bytes

    @property
    def graph_path(self) -> Optional[str]:
        return self._graph_path if self._graph_path is not None else settings.GRAPH_PATH

    @property
    def max_bytes(self) -> int:
        return self._max_bytes if self._max_bytes is not None else settings.MAX_IMAGE_BYTES

    def decode(self, data: str) -> bytes:
        # Reject oversized payloads before decoding them
        if len(data) * 3 // 4 > self.max_bytes + 2:
            raise ImageTooLargeError(f"Image exceeds {self.max_bytes} bytes")
        try:
            image = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidImageError(f"Invalid base64 image data: {e}") from e
        if len(image) > self.max_bytes:
            raise ImageTooLargeError(f"Image exceeds {self.max_bytes} bytes")
        return image

    async def save_image(self, filename: str, data: str, graph_path: Optional[str] = None) -> str:
        """
        Decode and write an image into the graph's asset folder.

        Args:
            filename: Name proposed by the phone
            data: Base64 image content
            graph_path: Per-request graph root, used instead of the configured one

        Returns:
            Name of the written asset (relative to the assets folder)
        """
        if not self.graph_path:
            raise StorageNotConfiguredError("No graph path configured. Pass it as CLI argument.")
        if not filename or not filename.strip():
            raise InvalidImageError("Missing filename")

        image = self.decode(data)

        target_root = graph_path or self.graph_path
        dir_path = os.path.join(target_root, ASSETS_DIR_NAME)
        os.makedirs(dir_path, exist_ok=True)

        saved_name = unique_asset_name(filename)
        file_path = os.path.join(dir_path, saved_name)

        async with aiofiles.open(file_path, "xb") as f:
            await f.write(image)

        logger.info(f"[Images] Saved: {file_path} ({len(image)} bytes)")
        return saved_name


# Singleton instance
image_service = ImageService()
