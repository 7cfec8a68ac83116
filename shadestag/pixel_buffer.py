# ShadeStag - Pixel Buffer
"""
In-memory decoded image used by every filter.

A PixelBuffer wraps a numpy array of shape (height, width, channels) with
dtype uint8 together with its color model ('RGB' or 'RGBA'). Decoding and
encoding of the underlying file formats is delegated to Pillow.
"""

from __future__ import annotations

import io
from dataclasses import dataclass

import numpy as np
import PIL.Image
from PIL import UnidentifiedImageError

from .exceptions import ImageDecodeError, ImageEncodeError

COLOR_MODELS = {'RGB': 3, 'RGBA': 4}
"Supported color models and their channel counts"

MAX_CHANNEL_VALUE = 255
"Maximum value of an 8-bit channel"

HIGH_DEPTH_GRAY_MODES = ('I;16', 'I;16B', 'I;16L', 'I')
"Pillow modes of 16-bit grayscale images"


def _reduce_gray_depth(image: PIL.Image.Image) -> PIL.Image.Image:
    """Scale a 16-bit grayscale image down to 8-bit 'L' (or 'LA').

    A 16-bit transparency key becomes an alpha channel.
    """
    samples = np.asarray(image).astype(np.int64)
    gray = np.clip(samples >> 8, 0, MAX_CHANNEL_VALUE).astype(np.uint8)
    transparency = image.info.get('transparency')
    if isinstance(transparency, int):
        alpha = np.where(samples == transparency, 0, MAX_CHANNEL_VALUE).astype(np.uint8)
        return PIL.Image.fromarray(np.stack([gray, alpha], axis=-1))
    return PIL.Image.fromarray(gray)


@dataclass(frozen=True)
class PixelBuffer:
    """Decoded 8-bit image.

    :ivar pixels: uint8 array of shape (height, width, channels)
    :ivar color_model: 'RGB' or 'RGBA'
    """

    pixels: np.ndarray
    color_model: str = 'RGBA'

    def __post_init__(self):
        if self.color_model not in COLOR_MODELS:
            raise ValueError(f"Unsupported color model: {self.color_model}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != COLOR_MODELS[self.color_model]:
            raise ValueError(
                f"Expected (H, W, {COLOR_MODELS[self.color_model]}) array for "
                f"{self.color_model}, got shape {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 dtype, got {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def has_alpha(self) -> bool:
        return self.color_model == 'RGBA'

    def copy(self) -> PixelBuffer:
        """Return a deep copy, filters never modify their input in place."""
        return PixelBuffer(self.pixels.copy(), self.color_model)

    def with_alpha(self) -> PixelBuffer:
        """Return an RGBA buffer, adding an opaque alpha channel if missing.

        A no-op (returns self) if the buffer already has alpha.
        """
        if self.has_alpha:
            return self
        alpha = np.full((self.height, self.width, 1), MAX_CHANNEL_VALUE, dtype=np.uint8)
        return PixelBuffer(np.concatenate([self.pixels, alpha], axis=2), 'RGBA')

    @classmethod
    def from_rgba(cls, rows: list[list[tuple[int, ...]]]) -> PixelBuffer:
        """Build a buffer from nested lists of pixel tuples.

        The color model is derived from the tuple length (3 = RGB, 4 = RGBA).
        """
        pixels = np.array(rows, dtype=np.uint8)
        color_model = 'RGBA' if pixels.shape[2] == 4 else 'RGB'
        return cls(pixels, color_model)

    @classmethod
    def decode(cls, data: bytes) -> PixelBuffer:
        """Decode compressed image bytes (PNG, JPEG, GIF, ...).

        Palette and grayscale images are converted to 8-bit RGB, or RGBA if
        the source carries transparency. 16-bit grayscale samples are scaled
        down to 8 bits.

        :param data: The encoded image
        :raises ImageDecodeError: If Pillow cannot read the data
        """
        try:
            with PIL.Image.open(io.BytesIO(data)) as image:
                image.load()
                if image.mode in HIGH_DEPTH_GRAY_MODES:
                    image = _reduce_gray_depth(image)
                has_alpha = (
                    image.mode in ('RGBA', 'LA', 'PA')
                    or 'transparency' in image.info
                )
                image = image.convert('RGBA' if has_alpha else 'RGB')
                return cls(np.array(image, dtype=np.uint8), image.mode)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ImageDecodeError(f"Failed to decode image: {e}") from e

    def encode(self, fmt: str = 'png') -> bytes:
        """Encode the buffer, PNG by default.

        :raises ImageEncodeError: If Pillow cannot encode the buffer
        """
        output = io.BytesIO()
        try:
            PIL.Image.fromarray(self.pixels).save(output, format=fmt)
        except (OSError, ValueError, KeyError) as e:
            raise ImageEncodeError(f"Failed to encode image as {fmt}: {e}") from e
        return output.getvalue()
