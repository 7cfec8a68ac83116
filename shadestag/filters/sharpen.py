# ShadeStag Filters - Sharpen
"""
3x3 convolution sharpening.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, TYPE_CHECKING

import numpy as np

from shadestag.pixel_buffer import MAX_CHANNEL_VALUE, PixelBuffer
from .base import Filter, Parameters, Theme, number_param, register_filter

if TYPE_CHECKING:
    from shadestag.descriptor import SourceDescriptor

NEIGHBOR_COUNT = 8


def sharpen_kernel(amount: float) -> np.ndarray:
    """Build the 3x3 kernel: center 1 + 8 * amount, neighbors -amount.

    The weights sum to 1, so flat regions keep their brightness.
    """
    kernel = np.full((3, 3), -amount, dtype=np.float64)
    kernel[1, 1] = 1 + NEIGHBOR_COUNT * amount
    return kernel


def convolve3x3(channels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Apply an un-normalized 3x3 kernel to an (H, W, C) float array.

    Border pixels without a full neighborhood are copied unchanged.
    """
    h, w = channels.shape[:2]
    output = channels.copy()
    if h < 3 or w < 3:
        return output

    interior = np.zeros((h - 2, w - 2, channels.shape[2]), dtype=np.float64)
    for dy in range(3):
        for dx in range(3):
            interior += kernel[dy, dx] * channels[dy:dy + h - 2, dx:dx + w - 2]
    output[1:-1, 1:-1] = interior
    return output


@register_filter
@dataclass(frozen=True)
class Sharpness(Filter):
    """Sharpen edges with a 3x3 convolution.

    Larger amounts increase edge emphasis. Color channels are convolved,
    alpha is kept. Results are rounded and saturated to 0-255.

    Parameters:
        amount: Sharpening strength (default 1.0)

    Example:
        '@sharpness' or '@sharpness(amount=0.5)'
    """

    name: ClassVar[str] = 'sharpness'
    parameter_names: ClassVar[tuple[str, ...]] = ('amount',)
    DEFAULT_AMOUNT: ClassVar[float] = 1.0

    amount: float = DEFAULT_AMOUNT

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> 'Sharpness':
        return cls(number_param(parameters, 'amount', cls.DEFAULT_AMOUNT, cls.name))

    def signature_params(self) -> dict[str, Any]:
        return {'amount': self.amount}

    def apply(
        self,
        buffer: PixelBuffer,
        descriptor: 'SourceDescriptor | None' = None,
        theme: Theme | None = None,
    ) -> PixelBuffer:
        result = buffer.copy()
        rgb = buffer.pixels[..., :3].astype(np.float64)
        sharpened = convolve3x3(rgb, sharpen_kernel(self.amount))
        result.pixels[..., :3] = np.clip(np.floor(sharpened + 0.5), 0, MAX_CHANNEL_VALUE).astype(np.uint8)
        return result
