# ShadeStag Filters - Color Adjustments
"""
Color adjustment filters: Invert, BoostLightness, Contrast.

All filters operate on 8-bit RGB or RGBA buffers and leave alpha untouched.

The HSL helpers come in two flavours: scalar reference functions
(rgb_to_hsl / hsl_to_rgb) and a vectorized numpy version used by
BoostLightness. Both follow the same branching and operation order so they
agree bit-for-bit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, TYPE_CHECKING

import numpy as np

from shadestag.pixel_buffer import MAX_CHANNEL_VALUE, PixelBuffer
from .base import Filter, Parameters, Theme, number_param, register_filter

if TYPE_CHECKING:
    from shadestag.descriptor import SourceDescriptor


# ============================================================================
# RGB <-> HSL Conversion Helpers
# ============================================================================

def rgb_to_hsl(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert RGB (0-255) to HSL (0-360, 0-100, 0-100)."""
    r /= 255
    g /= 255
    b /= 255
    max_c = max(r, g, b)
    min_c = min(r, g, b)
    h = s = 0.0
    l = (max_c + min_c) / 2 * 100

    if max_c != min_c:
        d = max_c - min_c
        s = d / (2 - max_c - min_c) if l > 50 else d / (max_c + min_c)
        s *= 100

        if max_c == r:
            h = (g - b) / d + (6 if g < b else 0)
        elif max_c == g:
            h = (b - r) / d + 2
        else:
            h = (r - g) / d + 4
        h = math.fmod(h * 60, 360)

    return (h + 360 if h < 0 else h), s, l


def _hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def hsl_to_rgb(h: float, s: float, l: float) -> tuple[int, int, int]:
    """Convert HSL (0-360, 0-100, 0-100) to RGB (0-255)."""
    h /= 360
    s /= 100
    l /= 100

    if s == 0:
        r = g = b = l
    else:
        q = l * (1 + s) if l < 0.5 else l + s - l * s
        p = 2 * l - q
        r = _hue_to_rgb(p, q, h + 1 / 3)
        g = _hue_to_rgb(p, q, h)
        b = _hue_to_rgb(p, q, h - 1 / 3)

    return (
        _round_half_up(r * 255),
        _round_half_up(g * 255),
        _round_half_up(b * 255),
    )


def rgb_to_hsl_array(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Vectorized rgb_to_hsl for an (..., 3) uint8 array."""
    channels = rgb.astype(np.float64) / 255
    r, g, b = channels[..., 0], channels[..., 1], channels[..., 2]
    max_c = np.maximum(np.maximum(r, g), b)
    min_c = np.minimum(np.minimum(r, g), b)
    l = (max_c + min_c) / 2 * 100
    d = max_c - min_c
    chromatic = max_c != min_c

    # Achromatic pixels divide by zero here, they are masked out below
    with np.errstate(divide='ignore', invalid='ignore'):
        s = np.where(l > 50, d / (2 - max_c - min_c), d / (max_c + min_c)) * 100
        h = np.where(
            max_c == r,
            (g - b) / d + np.where(g < b, 6, 0),
            np.where(max_c == g, (b - r) / d + 2, (r - g) / d + 4),
        )
        h = np.fmod(h * 60, 360)
    h = np.where(h < 0, h + 360, h)

    return np.where(chromatic, h, 0.0), np.where(chromatic, s, 0.0), l


def _hue_to_rgb_array(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0, t + 1, t)
    t = np.where(t > 1, t - 1, t)
    return np.select(
        [t < 1 / 6, t < 1 / 2, t < 2 / 3],
        [p + (q - p) * 6 * t, q, p + (q - p) * (2 / 3 - t) * 6],
        default=p,
    )


def hsl_to_rgb_array(h: np.ndarray, s: np.ndarray, l: np.ndarray) -> np.ndarray:
    """Vectorized hsl_to_rgb, returns an (..., 3) uint8 array."""
    h = h / 360
    s = s / 100
    l = l / 100

    q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
    p = 2 * l - q
    gray = s == 0
    r = np.where(gray, l, _hue_to_rgb_array(p, q, h + 1 / 3))
    g = np.where(gray, l, _hue_to_rgb_array(p, q, h))
    b = np.where(gray, l, _hue_to_rgb_array(p, q, h - 1 / 3))

    rgb = np.floor(np.stack([r, g, b], axis=-1) * 255 + 0.5)
    return np.clip(rgb, 0, MAX_CHANNEL_VALUE).astype(np.uint8)


# ============================================================================
# Filters
# ============================================================================

@register_filter
@dataclass(frozen=True)
class Invert(Filter):
    """Invert colors (negative).

    Every color channel becomes 255 - value, alpha is kept.

    Example:
        '@invert'
    """

    name: ClassVar[str] = 'invert'

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> 'Invert':
        return cls()

    def apply(
        self,
        buffer: PixelBuffer,
        descriptor: 'SourceDescriptor | None' = None,
        theme: Theme | None = None,
    ) -> PixelBuffer:
        result = buffer.copy()
        result.pixels[..., :3] = MAX_CHANNEL_VALUE - buffer.pixels[..., :3]
        return result


@register_filter
@dataclass(frozen=True)
class BoostLightness(Filter):
    """Scale the HSL lightness of every pixel.

    Lightness is multiplied by amount and capped at 100%. Hue and saturation
    are kept, alpha is untouched.

    Parameters:
        amount: Lightness factor (default 1.2), values below 1 darken

    Example:
        '@boost-lightness' or '@boost-lightness(amount=1.5)'
    """

    name: ClassVar[str] = 'boost-lightness'
    parameter_names: ClassVar[tuple[str, ...]] = ('amount',)
    DEFAULT_AMOUNT: ClassVar[float] = 1.2

    amount: float = DEFAULT_AMOUNT

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> 'BoostLightness':
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
        h, s, l = rgb_to_hsl_array(buffer.pixels[..., :3])
        result.pixels[..., :3] = hsl_to_rgb_array(h, s, np.minimum(100, l * self.amount))
        return result


@register_filter
@dataclass(frozen=True)
class Contrast(Filter):
    """Quadratic contrast curve.

    Each color channel x in [0, 1] becomes x + (1 - x) * amount * x, which
    pushes values towards saturation. The result is stored like an unsigned
    8-bit store: truncated and wrapped, not clamped, so large amounts
    overflow the channel range.

    Parameters:
        amount: Curve strength (default 1)

    Example:
        '@contrast(amount=0.5)'
    """

    name: ClassVar[str] = 'contrast'
    parameter_names: ClassVar[tuple[str, ...]] = ('amount',)
    DEFAULT_AMOUNT: ClassVar[float] = 1

    amount: float = DEFAULT_AMOUNT

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> 'Contrast':
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
        x = buffer.pixels[..., :3].astype(np.float64) / 255
        curved = (x + (1 - x) * self.amount * x) * 255
        result.pixels[..., :3] = np.mod(np.trunc(curved), 256).astype(np.uint8)
        return result
