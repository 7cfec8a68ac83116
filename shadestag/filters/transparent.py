# ShadeStag Filters - Transparency
"""
Threshold transparency: turn near-black (or near-white) pixels fully
transparent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, TYPE_CHECKING

import numpy as np
from PIL import ImageColor

from shadestag.pixel_buffer import PixelBuffer
from .base import Filter, Parameters, Theme, ValueKind, register_filter, text_param

if TYPE_CHECKING:
    from shadestag.descriptor import SourceDescriptor

logger = logging.getLogger(__name__)

ThresholdType = float | tuple[int, int, int]
"Single threshold for all channels or one per R, G, B"

REMOVE_MODES = ('below', 'above')


def parse_threshold(text: str) -> tuple[int, int, int]:
    """Parse a color string ('#f0f0f0', 'white', 'rgb(1,2,3)') into an RGB tuple.

    :raises ValueError: If the color cannot be parsed
    """
    return ImageColor.getrgb(text.strip())[:3]


@register_filter
@dataclass(frozen=True)
class Transparent(Filter):
    """Make pixels below (or above) a threshold fully transparent.

    Each of R, G and B is compared with the threshold. With remove='below' a
    pixel is cleared to (0, 0, 0, 0) if all three are strictly less than the
    threshold, with remove='above' if all three are strictly greater. Other
    pixels are left untouched. An alpha channel is added if missing.

    Parameters:
        threshold: Number applied to all channels, or a color giving one
            threshold per channel (default 13)
        remove: 'below' or 'above' (default 'below')

    Example:
        '@transparent' or '@transparent(threshold=20, remove="below")'
        '@transparent(threshold="#f0f0f0", remove="above")'
    """

    name: ClassVar[str] = 'transparent'
    parameter_names: ClassVar[tuple[str, ...]] = ('threshold', 'remove')
    DEFAULT_THRESHOLD: ClassVar[float] = 13  # 0.05 * 255
    DEFAULT_REMOVE: ClassVar[str] = 'below'

    threshold: ThresholdType = DEFAULT_THRESHOLD
    remove: str = DEFAULT_REMOVE

    def __post_init__(self):
        if self.remove not in REMOVE_MODES:
            raise ValueError(f"remove must be one of {REMOVE_MODES}, got '{self.remove}'")

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> 'Transparent':
        return cls(
            threshold=cls._threshold_from(parameters),
            remove=text_param(parameters, 'remove', cls.DEFAULT_REMOVE, cls.name, REMOVE_MODES),
        )

    @classmethod
    def _threshold_from(cls, parameters: Parameters) -> ThresholdType:
        param = parameters.get('threshold')
        if param is None:
            return cls.DEFAULT_THRESHOLD
        if param.kind is ValueKind.NUMBER:
            return param.number
        if param.kind is ValueKind.TEXT:
            try:
                return parse_threshold(param.text)
            except ValueError:
                logger.warning(f"{cls.name}: cannot parse color {param}, using default threshold")
                return cls.DEFAULT_THRESHOLD
        logger.warning(f"{cls.name}: threshold needs a value, using default threshold")
        return cls.DEFAULT_THRESHOLD

    def signature_params(self) -> dict[str, Any]:
        threshold = self.threshold
        if isinstance(threshold, tuple):
            threshold = '{:02x}{:02x}{:02x}'.format(*threshold)
        return {'threshold': threshold, 'remove': self.remove}

    def apply(
        self,
        buffer: PixelBuffer,
        descriptor: 'SourceDescriptor | None' = None,
        theme: Theme | None = None,
    ) -> PixelBuffer:
        result = buffer.with_alpha().copy()
        rgb = result.pixels[..., :3]
        threshold = np.asarray(self.threshold, dtype=np.float64)
        if self.remove == 'below':
            mask = np.all(rgb < threshold, axis=-1)
        else:
            mask = np.all(rgb > threshold, axis=-1)
        result.pixels[mask] = 0
        return result
