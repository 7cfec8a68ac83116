# ShadeStag Filters - Dark Mode
"""
Composite filter adapting an image to the active display theme.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, TYPE_CHECKING

from shadestag.pixel_buffer import PixelBuffer
from .base import Filter, Parameters, Theme, register_alias, register_filter
from .color import BoostLightness, Invert
from .transparent import Transparent

if TYPE_CHECKING:
    from shadestag.descriptor import SourceDescriptor

LIGHT_THRESHOLD = (240, 240, 240)
"Near-white cutoff stripped from images in the light theme"

LIGHT_LIGHTNESS = 0.85
"Lightness factor darkening images slightly in the light theme"


@register_filter
@dataclass(frozen=True)
class DarkMode(Filter):
    """Adapt an image to the display theme.

    The theme is passed at apply time:
    - dark (or no theme): invert, make near-black transparent, boost lightness
    - light: make near-white transparent, then darken slightly

    Example:
        '@darkmode' or '@dark'
    """

    name: ClassVar[str] = 'darkmode'
    theme_sensitive: ClassVar[bool] = True

    dark_chain: tuple[Filter, ...] = field(
        default_factory=lambda: (Invert(), Transparent(), BoostLightness())
    )
    light_chain: tuple[Filter, ...] = field(
        default_factory=lambda: (
            Transparent(threshold=LIGHT_THRESHOLD, remove='above'),
            BoostLightness(amount=LIGHT_LIGHTNESS),
        )
    )

    @classmethod
    def from_parameters(cls, parameters: Parameters) -> 'DarkMode':
        return cls()

    def chain_for(self, theme: Theme | None) -> tuple[Filter, ...]:
        """Sub-filters applied for a theme."""
        return self.light_chain if theme is Theme.LIGHT else self.dark_chain

    def apply(
        self,
        buffer: PixelBuffer,
        descriptor: 'SourceDescriptor | None' = None,
        theme: Theme | None = None,
    ) -> PixelBuffer:
        result = buffer
        for sub_filter in self.chain_for(theme):
            result = sub_filter.apply(result, descriptor, theme)
        return result


register_alias('dark', DarkMode.name)
