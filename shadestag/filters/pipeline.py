# ShadeStag Filters - Pipeline
"""
FilterPipeline for chaining multiple filters.

Filters are applied in declared order as a left fold over the buffer. The
source descriptor travels alongside the buffer unchanged. There is no error
recovery: an exception raised by any filter aborts the chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, TYPE_CHECKING

from .base import Filter, Theme

if TYPE_CHECKING:
    from shadestag.descriptor import SourceDescriptor
    from shadestag.pixel_buffer import PixelBuffer


@dataclass(frozen=True)
class FilterFrame:
    """A buffer together with the source it was decoded from."""

    buffer: 'PixelBuffer'
    descriptor: 'SourceDescriptor | None' = None


@dataclass
class FilterPipeline:
    """Chain of filters applied in sequence."""

    filters: list[Filter] = field(default_factory=list)

    def apply(
        self,
        buffer: 'PixelBuffer',
        descriptor: 'SourceDescriptor | None' = None,
        theme: Theme | None = None,
    ) -> 'PixelBuffer':
        """Apply all filters in sequence."""
        result = buffer
        for f in self.filters:
            result = f.apply(result, descriptor, theme)
        return result

    def process(self, frame: FilterFrame, theme: Theme | None = None) -> FilterFrame:
        """Run a frame through the chain, keeping its descriptor."""
        return FilterFrame(self.apply(frame.buffer, frame.descriptor, theme), frame.descriptor)

    def signatures(self) -> list[str]:
        """Ordered filter signatures, the filter part of a cache key."""
        return [f.signature() for f in self.filters]

    @property
    def theme_sensitive(self) -> bool:
        """Whether the output depends on the theme."""
        return any(f.theme_sensitive for f in self.filters)

    def append(self, filter: Filter) -> 'FilterPipeline':
        """Add filter to pipeline (chainable)."""
        self.filters.append(filter)
        return self

    def extend(self, filters: list[Filter]) -> 'FilterPipeline':
        """Add multiple filters to pipeline (chainable)."""
        self.filters.extend(filters)
        return self

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(self.filters)

    def __getitem__(self, index: int) -> Filter:
        return self.filters[index]

    @classmethod
    def parse(cls, text: str) -> 'FilterPipeline':
        """Parse the directives in an annotation into a pipeline.

        Examples:
            '@darkmode'
            'diagram @transparent(threshold=20) @boost-lightness(amount=1.1)'
        """
        from shadestag.directives import parse_filters
        return parse_filters(text)

