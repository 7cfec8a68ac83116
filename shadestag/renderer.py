# ShadeStag - Renderer
"""
Renders annotated images through the filter pipeline into the cache.

Flow for one render attempt:

    annotation -> directives -> FilterPipeline -> cache lookup
    hit:  return the cached path
    miss: FileProvider bytes -> decode -> pipeline -> encode -> cache write

Concurrent render attempts for the same cache key share one build: the
first attempt starts it, later ones await the same task.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .cache import ImageCache
from .config import Settings
from .descriptor import SourceDescriptor
from .directives import parse_filters
from .filters import FilterFrame, FilterPipeline, Theme
from .log import configure_logging
from .pixel_buffer import PixelBuffer
from .providers import (
    DisplaySink,
    FileProvider,
    HttpFileProvider,
    LocalFileProvider,
    NullDisplaySink,
    RoutingFileProvider,
)

logger = logging.getLogger(__name__)


def transform(
    data: bytes,
    pipeline: FilterPipeline,
    descriptor: SourceDescriptor | None = None,
    theme: Theme | None = None,
) -> bytes:
    """Decode image bytes, run the pipeline and encode the result as PNG.

    :raises ImageDecodeError: If the bytes are not a readable image
    """
    frame = FilterFrame(PixelBuffer.decode(data), descriptor)
    return pipeline.process(frame, theme).buffer.encode('png')


class Renderer:
    """Host-facing entry point tying parser, pipeline and cache together.

    :param cache: The cache to store renders in
    :param provider: Source of raw image bytes
    :param sink: Receives the cache path after each successful render
    """

    def __init__(
        self,
        cache: ImageCache,
        provider: FileProvider,
        sink: DisplaySink | None = None,
    ):
        self.cache = cache
        self.provider = provider
        self.sink = sink or NullDisplaySink()
        self._in_flight: dict[Path, asyncio.Task] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: FileProvider | None = None,
        sink: DisplaySink | None = None,
    ) -> Renderer:
        """Build a renderer with local and http providers unless one is given."""
        configure_logging(settings.DEBUG)
        if provider is None:
            provider = RoutingFileProvider(
                LocalFileProvider(settings.ROOT_DIR),
                HttpFileProvider(timeout=settings.HTTP_TIMEOUT),
            )
        return cls(ImageCache(settings.ROOT_DIR, settings.CACHE_DIR), provider, sink)

    def apply_settings(self, settings: Settings) -> None:
        """Reconfigure after the host's settings changed."""
        configure_logging(settings.DEBUG)
        if Path(settings.CACHE_DIR) != self.cache.cache_dir:
            self.cache.set_cache_dir(settings.CACHE_DIR)

    def cache_key(
        self, pipeline: FilterPipeline, theme: Theme | None
    ) -> tuple[list[str], Theme | None]:
        """Signatures and theme tag identifying a render.

        The theme only becomes part of the key if the chain reacts to it.
        """
        key_theme = (theme or Theme.DARK) if pipeline.theme_sensitive else None
        return pipeline.signatures(), key_theme

    async def render(
        self,
        descriptor: SourceDescriptor,
        annotation: str,
        theme: Theme | str | None = None,
    ) -> Path | None:
        """Render an annotated image and return its cache path.

        :param descriptor: The source image
        :param annotation: Alt-text carrying the directives
        :param theme: Active display theme
        :returns: Absolute cache path, or None if no filters were requested
        :raises Exception: Read, decode and write failures propagate
        """
        theme = Theme.parse(theme)
        pipeline = parse_filters(annotation)
        if not pipeline:
            logger.debug(f"No filters requested for {descriptor.display_name}")
            return None

        signatures, key_theme = self.cache_key(pipeline, theme)
        path = self.cache.cache_path(descriptor, signatures, key_theme)

        if self.cache.is_fresh(descriptor, signatures, key_theme):
            logger.debug(f"Cache hit: {path}")
        else:
            logger.debug(f"Cache miss: {path}")
            try:
                await asyncio.shield(self._build_once(descriptor, pipeline, theme, path))
            except Exception as e:
                logger.error(f"Failed to render {descriptor.display_name}: {e}")
                raise

        self.sink.show(descriptor, path)
        return path

    def _build_once(
        self,
        descriptor: SourceDescriptor,
        pipeline: FilterPipeline,
        theme: Theme | None,
        path: Path,
    ) -> asyncio.Task:
        task = self._in_flight.get(path)
        if task is not None:
            logger.debug(f"Joining build in flight: {path}")
            return task

        task = asyncio.ensure_future(self._build(descriptor, pipeline, theme, path))
        self._in_flight[path] = task

        def _done(finished: asyncio.Task) -> None:
            if self._in_flight.get(path) is finished:
                del self._in_flight[path]

        task.add_done_callback(_done)
        return task

    async def _build(
        self,
        descriptor: SourceDescriptor,
        pipeline: FilterPipeline,
        theme: Theme | None,
        path: Path,
    ) -> Path:
        data = await self.provider.read_bytes(descriptor)
        encoded = await asyncio.to_thread(transform, data, pipeline, descriptor, theme)
        return await asyncio.to_thread(self.cache.write, path, encoded)

    def clear(
        self,
        descriptor: SourceDescriptor,
        annotation: str,
        theme: Theme | str | None = None,
    ) -> None:
        """Delete the cached render of one annotation."""
        pipeline = parse_filters(annotation)
        if pipeline:
            signatures, key_theme = self.cache_key(pipeline, Theme.parse(theme))
            self.cache.clear(descriptor, signatures, key_theme)

    def invalidate(self, descriptor: SourceDescriptor) -> int:
        """Drop every cached variant of a source, call when the file changed."""
        return self.cache.clear_all_for_file(descriptor)

    def clear_entire_cache(self) -> int:
        """Delete all cached renders."""
        return self.cache.clear_entire_cache()
