"""
Tests for the async renderer: cache hits, shared builds, theme keys and
error propagation.
"""

import asyncio
from pathlib import Path

import pytest

from shadestag import ImageDecodeError, PixelBuffer, Renderer, Settings, SourceDescriptor
from shadestag.directives import parse_filters
from shadestag.renderer import transform


class CountingProvider:
    """FileProvider serving fixed bytes and counting reads."""

    def __init__(self, data: bytes):
        self.data = data
        self.reads = 0

    async def read_bytes(self, descriptor: SourceDescriptor) -> bytes:
        self.reads += 1
        # Let concurrent renders reach the in-flight check
        await asyncio.sleep(0)
        return self.data


class RecordingSink:

    def __init__(self):
        self.shown: list[tuple[SourceDescriptor, Path]] = []

    def show(self, descriptor: SourceDescriptor, cache_path: Path) -> None:
        self.shown.append((descriptor, cache_path))


@pytest.fixture
def provider(example_png) -> CountingProvider:
    return CountingProvider(example_png)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def renderer(cache, provider, sink) -> Renderer:
    return Renderer(cache, provider, sink)


def pixels_of(path: Path) -> list[tuple[int, ...]]:
    buffer = PixelBuffer.decode(path.read_bytes())
    return [tuple(int(v) for v in p) for p in buffer.pixels.reshape(-1, buffer.channels)]


class TestRender:

    @pytest.mark.asyncio
    async def test_end_to_end(self, renderer, descriptor, sink):
        path = await renderer.render(
            descriptor, '@transparent(threshold=20,remove="below") @boost-lightness(amount=1.1)'
        )
        assert path.exists()
        assert path.name.startswith("My_Diagram_")
        assert path.name.endswith(
            "_transparent(threshold=20,remove=below)_boost-lightness(amount=1.1).png"
        )
        assert pixels_of(path) == [
            (0, 0, 0, 0),
            (220, 220, 220, 255),
            (220, 220, 220, 255),
            (220, 220, 220, 255),
        ]
        assert sink.shown == [(descriptor, path)]

    @pytest.mark.asyncio
    async def test_cache_hit_skips_pipeline(self, renderer, descriptor, provider, sink):
        first = await renderer.render(descriptor, "@invert")
        second = await renderer.render(descriptor, "@invert")
        assert first == second
        assert provider.reads == 1
        assert len(sink.shown) == 2

    @pytest.mark.asyncio
    async def test_same_annotation_same_path(self, renderer, descriptor):
        first = await renderer.render(descriptor, "@contrast(amount=1.0) @invert")
        second = await renderer.render(descriptor, "@CONTRAST( amount = 1 ) @invert")
        assert first == second

    @pytest.mark.asyncio
    async def test_no_filters(self, renderer, descriptor, provider, sink):
        assert await renderer.render(descriptor, "A plain diagram") is None
        assert await renderer.render(descriptor, "@unknown(x=1)") is None
        assert provider.reads == 0
        assert sink.shown == []

    @pytest.mark.asyncio
    async def test_decode_error_propagates(self, cache, descriptor, sink):
        renderer = Renderer(cache, CountingProvider(b"not an image"), sink)
        with pytest.raises(ImageDecodeError):
            await renderer.render(descriptor, "@invert")
        assert sink.shown == []
        assert not cache.is_fresh(descriptor, ["invert"])

    @pytest.mark.asyncio
    async def test_read_error_propagates(self, cache, descriptor, sink):
        class FailingProvider:
            async def read_bytes(self, descriptor):
                raise FileNotFoundError(descriptor.identity)

        renderer = Renderer(cache, FailingProvider(), sink)
        with pytest.raises(FileNotFoundError):
            await renderer.render(descriptor, "@invert")
        assert sink.shown == []

    @pytest.mark.asyncio
    async def test_concurrent_renders_share_one_build(self, renderer, descriptor, provider):
        paths = await asyncio.gather(
            renderer.render(descriptor, "@invert"),
            renderer.render(descriptor, "@invert"),
            renderer.render(descriptor, "@invert"),
        )
        assert len(set(paths)) == 1
        assert provider.reads == 1
        assert renderer._in_flight == {}

    @pytest.mark.asyncio
    async def test_concurrent_different_keys(self, renderer, descriptor, provider):
        invert, contrast = await asyncio.gather(
            renderer.render(descriptor, "@invert"),
            renderer.render(descriptor, "@contrast"),
        )
        assert invert != contrast
        assert provider.reads == 2


class TestThemes:

    @pytest.mark.asyncio
    async def test_darkmode_key_includes_theme(self, renderer, descriptor):
        dark = await renderer.render(descriptor, "@darkmode", "dark")
        light = await renderer.render(descriptor, "@darkmode", "light")
        assert dark.name.endswith("_darkmode_dark.png")
        assert light.name.endswith("_darkmode_light.png")
        assert pixels_of(dark) != pixels_of(light)

    @pytest.mark.asyncio
    async def test_missing_theme_means_dark(self, renderer, descriptor):
        default = await renderer.render(descriptor, "@dark")
        assert default == await renderer.render(descriptor, "@darkmode", "dark")

    @pytest.mark.asyncio
    async def test_theme_independent_chain(self, renderer, descriptor, provider):
        dark = await renderer.render(descriptor, "@invert", "dark")
        light = await renderer.render(descriptor, "@invert", "light")
        assert dark == light
        assert dark.name.endswith("_invert.png")
        assert provider.reads == 1

    def test_transform_matches_explicit_chain(self, example_png, descriptor):
        dark = transform(example_png, parse_filters("@darkmode"), descriptor, None)
        explicit = transform(
            example_png, parse_filters("@invert @transparent @boost-lightness"), descriptor
        )
        assert dark == explicit


class TestEviction:

    @pytest.mark.asyncio
    async def test_invalidate(self, renderer, descriptor, provider):
        await renderer.render(descriptor, "@invert")
        await renderer.render(descriptor, "@darkmode", "light")
        assert renderer.invalidate(descriptor) == 2

        await renderer.render(descriptor, "@invert")
        assert provider.reads == 3

    @pytest.mark.asyncio
    async def test_clear_one_annotation(self, renderer, descriptor):
        kept = await renderer.render(descriptor, "@invert")
        cleared = await renderer.render(descriptor, "@darkmode", "light")
        renderer.clear(descriptor, "@darkmode", "light")
        assert kept.exists()
        assert not cleared.exists()

    @pytest.mark.asyncio
    async def test_clear_entire_cache(self, renderer, descriptor):
        await renderer.render(descriptor, "@invert")
        await renderer.render(descriptor, "@contrast")
        assert renderer.clear_entire_cache() == 2


class TestSettings:

    def test_from_settings(self, tmp_path, provider):
        settings = Settings(ROOT_DIR=tmp_path, CACHE_DIR="renders")
        renderer = Renderer.from_settings(settings, provider)
        assert renderer.cache.absolute_cache_dir() == tmp_path / "renders"
        assert renderer.provider is provider

    @pytest.mark.asyncio
    async def test_apply_settings_moves_cache(self, tmp_path, renderer, descriptor):
        old = await renderer.render(descriptor, "@invert")
        renderer.apply_settings(Settings(ROOT_DIR=tmp_path, CACHE_DIR="moved"))
        assert (tmp_path / "moved").is_dir()

        new = await renderer.render(descriptor, "@invert")
        assert new.parent == tmp_path / "moved"
        assert old.exists()
