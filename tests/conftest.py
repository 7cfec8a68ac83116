"""
Pytest fixtures for ShadeStag tests
"""

import io

import numpy as np
import PIL.Image
import pytest

from shadestag import ImageCache, PixelBuffer, SourceDescriptor


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an (H, W, 3|4) uint8 array as PNG bytes."""
    output = io.BytesIO()
    PIL.Image.fromarray(pixels).save(output, format="png")
    return output.getvalue()


@pytest.fixture
def example_buffer() -> PixelBuffer:
    """2x2 RGBA buffer: one near-black pixel, three light gray pixels."""
    return PixelBuffer.from_rgba([
        [(10, 10, 10, 255), (200, 200, 200, 255)],
        [(200, 200, 200, 255), (200, 200, 200, 255)],
    ])


@pytest.fixture
def random_buffer() -> PixelBuffer:
    """32x24 RGBA buffer of random colors with random alpha."""
    rng = np.random.default_rng(42)
    return PixelBuffer(rng.integers(0, 256, size=(24, 32, 4), dtype=np.uint8), "RGBA")


@pytest.fixture
def example_png(example_buffer) -> bytes:
    return encode_png(example_buffer.pixels)


@pytest.fixture
def cache(tmp_path) -> ImageCache:
    return ImageCache(tmp_path, ".cache")


@pytest.fixture
def descriptor() -> SourceDescriptor:
    return SourceDescriptor(
        identity="images/My Diagram.png",
        display_name="My Diagram.png",
        base_name="My Diagram",
        modified_at_ms=1_000.0,
    )
