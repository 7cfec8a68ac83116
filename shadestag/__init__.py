"""
ShadeStag - Alt-text directive image filters with a content-addressed disk cache
"""

from .pixel_buffer import PixelBuffer
from .descriptor import SourceDescriptor, REMOTE_MTIME
from .exceptions import ShadeStagError, ImageDecodeError, ImageEncodeError, DirectiveSyntaxError
from .filters import (
    Filter,
    FilterSpec,
    FilterPipeline,
    ParameterValue,
    Theme,
)
from .directives import parse_directives, parse_filters
from .cache import ImageCache
from .config import Settings
from .providers import FileProvider, DisplaySink, LocalFileProvider, HttpFileProvider
from .renderer import Renderer

__all__ = [
    # Data model
    "PixelBuffer",
    "SourceDescriptor",
    "REMOTE_MTIME",
    # Errors
    "ShadeStagError",
    "ImageDecodeError",
    "ImageEncodeError",
    "DirectiveSyntaxError",
    # Filters
    "Filter",
    "FilterSpec",
    "FilterPipeline",
    "ParameterValue",
    "Theme",
    # Parsing
    "parse_directives",
    "parse_filters",
    # Cache and rendering
    "ImageCache",
    "Settings",
    "FileProvider",
    "DisplaySink",
    "LocalFileProvider",
    "HttpFileProvider",
    "Renderer",
]
