# ShadeStag Filters Module
"""
Dataclass-based filter system for directive-driven image processing.

Filters are registered by directive name and composed into pipelines.
"""

from .base import (
    Filter,
    FilterSpec,
    ParameterValue,
    Parameters,
    Theme,
    ValueKind,
    FILTER_REGISTRY,
    FILTER_ALIASES,
    register_filter,
    register_alias,
    lookup_filter,
    create_filter,
    format_number,
)

from .pipeline import FilterFrame, FilterPipeline

from .color import (
    Invert,
    BoostLightness,
    Contrast,
    rgb_to_hsl,
    hsl_to_rgb,
)

from .transparent import Transparent, parse_threshold

from .sharpen import Sharpness

from .darkmode import DarkMode

__all__ = [
    # Base
    "Filter",
    "FilterSpec",
    "ParameterValue",
    "Parameters",
    "Theme",
    "ValueKind",
    "FILTER_REGISTRY",
    "FILTER_ALIASES",
    "register_filter",
    "register_alias",
    "lookup_filter",
    "create_filter",
    "format_number",
    # Pipeline
    "FilterFrame",
    "FilterPipeline",
    # Filters
    "Invert",
    "BoostLightness",
    "Contrast",
    "Transparent",
    "Sharpness",
    "DarkMode",
    # Helpers
    "rgb_to_hsl",
    "hsl_to_rgb",
    "parse_threshold",
]
