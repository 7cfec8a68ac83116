# ShadeStag Filters - Base Classes
"""
Base classes for the filter system.

Filters are frozen dataclasses built from a typed parameter map. Each filter
exposes a canonical signature (name plus resolved parameters) that is used to
derive cache keys, and an apply() method transforming a PixelBuffer.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from shadestag.descriptor import SourceDescriptor
    from shadestag.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


class Theme(Enum):
    """Display theme, only the darkmode filter reacts to it."""

    DARK = 'dark'
    LIGHT = 'light'

    @classmethod
    def parse(cls, value: 'Theme | str | None') -> 'Theme | None':
        """Convert a theme name to a Theme, None stays None."""
        if value is None or isinstance(value, Theme):
            return value
        return cls(value.strip().lower())


class ValueKind(Enum):
    """Active case of a ParameterValue."""

    NUMBER = auto()
    TEXT = auto()
    FLAG = auto()


@dataclass(frozen=True)
class ParameterValue:
    """A directive parameter value, exactly one of number, text or flag.

    A key given without a value is a presence flag (flag=True).
    """

    number: int | float | None = None
    text: str | None = None
    flag: bool | None = None

    def __post_init__(self):
        populated = sum(v is not None for v in (self.number, self.text, self.flag))
        if populated != 1:
            raise ValueError(
                f"ParameterValue needs exactly one populated case, got {populated}"
            )

    @property
    def kind(self) -> ValueKind:
        if self.number is not None:
            return ValueKind.NUMBER
        if self.text is not None:
            return ValueKind.TEXT
        return ValueKind.FLAG

    @property
    def value(self) -> int | float | str | bool:
        """The populated payload."""
        if self.number is not None:
            return self.number
        if self.text is not None:
            return self.text
        return self.flag

    @classmethod
    def of_number(cls, number: int | float) -> 'ParameterValue':
        return cls(number=number)

    @classmethod
    def of_text(cls, text: str) -> 'ParameterValue':
        return cls(text=text)

    @classmethod
    def of_flag(cls, flag: bool = True) -> 'ParameterValue':
        return cls(flag=flag)

    def __str__(self) -> str:
        if self.number is not None:
            return format_number(self.number)
        if self.text is not None:
            return f'"{self.text}"'
        return 'true' if self.flag else 'false'


Parameters = Mapping[str, ParameterValue]
"Parameter map of a directive, keyed by parameter name"


@dataclass(frozen=True)
class FilterSpec:
    """A parsed directive: filter name plus typed parameters."""

    name: str
    parameters: dict[str, ParameterValue] = field(default_factory=dict)

    def __str__(self) -> str:
        if not self.parameters:
            return f'@{self.name}'
        args = ', '.join(f'{k}={v}' for k, v in self.parameters.items())
        return f'@{self.name}({args})'


def format_number(value: int | float) -> str:
    """Render a number the way it appears in signatures.

    Integral values lose their fractional part (1.0 -> '1'), other floats use
    the shortest round-trip representation (1.2 -> '1.2').
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def number_param(
    parameters: Parameters, key: str, default: float, filter_name: str
) -> float:
    """Read a numeric parameter, falling back to default on absence or type mismatch."""
    param = parameters.get(key)
    if param is None:
        return default
    if param.kind is not ValueKind.NUMBER:
        logger.warning(
            f"{filter_name}: parameter '{key}' expects a number, got {param}; "
            f"using default {format_number(default)}"
        )
        return default
    return param.number


def text_param(
    parameters: Parameters,
    key: str,
    default: str,
    filter_name: str,
    options: tuple[str, ...] | None = None,
) -> str:
    """Read a text parameter, falling back to default on absence or invalid value."""
    param = parameters.get(key)
    if param is None:
        return default
    if param.kind is not ValueKind.TEXT or (options and param.text.lower() not in options):
        logger.warning(
            f"{filter_name}: invalid value {param} for '{key}'; using default '{default}'"
        )
        return default
    return param.text.lower() if options else param.text


# Global registries
FILTER_REGISTRY: dict[str, type['Filter']] = {}
FILTER_ALIASES: dict[str, str] = {}


def register_filter(cls: type['Filter']) -> type['Filter']:
    """Decorator to register a filter class under its directive name."""
    FILTER_REGISTRY[cls.name] = cls
    return cls


def register_alias(alias: str, name: str) -> None:
    """Register an alternative directive name for a registered filter.

    Example:
        register_alias('dark', 'darkmode')
    """
    FILTER_ALIASES[alias] = name


def lookup_filter(name: str) -> type['Filter'] | None:
    """Find a filter class by directive name or alias, None if unknown."""
    return FILTER_REGISTRY.get(FILTER_ALIASES.get(name, name))


def create_filter(spec: FilterSpec) -> 'Filter | None':
    """Construct the filter a spec asks for, None for unknown names."""
    filter_cls = lookup_filter(spec.name)
    if filter_cls is None:
        return None
    for key in spec.parameters:
        if key not in filter_cls.parameter_names:
            logger.warning(f"{filter_cls.name}: unknown parameter '{key}' ignored")
    return filter_cls.from_parameters(spec.parameters)


@dataclass(frozen=True)
class Filter(ABC):
    """Base class for all filters.

    Subclasses declare their directive name and implement from_parameters()
    and apply(). Filters are immutable; apply() returns a new buffer.

    Example:
        @register_filter
        @dataclass(frozen=True)
        class MyFilter(Filter):
            name: ClassVar[str] = 'my-filter'
            parameter_names: ClassVar[tuple[str, ...]] = ('amount',)
            amount: float = 1.0

            @classmethod
            def from_parameters(cls, parameters):
                return cls(number_param(parameters, 'amount', 1.0, cls.name))

            def apply(self, buffer, descriptor=None, theme=None):
                ...
    """

    name: ClassVar[str] = ''
    parameter_names: ClassVar[tuple[str, ...]] = ()

    # Filters whose output depends on the theme passed to apply()
    theme_sensitive: ClassVar[bool] = False

    @classmethod
    @abstractmethod
    def from_parameters(cls, parameters: Parameters) -> 'Filter':
        """Build the filter from a directive's parameter map, never fails."""

    @abstractmethod
    def apply(
        self,
        buffer: 'PixelBuffer',
        descriptor: 'SourceDescriptor | None' = None,
        theme: Theme | None = None,
    ) -> 'PixelBuffer':
        """Apply filter to a buffer and return the result.

        :param buffer: The input buffer, left unmodified.
        :param descriptor: The source being filtered.
        :param theme: Display theme for theme-sensitive filters.
        :returns: The processed buffer.
        """

    def signature_params(self) -> dict[str, Any]:
        """Resolved parameters encoded in the signature, in order."""
        return {}

    def signature(self) -> str:
        """Canonical string of name and resolved parameters.

        Example: 'boost-lightness(amount=1.2)'
        """
        params = self.signature_params()
        if not params:
            return self.name
        rendered = ','.join(
            f'{k}={format_number(v) if isinstance(v, (int, float)) else v}'
            for k, v in params.items()
        )
        return f'{self.name}({rendered})'

    def __str__(self) -> str:
        return self.signature()
