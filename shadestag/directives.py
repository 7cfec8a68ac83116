# ShadeStag - Directive Parser
"""
Parser for the inline directive language carried in an image's alt-text.

Syntax:
- `@name` requests a filter with default parameters
- `@name(key, key=1.5, key="text")` passes parameters
- Names and keys consist of letters, digits, '_' and '-'
- Values are signed integers, decimals or double-quoted text; inside quotes
  `\\"`, `\\(`, `\\)` and `\\\\` are unescaped
- A key without a value is a presence flag
- Whitespace inside the parentheses and around '=' and ',' is ignored

Directives are scanned left to right. Unknown filter names and malformed
directives are skipped without affecting their siblings.

Example:
    'Diagram @transparent(threshold=20, remove="below") @boost-lightness(amount=1.1)'
"""

from __future__ import annotations

import logging
import re

from .exceptions import DirectiveSyntaxError
from .filters import FilterPipeline, FilterSpec, ParameterValue, create_filter, lookup_filter

logger = logging.getLogger(__name__)

DIRECTIVE_PATTERN = re.compile(r'@([A-Za-z0-9_-]+)')
KEY_PATTERN = re.compile(r'[A-Za-z0-9_-]+')
INTEGER_PATTERN = re.compile(r'[+-]?\d+')
FRACTION_PATTERN = re.compile(r'[+-]?(?:\d+\.\d*|\.\d+)')
QUOTED_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"')
ESCAPE_PATTERN = re.compile(r'\\(["()\\])')


def _find_closing_paren(text: str, start: int) -> int:
    """Find the ')' closing an argument list whose content begins at start.

    :raises DirectiveSyntaxError: On a nested '(', unterminated quote or
        missing ')'
    """
    in_quotes = False
    i = start
    while i < len(text):
        char = text[i]
        if in_quotes:
            if char == '\\':
                i += 1
            elif char == '"':
                in_quotes = False
        elif char == '"':
            in_quotes = True
        elif char == ')':
            return i
        elif char == '(':
            raise DirectiveSyntaxError(f"Unexpected '(' at offset {i}")
        i += 1
    if in_quotes:
        raise DirectiveSyntaxError("Unterminated quoted text")
    raise DirectiveSyntaxError("Missing ')'")


def _split_arguments(args: str) -> list[str]:
    """Split an argument list at commas outside quoted text."""
    parts = []
    current = []
    in_quotes = False
    escaped = False

    for char in args:
        if escaped:
            escaped = False
        elif in_quotes and char == '\\':
            escaped = True
        elif char == '"':
            in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            parts.append(''.join(current))
            current = []
            continue
        current.append(char)

    parts.append(''.join(current))
    return [part.strip() for part in parts if part.strip()]


def parse_value(raw: str) -> ParameterValue:
    """Coerce a raw argument value.

    Integers parse as int, decimals as float, quoted text is unescaped.

    :raises DirectiveSyntaxError: For anything else
    """
    raw = raw.strip()
    if INTEGER_PATTERN.fullmatch(raw):
        return ParameterValue.of_number(int(raw))
    if FRACTION_PATTERN.fullmatch(raw):
        return ParameterValue.of_number(float(raw))
    match = QUOTED_PATTERN.fullmatch(raw)
    if match:
        return ParameterValue.of_text(ESCAPE_PATTERN.sub(r'\1', match.group(1)))
    raise DirectiveSyntaxError(f"Invalid value: {raw}")


def parse_arguments(args: str) -> dict[str, ParameterValue]:
    """Parse the text between a directive's parentheses.

    Keys are case-insensitive and stored lowercase. Later entries overwrite
    earlier entries with the same key.

    :raises DirectiveSyntaxError: If any entry is malformed
    """
    parameters: dict[str, ParameterValue] = {}
    for entry in _split_arguments(args):
        key, sep, raw = entry.partition('=')
        key = key.strip()
        if not KEY_PATTERN.fullmatch(key):
            raise DirectiveSyntaxError(f"Invalid parameter name: {key!r}")
        parameters[key.lower()] = parse_value(raw) if sep else ParameterValue.of_flag(True)
    return parameters


def scan_directives(text: str) -> list[FilterSpec]:
    """Extract every well-formed directive, known or not, in text order."""
    specs = []
    pos = 0
    while True:
        match = DIRECTIVE_PATTERN.search(text, pos)
        if match is None:
            break
        name = match.group(1).lower()
        pos = match.end()
        if pos >= len(text) or text[pos] != '(':
            specs.append(FilterSpec(name))
            continue

        try:
            close = _find_closing_paren(text, pos + 1)
        except DirectiveSyntaxError as e:
            logger.debug(f"Skipping directive @{name}: {e}")
            continue

        args = text[pos + 1:close]
        pos = close + 1
        try:
            specs.append(FilterSpec(name, parse_arguments(args)))
        except DirectiveSyntaxError as e:
            logger.debug(f"Skipping directive @{name}({args}): {e}")
    return specs


def parse_directives(text: str) -> list[FilterSpec]:
    """Parse an annotation into the ordered specs of known filters.

    An empty list means no filters were requested.
    """
    specs = []
    for spec in scan_directives(text or ''):
        if lookup_filter(spec.name) is None:
            logger.debug(f"Skipping unknown filter @{spec.name}")
            continue
        specs.append(spec)
    return specs


def parse_filters(text: str) -> FilterPipeline:
    """Parse an annotation into a ready-to-run filter pipeline."""
    pipeline = FilterPipeline()
    for spec in parse_directives(text):
        pipeline.append(create_filter(spec))
    return pipeline
