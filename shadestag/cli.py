#!/usr/bin/env python3
"""Command line interface for ShadeStag.

Usage:
    shadestag render diagrams/flow.png "@darkmode" --theme dark
    shadestag render https://example.com/chart.png "@invert @boost-lightness(amount=1.1)"
    shadestag clear diagrams/flow.png
    shadestag clear
    shadestag filters
"""

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

from .config import Settings
from .descriptor import SourceDescriptor
from .exceptions import ShadeStagError
from .filters import FILTER_ALIASES, FILTER_REGISTRY, Theme
from .log import add_stream_handler
from .renderer import Renderer


def _build_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.root is not None:
        overrides["ROOT_DIR"] = Path(args.root)
    if args.cache_dir is not None:
        overrides["CACHE_DIR"] = args.cache_dir
    if args.debug:
        overrides["DEBUG"] = True
    return Settings(**overrides)


def _cmd_render(args: argparse.Namespace) -> int:
    settings = _build_settings(args)
    renderer = Renderer.from_settings(settings)
    descriptor = SourceDescriptor.from_source(args.image, settings.ROOT_DIR)
    path = asyncio.run(renderer.render(descriptor, args.annotation, args.theme))
    if path is None:
        print("No filters requested", file=sys.stderr)
        return 1
    print(path)
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    settings = _build_settings(args)
    renderer = Renderer.from_settings(settings)
    if args.image:
        descriptor = SourceDescriptor.from_source(args.image, settings.ROOT_DIR)
        removed = renderer.invalidate(descriptor)
    else:
        removed = renderer.clear_entire_cache()
    print(f"Removed {removed} cache file(s)")
    return 0


def _cmd_filters(args: argparse.Namespace) -> int:
    aliases: dict[str, list[str]] = {}
    for alias, name in FILTER_ALIASES.items():
        aliases.setdefault(name, []).append(alias)
    for name, cls in sorted(FILTER_REGISTRY.items()):
        summary = (cls.__doc__ or "").strip().splitlines()[0] if cls.__doc__ else ""
        alias_text = f" (alias: {', '.join(aliases[name])})" if name in aliases else ""
        print(f"@{name}{alias_text}: {summary}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shadestag",
        description="Apply alt-text directive filters to images with a disk cache",
    )
    parser.add_argument("--root", help="Workspace root (default: current directory)")
    parser.add_argument("--cache-dir", help="Cache directory relative to the root")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render an image and print its cache path")
    render.add_argument("image", help="Image path relative to the root, or http(s) URL")
    render.add_argument("annotation", help='Directive text, e.g. "@darkmode"')
    render.add_argument(
        "--theme", choices=[t.value for t in Theme], default=None, help="Display theme"
    )
    render.set_defaults(func=_cmd_render)

    clear = subparsers.add_parser("clear", help="Clear one image's renders or the whole cache")
    clear.add_argument("image", nargs="?", help="Image path or URL (default: entire cache)")
    clear.set_defaults(func=_cmd_clear)

    filters = subparsers.add_parser("filters", help="List available filters")
    filters.set_defaults(func=_cmd_filters)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    add_stream_handler()
    try:
        return args.func(args)
    except (ShadeStagError, OSError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
