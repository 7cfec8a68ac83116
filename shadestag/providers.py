# ShadeStag - Collaborators
"""
Interfaces to the host: where source bytes come from and where rendered
cache paths go.

The core never touches the file system or network for source images
directly, it goes through a FileProvider.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from .descriptor import SourceDescriptor

logger = logging.getLogger(__name__)


@runtime_checkable
class FileProvider(Protocol):
    """Protocol for reading the raw bytes of a source image."""

    async def read_bytes(self, descriptor: SourceDescriptor) -> bytes:
        """Read the encoded image.

        :param descriptor: The source to read
        :returns: Raw file content
        :raises OSError: For local read failures
        :raises httpx.HTTPError: For remote fetch failures
        """
        ...


@runtime_checkable
class DisplaySink(Protocol):
    """Protocol for the host component that displays a rendered image."""

    def show(self, descriptor: SourceDescriptor, cache_path: Path) -> None:
        """Swap the displayed source of an image to a cache path."""
        ...


class LocalFileProvider:
    """Reads sources from disk, identities are relative to root."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def resolve(self, descriptor: SourceDescriptor) -> Path:
        return self.root / descriptor.identity

    async def read_bytes(self, descriptor: SourceDescriptor) -> bytes:
        path = self.resolve(descriptor)
        logger.debug(f"Reading {path}")
        return await asyncio.to_thread(path.read_bytes)


class HttpFileProvider:
    """Fetches remote sources over http(s), no retries."""

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self._client = client

    async def read_bytes(self, descriptor: SourceDescriptor) -> bytes:
        logger.debug(f"Fetching {descriptor.identity}")
        if self._client is not None:
            return await self._fetch(self._client, descriptor.identity)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await self._fetch(client, descriptor.identity)

    @staticmethod
    async def _fetch(client: httpx.AsyncClient, url: str) -> bytes:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


class RoutingFileProvider:
    """Dispatches remote descriptors to one provider and local ones to another."""

    def __init__(self, local: FileProvider, remote: FileProvider):
        self.local = local
        self.remote = remote

    async def read_bytes(self, descriptor: SourceDescriptor) -> bytes:
        provider = self.remote if descriptor.is_remote else self.local
        return await provider.read_bytes(descriptor)


class NullDisplaySink:
    """DisplaySink that only logs, for headless use."""

    def show(self, descriptor: SourceDescriptor, cache_path: Path) -> None:
        logger.debug(f"Display {descriptor.display_name} -> {cache_path}")
