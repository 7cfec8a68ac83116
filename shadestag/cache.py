# ShadeStag - Image Cache
"""
Content-addressable disk cache for filtered images.

Cache file names are derived from the source identity, the ordered filter
signatures and an optional theme:

    <sanitizedBaseName>_<hash12>_<sig1>_..._<sigN>[_<theme>].png

where hash12 is the first 12 hex digits of the SHA-256 of the identity.

Lookups and evictions are best-effort: file-system errors are logged and
reported as "not fresh" or ignored. Only write() raises, since a caller on the
cache-miss path has no path to return otherwise.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Sequence

from .descriptor import SourceDescriptor
from .filters import Theme

logger = logging.getLogger(__name__)

CACHE_EXTENSION = '.png'
HASH_LENGTH = 12
UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9_-]')


def identity_hash(identity: str, length: int = HASH_LENGTH) -> str:
    """Truncated SHA-256 hex digest of a source identity."""
    return hashlib.sha256(identity.encode('utf-8')).hexdigest()[:length]


def sanitize_name(name: str) -> str:
    """Replace every character outside [A-Za-z0-9_-] with '_'."""
    return UNSAFE_NAME_CHARS.sub('_', name)


class ImageCache:
    """Cache directory holding filtered renders.

    :param root: Workspace root, the cache directory is relative to it
    :param cache_dir: Cache directory (relative to root, or absolute)
    """

    def __init__(self, root: str | Path, cache_dir: str | Path):
        self._root = Path(root)
        self._cache_dir = Path(cache_dir)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def absolute_cache_dir(self) -> Path:
        return self._root / self._cache_dir

    def ensure_cache_dir(self) -> Path:
        """Create the cache directory (including parents) if missing."""
        directory = self.absolute_cache_dir()
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def set_cache_dir(self, cache_dir: str | Path) -> None:
        """Point the cache at a new directory and create it.

        Files in the previous directory are left in place.
        """
        self._cache_dir = Path(cache_dir)
        logger.debug(f"Cache directory set to {self.absolute_cache_dir()}")
        try:
            self.ensure_cache_dir()
        except OSError as e:
            logger.error(f"Failed to create cache directory {self.absolute_cache_dir()}: {e}")

    def cache_name(
        self,
        descriptor: SourceDescriptor,
        signatures: Sequence[str],
        theme: Theme | None = None,
    ) -> str:
        """Deterministic file name for a source, filter chain and theme."""
        parts = [sanitize_name(descriptor.base_name), identity_hash(descriptor.identity)]
        parts.extend(signatures)
        if theme is not None:
            parts.append(theme.value)
        return '_'.join(parts) + CACHE_EXTENSION

    def relative_cache_path(
        self,
        descriptor: SourceDescriptor,
        signatures: Sequence[str],
        theme: Theme | None = None,
    ) -> Path:
        """Cache path relative to the workspace root."""
        return self._cache_dir / self.cache_name(descriptor, signatures, theme)

    def cache_path(
        self,
        descriptor: SourceDescriptor,
        signatures: Sequence[str],
        theme: Theme | None = None,
    ) -> Path:
        """Absolute cache path, no I/O is performed."""
        return self._root / self.relative_cache_path(descriptor, signatures, theme)

    def is_fresh(
        self,
        descriptor: SourceDescriptor,
        signatures: Sequence[str],
        theme: Theme | None = None,
    ) -> bool:
        """Check whether a cache entry exists and is at least as new as its source.

        Remote sources are fresh as soon as they are cached. Any file-system
        error counts as not fresh.
        """
        path = self.cache_path(descriptor, signatures, theme)
        try:
            if not path.exists():
                return False
            if descriptor.is_remote:
                return True
            return path.stat().st_mtime * 1000.0 >= descriptor.modified_at_ms
        except OSError as e:
            logger.error(f"Cache freshness check failed for {path}: {e}")
            return False

    def read(self, path: str | Path) -> bytes:
        """Read a cached file.

        :raises OSError: If the file cannot be read
        """
        return Path(path).read_bytes()

    def write(self, path: str | Path, data: bytes) -> Path:
        """Store data at path, creating the cache directory lazily.

        The data is written to a temporary file in the same directory and
        moved into place, so readers never see a partial file.

        :raises OSError: If the file cannot be written
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f'.{path.name}.{uuid.uuid4().hex}.tmp')
        try:
            with open(tmp_path, 'xb') as f:
                f.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Cache write: {path} ({len(data)} bytes)")
        return path

    def clear(
        self,
        descriptor: SourceDescriptor,
        signatures: Sequence[str],
        theme: Theme | None = None,
    ) -> None:
        """Delete the one entry for a source, filter chain and theme, if present."""
        path = self.cache_path(descriptor, signatures, theme)
        logger.debug(f"Cache clear: {path}")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to clear cache entry {path}: {e}")

    def clear_all_for_file(self, descriptor: SourceDescriptor) -> int:
        """Delete every cached variant (any chain, any theme) of one source.

        :returns: Number of files removed
        """
        file_hash = identity_hash(descriptor.identity)
        logger.debug(f"Cache clear all for {descriptor.display_name} ({file_hash})")
        return self._remove_matching(lambda filename: file_hash in filename)

    def clear_entire_cache(self) -> int:
        """Delete every file in the cache directory.

        :returns: Number of files removed
        """
        logger.debug(f"Cache clear entire cache: {self.absolute_cache_dir()}")
        return self._remove_matching(lambda filename: True)

    def _remove_matching(self, predicate) -> int:
        directory = self.absolute_cache_dir()
        removed = 0
        try:
            entries = list(directory.iterdir())
        except FileNotFoundError:
            return 0
        except OSError as e:
            logger.error(f"Failed to list cache directory {directory}: {e}")
            return 0

        for entry in entries:
            if not entry.is_file() or not predicate(entry.name):
                continue
            try:
                entry.unlink()
                removed += 1
                logger.debug(f"  * clear: {entry}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error(f"Failed to clear cache file {entry}: {e}")
        return removed
