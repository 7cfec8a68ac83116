# ShadeStag - Source Descriptors
"""
Identity and metadata of a source image, never its pixel content.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

HTTP_PROTOCOL_URL_HEADER = "http://"
HTTPS_PROTOCOL_URL_HEADER = "https://"

REMOTE_MTIME = sys.float_info.max
"Modification time assigned to remote sources: once cached, never stale"


def is_url(source: str) -> bool:
    """Check whether a source string is an http(s) URL."""
    return source.startswith(HTTP_PROTOCOL_URL_HEADER) or source.startswith(
        HTTPS_PROTOCOL_URL_HEADER
    )


@dataclass(frozen=True)
class SourceDescriptor:
    """Describes a local file or remote URL to be filtered.

    :ivar identity: Stable path (relative to the workspace root) or absolute URL
    :ivar display_name: File name including extension
    :ivar base_name: File name without extension
    :ivar modified_at_ms: Modification time in milliseconds since the epoch
    """

    identity: str
    display_name: str
    base_name: str
    modified_at_ms: float

    @property
    def is_remote(self) -> bool:
        return self.modified_at_ms == REMOTE_MTIME

    @classmethod
    def local(cls, path: str | Path, root: str | Path | None = None) -> SourceDescriptor:
        """Create a descriptor for a file on disk.

        :param path: File path, relative to root if root is given
        :param root: Workspace root the identity is expressed relative to
        :raises OSError: If the file cannot be stat'ed
        """
        path = Path(path)
        full_path = Path(root) / path if root is not None and not path.is_absolute() else path
        if root is not None and full_path.is_absolute():
            try:
                path = full_path.relative_to(Path(root))
            except ValueError:
                path = full_path
        stat = full_path.stat()
        return cls(
            identity=path.as_posix(),
            display_name=path.name,
            base_name=path.stem,
            modified_at_ms=stat.st_mtime * 1000.0,
        )

    @classmethod
    def remote(cls, url: str) -> SourceDescriptor:
        """Create a descriptor for an http(s) URL."""
        name = PurePosixPath(unquote(urlparse(url).path)).name or urlparse(url).netloc
        return cls(
            identity=url,
            display_name=name,
            base_name=PurePosixPath(name).stem or name,
            modified_at_ms=REMOTE_MTIME,
        )

    @classmethod
    def from_source(cls, source: str, root: str | Path | None = None) -> SourceDescriptor:
        """Create a remote descriptor for URLs and a local one otherwise."""
        if is_url(source):
            return cls.remote(source)
        return cls.local(source, root)
