"""
Resource export - fetch the binary behind a media node and save it.

The download side effect is split in two capabilities so the command logic
never touches the network or the filesystem directly:

- ResourceFetcher: `await fetch(src) -> FetchedResource`
- ResourceExporter: `await save(filename, resource) -> location`

HttpResourceFetcher and FileSystemExporter are the default implementations.
"""

from __future__ import annotations
import asyncio
import logging
import posixpath
import re
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlparse

import aiohttp
from pydantic import BaseModel

from .config import get_settings

if TYPE_CHECKING:
    from .model.node import Node


logger = logging.getLogger(__name__)


class ResourceDownloadError(Exception):
    """Fetching or saving a resource failed."""
    pass


class FetchedResource(BaseModel):
    data: bytes
    content_type: str | None = None

    @property
    def subtype(self) -> str | None:
        """`png` for `image/png`, `svg` for `image/svg+xml`."""
        if not self.content_type:
            return None
        parts = re.split(r"[/+]", self.content_type.split(";")[0].strip())
        if len(parts) < 2 or not parts[1]:
            return None
        return parts[1]


class ResourceFetcher(Protocol):
    async def fetch(self, src: str) -> FetchedResource:
        ...


class ResourceExporter(Protocol):
    async def save(self, filename: str, resource: FetchedResource) -> str:
        ...


# =============================================================================
# Defaults
# =============================================================================

class HttpResourceFetcher:
    """Fetch resources over HTTP with aiohttp."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout if timeout is not None else get_settings().fetch_timeout

    async def fetch(self, src: str) -> FetchedResource:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(src) as response:
                    if response.status != 200:
                        raise ResourceDownloadError(f"Failed to fetch {src}: HTTP {response.status}")
                    data = await response.read()
                    return FetchedResource(data=data, content_type=response.headers.get("Content-Type"))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ResourceDownloadError(f"Failed to fetch {src}: {e}") from e


class FileSystemExporter:
    """Save resources as files in a directory."""

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory if directory is not None else get_settings().download_dir)

    async def save(self, filename: str, resource: FetchedResource) -> str:
        path = self.directory / filename
        try:
            await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, resource.data)
        except OSError as e:
            raise ResourceDownloadError(f"Failed to save {path}: {e}") from e
        return str(path)


# =============================================================================
# Filename
# =============================================================================

_UNSAFE_FILENAME_RE = re.compile(r"[\\/\x00-\x1f]")


def resource_filename(alt: str | None, resource: FetchedResource, src: str = "", default_name: str | None = None) -> str:
    """
    `<alt or default>.<extension>`.

    The extension is the content subtype; without one it falls back to the
    suffix of the source path, then to "bin".
    """
    name = alt or default_name or get_settings().default_filename
    name = _UNSAFE_FILENAME_RE.sub("_", name)
    extension = resource.subtype
    if extension is None:
        suffix = posixpath.splitext(urlparse(src).path)[1]
        extension = suffix[1:] if len(suffix) > 1 else "bin"
    return f"{name}.{extension}"


# =============================================================================
# Download
# =============================================================================

async def download_resource(node: "Node", fetcher: ResourceFetcher, exporter: ResourceExporter) -> str:
    """
    Fetch the binary behind a media node and save it through `exporter`.

    Returns the location reported by the exporter.
    """
    src = node.attrs.get("src")
    if not src:
        raise ResourceDownloadError(f"{node.type.name} node has no source to download")
    resource = await fetcher.fetch(src)
    filename = resource_filename(node.attrs.get("alt"), resource, src)
    logger.debug("downloading %s as %s", src, filename)
    return await exporter.save(filename, resource)
