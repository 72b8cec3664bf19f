# resources.py  ──  async loading of the CSV data sources (local file or http URL)

import asyncio
from pathlib import Path

import httpx

from config import RESOURCE_TIMEOUT_SECONDS


class ResourceLoadError(Exception):
    """Raised when a data source cannot be fetched or read."""


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


async def load_text(source: str, timeout: float = RESOURCE_TIMEOUT_SECONDS) -> str:
    """Return the text behind `source`, raising ResourceLoadError on any failure."""
    if is_remote(source):
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.get(source)
                resp.raise_for_status()
                return resp.text
        except httpx.HTTPError as e:
            raise ResourceLoadError(f"Could not fetch {source}: {e}") from e

    path = Path(source)
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ResourceLoadError(f"Could not read {path}: {e}") from e
