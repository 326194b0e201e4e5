"""MCP server exposing the cover cache as tools."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

from mcp.server.fastmcp import FastMCP

from .cache import CoverCache
from .config import DEFAULT_CONFIG_PATH, CoverConfig, load_config

logger = logging.getLogger("frontpage_cache.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="frontpage-cache")

_cache: Optional[CoverCache] = None


def _config_path() -> Path:
    return Path(os.getenv("FRONTPAGE_CACHE_CONFIG", str(DEFAULT_CONFIG_PATH))).expanduser()


def _load() -> CoverConfig:
    return load_config(_config_path())


def _get_cache(config: CoverConfig) -> CoverCache:
    global _cache
    if _cache is None:
        _cache = CoverCache.from_config(config)
    return _cache


@mcp.tool()
async def cover(source: str) -> str:
    """Cache the front page for ``source`` and return the local JPEG path."""

    config = _load()
    cache = _get_cache(config)
    artifact_name = await asyncio.to_thread(cache.ensure_cached, source, config.cache_time)
    return str(cache.path_for(artifact_name).resolve())


@mcp.tool()
async def cover_status(source: str) -> Dict[str, Union[str, bool]]:
    """Report the cached artifact for ``source`` without downloading anything."""

    config = _load()
    status = await asyncio.to_thread(_get_cache(config).status, source, config.cache_time)
    return {
        "source": status.source,
        "artifact_name": status.artifact_name,
        "path": str(status.path),
        "exists": status.exists,
        "fresh": status.fresh,
    }


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
