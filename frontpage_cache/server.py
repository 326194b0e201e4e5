"""FastAPI application serving a random cached front page."""

from __future__ import annotations

import html
import logging
import random
from pathlib import Path
from typing import Optional, Union

import requests
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from .cache import CoverCache
from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ConfigError, CoverError

logger = logging.getLogger("frontpage_cache.server")

CACHE_ROUTE = "/cache"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Front page</title>
<style>
body {{ margin: 0; background: #000; display: flex; justify-content: center; }}
img {{ max-height: 100vh; max-width: 100vw; }}
</style>
</head>
<body>
<img src="{image_url}" alt="Front page">
</body>
</html>
"""


def render_page(image_url: str) -> str:
    return PAGE_TEMPLATE.format(image_url=html.escape(image_url, quote=True))


def create_app(
    config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
    session: Optional[requests.Session] = None,
    rng: Optional[random.Random] = None,
) -> FastAPI:
    """Build the web app.

    The cache directory and transport settings are taken from the
    configuration at startup; sources and ``cache_time`` are re-read on
    every request.
    """
    config_path = Path(config_path)
    startup_config = load_config(config_path)
    cache = CoverCache.from_config(startup_config, session=session)
    cache.cache_dir.mkdir(parents=True, exist_ok=True)

    app = FastAPI(title="frontpage-cache")
    app.state.cache = cache

    @app.get("/", response_class=HTMLResponse)
    def home():
        logger.info("Serving home page")
        try:
            config = load_config(config_path)
        except ConfigError as exc:
            logger.error("Error loading configuration: %s", exc)
            return PlainTextResponse("Internal Server Error", status_code=500)

        source = config.pick_source(rng)
        try:
            artifact_name = cache.ensure_cached(source, config.cache_time)
        except CoverError as exc:
            logger.error("Error downloading image (%s stage): %s", exc.stage, exc)
            return PlainTextResponse("No image available", status_code=500)

        return HTMLResponse(render_page(f"{CACHE_ROUTE}/{artifact_name}"))

    app.mount(CACHE_ROUTE, StaticFiles(directory=str(cache.cache_dir)), name="cache")
    return app
