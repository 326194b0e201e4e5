"""Command-line entry point for the front-page cover cache."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Sequence

import uvicorn

from .cache import CoverCache
from .config import DEFAULT_CONFIG_PATH, load_config
from .errors import ConfigError, CoverError
from .server import create_app

logger = logging.getLogger("frontpage_cache.cli")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        type=Path,
        help="YAML file listing sources (pdf_urls) and cache_time",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Cache newspaper front pages as JPEG images and serve them over HTTP.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the web server")
    _add_common_arguments(serve_parser)
    serve_parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to listen on")

    warm_parser = subparsers.add_parser(
        "warm", help="Download every configured source that is missing or stale"
    )
    _add_common_arguments(warm_parser)

    status_parser = subparsers.add_parser(
        "status", help="Show the cached artifact and freshness of every source"
    )
    _add_common_arguments(status_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _run_serve(args: argparse.Namespace) -> int:
    app = create_app(args.config)
    logger.info("Server starting on http://%s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level="debug" if args.verbose else "info")
    return 0


def _run_warm(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    cache = CoverCache.from_config(config)

    overall_start = time.perf_counter()
    failures: List[str] = []
    for source in config.sources:
        try:
            name = cache.ensure_cached(source, config.cache_time)
        except CoverError as exc:
            logger.error("Failed to cache %s (%s stage): %s", source, exc.stage, exc)
            failures.append(source)
            continue
        logger.info("Cached %s -> %s", source, cache.path_for(name))
    total_elapsed = time.perf_counter() - overall_start

    total = len(config.sources)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        total - len(failures),
        total,
        len(failures),
    )
    return 1 if failures else 0


def _run_status(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    cache = CoverCache.from_config(config)
    for source in config.sources:
        status = cache.status(source, config.cache_time)
        state = "fresh" if status.fresh else ("stale" if status.exists else "missing")
        sys.stdout.write(f"{state:<8} {status.artifact_name}  {source}\n")
    sys.stdout.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    handlers = {
        "serve": _run_serve,
        "warm": _run_warm,
        "status": _run_status,
    }
    try:
        return handlers[args.command](args)
    except ConfigError as exc:
        logger.error("Error loading configuration: %s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
