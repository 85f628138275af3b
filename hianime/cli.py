from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from typing import Optional, Sequence

from loguru import logger

from hianime.config import HIANIME_HOST, HIANIME_PORT, HIANIME_RELOAD
from hianime.core.resolver import (
    EpisodeRef,
    NoPlayableSource,
    ResolverError,
    assemble,
)
from hianime.utils.logger import config as configure_logger


def run_server(app_obj=None):
    """Run the Uvicorn server with sensible defaults.

    - Enables reload by default in non-frozen (dev) runs
    - Disables reload for packaged/production runs
    - Allows override via HIANIME_RELOAD env/setting
    """
    import uvicorn

    is_frozen = getattr(sys, "frozen", False) or hasattr(sys, "_MEIPASS")
    reload_env = os.environ.get("HIANIME_RELOAD")
    if reload_env is not None:
        reload_flag = reload_env == "1" or reload_env.lower() == "true"
    else:
        reload_flag = HIANIME_RELOAD and not is_frozen

    if reload_flag or app_obj is None:
        logger.info("Uvicorn starting (reload={}).", reload_flag)
        uvicorn.run(
            "hianime.main:app",
            host=HIANIME_HOST,
            port=HIANIME_PORT,
            reload=reload_flag,
        )
    else:
        logger.info("Uvicorn reload disabled (packaged/production mode).")
        uvicorn.run(
            app_obj,
            host=HIANIME_HOST,
            port=HIANIME_PORT,
            reload=False,
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hianime", description="Resolve HiAnime episodes into playable streams."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    resolve = sub.add_parser("resolve", help="Resolve one episode into videos")
    resolve.add_argument("episode", help="Episode id or watch URL containing ?ep=<id>")
    resolve.add_argument("--dub", action="store_true", help="Include DUB servers")
    resolve.add_argument("--json", action="store_true", help="Print JSON output")

    sub.add_parser("serve", help="Run the HTTP API")
    return parser


def _resolve(episode: str, *, dub: bool, as_json: bool) -> int:
    try:
        result = assemble(EpisodeRef(episode), include_dub=dub or None)
    except NoPlayableSource as exc:
        logger.error("{}", exc)
        for diag in exc.diagnostics:
            logger.error(
                "  {} ({}): {} {}",
                diag.server_name,
                diag.server_id,
                diag.kind,
                diag.message,
            )
        return 2
    except ResolverError as exc:
        logger.error("Resolution failed: {}: {}", type(exc).__name__, exc)
        return 1

    if as_json:
        print(json.dumps(asdict(result), indent=2, ensure_ascii=False))
        return 0
    for video in result.videos:
        print(f"{video.label}\t{video.url}")
    for track in result.subtitles:
        print(f"[subtitle] {track.label}\t{track.url}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "serve":
        run_server()
        return 0
    configure_logger(sink=sys.stderr)
    return _resolve(args.episode, dub=args.dub, as_json=args.json)
