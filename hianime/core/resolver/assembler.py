from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar, Union
from urllib.parse import urlsplit

from loguru import logger

from hianime.config import ASSEMBLY_DEADLINE_SECONDS, MAX_CONCURRENCY

from .discovery import discover_servers
from .errors import NetworkError, NoPlayableSource, ResolverError
from .playlist import resolve_playlist
from .sources import fetch_source
from .subtitles import collect_tracks
from .types import (
    Diagnostic,
    EpisodeRef,
    MediaType,
    Server,
    SourceDescriptor,
    Video,
    VideoResult,
)

T = TypeVar("T")
R = TypeVar("R")
Outcome = Union[R, ResolverError]


def is_playlist_url(url: str) -> bool:
    return urlsplit(url).path.endswith(".m3u8")


def _remaining(started: float, deadline: float) -> Optional[float]:
    if deadline <= 0:
        return None
    return max(0.0, deadline - (time.monotonic() - started))


def _run_isolated(
    executor: ThreadPoolExecutor,
    items: Sequence[T],
    fn: Callable[[T], R],
    timeout: Optional[float],
) -> List[Outcome]:
    """
    Run `fn` over `items` on the executor; one item's failure never affects another.

    Returns:
        List of results aligned with `items`; failed items carry their ResolverError and
        items still pending when `timeout` expires carry a NetworkError.
    """
    if not items:
        return []
    futures: List[Future] = [executor.submit(fn, item) for item in items]
    done, _ = wait(futures, timeout=timeout)
    outcomes: List[Outcome] = []
    for future in futures:
        if future not in done:
            future.cancel()
            outcomes.append(NetworkError(f"Timed out after {timeout:.1f}s"))
            continue
        try:
            outcomes.append(future.result())
        except ResolverError as exc:
            outcomes.append(exc)
    return outcomes


class _Assembly:
    """Mutable state of one assembly call; the dedup set lives and dies with it."""

    def __init__(self, servers: Sequence[Server]) -> None:
        self.servers = list(servers)
        self.seen_sources: set[str] = set()
        self.videos: List[List[Video]] = [[] for _ in self.servers]
        self.diagnostics: List[List[Diagnostic]] = [[] for _ in self.servers]
        self.descriptors: List[SourceDescriptor] = []

    def skip(self, index: int, kind: str, message: str) -> None:
        server = self.servers[index]
        logger.warning(
            "Skipping server {} ({}): {} {}", server.id, server.label, kind, message
        )
        self.diagnostics[index].append(
            Diagnostic(
                server_id=server.id,
                server_name=server.name,
                kind=kind,
                message=message,
            )
        )

    def fail(self, index: int, exc: ResolverError) -> None:
        self.skip(index, type(exc).__name__, str(exc))

    def accept_descriptors(
        self, outcomes: Sequence[Outcome]
    ) -> List[Tuple[int, str]]:
        """
        Single-threaded reduction over fetched descriptors, in server order.

        Returns:
            (server index, master playlist URL) pairs still needing resolution.
        """
        playlists: List[Tuple[int, str]] = []
        for index, outcome in enumerate(outcomes):
            server = self.servers[index]
            if isinstance(outcome, ResolverError):
                self.fail(index, outcome)
                continue
            self.descriptors.append(outcome)
            if outcome.encrypted:
                self.skip(index, "encrypted", "source payload is encrypted")
                continue
            primary = outcome.primary
            if primary is None or not primary.url:
                self.skip(index, "no_source", "no source file in payload")
                continue
            if primary.url in self.seen_sources:
                self.skip(index, "duplicate", f"source already provided: {primary.url}")
                continue
            self.seen_sources.add(primary.url)
            if primary.media_type is MediaType.HLS and is_playlist_url(primary.url):
                playlists.append((index, primary.url))
            elif primary.media_type is MediaType.MP4:
                self.videos[index] = [
                    Video(url=primary.url, label=f"{server.label} - MP4")
                ]
            else:
                self.skip(
                    index,
                    "unsupported",
                    f"unsupported source type {primary.media_type.value}: {primary.url}",
                )
        return playlists

    def accept_playlists(
        self, playlists: Sequence[Tuple[int, str]], outcomes: Sequence[Outcome]
    ) -> None:
        for (index, _), outcome in zip(playlists, outcomes):
            if isinstance(outcome, ResolverError):
                self.fail(index, outcome)
                continue
            label = self.servers[index].label
            self.videos[index] = [
                Video(url=variant.url, label=f"{label} - {variant.quality_label}")
                for variant in outcome
            ]

    def result(self) -> VideoResult:
        subtitles = collect_tracks(self.descriptors)
        tracks = tuple(subtitles)
        emitted: set[str] = set()
        videos: List[Video] = []
        for per_server in self.videos:
            for video in per_server:
                if video.url in emitted:
                    logger.debug("Dropping duplicate variant URL {}", video.url)
                    continue
                emitted.add(video.url)
                videos.append(replace(video, subtitle_tracks=tracks))
        diagnostics = [diag for per_server in self.diagnostics for diag in per_server]
        return VideoResult(videos=videos, subtitles=subtitles, diagnostics=diagnostics)


def assemble(
    episode_ref: EpisodeRef,
    *,
    include_dub: Optional[bool] = None,
    max_workers: Optional[int] = None,
    deadline: Optional[float] = None,
) -> VideoResult:
    """
    Resolve one episode into ranked playable videos with shared subtitle tracks.

    Source fetches run concurrently, then a single-threaded pass in server order
    applies deduplication (first server wins), then accepted HLS playlists are
    resolved concurrently. Per-server failures become diagnostics.

    Parameters:
        episode_ref (EpisodeRef): Episode to resolve.
        include_dub (bool | None): Override the INCLUDE_DUB setting.
        max_workers (int | None): Worker threads; defaults to MAX_CONCURRENCY.
        deadline (float | None): Seconds for the whole assembly (0 disables);
            defaults to ASSEMBLY_DEADLINE_SECONDS.

    Returns:
        VideoResult: Videos (SUB servers before DUB, best quality first per server),
            the aggregated subtitles and the per-server diagnostics.

    Raises:
        NotFoundError, NetworkError, RemoteError, DecodeError: If the server list fails.
        NoPlayableSource: If no server produced a video.
    """
    started = time.monotonic()
    budget = ASSEMBLY_DEADLINE_SECONDS if deadline is None else deadline
    servers = discover_servers(episode_ref, include_dub=include_dub)
    if not servers:
        logger.warning("No servers listed for {}", episode_ref.value)
        raise NoPlayableSource([])

    assembly = _Assembly(servers)
    workers = max(1, min(max_workers or MAX_CONCURRENCY, len(servers)))
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hianime")
    try:
        fetched = _run_isolated(
            executor, servers, fetch_source, _remaining(started, budget)
        )
        playlists = assembly.accept_descriptors(fetched)
        resolved = _run_isolated(
            executor,
            [url for _, url in playlists],
            resolve_playlist,
            _remaining(started, budget),
        )
        assembly.accept_playlists(playlists, resolved)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    result = assembly.result()
    if not result.videos:
        logger.error(
            "No playable video sources for {} ({} diagnostic(s))",
            episode_ref.value,
            len(result.diagnostics),
        )
        raise NoPlayableSource(result.diagnostics)
    logger.success(
        "Resolved {} video(s) and {} subtitle track(s) for {}",
        len(result.videos),
        len(result.subtitles),
        episode_ref.value,
    )
    return result


def resolve_episode_videos(episode_ref: EpisodeRef, **kwargs) -> List[Video]:
    """Contract form of `assemble` returning only the videos."""
    return assemble(episode_ref, **kwargs).videos
