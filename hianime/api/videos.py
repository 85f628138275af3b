from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from loguru import logger
from pydantic import BaseModel

from hianime.core.resolver import (
    EpisodeRef,
    NoPlayableSource,
    NotFoundError,
    ResolverError,
    assemble,
    fetch_episode_list,
)
from hianime.core.resolver.types import Diagnostic, Track, Video, VideoResult

router = APIRouter()


class TrackOut(BaseModel):
    url: str
    label: str


class VideoOut(BaseModel):
    url: str
    label: str
    subtitle_tracks: List[TrackOut]


class DiagnosticOut(BaseModel):
    server_id: str
    server_name: str
    kind: str
    message: str


class VideoListResponse(BaseModel):
    episode_id: str
    videos: List[VideoOut]
    subtitles: List[TrackOut]
    diagnostics: List[DiagnosticOut]


class EpisodeOut(BaseModel):
    episode_id: str
    number: float
    title: str
    url: str


def _track_out(track: Track) -> TrackOut:
    return TrackOut(url=track.url, label=track.label)


def _video_out(video: Video) -> VideoOut:
    return VideoOut(
        url=video.url,
        label=video.label,
        subtitle_tracks=[_track_out(t) for t in video.subtitle_tracks],
    )


def _diagnostic_out(diag: Diagnostic) -> DiagnosticOut:
    return DiagnosticOut(
        server_id=diag.server_id,
        server_name=diag.server_name,
        kind=diag.kind,
        message=diag.message,
    )


def _response(episode_id: str, result: VideoResult) -> VideoListResponse:
    return VideoListResponse(
        episode_id=episode_id,
        videos=[_video_out(v) for v in result.videos],
        subtitles=[_track_out(t) for t in result.subtitles],
        diagnostics=[_diagnostic_out(d) for d in result.diagnostics],
    )


@router.get("/episodes/{episode_id}/videos", response_model=VideoListResponse)
def episode_videos(
    episode_id: str,
    dub: Optional[bool] = Query(default=None, description="Include DUB servers"),
) -> VideoListResponse:
    """
    Resolve the playable videos of one episode.

    Returns 404 when the episode is unknown or nothing is playable (diagnostics
    are included in the error detail) and 502 when the server list itself fails.
    """
    try:
        result = assemble(EpisodeRef(episode_id), include_dub=dub)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except NoPlayableSource as exc:
        raise HTTPException(
            status_code=404,
            detail={
                "message": str(exc),
                "diagnostics": [
                    _diagnostic_out(d).model_dump() for d in exc.diagnostics
                ],
            },
        )
    except ResolverError as exc:
        logger.error("Server list for episode {} failed: {}", episode_id, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return _response(episode_id, result)


@router.get("/anime/{anime_id}/episodes", response_model=List[EpisodeOut])
def anime_episodes(anime_id: str) -> List[EpisodeOut]:
    """List an anime's episodes, newest first."""
    try:
        entries = fetch_episode_list(anime_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ResolverError as exc:
        logger.error("Episode list for anime {} failed: {}", anime_id, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    return [
        EpisodeOut(
            episode_id=entry.episode_id,
            number=entry.number,
            title=entry.title,
            url=entry.url,
        )
        for entry in entries
    ]
