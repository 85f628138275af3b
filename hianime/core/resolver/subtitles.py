from __future__ import annotations

from typing import Iterable, List, Optional

from loguru import logger

from hianime.config import CAPTION_EXTENSION

from .types import SourceDescriptor, SourceTrack, Track

CAPTION_KIND = "captions"
DEFAULT_TRACK_LABEL = "Subtitle"


def is_caption_track(track: SourceTrack, extension: str = CAPTION_EXTENSION) -> bool:
    return (
        track.kind == CAPTION_KIND and bool(track.url) and track.url.endswith(extension)
    )


def collect_tracks(
    descriptors: Iterable[SourceDescriptor], *, extension: Optional[str] = None
) -> List[Track]:
    """
    Collect caption tracks from every descriptor, deduplicated by URL.

    Encrypted descriptors are included: only their video sources are untrusted.

    Parameters:
        descriptors (Iterable[SourceDescriptor]): Descriptors in server order.
        extension (str | None): Required URL suffix; defaults to CAPTION_EXTENSION.

    Returns:
        List[Track]: Tracks in order of first appearance; the first label seen for a URL wins.
    """
    ext = extension or CAPTION_EXTENSION
    seen: set[str] = set()
    out: List[Track] = []
    for descriptor in descriptors:
        for track in descriptor.tracks:
            if not is_caption_track(track, ext):
                continue
            if track.url in seen:
                continue
            seen.add(track.url)
            out.append(Track(url=track.url, label=track.label or DEFAULT_TRACK_LABEL))
    logger.debug("Collected {} unique subtitle track(s)", len(out))
    return out
