from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional, Tuple

from .errors import NotFoundError

_RANK_RE = re.compile(r"^\s*(\d+)p")


class ServerKind(StrEnum):
    SUB = "SUB"
    DUB = "DUB"


class MediaType(StrEnum):
    HLS = "hls"
    MP4 = "mp4"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: str | None) -> "MediaType":
        value = (raw or "").strip().lower()
        for member in (cls.HLS, cls.MP4):
            if member.value == value:
                return member
        return cls.OTHER


@dataclass(frozen=True)
class EpisodeRef:
    """
    Caller-supplied reference to one episode.

    Accepts a bare episode id (``"2142"``), a watch URL
    (``https://hianime.to/watch/frieren-18542?ep=2142``) or the path part of one.
    """

    value: str

    def episode_id(self) -> str:
        """
        Derive the provider episode id used by the /ajax/v2/episode endpoints.

        Returns:
            str: The id found after the last ``ep=`` (cut at the next ``?``, ``&`` or ``#``),
                or the whole value when it is a bare number.

        Raises:
            NotFoundError: If no id can be derived.
        """
        raw = (self.value or "").strip()
        if raw.isdigit():
            return raw
        if "ep=" in raw:
            tail = raw.rsplit("ep=", 1)[1]
            episode_id = re.split(r"[?&#]", tail, maxsplit=1)[0].strip()
            if episode_id:
                return episode_id
        raise NotFoundError(f"Could not get episode ID from reference: {self.value!r}")


@dataclass(frozen=True)
class Server:
    id: str
    name: str
    kind: ServerKind = ServerKind.SUB

    @property
    def label(self) -> str:
        return f"{self.name} {self.kind.value}"


@dataclass(frozen=True)
class SourceFile:
    url: str
    media_type: MediaType


@dataclass(frozen=True)
class SourceTrack:
    url: Optional[str]
    kind: str
    label: Optional[str] = None


@dataclass(frozen=True)
class SourceDescriptor:
    source_files: Tuple[SourceFile, ...] = ()
    tracks: Tuple[SourceTrack, ...] = ()
    encrypted: bool = False

    @property
    def primary(self) -> Optional[SourceFile]:
        # Upstream convention: the first entry is the stream, the rest are ignored.
        return self.source_files[0] if self.source_files else None


@dataclass(frozen=True)
class PlaylistVariant:
    url: str
    quality_label: str

    @property
    def rank(self) -> int:
        return quality_rank(self.quality_label)


@dataclass(frozen=True)
class Track:
    url: str
    label: str


@dataclass(frozen=True)
class Video:
    url: str
    label: str
    subtitle_tracks: Tuple[Track, ...] = ()


@dataclass(frozen=True)
class Diagnostic:
    """Structured record of why one server contributed no videos."""

    server_id: str
    server_name: str
    kind: str
    message: str = ""


@dataclass
class VideoResult:
    videos: list[Video] = field(default_factory=list)
    subtitles: list[Track] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def quality_rank(label: str) -> int:
    """Numeric rank of a quality label: ``"1080p"`` -> 1080, anything else -> 0."""
    match = _RANK_RE.match(label or "")
    return int(match.group(1)) if match else 0
