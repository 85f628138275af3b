from hianime.utils.logger import config as configure_logger

configure_logger()

from .assembler import assemble, resolve_episode_videos  # noqa: E402
from .discovery import discover_servers, parse_servers_html  # noqa: E402
from .episodes import (  # noqa: E402
    EpisodeEntry,
    anime_id_from_url,
    fetch_episode_list,
    parse_episode_list_html,
)
from .errors import (  # noqa: E402
    DecodeError,
    FormatError,
    NetworkError,
    NoPlayableSource,
    NotFoundError,
    RemoteError,
    ResolverError,
)
from .playlist import parse_master_playlist, resolve_playlist  # noqa: E402
from .sources import fetch_source, parse_source_payload  # noqa: E402
from .subtitles import collect_tracks  # noqa: E402
from .types import (  # noqa: E402
    Diagnostic,
    EpisodeRef,
    MediaType,
    PlaylistVariant,
    Server,
    ServerKind,
    SourceDescriptor,
    SourceFile,
    SourceTrack,
    Track,
    Video,
    VideoResult,
)

__all__ = [
    "assemble",
    "resolve_episode_videos",
    "discover_servers",
    "parse_servers_html",
    "EpisodeEntry",
    "anime_id_from_url",
    "fetch_episode_list",
    "parse_episode_list_html",
    "DecodeError",
    "FormatError",
    "NetworkError",
    "NoPlayableSource",
    "NotFoundError",
    "RemoteError",
    "ResolverError",
    "parse_master_playlist",
    "resolve_playlist",
    "fetch_source",
    "parse_source_payload",
    "collect_tracks",
    "Diagnostic",
    "EpisodeRef",
    "MediaType",
    "PlaylistVariant",
    "Server",
    "ServerKind",
    "SourceDescriptor",
    "SourceFile",
    "SourceTrack",
    "Track",
    "Video",
    "VideoResult",
]
