from __future__ import annotations

from typing import List, Mapping, Optional, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from loguru import logger

from .transport import fetch
from .types import PlaylistVariant

_STREAM_INF_PREFIX = "#EXT-X-STREAM-INF:"
_TAG_PREFIX = "#EXT"

# Approximate BANDWIDTH (bits/s) -> label mapping, highest first. Heuristic only.
BANDWIDTH_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (1_500_000, "1080p"),
    (800_000, "720p"),
    (350_000, "480p"),
)
BANDWIDTH_FLOOR_LABEL = "360p"
DEFAULT_LABEL = "Default"


def _split_hls_attrs(raw: str) -> list[str]:
    """
    Split an HLS attribute list by commas while respecting quoted values.
    """
    parts: list[str] = []
    buf: list[str] = []
    in_quotes = False
    for ch in raw:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == "," and not in_quotes:
            part = "".join(buf).strip()
            if part:
                parts.append(part)
            buf = []
            continue
        buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return parts


def parse_stream_inf(line: str) -> dict[str, str]:
    """
    Return the attributes of a `#EXT-X-STREAM-INF` line as an upper-cased key mapping.
    """
    raw = line.strip()
    if raw.startswith(_STREAM_INF_PREFIX):
        raw = raw[len(_STREAM_INF_PREFIX) :]
    attrs: dict[str, str] = {}
    for attr in _split_hls_attrs(raw):
        if "=" not in attr:
            continue
        key, value = attr.split("=", 1)
        attrs.setdefault(key.strip().upper(), value.strip().strip('"'))
    return attrs


def _height_from_resolution(raw: str | None) -> Optional[int]:
    if not raw or "x" not in raw.lower():
        return None
    height = raw.lower().split("x", 1)[1].strip()
    return int(height) if height.isdigit() else None


def label_for_bandwidth(bandwidth: int) -> str:
    for threshold, label in BANDWIDTH_THRESHOLDS:
        if bandwidth >= threshold:
            return label
    return BANDWIDTH_FLOOR_LABEL


def quality_label(attrs: Mapping[str, str], position: int) -> str:
    """
    Derive a quality label from stream-info attributes.

    Parameters:
        attrs (Mapping[str, str]): Attributes returned by `parse_stream_inf`.
        position (int): 1-based position used for the synthetic label.

    Returns:
        str: ``"<height>p"`` from RESOLUTION, else a bandwidth bucket label,
            else ``"Quality <position>"``.
    """
    height = _height_from_resolution(attrs.get("RESOLUTION"))
    if height is not None:
        return f"{height}p"
    bandwidth = (attrs.get("BANDWIDTH") or "").strip()
    if bandwidth.isdigit():
        return label_for_bandwidth(int(bandwidth))
    return f"Quality {position}"


def playlist_base_url(master_url: str) -> str:
    """
    Return the master URL with its last path segment (and query) removed.
    """
    parts = urlsplit(master_url)
    path = parts.path
    directory = path[: path.rfind("/") + 1] if "/" in path else "/"
    return urlunsplit((parts.scheme, parts.netloc, directory, "", ""))


def _resolve_variant_uri(base_url: str, uri: str) -> Optional[str]:
    try:
        resolved = urljoin(base_url, uri)
    except ValueError as exc:
        logger.debug("Failed to resolve variant URI {} against {}: {}", uri, base_url, exc)
        return None
    if urlsplit(resolved).scheme not in ("http", "https"):
        logger.debug("Skipping variant with unsupported URI: {}", resolved)
        return None
    return resolved


def _next_uri_line(lines: List[str], start: int) -> Optional[str]:
    """
    Return the first non-blank, non-comment line at or after `start`.

    A tag line reached first means the stream-info header has no URI.
    """
    for line in lines[start:]:
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(_TAG_PREFIX):
            return None
        if stripped.startswith("#"):
            continue
        return stripped
    return None


def parse_master_playlist(playlist_text: str, master_url: str) -> list[PlaylistVariant]:
    """
    Parse master playlist text into quality variants, best first.

    Parameters:
        playlist_text (str): Raw playlist body.
        master_url (str): URL the playlist was fetched from; relative variant URIs
            are resolved against its directory.

    Returns:
        list[PlaylistVariant]: Variants sorted by numeric quality rank descending
            (stable for equal ranks). Never empty: a playlist without usable
            stream-info entries yields one ``Default`` variant pointing at `master_url`.
    """
    base_url = playlist_base_url(master_url)
    lines = (playlist_text or "").splitlines()
    variants: list[PlaylistVariant] = []

    for index, line in enumerate(lines):
        if not line.strip().startswith(_STREAM_INF_PREFIX):
            continue
        uri = _next_uri_line(lines, index + 1)
        if uri is None:
            logger.debug("Stream-info without URI at line {} of {}", index + 1, master_url)
            continue
        label = quality_label(parse_stream_inf(line), len(variants) + 1)
        resolved = _resolve_variant_uri(base_url, uri)
        if resolved is None:
            continue
        variants.append(PlaylistVariant(url=resolved, quality_label=label))

    if not variants:
        logger.debug("No variants parsed from {}; using master URL", master_url)
        variants.append(PlaylistVariant(url=master_url, quality_label=DEFAULT_LABEL))

    variants.sort(key=lambda variant: variant.rank, reverse=True)
    return variants


def resolve_playlist(
    master_url: str, headers: Optional[Mapping[str, str]] = None
) -> list[PlaylistVariant]:
    """
    Fetch an HLS master playlist and enumerate its quality variants.

    Parameters:
        master_url (str): Absolute URL of the master playlist.
        headers (Mapping[str, str] | None): Extra headers on top of the shared client's.

    Returns:
        list[PlaylistVariant]: See `parse_master_playlist`.

    Raises:
        NetworkError: If the playlist cannot be fetched.
        RemoteError: If the playlist host answers with a non-success status.
    """
    logger.debug("Resolving HLS master playlist {}", master_url)
    resp = fetch(master_url, headers=headers)
    variants = parse_master_playlist(resp.text or "", master_url)
    logger.debug(
        "Resolved {} variant(s) from {}: {}",
        len(variants),
        master_url,
        [v.quality_label for v in variants],
    )
    return variants
