from __future__ import annotations

from typing import Any, List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hianime.config import HIANIME_BASE_URL

from .errors import DecodeError
from .transport import fetch_json
from .types import MediaType, Server, SourceDescriptor, SourceFile, SourceTrack


class SourceItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file: Optional[str] = None
    type: Optional[str] = None


class TrackItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file: Optional[str] = None
    kind: Optional[str] = None
    label: Optional[str] = None


class SourcePayload(BaseModel):
    """Body of `/ajax/v2/episode/sources`. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    sources: List[SourceItem] = Field(default_factory=list)
    tracks: List[TrackItem] = Field(default_factory=list)
    encrypted: bool = False

    @field_validator("sources", mode="before")
    @classmethod
    def _opaque_sources(cls, value: Any) -> Any:
        # Encrypted payloads carry `sources` as a ciphertext string; it is never decrypted.
        if isinstance(value, str):
            return []
        return value


def sources_url(server_id: str) -> str:
    return f"{HIANIME_BASE_URL}/ajax/v2/episode/sources?id={server_id}"


def parse_source_payload(data: Any) -> SourceDescriptor:
    """
    Decode a sources JSON payload into a SourceDescriptor.

    Parameters:
        data (Any): Parsed JSON body.

    Returns:
        SourceDescriptor: Source files in upstream order, tracks and the encrypted flag.

    Raises:
        DecodeError: If the payload does not match the expected schema.
    """
    try:
        payload = SourcePayload.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected sources payload: {exc}") from exc
    return SourceDescriptor(
        source_files=tuple(
            SourceFile(
                url=(item.file or "").strip(),
                media_type=MediaType.from_raw(item.type),
            )
            for item in payload.sources
        ),
        tracks=tuple(
            SourceTrack(url=item.file, kind=item.kind or "", label=item.label)
            for item in payload.tracks
        ),
        encrypted=payload.encrypted,
    )


def fetch_source(server: Server) -> SourceDescriptor:
    """
    Retrieve the raw source descriptor of one playback server.

    Raises:
        NetworkError: On transport failure.
        RemoteError: On non-success HTTP status.
        DecodeError: If the body cannot be decoded into the sources schema.
    """
    logger.debug("Fetching sources for server {} ({})", server.id, server.name)
    descriptor = parse_source_payload(fetch_json(sources_url(server.id)))
    logger.debug(
        "Server {} ({}): {} source file(s), {} track(s), encrypted={}",
        server.id,
        server.name,
        len(descriptor.source_files),
        len(descriptor.tracks),
        descriptor.encrypted,
    )
    return descriptor
