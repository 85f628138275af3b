from __future__ import annotations

from typing import Any, List, Optional, Tuple

from bs4 import BeautifulSoup  # type: ignore
from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from hianime.config import HIANIME_BASE_URL, INCLUDE_DUB

from .errors import DecodeError, NotFoundError
from .transport import fetch_json
from .types import EpisodeRef, Server, ServerKind

# Processing order matters: SUB first, DUB after.
_GROUP_SELECTORS: Tuple[Tuple[ServerKind, str], ...] = (
    (ServerKind.SUB, "div.servers-sub div.item"),
    (ServerKind.DUB, "div.servers-dub div.item"),
)


class HtmlPayload(BaseModel):
    """`{status, html}` envelope used by the episode list and server list endpoints."""

    model_config = ConfigDict(extra="ignore")

    status: bool = False
    html: str = ""


def decode_html_payload(data: Any, what: str) -> str:
    """
    Validate a `{status, html}` payload and return the embedded HTML.

    Raises:
        DecodeError: If the payload does not match the envelope schema.
        NotFoundError: If upstream reports `status: false`.
    """
    try:
        payload = HtmlPayload.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected {what} payload: {exc}") from exc
    if not payload.status:
        raise NotFoundError(f"{what} request returned status false")
    return payload.html


def servers_url(episode_id: str) -> str:
    return f"{HIANIME_BASE_URL}/ajax/v2/episode/servers?episodeId={episode_id}"


def parse_servers_html(html_text: str, *, include_dub: bool = False) -> List[Server]:
    """
    Extract playback servers from the server-list HTML fragment.

    Parameters:
        html_text (str): The `html` field of the server-list response.
        include_dub (bool): Also return servers from the DUB grouping.

    Returns:
        List[Server]: SUB servers in document order, followed by DUB servers when
            requested. Items without a `data-id` are dropped.
    """
    soup = BeautifulSoup(html_text or "", "html.parser")
    servers: List[Server] = []
    for kind, selector in _GROUP_SELECTORS:
        if kind is ServerKind.DUB and not include_dub:
            continue
        for item in soup.select(selector):
            server_id = str(item.get("data-id") or "").strip()
            if not server_id:
                logger.trace("Dropping {} server item without data-id", kind)
                continue
            anchor = item.select_one("a")
            name = anchor.get_text(strip=True) if anchor else ""
            servers.append(
                Server(id=server_id, name=name or f"Server {server_id}", kind=kind)
            )
    return servers


def discover_servers(
    episode_ref: EpisodeRef, *, include_dub: Optional[bool] = None
) -> List[Server]:
    """
    Enumerate candidate playback servers for one episode.

    Parameters:
        episode_ref (EpisodeRef): Episode to look up.
        include_dub (bool | None): Override the INCLUDE_DUB setting.

    Returns:
        List[Server]: Possibly empty list of servers, SUB before DUB.

    Raises:
        NotFoundError: If no episode id can be derived or upstream reports failure.
        NetworkError: On transport failure.
        RemoteError: On non-success HTTP status.
        DecodeError: If the response is not the expected JSON envelope.
    """
    dub = INCLUDE_DUB if include_dub is None else include_dub
    episode_id = episode_ref.episode_id()
    logger.info("Discovering servers for episode {}", episode_id)
    html_text = decode_html_payload(fetch_json(servers_url(episode_id)), "Server list")
    servers = parse_servers_html(html_text, include_dub=dub)
    logger.info(
        "Episode {}: {} server(s) found: {}",
        episode_id,
        len(servers),
        [server.label for server in servers],
    )
    return servers
