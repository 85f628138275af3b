from __future__ import annotations

from dataclasses import dataclass
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup  # type: ignore
from loguru import logger

from hianime.config import HIANIME_BASE_URL

from .discovery import decode_html_payload
from .errors import NotFoundError
from .transport import fetch_json
from .types import EpisodeRef


@dataclass(frozen=True)
class EpisodeEntry:
    """One row of an anime's episode list."""

    episode_id: str
    number: float
    title: str
    url: str

    @property
    def episode_ref(self) -> EpisodeRef:
        return EpisodeRef(self.url)


def anime_id_from_url(url: str) -> str:
    """
    Extract the numeric anime id from a watch/detail URL such as ``/watch/frieren-18542``.

    Raises:
        NotFoundError: If the URL carries no id.
    """
    raw = (url or "").strip()
    if "-" in raw:
        anime_id = raw.rsplit("-", 1)[1].split("?", 1)[0].strip().strip("/")
    elif raw.isdigit():
        anime_id = raw
    else:
        anime_id = ""
    if not anime_id:
        raise NotFoundError(f"Could not get anime ID from URL: {url!r}")
    return anime_id


def episode_list_url(anime_id: str) -> str:
    return f"{HIANIME_BASE_URL}/ajax/v2/episode/list/{anime_id}"


def _parse_number(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        return 0.0


def parse_episode_list_html(html_text: str) -> List[EpisodeEntry]:
    """
    Parse the episode-list HTML fragment into entries in site order.

    Entries missing an href, a title or an episode number are skipped.
    """
    soup = BeautifulSoup(html_text or "", "html.parser")
    entries: List[EpisodeEntry] = []
    items = soup.select("div.ss-list > a.ssl-item.ep-item")
    for item in items:
        href = str(item.get("href") or "").strip()
        title = str(item.get("title") or "").strip()
        order = item.select_one("div.ssli-order")
        number = order.get_text(strip=True) if order else ""
        if not href or not title or not number:
            logger.debug(
                "Skipping episode due to missing data: href={} title={} num={}",
                href,
                title,
                number,
            )
            continue
        url = urljoin(f"{HIANIME_BASE_URL}/", href)
        try:
            episode_id = EpisodeRef(url).episode_id()
        except NotFoundError:
            episode_id = str(item.get("data-id") or "").strip()
            if not episode_id:
                logger.debug("Skipping episode without id: {}", href)
                continue
        entries.append(
            EpisodeEntry(
                episode_id=episode_id,
                number=_parse_number(number),
                title=title,
                url=url,
            )
        )
    if not entries:
        if items:
            logger.warning("Episode elements found but parsing resulted in empty list.")
        else:
            logger.info("No episode elements found in episode list response.")
    return entries


def fetch_episode_list(anime_ref: str) -> List[EpisodeEntry]:
    """
    Fetch the episode list of one anime.

    Parameters:
        anime_ref (str): Bare anime id or a URL ending in ``-<id>``.

    Returns:
        List[EpisodeEntry]: Episodes newest first (site order reversed).

    Raises:
        NotFoundError: If no anime id can be derived or upstream reports failure.
        NetworkError, RemoteError, DecodeError: As for the other /ajax endpoints.
    """
    anime_id = anime_id_from_url(anime_ref)
    logger.info("Fetching episode list for anime {}", anime_id)
    html_text = decode_html_payload(
        fetch_json(episode_list_url(anime_id)), "Episode list"
    )
    return list(reversed(parse_episode_list_html(html_text)))
