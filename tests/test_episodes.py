import pytest

from hianime.core.resolver.episodes import (
    anime_id_from_url,
    episode_list_url,
    fetch_episode_list,
    parse_episode_list_html,
)
from hianime.core.resolver.errors import NotFoundError
from hianime.core.resolver.types import EpisodeRef

from conftest import json_response

EPISODES_HTML = """
<div class="ss-list">
  <a title="The Journey's End" class="ssl-item ep-item" data-number="1" data-id="2142"
     href="/watch/frieren-beyond-journeys-end-18542?ep=2142">
    <div class="ssli-order">1</div>
  </a>
  <a title="It Didn't Have to Be Magic..." class="ssl-item ep-item" data-number="2" data-id="2143"
     href="/watch/frieren-beyond-journeys-end-18542?ep=2143">
    <div class="ssli-order">2</div>
  </a>
  <a title="" class="ssl-item ep-item" href="/watch/frieren-beyond-journeys-end-18542?ep=2144">
    <div class="ssli-order">3</div>
  </a>
  <a title="Recap" class="ssl-item ep-item" href="/watch/frieren-beyond-journeys-end-18542?ep=2145">
  </a>
</div>
"""


def test_anime_id_from_url():
    assert anime_id_from_url("/watch/frieren-beyond-journeys-end-18542") == "18542"
    assert anime_id_from_url("https://hianime.to/frieren-18542?ref=search") == "18542"
    assert anime_id_from_url("18542") == "18542"


def test_anime_id_from_url_empty():
    with pytest.raises(NotFoundError):
        anime_id_from_url("https://hianime.to/watch/frieren-")


def test_parse_episode_list_html_skips_incomplete_items():
    entries = parse_episode_list_html(EPISODES_HTML)

    assert [(e.episode_id, e.number, e.title) for e in entries] == [
        ("2142", 1.0, "The Journey's End"),
        ("2143", 2.0, "It Didn't Have to Be Magic..."),
    ]
    assert entries[0].url.startswith("https://")
    assert entries[0].url.endswith("/watch/frieren-beyond-journeys-end-18542?ep=2142")
    assert entries[0].episode_ref == EpisodeRef(entries[0].url)
    assert entries[0].episode_ref.episode_id() == "2142"


def test_fetch_episode_list(fake_http):
    fake_http.add(
        episode_list_url("18542"),
        json_response({"status": True, "html": EPISODES_HTML, "totalItems": 28}),
    )

    entries = fetch_episode_list("/watch/frieren-beyond-journeys-end-18542")

    assert [e.episode_id for e in entries] == ["2143", "2142"]
    assert fake_http.calls == [episode_list_url("18542")]


def test_fetch_episode_list_status_false(fake_http):
    fake_http.add(episode_list_url("1"), json_response({"status": False}))
    with pytest.raises(NotFoundError):
        fetch_episode_list("1")
