import hianime.api.videos as videos_api
from hianime.core.resolver.errors import NoPlayableSource, NotFoundError, RemoteError
from hianime.core.resolver.episodes import EpisodeEntry
from hianime.core.resolver.types import Diagnostic, Track, Video, VideoResult


def test_episode_videos_returns_videos_and_diagnostics(client, monkeypatch):
    track = Track("https://cdn.example.com/en.vtt", "English")
    seen = {}

    def fake_assemble(ref, *, include_dub=None):
        seen["episode_id"] = ref.episode_id()
        seen["include_dub"] = include_dub
        return VideoResult(
            videos=[
                Video("https://cdn.example.com/a.m3u8", "VidStream SUB - 1080p", (track,))
            ],
            subtitles=[track],
            diagnostics=[Diagnostic("2", "MegaCloud", "NetworkError", "refused")],
        )

    monkeypatch.setattr(videos_api, "assemble", fake_assemble)

    r = client.get("/episodes/2142/videos", params={"dub": "true"})

    assert r.status_code == 200
    body = r.json()
    assert seen == {"episode_id": "2142", "include_dub": True}
    assert body["videos"][0]["label"] == "VidStream SUB - 1080p"
    assert body["videos"][0]["subtitle_tracks"] == [
        {"url": "https://cdn.example.com/en.vtt", "label": "English"}
    ]
    assert body["diagnostics"][0]["kind"] == "NetworkError"


def test_episode_videos_no_playable_source_is_404(client, monkeypatch):
    def fake_assemble(ref, *, include_dub=None):
        raise NoPlayableSource([Diagnostic("1", "VidStream", "encrypted")])

    monkeypatch.setattr(videos_api, "assemble", fake_assemble)

    r = client.get("/episodes/2142/videos")

    assert r.status_code == 404
    assert r.json()["detail"]["diagnostics"][0]["kind"] == "encrypted"


def test_episode_videos_error_mapping(client, monkeypatch):
    def not_found(ref, *, include_dub=None):
        raise NotFoundError("Server list request returned status false")

    def upstream(ref, *, include_dub=None):
        raise RemoteError("https://hianime.to/ajax", 503)

    monkeypatch.setattr(videos_api, "assemble", not_found)
    assert client.get("/episodes/2142/videos").status_code == 404
    monkeypatch.setattr(videos_api, "assemble", upstream)
    assert client.get("/episodes/2142/videos").status_code == 502


def test_anime_episodes(client, monkeypatch):
    entry = EpisodeEntry(
        episode_id="2142",
        number=1.0,
        title="The Journey's End",
        url="https://hianime.to/watch/frieren-18542?ep=2142",
    )
    monkeypatch.setattr(videos_api, "fetch_episode_list", lambda anime_id: [entry])

    r = client.get("/anime/18542/episodes")

    assert r.status_code == 200
    assert r.json() == [
        {
            "episode_id": "2142",
            "number": 1.0,
            "title": "The Journey's End",
            "url": "https://hianime.to/watch/frieren-18542?ep=2142",
        }
    ]
