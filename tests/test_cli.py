import json

import pytest
from loguru import logger

import hianime.cli as cli
from hianime.core.resolver.errors import NoPlayableSource
from hianime.core.resolver.types import Diagnostic, Track, Video, VideoResult
from hianime.utils.logger import config as configure_logger


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    configure_logger()


def _result() -> VideoResult:
    track = Track("https://cdn.example.com/en.vtt", "English")
    return VideoResult(
        videos=[Video("https://cdn.example.com/ep.mp4", "VidStream SUB - MP4", (track,))],
        subtitles=[track],
    )


def test_cli_resolve_prints_videos(monkeypatch, capsys):
    monkeypatch.setattr(cli, "assemble", lambda ref, include_dub=None: _result())

    assert cli.main(["resolve", "2142"]) == 0

    out = capsys.readouterr().out
    assert "VidStream SUB - MP4\thttps://cdn.example.com/ep.mp4" in out
    assert "[subtitle] English" in out


def test_cli_resolve_json(monkeypatch, capsys):
    monkeypatch.setattr(cli, "assemble", lambda ref, include_dub=None: _result())

    assert cli.main(["resolve", "2142", "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["videos"][0]["label"] == "VidStream SUB - MP4"
    assert data["subtitles"][0]["url"] == "https://cdn.example.com/en.vtt"


def test_cli_resolve_no_playable_source_exit_code(monkeypatch):
    def fail(ref, include_dub=None):
        raise NoPlayableSource([Diagnostic("1", "VidStream", "encrypted")])

    monkeypatch.setattr(cli, "assemble", fail)

    assert cli.main(["resolve", "2142", "--dub"]) == 2


def test_cli_json_output_is_not_mixed_with_logs(monkeypatch, capsys):
    def noisy_assemble(ref, include_dub=None):
        logger.info("Resolving {}", ref.value)
        return _result()

    monkeypatch.setattr(cli, "assemble", noisy_assemble)

    assert cli.main(["resolve", "2142", "--json"]) == 0

    captured = capsys.readouterr()
    assert json.loads(captured.out)["videos"][0]["url"] == "https://cdn.example.com/ep.mp4"
    assert "Resolving 2142" in captured.err
