import importlib
import sys

import pytest


@pytest.fixture(autouse=True)
def _restore_config():
    import hianime

    saved = sys.modules.get("hianime.config")
    yield
    if saved is not None:
        sys.modules["hianime.config"] = saved
        hianime.config = saved


def _reload_config():
    import hianime

    if "hianime.config" in sys.modules:
        del sys.modules["hianime.config"]
    if hasattr(hianime, "config"):
        delattr(hianime, "config")
    return importlib.import_module("hianime.config")


def test_max_concurrency_floor(monkeypatch):
    monkeypatch.setenv("MAX_CONCURRENCY", "0")
    cfg = _reload_config()
    assert cfg.MAX_CONCURRENCY == 1


def test_include_dub_parsing(monkeypatch):
    monkeypatch.setenv("INCLUDE_DUB", " Yes ")
    assert _reload_config().INCLUDE_DUB is True
    monkeypatch.setenv("INCLUDE_DUB", "off")
    assert _reload_config().INCLUDE_DUB is False


def test_base_url_trailing_slash_stripped(monkeypatch):
    monkeypatch.setenv("HIANIME_BASE_URL", "https://mirror.example/ ")
    cfg = _reload_config()
    assert cfg.HIANIME_BASE_URL == "https://mirror.example"


def test_invalid_deadline_falls_back(monkeypatch):
    monkeypatch.setenv("ASSEMBLY_DEADLINE_SECONDS", "soon")
    cfg = _reload_config()
    assert cfg.ASSEMBLY_DEADLINE_SECONDS == 60.0
