from __future__ import annotations

from typing import Any, Dict, Optional
import threading

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from loguru import logger

from hianime.infrastructure.network import _mask, proxies_mapping, requests_verify
from hianime.config import (
    HIANIME_BASE_URL,
    HTTP_RETRIES,
    HTTP_TIMEOUT_SECONDS,
    HTTP_USER_AGENT,
    PROXY_ENABLED,
)

_SESSION: Optional[requests.Session] = None
_SESSION_LOCK = threading.Lock()

# Extra headers the provider expects on its /ajax endpoints.
AJAX_HEADERS: Dict[str, str] = {
    "X-Requested-With": "XMLHttpRequest",
    "Accept": "application/json, text/javascript, */*; q=0.01",
}


def default_headers() -> Dict[str, str]:
    """Headers shared by every upstream request (ajax and playlist fetches)."""
    return {
        "User-Agent": HTTP_USER_AGENT,
        "Referer": f"{HIANIME_BASE_URL}/",
    }


def _build_session() -> requests.Session:
    s = requests.Session()
    proxies = proxies_mapping()
    if proxies:
        s.proxies.update(proxies)
        logger.info(
            "HTTP client proxies set: http={} https={}",
            _mask(proxies.get("http")),
            _mask(proxies.get("https")),
        )

    # No retries by default: a failed attempt is terminal for that server.
    retry = Retry(
        total=HTTP_RETRIES,
        connect=HTTP_RETRIES,
        read=HTTP_RETRIES,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        respect_retry_after_header=True,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=20)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.verify = requests_verify()
    s.headers.update(default_headers())
    # Some proxies mangle compressed responses ("bytes missing").
    if PROXY_ENABLED:
        s.headers.update({"Accept-Encoding": "identity"})
        logger.info("HTTP client: forcing Accept-Encoding=identity behind proxy")
    logger.debug("HTTP client TLS verify: {}", "on" if s.verify else "off")
    return s


def get_session() -> requests.Session:
    global _SESSION
    with _SESSION_LOCK:
        if _SESSION is None:
            _SESSION = _build_session()
        return _SESSION


def reset_session() -> None:
    """Drop the shared session so the next call rebuilds it from config."""
    global _SESSION
    with _SESSION_LOCK:
        if _SESSION is not None:
            _SESSION.close()
        _SESSION = None


def get(
    url: str, *, timeout: float | int = HTTP_TIMEOUT_SECONDS, **kwargs: Any
) -> requests.Response:
    s = get_session()
    try:
        return s.get(url, timeout=timeout, **kwargs)
    except requests.exceptions.RequestException as e:
        msg = str(e).lower()
        if "bytes missing" in msg or "incomplete" in msg:
            headers = dict(kwargs.get("headers") or {})
            headers["Accept-Encoding"] = "identity"
            logger.warning(
                "HTTP GET retry with Accept-Encoding=identity due to decode error"
            )
            # remove old headers to avoid duplication
            kwargs = {k: v for k, v in kwargs.items() if k != "headers"}
            return s.get(url, timeout=timeout, headers=headers, **kwargs)
        raise
