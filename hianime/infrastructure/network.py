from __future__ import annotations

from typing import Dict
from urllib.parse import urlsplit, urlunsplit

from loguru import logger

from hianime.config import (
    PROXY_ENABLED,
    PROXY_URL,
    HTTP_PROXY_URL,
    HTTPS_PROXY_URL,
    PROXY_DISABLE_CERT_VERIFY,
)


def _mask(url: str | None) -> str:
    """Mask credentials in a proxy URL for safe logging."""
    if not url:
        return ""
    try:
        p = urlsplit(url)
        netloc = p.netloc
        if "@" in netloc:
            userinfo, host = netloc.split("@", 1)
            user = userinfo.split(":", 1)[0]
            netloc = f"{user}:****@{host}"
        return urlunsplit((p.scheme, netloc, p.path or "", p.query or "", p.fragment or ""))
    except ValueError:
        return url


def proxies_mapping() -> Dict[str, str]:
    """Return a requests-compatible proxies mapping if proxying is enabled.

    Keys: 'http', 'https'. Empty dict when disabled or no URL provided.
    Per-protocol URLs win over the shared PROXY_URL.
    """
    if not PROXY_ENABLED:
        return {}

    proxies: Dict[str, str] = {}
    http = HTTP_PROXY_URL or PROXY_URL
    https = HTTPS_PROXY_URL or PROXY_URL or http
    if http:
        proxies["http"] = http
    if https:
        proxies["https"] = https

    if proxies:
        logger.info(
            "Requests proxies active: http={} https={}",
            _mask(proxies.get("http")),
            _mask(proxies.get("https")),
        )
    else:
        logger.debug("Proxy enabled but no proxy URL configured.")
    return proxies


def requests_verify() -> bool:
    """Whether requests should verify TLS certificates."""
    return not PROXY_DISABLE_CERT_VERIFY
