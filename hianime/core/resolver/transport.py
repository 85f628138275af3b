from __future__ import annotations

from typing import Any, Mapping, Optional

import requests
from loguru import logger

from hianime.config import HTTP_TIMEOUT_SECONDS
from hianime.utils.http_client import AJAX_HEADERS, get as http_get

from .errors import DecodeError, NetworkError, RemoteError


def fetch(
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = HTTP_TIMEOUT_SECONDS,
) -> requests.Response:
    """
    GET a URL through the shared session and map failures onto the resolver taxonomy.

    Parameters:
        url (str): Absolute URL to request.
        headers (Mapping[str, str] | None): Extra headers merged over the session defaults.
        timeout (float): Per-request timeout in seconds.

    Returns:
        requests.Response: A response with a 2xx status.

    Raises:
        NetworkError: On any transport-level failure (connection, DNS, TLS, timeout).
        RemoteError: If the upstream answers with a non-success status.
    """
    logger.trace("GET {}", url)
    try:
        resp = http_get(url, timeout=timeout, headers=dict(headers or {}))
    except requests.exceptions.RequestException as exc:
        raise NetworkError(f"Network error fetching {url}: {exc}") from exc
    if not resp.ok:
        raise RemoteError(url, resp.status_code)
    return resp


def fetch_json(url: str, *, timeout: float = HTTP_TIMEOUT_SECONDS) -> Any:
    """
    GET one of the provider's /ajax endpoints and decode its JSON body.

    Raises:
        NetworkError: On transport failure.
        RemoteError: On non-success status.
        DecodeError: If the body is not valid JSON.
    """
    resp = fetch(url, headers=AJAX_HEADERS, timeout=timeout)
    try:
        return resp.json()
    except ValueError as exc:
        snippet = (resp.text or "")[:100]
        raise DecodeError(f"Invalid JSON from {url}: {exc}. Body: {snippet!r}") from exc
