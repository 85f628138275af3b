import os
from dotenv import load_dotenv
from loguru import logger
from hianime.utils.logger import config as configure_logger

# Load .env as early as possible so all downstream imports see the intended env
load_dotenv()

# Configure logger after env is loaded (LOG_LEVEL honored)
configure_logger()


def _as_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    v = val.strip().lower()
    return v in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    try:
        return float(val) if val not in (None, "") else default
    except ValueError:
        logger.warning("Invalid float value '{}', using default {}", val, default)
        return default


# --- Upstream provider ---
HIANIME_BASE_URL = (
    os.getenv("HIANIME_BASE_URL", "https://hianime.to").strip().rstrip("/")
    or "https://hianime.to"
)

# User-Agent sent with every upstream request (AJAX and playlist fetches alike).
HTTP_USER_AGENT = os.getenv(
    "HTTP_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
).strip()

# Per-request timeout in seconds.
HTTP_TIMEOUT_SECONDS = _as_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 20.0)

# Transport-level retries. Failures are terminal per attempt unless raised here.
HTTP_RETRIES = max(0, int(os.getenv("HTTP_RETRIES", "0") or 0))

# --- Resolution pipeline ---
# Upper bound for one whole episode assembly (all servers). 0 disables.
ASSEMBLY_DEADLINE_SECONDS = _as_float(os.getenv("ASSEMBLY_DEADLINE_SECONDS"), 60.0)

# Worker threads used for per-server source fetches and playlist resolution.
MAX_CONCURRENCY = int(os.getenv("MAX_CONCURRENCY", "4") or 4)
if MAX_CONCURRENCY < 1:
    MAX_CONCURRENCY = 1

# SUB servers are always processed; DUB servers only when enabled.
INCLUDE_DUB = _as_bool(os.getenv("INCLUDE_DUB", None), False)

# Caption tracks must end with this exact suffix (case-sensitive).
CAPTION_EXTENSION = os.getenv("CAPTION_EXTENSION", ".vtt").strip() or ".vtt"

# --- Networking / Proxy configuration ---
PROXY_ENABLED = _as_bool(os.getenv("PROXY_ENABLED", None), False)
PROXY_URL = os.getenv("PROXY_URL", "").strip()
HTTP_PROXY_URL = os.getenv("HTTP_PROXY_URL", "").strip()
HTTPS_PROXY_URL = os.getenv("HTTPS_PROXY_URL", "").strip()

# Requests TLS certificate verification (set true to allow corporate MITM proxies).
PROXY_DISABLE_CERT_VERIFY = _as_bool(
    os.getenv("PROXY_DISABLE_CERT_VERIFY", None), False
)

# --- API server ---
HIANIME_RELOAD = _as_bool(os.getenv("HIANIME_RELOAD", None), False)
HIANIME_HOST = os.getenv("HIANIME_HOST", "127.0.0.1").strip() or "127.0.0.1"
HIANIME_PORT = int(os.getenv("HIANIME_PORT", "8000") or 8000)

logger.debug(
    "Resolver config: base={} timeout={}s deadline={}s workers={} dub={}",
    HIANIME_BASE_URL,
    HTTP_TIMEOUT_SECONDS,
    ASSEMBLY_DEADLINE_SECONDS,
    MAX_CONCURRENCY,
    INCLUDE_DUB,
)
