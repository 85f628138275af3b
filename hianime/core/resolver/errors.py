from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .types import Diagnostic


class ResolverError(Exception):
    pass


class NetworkError(ResolverError):
    """Transport failure: connection refused, DNS, timeout, TLS."""


class RemoteError(ResolverError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP {status_code} from {url}")


class DecodeError(ResolverError):
    """Response body does not match the expected schema."""


class FormatError(ResolverError):
    """A playlist was requested but no playlist text came back."""


class NotFoundError(ResolverError):
    """Episode/anime id could not be derived or upstream reported failure."""


class NoPlayableSource(ResolverError):
    """Every server was attempted and none produced a video."""

    def __init__(self, diagnostics: Sequence["Diagnostic"] = ()) -> None:
        """
        Initialize the exception with the per-server diagnostics collected during assembly.

        Parameters:
            diagnostics (Sequence[Diagnostic]): Why each server contributed nothing; may be empty
                when the episode exposes no servers at all.
        """
        self.diagnostics = list(diagnostics)
        super().__init__(
            "No playable video sources found "
            f"({len(self.diagnostics)} server(s) skipped). "
            "The episode might be unavailable or encrypted."
        )
