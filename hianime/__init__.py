"""HiAnime episode stream resolver."""

from ._version import __version__

__all__ = ["__version__"]
