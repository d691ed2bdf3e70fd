"""docintel — document duplicate detection and relevance scoring."""

from docintel.version import __version__

__all__ = ["__version__"]
