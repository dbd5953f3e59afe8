"""Security module for doc-snapshots."""

from .validators import SourceValidator

__all__ = ["SourceValidator"]
