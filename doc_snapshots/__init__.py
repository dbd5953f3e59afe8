"""Documentation snapshots for tracked branches of remote repositories."""

__version__ = "0.1.0"
