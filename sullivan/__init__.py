"""Sullivan — dependency-ordered lifecycle controller for the media stack."""

__version__ = "0.1.0"
