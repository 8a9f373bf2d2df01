"""Token-gated access decision service."""

__version__ = "0.1.0"
