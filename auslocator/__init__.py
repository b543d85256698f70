"""Australian address verification and location search service."""

__version__ = "1.0.0"
