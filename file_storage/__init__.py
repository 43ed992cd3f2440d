"""Backend-agnostic file storage with derived image variants."""

__version__ = "1.0.0"
