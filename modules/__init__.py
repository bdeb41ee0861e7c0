"""Helper modules for the Fancam print service."""

__all__ = [
    "photo_source",
]
