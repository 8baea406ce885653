"""Identity extraction for caller tracking."""

from .extractor import IdentityExtractor, extract_identity

__all__ = [
    "IdentityExtractor",
    "extract_identity",
]
