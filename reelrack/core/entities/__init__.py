"""
Business entities representing core domain concepts.

Exports:
- CatalogRecord: A movie or series entry of the shared catalog
- MediaKind: Kind of catalog entry (movie, series)
"""

from reelrack.core.entities.record import CatalogRecord, MediaKind

__all__ = [
    "CatalogRecord",
    "MediaKind",
]
