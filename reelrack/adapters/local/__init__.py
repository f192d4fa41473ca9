"""
Adaptateurs locaux (systeme de fichiers).
"""

from reelrack.adapters.local.blob_storage import LocalBlobStorage

__all__ = ["LocalBlobStorage"]
