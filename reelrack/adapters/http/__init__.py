"""
Adaptateurs HTTP vers le stockage distant.
"""

from reelrack.adapters.http.blob_storage import HTTPBlobStorage
from reelrack.adapters.http.document_store import HTTPDocumentStore

__all__ = ["HTTPBlobStorage", "HTTPDocumentStore"]
