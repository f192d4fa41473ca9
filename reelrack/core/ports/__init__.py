"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Ports stockage :
- IDocumentStore : Collection de documents du catalogue (abonnement, écritures)
- IBlobStorage : Stockage d'objets binaires avec envoi reprenable
- IUploadSession : Session d'envoi d'un objet
"""

from reelrack.core.ports.blob_storage import IBlobStorage, IUploadSession
from reelrack.core.ports.document_store import IDocumentStore

__all__ = [
    "IBlobStorage",
    "IDocumentStore",
    "IUploadSession",
]
