"""
Contexte explicite de l'utilisateur courant.

La Session est creee au demarrage, reconstruite a chaque changement
d'identite, et passee explicitement aux services qui en ont besoin.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Identite signee fournie par le fournisseur d'identite."""

    uid: str


@dataclass(frozen=True)
class Session:
    """
    Identite courante et capacite d'administration.

    is_admin est un simple indicateur consultatif : l'autorisation reelle
    est appliquee par les regles d'acces du stockage distant.
    """

    identity: Optional[Identity] = None
    is_admin: bool = False

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()

    @classmethod
    def for_identity(
        cls, identity: Optional[Identity], admin_uid: Optional[str]
    ) -> "Session":
        """Construit la session en comparant l'uid signe a l'uid administrateur configure."""
        is_admin = bool(identity and admin_uid and identity.uid == admin_uid)
        return cls(identity=identity, is_admin=is_admin)

    @property
    def uid(self) -> Optional[str]:
        return self.identity.uid if self.identity else None
