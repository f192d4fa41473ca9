"""
Fonctions utilitaires partagees dans le projet ReelRack.

Ce module centralise les fonctions reutilisees a travers le codebase :
- normalize_accents : suppression des diacritiques pour comparaison
- title_sort_key : cle de tri de titre insensible a la casse et aux accents
- clean_text : nettoyage des saisies texte
- new_record_id : generation d'un ID de document cote client
"""

import unicodedata
import uuid


def strip_invisible_chars(text: str) -> str:
    """
    Retire les caractères Unicode invisibles d'une chaîne.

    Supprime les caractères de contrôle et les marques directionnelles
    (LRM, RLM, BOM, etc.) souvent colles depuis un navigateur.
    """
    return "".join(
        char for char in text if unicodedata.category(char) not in ("Cf", "Cc")
    )


def clean_text(text: object) -> str:
    """Nettoie une saisie : None -> "", invisibles retires, espaces de bord supprimes."""
    if text is None:
        return ""
    return strip_invisible_chars(str(text)).strip()


_LIGATURE_MAP = {"œ": "oe", "Œ": "Oe", "æ": "ae", "Æ": "Ae", "ß": "ss"}


def _expand_ligatures(text: str) -> str:
    """Remplace les ligatures Unicode par leurs équivalents ASCII pour le tri."""
    for lig, expanded in _LIGATURE_MAP.items():
        text = text.replace(lig, expanded)
    return text


def normalize_accents(text: str) -> str:
    """
    Supprime les accents d'une chaine pour une comparaison insensible aux accents.

    Utilise la decomposition NFD puis filtre les caracteres diacritiques (Mn).
    Ex: "Amélie" -> "Amelie"
    """
    normalized = unicodedata.normalize("NFD", text)
    return "".join(char for char in normalized if unicodedata.category(char) != "Mn")


def title_sort_key(title: str) -> tuple[str, str]:
    """
    Clé de tri normalisée pour un titre.

    Le premier élément compare comme une collation de locale (accents, casse
    et ligatures ignorés) ; le titre brut départage les égalités pour que
    l'ordre reste reproductible.
    """
    cleaned = _expand_ligatures(strip_invisible_chars(title or ""))
    return normalize_accents(cleaned).casefold(), title or ""


def new_record_id() -> str:
    """Genere un ID de document opaque et unique (32 caracteres hexadecimaux)."""
    return uuid.uuid4().hex
