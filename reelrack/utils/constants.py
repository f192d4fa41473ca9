"""
Constantes globales pour ReelRack.

Ce module contient les constantes partagees dans l'application:
- Vocabulaire controle des genres
- Espaces de noms des fichiers binaires dans le stockage
- Affiche par defaut quand aucune affiche n'est envoyee
"""

# Vocabulaire controle des genres (ordre d'affichage)
GENRES = (
    "Action",
    "Adventure",
    "Animation",
    "Comedy",
    "Crime",
    "Documentary",
    "Drama",
    "Family",
    "Fantasy",
    "History",
    "Horror",
    "Mystery",
    "Romance",
    "Sci-Fi",
    "Thriller",
)

# Espaces de noms disjoints du stockage d'objets
POSTERS_PREFIX = "posters"
TRAILERS_PREFIX = "trailers"

# Collection de documents par defaut
DEFAULT_COLLECTION = "titles"

# Affiche de remplacement (poster_url vide)
DEFAULT_POSTER = (
    "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' width='1200' "
    "height='1800' viewBox='0 0 1200 1800'%3E%3Crect width='1200' height='1800' "
    "fill='%231a1b1e'/%3E%3Cpath d='M280 350h640v1100H280z' stroke='%236a6f7a' "
    "stroke-width='16' fill='none'/%3E%3C/svg%3E"
)
