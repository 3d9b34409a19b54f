"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

Port catalogue : Contrat du client API utilisé par le moteur
- ICatalogClient : Recherche, détails, découverte, notes, listes du compte

Ports collaborateurs : Contrats des composants hors périmètre
- IAuthProvider : Session courante
- IStore : Stockage clé-valeur des préférences
"""

from cinereco.core.ports.catalog import ICatalogClient
from cinereco.core.ports.collaborators import (
    EXCLUDED_MOVIE_IDS_KEY,
    PREFERRED_GENRE_IDS_KEY,
    IAuthProvider,
    IStore,
)

__all__ = [
    # Catalogue
    "ICatalogClient",
    # Collaborateurs
    "IAuthProvider",
    "IStore",
    "EXCLUDED_MOVIE_IDS_KEY",
    "PREFERRED_GENRE_IDS_KEY",
]
