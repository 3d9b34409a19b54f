"""
Interface port pour le catalogue de films.

Frontière entre le moteur de recommandation et le client API concret.
Le moteur ne dépend que de ce contrat, ce qui permet de lui substituer
un double de test.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional

from cinereco.core.entities.media import Genre, Movie


class ICatalogClient(ABC):
    """
    Opérations typées sur le catalogue de films.

    Toute défaillance est levée sous forme de CatalogError portant sa
    catégorie ; aucune opération ne renvoie de résultat vide à la place
    d'une erreur.
    """

    @abstractmethod
    async def search(self, query: str, page: int = 1) -> list[Movie]:
        """
        Recherche des films par titre.

        Args :
            query : Texte recherché
            page : Page de résultats (1-indexée)

        Retourne :
            Liste des films trouvés (vide si aucun résultat)
        """
        ...

    @abstractmethod
    async def get_details(self, movie_id: int) -> Movie:
        """Récupère les détails complets d'un film."""
        ...

    @abstractmethod
    async def get_similar(self, movie_id: int, page: int = 1) -> list[Movie]:
        """Films recommandés par le fournisseur à partir d'un film donné."""
        ...

    @abstractmethod
    async def list_genres(self) -> list[Genre]:
        """Catalogue des genres (quasi statique)."""
        ...

    @abstractmethod
    async def discover(
        self,
        genre_ids: Iterable[int] = (),
        page: int = 1,
        sort_by: str = "popularity.desc",
        filters: Optional[Mapping[str, Any]] = None,
    ) -> list[Movie]:
        """
        Découverte de films par critères.

        Args :
            genre_ids : Genres requis (ordre sans importance)
            page : Page de résultats
            sort_by : Critère de tri du fournisseur
            filters : Paramètres de filtrage supplémentaires

        Retourne :
            Liste des films de la page demandée
        """
        ...

    @abstractmethod
    async def rate(
        self, movie_id: int, score: float, session_id: Optional[str] = None
    ) -> bool:
        """Note un film (session requise). Retourne True en cas de succès."""
        ...

    @abstractmethod
    async def delete_rating(
        self, movie_id: int, session_id: Optional[str] = None
    ) -> bool:
        """Supprime la note d'un film (session requise)."""
        ...

    @abstractmethod
    async def list_rated(
        self, account_id: int, session_id: Optional[str] = None, page: int = 1
    ) -> list[Movie]:
        """Films notés par le compte, avec user_rating renseigné."""
        ...

    @abstractmethod
    async def list_watchlist(
        self, account_id: int, session_id: Optional[str] = None, page: int = 1
    ) -> list[Movie]:
        """Films de la watchlist du compte."""
        ...

    @abstractmethod
    async def get_account_id(self, session_id: Optional[str] = None) -> int:
        """Identifiant du compte associé à la session."""
        ...
