"""
Couche infrastructure (adaptateurs).

- api/ : Acces a l'API TMDB (limiteur, transport, cache, client)
- auth : Fournisseur de session statique
- store : Stockage cle-valeur en memoire
"""
