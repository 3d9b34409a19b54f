"""
CineReco - Moteur de recommandation de films adossé à l'API TMDB.

Ce package produit des recommandations personnalisées, par genre ou
populaires, en respectant le quota de l'API TMDB et en limitant les appels
redondants grâce à un cache.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entités, ports, erreurs)
- services/ : Couche application (moteur de recommandation)
- adapters/ : Couche infrastructure (client API, limiteur, cache, collaborateurs)
"""
