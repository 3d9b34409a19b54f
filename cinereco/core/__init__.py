"""
Couche domaine (core).

Contient les entités métier, les ports (interfaces abstraites) et la
taxonomie des erreurs. Cette couche n'a AUCUNE dépendance vers
l'infrastructure (adapters, frameworks, HTTP).

Sous-packages :
- entities/ : Entités métier (Movie, Genre, UserProfile, RecommendationResult)
- ports/ : Interfaces abstraites définissant les contrats pour les adaptateurs
- errors : ErrorCategory, CatalogError, is_retryable
"""
