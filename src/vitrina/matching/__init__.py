"""
Motor de matching.

Filtros hard + scoring por reglas para rankear el catálogo
contra las preferencias de cada comprador.
"""

from vitrina.matching.matcher import ListingMatcher
from vitrina.matching.engine import MatchingEngine

__all__ = [
    "ListingMatcher",
    "MatchingEngine",
]
