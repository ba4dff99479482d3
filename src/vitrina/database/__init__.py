"""
Módulo de base de datos.

Provee acceso a Supabase: sesiones, catálogo y log de visitas.
"""

from vitrina.database.supabase_client import get_supabase_client, SupabaseClient
from vitrina.database.repositories import (
    BuyerSessionRepository,
    ListingRepository,
    PropertyViewRepository,
    parse_rows,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "BuyerSessionRepository",
    "ListingRepository",
    "PropertyViewRepository",
    "parse_rows",
]
