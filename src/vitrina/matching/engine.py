"""
Servicio de matching por sesión de comprador.

Carga la sesión y el catálogo activo desde el store y delega en el
ListingMatcher, que es puro.
"""

from typing import Optional

import structlog

from vitrina.database import BuyerSessionRepository, ListingRepository
from vitrina.matching.matcher import ListingMatcher
from vitrina.models import MatchedListing

logger = structlog.get_logger()


class MatchingEngine:
    """Resuelve los listings recomendados para una sesión."""

    def __init__(
        self,
        session_repo: Optional[BuyerSessionRepository] = None,
        listing_repo: Optional[ListingRepository] = None,
        matcher: Optional[ListingMatcher] = None,
    ):
        self.session_repo = session_repo or BuyerSessionRepository()
        self.listing_repo = listing_repo or ListingRepository()
        self.matcher = matcher or ListingMatcher()

    def get_matching_listings(
        self,
        session_id: str,
        limit: Optional[int] = None,
    ) -> list[MatchedListing]:
        """
        Listings activos que cumplen las preferencias de la sesión.

        Args:
            session_id: UUID de la sesión de comprador
            limit: Máximo de resultados (None = todos)

        Raises:
            ValueError: si la sesión no existe
        """
        session = self.session_repo.get_by_id(session_id)
        if session is None:
            raise ValueError(f"Sesión no encontrada: {session_id}")

        catalog = self.listing_repo.get_active()
        matches = self.matcher.match(session.preferences, catalog)

        logger.info(
            "Matches calculados",
            session_id=session_id,
            catalog=len(catalog),
            matches=len(matches),
        )

        if limit is not None:
            return matches[:limit]
        return matches
