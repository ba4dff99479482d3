"""
Servicio de engagement sobre el event store.

Lee el log de visitas, el catálogo y las sesiones, y delega en los
agregadores puros. No cachea: cada lectura recalcula desde el log.
"""

from typing import Optional

import structlog

from vitrina.config import get_settings
from vitrina.database import (
    BuyerSessionRepository,
    ListingRepository,
    PropertyViewRepository,
)
from vitrina.engagement.aggregator import (
    aggregate_buyer_activity,
    aggregate_listing_viewers,
)
from vitrina.engagement.analytics import buyer_engagement, buyer_insights, listing_analytics
from vitrina.models import (
    BuyerEngagement,
    BuyerInsight,
    EngagementSummary,
    ListingAnalytics,
    ListingViewerSummary,
)

logger = structlog.get_logger()


class EngagementService:
    """Historial de actividad de compradores y métricas por listing."""

    def __init__(
        self,
        view_repo: Optional[PropertyViewRepository] = None,
        listing_repo: Optional[ListingRepository] = None,
        session_repo: Optional[BuyerSessionRepository] = None,
    ):
        self.settings = get_settings()
        self.view_repo = view_repo or PropertyViewRepository()
        self.listing_repo = listing_repo or ListingRepository()
        self.session_repo = session_repo or BuyerSessionRepository()

    def get_buyer_view_history(self, session_id: str) -> list[EngagementSummary]:
        """
        Actividad del comprador por listing, ordenada por engagement.

        Raises:
            ValueError: si la sesión no existe
        """
        session = self.session_repo.get_by_id(session_id)
        if session is None:
            raise ValueError(f"Sesión no encontrada: {session_id}")

        events = self.view_repo.get_by_buyer_session(session_id)
        listings = self.listing_repo.get_many(e.listing_id for e in events if e.listing_id)

        history = aggregate_buyer_activity(
            events,
            listings,
            profile=session.preferences,
            buyer_session_id=session_id,
            default_match_score=self.settings.default_match_score,
        )

        skipped = len({e.listing_id for e in events if e.listing_id}) - len(history)
        if skipped:
            logger.warning(
                "Listings vistos que ya no existen",
                session_id=session_id,
                skipped=skipped,
            )

        return history

    def get_listing_viewers(self, listing_id: str) -> list[ListingViewerSummary]:
        """Compradores que vieron el listing, ordenados por engagement."""
        listing = self.listing_repo.get_by_id(listing_id)
        events = self.view_repo.get_by_listing(listing_id)
        sessions = self.session_repo.get_many(
            e.buyer_session_id for e in events if e.buyer_session_id
        )
        return aggregate_listing_viewers(
            events,
            sessions,
            listing=listing,
            default_match_score=self.settings.default_match_score,
        )

    def get_listing_analytics(
        self, listing_id: str, time_range: Optional[str] = None
    ) -> ListingAnalytics:
        return listing_analytics(self.view_repo.get_by_listing(listing_id), time_range)

    def get_buyer_engagement(
        self, session_id: str, offers_submitted: int = 0
    ) -> BuyerEngagement:
        return buyer_engagement(
            self.view_repo.get_by_buyer_session(session_id), offers_submitted
        )

    def get_buyer_insights(
        self, session_id: str, offers_submitted: int = 0
    ) -> list[BuyerInsight]:
        session = self.session_repo.get_by_id(session_id)
        if session is None:
            raise ValueError(f"Sesión no encontrada: {session_id}")

        history = self.get_buyer_view_history(session_id)
        return buyer_insights(
            history,
            session.preferences,
            offers_submitted=offers_submitted,
            high_engagement_threshold=self.settings.high_engagement_threshold,
        )
