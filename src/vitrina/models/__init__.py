"""
Modelos de datos del sistema.

- Entradas: PreferenceProfile, BuyerSession, ListingRecord, ViewEvent
- Derivados: MatchedListing, EngagementSummary y analytics
"""

from vitrina.models.preferences import BuyerSession, PreferenceProfile, PreQualification
from vitrina.models.listing import ListingRecord, ListingStatus, MatchedListing
from vitrina.models.view_event import (
    AIMatchScore,
    CATEGORY_WEIGHTS,
    ScoreBreakdown,
    ViewContext,
    ViewEvent,
    now_ms,
)
from vitrina.models.engagement import (
    BuyerEngagement,
    BuyerInsight,
    EngagementSummary,
    ListingAnalytics,
    ListingViewerSummary,
    ViewStats,
)

__all__ = [
    # Comprador
    "BuyerSession",
    "PreferenceProfile",
    "PreQualification",
    # Catálogo
    "ListingRecord",
    "ListingStatus",
    "MatchedListing",
    # Eventos
    "AIMatchScore",
    "CATEGORY_WEIGHTS",
    "ScoreBreakdown",
    "ViewContext",
    "ViewEvent",
    "now_ms",
    # Derivados
    "BuyerEngagement",
    "BuyerInsight",
    "EngagementSummary",
    "ListingAnalytics",
    "ListingViewerSummary",
    "ViewStats",
]
