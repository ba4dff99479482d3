"""
Engagement de compradores.

Agregación del log de visitas por comprador y por listing, métricas
para dashboards e insights para el agente.
"""

from vitrina.engagement.aggregator import (
    GroupAccumulator,
    aggregate_buyer_activity,
    aggregate_listing_viewers,
    engagement_score,
    fold_events,
)
from vitrina.engagement.analytics import (
    buyer_engagement,
    buyer_insights,
    engagement_tier,
    listing_analytics,
    match_tier,
)
from vitrina.engagement.service import EngagementService

__all__ = [
    "GroupAccumulator",
    "aggregate_buyer_activity",
    "aggregate_listing_viewers",
    "engagement_score",
    "fold_events",
    "buyer_engagement",
    "buyer_insights",
    "engagement_tier",
    "listing_analytics",
    "match_tier",
    "EngagementService",
]
