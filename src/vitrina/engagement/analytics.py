"""
Métricas de visitas para los dashboards de agente y vendedor.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from vitrina.config import ANALYTICS_TIME_RANGES
from vitrina.models import (
    BuyerEngagement,
    BuyerInsight,
    EngagementSummary,
    ListingAnalytics,
    PreferenceProfile,
    ViewEvent,
    now_ms,
)
from vitrina.scoring import round_half_up


def _average_duration(events: list[ViewEvent]) -> int:
    if not events:
        return 0
    return round_half_up(sum(e.view_duration for e in events) / len(events))


def _utc_date(timestamp_ms: int) -> str:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d")


def listing_analytics(
    events: Iterable[ViewEvent],
    time_range: Optional[str] = None,
    now: Optional[int] = None,
) -> ListingAnalytics:
    """
    Métricas de un listing, opcionalmente acotadas a "24h", "7d" o "30d".

    Un rango desconocido no aplica corte.
    """
    events = list(events)

    window = ANALYTICS_TIME_RANGES.get(time_range) if time_range else None
    if window is not None:
        cutoff = (now if now is not None else now_ms()) - window
        events = [e for e in events if e.timestamp >= cutoff]

    return ListingAnalytics(
        total_views=len(events),
        unique_viewers=len({e.buyer_session_id for e in events if e.buyer_session_id}),
        avg_view_duration=_average_duration(events),
        views_by_type=dict(Counter(e.viewer_type for e in events)),
        most_viewed_images=dict(Counter(idx for e in events for idx in e.images_viewed)),
        views_over_time=dict(Counter(_utc_date(e.timestamp) for e in events)),
    )


def buyer_engagement(
    events: Iterable[ViewEvent],
    offers_submitted: int = 0,
) -> BuyerEngagement:
    """Totales de actividad de un comprador."""
    events = list(events)
    return BuyerEngagement(
        properties_viewed=len({e.listing_id for e in events if e.listing_id}),
        total_views=len(events),
        total_view_time=sum(e.view_duration for e in events),
        avg_view_duration=_average_duration(events),
        offers_submitted=offers_submitted,
    )


def engagement_tier(score: int, high: int = 70, medium: int = 40) -> str:
    """Nivel de engagement: high, medium o low."""
    if score >= high:
        return "high"
    if score >= medium:
        return "medium"
    return "low"


def match_tier(score: int, strong: int = 80, fair: int = 60) -> str:
    """Nivel de match: strong, fair o weak."""
    if score >= strong:
        return "strong"
    if score >= fair:
        return "fair"
    return "weak"


def buyer_insights(
    history: list[EngagementSummary],
    profile: Optional[PreferenceProfile] = None,
    offers_submitted: int = 0,
    high_engagement_threshold: int = 70,
) -> list[BuyerInsight]:
    """
    Observaciones para el agente a partir del historial del comprador.

    - Adherencia al presupuesto: precio promedio visto vs. precio máximo
    - Listings con engagement alto
    - Mucha actividad sin ofertas
    """
    insights = []

    if history and profile is not None and profile.max_price:
        avg_price = sum(s.listing.price for s in history) / len(history)
        adherence = avg_price / profile.max_price * 100
        if adherence < 80:
            insights.append(
                BuyerInsight(
                    kind="budget_conscious",
                    message="Budget-conscious - views properties below max budget",
                    value=adherence,
                )
            )
        elif adherence > 95:
            insights.append(
                BuyerInsight(
                    kind="price_ceiling",
                    message="May need higher budget - viewing at price ceiling",
                    value=adherence,
                )
            )

    high = sum(1 for s in history if s.engagement_score > high_engagement_threshold)
    if high > 0:
        insights.append(
            BuyerInsight(
                kind="high_engagement",
                message=f"{high} properties with high engagement - ready to make offers",
                value=high,
            )
        )

    if len(history) > 5 and offers_submitted == 0:
        insights.append(
            BuyerInsight(
                kind="needs_encouragement",
                message="High activity but no offers yet - may need encouragement",
                value=len(history),
            )
        )

    return insights
