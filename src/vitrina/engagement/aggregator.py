"""
Agregador de engagement.

Pliega el log de visitas por par comprador x listing en estadísticas
resumidas y un engagement score. Es un fold estricto a izquierda: cada
llamada arma sus propios acumuladores locales, así lecturas concurrentes
no comparten estado.

El engagement (interés por comportamiento) y el match score (ajuste a
preferencias declaradas) son ejes independientes y nunca se combinan.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional

from vitrina.models import (
    BuyerSession,
    EngagementSummary,
    ListingRecord,
    ListingViewerSummary,
    PreferenceProfile,
    ViewEvent,
)
from vitrina.scoring import DEFAULT_MATCH_SCORE, resolve_match_score, round_half_up

POINTS_PER_VIEW = 15
SECONDS_PER_POINT = 120
MAX_ENGAGEMENT = 100


def engagement_score(view_count: int, total_time: float) -> int:
    """15 puntos por visita + 1 punto cada 2 minutos acumulados, tope 100."""
    raw = view_count * POINTS_PER_VIEW + total_time / SECONDS_PER_POINT
    return max(0, min(MAX_ENGAGEMENT, round_half_up(raw)))


@dataclass
class GroupAccumulator:
    """Acumulador local de un grupo de visitas."""

    events: list[ViewEvent] = field(default_factory=list)
    view_count: int = 0
    total_time: float = 0.0
    last_viewed: Optional[int] = None
    avg_images_viewed: float = 0.0

    def add(self, event: ViewEvent) -> None:
        self.events.append(event)
        self.view_count += 1
        self.total_time += event.view_duration
        if self.last_viewed is None or event.timestamp > self.last_viewed:
            self.last_viewed = event.timestamp

        # Promedio incremental: depende del orden de iteración de los eventos
        n = self.view_count
        self.avg_images_viewed = (
            self.avg_images_viewed * (n - 1) + event.images_viewed_count
        ) / n

    @property
    def engagement_score(self) -> int:
        return engagement_score(self.view_count, self.total_time)


def fold_events(
    events: Iterable[ViewEvent],
    key: Callable[[ViewEvent], Optional[str]],
) -> dict[str, GroupAccumulator]:
    """
    Agrupa visitas por ``key`` preservando el orden de primera aparición.

    Las visitas cuya clave es None se saltean.
    """
    groups: dict[str, GroupAccumulator] = {}
    for event in events:
        group_key = key(event)
        if group_key is None:
            continue
        groups.setdefault(group_key, GroupAccumulator()).add(event)
    return groups


def aggregate_buyer_activity(
    events: Iterable[ViewEvent],
    listings: Mapping[str, ListingRecord],
    profile: Optional[PreferenceProfile] = None,
    buyer_session_id: Optional[str] = None,
    default_match_score: int = DEFAULT_MATCH_SCORE,
) -> list[EngagementSummary]:
    """
    Historial de actividad de un comprador, por listing.

    Args:
        events: Visitas del comprador en orden de inserción
        listings: Listings conocidos por id; los grupos de listings que ya
            no existen se saltean
        profile: Preferencias del comprador para el fallback de match score
        buyer_session_id: Si se indica, ignora visitas de otras sesiones

    Returns:
        EngagementSummary ordenados por engagement descendente
    """
    if buyer_session_id is not None:
        events = (e for e in events if e.buyer_session_id == buyer_session_id)

    groups = fold_events(events, key=lambda e: e.listing_id)

    summaries = []
    for listing_id, group in groups.items():
        listing = listings.get(listing_id)
        if listing is None:
            continue

        summaries.append(
            EngagementSummary(
                listing=listing,
                view_count=group.view_count,
                total_time=group.total_time,
                last_viewed=group.last_viewed,
                avg_images_viewed=group.avg_images_viewed,
                match_score=resolve_match_score(
                    group.events, profile, listing, default_match_score
                ),
                engagement_score=group.engagement_score,
            )
        )

    return sorted(summaries, key=lambda s: s.engagement_score, reverse=True)


def aggregate_listing_viewers(
    events: Iterable[ViewEvent],
    sessions: Mapping[str, BuyerSession],
    listing: Optional[ListingRecord] = None,
    default_match_score: int = DEFAULT_MATCH_SCORE,
) -> list[ListingViewerSummary]:
    """
    Compradores que vieron un listing, con su actividad sobre él.

    Las visitas anónimas y las de sesiones inexistentes no cuentan.
    """
    if listing is not None:
        events = (e for e in events if e.listing_id == listing.id)

    groups = fold_events(events, key=lambda e: e.buyer_session_id)

    viewers = []
    for session_id, group in groups.items():
        session = sessions.get(session_id)
        if session is None:
            continue

        viewers.append(
            ListingViewerSummary(
                session=session,
                view_count=group.view_count,
                total_time=group.total_time,
                last_viewed=group.last_viewed,
                avg_images_viewed=group.avg_images_viewed,
                match_score=resolve_match_score(
                    group.events, session.preferences, listing, default_match_score
                ),
                engagement_score=group.engagement_score,
            )
        )

    return sorted(viewers, key=lambda v: v.engagement_score, reverse=True)
