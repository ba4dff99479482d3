"""
Vistas derivadas de la actividad de compradores.

Ninguno de estos modelos se persiste: se recalculan en cada lectura
a partir del log de ViewEvents.
"""

from typing import Optional

from pydantic import Field

from vitrina.models.base import ValueModel
from vitrina.models.listing import ListingRecord
from vitrina.models.preferences import BuyerSession


class ViewStats(ValueModel):
    """Estadísticas agregadas de un grupo de visitas."""

    view_count: int = Field(..., ge=0)
    total_time: float = Field(..., ge=0, description="Segundos acumulados")
    last_viewed: int = Field(..., description="Epoch en ms de la última visita")
    avg_images_viewed: float = Field(..., ge=0)
    match_score: int = Field(..., ge=0, le=100, description="Ajuste a preferencias")
    engagement_score: int = Field(..., ge=0, le=100, description="Interés por comportamiento")


class EngagementSummary(ViewStats):
    """Actividad de un comprador sobre un listing."""

    listing: ListingRecord


class ListingViewerSummary(ViewStats):
    """Actividad de un comprador, vista desde un listing."""

    session: BuyerSession


class ListingAnalytics(ValueModel):
    """Métricas de visitas de un listing."""

    total_views: int
    unique_viewers: int
    avg_view_duration: int
    views_by_type: dict[str, int] = Field(default_factory=dict)
    most_viewed_images: dict[int, int] = Field(default_factory=dict)
    views_over_time: dict[str, int] = Field(default_factory=dict)


class BuyerEngagement(ValueModel):
    """Totales de actividad de un comprador."""

    properties_viewed: int
    total_views: int
    total_view_time: float
    avg_view_duration: int
    offers_submitted: int = 0


class BuyerInsight(ValueModel):
    """Observación accionable para el agente."""

    kind: str = Field(..., description="budget_conscious, price_ceiling, high_engagement, ...")
    message: str
    value: Optional[float] = None
