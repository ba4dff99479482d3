"""
Eventos de visualización de propiedades.

Los eventos son append-only: la única mutación permitida es adjuntar
el ``ai_match_score`` calculado de forma asincrónica.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, field_validator

from vitrina.models.base import ValueModel

# Puntaje máximo por categoría en el scoring con IA (suman 100)
CATEGORY_WEIGHTS = {
    "price": 30,
    "location": 20,
    "property_type": 15,
    "rooms": 15,
    "features": 20,
}


class ScoreBreakdown(ValueModel):
    """Desglose del score de IA por categoría."""

    price: float = Field(0, ge=0, le=30)
    location: float = Field(0, ge=0, le=20)
    property_type: float = Field(0, ge=0, le=15)
    rooms: float = Field(0, ge=0, le=15)
    features: float = Field(0, ge=0, le=20)


class AIMatchScore(ValueModel):
    """Score de IA adjunto a un único ViewEvent."""

    score: int = Field(..., description="Compatibilidad 0-100")
    calculated_at: int = Field(..., description="Epoch en ms del cálculo")
    breakdown: Optional[ScoreBreakdown] = None
    reasoning: str = ""
    model: Optional[str] = None
    provider: Optional[str] = None

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value):
        clamped = max(0.0, min(100.0, float(value)))
        return int(clamped + 0.5)


class ViewContext(ValueModel):
    """Detalle de interacción de la visita que dispara el scoring."""

    view_duration: float = 0
    images_viewed: list[int] = Field(default_factory=list)
    sections_visited: list[str] = Field(default_factory=list)


class ViewEvent(ValueModel):
    """Una visita registrada de un listing."""

    id: Optional[str] = Field(None, description="UUID generado por el event store")
    listing_id: Optional[str] = Field(None, description="FK al listing")
    buyer_session_id: Optional[str] = Field(
        None, description="FK a la sesión (ausente en visitas anónimas)"
    )
    viewer_type: str = Field("buyer", description="buyer, anonymous o agent")
    view_duration: float = Field(0, ge=0, description="Duración en segundos")
    images_viewed: list[int] = Field(default_factory=list)
    videos_watched: list[int] = Field(default_factory=list)
    sections_visited: list[str] = Field(default_factory=list)
    timestamp: int = Field(..., description="Epoch en ms de la visita")
    ai_match_score: Optional[AIMatchScore] = None

    @property
    def images_viewed_count(self) -> int:
        """Cantidad de imágenes distintas vistas."""
        return len(set(self.images_viewed))

    @property
    def context(self) -> ViewContext:
        return ViewContext(
            view_duration=self.view_duration,
            images_viewed=self.images_viewed,
            sections_visited=self.sections_visited,
        )

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        data = self.model_dump(exclude={"id"})
        if self.ai_match_score is None:
            data.pop("ai_match_score")
        return data


def now_ms() -> int:
    """Epoch actual en milisegundos (UTC), el formato de timestamps del event store."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)
