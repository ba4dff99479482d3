"""
Repositorios sobre Supabase.

Cada repositorio maneja una tabla y devuelve modelos validados. Las filas
que no validan se descartan con un warning en lugar de cortar la lectura.
"""

from typing import Iterable, Optional, TypeVar

import structlog
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from vitrina.database.supabase_client import get_supabase_client, SupabaseClient
from vitrina.models import (
    AIMatchScore,
    BuyerSession,
    ListingRecord,
    ViewEvent,
)
from vitrina.scoring import should_replace_ai_score

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_rows(model: type[ModelT], rows: Iterable[dict], table: str) -> list[ModelT]:
    """Valida filas de Supabase salteando las malformadas."""
    parsed = []
    for row in rows or []:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning(
                "Fila inválida descartada",
                table=table,
                row_id=row.get("id") if isinstance(row, dict) else None,
                error=str(e),
            )
    return parsed


class BaseRepository:
    """Clase base para repositorios."""

    TABLE = ""
    MODEL: type[BaseModel] = BaseModel

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client

    def _parse(self, rows: Iterable[dict]) -> list:
        return parse_rows(self.MODEL, rows, self.TABLE)

    def _get_one(self, column: str, value) -> Optional[BaseModel]:
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        parsed = self._parse(response.data)
        return parsed[0] if parsed else None


class BuyerSessionRepository(BaseRepository):
    """Repositorio para sesiones de comprador."""

    TABLE = "buyer_sessions"
    MODEL = BuyerSession

    def get_by_id(self, session_id: str) -> Optional[BuyerSession]:
        """Obtiene una sesión por su UUID."""
        return self._get_one("id", session_id)

    def get_many(self, session_ids: Iterable[str]) -> dict[str, BuyerSession]:
        """Obtiene varias sesiones indexadas por UUID."""
        ids = list(dict.fromkeys(session_ids))
        if not ids:
            return {}
        response = self.client.table(self.TABLE).select("*").in_("id", ids).execute()
        return {session.id: session for session in self._parse(response.data)}


class ListingRepository(BaseRepository):
    """Repositorio para el catálogo de listings."""

    TABLE = "listings"
    MODEL = ListingRecord

    def get_by_id(self, listing_id: str) -> Optional[ListingRecord]:
        """Obtiene un listing por su id."""
        return self._get_one("id", listing_id)

    def get_active(self) -> list[ListingRecord]:
        """
        Obtiene el catálogo activo.

        Ordenado por ``created_at`` para que los empates del matching
        sean estables entre requests.
        """
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("status", "active")
            .order("created_at")
            .execute()
        )
        return self._parse(response.data)

    def get_many(self, listing_ids: Iterable[str]) -> dict[str, ListingRecord]:
        """Obtiene varios listings indexados por id (los borrados no aparecen)."""
        ids = list(dict.fromkeys(listing_ids))
        if not ids:
            return {}
        response = self.client.table(self.TABLE).select("*").in_("id", ids).execute()
        return {listing.id: listing for listing in self._parse(response.data)}


class PropertyViewRepository(BaseRepository):
    """Repositorio para el log de visitas (property_views)."""

    TABLE = "property_views"
    MODEL = ViewEvent

    def create(self, event: ViewEvent) -> Optional[ViewEvent]:
        """
        Inserta una visita.

        Returns:
            El evento insertado con su ID
        """
        response = self.client.table(self.TABLE).insert(event.to_db_dict()).execute()
        created = self._parse(response.data)
        logger.info(
            "Visita registrada",
            listing_id=event.listing_id,
            buyer_session_id=event.buyer_session_id,
            viewer_type=event.viewer_type,
        )
        return created[0] if created else None

    def get_by_id(self, view_id: str) -> Optional[ViewEvent]:
        return self._get_one("id", view_id)

    def get_by_buyer_session(self, buyer_session_id: str) -> list[ViewEvent]:
        """Visitas de un comprador en orden de inserción."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("buyer_session_id", buyer_session_id)
            .order("timestamp")
            .execute()
        )
        return self._parse(response.data)

    def get_by_listing(self, listing_id: str) -> list[ViewEvent]:
        """Visitas de un listing en orden de inserción."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("listing_id", listing_id)
            .order("timestamp")
            .execute()
        )
        return self._parse(response.data)

    def get_unscored_buyer_views(self, limit: int = 100) -> list[ViewEvent]:
        """Visitas de compradores que todavía no tienen score de IA."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .is_("ai_match_score", "null")
            .not_.is_("buyer_session_id", "null")
            .order("timestamp", desc=True)
            .limit(limit)
            .execute()
        )
        return self._parse(response.data)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def _conditional_update(self, view_id: str, ai_score: AIMatchScore) -> list:
        # El filtro repite el compare-and-set del lado de Postgres
        response = (
            self.client.table(self.TABLE)
            .update({"ai_match_score": ai_score.model_dump()})
            .eq("id", view_id)
            .or_(
                "ai_match_score.is.null,"
                f"ai_match_score->calculated_at.lt.{ai_score.calculated_at}"
            )
            .execute()
        )
        return response.data

    def attach_ai_match_score(self, view_id: str, ai_score: AIMatchScore) -> bool:
        """
        Adjunta un score de IA a una única visita.

        Solo escribe si ``calculated_at`` es estrictamente mayor que el
        guardado, así un cálculo lento no pisa uno más nuevo.

        Returns:
            True si el score quedó guardado
        """
        current = self.get_by_id(view_id)
        if current is None:
            logger.warning("Visita no encontrada para adjuntar score", view_id=view_id)
            return False

        if not should_replace_ai_score(current.ai_match_score, ai_score):
            logger.info(
                "Score de IA descartado: hay uno igual o más nuevo",
                view_id=view_id,
                incoming=ai_score.calculated_at,
                existing=current.ai_match_score.calculated_at,
            )
            return False

        try:
            data = self._conditional_update(view_id, ai_score)
        except Exception as e:
            logger.error("Error guardando score de IA", view_id=view_id, error=str(e))
            return False

        if not data:
            logger.info("Score de IA descartado por compare-and-set", view_id=view_id)
            return False

        logger.info("Score de IA guardado", view_id=view_id, score=ai_score.score)
        return True
