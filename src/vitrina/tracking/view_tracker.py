"""
Registro de visitas de propiedades.

Inserta el ViewEvent y, si la visita es de un comprador, encola el
scoring con IA. El scoring nunca bloquea ni hace fallar la escritura.
"""

from typing import Callable, Iterable, Optional

import structlog

from vitrina.config import VIEWER_TYPES
from vitrina.database import (
    BuyerSessionRepository,
    ListingRepository,
    PropertyViewRepository,
)
from vitrina.jobs import AIScoringWorker, build_scoring_job
from vitrina.models import ViewEvent, now_ms

logger = structlog.get_logger()


class ViewTracker:
    """Punto de entrada para registrar visitas."""

    def __init__(
        self,
        view_repo: Optional[PropertyViewRepository] = None,
        session_repo: Optional[BuyerSessionRepository] = None,
        listing_repo: Optional[ListingRepository] = None,
        worker: Optional[AIScoringWorker] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.view_repo = view_repo or PropertyViewRepository()
        self.session_repo = session_repo or BuyerSessionRepository()
        self.listing_repo = listing_repo or ListingRepository()
        self.worker = worker
        self._clock = clock

    def track_view(
        self,
        listing_id: str,
        viewer_type: str,
        view_duration: float,
        buyer_session_id: Optional[str] = None,
        images_viewed: Iterable[int] = (),
        videos_watched: Iterable[int] = (),
        sections_visited: Iterable[str] = (),
    ) -> Optional[str]:
        """
        Registra una visita.

        Returns:
            ID de la visita creada, o None si el insert no devolvió fila

        Raises:
            ValueError: si ``viewer_type`` no es buyer, anonymous ni agent
        """
        if viewer_type not in VIEWER_TYPES:
            raise ValueError(f"Tipo de visitante inválido: {viewer_type}")

        event = ViewEvent(
            listing_id=listing_id,
            buyer_session_id=buyer_session_id,
            viewer_type=viewer_type,
            view_duration=view_duration,
            images_viewed=list(images_viewed),
            videos_watched=list(videos_watched),
            sections_visited=list(sections_visited),
            timestamp=self._clock(),
        )

        created = self.view_repo.create(event)
        if created is None or not created.id:
            logger.error("La visita no se pudo registrar", listing_id=listing_id)
            return None

        if created.buyer_session_id:
            self._schedule_scoring(created)

        return created.id

    def _schedule_scoring(self, event: ViewEvent) -> None:
        if self.worker is None:
            return

        try:
            job = build_scoring_job(event, self.session_repo, self.listing_repo)
        except Exception as e:
            # La visita ya quedó registrada; sin score es un estado válido
            logger.warning("No se pudo armar el job de scoring", view_id=event.id, error=str(e))
            return

        if job is not None:
            self.worker.enqueue(job)
