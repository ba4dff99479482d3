"""
Worker de scoring con IA.

El path que registra la visita encola un ScoringJob y vuelve enseguida.
Este worker consume la cola, llama al scorer con timeout y escribe el
resultado sobre el evento que originó el job (y solo sobre ese).

Un job fallido no se reintenta acá: el evento queda sin score, que es
un estado válido, y el backfill lo puede levantar después.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog

from vitrina.analysis import AIMatchScorer
from vitrina.config import get_settings
from vitrina.database import (
    BuyerSessionRepository,
    ListingRepository,
    PropertyViewRepository,
)
from vitrina.models import (
    ListingRecord,
    PreferenceProfile,
    PreQualification,
    ViewContext,
    ViewEvent,
)

logger = structlog.get_logger()


@dataclass
class ScoringJob:
    """Snapshot de todo lo que necesita el scoring de una visita."""

    view_id: str
    profile: PreferenceProfile
    listing: ListingRecord
    view_context: ViewContext
    pre_qualification: Optional[PreQualification] = None


def build_scoring_job(
    event: ViewEvent,
    session_repo: BuyerSessionRepository,
    listing_repo: ListingRepository,
) -> Optional[ScoringJob]:
    """
    Arma el job de una visita de comprador.

    Returns:
        ScoringJob, o None si la visita es anónima o falta la sesión o el listing
    """
    if not event.id or not event.buyer_session_id or not event.listing_id:
        return None

    session = session_repo.get_by_id(event.buyer_session_id)
    listing = listing_repo.get_by_id(event.listing_id)
    if session is None or listing is None:
        logger.warning(
            "Falta sesión o listing para scoring",
            view_id=event.id,
            session_found=session is not None,
            listing_found=listing is not None,
        )
        return None

    return ScoringJob(
        view_id=event.id,
        profile=session.preferences,
        listing=listing,
        view_context=event.context,
        pre_qualification=session.pre_qualification,
    )


class AIScoringWorker:
    """
    Consumidor de la cola de scoring.

    Flujo:
    1. enqueue() desde el path de escritura (no bloquea)
    2. N tareas consumen la cola en paralelo
    3. Cada job: score con timeout -> compare-and-set sobre su evento
    """

    def __init__(
        self,
        scorer: Optional[AIMatchScorer] = None,
        view_repo: Optional[PropertyViewRepository] = None,
        concurrency: Optional[int] = None,
        queue_size: Optional[int] = None,
    ):
        settings = get_settings()
        self.scorer = scorer or AIMatchScorer()
        self.view_repo = view_repo or PropertyViewRepository()
        self.concurrency = concurrency or settings.ai_scoring_concurrency
        self.queue: asyncio.Queue = asyncio.Queue(
            maxsize=queue_size or settings.ai_scoring_queue_size
        )
        self.stats = {
            "enqueued": 0,
            "dropped": 0,
            "scored": 0,
            "failed": 0,
            "stored": 0,
            "rejected": 0,
            "errors": 0,
        }
        self._tasks: list[asyncio.Task] = []

    def enqueue(self, job: ScoringJob) -> bool:
        """
        Encola un job sin bloquear.

        Returns:
            False si la cola está llena y el job se descartó
        """
        try:
            self.queue.put_nowait(job)
        except asyncio.QueueFull:
            self.stats["dropped"] += 1
            logger.warning("Cola de scoring llena, job descartado", view_id=job.view_id)
            return False

        self.stats["enqueued"] += 1
        return True

    async def process(self, job: ScoringJob) -> bool:
        """Procesa un job. Devuelve True si el score quedó guardado."""
        result = await self.scorer.score_async(
            job.profile,
            job.listing,
            job.view_context,
            pre_qualification=job.pre_qualification,
        )
        if result is None:
            self.stats["failed"] += 1
            return False

        self.stats["scored"] += 1
        stored = await asyncio.to_thread(
            self.view_repo.attach_ai_match_score, job.view_id, result
        )
        if stored:
            self.stats["stored"] += 1
        else:
            self.stats["rejected"] += 1
        return stored

    async def _consume(self) -> None:
        while True:
            job = await self.queue.get()
            try:
                await self.process(job)
            except Exception as e:
                self.stats["errors"] += 1
                logger.error("Error procesando job de scoring", view_id=job.view_id, error=str(e))
            finally:
                self.queue.task_done()

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Lanza las tareas consumidoras en el loop actual."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self._consume(), name=f"ai-scoring-{i}")
            for i in range(self.concurrency)
        ]
        logger.info("Worker de scoring iniciado", concurrency=self.concurrency)

    async def drain(self) -> dict:
        """Procesa todo lo encolado y devuelve las estadísticas."""
        self.start()
        await self.queue.join()
        return dict(self.stats)

    async def stop(self) -> None:
        """Cancela las tareas consumidoras."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Worker de scoring detenido", **self.stats)
