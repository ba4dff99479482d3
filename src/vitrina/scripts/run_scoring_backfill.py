"""
Script para calcular scores de IA pendientes.

Busca visitas de compradores sin ai_match_score (el worker falló, hubo
timeout o el proceso se cayó entre la visita y el scoring) y las pasa
una vez por el worker. Es el camino de reintento fuera de banda.

Uso:
    python -m vitrina.scripts.run_scoring_backfill
    python -m vitrina.scripts.run_scoring_backfill --limit 50
"""

import argparse
import asyncio
import logging
import sys
import warnings

import structlog

# Suprimir warnings de cleanup de asyncio en Windows
warnings.filterwarnings("ignore", category=ResourceWarning, message=".*unclosed transport.*")

from vitrina.config import get_settings
from vitrina.database import (
    BuyerSessionRepository,
    ListingRepository,
    PropertyViewRepository,
)
from vitrina.jobs import AIScoringWorker, build_scoring_job

# Configurar logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    force=True,
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


async def run_backfill(limit: int = 100) -> dict:
    """
    Encola las visitas sin score y espera a que el worker las procese.

    Args:
        limit: Máximo de visitas a procesar
    """
    view_repo = PropertyViewRepository()
    session_repo = BuyerSessionRepository()
    listing_repo = ListingRepository()
    worker = AIScoringWorker(view_repo=view_repo, queue_size=max(limit, 1))

    pending = view_repo.get_unscored_buyer_views(limit=limit)
    logger.info("Visitas pendientes de scoring", pending=len(pending))

    skipped = 0
    for event in pending:
        job = build_scoring_job(event, session_repo, listing_repo)
        if job is None:
            skipped += 1
            continue
        worker.enqueue(job)

    try:
        stats = await worker.drain()
    finally:
        await worker.stop()

    stats["skipped"] = skipped
    logger.info("Backfill completado", **stats)
    return stats


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(
        description="Calcula scores de IA pendientes"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Máximo de visitas a procesar",
    )

    args = parser.parse_args()

    try:
        stats = asyncio.run(run_backfill(limit=args.limit))
        sys.exit(0 if stats["errors"] == 0 else 1)
    except KeyboardInterrupt:
        logger.info("Backfill interrumpido por usuario")
        sys.exit(130)
    except Exception as e:
        logger.error("Error fatal en backfill", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
