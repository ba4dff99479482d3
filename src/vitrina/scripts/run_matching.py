"""
Script para consultar matches e historial de un comprador.

Imprime en JSON los listings recomendados para la sesión y, con
--history, su actividad por listing con engagement y match score.

Uso:
    python -m vitrina.scripts.run_matching --session-id <uuid>
    python -m vitrina.scripts.run_matching --session-id <uuid> --limit 10 --history
"""

import argparse
import json
import logging
import sys

import structlog

from vitrina.config import get_settings
from vitrina.engagement import EngagementService, engagement_tier, match_tier
from vitrina.matching import MatchingEngine

# Configurar logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(message)s",
    stream=sys.stderr,
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


def build_report(session_id: str, limit: int, include_history: bool) -> dict:
    """Arma el reporte de matches (y opcionalmente historial) de la sesión."""
    matches = MatchingEngine().get_matching_listings(session_id, limit=limit)
    report = {
        "sessionId": session_id,
        "matches": [
            {**m.to_api_dict(), "matchTier": match_tier(
                m.match_score,
                strong=settings.strong_match_threshold,
                fair=settings.fair_match_threshold,
            )}
            for m in matches
        ],
    }

    if include_history:
        history = EngagementService().get_buyer_view_history(session_id)
        report["viewHistory"] = [
            {**item.to_api_dict(), "engagementTier": engagement_tier(
                item.engagement_score,
                high=settings.high_engagement_threshold,
                medium=settings.medium_engagement_threshold,
            )}
            for item in history
        ]

    return report


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(
        description="Muestra matches e historial de un comprador"
    )
    parser.add_argument("--session-id", required=True, help="UUID de la sesión de comprador")
    parser.add_argument("--limit", type=int, default=20, help="Máximo de matches a mostrar")
    parser.add_argument(
        "--history",
        action="store_true",
        help="Incluir historial de visitas con engagement",
    )
    args = parser.parse_args()

    try:
        report = build_report(args.session_id, args.limit, args.history)
    except KeyboardInterrupt:
        logger.info("Matching interrumpido por usuario")
        sys.exit(130)
    except ValueError as e:
        logger.error("Consulta inválida", error=str(e))
        sys.exit(1)
    except Exception as e:
        logger.error("Error fatal en matching", error=str(e))
        sys.exit(1)

    print(json.dumps(report, indent=2, ensure_ascii=False))
    logger.info(
        "Matching completado",
        matches=len(report["matches"]),
        history=len(report.get("viewHistory", [])),
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
