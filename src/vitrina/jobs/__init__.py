"""
Jobs fuera de banda.

Scoring con IA de visitas de compradores.
"""

from vitrina.jobs.scoring_worker import AIScoringWorker, ScoringJob, build_scoring_job

__all__ = [
    "AIScoringWorker",
    "ScoringJob",
    "build_scoring_job",
]
