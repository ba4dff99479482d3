"""
Scoring de compatibilidad comprador-listing.

Scorer por reglas (sincrónico) y política de resolución entre el
score de IA y las fórmulas de fallback.
"""

from vitrina.scoring.rule_based import (
    RuleBasedScorer,
    count_feature_matches,
    feature_satisfied,
    round_half_up,
)
from vitrina.scoring.resolution import (
    DEFAULT_MATCH_SCORE,
    fallback_match_score,
    latest_ai_score,
    resolve_match_score,
    should_replace_ai_score,
)

__all__ = [
    "RuleBasedScorer",
    "count_feature_matches",
    "feature_satisfied",
    "round_half_up",
    "DEFAULT_MATCH_SCORE",
    "fallback_match_score",
    "latest_ai_score",
    "resolve_match_score",
    "should_replace_ai_score",
]
