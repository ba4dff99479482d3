"""
Resolución del match score autoritativo por par comprador x listing.

Orden de precedencia:
1. El score de IA con ``calculated_at`` más reciente entre todas las
   visitas del par (gana el último *cálculo*, no la última visita).
2. Fórmula simplificada de penalizaciones sobre las preferencias.
3. Placeholder de primera visita (70).

Se reevalúa en cada lectura; no hay caché entre requests.
"""

from typing import Iterable, Optional

from vitrina.models import AIMatchScore, ListingRecord, PreferenceProfile, ViewEvent

DEFAULT_MATCH_SCORE = 70

PRICE_PENALTY = 20
ROOMS_PENALTY = 15


def latest_ai_score(events: Iterable[ViewEvent]) -> Optional[AIMatchScore]:
    """
    Devuelve el score de IA con ``calculated_at`` más alto.

    Compara siempre por ``calculated_at`` y nunca por orden de inserción,
    así un cálculo lento de una visita vieja no pisa uno más nuevo.
    En empate se queda el primero encontrado.
    """
    latest: Optional[AIMatchScore] = None
    for event in events:
        candidate = event.ai_match_score
        if candidate is None:
            continue
        if latest is None or candidate.calculated_at > latest.calculated_at:
            latest = candidate
    return latest


def should_replace_ai_score(
    existing: Optional[AIMatchScore], incoming: AIMatchScore
) -> bool:
    """Compare-and-set: solo se reemplaza con un ``calculated_at`` estrictamente mayor."""
    if existing is None:
        return True
    return incoming.calculated_at > existing.calculated_at


def fallback_match_score(profile: PreferenceProfile, listing: ListingRecord) -> int:
    """Fórmula de penalizaciones usada mientras no haya score de IA."""
    score = 100

    if profile.min_price is not None and listing.price < profile.min_price:
        score -= PRICE_PENALTY
    if profile.max_price is not None and listing.price > profile.max_price:
        score -= PRICE_PENALTY
    if profile.bedrooms is not None and listing.bedrooms < profile.bedrooms:
        score -= ROOMS_PENALTY
    if profile.bathrooms is not None and listing.bathrooms < profile.bathrooms:
        score -= ROOMS_PENALTY

    return max(0, score)


def resolve_match_score(
    events: Iterable[ViewEvent],
    profile: Optional[PreferenceProfile] = None,
    listing: Optional[ListingRecord] = None,
    default_score: int = DEFAULT_MATCH_SCORE,
) -> int:
    """Match score vigente del par a partir de sus visitas."""
    ai_score = latest_ai_score(events)
    if ai_score is not None:
        return ai_score.score

    if profile is not None and listing is not None:
        return fallback_match_score(profile, listing)

    return default_score
