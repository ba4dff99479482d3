"""
Scorer determinístico por reglas.

Parte de 100 y promedia con un score de precio (distancia al punto medio
del rango) y con un score de features requeridas. Dormitorios, baños,
ciudad y tipo son filtros hard del matcher, no entradas del score.
"""

import math
from typing import Iterable, Optional

from vitrina.models import ListingRecord, PreferenceProfile

BASE_SCORE = 100.0


def round_half_up(value: float) -> int:
    """Redondeo .5 hacia arriba (``round`` de Python redondea a par)."""
    return math.floor(value + 0.5)


def feature_satisfied(required: str, listing_features: Iterable[str]) -> bool:
    """Una feature del listing cumple si contiene la requerida (case-insensitive)."""
    needle = required.lower()
    return any(needle in feature.lower() for feature in listing_features)


def count_feature_matches(
    required_features: Iterable[str], listing_features: list[str]
) -> int:
    return sum(
        1 for required in required_features
        if feature_satisfied(required, listing_features)
    )


class RuleBasedScorer:
    """Compatibilidad 0-100 entre un perfil y un listing, sin I/O."""

    def price_score(self, profile: PreferenceProfile, listing: ListingRecord) -> Optional[float]:
        """
        Score de precio, o None si el rango no está definido.

        Un rango vacío o invertido (max <= min) no aporta al score.
        """
        if not profile.has_price_range:
            return None

        price_range = profile.max_price - profile.min_price
        if price_range <= 0:
            return None

        ideal_price = (profile.min_price + profile.max_price) / 2
        price_diff = abs(listing.price - ideal_price)
        return max(0.0, 100 - (price_diff / price_range) * 50)

    def feature_score(self, profile: PreferenceProfile, listing: ListingRecord) -> Optional[float]:
        if not profile.must_have_features:
            return None

        matches = count_feature_matches(profile.must_have_features, listing.features)
        return (matches / len(profile.must_have_features)) * 100

    def score(self, profile: PreferenceProfile, listing: ListingRecord) -> int:
        score = BASE_SCORE

        price_score = self.price_score(profile, listing)
        if price_score is not None:
            score = (score + price_score) / 2

        feature_score = self.feature_score(profile, listing)
        if feature_score is not None:
            score = (score + feature_score) / 2

        return max(0, min(100, round_half_up(score)))
