"""
Matcher de listings contra un perfil de comprador.

Pasada gruesa sincrónica: filtros hard, scoring por reglas y orden
descendente. No hace I/O ni llama al LLM.
"""

from typing import Iterable, Optional

from vitrina.models import ListingRecord, MatchedListing, PreferenceProfile
from vitrina.scoring import RuleBasedScorer, feature_satisfied


class ListingMatcher:
    """Filtra y rankea el catálogo para un perfil."""

    def __init__(self, scorer: Optional[RuleBasedScorer] = None):
        self.scorer = scorer or RuleBasedScorer()

    def passes_filters(self, profile: PreferenceProfile, listing: ListingRecord) -> bool:
        """Filtros hard combinados con AND. Campo ausente = sin restricción."""
        if not listing.is_active:
            return False

        if profile.min_price is not None and listing.price < profile.min_price:
            return False
        if profile.max_price is not None and listing.price > profile.max_price:
            return False

        if profile.bedrooms is not None and listing.bedrooms < profile.bedrooms:
            return False
        if profile.bathrooms is not None and listing.bathrooms < profile.bathrooms:
            return False

        if profile.cities:
            city = listing.city.lower()
            if not any(city == wanted.lower() for wanted in profile.cities):
                return False

        if profile.property_types and listing.property_type not in profile.property_types:
            return False

        if profile.must_have_features and not all(
            feature_satisfied(required, listing.features)
            for required in profile.must_have_features
        ):
            return False

        return True

    def match(
        self,
        profile: PreferenceProfile,
        catalog: Iterable[ListingRecord],
    ) -> list[MatchedListing]:
        """
        Devuelve los listings que pasan los filtros, con su match score.

        El orden es descendente por score; en empate se respeta el orden
        del catálogo (``sorted`` es estable también con reverse=True).
        """
        matches = [
            MatchedListing(listing=listing, match_score=self.scorer.score(profile, listing))
            for listing in catalog
            if self.passes_filters(profile, listing)
        ]
        return sorted(matches, key=lambda m: m.match_score, reverse=True)
