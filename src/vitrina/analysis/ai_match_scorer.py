"""
Scorer de compatibilidad asistido por LLM.

Se ejecuta fuera de banda, después de registrar una visita de comprador.
Suma señales que el scorer por reglas no ve: texto libre de las features,
qué secciones e imágenes miró el comprador y cuánto tiempo se quedó.

Cualquier falla (timeout, error del proveedor, JSON inválido) devuelve
None: el evento queda sin score y la resolución usa el fallback.
"""

import asyncio
import json
from typing import Callable, Optional

import structlog

from vitrina.analysis.llm_providers import BaseLLMProvider, get_llm_provider
from vitrina.config import get_settings
from vitrina.models import (
    AIMatchScore,
    CATEGORY_WEIGHTS,
    ListingRecord,
    PreferenceProfile,
    PreQualification,
    ScoreBreakdown,
    ViewContext,
    now_ms,
)

logger = structlog.get_logger()


MATCH_SYSTEM_PROMPT = (
    "You are a real estate matching AI. You only answer with a single valid JSON object."
)

MATCH_USER_PROMPT_TEMPLATE = """Calculate how well this property matches the buyer's preferences on a scale of 0-100.

BUYER PREFERENCES:
- Budget: {budget}
- Bedrooms: {bedrooms}+
- Bathrooms: {bathrooms}+
- Property Types: {property_types}
- Preferred Cities: {cities}
- Must-Have Features: {must_haves}
{pre_qualification}
PROPERTY DETAILS:
- Address: {address}
- Price: {price}
- Bedrooms: {listing_bedrooms}
- Bathrooms: {listing_bathrooms}
- Square Feet: {sqft}
- Property Type: {property_type}
- Features: {features}
{extra_details}
BUYER BEHAVIOR ON THIS VIEW:
- Time on page: {view_duration} seconds
- Images viewed: {images_viewed}
- Sections visited: {sections_visited}

SCORING CRITERIA:
1. Price Match (30 points): How well does the price fit the budget?
2. Location Match (20 points): Is it in a preferred city?
3. Property Type Match (15 points): Is it their preferred type?
4. Bedroom/Bathroom Match (15 points): Does it meet minimum requirements?
5. Features Match (20 points): How many must-have features does it have? Match free-text features by meaning, not exact wording.

Return ONLY a JSON object with this exact structure:
{{
  "matchScore": <number 0-100>,
  "breakdown": {{
    "price": <number 0-30>,
    "location": <number 0-20>,
    "propertyType": <number 0-15>,
    "rooms": <number 0-15>,
    "features": <number 0-20>
  }},
  "reasoning": "<2-3 sentence explanation>"
}}"""

# Claves del breakdown en la respuesta del LLM -> campo del modelo
_BREAKDOWN_KEYS = {
    "price": "price",
    "location": "location",
    "propertyType": "property_type",
    "property_type": "property_type",
    "rooms": "rooms",
    "features": "features",
}

MAX_REASONING_CHARS = 600


def _money(value: Optional[float]) -> str:
    if value is None:
        return "unlimited"
    return f"${value:,.0f}"


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1].strip()
            if text.startswith("json"):
                text = text[4:].strip()
    return text


class AIMatchScorer:
    """Calcula un AIMatchScore para un perfil, un listing y una visita."""

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], int] = now_ms,
    ):
        settings = get_settings()
        self._provider = provider or get_llm_provider()
        self.timeout_seconds = timeout_seconds or settings.ai_scoring_timeout_seconds
        self.temperature = settings.ai_scoring_temperature
        self.max_tokens = settings.ai_scoring_max_tokens
        self._clock = clock

    def build_prompt(
        self,
        profile: PreferenceProfile,
        listing: ListingRecord,
        view_context: ViewContext,
        pre_qualification: Optional[PreQualification] = None,
    ) -> str:
        if profile.min_price is None and profile.max_price is None:
            budget = "any"
        else:
            budget = f"{_money(profile.min_price or 0)} - {_money(profile.max_price)}"

        pre_qualified = ""
        if pre_qualification is not None:
            pre_qualified = f"- Pre-qualified: {_money(pre_qualification.amount)}\n"

        extra = []
        if listing.year_built:
            extra.append(f"- Year Built: {listing.year_built}")
        if listing.lot_size:
            extra.append(f"- Lot Size: {listing.lot_size:,.0f} sqft")
        if listing.description:
            extra.append(f"- Description: {listing.description[:800]}")

        location = ", ".join(
            part for part in (listing.address, listing.city, listing.state) if part
        )

        return MATCH_USER_PROMPT_TEMPLATE.format(
            budget=budget,
            bedrooms=profile.bedrooms if profile.bedrooms is not None else "any",
            bathrooms=profile.bathrooms if profile.bathrooms is not None else "any",
            property_types=", ".join(profile.property_types) or "any",
            cities=", ".join(profile.cities) or "any",
            must_haves=", ".join(profile.must_have_features) or "none specified",
            pre_qualification=pre_qualified,
            address=location or "unknown",
            price=_money(listing.price),
            listing_bedrooms=listing.bedrooms,
            listing_bathrooms=listing.bathrooms,
            sqft=f"{listing.sqft:,.0f}" if listing.sqft else "unknown",
            property_type=listing.property_type or "unknown",
            features=", ".join(listing.features) or "none listed",
            extra_details="\n".join(extra) + ("\n" if extra else ""),
            view_duration=round(view_context.view_duration),
            images_viewed=len(set(view_context.images_viewed)),
            sections_visited=", ".join(view_context.sections_visited) or "none",
        )

    def parse_response(self, text: str, model: str = "", provider: str = "") -> AIMatchScore:
        """
        Convierte la respuesta del LLM en un AIMatchScore.

        El score se acota a 0-100 y cada categoría del breakdown a su peso.

        Raises:
            ValueError: si la respuesta está vacía, no es JSON o no trae score
        """
        text = _strip_code_fences(text or "")
        if not text:
            raise ValueError("Respuesta vacía del LLM")

        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("La respuesta del LLM no es un objeto JSON")

        raw_score = data.get("matchScore", data.get("match_score"))
        if raw_score is None:
            raise ValueError("La respuesta del LLM no trae matchScore")

        breakdown = None
        raw_breakdown = data.get("breakdown")
        if isinstance(raw_breakdown, dict):
            values = {}
            for key, value in raw_breakdown.items():
                field = _BREAKDOWN_KEYS.get(key)
                if field is None:
                    continue
                try:
                    number = float(value)
                except (TypeError, ValueError):
                    continue
                values[field] = max(0.0, min(float(CATEGORY_WEIGHTS[field]), number))
            breakdown = ScoreBreakdown(**values)

        return AIMatchScore(
            score=float(raw_score),
            calculated_at=self._clock(),
            breakdown=breakdown,
            reasoning=str(data.get("reasoning", "")).strip()[:MAX_REASONING_CHARS],
            model=model or None,
            provider=provider or None,
        )

    async def score_async(
        self,
        profile: PreferenceProfile,
        listing: ListingRecord,
        view_context: ViewContext,
        pre_qualification: Optional[PreQualification] = None,
    ) -> Optional[AIMatchScore]:
        """
        Calcula el score con el LLM, acotado por ``timeout_seconds``.

        Returns:
            AIMatchScore, o None si el proveedor falla o no responde a tiempo
        """
        prompt = self.build_prompt(profile, listing, view_context, pre_qualification)

        try:
            response = await asyncio.wait_for(
                self._provider.generate_json(
                    system_prompt=MATCH_SYSTEM_PROMPT,
                    user_prompt=prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Timeout calculando match score con IA",
                listing_id=listing.id,
                timeout=self.timeout_seconds,
            )
            return None
        except Exception as e:
            logger.warning(
                "Error del proveedor calculando match score",
                listing_id=listing.id,
                error=str(e),
            )
            return None

        try:
            result = self.parse_response(
                response.text, model=response.model, provider=response.provider
            )
        except (ValueError, TypeError) as e:
            logger.warning(
                "Respuesta de IA inválida para match score",
                listing_id=listing.id,
                error=str(e),
            )
            return None

        logger.info(
            "Match score con IA calculado",
            listing_id=listing.id,
            score=result.score,
            provider=result.provider,
        )
        return result
