"""
Módulo de análisis con IA.

Provee el scorer de compatibilidad asistido por LLM (Gemini/Groq).
"""

from vitrina.analysis.ai_match_scorer import AIMatchScorer
from vitrina.analysis.llm_providers import (
    get_llm_provider,
    BaseLLMProvider,
    GeminiProvider,
    GroqProvider,
    LLMResponse,
)

__all__ = [
    "AIMatchScorer",
    # Proveedores LLM
    "get_llm_provider",
    "BaseLLMProvider",
    "GeminiProvider",
    "GroqProvider",
    "LLMResponse",
]
