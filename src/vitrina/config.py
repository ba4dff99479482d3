"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py -> vitrina/ -> src/ -> raíz del proyecto (donde está el .env)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: Optional[str] = Field(None, description="URL del proyecto Supabase")
    supabase_key: Optional[str] = Field(None, description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # LLM Provider
    llm_provider: str = Field(
        "groq",
        description="Proveedor de LLM a usar: 'gemini' o 'groq'"
    )

    # Gemini
    gemini_api_key: Optional[str] = Field(None, description="API key de Google Gemini")
    gemini_model: str = Field("gemini-2.0-flash", description="Modelo de Gemini a usar")

    # Groq
    groq_api_key: Optional[str] = Field(None, description="API key de Groq")
    groq_model: str = Field(
        "llama-3.3-70b-versatile",
        description="Modelo de Groq a usar (llama-3.1-8b-instant, llama-3.3-70b-versatile)"
    )

    # Scoring con IA
    ai_scoring_timeout_seconds: float = Field(
        20.0, gt=0, description="Timeout de una llamada de scoring al LLM (segundos)"
    )
    ai_scoring_temperature: float = Field(0.3, ge=0.0, le=1.0)
    ai_scoring_max_tokens: int = Field(400, ge=1)
    ai_scoring_concurrency: int = Field(
        4, ge=1, description="Tareas concurrentes consumiendo la cola de scoring"
    )
    ai_scoring_queue_size: int = Field(
        1000, ge=1, description="Capacidad máxima de la cola de scoring"
    )

    # Match score
    default_match_score: int = Field(
        70, ge=0, le=100, description="Placeholder cuando todavía no hay score"
    )
    strong_match_threshold: int = Field(80, ge=0, le=100)
    fair_match_threshold: int = Field(60, ge=0, le=100)

    # Engagement
    high_engagement_threshold: int = Field(70, ge=0, le=100)
    medium_engagement_threshold: int = Field(40, ge=0, le=100)

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema
VIEWER_TYPES = ["buyer", "anonymous", "agent"]

ANALYTICS_TIME_RANGES = {
    "24h": 24 * 60 * 60 * 1000,
    "7d": 7 * 24 * 60 * 60 * 1000,
    "30d": 30 * 24 * 60 * 60 * 1000,
}
