"""
Perfil de preferencias y sesión de comprador.

Define los criterios declarados por el comprador. Todo campo ausente
significa "sin restricción", nunca cero.
"""

from typing import Optional

from pydantic import Field

from vitrina.models.base import ValueModel


class PreferenceProfile(ValueModel):
    """
    Criterios de búsqueda declarados por el comprador.

    Precio, ciudad, tipo y features se usan como filtros hard en el
    matching; solo precio y features afectan el score numérico.
    """

    min_price: Optional[float] = Field(None, description="Precio mínimo")
    max_price: Optional[float] = Field(None, description="Precio máximo")
    bedrooms: Optional[int] = Field(None, description="Mínimo de dormitorios")
    bathrooms: Optional[float] = Field(None, description="Mínimo de baños")
    property_types: list[str] = Field(
        default_factory=list, description="Tipos aceptables: single-family, condo, ..."
    )
    cities: list[str] = Field(
        default_factory=list, description="Ciudades aceptables"
    )
    must_have_features: list[str] = Field(
        default_factory=list, description="Features requeridas (match por substring)"
    )

    @property
    def has_price_range(self) -> bool:
        return self.min_price is not None and self.max_price is not None


class PreQualification(ValueModel):
    """Pre-aprobación hipotecaria del comprador."""

    amount: float
    lender: str = ""
    expiration_date: Optional[int] = None
    verified: bool = False


class BuyerSession(ValueModel):
    """
    Sesión de comprador sin login.

    Identidad liviana que representa la visita de un comprador al portal
    y contiene su perfil de preferencias.
    """

    id: str = Field(..., description="UUID de la sesión")
    agent_id: Optional[str] = Field(None, description="Agente dueño de la sesión")
    session_code: Optional[str] = Field(None, description="Código de acceso al portal")
    buyer_name: str = Field(default="", description="Nombre del comprador")
    buyer_email: Optional[str] = None
    buyer_phone: Optional[str] = None
    preferences: PreferenceProfile = Field(default_factory=PreferenceProfile)
    pre_qualification: Optional[PreQualification] = None
    active: bool = True
