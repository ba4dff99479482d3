"""
Listings del catálogo.

Solo los listings con status "active" participan del matching.
"""

from typing import Literal, Optional

from pydantic import Field

from vitrina.models.base import ValueModel

ListingStatus = Literal["active", "pending", "sold", "withdrawn"]


class ListingRecord(ValueModel):
    """Propiedad publicada por un agente."""

    id: str = Field(..., description="Identificador opaco del listing")
    agent_id: Optional[str] = None
    price: float = Field(..., description="Precio de lista")
    bedrooms: int = Field(0, description="Dormitorios")
    bathrooms: float = Field(0, description="Baños")
    city: str = Field("", description="Ciudad")
    state: Optional[str] = None
    address: Optional[str] = None
    property_type: str = Field("", description="single-family, condo, townhouse, ...")
    features: list[str] = Field(default_factory=list, description="Features en texto libre")
    status: ListingStatus = Field("active", description="active, pending, sold o withdrawn")
    sqft: Optional[float] = None
    lot_size: Optional[float] = None
    year_built: Optional[int] = None
    description: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class MatchedListing(ValueModel):
    """Listing del catálogo anotado con su match score."""

    listing: ListingRecord
    match_score: int = Field(..., ge=0, le=100)

    def to_api_dict(self) -> dict:
        """Aplana el listing y agrega ``matchScore``, como lo consume el portal."""
        data = self.listing.model_dump(by_alias=True)
        data["matchScore"] = self.match_score
        return data
