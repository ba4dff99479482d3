"""
Configuración compartida de los modelos de valor.

Todos los modelos son inmutables y aceptan tanto los nombres camelCase
del event store (``aiMatchScore``) como los snake_case de Python.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ValueModel(BaseModel):
    """Modelo base inmutable con alias camelCase."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api_dict(self) -> dict:
        """Serializa con los nombres camelCase que consume el dashboard."""
        return self.model_dump(by_alias=True)
