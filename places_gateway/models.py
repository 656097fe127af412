"""
Pydantic models for the upstream places schema and the gateway output.

The upstream sends many more fields per place (index strings, coordinates,
weights, loosely typed case tables). Only the three fields the gateway
renames are declared; everything else is ignored whatever its shape.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator


class InputItem(BaseModel):
    """
    Single place record as returned by the upstream service.

    Attributes:
        code: Airport or city code, e.g. "MOW"
        name: Display name of the place
        country_name: Display name of the country
    """

    model_config = ConfigDict(extra="ignore")

    code: str = ""
    name: str = ""
    country_name: str = ""

    @field_validator("code", "name", "country_name", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # Upstream sends null for unknown names.
        return "" if value is None else value


class OutputItem(BaseModel):
    """
    Place record in the shape local clients expect.

    Attributes:
        slug: Upstream code
        subtitle: Upstream country name
        title: Upstream place name
    """

    model_config = ConfigDict(frozen=True)

    slug: str
    subtitle: str
    title: str


InputCollection = list[InputItem]
OutputCollection = tuple[OutputItem, ...]

# A JSON null body decodes to None and is treated as an empty collection.
input_adapter: TypeAdapter[InputCollection | None] = TypeAdapter(InputCollection | None)
output_adapter: TypeAdapter[OutputCollection] = TypeAdapter(OutputCollection)


__all__ = [
    "InputItem",
    "OutputItem",
    "InputCollection",
    "OutputCollection",
    "input_adapter",
    "output_adapter",
]
