"""Mapping from upstream place records to the gateway output schema."""

from __future__ import annotations

from pydantic_core import PydanticSerializationError

from .errors import EncodeError
from .models import InputCollection, OutputCollection, OutputItem, output_adapter


def transform(items: InputCollection) -> OutputCollection:
    """
    Rename fields of every upstream item, keeping order and length.

    code -> slug, country_name -> subtitle, name -> title. No filtering:
    items with empty fields still produce an output item.
    """
    return tuple(
        OutputItem(slug=item.code, subtitle=item.country_name, title=item.name)
        for item in items
    )


def encode_output(output: OutputCollection) -> bytes:
    """Serialize a transformed collection to a compact JSON array."""
    try:
        return output_adapter.dump_json(output)
    except PydanticSerializationError as exc:
        raise EncodeError(str(exc)) from exc
