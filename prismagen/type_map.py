# File: prismagen/type_map.py
"""
prismagen - Type Mapping Table
===============================
Maps a declared Prisma scalar type (plus its array flag) to the five
representations the templates need:

    request        TypeScript type used in request DTOs
    response       TypeScript type used in models / response DTOs
    storage        Prisma type
    documentation  Swagger ``type`` / ``enum`` argument
    validator      class-validator decorator call

Any identifier that is not one of the five built-in scalars is treated as a
Prisma enum and rendered as ``$Enums.<Name>``.
"""

from __future__ import annotations

import functools
import logging
from typing import Dict, List, Tuple

from prismagen.models import TypeMapping

logger: logging.Logger = logging.getLogger("prismagen.type_map")

# (request, response, storage, documentation, validator)
_SCALAR_TABLE: Dict[Tuple[str, bool], Tuple[str, str, str, str, str]] = {
    ("String", False): ("string", "string", "String", "String", "IsString()"),
    ("String", True): ("string[]", "string[]", "String[]", "[String]", "IsString({ each: true })"),
    ("Int", False): ("number", "number", "Int", "Number", "IsInt()"),
    ("Boolean", False): ("boolean", "boolean", "Boolean", "Boolean", "IsBoolean()"),
    ("DateTime", False): ("Date", "Date", "DateTime", "Date", "IsDate()"),
    ("Decimal", False): ("string", "Prisma.Decimal", "Decimal", "String", "IsDecimal()"),
}

SCALAR_TYPES: Tuple[str, ...] = ("String", "Int", "Boolean", "DateTime", "Decimal")


@functools.lru_cache(maxsize=None)
def map_type(declared: str, is_array: bool = False) -> TypeMapping:
    """
    Return the ``TypeMapping`` for *declared*.

    Examples:
        >>> map_type("Int").request
        'number'
        >>> map_type("String", True).documentation
        '[String]'
        >>> map_type("Role").response
        '$Enums.Role'
    """
    row = _SCALAR_TABLE.get((declared, is_array))
    if row is None and declared in SCALAR_TYPES:
        # Only String has a distinct collection form.
        row = _SCALAR_TABLE[(declared, False)]

    if row is not None:
        request, response, storage, documentation, validator = row
        return TypeMapping(
            request=request,
            response=response,
            storage=storage,
            documentation=documentation,
            validator=validator,
        )

    qualified: str = f"$Enums.{declared}"
    logger.debug("Treating '%s' as an enum type.", declared)
    return TypeMapping(
        request=qualified,
        response=qualified,
        storage=qualified,
        documentation=qualified,
        validator=f"IsEnum({qualified})",
        is_enum=True,
    )


@functools.lru_cache(maxsize=None)
def map_relation_type(model: str) -> TypeMapping:
    """Representations of a relation field pointing at *model*."""
    return TypeMapping(
        request=model,
        response=f"{model}Model",
        storage=model,
        documentation=model,
        validator="ValidateNested()",
    )


__all__: List[str] = ["map_type", "map_relation_type", "SCALAR_TYPES"]
