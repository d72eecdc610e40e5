# File: prismagen/validators.py
"""
prismagen - Schema Validators
==============================
Semantic checks that run on a ``ParsedSchema`` after parsing and before any
template is rendered.

The parser only guarantees that every line is syntactically a field.  This
module adds the cross-field checks the generators rely on:

    NO_ID_FIELD          no ``@id`` field (update / delete / find-unique need one)
    COMPOSITE_ID         more than one ``@id`` field
    RELATION_ID_UNKNOWN  ``@relation(fields: [x])`` names no scalar field ``x``
    DUPLICATE_FIELD      the same field name appears twice (warning)
    UNKNOWN_DIRECTIVE    a ``#TOKEN`` in a comment is not a known directive (warning)

Usage::

    from prismagen.validators import check_schema
    check_schema(schema)          # raises SchemaValidationError subclasses
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List, Optional

from prismagen.errors import (
    CompositeIdentifierError,
    MissingIdentifierError,
    SchemaValidationError,
    SourceContext,
)
from prismagen.models import FieldRecord, ParsedSchema

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.validators")

# ---------------------------------------------------------------------------
# Diagnostic codes
# ---------------------------------------------------------------------------

NO_ID_FIELD: str = "NO_ID_FIELD"
COMPOSITE_ID: str = "COMPOSITE_ID"
RELATION_ID_UNKNOWN: str = "RELATION_ID_UNKNOWN"
DUPLICATE_FIELD: str = "DUPLICATE_FIELD"
UNKNOWN_DIRECTIVE: str = "UNKNOWN_DIRECTIVE"


# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class Diagnostic:
    """Lightweight error / warning descriptor."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``Diagnostic`` instances for one schema."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(Diagnostic("error", code, message, context))

    def add_warning(
        self, code: str, message: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        self._items.append(Diagnostic("warning", code, message, context))

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self._items if d.is_error]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self._items if not d.is_error]

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def codes(self) -> List[str]:
        return [d.code for d in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"<ValidationResult errors={len(self.errors)} warnings={len(self.warnings)}>"


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def validate_schema(schema: ParsedSchema, require_id: bool = True) -> ValidationResult:
    """Run every check against *schema* and collect the diagnostics."""
    result = ValidationResult()
    ids: List[FieldRecord] = list(schema.id_fields)

    if require_id and not ids:
        result.add_error(
            NO_ID_FIELD,
            f"Model '{schema.name}' has no @id field.",
            {"model": schema.name},
        )
    if len(ids) > 1:
        result.add_error(
            COMPOSITE_ID,
            f"Model '{schema.name}' has {len(ids)} @id fields "
            f"({', '.join(f.name for f in ids)}); exactly one is supported.",
            {"model": schema.name, "fields": [f.name for f in ids]},
        )

    scalar_names = {f.name for f in schema.fields}
    for join in schema.joins:
        if join.relation_id and join.relation_id not in scalar_names:
            result.add_error(
                RELATION_ID_UNKNOWN,
                f"Relation '{join.name}' references '{join.relation_id}', "
                f"which is not a scalar field of '{schema.name}'.",
                {"model": schema.name, "join": join.name},
            )

    counts = Counter([f.name for f in schema.fields] + [j.name for j in schema.joins])
    for name, count in counts.items():
        if count > 1:
            result.add_warning(
                DUPLICATE_FIELD,
                f"Field '{name}' appears {count} times in '{schema.name}'.",
                {"model": schema.name, "field": name},
            )

    for f in schema.fields:
        for token in f.unknown_directives:
            result.add_warning(
                UNKNOWN_DIRECTIVE,
                f"Unknown directive '{token}' on '{schema.name}.{f.name}' kept in description.",
                {"model": schema.name, "field": f.name},
            )

    logger.debug("Validated %s: %r", schema.name, result)
    return result


def require_identifier(schema: ParsedSchema) -> FieldRecord:
    """
    Return the single identifier field of *schema*.

    Raises:
        MissingIdentifierError: no ``@id`` field.
        CompositeIdentifierError: more than one ``@id`` field.
    """
    ids = schema.id_fields
    context = SourceContext(file=schema.file_id or schema.name)
    if not ids:
        raise MissingIdentifierError(
            f"Model '{schema.name}' has no @id field; update, delete and find-unique "
            "contracts cannot be generated.",
            context,
        )
    if len(ids) > 1:
        raise CompositeIdentifierError(
            f"Model '{schema.name}' declares {len(ids)} @id fields "
            f"({', '.join(f.name for f in ids)}); composite identifiers are not supported.",
            context,
        )
    return ids[0]


def check_schema(schema: ParsedSchema, require_id: bool = True) -> ValidationResult:
    """
    Validate *schema* and raise on the first class of error found.

    Warnings are logged and returned; they never abort generation.
    """
    result: ValidationResult = validate_schema(schema, require_id=require_id)
    for warning in result.warnings:
        logger.warning("%s", warning.message)

    codes = {d.code for d in result.errors}
    if NO_ID_FIELD in codes or COMPOSITE_ID in codes:
        require_identifier(schema)
    if result.errors:
        problems: List[str] = [d.message for d in result.errors]
        raise SchemaValidationError(
            f"Model '{schema.name}' failed validation:\n  - " + "\n  - ".join(problems),
            SourceContext(file=schema.file_id or schema.name),
            problems=problems,
        )
    return result


__all__: List[str] = [
    "NO_ID_FIELD",
    "COMPOSITE_ID",
    "RELATION_ID_UNKNOWN",
    "DUPLICATE_FIELD",
    "UNKNOWN_DIRECTIVE",
    "Diagnostic",
    "ValidationResult",
    "validate_schema",
    "require_identifier",
    "check_schema",
]
