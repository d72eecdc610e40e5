# File: prismagen/errors.py
"""
prismagen - Error Taxonomy
===========================
Every failure the generator can report derives from ``PrismagenError``.

Parser failures carry a ``SourceContext`` (file, line, column, snippet) so
the CLI can print a positioned diagnostic::

    prisma/schema/models/order.prisma:7:11
        7 | total Decimal?? // order total
          |               ^
    Expected '//' followed by a field description.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


# ---------------------------------------------------------------------------
# Source context
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SourceContext:
    """Location of an error inside a definition unit (1-indexed)."""

    file: str
    line: int = 0
    column: int = 0
    snippet: Optional[str] = None

    def format(self) -> str:
        if not self.line:
            return self.file

        location: str = f"{self.file}:{self.line}:{self.column}"
        if self.snippet is None:
            return location

        gutter: str = f"{self.line:>5} | "
        marker: str = " " * (len(gutter) - 2) + "| " + " " * max(self.column - 1, 0) + "^"
        return f"{location}\n{gutter}{self.snippet}\n{marker}"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class PrismagenError(Exception):
    """Base exception for all prismagen errors."""

    def __init__(self, message: str, context: Optional[SourceContext] = None) -> None:
        self.message: str = message
        self.context: Optional[SourceContext] = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class NotFoundError(PrismagenError):
    """A definition unit or a required target directory does not exist."""


class MissingArgumentError(PrismagenError):
    """The dispatcher was invoked without a required resource name."""


class UnsupportedLayerError(PrismagenError):
    """The requested layer token is not one the dispatcher knows."""


class ConfigError(PrismagenError):
    """The project configuration file could not be loaded."""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class SchemaParseError(PrismagenError):
    """Base class for errors raised while reading a definition unit."""


class MalformedSchemaError(SchemaParseError):
    """
    Raised when the model header or the model description is missing.

    Examples:
    - No ``model Name {`` line
    - No ``// description`` comment directly above the model header
    - Model body never closed
    """


class MalformedFieldError(SchemaParseError):
    """
    Raised when a body line does not have the shape
    ``name Type[]? ? @attr* // description``.
    """


# ---------------------------------------------------------------------------
# Semantic checks before generation
# ---------------------------------------------------------------------------


class SchemaValidationError(PrismagenError):
    """A parsed schema cannot drive the requested generator."""

    def __init__(
        self,
        message: str,
        context: Optional[SourceContext] = None,
        problems: Optional[List[str]] = None,
    ) -> None:
        self.problems: List[str] = list(problems or [])
        super().__init__(message, context)


class MissingIdentifierError(SchemaValidationError):
    """The schema declares no ``@id`` field but the generator needs one."""


class CompositeIdentifierError(SchemaValidationError):
    """The schema declares more than one ``@id`` field."""


class GenerationError(PrismagenError):
    """A template could not be rendered."""


class ExportError(PrismagenError):
    """Generated text could not be written to disk."""


__all__: List[str] = [
    "SourceContext",
    "PrismagenError",
    "NotFoundError",
    "MissingArgumentError",
    "UnsupportedLayerError",
    "ConfigError",
    "SchemaParseError",
    "MalformedSchemaError",
    "MalformedFieldError",
    "SchemaValidationError",
    "MissingIdentifierError",
    "CompositeIdentifierError",
    "GenerationError",
    "ExportError",
]
