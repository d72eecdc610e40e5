# File: prismagen/__init__.py
"""
prismagen — NestJS + Prisma Layer Generator
============================================

Reads annotated Prisma model files and generates the TypeScript layers of a
NestJS resource: data models, repository, service, controller, module,
interfaces, request/response DTOs and a read-only info module spanning the
aggregate models.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ PrismaGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │ (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └───────┬────────┘     └──────────────────┘
                                 │
                 ┌───────────────┼───────────────┐
                 ▼               ▼               ▼
           ┌──────────┐   ┌────────────┐   ┌───────────┐
           │  parser  │   │ validators │   │ exporters │
           │  (.py)   │   │   (.py)    │   │  (.py)    │
           └──────────┘   └────────────┘   └───────────┘

Usage::

    # As a library
    from prismagen import PrismaGenerator, load_config
    gen = PrismaGenerator(load_config(Path(".")))
    gen.run("package", "order")

    # From the command line
    prismagen generate package order -v
"""

from __future__ import annotations

__version__: str = "0.1.0"

from prismagen.errors import (
    CompositeIdentifierError,
    MalformedFieldError,
    MalformedSchemaError,
    MissingIdentifierError,
    NotFoundError,
    PrismagenError,
    SourceContext,
)
from prismagen.models import (
    DtoTag,
    FieldRecord,
    GeneratorConfig,
    JoinFieldRecord,
    Layer,
    LayerOutput,
    ModelRegistry,
    ParsedSchema,
    Profile,
    TypeMapping,
)
from prismagen.type_map import map_type
from prismagen.parser import SchemaParser, SchemaSource, build_registry, parse_definition
from prismagen.validators import ValidationResult, check_schema, validate_schema
from prismagen.templates import TemplateGenerator
from prismagen.exporters import ExportResult, ResourceExporter
from prismagen.generator import GenerationReport, PrismaGenerator, load_config

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    "__version__",
    # Orchestrator
    "PrismaGenerator",
    "GenerationReport",
    "load_config",
    # Models
    "DtoTag",
    "FieldRecord",
    "GeneratorConfig",
    "JoinFieldRecord",
    "Layer",
    "LayerOutput",
    "ModelRegistry",
    "ParsedSchema",
    "Profile",
    "TypeMapping",
    "map_type",
    # Parsing & validation
    "SchemaParser",
    "SchemaSource",
    "build_registry",
    "parse_definition",
    "ValidationResult",
    "check_schema",
    "validate_schema",
    # Templates & export
    "TemplateGenerator",
    "ResourceExporter",
    "ExportResult",
    # Errors
    "PrismagenError",
    "SourceContext",
    "NotFoundError",
    "MalformedSchemaError",
    "MalformedFieldError",
    "MissingIdentifierError",
    "CompositeIdentifierError",
]
