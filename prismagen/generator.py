# File: prismagen/generator.py
"""
prismagen - Generation Pipeline (Orchestrator)
===============================================

Connects every phase together:

    Definition unit → Parser → Validation → Template Generation → Export

The ``PrismaGenerator`` class provides both a programmatic API and the
backend for the CLI.

Workflow::

    1. Load ``prismagen.yaml`` (optional) into a ``GeneratorConfig``.
    2. Merge the exclusion list from the application's ``config.ts``.
    3. Build the model registry once from both schema locations.
    4. Resolve the requested layer (aliases included).
    5. Parse and validate the schema(s) the layer needs.
    6. Render the layer with ``TemplateGenerator``.
    7. Hand each ``LayerOutput`` to ``ResourceExporter``.
    8. Return a ``GenerationReport`` with metrics.

Error handling strategy:
    - Parse and validation errors abort the current layer before any write.
    - A missing definition unit is reported before any layer is written.
    - ``package`` runs its layers in order; each one commits on its own, so
      layers written before a failure stay written.
    - Errors are raised, never collected silently; the CLI maps them to
      exit codes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from prismagen.errors import (
    ConfigError,
    GenerationError,
    MissingArgumentError,
    NotFoundError,
    SourceContext,
    UnsupportedLayerError,
)
from prismagen.exporters import ExportResult, ResourceExporter
from prismagen.models import GeneratorConfig, Layer, LayerOutput, ModelRegistry, ParsedSchema
from prismagen.parser import SchemaParser, SchemaSource, build_registry
from prismagen.templates import TemplateGenerator
from prismagen.utils import Timer
from prismagen.validators import check_schema

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.generator")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CONFIG_FILE_NAME: str = "prismagen.yaml"

LAYER_ALIASES: Dict[str, Layer] = {
    **{layer.value: layer for layer in Layer},
    "repo": Layer.REPOSITORY,
    "s": Layer.SERVICE,
    "co": Layer.CONTROLLER,
    "mo": Layer.MODULE,
    "requestDTO": Layer.REQUEST_CONTRACT,
    "responseDTO": Layer.RESPONSE_CONTRACT,
    "p": Layer.PACKAGE,
}

PACKAGE_LAYERS: Tuple[Layer, ...] = (
    Layer.MODULE,
    Layer.CONTROLLER,
    Layer.SERVICE,
    Layer.REPOSITORY,
    Layer.INTERFACES,
    Layer.REQUEST_CONTRACT,
    Layer.RESPONSE_CONTRACT,
)

# Layers that render from the schema's identifier field.
_IDENTIFIED_LAYERS: Tuple[Layer, ...] = (
    Layer.REPOSITORY,
    Layer.SERVICE,
    Layer.CONTROLLER,
    Layer.REQUEST_CONTRACT,
    Layer.RESPONSE_CONTRACT,
)

_EXPOSE_RE: re.Pattern[str] = re.compile(
    r"static\s+readonly\s+APP_DATA_PROCESSING_EXPOSE\s*=\s*\[(.*?)\]\s*as\s+const\s*;",
    re.DOTALL,
)
_QUOTED_RE: re.Pattern[str] = re.compile(r"""["'`]([^"'`]+)["'`]""")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single layer."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``PrismaGenerator.run()``."""

    success: bool = False
    layer: str = ""
    resource_name: str = ""
    project_root: str = ""
    dry_run: bool = False

    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    exports: List[ExportResult] = field(default_factory=list)

    def add_export(self, result: ExportResult, elapsed: float) -> None:
        self.exports.append(result)
        self.total_files += len(result.files)
        self.total_bytes += result.total_bytes
        self.total_lines += result.total_lines
        self.step_metrics.append(
            GenerationStepMetric(
                step_name=result.layer,
                success=True,
                elapsed_seconds=elapsed,
                detail=f"{len(result.files)} files → {result.target_directory}",
            )
        )

    @property
    def written_paths(self) -> List[str]:
        return [p for result in self.exports for p in result.paths]

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'='*60}")
        lines.append("  prismagen — Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}{' (dry run)' if self.dry_run else ''}")
        lines.append(f"  Layer:            {self.layer}")
        if self.resource_name:
            lines.append(f"  Resource:         {self.resource_name}")
        lines.append(f"  Project:          {self.project_root}")
        lines.append(f"  Files:            {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")

        if self.step_metrics:
            lines.append(f"{'─'*60}")
            lines.append("  Layers:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<20s} {step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        if self.dry_run:
            lines.append(f"{'─'*60}")
            lines.append("  Would write:")
            for path in self.written_paths:
                lines.append(f"    • {path}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Configuration loading
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML: {exc}", SourceContext(file=str(path))) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}.",
            SourceContext(file=str(path)),
        )
    return data


def load_config(
    project_root: Path = Path("."),
    config_file: Optional[Path] = None,
    **overrides: Any,
) -> GeneratorConfig:
    """
    Build the ``GeneratorConfig`` for *project_root*.

    ``config_file`` defaults to ``<project_root>/prismagen.yaml``; a missing
    default file means "all defaults", a missing explicit file is an error.

    Raises:
        ConfigError: the file is unreadable or fails model validation.
    """
    explicit: bool = config_file is not None
    path: Path = config_file if config_file is not None else project_root / CONFIG_FILE_NAME

    raw: Dict[str, Any] = {}
    if path.is_file():
        raw = _load_yaml_file(path)
        logger.info("Loaded config file: %s (%d keys).", path, len(raw))
    elif explicit:
        raise ConfigError("Config file not found.", SourceContext(file=str(path)))

    raw.update(overrides)
    raw["project_root"] = project_root
    try:
        return GeneratorConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(
            f"Config validation failed: {exc}", SourceContext(file=str(path))
        ) from exc


def load_expose_fields(path: Path) -> List[str]:
    """
    Read ``APP_DATA_PROCESSING_EXPOSE`` from the application's ``config.ts``.

    Returns an empty list when the file or the declaration is absent.
    """
    if not path.is_file():
        logger.debug("No application config at %s; exclusion list is empty.", path)
        return []

    match = _EXPOSE_RE.search(path.read_text(encoding="utf-8"))
    if match is None:
        logger.warning("APP_DATA_PROCESSING_EXPOSE not declared in %s.", path)
        return []

    names: List[str] = [m.group(1).strip() for m in _QUOTED_RE.finditer(match.group(1))]
    logger.debug("Exclusion list from %s: %s", path, names)
    return names


def resolve_layer(token: str) -> Layer:
    """Map a CLI layer token (canonical name or alias) to a ``Layer``."""
    layer: Optional[Layer] = LAYER_ALIASES.get(token)
    if layer is None:
        raise UnsupportedLayerError(
            f"Unsupported layer '{token}'. Choose one of: {', '.join(sorted(LAYER_ALIASES))}."
        )
    return layer


# ---------------------------------------------------------------------------
# PrismaGenerator (orchestrator)
# ---------------------------------------------------------------------------


class PrismaGenerator:
    """
    Layer dispatcher for one NestJS + Prisma project.

    Usage::

        generator = PrismaGenerator(load_config(Path(".")))
        outputs = generator.generate("repository", "userManagement")
        report = generator.run("package", "order")
        print(report.summary())

    The registry is built lazily on first use and reused for every later
    call on the same instance.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        *,
        dry_run: bool = False,
        registry: Optional[ModelRegistry] = None,
    ) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        self._dry_run: bool = dry_run
        self._source: SchemaSource = SchemaSource.from_config(self._config)
        self._registry: Optional[ModelRegistry] = registry
        self._parser: Optional[SchemaParser] = None

        expose: List[str] = list(
            dict.fromkeys(
                list(self._config.expose_fields)
                + load_expose_fields(self._config.app_config_path)
            )
        )
        self._templates: TemplateGenerator = TemplateGenerator(self._config, expose)
        self._exporter: ResourceExporter = ResourceExporter(self._config, dry_run=dry_run)

        logger.debug(
            "PrismaGenerator initialised: root=%s, dry_run=%s, excluded=%s.",
            self._config.project_root,
            dry_run,
            expose,
        )

    # -----------------------------------------------------------------
    # Accessors
    # -----------------------------------------------------------------

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def templates(self) -> TemplateGenerator:
        return self._templates

    @property
    def exporter(self) -> ResourceExporter:
        return self._exporter

    @property
    def parser(self) -> SchemaParser:
        if self._parser is None:
            if self._registry is None:
                self._registry = build_registry(self._source)
            self._parser = SchemaParser(self._source, self._registry)
        return self._parser

    # -----------------------------------------------------------------
    # Public: generate (no writes)
    # -----------------------------------------------------------------

    def generate(self, layer: str, resource_name: Optional[str] = None) -> List[LayerOutput]:
        """
        Render *layer* for *resource_name* without touching the file system.

        ``package`` expands to its seven layers in order.
        """
        resolved: Layer = resolve_layer(layer) if not isinstance(layer, Layer) else layer
        if resolved == Layer.PACKAGE:
            return [self._generate_layer(sub, resource_name) for sub in PACKAGE_LAYERS]
        return [self._generate_layer(resolved, resource_name)]

    # -----------------------------------------------------------------
    # Public: run (generate + export)
    # -----------------------------------------------------------------

    def run(self, layer: str, resource_name: Optional[str] = None) -> GenerationReport:
        """
        Render and write *layer*; each sub-layer of ``package`` is committed
        before the next one is rendered.
        """
        resolved: Layer = resolve_layer(layer) if not isinstance(layer, Layer) else layer
        report: GenerationReport = GenerationReport(
            layer=resolved.value,
            resource_name=resource_name or "",
            project_root=str(self._config.project_root),
            dry_run=self._dry_run,
        )
        layers: Tuple[Layer, ...] = PACKAGE_LAYERS if resolved == Layer.PACKAGE else (resolved,)

        # An absent definition unit must fail before the first sub-layer commits.
        if resource_name and any(sub in _IDENTIFIED_LAYERS for sub in layers):
            self.parser.source.resolve(self._templates.names(resource_name).schema_file_id)

        with Timer(f"run {resolved.value}") as total:
            for sub in layers:
                with Timer(sub.value) as t:
                    output: LayerOutput = self._generate_layer(sub, resource_name)
                    result: ExportResult = self._exporter.export(output)
                report.add_export(result, t.elapsed)

        report.total_elapsed_seconds = total.elapsed
        report.success = True
        logger.info(
            "%s complete: %d files in %.3fs.",
            resolved.value,
            report.total_files,
            total.elapsed,
        )
        return report

    # -----------------------------------------------------------------
    # Internal: per-layer dispatch
    # -----------------------------------------------------------------

    def _schema_for(self, resource_name: str, require_id: bool) -> ParsedSchema:
        file_id: str = self._templates.names(resource_name).schema_file_id
        schema: ParsedSchema = self.parser.export(file_id)
        check_schema(schema, require_id=require_id)
        return schema

    def _generate_layer(self, layer: Layer, resource_name: Optional[str]) -> LayerOutput:
        t: TemplateGenerator = self._templates

        if layer == Layer.MODEL:
            schemas: List[ParsedSchema] = self.parser.export_many(include_aggregate=True)
            for schema in schemas:
                check_schema(schema, require_id=False)
            return self._render(layer, t.generate_model, schemas)

        if layer == Layer.INFO:
            aggregates: List[ParsedSchema] = self.parser.export_aggregates()
            if not aggregates:
                raise NotFoundError(
                    "The info model does not exist: no aggregate definition units in "
                    f"{self.parser.source.aggregate_dir}."
                )
            for schema in aggregates:
                check_schema(schema, require_id=False)
            return self._render(layer, t.generate_info, aggregates)

        if not resource_name:
            raise MissingArgumentError(
                f"A resource name is required for the '{layer.value}' layer "
                "(e.g. prismagen generate repository userManagement)."
            )

        if layer == Layer.MODULE:
            return self._render(layer, t.generate_module, resource_name)
        if layer == Layer.INTERFACES:
            return self._render(layer, t.generate_interfaces, resource_name)

        schema = self._schema_for(resource_name, require_id=layer in _IDENTIFIED_LAYERS)
        renderers = {
            Layer.REPOSITORY: t.generate_repository,
            Layer.SERVICE: t.generate_service,
            Layer.CONTROLLER: t.generate_controller,
            Layer.REQUEST_CONTRACT: t.generate_request_contract,
            Layer.RESPONSE_CONTRACT: t.generate_response_contract,
        }
        return self._render(layer, renderers[layer], resource_name, schema)

    @staticmethod
    def _render(layer: Layer, renderer: Any, *args: Any) -> LayerOutput:
        logger.info("%s Creating...", layer.value)
        try:
            return renderer(*args)
        except (KeyError, ValueError, TypeError) as exc:
            raise GenerationError(
                f"Failed to render the {layer.value} layer: {type(exc).__name__}: {exc}"
            ) from exc


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PrismaGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "LAYER_ALIASES",
    "PACKAGE_LAYERS",
    "CONFIG_FILE_NAME",
    "load_config",
    "load_expose_fields",
    "resolve_layer",
]
