# File: prismagen/exporters.py
"""
prismagen - Resource Exporter (File-System Manager)
====================================================

Writes the artifacts of a ``LayerOutput`` into the NestJS project:

    OutputTarget.RESOURCE  →  the resource directory, found by a recursive
                              search of ``source_dir`` for ``kebab(resource)``
                              (created as ``source_dir/<kebab>`` if absent)
    OutputTarget.MODELS    →  ``model_dir``
    OutputTarget.INFO      →  ``info_dir`` (must already exist)

Every write replaces the previous file atomically.  Directories a layer owns
(``LayerOutput.reset_directories``) lose their files first so artifacts of a
previous run that the new run no longer produces do not linger.

A layer is committed only after all of its text has been generated; a
failure while writing raises ``ExportError`` and leaves already written
files of that layer in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from prismagen.errors import ExportError, NotFoundError, SourceContext
from prismagen.models import GeneratorConfig, LayerOutput, OutputTarget
from prismagen.utils import (
    Timer,
    camel_to_kebab,
    clear_files,
    count_lines,
    ensure_directory,
    find_directory,
    sha256_hex,
    write_file,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.exporters")


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportResult:
    """Outcome of exporting one ``LayerOutput``."""

    layer: str = ""
    target_directory: str = ""
    files: List[FileRecord] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    dry_run: bool = False
    elapsed_seconds: float = 0.0

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)

    @property
    def total_lines(self) -> int:
        return sum(f.line_count for f in self.files)

    @property
    def paths(self) -> List[str]:
        return [f.absolute_path for f in self.files]


# ---------------------------------------------------------------------------
# ResourceExporter
# ---------------------------------------------------------------------------


class ResourceExporter:
    """
    Materialises generated layers inside an existing NestJS project.

    Usage::

        exporter = ResourceExporter(config)
        result = exporter.export(output)

    NOT thread-safe; one invocation at a time per project.
    """

    def __init__(self, config: GeneratorConfig, *, dry_run: bool = False) -> None:
        self._config: GeneratorConfig = config
        self._dry_run: bool = dry_run
        logger.debug(
            "ResourceExporter initialised: source=%s, dry_run=%s.",
            config.source_path,
            dry_run,
        )

    # -----------------------------------------------------------------
    # Target directories
    # -----------------------------------------------------------------

    def resource_directory(self, resource_name: str, *, create: bool = True) -> Path:
        """
        Directory of *resource_name* (camelCase) under ``source_dir``.

        The first directory named ``kebab(resource)`` found by a sorted
        depth-first search wins; otherwise ``source_dir/<kebab>`` is used.
        """
        kebab: str = camel_to_kebab(resource_name)
        source: Path = self._config.source_path
        found: Optional[Path] = find_directory(source, kebab)
        if found is not None:
            logger.debug("Resource directory for %s: %s", resource_name, found)
            return found

        target: Path = source / kebab
        if create and not self._dry_run:
            ensure_directory(target)
            logger.info("Created resource directory %s", target)
        return target

    def target_directory(self, output: LayerOutput) -> Path:
        if output.target == OutputTarget.MODELS:
            return self._config.model_path
        if output.target == OutputTarget.INFO:
            info: Path = self._config.info_path
            if not info.is_dir():
                raise NotFoundError(
                    "Info module directory does not exist; create it before "
                    "generating the info layer.",
                    SourceContext(file=str(info)),
                )
            return info
        return self.resource_directory(output.resource_name)

    def plan(self, output: LayerOutput) -> List[Path]:
        """Absolute paths the export of *output* would write."""
        base: Path = self.target_directory(output)
        return [base / a.path for a in output.artifacts]

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, output: LayerOutput) -> ExportResult:
        """
        Write every artifact of *output*.

        Raises:
            NotFoundError: the info directory is missing.
            ExportError: a directory could not be cleared or a file written.
        """
        base: Path = self.target_directory(output)
        result: ExportResult = ExportResult(
            layer=output.layer.value,
            target_directory=str(base),
            dry_run=self._dry_run,
        )

        with Timer(f"export {output.layer.value}") as timer:
            if self._dry_run:
                for artifact in output.artifacts:
                    result.files.append(self._record(base, artifact.path, artifact.content))
            else:
                self._reset(base, output.reset_directories, result)
                for artifact in output.artifacts:
                    result.files.append(self._write(base, artifact.path, artifact.content))
        result.elapsed_seconds = timer.elapsed

        logger.info(
            "%s: %d file(s), %d bytes written to %s%s.",
            output.layer.value,
            len(result.files),
            result.total_bytes,
            base,
            " (dry run)" if self._dry_run else "",
        )
        return result

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    @staticmethod
    def _reset(base: Path, directories: Tuple[str, ...], result: ExportResult) -> None:
        for rel_dir in directories:
            directory: Path = base / rel_dir if rel_dir else base
            try:
                removed: List[Path] = clear_files(directory)
            except OSError as exc:
                raise ExportError(
                    f"Could not clear {directory}: {exc}",
                    SourceContext(file=str(directory)),
                ) from exc
            result.removed.extend(str(p) for p in removed)

    @staticmethod
    def _record(base: Path, rel_path: str, content: str) -> FileRecord:
        return FileRecord(
            relative_path=rel_path,
            absolute_path=str(base / rel_path),
            size_bytes=len(content.encode("utf-8")),
            line_count=count_lines(content),
            sha256=sha256_hex(content),
        )

    def _write(self, base: Path, rel_path: str, content: str) -> FileRecord:
        full_path: Path = base / rel_path
        try:
            write_file(full_path, content)
        except OSError as exc:
            raise ExportError(
                f"Failed to write {rel_path}: {type(exc).__name__}: {exc}",
                SourceContext(file=str(full_path)),
            ) from exc
        logger.debug("Wrote file: %s", full_path)
        return self._record(base, rel_path, content)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ResourceExporter",
    "ExportResult",
    "FileRecord",
]
