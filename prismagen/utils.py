# File: prismagen/utils.py
"""
prismagen - Utility Functions & Helpers
========================================
String-case transforms, the route pluralization rule table, the canonical
resource-name derivation shared by every generator, indentation and import
helpers for the TypeScript templates, and small file-system helpers used by
the exporter.

All string-conversion functions are pure and decorated with
``@lru_cache(maxsize=None)``; a single ``package`` run derives the same
names many times.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from prismagen.models import Profile

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_LOWER_UPPER_RE: re.Pattern[str] = re.compile(r"([a-z])([A-Z])")
_ACRONYM_BOUNDARY_RE: re.Pattern[str] = re.compile(r"([A-Z])([A-Z][a-z])")

_VOWELS: str = "aeiou"
_SIBILANT_ENDINGS: Tuple[str, ...] = ("s", "x", "z", "ch", "sh")

DEFAULT_MANAGEMENT_MARKER: str = "Management"


# ---------------------------------------------------------------------------
# Case transforms
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def camel_to_kebab(name: str) -> str:
    """
    Convert camelCase to kebab-case.

    Examples:
        >>> camel_to_kebab("orderItem")
        'order-item'
        >>> camel_to_kebab("userManagement")
        'user-management'
    """
    return _LOWER_UPPER_RE.sub(r"\1-\2", name).lower()


@functools.lru_cache(maxsize=None)
def pascal_to_kebab(name: str) -> str:
    """
    Convert PascalCase to kebab-case, splitting acronym runs.

    Examples:
        >>> pascal_to_kebab("OrderItem")
        'order-item'
        >>> pascal_to_kebab("HTTPRequestLog")
        'http-request-log'
    """
    s: str = _LOWER_UPPER_RE.sub(r"\1-\2", name)
    s = _ACRONYM_BOUNDARY_RE.sub(r"\1-\2", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def camel_to_pascal(name: str) -> str:
    """Capitalize the first character only: ``orderItem`` → ``OrderItem``."""
    return name[:1].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def pascal_to_camel(name: str) -> str:
    """Lowercase the first character only: ``OrderItem`` → ``orderItem``."""
    return name[:1].lower() + name[1:]


@functools.lru_cache(maxsize=None)
def pluralize(word: str) -> str:
    """
    Pluralize a route segment with a three-rule table.

    Examples:
        >>> pluralize("category")
        'categories'
        >>> pluralize("box")
        'boxes'
        >>> pluralize("user")
        'users'
    """
    if not word:
        return ""
    if word.endswith("y") and (len(word) < 2 or word[-2] not in _VOWELS):
        return word[:-1] + "ies"
    if word.endswith(_SIBILANT_ENDINGS):
        return word + "es"
    return word + "s"


# ---------------------------------------------------------------------------
# Resource names
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResourceNames:
    """
    Every derived form of one canonical resource name.

    All generators of one invocation must share the same instance so that
    class names, file names and import paths agree across artifacts.
    """

    camel: str
    pascal: str
    kebab: str
    camel_base: str
    pascal_base: str
    kebab_base: str
    is_management: bool

    @classmethod
    def from_name(
        cls, name: str, management_marker: str = DEFAULT_MANAGEMENT_MARKER
    ) -> "ResourceNames":
        camel: str = pascal_to_camel(name.strip())
        pascal: str = camel_to_pascal(camel)
        is_management: bool = management_marker in camel
        camel_base: str = camel.replace(management_marker, "", 1)
        pascal_base: str = pascal.replace(management_marker, "", 1)
        return cls(
            camel=camel,
            pascal=pascal,
            kebab=camel_to_kebab(camel),
            camel_base=camel_base,
            pascal_base=pascal_base,
            kebab_base=camel_to_kebab(camel_base),
            is_management=is_management,
        )

    @property
    def profile(self) -> Profile:
        return Profile.MANAGEMENT if self.is_management else Profile.DEFAULT

    @property
    def schema_file_id(self) -> str:
        """Definition unit backing this resource, e.g. ``order-item``."""
        return self.kebab_base


# ---------------------------------------------------------------------------
# Template formatting helpers
# ---------------------------------------------------------------------------


def indent(text: str, level: int = 1, size: int = 4) -> str:
    """Indent every non-blank line of *text* by *level* × *size* spaces."""
    prefix: str = " " * (level * size)
    return "\n".join(prefix + line if line.strip() else line for line in text.split("\n"))


def indent_lines(lines: Sequence[str], level: int = 1, size: int = 4) -> List[str]:
    prefix: str = " " * (level * size)
    return [prefix + line if line.strip() else line for line in lines]


def ts_string(value: str) -> str:
    """Render *value* as a double-quoted TypeScript string literal."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_import_block(imports: Dict[str, Iterable[str]]) -> str:
    """
    Build TypeScript named imports, one line per module, in insertion order.

    Example:
        >>> build_import_block({"@nestjs/common": ["Injectable"]})
        'import { Injectable } from "@nestjs/common";'
    """
    lines: List[str] = []
    for module, names in imports.items():
        unique: List[str] = list(dict.fromkeys(names))
        if unique:
            lines.append(f"import {{ {', '.join(unique)} }} from \"{module}\";")
    return "\n".join(lines)


def sha256_hex(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str) -> int:
    """
    Write *content* to *path* atomically (temp file in the same directory,
    then ``os.replace``).  Any previous file at *path* is replaced.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)
    encoded: bytes = content.encode("utf-8")

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def clear_files(path: Path) -> List[Path]:
    """
    Delete the regular files directly inside *path* (sub-directories are
    kept).  Returns the removed paths.
    """
    removed: List[Path] = []
    if not path.is_dir():
        return removed
    for item in sorted(path.iterdir()):
        if item.is_file():
            item.unlink()
            removed.append(item)
    logger.debug("Cleared %d file(s) from %s", len(removed), path)
    return removed


def find_directory(root: Path, name: str) -> Optional[Path]:
    """
    Depth-first search below *root* for a directory called *name*.

    Siblings are visited in name order; the first match wins.
    """
    if not root.is_dir():
        return None
    for item in sorted(root.iterdir()):
        if not item.is_dir() or item.is_symlink():
            continue
        if item.name == name:
            return item
        found: Optional[Path] = find_directory(item, name)
        if found is not None:
            return found
    return None


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling generation steps.

    Usage:
        with Timer("generate repository") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "camel_to_kebab",
    "pascal_to_kebab",
    "camel_to_pascal",
    "pascal_to_camel",
    "pluralize",
    "ResourceNames",
    "DEFAULT_MANAGEMENT_MARKER",
    "indent",
    "indent_lines",
    "ts_string",
    "build_import_block",
    "sha256_hex",
    "count_lines",
    "ensure_directory",
    "write_file",
    "clear_files",
    "find_directory",
    "Timer",
]
