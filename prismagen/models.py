# File: prismagen/models.py
"""
prismagen - Core Data Models
=============================
Pydantic V2 models representing the parsed schema intermediate form and the
generator configuration.  These models are the single source of truth for
the whole pipeline:

    Definition unit → Parser → ParsedSchema → Templates → LayerOutput → Exporter

Schema models are frozen: once the parser has built a ``ParsedSchema`` no
stage is allowed to mutate it.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class DtoTag(str, Enum):
    """Per-action visibility tag attached to a field by a comment directive."""

    CREATE_REQUIRED = "CREATE_REQUIRED"
    CREATE_OPTIONAL = "CREATE_OPTIONAL"
    UPDATE = "UPDATE"
    RESPONSE_EXPOSE = "RESPONSE_EXPOSE"


class DtoAction(str, Enum):
    """Lifecycle actions a directive can target."""

    CREATE = "create"
    UPDATE = "update"
    FIND_UNIQUE = "find_unique"
    FIND_LIST = "find_list"


class Profile(str, Enum):
    """The two independent annotation namespaces."""

    DEFAULT = "default"
    MANAGEMENT = "management"


class SchemaLocation(str, Enum):
    """Where a definition unit was found."""

    PRIMARY = "primary"
    AGGREGATE = "aggregate"


class Layer(str, Enum):
    """Generator layers the dispatcher understands."""

    MODEL = "model"
    REPOSITORY = "repository"
    SERVICE = "service"
    CONTROLLER = "controller"
    MODULE = "module"
    INFO = "info"
    INTERFACES = "interfaces"
    REQUEST_CONTRACT = "requestContract"
    RESPONSE_CONTRACT = "responseContract"
    PACKAGE = "package"


class OutputTarget(str, Enum):
    """Base directory an artifact is written under."""

    RESOURCE = "resource"
    MODELS = "models"
    INFO = "info"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    frozen=True,
    populate_by_name=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------


class TypeMapping(BaseModel):
    """The five representations of a declared field type."""

    model_config = _FROZEN_CONFIG

    request: str = Field(..., min_length=1, description="Request DTO type.")
    response: str = Field(..., min_length=1, description="Response / model type.")
    storage: str = Field(..., min_length=1, description="Prisma storage type.")
    documentation: str = Field(..., min_length=1, description="Swagger type.")
    validator: str = Field(..., min_length=1, description="class-validator decorator call.")
    is_enum: bool = Field(default=False, description="True for the enumeration branch.")

    @property
    def validator_name(self) -> str:
        """Decorator name without arguments, e.g. ``IsEnum``."""
        return self.validator.split("(", 1)[0]


# ---------------------------------------------------------------------------
# DTO options
# ---------------------------------------------------------------------------


class DtoProfile(BaseModel):
    """Tags of one profile, one slot per lifecycle action."""

    model_config = _FROZEN_CONFIG

    create: Optional[DtoTag] = None
    update: Optional[DtoTag] = None
    find_unique: Optional[DtoTag] = None
    find_list: Optional[DtoTag] = None

    def tag_for(self, action: DtoAction) -> Optional[DtoTag]:
        return getattr(self, action.value)


class DtoOptions(BaseModel):
    """Both annotation profiles of a field."""

    model_config = _FROZEN_CONFIG

    default: DtoProfile = Field(default_factory=DtoProfile)
    management: DtoProfile = Field(default_factory=DtoProfile)

    def profile(self, profile: Profile) -> DtoProfile:
        return self.management if profile == Profile.MANAGEMENT else self.default


# ---------------------------------------------------------------------------
# Field records
# ---------------------------------------------------------------------------


class FieldRecord(BaseModel):
    """A scalar (or enum) field of a model."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    type: TypeMapping
    is_array: bool = False
    is_id: bool = False
    is_required: bool = True
    dto_options: DtoOptions = Field(default_factory=DtoOptions)
    description: str = ""
    unknown_directives: Tuple[str, ...] = ()

    def __repr__(self) -> str:
        flags: str = "".join(
            [" ID" if self.is_id else "", "" if self.is_required else " NULL"]
        )
        return f"<Field {self.name} {self.type.storage}{flags}>"


class JoinFieldRecord(BaseModel):
    """A relation field whose declared type is another known model."""

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1)
    relation_id: Optional[str] = Field(
        default=None,
        description="Scalar foreign-key field named by @relation(fields: [...]).",
    )
    model: str = Field(..., min_length=1, description="Target model name.")
    type: TypeMapping
    is_array: bool = False
    is_required: bool = True
    description: str = ""

    def __repr__(self) -> str:
        arity: str = "[]" if self.is_array else ""
        return f"<Join {self.name} -> {self.model}{arity} via {self.relation_id}>"


# ---------------------------------------------------------------------------
# Parsed schema
# ---------------------------------------------------------------------------


class ParsedSchema(BaseModel):
    """
    Structured form of one definition unit.

    ``fields`` and ``joins`` keep source order.  Duplicate field names are
    not rejected.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Model name (PascalCase).")
    description: str = Field(..., description="Model label from the header comment.")
    fields: Tuple[FieldRecord, ...] = ()
    joins: Tuple[JoinFieldRecord, ...] = ()
    file_id: str = Field(default="", description="File the schema was read from.")
    location: SchemaLocation = SchemaLocation.PRIMARY

    @computed_field  # type: ignore[misc]
    @property
    def is_soft_deletable(self) -> bool:
        return any(f.name == "deletedAt" for f in self.fields)

    @property
    def id_fields(self) -> Tuple[FieldRecord, ...]:
        return tuple(f for f in self.fields if f.is_id)

    @property
    def id_field(self) -> Optional[FieldRecord]:
        """The identifier field, or ``None`` unless exactly one exists."""
        ids: Tuple[FieldRecord, ...] = self.id_fields
        return ids[0] if len(ids) == 1 else None

    def field_named(self, name: str) -> Optional[FieldRecord]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def __repr__(self) -> str:
        return (
            f"<ParsedSchema {self.name} fields={len(self.fields)} "
            f"joins={len(self.joins)} soft_delete={self.is_soft_deletable}>"
        )


class ModelRegistry(BaseModel):
    """
    Every model name known to the project.

    Built once before any parsing and passed to the parser explicitly.  The
    parser uses membership in ``names`` to tell relation fields from scalars.
    """

    model_config = _FROZEN_CONFIG

    names: FrozenSet[str] = frozenset()
    aggregate_names: FrozenSet[str] = frozenset()

    @model_validator(mode="after")
    def _aggregate_subset(self) -> "ModelRegistry":
        stray: FrozenSet[str] = self.aggregate_names - self.names
        if stray:
            raise ValueError(f"Aggregate models missing from registry: {sorted(stray)}")
        return self

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)

    def is_aggregate(self, name: str) -> bool:
        return name in self.aggregate_names


# ---------------------------------------------------------------------------
# Generated output
# ---------------------------------------------------------------------------


class GeneratedArtifact(BaseModel):
    """One generated compilation unit."""

    model_config = _FROZEN_CONFIG

    path: str = Field(..., min_length=1, description="Path relative to the target dir.")
    content: str

    @property
    def artifact_id(self) -> str:
        """File name without the ``.ts`` extension, e.g. ``dto/user-create.dto``."""
        return self.path[:-3] if self.path.endswith(".ts") else self.path


class LayerOutput(BaseModel):
    """Everything one generator produced for one invocation."""

    model_config = _FROZEN_CONFIG

    layer: Layer
    resource_name: str = ""
    target: OutputTarget = OutputTarget.RESOURCE
    reset_directories: Tuple[str, ...] = Field(
        default=(),
        description="Directories (relative to target) whose files are removed first.",
    )
    artifacts: Tuple[GeneratedArtifact, ...] = ()

    @property
    def paths(self) -> List[str]:
        return [a.path for a in self.artifacts]

    def artifact(self, path: str) -> GeneratedArtifact:
        for a in self.artifacts:
            if a.path == path:
                return a
        raise KeyError(path)


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    """
    Project layout and naming settings.

    Every path is relative to ``project_root`` unless absolute.  Defaults
    match the conventional NestJS + Prisma layout.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
    )

    project_root: Path = Field(default=Path("."), description="Project root directory.")
    schema_dir: Path = Field(
        default=Path("prisma/schema/models"), description="Primary definition units."
    )
    info_schema_dir: Optional[Path] = Field(
        default=None, description="Aggregate definition units (default: <schema_dir>/info)."
    )
    source_dir: Path = Field(default=Path("src"), description="Resource output root.")
    model_dir: Path = Field(
        default=Path("src/_common/_utils/models"), description="Data-model output dir."
    )
    info_dir: Path = Field(default=Path("src/info"), description="Info module dir.")
    app_config_file: Path = Field(
        default=Path("src/config.ts"),
        description="TypeScript config holding APP_DATA_PROCESSING_EXPOSE.",
    )
    expose_fields: List[str] = Field(
        default_factory=list,
        description="Field names left out of generated data models.",
    )
    management_marker: str = Field(default="Management", min_length=1)
    aggregate_marker: str = Field(default="Info", min_length=1)
    validator_package: str = Field(
        default="class-validator",
        min_length=1,
        description="Module request DTOs import their validators from.",
    )

    @field_validator("expose_fields")
    @classmethod
    def _strip_names(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name.strip()]

    @model_validator(mode="after")
    def _default_info_schema_dir(self) -> "GeneratorConfig":
        if self.info_schema_dir is None:
            self.info_schema_dir = self.schema_dir / "info"
        return self

    def resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.project_root / path

    @property
    def schema_path(self) -> Path:
        return self.resolve(self.schema_dir)

    @property
    def info_schema_path(self) -> Path:
        return self.resolve(self.info_schema_dir or self.schema_dir / "info")

    @property
    def source_path(self) -> Path:
        return self.resolve(self.source_dir)

    @property
    def model_path(self) -> Path:
        return self.resolve(self.model_dir)

    @property
    def info_path(self) -> Path:
        return self.resolve(self.info_dir)

    @property
    def app_config_path(self) -> Path:
        return self.resolve(self.app_config_file)


__all__: List[str] = [
    "DtoTag",
    "DtoAction",
    "Profile",
    "SchemaLocation",
    "Layer",
    "OutputTarget",
    "TypeMapping",
    "DtoProfile",
    "DtoOptions",
    "FieldRecord",
    "JoinFieldRecord",
    "ParsedSchema",
    "ModelRegistry",
    "GeneratedArtifact",
    "LayerOutput",
    "GeneratorConfig",
]
