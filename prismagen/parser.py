# File: prismagen/parser.py
"""
prismagen - Schema Parser
==========================
Reads Prisma-style definition units (one ``model`` per ``.prisma`` file)
and turns them into frozen ``ParsedSchema`` objects.

Definition unit shape::

    // 주문
    model Order {
      id         Int      @id @default(autoincrement()) // 아이디#FU
      customerId Int                                    // 고객 아이디#CR
      customer   Customer @relation(fields: [customerId], references: [id]) // 고객
      total      Decimal                                // 합계#CR#U
      memo       String?                                // 메모#CO#U#MCO#MU
      deletedAt  DateTime?                              // 삭제일
      @@index([customerId])
    }

Pipeline::

    SchemaSource ──▶ build_registry() ──▶ ModelRegistry (immutable)
         │                                      │
         └──────────▶ SchemaParser.export() ◀───┘
                              │
                 tokenize_field_line() + _FieldLineParser
                              │
                        ParsedSchema

Field-line grammar (one production per body line)::

    field      := IDENT IDENT ARRAY? OPTIONAL? ATTRIBUTE* COMMENT
    ARRAY      := "[" "]"
    OPTIONAL   := "?"
    ATTRIBUTE  := "@" NAME ( "(" balanced ")" )?
    COMMENT    := "//" text

Blank lines and block attributes (``@@...``) are skipped.  Everything else
that does not match raises ``MalformedFieldError`` with the line and column
of the first offending token.

Whether a field is a relation is decided only by looking its type up in the
``ModelRegistry``; the registry must therefore be complete before the first
``export`` call.  ``SchemaParser`` builds it in its constructor unless one
is supplied.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from prismagen.errors import (
    MalformedFieldError,
    MalformedSchemaError,
    NotFoundError,
    SourceContext,
)
from prismagen.models import (
    DtoAction,
    DtoOptions,
    DtoProfile,
    DtoTag,
    FieldRecord,
    GeneratorConfig,
    JoinFieldRecord,
    ModelRegistry,
    ParsedSchema,
    Profile,
    SchemaLocation,
)
from prismagen.type_map import map_relation_type, map_type

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.parser")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

SCHEMA_EXTENSION: str = ".prisma"

_MODEL_HEADER_RE: re.Pattern[str] = re.compile(r"^[ \t]*model\s+(\w+)\s*\{", re.MULTILINE)
_MODEL_DESCRIPTION_RE: re.Pattern[str] = re.compile(
    r"^[ \t]*//+[ \t]*(.*?)[ \t]*\r?\n\s*model\s+\w+\s*\{", re.MULTILINE
)
_IDENT_RE: re.Pattern[str] = re.compile(r"[A-Za-z_]\w*")
_ATTRIBUTE_NAME_RE: re.Pattern[str] = re.compile(r"@[A-Za-z_][\w.]*")
_RELATION_FIELDS_RE: re.Pattern[str] = re.compile(r"\bfields\s*:\s*\[\s*(\w+)")
_DIRECTIVE_RE: re.Pattern[str] = re.compile(r"#([A-Za-z]+)")

# ---------------------------------------------------------------------------
# Directive vocabulary
# ---------------------------------------------------------------------------

DIRECTIVES: Dict[str, Tuple[Profile, DtoAction, DtoTag]] = {
    "CR": (Profile.DEFAULT, DtoAction.CREATE, DtoTag.CREATE_REQUIRED),
    "CO": (Profile.DEFAULT, DtoAction.CREATE, DtoTag.CREATE_OPTIONAL),
    "U": (Profile.DEFAULT, DtoAction.UPDATE, DtoTag.UPDATE),
    "FU": (Profile.DEFAULT, DtoAction.FIND_UNIQUE, DtoTag.RESPONSE_EXPOSE),
    "FL": (Profile.DEFAULT, DtoAction.FIND_LIST, DtoTag.RESPONSE_EXPOSE),
    "MCR": (Profile.MANAGEMENT, DtoAction.CREATE, DtoTag.CREATE_REQUIRED),
    "MCO": (Profile.MANAGEMENT, DtoAction.CREATE, DtoTag.CREATE_OPTIONAL),
    "MU": (Profile.MANAGEMENT, DtoAction.UPDATE, DtoTag.UPDATE),
    "MFU": (Profile.MANAGEMENT, DtoAction.FIND_UNIQUE, DtoTag.RESPONSE_EXPOSE),
    "MFL": (Profile.MANAGEMENT, DtoAction.FIND_LIST, DtoTag.RESPONSE_EXPOSE),
}


@dataclass(frozen=True, slots=True)
class ParsedComment:
    """A trailing comment split into free text and directive table."""

    description: str
    dto_options: DtoOptions
    unknown_directives: Tuple[str, ...] = ()


def parse_directives(comment: str) -> ParsedComment:
    """
    Strip directive tokens out of a field comment.

    Recognized tokens are removed wherever they appear and in any order;
    when a slot is tagged twice the later token wins.  Unrecognized
    ``#TOKEN`` words stay in the description and are reported back.  Only the
    ends of the remaining text are stripped.

    Examples:
        >>> parsed = parse_directives("고객 이름#CR#U")
        >>> parsed.description
        '고객 이름'
        >>> parsed.dto_options.default.create
        <DtoTag.CREATE_REQUIRED: 'CREATE_REQUIRED'>
    """
    slots: Dict[Profile, Dict[str, DtoTag]] = {Profile.DEFAULT: {}, Profile.MANAGEMENT: {}}
    unknown: List[str] = []

    def _consume(match: re.Match[str]) -> str:
        entry = DIRECTIVES.get(match.group(1))
        if entry is None:
            unknown.append(match.group(0))
            return match.group(0)
        profile, action, tag = entry
        slots[profile][action.value] = tag
        return ""

    stripped: str = _DIRECTIVE_RE.sub(_consume, comment)
    return ParsedComment(
        description=stripped.strip(),
        dto_options=DtoOptions(
            default=DtoProfile(**slots[Profile.DEFAULT]),
            management=DtoProfile(**slots[Profile.MANAGEMENT]),
        ),
        unknown_directives=tuple(unknown),
    )


# ---------------------------------------------------------------------------
# Field-line tokenizer
# ---------------------------------------------------------------------------

TOKEN_IDENT: str = "IDENT"
TOKEN_ARRAY: str = "ARRAY"
TOKEN_OPTIONAL: str = "OPTIONAL"
TOKEN_ATTRIBUTE: str = "ATTRIBUTE"
TOKEN_COMMENT: str = "COMMENT"
TOKEN_END: str = "END"

_TOKEN_LABELS: Dict[str, str] = {
    TOKEN_IDENT: "an identifier",
    TOKEN_ARRAY: "'[]'",
    TOKEN_OPTIONAL: "'?'",
    TOKEN_ATTRIBUTE: "an '@' attribute",
    TOKEN_COMMENT: "'//' followed by a field description",
    TOKEN_END: "end of line",
}


@dataclass(frozen=True, slots=True)
class Token:
    kind: str
    value: str
    column: int  # 1-indexed


class FieldSyntaxError(Exception):
    """Raised by the tokenizer / line parser; carries the failing column."""

    def __init__(self, message: str, column: int) -> None:
        self.column: int = column
        super().__init__(message)


def _scan_balanced(line: str, start: int) -> int:
    """
    Return the index just past the ``)`` matching the ``(`` at *start*.

    Quoted strings are skipped so ``@default("(x)")`` scans correctly.
    """
    depth: int = 0
    quote: Optional[str] = None
    pos: int = start
    while pos < len(line):
        ch: str = line[pos]
        if quote:
            if ch == "\\":
                pos += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ('"', "'"):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return pos + 1
        pos += 1
    raise FieldSyntaxError("Unbalanced parentheses in attribute.", start + 1)


def tokenize_field_line(line: str) -> List[Token]:
    """Split one body line into tokens; always ends with an ``END`` token."""
    tokens: List[Token] = []
    pos: int = 0
    length: int = len(line)

    while pos < length:
        ch: str = line[pos]
        if ch.isspace():
            pos += 1
            continue

        if line.startswith("//", pos):
            tokens.append(Token(TOKEN_COMMENT, line[pos + 2 :].strip(), pos + 1))
            pos = length
            break

        if ch == "@":
            match = _ATTRIBUTE_NAME_RE.match(line, pos)
            if match is None:
                raise FieldSyntaxError("Expected an attribute name after '@'.", pos + 1)
            end: int = match.end()
            if end < length and line[end] == "(":
                end = _scan_balanced(line, end)
            tokens.append(Token(TOKEN_ATTRIBUTE, line[pos:end], pos + 1))
            pos = end
            continue

        if line.startswith("[]", pos):
            tokens.append(Token(TOKEN_ARRAY, "[]", pos + 1))
            pos += 2
            continue

        if ch == "?":
            tokens.append(Token(TOKEN_OPTIONAL, "?", pos + 1))
            pos += 1
            continue

        match = _IDENT_RE.match(line, pos)
        if match is not None:
            tokens.append(Token(TOKEN_IDENT, match.group(0), pos + 1))
            pos = match.end()
            continue

        raise FieldSyntaxError(f"Unexpected character {ch!r}.", pos + 1)

    tokens.append(Token(TOKEN_END, "", length + 1))
    return tokens


# ---------------------------------------------------------------------------
# Field-line parser
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class RawField:
    """Syntactic pieces of one field line, before classification."""

    name: str
    type_name: str
    is_array: bool = False
    is_optional: bool = False
    attributes: List[str] = field(default_factory=list)
    comment: str = ""

    def has_attribute(self, name: str) -> bool:
        return any(a.split("(", 1)[0] == name for a in self.attributes)

    def attribute(self, name: str) -> Optional[str]:
        for a in self.attributes:
            if a.split("(", 1)[0] == name:
                return a
        return None


class _FieldLineParser:
    """Recursive-descent parser for the single ``field`` production."""

    def __init__(self, tokens: List[Token]) -> None:
        self._tokens: List[Token] = tokens
        self._index: int = 0

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _accept(self, kind: str) -> Optional[Token]:
        token: Token = self._peek()
        if token.kind == kind:
            self._index += 1
            return token
        return None

    def _expect(self, kind: str, what: str) -> Token:
        token: Optional[Token] = self._accept(kind)
        if token is None:
            found: Token = self._peek()
            got: str = _TOKEN_LABELS[found.kind] if not found.value else repr(found.value)
            raise FieldSyntaxError(f"Expected {what}, found {got}.", found.column)
        return token

    def parse(self) -> RawField:
        name: Token = self._expect(TOKEN_IDENT, "a field name")
        type_name: Token = self._expect(TOKEN_IDENT, "a field type")
        raw = RawField(name=name.value, type_name=type_name.value)
        raw.is_array = self._accept(TOKEN_ARRAY) is not None
        raw.is_optional = self._accept(TOKEN_OPTIONAL) is not None

        while True:
            attribute: Optional[Token] = self._accept(TOKEN_ATTRIBUTE)
            if attribute is None:
                break
            raw.attributes.append(attribute.value)

        comment: Token = self._expect(TOKEN_COMMENT, _TOKEN_LABELS[TOKEN_COMMENT])
        if not comment.value:
            raise FieldSyntaxError("Field description is empty.", comment.column)
        raw.comment = comment.value
        self._expect(TOKEN_END, _TOKEN_LABELS[TOKEN_END])
        return raw


def parse_field_line(line: str) -> RawField:
    """Tokenize and parse one field line.  Raises ``FieldSyntaxError``."""
    return _FieldLineParser(tokenize_field_line(line)).parse()


# ---------------------------------------------------------------------------
# Definition unit → ParsedSchema
# ---------------------------------------------------------------------------


def _is_skipped(line: str) -> bool:
    stripped: str = line.strip()
    return not stripped or "@@" in stripped


def _classify(
    raw: RawField, registry: ModelRegistry, file_id: str, line_no: int
) -> Tuple[Optional[FieldRecord], Optional[JoinFieldRecord]]:
    comment: ParsedComment = parse_directives(raw.comment)

    if raw.type_name in registry:
        relation: Optional[str] = raw.attribute("@relation")
        relation_match = _RELATION_FIELDS_RE.search(relation) if relation else None
        return None, JoinFieldRecord(
            name=raw.name,
            relation_id=relation_match.group(1) if relation_match else None,
            model=raw.type_name,
            type=map_relation_type(raw.type_name),
            is_array=raw.is_array,
            is_required=not raw.is_optional,
            description=comment.description,
        )

    if comment.unknown_directives:
        logger.debug(
            "%s:%d: unknown directive(s) %s on field '%s' left in description.",
            file_id,
            line_no,
            ", ".join(comment.unknown_directives),
            raw.name,
        )

    return (
        FieldRecord(
            name=raw.name,
            type=map_type(raw.type_name, raw.is_array),
            is_array=raw.is_array,
            is_id=raw.has_attribute("@id"),
            is_required=not raw.is_optional,
            dto_options=comment.dto_options,
            description=comment.description,
            unknown_directives=comment.unknown_directives,
        ),
        None,
    )


def parse_definition(
    text: str,
    registry: ModelRegistry,
    file_id: str = "<schema>",
    location: SchemaLocation = SchemaLocation.PRIMARY,
) -> ParsedSchema:
    """
    Parse the raw text of one definition unit.

    Raises:
        MalformedSchemaError: missing model header, description, or ``}``.
        MalformedFieldError: a body line does not match the field grammar.
    """
    text = text.removeprefix("\ufeff")
    header = _MODEL_HEADER_RE.search(text)
    if header is None:
        raise MalformedSchemaError(
            "No model name found (expected 'model Name {').",
            SourceContext(file=file_id),
        )

    description = _MODEL_DESCRIPTION_RE.search(text)
    if description is None or not description.group(1):
        raise MalformedSchemaError(
            f"No model description found for '{header.group(1)}' "
            "(expected a '// description' line directly above the model).",
            SourceContext(file=file_id),
        )

    lines: List[str] = text.splitlines()
    header_index: int = text.count("\n", 0, header.start())

    fields: List[FieldRecord] = []
    joins: List[JoinFieldRecord] = []
    closed: bool = False

    for index in range(header_index + 1, len(lines)):
        line: str = lines[index]
        if line.strip().startswith("}"):
            closed = True
            break
        if _is_skipped(line):
            continue

        line_no: int = index + 1
        try:
            raw: RawField = parse_field_line(line)
        except FieldSyntaxError as exc:
            raise MalformedFieldError(
                f"{exc} Field lines must read 'name Type[]? ? @attr* // description'.",
                SourceContext(file=file_id, line=line_no, column=exc.column, snippet=line),
            ) from exc

        scalar, join = _classify(raw, registry, file_id, line_no)
        if scalar is not None:
            fields.append(scalar)
        if join is not None:
            joins.append(join)

    if not closed:
        raise MalformedSchemaError(
            f"Model '{header.group(1)}' body is not closed with '}}'.",
            SourceContext(file=file_id, line=header_index + 1),
        )

    schema = ParsedSchema(
        name=header.group(1),
        description=description.group(1),
        fields=tuple(fields),
        joins=tuple(joins),
        file_id=file_id,
        location=location,
    )
    logger.debug("Parsed %r from %s", schema, file_id)
    return schema


# ---------------------------------------------------------------------------
# Source discovery
# ---------------------------------------------------------------------------


def normalize_file_id(file_id: str) -> str:
    """``order-item.prisma`` / ``order-item`` → ``order-item``."""
    name: str = Path(file_id).name
    return name[: -len(SCHEMA_EXTENSION)] if name.endswith(SCHEMA_EXTENSION) else name


@dataclass(frozen=True, slots=True)
class SchemaSource:
    """The two directories definition units are read from."""

    primary_dir: Path
    aggregate_dir: Path

    @classmethod
    def from_config(cls, config: GeneratorConfig) -> "SchemaSource":
        return cls(primary_dir=config.schema_path, aggregate_dir=config.info_schema_path)

    def directory(self, location: SchemaLocation) -> Path:
        return self.aggregate_dir if location == SchemaLocation.AGGREGATE else self.primary_dir

    def files(self, location: SchemaLocation) -> List[Path]:
        directory: Path = self.directory(location)
        if not directory.is_dir():
            if location == SchemaLocation.PRIMARY:
                raise NotFoundError(f"Schema directory not found: {directory}")
            logger.debug("No aggregate schema directory at %s", directory)
            return []
        return sorted(
            p for p in directory.iterdir() if p.is_file() and p.name.endswith(SCHEMA_EXTENSION)
        )

    def all_files(self) -> List[Tuple[SchemaLocation, Path]]:
        entries: List[Tuple[SchemaLocation, Path]] = []
        for location in (SchemaLocation.PRIMARY, SchemaLocation.AGGREGATE):
            entries.extend((location, p) for p in self.files(location))
        return entries

    def resolve(self, file_id: str) -> Tuple[SchemaLocation, Path]:
        """Find *file_id*; the primary location wins over the aggregate one."""
        file_name: str = normalize_file_id(file_id) + SCHEMA_EXTENSION
        for location in (SchemaLocation.PRIMARY, SchemaLocation.AGGREGATE):
            candidate: Path = self.directory(location) / file_name
            if candidate.is_file():
                return location, candidate
        raise NotFoundError(
            f"The file {file_name} does not exist in {self.primary_dir} or "
            f"{self.aggregate_dir}. Are the file name and model name the same? "
            "(order-item.prisma -> model OrderItem { ... })"
        )


def build_registry(source: SchemaSource) -> ModelRegistry:
    """
    Collect every declared model name across both locations.

    Files without a ``model`` header are skipped.
    """
    names: Set[str] = set()
    aggregate: Set[str] = set()

    for location, path in source.all_files():
        header = _MODEL_HEADER_RE.search(path.read_text(encoding="utf-8-sig"))
        if header is None:
            logger.warning("No model header in %s; skipped for registry.", path)
            continue
        name: str = header.group(1)
        if name in names:
            logger.warning("Model '%s' declared more than once (again in %s).", name, path)
        names.add(name)
        if location == SchemaLocation.AGGREGATE:
            aggregate.add(name)

    registry = ModelRegistry(names=frozenset(names), aggregate_names=frozenset(aggregate))
    logger.info(
        "Model registry built: %d model(s), %d aggregate.", len(names), len(aggregate)
    )
    return registry


# ---------------------------------------------------------------------------
# Parser facade
# ---------------------------------------------------------------------------


class SchemaParser:
    """
    Reads definition units from a ``SchemaSource``.

    The registry is fixed at construction; pass one explicitly to share it
    between parsers or to parse against a hand-built registry in tests.
    """

    def __init__(self, source: SchemaSource, registry: Optional[ModelRegistry] = None) -> None:
        self._source: SchemaSource = source
        self._registry: ModelRegistry = registry if registry is not None else build_registry(source)

    @property
    def source(self) -> SchemaSource:
        return self._source

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def _parse_file(self, location: SchemaLocation, path: Path) -> ParsedSchema:
        return parse_definition(
            path.read_text(encoding="utf-8-sig"),
            self._registry,
            file_id=normalize_file_id(path.name),
            location=location,
        )

    def export(self, file_id: str) -> ParsedSchema:
        """Parse one definition unit by id (``order-item`` or ``order-item.prisma``)."""
        location, path = self._source.resolve(file_id)
        return self._parse_file(location, path)

    def export_many(self, include_aggregate: bool = True) -> List[ParsedSchema]:
        """Parse every definition unit, primary location first, in file-name order."""
        logger.info("Schema extracting...")
        schemas: List[ParsedSchema] = []
        for location, path in self._source.all_files():
            if location == SchemaLocation.AGGREGATE and not include_aggregate:
                continue
            schemas.append(self._parse_file(location, path))
        return schemas

    def export_aggregates(self) -> List[ParsedSchema]:
        """Parse only the aggregate (info) definition units."""
        return [
            self._parse_file(SchemaLocation.AGGREGATE, path)
            for path in self._source.files(SchemaLocation.AGGREGATE)
        ]


__all__: List[str] = [
    "SCHEMA_EXTENSION",
    "DIRECTIVES",
    "ParsedComment",
    "parse_directives",
    "Token",
    "FieldSyntaxError",
    "tokenize_field_line",
    "RawField",
    "parse_field_line",
    "parse_definition",
    "normalize_file_id",
    "SchemaSource",
    "build_registry",
    "SchemaParser",
]
