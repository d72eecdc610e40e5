# File: prismagen/templates.py
"""
prismagen - Code Template Engine
=================================
Transforms ``ParsedSchema`` objects into NestJS + Prisma TypeScript sources:

    1. Data models (``@nestjs/swagger`` annotated classes), one per schema
    2. Repository (Prisma data access)
    3. Service (business logic + response envelopes)
    4. Controller (routes)
    5. Module (Nest wiring)
    6. Interfaces (one per action)
    7. Request DTOs (class-validator contracts, one per action)
    8. Response DTOs (one per action)
    9. Info: one read-only repository / service / controller spanning every
       aggregate model, plus its DTOs

Actions are ``create``, ``update``, ``delete``, ``findUnique`` and ``findList``.

**Contract:**
    - Every ``generate_*`` method is a pure function of its arguments and
      returns a ``LayerOutput``; nothing here touches the file system.
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Every generator of one invocation derives names through
      ``ResourceNames.from_name`` so cross-file references agree.
    - Generators that need the identifier field fail with
      ``MissingIdentifierError`` / ``CompositeIdentifierError`` instead of
      emitting references to an undefined symbol.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from prismagen.models import (
    DtoAction,
    DtoTag,
    FieldRecord,
    GeneratedArtifact,
    GeneratorConfig,
    JoinFieldRecord,
    Layer,
    LayerOutput,
    OutputTarget,
    ParsedSchema,
    Profile,
)
from prismagen.utils import (
    ResourceNames,
    build_import_block,
    camel_to_kebab,
    camel_to_pascal,
    indent_lines,
    pascal_to_camel,
    pascal_to_kebab,
    pluralize,
    ts_string,
)
from prismagen.validators import require_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDENT: str = "    "

ACTIONS: Tuple[str, ...] = ("create", "update", "delete", "findUnique", "findList")

# Response envelope base class per action.
_RESPONSE_BASES: Dict[str, str] = {
    "create": "NoDataResponseDto",
    "update": "NoDataResponseDto",
    "delete": "NoDataResponseDto",
    "findUnique": "ResponseDto",
    "findList": "ResponseWithMetadataDto",
}

# User-facing labels rendered into the generated application.
_LABELS: Dict[str, str] = {
    "create": "생성",
    "update": "수정",
    "delete": "삭제",
    "destroy": "영구 삭제",
    "findUnique": "단일 조회",
    "findMany": "전체 조회",
    "findList": "목록 조회",
    "info": "조회",
}

# Subject particle that follows each label in completion messages.
_PARTICLES: Dict[str, str] = {
    "create": "이",
    "update": "이",
    "delete": "가",
    "destroy": "가",
    "findUnique": "가",
    "findMany": "가",
    "findList": "가",
}

_DONE_SUFFIX: str = " 완료되었습니다."
_INFO_DONE_SUFFIX: str = "리소스 정상 반환"


def _done(description: str, action: str) -> str:
    return ts_string(f"{description} {_LABELS[action]}{_PARTICLES[action]}{_DONE_SUFFIX}")


def _action_kebab(action: str) -> str:
    return camel_to_kebab(action)


def _action_pascal(action: str) -> str:
    return camel_to_pascal(action)


# ---------------------------------------------------------------------------
# TemplateGenerator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless code-generation engine.

    Holds only configuration (markers, exclusion list, validator package);
    every ``generate_*`` call builds fresh strings.
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        expose_fields: Optional[Sequence[str]] = None,
    ) -> None:
        self._config: GeneratorConfig = config or GeneratorConfig()
        self._expose_fields: Set[str] = set(
            expose_fields if expose_fields is not None else self._config.expose_fields
        )
        logger.debug(
            "TemplateGenerator initialised (marker=%s, excluded=%d).",
            self._config.management_marker,
            len(self._expose_fields),
        )

    # -- Shared helpers ----------------------------------------------------

    def names(self, resource_name: str) -> ResourceNames:
        return ResourceNames.from_name(resource_name, self._config.management_marker)

    @property
    def validator_package(self) -> str:
        return self._config.validator_package

    def _model_import(self, model: str) -> Tuple[str, str]:
        return f"@model/{pascal_to_kebab(model)}.model", f"{model}Model"

    def _api_path(self, names: ResourceNames) -> str:
        if names.is_management:
            return f"/management/{pluralize(names.kebab_base)}"
        return f"/{pluralize(names.kebab)}"

    # ===================================================================
    # 1. Data model
    # ===================================================================

    def generate_model(self, schemas: Sequence[ParsedSchema]) -> LayerOutput:
        """One ``<kebab>.model.ts`` per schema; excluded fields are left out."""
        artifacts: List[GeneratedArtifact] = []

        for schema in schemas:
            properties: List[str] = []
            for f in schema.fields:
                if f.name in self._expose_fields:
                    continue
                kind: str = "enum" if f.type.is_enum else "type"
                nullable: str = "false" if f.is_required else "true"
                null_suffix: str = "" if f.is_required else " | null"
                properties.append(
                    f"{_INDENT}@ApiProperty({{ description: {ts_string(f.description)}, "
                    f"{kind}: {f.type.documentation}, nullable: {nullable} }})\n"
                    f"{_INDENT}{f.name}!: {f.type.response}{null_suffix};"
                )

            lines: List[str] = [
                build_import_block(
                    {
                        "@prisma/client": ["$Enums", "Prisma"],
                        "@nestjs/swagger": ["ApiProperty"],
                    }
                ),
                "",
                f"export class {schema.name}Model {{",
                "\n\n".join(properties),
                "}",
                "",
            ]
            artifacts.append(
                GeneratedArtifact(
                    path=f"{pascal_to_kebab(schema.name)}.model.ts",
                    content="\n".join(lines),
                )
            )
            logger.info("%s Model Creating...", schema.name)

        return LayerOutput(
            layer=Layer.MODEL,
            target=OutputTarget.MODELS,
            reset_directories=("",),
            artifacts=tuple(artifacts),
        )

    # ===================================================================
    # 2. Repository
    # ===================================================================

    def generate_repository(self, resource_name: str, schema: ParsedSchema) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        id_field: FieldRecord = require_identifier(schema)
        pk: str = id_field.name
        pk_param: str = f"{pk}: {id_field.type.request}"
        repo: str = f"this.{n.camel}Repository"
        prisma_model: str = n.pascal_base

        if schema.is_soft_deletable:
            delete_block: List[str] = [
                "/** 삭제 및 유효성 검증 */",
                f"async softDelete({pk_param}) {{",
                f"    return {repo}.softDelete({{ {pk} }});",
                "}",
            ]
        else:
            delete_block = [
                "/** 영구 삭제 및 유효성 검증 */",
                f"async delete({pk_param}) {{",
                f"    return {repo}.delete({{ where: {{ {pk} }} }});",
                "}",
            ]

        body: List[str] = [
            f"private {n.camel}Repository = this.prisma.extendedClient.{n.camel_base};",
            "",
            "constructor(private prisma: PrismaService) {}",
            "",
            "/** 생성 */",
            f"async create(data: Prisma.{prisma_model}CreateInput | "
            f"Prisma.{prisma_model}UncheckedCreateInput) {{",
            f"    return {repo}.create({{ data }});",
            "}",
            "",
            "/** 수정 */",
            f"async update({pk_param}, data: Prisma.{prisma_model}UpdateInput | "
            f"Prisma.{prisma_model}UncheckedUpdateInput) {{",
            f"    return {repo}.update({{ where: {{ {pk} }}, data }});",
            "}",
            "",
            *delete_block,
            "",
            "/** 단일 조회 및 유효성 검증 */",
            f"async findUniqueOrThrow({pk_param}) {{",
            f"    const resource = await {repo}.findUnique({{ where: {{ {pk} }} }});",
            f"    if (!resource) throw new ResourceNotFoundException({ts_string(schema.description)});",
            "    return resource;",
            "}",
            "",
            "/** 전체 조회 */",
            "async findMany() {",
            f"    return {repo}.findMany();",
            "}",
            "",
            "/** 목록 조회 */",
            f"async findList(data: I{n.pascal}FindList) {{",
            f"    const options = getPaginationOption(data, Prisma.ModelName.{prisma_model});",
            "    const [resources, totalCount] = await this.prisma.$transaction(["
            f"{repo}.findMany(options), {repo}.count({{ where: options.where }})]);",
            "    return { resources, meta: getMetadata(data, totalCount) };",
            "}",
        ]

        lines: List[str] = [
            build_import_block(
                {
                    "@prisma/client": ["Prisma"],
                    "@nestjs/common": ["Injectable"],
                    "@common/prisma/prisma.service": ["PrismaService"],
                    "@function/pagination.function": ["getPaginationOption"],
                    "@function/metadata.function": ["getMetadata"],
                    "@exception/not-found.exception": ["ResourceNotFoundException"],
                    f"./interfaces/{n.kebab}-find-list.interface": [f"I{n.pascal}FindList"],
                }
            ),
            "",
            "@Injectable()",
            f"export class {n.pascal}Repository {{",
            *indent_lines(body),
            "}",
            "",
        ]
        return self._single(Layer.REPOSITORY, n, f"{n.kebab}.repository.ts", lines)

    # ===================================================================
    # 3. Service
    # ===================================================================

    def generate_service(self, resource_name: str, schema: ParsedSchema) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        pk: str = require_identifier(schema).name
        repo: str = f"this.{n.camel}Repository"
        desc: str = schema.description

        if schema.is_soft_deletable:
            delete_block: List[str] = [
                "/** 삭제 */",
                f"async delete(data: I{n.pascal}Delete) {{",
                "    // 유효성 검증",
                f"    await {repo}.findUniqueOrThrow(data.{pk});",
                "",
                "    // 삭제",
                f"    await {repo}.softDelete(data.{pk});",
                "",
                "    // 반환",
                f"    return getResponseNoData({_done(desc, 'delete')});",
                "}",
            ]
        else:
            delete_block = [
                "/** 영구 삭제 */",
                f"async delete(data: I{n.pascal}Delete) {{",
                "    // 유효성 검증",
                f"    await {repo}.findUniqueOrThrow(data.{pk});",
                "",
                "    // 삭제",
                f"    await {repo}.delete(data.{pk});",
                "",
                "    // 반환",
                f"    return getResponseNoData({_done(desc, 'destroy')});",
                "}",
            ]

        body: List[str] = [
            f"constructor(private {n.camel}Repository: {n.pascal}Repository) {{}}",
            "",
            "/** 생성 */",
            f"async create(data: I{n.pascal}Create) {{",
            "    // 생성",
            f"    await {repo}.create(data);",
            "",
            "    // 반환",
            f"    return getResponseNoData({_done(desc, 'create')});",
            "}",
            "",
            "/** 수정 */",
            f"async update({{ {pk}, ...data }}: I{n.pascal}Update) {{",
            "    // 유효성 검증",
            f"    await {repo}.findUniqueOrThrow({pk});",
            "",
            "    // 수정",
            f"    await {repo}.update({pk}, data);",
            "",
            "    // 반환",
            f"    return getResponseNoData({_done(desc, 'update')});",
            "}",
            "",
            *delete_block,
            "",
            "/** 단일 조회 */",
            f"async findUnique(data: I{n.pascal}FindUnique) {{",
            "    // 조회 및 유효성 검증",
            f"    const resource = await {repo}.findUniqueOrThrow(data.{pk});",
            "",
            "    // 반환",
            f"    return getResponseData({_done(desc, 'findUnique')}, resource);",
            "}",
            "",
            "/** 전체 조회 */",
            "async findMany() {",
            "    // 조회",
            f"    const resources = await {repo}.findMany();",
            "",
            "    // 반환",
            f"    return getResponseData({_done(desc, 'findMany')}, resources);",
            "}",
            "",
            "/** 목록 조회 */",
            f"async findList(data: I{n.pascal}FindList) {{",
            "    // 조회",
            f"    const {{ resources, meta }} = await {repo}.findList(data);",
            "",
            "    // 반환",
            f"    return getResponseDataWithMeta({_done(desc, 'findList')}, resources, meta);",
            "}",
        ]

        imports: Dict[str, List[str]] = {
            "@nestjs/common": ["Injectable"],
            "@function/response.function": [
                "getResponseData",
                "getResponseDataWithMeta",
                "getResponseNoData",
            ],
            f"./{n.kebab}.repository": [f"{n.pascal}Repository"],
        }
        for action in ("create", "update", "delete", "findList", "findUnique"):
            imports[f"./interfaces/{n.kebab}-{_action_kebab(action)}.interface"] = [
                f"I{n.pascal}{_action_pascal(action)}"
            ]

        lines: List[str] = [
            build_import_block(imports),
            "",
            "@Injectable()",
            f"export class {n.pascal}Service {{",
            *indent_lines(body),
            "}",
            "",
        ]
        return self._single(Layer.SERVICE, n, f"{n.kebab}.service.ts", lines)

    # ===================================================================
    # 4. Controller
    # ===================================================================

    def generate_controller(self, resource_name: str, schema: ParsedSchema) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        pk: str = require_identifier(schema).name
        service: str = f"this.{n.camel}Service"
        desc: str = schema.description
        delete_label: str = "delete" if schema.is_soft_deletable else "destroy"

        def route(
            decorator: str, label: str, method: str, param: str, action: str, call: str
        ) -> List[str]:
            return [
                decorator,
                "@UseRoleGuard()",
                f"@ApiInformation({ts_string(f'{desc} {_LABELS[label]}')}, true)",
                f"async {method}(@Account() account: IPayload, {param}: "
                f"{n.pascal}{_action_pascal(action)}Dto): "
                f"Promise<{n.pascal}{_action_pascal(action)}ResponseDto> {{",
                f"    return await {service}.{call};",
                "}",
            ]

        body: List[str] = [
            f"constructor(private {n.camel}Service: {n.pascal}Service) {{}}",
            "",
            *route("@Post()", "create", "create", "@Body() body", "create", "create(body)"),
            "",
            *route("@Put()", "update", "update", "@Body() body", "update", "update(body)"),
            "",
            *route(
                f'@Delete(":{pk}")', delete_label, "delete", "@Param() param", "delete",
                "delete(param)",
            ),
            "",
            *route(
                f'@Get(":{pk}")', "findUnique", "findUnique", "@Param() param", "findUnique",
                "findUnique(param)",
            ),
            "",
            *route("@Get()", "findList", "findList", "@Query() query", "findList",
                   "findList(query)"),
        ]

        imports: Dict[str, List[str]] = {
            "@decorator/controller.decorator": ["ApiController", "ApiInformation"],
            "@nestjs/common": ["Body", "Delete", "Get", "Param", "Post", "Put", "Query"],
            f"./{n.kebab}.service": [f"{n.pascal}Service"],
        }
        for action in ACTIONS:
            stem: str = f"{n.kebab}-{_action_kebab(action)}.dto"
            pascal_action: str = _action_pascal(action)
            imports[f"./dto/{stem}"] = [f"{n.pascal}{pascal_action}Dto"]
            imports[f"./dto/response/{stem}"] = [f"{n.pascal}{pascal_action}ResponseDto"]
        imports["@decorator/account.decorator"] = ["Account"]
        imports["@common/jwt/interfaces/payload.interface"] = ["IPayload"]
        imports["@decorator/guard.decorator"] = ["UseRoleGuard"]

        lines: List[str] = [
            build_import_block(imports),
            "",
            f"@ApiController({ts_string(self._api_path(n))})",
            f"export class {n.pascal}Controller {{",
            *indent_lines(body),
            "}",
            "",
        ]
        return self._single(Layer.CONTROLLER, n, f"{n.kebab}.controller.ts", lines)

    # ===================================================================
    # 5. Module
    # ===================================================================

    def generate_module(self, resource_name: str) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        lines: List[str] = [
            build_import_block(
                {
                    "@nestjs/common": ["Module"],
                    f"./{n.kebab}.controller": [f"{n.pascal}Controller"],
                    f"./{n.kebab}.service": [f"{n.pascal}Service"],
                    f"./{n.kebab}.repository": [f"{n.pascal}Repository"],
                }
            ),
            "",
            "@Module({",
            f"    controllers: [{n.pascal}Controller],",
            f"    providers: [{n.pascal}Service, {n.pascal}Repository],",
            f"    exports: [{n.pascal}Service, {n.pascal}Repository],",
            "})",
            f"export class {n.pascal}Module {{}}",
            "",
        ]
        return self._single(Layer.MODULE, n, f"{n.kebab}.module.ts", lines)

    # ===================================================================
    # 6. Interfaces
    # ===================================================================

    def generate_interfaces(self, resource_name: str) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        artifacts: List[GeneratedArtifact] = []
        for action in ACTIONS:
            stem: str = f"{n.kebab}-{_action_kebab(action)}"
            dto: str = f"{n.pascal}{_action_pascal(action)}Dto"
            content: str = "\n".join(
                [
                    build_import_block({f"../dto/{stem}.dto": [dto]}),
                    "",
                    f"export interface I{n.pascal}{_action_pascal(action)} extends {dto} {{}}",
                    "",
                ]
            )
            artifacts.append(GeneratedArtifact(path=f"interfaces/{stem}.interface.ts", content=content))

        return LayerOutput(
            layer=Layer.INTERFACES,
            resource_name=n.camel,
            reset_directories=("interfaces",),
            artifacts=tuple(artifacts),
        )

    # ===================================================================
    # 7. Request DTOs
    # ===================================================================

    def _request_property(self, f: FieldRecord, required: bool, doc: Optional[str] = None) -> str:
        presence: str = "IsNotEmpty" if required else "IsOptional"
        mark: str = "!" if required else "?"
        return "\n".join(
            [
                f"{_INDENT}/** {doc if doc is not None else f.description} */",
                f"{_INDENT}@{presence}()",
                f"{_INDENT}@{f.type.validator}",
                f"{_INDENT}{f.name}{mark}: {f.type.request};",
            ]
        )

    def request_fields(
        self, schema: ParsedSchema, action: str, profile: Profile
    ) -> List[Tuple[FieldRecord, bool]]:
        """
        Fields of one request contract as ``(field, required)`` pairs.

        ``create`` honours the profile's create tags; ``update`` is the
        identifier plus every update-tagged field; ``delete`` and
        ``findUnique`` are the identifier alone; ``findList`` is empty.
        """
        if action == "create":
            picked: List[Tuple[FieldRecord, bool]] = []
            for f in schema.fields:
                tag: Optional[DtoTag] = f.dto_options.profile(profile).create
                if tag is not None:
                    picked.append((f, tag == DtoTag.CREATE_REQUIRED))
            return picked
        if action == "findList":
            return []

        id_field: FieldRecord = require_identifier(schema)
        if action == "update":
            return [(id_field, True)] + [
                (f, False)
                for f in schema.fields
                if f.dto_options.profile(profile).update == DtoTag.UPDATE and not f.is_id
            ]
        return [(id_field, True)]

    def generate_request_contract(
        self, resource_name: str, schema: ParsedSchema, profile: Optional[Profile] = None
    ) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        level: Profile = profile or n.profile
        artifacts: List[GeneratedArtifact] = []

        for action in ACTIONS:
            stem: str = f"{n.kebab}-{_action_kebab(action)}"
            interface: str = f"I{n.pascal}{_action_pascal(action)}"
            class_name: str = f"{n.pascal}{_action_pascal(action)}Dto"
            picked = self.request_fields(schema, action, level)

            validators: List[str] = []
            uses_enum: bool = False
            for f, required in picked:
                validators.append("IsNotEmpty" if required else "IsOptional")
                validators.append(f.type.validator_name)
                uses_enum = uses_enum or f.type.is_enum

            imports: Dict[str, List[str]] = {}
            if validators:
                imports[self.validator_package] = sorted(set(validators))
            if uses_enum:
                imports["@prisma/client"] = ["$Enums"]
            imports[f"../interfaces/{stem}.interface"] = [interface]
            if action == "findList":
                imports["@dto/request.dto"] = ["PaginationDto"]

            if action == "findList":
                declaration: str = (
                    f"export class {class_name} extends PaginationDto implements {interface} {{}}"
                )
            elif picked:
                properties: str = "\n\n".join(self._request_property(f, req) for f, req in picked)
                declaration = f"export class {class_name} implements {interface} {{\n{properties}\n}}"
            else:
                declaration = f"export class {class_name} implements {interface} {{}}"

            content: str = "\n".join([build_import_block(imports), "", declaration, ""])
            artifacts.append(GeneratedArtifact(path=f"dto/{stem}.dto.ts", content=content))

        logger.debug("Request contracts for %s use the %s profile.", n.pascal, level.value)
        return LayerOutput(
            layer=Layer.REQUEST_CONTRACT,
            resource_name=n.camel,
            reset_directories=("dto",),
            artifacts=tuple(artifacts),
        )

    # ===================================================================
    # 8. Response DTOs
    # ===================================================================

    def omitted_response_fields(
        self, schema: ParsedSchema, action: str, profile: Profile
    ) -> List[str]:
        """Fields tagged RESPONSE_EXPOSE for a read action are omitted from its model."""
        slot: Optional[DtoAction] = {
            "findUnique": DtoAction.FIND_UNIQUE,
            "findList": DtoAction.FIND_LIST,
        }.get(action)
        if slot is None:
            return []
        return [
            f.name
            for f in schema.fields
            if f.dto_options.profile(profile).tag_for(slot) == DtoTag.RESPONSE_EXPOSE
        ]

    def generate_response_contract(
        self, resource_name: str, schema: ParsedSchema, profile: Optional[Profile] = None
    ) -> LayerOutput:
        n: ResourceNames = self.names(resource_name)
        level: Profile = profile or n.profile
        join_models: List[str] = list(dict.fromkeys(j.model for j in schema.joins))
        main_module, main_model = self._model_import(schema.name)
        artifacts: List[GeneratedArtifact] = []

        for action in ACTIONS:
            base: str = _RESPONSE_BASES[action]
            prefix: str = f"{n.pascal}{_action_pascal(action)}"
            if base == "NoDataResponseDto":
                data_type: str = "null"
            elif action == "findList":
                data_type = f"{prefix}Model[]"
            else:
                data_type = f"{prefix}Model"

            imports: Dict[str, List[str]] = {
                "@dto/response.dto": [base],
                "@type/response-service": ["ResponseService"],
                "@nestjs/swagger": ["OmitType"],
                f"../../{n.kebab}.service": [f"{n.pascal}Service"],
                main_module: [main_model],
            }
            for model in join_models:
                module, class_name = self._model_import(model)
                imports.setdefault(module, []).append(class_name)

            omitted: str = ", ".join(
                ts_string(name) for name in self.omitted_response_fields(schema, action, level)
            )
            lines: List[str] = [
                build_import_block(imports),
                "",
                "/** Response Dto */",
                f"export class {prefix}ResponseDto extends {base} implements "
                f"ResponseService<{n.pascal}Service[{ts_string(action)}]> {{",
                f"    data: {data_type};",
                "}",
                "",
                "/** Model */",
                f"class {prefix}Model extends OmitType({main_model}, [{omitted}]) {{}}",
            ]
            if join_models:
                lines.extend(["", "/** Include Models */"])
                lines.extend(
                    f"class {prefix}With{model}Model extends OmitType({model}Model, []) {{}}"
                    for model in join_models
                )
            lines.append("")

            artifacts.append(
                GeneratedArtifact(
                    path=f"dto/response/{n.kebab}-{_action_kebab(action)}.dto.ts",
                    content="\n".join(lines),
                )
            )

        return LayerOutput(
            layer=Layer.RESPONSE_CONTRACT,
            resource_name=n.camel,
            reset_directories=("dto/response",),
            artifacts=tuple(artifacts),
        )

    # ===================================================================
    # 9. Info (aggregate, read-only)
    # ===================================================================

    def info_route_name(self, schema: ParsedSchema) -> str:
        """``CategoryInfo`` → ``Category``."""
        return schema.name.replace(self._config.aggregate_marker, "", 1)

    @staticmethod
    def info_includes(schema: ParsedSchema) -> List[JoinFieldRecord]:
        return [j for j in schema.joins if not j.is_array]

    @staticmethod
    def info_filter(
        schema: ParsedSchema, aggregate_names: Set[str]
    ) -> Optional[Tuple[JoinFieldRecord, FieldRecord]]:
        """
        The foreign-key filter of an info finder, if any.

        Present only when the schema has exactly one single-valued relation
        with a relation id whose target is itself an aggregate model.
        """
        candidates: List[JoinFieldRecord] = [
            j
            for j in schema.joins
            if not j.is_array and j.relation_id and j.model in aggregate_names
        ]
        if len(candidates) != 1:
            return None
        join: JoinFieldRecord = candidates[0]
        key: Optional[FieldRecord] = schema.field_named(join.relation_id or "")
        if key is None:
            return None
        return join, key

    def generate_info(self, schemas: Sequence[ParsedSchema]) -> LayerOutput:
        """Composite read-only layer spanning every aggregate schema."""
        aggregate_names: Set[str] = {s.name for s in schemas}
        variables: List[str] = []
        repository_methods: List[str] = []
        service_methods: List[str] = []
        controller_methods: List[str] = []
        controller_imports: Dict[str, List[str]] = {
            "@nestjs/common": ["Get", "Query"],
            "./info.service": ["InfoService"],
            "@decorator/controller.decorator": ["ApiController", "ApiInformation"],
        }
        artifacts: List[GeneratedArtifact] = []

        for schema in schemas:
            route_name: str = self.info_route_name(schema)
            method: str = f"{pascal_to_camel(route_name)}FindMany"
            variable: str = f"{pascal_to_camel(route_name)}Repository"
            found = self.info_filter(schema, aggregate_names)
            includes: List[JoinFieldRecord] = self.info_includes(schema)

            param: str = f"{found[1].name}?: {found[1].type.request}" if found else ""
            arg: str = found[1].name if found else ""

            find_args: List[str] = []
            if found:
                find_args.append(f"where: {{ {arg} }}")
            if includes:
                find_args.append(
                    "include: { " + ", ".join(f"{j.name}: true" for j in includes) + " }"
                )
            find_call: str = f"{{ {', '.join(find_args)} }}" if find_args else ""

            variables.append(
                f"private {variable} = this.prisma.extendedClient.{pascal_to_camel(schema.name)};"
            )
            repository_methods.append(
                "\n".join(
                    [
                        f"/** {schema.description} */",
                        f"async {method}({param}) {{",
                        f"    return this.{variable}.findMany({find_call});",
                        "}",
                    ]
                )
            )

            result: str = pascal_to_camel(route_name)
            message: str = ts_string(f"{schema.description} {_INFO_DONE_SUFFIX}")
            service_methods.append(
                "\n".join(
                    [
                        f"/** {schema.description} */",
                        f"async {method}({param}) {{",
                        f"    const {result} = await this.infoRepository.{method}({arg});",
                        f"    return getResponseData({message}, {result});",
                        "}",
                    ]
                )
            )

            stem: str = f"{schema.file_id or pascal_to_kebab(schema.name)}-find-many.dto"
            request_dto: str = f"{schema.name}FindManyDto"
            response_dto: str = f"{schema.name}FindManyResponseDto"
            controller_imports[f"./dto/{stem}"] = [request_dto]
            controller_imports[f"./dto/response/{stem}"] = [response_dto]
            query: str = f"@Query() query: {request_dto}" if found else ""
            call_arg: str = f"query.{arg}" if found else ""
            controller_methods.append(
                "\n".join(
                    [
                        f"@Get({ts_string('/' + pluralize(pascal_to_kebab(route_name)))})",
                        f"@ApiInformation({ts_string(schema.description + ' ' + _LABELS['info'])}, false)",
                        f"async {method}({query}): Promise<{response_dto}> {{",
                        f"    return await this.infoService.{method}({call_arg});",
                        "}",
                    ]
                )
            )

            artifacts.append(
                GeneratedArtifact(
                    path=f"dto/{stem}.ts",
                    content=self._info_request_dto(schema, found),
                )
            )
            artifacts.append(
                GeneratedArtifact(
                    path=f"dto/response/{stem}.ts",
                    content=self._info_response_dto(schema, method, includes),
                )
            )

        repository: List[str] = [
            build_import_block(
                {
                    "@nestjs/common": ["Injectable"],
                    "@common/prisma/prisma.service": ["PrismaService"],
                }
            ),
            "",
            "@Injectable()",
            "export class InfoRepository {",
            *indent_lines(variables),
            "",
            "    constructor(private prisma: PrismaService) {}",
            "",
            *indent_lines("\n\n".join(repository_methods).split("\n")),
            "}",
            "",
        ]
        service: List[str] = [
            build_import_block(
                {
                    "@nestjs/common": ["Injectable"],
                    "./info.repository": ["InfoRepository"],
                    "@function/response.function": ["getResponseData"],
                }
            ),
            "",
            "@Injectable()",
            "export class InfoService {",
            "    constructor(private infoRepository: InfoRepository) {}",
            "",
            *indent_lines("\n\n".join(service_methods).split("\n")),
            "}",
            "",
        ]
        controller: List[str] = [
            build_import_block(controller_imports),
            "",
            '@ApiController("info")',
            "export class InfoController {",
            "    constructor(private infoService: InfoService) {}",
            "",
            *indent_lines("\n\n".join(controller_methods).split("\n")),
            "}",
            "",
        ]

        layer_files: List[GeneratedArtifact] = [
            GeneratedArtifact(path="info.repository.ts", content="\n".join(repository)),
            GeneratedArtifact(path="info.service.ts", content="\n".join(service)),
            GeneratedArtifact(path="info.controller.ts", content="\n".join(controller)),
        ]
        return LayerOutput(
            layer=Layer.INFO,
            resource_name="info",
            target=OutputTarget.INFO,
            artifacts=tuple(layer_files + artifacts),
        )

    def _info_request_dto(
        self, schema: ParsedSchema, found: Optional[Tuple[JoinFieldRecord, FieldRecord]]
    ) -> str:
        class_name: str = f"{schema.name}FindManyDto"
        if found is None:
            return f"export class {class_name} {{}}\n"

        key: FieldRecord = found[1]
        imports: Dict[str, List[str]] = {
            self.validator_package: ["IsOptional", key.type.validator_name],
        }
        if key.type.is_enum:
            imports["@prisma/client"] = ["$Enums"]
        return "\n".join(
            [
                build_import_block(imports),
                "",
                f"export class {class_name} {{",
                self._request_property(key, required=False),
                "}",
                "",
            ]
        )

    def _info_response_dto(
        self, schema: ParsedSchema, method: str, includes: List[JoinFieldRecord]
    ) -> str:
        prefix: str = f"{schema.name}FindMany"
        main_module, main_model = self._model_import(schema.name)
        imports: Dict[str, List[str]] = {
            "@dto/response.dto": ["ResponseDto"],
            "@nestjs/swagger": ["OmitType"],
            "@type/response-service": ["ResponseService"],
            "../../info.service": ["InfoService"],
            main_module: [main_model],
        }
        include_models: List[str] = list(dict.fromkeys(j.model for j in includes))
        for model in include_models:
            module, class_name = self._model_import(model)
            imports.setdefault(module, []).append(class_name)

        lines: List[str] = [
            build_import_block(imports),
            "",
            "/** Response Dto */",
            f"export class {prefix}ResponseDto extends ResponseDto implements "
            f"ResponseService<InfoService[{ts_string(method)}]> {{",
            f"    data: {prefix}Model[];",
            "}",
            "",
            "/** Main Model */",
        ]
        if includes:
            lines.append(f"class {prefix}Model extends OmitType({main_model}, []) {{")
            members: List[str] = []
            for j in includes:
                null_suffix: str = "" if j.is_required else " | null"
                members.append(
                    f"    /** {j.description} */\n"
                    f"    {j.name}!: {prefix}With{j.model}Model{null_suffix};"
                )
            lines.append("\n\n".join(members))
            lines.append("}")
            lines.extend(["", "/** Include Models */"])
            lines.extend(
                f"class {prefix}With{model}Model extends OmitType({model}Model, []) {{}}"
                for model in include_models
            )
        else:
            lines.append(f"class {prefix}Model extends OmitType({main_model}, []) {{}}")
        lines.append("")
        return "\n".join(lines)

    # -- Output helpers ----------------------------------------------------

    @staticmethod
    def _single(layer: Layer, names: ResourceNames, path: str, lines: List[str]) -> LayerOutput:
        return LayerOutput(
            layer=layer,
            resource_name=names.camel,
            artifacts=(GeneratedArtifact(path=path, content="\n".join(lines)),),
        )


__all__: List[str] = ["TemplateGenerator", "ACTIONS"]
