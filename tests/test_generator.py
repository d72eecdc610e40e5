"""
tests/test_generator.py
Integration tests for prismagen.generator, prismagen.exporters and
prismagen.cli.

Run with:
    pytest tests/ -v

Tests cover:
- Configuration loading (YAML file, overrides, failures)
- Exclusion list read from the application's config.ts
- Layer dispatch, aliases and the package sequence
- Resource directory discovery, owned-directory reset, dry runs
- Partial package failure semantics
- CLI exit codes
"""

from __future__ import annotations

import hashlib
import logging
import pathlib
import shutil

import pytest
import yaml

from prismagen.cli import (
    EXIT_EXPORT_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SCHEMA_ERROR,
    EXIT_SUCCESS,
    cli_main,
    exit_code_for,
)
from prismagen.errors import (
    ConfigError,
    ExportError,
    GenerationError,
    MissingArgumentError,
    MissingIdentifierError,
    NotFoundError,
    UnsupportedLayerError,
)
from prismagen.exporters import ResourceExporter
from prismagen.generator import (
    LAYER_ALIASES,
    PACKAGE_LAYERS,
    PrismaGenerator,
    load_config,
    load_expose_fields,
    resolve_layer,
)
from prismagen.models import (
    GeneratedArtifact,
    GeneratorConfig,
    Layer,
    LayerOutput,
    ModelRegistry,
)

from conftest import write_tree


TAG_PRISMA: str = "// 태그\nmodel Tag {\n  label String // 라벨#CR\n}\n"
BROKEN_PRISMA: str = (
    "// 망가짐\nmodel Broken {\n  id Int @id // 아이디\n  name String = 1 // 이름\n}\n"
)


def report_line(summary: str, label: str) -> str:
    for line in summary.splitlines():
        if line.strip().startswith(label):
            return line.strip()[len(label):].strip()
    raise AssertionError(f"{label} not in summary")


# ===========================================================================
# Layer resolution
# ===========================================================================


class TestResolveLayer:
    @pytest.mark.parametrize(
        "token, layer",
        [
            ("repository", Layer.REPOSITORY),
            ("repo", Layer.REPOSITORY),
            ("s", Layer.SERVICE),
            ("co", Layer.CONTROLLER),
            ("mo", Layer.MODULE),
            ("requestDTO", Layer.REQUEST_CONTRACT),
            ("responseContract", Layer.RESPONSE_CONTRACT),
            ("p", Layer.PACKAGE),
            ("info", Layer.INFO),
            ("model", Layer.MODEL),
        ],
    )
    def test_aliases(self, token: str, layer: Layer) -> None:
        assert resolve_layer(token) == layer

    @pytest.mark.parametrize("token", ["bogus", "Repository", "", "dto"])
    def test_unsupported(self, token: str) -> None:
        with pytest.raises(UnsupportedLayerError):
            resolve_layer(token)

    def test_every_layer_has_its_own_name(self) -> None:
        for layer in Layer:
            assert LAYER_ALIASES[layer.value] == layer

    def test_package_order(self) -> None:
        assert [layer.value for layer in PACKAGE_LAYERS] == [
            "module",
            "controller",
            "service",
            "repository",
            "interfaces",
            "requestContract",
            "responseContract",
        ]


# ===========================================================================
# Configuration
# ===========================================================================


class TestLoadConfig:
    def test_defaults(self, project_root: pathlib.Path) -> None:
        config = load_config(project_root)
        assert config.project_root == project_root
        assert config.source_path == project_root / "src"
        assert config.schema_path == project_root / "prisma" / "schema" / "models"
        assert config.info_schema_path == config.schema_path / "info"
        assert config.validator_package == "class-validator"
        assert config.expose_fields == []

    def test_yaml_file(self, project_root: pathlib.Path) -> None:
        settings = {
            "source_dir": "app",
            "expose_fields": [" memo ", ""],
            "validator_package": "@inhanbyeol/class-validator",
        }
        write_tree(project_root, {"prismagen.yaml": yaml.safe_dump(settings)})
        config = load_config(project_root)
        assert config.source_path == project_root / "app"
        assert config.expose_fields == ["memo"]
        assert config.validator_package == "@inhanbyeol/class-validator"

    def test_overrides_win(self, project_root: pathlib.Path) -> None:
        write_tree(project_root, {"prismagen.yaml": "management_marker: Admin\n"})
        config = load_config(project_root, management_marker="Staff")
        assert config.management_marker == "Staff"

    def test_empty_file(self, project_root: pathlib.Path) -> None:
        write_tree(project_root, {"prismagen.yaml": ""})
        assert load_config(project_root).source_dir == pathlib.Path("src")

    @pytest.mark.parametrize(
        "content",
        [
            "unknown_key: 1\n",
            "- a\n- b\n",
            "source_dir: [unclosed\n",
            "management_marker: ''\n",
        ],
    )
    def test_invalid_file(self, project_root: pathlib.Path, content: str) -> None:
        write_tree(project_root, {"prismagen.yaml": content})
        with pytest.raises(ConfigError):
            load_config(project_root)

    def test_missing_explicit_file(self, project_root: pathlib.Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(project_root, project_root / "nope.yaml")

    def test_info_schema_path_without_validation(self, project_root: pathlib.Path) -> None:
        config = GeneratorConfig.model_construct(
            project_root=project_root, schema_dir=pathlib.Path("schema")
        )
        assert config.info_schema_dir is None
        assert config.info_schema_path == project_root / "schema" / "info"


class TestExposeFields:
    def test_reads_declaration(self, config: GeneratorConfig) -> None:
        assert load_expose_fields(config.app_config_path) == ["password", "deletedAt"]

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        assert load_expose_fields(tmp_path / "config.ts") == []

    def test_missing_declaration(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "config.ts"
        path.write_text("export class AppConfig {}\n", encoding="utf-8")
        assert load_expose_fields(path) == []

    def test_single_line_declaration(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "config.ts"
        path.write_text(
            "static readonly APP_DATA_PROCESSING_EXPOSE = [`secret`, \"token\"] as const;\n",
            encoding="utf-8",
        )
        assert load_expose_fields(path) == ["secret", "token"]

    def test_merged_into_templates(self, project_root: pathlib.Path) -> None:
        generator = PrismaGenerator(load_config(project_root, expose_fields=["memo", "password"]))
        outputs = generator.generate("model")
        order = outputs[0].artifact("order.model.ts").content
        customer = outputs[0].artifact("customer.model.ts").content
        assert "memo" not in order
        assert "password" not in customer
        assert "deletedAt" not in customer


# ===========================================================================
# Generation (no writes)
# ===========================================================================


class TestGenerate:
    def test_package_expands_in_order(self, generator: PrismaGenerator) -> None:
        outputs = generator.generate("p", "order")
        assert [o.layer for o in outputs] == list(PACKAGE_LAYERS)
        assert sum(len(o.artifacts) for o in outputs) == 19

    def test_layer_enum_accepted(self, generator: PrismaGenerator) -> None:
        (output,) = generator.generate(Layer.REPOSITORY, "order")
        assert output.paths == ["order.repository.ts"]

    def test_management_reads_base_schema(self, generator: PrismaGenerator) -> None:
        (output,) = generator.generate("requestDTO", "customerManagement")
        create = output.artifact("dto/customer-management-create.dto.ts").content
        assert "email!: string;" in create

    def test_model_spans_every_schema(self, generator: PrismaGenerator) -> None:
        (output,) = generator.generate("model")
        assert output.paths == [
            "customer.model.ts",
            "order-item.model.ts",
            "order.model.ts",
            "category-info.model.ts",
            "region-info.model.ts",
        ]

    @pytest.mark.parametrize("layer", ["repo", "s", "co", "mo", "interfaces", "p"])
    def test_missing_name(self, generator: PrismaGenerator, layer: str) -> None:
        with pytest.raises(MissingArgumentError):
            generator.generate(layer)

    def test_unknown_resource(self, generator: PrismaGenerator) -> None:
        with pytest.raises(NotFoundError, match="invoice.prisma"):
            generator.generate("repo", "invoice")

    def test_name_only_layers_skip_the_schema(self, generator: PrismaGenerator) -> None:
        assert generator.generate("mo", "invoice")[0].paths == ["invoice.module.ts"]
        assert len(generator.generate("interfaces", "invoice")[0].artifacts) == 5

    def test_registry_is_reused(self, config: GeneratorConfig, registry: ModelRegistry) -> None:
        generator = PrismaGenerator(config, registry=registry)
        assert generator.parser.registry is registry
        assert generator.parser is generator.parser

    def test_render_errors_are_wrapped(self) -> None:
        def failing() -> LayerOutput:
            raise KeyError("x")

        with pytest.raises(GenerationError, match="module layer"):
            PrismaGenerator._render(Layer.MODULE, failing)


# ===========================================================================
# Run (generate + export)
# ===========================================================================


class TestRun:
    def test_package_into_existing_directory(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        report = generator.run("p", "order")
        target = project_root / "src" / "shop" / "order"

        assert report.success
        assert report.layer == "package"
        assert report.resource_name == "order"
        assert report.total_files == 19
        assert len(report.step_metrics) == 7
        assert all(p.startswith(str(target)) for p in report.written_paths)
        for rel in (
            "order.module.ts",
            "order.controller.ts",
            "interfaces/order-create.interface.ts",
            "dto/order-find-list.dto.ts",
            "dto/response/order-find-list.dto.ts",
        ):
            assert (target / rel).is_file()
        assert not (project_root / "src" / "order").exists()

    def test_new_resource_directory(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        generator.run("repository", "orderItem")
        path = project_root / "src" / "order-item" / "order-item.repository.ts"
        assert path.is_file()
        assert "export class OrderItemRepository {" in path.read_text(encoding="utf-8")

    def test_management_directory(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        generator.run("co", "orderItemManagement")
        assert (
            project_root / "src" / "order-item-management" / "order-item-management.controller.ts"
        ).is_file()

    def test_reset_owned_directory_only(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        target = project_root / "src" / "shop" / "order"
        write_tree(target, {"dto/stale.dto.ts": "old", "dto/response/keep.ts": "kept"})

        report = generator.run("requestContract", "order")

        assert not (target / "dto" / "stale.dto.ts").exists()
        assert (target / "dto" / "response" / "keep.ts").is_file()
        assert report.exports[0].removed == [str(target / "dto" / "stale.dto.ts")]
        assert report.total_files == 5

    def test_rerun_replaces_files(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        path = project_root / "src" / "shop" / "order" / "order.service.ts"
        generator.run("s", "order")
        first = path.read_text(encoding="utf-8")
        path.write_text("edited", encoding="utf-8")
        generator.run("s", "order")
        assert path.read_text(encoding="utf-8") == first

    def test_model_layer(self, generator: PrismaGenerator, project_root: pathlib.Path) -> None:
        models = project_root / "src" / "_common" / "_utils" / "models"
        write_tree(models, {"stale.model.ts": "old"})
        report = generator.run("model")
        assert report.total_files == 5
        assert (models / "customer.model.ts").is_file()
        assert not (models / "stale.model.ts").exists()

    def test_info_layer(self, generator: PrismaGenerator, project_root: pathlib.Path) -> None:
        info = project_root / "src" / "info"
        write_tree(info, {"info.module.ts": "handwritten"})
        report = generator.run("info")
        assert report.total_files == 7
        assert (info / "info.controller.ts").is_file()
        assert (info / "dto" / "response" / "category-info-find-many.dto.ts").is_file()
        assert (info / "info.module.ts").read_text(encoding="utf-8") == "handwritten"

    def test_info_requires_directory(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        (project_root / "src" / "info").rmdir()
        with pytest.raises(NotFoundError, match="Info module directory"):
            generator.run("info")

    def test_dry_run_writes_nothing(
        self, config: GeneratorConfig, project_root: pathlib.Path
    ) -> None:
        generator = PrismaGenerator(config, dry_run=True)
        report = generator.run("p", "orderItem")

        assert report.success
        assert report.dry_run
        assert report.total_files == 19
        assert not (project_root / "src" / "order-item").exists()
        assert all(e.dry_run for e in report.exports)
        summary = report.summary()
        assert "Would write:" in summary
        assert "order-item.module.ts" in summary

    def test_partial_package_failure(
        self, config: GeneratorConfig, project_root: pathlib.Path
    ) -> None:
        write_tree(project_root, {"prisma/schema/models/tag.prisma": TAG_PRISMA})
        generator = PrismaGenerator(config)

        with pytest.raises(MissingIdentifierError):
            generator.run("p", "tag")

        target = project_root / "src" / "tag"
        assert (target / "tag.module.ts").is_file()
        assert not (target / "tag.controller.ts").exists()

    def test_missing_schema_writes_nothing(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        with pytest.raises(NotFoundError, match="invoice.prisma"):
            generator.run("p", "invoice")
        assert not (project_root / "src" / "invoice").exists()

    def test_info_without_aggregates(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        for path in (project_root / "prisma" / "schema" / "models" / "info").iterdir():
            path.unlink()
        info = project_root / "src" / "info"
        write_tree(info, {"info.controller.ts": "handwritten"})

        with pytest.raises(NotFoundError, match="info model does not exist"):
            generator.run("info")
        assert (info / "info.controller.ts").read_text(encoding="utf-8") == "handwritten"
        assert not (info / "info.repository.ts").exists()

    def test_info_without_aggregate_directory(
        self, generator: PrismaGenerator, project_root: pathlib.Path
    ) -> None:
        shutil.rmtree(project_root / "prisma" / "schema" / "models" / "info")
        with pytest.raises(NotFoundError, match="info model does not exist"):
            generator.run("info")
        assert not (project_root / "src" / "info" / "info.controller.ts").exists()

    def test_summary(self, generator: PrismaGenerator) -> None:
        summary = generator.run("mo", "order").summary()
        assert "SUCCESS" in summary
        assert report_line(summary, "Resource:") == "order"
        assert "Would write" not in summary


# ===========================================================================
# Exporter
# ===========================================================================


class TestExporter:
    def test_resource_directory(self, config: GeneratorConfig, project_root: pathlib.Path) -> None:
        exporter = ResourceExporter(config)
        assert exporter.resource_directory("order") == project_root / "src" / "shop" / "order"

        target = exporter.resource_directory("invoice", create=False)
        assert target == project_root / "src" / "invoice"
        assert not target.exists()

    def test_plan_and_records(self, config: GeneratorConfig, project_root: pathlib.Path) -> None:
        output = LayerOutput(
            layer=Layer.MODULE,
            resource_name="invoice",
            artifacts=(GeneratedArtifact(path="invoice.module.ts", content="a\nb\n"),),
        )
        exporter = ResourceExporter(config)
        assert exporter.plan(output) == [project_root / "src" / "invoice" / "invoice.module.ts"]

        result = exporter.export(output)
        (record,) = result.files
        assert record.relative_path == "invoice.module.ts"
        assert record.line_count == 2
        assert record.size_bytes == 4
        assert record.sha256 == hashlib.sha256(b"a\nb\n").hexdigest()

    def test_write_failure(self, config: GeneratorConfig, project_root: pathlib.Path) -> None:
        blocker = project_root / "src" / "invoice" / "invoice.module.ts"
        write_tree(blocker, {"inner.ts": "x"})
        output = LayerOutput(
            layer=Layer.MODULE,
            resource_name="invoice",
            artifacts=(GeneratedArtifact(path="invoice.module.ts", content="x"),),
        )
        with pytest.raises(ExportError, match="invoice.module.ts"):
            ResourceExporter(config).export(output)
        assert [p.name for p in blocker.parent.iterdir()] == ["invoice.module.ts"]


# ===========================================================================
# CLI
# ===========================================================================


def _exit_code(argv: list) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli_main(argv)
    return exc_info.value.code


class TestCli:
    @pytest.fixture(autouse=True)
    def _reset_logging(self):
        yield
        logger = logging.getLogger("prismagen")
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    def test_package(self, project_root: pathlib.Path) -> None:
        code = _exit_code(["generate", "p", "order", "--root", str(project_root), "-q"])
        assert code == EXIT_SUCCESS
        assert (project_root / "src" / "shop" / "order" / "order.module.ts").is_file()

    def test_short_command_and_dry_run(
        self, project_root: pathlib.Path, capsys: pytest.CaptureFixture
    ) -> None:
        code = _exit_code(["g", "repo", "orderItem", "--root", str(project_root), "--dry-run"])
        assert code == EXIT_SUCCESS
        assert "order-item.repository.ts" in capsys.readouterr().out
        assert not (project_root / "src" / "order-item").exists()

    @pytest.mark.parametrize(
        "argv",
        [
            ["g", "bogus", "order"],
            ["g", "repo"],
            ["g", "repo", "invoice"],
            ["g", "repo", "order", "--config", "missing.yaml"],
        ],
    )
    def test_input_errors(self, project_root: pathlib.Path, argv: list) -> None:
        assert _exit_code(argv + ["--root", str(project_root), "-q"]) == EXIT_INPUT_ERROR

    def test_info_without_directory(self, project_root: pathlib.Path) -> None:
        (project_root / "src" / "info").rmdir()
        assert _exit_code(["g", "info", "--root", str(project_root), "-q"]) == EXIT_INPUT_ERROR

    def test_schema_errors(self, project_root: pathlib.Path) -> None:
        write_tree(
            project_root,
            {
                "prisma/schema/models/broken.prisma": BROKEN_PRISMA,
                "prisma/schema/models/tag.prisma": TAG_PRISMA,
            },
        )
        root = str(project_root)
        assert _exit_code(["g", "repo", "broken", "--root", root, "-q"]) == EXIT_SCHEMA_ERROR
        assert _exit_code(["g", "co", "tag", "--root", root, "-q"]) == EXIT_SCHEMA_ERROR

    def test_exit_code_mapping(self) -> None:
        assert exit_code_for(ExportError("disk full")) == EXIT_EXPORT_ERROR
        assert exit_code_for(GenerationError("bad")) == EXIT_GENERATION_ERROR
        assert exit_code_for(ConfigError("bad")) == EXIT_INPUT_ERROR
        assert exit_code_for(MissingIdentifierError("no id")) == EXIT_SCHEMA_ERROR
