# File: prismagen/cli.py
"""
prismagen - Command-Line Interface
===================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # One layer for one resource
    prismagen generate repository userManagement

    # Aliases
    prismagen g repo order
    prismagen g requestDTO orderItemManagement

    # Whole resource package (module, controller, service, repository,
    # interfaces, request DTOs, response DTOs)
    prismagen g p order

    # Layers spanning every schema
    prismagen g model
    prismagen g info

    # Show what would be written
    prismagen g p order --dry-run -v

Exit codes:
    0 — success
    1 — schema error (malformed definition unit, failed validation)
    2 — generation error
    3 — export error
    4 — input error (missing argument, unsupported layer, not found, config)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from prismagen.errors import (
    ConfigError,
    ExportError,
    MissingArgumentError,
    NotFoundError,
    PrismagenError,
    SchemaParseError,
    SchemaValidationError,
    UnsupportedLayerError,
)

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("prismagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_SCHEMA_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root prismagen logger based on verbosity level.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.ERROR

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    datefmt: str = "%H:%M:%S"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt=datefmt)
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("prismagen")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from prismagen import __version__
    from prismagen.generator import LAYER_ALIASES

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="prismagen",
        description=(
            "prismagen — NestJS + Prisma layer generator.\n\n"
            "Reads annotated .prisma model files and writes repository, service, "
            "controller, module, interface, DTO and model sources."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s generate repository userManagement\n"
            "  %(prog)s g p order --dry-run\n"
            "  %(prog)s g model\n"
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"prismagen v{__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    gen = subparsers.add_parser(
        "generate",
        aliases=["g"],
        help="Generate one layer (or the whole package) for a resource.",
    )
    gen.add_argument(
        "layer",
        metavar="LAYER",
        help=f"Layer to generate: {', '.join(sorted(LAYER_ALIASES))}.",
    )
    gen.add_argument(
        "name",
        nargs="?",
        default=None,
        metavar="NAME",
        help="Resource name in camelCase, e.g. orderItem or userManagement.",
    )

    project_group = gen.add_argument_group("project")
    project_group.add_argument(
        "--root",
        type=str,
        default=".",
        metavar="DIR",
        help="Project root directory (default: current directory).",
    )
    project_group.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="FILE",
        help="Config file (default: <root>/prismagen.yaml if present).",
    )

    mode_group = gen.add_argument_group("operation modes")
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render everything and list the target files without writing.",
    )

    verbosity_group = gen.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all output except errors.",
    )

    return parser


# ---------------------------------------------------------------------------
# Error → exit code
# ---------------------------------------------------------------------------


def exit_code_for(exc: PrismagenError) -> int:
    if isinstance(exc, (SchemaParseError, SchemaValidationError)):
        return EXIT_SCHEMA_ERROR
    if isinstance(exc, ExportError):
        return EXIT_EXPORT_ERROR
    if isinstance(exc, (MissingArgumentError, UnsupportedLayerError, NotFoundError, ConfigError)):
        return EXIT_INPUT_ERROR
    return EXIT_GENERATION_ERROR


# ---------------------------------------------------------------------------
# Generate command
# ---------------------------------------------------------------------------


def _run_generate(args: argparse.Namespace) -> int:
    from prismagen.generator import GenerationReport, PrismaGenerator, load_config

    root: Path = Path(args.root).resolve()
    config_file: Optional[Path] = Path(args.config).resolve() if args.config else None

    logger.info("Root:    %s", root)
    logger.info("Layer:   %s", args.layer)
    logger.info("Name:    %s", args.name or "-")

    try:
        config = load_config(root, config_file)
        generator: PrismaGenerator = PrismaGenerator(config, dry_run=args.dry_run)
        report: GenerationReport = generator.run(args.layer, args.name)
    except PrismagenError as exc:
        logger.error("%s", exc)
        return exit_code_for(exc)

    if args.dry_run or args.verbose:
        print(report.summary())
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    exit_code: int = _run_generate(args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "exit_code_for",
    "EXIT_SUCCESS",
    "EXIT_SCHEMA_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
