# File: schemaforge/cli.py
"""
SchemaForge - Command-Line Interface
====================================

Command-line front end built on the standard-library ``argparse`` module.

Usage examples::

    # Basic generation
    python -m schemaforge --schema schema.json --output ./my_api

    # Boilerplate, endpoint manifest and seed data
    python -m schemaforge -s schema.yaml -o ./out \\
        --with-boilerplate --endpoints --seed-count 20 --dialect relational

    # Validate only (no file output)
    python -m schemaforge -s schema.yaml --validate-only

    # Show version
    python -m schemaforge --version

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, NoReturn, Optional, Sequence

from schemaforge.fakedata import InsertDialect, resolve_locale
from schemaforge.generator import (
    EXIT_EXPORT_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    GenerationOptions,
    GenerationReport,
    ProjectGenerator,
)
from schemaforge.utils import EnglishSingularizer, SimpleSingularizer, Singularizer

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge")

_DIALECT_CHOICES: List[str] = [d.value for d in InsertDialect] + ["mongodb", "sql"]

_SINGULARIZERS: Dict[str, type] = {
    "simple": SimpleSingularizer,
    "english": EnglishSingularizer,
}


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root schemaforge logger based on verbosity level.

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
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("schemaforge")
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
    from schemaforge import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemaforge",
        description=(
            "SchemaForge — REST API scaffolding and synthetic data generator.\n\n"
            "Transforms a JSON/YAML schema description into an Express + Mongoose "
            "project and optional seed scripts."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.json -o ./my_api\n"
            "  %(prog)s -s schema.yaml -o ./out --with-boilerplate --endpoints\n"
            "  %(prog)s -s schema.yaml -o ./out --seed-count 10 --dialect relational\n"
            "  %(prog)s -s schema.yaml --validate-only\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SchemaForge v{__version__}",
    )

    # --- Required arguments ---
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the schema file (JSON or YAML).",
    )

    # --- Output ---
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help=(
            "Output directory for the generated project. "
            "Required unless --validate-only or --dry-run is set."
        ),
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only analyze and validate the schema.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline but don't write files to disk.",
    )

    # --- Analysis ---
    analysis_group = parser.add_argument_group("schema analysis")
    analysis_group.add_argument(
        "--merge-heuristics",
        action="store_true",
        default=False,
        help="Add name-based relations even when explicit relationships are declared.",
    )
    analysis_group.add_argument(
        "--dedupe",
        action="store_true",
        default=False,
        help="Drop duplicate and reverse-duplicate relations.",
    )
    analysis_group.add_argument(
        "--singularizer",
        type=str,
        default="simple",
        choices=sorted(_SINGULARIZERS),
        help="Strategy used to derive model names from table names.",
    )

    # --- Config overrides ---
    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--project-name",
        type=str,
        default=None,
        metavar="NAME",
        help="Override the project name.",
    )
    config_group.add_argument(
        "--project-version",
        type=str,
        default=None,
        metavar="VER",
        help="Override the project version (e.g. '2.0.0').",
    )
    config_group.add_argument(
        "--api-prefix",
        type=str,
        default=None,
        metavar="PREFIX",
        help="Override API URL prefix (e.g. '/api/v1').",
    )
    config_group.add_argument(
        "--port",
        type=int,
        default=None,
        metavar="PORT",
        help="Override the fallback port of server.js.",
    )
    config_group.add_argument(
        "--with-boilerplate",
        action="store_true",
        default=None,
        help="Also emit package.json, README.md, .env and .gitignore.",
    )
    config_group.add_argument(
        "--endpoints",
        action="store_true",
        default=None,
        help="Also emit an endpoints.json catalogue.",
    )

    # --- Seed data ---
    seed_group = parser.add_argument_group("seed data")
    seed_group.add_argument(
        "--seed-count",
        type=int,
        default=0,
        metavar="N",
        help="Records per table in the seed script (0 disables seeding).",
    )
    seed_group.add_argument(
        "--dialect",
        type=str,
        default=InsertDialect.DOCUMENT_STORE.value,
        choices=_DIALECT_CHOICES,
        help="Seed script dialect.",
    )
    seed_group.add_argument(
        "--locale",
        type=str,
        default=None,
        metavar="CODE",
        help="Faker locale for seed values (e.g. 'de_DE').",
    )
    seed_group.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="INT",
        help="Random seed for reproducible seed scripts.",
    )

    # --- Behaviour flags ---
    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--clean",
        action="store_true",
        default=False,
        help="Clean output directory before generation.",
    )
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation has errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
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
# Option builders
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, object]:
    """``ProjectConfig`` overrides from CLI arguments; unset flags are omitted."""
    candidates: Dict[str, object] = {
        "project_name": args.project_name,
        "project_version": args.project_version,
        "api_prefix": args.api_prefix,
        "port": args.port,
        "include_boilerplate": args.with_boilerplate,
        "include_endpoint_manifest": args.endpoints,
    }
    return {key: value for key, value in candidates.items() if value is not None}


def _build_options(args: argparse.Namespace) -> GenerationOptions:
    return GenerationOptions(
        merge_heuristics=args.merge_heuristics,
        deduplicate=args.dedupe,
        seed_count=args.seed_count,
        dialect=args.dialect,
        locale=args.locale,
        seed=args.seed,
        dry_run=args.dry_run,
        validate_only=args.validate_only,
    )


# ---------------------------------------------------------------------------
# Pipeline run
# ---------------------------------------------------------------------------


def _run(schema_path: Path, output_dir: Optional[Path], args: argparse.Namespace) -> int:
    """Run the pipeline and print its report.  Returns the exit code."""
    singularizer: Singularizer = _SINGULARIZERS[args.singularizer]()
    generator: ProjectGenerator = ProjectGenerator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
        clean_output=args.clean,
        singularizer=singularizer,
    )

    report: GenerationReport = generator.generate_from_file(
        schema_path,
        output_dir,
        config_overrides=_build_config_overrides(args),
        options=_build_options(args),
    )

    if not args.quiet:
        print(report.summary())
    return report.exit_code


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

    # --- Argument checks ---
    if args.seed_count < 0:
        logger.error("--seed-count must be >= 0, got %d.", args.seed_count)
        sys.exit(EXIT_INPUT_ERROR)

    if args.locale is not None:
        try:
            resolve_locale(args.locale)
        except ValueError as exc:
            logger.error("%s", exc)
            sys.exit(EXIT_INPUT_ERROR)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    output_dir: Optional[Path] = None
    if args.output is not None:
        output_dir = Path(args.output).resolve()
    elif not (args.validate_only or args.dry_run):
        logger.error(
            "Output directory is required for generation. "
            "Use -o/--output, --dry-run or --validate-only."
        )
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", output_dir or "(none)")
    logger.info("Strict:  %s", not args.no_strict)

    exit_code: int = _run(schema_path, output_dir, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Completed successfully.")
    else:
        logger.error("Failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemaforge.cli loaded.")
