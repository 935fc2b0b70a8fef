# File: schemaforge/generator.py
"""
SchemaForge - Master Generation Pipeline (Orchestrator)
=======================================================

Connects every phase together:

    Schema file → Analysis → Validation → Code + Seed generation → Export

Two layers live here:

* the **library facade** used by an HTTP layer or any other caller:
  ``analyze_schema``, ``generate_project_files``,
  ``generate_dataset_for_all_tables``, ``generate_insert_script`` and
  ``set_locale``.  These raise on failure.
* ``ProjectGenerator``, the backend of the CLI.  It never raises for
  pipeline failures; every step is timed and recorded in a
  ``GenerationReport`` whose ``exit_code`` the CLI returns.

Error handling strategy:
    - Input errors (missing file, unparsable or malformed schema) stop the
      pipeline before analysis output exists.
    - Validation errors stop it when ``strict_validation`` is on.
    - Generation is all-or-nothing: one failing table fails the step.
    - Export errors are per file and recorded in the report.
"""

from __future__ import annotations

import json
import logging
import time
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError as PydanticValidationError

from schemaforge.analyzer import analyze_schema, find_dropped_references
from schemaforge.errors import SchemaFormatError, UnknownGeneratorWarning
from schemaforge.exporters import ExportManifest, ExportResult, ProjectExporter
from schemaforge.fakedata import (
    DataGenerator,
    InsertDialect,
    resolve_dialect,
    set_locale,
)
from schemaforge.models import ProjectConfig, SchemaAnalysis
from schemaforge.templates import GeneratedFileSet, TemplateGenerator
from schemaforge.utils import Singularizer, Timer, count_lines
from schemaforge.validators import ValidationResult, validate_full

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.generator")

CONFIG_KEY: str = "_config"

_SEED_EXTENSIONS: Dict[str, str] = {
    InsertDialect.DOCUMENT_STORE.value: "js",
    InsertDialect.RELATIONAL.value: "sql",
}

# ---------------------------------------------------------------------------
# Exit codes shared with the CLI
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Library facade
# ---------------------------------------------------------------------------


def generate_project_files(
    analysis: SchemaAnalysis,
    config: Optional[ProjectConfig] = None,
    singularizer: Optional[Singularizer] = None,
) -> GeneratedFileSet:
    """Relative path → content for the whole project.  Nothing is written."""
    return TemplateGenerator(config, singularizer).emit_project(analysis)


def generate_dataset_for_all_tables(
    analysis: SchemaAnalysis,
    count_per_table: int,
    *,
    locale: Optional[str] = None,
    seed: Optional[int] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    return DataGenerator(locale=locale, seed=seed).generate_dataset(analysis, count_per_table)


def generate_insert_script(
    analysis: SchemaAnalysis,
    dialect: Any = InsertDialect.DOCUMENT_STORE,
    count_per_table: int = 10,
    *,
    locale: Optional[str] = None,
    seed: Optional[int] = None,
) -> str:
    return DataGenerator(locale=locale, seed=seed).emit_insert_script(
        analysis, dialect, count_per_table
    )


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SchemaFormatError(f"Invalid JSON: {exc}", str(path)) from exc
    if not isinstance(data, dict):
        raise SchemaFormatError(
            f"Expected a JSON object at top level, got {type(data).__name__}.", str(path)
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SchemaFormatError(f"Invalid YAML: {exc}", str(path)) from exc
    if not isinstance(data, dict):
        raise SchemaFormatError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}.", str(path)
        )
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load a schema file (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        SchemaFormatError: If the file can't be parsed into a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise SchemaFormatError("Schema path is not a file.", str(path))

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    # YAML is a superset of JSON
    logger.info("Unknown extension '%s' — parsing as YAML.", suffix)
    return _load_yaml_file(path)


def split_config(raw: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Separate the ``_config`` mapping from the schema proper.

    Returns:
        ``(schema_without_config, config_data)``.
    """
    schema: Dict[str, Any] = dict(raw)
    config_data: Any = schema.pop(CONFIG_KEY, None)
    if config_data is None:
        return schema, {}
    if not isinstance(config_data, Mapping):
        raise SchemaFormatError(
            f"'{CONFIG_KEY}' must be an object, got {type(config_data).__name__}.", CONFIG_KEY
        )
    return schema, dict(config_data)


def build_project_config(
    config_data: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> ProjectConfig:
    """
    ``ProjectConfig`` from schema-file data with *overrides* on top.
    ``None`` override values are ignored.

    Raises:
        SchemaFormatError: when the merged settings do not validate.
    """
    merged: Dict[str, Any] = dict(config_data or {})
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})
    try:
        return ProjectConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise SchemaFormatError(f"Invalid project settings: {exc}", CONFIG_KEY) from exc


# ---------------------------------------------------------------------------
# Generation options & report
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Knobs of one ``ProjectGenerator`` run that are not ``ProjectConfig``."""

    merge_heuristics: bool = False
    deduplicate: bool = False
    seed_count: int = 0
    dialect: str = InsertDialect.DOCUMENT_STORE.value
    locale: Optional[str] = None
    seed: Optional[int] = None
    dry_run: bool = False
    validate_only: bool = False


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """Report produced by ``ProjectGenerator.generate*()``."""

    success: bool = False
    project_name: str = ""
    output_directory: str = ""

    # Metrics
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_tables_processed: int = 0
    total_relations: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    input_errors: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    generation_warnings: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    dropped_references: List[str] = field(default_factory=list)

    # Outputs
    files: GeneratedFileSet = field(default_factory=dict)
    manifest: Optional[ExportManifest] = None

    @property
    def exit_code(self) -> int:
        if self.input_errors:
            return EXIT_INPUT_ERROR
        if self.validation_errors:
            return EXIT_VALIDATION_ERROR
        if self.generation_errors:
            return EXIT_GENERATION_ERROR
        if self.export_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_SUCCESS

    def summary(self) -> str:
        """Human-readable summary string."""
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines: List[str] = [
            "=" * 60,
            "  SchemaForge — Generation Report",
            "=" * 60,
            f"  Status:           {status}",
            f"  Project:          {self.project_name}",
            f"  Output:           {self.output_directory or '(not written)'}",
            f"  Tables processed: {self.total_tables_processed}",
            f"  Relations:        {self.total_relations}",
            f"  Files generated:  {self.total_files}",
            f"  Total lines:      {self.total_lines:,}",
            f"  Total bytes:      {self.total_bytes:,}",
            f"  Total time:       {self.total_elapsed_seconds:.3f}s",
            "─" * 60,
        ]

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  {step.detail}"
                )

        sections: Tuple[Tuple[str, List[str], str], ...] = (
            ("Input Errors", self.input_errors, "✗"),
            ("Validation Errors", self.validation_errors, "✗"),
            ("Validation Warnings", self.validation_warnings, "⚠"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Generation Warnings", self.generation_warnings, "⚠"),
            ("Export Errors", self.export_errors, "✗"),
            ("Dropped References", self.dropped_references, "⊘"),
        )
        for title, items, icon in sections:
            if not items:
                continue
            lines.append("─" * 60)
            lines.append(f"  {title} ({len(items)}):")
            lines.extend(f"    {icon} {item}" for item in items)

        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# ProjectGenerator: master orchestrator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """
    Pipeline orchestrator behind the CLI.

    Usage::

        generator = ProjectGenerator()
        report = generator.generate_from_file(
            Path("schema.json"),
            Path("./api"),
            options=GenerationOptions(seed_count=5),
        )
        print(report.summary())

    Reusable: create once, call ``generate*`` many times.
    """

    def __init__(
        self,
        *,
        strict_validation: bool = True,
        fail_on_warnings: bool = False,
        clean_output: bool = False,
        singularizer: Optional[Singularizer] = None,
    ) -> None:
        self._strict_validation: bool = strict_validation
        self._fail_on_warnings: bool = fail_on_warnings
        self._clean_output: bool = clean_output
        self._singularizer: Optional[Singularizer] = singularizer

        logger.debug(
            "ProjectGenerator initialised: strict=%s, fail_on_warnings=%s, clean=%s.",
            strict_validation,
            fail_on_warnings,
            clean_output,
        )

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Optional[Path] = None,
        *,
        config_overrides: Optional[Mapping[str, Any]] = None,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationReport:
        """Full pipeline: load file → analyze → validate → generate → export."""
        report: GenerationReport = GenerationReport()

        with Timer("load_schema") as t_load:
            try:
                raw: Dict[str, Any] = load_schema_file(schema_path)
            except (FileNotFoundError, SchemaFormatError, OSError) as exc:
                raw = {}
                report.input_errors.append(str(exc))

        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Schema File",
            success=not report.input_errors,
            elapsed_seconds=t_load.elapsed,
            detail=report.input_errors[0] if report.input_errors else f"from {schema_path.name}",
        ))
        if report.input_errors:
            logger.error("Could not load schema: %s", report.input_errors[0])
            return self._finalise_report(report, t_load.elapsed)

        logger.info("Loaded schema file: %s (%d top-level keys).", schema_path, len(raw))
        return self._run_pipeline(raw, output_dir, config_overrides, options, report, t_load.elapsed)

    # -----------------------------------------------------------------
    # Public: generate from an in-memory schema
    # -----------------------------------------------------------------

    def generate(
        self,
        raw: Mapping[str, Any],
        output_dir: Optional[Path] = None,
        *,
        config_overrides: Optional[Mapping[str, Any]] = None,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationReport:
        """Same pipeline for an already-parsed schema mapping."""
        return self._run_pipeline(
            raw, output_dir, config_overrides, options, GenerationReport(), 0.0
        )

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        raw: Mapping[str, Any],
        output_dir: Optional[Path],
        config_overrides: Optional[Mapping[str, Any]],
        options: Optional[GenerationOptions],
        report: GenerationReport,
        elapsed_so_far: float,
    ) -> GenerationReport:
        opts: GenerationOptions = options or GenerationOptions()
        pipeline_start: float = time.perf_counter()

        def done() -> GenerationReport:
            return self._finalise_report(
                report, elapsed_so_far + time.perf_counter() - pipeline_start
            )

        parsed: Optional[Tuple[SchemaAnalysis, ProjectConfig]] = self._step_analyze(
            raw, config_overrides, opts, report
        )
        if parsed is None:
            return done()
        analysis, config = parsed
        report.project_name = config.project_name

        validation_ok: bool = self._step_validate(analysis, config, report)
        if opts.validate_only or (not validation_ok and self._strict_validation):
            return done()

        files: GeneratedFileSet = self._step_generate(analysis, config, report)
        if report.generation_errors:
            return done()

        if opts.seed_count > 0:
            seeds: GeneratedFileSet = self._step_seed(analysis, opts, report)
            if report.generation_errors:
                return done()
            files.update(seeds)

        report.files = files
        report.total_files = len(files)
        report.total_lines = sum(count_lines(c) for c in files.values())
        report.total_bytes = sum(len(c.encode("utf-8")) for c in files.values())

        if opts.dry_run or output_dir is None:
            logger.info("Dry run: %d file(s) generated, nothing written.", len(files))
            return done()

        self._step_export(files, config, output_dir, report)
        return done()

    # -----------------------------------------------------------------
    # Pipeline step: Analysis
    # -----------------------------------------------------------------

    def _step_analyze(
        self,
        raw: Mapping[str, Any],
        config_overrides: Optional[Mapping[str, Any]],
        opts: GenerationOptions,
        report: GenerationReport,
    ) -> Optional[Tuple[SchemaAnalysis, ProjectConfig]]:
        with Timer("analysis") as t:
            try:
                schema, config_data = split_config(raw)
                config: ProjectConfig = build_project_config(config_data, config_overrides)
                analysis: SchemaAnalysis = analyze_schema(
                    schema,
                    merge_heuristics=opts.merge_heuristics,
                    deduplicate=opts.deduplicate,
                )
            except SchemaFormatError as exc:
                report.input_errors.append(str(exc))
                logger.error("Schema analysis failed: %s", exc)

        if report.input_errors:
            report.step_metrics.append(GenerationStepMetric(
                step_name="Analyze Schema",
                success=False,
                elapsed_seconds=t.elapsed,
                detail=report.input_errors[-1],
            ))
            return None

        report.total_tables_processed = len(analysis.tables)
        report.total_relations = len(analysis.relations)
        report.dropped_references = [str(d) for d in find_dropped_references(analysis)]
        for dropped in report.dropped_references:
            logger.warning("Dropped reference: %s", dropped)

        report.step_metrics.append(GenerationStepMetric(
            step_name="Analyze Schema",
            success=True,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{len(analysis.tables)} tables, {len(analysis.relations)} relations "
                f"[{analysis.relation_mode}]"
            ),
        ))
        return analysis, config

    # -----------------------------------------------------------------
    # Pipeline step: Validation
    # -----------------------------------------------------------------

    def _step_validate(
        self,
        analysis: SchemaAnalysis,
        config: ProjectConfig,
        report: GenerationReport,
    ) -> bool:
        """True if validation passed (warnings allowed unless fail_on_warnings)."""
        with Timer("validation") as t:
            result: ValidationResult = validate_full(analysis, config, self._singularizer)

        report.validation_errors.extend(str(e) for e in result.errors)
        report.validation_warnings.extend(str(w) for w in result.warnings)

        if result.has_errors:
            detail: str = f"{result.error_count} error(s)"
        elif result.warning_count:
            detail = f"{result.warning_count} warning(s)"
        else:
            detail = "all checks passed"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Validate Schema",
            success=result.is_valid,
            elapsed_seconds=t.elapsed,
            detail=detail,
        ))

        if result.has_errors:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return False

        for warn in result.warnings:
            logger.warning("  ⚠ %s", warn)
        if result.warning_count and self._fail_on_warnings:
            report.validation_errors.append(
                f"{result.warning_count} warning(s) treated as errors."
            )
            return False
        return True

    # -----------------------------------------------------------------
    # Pipeline step: Code generation
    # -----------------------------------------------------------------

    def _step_generate(
        self,
        analysis: SchemaAnalysis,
        config: ProjectConfig,
        report: GenerationReport,
    ) -> GeneratedFileSet:
        files: GeneratedFileSet = {}
        with Timer("code_generation") as t:
            try:
                files = TemplateGenerator(config, self._singularizer).emit_project(analysis)
            except Exception as exc:
                error_msg: str = f"Fatal generation error: {type(exc).__name__}: {exc}"
                report.generation_errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        report.step_metrics.append(GenerationStepMetric(
            step_name="Code Generation",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{len(files)} files, {len(analysis.tables)} tables",
        ))
        return files

    # -----------------------------------------------------------------
    # Pipeline step: Seed scripts
    # -----------------------------------------------------------------

    def _step_seed(
        self,
        analysis: SchemaAnalysis,
        opts: GenerationOptions,
        report: GenerationReport,
    ) -> GeneratedFileSet:
        files: GeneratedFileSet = {}
        with Timer("seed_generation") as t:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always", UnknownGeneratorWarning)
                try:
                    dialect: InsertDialect = resolve_dialect(opts.dialect)
                    script: str = DataGenerator(
                        locale=opts.locale, seed=opts.seed
                    ).emit_insert_script(analysis, dialect, opts.seed_count)
                    files[f"seed/{dialect.value}.{_SEED_EXTENSIONS[dialect.value]}"] = script
                except Exception as exc:
                    error_msg: str = f"Seed generation error: {type(exc).__name__}: {exc}"
                    report.generation_errors.append(error_msg)
                    logger.error(error_msg, exc_info=True)

        seen: List[str] = []
        for item in caught:
            text: str = str(item.message)
            if text not in seen:
                seen.append(text)
        report.generation_warnings.extend(seen)

        report.step_metrics.append(GenerationStepMetric(
            step_name="Seed Generation",
            success=not report.generation_errors,
            elapsed_seconds=t.elapsed,
            detail=f"{opts.seed_count} record(s)/table, {opts.dialect}",
        ))
        return files

    # -----------------------------------------------------------------
    # Pipeline step: Export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        files: GeneratedFileSet,
        config: ProjectConfig,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        exporter: ProjectExporter = ProjectExporter(
            config=config,
            output_dir=output_dir,
            clean_before_export=self._clean_output,
        )
        report.output_directory = str(exporter.output_dir)

        with Timer("export") as t:
            result: ExportResult = exporter.export(files)

        report.export_errors.extend(result.errors)
        report.manifest = result.manifest
        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=result.success,
            elapsed_seconds=t.elapsed,
            detail=f"{result.manifest.total_files} files, {result.manifest.total_bytes:,} bytes",
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    @staticmethod
    def _finalise_report(report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = report.exit_code == EXIT_SUCCESS
        return report


__all__: List[str] = [
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
    "analyze_schema",
    "generate_project_files",
    "generate_dataset_for_all_tables",
    "generate_insert_script",
    "set_locale",
    "load_schema_file",
    "split_config",
    "build_project_config",
    "GenerationOptions",
    "GenerationStepMetric",
    "GenerationReport",
    "ProjectGenerator",
]

logger.debug("schemaforge.generator loaded — %d public symbols.", len(__all__))
