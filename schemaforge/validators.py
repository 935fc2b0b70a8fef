# File: schemaforge/validators.py
"""
SchemaForge - Analysis & Configuration Validators
=================================================
Pure-function semantic checks over a ``SchemaAnalysis`` and a
``ProjectConfig``.

The analyzer only rejects input it cannot *shape* into tables.  This module
reports what is shaped fine but will produce odd output: duplicate names
that make emitted files collide, dangling relations whose reference markers
get dropped, generator recipes the value generator does not know, and so on.

Usage:
    from schemaforge.validators import validate_full
    result = validate_full(analysis, config)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Set

from schemaforge.analyzer import find_dropped_references
from schemaforge.endpoints import resource_names
from schemaforge.fakedata import has_recipe
from schemaforge.models import ProjectConfig, SchemaAnalysis
from schemaforge.utils import Singularizer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationIssue]:
        return list(self._items)

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_JS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_SEMANTIC_VERSION_RE: re.Pattern[str] = re.compile(r"^\d+\.\d+\.\d+([a-zA-Z0-9\.\-+]+)?$")
# npm package names: lower-case, url-safe, optionally scoped
_NPM_NAME_RE: re.Pattern[str] = re.compile(
    r"^(?:@[a-z0-9-*~][a-z0-9-*._~]*/)?[a-z0-9-~][a-z0-9-._~]*$"
)

_PRIMARY_NAMES: Set[str] = {"id", "_id"}

# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_table_names(
    analysis: SchemaAnalysis,
    singularizer: Optional[Singularizer] = None,
) -> ValidationResult:
    """
    Table-level checks:
    - duplicate names (emitted files would overwrite each other)
    - two tables deriving the same model name (``user`` and ``users``)
    - tables without columns
    - names that are not JavaScript identifiers
    """
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()
    model_owner: Dict[str, str] = {}

    for table in analysis.tables:
        ctx: Dict[str, Any] = {"table": table.name}

        if table.name in seen:
            result.add_error(
                "DUPLICATE_TABLE_NAME",
                f"Table name '{table.name}' is defined more than once.",
                ctx,
            )
            continue
        seen.add(table.name)

        model_name: str = resource_names(table.name, singularizer).model
        owner: Optional[str] = model_owner.get(model_name)
        if owner is not None:
            result.add_error(
                "MODEL_NAME_COLLISION",
                f"Tables '{owner}' and '{table.name}' both map to model '{model_name}'.",
                {"table": table.name, "other": owner, "model": model_name},
            )
        else:
            model_owner[model_name] = table.name

        if not table.columns:
            result.add_warning(
                "EMPTY_TABLE",
                f"Table '{table.name}' has no columns; its model will only carry timestamps.",
                ctx,
            )

        if not _JS_IDENTIFIER_RE.match(table.name):
            result.add_warning(
                "TABLE_NAME_NOT_IDENTIFIER",
                f"Table name '{table.name}' is not a JavaScript identifier.",
                ctx,
            )

    logger.debug("validate_table_names: %d table(s), %d issue(s).", len(analysis.tables), len(result))
    return result


def validate_column_names(analysis: SchemaAnalysis) -> ValidationResult:
    """Duplicate column names within a table."""
    result: ValidationResult = ValidationResult()

    for table in analysis.tables:
        seen: Set[str] = set()
        for col in table.columns:
            if col.name in seen:
                result.add_error(
                    "DUPLICATE_COLUMN_NAME",
                    f"Column '{col.name}' is duplicated in table '{table.name}'.",
                    {"table": table.name, "column": col.name},
                )
            seen.add(col.name)

    return result


def validate_primary_keys(analysis: SchemaAnalysis) -> ValidationResult:
    """
    Primary-key checks.  MongoDB assigns ``_id`` itself, so a primary column
    not called ``id``/``_id`` is emitted as a plain unique field.
    """
    result: ValidationResult = ValidationResult()

    for table in analysis.tables:
        primary: List[str] = [c.name for c in table.primary_columns]
        ctx: Dict[str, Any] = {"table": table.name, "columns": primary}

        if len(primary) > 1:
            result.add_warning(
                "MULTIPLE_PRIMARY_KEYS",
                f"Table '{table.name}' declares {len(primary)} primary columns; "
                f"documents only have one '_id'.",
                ctx,
            )
        for name in primary:
            if name not in _PRIMARY_NAMES:
                result.add_info(
                    "PRIMARY_KEY_NOT_ID",
                    f"Primary column '{table.name}.{name}' will be emitted as a unique field.",
                    {"table": table.name, "column": name},
                )

    return result


def validate_relations(analysis: SchemaAnalysis) -> ValidationResult:
    """Dangling relation references and self references."""
    result: ValidationResult = ValidationResult()

    for dropped in find_dropped_references(analysis):
        result.add_warning(
            "DANGLING_RELATION",
            f"Dangling relation {dropped}. Its reference marker will be skipped.",
            {
                "source": f"{dropped.relation.source_table}.{dropped.relation.source_column}",
                "target": f"{dropped.relation.target_table}.{dropped.relation.target_column}",
            },
        )

    for relation in analysis.relations:
        if relation.source_table == relation.target_table:
            result.add_info(
                "SELF_RELATION",
                f"Table '{relation.source_table}' references itself "
                f"via '{relation.source_column}'.",
                {"table": relation.source_table},
            )

    return result


def validate_generators(analysis: SchemaAnalysis) -> ValidationResult:
    """Declared generator recipes the value generator does not implement."""
    result: ValidationResult = ValidationResult()

    for table in analysis.tables:
        for col in table.columns:
            generator = col.active_generator
            if generator is not None and not has_recipe(generator.category, generator.subtype):
                result.add_warning(
                    "UNKNOWN_GENERATOR",
                    f"Column '{table.name}.{col.name}' uses unknown generator "
                    f"'{generator.key}'; a random word will be used instead.",
                    {"table": table.name, "column": col.name, "generator": generator.key},
                )

    return result


def validate_project_config(config: ProjectConfig) -> ValidationResult:
    """Checks that pydantic field constraints cannot express."""
    result: ValidationResult = ValidationResult()

    if config.api_prefix and not config.api_prefix.startswith("/"):
        result.add_error(
            "API_PREFIX_NO_LEADING_SLASH",
            f"api_prefix '{config.api_prefix}' must start with '/'.",
            {"api_prefix": config.api_prefix},
        )

    if not _NPM_NAME_RE.match(config.project_name):
        result.add_error(
            "INVALID_PROJECT_NAME",
            f"project_name '{config.project_name}' is not a valid npm package name.",
            {"project_name": config.project_name},
        )

    if not _SEMANTIC_VERSION_RE.match(config.project_version):
        result.add_warning(
            "VERSION_NOT_SEMVER",
            f"project_version '{config.project_version}' is not a semantic version.",
            {"project_version": config.project_version},
        )

    return result


# ---------------------------------------------------------------------------
# Aggregate entry points
# ---------------------------------------------------------------------------


def validate_analysis(
    analysis: SchemaAnalysis,
    singularizer: Optional[Singularizer] = None,
) -> ValidationResult:
    """Run every analysis-level check.  Returns a merged result."""
    result: ValidationResult = ValidationResult()

    validators: List[Callable[[SchemaAnalysis], ValidationResult]] = [
        lambda a: validate_table_names(a, singularizer),
        validate_column_names,
        validate_primary_keys,
        validate_relations,
        validate_generators,
    ]
    for validator_fn in validators:
        result.merge(validator_fn(analysis))

    logger.info("Analysis validation complete: %s", result.summary())
    return result


def validate_full(
    analysis: SchemaAnalysis,
    config: ProjectConfig,
    singularizer: Optional[Singularizer] = None,
) -> ValidationResult:
    """
    **Master validation entry point**, called by ``generator.py`` and
    ``cli.py`` before code generation.
    """
    logger.info("Starting full validation — %d table(s).", len(analysis.tables))

    result: ValidationResult = ValidationResult()
    result.merge(validate_analysis(analysis, singularizer))
    result.merge(validate_project_config(config))

    if result.has_errors:
        logger.error("Validation FAILED with %d error(s).", result.error_count)
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_table_names",
    "validate_column_names",
    "validate_primary_keys",
    "validate_relations",
    "validate_generators",
    "validate_project_config",
    "validate_analysis",
    "validate_full",
]

logger.debug("schemaforge.validators loaded — %d public symbols.", len(__all__))
