# File: schemaforge/__init__.py
"""
SchemaForge — REST API Scaffolding & Synthetic Data Generator
=============================================================

Turns a loosely structured schema description (JSON/YAML) into a normalized
set of tables and relations, then emits a runnable Express + Mongoose
project (models, controllers, routes, server entry point) and realistic
seed data in document-store or relational insert form.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ProjectGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │  (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └──────────────────┘
                                  │
              ┌─────────────┬─────┴──────┬─────────────┐
              ▼             ▼            ▼             ▼
        ┌──────────┐ ┌────────────┐ ┌──────────┐ ┌───────────┐
        │ analyzer │ │ validators │ │ fakedata │ │ exporters │
        │  (.py)   │ │   (.py)    │ │  (.py)   │ │   (.py)   │
        └──────────┘ └────────────┘ └──────────┘ └───────────┘

Usage::

    # As a library
    from schemaforge import analyze_schema, generate_project_files
    analysis = analyze_schema(raw)
    files = generate_project_files(analysis)

    # From the command line
    python -m schemaforge --schema schema.json --output ./my_api -v
"""

from __future__ import annotations

__version__: str = "1.0.0"
__license__: str = "MIT"

from schemaforge.analyzer import (
    analyze_schema,
    find_dropped_references,
    infer_relations,
    map_type,
    normalize_tables,
)
from schemaforge.endpoints import build_endpoint_specs, endpoints_to_json
from schemaforge.errors import (
    SchemaForgeError,
    SchemaFormatError,
    TableNotFoundError,
    UnknownGeneratorWarning,
)
from schemaforge.exporters import ExportManifest, ExportResult, ProjectExporter
from schemaforge.fakedata import (
    DataGenerator,
    InsertDialect,
    emit_insert_script,
    generate_dataset,
    generate_document,
    generate_value,
    set_locale,
)
from schemaforge.generator import (
    GenerationOptions,
    GenerationReport,
    ProjectGenerator,
    generate_dataset_for_all_tables,
    generate_insert_script,
    generate_project_files,
    load_schema_file,
)
from schemaforge.models import (
    CanonicalType,
    Column,
    DroppedReference,
    GeneratorSpec,
    ProjectConfig,
    Relation,
    RelationKind,
    RelationMode,
    SchemaAnalysis,
    Table,
)
from schemaforge.templates import (
    GeneratedFileSet,
    TemplateGenerator,
    emit_controller,
    emit_model,
    emit_project,
    emit_routes,
)
from schemaforge.utils import EnglishSingularizer, SimpleSingularizer, Singularizer
from schemaforge.validators import ValidationResult, validate_analysis, validate_full

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator & facade
    "ProjectGenerator",
    "GenerationOptions",
    "GenerationReport",
    "load_schema_file",
    "generate_project_files",
    "generate_dataset_for_all_tables",
    "generate_insert_script",
    # Models
    "CanonicalType",
    "Column",
    "DroppedReference",
    "GeneratorSpec",
    "ProjectConfig",
    "Relation",
    "RelationKind",
    "RelationMode",
    "SchemaAnalysis",
    "Table",
    # Errors
    "SchemaForgeError",
    "SchemaFormatError",
    "TableNotFoundError",
    "UnknownGeneratorWarning",
    # Analysis
    "map_type",
    "normalize_tables",
    "infer_relations",
    "analyze_schema",
    "find_dropped_references",
    # Synthetic data
    "DataGenerator",
    "InsertDialect",
    "generate_value",
    "generate_document",
    "generate_dataset",
    "emit_insert_script",
    "set_locale",
    # Code synthesis
    "GeneratedFileSet",
    "TemplateGenerator",
    "emit_model",
    "emit_controller",
    "emit_routes",
    "emit_project",
    "build_endpoint_specs",
    "endpoints_to_json",
    # Validation
    "validate_analysis",
    "validate_full",
    "ValidationResult",
    # Exporters
    "ProjectExporter",
    "ExportManifest",
    "ExportResult",
    # Utilities
    "Singularizer",
    "SimpleSingularizer",
    "EnglishSingularizer",
]
