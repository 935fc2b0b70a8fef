# File: schemaforge/models.py
"""
SchemaForge - Core Data Models
==============================
Pydantic V2 models for the normalized schema and the code-generation
settings.  These models are the single contract between the pipeline
stages:

    raw JSON → analyzer → SchemaAnalysis → fakedata / templates / endpoints

A ``SchemaAnalysis`` is built fresh on every analysis call and never
mutated afterwards, so every model here is frozen.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
)

from schemaforge.errors import TableNotFoundError

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CanonicalType(str, Enum):
    """Normalized vocabulary every raw type token maps into."""

    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    INTEGER = "integer"
    FLOAT = "float"
    DOUBLE = "double"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    JSON = "json"
    ARRAY = "array"
    OBJECT = "object"
    BINARY = "binary"
    BLOB = "blob"
    UUID = "uuid"
    OBJECTID = "objectid"


class RelationKind(str, Enum):
    """Relation cardinalities."""

    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


class RelationMode(str, Enum):
    """Whether the relation list went through the dedup pass."""

    RAW = "raw"
    DEDUPLICATED = "deduplicated"


# Plain-string sets: stored fields hold enum values, not enum members
NUMERIC_TYPES: FrozenSet[str] = frozenset({
    CanonicalType.NUMBER.value,
    CanonicalType.INTEGER.value,
    CanonicalType.FLOAT.value,
    CanonicalType.DOUBLE.value,
    CanonicalType.DECIMAL.value,
})

TEMPORAL_TYPES: FrozenSet[str] = frozenset({
    CanonicalType.DATE.value,
    CanonicalType.TIME.value,
    CanonicalType.DATETIME.value,
    CanonicalType.TIMESTAMP.value,
})

# Inverse cardinality used when a relation is read from the other side
_INVERSE_KIND: Dict[str, str] = {
    RelationKind.ONE_TO_ONE.value: RelationKind.ONE_TO_ONE.value,
    RelationKind.ONE_TO_MANY.value: RelationKind.MANY_TO_ONE.value,
    RelationKind.MANY_TO_ONE.value: RelationKind.ONE_TO_MANY.value,
    RelationKind.MANY_TO_MANY.value: RelationKind.MANY_TO_MANY.value,
}

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    validate_default=True,
    frozen=True,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Schema primitives
# ---------------------------------------------------------------------------


class GeneratorSpec(BaseModel):
    """A synthetic-value recipe reference such as ``internet.email``."""

    model_config = _SHARED_CONFIG

    category: str = Field(..., min_length=1, description="Recipe family, e.g. 'internet'.")
    subtype: str = Field(..., min_length=1, description="Recipe within the family, e.g. 'email'.")
    active: bool = Field(default=True, description="Inactive recipes are ignored.")

    @computed_field  # type: ignore[misc]
    @property
    def key(self) -> str:
        return f"{self.category}.{self.subtype}"

    def __repr__(self) -> str:
        flag: str = "" if self.active else " (inactive)"
        return f"<Generator {self.key}{flag}>"


class Column(BaseModel):
    """
    A normalized column.

    Primary columns are treated as system-assigned: they never appear in
    generated request bodies or in synthetic documents.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name, unique within its table.")
    canonical_type: CanonicalType = Field(
        default=CanonicalType.STRING, description="Normalized data type."
    )
    is_primary: bool = Field(default=False, description="Primary key column?")
    is_nullable: bool = Field(default=True, description="May the value be absent?")
    is_unique: bool = Field(default=False, description="Unique constraint?")
    default_value: Optional[Any] = Field(
        default=None, description="Raw default value (None means no default)."
    )
    description: Optional[str] = Field(default=None, description="Free-form column doc.")
    generator: Optional[GeneratorSpec] = Field(
        default=None, description="Synthetic-value recipe, if declared."
    )

    @computed_field  # type: ignore[misc]
    @property
    def is_numeric(self) -> bool:
        return self.canonical_type in NUMERIC_TYPES

    @computed_field  # type: ignore[misc]
    @property
    def is_temporal(self) -> bool:
        return self.canonical_type in TEMPORAL_TYPES

    @property
    def active_generator(self) -> Optional[GeneratorSpec]:
        """The declared generator when it is present and active."""
        if self.generator is not None and self.generator.active:
            return self.generator
        return None

    def __repr__(self) -> str:
        pk_flag: str = " PK" if self.is_primary else ""
        null_flag: str = "" if self.is_nullable else " NOT NULL"
        return f"<Column {self.name} {self.canonical_type}{pk_flag}{null_flag}>"


class Table(BaseModel):
    """A normalized table. Column order is declaration order."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Table name, unique across the schema.")
    columns: List[Column] = Field(default_factory=list, description="Ordered columns.")

    _column_map: Dict[str, Column] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        # First declaration wins when a name is repeated
        column_map: Dict[str, Column] = {}
        for col in self.columns:
            column_map.setdefault(col.name, col)
        self._column_map = column_map

    @computed_field  # type: ignore[misc]
    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_columns(self) -> List[Column]:
        return [c for c in self.columns if c.is_primary]

    @property
    def data_columns(self) -> List[Column]:
        """Columns a client supplies: everything except primary columns."""
        return [c for c in self.columns if not c.is_primary]

    def get_column(self, name: str) -> Optional[Column]:
        """O(1) column lookup by name."""
        return self._column_map.get(name)

    def has_column(self, name: str) -> bool:
        return name in self._column_map

    def __repr__(self) -> str:
        return f"<Table {self.name} ({len(self.columns)} cols)>"


class Relation(BaseModel):
    """A directed link between two table columns, referenced by name only."""

    model_config = _SHARED_CONFIG

    source_table: str = Field(..., min_length=1)
    source_column: str = Field(..., min_length=1)
    target_table: str = Field(..., min_length=1)
    target_column: str = Field(default="id", min_length=1)
    kind: RelationKind = Field(default=RelationKind.MANY_TO_ONE)

    def involves(self, table_name: str) -> bool:
        return table_name in (self.source_table, self.target_table)

    def reversed(self) -> "Relation":
        """The same link read from the target side."""
        return Relation(
            source_table=self.target_table,
            source_column=self.target_column,
            target_table=self.source_table,
            target_column=self.source_column,
            kind=_INVERSE_KIND[self.kind],
        )

    @property
    def identity(self) -> Tuple[str, str, str, str, str]:
        return (
            self.source_table,
            self.source_column,
            self.target_table,
            self.target_column,
            self.kind,
        )

    def __repr__(self) -> str:
        return (
            f"<Relation {self.source_table}.{self.source_column} → "
            f"{self.target_table}.{self.target_column} ({self.kind})>"
        )


class DroppedReference(BaseModel):
    """A relation whose reference marker was skipped, with the reason why."""

    model_config = _SHARED_CONFIG

    relation: Relation
    reason: str = Field(..., min_length=1)

    def __str__(self) -> str:
        rel: Relation = self.relation
        return (
            f"{rel.source_table}.{rel.source_column} → "
            f"{rel.target_table}.{rel.target_column}: {self.reason}"
        )


# ---------------------------------------------------------------------------
# Schema analysis: root artifact
# ---------------------------------------------------------------------------


class SchemaAnalysis(BaseModel):
    """
    The normalized ``{tables, relations}`` artifact.

    Sole contract between the analyzer and every downstream generator.
    Invariant: ``_table_map`` is an O(1) lookup cache built once from
    ``tables``; the first table wins when a name is repeated.
    """

    model_config = _SHARED_CONFIG

    tables: List[Table] = Field(default_factory=list)
    relations: List[Relation] = Field(default_factory=list)
    relation_mode: RelationMode = Field(default=RelationMode.RAW)

    _table_map: Dict[str, Table] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        table_map: Dict[str, Table] = {}
        for table in self.tables:
            table_map.setdefault(table.name, table)
        self._table_map = table_map

    @computed_field  # type: ignore[misc]
    @property
    def table_names(self) -> List[str]:
        return [t.name for t in self.tables]

    def get_table(self, name: str) -> Optional[Table]:
        """O(1) table lookup."""
        return self._table_map.get(name)

    def require_table(self, name: str) -> Table:
        """Like ``get_table`` but raises ``TableNotFoundError``."""
        table: Optional[Table] = self._table_map.get(name)
        if table is None:
            raise TableNotFoundError(name, self.table_names)
        return table

    def relations_for(self, table_name: str) -> List[Relation]:
        """Relations touching *table_name* on either side, in order."""
        return [r for r in self.relations if r.involves(table_name)]

    def __repr__(self) -> str:
        return (
            f"<SchemaAnalysis {len(self.tables)} tables, "
            f"{len(self.relations)} relations, {self.relation_mode}>"
        )


# ---------------------------------------------------------------------------
# Code generation configuration
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """
    Settings for the emitted REST API project.

    One instance (plus a ``SchemaAnalysis``) is all the code synthesizer
    needs.
    """

    model_config = _SHARED_CONFIG

    project_name: str = Field(
        default="api-project", min_length=1, max_length=214,
        description="npm package name of the generated project.",
    )
    project_version: str = Field(default="1.0.0", description="Semantic version string.")
    description: str = Field(
        default="Generated REST API for MongoDB",
        description="Short description for package.json / README.",
    )
    api_prefix: str = Field(default="/api", description="Mount prefix for every route module.")
    port: int = Field(default=5000, ge=1, le=65535, description="Default listen port.")
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017/your-database-name",
        description="Connection string written to the .env template.",
    )
    default_page_size: int = Field(
        default=10, ge=1, le=1000, description="List endpoint page size when ?limit is absent."
    )
    indent_size: int = Field(default=2, ge=2, le=8, description="Indent width of emitted code.")
    include_boilerplate: bool = Field(
        default=False,
        description="Also emit package.json, README.md, .env and .gitignore.",
    )
    include_endpoint_manifest: bool = Field(
        default=False, description="Also emit endpoints.json."
    )

    @field_validator("api_prefix")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


__all__: List[str] = [
    "CanonicalType",
    "RelationKind",
    "RelationMode",
    "NUMERIC_TYPES",
    "TEMPORAL_TYPES",
    "GeneratorSpec",
    "Column",
    "Table",
    "Relation",
    "DroppedReference",
    "SchemaAnalysis",
    "ProjectConfig",
]

logger.debug("schemaforge.models loaded — %d public symbols.", len(__all__))
