# File: schemaforge/analyzer.py
"""
SchemaForge - Schema Analyzer
=============================
Turns a loosely-structured JSON schema description into a normalized
``SchemaAnalysis``.

Pipeline::

    raw ──▶ normalize_tables ──▶ Table[] ──┐
     │                                    ├──▶ SchemaAnalysis
     └────▶ infer_relations ──▶ Relation[] ┘

Three raw shapes are accepted, tried in this order:

1. ``{"tables": [{"name": ..., "columns": [...]}, ...]}``
2. a mapping of table name → ``{"columns": [...]}`` / ``{"fields": {...}}``
3. a mapping of table name → generic object whose own keys are columns

Keys starting with ``_`` are never tables.

Relation sources:

* explicit ``relationships`` (``{source: {table, column}, target: {...}, type}``)
* legacy ``relations`` (``{source|from, target|to, sourceColumn|fromColumn, ...}``)
* naming convention: ``<prefix>_id`` / ``<prefix>Id`` columns pointing at a
  table called ``prefix``, ``prefix + "s"`` or ``prefix + "es"``

An explicit ``relationships`` key switches the naming convention off for
that call unless ``merge_heuristics=True``.  The legacy ``relations`` key
is always additive.  Both behaviours are kept on purpose.

Every function here is pure: no I/O, no shared state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from pydantic import ValidationError as PydanticValidationError

from schemaforge.errors import SchemaFormatError
from schemaforge.models import (
    CanonicalType,
    Column,
    DroppedReference,
    GeneratorSpec,
    Relation,
    RelationKind,
    RelationMode,
    SchemaAnalysis,
    Table,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.analyzer")

# ---------------------------------------------------------------------------
# Type mapping
# ---------------------------------------------------------------------------

_TYPE_MAP: Dict[str, CanonicalType] = {
    "string": CanonicalType.STRING,
    "text": CanonicalType.TEXT,
    "number": CanonicalType.NUMBER,
    "integer": CanonicalType.INTEGER,
    "int": CanonicalType.INTEGER,
    "float": CanonicalType.FLOAT,
    "double": CanonicalType.DOUBLE,
    "decimal": CanonicalType.DECIMAL,
    "boolean": CanonicalType.BOOLEAN,
    "bool": CanonicalType.BOOLEAN,
    "date": CanonicalType.DATE,
    "time": CanonicalType.TIME,
    "datetime": CanonicalType.DATETIME,
    "timestamp": CanonicalType.TIMESTAMP,
    "json": CanonicalType.JSON,
    "array": CanonicalType.ARRAY,
    "object": CanonicalType.OBJECT,
    "binary": CanonicalType.BINARY,
    "blob": CanonicalType.BLOB,
    "uuid": CanonicalType.UUID,
    "varchar": CanonicalType.STRING,
    "objectid": CanonicalType.OBJECTID,
}

# Canonical type implied by a generator when no ``type`` is declared
_GENERATOR_CATEGORY_TYPES: Dict[str, CanonicalType] = {
    "number": CanonicalType.NUMBER,
    "datatype": CanonicalType.NUMBER,
    "date": CanonicalType.DATE,
    "boolean": CanonicalType.BOOLEAN,
}

_DATATYPE_SUBTYPE_TYPES: Dict[str, CanonicalType] = {
    "boolean": CanonicalType.BOOLEAN,
    "datetime": CanonicalType.DATETIME,
    "uuid": CanonicalType.UUID,
    "string": CanonicalType.STRING,
    "json": CanonicalType.JSON,
    "array": CanonicalType.ARRAY,
}

_KIND_ALIASES: Dict[str, RelationKind] = {kind.value: kind for kind in RelationKind}

_FK_SUFFIXES: Tuple[str, ...] = ("_id", "Id")


def map_type(raw_type: Any) -> CanonicalType:
    """
    Map a free-form type token to a canonical type.

    Case-insensitive and total: empty, missing or unknown tokens map to
    ``CanonicalType.STRING``.  Canonical tags map to themselves.
    """
    if raw_type is None:
        return CanonicalType.STRING
    token: str = str(raw_type).strip().lower()
    return _TYPE_MAP.get(token, CanonicalType.STRING)


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------


def _first_present(sources: Sequence[Mapping[str, Any]], *keys: str) -> Any:
    """Return the first non-None value of *keys*, searching *sources* in order."""
    for source in sources:
        for key in keys:
            value: Any = source.get(key)
            if value is not None:
                return value
    return None


def _split_generator_token(token: Any) -> Optional[Tuple[str, str]]:
    if not isinstance(token, str) or "." not in token:
        return None
    category, _, subtype = token.strip().partition(".")
    if not category or not subtype:
        return None
    return category, subtype


def parse_generator(entry: Mapping[str, Any]) -> Optional[GeneratorSpec]:
    """
    Read a synthetic-value descriptor from a column entry.

    Accepted forms, first match wins:
    ``faker: {category, type, active}``, ``fakerType: "a.b"``,
    ``type: "a.b"``.
    """
    faker: Any = entry.get("faker")
    if isinstance(faker, Mapping):
        category: Any = faker.get("category")
        subtype: Any = faker.get("type", faker.get("subtype"))
        if isinstance(category, str) and category and isinstance(subtype, str) and subtype:
            return GeneratorSpec(
                category=category,
                subtype=subtype,
                active=faker.get("active") is not False,
            )

    for key in ("fakerType", "type"):
        pair: Optional[Tuple[str, str]] = _split_generator_token(entry.get(key))
        if pair is not None:
            return GeneratorSpec(category=pair[0], subtype=pair[1])

    return None


def _type_from_generator(generator: GeneratorSpec) -> CanonicalType:
    if generator.category == "datatype" and generator.subtype.lower() in _DATATYPE_SUBTYPE_TYPES:
        return _DATATYPE_SUBTYPE_TYPES[generator.subtype.lower()]
    return _GENERATOR_CATEGORY_TYPES.get(generator.category, CanonicalType.STRING)


def _shape_type(value: Any) -> CanonicalType:
    """Canonical type of a generic-object value that is not a descriptor."""
    if isinstance(value, bool):
        return CanonicalType.BOOLEAN
    if isinstance(value, (int, float)):
        return CanonicalType.NUMBER
    if isinstance(value, (list, tuple)):
        return CanonicalType.ARRAY
    return CanonicalType.STRING


def _build_column(
    name: str,
    entry: Mapping[str, Any],
    path: str,
    *,
    primary_by_name: bool = False,
    missing_type: Optional[str] = None,
) -> Column:
    """Build a ``Column`` from a descriptor mapping."""
    constraints: Any = entry.get("constraints")
    if constraints is None:
        constraints = {}
    elif not isinstance(constraints, Mapping):
        raise SchemaFormatError(
            f"'constraints' must be an object, got {type(constraints).__name__}.",
            f"{path}.constraints",
        )
    sources: Tuple[Mapping[str, Any], ...] = (constraints, entry)

    generator: Optional[GeneratorSpec] = parse_generator(entry)
    type_token: Any = entry.get("type")
    canonical: CanonicalType
    if _split_generator_token(type_token) is not None or (type_token is None and generator):
        canonical = _type_from_generator(generator) if generator else CanonicalType.STRING
    elif type_token is None and missing_type is not None:
        canonical = map_type(missing_type)
    else:
        canonical = map_type(type_token)

    is_primary: bool = bool(
        _first_present(sources, "primaryKey", "primary")
    ) or (primary_by_name and name == "id")

    nullable: Any = _first_present(sources, "nullable")
    required: Any = _first_present(sources, "required")
    is_nullable: bool = nullable is not False and required is not True

    description: Any = entry.get("description")

    return Column(
        name=name,
        canonical_type=canonical,
        is_primary=is_primary,
        is_nullable=is_nullable,
        is_unique=bool(_first_present(sources, "unique")),
        default_value=_first_present(sources, "default", "defaultValue"),
        description=description if isinstance(description, str) and description else None,
        generator=generator,
    )


def _require_name(entry: Any, path: str, what: str) -> str:
    if not isinstance(entry, Mapping):
        raise SchemaFormatError(
            f"{what} entry must be an object, got {type(entry).__name__}.", path
        )
    name: Any = entry.get("name")
    if not isinstance(name, str) or not name:
        raise SchemaFormatError(f"{what} entry is missing a non-empty 'name'.", path)
    return name


def _require_key(key: Any, path: str, what: str) -> str:
    name: str = str(key)
    if not name:
        raise SchemaFormatError(f"{what} name must be a non-empty string.", path)
    return name


def _columns_from_list(columns: Any, path: str) -> List[Column]:
    if not isinstance(columns, list):
        raise SchemaFormatError(
            f"'columns' must be an array, got {type(columns).__name__}.", path
        )
    result: List[Column] = []
    for idx, entry in enumerate(columns):
        col_path: str = f"{path}[{idx}]"
        name: str = _require_name(entry, col_path, "Column")
        result.append(_build_column(name, entry, col_path))
    return result


def _columns_from_fields(fields: Any, path: str) -> List[Column]:
    if not isinstance(fields, Mapping):
        raise SchemaFormatError(
            f"'fields' must be an object, got {type(fields).__name__}.", path
        )
    result: List[Column] = []
    for field_name, info in fields.items():
        field_path: str = f"{path}.{field_name}"
        name: str = _require_key(field_name, field_path, "Field")
        if isinstance(info, Mapping):
            result.append(_build_column(name, info, field_path))
        else:
            result.append(_build_column(name, {"type": info}, field_path))
    return result


def _columns_from_generic(obj: Mapping[str, Any], path: str) -> List[Column]:
    result: List[Column] = []
    for key, value in obj.items():
        col_path: str = f"{path}.{key}"
        key = _require_key(key, col_path, "Column")
        if key.startswith("_"):
            continue
        if isinstance(value, str):
            result.append(
                _build_column(key, {"type": value}, col_path, primary_by_name=True)
            )
        elif isinstance(value, Mapping):
            result.append(
                _build_column(
                    key, value, col_path, primary_by_name=True, missing_type="object"
                )
            )
        else:
            result.append(
                Column(name=key, canonical_type=_shape_type(value), is_primary=key == "id")
            )
    return result


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


def normalize_tables(raw: Any) -> List[Table]:
    """
    Normalize a raw schema description into an ordered list of tables.

    Source order of tables and columns is preserved.

    Raises:
        SchemaFormatError: when *raw* is not an object, or a declared
            array/object field has the wrong shape.
    """
    if not isinstance(raw, Mapping):
        raise SchemaFormatError(
            f"Schema must be a JSON object, got {type(raw).__name__}."
        )

    tables: List[Table] = []

    if raw.get("tables") is not None:
        entries: Any = raw["tables"]
        if not isinstance(entries, list):
            raise SchemaFormatError(
                f"'tables' must be an array, got {type(entries).__name__}.", "tables"
            )
        for idx, entry in enumerate(entries):
            path: str = f"tables[{idx}]"
            name: str = _require_name(entry, path, "Table")
            columns: Any = entry.get("columns")
            tables.append(
                Table(
                    name=name,
                    columns=[] if columns is None else _columns_from_list(columns, f"{path}.columns"),
                )
            )
        logger.debug("Normalized %d table(s) from 'tables' array.", len(tables))
        return tables

    for table_name, data in raw.items():
        table_name = _require_key(table_name, f"[{table_name!r}]", "Table")
        if table_name.startswith("_") or not isinstance(data, Mapping):
            continue
        if data.get("columns") is not None:
            cols: List[Column] = _columns_from_list(data["columns"], f"{table_name}.columns")
        elif data.get("fields") is not None:
            cols = _columns_from_fields(data["fields"], f"{table_name}.fields")
        else:
            cols = _columns_from_generic(data, table_name)
        tables.append(Table(name=table_name, columns=cols))

    logger.debug("Normalized %d table(s) from top-level object.", len(tables))
    return tables


# ---------------------------------------------------------------------------
# Relation inference
# ---------------------------------------------------------------------------


def _parse_kind(value: Any, path: str) -> RelationKind:
    if value is None or value == "":
        return RelationKind.MANY_TO_ONE
    token: str = str(value).strip().lower().replace("_", "-")
    kind: Optional[RelationKind] = _KIND_ALIASES.get(token)
    if kind is None:
        raise SchemaFormatError(
            f"Unknown relation type '{value}'. "
            f"Expected one of: {', '.join(_KIND_ALIASES)}.",
            path,
        )
    return kind


def _require_list(raw: Mapping[str, Any], key: str) -> List[Any]:
    value: Any = raw[key]
    if not isinstance(value, list):
        raise SchemaFormatError(
            f"'{key}' must be an array, got {type(value).__name__}.", key
        )
    return value


def _endpoint(entry: Mapping[str, Any], side: str, path: str) -> Tuple[str, str]:
    ref: Any = entry.get(side)
    if not isinstance(ref, Mapping):
        raise SchemaFormatError(f"'{side}' must be an object with a 'table'.", path)
    table: Any = ref.get("table")
    if not isinstance(table, str) or not table:
        raise SchemaFormatError(f"'{side}.table' must be a non-empty string.", path)
    column: Any = ref.get("column") or "id"
    if not isinstance(column, str):
        raise SchemaFormatError(f"'{side}.column' must be a string.", path)
    return table, column


def _legacy_column(entry: Mapping[str, Any], keys: Tuple[str, str], path: str) -> str:
    column: Any = entry.get(keys[0]) or entry.get(keys[1]) or "id"
    if not isinstance(column, str):
        raise SchemaFormatError(f"'{keys[0]}' must be a string.", path)
    return column


def has_explicit_relationships(raw: Any) -> bool:
    """True when *raw* carries a ``relationships`` array (even an empty one)."""
    return isinstance(raw, Mapping) and raw.get("relationships") is not None


def explicit_relations(raw: Any) -> List[Relation]:
    """
    Relations declared in the raw input.

    ``relationships`` wins over legacy ``relations``; only one of them
    is read.
    """
    if not isinstance(raw, Mapping):
        return []

    relations: List[Relation] = []

    if raw.get("relationships") is not None:
        for idx, entry in enumerate(_require_list(raw, "relationships")):
            path: str = f"relationships[{idx}]"
            if not isinstance(entry, Mapping):
                raise SchemaFormatError("Relationship entry must be an object.", path)
            source_table, source_column = _endpoint(entry, "source", path)
            target_table, target_column = _endpoint(entry, "target", path)
            relations.append(
                Relation(
                    source_table=source_table,
                    source_column=source_column,
                    target_table=target_table,
                    target_column=target_column,
                    kind=_parse_kind(entry.get("type"), path),
                )
            )
        return relations

    if raw.get("relations") is not None:
        for idx, entry in enumerate(_require_list(raw, "relations")):
            path = f"relations[{idx}]"
            if not isinstance(entry, Mapping):
                raise SchemaFormatError("Relation entry must be an object.", path)
            source: Any = entry.get("source") or entry.get("from")
            target: Any = entry.get("target") or entry.get("to")
            if not isinstance(source, str) or not source:
                raise SchemaFormatError("Relation needs a 'source' (or 'from') table.", path)
            if not isinstance(target, str) or not target:
                raise SchemaFormatError("Relation needs a 'target' (or 'to') table.", path)
            relations.append(
                Relation(
                    source_table=source,
                    source_column=_legacy_column(entry, ("sourceColumn", "fromColumn"), path),
                    target_table=target,
                    target_column=_legacy_column(entry, ("targetColumn", "toColumn"), path),
                    kind=_parse_kind(entry.get("type"), path),
                )
            )

    return relations


def heuristic_relations(tables: Sequence[Table]) -> List[Relation]:
    """
    Naming-convention relations.

    For every ``<prefix>_id`` / ``<prefix>Id`` column the candidates
    ``prefix``, ``prefix + "s"``, ``prefix + "es"`` are tried in that order
    and the first existing table wins.
    """
    table_names: Set[str] = {t.name for t in tables}
    relations: List[Relation] = []

    for table in tables:
        for column in table.columns:
            prefix: Optional[str] = None
            for suffix in _FK_SUFFIXES:
                if column.name.endswith(suffix):
                    prefix = column.name[: -len(suffix)]
                    break
            if not prefix:
                continue

            for candidate in (prefix, f"{prefix}s", f"{prefix}es"):
                if candidate in table_names:
                    relation: Relation = Relation(
                        source_table=table.name,
                        source_column=column.name,
                        target_table=candidate,
                        target_column="id",
                        kind=RelationKind.MANY_TO_ONE,
                    )
                    logger.debug("Inferred relation from naming: %r", relation)
                    relations.append(relation)
                    break

    return relations


def infer_relations(tables: Sequence[Table], raw: Any) -> List[Relation]:
    """Explicit relations first, then naming-convention ones. No dedup."""
    return explicit_relations(raw) + heuristic_relations(tables)


def deduplicate_relations(relations: Sequence[Relation]) -> List[Relation]:
    """
    Drop exact duplicates and reverse duplicates (the same link declared
    from the other side with the inverse kind). First occurrence wins.
    """
    seen: Set[Tuple[str, str, str, str, str]] = set()
    result: List[Relation] = []
    for relation in relations:
        if relation.identity in seen or relation.reversed().identity in seen:
            logger.debug("Dropping duplicate relation %r", relation)
            continue
        seen.add(relation.identity)
        result.append(relation)
    return result


# ---------------------------------------------------------------------------
# Relation validity (checked lazily by consumers)
# ---------------------------------------------------------------------------


def check_relation(relation: Relation, analysis: SchemaAnalysis) -> Optional[str]:
    """Return why *relation* dangles, or None when both ends resolve."""
    for side, table_name, column_name in (
        ("source", relation.source_table, relation.source_column),
        ("target", relation.target_table, relation.target_column),
    ):
        table: Optional[Table] = analysis.get_table(table_name)
        if table is None:
            return f"unknown {side} table '{table_name}'"
        if not table.has_column(column_name):
            return f"unknown {side} column '{table_name}.{column_name}'"
    return None


def find_dropped_references(analysis: SchemaAnalysis) -> List[DroppedReference]:
    """Every relation in *analysis* that does not resolve, with a reason."""
    dropped: List[DroppedReference] = []
    for relation in analysis.relations:
        reason: Optional[str] = check_relation(relation, analysis)
        if reason is not None:
            dropped.append(DroppedReference(relation=relation, reason=reason))
    return dropped


# ---------------------------------------------------------------------------
# Analyzer entry point
# ---------------------------------------------------------------------------


def analyze_schema(
    raw: Any,
    *,
    merge_heuristics: bool = False,
    deduplicate: bool = False,
) -> SchemaAnalysis:
    """
    Analyze a raw schema description.

    Args:
        raw: Parsed JSON/YAML schema in any of the accepted shapes.
        merge_heuristics: Also run naming-convention inference when an
            explicit ``relationships`` array is present.
        deduplicate: Run ``deduplicate_relations`` over the result.

    Raises:
        SchemaFormatError: on structurally invalid input, including values
            the data model itself rejects.
    """
    try:
        tables: List[Table] = normalize_tables(raw)

        relations: List[Relation]
        if has_explicit_relationships(raw) and not merge_heuristics:
            relations = explicit_relations(raw)
        else:
            relations = infer_relations(tables, raw)

        mode: RelationMode = RelationMode.RAW
        if deduplicate:
            relations = deduplicate_relations(relations)
            mode = RelationMode.DEDUPLICATED

        analysis: SchemaAnalysis = SchemaAnalysis(
            tables=tables, relations=relations, relation_mode=mode
        )
    except PydanticValidationError as exc:
        raise SchemaFormatError(f"Invalid schema: {exc}") from exc

    logger.info(
        "Schema analyzed: %d table(s), %d relation(s) [%s].",
        len(analysis.tables),
        len(analysis.relations),
        analysis.relation_mode,
    )
    return analysis


__all__: List[str] = [
    "map_type",
    "parse_generator",
    "normalize_tables",
    "has_explicit_relationships",
    "explicit_relations",
    "heuristic_relations",
    "infer_relations",
    "deduplicate_relations",
    "check_relation",
    "find_dropped_references",
    "analyze_schema",
]

logger.debug("schemaforge.analyzer loaded — %d public symbols.", len(__all__))
