"""
tests/test_analyzer.py
Unit tests for schemaforge.analyzer.

Tests cover:
- Type mapping totality
- The three input shapes and source-order preservation
- Generator descriptors and type inference from them
- Explicit, legacy and naming-convention relations
- The dedup pass and dropped-reference diagnostics
- Structural errors raised as SchemaFormatError
"""

from __future__ import annotations

import copy
from typing import Any, Dict

import pytest

from schemaforge.analyzer import (
    analyze_schema,
    check_relation,
    deduplicate_relations,
    explicit_relations,
    find_dropped_references,
    has_explicit_relationships,
    heuristic_relations,
    infer_relations,
    map_type,
    normalize_tables,
    parse_generator,
)
from schemaforge.errors import SchemaFormatError, TableNotFoundError
from schemaforge.models import CanonicalType, Column, Relation, RelationKind, RelationMode, Table


# ===========================================================================
# map_type
# ===========================================================================


class TestMapType:
    """Type tokens → canonical types."""

    @pytest.mark.parametrize("canonical", list(CanonicalType))
    def test_canonical_tags_map_to_themselves(self, canonical: CanonicalType) -> None:
        assert map_type(canonical.value) is canonical

    @pytest.mark.parametrize(
        "token, expected",
        [
            ("VARCHAR", CanonicalType.STRING),
            ("Int", CanonicalType.INTEGER),
            ("bool", CanonicalType.BOOLEAN),
            ("  DateTime  ", CanonicalType.DATETIME),
        ],
    )
    def test_aliases_are_case_insensitive(self, token: str, expected: CanonicalType) -> None:
        assert map_type(token) is expected

    @pytest.mark.parametrize("token", [None, "", "hyperblob", 42])
    def test_unknown_tokens_fall_back_to_string(self, token: Any) -> None:
        assert map_type(token) is CanonicalType.STRING


# ===========================================================================
# normalize_tables
# ===========================================================================


class TestNormalizeTables:
    """Input shapes, flags and ordering."""

    def test_tables_array_preserves_order(self, schema_dict: Dict[str, Any]) -> None:
        tables = normalize_tables(schema_dict)
        assert [t.name for t in tables] == ["users", "posts", "comments"]
        assert tables[1].column_names == [
            "id", "title", "body", "user_id", "tags", "publishedAt",
        ]

    def test_constraints_are_read(self, schema_dict: Dict[str, Any]) -> None:
        users = normalize_tables(schema_dict)[0]
        email = users.get_column("email")
        assert email is not None
        assert email.is_unique
        assert not email.is_nullable
        assert users.get_column("id").is_primary
        assert users.get_column("age").is_nullable

    def test_top_level_flags_and_defaults(self) -> None:
        raw = {
            "tables": [
                {
                    "name": "t",
                    "columns": [
                        {"name": "a", "type": "string", "required": True, "unique": True},
                        {"name": "b", "type": "integer", "defaultValue": 3},
                        {"name": "c", "type": "boolean", "default": False},
                    ],
                }
            ]
        }
        table = normalize_tables(raw)[0]
        a, b, c = table.columns
        assert not a.is_nullable and a.is_unique
        assert b.default_value == 3
        assert c.default_value is False

    def test_constraints_win_over_top_level_keys(self) -> None:
        raw = {
            "tables": [
                {
                    "name": "t",
                    "columns": [
                        {"name": "a", "nullable": True, "constraints": {"nullable": False}},
                    ],
                }
            ]
        }
        assert not normalize_tables(raw)[0].columns[0].is_nullable

    def test_missing_columns_gives_empty_table(self) -> None:
        tables = normalize_tables({"tables": [{"name": "empty"}]})
        assert tables[0].columns == []

    def test_fields_mode(self, fields_mode_dict: Dict[str, Any]) -> None:
        tables = normalize_tables(fields_mode_dict)
        assert [t.name for t in tables] == ["customers", "orders"]
        orders = tables[1]
        assert orders.get_column("id").is_primary
        assert orders.get_column("customerId").canonical_type == CanonicalType.UUID
        total = orders.get_column("total")
        assert total.canonical_type == CanonicalType.DECIMAL
        assert not total.is_nullable

    def test_generic_object_mode(self, generic_object_dict: Dict[str, Any]) -> None:
        tables = normalize_tables(generic_object_dict)
        assert [t.name for t in tables] == ["products"]
        products = tables[0]
        assert products.column_names == ["id", "title", "price", "inStock", "tags", "meta"]
        assert products.get_column("id").is_primary
        assert products.get_column("price").canonical_type == CanonicalType.NUMBER
        assert products.get_column("inStock").canonical_type == CanonicalType.BOOLEAN
        assert products.get_column("tags").canonical_type == CanonicalType.ARRAY
        meta = products.get_column("meta")
        assert meta.canonical_type == CanonicalType.OBJECT
        assert meta.description == "free-form"

    def test_object_mode_skips_underscore_and_scalar_keys(self) -> None:
        raw = {"_config": {"port": 1}, "version": 3, "items": {"name": "string"}}
        assert [t.name for t in normalize_tables(raw)] == ["items"]

    def test_columns_beat_fields(self) -> None:
        raw = {"t": {"columns": [{"name": "a"}], "fields": {"b": "string"}}}
        assert normalize_tables(raw)[0].column_names == ["a"]


class TestNormalizeErrors:
    """Structural problems surface as SchemaFormatError with a path."""

    def test_non_mapping_input(self) -> None:
        with pytest.raises(SchemaFormatError):
            normalize_tables(["users"])

    def test_tables_not_a_list(self) -> None:
        with pytest.raises(SchemaFormatError) as exc_info:
            normalize_tables({"tables": {"users": {}}})
        assert exc_info.value.path == "tables"

    def test_table_without_name(self) -> None:
        with pytest.raises(SchemaFormatError) as exc_info:
            normalize_tables({"tables": [{"name": "ok"}, {"columns": []}]})
        assert exc_info.value.path == "tables[1]"

    def test_column_not_an_object(self) -> None:
        with pytest.raises(SchemaFormatError) as exc_info:
            normalize_tables({"tables": [{"name": "t", "columns": ["id"]}]})
        assert exc_info.value.path == "tables[0].columns[0]"

    def test_columns_not_a_list(self) -> None:
        with pytest.raises(SchemaFormatError):
            normalize_tables({"tables": [{"name": "t", "columns": {"id": "string"}}]})

    def test_fields_not_a_mapping(self) -> None:
        with pytest.raises(SchemaFormatError):
            normalize_tables({"t": {"fields": ["id"]}})

    def test_constraints_not_a_mapping(self) -> None:
        with pytest.raises(SchemaFormatError) as exc_info:
            normalize_tables(
                {"tables": [{"name": "t", "columns": [{"name": "a", "constraints": True}]}]}
            )
        assert exc_info.value.path.endswith(".constraints")

    def test_error_is_also_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            normalize_tables("not a schema")

    @pytest.mark.parametrize(
        "raw, path",
        [
            ({"users": {"fields": {"": "string"}}}, "users.fields."),
            ({"users": {"id": "objectid", "": "string"}}, "users."),
            ({"": {"id": "objectid"}}, "['']"),
        ],
    )
    def test_empty_names_are_rejected(self, raw: Dict[str, Any], path: str) -> None:
        with pytest.raises(SchemaFormatError) as exc_info:
            analyze_schema(raw)
        assert exc_info.value.path == path
        assert "non-empty" in exc_info.value.reason


# ===========================================================================
# Generator descriptors
# ===========================================================================


class TestGeneratorDescriptors:
    """faker / fakerType / dotted type forms and type inference."""

    def test_faker_mapping(self) -> None:
        spec = parse_generator({"faker": {"category": "internet", "type": "email"}})
        assert spec is not None
        assert spec.key == "internet.email"
        assert spec.active

    def test_inactive_descriptor_is_kept_but_not_active(self) -> None:
        raw = {
            "tables": [
                {
                    "name": "t",
                    "columns": [
                        {
                            "name": "a",
                            "type": "string",
                            "faker": {"category": "lorem", "type": "word", "active": False},
                        }
                    ],
                }
            ]
        }
        column = normalize_tables(raw)[0].columns[0]
        assert column.generator is not None
        assert column.active_generator is None

    def test_faker_type_string(self) -> None:
        spec = parse_generator({"fakerType": "person.firstName"})
        assert (spec.category, spec.subtype) == ("person", "firstName")

    def test_dotted_type_token(self) -> None:
        raw = {"tables": [{"name": "t", "columns": [{"name": "mail", "type": "internet.email"}]}]}
        column = normalize_tables(raw)[0].columns[0]
        assert column.generator.key == "internet.email"
        assert column.canonical_type == CanonicalType.STRING

    def test_no_descriptor(self) -> None:
        assert parse_generator({"type": "string"}) is None

    @pytest.mark.parametrize(
        "descriptor, expected",
        [
            ({"fakerType": "number.int"}, CanonicalType.NUMBER),
            ({"fakerType": "datatype.float"}, CanonicalType.NUMBER),
            ({"fakerType": "datatype.boolean"}, CanonicalType.BOOLEAN),
            ({"fakerType": "date.past"}, CanonicalType.DATE),
            ({"fakerType": "boolean.boolean"}, CanonicalType.BOOLEAN),
            ({"fakerType": "lorem.word"}, CanonicalType.STRING),
        ],
    )
    def test_type_inferred_from_generator_category(
        self, descriptor: Dict[str, Any], expected: CanonicalType
    ) -> None:
        raw = {"tables": [{"name": "t", "columns": [dict(name="a", **descriptor)]}]}
        assert normalize_tables(raw)[0].columns[0].canonical_type == expected

    def test_declared_type_wins_over_generator_category(self) -> None:
        raw = {
            "tables": [
                {
                    "name": "t",
                    "columns": [
                        {"name": "a", "type": "string", "faker": {"category": "number", "type": "int"}}
                    ],
                }
            ]
        }
        assert normalize_tables(raw)[0].columns[0].canonical_type == CanonicalType.STRING


# ===========================================================================
# Relation inference
# ===========================================================================


class TestHeuristicRelations:
    """Naming-convention relations."""

    def test_users_posts(self, users_posts_analysis) -> None:
        assert users_posts_analysis.relations == [
            Relation(
                source_table="posts",
                source_column="user_id",
                target_table="users",
                target_column="id",
                kind=RelationKind.MANY_TO_ONE,
            )
        ]

    def test_camel_case_suffix(self, fields_mode_dict: Dict[str, Any]) -> None:
        relations = heuristic_relations(normalize_tables(fields_mode_dict))
        assert [(r.source_column, r.target_table) for r in relations] == [
            ("customerId", "customers")
        ]

    def test_es_plural_candidate(self) -> None:
        tables = [
            Table(name="boxes", columns=[Column(name="id", is_primary=True)]),
            Table(name="items", columns=[Column(name="box_id")]),
        ]
        relations = heuristic_relations(tables)
        assert [r.target_table for r in relations] == ["boxes"]

    def test_exact_name_candidate_first(self) -> None:
        tables = [
            Table(name="user", columns=[Column(name="id")]),
            Table(name="users", columns=[Column(name="id")]),
            Table(name="posts", columns=[Column(name="user_id")]),
        ]
        assert [r.target_table for r in heuristic_relations(tables)] == ["user"]

    @pytest.mark.parametrize("column_name", ["_id", "Id", "identity", "user_ID"])
    def test_no_relation_for_non_matching_names(self, column_name: str) -> None:
        tables = [
            Table(name="s", columns=[Column(name="id")]),
            Table(name="users", columns=[Column(name=column_name)]),
        ]
        assert heuristic_relations(tables) == []

    def test_unknown_target_is_not_inferred(self) -> None:
        tables = [Table(name="posts", columns=[Column(name="author_id")])]
        assert heuristic_relations(tables) == []


class TestExplicitRelations:
    """``relationships`` and legacy ``relations`` keys."""

    def test_explicit_relationships_only(self, blog_analysis) -> None:
        pairs = [(r.source_table, r.source_column, r.target_table) for r in blog_analysis.relations]
        assert pairs == [
            ("posts", "user_id", "users"),
            ("comments", "post_id", "posts"),
            ("comments", "user_id", "users"),
        ]

    def test_empty_relationships_disables_heuristics(
        self, users_posts_dict: Dict[str, Any]
    ) -> None:
        users_posts_dict["relationships"] = []
        assert has_explicit_relationships(users_posts_dict)
        assert analyze_schema(users_posts_dict).relations == []

    def test_merge_heuristics(self, users_posts_dict: Dict[str, Any]) -> None:
        users_posts_dict["relationships"] = [
            {"source": {"table": "users", "column": "id"}, "target": {"table": "posts"},
             "type": "one-to-many"}
        ]
        relations = analyze_schema(users_posts_dict, merge_heuristics=True).relations
        assert len(relations) == 2
        assert relations[0].kind == RelationKind.ONE_TO_MANY
        assert relations[1].source_column == "user_id"

    def test_target_column_defaults_to_id(self) -> None:
        raw = {"relationships": [{"source": {"table": "a", "column": "b_id"}, "target": {"table": "b"}}]}
        relation = explicit_relations(raw)[0]
        assert relation.target_column == "id"
        assert relation.kind == RelationKind.MANY_TO_ONE

    @pytest.mark.parametrize(
        "token, expected",
        [
            ("ONE_TO_MANY", RelationKind.ONE_TO_MANY),
            ("Many-To-Many", RelationKind.MANY_TO_MANY),
            ("one-to-one", RelationKind.ONE_TO_ONE),
            (None, RelationKind.MANY_TO_ONE),
        ],
    )
    def test_kind_normalization(self, token: Any, expected: RelationKind) -> None:
        raw = {
            "relationships": [
                {"source": {"table": "a"}, "target": {"table": "b"}, "type": token}
            ]
        }
        assert explicit_relations(raw)[0].kind == expected

    def test_unknown_kind_raises(self) -> None:
        raw = {"relationships": [{"source": {"table": "a"}, "target": {"table": "b"}, "type": "lots"}]}
        with pytest.raises(SchemaFormatError) as exc_info:
            explicit_relations(raw)
        assert exc_info.value.path == "relationships[0]"

    def test_relationships_not_a_list(self) -> None:
        with pytest.raises(SchemaFormatError):
            explicit_relations({"relationships": {"a": "b"}})

    def test_relationship_without_source_table(self) -> None:
        with pytest.raises(SchemaFormatError):
            explicit_relations({"relationships": [{"source": {}, "target": {"table": "b"}}]})

    def test_legacy_relations_are_additive(self, users_posts_dict: Dict[str, Any]) -> None:
        users_posts_dict["relations"] = [
            {"from": "posts", "to": "users", "fromColumn": "user_id"}
        ]
        relations = analyze_schema(users_posts_dict).relations
        assert len(relations) == 2
        assert relations[0] == relations[1]

    def test_legacy_relation_needs_source(self) -> None:
        with pytest.raises(SchemaFormatError):
            explicit_relations({"relations": [{"to": "users"}]})

    @pytest.mark.parametrize(
        "entry",
        [
            {"from": "users", "to": "users", "fromColumn": 5},
            {"from": "users", "to": "users", "targetColumn": ["id"]},
        ],
    )
    def test_legacy_column_must_be_a_string(self, entry: Dict[str, Any]) -> None:
        raw = {"users": {"id": "objectid"}, "relations": [entry]}
        with pytest.raises(SchemaFormatError) as exc_info:
            analyze_schema(raw)
        assert exc_info.value.path == "relations[0]"

    def test_relationship_column_must_be_a_string(self) -> None:
        raw = {"relationships": [{"source": {"table": "a", "column": 3}, "target": {"table": "b"}}]}
        with pytest.raises(SchemaFormatError, match="source.column"):
            explicit_relations(raw)

    def test_relationships_win_over_relations(self) -> None:
        raw = {
            "relationships": [{"source": {"table": "a"}, "target": {"table": "b"}}],
            "relations": [{"source": "c", "target": "d"}],
        }
        assert [r.source_table for r in explicit_relations(raw)] == ["a"]

    def test_infer_relations_is_explicit_then_heuristic(
        self, users_posts_dict: Dict[str, Any]
    ) -> None:
        users_posts_dict["relations"] = [{"source": "users", "target": "posts"}]
        tables = normalize_tables(users_posts_dict)
        relations = infer_relations(tables, users_posts_dict)
        assert [r.source_table for r in relations] == ["users", "posts"]


# ===========================================================================
# Dedup & dropped references
# ===========================================================================


class TestDeduplicate:

    def test_exact_duplicates_removed(self, users_posts_dict: Dict[str, Any]) -> None:
        users_posts_dict["relations"] = [
            {"from": "posts", "to": "users", "fromColumn": "user_id"}
        ]
        analysis = analyze_schema(users_posts_dict, deduplicate=True)
        assert len(analysis.relations) == 1
        assert analysis.relation_mode == RelationMode.DEDUPLICATED

    def test_reverse_duplicates_removed(self) -> None:
        forward = Relation(
            source_table="posts", source_column="user_id",
            target_table="users", target_column="id", kind=RelationKind.MANY_TO_ONE,
        )
        backward = forward.reversed()
        assert backward.kind == RelationKind.ONE_TO_MANY
        assert deduplicate_relations([forward, backward]) == [forward]

    def test_same_endpoints_different_kind_kept(self) -> None:
        a = Relation(source_table="a", source_column="x", target_table="b", kind="one-to-one")
        b = Relation(source_table="a", source_column="x", target_table="b", kind="many-to-one")
        assert deduplicate_relations([a, b]) == [a, b]

    def test_default_mode_is_raw(self, blog_analysis) -> None:
        assert blog_analysis.relation_mode == RelationMode.RAW


class TestDroppedReferences:

    def test_clean_schema_has_none(self, blog_analysis) -> None:
        assert find_dropped_references(blog_analysis) == []

    def test_unknown_table_and_column(self, schema_dict: Dict[str, Any]) -> None:
        schema_dict["relationships"].extend([
            {"source": {"table": "posts", "column": "user_id"}, "target": {"table": "ghosts"}},
            {"source": {"table": "posts", "column": "nope"}, "target": {"table": "users"}},
        ])
        analysis = analyze_schema(schema_dict)
        dropped = find_dropped_references(analysis)
        assert [d.reason for d in dropped] == [
            "unknown target table 'ghosts'",
            "unknown source column 'posts.nope'",
        ]
        assert "ghosts" in str(dropped[0])

    def test_analysis_keeps_dangling_relations(self, schema_dict: Dict[str, Any]) -> None:
        schema_dict["relationships"].append(
            {"source": {"table": "posts", "column": "user_id"}, "target": {"table": "ghosts"}}
        )
        analysis = analyze_schema(schema_dict)
        assert len(analysis.relations) == 4
        assert check_relation(analysis.relations[-1], analysis) is not None


# ===========================================================================
# analyze_schema
# ===========================================================================


class TestAnalyzeSchema:

    def test_is_pure(self, schema_dict: Dict[str, Any]) -> None:
        before = copy.deepcopy(schema_dict)
        first = analyze_schema(schema_dict)
        second = analyze_schema(schema_dict)
        assert schema_dict == before
        assert first == second

    def test_config_key_is_not_a_table(self, fields_mode_dict: Dict[str, Any]) -> None:
        assert analyze_schema(fields_mode_dict).table_names == ["customers", "orders"]

    def test_require_table(self, blog_analysis) -> None:
        assert blog_analysis.require_table("posts").name == "posts"
        with pytest.raises(TableNotFoundError) as exc_info:
            blog_analysis.require_table("ghosts")
        assert exc_info.value.available == ["users", "posts", "comments"]

    def test_relations_for(self, blog_analysis) -> None:
        assert len(blog_analysis.relations_for("users")) == 2
        assert len(blog_analysis.relations_for("comments")) == 2
