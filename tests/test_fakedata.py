"""
tests/test_fakedata.py
Unit tests for schemaforge.fakedata.

Tests cover:
- Value precedence: generator recipe → column-name keyword → canonical type
- Unknown and inactive generators
- Locale handling and seeded determinism
- Documents, datasets and both insert-script dialects
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any, Iterator, List, Tuple

import pytest

from schemaforge.analyzer import analyze_schema
from schemaforge.errors import TableNotFoundError, UnknownGeneratorWarning
from schemaforge.fakedata import (
    DEFAULT_LOCALE,
    DataGenerator,
    InsertDialect,
    available_recipes,
    emit_insert_script,
    generate_dataset,
    generate_document,
    generate_value,
    get_locale,
    has_recipe,
    resolve_dialect,
    resolve_locale,
    set_locale,
    sql_identifier,
    sql_literal,
)
from schemaforge.models import Column, GeneratorSpec, SchemaAnalysis, Table

_HEX24_RE = re.compile(r"^[0-9a-f]{24}$")
_INSERT_RE = re.compile(r"^INSERT INTO (\S+) \((.*?)\) VALUES \((.*)\);$")


# ===========================================================================
# Helpers
# ===========================================================================


def _split_sql_values(values: str) -> List[str]:
    """Split a VALUES list on commas outside single-quoted literals."""
    parts: List[str] = []
    current: List[str] = []
    in_quote = False
    idx = 0
    while idx < len(values):
        char = values[idx]
        if char == "'":
            if in_quote and idx + 1 < len(values) and values[idx + 1] == "'":
                current.append("''")
                idx += 2
                continue
            in_quote = not in_quote
        if char == "," and not in_quote:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        idx += 1
    parts.append("".join(current).strip())
    return parts


def _inserts(script: str) -> List[Tuple[str, List[str], List[str]]]:
    rows = []
    for line in script.splitlines():
        match = _INSERT_RE.match(line)
        if match:
            columns = [c.strip() for c in match.group(2).split(",")]
            rows.append((match.group(1), columns, _split_sql_values(match.group(3))))
    return rows


@pytest.fixture()
def restore_locale() -> Iterator[None]:
    yield
    set_locale(DEFAULT_LOCALE)


# ===========================================================================
# Single values
# ===========================================================================


class TestGenerateValue:
    """Precedence and fallbacks of generate_value."""

    def test_recipe_wins_over_column_name(self) -> None:
        column = Column(
            name="email",
            generator=GeneratorSpec(category="number", subtype="int"),
        )
        assert isinstance(generate_value(column, seed=1), int)

    def test_recipe_subtype_is_normalized(self) -> None:
        column = Column(name="x", generator=GeneratorSpec(category="Internet", subtype="user_Name"))
        value = generate_value(column, seed=1)
        assert isinstance(value, str) and value

    def test_inactive_recipe_is_ignored(self) -> None:
        column = Column(
            name="email",
            generator=GeneratorSpec(category="number", subtype="int", active=False),
        )
        assert "@" in generate_value(column, seed=1)

    def test_unknown_recipe_warns_and_falls_back(self) -> None:
        column = Column(name="x", generator=GeneratorSpec(category="nope", subtype="thing"))
        with pytest.warns(UnknownGeneratorWarning, match="nope.thing"):
            value = generate_value(column, seed=1)
        assert isinstance(value, str) and value

    @pytest.mark.parametrize("name", ["author_id", "userId", "parentCategoryId"])
    def test_reference_like_names_get_object_ids(self, name: str) -> None:
        assert _HEX24_RE.match(generate_value(Column(name=name), seed=3))

    def test_keyword_rules(self) -> None:
        gen = DataGenerator(seed=7)
        assert "@" in gen.generate_value(Column(name="contactEmail"))
        assert 18 <= gen.generate_value(Column(name="age", canonical_type="integer")) <= 85
        assert 1 <= gen.generate_value(Column(name="rating")) <= 5
        assert gen.generate_value(Column(name="status")) in {
            "active", "inactive", "pending", "completed",
        }
        assert isinstance(gen.generate_value(Column(name="price")), float)
        uuid.UUID(gen.generate_value(Column(name="guid")))

    def test_username_is_not_a_full_name(self) -> None:
        value = generate_value(Column(name="username"), seed=5)
        assert " " not in value

    @pytest.mark.parametrize("name", ["birthDate", "updatedAt", "createdBy", "created_on"])
    def test_date_keywords_yield_datetimes(self, name: str) -> None:
        value = generate_value(Column(name=name, canonical_type="string"), seed=3)
        assert isinstance(value, datetime)

    def test_category_job_and_tag_keywords(self) -> None:
        gen = DataGenerator(seed=9)
        category = gen.generate_value(Column(name="category"))
        assert isinstance(category, str) and category
        assert isinstance(gen.generate_value(Column(name="jobTitle")), str)
        assert isinstance(gen.generate_value(Column(name="tag")), str)

    def test_array_column_keeps_its_shape(self) -> None:
        value = generate_value(Column(name="tags", canonical_type="array"), seed=2)
        assert isinstance(value, list)
        assert len(value) == 2

    @pytest.mark.parametrize(
        "canonical, check",
        [
            ("integer", lambda v: isinstance(v, int) and 1 <= v <= 1000),
            ("number", lambda v: isinstance(v, int)),
            ("decimal", lambda v: isinstance(v, float) and round(v, 2) == v),
            ("boolean", lambda v: isinstance(v, bool)),
            ("datetime", lambda v: isinstance(v, datetime)),
            ("objectid", lambda v: bool(_HEX24_RE.match(v))),
            ("array", lambda v: isinstance(v, list) and len(v) == 2),
            ("json", lambda v: set(v) == {"key", "value"}),
            ("text", lambda v: isinstance(v, str) and v),
        ],
    )
    def test_canonical_type_fallbacks(self, canonical: str, check: Any) -> None:
        assert check(generate_value(Column(name="zz", canonical_type=canonical), seed=11))

    def test_uuid_type(self) -> None:
        value = generate_value(Column(name="zz", canonical_type="uuid"), seed=2)
        assert str(uuid.UUID(value)) == value


class TestRecipes:

    def test_has_recipe(self) -> None:
        assert has_recipe("internet", "email")
        assert has_recipe("person", "first_name")
        assert not has_recipe("internet", "carrierPigeon")

    def test_every_recipe_produces_a_value(self) -> None:
        gen = DataGenerator(seed=99)
        for key in available_recipes():
            category, subtype = key.split(".")
            column = Column(name="x", generator=GeneratorSpec(category=category, subtype=subtype))
            assert gen.generate_value(column) is not None, key


# ===========================================================================
# Locale
# ===========================================================================


class TestLocale:

    def test_resolve_aliases(self) -> None:
        assert resolve_locale("de") == "de_DE"
        assert resolve_locale("fr-fr") == "fr_FR"
        assert resolve_locale("en_US") == "en_US"

    def test_unknown_locale_raises(self) -> None:
        with pytest.raises(ValueError):
            resolve_locale("xx_YY")
        with pytest.raises(ValueError):
            DataGenerator(locale="klingon")

    def test_set_locale_changes_default(self, restore_locale: None) -> None:
        assert set_locale("de") == "de_DE"
        assert get_locale() == "de_DE"
        assert DataGenerator().locale == "de_DE"

    def test_set_locale_rejects_unknown_and_keeps_previous(self, restore_locale: None) -> None:
        set_locale("fr")
        with pytest.raises(ValueError):
            set_locale("zz")
        assert get_locale() == "fr_FR"

    def test_explicit_locale_beats_default(self, restore_locale: None) -> None:
        set_locale("de")
        assert DataGenerator(locale="it").locale == "it_IT"


# ===========================================================================
# Documents & datasets
# ===========================================================================


class TestDocuments:

    def test_document_keys_follow_column_order(self, blog_analysis: SchemaAnalysis) -> None:
        doc = generate_document(blog_analysis.require_table("posts"), seed=1)
        assert list(doc) == ["title", "body", "user_id", "tags", "publishedAt"]

    def test_bookkeeping_columns_skipped(self, blog_analysis: SchemaAnalysis) -> None:
        doc = generate_document(blog_analysis.require_table("users"), seed=1)
        assert "id" not in doc
        assert "createdAt" not in doc
        assert list(doc) == ["email", "username", "age", "isActive"]

    def test_seeded_generators_are_deterministic(self, blog_analysis: SchemaAnalysis) -> None:
        users = blog_analysis.require_table("users")
        comments = blog_analysis.require_table("comments")
        first = DataGenerator(seed=42)
        second = DataGenerator(seed=42)
        assert first.generate_documents(users, 3) == second.generate_documents(users, 3)
        assert first.generate_documents(comments, 3) == second.generate_documents(comments, 3)

    def test_generate_documents_rejects_negative_count(self) -> None:
        with pytest.raises(ValueError):
            DataGenerator().generate_documents(Table(name="t"), -1)

    def test_generate_documents_for_unknown_table(self, blog_analysis: SchemaAnalysis) -> None:
        with pytest.raises(TableNotFoundError):
            DataGenerator().generate_documents_for(blog_analysis, "ghosts", 2)

    def test_dataset_shape(self, blog_analysis: SchemaAnalysis) -> None:
        dataset = generate_dataset(blog_analysis, 4, seed=3)
        assert list(dataset) == ["users", "posts", "comments"]
        assert all(len(records) == 4 for records in dataset.values())

    def test_dataset_zero_count(self, blog_analysis: SchemaAnalysis) -> None:
        assert generate_dataset(blog_analysis, 0) == {"users": [], "posts": [], "comments": []}


# ===========================================================================
# Insert scripts
# ===========================================================================


class TestInsertScripts:

    def test_resolve_dialect_aliases(self) -> None:
        assert resolve_dialect("mongodb") is InsertDialect.DOCUMENT_STORE
        assert resolve_dialect("SQL") is InsertDialect.RELATIONAL
        with pytest.raises(ValueError):
            resolve_dialect("cobol")

    def test_relational_column_and_value_counts(self, blog_analysis: SchemaAnalysis) -> None:
        script = emit_insert_script(blog_analysis, "relational", 5, seed=8)
        rows = _inserts(script)
        assert len(rows) == 15
        for table, columns, values in rows:
            assert len(columns) == len(values), (table, columns, values)
        assert {table for table, _, _ in rows} == {"users", "posts", "comments"}

    def test_relational_block_headers(self, blog_analysis: SchemaAnalysis) -> None:
        script = emit_insert_script(blog_analysis, InsertDialect.RELATIONAL, 1, seed=8)
        blocks = script.rstrip("\n").split("\n\n")
        assert [b.splitlines()[0] for b in blocks] == ["-- users", "-- posts", "-- comments"]
        assert script.endswith(";\n")

    def test_relational_default_values_for_empty_record(self) -> None:
        analysis = SchemaAnalysis(
            tables=[Table(name="tags", columns=[Column(name="id", is_primary=True)])]
        )
        script = emit_insert_script(analysis, "relational", 2)
        assert script.count("INSERT INTO tags DEFAULT VALUES;") == 2

    def test_document_store_script(self, blog_analysis: SchemaAnalysis) -> None:
        script = emit_insert_script(blog_analysis, "document-store", 3, seed=9)
        assert script.startswith("// users\n")
        assert 'db.getCollection("posts").insertMany([' in script
        assert script.count('"_id": ObjectId("') == 9
        assert script.count("]);") == 3
        assert "ISODate(" in script
        assert script.endswith("]);\n")

    def test_document_store_is_deterministic(self, blog_analysis: SchemaAnalysis) -> None:
        users_only = SchemaAnalysis(tables=[blog_analysis.require_table("users")])
        first = emit_insert_script(users_only, "document-store", 3, seed=21)
        second = emit_insert_script(users_only, "document-store", 3, seed=21)
        assert first == second

    def test_document_store_zero_records(self, blog_analysis: SchemaAnalysis) -> None:
        script = emit_insert_script(blog_analysis, "document-store", 0)
        assert "// no records for users" in script
        assert "insertMany" not in script

    def test_empty_analysis_gives_empty_script(self) -> None:
        assert emit_insert_script(SchemaAnalysis(), "relational", 3) == ""

    def test_negative_count_raises(self, blog_analysis: SchemaAnalysis) -> None:
        with pytest.raises(ValueError):
            emit_insert_script(blog_analysis, "relational", -2)


class TestSqlLiterals:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "NULL"),
            (True, "TRUE"),
            (False, "FALSE"),
            (42, "42"),
            (3.5, "3.5"),
            ("O'Brien", "'O''Brien'"),
            (datetime(2024, 1, 2, 3, 4, 5), "'2024-01-02T03:04:05'"),
            ({"a": 1}, "'{\"a\": 1}'"),
            (["x", "y"], "'[\"x\", \"y\"]'"),
        ],
    )
    def test_sql_literal(self, value: Any, expected: str) -> None:
        assert sql_literal(value) == expected

    def test_sql_identifier(self) -> None:
        assert sql_identifier("users") == "users"
        assert sql_identifier("order-items") == '"order-items"'

    @pytest.mark.parametrize("name", ["user", "order", "Group", "when"])
    def test_sql_identifier_quotes_reserved_words(self, name: str) -> None:
        assert sql_identifier(name) == f'"{name}"'

    def test_reserved_table_and_column_names_are_quoted(self) -> None:
        analysis = analyze_schema({
            "user": {"fields": {"nickname": "string"}},
            "order": {"fields": {"when": "string", "total": "integer"}},
        })
        rows = _inserts(emit_insert_script(analysis, "relational", 1, seed=4))
        assert [(table, columns) for table, columns, _ in rows] == [
            ('"user"', ["nickname"]),
            ('"order"', ['"when"', "total"]),
        ]

    def test_values_splitter_respects_quotes(self) -> None:
        assert _split_sql_values("'a, b', 'it''s', 3") == ["'a, b'", "'it''s'", "3"]

    def test_analysis_from_raw(self) -> None:
        analysis = analyze_schema({"notes": {"text": "string", "pinned": False}})
        script = emit_insert_script(analysis, "sql", 2, seed=1)
        rows = _inserts(script)
        assert [columns for _, columns, _ in rows] == [["text", "pinned"], ["text", "pinned"]]
