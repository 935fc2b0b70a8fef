"""
tests/conftest.py
Shared fixtures for the schemaforge test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import pathlib
from typing import Any, Dict

import pytest
import yaml

from schemaforge.analyzer import analyze_schema
from schemaforge.models import SchemaAnalysis


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def blog_analysis(schema_dict: Dict[str, Any]) -> SchemaAnalysis:
    """The reference schema analyzed (``_config`` is ignored by the analyzer)."""
    return analyze_schema(schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary YAML file and return its path."""
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def schema_json_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the schema dict to a temporary JSON file and return its path."""
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(schema_dict, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Minimal / edge-case schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def users_posts_dict() -> Dict[str, Any]:
    """Two tables linked only by the ``user_id`` naming convention."""
    return {
        "tables": [
            {
                "name": "users",
                "columns": [
                    {"name": "id", "type": "objectid", "constraints": {"primaryKey": True}},
                    {"name": "email", "type": "string"},
                ],
            },
            {
                "name": "posts",
                "columns": [
                    {"name": "id", "type": "objectid", "constraints": {"primaryKey": True}},
                    {"name": "title", "type": "string"},
                    {"name": "user_id", "type": "objectid"},
                ],
            },
        ]
    }


@pytest.fixture()
def users_posts_analysis(users_posts_dict: Dict[str, Any]) -> SchemaAnalysis:
    return analyze_schema(users_posts_dict)


@pytest.fixture()
def fields_mode_dict() -> Dict[str, Any]:
    """Object mode with ``fields`` mappings and a ``_config`` key."""
    return {
        "_config": {"project_name": "shop"},
        "customers": {
            "fields": {
                "id": {"type": "uuid", "primaryKey": True},
                "name": "string",
                "vip": "boolean",
            }
        },
        "orders": {
            "fields": {
                "id": {"type": "uuid", "primaryKey": True},
                "customerId": "uuid",
                "total": {"type": "decimal", "required": True},
            }
        },
    }


@pytest.fixture()
def generic_object_dict() -> Dict[str, Any]:
    """Generic-object mode: keys are columns, values are types or samples."""
    return {
        "products": {
            "id": "objectid",
            "title": "string",
            "price": 9.99,
            "inStock": True,
            "tags": ["a", "b"],
            "meta": {"description": "free-form"},
            "_internal": "ignored",
        },
        "_notes": {"not": "a table"},
    }
