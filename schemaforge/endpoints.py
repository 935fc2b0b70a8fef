# File: schemaforge/endpoints.py
"""
SchemaForge - REST Endpoint Catalogue
=====================================
Naming rules shared by every emitted artifact, plus a machine-readable
description of the REST surface the generated project exposes.

Naming, for a table called ``users``::

    model        User                      capitalize(singularize(name))
    controller   controllers/UserController.js
    routes       routes/userRoutes.js      lower-cased singular
    mount        <api_prefix>/users        lower-cased table name

``build_endpoint_specs`` returns five CRUD descriptors per table plus
relationship descriptors; ``endpoints_to_json`` serializes them for the
optional ``endpoints.json`` manifest.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from schemaforge.analyzer import check_relation
from schemaforge.models import (
    NUMERIC_TYPES,
    Column,
    RelationKind,
    SchemaAnalysis,
    Table,
)
from schemaforge.utils import (
    SimpleSingularizer,
    Singularizer,
    capitalize_first,
    js_identifier,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.endpoints")

# ---------------------------------------------------------------------------
# Resource naming
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ResourceNames:
    """Every name derived from one table."""

    table: str
    model: str
    resource: str
    route_stem: str

    @property
    def controller(self) -> str:
        return f"{self.model}Controller"

    @property
    def model_path(self) -> str:
        return f"models/{self.model}.js"

    @property
    def controller_path(self) -> str:
        return f"controllers/{self.controller}.js"

    @property
    def routes_path(self) -> str:
        return f"routes/{self.route_stem}Routes.js"

    def mount_path(self, api_prefix: str) -> str:
        return f"{api_prefix}/{self.resource}"


def resource_names(table_name: str, singularizer: Optional[Singularizer] = None) -> ResourceNames:
    strategy: Singularizer = singularizer or SimpleSingularizer()
    singular: str = js_identifier(strategy.singularize(table_name))
    return ResourceNames(
        table=table_name,
        model=capitalize_first(singular),
        resource=table_name.lower(),
        route_stem=singular.lower(),
    )


# ---------------------------------------------------------------------------
# Relationship lookups
# ---------------------------------------------------------------------------

_LOOKUP_KINDS: Set[str] = {RelationKind.ONE_TO_MANY.value, RelationKind.MANY_TO_ONE.value}


@dataclass(frozen=True, slots=True)
class RelationLookup:
    """``GET /:id/<source table>`` on a referenced table."""

    source: ResourceNames
    source_column: str
    handler: str

    @property
    def segment(self) -> str:
        return self.source.resource


def relation_lookups(
    analysis: SchemaAnalysis,
    table_name: str,
    singularizer: Optional[Singularizer] = None,
) -> List[RelationLookup]:
    """
    Lookups served by *table_name*: one per resolvable one-to-many or
    many-to-one relation targeting it.  The first relation per source
    table wins; later ones would clash on the same path.
    """
    owner: ResourceNames = resource_names(table_name, singularizer)
    lookups: List[RelationLookup] = []
    used: Set[str] = set()

    for relation in analysis.relations:
        if relation.target_table != table_name or relation.kind not in _LOOKUP_KINDS:
            continue
        if check_relation(relation, analysis) is not None:
            continue
        source: ResourceNames = resource_names(relation.source_table, singularizer)
        if source.resource in used:
            logger.debug(
                "Skipping second lookup %s → %s via '%s'.",
                table_name, relation.source_table, relation.source_column,
            )
            continue
        used.add(source.resource)
        handler: str = (
            f"get{capitalize_first(js_identifier(relation.source_table))}For{owner.model}"
        )
        lookups.append(
            RelationLookup(source=source, source_column=relation.source_column, handler=handler)
        )

    return lookups


# ---------------------------------------------------------------------------
# Descriptor models
# ---------------------------------------------------------------------------

_SPEC_CONFIG: ConfigDict = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class ParameterSpec(BaseModel):
    model_config = _SPEC_CONFIG

    name: str
    type: str = "string"
    required: bool = False
    description: str = ""


class RequestBodySpec(BaseModel):
    model_config = _SPEC_CONFIG

    properties: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)


class EndpointSpec(BaseModel):
    """One HTTP endpoint of the generated project."""

    model_config = _SPEC_CONFIG

    method: str
    path: str
    description: str
    path_params: List[ParameterSpec] = Field(default_factory=list)
    query_params: List[ParameterSpec] = Field(default_factory=list)
    request_body: Optional[RequestBodySpec] = None
    responses: Dict[str, str] = Field(default_factory=dict)


class TableEndpoints(BaseModel):
    model_config = _SPEC_CONFIG

    table: str
    model: str
    base_path: str
    endpoints: List[EndpointSpec] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# JSON typing of request bodies
# ---------------------------------------------------------------------------


def json_type(column: Column) -> str:
    """JSON type of *column* in a request body."""
    generator = column.active_generator
    if generator is not None:
        if generator.category in ("number", "datatype"):
            return "number"
        if generator.category == "boolean":
            return "boolean"
        if generator.category == "date":
            return "string"
    if column.canonical_type in NUMERIC_TYPES:
        return "number"
    if column.canonical_type == "boolean":
        return "boolean"
    if column.canonical_type == "array":
        return "array"
    if column.canonical_type in ("object", "json"):
        return "object"
    return "string"


def request_body(table: Table) -> RequestBodySpec:
    """Body schema: every non-primary column, required when not nullable."""
    return RequestBodySpec(
        properties={c.name: {"type": json_type(c)} for c in table.data_columns},
        required=[c.name for c in table.data_columns if not c.is_nullable],
    )


# ---------------------------------------------------------------------------
# Catalogue builder
# ---------------------------------------------------------------------------


def _id_param(singular: str) -> ParameterSpec:
    return ParameterSpec(
        name="id", type="string", required=True, description=f"ID of the {singular}"
    )


def _crud_endpoints(table: Table, names: ResourceNames, base: str) -> List[EndpointSpec]:
    singular: str = names.route_stem
    body: RequestBodySpec = request_body(table)

    query: List[ParameterSpec] = [
        ParameterSpec(name="page", type="number", description="Page number for pagination"),
        ParameterSpec(name="limit", type="number", description="Number of records per page"),
    ]
    query.extend(
        ParameterSpec(name=f"filter[{c.name}]", description=f"Filter by {c.name}")
        for c in table.columns
    )
    query.append(
        ParameterSpec(
            name="sort",
            description="Sort field; prefix with '-' for descending order",
        )
    )

    return [
        EndpointSpec(
            method="GET",
            path=base,
            description=f"Get all {names.resource}",
            query_params=query,
            responses={"200": f"List of {names.resource}", "500": "Server error"},
        ),
        EndpointSpec(
            method="GET",
            path=f"{base}/:id",
            description=f"Get a {singular} by ID",
            path_params=[_id_param(singular)],
            responses={
                "200": f"The {singular}",
                "404": f"{names.model} not found",
                "500": "Server error",
            },
        ),
        EndpointSpec(
            method="POST",
            path=base,
            description=f"Create a new {singular}",
            request_body=body,
            responses={
                "201": f"{names.model} created successfully",
                "400": "Validation error",
                "500": "Server error",
            },
        ),
        EndpointSpec(
            method="PUT",
            path=f"{base}/:id",
            description=f"Update a {singular}",
            path_params=[_id_param(singular)],
            request_body=RequestBodySpec(properties=body.properties, required=[]),
            responses={
                "200": f"{names.model} updated successfully",
                "400": "Validation error",
                "404": f"{names.model} not found",
                "500": "Server error",
            },
        ),
        EndpointSpec(
            method="DELETE",
            path=f"{base}/:id",
            description=f"Delete a {singular}",
            path_params=[_id_param(singular)],
            responses={
                "200": f"{names.model} deleted successfully",
                "404": f"{names.model} not found",
                "500": "Server error",
            },
        ),
    ]


def _relationship_endpoints(
    analysis: SchemaAnalysis,
    table: Table,
    names: ResourceNames,
    base: str,
    singularizer: Optional[Singularizer],
) -> List[EndpointSpec]:
    singular: str = names.route_stem
    result: List[EndpointSpec] = []

    for lookup in relation_lookups(analysis, table.name, singularizer):
        result.append(
            EndpointSpec(
                method="GET",
                path=f"{base}/:id/{lookup.segment}",
                description=f"Get {lookup.source.resource} related to this {singular}",
                path_params=[_id_param(singular)],
                responses={
                    "200": f"Related {lookup.source.resource}",
                    "404": f"{names.model} not found",
                    "500": "Server error",
                },
            )
        )

    for relation in analysis.relations:
        if relation.kind != RelationKind.MANY_TO_MANY.value or relation.source_table != table.name:
            continue
        related: ResourceNames = resource_names(relation.target_table, singularizer)
        path: str = f"{base}/:id/{related.resource}/:relatedId"
        params: List[ParameterSpec] = [
            _id_param(singular),
            ParameterSpec(
                name="relatedId",
                type="string",
                required=True,
                description=f"ID of the {related.route_stem}",
            ),
        ]
        result.append(
            EndpointSpec(
                method="POST",
                path=path,
                description=f"Associate a {related.route_stem} with this {singular}",
                path_params=params,
                responses={
                    "200": "Association created successfully",
                    "404": "Resource not found",
                    "500": "Server error",
                },
            )
        )
        result.append(
            EndpointSpec(
                method="DELETE",
                path=path,
                description=f"Remove association between a {related.route_stem} and this {singular}",
                path_params=params,
                responses={
                    "200": "Association removed successfully",
                    "404": "Resource not found",
                    "500": "Server error",
                },
            )
        )

    return result


def build_endpoint_specs(
    analysis: SchemaAnalysis,
    api_prefix: str = "/api",
    singularizer: Optional[Singularizer] = None,
) -> List[TableEndpoints]:
    """Endpoint descriptors for every table, in table order."""
    prefix: str = api_prefix.rstrip("/")
    catalogue: List[TableEndpoints] = []

    for table in analysis.tables:
        names: ResourceNames = resource_names(table.name, singularizer)
        base: str = names.mount_path(prefix)
        endpoints: List[EndpointSpec] = _crud_endpoints(table, names, base)
        endpoints.extend(
            _relationship_endpoints(analysis, table, names, base, singularizer)
        )
        catalogue.append(
            TableEndpoints(table=table.name, model=names.model, base_path=base, endpoints=endpoints)
        )

    logger.debug(
        "Endpoint catalogue built: %d endpoint(s) over %d table(s).",
        sum(len(t.endpoints) for t in catalogue),
        len(catalogue),
    )
    return catalogue


def endpoints_to_json(catalogue: List[TableEndpoints], indent: int = 2) -> str:
    payload: List[Dict[str, object]] = [
        t.model_dump(mode="json", exclude_none=True) for t in catalogue
    ]
    return json.dumps(payload, indent=indent) + "\n"


__all__: List[str] = [
    "ResourceNames",
    "resource_names",
    "RelationLookup",
    "relation_lookups",
    "ParameterSpec",
    "RequestBodySpec",
    "EndpointSpec",
    "TableEndpoints",
    "json_type",
    "request_body",
    "build_endpoint_specs",
    "endpoints_to_json",
]

logger.debug("schemaforge.endpoints loaded — %d public symbols.", len(__all__))
