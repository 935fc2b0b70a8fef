# File: schemaforge/templates.py
"""
SchemaForge - Code Template Engine
==================================
Turns a ``SchemaAnalysis`` into the source files of an Express + Mongoose
REST API:

    1. Mongoose models          models/<Model>.js
    2. Express controllers      controllers/<Model>Controller.js
    3. Express routers          routes/<model>Routes.js
    4. Application entry point  server.js
    5. Optional boilerplate     package.json, README.md, .env, .gitignore,
                                endpoints.json

Every artifact is a *named template* plus a *context*:

    build_*_context(...)  ──▶  ModelContext / ControllerContext / ...
    render_template(name, context, indent)  ──▶  str

Contexts are plain frozen dataclasses, so tests can assert on field flags
and validation rules without parsing JavaScript.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - Template functions are stateless.  Same analysis in, same bytes out.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from schemaforge.analyzer import check_relation
from schemaforge.endpoints import (
    RelationLookup,
    ResourceNames,
    build_endpoint_specs,
    endpoints_to_json,
    relation_lookups,
    resource_names,
)
from schemaforge.errors import SchemaForgeError
from schemaforge.models import (
    NUMERIC_TYPES,
    TEMPORAL_TYPES,
    CanonicalType,
    Column,
    ProjectConfig,
    Relation,
    SchemaAnalysis,
    Table,
)
from schemaforge.utils import SimpleSingularizer, Singularizer, count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

GeneratedFileSet = Dict[str, str]

# Canonical type → Mongoose SchemaType
_MONGOOSE_TYPE_MAP: Dict[str, str] = {
    CanonicalType.STRING.value: "String",
    CanonicalType.TEXT.value: "String",
    CanonicalType.NUMBER.value: "Number",
    CanonicalType.INTEGER.value: "Number",
    CanonicalType.FLOAT.value: "Number",
    CanonicalType.DOUBLE.value: "Number",
    CanonicalType.DECIMAL.value: "mongoose.Schema.Types.Decimal128",
    CanonicalType.BOOLEAN.value: "Boolean",
    CanonicalType.DATE.value: "Date",
    CanonicalType.TIME.value: "Date",
    CanonicalType.DATETIME.value: "Date",
    CanonicalType.TIMESTAMP.value: "Date",
    CanonicalType.JSON.value: "mongoose.Schema.Types.Mixed",
    CanonicalType.OBJECT.value: "mongoose.Schema.Types.Mixed",
    CanonicalType.ARRAY.value: "Array",
    CanonicalType.BINARY.value: "Buffer",
    CanonicalType.BLOB.value: "Buffer",
    CanonicalType.UUID.value: "String",
    CanonicalType.OBJECTID.value: "mongoose.Schema.Types.ObjectId",
}

_REF_TYPE: str = "Schema.Types.ObjectId"
_CONVENTIONAL_IDS: Tuple[str, ...] = ("id", "_id")
_TIMESTAMP_FIELDS: Tuple[str, ...] = ("createdAt", "updatedAt")
_NOW_TOKENS: Tuple[str, ...] = ("now", "now()", "current_timestamp", "current_timestamp()")

_JS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_PACKAGE_DEPENDENCIES: Dict[str, str] = {
    "cors": "^2.8.5",
    "dotenv": "^16.3.1",
    "express": "^4.18.2",
    "express-validator": "^7.0.1",
    "mongoose": "^8.0.0",
}
_PACKAGE_DEV_DEPENDENCIES: Dict[str, str] = {"nodemon": "^3.0.1"}

_GITIGNORE_LINES: Tuple[str, ...] = (
    "# Dependencies",
    "node_modules/",
    "",
    "# Environment",
    ".env",
    ".env.local",
    "",
    "# Logs",
    "logs/",
    "*.log",
    "npm-debug.log*",
    "",
    "# OS / IDE",
    ".DS_Store",
    "Thumbs.db",
    ".idea/",
    ".vscode/",
)


# ---------------------------------------------------------------------------
# JavaScript literal helpers
# ---------------------------------------------------------------------------


def js_string(value: str) -> str:
    """Single-quoted JavaScript string literal."""
    escaped: str = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def js_key(name: str) -> str:
    """Object key: bare when it is an identifier, quoted otherwise."""
    return name if _JS_IDENTIFIER_RE.match(name) else js_string(name)


def js_member(obj: str, name: str) -> str:
    """``obj.name`` or ``obj['na-me']``."""
    return f"{obj}.{name}" if _JS_IDENTIFIER_RE.match(name) else f"{obj}[{js_string(name)}]"


def format_default(value: Any, canonical_type: str) -> Optional[str]:
    """
    Render a column default as a JavaScript expression, or None for no
    default.  Temporal ``now`` tokens become ``Date.now``.
    """
    if value is None:
        return None
    if canonical_type in TEMPORAL_TYPES and isinstance(value, str):
        if value.strip().lower() in _NOW_TOKENS:
            return "Date.now"
        return f"new Date({js_string(value)})"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=False)
    return js_string(str(value))


# ---------------------------------------------------------------------------
# Template contexts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """One field block of a Mongoose schema."""

    name: str
    js_type: str
    required: bool = False
    unique: bool = False
    ref: Optional[str] = None
    default: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ModelContext:
    model_name: str
    table_name: str
    fields: Tuple[FieldSpec, ...]
    index_columns: Tuple[str, ...] = ()

    def get_field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None


@dataclass(frozen=True, slots=True)
class ValidationRule:
    """
    One ``check(...)`` chain entry.  ``method`` is the express-validator
    call: ``isEmpty`` means ``.not().isEmpty()``.
    """

    column: str
    method: str
    message: str
    optional: bool = False


@dataclass(frozen=True, slots=True)
class ControllerContext:
    names: ResourceNames
    api_prefix: str
    body_columns: Tuple[str, ...]
    default_page_size: int
    lookups: Tuple[RelationLookup, ...] = ()


@dataclass(frozen=True, slots=True)
class RouteContext:
    names: ResourceNames
    api_prefix: str
    create_rules: Tuple[ValidationRule, ...]
    update_rules: Tuple[ValidationRule, ...]
    lookups: Tuple[RelationLookup, ...] = ()


@dataclass(frozen=True, slots=True)
class ServerContext:
    mounts: Tuple[Tuple[str, str], ...]
    port: int


@dataclass(frozen=True, slots=True)
class ReadmeContext:
    config: ProjectConfig
    resources: Tuple[ResourceNames, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Named templates
# ---------------------------------------------------------------------------

Renderer = Callable[[Any, str], List[str]]
_TEMPLATES: Dict[str, Renderer] = {}


def template(name: str) -> Callable[[Renderer], Renderer]:
    """Register a renderer under *name*."""

    def decorator(fn: Renderer) -> Renderer:
        _TEMPLATES[name] = fn
        return fn

    return decorator


def template_names() -> List[str]:
    return sorted(_TEMPLATES)


def render_template(name: str, context: Any, indent: str = "  ") -> str:
    """
    Render template *name* with *context*.  Output always ends with a
    single newline.

    Raises:
        KeyError: for an unregistered template name.
    """
    try:
        renderer: Renderer = _TEMPLATES[name]
    except KeyError:
        raise KeyError(
            f"Unknown template '{name}'. Available: {', '.join(template_names())}"
        ) from None
    lines: List[str] = renderer(context, indent)
    return "\n".join(lines).rstrip("\n") + "\n"


def _error_block(i: str, what: str) -> List[str]:
    return [
        f"{i}}} catch (error) {{",
        f"{i * 2}console.error({js_string(f'Error {what}:')}, error);",
        f"{i * 2}res.status(500).json({{ message: 'Server error' }});",
        f"{i}}}",
    ]


def _validation_guard(i: str) -> List[str]:
    return [
        f"{i * 2}const errors = validationResult(req);",
        f"{i * 2}if (!errors.isEmpty()) {{",
        f"{i * 3}return res.status(400).json({{ errors: errors.array() }});",
        f"{i * 2}}}",
        "",
    ]


def _not_found_guard(i: str, model: str) -> List[str]:
    return [
        f"{i * 2}if (!record) {{",
        f"{i * 3}return res.status(404).json({{ message: {js_string(f'{model} not found')} }});",
        f"{i * 2}}}",
    ]


@template("model")
def _render_model(ctx: ModelContext, i: str) -> List[str]:
    schema_var: str = f"{ctx.model_name}Schema"
    lines: List[str] = [
        "const mongoose = require('mongoose');",
        "const Schema = mongoose.Schema;",
        "",
        f"const {schema_var} = new Schema({{",
    ]

    for spec in ctx.fields:
        lines.append(f"{i}{js_key(spec.name)}: {{")
        lines.append(f"{i * 2}type: {spec.js_type},")
        if spec.ref is not None:
            lines.append(f"{i * 2}ref: {js_string(spec.ref)},")
        if spec.required:
            lines.append(f"{i * 2}required: true,")
        if spec.unique:
            lines.append(f"{i * 2}unique: true,")
        if spec.default is not None:
            lines.append(f"{i * 2}default: {spec.default},")
        closer: str = f"{i}}},"
        if spec.description:
            closer += f" // {' '.join(spec.description.split())}"
        lines.append(closer)

    lines.append("});")
    lines.append("")

    for column in ctx.index_columns:
        lines.append(f"{schema_var}.index({{ {js_key(column)}: 1 }});")
    if ctx.index_columns:
        lines.append("")

    lines.extend([
        f"{schema_var}.pre('save', function (next) {{",
        f"{i}this.updatedAt = Date.now();",
        f"{i}next();",
        "});",
        "",
        f"module.exports = mongoose.model({js_string(ctx.model_name)}, {schema_var});",
    ])
    return lines


@template("controller")
def _render_controller(ctx: ControllerContext, i: str) -> List[str]:
    model: str = ctx.names.model
    base: str = ctx.names.mount_path(ctx.api_prefix)
    lines: List[str] = [f"const {model} = require('../models/{model}');"]
    for lookup in ctx.lookups:
        if lookup.source.model != model:
            lines.append(
                f"const {lookup.source.model} = require('../models/{lookup.source.model}');"
            )
    lines.extend(["const { validationResult } = require('express-validator');", ""])

    # List
    lines.extend([
        "/**",
        f" * Get all {ctx.names.resource}",
        f" * @route GET {base}",
        " */",
        f"const getAll{model}s = async (req, res) => {{",
        f"{i}try {{",
        f"{i * 2}const page = parseInt(req.query.page, 10) || 1;",
        f"{i * 2}const limit = parseInt(req.query.limit, 10) || {ctx.default_page_size};",
        f"{i * 2}const skip = (page - 1) * limit;",
        "",
        f"{i * 2}const filter = {{}};",
        f"{i * 2}if (req.query.filter) {{",
        f"{i * 3}Object.keys(req.query.filter).forEach((key) => {{",
        f"{i * 4}filter[key] = req.query.filter[key];",
        f"{i * 3}}});",
        f"{i * 2}}}",
        "",
        f"{i * 2}let sort = {{ createdAt: -1 }};",
        f"{i * 2}if (req.query.sort) {{",
        f"{i * 3}const descending = req.query.sort.startsWith('-');",
        f"{i * 3}const sortField = descending ? req.query.sort.substring(1) : req.query.sort;",
        f"{i * 3}sort = {{ [sortField]: descending ? -1 : 1 }};",
        f"{i * 2}}}",
        "",
        f"{i * 2}const total = await {model}.countDocuments(filter);",
        f"{i * 2}const data = await {model}.find(filter).sort(sort).skip(skip).limit(limit);",
        "",
        f"{i * 2}res.json({{",
        f"{i * 3}data,",
        f"{i * 3}pagination: {{",
        f"{i * 4}total,",
        f"{i * 4}page,",
        f"{i * 4}limit,",
        f"{i * 4}pages: Math.ceil(total / limit),",
        f"{i * 3}}},",
        f"{i * 2}}});",
    ])
    lines.extend(_error_block(i, f"fetching {ctx.names.resource}"))
    lines.extend(["};", ""])

    # Get by id
    lines.extend([
        "/**",
        f" * Get a single {ctx.names.route_stem} by ID",
        f" * @route GET {base}/:id",
        " */",
        f"const get{model}ById = async (req, res) => {{",
        f"{i}try {{",
        f"{i * 2}const record = await {model}.findById(req.params.id);",
    ])
    lines.extend(_not_found_guard(i, model))
    lines.append(f"{i * 2}res.json(record);")
    lines.extend(_error_block(i, f"fetching {ctx.names.route_stem}"))
    lines.extend(["};", ""])

    # Create
    lines.extend([
        "/**",
        f" * Create a new {ctx.names.route_stem}",
        f" * @route POST {base}",
        " */",
        f"const create{model} = async (req, res) => {{",
        f"{i}try {{",
    ])
    lines.extend(_validation_guard(i))
    lines.append(f"{i * 2}const record = new {model}({{")
    for column in ctx.body_columns:
        lines.append(f"{i * 3}{js_key(column)}: {js_member('req.body', column)},")
    lines.extend([
        f"{i * 2}}});",
        "",
        f"{i * 2}const saved = await record.save();",
        f"{i * 2}res.status(201).json({{",
        f"{i * 3}message: {js_string(f'{model} created successfully')},",
        f"{i * 3}data: saved,",
        f"{i * 2}}});",
    ])
    lines.extend(_error_block(i, f"creating {ctx.names.route_stem}"))
    lines.extend(["};", ""])

    # Update
    lines.extend([
        "/**",
        f" * Update a {ctx.names.route_stem}",
        f" * @route PUT {base}/:id",
        " */",
        f"const update{model} = async (req, res) => {{",
        f"{i}try {{",
    ])
    lines.extend(_validation_guard(i))
    lines.append(f"{i * 2}const record = await {model}.findById(req.params.id);")
    lines.extend(_not_found_guard(i, model))
    lines.extend(["", f"{i * 2}const updateFields = {{}};"])
    for column in ctx.body_columns:
        member: str = js_member("req.body", column)
        lines.append(f"{i * 2}if ({member} !== undefined) {js_member('updateFields', column)} = {member};")
    lines.extend([
        "",
        f"{i * 2}const updated = await {model}.findByIdAndUpdate(",
        f"{i * 3}req.params.id,",
        f"{i * 3}{{ $set: updateFields }},",
        f"{i * 3}{{ new: true }},",
        f"{i * 2});",
        f"{i * 2}res.json({{",
        f"{i * 3}message: {js_string(f'{model} updated successfully')},",
        f"{i * 3}data: updated,",
        f"{i * 2}}});",
    ])
    lines.extend(_error_block(i, f"updating {ctx.names.route_stem}"))
    lines.extend(["};", ""])

    # Delete
    lines.extend([
        "/**",
        f" * Delete a {ctx.names.route_stem}",
        f" * @route DELETE {base}/:id",
        " */",
        f"const delete{model} = async (req, res) => {{",
        f"{i}try {{",
        f"{i * 2}const record = await {model}.findById(req.params.id);",
    ])
    lines.extend(_not_found_guard(i, model))
    lines.extend([
        "",
        f"{i * 2}await {model}.deleteOne({{ _id: req.params.id }});",
        f"{i * 2}res.json({{ message: {js_string(f'{model} deleted successfully')} }});",
    ])
    lines.extend(_error_block(i, f"deleting {ctx.names.route_stem}"))
    lines.extend(["};", ""])

    # Relationship lookups
    for lookup in ctx.lookups:
        related: str = lookup.source.model
        lines.extend([
            "/**",
            f" * Get {lookup.source.resource} related to a {ctx.names.route_stem}",
            f" * @route GET {base}/:id/{lookup.segment}",
            " */",
            f"const {lookup.handler} = async (req, res) => {{",
            f"{i}try {{",
            f"{i * 2}const record = await {model}.findById(req.params.id);",
        ])
        lines.extend(_not_found_guard(i, model))
        lines.extend([
            "",
            f"{i * 2}const related = await {related}.find({{ {js_key(lookup.source_column)}: req.params.id }});",
            f"{i * 2}res.json(related);",
        ])
        lines.extend(_error_block(i, f"fetching related {lookup.source.resource}"))
        lines.extend(["};", ""])

    exports: List[str] = [
        f"getAll{model}s",
        f"get{model}ById",
        f"create{model}",
        f"update{model}",
        f"delete{model}",
    ]
    exports.extend(lookup.handler for lookup in ctx.lookups)
    lines.append("module.exports = {")
    lines.extend(f"{i}{name}," for name in exports)
    lines.append("};")
    return lines


def _render_rule(rule: ValidationRule) -> str:
    chain: str = f"check({js_string(rule.column)}, {js_string(rule.message)})"
    if rule.optional:
        chain += ".optional()"
    if rule.method == "isEmpty":
        chain += ".not().isEmpty()"
    else:
        chain += f".{rule.method}()"
    return chain


@template("routes")
def _render_routes(ctx: RouteContext, i: str) -> List[str]:
    names: ResourceNames = ctx.names
    controller: str = names.controller
    base: str = names.mount_path(ctx.api_prefix)
    create_var: str = f"create{names.model}Validation"
    update_var: str = f"update{names.model}Validation"

    lines: List[str] = [
        "const express = require('express');",
        "const { check } = require('express-validator');",
        f"const {controller} = require('../controllers/{controller}');",
        "",
        "const router = express.Router();",
        "",
        f"// Validation for creating {names.resource}",
        f"const {create_var} = [",
    ]
    lines.extend(f"{i}{_render_rule(rule)}," for rule in ctx.create_rules)
    lines.extend([
        "];",
        "",
        f"// Validation for updating {names.resource} (every field optional)",
        f"const {update_var} = [",
    ])
    lines.extend(f"{i}{_render_rule(rule)}," for rule in ctx.update_rules)
    lines.extend(["];", ""])

    def doc(method: str, path: str, desc: str) -> List[str]:
        return [
            "/**",
            f" * @route   {method} {path}",
            f" * @desc    {desc}",
            " */",
        ]

    lines.extend(doc("GET", base, f"Get all {names.resource}"))
    lines.extend([f"router.get('/', {controller}.getAll{names.model}s);", ""])
    lines.extend(doc("GET", f"{base}/:id", f"Get a single {names.route_stem} by ID"))
    lines.extend([f"router.get('/:id', {controller}.get{names.model}ById);", ""])
    lines.extend(doc("POST", base, f"Create a new {names.route_stem}"))
    lines.extend([f"router.post('/', {create_var}, {controller}.create{names.model});", ""])
    lines.extend(doc("PUT", f"{base}/:id", f"Update a {names.route_stem}"))
    lines.extend([f"router.put('/:id', {update_var}, {controller}.update{names.model});", ""])
    lines.extend(doc("DELETE", f"{base}/:id", f"Delete a {names.route_stem}"))
    lines.extend([f"router.delete('/:id', {controller}.delete{names.model});", ""])

    for lookup in ctx.lookups:
        lines.extend(doc(
            "GET",
            f"{base}/:id/{lookup.segment}",
            f"Get {lookup.source.resource} related to a {names.route_stem}",
        ))
        lines.extend([
            f"router.get({js_string(f'/:id/{lookup.segment}')}, {controller}.{lookup.handler});",
            "",
        ])

    lines.append("module.exports = router;")
    return lines


@template("server")
def _render_server(ctx: ServerContext, i: str) -> List[str]:
    lines: List[str] = [
        "const express = require('express');",
        "const mongoose = require('mongoose');",
        "const cors = require('cors');",
        "require('dotenv').config();",
        "",
        "const app = express();",
        "",
        "app.use(express.json());",
        "app.use(cors());",
        "",
        "// Routes",
    ]
    if ctx.mounts:
        lines.extend(
            f"app.use({js_string(path)}, require({js_string(module)}));"
            for path, module in ctx.mounts
        )
    else:
        lines.append("// No resources defined yet")
    lines.extend([
        "",
        "mongoose",
        f"{i}.connect(process.env.MONGODB_URI)",
        f"{i}.then(() => console.log('MongoDB connected'))",
        f"{i}.catch((err) => console.error('MongoDB connection error:', err));",
        "",
        f"const PORT = process.env.PORT || {ctx.port};",
        "app.listen(PORT, () => console.log(`Server running on port ${PORT}`));",
    ])
    return lines


@template("package.json")
def _render_package_json(ctx: ProjectConfig, i: str) -> List[str]:
    payload: Dict[str, Any] = {
        "name": ctx.project_name,
        "version": ctx.project_version,
        "description": ctx.description,
        "main": "server.js",
        "scripts": {
            "start": "node server.js",
            "dev": "nodemon server.js",
        },
        "dependencies": dict(_PACKAGE_DEPENDENCIES),
        "devDependencies": dict(_PACKAGE_DEV_DEPENDENCIES),
    }
    return json.dumps(payload, indent=len(i)).split("\n")


@template("readme")
def _render_readme(ctx: ReadmeContext, i: str) -> List[str]:
    cfg: ProjectConfig = ctx.config
    lines: List[str] = [
        f"# {cfg.project_name}",
        "",
        cfg.description,
        "",
        "## Getting started",
        "",
        "```bash",
        "npm install",
        "# set MONGODB_URI in .env first",
        "npm run dev",
        "```",
        "",
        f"The server listens on port {cfg.port} unless `PORT` is set.",
        "",
        "## Resources",
        "",
    ]
    if not ctx.resources:
        lines.append("No resources defined.")
    for names in ctx.resources:
        base: str = names.mount_path(cfg.api_prefix)
        lines.extend([
            f"### {names.model}",
            "",
            f"- `GET {base}` list (`page`, `limit`, `filter[field]`, `sort`)",
            f"- `GET {base}/:id` fetch one",
            f"- `POST {base}` create",
            f"- `PUT {base}/:id` update",
            f"- `DELETE {base}/:id` delete",
            "",
        ])
    return lines


@template("env")
def _render_env(ctx: ProjectConfig, i: str) -> List[str]:
    return [
        f"MONGODB_URI={ctx.mongodb_uri}",
        f"PORT={ctx.port}",
        "NODE_ENV=development",
    ]


@template("gitignore")
def _render_gitignore(ctx: Any, i: str) -> List[str]:
    return list(_GITIGNORE_LINES)


# ---------------------------------------------------------------------------
# Validation-rule derivation
# ---------------------------------------------------------------------------

_NUMERIC_GENERATOR_EXCLUDES: Tuple[str, ...] = (
    "boolean", "uuid", "datetime", "string", "json", "array",
)
_TEMPORAL_CHECK_TYPES: Tuple[str, ...] = (
    CanonicalType.DATE.value,
    CanonicalType.DATETIME.value,
    CanonicalType.TIMESTAMP.value,
)


def format_check(column: Column) -> Optional[Tuple[str, str]]:
    """
    ``(method, message)`` of the format check hinted by the column's
    generator, else by its canonical type.  None when there is none.
    """
    name: str = column.name
    generator = column.active_generator
    if generator is not None:
        category: str = generator.category.lower()
        subtype: str = generator.subtype.lower()
        if category == "internet" and subtype == "email":
            return "isEmail", "Please include a valid email"
        if category == "internet" and subtype == "url":
            return "isURL", "Please include a valid URL"
        if category in ("number", "datatype") and subtype not in _NUMERIC_GENERATOR_EXCLUDES:
            return "isNumeric", f"{name} must be a number"
        if category == "date" and subtype not in ("month", "weekday"):
            return "isISO8601", "Please include a valid date"
        if category == "boolean" or (category == "datatype" and subtype == "boolean"):
            return "isBoolean", f"{name} must be a boolean"

    if column.canonical_type in NUMERIC_TYPES:
        return "isNumeric", f"{name} must be a number"
    if column.canonical_type in _TEMPORAL_CHECK_TYPES:
        return "isISO8601", "Please include a valid date"
    if column.canonical_type == CanonicalType.BOOLEAN.value:
        return "isBoolean", f"{name} must be a boolean"
    return None


def validation_rules(table: Table, *, for_update: bool = False) -> List[ValidationRule]:
    """
    Request-body checks for *table*.  Primary columns are never checked.
    The update chain makes every rule optional.
    """
    rules: List[ValidationRule] = []
    for column in table.data_columns:
        if not column.is_nullable:
            message: str = (
                f"{column.name} cannot be empty" if for_update else f"{column.name} is required"
            )
            rules.append(ValidationRule(column.name, "isEmpty", message, optional=for_update))
        check: Optional[Tuple[str, str]] = format_check(column)
        if check is not None:
            rules.append(ValidationRule(column.name, check[0], check[1], optional=True))
    return rules


# ---------------------------------------------------------------------------
# Template generator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Builds template contexts and renders them.

    Holds only configuration; safe to share.  Dangling relation references
    are skipped when building reference markers and collected by
    ``find_dropped_references`` in ``schemaforge.analyzer``.
    """

    def __init__(
        self,
        config: Optional[ProjectConfig] = None,
        singularizer: Optional[Singularizer] = None,
    ) -> None:
        self._config: ProjectConfig = config or ProjectConfig()
        self._singularizer: Singularizer = singularizer or SimpleSingularizer()
        self._indent: str = " " * self._config.indent_size
        logger.debug(
            "TemplateGenerator initialised (prefix=%s, singularizer=%r).",
            self._config.api_prefix,
            self._singularizer,
        )

    @property
    def config(self) -> ProjectConfig:
        return self._config

    def names_for(self, table_name: str) -> ResourceNames:
        return resource_names(table_name, self._singularizer)

    def _render(self, name: str, context: Any) -> str:
        return render_template(name, context, self._indent)

    # ===================================================================
    # 1. Mongoose model
    # ===================================================================

    def _reference_for(
        self,
        table: Table,
        column: Column,
        relations: Sequence[Relation],
    ) -> Optional[str]:
        for relation in relations:
            if relation.source_table == table.name and relation.source_column == column.name:
                return self.names_for(relation.target_table).model
            if relation.target_table == table.name and relation.target_column == column.name:
                return self.names_for(relation.source_table).model
        return None

    def _usable_relations(
        self,
        table: Table,
        relations: Sequence[Relation],
        analysis: Optional[SchemaAnalysis],
    ) -> List[Relation]:
        usable: List[Relation] = []
        for relation in relations:
            if not relation.involves(table.name):
                continue
            if analysis is not None:
                reason: Optional[str] = check_relation(relation, analysis)
                if reason is not None:
                    logger.warning("Skipping reference %r: %s", relation, reason)
                    continue
            usable.append(relation)
        return usable

    def build_model_context(
        self,
        table: Table,
        relations: Sequence[Relation] = (),
        analysis: Optional[SchemaAnalysis] = None,
    ) -> ModelContext:
        """
        Field blocks for *table*.  With *analysis* given, relations whose
        tables or columns do not resolve are skipped.
        """
        usable: List[Relation] = self._usable_relations(table, relations, analysis)
        fields: List[FieldSpec] = []
        declared: Set[str] = set()

        for column in table.columns:
            if column.name in declared:
                continue
            declared.add(column.name)
            ref: Optional[str] = self._reference_for(table, column, usable)
            js_type: str = _REF_TYPE if ref else _MONGOOSE_TYPE_MAP.get(column.canonical_type, "String")
            unique: bool = column.is_unique or (
                column.is_primary and column.name not in _CONVENTIONAL_IDS
            )
            fields.append(
                FieldSpec(
                    name=column.name,
                    js_type=js_type,
                    required=not column.is_nullable,
                    unique=unique,
                    ref=ref,
                    default=format_default(column.default_value, column.canonical_type),
                    description=column.description,
                )
            )

        for stamp in _TIMESTAMP_FIELDS:
            if stamp not in declared:
                fields.append(FieldSpec(name=stamp, js_type="Date", default="Date.now"))

        index_columns: List[str] = []
        for relation in usable:
            for owner, column_name in (
                (relation.source_table, relation.source_column),
                (relation.target_table, relation.target_column),
            ):
                if owner == table.name and column_name not in index_columns and table.has_column(column_name):
                    index_columns.append(column_name)

        return ModelContext(
            model_name=self.names_for(table.name).model,
            table_name=table.name,
            fields=tuple(fields),
            index_columns=tuple(index_columns),
        )

    def emit_model(
        self,
        table: Table,
        relations: Sequence[Relation] = (),
        analysis: Optional[SchemaAnalysis] = None,
    ) -> str:
        return self._render("model", self.build_model_context(table, relations, analysis))

    def emit_model_by_name(self, analysis: SchemaAnalysis, table_name: str) -> str:
        """Preview one model; raises ``TableNotFoundError``."""
        table: Table = analysis.require_table(table_name)
        return self.emit_model(table, analysis.relations_for(table_name), analysis)

    # ===================================================================
    # 2. Controller
    # ===================================================================

    def build_controller_context(
        self, table: Table, analysis: Optional[SchemaAnalysis] = None
    ) -> ControllerContext:
        lookups: Tuple[RelationLookup, ...] = ()
        if analysis is not None:
            lookups = tuple(relation_lookups(analysis, table.name, self._singularizer))
        return ControllerContext(
            names=self.names_for(table.name),
            api_prefix=self._config.api_prefix,
            body_columns=tuple(dict.fromkeys(c.name for c in table.data_columns)),
            default_page_size=self._config.default_page_size,
            lookups=lookups,
        )

    def emit_controller(self, table: Table, analysis: Optional[SchemaAnalysis] = None) -> str:
        return self._render("controller", self.build_controller_context(table, analysis))

    # ===================================================================
    # 3. Routes
    # ===================================================================

    def build_route_context(
        self, table: Table, analysis: Optional[SchemaAnalysis] = None
    ) -> RouteContext:
        lookups: Tuple[RelationLookup, ...] = ()
        if analysis is not None:
            lookups = tuple(relation_lookups(analysis, table.name, self._singularizer))
        return RouteContext(
            names=self.names_for(table.name),
            api_prefix=self._config.api_prefix,
            create_rules=tuple(validation_rules(table)),
            update_rules=tuple(validation_rules(table, for_update=True)),
            lookups=lookups,
        )

    def emit_routes(self, table: Table, analysis: Optional[SchemaAnalysis] = None) -> str:
        return self._render("routes", self.build_route_context(table, analysis))

    # ===================================================================
    # 4. Server & boilerplate
    # ===================================================================

    def build_server_context(self, analysis: SchemaAnalysis) -> ServerContext:
        mounts: List[Tuple[str, str]] = []
        for table in analysis.tables:
            names: ResourceNames = self.names_for(table.name)
            mounts.append((
                names.mount_path(self._config.api_prefix),
                f"./routes/{names.route_stem}Routes",
            ))
        return ServerContext(mounts=tuple(mounts), port=self._config.port)

    def emit_server(self, analysis: SchemaAnalysis) -> str:
        return self._render("server", self.build_server_context(analysis))

    def emit_package_json(self) -> str:
        return self._render("package.json", self._config)

    def emit_readme(self, analysis: SchemaAnalysis) -> str:
        resources: Tuple[ResourceNames, ...] = tuple(
            self.names_for(t.name) for t in analysis.tables
        )
        return self._render("readme", ReadmeContext(config=self._config, resources=resources))

    def emit_env(self) -> str:
        return self._render("env", self._config)

    def emit_gitignore(self) -> str:
        return self._render("gitignore", None)

    # ===================================================================
    # 5. Aggregate generation
    # ===================================================================

    def emit_table_files(self, table: Table, analysis: SchemaAnalysis) -> GeneratedFileSet:
        """Model, controller and routes for one table."""
        names: ResourceNames = self.names_for(table.name)
        files: GeneratedFileSet = {
            names.model_path: self.emit_model(table, analysis.relations_for(table.name), analysis),
            names.controller_path: self.emit_controller(table, analysis),
            names.routes_path: self.emit_routes(table, analysis),
        }
        for path, content in files.items():
            logger.debug("Generated %s (%d lines).", path, count_lines(content))
        return files

    def emit_project(self, analysis: SchemaAnalysis) -> GeneratedFileSet:
        """
        Every file of the project, keyed by relative path.

        All-or-nothing: any failure propagates and no partial set is
        returned.

        Raises:
            SchemaForgeError: when two tables would write the same file.
        """
        files: GeneratedFileSet = {}
        owners: Dict[str, str] = {}

        for table in analysis.tables:
            for path, content in self.emit_table_files(table, analysis).items():
                if path in owners:
                    raise SchemaForgeError(
                        f"Tables '{owners[path]}' and '{table.name}' both generate '{path}'."
                    )
                owners[path] = table.name
                files[path] = content

        files["server.js"] = self.emit_server(analysis)

        if self._config.include_boilerplate:
            files["package.json"] = self.emit_package_json()
            files["README.md"] = self.emit_readme(analysis)
            files[".env"] = self.emit_env()
            files[".gitignore"] = self.emit_gitignore()

        if self._config.include_endpoint_manifest:
            files["endpoints.json"] = endpoints_to_json(
                build_endpoint_specs(analysis, self._config.api_prefix, self._singularizer),
                indent=self._config.indent_size,
            )

        logger.info(
            "Project generation complete: %d files, ~%d lines.",
            len(files),
            sum(count_lines(c) for c in files.values()),
        )
        return files


# ---------------------------------------------------------------------------
# Module-level convenience functions
# ---------------------------------------------------------------------------


def emit_model(
    table: Table,
    relations: Sequence[Relation] = (),
    analysis: Optional[SchemaAnalysis] = None,
    config: Optional[ProjectConfig] = None,
) -> str:
    return TemplateGenerator(config).emit_model(table, relations, analysis)


def emit_controller(
    table: Table,
    analysis: Optional[SchemaAnalysis] = None,
    config: Optional[ProjectConfig] = None,
) -> str:
    return TemplateGenerator(config).emit_controller(table, analysis)


def emit_routes(
    table: Table,
    analysis: Optional[SchemaAnalysis] = None,
    config: Optional[ProjectConfig] = None,
) -> str:
    return TemplateGenerator(config).emit_routes(table, analysis)


def emit_project(
    analysis: SchemaAnalysis,
    config: Optional[ProjectConfig] = None,
    singularizer: Optional[Singularizer] = None,
) -> GeneratedFileSet:
    return TemplateGenerator(config, singularizer).emit_project(analysis)


__all__: List[str] = [
    "GeneratedFileSet",
    "FieldSpec",
    "ModelContext",
    "ValidationRule",
    "ControllerContext",
    "RouteContext",
    "ServerContext",
    "ReadmeContext",
    "js_string",
    "js_key",
    "js_member",
    "format_default",
    "format_check",
    "validation_rules",
    "template",
    "template_names",
    "render_template",
    "TemplateGenerator",
    "emit_model",
    "emit_controller",
    "emit_routes",
    "emit_project",
]

logger.debug("schemaforge.templates loaded — %d public symbols.", len(__all__))
