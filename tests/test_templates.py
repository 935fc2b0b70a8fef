"""
tests/test_templates.py
Unit tests for schemaforge.templates (TemplateGenerator).

Tests cover:
- Mongoose model generation (types, references, indexes, defaults)
- Controller generation (CRUD handlers, relationship lookups)
- Route generation (create/update validation chains)
- server.js and optional boilerplate files
- Full emit_project pipeline and determinism
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from schemaforge.analyzer import analyze_schema
from schemaforge.errors import SchemaForgeError, TableNotFoundError
from schemaforge.models import Column, GeneratorSpec, ProjectConfig, SchemaAnalysis, Table
from schemaforge.templates import (
    TemplateGenerator,
    ValidationRule,
    emit_controller,
    emit_model,
    emit_project,
    emit_routes,
    format_check,
    format_default,
    js_key,
    js_member,
    js_string,
    render_template,
    template_names,
    validation_rules,
)
from schemaforge.utils import EnglishSingularizer


# ===========================================================================
# Helpers
# ===========================================================================


def _lines(source: str) -> List[str]:
    return [line.strip() for line in source.splitlines()]


def _field_block(source: str, field_name: str) -> List[str]:
    """Stripped lines of one ``name: { ... }`` block of a model file."""
    lines = _lines(source)
    start = lines.index(f"{field_name}: {{")
    block: List[str] = []
    for line in lines[start + 1:]:
        if line.startswith("},"):
            break
        block.append(line)
    return block


@pytest.fixture()
def tg() -> TemplateGenerator:
    return TemplateGenerator()


# ===========================================================================
# JavaScript literal helpers
# ===========================================================================


class TestLiterals:

    def test_js_string_escapes(self) -> None:
        assert js_string("it's") == "'it\\'s'"
        assert js_string("a\\b") == "'a\\\\b'"
        assert js_string("line\nbreak") == "'line\\nbreak'"

    def test_js_key_and_member(self) -> None:
        assert js_key("firstName") == "firstName"
        assert js_key("first-name") == "'first-name'"
        assert js_member("req.body", "title") == "req.body.title"
        assert js_member("req.body", "first-name") == "req.body['first-name']"

    @pytest.mark.parametrize(
        "value, canonical, expected",
        [
            (None, "string", None),
            ("now", "datetime", "Date.now"),
            ("CURRENT_TIMESTAMP", "timestamp", "Date.now"),
            ("2024-01-01", "date", "new Date('2024-01-01')"),
            (True, "boolean", "true"),
            (False, "boolean", "false"),
            (5, "integer", "5"),
            (1.5, "float", "1.5"),
            ("draft", "string", "'draft'"),
            ([1, 2], "array", "[1, 2]"),
            ({"a": "b"}, "object", '{"a": "b"}'),
        ],
    )
    def test_format_default(self, value: Any, canonical: str, expected: Optional[str]) -> None:
        assert format_default(value, canonical) == expected


# ===========================================================================
# Models
# ===========================================================================


class TestModelGeneration:
    """Mongoose model structure for the reference schema."""

    def test_header_and_export(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        source = tg.emit_model_by_name(blog_analysis, "posts")
        lines = source.splitlines()
        assert lines[0] == "const mongoose = require('mongoose');"
        assert lines[1] == "const Schema = mongoose.Schema;"
        assert "const PostSchema = new Schema({" in lines
        assert lines[-1] == "module.exports = mongoose.model('Post', PostSchema);"
        assert source.endswith(";\n")

    def test_reference_field(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        block = _field_block(tg.emit_model_by_name(blog_analysis, "posts"), "user_id")
        assert block == ["type: Schema.Types.ObjectId,", "ref: 'User',", "required: true,"]

    def test_first_matching_relation_names_the_reference(
        self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis
    ) -> None:
        context = tg.build_model_context(
            blog_analysis.require_table("users"),
            blog_analysis.relations_for("users"),
            blog_analysis,
        )
        assert context.get_field("id").ref == "Post"

    def test_required_and_unique(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        block = _field_block(tg.emit_model_by_name(blog_analysis, "users"), "email")
        assert "required: true," in block
        assert "unique: true," in block
        assert "type: String," in block

    def test_defaults(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        source = tg.emit_model_by_name(blog_analysis, "users")
        assert "default: true," in _field_block(source, "isActive")
        assert "default: Date.now," in _field_block(source, "createdAt")

    def test_timestamps_added_once(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        context = tg.build_model_context(blog_analysis.require_table("users"))
        names = [f.name for f in context.fields]
        assert names.count("createdAt") == 1
        assert names[-1] == "updatedAt"
        assert context.get_field("updatedAt").default == "Date.now"

    def test_description_comment(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        source = tg.emit_model_by_name(blog_analysis, "posts")
        assert "}, // Headline shown in listings" in _lines(source)

    def test_index_lines(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        source = tg.emit_model_by_name(blog_analysis, "comments")
        assert "CommentSchema.index({ post_id: 1 });" in source
        assert "CommentSchema.index({ user_id: 1 });" in source

    def test_save_hook(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        source = tg.emit_model_by_name(blog_analysis, "users")
        assert "UserSchema.pre('save', function (next) {" in source
        assert "this.updatedAt = Date.now();" in source

    def test_type_mapping(self, tg: TemplateGenerator) -> None:
        table = Table(
            name="things",
            columns=[
                Column(name="n", canonical_type="integer"),
                Column(name="price", canonical_type="decimal"),
                Column(name="meta", canonical_type="json"),
                Column(name="tags", canonical_type="array"),
                Column(name="raw", canonical_type="blob"),
                Column(name="token", canonical_type="uuid"),
            ],
        )
        context = tg.build_model_context(table)
        assert context.get_field("n").js_type == "Number"
        assert context.get_field("price").js_type == "mongoose.Schema.Types.Decimal128"
        assert context.get_field("meta").js_type == "mongoose.Schema.Types.Mixed"
        assert context.get_field("tags").js_type == "Array"
        assert context.get_field("raw").js_type == "Buffer"
        assert context.get_field("token").js_type == "String"

    def test_custom_primary_key_is_unique(self, tg: TemplateGenerator) -> None:
        table = Table(name="codes", columns=[Column(name="code", is_primary=True)])
        assert tg.build_model_context(table).get_field("code").unique is True

    def test_dangling_relation_is_skipped(self, schema_dict: Dict[str, Any]) -> None:
        schema_dict["relationships"] = [
            {"source": {"table": "posts", "column": "user_id"}, "target": {"table": "ghosts"}}
        ]
        analysis = analyze_schema(schema_dict)
        context = TemplateGenerator().build_model_context(
            analysis.require_table("posts"), analysis.relations_for("posts"), analysis
        )
        assert context.get_field("user_id").ref is None
        assert context.get_field("user_id").js_type == "mongoose.Schema.Types.ObjectId"
        assert context.index_columns == ()

    def test_emit_model_by_name_unknown(self, tg: TemplateGenerator, blog_analysis: SchemaAnalysis) -> None:
        with pytest.raises(TableNotFoundError):
            tg.emit_model_by_name(blog_analysis, "ghosts")

    def test_indent_size(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_model(
            blog_analysis.require_table("users"), config=ProjectConfig(indent_size=4)
        )
        assert "    email: {" in source.splitlines()
        assert "        type: String," in source.splitlines()


# ===========================================================================
# Validation rules
# ===========================================================================


class TestValidationRules:

    def test_create_chain(self, blog_analysis: SchemaAnalysis) -> None:
        rules = validation_rules(blog_analysis.require_table("posts"))
        assert rules == [
            ValidationRule("title", "isEmpty", "title is required"),
            ValidationRule("user_id", "isEmpty", "user_id is required"),
            ValidationRule("publishedAt", "isISO8601", "Please include a valid date", optional=True),
        ]

    def test_update_chain_is_all_optional(self, blog_analysis: SchemaAnalysis) -> None:
        rules = validation_rules(blog_analysis.require_table("posts"), for_update=True)
        assert all(rule.optional for rule in rules)
        assert rules[0] == ValidationRule("title", "isEmpty", "title cannot be empty", optional=True)

    def test_format_checks(self, blog_analysis: SchemaAnalysis) -> None:
        users = blog_analysis.require_table("users")
        assert format_check(users.get_column("email")) == ("isEmail", "Please include a valid email")
        assert format_check(users.get_column("age")) == ("isNumeric", "age must be a number")
        assert format_check(users.get_column("isActive")) == ("isBoolean", "isActive must be a boolean")
        assert format_check(users.get_column("username")) is None

    def test_generator_hints(self) -> None:
        url = Column(name="site", generator=GeneratorSpec(category="internet", subtype="url"))
        month = Column(name="m", generator=GeneratorSpec(category="date", subtype="month"))
        past = Column(name="p", generator=GeneratorSpec(category="date", subtype="past"))
        assert format_check(url) == ("isURL", "Please include a valid URL")
        assert format_check(month) is None
        assert format_check(past) == ("isISO8601", "Please include a valid date")

    def test_primary_columns_are_never_checked(self) -> None:
        table = Table(name="t", columns=[Column(name="id", is_primary=True, is_nullable=False)])
        assert validation_rules(table) == []


# ===========================================================================
# Controllers & routes
# ===========================================================================


class TestControllerGeneration:

    def test_crud_handlers_exported(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_controller(blog_analysis.require_table("posts"), blog_analysis)
        for handler in ("getAllPosts", "getPostById", "createPost", "updatePost", "deletePost"):
            assert f"const {handler} = async (req, res) => {{" in source
            assert f"  {handler}," in source.splitlines()

    def test_pagination_uses_default_page_size(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_controller(
            blog_analysis.require_table("posts"), config=ProjectConfig(default_page_size=25)
        )
        assert "const limit = parseInt(req.query.limit, 10) || 25;" in source

    def test_create_copies_body_columns(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_controller(blog_analysis.require_table("posts"))
        assert "title: req.body.title," in _lines(source)
        assert "if (req.body.tags !== undefined) updateFields.tags = req.body.tags;" in _lines(source)
        assert "id: req.body.id," not in _lines(source)

    def test_relationship_lookups(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_controller(blog_analysis.require_table("users"), blog_analysis)
        assert "const Post = require('../models/Post');" in source
        assert "const Comment = require('../models/Comment');" in source
        assert "const getPostsForUser = async (req, res) => {" in source
        assert "const related = await Post.find({ user_id: req.params.id });" in _lines(source)
        assert " * @route GET /api/users/:id/posts" in source

    def test_not_found_message(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_controller(blog_analysis.require_table("users"))
        assert "return res.status(404).json({ message: 'User not found' });" in _lines(source)


class TestRouteGeneration:

    def test_router_wiring(self, blog_analysis: SchemaAnalysis) -> None:
        source = emit_routes(blog_analysis.require_table("users"), blog_analysis)
        lines = _lines(source)
        assert "const UserController = require('../controllers/UserController');" in lines
        assert "router.get('/', UserController.getAllUsers);" in lines
        assert "router.post('/', createUserValidation, UserController.createUser);" in lines
        assert "router.put('/:id', updateUserValidation, UserController.updateUser);" in lines
        assert "router.get('/:id/posts', UserController.getPostsForUser);" in lines
        assert lines[-1] == "module.exports = router;"

    def test_validation_chains_rendered(self, blog_analysis: SchemaAnalysis) -> None:
        lines = _lines(emit_routes(blog_analysis.require_table("users")))
        assert "check('email', 'email is required').not().isEmpty()," in lines
        assert "check('email', 'Please include a valid email').optional().isEmail()," in lines
        assert "check('email', 'email cannot be empty').optional().not().isEmpty()," in lines


# ===========================================================================
# Project
# ===========================================================================


class TestEmitProject:

    def test_file_layout(self, blog_analysis: SchemaAnalysis) -> None:
        files = emit_project(blog_analysis)
        assert len(files) == 10
        assert set(files) == {
            "models/User.js", "controllers/UserController.js", "routes/userRoutes.js",
            "models/Post.js", "controllers/PostController.js", "routes/postRoutes.js",
            "models/Comment.js", "controllers/CommentController.js", "routes/commentRoutes.js",
            "server.js",
        }

    def test_server_mounts(self, blog_analysis: SchemaAnalysis) -> None:
        server = emit_project(blog_analysis, ProjectConfig(api_prefix="/api/v1/", port=8080))["server.js"]
        assert "app.use('/api/v1/users', require('./routes/userRoutes'));" in server
        assert "const PORT = process.env.PORT || 8080;" in server

    def test_empty_analysis(self) -> None:
        files = emit_project(SchemaAnalysis())
        assert list(files) == ["server.js"]
        assert "// No resources defined yet" in files["server.js"]

    def test_deterministic(self, blog_analysis: SchemaAnalysis) -> None:
        assert emit_project(blog_analysis) == emit_project(blog_analysis)

    def test_boilerplate(self, blog_analysis: SchemaAnalysis) -> None:
        config = ProjectConfig(project_name="blog-api", include_boilerplate=True)
        files = emit_project(blog_analysis, config)
        assert {"package.json", "README.md", ".env", ".gitignore"} <= set(files)
        package = json.loads(files["package.json"])
        assert package["name"] == "blog-api"
        assert "mongoose" in package["dependencies"]
        assert "### User" in files["README.md"]
        assert files[".env"].startswith("MONGODB_URI=")
        assert "node_modules/" in files[".gitignore"]

    def test_endpoint_manifest(self, blog_analysis: SchemaAnalysis) -> None:
        files = emit_project(blog_analysis, ProjectConfig(include_endpoint_manifest=True))
        payload = json.loads(files["endpoints.json"])
        assert [t["table"] for t in payload] == ["users", "posts", "comments"]

    def test_colliding_models_raise(self) -> None:
        analysis = analyze_schema({"user": {"id": "objectid"}, "users": {"id": "objectid"}})
        with pytest.raises(SchemaForgeError, match="models/User.js"):
            emit_project(analysis)

    def test_singularizer_strategy(self) -> None:
        analysis = analyze_schema({"categories": {"id": "objectid"}, "people": {"id": "objectid"}})
        files = emit_project(analysis, singularizer=EnglishSingularizer())
        assert "models/Category.js" in files
        assert "models/Person.js" in files


class TestRegistry:

    def test_registered_templates(self) -> None:
        assert template_names() == sorted([
            "controller", "env", "gitignore", "model", "package.json",
            "readme", "routes", "server",
        ])

    def test_unknown_template(self) -> None:
        with pytest.raises(KeyError, match="Unknown template"):
            render_template("nope", None)

    def test_gitignore_ends_with_newline(self) -> None:
        assert render_template("gitignore", None).endswith(".vscode/\n")
