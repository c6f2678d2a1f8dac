"""
goskel engine - instantiates the four files of a feature module

Each file is described by a typed source record (imports, struct, method
names) and rendered by a Jinja2 template. Records that refer to another file
take the name from that file's record rather than re-deriving it, so a
feature module is consistent by construction.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel, ConfigDict

from goskel.errors import PreconditionError
from goskel.models import GeneratedArtifact
from goskel.naming import FeatureSpec, capitalize_first, plural


TEMPLATES_DIR = Path(__file__).parent / "templates"

SERVE = "github.com/unusualcodeorg/goserve/arch"
VALIDATOR = "github.com/go-playground/validator/v10"
BSON = "go.mongodb.org/mongo-driver/bson"
PRIMITIVE = "go.mongodb.org/mongo-driver/bson/primitive"

# handler locals a feature variable must not shadow
_HANDLER_LOCALS = frozenset({"c", "ctx", "err", "data"})


# ═══════════════════════════════════════════════════════════════════════════
# GO SOURCE RECORDS
# ═══════════════════════════════════════════════════════════════════════════


class GoImport(BaseModel):
    path: str
    alias: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_std(self) -> bool:
        return "." not in self.path.split("/")[0]

    def render(self) -> str:
        if self.alias:
            return f'{self.alias} "{self.path}"'
        return f'"{self.path}"'


class GoField(BaseModel):
    name: str
    type: str
    tags: dict[str, str] = {}

    model_config = ConfigDict(frozen=True)

    @property
    def tag_string(self) -> str:
        if not self.tags:
            return ""
        return "`" + " ".join(f'{k}:"{v}"' for k, v in self.tags.items()) + "`"


class GoStruct(BaseModel):
    name: str
    fields: list[GoField]

    model_config = ConfigDict(frozen=True)

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def lines(self) -> list[str]:
        """Field lines with gofmt-style column alignment."""
        name_width = max(len(f.name) for f in self.fields)
        type_width = max(len(f.type) for f in self.fields)
        lines = []
        for f in self.fields:
            line = f"{f.name.ljust(name_width)} {f.type.ljust(type_width)} {f.tag_string}"
            lines.append(line.rstrip())
        return lines


class ValidationMessage(BaseModel):
    """One ``case`` of the DTO's validation-tag translation."""

    tag: str
    format: str
    args: list[str] = ["err.Field()"]

    model_config = ConfigDict(frozen=True)

    def expression(self) -> str:
        return f'fmt.Sprintf("{self.format}", {", ".join(self.args)})'


class GoRoute(BaseModel):
    method: str
    path: str
    handler: str

    model_config = ConfigDict(frozen=True)


class SourceFile(BaseModel):
    """Common shape of a rendered Go file."""

    relative_path: str
    template: str
    package: str
    imports: list[GoImport]

    model_config = ConfigDict(frozen=True)


class DtoSource(SourceFile):
    struct: GoStruct
    messages: list[ValidationMessage]
    fallback: ValidationMessage


class ModelSource(SourceFile):
    struct: GoStruct
    collection_const: str
    collection_name: str
    constructor: str
    index_keys: list[str]


class ServiceSource(SourceFile):
    find_method: str
    model_type: str
    dto_type: str
    collection_ref: str
    query_builder_field: str
    cache_field: str

    @property
    def struct(self) -> GoStruct:
        """Named fields of ``service``; the embedded base is rendered apart."""
        return GoStruct(
            name="service",
            fields=[
                GoField(name=self.query_builder_field, type=f"mongo.QueryBuilder[{self.model_type}]"),
                GoField(name=self.cache_field, type=f"redis.Cache[{self.dto_type}]"),
            ],
        )

    def literal_lines(self) -> list[str]:
        """Keyed elements of the ``&service{...}`` literal, values aligned."""
        pairs = [
            ("BaseService", "network.NewBaseService()"),
            (self.query_builder_field, f"mongo.NewQueryBuilder[{self.model_type}](db, {self.collection_ref})"),
            (self.cache_field, f"redis.NewCache[{self.dto_type}](store)"),
        ]
        width = max(len(key) for key, _ in pairs) + 1
        return [f"{(key + ':').ljust(width)} {value}," for key, value in pairs]


class ControllerSource(SourceFile):
    base_path: str
    ping_route: GoRoute
    get_route: GoRoute
    ping_message: str
    find_method: str
    dto_type: str
    entity_var: str
    not_found_message: str

    @property
    def routes(self) -> list[GoRoute]:
        return [self.ping_route, self.get_route]


class FeatureModule(BaseModel):
    """The DTO, model, service and controller of one feature."""

    spec: FeatureSpec
    module: str
    dto: DtoSource
    model: ModelSource
    service: ServiceSource
    controller: ControllerSource
    artifacts: list[GeneratedArtifact] = []

    @property
    def sources(self) -> list[SourceFile]:
        return [self.dto, self.model, self.service, self.controller]


# ═══════════════════════════════════════════════════════════════════════════
# JINJA ENVIRONMENT SETUP
# ═══════════════════════════════════════════════════════════════════════════


def go_imports(imports: list[GoImport]) -> str:
    """Render an import declaration: standard library first, then the rest.

    Each group is sorted by path, as gofmt does.
    """
    if len(imports) == 1:
        return f"import {imports[0].render()}"

    std = sorted((i for i in imports if i.is_std), key=lambda i: i.path)
    rest = sorted((i for i in imports if not i.is_std), key=lambda i: i.path)
    groups = [g for g in (std, rest) if g]
    body = "\n\n".join("\n".join(f"\t{i.render()}" for i in g) for g in groups)
    return f"import (\n{body}\n)"


def create_jinja_env(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    """Create Jinja2 environment with custom filters."""

    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml"]),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )

    env.filters["capitalize_first"] = capitalize_first
    env.filters["plural"] = plural
    env.filters["go_imports"] = go_imports

    # Quote filter
    env.filters["quote"] = lambda x: f"'{x}'"
    env.filters["dquote"] = lambda x: f'"{x}"'

    return env


# ═══════════════════════════════════════════════════════════════════════════
# RECORD BUILDERS
# ═══════════════════════════════════════════════════════════════════════════


def build_dto(spec: FeatureSpec) -> DtoSource:
    struct = GoStruct(
        name=spec.dto_type,
        fields=[
            GoField(name="ID", type="primitive.ObjectID", tags={"json": "_id", "binding": "required"}),
            GoField(name="Field", type="string", tags={"json": "field", "binding": "required"}),
            GoField(name="CreatedAt", type="time.Time", tags={"json": "createdAt", "binding": "required"}),
        ],
    )
    return DtoSource(
        relative_path=f"api/{spec.lowercase}/dto/create_{spec.lowercase}.go",
        template="feature/dto.go.j2",
        package="dto",
        imports=[
            GoImport(path="fmt"),
            GoImport(path="time"),
            GoImport(path=VALIDATOR),
            GoImport(path=PRIMITIVE),
        ],
        struct=struct,
        messages=[
            ValidationMessage(tag="required", format="%s is required"),
            ValidationMessage(tag="min", format="%s must be min %s", args=["err.Field()", "err.Param()"]),
            ValidationMessage(tag="max", format="%s must be max %s", args=["err.Field()", "err.Param()"]),
        ],
        fallback=ValidationMessage(tag="default", format="%s is invalid"),
    )


def build_model(spec: FeatureSpec) -> ModelSource:
    struct = GoStruct(
        name=spec.capitalized,
        fields=[
            GoField(name="ID", type="primitive.ObjectID", tags={"bson": "_id,omitempty", "validate": "-"}),
            GoField(name="Field", type="string", tags={"bson": "field", "validate": "required"}),
            GoField(name="Status", type="bool", tags={"bson": "status", "validate": "required"}),
            GoField(name="CreatedAt", type="time.Time", tags={"bson": "createdAt", "validate": "required"}),
            GoField(name="UpdatedAt", type="time.Time", tags={"bson": "updatedAt", "validate": "required"}),
        ],
    )
    return ModelSource(
        relative_path=f"api/{spec.lowercase}/model/{spec.lowercase}.go",
        template="feature/model.go.j2",
        package="model",
        imports=[
            GoImport(path="context"),
            GoImport(path="time"),
            GoImport(path=VALIDATOR),
            GoImport(path=f"{SERVE}/mongo"),
            GoImport(path=BSON),
            GoImport(path=PRIMITIVE),
            GoImport(path="go.mongodb.org/mongo-driver/mongo", alias="mongod"),
        ],
        struct=struct,
        collection_const="CollectionName",
        collection_name=spec.collection_name,
        constructor=f"New{spec.capitalized}",
        index_keys=["_id", "status"],
    )


def build_service(spec: FeatureSpec, module: str, dto: DtoSource, model: ModelSource) -> ServiceSource:
    return ServiceSource(
        relative_path=f"api/{spec.lowercase}/service.go",
        template="feature/service.go.j2",
        package=spec.lowercase,
        imports=[
            GoImport(path=spec.dto_import(module)),
            GoImport(path=spec.model_import(module)),
            GoImport(path=f"{SERVE}/mongo"),
            GoImport(path=f"{SERVE}/network"),
            GoImport(path=f"{SERVE}/redis"),
            GoImport(path=BSON),
            GoImport(path=PRIMITIVE),
        ],
        find_method=f"Find{model.struct.name}",
        model_type=f"{model.package}.{model.struct.name}",
        dto_type=f"{dto.package}.{dto.struct.name}",
        collection_ref=f"{model.package}.{model.collection_const}",
        query_builder_field=f"{spec.lowercase}QueryBuilder",
        cache_field=f"info{spec.capitalized}Cache",
    )


def build_controller(spec: FeatureSpec, module: str, service: ServiceSource) -> ControllerSource:
    entity_var = spec.lowercase
    if entity_var in _HANDLER_LOCALS:
        entity_var += "Doc"

    return ControllerSource(
        relative_path=f"api/{spec.lowercase}/controller.go",
        template="feature/controller.go.j2",
        package=service.package,
        imports=[
            GoImport(path="github.com/gin-gonic/gin"),
            GoImport(path=spec.dto_import(module)),
            GoImport(path=f"{SERVE}/dto", alias="coredto"),
            GoImport(path=f"{SERVE}/network"),
            GoImport(path=f"{module}/utils"),
        ],
        base_path=spec.route_segment,
        ping_route=GoRoute(method="GET", path="/ping", handler="getPingHandler"),
        get_route=GoRoute(method="GET", path="/id/:id", handler=f"get{spec.capitalized}Handler"),
        ping_message="pong!",
        find_method=service.find_method,
        dto_type=service.dto_type,
        entity_var=entity_var,
        not_found_message=f"{spec.lowercase} not found",
    )


# ═══════════════════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════════════════


class TemplateEngine:
    """Renders source records and project templates."""

    def __init__(self, templates_dir: Path | None = None):
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = create_jinja_env(self.templates_dir)

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a Jinja2 template."""
        template = self.env.get_template(template_path)
        return template.render(**context)

    def render_source(self, src: SourceFile) -> GeneratedArtifact:
        content = self.render(src.template, {"src": src})
        return GeneratedArtifact(relative_path=src.relative_path, content=content, template=src.template)

    def instantiate(self, spec: FeatureSpec, module: str) -> FeatureModule:
        """
        Build and render the four files of one feature.

        Args:
            spec: Derived feature names
            module: Go module path used as the import prefix

        Raises:
            PreconditionError: spec or module missing
        """
        if spec is None:
            raise PreconditionError("feature spec is required")
        if not module:
            raise PreconditionError("module path should be a non-empty string")

        dto = build_dto(spec)
        model = build_model(spec)
        service = build_service(spec, module, dto, model)
        controller = build_controller(spec, module, service)

        return FeatureModule(
            spec=spec,
            module=module,
            dto=dto,
            model=model,
            service=service,
            controller=controller,
            artifacts=[self.render_source(src) for src in (dto, model, service, controller)],
        )


def instantiate(spec: FeatureSpec, module: str, templates_dir: Path | None = None) -> FeatureModule:
    """Instantiate one feature module with the package templates."""
    return TemplateEngine(templates_dir).instantiate(spec, module)
