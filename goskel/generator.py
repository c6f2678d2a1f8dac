"""
goskel generator - assembles a Go service skeleton

Runs every generation step in a fixed order. Any step that fails raises and
ends the run; there is no retry and no cleanup of files already written
unless the run is staged (``ProjectConfig.atomic``).
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from goskel.engine import SERVE, FeatureModule, GoImport, TemplateEngine
from goskel.errors import DependencyResolutionError
from goskel.keys import generate_key_pair
from goskel.materializer import Materializer, StagedTree
from goskel.models import ProjectConfig

logger = logging.getLogger(__name__)


DIRECT_DEPENDENCIES = [
    "github.com/gin-gonic/gin v1.10.0",
    "github.com/go-playground/validator/v10 v10.22.0",
    "github.com/jinzhu/copier v0.4.0",
    "github.com/spf13/viper v1.19.0",
    "github.com/unusualcodeorg/goserve v1.1.9",
    "go.mongodb.org/mongo-driver v1.15.1",
]

INDIRECT_DEPENDENCIES = [
    "github.com/bytedance/sonic v1.11.9",
    "github.com/bytedance/sonic/loader v0.1.1",
    "github.com/cespare/xxhash/v2 v2.3.0",
    "github.com/cloudwego/base64x v0.1.4",
    "github.com/cloudwego/iasm v0.2.0",
    "github.com/davecgh/go-spew v1.1.2-0.20180830191138-d8f796af33cc",
    "github.com/dgryski/go-rendezvous v0.0.0-20200823014737-9f7001d12a5f",
    "github.com/fsnotify/fsnotify v1.7.0",
    "github.com/gabriel-vasile/mimetype v1.4.4",
    "github.com/gin-contrib/sse v0.1.0",
    "github.com/go-playground/locales v0.14.1",
    "github.com/go-playground/universal-translator v0.18.1",
    "github.com/goccy/go-json v0.10.3",
    "github.com/golang/snappy v0.0.4",
    "github.com/hashicorp/hcl v1.0.0",
    "github.com/json-iterator/go v1.1.12",
    "github.com/klauspost/compress v1.17.9",
    "github.com/klauspost/cpuid/v2 v2.2.8",
    "github.com/leodido/go-urn v1.4.0",
    "github.com/magiconair/properties v1.8.7",
    "github.com/mattn/go-isatty v0.0.20",
    "github.com/mitchellh/mapstructure v1.5.0",
    "github.com/modern-go/concurrent v0.0.0-20180306012644-bacd9c7ef1dd",
    "github.com/modern-go/reflect2 v1.0.2",
    "github.com/montanaflynn/stats v0.7.1",
    "github.com/pelletier/go-toml/v2 v2.2.2",
    "github.com/pmezard/go-difflib v1.0.1-0.20181226105442-5d4384ee4fb2",
    "github.com/redis/go-redis/v9 v9.5.3",
    "github.com/sagikazarmark/locafero v0.6.0",
    "github.com/sagikazarmark/slog-shim v0.1.0",
    "github.com/sourcegraph/conc v0.3.0",
    "github.com/spf13/afero v1.11.0",
    "github.com/spf13/cast v1.6.0",
    "github.com/spf13/pflag v1.0.5",
    "github.com/stretchr/objx v0.5.2",
    "github.com/stretchr/testify v1.9.0",
    "github.com/subosito/gotenv v1.6.0",
    "github.com/twitchyliquid64/golang-asm v0.15.1",
    "github.com/ugorji/go/codec v1.2.12",
    "github.com/xdg-go/pbkdf2 v1.0.0",
    "github.com/xdg-go/scram v1.1.2",
    "github.com/xdg-go/stringprep v1.0.4",
    "github.com/youmark/pkcs8 v0.0.0-20240424034433-3c2c7870ae76",
    "go.uber.org/multierr v1.11.0",
    "golang.org/x/arch v0.8.0",
    "golang.org/x/crypto v0.24.0",
    "golang.org/x/exp v0.0.0-20240613232115-7f521ea00fb8",
    "golang.org/x/net v0.26.0",
    "golang.org/x/sync v0.7.0",
    "golang.org/x/sys v0.21.0",
    "golang.org/x/text v0.16.0",
    "google.golang.org/protobuf v1.34.2",
    "gopkg.in/ini.v1 v1.67.0",
    "gopkg.in/yaml.v3 v3.0.1",
]

TIDY_COMMAND = ["go", "mod", "tidy"]

STARTUP_FILES = ("indexes", "module", "server", "testserver")


def startup_imports(name: str, module: str, features: list[FeatureModule]) -> list[GoImport]:
    """Imports of one ``startup/<name>.go`` file."""
    config = GoImport(path=f"{module}/config")
    if name == "indexes":
        return [
            GoImport(path=f"{SERVE}/mongo"),
            *(GoImport(path=f.spec.model_import(module), alias=f.spec.model_alias) for f in features),
        ]
    if name == "module":
        return [
            GoImport(path="context"),
            GoImport(path=f"{SERVE}/middleware", alias="coreMW"),
            GoImport(path=f"{SERVE}/mongo"),
            GoImport(path=f"{SERVE}/network"),
            GoImport(path=f"{SERVE}/redis"),
            *(GoImport(path=f.spec.package_import(module)) for f in features),
            config,
        ]
    if name == "server":
        return [
            GoImport(path="context"),
            GoImport(path="time"),
            GoImport(path="github.com/gin-gonic/gin"),
            GoImport(path=f"{SERVE}/mongo"),
            GoImport(path=f"{SERVE}/network"),
            GoImport(path=f"{SERVE}/redis"),
            config,
        ]
    return [
        GoImport(path="net/http/httptest"),
        GoImport(path=f"{SERVE}/network"),
        config,
    ]


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED FILE TRACKING
# ═══════════════════════════════════════════════════════════════════════════


@dataclass
class GeneratedFile:
    """Represents a generated file."""

    path: str  # Relative path from the project root
    content: str
    template: str | None = None


@dataclass
class GenerationResult:
    """Result of project generation."""

    directory: Path
    files: list[GeneratedFile] = field(default_factory=list)
    features: list[FeatureModule] = field(default_factory=list)
    steps: list[str] = field(default_factory=list)
    tidy_output: str | None = None

    def paths(self) -> list[str]:
        return [f.path for f in self.files]

    def get(self, path: str) -> GeneratedFile | None:
        return next((f for f in self.files if f.path == path), None)


# ═══════════════════════════════════════════════════════════════════════════
# PROJECT GENERATOR
# ═══════════════════════════════════════════════════════════════════════════


class ProjectGenerator:
    """
    Generates a Go service skeleton from a ProjectConfig.

    Step order: directory, manifest, env files, ignore rules, utils, config,
    key pair, feature modules, startup, entry point, seed script, container
    files, then ``go mod tidy`` when enabled.
    """

    def __init__(self, templates_dir: Path | None = None):
        """
        Initialize generator with templates directory.

        Args:
            templates_dir: Path to Jinja2 templates. Defaults to package templates.
        """
        self.engine = TemplateEngine(templates_dir)

    def generate(self, config: ProjectConfig) -> GenerationResult:
        """
        Generate project from config.

        Args:
            config: Generator input

        Returns:
            GenerationResult with every written file

        Raises:
            GeneratorError: any step failed; later steps did not run
        """
        target = Path(config.directory)
        result = GenerationResult(directory=target)

        # Pure text construction first: bad names fail before anything is written
        result.features = [
            self.engine.instantiate(spec, config.module) for spec in config.feature_specs
        ]

        if config.atomic:
            with StagedTree(target) as materializer:
                self._run(config, materializer, result)
        else:
            self._run(config, Materializer(target), result)

        logger.info("generated %d files in %s", len(result.files), target)
        return result

    def plan(self, config: ProjectConfig) -> list[str]:
        """Relative paths ``generate`` would write, in write order."""
        layout = config.layout
        paths = ["go.mod", *(p.file for p in layout.profiles), ".gitignore"]
        paths += ["utils/convertor.go", "config/env.go", layout.private_key, layout.public_key]
        for spec in config.feature_specs:
            feature = self.engine.instantiate(spec, config.module)
            paths += [a.relative_path for a in feature.artifacts]
        paths += [f"startup/{name}.go" for name in STARTUP_FILES]
        paths += ["cmd/main.go", layout.seed_script, "Dockerfile", "docker-compose.yml", ".dockerignore"]
        return paths

    def _run(self, config: ProjectConfig, m: Materializer, result: GenerationResult) -> None:
        context = self._create_context(config, result.features)

        self._step(result, "directory")
        m.ensure_dir()

        self._step(result, "manifest")
        self._generate_go_mod(context, m, result)

        self._step(result, "env")
        self._generate_env_files(context, m, result)

        self._step(result, "ignores")
        self._generate_ignores(context, m, result)

        self._step(result, "utils")
        self._generate_utils(context, m, result)

        self._step(result, "config")
        self._generate_config(context, m, result)

        self._step(result, "keys")
        self._generate_keys(config, m, result)

        self._step(result, "api")
        self._generate_api(result.features, m, result)

        self._step(result, "startup")
        self._generate_startup(context, m, result)

        self._step(result, "cmd")
        self._generate_cmd(context, m, result)

        self._step(result, "seed")
        self._generate_seed(context, m, result)

        self._step(result, "docker")
        self._generate_docker(context, m, result)

        if config.tidy:
            self._step(result, "tidy")
            self._resolve_dependencies(m, result)

    def _step(self, result: GenerationResult, name: str) -> None:
        logger.info("step %d: %s", len(result.steps) + 1, name)
        result.steps.append(name)

    def _create_context(self, config: ProjectConfig, features: list[FeatureModule]) -> dict[str, Any]:
        """Create template rendering context."""
        layout = config.layout
        return {
            "config": config,
            "module": config.module,
            "go_version": config.go_version,
            "project_name": Path(config.directory).resolve().name,
            "layout": layout,
            "features": features,
            "seed_name": PurePosixPath(layout.seed_script).name,
            "dev_env": layout.profiles[0].file,
            "test_env": layout.profiles[1].root_prefix + layout.profiles[1].file,
        }

    def _write_file(
        self,
        m: Materializer,
        relative_path: str,
        content: str,
        result: GenerationResult,
        template: str | None = None,
    ) -> None:
        """Write a generated file and track it."""
        m.write_file(relative_path, content)
        result.files.append(GeneratedFile(path=relative_path, content=content, template=template))

    def _render_to(
        self,
        m: Materializer,
        template: str,
        relative_path: str,
        context: dict[str, Any],
        result: GenerationResult,
    ) -> None:
        content = self.engine.render(template, context)
        self._write_file(m, relative_path, content, result, template=template)

    # ═══════════════════════════════════════════════════════════════════════
    # STATIC FILES
    # ═══════════════════════════════════════════════════════════════════════

    def _generate_go_mod(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        """Generate go.mod with the framework's dependency set."""
        ctx = {**context, "direct": DIRECT_DEPENDENCIES, "indirect": INDIRECT_DEPENDENCIES}
        self._render_to(m, "project/go.mod.j2", "go.mod", ctx, result)

    def _generate_env_files(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        """Generate .env and .test.env."""
        for profile in context["layout"].profiles:
            self._render_to(m, "project/env.j2", profile.file, {**context, "profile": profile}, result)

    def _generate_ignores(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        self._render_to(m, "project/gitignore.j2", ".gitignore", context, result)

    def _generate_utils(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        m.ensure_dir("utils")
        self._render_to(m, "project/utils/convertor.go.j2", "utils/convertor.go", context, result)

    def _generate_config(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        m.ensure_dir("config")
        self._render_to(m, "project/config/env.go.j2", "config/env.go", context, result)

    def _generate_keys(self, config: ProjectConfig, m: Materializer, result: GenerationResult) -> None:
        pair = generate_key_pair(m, config.layout)
        result.files.append(GeneratedFile(path=config.layout.private_key, content=pair.private_pem.decode()))
        result.files.append(GeneratedFile(path=config.layout.public_key, content=pair.public_pem.decode()))

    # ═══════════════════════════════════════════════════════════════════════
    # FEATURES & WIRING
    # ═══════════════════════════════════════════════════════════════════════

    def _generate_api(self, features: list[FeatureModule], m: Materializer, result: GenerationResult) -> None:
        """Write the four files of every feature module."""
        m.ensure_dir("api")
        for feature in features:
            logger.info("feature %s -> api/%s", feature.spec.raw_name, feature.spec.lowercase)
            for artifact in feature.artifacts:
                m.write_artifact(artifact)
                result.files.append(
                    GeneratedFile(path=artifact.relative_path, content=artifact.content, template=artifact.template)
                )

    def _generate_startup(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        """Generate module wiring, index setup and server bootstraps."""
        m.ensure_dir("startup")
        for name in STARTUP_FILES:
            imports = startup_imports(name, context["module"], context["features"])
            ctx = {**context, "imports": imports}
            self._render_to(m, f"project/startup/{name}.go.j2", f"startup/{name}.go", ctx, result)

    def _generate_cmd(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        m.ensure_dir("cmd")
        self._render_to(m, "project/cmd/main.go.j2", "cmd/main.go", context, result)

    def _generate_seed(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        """Generate the database seed script for every env profile."""
        layout = context["layout"]
        m.ensure_dir(layout.seed_dir)
        self._render_to(m, "project/init-db.js.j2", layout.seed_script, context, result)

    def _generate_docker(self, context: dict[str, Any], m: Materializer, result: GenerationResult) -> None:
        """Generate Dockerfile, docker-compose.yml and .dockerignore."""
        self._render_to(m, "project/Dockerfile.j2", "Dockerfile", context, result)
        self._render_to(m, "project/docker-compose.yml.j2", "docker-compose.yml", context, result)
        self._render_to(m, "project/dockerignore.j2", ".dockerignore", context, result)

    # ═══════════════════════════════════════════════════════════════════════
    # DEPENDENCY RESOLUTION
    # ═══════════════════════════════════════════════════════════════════════

    def _resolve_dependencies(self, m: Materializer, result: GenerationResult) -> None:
        """Run ``go mod tidy`` inside the generated tree."""
        try:
            proc = subprocess.run(
                TIDY_COMMAND,
                cwd=m.root,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
            )
        except OSError as e:
            raise DependencyResolutionError(TIDY_COMMAND, str(e)) from e

        if proc.returncode != 0:
            raise DependencyResolutionError(TIDY_COMMAND, proc.stdout or "", proc.returncode)

        result.tidy_output = proc.stdout
        logger.debug("go mod tidy: %s", proc.stdout)


# ═══════════════════════════════════════════════════════════════════════════
# PUBLIC API
# ═══════════════════════════════════════════════════════════════════════════


def generate_project(
    config: ProjectConfig | str | Path,
    templates_dir: Path | None = None,
) -> GenerationResult:
    """
    Generate a Go service skeleton.

    Args:
        config: ProjectConfig object, YAML string, or path to YAML file
        templates_dir: Optional custom templates directory

    Returns:
        GenerationResult with generated files

    Raises:
        GeneratorError: precondition or resource failure
    """
    # Parse config if needed
    if isinstance(config, Path):
        config = ProjectConfig.from_file(str(config))
    elif isinstance(config, str):
        if "\n" not in config and Path(config).is_file():
            config = ProjectConfig.from_file(config)
        else:
            config = ProjectConfig.from_yaml(config)

    # Generate
    generator = ProjectGenerator(templates_dir)
    return generator.generate(config)
