"""
goskel models - Pydantic models for generator input and project layout

ProjectConfig is everything a run needs. ProjectLayout is the single source
of the fixed paths and environment profiles that several generated files
must agree on.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator

from goskel.errors import EmptyNameError
from goskel.naming import FeatureSpec


# ═══════════════════════════════════════════════════════════════════════════
# LAYOUT
# ═══════════════════════════════════════════════════════════════════════════


class EnvProfile(BaseModel):
    """One generated environment file and the database it seeds."""

    file: str
    go_mode: str
    db_name: str
    db_user: str
    db_password: str = "changeit"
    # prefix applied to key paths: test binaries run one directory down
    root_prefix: str = ""

    model_config = ConfigDict(frozen=True)


class ProjectLayout(BaseModel):
    """Relative paths inside a generated project."""

    keys_dir: str = "keys"
    private_key_file: str = "private.pem"
    public_key_file: str = "public.pem"
    seed_script: str = ".extra/setup/init-db.js"
    profiles: tuple[EnvProfile, ...] = (
        EnvProfile(file=".env", go_mode="debug", db_name="dev-db", db_user="dev-db-user"),
        EnvProfile(
            file=".test.env",
            go_mode="test",
            db_name="test-db",
            db_user="test-db-user",
            root_prefix="../",
        ),
    )

    model_config = ConfigDict(frozen=True)

    @property
    def private_key(self) -> str:
        return str(PurePosixPath(self.keys_dir) / self.private_key_file)

    @property
    def public_key(self) -> str:
        return str(PurePosixPath(self.keys_dir) / self.public_key_file)

    @property
    def seed_dir(self) -> str:
        return str(PurePosixPath(self.seed_script).parent)

    def profile(self, file: str) -> EnvProfile:
        return next(p for p in self.profiles if p.file == file)


# ═══════════════════════════════════════════════════════════════════════════
# GENERATED OUTPUT
# ═══════════════════════════════════════════════════════════════════════════


class GeneratedArtifact(BaseModel):
    """A file to write, relative to the project root."""

    relative_path: str
    content: str
    template: str | None = None

    model_config = ConfigDict(frozen=True)


# ═══════════════════════════════════════════════════════════════════════════
# PROJECT CONFIG
# ═══════════════════════════════════════════════════════════════════════════


DEFAULT_FEATURES = ["sample"]


class ProjectConfig(BaseModel):
    """Complete generator input"""

    directory: str
    module: str
    features: list[str] = Field(default_factory=lambda: list(DEFAULT_FEATURES), min_length=1)
    tidy: bool = True
    atomic: bool = False
    go_version: str = Field("1.22.5", alias="goVersion")
    layout: ProjectLayout = ProjectLayout()

    model_config = {"populate_by_name": True}

    @field_validator("directory", "module")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        if not v:
            raise EmptyNameError(f"project {info.field_name}")
        return v

    @field_validator("features")
    @classmethod
    def validate_features(cls, v: list[str]) -> list[str]:
        """Every feature must derive cleanly and be unique once lower-cased."""
        seen: set[str] = set()
        for name in v:
            lower = FeatureSpec.derive(name).lowercase
            if lower in seen:
                raise ValueError(f"duplicate feature: {name}")
            seen.add(lower)
        return v

    @property
    def feature_specs(self) -> list[FeatureSpec]:
        return [FeatureSpec.derive(name) for name in self.features]

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "ProjectConfig":
        """Parse YAML content into ProjectConfig"""
        import yaml

        data = yaml.safe_load(yaml_content) or {}
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str) -> "ProjectConfig":
        """Load config from YAML file"""
        from pathlib import Path

        content = Path(path).read_text()
        return cls.from_yaml(content)

    def to_yaml(self) -> str:
        """Export config to YAML"""
        import yaml

        return yaml.dump(
            self.model_dump(by_alias=True, exclude={"layout"}),
            default_flow_style=False,
            sort_keys=False,
        )
