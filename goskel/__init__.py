"""
goskel - Go service skeleton generator

Derives every naming variant of a feature, renders a consistent
DTO/model/service/controller slice for it, and assembles the surrounding
project: manifest, env files, keys, startup wiring and container files.
"""

__version__ = "0.1.0"

from goskel.engine import FeatureModule, TemplateEngine, instantiate
from goskel.errors import GeneratorError, PreconditionError, ResourceError
from goskel.generator import GenerationResult, ProjectGenerator, generate_project
from goskel.models import ProjectConfig, ProjectLayout
from goskel.naming import FeatureSpec, derive

__all__ = [
    "FeatureSpec",
    "derive",
    "FeatureModule",
    "TemplateEngine",
    "instantiate",
    "ProjectConfig",
    "ProjectLayout",
    "GenerationResult",
    "ProjectGenerator",
    "generate_project",
    "GeneratorError",
    "PreconditionError",
    "ResourceError",
]
