"""
goskel naming - derives every identifier variant of a feature name.

One ``FeatureSpec`` feeds all four files of a feature module, so the
variants below are the only place feature names are transformed.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from goskel.errors import EmptyNameError, InvalidNameError


_IDENTIFIER = re.compile(r"^[A-Za-z][A-Za-z0-9_]*$")

GO_KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type",
    "var",
})

# Packages of the generated tree and names imported alongside feature
# packages; a feature with one of these names would not compile.
RESERVED_PACKAGES = frozenset({
    "api", "cmd", "config", "startup", "utils", "keys", "dto", "model",
    "mongo", "mongod", "redis", "network", "coremw", "coredto", "gin",
    "context", "time", "fmt", "log", "bson", "primitive", "validator",
    "httptest", "copier", "viper",
})

# Predeclared Go identifiers; the feature import in startup/module.go would
# shadow them.
GO_PREDECLARED = frozenset({
    "any", "append", "bool", "byte", "cap", "clear", "close", "comparable",
    "complex", "complex64", "complex128", "copy", "delete", "error", "false",
    "float32", "float64", "imag", "int", "int8", "int16", "int32", "int64",
    "iota", "len", "make", "max", "min", "new", "nil", "panic", "print",
    "println", "real", "recover", "rune", "string", "true", "uint", "uint8",
    "uint16", "uint32", "uint64", "uintptr",
})

# Package-level names and receivers of the generated startup package, which
# imports every feature package by its bare name.
STARTUP_IDENTIFIERS = frozenset({
    "module", "create", "m",
})


# ═══════════════════════════════════════════════════════════════════════════
# CASE HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def capitalize_first(s: str) -> str:
    """Upper-case the first character, leave the rest alone."""
    if not s:
        return s
    return s[0].upper() + s[1:]


def plural(s: str) -> str:
    """Collection-name plural: a bare ``s`` suffix."""
    return s + "s"


# ═══════════════════════════════════════════════════════════════════════════
# FEATURE SPEC
# ═══════════════════════════════════════════════════════════════════════════


class FeatureSpec(BaseModel):
    """Naming variants of one feature, all derived from ``raw_name``."""

    raw_name: str
    lowercase: str
    capitalized: str
    collection_name: str
    route_segment: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def derive(cls, name: str) -> "FeatureSpec":
        validate_feature_name(name)
        lower = name.lower()
        return cls(
            raw_name=name,
            lowercase=lower,
            capitalized=capitalize_first(lower),
            collection_name=plural(lower),
            route_segment="/" + lower,
        )

    def package_import(self, module: str) -> str:
        return f"{module}/api/{self.lowercase}"

    def dto_import(self, module: str) -> str:
        return f"{self.package_import(module)}/dto"

    def model_import(self, module: str) -> str:
        return f"{self.package_import(module)}/model"

    @property
    def dto_type(self) -> str:
        return f"Info{self.capitalized}"

    @property
    def model_alias(self) -> str:
        """Import alias used for the model package in ``startup/indexes.go``."""
        return f"{self.lowercase}Model"


def validate_feature_name(name: str) -> None:
    """
    Reject names that cannot become a Go package and type name.

    Raises:
        EmptyNameError: name is empty
        InvalidNameError: non-ASCII, not an identifier, a Go keyword or
            predeclared identifier, or a name the generated tree already uses
    """
    if not name:
        raise EmptyNameError()
    if not name.isascii():
        raise InvalidNameError(name, "only ASCII letters, digits and '_' are allowed")
    if not _IDENTIFIER.match(name):
        raise InvalidNameError(name, "must start with a letter and contain only letters, digits and '_'")

    lower = name.lower()
    if lower in GO_KEYWORDS:
        raise InvalidNameError(name, "is a Go keyword")
    if lower in RESERVED_PACKAGES:
        raise InvalidNameError(name, "collides with a generated package")
    if lower in GO_PREDECLARED:
        raise InvalidNameError(name, "is a predeclared Go identifier")
    if lower in STARTUP_IDENTIFIERS:
        raise InvalidNameError(name, "collides with an identifier in the generated startup package")


def derive(name: str) -> FeatureSpec:
    """Derive the naming variants of ``name``."""
    return FeatureSpec.derive(name)
