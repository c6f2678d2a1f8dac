"""
goskel errors

Every failure of the generator is terminal. Library code raises one of these;
only the CLI turns them into an exit code.
"""

from __future__ import annotations

from pathlib import Path


class GeneratorError(Exception):
    """Base class for all generator failures."""


# ═══════════════════════════════════════════════════════════════════════════
# PRECONDITIONS
# ═══════════════════════════════════════════════════════════════════════════


class PreconditionError(GeneratorError):
    """Input rejected before any side effect."""


class EmptyNameError(PreconditionError):
    def __init__(self, what: str = "feature name"):
        self.what = what
        super().__init__(f"{what} should be a non-empty string")


class InvalidNameError(PreconditionError):
    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"invalid feature name {name!r}: {reason}")


# ═══════════════════════════════════════════════════════════════════════════
# RESOURCES
# ═══════════════════════════════════════════════════════════════════════════


class ResourceError(GeneratorError):
    """Filesystem, entropy or external tool failure mid-run."""


class MaterializeError(ResourceError):
    def __init__(self, action: str, path: Path, cause: OSError):
        self.action = action
        self.path = path
        self.cause = cause
        super().__init__(f"error {action}: {path} ({cause.strerror or cause})")


class KeyGenerationError(ResourceError):
    pass


class DependencyResolutionError(ResourceError):
    def __init__(self, command: list[str], output: str, returncode: int | None = None):
        self.command = command
        self.output = output
        self.returncode = returncode
        status = f"exit status {returncode}" if returncode is not None else "not runnable"
        super().__init__(
            f"command execution failed: {' '.join(command)} ({status})\nOutput: {output}"
        )
