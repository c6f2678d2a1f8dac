"""
goskel materializer - the only code that writes to the filesystem

Writes are not transactional: a failure leaves whatever was already written
in place. ``StagedTree`` is the opt-in alternative that builds the tree in a
sibling temporary directory and moves it into place only on success.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from goskel.errors import MaterializeError
from goskel.models import GeneratedArtifact

logger = logging.getLogger(__name__)


class Materializer:
    """Creates directories and files under a root directory."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.written: list[Path] = []

    def resolve(self, relative_path: str | Path) -> Path:
        return self.root / relative_path

    def ensure_dir(self, relative_path: str | Path = "") -> Path:
        """Create the directory chain for ``relative_path``."""
        path = self.resolve(relative_path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MaterializeError("creating directory", path, e) from e
        return path

    def write_file(
        self,
        relative_path: str | Path,
        content: str | bytes,
        mode: int | None = None,
    ) -> Path:
        """
        Write ``content``, replacing any existing file.

        Args:
            relative_path: Path relative to the root
            content: Text (written as UTF-8) or raw bytes
            mode: Optional permission bits applied after writing
        """
        path = self.resolve(relative_path)
        self.ensure_dir(path.relative_to(self.root).parent)
        try:
            if mode is not None:
                self._write_restricted(path, content, mode)
            elif isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise MaterializeError("creating file", path, e) from e

        logger.debug("wrote %s", path)
        self.written.append(path)
        return path

    @staticmethod
    def _write_restricted(path: Path, content: str | bytes, mode: int) -> None:
        """Create or truncate ``path`` with ``mode`` set before any content is written."""
        data = content if isinstance(content, bytes) else content.encode("utf-8")
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as f:
            # an existing file keeps its old mode through O_CREAT
            os.fchmod(f.fileno(), mode)
            f.write(data)

    def write_artifact(self, artifact: GeneratedArtifact) -> Path:
        return self.write_file(artifact.relative_path, artifact.content)


# ═══════════════════════════════════════════════════════════════════════════
# STAGING
# ═══════════════════════════════════════════════════════════════════════════


class StagedTree:
    """
    Build a tree in a temporary sibling directory, then move it into place.

    Used as a context manager: on a clean exit the staged tree is committed
    to ``target``; on an exception it is removed and ``target`` is left as it
    was. When ``target`` does not exist the commit is a single rename,
    otherwise every staged file replaces its counterpart in ``target``.
    """

    def __init__(self, target: Path):
        self.target = Path(target).resolve()
        self.staging: Path | None = None

    def __enter__(self) -> Materializer:
        parent = self.target.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            self.staging = Path(tempfile.mkdtemp(prefix=f".{self.target.name}-", dir=parent))
            # mkdtemp creates 0700; the committed tree should look like a plain mkdir
            os.chmod(self.staging, 0o755)
        except OSError as e:
            raise MaterializeError("creating staging directory", parent, e) from e
        logger.debug("staging %s in %s", self.target, self.staging)
        return Materializer(self.staging)

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.discard()
            return
        try:
            self.commit()
        except BaseException:
            self.discard()
            raise

    def commit(self) -> None:
        assert self.staging is not None
        if not self.target.exists():
            try:
                os.rename(self.staging, self.target)
            except OSError as e:
                raise MaterializeError("moving staged tree", self.target, e) from e
            self.staging = None
            return

        for src in sorted(self.staging.rglob("*")):
            if src.is_dir():
                continue
            dest = self.target / src.relative_to(self.staging)
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                os.replace(src, dest)
            except OSError as e:
                raise MaterializeError("moving staged file", dest, e) from e
        self.discard()

    def discard(self) -> None:
        if self.staging is not None:
            shutil.rmtree(self.staging, ignore_errors=True)
            self.staging = None
