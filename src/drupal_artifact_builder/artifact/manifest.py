"""The set of source paths that make up an artifact.

The manifest is a pure function of the working directory contents and the
configuration; building it touches nothing on disk.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from drupal_artifact_builder.config.settings import ArtifactConfig

# Must exist in every project and are always copied
REQUIRED_PATHS = ("config", "vendor", "composer.json")

# Drush/scripts tooling and the lockfile, copied when present
TOOLING_PATHS = ("drush", "scripts", "composer.lock")

# Checked in order; the first real (non-symlink) directory is the docroot
DOCROOT_CANDIDATES = ("docroot", "web")

# Public-facing pointers some hosts expect next to the docroot
SYMLINK_CANDIDATES = ("public_html",)

DEPENDENCY_MANIFEST = "composer.json"
CONFIG_DIRECTORY = "config"


def detect_docroot(root: Path, configured: str | None = None) -> str | None:
    """Return the docroot directory name, or None if none is found."""
    if configured:
        return configured
    for candidate in DOCROOT_CANDIDATES:
        path = root / candidate
        if path.exists() and not path.is_symlink():
            return candidate
    return None


def _exists(path: Path) -> bool:
    # lexists: a dangling symlink is still a path to copy verbatim
    return path.exists() or path.is_symlink()


@dataclass(frozen=True, slots=True)
class ArtifactManifest:
    """Paths, relative to the project root, considered part of the artifact."""

    root: Path
    required: tuple[str, ...]
    tooling: tuple[str, ...]
    docroot: str | None
    optional: tuple[str, ...]
    includes: tuple[str, ...]

    @classmethod
    def build(cls, root: Path, config: ArtifactConfig) -> "ArtifactManifest":
        docroot = detect_docroot(root, config.docroot)
        optional = [
            candidate
            for candidate in (*DOCROOT_CANDIDATES, *SYMLINK_CANDIDATES)
            if _exists(root / candidate)
        ]
        if docroot is not None and docroot not in optional and _exists(root / docroot):
            optional.insert(0, docroot)
        return cls(
            root=root,
            required=REQUIRED_PATHS,
            tooling=tuple(p for p in TOOLING_PATHS if _exists(root / p)),
            docroot=docroot,
            optional=tuple(optional),
            includes=config.include,
        )

    def copy_plan(self) -> tuple[str, ...]:
        """Paths to copy, in copy order, without duplicates."""
        ordered: dict[str, None] = {}
        for path in (*self.required, *self.tooling, *self.optional, *self.includes):
            ordered.setdefault(path, None)
        return tuple(ordered)

    def relevant_paths(self) -> tuple[str, ...]:
        """Paths whose uncommitted changes would leak into the artifact."""
        return self.copy_plan()
