"""Structured error taxonomy for resolution, assembly, and commit.

Every error carries a machine-checkable :class:`ErrorKind` plus the offending
module ids or paths as attributes, so callers can branch on ``exc.kind``
instead of parsing messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class ErrorKind(str, Enum):
    """Classification of scaffold failures."""
    UNKNOWN_MODULE = "unknown_module"
    MISSING_DEPENDENCY = "missing_dependency"
    CONFLICTING_MODULES = "conflicting_modules"
    CYCLIC_DEPENDENCY = "cyclic_dependency"
    MISSING_CONTEXT_FIELD = "missing_context_field"
    FILE_SYSTEM = "file_system"
    INVALID_MANIFEST = "invalid_manifest"
    MANIFEST_FORMAT = "manifest_format"


class ScaffoldError(Exception):
    """Base class for every error raised by modforge."""

    kind: ErrorKind


# ---------------------------------------------------------------------------
# Resolution-time errors (fatal to the whole run)
# ---------------------------------------------------------------------------


class UnknownModuleError(ScaffoldError):
    """A selected or always-included id is not in the registry."""

    kind = ErrorKind.UNKNOWN_MODULE

    def __init__(self, module_id: str) -> None:
        self.module_id = module_id
        super().__init__(f"Module '{module_id}' not found in registry")


class MissingDependencyError(ScaffoldError):
    """A module's ``requires`` points at an id the registry does not know."""

    kind = ErrorKind.MISSING_DEPENDENCY

    def __init__(self, module_id: str, dependency_id: str) -> None:
        self.module_id = module_id
        self.dependency_id = dependency_id
        super().__init__(
            f"Module '{module_id}' requires '{dependency_id}', "
            f"but '{dependency_id}' was not found in registry"
        )


class ConflictingModulesError(ScaffoldError):
    """Two modules in the closure declare each other incompatible."""

    kind = ErrorKind.CONFLICTING_MODULES

    def __init__(self, module_id: str, conflict_id: str) -> None:
        self.module_id = module_id
        self.conflict_id = conflict_id
        super().__init__(
            f"Module '{module_id}' conflicts with '{conflict_id}' "
            f"-- they cannot be used together"
        )


class CyclicDependencyError(ScaffoldError):
    """The closure cannot be ordered; ``module_ids`` is the unsortable subset."""

    kind = ErrorKind.CYCLIC_DEPENDENCY

    def __init__(self, module_ids: Iterable[str]) -> None:
        self.module_ids = tuple(sorted(module_ids))
        super().__init__(
            "Circular dependency detected among modules: "
            + ", ".join(self.module_ids)
        )


# ---------------------------------------------------------------------------
# Assembly-time errors (fatal before commit)
# ---------------------------------------------------------------------------


class MissingContextFieldError(ScaffoldError):
    """A template referenced a context value that was absent or invalid."""

    kind = ErrorKind.MISSING_CONTEXT_FIELD

    def __init__(self, template: str, detail: str) -> None:
        self.template = template
        self.detail = detail
        super().__init__(f"Template '{template}' could not be rendered: {detail}")


class ManifestFormatError(ScaffoldError):
    """The project manifest is missing or not a YAML mapping."""

    kind = ErrorKind.MANIFEST_FORMAT

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Project manifest '{path}' is invalid: {detail}")


class InvalidManifestError(ScaffoldError):
    """A module manifest failed validation while being registered."""

    kind = ErrorKind.INVALID_MANIFEST

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Module manifest from '{source}' is invalid: {detail}")


# ---------------------------------------------------------------------------
# Commit-time errors (per file, never raised out of a commit)
# ---------------------------------------------------------------------------


class FileSystemError(ScaffoldError):
    """Writing one file failed; attached to that path in the commit result."""

    kind = ErrorKind.FILE_SYSTEM

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Could not write '{path}': {detail}")
