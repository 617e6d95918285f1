"""Scaffold assembly -- render every module into one ``{path: content}`` map.

Assembly is two-phase.  First the base template tree and then every enabled
module (in resolution order) are rendered as text; a later module's file
replaces an earlier one at the same path.  Then the single project manifest
(``pubspec.yaml``) is parsed and patched with the reconciled dependency
manifest, because reconciliation needs every module's contribution, not just
the files that happen to collide.

The manifest path is never replaced wholesale.  A module that ships
``pubspec.partial.yaml`` (or its own ``pubspec.yaml``) has its
``dependencies``, ``dev_dependencies`` and ``flutter`` sections folded in
through the :class:`ContributionMerger`; any other top-level keys are
deep-merged into the base document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from pydantic import ValidationError

from modforge.context import ProjectContext
from modforge.errors import ManifestFormatError
from modforge.modules.merger import ContributionMerger, MergedContributions
from modforge.modules.models import ModuleContributions, ModuleDescriptor
from modforge.modules.resolver import ResolvedSet

from .templates import DEFAULT_TEMPLATE_DIR, TemplateRenderer

MANIFEST_PATH = "pubspec.yaml"
PARTIAL_MANIFEST_PATH = "pubspec.partial.yaml"

# Sections of the manifest that are owned by the contribution merger.
_MERGED_SECTIONS = ("dependencies", "dev_dependencies", "flutter")


@dataclass
class GeneratedFile:
    """One output file; ``source_module`` is ``None`` for base templates."""

    relative_path: str
    content: str
    source_module: Optional[str] = None


@dataclass
class AssemblyResult:
    """Everything produced by :meth:`ScaffoldAssembler.build`."""

    files: dict[str, GeneratedFile] = field(default_factory=dict)
    merged: MergedContributions = field(default_factory=MergedContributions)
    rendered_modules: list[str] = field(default_factory=list)
    skipped_modules: list[str] = field(default_factory=list)

    def as_mapping(self) -> dict[str, str]:
        """Return the plain ``{relative_path: content}`` map."""
        return {path: f.content for path, f in self.files.items()}


class ScaffoldAssembler:
    """Renders base and module templates and patches the project manifest."""

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        *,
        base_dir: str | Path | None = None,
        modules_dir: str | Path | None = None,
        merger: ContributionMerger | None = None,
        known_module_ids: Iterable[str] = (),
        manifest_path: str = MANIFEST_PATH,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.base_dir = Path(base_dir) if base_dir else DEFAULT_TEMPLATE_DIR / "base"
        self.modules_dir = Path(modules_dir) if modules_dir else DEFAULT_TEMPLATE_DIR / "modules"
        self.merger = merger or ContributionMerger()
        self.known_module_ids = list(known_module_ids)
        self.manifest_path = manifest_path

    # -- Public API --------------------------------------------------------

    def assemble(self, resolved: ResolvedSet, context: ProjectContext) -> dict[str, str]:
        """Return the final ``{relative_path: content}`` map for *resolved*.

        Raises:
            MissingContextFieldError: A template needs an absent context value.
            ManifestFormatError: The base tree has no parseable manifest.
        """
        return self.build(resolved, context).as_mapping()

    def build(self, resolved: ResolvedSet, context: ProjectContext) -> AssemblyResult:
        """Like :meth:`assemble` but keeps provenance and the merged manifest."""
        resolved_ids = [m.id for m in resolved]
        known = self.known_module_ids or resolved_ids
        template_ctx = context.as_template_context(known, resolved_ids)
        result = AssemblyResult()

        # 1. Base templates
        for path, content in self.renderer.render_tree(self.base_dir, template_ctx).items():
            result.files[path] = GeneratedFile(path, content)
        if self.manifest_path not in result.files:
            raise ManifestFormatError(self.manifest_path, "base templates do not produce it")

        # 2. Module templates, last write wins except for the manifest
        partials: dict[str, ModuleContributions] = {}
        extra_sections: list[dict[str, Any]] = []
        for module in resolved:
            if not module.enabled_for(context):
                result.skipped_modules.append(module.id)
                continue

            rendered = self.renderer.render_tree(self._module_dir(module), template_ctx)
            fragments = [
                rendered.pop(name)
                for name in (PARTIAL_MANIFEST_PATH, self.manifest_path)
                if name in rendered
            ]
            for path, content in rendered.items():
                result.files[path] = GeneratedFile(path, content, module.id)

            if fragments:
                contributions, rest = self._parse_fragments(module.id, fragments)
                partials[module.id] = contributions
                extra_sections.append(rest)
            result.rendered_modules.append(module.id)

        # 3. Reconcile dependencies across every module, then patch the manifest
        result.merged = self.merger.merge(resolved, extra=partials)
        manifest = result.files[self.manifest_path]
        result.files[self.manifest_path] = GeneratedFile(
            self.manifest_path,
            self._patch_manifest(manifest.content, result.merged, extra_sections),
        )
        return result

    # -- Helpers -----------------------------------------------------------

    def _module_dir(self, module: ModuleDescriptor) -> Path:
        template_dir = module.contributions.template_dir
        if template_dir is None:
            return self.modules_dir / module.id
        path = Path(template_dir)
        return path if path.is_absolute() else self.modules_dir / path

    def _parse_fragments(
        self, module_id: str, fragments: list[str]
    ) -> tuple[ModuleContributions, dict[str, Any]]:
        """Split manifest fragments into mergeable contributions and other keys."""
        deps: dict[str, Any] = {}
        dev_deps: dict[str, Any] = {}
        framework: dict[str, Any] = {}
        rest: dict[str, Any] = {}

        for raw in fragments:
            doc = _load_mapping(raw, f"{module_id}/{PARTIAL_MANIFEST_PATH}")
            deps.update(doc.get("dependencies") or {})
            dev_deps.update(doc.get("dev_dependencies") or {})
            framework.update(doc.get("flutter") or {})
            rest = _deep_merge(rest, {k: v for k, v in doc.items() if k not in _MERGED_SECTIONS})

        try:
            contributions = ModuleContributions(
                dependencies=deps, dev_dependencies=dev_deps, framework=framework
            )
        except ValidationError as exc:
            raise ManifestFormatError(f"{module_id}/{PARTIAL_MANIFEST_PATH}", str(exc)) from exc
        return contributions, rest

    def _patch_manifest(
        self,
        content: str,
        merged: MergedContributions,
        extra_sections: list[dict[str, Any]],
    ) -> str:
        """Splice *merged* into the manifest without removing base keys."""
        if merged.is_empty() and not any(extra_sections):
            return content

        doc = _load_mapping(content, self.manifest_path)
        for section in extra_sections:
            doc = _deep_merge(doc, section)

        for key, entries in (
            ("dependencies", merged.dependencies),
            ("dev_dependencies", merged.dev_dependencies),
            ("flutter", merged.framework),
        ):
            if not entries:
                continue
            existing = doc.get(key) or {}
            doc[key] = {**existing, **entries}

        return yaml.safe_dump(
            doc, sort_keys=False, default_flow_style=False, allow_unicode=True, width=120
        )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _load_mapping(raw: str, name: str) -> dict[str, Any]:
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ManifestFormatError(name, f"not valid YAML: {exc}") from exc
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ManifestFormatError(name, "top level must be a mapping")
    return doc


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *incoming* into a copy of *base*; incoming wins on leaves."""
    merged = dict(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged
