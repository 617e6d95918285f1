"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which renders template trees from the
bundled ``modforge/scaffolder/templates/`` directory (or any other directory)
into an in-memory ``{relative_path: content}`` map.  Files ending in ``.j2``
are rendered and lose the suffix; every other file is copied verbatim.

Rendering uses ``StrictUndefined`` so a template that needs a context value the
project does not provide fails loudly instead of emitting an empty string.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, FileSystemLoader, StrictUndefined, UndefinedError, select_autoescape

from modforge.errors import MissingContextFieldError


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"

TEMPLATE_SUFFIX = ".j2"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    ``template_dir`` is the loader root used for ``{% include %}`` and
    ``{% import %}``; trees passed to :meth:`render_tree` may live anywhere.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter

    # -- String rendering --------------------------------------------------

    def render_string(
        self, template_string: str, context: dict[str, Any], name: str = "<string>"
    ) -> str:
        """Render an inline template string with the provided context.

        Raises:
            MissingContextFieldError: If the template references a value the
                context does not define.
        """
        try:
            template = self.env.from_string(template_string)
            return template.render(**context)
        except UndefinedError as exc:
            raise MissingContextFieldError(name, exc.message or str(exc)) from exc

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template relative to the template directory."""
        try:
            return self.env.get_template(template_path).render(**context)
        except UndefinedError as exc:
            raise MissingContextFieldError(template_path, exc.message or str(exc)) from exc

    # -- Tree rendering ----------------------------------------------------

    def render_tree(
        self,
        directory: str | Path,
        context: dict[str, Any],
        *,
        exclude: Iterable[str] = (),
    ) -> dict[str, str]:
        """Render every file below *directory* into ``{relative_path: content}``.

        The directory structure is preserved: ``lib/main.dart.j2`` becomes
        ``lib/main.dart``.  Paths use forward slashes and are returned in
        sorted order.  A missing directory yields an empty map.

        Args:
            directory: Root of the template tree.
            context: Template context variables.
            exclude: Relative paths (with or without the ``.j2`` suffix) to
                leave out, e.g. ``["pubspec.partial.yaml"]``.
        """
        root = Path(directory)
        if not root.is_dir():
            return {}

        excluded = set(exclude)
        files: dict[str, str] = {}

        for source in sorted(p for p in root.rglob("*") if p.is_file()):
            rel_str = source.relative_to(root).as_posix()
            output_name = _strip_suffix(rel_str)
            if rel_str in excluded or output_name in excluded:
                continue

            if rel_str.endswith(TEMPLATE_SUFFIX):
                raw = source.read_text(encoding="utf-8")
                files[output_name] = self.render_string(raw, context, name=str(source))
            else:
                files[output_name] = source.read_text(encoding="utf-8")

        return files

    # -- Utility -----------------------------------------------------------

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix()
            for p in search_dir.rglob(f"*{TEMPLATE_SUFFIX}")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word[:1].upper() + word[1:] for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def _strip_suffix(rel_path: str) -> str:
    if rel_path.endswith(TEMPLATE_SUFFIX):
        return rel_path[: -len(TEMPLATE_SUFFIX)]
    return rel_path
