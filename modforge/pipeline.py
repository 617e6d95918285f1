"""modforge scaffold pipeline.

Drives one scaffold run end to end:

1. RESOLVE  -- expand the configured module selection into a dependency order.
2. ASSEMBLE -- render base and module templates, reconcile dependencies, and
               patch ``pubspec.yaml``.
3. COMMIT   -- write the file map under the configured overwrite policy.
4. POLISH   -- run ``dart format`` / ``flutter pub get`` / ``build_runner``.

Steps 1 and 2 complete before anything touches the disk, so resolution and
assembly errors never leave a half-written project behind.

Usage::

    python -m modforge modforge.yaml --output ./my_app
    python -m modforge modforge.yaml --dry-run
    python -m modforge modforge.yaml --list
"""

from __future__ import annotations

import asyncio
import json
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError
from rich.panel import Panel

from modforge.config import Config, OverwritePolicy
from modforge.context import ProjectContext
from modforge.errors import FileSystemError, ScaffoldError
from modforge.modules.definitions import build_default_registry
from modforge.modules.merger import MergedContributions
from modforge.modules.registry import ModuleRegistry
from modforge.modules.resolver import ModuleResolver
from modforge.scaffolder.assembler import ScaffoldAssembler
from modforge.scaffolder.committer import (
    CommitPolicy,
    CommitResult,
    ConflictResolver,
    FileCommitter,
)
from modforge.scaffolder.post_processors import run_post_processors, select_post_processors
from modforge.scaffolder.templates import TemplateRenderer
from modforge.utils import (
    console,
    create_progress,
    format_duration,
    print_error,
    print_module_table,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class ScaffoldPlan:
    """What a run would write, computed without touching the disk."""

    resolved_modules: list[str]
    rendered_modules: list[str]
    merged: MergedContributions
    files: dict[str, str]


@dataclass
class ScaffoldResult:
    """Outcome of :meth:`ScaffoldPipeline.run`."""

    resolved_modules: list[str] = field(default_factory=list)
    files_written: list[str] = field(default_factory=list)
    files_skipped: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    file_errors: dict[str, FileSystemError] = field(default_factory=dict)
    post_processors_run: list[str] = field(default_factory=list)
    post_processor_errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.file_errors


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Resolve, assemble, commit, and post-process one project.

    Attributes:
        config: The run configuration.
        registry: Module registry; defaults to the built-in catalog.
        on_conflict: Optional resolver consulted for existing files when the
            overwrite policy is ``ask``.
    """

    def __init__(
        self,
        config: Config,
        registry: ModuleRegistry | None = None,
        renderer: TemplateRenderer | None = None,
        assembler: ScaffoldAssembler | None = None,
        committer: FileCommitter | None = None,
        on_conflict: ConflictResolver | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or build_default_registry()
        self.context = ProjectContext.from_config(config)
        self.resolver = ModuleResolver(self.registry)
        self.assembler = assembler or ScaffoldAssembler(
            renderer or TemplateRenderer(),
            known_module_ids=[m.id for m in self.registry],
        )
        self.committer = committer or FileCommitter()
        self.on_conflict = on_conflict

    # ------------------------------------------------------------------
    # Planning (pure)
    # ------------------------------------------------------------------

    def selected_module_ids(self) -> list[str]:
        """Configured module ids that the registry knows about.

        Unknown ids are reported and dropped; always-included modules are
        added later by the resolver.
        """
        selected = []
        for module_id in self.config.selected_module_ids():
            if self.registry.has(module_id):
                selected.append(module_id)
            else:
                print_warning(f"Ignoring unknown module '{module_id}' in configuration")
        return selected

    def plan(self) -> ScaffoldPlan:
        """Resolve and assemble without writing anything.

        Raises:
            ScaffoldError: Any resolution or assembly error.
        """
        resolved = self.resolver.resolve(self.selected_module_ids())
        assembly = self.assembler.build(resolved, self.context)
        return ScaffoldPlan(
            resolved_modules=resolved.ids,
            rendered_modules=assembly.rendered_modules,
            merged=assembly.merged,
            files=assembly.as_mapping(),
        )

    def module_statuses(self) -> list[tuple[str, str, str]]:
        """``(id, status, options)`` for every optional module.

        A configured module is ``enabled``; one pulled in only through another
        module's ``requires`` is ``required``.  Anything else is ``disabled``.
        """
        selected = self.selected_module_ids()
        resolved = set(self.resolver.resolve(selected).ids)
        rows = []
        for module in self.registry.get_optional():
            if module.id in selected:
                status = "enabled"
            elif module.id in resolved:
                status = "required"
            else:
                status = "disabled"
            options = self.context.module_options(module.id) if status != "disabled" else {}
            details = ", ".join(f"{key}: {value}" for key, value in options.items())
            rows.append((module.id, status, details))
        return rows

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    async def run(self) -> ScaffoldResult:
        """Plan, commit, and post-process.

        Resolution and assembly errors propagate before any file is written;
        per-file write errors are collected in the result.
        """
        plan = self.plan()
        console.print(
            f"[cyan]Resolved modules:[/cyan] {', '.join(plan.resolved_modules) or 'none'}"
        )

        scaffold = self.config.scaffold
        policy = CommitPolicy(
            overwrite=scaffold.overwrite,
            dry_run=scaffold.dry_run,
            on_conflict=self.on_conflict,
        )
        commit = await self.committer.commit(plan.files, self.config.output_dir, policy)
        result = _result_from_commit(plan, commit)

        steps = select_post_processors(scaffold)
        if steps and not scaffold.dry_run and result.success:
            with create_progress() as progress:
                task = progress.add_task("Running post-processors...", total=None)
                outcomes = await run_post_processors(steps, self.config.output_dir)
                progress.update(task, completed=True)
            for outcome in outcomes:
                if outcome.success:
                    result.post_processors_run.append(outcome.name)
                else:
                    result.post_processor_errors.append(outcome.error)

        return result

    def print_summary(self, result: ScaffoldResult, elapsed: float) -> None:
        """Print the final summary panel and any warnings."""
        label = "Dry run" if self.config.scaffold.dry_run else "Written"
        print_summary_table(
            {
                "Project": self.config.project.name,
                "Output": str(self.config.output_dir.resolve()),
                "Modules": ", ".join(result.resolved_modules) or "none",
                label: str(len(result.files_written)),
                "Skipped": str(len(result.files_skipped)),
                "Conflicts": str(len(result.conflicts)),
                "Errors": str(len(result.file_errors)),
                "Duration": format_duration(elapsed),
            },
            title="Scaffold Summary",
        )
        for path in result.conflicts:
            print_warning(f"  Conflict (left untouched): {path}")
        for error in result.file_errors.values():
            print_error(f"  {error}")
        for message in result.post_processor_errors:
            print_warning(f"  {message}")


def _result_from_commit(plan: ScaffoldPlan, commit: CommitResult) -> ScaffoldResult:
    return ScaffoldResult(
        resolved_modules=plan.resolved_modules,
        files_written=commit.written,
        files_skipped=commit.skipped,
        conflicts=commit.conflicts,
        file_errors=commit.errors,
    )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m modforge``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="modforge -- modular Flutter project scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m modforge modforge.yaml\n"
            "  python -m modforge modforge.yaml -o ./my_app --overwrite never\n"
            "  python -m modforge modforge.yaml --dry-run\n"
            "  python -m modforge modforge.yaml --list\n"
        ),
    )
    parser.add_argument("config", help="Path to the YAML or JSON project configuration")
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Output directory (default: output_dir from the config)",
    )
    parser.add_argument(
        "--overwrite",
        choices=[p.value for p in OverwritePolicy],
        default=None,
        help="Policy for files that already exist",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show what would be written")
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the optional modules and their status, then exit",
    )

    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if not config_path.exists():
        console.print(f"[bold red]Error:[/bold red] Config file not found: {config_path}")
        sys.exit(1)

    try:
        config = Config.load(config_path)
    except (ValidationError, yaml.YAMLError, json.JSONDecodeError) as exc:
        print_error(f"Invalid config {config_path}: {exc}")
        sys.exit(1)

    if args.list:
        pipeline = ScaffoldPipeline(config)
        try:
            rows = pipeline.module_statuses()
        except ScaffoldError as exc:
            print_error(f"Error [{exc.kind.value}]: {exc}")
            sys.exit(1)
        print_module_table(rows, title=f"Modules for {config.project.name}")
        active = sum(1 for _, status, _ in rows if status != "disabled")
        console.print(f"{active}/{len(rows)} modules enabled")
        return

    if args.output:
        config.output_dir = Path(args.output)
    if args.overwrite:
        config.scaffold.overwrite = OverwritePolicy(args.overwrite)
    if args.dry_run:
        config.scaffold.dry_run = True

    console.print(Panel(f"[bold]Scaffolding {config.project.name}[/bold]", style="cyan"))
    pipeline = ScaffoldPipeline(config)
    started = time.monotonic()
    try:
        result = asyncio.run(pipeline.run())
    except ScaffoldError as exc:
        print_error(f"Error [{exc.kind.value}]: {exc}")
        sys.exit(1)

    pipeline.print_summary(result, time.monotonic() - started)
    if result.success:
        print_success("Scaffold completed.")
    else:
        print_error("Scaffold finished with errors.")
        sys.exit(1)


if __name__ == "__main__":
    main()
