"""Developer-tool steps run after a project has been written.

Each step shells out to the Flutter/Dart toolchain through
:func:`modforge.utils.run_command`.  Failures never raise: they come back as a
:class:`PostProcessorResult` so the caller can report them next to an
otherwise successful scaffold.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from modforge import utils
from modforge.config import ScaffoldSettings


@dataclass(frozen=True)
class PostProcessor:
    name: str
    command: tuple[str, ...]
    timeout: int = 300


DART_FORMAT = PostProcessor("dart-format", ("dart", "format", "."))
FLUTTER_PUB_GET = PostProcessor("flutter-pub-get", ("flutter", "pub", "get"), timeout=600)
BUILD_RUNNER = PostProcessor(
    "build-runner",
    ("dart", "run", "build_runner", "build", "--delete-conflicting-outputs"),
    timeout=900,
)


@dataclass
class PostProcessorResult:
    name: str
    success: bool
    error: str = ""


def select_post_processors(settings: ScaffoldSettings) -> list[PostProcessor]:
    """Return the enabled steps in execution order.

    ``pub get`` runs before ``build_runner`` because code generation needs the
    resolved packages.
    """
    steps: list[PostProcessor] = []
    if settings.run_dart_format:
        steps.append(DART_FORMAT)
    if settings.run_pub_get:
        steps.append(FLUTTER_PUB_GET)
    if settings.run_build_runner:
        steps.append(BUILD_RUNNER)
    return steps


async def run_post_processor(step: PostProcessor, project_dir: Path) -> PostProcessorResult:
    returncode, _stdout, stderr = await utils.run_command(
        list(step.command), cwd=project_dir, timeout=step.timeout
    )
    if returncode != 0:
        detail = stderr.splitlines()[-1] if stderr else f"exit code {returncode}"
        return PostProcessorResult(step.name, False, f"{step.name} failed: {detail}")
    return PostProcessorResult(step.name, True)


async def run_post_processors(
    steps: list[PostProcessor], project_dir: Path
) -> list[PostProcessorResult]:
    """Run *steps* sequentially in *project_dir*; later steps run even if one fails."""
    results = []
    for step in steps:
        results.append(await run_post_processor(step, project_dir))
    return results
