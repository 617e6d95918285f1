"""Commit an assembled file map to disk under an overwrite policy.

Each file is classified independently as ``written``, ``skipped``,
``conflict`` or ``failed``; there is no cross-file atomicity.  Conflict
callbacks are consulted one path at a time in input order, then the actual
writes for distinct paths run concurrently on worker threads.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Mapping, Optional, Union

from modforge.config import OverwritePolicy
from modforge.errors import FileSystemError

# Called with the absolute path of an existing file; returns ``True`` to
# overwrite it.  May be a plain function or a coroutine function.
ConflictResolver = Callable[[Path], Union[bool, Awaitable[bool]]]


class WriteOutcome(str, Enum):
    """Per-file result of a commit."""
    WRITTEN = "written"
    SKIPPED = "skipped"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class CommitPolicy:
    """How :meth:`FileCommitter.commit` treats existing files."""

    overwrite: OverwritePolicy = OverwritePolicy.ASK
    dry_run: bool = False
    on_conflict: Optional[ConflictResolver] = None


@dataclass
class FileOutcome:
    path: str
    outcome: WriteOutcome
    error: Optional[FileSystemError] = None


@dataclass
class CommitResult:
    """Ordered per-outcome path lists; every input path appears exactly once.

    Paths whose write failed are listed in ``errors`` (not in the three
    outcome lists) with the error attached.
    """

    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    errors: dict[str, FileSystemError] = field(default_factory=dict)
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """``True`` when nothing failed and nothing awaits resolution."""
        return not self.errors and not self.conflicts

    def add(self, outcome: FileOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.outcome is WriteOutcome.WRITTEN:
            self.written.append(outcome.path)
        elif outcome.outcome is WriteOutcome.SKIPPED:
            self.skipped.append(outcome.path)
        elif outcome.outcome is WriteOutcome.CONFLICT:
            self.conflicts.append(outcome.path)
        elif outcome.error is None:
            raise ValueError(f"failed outcome for '{outcome.path}' carries no error")
        else:
            self.errors[outcome.path] = outcome.error


class FileCommitter:
    """Writes a ``{relative_path: content}`` map into a target directory."""

    async def commit(
        self,
        files: Mapping[str, str],
        target_dir: str | Path,
        policy: CommitPolicy | None = None,
    ) -> CommitResult:
        """Commit *files* below *target_dir* according to *policy*.

        Args:
            files: Relative output path -> final file content.
            target_dir: Root directory of the generated project.
            policy: Overwrite policy, dry-run flag, and optional conflict
                resolver.  Defaults to ``ask`` without a resolver.

        Returns:
            A :class:`CommitResult`.  I/O errors are recorded per path and
            never raised.
        """
        policy = policy or CommitPolicy()
        root = Path(target_dir)
        result = CommitResult()

        if policy.dry_run:
            for rel_path in files:
                result.add(FileOutcome(rel_path, WriteOutcome.WRITTEN))
            return result

        # Phase 1: decide, sequentially so interactive resolvers see one
        # prompt at a time.
        decisions: list[FileOutcome] = []
        to_write: list[tuple[int, Path, str]] = []
        for rel_path, content in files.items():
            try:
                target = _target_path(root, rel_path)
                exists = await asyncio.to_thread(target.exists)
                outcome = await self._decide(target, exists, policy)
            except OSError as exc:
                decisions.append(_failed(rel_path, exc))
                continue
            except FileSystemError as exc:
                decisions.append(FileOutcome(rel_path, WriteOutcome.FAILED, exc))
                continue

            decisions.append(FileOutcome(rel_path, outcome))
            if outcome is WriteOutcome.WRITTEN:
                to_write.append((len(decisions) - 1, target, content))

        # Phase 2: write distinct paths concurrently.
        write_errors = await asyncio.gather(
            *(_write_file_async(target, content) for _, target, content in to_write)
        )
        for (index, _, _), error in zip(to_write, write_errors):
            if error is not None:
                decisions[index] = _failed(decisions[index].path, error)

        for decision in decisions:
            result.add(decision)
        return result

    @staticmethod
    async def _decide(target: Path, exists: bool, policy: CommitPolicy) -> WriteOutcome:
        if not exists:
            return WriteOutcome.WRITTEN
        if policy.overwrite is OverwritePolicy.ALWAYS:
            return WriteOutcome.WRITTEN
        if policy.overwrite is OverwritePolicy.NEVER:
            return WriteOutcome.SKIPPED
        if policy.on_conflict is None:
            return WriteOutcome.CONFLICT

        answer = policy.on_conflict(target)
        if inspect.isawaitable(answer):
            answer = await answer
        return WriteOutcome.WRITTEN if answer else WriteOutcome.SKIPPED


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _target_path(root: Path, rel_path: str) -> Path:
    """Join *rel_path* onto *root*, refusing paths that escape it."""
    relative = Path(rel_path)
    if relative.is_absolute() or ".." in relative.parts:
        raise FileSystemError(rel_path, "path escapes the target directory")
    return root / relative


def _failed(rel_path: str, exc: OSError) -> FileOutcome:
    detail = exc.strerror or str(exc)
    return FileOutcome(rel_path, WriteOutcome.FAILED, FileSystemError(rel_path, detail))


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def _write_file_async(path: Path, content: str) -> Optional[OSError]:
    try:
        await asyncio.to_thread(_write_file, path, content)
    except OSError as exc:
        return exc
    return None
