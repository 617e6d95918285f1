"""Contribution merging -- one reconciled dependency manifest per run.

Walks a :class:`ResolvedSet` in order and folds every module's runtime and
development dependencies into a single mapping per bucket.  When two modules
name the same dependency the reconciliation rule is:

* a structured constraint (mapping) always overwrites the recorded entry;
* a plain version string never overwrites a recorded structured constraint;
* between two plain strings the numerically newer one is kept, comparing the
  leading version numbers with any ``^``/``~`` prefix ignored; ties and
  unparseable strings go to the later module.

Disagreements are never errors.  Because resolution order is deterministic,
so is the merged result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .models import DependencyEntry, ModuleContributions, ModuleDescriptor
from .resolver import ResolvedSet

_VERSION_RE = re.compile(r"^\s*[\^~]?\s*(\d+(?:\.\d+)*)")


@dataclass
class MergedContributions:
    """The aggregate of every resolved module's contributions."""

    dependencies: dict[str, DependencyEntry] = field(default_factory=dict)
    dev_dependencies: dict[str, DependencyEntry] = field(default_factory=dict)
    framework: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.dependencies or self.dev_dependencies or self.framework)


# ---------------------------------------------------------------------------
# Version reconciliation
# ---------------------------------------------------------------------------

def parse_version(version: str) -> Optional[tuple[int, ...]]:
    """Return the leading numeric version of *version* as a tuple.

    ``"^1.2.3"`` -> ``(1, 2, 3)``; ``"any"`` -> ``None``.
    """
    match = _VERSION_RE.match(version)
    if match is None:
        return None
    return tuple(int(part) for part in match.group(1).split("."))


def pick_newer_version(existing: str, incoming: str) -> str:
    """Return whichever of two version strings is newer.

    The incoming value wins on a tie or when either side is unparseable.
    """
    old = parse_version(existing)
    new = parse_version(incoming)
    if old is None or new is None:
        return incoming
    width = max(len(old), len(new))
    old += (0,) * (width - len(old))
    new += (0,) * (width - len(new))
    return existing if old > new else incoming


def reconcile_entry(
    existing: Optional[DependencyEntry], incoming: DependencyEntry
) -> DependencyEntry:
    """Apply the reconciliation rule to one dependency name."""
    if existing is None or isinstance(incoming, dict):
        return incoming
    if isinstance(existing, dict):
        return existing
    return pick_newer_version(existing, incoming)


def fold_dependencies(
    target: dict[str, DependencyEntry], incoming: Mapping[str, DependencyEntry]
) -> None:
    """Fold *incoming* into *target* in place, name by name."""
    for name, entry in incoming.items():
        target[name] = reconcile_entry(target.get(name), entry)


# ---------------------------------------------------------------------------
# ContributionMerger
# ---------------------------------------------------------------------------

class ContributionMerger:
    """Folds module contributions into one :class:`MergedContributions`."""

    def merge(
        self,
        resolved: ResolvedSet,
        extra: Optional[Mapping[str, ModuleContributions]] = None,
    ) -> MergedContributions:
        """Merge the contributions of every module in *resolved*.

        Args:
            resolved: Modules in dependency order.
            extra: Optional additional contributions keyed by module id (e.g.
                rendered ``pubspec.partial.yaml`` fragments).  Each is folded
                immediately after the declaring module's own contributions.
        """
        extra = extra or {}
        merged = MergedContributions()
        for module in resolved:
            self._fold(merged, module.contributions)
            if module.id in extra:
                self._fold(merged, extra[module.id])
        return merged

    def merge_modules(self, modules: list[ModuleDescriptor]) -> MergedContributions:
        """Merge an already-ordered list of descriptors."""
        return self.merge(ResolvedSet(tuple(modules)))

    @staticmethod
    def _fold(merged: MergedContributions, contributions: ModuleContributions) -> None:
        fold_dependencies(merged.dependencies, contributions.dependencies)
        fold_dependencies(merged.dev_dependencies, contributions.dev_dependencies)
        merged.framework.update(contributions.framework)
