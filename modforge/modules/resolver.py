"""Module resolution -- closure, conflict checks, and deterministic ordering.

Given the ids a user selected, :class:`ModuleResolver` adds every
always-included module, expands ``requires`` transitively, rejects conflicting
combinations, and returns the closure in dependency order (dependencies before
dependents).  Ties are broken lexicographically so the same inputs always yield
the same order.
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import Iterable, Iterator

from modforge.errors import (
    ConflictingModulesError,
    CyclicDependencyError,
    MissingDependencyError,
    UnknownModuleError,
)

from .models import ModuleDescriptor
from .registry import ModuleRegistry


@dataclass(frozen=True)
class ResolvedSet:
    """Modules in dependency order; every ``requires`` id appears earlier."""

    ordered: tuple[ModuleDescriptor, ...]

    @property
    def ids(self) -> list[str]:
        return [m.id for m in self.ordered]

    def __iter__(self) -> Iterator[ModuleDescriptor]:
        return iter(self.ordered)

    def __len__(self) -> int:
        return len(self.ordered)

    def __contains__(self, module_id: object) -> bool:
        return any(m.id == module_id for m in self.ordered)


class ModuleResolver:
    """Resolves a module selection against an injected :class:`ModuleRegistry`."""

    def __init__(self, registry: ModuleRegistry) -> None:
        self.registry = registry

    def resolve(self, selected_ids: Iterable[str]) -> ResolvedSet:
        """Resolve *selected_ids* into a topologically sorted :class:`ResolvedSet`.

        Raises:
            UnknownModuleError: A selected or always-included id is unknown.
            MissingDependencyError: A module requires an unregistered id.
            ConflictingModulesError: Two modules in the closure conflict.
            CyclicDependencyError: The closure contains a cycle.
        """
        ids: set[str] = set(selected_ids)
        ids.update(m.id for m in self.registry.get_always_included())

        for module_id in sorted(ids):
            if not self.registry.has(module_id):
                raise UnknownModuleError(module_id)

        self._add_transitive_dependencies(ids)
        self._check_conflicts(ids)
        return ResolvedSet(tuple(self._topological_sort(ids)))

    # -- Steps -------------------------------------------------------------

    def _add_transitive_dependencies(self, ids: set[str]) -> None:
        """Expand *ids* in place with every module reachable through ``requires``."""
        visited: set[str] = set()
        stack = sorted(ids, reverse=True)

        while stack:
            module_id = stack.pop()
            if module_id in visited:
                continue
            visited.add(module_id)

            for dep_id in self.registry.get(module_id).requires:
                if not self.registry.has(dep_id):
                    raise MissingDependencyError(module_id, dep_id)
                ids.add(dep_id)
                if dep_id not in visited:
                    stack.append(dep_id)

    def _check_conflicts(self, ids: set[str]) -> None:
        for module_id in sorted(ids):
            for conflict_id in self.registry.get(module_id).conflicts_with:
                if conflict_id in ids:
                    raise ConflictingModulesError(module_id, conflict_id)

    def _topological_sort(self, ids: set[str]) -> list[ModuleDescriptor]:
        """Kahn's algorithm with a lexicographically ordered ready queue."""
        in_degree: dict[str, int] = {module_id: 0 for module_id in ids}
        dependents: dict[str, list[str]] = {module_id: [] for module_id in ids}

        for module_id in sorted(ids):
            for dep_id in self.registry.get(module_id).requires:
                if dep_id in ids:
                    in_degree[module_id] += 1
                    dependents[dep_id].append(module_id)

        ready = [module_id for module_id, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        result: list[ModuleDescriptor] = []
        while ready:
            module_id = heapq.heappop(ready)
            result.append(self.registry.get(module_id))
            for dependent in dependents[module_id]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(result) != len(ids):
            sorted_ids = {m.id for m in result}
            raise CyclicDependencyError(i for i in ids if i not in sorted_ids)

        return result
