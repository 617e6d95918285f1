"""Module model, registry, resolver, and contribution merger.

Quick usage::

    from modforge.modules import ContributionMerger, ModuleResolver, build_default_registry

    registry = build_default_registry()
    resolved = ModuleResolver(registry).resolve({"auth", "api"})
    merged = ContributionMerger().merge(resolved)
"""

from modforge.modules.definitions import BUILTIN_MODULES, build_default_registry
from modforge.modules.merger import (
    ContributionMerger,
    MergedContributions,
    pick_newer_version,
)
from modforge.modules.models import (
    DependencyEntry,
    ModuleContributions,
    ModuleDescriptor,
)
from modforge.modules.registry import ModuleRegistry
from modforge.modules.resolver import ModuleResolver, ResolvedSet

__all__ = [
    "BUILTIN_MODULES",
    "ContributionMerger",
    "DependencyEntry",
    "MergedContributions",
    "ModuleContributions",
    "ModuleDescriptor",
    "ModuleRegistry",
    "ModuleResolver",
    "ResolvedSet",
    "build_default_registry",
    "pick_newer_version",
]
