"""Pydantic v2 models describing scaffolding modules.

A :class:`ModuleDescriptor` is created once when a module is registered and is
never mutated afterwards.  The resolver, merger, and assembler only ever hold
read references to descriptors owned by the registry.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# A literal version string (``"^1.2.0"``) or an opaque structured constraint
# (``{"sdk": "flutter"}``, ``{"git": {...}}``, ``{"path": "../pkg"}``).
DependencyEntry = Union[str, dict[str, Any]]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class QuestionType(str, Enum):
    """Input style for a module configuration question."""
    TEXT = "text"
    SELECT = "select"
    CONFIRM = "confirm"


# ---------------------------------------------------------------------------
# Contribution models
# ---------------------------------------------------------------------------

class QuestionOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


class ModuleQuestion(BaseModel):
    """A configuration question a front-end may ask when enabling a module."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Config key the answer is stored under")
    message: str
    type: QuestionType = QuestionType.TEXT
    options: list[QuestionOption] = Field(default_factory=list)
    default: Optional[Union[str, bool]] = None


class ProviderContribution(BaseModel):
    """A Riverpod provider the module exposes."""
    model_config = ConfigDict(frozen=True)

    name: str
    import_path: str


class RouteContribution(BaseModel):
    """A go_router route the module adds."""
    model_config = ConfigDict(frozen=True)

    path: str
    name: str
    import_path: str


class ModuleContributions(BaseModel):
    """Everything a module folds into the generated project."""
    model_config = ConfigDict(frozen=True)

    dependencies: dict[str, DependencyEntry] = Field(
        default_factory=dict, description="Runtime dependencies for pubspec.yaml"
    )
    dev_dependencies: dict[str, DependencyEntry] = Field(
        default_factory=dict, description="Development dependencies for pubspec.yaml"
    )
    framework: dict[str, Any] = Field(
        default_factory=dict,
        description="Fragment merged into the manifest's ``flutter:`` section",
    )
    template_dir: Optional[str] = Field(
        default=None,
        description="Template tree for this module, relative to the modules template root",
    )
    providers: list[ProviderContribution] = Field(default_factory=list)
    routes: list[RouteContribution] = Field(default_factory=list)
    env_vars: list[str] = Field(default_factory=list)

    @field_validator("dependencies", "dev_dependencies", mode="before")
    @classmethod
    def _coerce_versions(cls, value: Any) -> Any:
        """YAML may hand us numbers or nulls for versions; store them as text."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        coerced: dict[str, Any] = {}
        for name, version in value.items():
            if isinstance(version, dict):
                coerced[str(name)] = version
            elif version is None:
                coerced[str(name)] = "any"
            else:
                coerced[str(name)] = str(version)
        return coerced


# ---------------------------------------------------------------------------
# Module descriptor
# ---------------------------------------------------------------------------

class ModuleDescriptor(BaseModel):
    """Immutable description of one scaffolding module."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Unique kebab-case module id")
    name: str = Field(default="", description="Human-readable module name")
    description: str = Field(default="")
    requires: tuple[str, ...] = Field(
        default=(), description="Ids this module depends on, in declaration order"
    )
    conflicts_with: tuple[str, ...] = Field(
        default=(), description="Ids that cannot be used alongside this module"
    )
    always_included: bool = Field(
        default=False, description="Part of every resolution regardless of selection"
    )
    phase: int = Field(default=1, ge=1, le=4, description="Delivery phase the module belongs to")
    contributions: ModuleContributions = Field(default_factory=ModuleContributions)
    questions: list[ModuleQuestion] = Field(default_factory=list)
    is_enabled: Optional[Callable[[Any], bool]] = Field(
        default=None,
        exclude=True,
        description="Predicate over the project context; templates only render when true",
    )

    @field_validator("requires", "conflicts_with", mode="before")
    @classmethod
    def _dedupe_ids(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        seen: list[str] = []
        for item in value:
            if item not in seen:
                seen.append(item)
        return tuple(seen)

    def enabled_for(self, context: Any) -> bool:
        """Return whether this module's templates should materialise for *context*."""
        if self.is_enabled is None:
            return True
        return bool(self.is_enabled(context))
