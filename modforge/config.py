"""modforge configuration.

Centralised, typed configuration for a scaffold run.  All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from YAML, JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import json
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, Field, field_validator


class OverwritePolicy(str, Enum):
    """What to do when a target file already exists."""
    ASK = "ask"
    ALWAYS = "always"
    NEVER = "never"


class Platform(str, Enum):
    """Flutter target platforms."""
    ANDROID = "android"
    IOS = "ios"
    WEB = "web"
    MACOS = "macos"
    WINDOWS = "windows"
    LINUX = "linux"


# ``False`` disables a module; a mapping enables it with those options.
ModuleSetting = Union[Literal[False], dict[str, Any]]

_PACKAGE_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


class ProjectSettings(BaseModel):
    """Identity of the generated project."""

    name: str = Field(..., min_length=1, description="Dart package name of the generated app")
    org_id: str = Field(default="com.example", description="Reverse-domain organisation id")
    description: str = Field(default="")
    min_sdk_version: str | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def _check_package_name(cls, value: str) -> str:
        """Dart package names must be snake_case and start with a letter."""
        if not _PACKAGE_NAME.fullmatch(value):
            raise ValueError(f"'{value}' is not a snake_case package name (e.g. my_app)")
        return value


class ScaffoldSettings(BaseModel):
    """Commit and post-processing knobs."""

    overwrite: OverwritePolicy = Field(
        default=OverwritePolicy.ASK, description="Policy for files that already exist"
    )
    dry_run: bool = Field(default=False, description="Classify files without writing them")
    run_dart_format: bool = Field(default=True)
    run_pub_get: bool = Field(default=True)
    run_build_runner: bool = Field(default=False)


class Config(BaseModel):
    """Global modforge configuration.

    Instances are typically created once by the CLI (from a YAML file) and then
    handed to :class:`modforge.pipeline.ScaffoldPipeline`.
    """

    project: ProjectSettings
    platforms: list[Platform] = Field(
        default_factory=lambda: [Platform.ANDROID, Platform.IOS]
    )
    modules: dict[str, ModuleSetting] = Field(
        default_factory=dict,
        description="Module id -> False or option mapping",
    )
    scaffold: ScaffoldSettings = Field(default_factory=ScaffoldSettings)
    output_dir: Path = Field(default=Path("."))

    @field_validator("modules", mode="before")
    @classmethod
    def _normalise_modules(cls, value: Any) -> Any:
        """Accept ``true``/``null`` shorthands and ``enabled: false`` mappings."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            return value
        normalised: dict[str, Any] = {}
        for module_id, setting in value.items():
            if setting is True or setting is None:
                normalised[module_id] = {}
            elif isinstance(setting, dict):
                options = {k: v for k, v in setting.items() if k != "enabled"}
                normalised[module_id] = options if setting.get("enabled", True) else False
            else:
                normalised[module_id] = setting
        return normalised

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def selected_module_ids(self) -> list[str]:
        """Ids of modules enabled in ``modules``, in declaration order."""
        return [module_id for module_id, setting in self.modules.items() if setting is not False]

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration as YAML (or JSON for ``.json`` paths).

        Returns:
            The path that was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        if target.suffix == ".json":
            target.write_text(json.dumps(data, indent=2), encoding="utf-8")
        else:
            target.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a configuration file.

        ``.json`` files are parsed as JSON, everything else as YAML.  A relative
        ``output_dir`` is resolved against the directory holding the file.

        Raises:
            FileNotFoundError: If *path* does not exist.
            pydantic.ValidationError: If the content is not a valid config.
        """
        file_path = Path(path)
        raw = file_path.read_text(encoding="utf-8")
        data = json.loads(raw) if file_path.suffix == ".json" else yaml.safe_load(raw)
        config = cls.model_validate(data or {})
        if not config.output_dir.is_absolute():
            config.output_dir = file_path.parent / config.output_dir
        return config

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (``MODFORGE_PROJECT_NAME`` is required):
            MODFORGE_PROJECT_NAME, MODFORGE_ORG_ID, MODFORGE_DESCRIPTION,
            MODFORGE_PLATFORMS, MODFORGE_MODULES, MODFORGE_OUTPUT_DIR,
            MODFORGE_OVERWRITE, MODFORGE_DRY_RUN.
        """
        project_kwargs: dict[str, Any] = {"name": os.environ.get("MODFORGE_PROJECT_NAME", "")}
        if os.environ.get("MODFORGE_ORG_ID"):
            project_kwargs["org_id"] = os.environ["MODFORGE_ORG_ID"]
        if os.environ.get("MODFORGE_DESCRIPTION"):
            project_kwargs["description"] = os.environ["MODFORGE_DESCRIPTION"]

        scaffold_kwargs: dict[str, Any] = {}
        if os.environ.get("MODFORGE_OVERWRITE"):
            scaffold_kwargs["overwrite"] = os.environ["MODFORGE_OVERWRITE"]
        if os.environ.get("MODFORGE_DRY_RUN"):
            scaffold_kwargs["dry_run"] = os.environ["MODFORGE_DRY_RUN"].lower() in ("1", "true", "yes")

        kwargs: dict[str, Any] = {}
        if os.environ.get("MODFORGE_PLATFORMS"):
            kwargs["platforms"] = _split_csv(os.environ["MODFORGE_PLATFORMS"])

        return cls(
            project=ProjectSettings(**project_kwargs),
            modules={m: {} for m in _split_csv(os.environ.get("MODFORGE_MODULES", ""))},
            scaffold=ScaffoldSettings(**scaffold_kwargs),
            output_dir=Path(os.environ.get("MODFORGE_OUTPUT_DIR", ".")),
            **kwargs,
        )


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]
