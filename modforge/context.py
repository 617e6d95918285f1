"""Project context -- the resolved, render-ready view of a :class:`Config`."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel, Field

from modforge.config import Config, ModuleSetting, ScaffoldSettings


class ProjectContext(BaseModel):
    """Everything templates and module enable-predicates may look at."""

    project_name: str
    org_id: str = "com.example"
    description: str = ""
    platforms: list[str] = Field(default_factory=list)
    modules: dict[str, ModuleSetting] = Field(default_factory=dict)
    scaffold: ScaffoldSettings = Field(default_factory=ScaffoldSettings)
    output_dir: Path = Field(default=Path("."))

    @classmethod
    def from_config(cls, config: Config) -> "ProjectContext":
        return cls(
            project_name=config.project.name,
            org_id=config.project.org_id,
            description=config.project.description,
            platforms=[p.value for p in config.platforms],
            modules=dict(config.modules),
            scaffold=config.scaffold,
            output_dir=config.output_dir,
        )

    def is_module_enabled(self, module_id: str) -> bool:
        """A module is enabled unless the configuration sets it to ``False``.

        Unconfigured modules count as enabled, so a module pulled in only
        through another module's ``requires`` still renders its templates.
        """
        return self.modules.get(module_id) is not False

    def module_options(self, module_id: str) -> dict[str, Any]:
        setting = self.modules.get(module_id)
        return dict(setting) if isinstance(setting, dict) else {}

    def as_template_context(
        self,
        known_module_ids: Iterable[str] = (),
        resolved_module_ids: Iterable[str] = (),
    ) -> dict[str, Any]:
        """Build the Jinja2 template context.

        Module ids are exposed under camelCase keys (``deep-linking`` ->
        ``modules.deepLinking``).  Every id in *known_module_ids* is present,
        as ``False`` when disabled, so templates can test it safely.  Ids in
        *resolved_module_ids* the configuration does not mention get an empty
        options mapping.
        """
        modules: dict[str, Any] = {_camel_key(m): False for m in known_module_ids}
        for module_id in resolved_module_ids:
            if self.is_module_enabled(module_id):
                modules[_camel_key(module_id)] = {}
        for module_id, setting in self.modules.items():
            modules[_camel_key(module_id)] = setting if setting is False else dict(setting)

        return {
            "project": {
                "name": self.project_name,
                "org": self.org_id,
                "description": self.description,
            },
            "platforms": {platform: True for platform in self.platforms},
            "modules": modules,
        }


def _camel_key(module_id: str) -> str:
    return re.sub(r"[-_]([a-z0-9])", lambda m: m.group(1).upper(), module_id)
