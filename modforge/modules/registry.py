"""Module registry -- explicit registration of module descriptors.

Descriptors are registered directly from Python (see
:mod:`modforge.modules.definitions`) or deserialised from YAML/JSON module
manifests through :meth:`ModuleDescriptor.model_validate`, which acts as the
typed validation boundary for third-party modules.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping

import yaml
from pydantic import ValidationError

from modforge.errors import InvalidManifestError, UnknownModuleError

from .models import ModuleDescriptor

# A callable that returns the exports of an external module package, e.g.
# ``{"manifest": {...}}``.  Injected so tests never import real packages.
ExternalLoader = Callable[[str], Mapping[str, Any]]

MANIFEST_FILENAMES = ("module.yaml", "module.yml", "module.json")


class ModuleRegistry:
    """Read-mostly lookup table of :class:`ModuleDescriptor` values by id.

    Registration order is preserved, so ``get_all()`` is stable across runs.
    Registering an id twice replaces the earlier descriptor.
    """

    def __init__(self, modules: Iterable[ModuleDescriptor] | None = None) -> None:
        self._modules: dict[str, ModuleDescriptor] = {}
        if modules is not None:
            self.register_all(modules)

    # -- Registration ------------------------------------------------------

    def register(self, descriptor: ModuleDescriptor) -> None:
        """Register a single descriptor."""
        self._modules[descriptor.id] = descriptor

    def register_all(self, descriptors: Iterable[ModuleDescriptor]) -> None:
        for descriptor in descriptors:
            self.register(descriptor)

    def register_mapping(self, data: Mapping[str, Any], source: str) -> ModuleDescriptor:
        """Validate a raw manifest mapping and register the resulting descriptor.

        Args:
            data: Untrusted manifest data (parsed YAML/JSON or loader exports).
            source: File path or package name, used in error messages.

        Raises:
            InvalidManifestError: If *data* does not describe a valid module.
        """
        if not isinstance(data, Mapping):
            raise InvalidManifestError(source, "manifest must be a mapping")
        try:
            descriptor = ModuleDescriptor.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidManifestError(source, _summarise_validation(exc)) from exc
        self.register(descriptor)
        return descriptor

    def load_manifest(self, path: str | Path) -> ModuleDescriptor:
        """Load one ``module.yaml`` / ``module.json`` file and register it."""
        file_path = Path(path)
        raw = file_path.read_text(encoding="utf-8")
        try:
            if file_path.suffix == ".json":
                data = json.loads(raw)
            else:
                data = yaml.safe_load(raw)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise InvalidManifestError(str(file_path), f"not parseable: {exc}") from exc
        return self.register_mapping(data, str(file_path))

    def load_directory(self, definitions_dir: str | Path) -> list[ModuleDescriptor]:
        """Register every ``<definitions_dir>/<name>/module.yaml`` manifest.

        A missing directory registers nothing.  Subdirectories are visited in
        sorted order; directories without a manifest file are ignored.
        """
        root = Path(definitions_dir)
        if not root.is_dir():
            return []

        loaded: list[ModuleDescriptor] = []
        for entry in sorted(root.iterdir()):
            if not entry.is_dir():
                continue
            for filename in MANIFEST_FILENAMES:
                manifest_path = entry / filename
                if manifest_path.is_file():
                    loaded.append(self.load_manifest(manifest_path))
                    break
        return loaded

    def load_external(self, package_name: str, loader: ExternalLoader) -> ModuleDescriptor:
        """Register a module shipped by an external package.

        The *loader* returns the package's exports; they must contain a
        ``manifest`` mapping.
        """
        exports = loader(package_name)
        manifest = exports.get("manifest") if isinstance(exports, Mapping) else None
        if manifest is None:
            raise InvalidManifestError(package_name, "package exports no 'manifest'")
        return self.register_mapping(manifest, package_name)

    # -- Queries -----------------------------------------------------------

    def has(self, module_id: str) -> bool:
        return module_id in self._modules

    def get(self, module_id: str) -> ModuleDescriptor:
        """Return the descriptor for *module_id*.

        Raises:
            UnknownModuleError: If the id is not registered.
        """
        try:
            return self._modules[module_id]
        except KeyError:
            raise UnknownModuleError(module_id) from None

    def get_all(self) -> list[ModuleDescriptor]:
        return list(self._modules.values())

    def get_always_included(self) -> list[ModuleDescriptor]:
        """Modules that are part of every resolution (e.g. ``core``)."""
        return [m for m in self._modules.values() if m.always_included]

    def get_optional(self) -> list[ModuleDescriptor]:
        return [m for m in self._modules.values() if not m.always_included]

    def get_all_optional_ids(self) -> list[str]:
        """Ids a user may select; excludes always-included modules."""
        return [m.id for m in self.get_optional()]

    @property
    def size(self) -> int:
        return len(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._modules

    def __iter__(self) -> Iterator[ModuleDescriptor]:
        return iter(self._modules.values())


def _summarise_validation(exc: ValidationError) -> str:
    """Flatten a pydantic error into ``field: message; ...``."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)
