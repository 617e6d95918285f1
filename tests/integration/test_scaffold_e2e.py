"""Integration tests for the resolve-assemble-commit pipeline.

These tests run the real registry, bundled templates, and committer against a
temporary directory and verify the generated Flutter project on disk.  The
Flutter toolchain is never invoked.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from modforge.config import Config, OverwritePolicy, ProjectSettings, ScaffoldSettings
from modforge.context import ProjectContext
from modforge.modules import ContributionMerger, ModuleResolver, build_default_registry
from modforge.pipeline import ScaffoldPipeline
from modforge.scaffolder import FileCommitter, ScaffoldAssembler
from modforge.scaffolder.committer import CommitPolicy


pytestmark = pytest.mark.integration


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _config(output_dir: Path, modules: dict, **scaffold) -> Config:
    return Config(
        project=ProjectSettings(name="field_notes", description="Notes in the field"),
        modules=modules,
        scaffold=ScaffoldSettings(run_dart_format=False, run_pub_get=False, **scaffold),
        output_dir=output_dir,
    )


def _manifest(project_dir: Path) -> dict:
    return yaml.safe_load((project_dir / "pubspec.yaml").read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Component chain
# ---------------------------------------------------------------------------


class TestComponentChain:
    @pytest.mark.asyncio
    async def test_auth_selection_end_to_end(self, tmp_path: Path):
        registry = build_default_registry()
        resolved = ModuleResolver(registry).resolve({"auth"})
        assert resolved.ids == ["core", "auth"]

        merged = ContributionMerger().merge(resolved)
        assert merged.dependencies["firebase_auth"] == "^5.3.4"
        assert merged.dev_dependencies["build_runner"] == "^2.4.13"

        config = _config(tmp_path / "app", {"auth": {}})
        files = ScaffoldAssembler(known_module_ids=[m.id for m in registry]).assemble(
            resolved, ProjectContext.from_config(config)
        )
        result = await FileCommitter().commit(
            files, config.output_dir, CommitPolicy(OverwritePolicy.NEVER)
        )
        assert result.ok
        assert sorted(result.written) == sorted(files)

        manifest = _manifest(config.output_dir)
        assert manifest["name"] == "field_notes"
        assert manifest["dependencies"]["flutter"] == {"sdk": "flutter"}
        assert manifest["dependencies"]["firebase_auth"] == "^5.3.4"
        assert manifest["dependencies"]["flutter_riverpod"] == "^2.6.1"
        assert manifest["flutter"]["uses-material-design"] is True


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


class TestFullPipeline:
    @pytest.mark.asyncio
    async def test_every_module_scaffolds(self, tmp_path: Path):
        registry = build_default_registry()
        modules = {module_id: {} for module_id in registry.get_all_optional_ids()}
        config = _config(tmp_path / "full", modules)

        result = await ScaffoldPipeline(config, registry=registry).run()
        out = config.output_dir

        assert result.success
        assert result.resolved_modules[0] == "core"
        assert (out / ".github" / "workflows" / "ci.yml").is_file()
        assert (out / "l10n.yaml").is_file()
        assert (out / "lib" / "core" / "network" / "dio_client.dart").is_file()

        manifest = _manifest(out)
        # structured constraint from i18n
        assert manifest["dependencies"]["flutter_localizations"] == {"sdk": "flutter"}
        # json_serializable ^6.8.0 (core) reconciled with ^6.9.0 (api)
        assert manifest["dev_dependencies"]["json_serializable"] == "^6.9.0"
        assert manifest["flutter"]["generate"] is True

    @pytest.mark.asyncio
    async def test_supabase_auth_adds_partial_dependency(self, tmp_path: Path):
        config = _config(tmp_path / "supa", {"auth": {"provider": "supabase"}})
        await ScaffoldPipeline(config).run()
        assert _manifest(config.output_dir)["dependencies"]["supabase_flutter"] == "^2.8.0"

    @pytest.mark.asyncio
    async def test_rerun_with_never_keeps_local_edits(self, tmp_path: Path):
        config = _config(tmp_path / "rerun", {"api": {"baseUrl": "https://example.org"}})
        await ScaffoldPipeline(config).run()

        main_dart = config.output_dir / "lib" / "main.dart"
        main_dart.write_text("// edited by hand\n", encoding="utf-8")

        config.scaffold.overwrite = OverwritePolicy.NEVER
        result = await ScaffoldPipeline(config).run()

        assert "lib/main.dart" in result.files_skipped
        assert result.files_written == []
        assert main_dart.read_text(encoding="utf-8") == "// edited by hand\n"
        dio = (config.output_dir / "lib" / "core" / "network" / "dio_client.dart").read_text()
        assert "https://example.org" in dio
