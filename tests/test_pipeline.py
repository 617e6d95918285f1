"""Tests for the scaffold pipeline and CLI entry point.

Post-processors are disabled or mocked; nothing shells out to Flutter.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from modforge.config import Config, OverwritePolicy, ScaffoldSettings
from modforge.errors import MissingDependencyError, UnknownModuleError
from modforge.modules.definitions import build_default_registry
from modforge.pipeline import ScaffoldPipeline, main


pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class TestPlan:
    def test_plan_resolves_and_assembles(self, sample_config: Config):
        plan = ScaffoldPipeline(sample_config).plan()
        assert plan.resolved_modules == ["core", "auth"]
        assert "lib/features/auth/presentation/pages/login_page.dart" in plan.files
        assert plan.merged.dependencies["firebase_auth"] == "^5.3.4"
        assert not sample_config.output_dir.exists()

    def test_unknown_config_module_is_ignored(self, sample_config: Config):
        sample_config.modules["payments"] = {}
        pipeline = ScaffoldPipeline(sample_config)
        assert pipeline.selected_module_ids() == ["auth"]
        assert pipeline.plan().resolved_modules == ["core", "auth"]

    def test_disabled_modules_are_not_selected(self, sample_config: Config):
        sample_config.modules["api"] = False
        assert ScaffoldPipeline(sample_config).plan().resolved_modules == ["core", "auth"]

    def test_unknown_dependency_in_custom_registry(self, sample_config: Config, make_module):
        registry = build_default_registry()
        registry.register(make_module("auth", requires=("core", "ghost")))
        with pytest.raises(MissingDependencyError) as exc_info:
            ScaffoldPipeline(sample_config, registry=registry).plan()
        assert exc_info.value.dependency_id == "ghost"

    def test_always_included_module_may_be_configured(self, sample_config: Config):
        sample_config.modules["core"] = {}
        pipeline = ScaffoldPipeline(sample_config)
        assert pipeline.plan().resolved_modules == ["core", "auth"]

    def test_transitively_required_module_renders_templates(
        self, sample_config: Config, make_module
    ):
        registry = build_default_registry()
        registry.register(make_module("payments", requires=("core", "api")))
        sample_config.modules = {"payments": {}}

        plan = ScaffoldPipeline(sample_config, registry=registry).plan()
        assert plan.resolved_modules == ["core", "api", "payments"]
        assert "api" in plan.rendered_modules
        assert plan.merged.dependencies["dio"]
        dio = plan.files["lib/core/network/dio_client.dart"]
        assert "https://api.example.com" in dio

    def test_explicitly_disabled_requirement_still_skipped(
        self, sample_config: Config, make_module
    ):
        registry = build_default_registry()
        registry.register(make_module("payments", requires=("core", "api")))
        sample_config.modules = {"payments": {}, "api": False}

        plan = ScaffoldPipeline(sample_config, registry=registry).plan()
        assert "api" in plan.resolved_modules
        assert "api" not in plan.rendered_modules
        assert "lib/core/network/dio_client.dart" not in plan.files

    def test_theme_without_options_is_wired_into_main(self, sample_config: Config):
        sample_config.modules["theme"] = {}
        files = ScaffoldPipeline(sample_config).plan().files
        assert "lib/core/theme/app_theme.dart" in files
        assert "theme: AppTheme.light," in files["lib/main.dart"]
        assert "darkTheme: AppTheme.dark," in files["lib/main.dart"]


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.asyncio
    async def test_run_writes_project(self, sample_config: Config):
        result = await ScaffoldPipeline(sample_config).run()
        out = sample_config.output_dir
        assert result.success
        assert result.resolved_modules == ["core", "auth"]
        assert "pubspec.yaml" in result.files_written
        manifest = yaml.safe_load((out / "pubspec.yaml").read_text())
        assert manifest["dependencies"]["firebase_auth"] == "^5.3.4"
        assert result.post_processors_run == []

    @pytest.mark.asyncio
    async def test_dry_run_skips_disk_and_post_processors(self, sample_config: Config):
        sample_config.scaffold = ScaffoldSettings(dry_run=True)
        mock_run = AsyncMock(return_value=(0, "", ""))
        with patch("modforge.utils.run_command", mock_run):
            result = await ScaffoldPipeline(sample_config).run()
        assert result.files_written
        assert not sample_config.output_dir.exists()
        mock_run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_post_processors_run_after_write(self, sample_config: Config):
        sample_config.scaffold = ScaffoldSettings(run_dart_format=True, run_pub_get=True)
        mock_run = AsyncMock(side_effect=[(0, "", ""), (1, "", "pub get exploded")])
        with patch("modforge.utils.run_command", mock_run):
            result = await ScaffoldPipeline(sample_config).run()
        assert result.post_processors_run == ["dart-format"]
        assert result.post_processor_errors == ["flutter-pub-get failed: pub get exploded"]
        assert result.success

    @pytest.mark.asyncio
    async def test_conflict_resolver_forwarded(self, sample_config: Config):
        out = sample_config.output_dir
        out.mkdir(parents=True)
        (out / "README.md").write_text("keep me\n", encoding="utf-8")
        sample_config.scaffold.overwrite = OverwritePolicy.ASK
        resolver = AsyncMock(return_value=False)

        result = await ScaffoldPipeline(sample_config, on_conflict=resolver).run()
        resolver.assert_awaited_once_with(out / "README.md")
        assert result.files_skipped == ["README.md"]
        assert (out / "README.md").read_text() == "keep me\n"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestMain:
    def test_missing_config_exits(self, tmp_path: Path):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "absent.yaml")])
        assert exc_info.value.code == 1

    def test_dry_run_cli(self, tmp_path: Path):
        config_path = tmp_path / "modforge.yaml"
        config_path.write_text(
            "project:\n  name: cli_app\nmodules:\n  theme: {}\n", encoding="utf-8"
        )
        main([str(config_path), "--dry-run", "-o", str(tmp_path / "cli_app")])
        assert not (tmp_path / "cli_app").exists()

    def test_resolution_error_exits(self, tmp_path: Path):
        config_path = tmp_path / "modforge.yaml"
        config_path.write_text("project:\n  name: cli_app\n", encoding="utf-8")
        with patch(
            "modforge.pipeline.ScaffoldPipeline.plan",
            side_effect=UnknownModuleError("ghost"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main([str(config_path), "--overwrite", "never"])
        assert exc_info.value.code == 1

    def test_malformed_yaml_exits(self, tmp_path: Path):
        config_path = tmp_path / "modforge.yaml"
        config_path.write_text("project: [unclosed\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(config_path)])
        assert exc_info.value.code == 1

    def test_invalid_config_exits(self, tmp_path: Path):
        config_path = tmp_path / "modforge.yaml"
        config_path.write_text("modules:\n  auth: {}\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(config_path)])
        assert exc_info.value.code == 1

    def test_malformed_json_exits(self, tmp_path: Path):
        config_path = tmp_path / "modforge.json"
        config_path.write_text('{"project": ', encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(config_path)])
        assert exc_info.value.code == 1

    def test_list_shows_module_status(self, tmp_path: Path, capsys):
        config_path = tmp_path / "modforge.yaml"
        config_path.write_text(
            "project:\n  name: cli_app\nmodules:\n  auth:\n    provider: supabase\n"
            "  push: false\n",
            encoding="utf-8",
        )
        main([str(config_path), "--list", "-o", str(tmp_path / "cli_app")])
        out = capsys.readouterr().out
        assert "auth" in out
        assert "provider: supabase" in out
        assert "1/9 modules enabled" in out
        assert not (tmp_path / "cli_app").exists()


class TestModuleStatuses:
    def test_statuses_cover_every_optional_module(self, sample_config: Config):
        sample_config.modules["push"] = False
        rows = {row[0]: row for row in ScaffoldPipeline(sample_config).module_statuses()}
        assert set(rows) == set(build_default_registry().get_all_optional_ids())
        assert rows["auth"] == ("auth", "enabled", "provider: firebase")
        assert rows["push"] == ("push", "disabled", "")
        assert rows["api"] == ("api", "disabled", "")

    def test_transitive_requirement_reported_as_required(
        self, sample_config: Config, make_module
    ):
        registry = build_default_registry()
        registry.register(make_module("payments", requires=("core", "api")))
        sample_config.modules = {"payments": {}}
        pipeline = ScaffoldPipeline(sample_config, registry=registry)
        rows = {module_id: status for module_id, status, _ in pipeline.module_statuses()}
        assert rows["payments"] == "enabled"
        assert rows["api"] == "required"
        assert rows["auth"] == "disabled"
