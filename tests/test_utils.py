"""Unit tests for utility functions (modforge.utils).

Tests cover:
- run_command (success, failure, missing executable, timeout, cwd, env)
- format_duration
- Rich output helpers
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from modforge.utils import (
    create_progress,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)


pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.asyncio
    async def test_successful_command(self):
        returncode, stdout, stderr = await run_command(["echo", "hello"])
        assert returncode == 0
        assert stdout == "hello"

    @pytest.mark.asyncio
    async def test_failed_command(self):
        returncode, _, _ = await run_command([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert returncode == 3

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        returncode, _, stderr = await run_command(["definitely-not-a-real-binary-xyz"])
        assert returncode == 127
        assert "Command not found" in stderr

    @pytest.mark.asyncio
    async def test_timeout(self):
        returncode, _, stderr = await run_command(
            [sys.executable, "-c", "import time; time.sleep(5)"], timeout=1
        )
        assert returncode == -1
        assert "timed out" in stderr

    @pytest.mark.asyncio
    async def test_cwd(self, tmp_path: Path):
        returncode, stdout, _ = await run_command(["pwd"], cwd=tmp_path)
        assert returncode == 0
        assert Path(stdout).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_env_merged(self):
        returncode, stdout, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.environ['MODFORGE_TEST_VAR'])"],
            env={"MODFORGE_TEST_VAR": "set"},
        )
        assert returncode == 0
        assert stdout == "set"


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "0.0s"), (3.7, "3.7s"), (65.2, "1m 5s"), (-1, "0.0s"), (120, "2m 0s")],
    )
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestRichHelpers:
    def test_print_helpers_do_not_raise(self, capsys):
        print_success("done")
        print_warning("careful")
        print_error("broken")
        print_summary_table({"Modules": "core, auth"}, title="Scaffold Summary")
        out = capsys.readouterr().out
        assert "done" in out
        assert "core, auth" in out

    def test_create_progress(self):
        with create_progress() as progress:
            task = progress.add_task("working", total=1)
            progress.update(task, completed=1)
