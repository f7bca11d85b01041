"""Unit tests for the external summary generator adapter.

The tests run small ``/bin/sh`` scripts written to ``tmp_path`` in place of
the real generator.
"""

from __future__ import annotations

import asyncio
import os
import stat
import typing as typ

import pytest

from gruv.generation import (
    CommandSummaryGenerator,
    GeneratorConfig,
    GeneratorExecutionError,
    GeneratorValidationError,
    SummaryGenerator,
    command_generator_factory,
    parse_generator_output,
)
from tests.helpers.updates import wait_until

if typ.TYPE_CHECKING:
    from pathlib import Path


def _script(directory: Path, body: str, name: str = "generate.sh") -> Path:
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


class TestParseGeneratorOutput:
    """Tests for marker-line parsing."""

    def test_extracts_both_markers(self) -> None:
        """Path and correlation id are read from their marker lines."""
        stdout = (
            "Fetching commits...\n"
            "Summary written to /srv/updates/acme_widgets_2024-03-16.md\n"
            "Thread ID: thread-7f3a\n"
        )
        assert parse_generator_output(stdout) == (
            "/srv/updates/acme_widgets_2024-03-16.md",
            "thread-7f3a",
        )

    def test_missing_markers_yield_none(self) -> None:
        """Output without markers is still a valid result."""
        assert parse_generator_output("all done\n") == (None, None)

    def test_relative_path_resolves_against_working_directory(
        self, tmp_path: Path
    ) -> None:
        """A relative output path is anchored in the working directory."""
        path, _ = parse_generator_output(
            "Summary written to out/acme_widgets_2024-03-16.md\n",
            working_directory=tmp_path,
        )
        assert path == str(tmp_path / "out" / "acme_widgets_2024-03-16.md")


class TestCommandSummaryGenerator:
    """Tests running real subprocesses."""

    @pytest.mark.asyncio
    async def test_success_passes_arguments_and_parses_markers(
        self, tmp_path: Path
    ) -> None:
        """The command receives org and repo and its markers are parsed."""
        script = _script(
            tmp_path,
            'echo "args: $1 $2"\n'
            'echo "Summary written to $1_$2_2024-03-16.md"\n'
            'echo "Thread ID: t-123"\n'
            'echo "warming up" >&2',
        )
        config = GeneratorConfig(command=(str(script),), working_directory=tmp_path)

        result = await CommandSummaryGenerator("acme", "widgets", config).call()

        assert "args: acme widgets" in result.stdout
        assert result.stderr.strip() == "warming up"
        assert result.output_path == str(tmp_path / "acme_widgets_2024-03-16.md")
        assert result.correlation_id == "t-123"

    @pytest.mark.asyncio
    async def test_leading_arguments_come_before_repository(
        self, tmp_path: Path
    ) -> None:
        """Configured arguments precede the organization and repository."""
        script = _script(tmp_path, 'echo "$@"')
        config = GeneratorConfig(
            command=("/bin/sh", str(script), "--verbose"), working_directory=tmp_path
        )

        result = await CommandSummaryGenerator("acme", "widgets", config).call()

        assert result.stdout.strip() == "--verbose acme widgets"
        assert result.output_path is None

    @pytest.mark.asyncio
    async def test_non_zero_exit_raises_with_captured_output(
        self, tmp_path: Path
    ) -> None:
        """A failing command surfaces stdout, stderr and its exit status."""
        script = _script(tmp_path, 'echo "partial"\necho "fatal: boom" >&2\nexit 3')
        config = GeneratorConfig(command=(str(script),), working_directory=tmp_path)

        with pytest.raises(GeneratorExecutionError) as excinfo:
            await CommandSummaryGenerator("acme", "widgets", config).call()

        error = excinfo.value
        assert error.exit_status == 3
        assert error.stdout.strip() == "partial"
        assert error.stderr.strip() == "fatal: boom"

    @pytest.mark.asyncio
    async def test_missing_command_raises_execution_error(self, tmp_path: Path) -> None:
        """A command that does not exist fails without an exit status."""
        config = GeneratorConfig(
            command=("./no_such_generator.sh",), working_directory=tmp_path
        )

        with pytest.raises(GeneratorExecutionError, match="not found") as excinfo:
            await CommandSummaryGenerator("acme", "widgets", config).call()

        assert excinfo.value.exit_status is None

    @pytest.mark.asyncio
    async def test_timeout_kills_command(self, tmp_path: Path) -> None:
        """A run exceeding the timeout becomes an execution error."""
        script = _script(tmp_path, "exec sleep 5")
        config = GeneratorConfig(
            command=(str(script),), working_directory=tmp_path, timeout_seconds=0.2
        )

        with pytest.raises(GeneratorExecutionError, match="timed out"):
            await CommandSummaryGenerator("acme", "widgets", config).call()

    @pytest.mark.asyncio
    async def test_timeout_keeps_partial_output(self, tmp_path: Path) -> None:
        """Whatever the command printed before the deadline is reported."""
        script = _script(
            tmp_path, 'echo "fetching $1/$2"\necho "slow api" >&2\nexec sleep 5'
        )
        config = GeneratorConfig(
            command=(str(script),), working_directory=tmp_path, timeout_seconds=0.5
        )

        with pytest.raises(GeneratorExecutionError) as excinfo:
            await CommandSummaryGenerator("acme", "widgets", config).call()

        assert excinfo.value.stdout == "fetching acme/widgets\n"
        assert excinfo.value.stderr == "slow api\n"
        assert excinfo.value.exit_status is None

    @pytest.mark.asyncio
    async def test_cancelled_call_kills_command(self, tmp_path: Path) -> None:
        """Cancelling the run does not leave the command behind."""
        pid_file = tmp_path / "generator.pid"
        script = _script(tmp_path, f'echo $$ > "{pid_file}"\nexec sleep 30')
        config = GeneratorConfig(command=(str(script),), working_directory=tmp_path)
        task = asyncio.create_task(
            CommandSummaryGenerator("acme", "widgets", config).call()
        )
        await wait_until(
            lambda: pid_file.exists() and pid_file.read_text().strip() != "",
            attempts=1000,
        )

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        with pytest.raises(ProcessLookupError):
            os.kill(int(pid_file.read_text()), 0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("organization", "repository", "field"),
        [(" ", "widgets", "organization"), ("acme", "", "repository")],
    )
    async def test_blank_names_are_rejected(
        self, tmp_path: Path, organization: str, repository: str, field: str
    ) -> None:
        """Blank names fail validation before anything runs."""
        config = GeneratorConfig(command=("true",), working_directory=tmp_path)

        with pytest.raises(GeneratorValidationError) as excinfo:
            await CommandSummaryGenerator(organization, repository, config).call()

        assert excinfo.value.field == field


def test_factory_builds_generators_for_each_repository(tmp_path: Path) -> None:
    """The factory binds the shared config to each repository."""
    factory = command_generator_factory(GeneratorConfig(working_directory=tmp_path))

    generator = factory("acme", "widgets")

    assert isinstance(generator, SummaryGenerator)
    assert isinstance(generator, CommandSummaryGenerator)
    assert (generator.organization, generator.repository) == ("acme", "widgets")
