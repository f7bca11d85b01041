"""Run the external report generator for one repository.

The generator is a black-box command invoked as
``<command...> <organization> <repository>``. Exit status 0 means success;
anything else is a failure. On success the command's stdout may announce the
report it wrote and a correlation identifier on marker lines::

    Summary written to /srv/updates/acme_widgets_2024-03-16.md
    Thread ID: thread-7f3a

Both markers are optional.

Usage
-----
>>> factory = command_generator_factory(GeneratorConfig.from_env())
>>> result = await factory("acme", "widgets").call()
>>> result.output_path
'/srv/updates/acme_widgets_2024-03-16.md'

"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses as dc
import os
import shutil
import typing as typ
from pathlib import Path

from gruv.logging import get_logger, log_info

from .config import GeneratorConfig
from .errors import GeneratorExecutionError, GeneratorValidationError

logger = get_logger(__name__)

OUTPUT_PATH_MARKER = "Summary written to "
CORRELATION_ID_MARKER = "Thread ID: "


@dc.dataclass(frozen=True, slots=True)
class GeneratorResult:
    """Outcome of a successful generator run.

    Attributes
    ----------
    stdout
        Captured standard output.
    stderr
        Captured standard error.
    correlation_id
        Identifier announced by the command, if any.
    output_path
        Path of the report the command wrote, if announced.

    """

    stdout: str
    stderr: str
    correlation_id: str | None = None
    output_path: str | None = None


@typ.runtime_checkable
class SummaryGenerator(typ.Protocol):
    """Port for producing a report for one repository."""

    async def call(self) -> GeneratorResult:
        """Generate the report.

        Raises
        ------
        GeneratorExecutionError
            If generation fails.

        """
        ...


type GeneratorFactory = typ.Callable[[str, str], SummaryGenerator]


def parse_generator_output(
    stdout: str, *, working_directory: Path | None = None
) -> tuple[str | None, str | None]:
    """Extract ``(output_path, correlation_id)`` from generator stdout.

    The last occurrence of each marker wins. Relative output paths are
    resolved against *working_directory* when given.

    Examples
    --------
    >>> parse_generator_output("Summary written to /tmp/a_b_2024-03-16.md\\n")
    ('/tmp/a_b_2024-03-16.md', None)

    """
    output_path: str | None = None
    correlation_id: str | None = None
    for raw_line in stdout.splitlines():
        line = raw_line.strip()
        if line.startswith(OUTPUT_PATH_MARKER):
            output_path = line.removeprefix(OUTPUT_PATH_MARKER).strip() or None
        elif line.startswith(CORRELATION_ID_MARKER):
            correlation_id = line.removeprefix(CORRELATION_ID_MARKER).strip() or None

    if output_path is not None and working_directory is not None:
        candidate = Path(output_path)
        if not candidate.is_absolute():
            output_path = str(working_directory / candidate)
    return output_path, correlation_id


def _decode(stream: bytes | bytearray | None) -> str:
    return bytes(stream or b"").decode("utf-8", errors="replace")


async def _collect(stream: asyncio.StreamReader | None, sink: bytearray) -> None:
    """Append everything read from *stream* to *sink* as it arrives."""
    if stream is None:
        return
    while chunk := await stream.read(65536):
        sink.extend(chunk)


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    await process.wait()


def _resolve_executable(program: str, working_directory: Path) -> str | None:
    """Locate *program*, treating names with a separator as paths."""
    if os.sep in program or (os.altsep and os.altsep in program):
        path = Path(program)
        if not path.is_absolute():
            path = working_directory / path
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
        return None
    return shutil.which(program)


class CommandSummaryGenerator:
    """``SummaryGenerator`` that shells out to the configured command.

    Parameters
    ----------
    organization
        Repository owner passed to the command.
    repository
        Repository name passed to the command.
    config
        Command line, working directory and timeout.

    """

    def __init__(
        self, organization: str, repository: str, config: GeneratorConfig
    ) -> None:
        """Bind the generator to one repository."""
        self.organization = organization
        self.repository = repository
        self._config = config

    async def call(self) -> GeneratorResult:
        """Run the command and interpret its output.

        Output is collected as it arrives, so a timed-out run still reports
        what the command printed. Cancelling the call kills the command.

        Raises
        ------
        GeneratorValidationError
            If the organization or repository is empty.
        GeneratorExecutionError
            If the command is missing, cannot start, times out or exits
            non-zero.

        """
        organization = self.organization.strip()
        repository = self.repository.strip()
        if not organization:
            raise GeneratorValidationError("organization")
        if not repository:
            raise GeneratorValidationError("repository")

        workdir = self._config.working_directory
        program, *leading = self._config.command
        executable = _resolve_executable(program, workdir)
        if executable is None:
            msg = f"generator command not found: {program}"
            raise GeneratorExecutionError(msg)

        argv = [executable, *leading, organization, repository]
        log_info(
            logger,
            "Running summary generator for %s/%s in %s",
            organization,
            repository,
            workdir,
        )
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=workdir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            msg = f"generator command could not start: {exc}"
            raise GeneratorExecutionError(msg) from exc

        stdout_buffer = bytearray()
        stderr_buffer = bytearray()
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    _collect(process.stdout, stdout_buffer),
                    _collect(process.stderr, stderr_buffer),
                    process.wait(),
                ),
                timeout=self._config.timeout_seconds,
            )
        except TimeoutError as exc:
            await _kill(process)
            msg = (
                f"generator timed out after {self._config.timeout_seconds}s "
                f"for {organization}/{repository}"
            )
            raise GeneratorExecutionError(
                msg, stdout=_decode(stdout_buffer), stderr=_decode(stderr_buffer)
            ) from exc
        except BaseException:
            await _kill(process)
            raise

        stdout = _decode(stdout_buffer)
        stderr = _decode(stderr_buffer)
        if process.returncode != 0:
            msg = (
                f"generator exited with status {process.returncode} "
                f"for {organization}/{repository}"
            )
            raise GeneratorExecutionError(
                msg, stdout=stdout, stderr=stderr, exit_status=process.returncode
            )

        output_path, correlation_id = parse_generator_output(
            stdout, working_directory=workdir
        )
        return GeneratorResult(
            stdout=stdout,
            stderr=stderr,
            correlation_id=correlation_id,
            output_path=output_path,
        )


def command_generator_factory(config: GeneratorConfig) -> GeneratorFactory:
    """Return a factory building ``CommandSummaryGenerator`` instances."""

    def build(organization: str, repository: str) -> SummaryGenerator:
        return CommandSummaryGenerator(organization, repository, config)

    return build
