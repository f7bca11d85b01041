"""Configuration for the external summary generator.

Usage
-----
>>> import os
>>> os.environ["GRUV_GENERATOR_COMMAND"] = "node scripts/generate_summary.mjs"
>>> GeneratorConfig.from_env().command
('node', 'scripts/generate_summary.mjs')

"""

from __future__ import annotations

import dataclasses as dc
import os
import shlex
from pathlib import Path

DEFAULT_COMMAND = ("./update_summary.sh",)


@dc.dataclass(frozen=True, slots=True)
class GeneratorConfig:
    """How to launch the report generator.

    Attributes
    ----------
    command
        Program and leading arguments; the organization and repository are
        appended on each run.
    working_directory
        Directory the command runs in. Relative program paths and relative
        output paths reported by the command resolve against it.
    timeout_seconds
        Optional limit on a single run. ``None`` lets the command run to
        completion.

    """

    command: tuple[str, ...] = DEFAULT_COMMAND
    working_directory: Path = dc.field(default_factory=Path.cwd)
    timeout_seconds: float | None = None

    @staticmethod
    def _parse_timeout(env_var: str) -> float | None:
        raw = os.environ.get(env_var, "").strip()
        if not raw:
            return None
        try:
            value = float(raw)
        except ValueError as exc:
            msg = f"{env_var} must be a number, got: {raw!r}"
            raise ValueError(msg) from exc
        if value <= 0:
            msg = f"{env_var} must be positive, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(
        cls, *, default_working_directory: Path | None = None
    ) -> GeneratorConfig:
        """Create configuration from environment variables.

        - ``GRUV_GENERATOR_COMMAND``: shell-style command line
          (default ``./update_summary.sh``).
        - ``GRUV_GENERATOR_WORKDIR``: working directory (default
          *default_working_directory*, else the current directory).
        - ``GRUV_GENERATOR_TIMEOUT_SECONDS``: optional positive timeout.

        Raises
        ------
        ValueError
            If the command is blank or the timeout is not a positive number.

        """
        raw_command = os.environ.get("GRUV_GENERATOR_COMMAND", "")
        command = (
            tuple(shlex.split(raw_command)) if raw_command.strip() else DEFAULT_COMMAND
        )
        if not command or not command[0]:
            msg = "GRUV_GENERATOR_COMMAND must name a program"
            raise ValueError(msg)

        raw_workdir = os.environ.get("GRUV_GENERATOR_WORKDIR", "").strip()
        if raw_workdir:
            working_directory = Path(raw_workdir).expanduser()
        else:
            working_directory = default_working_directory or Path.cwd()

        return cls(
            command=command,
            working_directory=working_directory,
            timeout_seconds=cls._parse_timeout("GRUV_GENERATOR_TIMEOUT_SECONDS"),
        )
