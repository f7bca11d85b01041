"""Adapter for the external summary generator command."""

from __future__ import annotations

from .command import (
    CORRELATION_ID_MARKER,
    OUTPUT_PATH_MARKER,
    CommandSummaryGenerator,
    GeneratorFactory,
    GeneratorResult,
    SummaryGenerator,
    command_generator_factory,
    parse_generator_output,
)
from .config import GeneratorConfig
from .errors import GeneratorError, GeneratorExecutionError, GeneratorValidationError

__all__ = [
    "CORRELATION_ID_MARKER",
    "OUTPUT_PATH_MARKER",
    "CommandSummaryGenerator",
    "GeneratorConfig",
    "GeneratorError",
    "GeneratorExecutionError",
    "GeneratorFactory",
    "GeneratorResult",
    "GeneratorValidationError",
    "SummaryGenerator",
    "command_generator_factory",
    "parse_generator_output",
]
