"""Parser limits and the ognl.toml configuration file."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from ognl.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "ognl.toml"

DEFAULT_MAX_ITERATIONS = 20000
DEFAULT_MAX_DEPTH = 64


@dataclass(frozen=True, slots=True)
class ParserOptions:
    """Resource limits for a single parse.

    ``max_iterations`` bounds the total number of driver steps; exceeding it
    aborts the parse. ``max_depth`` bounds bracket nesting so deeply nested
    input is reported instead of exhausting the interpreter stack.
    """

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    max_depth: int = DEFAULT_MAX_DEPTH


def load_config(config_path: Path | None, directory: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else directory / CONFIG_FILENAME

    if not path.is_file():
        return {}

    logger.info("loading configuration from %s", path)
    with open(path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"{path}: {exc}") from exc


def resolve_options(config: dict[str, Any]) -> ParserOptions:
    """Build ParserOptions from the ``[parser]`` table of a loaded config."""
    table = config.get("parser", {})
    if not isinstance(table, dict):
        raise ConfigError("[parser] must be a table")

    known = {f.name for f in fields(ParserOptions)}
    values: dict[str, int] = {}
    for key, value in table.items():
        if key not in known:
            raise ConfigError(f"unknown parser option {key!r}")
        # bool is an int subclass, but true/false is never a valid limit
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigError(f"parser option {key!r} must be a positive integer, got {value!r}")
        values[key] = value
    return ParserOptions(**values)


def load_options(config_path: Path | None, directory: Path) -> ParserOptions:
    """Convenience function: read ognl.toml and return its ParserOptions."""
    return resolve_options(load_config(config_path, directory))
