"""
protomock configuration.

Settings are read from ``[tool.protomock]`` in the nearest ``pyproject.toml``
or from the top level of a ``protomock.toml``:

    [tool.protomock]
    force_legacy_lock = false
    runtime_module = "protomock.runtime"
    mock_suffix = "Mock"
    inherit_interface = true
    output_dir = "tests/mocks"
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from protomock.core.errors import ConfigError, ErrorContext
from protomock.core.model import DEFAULT_RUNTIME_MODULE, SynthesisOptions

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "protomock.toml"
PYPROJECT_FILENAME = "pyproject.toml"


@dataclass
class ProtomockConfig:
    """Project-level protomock settings."""

    force_legacy_lock: bool = False
    runtime_module: str = DEFAULT_RUNTIME_MODULE
    mock_suffix: str = "Mock"
    inherit_interface: bool = True
    output_dir: Path = Path(".")
    source: Path | None = None  # File the settings were read from
    warnings: list[str] = field(default_factory=list)

    def to_options(self, *, force_legacy_lock: bool | None = None) -> SynthesisOptions:
        """Build SynthesisOptions, letting an explicit flag override the file."""
        legacy = self.force_legacy_lock if force_legacy_lock is None else force_legacy_lock
        return SynthesisOptions(
            force_legacy_lock=legacy,
            runtime_module=self.runtime_module,
            mock_suffix=self.mock_suffix,
            inherit_interface=self.inherit_interface,
        )


_EXPECTED_TYPES: dict[str, type] = {
    "force_legacy_lock": bool,
    "runtime_module": str,
    "mock_suffix": str,
    "inherit_interface": bool,
    "output_dir": str,
}


def find_config_file(start: Path) -> tuple[Path, bool] | None:
    """
    Find the nearest config file at or above ``start``.

    Returns:
        (path, is_pyproject), or None if nothing is found. A pyproject.toml
        only counts when it has a ``[tool.protomock]`` table.
    """
    current = start.resolve()
    if current.is_file():
        current = current.parent
    for directory in (current, *current.parents):
        standalone = directory / CONFIG_FILENAME
        if standalone.is_file():
            return standalone, False
        pyproject = directory / PYPROJECT_FILENAME
        if pyproject.is_file() and _has_tool_table(pyproject):
            return pyproject, True
    return None


def _has_tool_table(pyproject: Path) -> bool:
    data = _read_toml(pyproject)
    return isinstance(data.get("tool", {}).get("protomock"), dict)


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML: {exc}", ErrorContext(file=path)) from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config: {exc}", ErrorContext(file=path)) from exc


def parse_config(data: dict[str, Any], source: Path | None = None) -> ProtomockConfig:
    """
    Build a ProtomockConfig from a settings table.

    Raises:
        ConfigError: If a known key has the wrong type.
    """
    config = ProtomockConfig(source=source)
    known = {f.name for f in fields(ProtomockConfig)} - {"source", "warnings"}

    for key, value in data.items():
        if key not in known:
            config.warnings.append(f"unknown protomock setting '{key}'")
            continue
        expected = _EXPECTED_TYPES[key]
        if not isinstance(value, expected):
            raise ConfigError(
                f"'{key}' must be a {expected.__name__}, got {type(value).__name__}",
                ErrorContext(file=source),
            )
        if key == "output_dir":
            base = source.parent if source is not None else Path(".")
            setattr(config, key, base / value)
        else:
            setattr(config, key, value)

    for warning in config.warnings:
        logger.warning("%s: %s", source or "config", warning)
    return config


def load_config(start: Path | None = None) -> ProtomockConfig:
    """Load settings for the project containing ``start`` (default: cwd)."""
    found = find_config_file(start or Path.cwd())
    if found is None:
        logger.debug("No protomock configuration found, using defaults")
        return ProtomockConfig()

    path, is_pyproject = found
    data = _read_toml(path)
    if is_pyproject:
        data = data["tool"]["protomock"]
    logger.debug("Loaded protomock configuration from %s", path)
    return parse_config(data, source=path)
