"""
Loading MockSpecification values from JSON or TOML files.

A file holds either one specification or a ``mocks`` list:

    [[mocks]]
    interface_name = "UserService"
    concurrency = "thread_safe"

    [[mocks.members]]
    kind = "operation"
    name = "fetch_user"
    parameters = [{ name = "id", type = "int" }]
    returns = "str"
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from protomock.core.errors import ErrorContext, SpecificationError
from protomock.core.model import MockSpecification

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".json", ".toml")


def _read(path: Path) -> Any:
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SpecificationError(
            f"unsupported file type '{suffix}', expected one of {', '.join(SUPPORTED_SUFFIXES)}",
            ErrorContext(file=path),
        )
    try:
        if suffix == ".json":
            return json.loads(path.read_bytes())
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise SpecificationError(f"cannot parse file: {exc}", ErrorContext(file=path)) from exc
    except OSError as exc:
        raise SpecificationError(f"cannot read file: {exc}", ErrorContext(file=path)) from exc


def _format_validation_error(exc: ValidationError) -> list[str]:
    issues = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        issues.append(f"{location}: {error['msg']}" if location else error["msg"])
    return issues


def parse_specifications(data: Any, source: Path | None = None) -> list[MockSpecification]:
    """
    Validate already-decoded data into specifications.

    Raises:
        SpecificationError: If the data does not describe valid specifications.
    """
    if isinstance(data, dict) and "mocks" in data:
        entries = data["mocks"]
    else:
        entries = [data]
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise SpecificationError(
            "expected a specification table or a 'mocks' list of tables",
            ErrorContext(file=source),
        )

    specs: list[MockSpecification] = []
    for index, entry in enumerate(entries):
        try:
            specs.append(MockSpecification.model_validate(entry))
        except ValidationError as exc:
            issues = _format_validation_error(exc)
            name = entry.get("interface_name") or f"mocks[{index}]"
            raise SpecificationError(
                "invalid specification:\n" + "\n".join(f"  - {issue}" for issue in issues),
                ErrorContext(file=source, mock=str(name)),
                issues=issues,
            ) from exc
    return specs


def load_specifications(path: Path) -> list[MockSpecification]:
    """Read and validate every specification in ``path``."""
    specs = parse_specifications(_read(path), source=path)
    logger.debug("Loaded %d specification(s) from %s", len(specs), path)
    return specs
