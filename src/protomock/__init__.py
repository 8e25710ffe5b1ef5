"""
protomock - call-tracking test doubles synthesized from interface models.

Describe an interface once (operations, properties, indexed accessors and
type placeholders) and protomock generates a mock class that records every
call, forwards to pluggable handlers and resets to a clean state, under the
concurrency contract the interface requires.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version

from .core.errors import (
    ConfigError,
    OverloadCollisionError,
    ProtomockError,
    SpecificationError,
    SynthesisError,
    TypeParseError,
)
from .core.model import (
    AccessScope,
    BuildCondition,
    ConcurrencyRequirement,
    IndexedAccessor,
    MockSpecification,
    Mutability,
    Operation,
    Parameter,
    Property,
    SynthesisOptions,
    TypePlaceholder,
)
from .loader import load_mock, unload_mock
from .synth import SynthesisResult, generate_mock_source, synthesize

try:
    __version__ = _metadata_version("protomock")
except PackageNotFoundError:
    # running from a source tree that was never installed
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AccessScope",
    "BuildCondition",
    "ConcurrencyRequirement",
    "ConfigError",
    "IndexedAccessor",
    "MockSpecification",
    "Mutability",
    "Operation",
    "OverloadCollisionError",
    "Parameter",
    "Property",
    "ProtomockError",
    "SpecificationError",
    "SynthesisError",
    "SynthesisOptions",
    "SynthesisResult",
    "TypeParseError",
    "TypePlaceholder",
    "generate_mock_source",
    "load_mock",
    "synthesize",
    "unload_mock",
]
