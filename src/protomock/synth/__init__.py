"""
Mock synthesis: from a MockSpecification to the source of a mock module.
"""

from __future__ import annotations

from .synthesizer import SynthesisResult, build_class, generate_mock_source, synthesize
from .tree import Module

__all__ = [
    "Module",
    "SynthesisResult",
    "build_class",
    "generate_mock_source",
    "synthesize",
]
