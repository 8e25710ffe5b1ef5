"""
Load generated mocks as live classes.

The rendered module is compiled and executed as a fresh module registered in
``sys.modules``; dataclasses resolve string annotations through the module
of the class they decorate.
"""

from __future__ import annotations

import itertools
import logging
import sys
import types
from collections.abc import Mapping
from typing import Any

from protomock.core.model import MockSpecification, SynthesisOptions
from protomock.synth import synthesize

logger = logging.getLogger(__name__)

GENERATED_PACKAGE = "protomock.generated"

_counter = itertools.count(1)


def load_module(
    source: str,
    module_name: str,
    namespace: Mapping[str, Any] | None = None,
) -> types.ModuleType:
    """
    Execute ``source`` as a new module named ``module_name``.

    ``namespace`` seeds the module globals before execution, so it can supply
    the interface class, names used in build conditions and types used in
    overload dispatch.
    """
    module = types.ModuleType(module_name)
    if namespace:
        module.__dict__.update(namespace)
    module.__dict__["__name__"] = module_name

    code = compile(source, f"<{module_name}>", "exec")
    sys.modules[module_name] = module
    try:
        exec(code, module.__dict__)
    except BaseException:
        del sys.modules[module_name]
        raise
    return module


def load_mock(
    spec: MockSpecification,
    namespace: Mapping[str, Any] | None = None,
    options: SynthesisOptions | None = None,
) -> type:
    """
    Synthesize the mock for ``spec`` and return the class.

    Example:
        UserServiceMock = load_mock(spec, {"UserService": UserService})
        mock = UserServiceMock()
    """
    result = synthesize(spec, options)
    module_name = f"{GENERATED_PACKAGE}.{result.mock_name.lstrip('_').lower()}_{next(_counter)}"
    module = load_module(result.source, module_name, namespace)
    logger.debug("Loaded %s from %s", result.mock_name, module_name)
    return getattr(module, result.mock_name)


def unload_mock(mock_cls: type) -> None:
    """
    Drop the module ``load_mock`` registered for ``mock_cls``.

    Each ``load_mock`` call adds a ``protomock.generated.*`` entry to
    ``sys.modules`` that stays there until unloaded; long sessions that
    load many mocks should unload the ones they are done with.

    Raises:
        ValueError: If ``mock_cls`` was not created by ``load_mock``.
    """
    module_name = mock_cls.__module__
    if not module_name.startswith(f"{GENERATED_PACKAGE}."):
        raise ValueError(f"{mock_cls.__qualname__} was not loaded by load_mock")
    if sys.modules.pop(module_name, None) is not None:
        logger.debug("Unloaded %s", module_name)
