"""
Generic type erasure.

Handler signatures and call-argument logs live on the mock instance, where
an operation's local type variables are out of scope. Types that mention
one are therefore replaced with ``Any``:

    erase(T, {"T"})             -> Any
    erase(list[T], {"T"})       -> list[Any]
    erase(Key[T], {"T"})        -> Any          (whole instantiation)
    erase(Key[int], {"T"})      -> Key[int]     (untouched)

Erasure of a generic instantiation is deliberately coarse: the whole
instantiation is erased as soon as any argument mentions a type variable.
Call sites whose declared return type mentions one cast the handler's
result back with ``typing.cast``.
"""

from __future__ import annotations

from collections.abc import Collection

from protomock.core.model import (
    ANY,
    CAPTURE_ATTRIBUTES,
    ArrayType,
    AttributedType,
    FunctionType,
    GenericType,
    NamedType,
    OptionalType,
    TypeRef,
    UnionType,
)


def contains_generic(type_ref: TypeRef, generics: Collection[str]) -> bool:
    """Whether any part of the type names one of ``generics``."""
    if not generics:
        return False
    match type_ref:
        case NamedType(name=name):
            return name in generics
        case OptionalType(wrapped=wrapped):
            return contains_generic(wrapped, generics)
        case ArrayType(element=element):
            return contains_generic(element, generics)
        case GenericType(base=base, arguments=arguments):
            return base in generics or any(contains_generic(a, generics) for a in arguments)
        case UnionType(options=options):
            return any(contains_generic(o, generics) for o in options)
        case FunctionType(parameters=parameters, returns=returns):
            if any(contains_generic(p, generics) for p in parameters or ()):
                return True
            return returns is not None and contains_generic(returns, generics)
        case AttributedType(base=base):
            return contains_generic(base, generics)
    return False


def erase(type_ref: TypeRef, generics: Collection[str]) -> TypeRef:
    """
    Rewrite ``type_ref`` so it no longer mentions any of ``generics``.

    Wrappers are rebuilt only when a component changed, so with no generics
    in play the same object comes back (apart from stripped capture
    attributes, which are removed regardless).
    """
    match type_ref:
        case NamedType(name=name):
            return ANY if name in generics else type_ref

        case GenericType(arguments=arguments):
            if contains_generic(type_ref, generics):
                return ANY
            stripped = tuple(erase(a, generics) for a in arguments)
            if all(new is old for new, old in zip(stripped, arguments, strict=True)):
                return type_ref
            return type_ref.model_copy(update={"arguments": stripped})

        case OptionalType(wrapped=wrapped):
            erased = erase(wrapped, generics)
            if erased is wrapped:
                return type_ref
            # Any already admits None
            if erased == ANY:
                return ANY
            return type_ref.model_copy(update={"wrapped": erased})

        case ArrayType(element=element):
            erased = erase(element, generics)
            if erased is element:
                return type_ref
            return type_ref.model_copy(update={"element": erased})

        case UnionType(options=options):
            erased_options = tuple(erase(o, generics) for o in options)
            if all(new is old for new, old in zip(erased_options, options, strict=True)):
                return type_ref
            if ANY in erased_options:
                return ANY
            deduped = _dedupe(erased_options)
            if len(deduped) == 1:
                return deduped[0]
            return type_ref.model_copy(update={"options": deduped})

        case FunctionType(parameters=parameters, returns=returns):
            new_params = (
                None if parameters is None else tuple(erase(p, generics) for p in parameters)
            )
            new_returns = None if returns is None else erase(returns, generics)
            params_same = parameters is None or all(
                new is old for new, old in zip(new_params or (), parameters, strict=True)
            )
            if params_same and new_returns is returns:
                return type_ref
            return type_ref.model_copy(update={"parameters": new_params, "returns": new_returns})

        case AttributedType(base=base, attributes=attributes):
            erased_base = erase(base, generics)
            kept = tuple(a for a in attributes if a not in CAPTURE_ATTRIBUTES)
            if not kept:
                return erased_base
            if erased_base is base and kept == attributes:
                return type_ref
            return type_ref.model_copy(update={"base": erased_base, "attributes": kept})

    return type_ref


def strip_capture_attributes(type_ref: TypeRef) -> TypeRef:
    """Remove parameter-only attributes without erasing anything."""
    return erase(type_ref, ())


def _dedupe(options: tuple[TypeRef, ...]) -> tuple[TypeRef, ...]:
    result: list[TypeRef] = []
    for option in options:
        if option not in result:
            result.append(option)
    return tuple(result)
