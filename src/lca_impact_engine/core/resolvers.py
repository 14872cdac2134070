"""Ordered fallback resolution for fields with override/default/fallback cascades."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

ContextT = TypeVar("ContextT")
ValueT = TypeVar("ValueT")

Resolver = Callable[[ContextT], ValueT | None]


def resolve_cascade(resolvers: Sequence[Resolver[ContextT, ValueT]], context: ContextT) -> ValueT:
    """Return the first non-``None`` value produced by ``resolvers``.

    Every cascade ends with a resolver that always answers, so exhausting the
    chain means the cascade itself was assembled incorrectly.
    """
    for resolver in resolvers:
        value = resolver(context)
        if value is not None:
            return value
    raise LookupError("Resolver cascade exhausted without a terminal fallback")
