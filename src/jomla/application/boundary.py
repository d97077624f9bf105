"""Error boundary for callable handlers.

Domain errors cross the boundary unchanged. Anything else is logged with
the handler's identifying arguments and replaced by a generic ``internal``
error, so callers never see downstream stack traces.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable
from typing import TypeVar

from jomla.domain.exceptions import DomainException, InternalError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

GENERIC_MESSAGE = "An unexpected error occurred. Please try again later."


def callable_boundary(*context_fields: str, message: str = GENERIC_MESSAGE) -> Callable[[F], F]:
    """Wrap a ``handle`` method.

    ``context_fields`` names the arguments worth logging on failure
    (identifiers only: never codes, tokens or passwords).
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except DomainException:
                raise
            except Exception as exc:
                context = _context(signature, args, kwargs, context_fields)
                logger.exception(
                    "Unexpected error in %s %s",
                    func.__qualname__,
                    context,
                    extra={"context": context},
                )
                raise InternalError(message) from exc

        return wrapper  # type: ignore[return-value]

    return decorator


def _context(signature: inspect.Signature, args: tuple, kwargs: dict, fields: tuple[str, ...]) -> dict:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return {}
    context = {}
    for name in fields:
        value = bound.arguments.get(name)
        if value is not None:
            context[name] = getattr(value, "uid", value)
    return context
