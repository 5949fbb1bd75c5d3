"""
Centralized exception handling decorator for API route functions.

The :func:`handle_exceptions` decorator wraps an endpoint handler and converts
domain errors into :class:`fastapi.HTTPException` responses.  HTTPExceptions
raised by the handler are propagated untouched.  Known domain errors map to
their status codes; anything else becomes a ``500``.

Copyright (c) 2026 Stefan Kumarasinghe

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at http://www.apache.org/licenses/LICENSE-2.0
"""

from __future__ import annotations

import inspect
import logging
from functools import wraps
from typing import Any, Callable, Dict, Type, TypeVar, cast

from fastapi import HTTPException

from engine.errors import AlertNotFound, FleetPulseError, InvalidTransition, PersistenceError, ValidationError

F = TypeVar("F", bound=Callable[..., Any])

log = logging.getLogger(__name__)

_STATUS: Dict[Type[FleetPulseError], int] = {
    ValidationError: 422,
    AlertNotFound: 404,
    InvalidTransition: 409,
    PersistenceError: 503,
}


def _translate(exc: Exception) -> HTTPException:
    for exc_type, code in _STATUS.items():
        if isinstance(exc, exc_type):
            return HTTPException(status_code=code, detail=str(exc))
    log.exception("Unhandled error in route handler")
    return HTTPException(status_code=500, detail=str(exc))


def handle_exceptions(func: F) -> F:
    """Decorator that converts uncaught exceptions to HTTP errors.

    Works with both regular and async functions.
    """

    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except Exception as exc:
                raise _translate(exc) from exc

        return cast(F, async_wrapper)

    @wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except HTTPException:
            raise
        except Exception as exc:
            raise _translate(exc) from exc

    return cast(F, sync_wrapper)
