"""Translation of engine errors into HTTP responses."""
from __future__ import annotations

import logging

from fastapi import HTTPException

from ..resolver.errors import (
    AllProvidersExhausted,
    CatalogLookupError,
    InvalidRequest,
    ProviderUnavailable,
)
from .schemas import AttemptModel, ErrorDetail

logger = logging.getLogger(__name__)


def _detail(message: str, exc: Exception | None = None) -> dict:
    attempts = []
    if isinstance(exc, AllProvidersExhausted):
        attempts = [AttemptModel.from_failure(failure) for failure in exc.failures]
    return ErrorDetail(message=message, attempts=attempts).model_dump()


def to_http_exception(exc: Exception) -> HTTPException:
    """Map an exception raised by the resolution service to an HTTPException."""

    if isinstance(exc, InvalidRequest):
        return HTTPException(status_code=400, detail=_detail(str(exc)))
    if isinstance(exc, ProviderUnavailable):
        return HTTPException(status_code=502, detail=_detail(str(exc), exc))
    if isinstance(exc, AllProvidersExhausted):
        return HTTPException(status_code=404, detail=_detail(str(exc), exc))
    if isinstance(exc, CatalogLookupError):
        status_code = 404 if exc.not_found else 502
        return HTTPException(status_code=status_code, detail=_detail(str(exc)))

    logger.error("Unexpected resolver failure", exc_info=exc)
    return HTTPException(status_code=500, detail=_detail("Internal resolver error"))
