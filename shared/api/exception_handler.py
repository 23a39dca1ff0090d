"""
API Exception Handler

Maps domain errors to HTTP responses; DRF's own exceptions keep DRF's
default handling.

    ValidationError -> 400 {"message": ..., "errors": [...]}
    NotFoundError   -> 404 {"message": ...}
    ConflictError   -> 409 {"message": ...}
"""

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import ConflictError, DomainError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def domain_exception_handler(exc, context):
    if isinstance(exc, ValidationError):
        return Response(
            {"message": "Validation failed.", "errors": list(exc.errors)},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, NotFoundError):
        return Response({"message": str(exc)}, status=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, ConflictError):
        return Response({"message": str(exc)}, status=status.HTTP_409_CONFLICT)
    if isinstance(exc, DomainError):
        logger.warning(f"Unmapped domain error in {context.get('view').__class__.__name__}: {exc}")
        return Response({"message": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return drf_exception_handler(exc, context)
