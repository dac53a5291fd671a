"""Mapping of Vista errors onto HTTP responses."""

from fastapi import HTTPException

from vista.errors import ErrorKind, VistaError

_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.SCHEMA: 500,
    ErrorKind.TRANSIENT: 503,
    ErrorKind.FATAL: 500,
}


def to_http_exception(error: VistaError) -> HTTPException:
    """Build the HTTPException for ``error`` based on its kind."""
    return HTTPException(status_code=_STATUS_BY_KIND[error.kind], detail=str(error))
