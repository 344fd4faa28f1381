from fastapi import HTTPException, Request, status

from civicsense.core.errors import (
    AlreadyExists,
    AssignmentConflict,
    CapacityExceeded,
    CivicSenseError,
    InvalidTransition,
    NotFound,
)
from civicsense.services.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


def http_error(exc: CivicSenseError) -> HTTPException:
    if isinstance(exc, NotFound):
        return HTTPException(status.HTTP_404_NOT_FOUND, str(exc))
    if isinstance(exc, (CapacityExceeded, AssignmentConflict, AlreadyExists)):
        return HTTPException(status.HTTP_409_CONFLICT, str(exc))
    if isinstance(exc, InvalidTransition):
        return HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
