import fastapi

from app.errors import (
    MalformedPatchError,
    NotFoundError,
    PatchConflictError,
    UpstreamError,
)

_STATUS_CODES: list[tuple[type[Exception], int]] = [
    (NotFoundError, 404),
    (MalformedPatchError, 400),
    (PatchConflictError, 409),
    (UpstreamError, 502),
    (ValueError, 400),
]


def http_error(tool: str, e: Exception) -> fastapi.HTTPException:
    if isinstance(e, fastapi.HTTPException):
        return e

    for kind, status_code in _STATUS_CODES:
        if isinstance(e, kind):
            return fastapi.HTTPException(
                status_code=status_code,
                detail=f"[{tool}] {type(e).__name__}: {str(e)}",
            )

    return fastapi.HTTPException(
        status_code=500,
        detail=f"[{tool}] Exception {type(e)} occured: {str(e)}",
    )
