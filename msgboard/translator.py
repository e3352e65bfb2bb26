import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from .errors import ErrorKind, MessageBoardError, NotFound, ValidationError
from .logging_utils import annotate


logger = logging.getLogger("msgboard.errors")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
}

GENERIC_ERROR = "Internal Server Error"


def classify_request_error(exc: RequestValidationError) -> Exception:
    """Map FastAPI's request parsing errors onto the domain taxonomy.

    A bad path id can never address a record, an absent body is missing
    text; anything else about the body is not the client's business to see.
    """
    errors = exc.errors()
    if any(e.get("loc", ())[:1] == ("path",) for e in errors):
        return NotFound()
    if errors and all(
        e.get("type") == "missing" and e.get("loc", ())[:1] == ("body",)
        for e in errors
    ):
        return ValidationError("Message text is required")
    return exc


def translate(request: Request, exc: Exception) -> JSONResponse:
    kind = exc.kind if isinstance(exc, MessageBoardError) else None
    status_code = STATUS_BY_KIND.get(kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    annotate(request, result=kind.value if kind else "error")

    if status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "unhandled error on %s %s (request_id=%s)",
            request.method,
            request.url.path,
            getattr(request.state, "request_id", None),
            exc_info=exc,
        )
        return JSONResponse(status_code=status_code, content={"error": GENERIC_ERROR})

    logger.info("%s on %s %s: %s", kind.value, request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"error": exc.message})


class ErrorTranslatingRoute(APIRoute):
    """Route class that funnels every failure through ``translate`` once."""

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def translating_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except RequestValidationError as exc:
                return translate(request, classify_request_error(exc))
            except Exception as exc:
                return translate(request, exc)

        return translating_handler
