"""HTTP mapping for dispatch errors.

Protean's own handlers cover ``ValidationError`` (400) and ``ObjectNotFoundError``
(404); this adds every ``DispatchError`` with the status its kind carries.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from dispatch.errors import DispatchError

logger = structlog.get_logger(__name__)


def register_dispatch_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DispatchError)
    async def _dispatch_error(request: Request, exc: DispatchError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.kind.value, message=exc.message)
        else:
            logger.info("Request rejected", path=request.url.path, error=exc.kind.value, message=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
