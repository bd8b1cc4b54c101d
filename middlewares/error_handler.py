import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from schemas.common import error_body
from services.errors import BitacoraError, SubmissionValidationError, UpstreamStorageError

logger = logging.getLogger(__name__)


def add_error_handlers(app: FastAPI):
    @app.exception_handler(SubmissionValidationError)
    async def submission_validation_handler(request: Request, exc: SubmissionValidationError):
        return JSONResponse(status_code=400, content=error_body(exc.message, exc.errors))

    @app.exception_handler(UpstreamStorageError)
    async def upstream_storage_handler(request: Request, exc: UpstreamStorageError):
        # detail (status/body) is already logged by the gateway
        return JSONResponse(status_code=500, content=error_body(exc.message))

    @app.exception_handler(BitacoraError)
    async def bitacora_error_handler(request: Request, exc: BitacoraError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in exc.errors()]
        return JSONResponse(status_code=400, content=error_body("Parámetros inválidos.", errors))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content=error_body("Error interno"))
