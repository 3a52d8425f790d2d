from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger


ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def error_body(*, detail: Any, code: str, **context: Any) -> dict[str, Any]:
    return {'detail': detail, 'code': code, **context}


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, CustomBaseError)
    if exc.status_code >= 500:
        Logger.base.warning(f'🌐 [HTTP] {request.url.path} answered {exc.status_code}: {exc.message}')
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(detail=exc.message, code=exc.code, **exc.context()),
    )


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    # Pydantic error entries may carry the raw input (Decimal, UUID)
    errors = [
        {'loc': list(e.get('loc', ())), 'msg': e.get('msg', ''), 'type': e.get('type', '')}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(detail=errors, code='invalid_request'),
    )


async def value_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(detail=str(exc), code='invalid_request'),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.error(f'💥 [HTTP] Unhandled {type(exc).__name__} on {request.url.path}: {exc}')
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(detail='Internal server error', code='internal_error'),
    )


EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    RequestValidationError: request_validation_handler,
    ValueError: value_error_handler,
    Exception: unhandled_error_handler,
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
