"""
Middleware de tratamento de exceções.

Converte exceções do núcleo em respostas HTTP padronizadas.
"""

import traceback
import uuid

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from faturamento.core.config import settings
from faturamento.core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    CRMException,
    NotFoundError,
    OverlapError,
    ResourceAlreadyExistsError,
    ValidationError,
)

logger = structlog.get_logger()

# A ordem importa: subclasses antes das classes base
STATUS_MAP: list[tuple[type[CRMException], int]] = [
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ResourceAlreadyExistsError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (OverlapError, status.HTTP_409_CONFLICT),
    (BusinessRuleError, status.HTTP_400_BAD_REQUEST),
]


def status_for(exc: CRMException) -> int:
    """Status HTTP da exceção; desconhecidas viram 500."""
    for exc_type, http_status in STATUS_MAP:
        if isinstance(exc, exc_type):
            return http_status
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict | None = None,
) -> JSONResponse:
    """Cria resposta de erro padronizada."""
    content = {
        "success": False,
        "error": {
            "code": code,
            "message": message,
        },
    }
    if details:
        content["error"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def crm_exception_handler(request: Request, exc: CRMException) -> JSONResponse:
    """Handler para exceções do núcleo."""
    logger.warning(
        "Requisição rejeitada",
        code=exc.code,
        message=exc.message,
        path=request.url.path,
        details=exc.details,
    )

    return create_error_response(
        status_code=status_for(exc),
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler para exceções não tratadas."""
    logger.error(
        "Exceção não tratada",
        exc_type=type(exc).__name__,
        message=str(exc),
        path=request.url.path,
        traceback=traceback.format_exc() if settings.DEBUG else None,
    )

    message = "Erro interno do servidor"
    details = None

    if settings.DEBUG:
        message = str(exc)
        details = {"traceback": traceback.format_exc()}

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message=message,
        details=details,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Registra handlers de exceção na aplicação."""
    app.add_exception_handler(CRMException, crm_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


class RequestContextMiddleware:
    """
    Middleware para adicionar contexto às requisições.

    Adiciona request_id, rota, escritório e usuário ao contexto de log.
    """

    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())[:8]
        headers = dict(scope.get("headers") or [])
        escritorio_id = headers.get(b"x-escritorio-id", b"").decode("latin-1") or None
        usuario_id = headers.get(b"x-usuario-id", b"").decode("latin-1") or None

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=scope.get("path", ""),
            method=scope.get("method", ""),
            escritorio_id=escritorio_id,
            usuario_id=usuario_id,
        )

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                response_headers = list(message.get("headers", []))
                response_headers.append((b"x-request-id", request_id.encode()))
                message["headers"] = response_headers
            await send(message)

        await self.app(scope, receive, send_wrapper)
