"""
Router principal da API v1.

Agrega todas as rotas organizadas por domínio.
"""

from fastapi import APIRouter

from faturamento.api.v1.endpoints import (
    clientes,
    cronometro,
    escritorios,
    faturas,
    fornecedores,
    health,
    lancamentos,
    resumos,
    taxas,
    validacao,
)
from faturamento.schemas.base import ErrorResponse

# Corpo de erro comum a todas as rotas (ver core/middleware)
api_router = APIRouter(
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)

# Health check
api_router.include_router(health.router, prefix="/health", tags=["Health"])

# Validação de documentos
api_router.include_router(validacao.router)

# Escritórios, Clientes e Fornecedores
api_router.include_router(escritorios.router)
api_router.include_router(clientes.router)
api_router.include_router(fornecedores.router)

# Controle de horas
api_router.include_router(taxas.router)
api_router.include_router(lancamentos.router)
api_router.include_router(cronometro.router)
api_router.include_router(resumos.router)

# Faturas
api_router.include_router(faturas.router)
