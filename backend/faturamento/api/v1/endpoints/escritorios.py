"""
Endpoints de Escritórios.

Cadastro de tenants. Não dependem do header X-Escritorio-ID.
"""

from uuid import UUID

from fastapi import APIRouter, status

from faturamento.core.dependencies import DBSession
from faturamento.db.transaction import retry_on_conflict
from faturamento.schemas.base import APIResponse
from faturamento.schemas.escritorio import (
    EscritorioCreate,
    EscritorioResponse,
    EscritorioUpdate,
    TaxaPadraoUpdate,
)
from faturamento.services.escritorio_service import EscritorioService

router = APIRouter(prefix="/escritorios", tags=["Escritórios"])


@router.post(
    "",
    response_model=APIResponse[EscritorioResponse],
    status_code=status.HTTP_201_CREATED,
)
async def criar_escritorio(
    dados: EscritorioCreate,
    db: DBSession,
) -> APIResponse[EscritorioResponse]:
    """Cadastra novo escritório (CNPJ validado quando informado)."""
    service = EscritorioService(db)
    escritorio = await retry_on_conflict(service.criar_escritorio, dados)

    return APIResponse(
        success=True,
        data=EscritorioResponse.model_validate(escritorio),
        message="Escritório criado com sucesso",
    )


@router.get("/{escritorio_id}", response_model=APIResponse[EscritorioResponse])
async def obter_escritorio(
    escritorio_id: UUID,
    db: DBSession,
) -> APIResponse[EscritorioResponse]:
    service = EscritorioService(db)
    escritorio = await service.buscar_escritorio(escritorio_id)

    return APIResponse(success=True, data=EscritorioResponse.model_validate(escritorio))


@router.patch("/{escritorio_id}", response_model=APIResponse[EscritorioResponse])
async def atualizar_escritorio(
    escritorio_id: UUID,
    dados: EscritorioUpdate,
    db: DBSession,
) -> APIResponse[EscritorioResponse]:
    service = EscritorioService(db)
    escritorio = await retry_on_conflict(service.atualizar_escritorio, escritorio_id, dados)

    return APIResponse(success=True, data=EscritorioResponse.model_validate(escritorio))


@router.put(
    "/{escritorio_id}/taxa-padrao",
    response_model=APIResponse[EscritorioResponse],
)
async def definir_taxa_padrao(
    escritorio_id: UUID,
    dados: TaxaPadraoUpdate,
    db: DBSession,
) -> APIResponse[EscritorioResponse]:
    """Define a taxa usada quando nenhuma taxa horária se aplica."""
    service = EscritorioService(db)
    escritorio = await retry_on_conflict(
        service.definir_taxa_padrao,
        escritorio_id,
        dados.default_hourly_rate,
    )

    return APIResponse(
        success=True,
        data=EscritorioResponse.model_validate(escritorio),
        message="Taxa padrão atualizada",
    )


@router.delete("/{escritorio_id}", response_model=APIResponse)
async def desativar_escritorio(
    escritorio_id: UUID,
    db: DBSession,
) -> APIResponse:
    service = EscritorioService(db)
    await retry_on_conflict(service.desativar_escritorio, escritorio_id)

    return APIResponse(success=True, message="Escritório desativado com sucesso")


@router.post("/{escritorio_id}/reativar", response_model=APIResponse[EscritorioResponse])
async def reativar_escritorio(
    escritorio_id: UUID,
    db: DBSession,
) -> APIResponse[EscritorioResponse]:
    service = EscritorioService(db)
    escritorio = await retry_on_conflict(service.reativar_escritorio, escritorio_id)

    return APIResponse(success=True, data=EscritorioResponse.model_validate(escritorio))
