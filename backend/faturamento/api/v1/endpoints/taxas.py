"""
Endpoints de Taxas Horárias.

Histórico de taxas com vigência; taxas não são apagadas, apenas desativadas.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from faturamento.core.dependencies import DBSession, EscritorioID
from faturamento.db.transaction import retry_on_conflict
from faturamento.schemas.base import APIResponse
from faturamento.schemas.time_entry import BillingRateCreate, BillingRateResponse
from faturamento.services.billing_rate_service import BillingRateService

router = APIRouter(prefix="/taxas", tags=["Taxas Horárias"])


@router.post(
    "",
    response_model=APIResponse[BillingRateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def criar_taxa(
    dados: BillingRateCreate,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[BillingRateResponse]:
    """
    Cria taxa horária.

    Rejeita vigência sobreposta a outra taxa ativa do mesmo escopo.
    """
    service = BillingRateService(db, escritorio_id)
    rate = await retry_on_conflict(service.create_rate, dados)

    return APIResponse(
        success=True,
        data=BillingRateResponse.model_validate(rate),
        message="Taxa horária criada com sucesso",
    )


@router.get("", response_model=APIResponse[list[BillingRateResponse]])
async def listar_taxas(
    db: DBSession,
    escritorio_id: EscritorioID,
    user_id: UUID | None = Query(None),
    apenas_ativas: bool = Query(False),
) -> APIResponse[list[BillingRateResponse]]:
    service = BillingRateService(db, escritorio_id)
    rates = await service.list_rates(user_id, only_active=apenas_ativas)

    return APIResponse(
        success=True,
        data=[BillingRateResponse.model_validate(r) for r in rates],
    )


@router.get("/{rate_id}", response_model=APIResponse[BillingRateResponse])
async def obter_taxa(
    rate_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[BillingRateResponse]:
    service = BillingRateService(db, escritorio_id)
    rate = await service.get_rate(rate_id)

    return APIResponse(success=True, data=BillingRateResponse.model_validate(rate))


@router.post("/{rate_id}/desativar", response_model=APIResponse[BillingRateResponse])
async def desativar_taxa(
    rate_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[BillingRateResponse]:
    """Desativa a taxa; lançamentos já precificados não mudam."""
    service = BillingRateService(db, escritorio_id)
    rate = await retry_on_conflict(service.deactivate_rate, rate_id)

    return APIResponse(
        success=True,
        data=BillingRateResponse.model_validate(rate),
        message="Taxa horária desativada",
    )
