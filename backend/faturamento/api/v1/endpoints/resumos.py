"""
Endpoints de Resumos Diários.

Somente leitura: os resumos são mantidos pelo agregador.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from faturamento.core.dependencies import DBSession, EscritorioID
from faturamento.schemas.base import APIResponse
from faturamento.schemas.time_entry import DailySummaryResponse
from faturamento.services.daily_summary_service import DailySummaryAggregator

router = APIRouter(prefix="/resumos-diarios", tags=["Resumos Diários"])


@router.get("/{user_id}", response_model=APIResponse[list[DailySummaryResponse]])
async def listar_resumos(
    user_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
    data_inicio: date = Query(...),
    data_fim: date = Query(...),
) -> APIResponse[list[DailySummaryResponse]]:
    """Resumos persistidos do usuário no período (dias sem lançamento não aparecem)."""
    if data_fim < data_inicio:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="data_fim deve ser posterior a data_inicio",
        )

    aggregator = DailySummaryAggregator(db, escritorio_id)
    summaries = await aggregator.list_summaries(user_id, data_inicio, data_fim)

    return APIResponse(
        success=True,
        data=[DailySummaryResponse.model_validate(s) for s in summaries],
    )


@router.get("/{user_id}/{summary_date}", response_model=APIResponse[DailySummaryResponse])
async def obter_resumo(
    user_id: UUID,
    summary_date: date,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[DailySummaryResponse]:
    """Resumo do dia; zerado quando não há lançamentos."""
    aggregator = DailySummaryAggregator(db, escritorio_id)
    summary = await aggregator.get_daily_summary(user_id, summary_date)

    return APIResponse(success=True, data=DailySummaryResponse.model_validate(summary))
