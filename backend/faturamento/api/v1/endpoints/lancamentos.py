"""
Endpoints de Lançamentos de Horas.

Registro, edição e fluxo de aprovação. Cada alteração recalcula o
resumo diário do usuário na mesma transação.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from faturamento.core.dependencies import DBSession, EscritorioID, UsuarioID
from faturamento.db.transaction import retry_on_conflict
from faturamento.models.time_entry import TimeEntryStatus
from faturamento.schemas.base import APIResponse, PaginatedResponse
from faturamento.schemas.time_entry import (
    TimeEntryApprove,
    TimeEntryCreate,
    TimeEntryReject,
    TimeEntryResponse,
    TimeEntryUpdate,
)
from faturamento.services.time_entry_service import TimeEntryService

router = APIRouter(prefix="/lancamentos", tags=["Lançamentos de Horas"])


@router.post(
    "",
    response_model=APIResponse[TimeEntryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def registrar_lancamento(
    dados: TimeEntryCreate,
    db: DBSession,
    escritorio_id: EscritorioID,
    usuario_id: UsuarioID,
) -> APIResponse[TimeEntryResponse]:
    """
    Registra lançamento de horas.

    Sem `user_id` no corpo, o lançamento pertence ao usuário da requisição.
    Duração, minutos efetivos, taxa e valor são calculados pelo servidor.
    """
    service = TimeEntryService(db, escritorio_id)
    entry = await retry_on_conflict(service.record_time_entry, dados, usuario_id)

    return APIResponse(
        success=True,
        data=TimeEntryResponse.model_validate(entry),
        message="Lançamento registrado com sucesso",
    )


@router.get("", response_model=PaginatedResponse[TimeEntryResponse])
async def listar_lancamentos(
    db: DBSession,
    escritorio_id: EscritorioID,
    usuario_id: UsuarioID,
    user_id: UUID | None = Query(None, description="Padrão: usuário da requisição"),
    data_inicio: date | None = Query(None),
    data_fim: date | None = Query(None),
    entry_status: TimeEntryStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
) -> PaginatedResponse[TimeEntryResponse]:
    service = TimeEntryService(db, escritorio_id)
    entries = await service.list_time_entries(
        user_id or usuario_id,
        data_inicio,
        data_fim,
        entry_status,
        skip,
        limit,
    )

    return PaginatedResponse(
        success=True,
        data=[TimeEntryResponse.model_validate(e) for e in entries],
        total=len(entries),
        page=skip // limit + 1,
        page_size=limit,
    )


@router.get("/{entry_id}", response_model=APIResponse[TimeEntryResponse])
async def obter_lancamento(
    entry_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[TimeEntryResponse]:
    service = TimeEntryService(db, escritorio_id)
    entry = await service.get_time_entry(entry_id)

    return APIResponse(success=True, data=TimeEntryResponse.model_validate(entry))


@router.patch("/{entry_id}", response_model=APIResponse[TimeEntryResponse])
async def atualizar_lancamento(
    entry_id: UUID,
    dados: TimeEntryUpdate,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[TimeEntryResponse]:
    """Atualiza lançamento em draft ou pending."""
    service = TimeEntryService(db, escritorio_id)
    entry = await retry_on_conflict(service.update_time_entry, entry_id, dados)

    return APIResponse(success=True, data=TimeEntryResponse.model_validate(entry))


@router.delete("/{entry_id}", response_model=APIResponse)
async def remover_lancamento(
    entry_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse:
    service = TimeEntryService(db, escritorio_id)
    await retry_on_conflict(service.delete_time_entry, entry_id)

    return APIResponse(success=True, message="Lançamento removido com sucesso")


@router.post("/{entry_id}/enviar", response_model=APIResponse[TimeEntryResponse])
async def enviar_lancamento(
    entry_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[TimeEntryResponse]:
    """Envia rascunho para aprovação."""
    service = TimeEntryService(db, escritorio_id)
    entry = await retry_on_conflict(service.submit_time_entry, entry_id)

    return APIResponse(success=True, data=TimeEntryResponse.model_validate(entry))


@router.post("/{entry_id}/aprovar", response_model=APIResponse[TimeEntryResponse])
async def aprovar_lancamento(
    entry_id: UUID,
    dados: TimeEntryApprove,
    db: DBSession,
    escritorio_id: EscritorioID,
    usuario_id: UsuarioID,
) -> APIResponse[TimeEntryResponse]:
    """Aprova o lançamento; o aprovador é o usuário da requisição."""
    service = TimeEntryService(db, escritorio_id)
    entry = await retry_on_conflict(
        service.approve_time_entry,
        entry_id,
        usuario_id,
        dados.notes,
    )

    return APIResponse(
        success=True,
        data=TimeEntryResponse.model_validate(entry),
        message="Lançamento aprovado",
    )


@router.post("/{entry_id}/rejeitar", response_model=APIResponse[TimeEntryResponse])
async def rejeitar_lancamento(
    entry_id: UUID,
    dados: TimeEntryReject,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[TimeEntryResponse]:
    service = TimeEntryService(db, escritorio_id)
    entry = await retry_on_conflict(service.reject_time_entry, entry_id, dados.reason)

    return APIResponse(
        success=True,
        data=TimeEntryResponse.model_validate(entry),
        message="Lançamento rejeitado",
    )


@router.post("/{entry_id}/reabrir", response_model=APIResponse[TimeEntryResponse])
async def reabrir_lancamento(
    entry_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[TimeEntryResponse]:
    """Devolve lançamento rejeitado para rascunho, para correção e reenvio."""
    service = TimeEntryService(db, escritorio_id)
    entry = await retry_on_conflict(service.reopen_time_entry, entry_id)

    return APIResponse(success=True, data=TimeEntryResponse.model_validate(entry))
