"""
Endpoints do Cronômetro.

Um cronômetro por usuário; ao parar, vira um lançamento de horas.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from faturamento.core.dependencies import DBSession, EscritorioID, UsuarioID
from faturamento.db.transaction import retry_on_conflict
from faturamento.schemas.base import APIResponse
from faturamento.schemas.time_entry import (
    ActiveTimeSessionResponse,
    TimeEntryResponse,
    TimerStart,
)
from faturamento.services.timer_service import TimerService

router = APIRouter(prefix="/cronometro", tags=["Cronômetro"])


@router.post(
    "",
    response_model=APIResponse[ActiveTimeSessionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def iniciar_cronometro(
    dados: TimerStart,
    db: DBSession,
    escritorio_id: EscritorioID,
    usuario_id: UsuarioID,
) -> APIResponse[ActiveTimeSessionResponse]:
    """
    Inicia o cronômetro.

    Um cronômetro anterior do mesmo usuário é descartado.
    """
    service = TimerService(db, escritorio_id)
    session = await retry_on_conflict(service.start_timer, dados, usuario_id)

    return APIResponse(
        success=True,
        data=ActiveTimeSessionResponse.model_validate(session),
        message="Cronômetro iniciado",
    )


@router.get("", response_model=APIResponse[ActiveTimeSessionResponse])
async def cronometro_atual(
    db: DBSession,
    escritorio_id: EscritorioID,
    usuario_id: UsuarioID,
    user_id: UUID | None = Query(None, description="Padrão: usuário da requisição"),
) -> APIResponse[ActiveTimeSessionResponse]:
    """Cronômetro ativo do usuário; `data` nulo quando não há."""
    service = TimerService(db, escritorio_id)
    session = await service.get_current_session(user_id or usuario_id)

    return APIResponse(
        success=True,
        data=ActiveTimeSessionResponse.model_validate(session) if session else None,
    )


@router.post("/{session_id}/pausar", response_model=APIResponse[ActiveTimeSessionResponse])
async def pausar_cronometro(
    session_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[ActiveTimeSessionResponse]:
    service = TimerService(db, escritorio_id)
    session = await retry_on_conflict(service.pause_timer, session_id)

    return APIResponse(success=True, data=ActiveTimeSessionResponse.model_validate(session))


@router.post("/{session_id}/retomar", response_model=APIResponse[ActiveTimeSessionResponse])
async def retomar_cronometro(
    session_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[ActiveTimeSessionResponse]:
    service = TimerService(db, escritorio_id)
    session = await retry_on_conflict(service.resume_timer, session_id)

    return APIResponse(success=True, data=ActiveTimeSessionResponse.model_validate(session))


@router.post("/{session_id}/heartbeat", response_model=APIResponse[ActiveTimeSessionResponse])
async def heartbeat_cronometro(
    session_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[ActiveTimeSessionResponse]:
    service = TimerService(db, escritorio_id)
    session = await retry_on_conflict(service.heartbeat, session_id)

    return APIResponse(success=True, data=ActiveTimeSessionResponse.model_validate(session))


@router.post("/{session_id}/parar", response_model=APIResponse[TimeEntryResponse])
async def parar_cronometro(
    session_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
    descartar: bool = Query(False, description="Para sem registrar lançamento"),
) -> APIResponse[TimeEntryResponse]:
    """
    Para o cronômetro.

    O lançamento gerado usa o total pausado como intervalo. `data` é nulo
    quando o cronômetro foi descartado ou não acumulou minutos efetivos.
    """
    service = TimerService(db, escritorio_id)
    entry = await retry_on_conflict(service.stop_timer, session_id, not descartar)

    return APIResponse(
        success=True,
        data=TimeEntryResponse.model_validate(entry) if entry else None,
        message="Cronômetro parado",
    )
