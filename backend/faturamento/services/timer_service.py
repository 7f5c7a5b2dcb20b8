"""
Service do Cronômetro.

Cada usuário tem no máximo um cronômetro ativo. Pausas acumulam
minutos em `pause_duration_minutes`; ao parar, o cronômetro vira um
lançamento de horas com esse total como intervalo, passando pelas
mesmas regras do lançamento manual (sobreposição, taxa e resumo diário).
"""

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import BusinessRuleError, ValidationError
from faturamento.db.transaction import atomic
from faturamento.models.time_entry import ActiveTimeSession, TimeEntry
from faturamento.repositories.time_entry_repository import ActiveTimeSessionRepository
from faturamento.repositories.usuario_repository import UsuarioRepository
from faturamento.schemas.time_entry import TimeEntryCreate, TimerStart
from faturamento.services.time_entry_service import (
    TimeEntryService,
    as_utc,
    user_lock_key,
)

logger = structlog.get_logger()

DEFAULT_DESCRIPTION = "Lançamento do cronômetro"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def rounded_minutes(start: datetime, end: datetime) -> int:
    """Minutos entre dois instantes, arredondados ao minuto mais próximo."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds / 60 + 0.5)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Minutos completos entre dois instantes (mesma regra do lançamento)."""
    seconds = (as_utc(end) - as_utc(start)).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def total_pause_minutes(session: ActiveTimeSession, now: datetime) -> int:
    """Pausas já encerradas mais a pausa em andamento, se houver."""
    total = session.pause_duration_minutes or 0
    if session.is_paused and session.paused_at is not None:
        total += rounded_minutes(session.paused_at, now)
    return total


class TimerService:
    """
    Service para o cronômetro de horas.

    Usa a mesma chave de lock dos lançamentos do usuário, então parar o
    cronômetro e registrar um lançamento manual nunca correm em paralelo.
    """

    def __init__(
        self,
        db: AsyncSession,
        escritorio_id: UUID,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._db = db
        self._escritorio_id = escritorio_id
        self._clock = clock
        self._repo = ActiveTimeSessionRepository(db, escritorio_id)
        self._usuarios = UsuarioRepository(db, escritorio_id)
        self._entries = TimeEntryService(db, escritorio_id)

    def _user_key(self, user_id: UUID) -> str:
        return user_lock_key(self._escritorio_id, user_id)

    async def get_current_session(self, user_id: UUID) -> ActiveTimeSession | None:
        await self._usuarios.get_or_fail(user_id)
        return await self._repo.get_by_user(user_id)

    async def start_timer(self, dados: TimerStart, user_id: UUID | None = None) -> ActiveTimeSession:
        """
        Inicia um cronômetro para o usuário.

        Um cronômetro anterior do mesmo usuário é descartado sem gerar
        lançamento.
        """
        owner_id = dados.user_id or user_id
        if owner_id is None:
            raise ValidationError("Usuário do cronômetro não informado", field="user_id")
        await self._usuarios.get_or_fail(owner_id)

        now = self._clock()
        session_name = dados.session_name
        if session_name is None and dados.activity_description:
            session_name = dados.activity_description[:100]

        async with atomic(self._db, self._user_key(owner_id)):
            previous = await self._repo.get_by_user(owner_id)
            if previous is not None:
                discarded_id = previous.id
                await self._db.delete(previous)
                await self._db.flush()
                logger.info(
                    "Cronômetro anterior descartado",
                    session_id=str(discarded_id),
                    user_id=str(owner_id),
                )

            session = await self._repo.create(
                **dados.model_dump(exclude={"user_id", "session_name"}),
                user_id=owner_id,
                session_name=session_name,
                started_at=now,
                last_heartbeat=now,
                is_paused=False,
                pause_duration_minutes=0,
            )

        logger.info("Cronômetro iniciado", session_id=str(session.id), user_id=str(owner_id))
        return session

    async def pause_timer(self, session_id: UUID) -> ActiveTimeSession:
        current = await self._repo.get_or_fail(session_id)

        async with atomic(self._db, self._user_key(current.user_id)):
            session = await self._repo.get_or_fail(session_id, for_update=True)
            if session.is_paused:
                raise BusinessRuleError("Cronômetro já está pausado", rule="TIMER_ALREADY_PAUSED")
            now = self._clock()
            session.is_paused = True
            session.paused_at = now
            session.last_heartbeat = now
            await self._db.flush()

        logger.info("Cronômetro pausado", session_id=str(session_id))
        return session

    async def resume_timer(self, session_id: UUID) -> ActiveTimeSession:
        """Retoma o cronômetro somando a pausa encerrada ao total."""
        current = await self._repo.get_or_fail(session_id)

        async with atomic(self._db, self._user_key(current.user_id)):
            session = await self._repo.get_or_fail(session_id, for_update=True)
            if not session.is_paused:
                raise BusinessRuleError("Cronômetro não está pausado", rule="TIMER_NOT_PAUSED")
            now = self._clock()
            session.pause_duration_minutes = total_pause_minutes(session, now)
            session.is_paused = False
            session.paused_at = None
            session.last_heartbeat = now
            await self._db.flush()

        logger.info(
            "Cronômetro retomado",
            session_id=str(session_id),
            pause_duration_minutes=session.pause_duration_minutes,
        )
        return session

    async def heartbeat(self, session_id: UUID) -> ActiveTimeSession:
        current = await self._repo.get_or_fail(session_id)

        async with atomic(self._db, self._user_key(current.user_id)):
            session = await self._repo.get_or_fail(session_id, for_update=True)
            session.last_heartbeat = self._clock()
            await self._db.flush()
        return session

    async def stop_timer(self, session_id: UUID, save_entry: bool = True) -> TimeEntry | None:
        """
        Para o cronômetro e, se pedido, registra o lançamento.

        O lançamento e a remoção do cronômetro são gravados na mesma
        transação: se o lançamento for recusado (ex: sobreposição), o
        cronômetro continua ativo.

        Retorna None quando descartado ou quando não há minutos efetivos.
        """
        current = await self._repo.get_or_fail(session_id)
        entry: TimeEntry | None = None

        async with atomic(self._db, self._user_key(current.user_id)):
            session = await self._repo.get_or_fail(session_id, for_update=True)
            end_time = self._clock()
            duration = elapsed_minutes(session.started_at, end_time)
            break_minutes = min(total_pause_minutes(session, end_time), duration)

            if save_entry and duration - break_minutes > 0:
                dados = TimeEntryCreate(
                    user_id=session.user_id,
                    entry_type=session.entry_type,
                    matter_id=session.matter_id,
                    client_subscription_id=session.client_subscription_id,
                    service_type=session.service_type,
                    activity_description=session.activity_description or DEFAULT_DESCRIPTION,
                    start_time=as_utc(session.started_at),
                    end_time=end_time,
                    break_minutes=break_minutes,
                    is_billable=session.is_billable,
                    billable_rate=session.billable_rate,
                )
                owner_id = await self._entries.validate_new_entry(dados)
                entry = await self._entries.insert_time_entry(dados, owner_id)

            await self._db.delete(session)
            await self._db.flush()

        logger.info(
            "Cronômetro parado",
            session_id=str(session_id),
            time_entry_id=str(entry.id) if entry else None,
            break_minutes=break_minutes,
        )
        return entry
