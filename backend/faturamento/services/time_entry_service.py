"""
Service de Lançamentos de Horas.

Deriva duração, minutos efetivos, taxa e valor faturável de cada
lançamento, aplica as regras de sobreposição e imutabilidade e mantém
o resumo diário na mesma transação.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.config import settings
from faturamento.core.exceptions import (
    BusinessRuleError,
    ImmutableStateError,
    NotFoundError,
    OverlapError,
    ValidationError,
)
from faturamento.core.money import ZERO, quantize_money
from faturamento.db.transaction import atomic, hold_locks, lock_key
from faturamento.models.time_entry import (
    MUTABLE_STATUSES,
    BillingRateSource,
    TimeEntry,
    TimeEntryStatus,
)
from faturamento.repositories.time_entry_repository import TimeEntryRepository
from faturamento.repositories.usuario_repository import UsuarioRepository
from faturamento.schemas.time_entry import TimeEntryCreate, TimeEntryUpdate
from faturamento.services.billing_rate_service import RateResolver
from faturamento.services.daily_summary_service import DailySummaryAggregator

logger = structlog.get_logger()

RESOURCE = "Lançamento de horas"
MINUTES_PER_HOUR = Decimal(60)


# === Cálculos do lançamento ===

def as_utc(value: datetime) -> datetime:
    """Normaliza para UTC; datetimes sem fuso são tratados como UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_entry_date(start_time: datetime) -> date:
    """Data do lançamento no fuso do escritório."""
    return as_utc(start_time).astimezone(ZoneInfo(settings.TIMEZONE)).date()


def compute_duration_minutes(start_time: datetime, end_time: datetime) -> int:
    start, end = as_utc(start_time), as_utc(end_time)
    if end <= start:
        raise ValidationError("end_time deve ser posterior a start_time", field="end_time")
    return int((end - start).total_seconds() // 60)


def compute_effective_minutes(duration_minutes: int, break_minutes: int) -> int:
    """Minutos efetivos = duração − intervalo (nunca negativo)."""
    if break_minutes < 0:
        raise ValidationError("break_minutes não pode ser negativo", field="break_minutes")
    if break_minutes > duration_minutes:
        raise ValidationError(
            "break_minutes não pode exceder a duração do lançamento",
            field="break_minutes",
        )
    return duration_minutes - break_minutes


def compute_billable_amount(
    effective_minutes: int,
    is_billable: bool,
    rate: Decimal | None,
) -> Decimal:
    """
    Valor faturável = (minutos efetivos / 60) × taxa.

    Arredondado para centavos só no final. Não faturável: sempre 0.

    Exemplo:
        >>> compute_billable_amount(100, True, Decimal("200.00"))
        Decimal('333.33')
    """
    if not is_billable or rate is None:
        return ZERO
    return quantize_money(Decimal(effective_minutes) / MINUTES_PER_HOUR * rate)


def user_lock_key(escritorio_id: UUID, user_id: UUID) -> str:
    """Chave que serializa as escritas de horas de um usuário."""
    return lock_key("time_entries", escritorio_id, user_id)


class TimeEntryService:
    """
    Service para lançamentos de horas.

    Toda escrita é serializada por (escritório, usuário), o que cobre a
    checagem de sobreposição e o recálculo dos resumos dos dias afetados.
    """

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._db = db
        self._escritorio_id = escritorio_id
        self._repo = TimeEntryRepository(db, escritorio_id)
        self._usuarios = UsuarioRepository(db, escritorio_id)
        self._resolver = RateResolver(db, escritorio_id)
        self._aggregator = DailySummaryAggregator(db, escritorio_id)

    def _user_key(self, user_id: UUID) -> str:
        return user_lock_key(self._escritorio_id, user_id)

    async def _price(
        self,
        user_id: UUID,
        entry_date: date,
        is_billable: bool,
        explicit_rate: Decimal | None,
        service_type: str | None,
        matter_id: UUID | None,
    ) -> tuple[Decimal | None, BillingRateSource | None]:
        """Taxa aplicável e sua origem."""
        if explicit_rate is not None:
            return explicit_rate, BillingRateSource.CUSTOM
        if not is_billable:
            return None, None
        return await self._resolver.resolve(
            user_id,
            entry_date,
            service_type=service_type,
            matter_id=matter_id,
        )

    async def _ensure_no_overlap(
        self,
        user_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_id: UUID | None = None,
    ) -> None:
        overlapping = await self._repo.find_overlapping(
            user_id, start_time, end_time, exclude_id=exclude_id
        )
        if overlapping is not None:
            raise OverlapError(overlapping.id)

    # === Operações ===

    async def validate_new_entry(
        self,
        dados: TimeEntryCreate,
        user_id: UUID | None = None,
    ) -> UUID:
        """
        Valida um novo lançamento fora da transação e devolve o dono.

        O dono é `dados.user_id` ou, na ausência, o usuário da requisição.
        """
        owner_id = dados.user_id or user_id
        if owner_id is None:
            raise ValidationError("Usuário do lançamento não informado", field="user_id")
        if dados.entry_status not in MUTABLE_STATUSES:
            raise ValidationError(
                "Lançamentos são criados como draft ou pending",
                field="entry_status",
            )

        await self._usuarios.get_or_fail(owner_id)

        duration = compute_duration_minutes(dados.start_time, dados.end_time)
        compute_effective_minutes(duration, dados.break_minutes)
        return owner_id

    async def insert_time_entry(self, dados: TimeEntryCreate, owner_id: UUID) -> TimeEntry:
        """
        Grava um lançamento já validado na transação corrente.

        Deve rodar dentro de `atomic()`; o lock do usuário fica retido
        até o commit de quem chamou.
        """
        start_time, end_time = as_utc(dados.start_time), as_utc(dados.end_time)
        duration = compute_duration_minutes(start_time, end_time)
        effective = compute_effective_minutes(duration, dados.break_minutes)
        entry_date = local_entry_date(start_time)

        async with hold_locks(self._db, self._user_key(owner_id)):
            await self._ensure_no_overlap(owner_id, start_time, end_time)

            rate, source = await self._price(
                owner_id,
                entry_date,
                dados.is_billable,
                dados.billable_rate,
                dados.service_type,
                dados.matter_id,
            )
            entry = await self._repo.create(
                **dados.model_dump(exclude={"user_id", "start_time", "end_time", "billable_rate"}),
                user_id=owner_id,
                start_time=start_time,
                end_time=end_time,
                entry_date=entry_date,
                duration_minutes=duration,
                effective_minutes=effective,
                billable_rate=rate,
                billing_rate_source=source,
                billable_amount=compute_billable_amount(effective, dados.is_billable, rate),
            )
            await self._aggregator.recompute(owner_id, entry_date)
        return entry

    async def record_time_entry(
        self,
        dados: TimeEntryCreate,
        user_id: UUID | None = None,
    ) -> TimeEntry:
        """Registra um lançamento manual."""
        owner_id = await self.validate_new_entry(dados, user_id)

        async with atomic(self._db, self._user_key(owner_id)):
            entry = await self.insert_time_entry(dados, owner_id)

        logger.info(
            "Lançamento de horas registrado",
            time_entry_id=str(entry.id),
            user_id=str(owner_id),
            effective_minutes=entry.effective_minutes,
            billable_amount=str(entry.billable_amount),
        )
        return entry

    async def get_time_entry(self, entry_id: UUID) -> TimeEntry:
        entry = await self._repo.get_by_id(entry_id)
        if not entry:
            raise NotFoundError(RESOURCE, entry_id)
        return entry

    async def list_time_entries(
        self,
        user_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        status: TimeEntryStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[TimeEntry]:
        await self._usuarios.get_or_fail(user_id)
        return await self._repo.get_by_user(user_id, date_from, date_to, status, skip, limit)

    async def update_time_entry(self, entry_id: UUID, dados: TimeEntryUpdate) -> TimeEntry:
        """
        Atualiza um lançamento em draft/pending e re-deriva todos os campos.

        Se a data mudar, os resumos do dia antigo e do novo são recalculados.
        """
        current = await self.get_time_entry(entry_id)
        patch = dados.model_dump(exclude_unset=True)

        async with atomic(self._db, self._user_key(current.user_id)):
            entry = await self._repo.get_or_fail(entry_id, for_update=True)
            if entry.entry_status not in MUTABLE_STATUSES:
                raise ImmutableStateError(RESOURCE, entry_id, entry.entry_status.value)

            old_date = entry.entry_date
            start_time = as_utc(patch.get("start_time") or entry.start_time)
            end_time = as_utc(patch.get("end_time") or entry.end_time)
            break_minutes = patch.get("break_minutes")
            if break_minutes is None:
                break_minutes = entry.break_minutes
            is_billable = patch.get("is_billable")
            if is_billable is None:
                is_billable = entry.is_billable

            duration = compute_duration_minutes(start_time, end_time)
            effective = compute_effective_minutes(duration, break_minutes)
            entry_date = local_entry_date(start_time)

            if "start_time" in patch or "end_time" in patch:
                await self._ensure_no_overlap(
                    entry.user_id, start_time, end_time, exclude_id=entry.id
                )

            # Campos anuláveis aceitam None explícito; os demais ignoram None
            for field in ("matter_id", "client_subscription_id", "service_type"):
                if field in patch:
                    setattr(entry, field, patch[field])
            for field in ("entry_type", "activity_description"):
                if patch.get(field) is not None:
                    setattr(entry, field, patch[field])

            if "billable_rate" in patch:
                explicit_rate = patch["billable_rate"]
            elif entry.billing_rate_source == BillingRateSource.CUSTOM:
                explicit_rate = entry.billable_rate
            else:
                explicit_rate = None

            rate, source = await self._price(
                entry.user_id,
                entry_date,
                is_billable,
                explicit_rate,
                entry.service_type,
                entry.matter_id,
            )

            entry.start_time = start_time
            entry.end_time = end_time
            entry.entry_date = entry_date
            entry.break_minutes = break_minutes
            entry.duration_minutes = duration
            entry.effective_minutes = effective
            entry.is_billable = is_billable
            entry.billable_rate = rate
            entry.billing_rate_source = source
            entry.billable_amount = compute_billable_amount(effective, is_billable, rate)
            await self._db.flush()

            await self._aggregator.recompute(entry.user_id, entry_date)
            if old_date != entry_date:
                await self._aggregator.recompute(entry.user_id, old_date)

        logger.info(
            "Lançamento de horas atualizado",
            time_entry_id=str(entry_id),
            campos=sorted(patch.keys()),
        )
        return entry

    async def delete_time_entry(self, entry_id: UUID) -> None:
        """Remove um lançamento que ainda não foi aprovado nem faturado."""
        current = await self.get_time_entry(entry_id)

        async with atomic(self._db, self._user_key(current.user_id)):
            entry = await self._repo.get_or_fail(entry_id, for_update=True)
            if entry.is_locked:
                raise ImmutableStateError(RESOURCE, entry_id, entry.entry_status.value)

            user_id, entry_date = entry.user_id, entry.entry_date
            await self._db.delete(entry)
            await self._db.flush()
            await self._aggregator.recompute(user_id, entry_date)

        logger.info("Lançamento de horas removido", time_entry_id=str(entry_id))

    # === Fluxo de aprovação ===

    async def _transition(
        self,
        entry_id: UUID,
        allowed_from: set[TimeEntryStatus],
        target: TimeEntryStatus,
        **changes,
    ) -> TimeEntry:
        current = await self.get_time_entry(entry_id)

        async with atomic(self._db, self._user_key(current.user_id)):
            entry = await self._repo.get_or_fail(entry_id, for_update=True)
            if entry.is_locked:
                raise ImmutableStateError(RESOURCE, entry_id, entry.entry_status.value)
            if entry.entry_status not in allowed_from:
                raise BusinessRuleError(
                    f"Transição de '{entry.entry_status.value}' para '{target.value}' não permitida",
                    rule="INVALID_STATUS_TRANSITION",
                )

            previous = entry.entry_status
            entry.entry_status = target
            for field, value in changes.items():
                setattr(entry, field, value)
            await self._db.flush()
            await self._aggregator.recompute(entry.user_id, entry.entry_date)

        logger.info(
            "Status do lançamento alterado",
            time_entry_id=str(entry_id),
            de=previous.value,
            para=target.value,
        )
        return entry

    async def submit_time_entry(self, entry_id: UUID) -> TimeEntry:
        """Envia o rascunho para aprovação (draft → pending)."""
        return await self._transition(
            entry_id,
            {TimeEntryStatus.DRAFT},
            TimeEntryStatus.PENDING,
        )

    async def approve_time_entry(
        self,
        entry_id: UUID,
        approver_id: UUID,
        notes: str | None = None,
    ) -> TimeEntry:
        """Aprova o lançamento (draft/pending → approved); depois disso é imutável."""
        await self._usuarios.get_or_fail(approver_id)
        return await self._transition(
            entry_id,
            {TimeEntryStatus.DRAFT, TimeEntryStatus.PENDING},
            TimeEntryStatus.APPROVED,
            approved_by=approver_id,
            approved_at=datetime.now(timezone.utc),
            approval_notes=notes,
        )

    async def reject_time_entry(self, entry_id: UUID, reason: str) -> TimeEntry:
        """Rejeita o lançamento pendente; ele sai do resumo diário."""
        if not reason or not reason.strip():
            raise ValidationError("Motivo da rejeição é obrigatório", field="reason")
        return await self._transition(
            entry_id,
            {TimeEntryStatus.PENDING},
            TimeEntryStatus.REJECTED,
            rejected_reason=reason.strip(),
        )

    async def reopen_time_entry(self, entry_id: UUID) -> TimeEntry:
        """Devolve o lançamento rejeitado para rascunho (rejected → draft)."""
        return await self._transition(
            entry_id,
            {TimeEntryStatus.REJECTED},
            TimeEntryStatus.DRAFT,
            rejected_reason=None,
        )
