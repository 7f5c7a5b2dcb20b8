"""
Repository de Lançamentos de Horas, Taxas e Resumos Diários.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.models.time_entry import (
    ActiveTimeSession,
    BillingRate,
    DailyTimeSummary,
    TimeEntry,
    TimeEntryStatus,
)
from faturamento.repositories.base import MultiTenantRepository


class TimeEntryRepository(MultiTenantRepository[TimeEntry]):
    """Repository para operações com Lançamento de Horas."""

    resource_name = "Lançamento de horas"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(TimeEntry, db, escritorio_id)

    async def find_overlapping(
        self,
        user_id: UUID,
        start_time: datetime,
        end_time: datetime,
        exclude_id: UUID | None = None,
    ) -> TimeEntry | None:
        """
        Busca um lançamento do usuário cujo intervalo [início, fim)
        intercepta o intervalo informado.
        """
        query = select(TimeEntry).where(
            TimeEntry.escritorio_id == self.escritorio_id,
            TimeEntry.user_id == user_id,
            TimeEntry.start_time < end_time,
            TimeEntry.end_time > start_time,
        )
        if exclude_id is not None:
            query = query.where(TimeEntry.id != exclude_id)
        result = await self.db.execute(query.order_by(TimeEntry.start_time).limit(1))
        return result.scalar_one_or_none()

    async def get_day_entries(
        self,
        user_id: UUID,
        entry_date: date,
        include_rejected: bool = False,
    ) -> list[TimeEntry]:
        """Lista os lançamentos do usuário em uma data."""
        query = select(TimeEntry).where(
            TimeEntry.escritorio_id == self.escritorio_id,
            TimeEntry.user_id == user_id,
            TimeEntry.entry_date == entry_date,
        )
        if not include_rejected:
            query = query.where(TimeEntry.entry_status != TimeEntryStatus.REJECTED)
        result = await self.db.execute(
            query.order_by(TimeEntry.start_time).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_by_user(
        self,
        user_id: UUID,
        date_from: date | None = None,
        date_to: date | None = None,
        status: TimeEntryStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[TimeEntry]:
        """Lista lançamentos de um usuário com filtros opcionais."""
        query = select(TimeEntry).where(
            TimeEntry.escritorio_id == self.escritorio_id,
            TimeEntry.user_id == user_id,
        )
        if date_from:
            query = query.where(TimeEntry.entry_date >= date_from)
        if date_to:
            query = query.where(TimeEntry.entry_date <= date_to)
        if status:
            query = query.where(TimeEntry.entry_status == status)

        result = await self.db.execute(
            query.order_by(TimeEntry.start_time.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def get_by_invoice(self, invoice_id: UUID) -> list[TimeEntry]:
        """Lançamentos faturados em uma fatura."""
        result = await self.db.execute(
            select(TimeEntry)
            .where(
                TimeEntry.escritorio_id == self.escritorio_id,
                TimeEntry.invoice_id == invoice_id,
            )
            .order_by(TimeEntry.start_time)
        )
        return list(result.scalars().all())

    async def get_many(self, ids: list[UUID], for_update: bool = False) -> list[TimeEntry]:
        """
        Busca vários lançamentos por ID validando o tenant de cada um.

        IDs inexistentes são ignorados; o chamador compara os tamanhos.
        """
        if not ids:
            return []
        query = select(TimeEntry).where(TimeEntry.id.in_(ids))
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query.order_by(TimeEntry.start_time))
        entries = list(result.scalars().all())
        for entry in entries:
            self.ensure_tenant(entry)
        return entries


class BillingRateRepository(MultiTenantRepository[BillingRate]):
    """Repository para operações com Taxa Horária."""

    resource_name = "Taxa horária"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(BillingRate, db, escritorio_id)

    async def get_candidates(self, user_id: UUID, day: date) -> list[BillingRate]:
        """
        Taxas ativas vigentes na data, do usuário ou do escritório inteiro.

        Ordenadas da vigência mais recente para a mais antiga.
        """
        result = await self.db.execute(
            select(BillingRate)
            .where(
                BillingRate.escritorio_id == self.escritorio_id,
                BillingRate.is_active == True,  # noqa: E712
                or_(BillingRate.user_id == user_id, BillingRate.user_id.is_(None)),
                BillingRate.effective_from <= day,
                or_(
                    BillingRate.effective_until.is_(None),
                    BillingRate.effective_until > day,
                ),
            )
            .order_by(BillingRate.effective_from.desc())
        )
        return list(result.scalars().all())

    async def find_overlapping_active(
        self,
        user_id: UUID | None,
        service_type: str | None,
        matter_id: UUID | None,
        effective_from: date,
        effective_until: date | None,
    ) -> BillingRate | None:
        """Busca taxa ativa com o mesmo escopo e vigência sobreposta."""

        def same(column, value):
            return column.is_(None) if value is None else column == value

        conditions = [
            BillingRate.escritorio_id == self.escritorio_id,
            BillingRate.is_active == True,  # noqa: E712
            same(BillingRate.user_id, user_id),
            same(BillingRate.service_type, service_type),
            same(BillingRate.matter_id, matter_id),
            or_(
                BillingRate.effective_until.is_(None),
                BillingRate.effective_until > effective_from,
            ),
        ]
        if effective_until is not None:
            conditions.append(BillingRate.effective_from < effective_until)

        result = await self.db.execute(select(BillingRate).where(and_(*conditions)).limit(1))
        return result.scalar_one_or_none()

    async def get_by_user(
        self,
        user_id: UUID | None = None,
        only_active: bool = False,
        skip: int = 0,
        limit: int = 100,
    ) -> list[BillingRate]:
        """Lista o histórico de taxas (do usuário, quando informado)."""
        query = select(BillingRate).where(BillingRate.escritorio_id == self.escritorio_id)
        if user_id is not None:
            query = query.where(BillingRate.user_id == user_id)
        if only_active:
            query = query.where(BillingRate.is_active == True)  # noqa: E712
        result = await self.db.execute(
            query.order_by(BillingRate.effective_from.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())


class DailyTimeSummaryRepository(MultiTenantRepository[DailyTimeSummary]):
    """Repository para o Resumo Diário de horas."""

    resource_name = "Resumo diário"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(DailyTimeSummary, db, escritorio_id)

    async def get_for(self, user_id: UUID, summary_date: date) -> DailyTimeSummary | None:
        """Busca o resumo de (usuário, data) no tenant."""
        result = await self.db.execute(
            select(DailyTimeSummary)
            .where(
                DailyTimeSummary.escritorio_id == self.escritorio_id,
                DailyTimeSummary.user_id == user_id,
                DailyTimeSummary.summary_date == summary_date,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_range(
        self,
        user_id: UUID,
        date_from: date,
        date_to: date,
    ) -> list[DailyTimeSummary]:
        """Lista resumos do usuário em um período."""
        result = await self.db.execute(
            select(DailyTimeSummary)
            .where(
                DailyTimeSummary.escritorio_id == self.escritorio_id,
                DailyTimeSummary.user_id == user_id,
                DailyTimeSummary.summary_date >= date_from,
                DailyTimeSummary.summary_date <= date_to,
            )
            .order_by(DailyTimeSummary.summary_date)
        )
        return list(result.scalars().all())


class ActiveTimeSessionRepository(MultiTenantRepository[ActiveTimeSession]):
    """Repository para cronômetros ativos."""

    resource_name = "Cronômetro"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(ActiveTimeSession, db, escritorio_id)

    async def get_by_user(self, user_id: UUID) -> ActiveTimeSession | None:
        result = await self.db.execute(
            select(ActiveTimeSession).where(
                ActiveTimeSession.escritorio_id == self.escritorio_id,
                ActiveTimeSession.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
