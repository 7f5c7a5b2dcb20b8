"""
Agregador do Resumo Diário de horas.

O resumo de (escritório, usuário, data) é sempre recalculado por
completo a partir dos lançamentos não rejeitados do dia, nunca por
deltas. Chamado dentro da transação que alterou os lançamentos.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.money import ZERO, quantize_money
from faturamento.db.transaction import hold_locks, lock_key
from faturamento.models.time_entry import (
    DailyTimeSummary,
    TimeEntry,
    TimeEntryStatus,
)
from faturamento.repositories.time_entry_repository import (
    DailyTimeSummaryRepository,
    TimeEntryRepository,
)
from faturamento.repositories.usuario_repository import UsuarioRepository

logger = structlog.get_logger()

APPROVED_STATUSES = (TimeEntryStatus.APPROVED, TimeEntryStatus.BILLED)
PENDING_STATUSES = (TimeEntryStatus.DRAFT, TimeEntryStatus.PENDING)


def summarize_entries(entries: Iterable[TimeEntry]) -> dict[str, Any]:
    """Calcula os agregados do dia a partir dos lançamentos."""
    total_minutes = 0
    billable_minutes = 0
    minutes_by_type: dict[str, int] = {}
    amount = Decimal("0")
    total_entries = approved_entries = pending_entries = 0

    for entry in entries:
        if entry.entry_status == TimeEntryStatus.REJECTED:
            continue
        total_entries += 1
        total_minutes += entry.effective_minutes
        if entry.is_billable:
            billable_minutes += entry.effective_minutes
        key = entry.entry_type.value
        minutes_by_type[key] = minutes_by_type.get(key, 0) + entry.effective_minutes
        amount += entry.billable_amount or Decimal("0")
        if entry.entry_status in APPROVED_STATUSES:
            approved_entries += 1
        elif entry.entry_status in PENDING_STATUSES:
            pending_entries += 1

    utilization = ZERO
    if total_minutes:
        utilization = quantize_money(Decimal(billable_minutes) * 100 / Decimal(total_minutes))

    return {
        "total_minutes": total_minutes,
        "billable_minutes": billable_minutes,
        "non_billable_minutes": total_minutes - billable_minutes,
        "minutes_by_type": minutes_by_type,
        "total_billable_amount": quantize_money(amount),
        "total_entries": total_entries,
        "approved_entries": approved_entries,
        "pending_entries": pending_entries,
        "utilization_percentage": utilization,
    }


class DailySummaryAggregator:
    """Mantém e consulta o resumo diário de horas por usuário."""

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._db = db
        self._escritorio_id = escritorio_id
        self._entries = TimeEntryRepository(db, escritorio_id)
        self._summaries = DailyTimeSummaryRepository(db, escritorio_id)
        self._usuarios = UsuarioRepository(db, escritorio_id)

    def summary_key(self, user_id: UUID, day: date) -> str:
        return lock_key("daily_summary", self._escritorio_id, user_id, day.isoformat())

    async def recompute(self, user_id: UUID, day: date) -> DailyTimeSummary | None:
        """
        Recalcula o resumo do dia na transação corrente (sem commit).

        Cria a linha na primeira vez; remove a linha quando não resta
        nenhum lançamento não rejeitado no dia.
        """
        async with hold_locks(self._db, self.summary_key(user_id, day)):
            entries = await self._entries.get_day_entries(user_id, day)
            summary = await self._summaries.get_for(user_id, day)

            if not entries:
                if summary is not None:
                    await self._db.delete(summary)
                    await self._db.flush()
                    logger.debug(
                        "Resumo diário removido",
                        user_id=str(user_id),
                        summary_date=day.isoformat(),
                    )
                return None

            totals = summarize_entries(entries)
            if summary is None:
                summary = await self._summaries.create(
                    user_id=user_id,
                    summary_date=day,
                    **totals,
                )
            else:
                for field, value in totals.items():
                    setattr(summary, field, value)
                await self._db.flush()

        logger.debug(
            "Resumo diário recalculado",
            user_id=str(user_id),
            summary_date=day.isoformat(),
            total_minutes=summary.total_minutes,
        )
        return summary

    async def get_daily_summary(self, user_id: UUID, day: date) -> DailyTimeSummary:
        """
        Resumo do usuário na data.

        Sem lançamentos no dia, devolve um resumo zerado não persistido.
        """
        await self._usuarios.get_or_fail(user_id)

        summary = await self._summaries.get_for(user_id, day)
        if summary is not None:
            return summary

        return DailyTimeSummary(
            escritorio_id=self._escritorio_id,
            user_id=user_id,
            summary_date=day,
            **summarize_entries([]),
        )

    async def list_summaries(
        self,
        user_id: UUID,
        date_from: date,
        date_to: date,
    ) -> list[DailyTimeSummary]:
        await self._usuarios.get_or_fail(user_id)
        return await self._summaries.get_range(user_id, date_from, date_to)
