"""
Sequenciador de números de fatura.

Formato: {PREFIXO}-{ano}-{sequência com 6 dígitos}, ex: SUB-2026-000042.
O contador é único por (escritório, prefixo) e nunca reinicia; o ano
no número é apenas o ano corrente no momento da geração.
"""

from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.config import settings
from faturamento.db.transaction import atomic, hold_locks, lock_key
from faturamento.models.invoice import InvoiceType
from faturamento.repositories.invoice_repository import InvoiceNumberCounterRepository

logger = structlog.get_logger()

INVOICE_PREFIXES: dict[str, str] = {
    InvoiceType.SUBSCRIPTION.value: "SUB",
    InvoiceType.CASE_BILLING.value: "CASE",
    InvoiceType.PAYMENT_PLAN.value: "PLAN",
    InvoiceType.TIME_BASED.value: "TIME",
    InvoiceType.HYBRID.value: "HYB",
    InvoiceType.ADJUSTMENT.value: "ADJ",
    InvoiceType.LATE_FEE.value: "LATE",
}
DEFAULT_PREFIX = "INV"


def prefix_for(invoice_type: InvoiceType | str) -> str:
    """Prefixo do tipo de fatura; tipos desconhecidos usam INV."""
    value = invoice_type.value if isinstance(invoice_type, InvoiceType) else str(invoice_type)
    return INVOICE_PREFIXES.get(value, DEFAULT_PREFIX)


def format_invoice_number(prefix: str, year: int, sequence: int) -> str:
    return f"{prefix}-{year}-{sequence:06d}"


class InvoiceNumberSequencer:
    """
    Gera números de fatura estritamente crescentes por (escritório, prefixo).

    Chamadas concorrentes para a mesma chave são serializadas; escritórios
    e prefixos diferentes não disputam o mesmo lock.
    """

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._db = db
        self._escritorio_id = escritorio_id
        self._counters = InvoiceNumberCounterRepository(db, escritorio_id)

    def counter_key(self, prefix: str) -> str:
        return lock_key("invoice_number", self._escritorio_id, prefix)

    async def allocate(self, invoice_type: InvoiceType | str, year: int | None = None) -> str:
        """Reserva o próximo número na transação corrente (sem commit)."""
        prefix = prefix_for(invoice_type)

        async with hold_locks(self._db, self.counter_key(prefix)):
            await self._counters.ensure_exists(prefix)
            counter = await self._counters.get_locked(prefix)
            counter.current_value += 1
            await self._db.flush()
            sequence = counter.current_value

        if year is None:
            year = datetime.now(ZoneInfo(settings.TIMEZONE)).year
        return format_invoice_number(prefix, year, sequence)

    async def next_number(self, invoice_type: InvoiceType | str, year: int | None = None) -> str:
        """Gera e confirma o próximo número em transação própria."""
        async with atomic(self._db):
            number = await self.allocate(invoice_type, year)

        logger.info(
            "Número de fatura gerado",
            escritorio_id=str(self._escritorio_id),
            invoice_number=number,
        )
        return number
