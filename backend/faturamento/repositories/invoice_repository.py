"""
Repository de Faturas, Itens, Pagamentos e Contadores de numeração.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.money import to_decimal
from faturamento.models.invoice import (
    Invoice,
    InvoiceLineItem,
    InvoiceNumberCounter,
    InvoicePayment,
    InvoiceStatus,
)
from faturamento.repositories.base import MultiTenantRepository


class InvoiceRepository(MultiTenantRepository[Invoice]):
    """Repository para operações com Fatura."""

    resource_name = "Fatura"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(Invoice, db, escritorio_id)

    async def get_by_number(self, invoice_number: str) -> Invoice | None:
        """Busca fatura pelo número no tenant."""
        result = await self.db.execute(
            select(Invoice).where(
                Invoice.escritorio_id == self.escritorio_id,
                Invoice.invoice_number == invoice_number,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_cliente(
        self,
        cliente_id: UUID,
        status: InvoiceStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Invoice]:
        """Lista faturas de um cliente."""
        query = select(Invoice).where(
            Invoice.escritorio_id == self.escritorio_id,
            Invoice.cliente_id == cliente_id,
        )
        if status:
            query = query.where(Invoice.invoice_status == status)
        result = await self.db.execute(
            query.order_by(Invoice.issue_date.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())


class InvoiceLineItemRepository(MultiTenantRepository[InvoiceLineItem]):
    """Repository para os itens de fatura."""

    resource_name = "Item de fatura"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(InvoiceLineItem, db, escritorio_id)

    async def get_by_invoice(self, invoice_id: UUID) -> list[InvoiceLineItem]:
        """Lista os itens de uma fatura na ordem de exibição."""
        result = await self.db.execute(
            select(InvoiceLineItem)
            .where(
                InvoiceLineItem.escritorio_id == self.escritorio_id,
                InvoiceLineItem.invoice_id == invoice_id,
            )
            .order_by(InvoiceLineItem.sort_order, InvoiceLineItem.created_at)
        )
        return list(result.scalars().all())

    async def count_by_invoice(self, invoice_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
        )
        return result.scalar_one()

    async def sum_by_invoice(self, invoice_id: UUID) -> tuple[Decimal, Decimal]:
        """Retorna (Σ line_total, Σ tax_amount) dos itens da fatura."""
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(InvoiceLineItem.line_total), 0),
                func.coalesce(func.sum(InvoiceLineItem.tax_amount), 0),
            ).where(InvoiceLineItem.invoice_id == invoice_id)
        )
        subtotal, tax = result.one()
        return to_decimal(subtotal), to_decimal(tax)

    async def delete_by_invoice(self, invoice_id: UUID) -> int:
        """Remove todos os itens de uma fatura."""
        result = await self.db.execute(
            delete(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class InvoicePaymentRepository(MultiTenantRepository[InvoicePayment]):
    """Repository para pagamentos de fatura."""

    resource_name = "Pagamento"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(InvoicePayment, db, escritorio_id)

    async def get_by_invoice(self, invoice_id: UUID) -> list[InvoicePayment]:
        result = await self.db.execute(
            select(InvoicePayment)
            .where(
                InvoicePayment.escritorio_id == self.escritorio_id,
                InvoicePayment.invoice_id == invoice_id,
            )
            .order_by(InvoicePayment.payment_date, InvoicePayment.created_at)
        )
        return list(result.scalars().all())

    async def sum_by_invoice(self, invoice_id: UUID) -> Decimal:
        """Total pago em uma fatura."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(InvoicePayment.payment_amount), 0)).where(
                InvoicePayment.invoice_id == invoice_id
            )
        )
        return to_decimal(result.scalar_one())

    async def delete_by_invoice(self, invoice_id: UUID) -> int:
        """Remove todos os pagamentos de uma fatura."""
        result = await self.db.execute(
            delete(InvoicePayment)
            .where(InvoicePayment.invoice_id == invoice_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount


class InvoiceNumberCounterRepository(MultiTenantRepository[InvoiceNumberCounter]):
    """Repository para os contadores de numeração de fatura."""

    resource_name = "Contador de numeração"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(InvoiceNumberCounter, db, escritorio_id)

    async def ensure_exists(self, prefix: str) -> None:
        """Cria o contador (valor 0) se ainda não existir, sem erro em corrida."""
        values = {
            "escritorio_id": self.escritorio_id,
            "prefix": prefix,
            "current_value": 0,
        }
        dialect = self.db.get_bind().dialect.name

        if dialect in ("postgresql", "sqlite"):
            module = postgresql if dialect == "postgresql" else sqlite
            # id e timestamps vêm dos defaults do modelo
            stmt = module.insert(InvoiceNumberCounter).values(**values)
            stmt = stmt.on_conflict_do_nothing(index_elements=["escritorio_id", "prefix"])
            await self.db.execute(stmt)
            return

        existing = await self.db.execute(
            select(InvoiceNumberCounter.id).where(
                InvoiceNumberCounter.escritorio_id == self.escritorio_id,
                InvoiceNumberCounter.prefix == prefix,
            )
        )
        if existing.scalar_one_or_none() is None:
            await self.db.execute(insert(InvoiceNumberCounter).values(**values))

    async def get_locked(self, prefix: str) -> InvoiceNumberCounter:
        """Lê o contador com lock de linha, sempre do estado mais recente."""
        result = await self.db.execute(
            select(InvoiceNumberCounter)
            .where(
                InvoiceNumberCounter.escritorio_id == self.escritorio_id,
                InvoiceNumberCounter.prefix == prefix,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
