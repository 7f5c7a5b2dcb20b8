"""
Service de Faturas.

Mantém o invariante de totais da fatura:
    subtotal     = Σ line_total dos itens
    tax_amount   = Σ tax_amount dos itens
    total_amount = subtotal + tax_amount − discount_amount
recalculado na mesma transação de cada alteração de item ou desconto.
Toda alteração de uma fatura é serializada pelo lock da fatura.
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
    ResourceAlreadyExistsError,
    ValidationError,
)
from faturamento.core.money import ZERO, quantize_money
from faturamento.db.transaction import atomic, hold_locks, lock_key
from faturamento.models.invoice import (
    Invoice,
    InvoiceLineItem,
    InvoicePayment,
    InvoiceStatus,
    LineItemType,
)
from faturamento.models.time_entry import TimeEntry, TimeEntryStatus
from faturamento.repositories.cliente_repository import ClienteRepository
from faturamento.repositories.invoice_repository import (
    InvoiceLineItemRepository,
    InvoicePaymentRepository,
    InvoiceRepository,
)
from faturamento.repositories.time_entry_repository import TimeEntryRepository
from faturamento.schemas.invoice import InvoiceCreate, LineItemUpsert, PaymentCreate
from faturamento.services.daily_summary_service import DailySummaryAggregator
from faturamento.services.invoice_numbering import InvoiceNumberSequencer

logger = structlog.get_logger()

RESOURCE = "Fatura"
PAYABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIAL_PAID)
CANCELLABLE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.SENT)
DELETABLE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.CANCELLED)


def today() -> date:
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()


def compute_line_values(item: LineItemUpsert) -> dict:
    """
    Valida e deriva os valores de um item.

    line_total = quantity × unit_price (tolerância de um centavo quando
    informado); imposto explícito ou line_total × tax_rate / 100.
    """
    if item.quantity <= 0:
        raise ValidationError("quantity deve ser positiva", field="quantity")
    if item.unit_price < 0 and item.line_type != LineItemType.ADJUSTMENT:
        raise ValidationError(
            "unit_price negativo só é permitido em itens de ajuste",
            field="unit_price",
        )
    if item.line_type == LineItemType.TIME_ENTRY:
        raise ValidationError(
            "Itens de lançamento de horas são gerados ao faturar lançamentos aprovados",
            field="line_type",
        )
    if item.tax_rate < 0 or item.tax_rate > 100:
        raise ValidationError("tax_rate deve estar entre 0 e 100", field="tax_rate")

    expected = item.quantity * item.unit_price
    if item.line_total is None:
        line_total = quantize_money(expected)
    else:
        if abs(item.line_total - expected) > settings.LINE_TOTAL_TOLERANCE:
            raise ValidationError(
                f"line_total {item.line_total} difere de quantity × unit_price ({expected})",
                field="line_total",
            )
        line_total = quantize_money(item.line_total)

    if item.tax_amount is not None:
        if item.tax_amount < 0:
            raise ValidationError("tax_amount não pode ser negativo", field="tax_amount")
        tax_amount = quantize_money(item.tax_amount)
    elif item.is_taxable:
        tax_amount = quantize_money(line_total * item.tax_rate / Decimal(100))
    else:
        tax_amount = ZERO

    return {
        "line_type": item.line_type,
        "description": item.description,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "line_total": line_total,
        "tax_rate": item.tax_rate,
        "tax_amount": tax_amount,
        "is_taxable": item.is_taxable,
        "sort_order": item.sort_order,
    }


class InvoiceService:
    """
    Service para o ciclo de vida das faturas.

    Itens e desconto só mudam em rascunho; totais nunca são informados
    pelo chamador.
    """

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._db = db
        self._escritorio_id = escritorio_id
        self._repo = InvoiceRepository(db, escritorio_id)
        self._items = InvoiceLineItemRepository(db, escritorio_id)
        self._payments = InvoicePaymentRepository(db, escritorio_id)
        self._clientes = ClienteRepository(db, escritorio_id)
        self._entries = TimeEntryRepository(db, escritorio_id)
        self._aggregator = DailySummaryAggregator(db, escritorio_id)
        self.sequencer = InvoiceNumberSequencer(db, escritorio_id)

    @staticmethod
    def _invoice_key(invoice_id: UUID) -> str:
        return lock_key("invoice", invoice_id)

    def _user_key(self, user_id: UUID) -> str:
        return lock_key("time_entries", self._escritorio_id, user_id)

    async def _load(self, invoice_id: UUID) -> Invoice:
        """Relê a fatura com lock de linha (dentro da transação)."""
        return await self._repo.get_or_fail(invoice_id, for_update=True)

    async def _load_draft(self, invoice_id: UUID) -> Invoice:
        invoice = await self._load(invoice_id)
        if invoice.invoice_status != InvoiceStatus.DRAFT:
            raise ImmutableStateError(RESOURCE, invoice_id, invoice.invoice_status.value)
        return invoice

    async def _recompute_totals(self, invoice: Invoice) -> Invoice:
        subtotal, tax = await self._items.sum_by_invoice(invoice.id)
        invoice.subtotal = quantize_money(subtotal)
        invoice.tax_amount = quantize_money(tax)
        invoice.total_amount = quantize_money(
            invoice.subtotal + invoice.tax_amount - invoice.discount_amount
        )
        await self._db.flush()
        return invoice

    async def _release_time_entries(self, invoice_id: UUID) -> int:
        """Devolve a 'approved' os lançamentos faturados nesta fatura."""
        billed = await self._entries.get_by_invoice(invoice_id)
        if not billed:
            return 0

        async with hold_locks(self._db, *{self._user_key(e.user_id) for e in billed}):
            entries = await self._entries.get_many([e.id for e in billed], for_update=True)
            days = set()
            for entry in entries:
                entry.entry_status = TimeEntryStatus.APPROVED
                entry.invoice_id = None
                entry.billed_at = None
                days.add((entry.user_id, entry.entry_date))
            await self._db.flush()
            for user_id, day in days:
                await self._aggregator.recompute(user_id, day)
        return len(entries)

    # === Criação e consulta ===

    async def create_invoice(self, dados: InvoiceCreate) -> Invoice:
        """
        Cria fatura em rascunho, sem itens e com totais zerados.

        Sem número explícito, usa o sequenciador; números já usados no
        escritório (inclusive os explícitos) nunca são reemitidos.
        """
        await self._clientes.get_or_fail(dados.cliente_id)

        issue_date = dados.issue_date or today()
        if dados.due_date < issue_date:
            raise ValidationError("due_date não pode ser anterior a issue_date", field="due_date")

        keys = []
        if dados.invoice_number:
            keys.append(lock_key("invoice_number_explicit", self._escritorio_id, dados.invoice_number))

        async with atomic(self._db, *keys):
            if dados.invoice_number:
                if await self._repo.get_by_number(dados.invoice_number):
                    raise ResourceAlreadyExistsError(RESOURCE, "invoice_number", dados.invoice_number)
                number = dados.invoice_number
            else:
                number = await self.sequencer.allocate(dados.invoice_type)
                while await self._repo.get_by_number(number):
                    number = await self.sequencer.allocate(dados.invoice_type)

            invoice = await self._repo.create(
                **dados.model_dump(exclude={"invoice_number", "issue_date", "discount_amount"}),
                invoice_number=number,
                invoice_status=InvoiceStatus.DRAFT,
                issue_date=issue_date,
                subtotal=ZERO,
                tax_amount=ZERO,
                discount_amount=quantize_money(dados.discount_amount),
                total_amount=quantize_money(-dados.discount_amount),
                amount_paid=ZERO,
            )

        logger.info(
            "Fatura criada",
            invoice_id=str(invoice.id),
            invoice_number=number,
            escritorio_id=str(self._escritorio_id),
        )
        return invoice

    async def get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = await self._repo.get_by_id(invoice_id)
        if not invoice:
            raise NotFoundError(RESOURCE, invoice_id)
        return invoice

    async def list_line_items(self, invoice_id: UUID) -> list[InvoiceLineItem]:
        await self.get_invoice(invoice_id)
        return await self._items.get_by_invoice(invoice_id)

    async def list_payments(self, invoice_id: UUID) -> list[InvoicePayment]:
        await self.get_invoice(invoice_id)
        return await self._payments.get_by_invoice(invoice_id)

    async def list_invoices(
        self,
        cliente_id: UUID,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        await self._clientes.get_or_fail(cliente_id)
        return await self._repo.get_by_cliente(cliente_id, status)

    # === Itens e totais ===

    async def upsert_line_item(self, invoice_id: UUID, item: LineItemUpsert) -> Invoice:
        """Inclui (sem id) ou altera (com id) um item e devolve a fatura recalculada."""
        values = compute_line_values(item)

        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load_draft(invoice_id)

            if item.id is None:
                line = await self._items.create(invoice_id=invoice.id, **values)
            else:
                line = await self._items.get_or_fail(item.id, for_update=True)
                if line.invoice_id != invoice.id:
                    raise NotFoundError("Item de fatura", item.id)
                if line.time_entry_id is not None:
                    raise BusinessRuleError(
                        "Item de lançamento de horas não pode ser editado; remova o item",
                        rule="TIME_ENTRY_LINE",
                    )
                for field, value in values.items():
                    setattr(line, field, value)
                await self._db.flush()

            await self._recompute_totals(invoice)

        logger.info(
            "Item de fatura gravado",
            invoice_id=str(invoice_id),
            line_item_id=str(line.id),
            total_amount=str(invoice.total_amount),
        )
        return invoice

    async def delete_line_item(self, line_item_id: UUID) -> Invoice:
        """
        Remove um item e devolve a fatura recalculada.

        Se o item veio de um lançamento faturado, o lançamento volta a 'approved'.
        """
        line = await self._items.get_by_id(line_item_id)
        if not line:
            raise NotFoundError("Item de fatura", line_item_id)
        invoice_id = line.invoice_id

        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load_draft(invoice_id)
            line = await self._items.get_or_fail(line_item_id, for_update=True)
            time_entry_id = line.time_entry_id

            await self._db.delete(line)
            await self._db.flush()

            if time_entry_id is not None:
                await self._unbill_entry(time_entry_id, invoice.id)

            await self._recompute_totals(invoice)

        logger.info(
            "Item de fatura removido",
            invoice_id=str(invoice_id),
            line_item_id=str(line_item_id),
        )
        return invoice

    async def _unbill_entry(self, time_entry_id: UUID, invoice_id: UUID) -> None:
        entry = await self._entries.get_by_id(time_entry_id)
        if entry is None or entry.invoice_id != invoice_id:
            return
        async with hold_locks(self._db, self._user_key(entry.user_id)):
            entry = await self._entries.get_or_fail(time_entry_id, for_update=True)
            entry.entry_status = TimeEntryStatus.APPROVED
            entry.invoice_id = None
            entry.billed_at = None
            await self._db.flush()
            await self._aggregator.recompute(entry.user_id, entry.entry_date)

    async def recompute_totals(self, invoice_id: UUID) -> Invoice:
        """Recalcula os totais a partir dos itens (idempotente)."""
        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load(invoice_id)
            await self._recompute_totals(invoice)
        return invoice

    async def set_discount(self, invoice_id: UUID, discount_amount: Decimal) -> Invoice:
        """Define o desconto da fatura (rascunho) e recalcula o total."""
        if discount_amount < 0:
            raise ValidationError("discount_amount não pode ser negativo", field="discount_amount")

        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load_draft(invoice_id)
            invoice.discount_amount = quantize_money(discount_amount)
            await self._recompute_totals(invoice)

        logger.info(
            "Desconto da fatura definido",
            invoice_id=str(invoice_id),
            discount_amount=str(invoice.discount_amount),
            total_amount=str(invoice.total_amount),
        )
        return invoice

    async def add_time_entries(self, invoice_id: UUID, time_entry_ids: list[UUID]) -> Invoice:
        """
        Fatura lançamentos aprovados: um item 'time_entry' por lançamento
        (quantidade 1, preço = valor faturável) e o lançamento passa a 'billed'.
        """
        ids = list(dict.fromkeys(time_entry_ids))
        if not ids:
            raise ValidationError("Informe ao menos um lançamento", field="time_entry_ids")

        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load_draft(invoice_id)

            found = await self._entries.get_many(ids)
            missing = set(ids) - {e.id for e in found}
            if missing:
                raise NotFoundError("Lançamento de horas", sorted(str(m) for m in missing)[0])

            async with hold_locks(self._db, *{self._user_key(e.user_id) for e in found}):
                entries = await self._entries.get_many(ids, for_update=True)
                for entry in entries:
                    self._ensure_billable(entry)

                sort_order = await self._items.count_by_invoice(invoice.id)
                billed_at = datetime.now(timezone.utc)
                days = set()
                for entry in entries:
                    sort_order += 1
                    await self._items.create(
                        invoice_id=invoice.id,
                        line_type=LineItemType.TIME_ENTRY,
                        description=f"{entry.activity_description} ({entry.effective_minutes} min)",
                        quantity=Decimal("1"),
                        unit_price=entry.billable_amount,
                        line_total=entry.billable_amount,
                        tax_rate=ZERO,
                        tax_amount=ZERO,
                        is_taxable=False,
                        sort_order=sort_order,
                        time_entry_id=entry.id,
                    )
                    entry.entry_status = TimeEntryStatus.BILLED
                    entry.invoice_id = invoice.id
                    entry.billed_at = billed_at
                    days.add((entry.user_id, entry.entry_date))
                await self._db.flush()

                for user_id, day in days:
                    await self._aggregator.recompute(user_id, day)

            await self._recompute_totals(invoice)

        logger.info(
            "Lançamentos faturados",
            invoice_id=str(invoice_id),
            quantidade=len(ids),
            total_amount=str(invoice.total_amount),
        )
        return invoice

    @staticmethod
    def _ensure_billable(entry: TimeEntry) -> None:
        if entry.entry_status != TimeEntryStatus.APPROVED:
            raise BusinessRuleError(
                f"Lançamento {entry.id} está '{entry.entry_status.value}'; só aprovados podem ser faturados",
                rule="TIME_ENTRY_NOT_APPROVED",
            )
        if not entry.is_billable:
            raise BusinessRuleError(
                f"Lançamento {entry.id} não é faturável",
                rule="TIME_ENTRY_NOT_BILLABLE",
            )

    # === Ciclo de vida ===

    async def send_invoice(self, invoice_id: UUID) -> Invoice:
        """
        Envia a fatura (draft → sent); a partir daqui itens e totais ficam fixos.

        Fatura com total zero ou negativo já sai como paga.
        """
        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load_draft(invoice_id)
            if await self._items.count_by_invoice(invoice.id) == 0:
                raise BusinessRuleError("Fatura sem itens não pode ser enviada", rule="EMPTY_INVOICE")
            await self._recompute_totals(invoice)
            invoice.sent_date = today()
            if invoice.total_amount <= 0:
                # Nada a cobrar
                invoice.invoice_status = InvoiceStatus.PAID
                invoice.paid_date = invoice.sent_date
            else:
                invoice.invoice_status = InvoiceStatus.SENT
            await self._db.flush()

        logger.info(
            "Fatura enviada",
            invoice_id=str(invoice_id),
            total_amount=str(invoice.total_amount),
            invoice_status=invoice.invoice_status.value,
        )
        return invoice

    async def record_payment(self, invoice_id: UUID, dados: PaymentCreate) -> Invoice:
        """Registra pagamento; a fatura vira partial_paid ou paid conforme o saldo."""
        if dados.payment_amount <= 0:
            raise ValidationError("payment_amount deve ser positivo", field="payment_amount")

        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load(invoice_id)
            if invoice.invoice_status not in PAYABLE_STATUSES:
                raise BusinessRuleError(
                    f"Fatura com status '{invoice.invoice_status.value}' não aceita pagamentos",
                    rule="INVOICE_NOT_PAYABLE",
                )

            amount = quantize_money(dados.payment_amount)
            if amount > invoice.balance_due:
                raise ValidationError(
                    f"Pagamento {amount} excede o saldo {invoice.balance_due}",
                    field="payment_amount",
                )

            await self._payments.create(
                invoice_id=invoice.id,
                **{**dados.model_dump(), "payment_amount": amount},
            )
            invoice.amount_paid = quantize_money(await self._payments.sum_by_invoice(invoice.id))
            if invoice.amount_paid >= invoice.total_amount:
                invoice.invoice_status = InvoiceStatus.PAID
                invoice.paid_date = dados.payment_date
            else:
                invoice.invoice_status = InvoiceStatus.PARTIAL_PAID
            await self._db.flush()

        logger.info(
            "Pagamento registrado",
            invoice_id=str(invoice_id),
            payment_amount=str(amount),
            invoice_status=invoice.invoice_status.value,
        )
        return invoice

    async def cancel_invoice(self, invoice_id: UUID) -> Invoice:
        """Cancela fatura em rascunho ou enviada sem pagamentos; libera os lançamentos."""
        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load(invoice_id)
            if invoice.invoice_status not in CANCELLABLE_STATUSES:
                raise ImmutableStateError(RESOURCE, invoice_id, invoice.invoice_status.value)
            if invoice.amount_paid > 0:
                raise BusinessRuleError(
                    "Fatura com pagamentos não pode ser cancelada",
                    rule="INVOICE_HAS_PAYMENTS",
                )
            await self._release_time_entries(invoice.id)
            invoice.invoice_status = InvoiceStatus.CANCELLED
            await self._db.flush()

        logger.info("Fatura cancelada", invoice_id=str(invoice_id))
        return invoice

    async def delete_invoice(self, invoice_id: UUID) -> None:
        """
        Remove fatura em rascunho ou cancelada junto com itens e pagamentos,
        na mesma transação.
        """
        async with atomic(self._db, self._invoice_key(invoice_id)):
            invoice = await self._load(invoice_id)
            if invoice.invoice_status not in DELETABLE_STATUSES:
                raise ImmutableStateError(RESOURCE, invoice_id, invoice.invoice_status.value)

            await self._release_time_entries(invoice.id)
            removed_items = await self._items.delete_by_invoice(invoice.id)
            removed_payments = await self._payments.delete_by_invoice(invoice.id)
            await self._db.delete(invoice)
            await self._db.flush()

        logger.info(
            "Fatura removida",
            invoice_id=str(invoice_id),
            itens=removed_items,
            pagamentos=removed_payments,
        )
