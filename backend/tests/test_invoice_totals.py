"""
Testes do invariante de totais e do ciclo de vida das faturas.
"""
import asyncio
from datetime import date, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from faturamento.core.exceptions import (
    BusinessRuleError,
    ImmutableStateError,
    NotFoundError,
    ValidationError,
)
from faturamento.models.cliente import Cliente
from faturamento.models.escritorio import Escritorio
from faturamento.models.invoice import (
    InvoiceLineItem,
    InvoicePayment,
    InvoiceStatus,
    InvoiceType,
    LineItemType,
    PaymentMethod,
)
from faturamento.models.time_entry import TimeEntryStatus
from faturamento.models.usuario import Usuario
from faturamento.schemas.invoice import InvoiceCreate, LineItemUpsert, PaymentCreate
from faturamento.services.daily_summary_service import DailySummaryAggregator
from faturamento.services.invoice_service import InvoiceService, compute_line_values
from faturamento.services.time_entry_service import TimeEntryService
from factories import at, make_entry

DAY = "2024-03-15"


def item(unit_price: str, tax: str | None = None, **kwargs) -> LineItemUpsert:
    return LineItemUpsert(
        line_type=kwargs.pop("line_type", LineItemType.SERVICE_FEE),
        description=kwargs.pop("description", "Honorários"),
        quantity=Decimal(kwargs.pop("quantity", "1")),
        unit_price=Decimal(unit_price),
        tax_amount=Decimal(tax) if tax is not None else None,
        **kwargs,
    )


def payment(amount: str) -> PaymentCreate:
    return PaymentCreate(
        payment_amount=Decimal(amount),
        payment_date=date.today(),
        payment_method=PaymentMethod.PIX,
    )


async def _new_invoice(service: InvoiceService, cliente_id, **kwargs):
    return await service.create_invoice(
        InvoiceCreate(
            cliente_id=cliente_id,
            invoice_type=kwargs.pop("invoice_type", InvoiceType.CASE_BILLING),
            due_date=date.today() + timedelta(days=30),
            **kwargs,
        )
    )


async def _count(db: AsyncSession, model, invoice_id) -> int:
    result = await db.execute(
        select(func.count()).select_from(model).where(model.invoice_id == invoice_id)
    )
    return result.scalar_one()


# === Itens ===


def test_valores_do_item():
    values = compute_line_values(item("150.00", quantity="3", tax_rate=Decimal("5")))

    assert values["line_total"] == Decimal("450.00")
    assert values["tax_amount"] == Decimal("22.50")


def test_item_nao_tributavel_sem_imposto():
    values = compute_line_values(item("100.00", tax_rate=Decimal("10"), is_taxable=False))

    assert values["tax_amount"] == Decimal("0.00")


def test_line_total_divergente_rejeitado():
    with pytest.raises(ValidationError):
        compute_line_values(item("100.00", quantity="2", line_total=Decimal("250.00")))


def test_line_total_dentro_da_tolerancia():
    values = compute_line_values(item("100.00", quantity="2", line_total=Decimal("200.01")))

    assert values["line_total"] == Decimal("200.01")


def test_preco_negativo_so_em_ajuste():
    with pytest.raises(ValidationError):
        compute_line_values(item("-10.00"))

    values = compute_line_values(item("-10.00", line_type=LineItemType.ADJUSTMENT))
    assert values["line_total"] == Decimal("-10.00")


# === Invariante de totais ===


@pytest.mark.asyncio
async def test_totais_somam_os_itens(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)

    assert invoice.invoice_status == InvoiceStatus.DRAFT
    assert invoice.total_amount == Decimal("0.00")

    await service.upsert_line_item(invoice.id, item("100.00", "10.00"))
    await service.upsert_line_item(invoice.id, item("300.00", "30.00"))
    invoice = await service.upsert_line_item(invoice.id, item("50.00", "5.00"))

    assert invoice.subtotal == Decimal("450.00")
    assert invoice.tax_amount == Decimal("45.00")
    assert invoice.total_amount == Decimal("495.00")
    assert invoice.balance_due == Decimal("495.00")


@pytest.mark.asyncio
async def test_desconto_reduz_total(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    await service.upsert_line_item(invoice.id, item("200.00", tax_rate=Decimal("10")))

    invoice = await service.set_discount(invoice.id, Decimal("50.00"))

    assert invoice.subtotal == Decimal("200.00")
    assert invoice.tax_amount == Decimal("20.00")
    assert invoice.total_amount == Decimal("170.00")


@pytest.mark.asyncio
async def test_desconto_maior_que_subtotal_gera_total_negativo(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id, discount_amount=Decimal("80.00"))
    assert invoice.total_amount == Decimal("-80.00")

    invoice = await service.upsert_line_item(invoice.id, item("50.00"))

    assert invoice.total_amount == Decimal("-30.00")


@pytest.mark.asyncio
async def test_alterar_e_remover_item_recalcula(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    await service.upsert_line_item(invoice.id, item("100.00", "10.00", sort_order=1))
    await service.upsert_line_item(invoice.id, item("300.00", "30.00", sort_order=2))
    first, second = await service.list_line_items(invoice.id)
    assert first.unit_price == Decimal("100.00")

    invoice = await service.upsert_line_item(
        invoice.id,
        item("120.00", "12.00", id=first.id, sort_order=1),
    )
    assert invoice.total_amount == Decimal("462.00")

    invoice = await service.delete_line_item(second.id)
    assert invoice.subtotal == Decimal("120.00")
    assert invoice.tax_amount == Decimal("12.00")
    assert invoice.total_amount == Decimal("132.00")


@pytest.mark.asyncio
async def test_recalculo_idempotente(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    await service.upsert_line_item(invoice.id, item("100.00", "10.00"))

    first = await service.recompute_totals(invoice.id)
    first_total = first.total_amount
    second = await service.recompute_totals(invoice.id)

    assert second.total_amount == first_total == Decimal("110.00")


@pytest.mark.asyncio
async def test_item_invalido_nao_altera_fatura(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    invoice_id = invoice.id
    await service.upsert_line_item(invoice_id, item("100.00", "10.00"))

    with pytest.raises(ValidationError):
        await service.upsert_line_item(
            invoice_id,
            item("100.00", quantity="2", line_total=Decimal("150.00")),
        )

    invoice = await service.get_invoice(invoice_id)
    assert invoice.total_amount == Decimal("110.00")
    assert await _count(db_session, InvoiceLineItem, invoice_id) == 1


# === Ciclo de vida ===


@pytest.mark.asyncio
async def test_fatura_enviada_e_imutavel(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    invoice_id = invoice.id
    await service.upsert_line_item(invoice_id, item("100.00", "10.00"))
    (line,) = await service.list_line_items(invoice_id)
    line_id = line.id

    invoice = await service.send_invoice(invoice_id)
    assert invoice.invoice_status == InvoiceStatus.SENT
    assert invoice.sent_date is not None

    with pytest.raises(ImmutableStateError):
        await service.upsert_line_item(invoice_id, item("999.00"))
    with pytest.raises(ImmutableStateError):
        await service.delete_line_item(line_id)
    with pytest.raises(ImmutableStateError):
        await service.set_discount(invoice_id, Decimal("10.00"))
    with pytest.raises(ImmutableStateError):
        await service.delete_invoice(invoice_id)

    invoice = await service.get_invoice(invoice_id)
    assert invoice.total_amount == Decimal("110.00")
    assert await _count(db_session, InvoiceLineItem, invoice_id) == 1


@pytest.mark.asyncio
async def test_fatura_sem_itens_nao_e_enviada(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)

    with pytest.raises(BusinessRuleError) as exc_info:
        await service.send_invoice(invoice.id)

    assert exc_info.value.rule == "EMPTY_INVOICE"


@pytest.mark.asyncio
async def test_pagamentos(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    invoice_id = invoice.id
    await service.upsert_line_item(invoice_id, item("450.00", "45.00"))

    with pytest.raises(BusinessRuleError):
        await service.record_payment(invoice_id, payment("100.00"))

    await service.send_invoice(invoice_id)
    invoice = await service.record_payment(invoice_id, payment("200.00"))
    assert invoice.invoice_status == InvoiceStatus.PARTIAL_PAID
    assert invoice.amount_paid == Decimal("200.00")
    assert invoice.balance_due == Decimal("295.00")

    with pytest.raises(ValidationError):
        await service.record_payment(invoice_id, payment("300.00"))

    invoice = await service.record_payment(invoice_id, payment("295.00"))
    assert invoice.invoice_status == InvoiceStatus.PAID
    assert invoice.paid_date == date.today()
    assert invoice.balance_due == Decimal("0.00")
    assert len(await service.list_payments(invoice_id)) == 2


@pytest.mark.asyncio
async def test_cancelar_e_remover(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    invoice_id = invoice.id
    await service.upsert_line_item(invoice_id, item("100.00"))
    await service.send_invoice(invoice_id)

    invoice = await service.cancel_invoice(invoice_id)
    assert invoice.invoice_status == InvoiceStatus.CANCELLED

    await service.delete_invoice(invoice_id)

    with pytest.raises(NotFoundError):
        await service.get_invoice(invoice_id)
    assert await _count(db_session, InvoiceLineItem, invoice_id) == 0


@pytest.mark.asyncio
async def test_fatura_com_pagamento_nao_cancela(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    invoice_id = invoice.id
    await service.upsert_line_item(invoice_id, item("100.00"))
    await service.send_invoice(invoice_id)
    await service.record_payment(invoice_id, payment("10.00"))

    with pytest.raises(ImmutableStateError):
        await service.cancel_invoice(invoice_id)

    invoice = await service.get_invoice(invoice_id)
    assert invoice.invoice_status == InvoiceStatus.PARTIAL_PAID


@pytest.mark.asyncio
async def test_remover_rascunho_remove_itens(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id)
    invoice_id = invoice.id
    await service.upsert_line_item(invoice_id, item("100.00"))
    await service.upsert_line_item(invoice_id, item("200.00"))

    await service.delete_invoice(invoice_id)

    assert await _count(db_session, InvoiceLineItem, invoice_id) == 0
    assert await _count(db_session, InvoicePayment, invoice_id) == 0


# === Faturamento de lançamentos ===


@pytest.mark.asyncio
async def test_faturar_lancamentos_aprovados(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
    test_user: Usuario,
    approver: Usuario,
):
    entries = TimeEntryService(db_session, test_escritorio.id)
    approved = await entries.record_time_entry(
        make_entry(at(DAY, 13), at(DAY, 15), billable_rate=Decimal("200.00")),
        test_user.id,
    )
    approved_id = approved.id
    await entries.approve_time_entry(approved_id, approver.id)
    draft = await entries.record_time_entry(
        make_entry(at(DAY, 15), at(DAY, 16), billable_rate=Decimal("200.00")),
        test_user.id,
    )
    draft_id = draft.id

    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id, invoice_type=InvoiceType.TIME_BASED)
    invoice_id = invoice.id

    with pytest.raises(BusinessRuleError):
        await service.add_time_entries(invoice_id, [approved_id, draft_id])
    assert await _count(db_session, InvoiceLineItem, invoice_id) == 0

    invoice = await service.add_time_entries(invoice_id, [approved_id])
    assert invoice.subtotal == Decimal("400.00")
    assert invoice.total_amount == Decimal("400.00")

    (line,) = await service.list_line_items(invoice_id)
    assert line.line_type == LineItemType.TIME_ENTRY
    assert line.quantity == Decimal("1")
    assert line.unit_price == Decimal("400.00")
    assert line.time_entry_id == approved_id

    billed = await entries.get_time_entry(approved_id)
    assert billed.entry_status == TimeEntryStatus.BILLED
    assert billed.invoice_id == invoice_id
    assert billed.billed_at is not None

    summary = await DailySummaryAggregator(db_session, test_escritorio.id).get_daily_summary(
        test_user.id, date(2024, 3, 15)
    )
    assert summary.approved_entries == 1
    assert summary.pending_entries == 1

    # remover o item devolve o lançamento para aprovado
    invoice = await service.delete_line_item(line.id)
    assert invoice.total_amount == Decimal("0.00")
    released = await entries.get_time_entry(approved_id)
    assert released.entry_status == TimeEntryStatus.APPROVED
    assert released.invoice_id is None


@pytest.mark.asyncio
async def test_cancelar_libera_lancamentos(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
    test_user: Usuario,
    approver: Usuario,
):
    entries = TimeEntryService(db_session, test_escritorio.id)
    entry = await entries.record_time_entry(
        make_entry(at(DAY, 13), at(DAY, 14), billable_rate=Decimal("300.00")),
        test_user.id,
    )
    await entries.approve_time_entry(entry.id, approver.id)

    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id, invoice_type=InvoiceType.TIME_BASED)
    await service.add_time_entries(invoice.id, [entry.id])
    await service.send_invoice(invoice.id)

    await service.cancel_invoice(invoice.id)

    released = await entries.get_time_entry(entry.id)
    assert released.entry_status == TimeEntryStatus.APPROVED
    assert released.invoice_id is None
    assert released.billed_at is None


@pytest.mark.asyncio
async def test_item_de_lancamento_so_entra_pelo_faturamento(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
    test_user: Usuario,
    approver: Usuario,
):
    entries = TimeEntryService(db_session, test_escritorio.id)
    entry = await entries.record_time_entry(
        make_entry(at(DAY, 13), at(DAY, 14), billable_rate=Decimal("300.00")),
        test_user.id,
    )
    entry_id = entry.id
    await entries.approve_time_entry(entry_id, approver.id)

    service = InvoiceService(db_session, test_escritorio.id)
    invoice = await _new_invoice(service, test_cliente.id, invoice_type=InvoiceType.TIME_BASED)
    invoice_id = invoice.id

    # o vínculo com o lançamento não é aceito no item manual
    with pytest.raises(SchemaValidationError):
        item("300.00", time_entry_id=entry_id)
    with pytest.raises(ValidationError):
        await service.upsert_line_item(invoice_id, item("300.00", line_type=LineItemType.TIME_ENTRY))

    await service.add_time_entries(invoice_id, [entry_id])
    (line,) = await service.list_line_items(invoice_id)
    line_id = line.id

    with pytest.raises(BusinessRuleError) as exc_info:
        await service.upsert_line_item(
            invoice_id,
            item("999.00", id=line_id, line_type=LineItemType.SERVICE_FEE),
        )
    assert exc_info.value.rule == "TIME_ENTRY_LINE"

    invoice = await service.get_invoice(invoice_id)
    assert invoice.total_amount == Decimal("300.00")
    (line,) = await service.list_line_items(invoice_id)
    assert line.unit_price == Decimal("300.00")
    assert line.time_entry_id == entry_id


@pytest.mark.asyncio
async def test_fatura_sem_valor_a_cobrar_sai_paga(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = InvoiceService(db_session, test_escritorio.id)
    zero = await _new_invoice(service, test_cliente.id)
    await service.upsert_line_item(zero.id, item("100.00"))
    await service.set_discount(zero.id, Decimal("100.00"))
    negative = await _new_invoice(service, test_cliente.id, discount_amount=Decimal("80.00"))
    await service.upsert_line_item(negative.id, item("50.00"))

    zero = await service.send_invoice(zero.id)
    negative = await service.send_invoice(negative.id)

    assert zero.total_amount == Decimal("0.00")
    assert zero.invoice_status == InvoiceStatus.PAID
    assert zero.paid_date == zero.sent_date
    assert negative.total_amount == Decimal("-30.00")
    assert negative.invoice_status == InvoiceStatus.PAID
    assert negative.paid_date is not None

    with pytest.raises(BusinessRuleError) as exc_info:
        await service.record_payment(zero.id, payment("1.00"))
    assert exc_info.value.rule == "INVOICE_NOT_PAYABLE"


# === Concorrência ===


@pytest.mark.asyncio
async def test_itens_concorrentes_na_mesma_fatura(
    session_factory: async_sessionmaker[AsyncSession],
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    invoice = await _new_invoice(InvoiceService(db_session, test_escritorio.id), test_cliente.id)
    invoice_id = invoice.id

    async def add_item(n: int) -> None:
        async with session_factory() as session:
            service = InvoiceService(session, test_escritorio.id)
            await service.upsert_line_item(
                invoice_id,
                item("45.00", "1.00", description=f"Honorários {n}", sort_order=n),
            )

    await asyncio.gather(*(add_item(n) for n in range(8)))

    async with session_factory() as session:
        invoice = await InvoiceService(session, test_escritorio.id).get_invoice(invoice_id)
        assert await _count(session, InvoiceLineItem, invoice_id) == 8

    assert invoice.subtotal == Decimal("360.00")
    assert invoice.tax_amount == Decimal("8.00")
    assert invoice.total_amount == Decimal("368.00")
