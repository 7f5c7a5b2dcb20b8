"""
Endpoints de Faturas.

Totais são sempre recalculados pelo servidor a partir dos itens;
o corpo das requisições nunca informa subtotal, impostos ou total.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from faturamento.core.dependencies import DBSession, EscritorioID
from faturamento.db.transaction import retry_on_conflict
from faturamento.models.invoice import Invoice, InvoiceStatus, InvoiceType
from faturamento.schemas.base import APIResponse
from faturamento.schemas.invoice import (
    AddTimeEntries,
    DiscountUpdate,
    InvoiceCreate,
    InvoiceResponse,
    LineItemResponse,
    LineItemUpsert,
    NextNumberResponse,
    PaymentCreate,
    PaymentResponse,
)
from faturamento.services.invoice_service import InvoiceService

router = APIRouter(prefix="/faturas", tags=["Faturas"])


async def _com_itens(service: InvoiceService, invoice: Invoice) -> InvoiceResponse:
    """Resposta da fatura com os itens atuais."""
    response = InvoiceResponse.model_validate(invoice)
    items = await service.list_line_items(invoice.id)
    response.line_items = [LineItemResponse.model_validate(i) for i in items]
    return response


@router.post(
    "",
    response_model=APIResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def criar_fatura(
    dados: InvoiceCreate,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    """
    Cria fatura em rascunho.

    Sem `invoice_number`, o número é gerado pelo sequenciador do escritório.
    """
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.create_invoice, dados)

    return APIResponse(
        success=True,
        data=InvoiceResponse.model_validate(invoice),
        message=f"Fatura {invoice.invoice_number} criada",
    )


@router.get("", response_model=APIResponse[list[InvoiceResponse]])
async def listar_faturas(
    db: DBSession,
    escritorio_id: EscritorioID,
    cliente_id: UUID = Query(...),
    invoice_status: InvoiceStatus | None = Query(None),
) -> APIResponse[list[InvoiceResponse]]:
    """Faturas de um cliente (sem itens)."""
    service = InvoiceService(db, escritorio_id)
    invoices = await service.list_invoices(cliente_id, invoice_status)

    return APIResponse(
        success=True,
        data=[InvoiceResponse.model_validate(i) for i in invoices],
    )


@router.get("/numeros/proximo", response_model=APIResponse[NextNumberResponse])
async def proximo_numero(
    db: DBSession,
    escritorio_id: EscritorioID,
    invoice_type: InvoiceType = Query(...),
) -> APIResponse[NextNumberResponse]:
    """
    Reserva o próximo número de fatura do tipo.

    O número reservado é consumido mesmo que nenhuma fatura o utilize.
    """
    service = InvoiceService(db, escritorio_id)
    number = await retry_on_conflict(service.sequencer.next_number, invoice_type)

    return APIResponse(
        success=True,
        data=NextNumberResponse(invoice_type=invoice_type, invoice_number=number),
    )


@router.get("/{invoice_id}", response_model=APIResponse[InvoiceResponse])
async def obter_fatura(
    invoice_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await service.get_invoice(invoice_id)

    return APIResponse(success=True, data=await _com_itens(service, invoice))


@router.delete("/{invoice_id}", response_model=APIResponse)
async def remover_fatura(
    invoice_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse:
    """Remove fatura em rascunho ou cancelada, com itens e pagamentos."""
    service = InvoiceService(db, escritorio_id)
    await retry_on_conflict(service.delete_invoice, invoice_id)

    return APIResponse(success=True, message="Fatura removida com sucesso")


# === Itens ===


@router.post("/{invoice_id}/itens", response_model=APIResponse[InvoiceResponse])
async def salvar_item(
    invoice_id: UUID,
    item: LineItemUpsert,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    """Inclui (sem `id`) ou altera (com `id`) item de fatura em rascunho."""
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.upsert_line_item, invoice_id, item)

    return APIResponse(success=True, data=await _com_itens(service, invoice))


@router.delete("/itens/{line_item_id}", response_model=APIResponse[InvoiceResponse])
async def remover_item(
    line_item_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.delete_line_item, line_item_id)

    return APIResponse(success=True, data=await _com_itens(service, invoice))


@router.post("/{invoice_id}/lancamentos", response_model=APIResponse[InvoiceResponse])
async def faturar_lancamentos(
    invoice_id: UUID,
    dados: AddTimeEntries,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    """Adiciona lançamentos aprovados como itens e os marca como faturados."""
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.add_time_entries, invoice_id, dados.time_entry_ids)

    return APIResponse(success=True, data=await _com_itens(service, invoice))


@router.post("/{invoice_id}/recalcular", response_model=APIResponse[InvoiceResponse])
async def recalcular_fatura(
    invoice_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.recompute_totals, invoice_id)

    return APIResponse(success=True, data=await _com_itens(service, invoice))


@router.put("/{invoice_id}/desconto", response_model=APIResponse[InvoiceResponse])
async def definir_desconto(
    invoice_id: UUID,
    dados: DiscountUpdate,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.set_discount, invoice_id, dados.discount_amount)

    return APIResponse(success=True, data=InvoiceResponse.model_validate(invoice))


# === Ciclo de vida ===


@router.post("/{invoice_id}/enviar", response_model=APIResponse[InvoiceResponse])
async def enviar_fatura(
    invoice_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.send_invoice, invoice_id)

    return APIResponse(
        success=True,
        data=InvoiceResponse.model_validate(invoice),
        message="Fatura enviada",
    )


@router.post("/{invoice_id}/cancelar", response_model=APIResponse[InvoiceResponse])
async def cancelar_fatura(
    invoice_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.cancel_invoice, invoice_id)

    return APIResponse(
        success=True,
        data=InvoiceResponse.model_validate(invoice),
        message="Fatura cancelada",
    )


@router.post(
    "/{invoice_id}/pagamentos",
    response_model=APIResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def registrar_pagamento(
    invoice_id: UUID,
    dados: PaymentCreate,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[InvoiceResponse]:
    service = InvoiceService(db, escritorio_id)
    invoice = await retry_on_conflict(service.record_payment, invoice_id, dados)

    return APIResponse(
        success=True,
        data=InvoiceResponse.model_validate(invoice),
        message="Pagamento registrado",
    )


@router.get("/{invoice_id}/pagamentos", response_model=APIResponse[list[PaymentResponse]])
async def listar_pagamentos(
    invoice_id: UUID,
    db: DBSession,
    escritorio_id: EscritorioID,
) -> APIResponse[list[PaymentResponse]]:
    service = InvoiceService(db, escritorio_id)
    await service.get_invoice(invoice_id)
    payments = await service.list_payments(invoice_id)

    return APIResponse(
        success=True,
        data=[PaymentResponse.model_validate(p) for p in payments],
    )
