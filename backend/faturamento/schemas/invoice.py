"""
Schemas de Faturas.

Totais (subtotal, tax_amount, total_amount) só aparecem nas respostas;
nenhum schema de entrada permite informá-los.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import ConfigDict, Field

from faturamento.models.invoice import (
    InvoiceStatus,
    InvoiceType,
    LineItemType,
    PaymentMethod,
)
from faturamento.schemas.base import BaseSchema, IDMixin, TenantMixin, TimestampMixin


class InvoiceCreate(BaseSchema):
    """Schema para criação de fatura (sempre em rascunho, sem itens)."""

    model_config = ConfigDict(extra="forbid")

    cliente_id: UUID
    invoice_type: InvoiceType
    matter_id: UUID | None = None
    invoice_number: str | None = Field(
        None,
        max_length=30,
        description="Número explícito; quando omitido, gerado pelo sequenciador",
    )
    issue_date: date | None = None
    due_date: date
    currency: str = Field("BRL", min_length=3, max_length=3)
    discount_amount: Decimal = Field(Decimal("0"), ge=0, decimal_places=2)
    description: str | None = None
    notes: str | None = None


class LineItemUpsert(BaseSchema):
    """
    Inclusão (sem id) ou alteração (com id) de item de fatura.

    line_total, quando informado, deve bater com quantity × unit_price.
    Itens de lançamento de horas só entram por `add_time_entries`.
    """

    model_config = ConfigDict(extra="forbid")

    id: UUID | None = None
    line_type: LineItemType
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0, decimal_places=2)
    unit_price: Decimal = Field(..., decimal_places=2)
    line_total: Decimal | None = None
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=100, decimal_places=2)
    tax_amount: Decimal | None = Field(None, ge=0)
    is_taxable: bool = True
    sort_order: int = 0


class LineItemResponse(BaseSchema, IDMixin):
    invoice_id: UUID
    line_type: LineItemType
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    is_taxable: bool
    sort_order: int
    time_entry_id: UUID | None


class PaymentCreate(BaseSchema):
    """Schema para registro de pagamento."""

    payment_amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date
    payment_method: PaymentMethod
    reference_number: str | None = Field(None, max_length=100)
    notes: str | None = None


class PaymentResponse(PaymentCreate, IDMixin, TimestampMixin):
    invoice_id: UUID


class DiscountUpdate(BaseSchema):
    discount_amount: Decimal = Field(..., ge=0, decimal_places=2)


class AddTimeEntries(BaseSchema):
    """Lançamentos aprovados a incluir como itens da fatura."""

    time_entry_ids: list[UUID] = Field(..., min_length=1)


class InvoiceResponse(BaseSchema, IDMixin, TenantMixin, TimestampMixin):
    """Schema de resposta da fatura com totais derivados."""

    cliente_id: UUID
    matter_id: UUID | None
    invoice_number: str
    invoice_type: InvoiceType
    invoice_status: InvoiceStatus

    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    currency: str

    issue_date: date
    due_date: date
    sent_date: date | None
    paid_date: date | None

    description: str | None
    notes: str | None

    line_items: list[LineItemResponse] = Field(default_factory=list)


class NextNumberResponse(BaseSchema):
    invoice_type: InvoiceType
    invoice_number: str
