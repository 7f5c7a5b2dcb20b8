"""
Modelos de Faturas.

Faturas, itens, pagamentos e o contador de numeração por escritório.
Os totais da fatura são sempre derivados dos itens.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from faturamento.db.base import Money, MultiTenantBase, PgEnum


class InvoiceType(str, enum.Enum):
    """Origem da cobrança."""

    SUBSCRIPTION = "subscription"
    CASE_BILLING = "case_billing"
    PAYMENT_PLAN = "payment_plan"
    TIME_BASED = "time_based"
    HYBRID = "hybrid"
    ADJUSTMENT = "adjustment"
    LATE_FEE = "late_fee"


class InvoiceStatus(str, enum.Enum):
    """Status da fatura."""

    DRAFT = "draft"
    SENT = "sent"
    PARTIAL_PAID = "partial_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


class LineItemType(str, enum.Enum):
    """Tipo do item de fatura."""

    SUBSCRIPTION_FEE = "subscription_fee"
    CASE_FEE = "case_fee"
    SUCCESS_FEE = "success_fee"
    TIME_ENTRY = "time_entry"
    EXPENSE = "expense"
    ADJUSTMENT = "adjustment"
    LATE_FEE = "late_fee"
    SERVICE_FEE = "service_fee"


class PaymentMethod(str, enum.Enum):
    """Formas de pagamento aceitas."""

    CASH = "cash"
    CHECK = "check"
    BANK_TRANSFER = "bank_transfer"
    PIX = "pix"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    OTHER = "other"


class Invoice(MultiTenantBase):
    """
    Fatura emitida para um cliente.

    subtotal, tax_amount e total_amount nunca são informados pelo
    chamador: total_amount = subtotal + tax_amount - discount_amount.
    """

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("escritorio_id", "invoice_number", name="uq_invoices_escritorio_number"),
    )

    cliente_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("clientes.id"),
        nullable=False,
        index=True,
    )
    matter_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))

    invoice_number: Mapped[str] = mapped_column(String(30), nullable=False)
    invoice_type: Mapped[InvoiceType] = mapped_column(PgEnum(InvoiceType), nullable=False)
    invoice_status: Mapped[InvoiceStatus] = mapped_column(
        PgEnum(InvoiceStatus),
        default=InvoiceStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Valores
    subtotal: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    amount_paid: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="BRL", nullable=False)

    # Datas
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    sent_date: Mapped[date | None] = mapped_column(Date)
    paid_date: Mapped[date | None] = mapped_column(Date)

    description: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)

    @property
    def balance_due(self) -> Decimal:
        """Valor em aberto."""
        return self.total_amount - self.amount_paid

    @property
    def is_draft(self) -> bool:
        return self.invoice_status == InvoiceStatus.DRAFT

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', total={self.total_amount})>"


class InvoiceLineItem(MultiTenantBase):
    """Item de fatura. line_total = quantity × unit_price."""

    __tablename__ = "invoice_line_items"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    line_type: Mapped[LineItemType] = mapped_column(PgEnum(LineItemType), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Money(), nullable=False)

    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)
    is_taxable: Mapped[bool] = mapped_column(Boolean, default=True)

    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    time_entry_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("time_entries.id", ondelete="SET NULL"),
    )

    def __repr__(self) -> str:
        return f"<InvoiceLineItem(id={self.id}, invoice_id={self.invoice_id}, total={self.line_total})>"


class InvoicePayment(MultiTenantBase):
    """Pagamento registrado para uma fatura."""

    __tablename__ = "invoice_payments"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    payment_amount: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[PaymentMethod] = mapped_column(PgEnum(PaymentMethod), nullable=False)
    reference_number: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<InvoicePayment(id={self.id}, invoice_id={self.invoice_id}, valor={self.payment_amount})>"


class InvoiceNumberCounter(MultiTenantBase):
    """
    Contador de numeração por (escritório, prefixo).

    Única fonte do sufixo numérico; nunca reinicia.
    """

    __tablename__ = "invoice_number_counters"
    __table_args__ = (
        UniqueConstraint("escritorio_id", "prefix", name="uq_invoice_number_counters_escritorio_prefix"),
    )

    prefix: Mapped[str] = mapped_column(String(10), nullable=False)
    current_value: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<InvoiceNumberCounter(prefix='{self.prefix}', current_value={self.current_value})>"
