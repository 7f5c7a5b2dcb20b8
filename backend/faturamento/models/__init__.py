"""
Modelos SQLAlchemy do núcleo de faturamento.

Importa todos os modelos para garantir que são registrados no metadata.
"""

from faturamento.models.cliente import Cliente, TipoPessoa, Vendor
from faturamento.models.escritorio import Escritorio
from faturamento.models.invoice import (
    Invoice,
    InvoiceLineItem,
    InvoiceNumberCounter,
    InvoicePayment,
    InvoiceStatus,
    InvoiceType,
    LineItemType,
    PaymentMethod,
)
from faturamento.models.time_entry import (
    ActiveTimeSession,
    BillingRate,
    BillingRateSource,
    BillingRateType,
    DailyTimeSummary,
    TimeEntry,
    TimeEntryStatus,
    TimeEntryType,
)
from faturamento.models.usuario import Usuario, UserRole

__all__ = [
    # Escritório e Usuário
    "Escritorio",
    "Usuario",
    "UserRole",
    # Cliente e Fornecedor
    "Cliente",
    "TipoPessoa",
    "Vendor",
    # Controle de horas
    "ActiveTimeSession",
    "TimeEntry",
    "TimeEntryType",
    "TimeEntryStatus",
    "BillingRate",
    "BillingRateType",
    "BillingRateSource",
    "DailyTimeSummary",
    # Faturas
    "Invoice",
    "InvoiceLineItem",
    "InvoicePayment",
    "InvoiceNumberCounter",
    "InvoiceType",
    "InvoiceStatus",
    "LineItemType",
    "PaymentMethod",
]
