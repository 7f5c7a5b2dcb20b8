"""Repositories - Data Access Layer."""

from faturamento.repositories.base import BaseRepository, MultiTenantRepository
from faturamento.repositories.cliente_repository import ClienteRepository, VendorRepository
from faturamento.repositories.escritorio_repository import EscritorioRepository
from faturamento.repositories.invoice_repository import (
    InvoiceLineItemRepository,
    InvoiceNumberCounterRepository,
    InvoicePaymentRepository,
    InvoiceRepository,
)
from faturamento.repositories.time_entry_repository import (
    ActiveTimeSessionRepository,
    BillingRateRepository,
    DailyTimeSummaryRepository,
    TimeEntryRepository,
)
from faturamento.repositories.usuario_repository import UsuarioRepository

__all__ = [
    # Base
    "BaseRepository",
    "MultiTenantRepository",
    # Entidades
    "EscritorioRepository",
    "UsuarioRepository",
    "ClienteRepository",
    "VendorRepository",
    # Controle de horas
    "ActiveTimeSessionRepository",
    "TimeEntryRepository",
    "BillingRateRepository",
    "DailyTimeSummaryRepository",
    # Faturas
    "InvoiceRepository",
    "InvoiceLineItemRepository",
    "InvoicePaymentRepository",
    "InvoiceNumberCounterRepository",
]
