"""
Services Layer.

Camada de lógica de negócio do núcleo de faturamento.
"""

from faturamento.services.billing_rate_service import BillingRateService, RateResolver
from faturamento.services.cliente_service import ClienteService
from faturamento.services.daily_summary_service import DailySummaryAggregator
from faturamento.services.escritorio_service import EscritorioService
from faturamento.services.invoice_numbering import InvoiceNumberSequencer
from faturamento.services.invoice_service import InvoiceService
from faturamento.services.time_entry_service import TimeEntryService
from faturamento.services.vendor_service import VendorService

__all__ = [
    "BillingRateService",
    "ClienteService",
    "DailySummaryAggregator",
    "EscritorioService",
    "InvoiceNumberSequencer",
    "InvoiceService",
    "RateResolver",
    "TimeEntryService",
    "VendorService",
]
