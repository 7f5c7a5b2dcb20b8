"""Schemas Pydantic para validação de request/response."""

from faturamento.schemas.base import (
    APIResponse,
    BaseSchema,
    ErrorDetail,
    ErrorResponse,
    IDMixin,
    PaginatedResponse,
    TenantMixin,
    TimestampMixin,
)
from faturamento.schemas.cliente import (
    ClienteCreate,
    ClienteListResponse,
    ClienteResponse,
    ClienteUpdate,
    VendorCreate,
    VendorResponse,
)
from faturamento.schemas.escritorio import (
    EscritorioCreate,
    EscritorioResponse,
    EscritorioUpdate,
    TaxaPadraoUpdate,
)
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
from faturamento.schemas.time_entry import (
    ActiveTimeSessionResponse,
    BillingRateCreate,
    BillingRateResponse,
    DailySummaryResponse,
    TimeEntryApprove,
    TimeEntryCreate,
    TimeEntryReject,
    TimeEntryResponse,
    TimeEntryUpdate,
    TimerStart,
)
from faturamento.schemas.validacao import DocumentoRequest

__all__ = [
    # Base
    "APIResponse",
    "BaseSchema",
    "ErrorDetail",
    "ErrorResponse",
    "IDMixin",
    "PaginatedResponse",
    "TenantMixin",
    "TimestampMixin",
    # Escritório
    "EscritorioCreate",
    "EscritorioResponse",
    "EscritorioUpdate",
    "TaxaPadraoUpdate",
    # Cliente e Fornecedor
    "ClienteCreate",
    "ClienteListResponse",
    "ClienteResponse",
    "ClienteUpdate",
    "VendorCreate",
    "VendorResponse",
    # Controle de horas
    "TimeEntryCreate",
    "TimeEntryUpdate",
    "TimeEntryApprove",
    "TimeEntryReject",
    "TimeEntryResponse",
    "TimerStart",
    "ActiveTimeSessionResponse",
    "DailySummaryResponse",
    "BillingRateCreate",
    "BillingRateResponse",
    # Faturas
    "InvoiceCreate",
    "InvoiceResponse",
    "LineItemUpsert",
    "LineItemResponse",
    "PaymentCreate",
    "PaymentResponse",
    "DiscountUpdate",
    "AddTimeEntries",
    "NextNumberResponse",
    # Validação
    "DocumentoRequest",
]
