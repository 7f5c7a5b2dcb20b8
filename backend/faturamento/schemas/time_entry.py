"""
Schemas de Lançamentos de Horas, Taxas Horárias e Resumo Diário.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field, model_validator

from faturamento.models.time_entry import (
    BillingRateSource,
    BillingRateType,
    TimeEntryStatus,
    TimeEntryType,
)
from faturamento.schemas.base import BaseSchema, IDMixin, TenantMixin, TimestampMixin


class TimeEntryCreate(BaseSchema):
    """
    Schema para lançamento de horas.

    duration_minutes, effective_minutes e billable_amount são derivados
    e não podem ser informados.
    """

    user_id: UUID | None = Field(
        None,
        description="Usuário dono do lançamento (padrão: usuário da requisição)",
    )
    entry_type: TimeEntryType
    entry_status: TimeEntryStatus = TimeEntryStatus.DRAFT
    matter_id: UUID | None = None
    client_subscription_id: UUID | None = None
    service_type: str | None = Field(None, max_length=50)
    activity_description: str = Field(..., min_length=1)

    start_time: datetime
    end_time: datetime
    break_minutes: int = Field(0, ge=0)

    is_billable: bool = True
    billable_rate: Decimal | None = Field(None, ge=0, decimal_places=2)

    @model_validator(mode="after")
    def check_interval(self) -> "TimeEntryCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time deve ser posterior a start_time")
        return self


class TimeEntryUpdate(BaseSchema):
    """Schema para atualização parcial de lançamento (apenas draft/pending)."""

    entry_type: TimeEntryType | None = None
    matter_id: UUID | None = None
    client_subscription_id: UUID | None = None
    service_type: str | None = Field(None, max_length=50)
    activity_description: str | None = Field(None, min_length=1)

    start_time: datetime | None = None
    end_time: datetime | None = None
    break_minutes: int | None = Field(None, ge=0)

    is_billable: bool | None = None
    billable_rate: Decimal | None = Field(None, ge=0, decimal_places=2)


class TimeEntryApprove(BaseSchema):
    notes: str | None = None


class TimeEntryReject(BaseSchema):
    reason: str = Field(..., min_length=3)


class TimeEntryResponse(BaseSchema, IDMixin, TenantMixin, TimestampMixin):
    """Schema de resposta do lançamento."""

    user_id: UUID
    entry_type: TimeEntryType
    entry_status: TimeEntryStatus
    matter_id: UUID | None
    client_subscription_id: UUID | None
    service_type: str | None
    activity_description: str

    start_time: datetime
    end_time: datetime
    entry_date: date
    duration_minutes: int
    break_minutes: int
    effective_minutes: int

    is_billable: bool
    billable_rate: Decimal | None
    billing_rate_source: BillingRateSource | None
    billable_amount: Decimal

    approved_by: UUID | None
    approved_at: datetime | None
    approval_notes: str | None
    rejected_reason: str | None
    invoice_id: UUID | None
    billed_at: datetime | None


class TimerStart(BaseSchema):
    """Schema para iniciar o cronômetro; os dados vão para o lançamento ao parar."""

    user_id: UUID | None = Field(
        None,
        description="Dono do cronômetro (padrão: usuário da requisição)",
    )
    session_name: str | None = Field(None, max_length=100)
    entry_type: TimeEntryType = TimeEntryType.CASE_WORK
    matter_id: UUID | None = None
    client_subscription_id: UUID | None = None
    service_type: str | None = Field(None, max_length=50)
    activity_description: str | None = None
    is_billable: bool = True
    billable_rate: Decimal | None = Field(None, ge=0, decimal_places=2)


class ActiveTimeSessionResponse(BaseSchema, IDMixin, TenantMixin, TimestampMixin):
    """Cronômetro em andamento."""

    user_id: UUID
    session_name: str | None
    entry_type: TimeEntryType
    matter_id: UUID | None
    client_subscription_id: UUID | None
    service_type: str | None
    activity_description: str | None
    is_billable: bool
    billable_rate: Decimal | None

    started_at: datetime
    last_heartbeat: datetime
    is_paused: bool
    paused_at: datetime | None
    pause_duration_minutes: int


class DailySummaryResponse(BaseSchema):
    """Resumo diário de horas de um usuário."""

    escritorio_id: UUID
    user_id: UUID
    summary_date: date

    total_minutes: int
    billable_minutes: int
    non_billable_minutes: int
    minutes_by_type: dict[str, int]
    case_work_minutes: int
    subscription_work_minutes: int
    administrative_minutes: int
    total_billable_amount: Decimal

    total_entries: int
    approved_entries: int
    pending_entries: int
    utilization_percentage: Decimal


class BillingRateBase(BaseSchema):
    """Campos base da taxa horária."""

    user_id: UUID | None = Field(
        None,
        description="Nulo para taxa do escritório inteiro (por serviço ou processo)",
    )
    rate_type: BillingRateType = BillingRateType.STANDARD
    service_type: str | None = Field(None, max_length=50)
    matter_id: UUID | None = None

    hourly_rate: Decimal = Field(..., ge=0, decimal_places=2)
    currency_code: str = Field("BRL", min_length=3, max_length=3)

    effective_from: date
    effective_until: date | None = None
    notes: str | None = None


class BillingRateCreate(BillingRateBase):
    """Schema para cadastro de taxa horária."""

    @model_validator(mode="after")
    def check_scope(self) -> "BillingRateCreate":
        if self.effective_until is not None and self.effective_until <= self.effective_from:
            raise ValueError("effective_until deve ser posterior a effective_from")
        if self.rate_type == BillingRateType.SERVICE_TYPE and not self.service_type:
            raise ValueError("Taxa por tipo de serviço exige service_type")
        if self.rate_type == BillingRateType.MATTER_SPECIFIC and not self.matter_id:
            raise ValueError("Taxa por processo exige matter_id")
        if self.rate_type == BillingRateType.STANDARD and (self.service_type or self.matter_id):
            raise ValueError("Taxa padrão não tem service_type nem matter_id")
        if self.user_id is None and self.rate_type == BillingRateType.STANDARD:
            raise ValueError("Taxa padrão exige user_id")
        return self


class BillingRateResponse(BillingRateBase, IDMixin, TenantMixin, TimestampMixin):
    """Schema de resposta da taxa horária."""

    is_active: bool
