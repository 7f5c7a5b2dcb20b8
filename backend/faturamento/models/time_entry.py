"""
Modelos de controle de horas.

Lançamentos de horas (TimeEntry), cronômetros ativos (ActiveTimeSession),
histórico de taxas horárias (BillingRate) e o resumo diário
materializado (DailyTimeSummary).
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
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


class TimeEntryType(str, enum.Enum):
    """Categoria do trabalho lançado."""

    CASE_WORK = "case_work"
    SUBSCRIPTION_WORK = "subscription_work"
    ADMINISTRATIVE = "administrative"
    BUSINESS_DEVELOPMENT = "business_development"
    NON_BILLABLE = "non_billable"


class TimeEntryStatus(str, enum.Enum):
    """Status do lançamento no fluxo de aprovação."""

    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    BILLED = "billed"


# Lançamentos que ainda podem ser editados
MUTABLE_STATUSES = frozenset({TimeEntryStatus.DRAFT, TimeEntryStatus.PENDING})

# Lançamentos que não podem mais ser alterados nem removidos
LOCKED_STATUSES = frozenset({TimeEntryStatus.APPROVED, TimeEntryStatus.BILLED})


class BillingRateSource(str, enum.Enum):
    """Origem da taxa aplicada ao lançamento."""

    CUSTOM = "custom"  # Informada no próprio lançamento
    MATTER_SPECIFIC = "matter_specific"
    SERVICE_TYPE = "service_type"
    USER_DEFAULT = "user_default"
    TENANT_DEFAULT = "tenant_default"


class BillingRateType(str, enum.Enum):
    """Tipo de taxa horária."""

    STANDARD = "standard"
    SERVICE_TYPE = "service_type"
    MATTER_SPECIFIC = "matter_specific"


class TimeEntry(MultiTenantBase):
    """
    Lançamento de horas de um usuário.

    Campos derivados (duration_minutes, effective_minutes, entry_date,
    billable_amount) são recalculados pelo serviço a cada escrita.
    """

    __tablename__ = "time_entries"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("usuarios.id"),
        nullable=False,
        index=True,
    )

    # Vínculos opcionais
    matter_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), index=True)
    client_subscription_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))

    # Classificação
    entry_type: Mapped[TimeEntryType] = mapped_column(
        PgEnum(TimeEntryType),
        nullable=False,
    )
    entry_status: Mapped[TimeEntryStatus] = mapped_column(
        PgEnum(TimeEntryStatus),
        default=TimeEntryStatus.DRAFT,
        nullable=False,
        index=True,
    )
    service_type: Mapped[str | None] = mapped_column(
        String(50),
        comment="Tipo de serviço usado na resolução da taxa",
    )
    activity_description: Mapped[str] = mapped_column(Text, nullable=False)

    # Tempo
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    effective_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    # Faturamento
    is_billable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    billable_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    billing_rate_source: Mapped[BillingRateSource | None] = mapped_column(
        PgEnum(BillingRateSource),
    )
    billable_amount: Mapped[Decimal] = mapped_column(Money(), default=Decimal("0"), nullable=False)

    # Aprovação
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    approval_notes: Mapped[str | None] = mapped_column(Text)
    rejected_reason: Mapped[str | None] = mapped_column(Text)

    # Integração com faturas
    invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("invoices.id", ondelete="SET NULL"),
    )
    billed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    @property
    def is_locked(self) -> bool:
        """Aprovado ou faturado: não aceita mais alterações."""
        return self.entry_status in LOCKED_STATUSES

    def __repr__(self) -> str:
        return (
            f"<TimeEntry(id={self.id}, user_id={self.user_id}, "
            f"effective_minutes={self.effective_minutes}, amount={self.billable_amount})>"
        )


class ActiveTimeSession(MultiTenantBase):
    """
    Cronômetro em andamento de um usuário.

    No máximo uma sessão por usuário. Ao parar, vira um TimeEntry com
    break_minutes igual ao total pausado e a sessão é removida.
    """

    __tablename__ = "active_time_sessions"
    __table_args__ = (
        UniqueConstraint("escritorio_id", "user_id", name="uq_active_time_sessions_user"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("usuarios.id"),
        nullable=False,
    )
    session_name: Mapped[str | None] = mapped_column(String(100))

    # Dados copiados para o lançamento ao parar
    entry_type: Mapped[TimeEntryType] = mapped_column(
        PgEnum(TimeEntryType),
        default=TimeEntryType.CASE_WORK,
        nullable=False,
    )
    matter_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))
    client_subscription_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))
    service_type: Mapped[str | None] = mapped_column(String(50))
    activity_description: Mapped[str | None] = mapped_column(Text)
    is_billable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    billable_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    # Tempo
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_heartbeat: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    pause_duration_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ActiveTimeSession(id={self.id}, user_id={self.user_id}, "
            f"is_paused={self.is_paused})>"
        )


class BillingRate(MultiTenantBase):
    """
    Taxa horária com vigência.

    Várias linhas por usuário representam o histórico; no máximo uma
    ativa por (usuário, tipo de serviço, processo) em cada data.
    user_id nulo significa taxa do escritório inteiro (por tipo de serviço).
    """

    __tablename__ = "billing_rates"

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("usuarios.id"),
        index=True,
    )
    rate_type: Mapped[BillingRateType] = mapped_column(
        PgEnum(BillingRateType),
        default=BillingRateType.STANDARD,
        nullable=False,
    )
    service_type: Mapped[str | None] = mapped_column(String(50))
    matter_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))

    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), default="BRL")

    # Vigência [effective_from, effective_until)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_until: Mapped[date | None] = mapped_column(Date)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    notes: Mapped[str | None] = mapped_column(Text)

    def covers(self, day: date) -> bool:
        """Verifica se a vigência contém a data."""
        if day < self.effective_from:
            return False
        return self.effective_until is None or day < self.effective_until

    def __repr__(self) -> str:
        return f"<BillingRate(id={self.id}, user_id={self.user_id}, hourly_rate={self.hourly_rate})>"


class DailyTimeSummary(MultiTenantBase):
    """
    Resumo diário de horas por (escritório, usuário, data).

    Mantido pelo agregador; nunca editado diretamente por usuários.
    """

    __tablename__ = "daily_time_summaries"
    __table_args__ = (
        UniqueConstraint(
            "escritorio_id",
            "user_id",
            "summary_date",
            name="uq_daily_time_summaries_escritorio_user_date",
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("usuarios.id"),
        nullable=False,
    )
    summary_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    billable_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    non_billable_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    minutes_by_type: Mapped[dict[str, int]] = mapped_column(JSON, default=dict, nullable=False)
    total_billable_amount: Mapped[Decimal] = mapped_column(
        Money(),
        default=Decimal("0"),
        nullable=False,
    )

    total_entries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    approved_entries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    pending_entries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    utilization_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        default=Decimal("0"),
        nullable=False,
    )

    def minutes_for(self, entry_type: TimeEntryType) -> int:
        return (self.minutes_by_type or {}).get(entry_type.value, 0)

    @property
    def case_work_minutes(self) -> int:
        return self.minutes_for(TimeEntryType.CASE_WORK)

    @property
    def subscription_work_minutes(self) -> int:
        return self.minutes_for(TimeEntryType.SUBSCRIPTION_WORK)

    @property
    def administrative_minutes(self) -> int:
        return self.minutes_for(TimeEntryType.ADMINISTRATIVE)

    def __repr__(self) -> str:
        return (
            f"<DailyTimeSummary(user_id={self.user_id}, date={self.summary_date}, "
            f"total_minutes={self.total_minutes})>"
        )
