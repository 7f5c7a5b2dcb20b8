"""
Initial migration - Núcleo de Faturamento

Revision ID: 001
Create Date: 2026-10-16 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _tenant() -> sa.Column:
    return sa.Column("escritorio_id", postgresql.UUID(as_uuid=True), nullable=False)


def upgrade() -> None:
    # ========================
    # ENUMS (valores exatos do Python Enum)
    # ========================

    op.execute("CREATE TYPE userrole AS ENUM ('admin', 'advogado', 'estagiario', 'secretaria', 'financeiro')")
    op.execute("CREATE TYPE tipopessoa AS ENUM ('fisica', 'juridica')")

    op.execute("""CREATE TYPE timeentrytype AS ENUM (
        'case_work', 'subscription_work', 'administrative', 'business_development', 'non_billable'
    )""")
    op.execute("CREATE TYPE timeentrystatus AS ENUM ('draft', 'pending', 'approved', 'rejected', 'billed')")
    op.execute("""CREATE TYPE billingratesource AS ENUM (
        'custom', 'matter_specific', 'service_type', 'user_default', 'tenant_default'
    )""")
    op.execute("CREATE TYPE billingratetype AS ENUM ('standard', 'service_type', 'matter_specific')")

    op.execute("""CREATE TYPE invoicetype AS ENUM (
        'subscription', 'case_billing', 'payment_plan', 'time_based', 'hybrid', 'adjustment', 'late_fee'
    )""")
    op.execute("CREATE TYPE invoicestatus AS ENUM ('draft', 'sent', 'partial_paid', 'paid', 'cancelled')")
    op.execute("""CREATE TYPE lineitemtype AS ENUM (
        'subscription_fee', 'case_fee', 'success_fee', 'time_entry',
        'expense', 'adjustment', 'late_fee', 'service_fee'
    )""")
    op.execute("""CREATE TYPE paymentmethod AS ENUM (
        'cash', 'check', 'bank_transfer', 'pix', 'credit_card', 'debit_card', 'other'
    )""")

    # ========================
    # TABELA: escritorios (tenant principal)
    # ========================
    op.create_table(
        "escritorios",
        *_timestamps(),
        sa.Column("nome", sa.String(255), nullable=False),
        sa.Column("razao_social", sa.String(255), nullable=True),
        sa.Column("cnpj", sa.String(18), nullable=True, unique=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column(
            "default_hourly_rate",
            sa.Numeric(10, 2),
            nullable=True,
            comment="Taxa horária padrão do escritório (fallback do resolvedor)",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
    )

    # ========================
    # TABELA: usuarios
    # ========================
    op.create_table(
        "usuarios",
        *_timestamps(),
        _tenant(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("nome", sa.String(255), nullable=False),
        sa.Column("role", postgresql.ENUM(name="userrole", create_type=False), nullable=False, server_default="advogado"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
    )
    op.create_index("ix_usuarios_email", "usuarios", ["email"])
    op.create_index("ix_usuarios_escritorio_id", "usuarios", ["escritorio_id"])

    # ========================
    # TABELAS: clientes e vendors
    # ========================
    op.create_table(
        "clientes",
        *_timestamps(),
        _tenant(),
        sa.Column("tipo_pessoa", postgresql.ENUM(name="tipopessoa", create_type=False), nullable=False, server_default="fisica"),
        sa.Column("nome", sa.String(255), nullable=False),
        sa.Column("cpf", sa.String(14), nullable=True),
        sa.Column("cnpj", sa.String(18), nullable=True),
        sa.Column("razao_social", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("telefone", sa.String(20), nullable=True),
        sa.Column("observacoes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.UniqueConstraint("escritorio_id", "cpf", name="uq_clientes_escritorio_cpf"),
        sa.UniqueConstraint("escritorio_id", "cnpj", name="uq_clientes_escritorio_cnpj"),
    )
    op.create_index("ix_clientes_escritorio_id", "clientes", ["escritorio_id"])
    op.create_index("ix_clientes_nome", "clientes", ["nome"])
    op.create_index("ix_clientes_cpf", "clientes", ["cpf"])

    op.create_table(
        "vendors",
        *_timestamps(),
        _tenant(),
        sa.Column("nome", sa.String(255), nullable=False),
        sa.Column("cnpj", sa.String(18), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("telefone", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.UniqueConstraint("escritorio_id", "cnpj", name="uq_vendors_escritorio_cnpj"),
    )
    op.create_index("ix_vendors_escritorio_id", "vendors", ["escritorio_id"])

    # ========================
    # TABELA: invoices
    # ========================
    op.create_table(
        "invoices",
        *_timestamps(),
        _tenant(),
        sa.Column("cliente_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("matter_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("invoice_number", sa.String(30), nullable=False),
        sa.Column("invoice_type", postgresql.ENUM(name="invoicetype", create_type=False), nullable=False),
        sa.Column("invoice_status", postgresql.ENUM(name="invoicestatus", create_type=False), nullable=False, server_default="draft"),
        # Valores (derivados dos itens)
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="BRL"),
        # Datas
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("sent_date", sa.Date(), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["cliente_id"], ["clientes.id"]),
        sa.UniqueConstraint("escritorio_id", "invoice_number", name="uq_invoices_escritorio_number"),
    )
    op.create_index("ix_invoices_escritorio_id", "invoices", ["escritorio_id"])
    op.create_index("ix_invoices_cliente_id", "invoices", ["cliente_id"])
    op.create_index("ix_invoices_invoice_status", "invoices", ["invoice_status"])

    # ========================
    # TABELA: time_entries
    # ========================
    op.create_table(
        "time_entries",
        *_timestamps(),
        _tenant(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("matter_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("client_subscription_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("entry_type", postgresql.ENUM(name="timeentrytype", create_type=False), nullable=False),
        sa.Column("entry_status", postgresql.ENUM(name="timeentrystatus", create_type=False), nullable=False, server_default="draft"),
        sa.Column("service_type", sa.String(50), nullable=True, comment="Tipo de serviço usado na resolução da taxa"),
        sa.Column("activity_description", sa.Text(), nullable=False),
        # Tempo
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("break_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("effective_minutes", sa.Integer(), nullable=False),
        # Faturamento
        sa.Column("is_billable", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("billable_rate", sa.Numeric(10, 2), nullable=True),
        sa.Column("billing_rate_source", postgresql.ENUM(name="billingratesource", create_type=False), nullable=True),
        sa.Column("billable_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        # Aprovação
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_notes", sa.Text(), nullable=True),
        sa.Column("rejected_reason", sa.Text(), nullable=True),
        # Integração com faturas
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("billed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["usuarios.id"]),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="SET NULL"),
        sa.CheckConstraint("end_time > start_time", name="ck_time_entries_interval"),
        sa.CheckConstraint("break_minutes >= 0", name="ck_time_entries_break"),
    )
    op.create_index("ix_time_entries_escritorio_id", "time_entries", ["escritorio_id"])
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"])
    op.create_index("ix_time_entries_matter_id", "time_entries", ["matter_id"])
    op.create_index("ix_time_entries_entry_status", "time_entries", ["entry_status"])
    op.create_index("ix_time_entries_entry_date", "time_entries", ["entry_date"])
    # Busca de sobreposição por usuário
    op.create_index("ix_time_entries_user_interval", "time_entries", ["user_id", "start_time", "end_time"])

    # ========================
    # TABELAS: itens e pagamentos de fatura
    # ========================
    op.create_table(
        "invoice_line_items",
        *_timestamps(),
        _tenant(),
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("line_type", postgresql.ENUM(name="lineitemtype", create_type=False), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("is_taxable", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("time_entry_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["time_entry_id"], ["time_entries.id"], ondelete="SET NULL"),
        sa.CheckConstraint("quantity > 0", name="ck_invoice_line_items_quantity"),
    )
    op.create_index("ix_invoice_line_items_escritorio_id", "invoice_line_items", ["escritorio_id"])
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])

    op.create_table(
        "invoice_payments",
        *_timestamps(),
        _tenant(),
        sa.Column("invoice_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("payment_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("payment_method", postgresql.ENUM(name="paymentmethod", create_type=False), nullable=False),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["invoice_id"], ["invoices.id"], ondelete="CASCADE"),
        sa.CheckConstraint("payment_amount > 0", name="ck_invoice_payments_amount"),
    )
    op.create_index("ix_invoice_payments_escritorio_id", "invoice_payments", ["escritorio_id"])
    op.create_index("ix_invoice_payments_invoice_id", "invoice_payments", ["invoice_id"])

    # ========================
    # TABELA: invoice_number_counters
    # ========================
    op.create_table(
        "invoice_number_counters",
        *_timestamps(),
        _tenant(),
        sa.Column("prefix", sa.String(10), nullable=False),
        sa.Column("current_value", sa.BigInteger(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.UniqueConstraint("escritorio_id", "prefix", name="uq_invoice_number_counters_escritorio_prefix"),
    )
    op.create_index("ix_invoice_number_counters_escritorio_id", "invoice_number_counters", ["escritorio_id"])

    # ========================
    # TABELA: billing_rates
    # ========================
    op.create_table(
        "billing_rates",
        *_timestamps(),
        _tenant(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("rate_type", postgresql.ENUM(name="billingratetype", create_type=False), nullable=False, server_default="standard"),
        sa.Column("service_type", sa.String(50), nullable=True),
        sa.Column("matter_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency_code", sa.String(3), nullable=True, server_default="BRL"),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_until", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["usuarios.id"]),
        sa.CheckConstraint("hourly_rate >= 0", name="ck_billing_rates_hourly_rate"),
    )
    op.create_index("ix_billing_rates_escritorio_id", "billing_rates", ["escritorio_id"])
    op.create_index("ix_billing_rates_user_id", "billing_rates", ["user_id"])

    # ========================
    # TABELA: daily_time_summaries
    # ========================
    op.create_table(
        "daily_time_summaries",
        *_timestamps(),
        _tenant(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("summary_date", sa.Date(), nullable=False),
        sa.Column("total_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("billable_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("non_billable_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("minutes_by_type", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("total_billable_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_entries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("approved_entries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pending_entries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("utilization_percentage", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["escritorio_id"], ["escritorios.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["usuarios.id"]),
        sa.UniqueConstraint(
            "escritorio_id",
            "user_id",
            "summary_date",
            name="uq_daily_time_summaries_escritorio_user_date",
        ),
    )
    op.create_index("ix_daily_time_summaries_escritorio_id", "daily_time_summaries", ["escritorio_id"])


def downgrade() -> None:
    # Dropar tabelas em ordem reversa (respeitar FKs)
    op.drop_table("daily_time_summaries")
    op.drop_table("billing_rates")
    op.drop_table("invoice_number_counters")
    op.drop_table("invoice_payments")
    op.drop_table("invoice_line_items")
    op.drop_table("time_entries")
    op.drop_table("invoices")
    op.drop_table("vendors")
    op.drop_table("clientes")
    op.drop_table("usuarios")
    op.drop_table("escritorios")

    # Dropar enums
    op.execute("DROP TYPE IF EXISTS paymentmethod")
    op.execute("DROP TYPE IF EXISTS lineitemtype")
    op.execute("DROP TYPE IF EXISTS invoicestatus")
    op.execute("DROP TYPE IF EXISTS invoicetype")
    op.execute("DROP TYPE IF EXISTS billingratetype")
    op.execute("DROP TYPE IF EXISTS billingratesource")
    op.execute("DROP TYPE IF EXISTS timeentrystatus")
    op.execute("DROP TYPE IF EXISTS timeentrytype")
    op.execute("DROP TYPE IF EXISTS tipopessoa")
    op.execute("DROP TYPE IF EXISTS userrole")
