"""
Modelo do Cliente e do Fornecedor.

Clientes são pessoa física (CPF) ou jurídica (CNPJ); fornecedores
sempre têm CNPJ. Documentos são gravados no formato canônico.
"""

import enum

from sqlalchemy import Boolean, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from faturamento.db.base import MultiTenantBase, PgEnum


class TipoPessoa(str, enum.Enum):
    """Tipo de pessoa."""

    FISICA = "fisica"
    JURIDICA = "juridica"


class Cliente(MultiTenantBase):
    """Cliente do escritório."""

    __tablename__ = "clientes"
    __table_args__ = (
        UniqueConstraint("escritorio_id", "cpf", name="uq_clientes_escritorio_cpf"),
        UniqueConstraint("escritorio_id", "cnpj", name="uq_clientes_escritorio_cnpj"),
    )

    tipo_pessoa: Mapped[TipoPessoa] = mapped_column(
        PgEnum(TipoPessoa),
        default=TipoPessoa.FISICA,
        nullable=False,
    )

    nome: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    cpf: Mapped[str | None] = mapped_column(String(14), index=True)
    cnpj: Mapped[str | None] = mapped_column(String(18))
    razao_social: Mapped[str | None] = mapped_column(String(255))

    email: Mapped[str | None] = mapped_column(String(255))
    telefone: Mapped[str | None] = mapped_column(String(20))
    observacoes: Mapped[str | None] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    @property
    def documento_principal(self) -> str | None:
        """Retorna CPF ou CNPJ conforme tipo de pessoa."""
        if self.tipo_pessoa == TipoPessoa.FISICA:
            return self.cpf
        return self.cnpj

    def __repr__(self) -> str:
        return f"<Cliente(id={self.id}, nome='{self.nome}', documento='{self.documento_principal}')>"


class Vendor(MultiTenantBase):
    """Fornecedor do escritório. CNPJ único por escritório, não globalmente."""

    __tablename__ = "vendors"
    __table_args__ = (
        UniqueConstraint("escritorio_id", "cnpj", name="uq_vendors_escritorio_cnpj"),
    )

    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    cnpj: Mapped[str] = mapped_column(String(18), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    telefone: Mapped[str | None] = mapped_column(String(20))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Vendor(id={self.id}, nome='{self.nome}', cnpj='{self.cnpj}')>"
