"""
Modelo do Escritório de Advocacia.

Este é o tenant principal do sistema - todas as entidades
pertencem a um escritório específico.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from faturamento.db.base import Base


class Escritorio(Base):
    """Escritório de advocacia (tenant principal)."""

    __tablename__ = "escritorios"

    # Dados básicos
    nome: Mapped[str] = mapped_column(String(255), nullable=False)
    razao_social: Mapped[str | None] = mapped_column(String(255))
    cnpj: Mapped[str | None] = mapped_column(String(18), unique=True)

    # Contato
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Taxa horária padrão quando nenhuma taxa de usuário se aplica
    default_hourly_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        comment="Taxa horária padrão do escritório (fallback do resolvedor)",
    )

    # Escritórios nunca são removidos, apenas desativados
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Escritorio(id={self.id}, nome='{self.nome}')>"
