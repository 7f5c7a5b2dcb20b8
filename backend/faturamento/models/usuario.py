"""
Modelo do Usuário do sistema.

Autenticação é externa ao núcleo de faturamento; aqui só interessa
a qual escritório o usuário pertence.
"""

import enum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from faturamento.db.base import MultiTenantBase, PgEnum


class UserRole(str, enum.Enum):
    """Papéis de usuário no sistema."""

    ADMIN = "admin"  # Administrador do escritório
    ADVOGADO = "advogado"  # Advogado com OAB
    ESTAGIARIO = "estagiario"  # Estagiário
    SECRETARIA = "secretaria"  # Secretária/Administrativo
    FINANCEIRO = "financeiro"  # Acesso apenas a financeiro


class Usuario(MultiTenantBase):
    """Usuário do sistema CRM."""

    __tablename__ = "usuarios"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    nome: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        PgEnum(UserRole),
        default=UserRole.ADVOGADO,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Usuario(id={self.id}, email='{self.email}', role={self.role.value})>"
