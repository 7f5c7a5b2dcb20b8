"""
Repository do Usuário.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.models.usuario import Usuario
from faturamento.repositories.base import MultiTenantRepository


class UsuarioRepository(MultiTenantRepository[Usuario]):
    """Usuários do escritório (donos e aprovadores de lançamentos)."""

    resource_name = "Usuário"

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        super().__init__(Usuario, db, escritorio_id)
