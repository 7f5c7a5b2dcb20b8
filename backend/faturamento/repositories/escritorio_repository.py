"""
Repository do Escritório.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.models.escritorio import Escritorio
from faturamento.repositories.base import BaseRepository


class EscritorioRepository(BaseRepository[Escritorio]):
    """Repository para operações com Escritório."""

    resource_name = "Escritório"

    def __init__(self, db: AsyncSession):
        super().__init__(Escritorio, db)

    async def get_by_cnpj(self, cnpj: str) -> Escritorio | None:
        """Busca escritório por CNPJ (canônico)."""
        result = await self.db.execute(
            select(Escritorio).where(Escritorio.cnpj == cnpj)
        )
        return result.scalar_one_or_none()
