"""
Service de Escritório.

Cadastro do tenant: CNPJ validado e único, desativação sem remoção
e taxa horária padrão usada como último recurso na resolução de taxas.
"""

from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import (
    InvalidCNPJError,
    NotFoundError,
    ResourceAlreadyExistsError,
    ValidationError,
)
from faturamento.core.validators import validate_cnpj
from faturamento.db.transaction import atomic, lock_key
from faturamento.models.escritorio import Escritorio
from faturamento.repositories.escritorio_repository import EscritorioRepository
from faturamento.schemas.escritorio import EscritorioCreate, EscritorioUpdate

logger = structlog.get_logger()


class EscritorioService:
    """
    Service para gestão de escritórios (tenants).

    Escritórios nunca são removidos, apenas desativados.
    """

    def __init__(self, db: AsyncSession):
        self._db = db
        self._repo = EscritorioRepository(db)

    async def criar_escritorio(self, dados: EscritorioCreate) -> Escritorio:
        """Cria novo escritório com CNPJ validado e no formato canônico."""
        escritorio_data = dados.model_dump()

        if dados.cnpj:
            resultado = validate_cnpj(dados.cnpj)
            if not resultado.valid:
                raise InvalidCNPJError(dados.cnpj, resultado.reason)
            escritorio_data["cnpj"] = resultado.canonical

        keys = [lock_key("escritorio_cnpj", escritorio_data["cnpj"])] if escritorio_data["cnpj"] else []
        async with atomic(self._db, *keys):
            if escritorio_data["cnpj"]:
                existente = await self._repo.get_by_cnpj(escritorio_data["cnpj"])
                if existente:
                    raise ResourceAlreadyExistsError("Escritório", "cnpj", escritorio_data["cnpj"])

            escritorio = await self._repo.create(**escritorio_data)

        logger.info(
            "Escritório criado",
            escritorio_id=str(escritorio.id),
            nome=escritorio.nome,
        )

        return escritorio

    async def buscar_escritorio(self, escritorio_id: UUID) -> Escritorio:
        """Busca escritório por ID."""
        escritorio = await self._repo.get_by_id(escritorio_id)
        if not escritorio:
            raise NotFoundError("Escritório", escritorio_id)
        return escritorio

    async def atualizar_escritorio(
        self,
        escritorio_id: UUID,
        dados: EscritorioUpdate,
    ) -> Escritorio:
        """Atualiza dados cadastrais do escritório."""
        async with atomic(self._db):
            await self.buscar_escritorio(escritorio_id)
            escritorio = await self._repo.update(
                escritorio_id,
                **dados.model_dump(exclude_unset=True),
            )

        logger.info("Escritório atualizado", escritorio_id=str(escritorio_id))
        return escritorio

    async def definir_taxa_padrao(
        self,
        escritorio_id: UUID,
        taxa: Decimal | None,
    ) -> Escritorio:
        """Define (ou remove, com None) a taxa horária padrão do escritório."""
        if taxa is not None and taxa < 0:
            raise ValidationError("Taxa horária não pode ser negativa", field="default_hourly_rate")

        async with atomic(self._db):
            escritorio = await self.buscar_escritorio(escritorio_id)
            escritorio.default_hourly_rate = taxa
            await self._db.flush()

        logger.info(
            "Taxa padrão do escritório definida",
            escritorio_id=str(escritorio_id),
            taxa=str(taxa) if taxa is not None else None,
        )
        return escritorio

    async def desativar_escritorio(self, escritorio_id: UUID) -> Escritorio:
        """Desativa escritório (soft delete)."""
        async with atomic(self._db):
            await self.buscar_escritorio(escritorio_id)
            escritorio = await self._repo.soft_delete(escritorio_id)

        logger.info("Escritório desativado", escritorio_id=str(escritorio_id))
        return escritorio

    async def reativar_escritorio(self, escritorio_id: UUID) -> Escritorio:
        """Reativa escritório desativado."""
        async with atomic(self._db):
            await self.buscar_escritorio(escritorio_id)
            escritorio = await self._repo.update(escritorio_id, is_active=True)

        logger.info("Escritório reativado", escritorio_id=str(escritorio_id))
        return escritorio
