"""
Service de Fornecedor.
"""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import (
    InvalidCNPJError,
    NotFoundError,
    ResourceAlreadyExistsError,
)
from faturamento.core.validators import validate_cnpj
from faturamento.db.transaction import atomic, lock_key
from faturamento.models.cliente import Vendor
from faturamento.repositories.cliente_repository import VendorRepository
from faturamento.schemas.cliente import VendorCreate

logger = structlog.get_logger()


class VendorService:
    """Cadastro de fornecedores; CNPJ único por escritório, não globalmente."""

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._db = db
        self._escritorio_id = escritorio_id
        self._repo = VendorRepository(db, escritorio_id)

    async def criar(self, dados: VendorCreate) -> Vendor:
        resultado = validate_cnpj(dados.cnpj)
        if not resultado.valid:
            raise InvalidCNPJError(dados.cnpj, resultado.reason)
        cnpj = resultado.canonical

        async with atomic(self._db, lock_key("vendor_cnpj", self._escritorio_id, cnpj)):
            if await self._repo.get_by_cnpj(cnpj):
                raise ResourceAlreadyExistsError("Fornecedor", "cnpj", cnpj)
            vendor = await self._repo.create(**{**dados.model_dump(), "cnpj": cnpj})

        logger.info(
            "Fornecedor criado",
            vendor_id=str(vendor.id),
            escritorio_id=str(self._escritorio_id),
        )
        return vendor

    async def buscar_por_id(self, vendor_id: UUID) -> Vendor:
        vendor = await self._repo.get_by_id(vendor_id)
        if not vendor:
            raise NotFoundError("Fornecedor", vendor_id)
        return vendor

    async def listar(self, skip: int = 0, limit: int = 100) -> list[Vendor]:
        return await self._repo.get_all(skip, limit)
