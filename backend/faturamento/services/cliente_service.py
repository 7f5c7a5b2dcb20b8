"""
Service do Cliente.

CPF/CNPJ passam pelo validador de dígitos antes de qualquer gravação
e são armazenados no formato canônico, únicos por escritório.
"""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import (
    InvalidCNPJError,
    InvalidCPFError,
    NotFoundError,
    ResourceAlreadyExistsError,
    ValidationError,
)
from faturamento.core.validators import validate_cnpj, validate_cpf
from faturamento.db.transaction import atomic, lock_key
from faturamento.models.cliente import Cliente, TipoPessoa
from faturamento.repositories.cliente_repository import ClienteRepository
from faturamento.schemas.cliente import ClienteCreate, ClienteUpdate

logger = structlog.get_logger()


class ClienteService:
    """
    Service para operações com Cliente.

    Encapsula a admissão (validação de documento) e o cadastro.
    """

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._repo = ClienteRepository(db, escritorio_id)
        self._db = db
        self._escritorio_id = escritorio_id

    def _canonical_documento(self, dados: ClienteCreate) -> tuple[str | None, str | None]:
        """Retorna (cpf, cnpj) canônicos ou levanta erro de validação."""
        if dados.tipo_pessoa == TipoPessoa.FISICA:
            if dados.cnpj:
                raise ValidationError("Pessoa física não possui CNPJ", field="cnpj")
            if not dados.cpf:
                return None, None
            resultado = validate_cpf(dados.cpf)
            if not resultado.valid:
                raise InvalidCPFError(dados.cpf, resultado.reason)
            return resultado.canonical, None

        if dados.cpf:
            raise ValidationError("Pessoa jurídica não possui CPF", field="cpf")
        if not dados.cnpj:
            raise ValidationError("CNPJ obrigatório para pessoa jurídica", field="cnpj")
        resultado = validate_cnpj(dados.cnpj)
        if not resultado.valid:
            raise InvalidCNPJError(dados.cnpj, resultado.reason)
        return None, resultado.canonical

    async def criar(self, dados: ClienteCreate) -> Cliente:
        """
        Cria novo cliente.

        Valida o documento e garante unicidade dentro do escritório.
        """
        cpf, cnpj = self._canonical_documento(dados)
        documento = cpf or cnpj
        keys = [lock_key("cliente_documento", self._escritorio_id, documento)] if documento else []

        async with atomic(self._db, *keys):
            if cpf and await self._repo.get_by_cpf(cpf):
                raise ResourceAlreadyExistsError("Cliente", "cpf", cpf)
            if cnpj and await self._repo.get_by_cnpj(cnpj):
                raise ResourceAlreadyExistsError("Cliente", "cnpj", cnpj)

            cliente_data = dados.model_dump()
            cliente_data.update(cpf=cpf, cnpj=cnpj)
            cliente = await self._repo.create(**cliente_data)

        logger.info(
            "Cliente criado",
            cliente_id=str(cliente.id),
            escritorio_id=str(self._escritorio_id),
            tipo_pessoa=cliente.tipo_pessoa.value,
        )
        return cliente

    async def buscar_por_id(self, cliente_id: UUID) -> Cliente:
        """Busca cliente por ID (de outro escritório: CrossTenantAccessError)."""
        cliente = await self._repo.get_by_id(cliente_id)
        if not cliente:
            raise NotFoundError("Cliente", cliente_id)
        return cliente

    async def listar(
        self,
        skip: int = 0,
        limit: int = 100,
        apenas_ativos: bool = True,
    ) -> list[Cliente]:
        """Lista clientes do escritório."""
        if apenas_ativos:
            return await self._repo.get_ativos(skip, limit)
        return await self._repo.get_all(skip, limit)

    async def pesquisar(self, query: str) -> list[Cliente]:
        """Pesquisa clientes por nome, documento ou email."""
        return await self._repo.search(query)

    async def atualizar(
        self,
        cliente_id: UUID,
        dados: ClienteUpdate,
    ) -> Cliente:
        """Atualiza dados cadastrais (documentos não são alteráveis)."""
        async with atomic(self._db):
            await self.buscar_por_id(cliente_id)
            cliente = await self._repo.update(cliente_id, **dados.model_dump(exclude_unset=True))
        return cliente

    async def desativar(self, cliente_id: UUID) -> Cliente:
        """Desativa cliente (soft delete)."""
        async with atomic(self._db):
            await self.buscar_por_id(cliente_id)
            cliente = await self._repo.soft_delete(cliente_id)

        logger.info("Cliente desativado", cliente_id=str(cliente_id))
        return cliente
