"""
Repository base com operações CRUD genéricas.

Repositories apenas fazem flush; o commit é responsabilidade do
service, dentro de `atomic()`.
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import CrossTenantAccessError, NotFoundError
from faturamento.db.base import Base, MultiTenantBase

ModelType = TypeVar("ModelType", bound=Base)

logger = structlog.get_logger()


class BaseRepository(Generic[ModelType]):
    """
    Repository base com operações CRUD.

    Uso:
        class EscritorioRepository(BaseRepository[Escritorio]):
            def __init__(self, db: AsyncSession):
                super().__init__(Escritorio, db)
    """

    resource_name = "Recurso"

    def __init__(self, model: type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get_by_id(self, id: UUID, for_update: bool = False) -> ModelType | None:
        """Busca entidade por ID."""
        query = select(self.model).where(self.model.id == id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_fail(self, id: UUID, for_update: bool = False) -> ModelType:
        """Busca entidade por ID ou levanta NotFoundError."""
        instance = await self.get_by_id(id, for_update=for_update)
        if instance is None:
            raise NotFoundError(self.resource_name, id)
        return instance

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ModelType]:
        """Lista todas as entidades com paginação."""
        result = await self.db.execute(
            select(self.model).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        """Conta total de entidades."""
        result = await self.db.execute(
            select(func.count()).select_from(self.model)
        )
        return result.scalar_one()

    async def create(self, **kwargs: Any) -> ModelType:
        """Cria nova entidade."""
        instance = self.model(**kwargs)
        self.db.add(instance)
        await self.db.flush()
        await self.db.refresh(instance)
        return instance

    async def update(
        self,
        id: UUID,
        **kwargs: Any,
    ) -> ModelType | None:
        """Atualiza entidade existente (valores None são ignorados)."""
        instance = await self.get_by_id(id)
        if not instance:
            return None

        for key, value in kwargs.items():
            if value is not None:
                setattr(instance, key, value)

        await self.db.flush()
        return instance

    async def delete(self, id: UUID) -> bool:
        """Remove entidade (hard delete)."""
        instance = await self.get_by_id(id)
        if not instance:
            return False

        await self.db.delete(instance)
        await self.db.flush()
        return True

    async def soft_delete(self, id: UUID) -> ModelType | None:
        """Desativa entidade (soft delete)."""
        return await self.update(id, is_active=False)


class MultiTenantRepository(BaseRepository[ModelType]):
    """
    Repository com isolamento por escritório.

    Listagens são filtradas por escritorio_id. Buscas por ID que encontram
    uma linha de outro escritório levantam CrossTenantAccessError em vez
    de devolver o dado ou fingir que ele não existe.
    """

    def __init__(
        self,
        model: type[ModelType],
        db: AsyncSession,
        escritorio_id: UUID,
    ):
        super().__init__(model, db)
        self.escritorio_id = escritorio_id

    def ensure_tenant(self, instance: Any) -> None:
        """Garante que a linha pertence ao escritório do chamador."""
        if instance is None or not isinstance(instance, MultiTenantBase):
            return
        if instance.escritorio_id != self.escritorio_id:
            logger.warning(
                "Acesso entre escritórios bloqueado",
                resource_type=self.resource_name,
                resource_id=str(instance.id),
                escritorio_id=str(self.escritorio_id),
            )
            raise CrossTenantAccessError(self.resource_name, instance.id)

    async def get_by_id(self, id: UUID, for_update: bool = False) -> ModelType | None:
        """Busca entidade por ID validando o tenant."""
        instance = await super().get_by_id(id, for_update=for_update)
        self.ensure_tenant(instance)
        return instance

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ModelType]:
        """Lista entidades do tenant com paginação."""
        if not issubclass(self.model, MultiTenantBase):
            return await super().get_all(skip, limit)

        result = await self.db.execute(
            select(self.model)
            .where(self.model.escritorio_id == self.escritorio_id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        """Conta entidades do tenant."""
        if not issubclass(self.model, MultiTenantBase):
            return await super().count()

        result = await self.db.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.escritorio_id == self.escritorio_id)
        )
        return result.scalar_one()

    async def create(self, **kwargs: Any) -> ModelType:
        """Cria entidade vinculada ao tenant."""
        if issubclass(self.model, MultiTenantBase):
            requested = kwargs.get("escritorio_id")
            if requested is not None and requested != self.escritorio_id:
                raise CrossTenantAccessError(self.resource_name)
            kwargs["escritorio_id"] = self.escritorio_id
        return await super().create(**kwargs)
