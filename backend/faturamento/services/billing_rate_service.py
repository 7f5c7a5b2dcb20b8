"""
Taxas horárias: cadastro com vigência e resolução da taxa de um lançamento.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import BusinessRuleError, NotFoundError
from faturamento.db.transaction import atomic, lock_key
from faturamento.models.time_entry import BillingRate, BillingRateSource
from faturamento.repositories.escritorio_repository import EscritorioRepository
from faturamento.repositories.time_entry_repository import BillingRateRepository
from faturamento.repositories.usuario_repository import UsuarioRepository
from faturamento.schemas.time_entry import BillingRateCreate

logger = structlog.get_logger()


class RateResolver:
    """
    Resolve a taxa horária aplicável a um lançamento.

    Ordem de preferência entre as taxas ativas vigentes na data:
    1. específica do processo (matter_id do lançamento);
    2. do tipo de serviço, primeiro do usuário e depois do escritório;
    3. taxa padrão do usuário (sem serviço nem processo);
    4. taxa padrão do escritório, ou 0 se não configurada.
    Em cada nível vence a vigência iniciada mais recentemente.
    """

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._escritorio_id = escritorio_id
        self._rates = BillingRateRepository(db, escritorio_id)
        self._escritorios = EscritorioRepository(db)

    async def resolve(
        self,
        user_id: UUID,
        day: date,
        service_type: str | None = None,
        matter_id: UUID | None = None,
    ) -> tuple[Decimal, BillingRateSource]:
        candidates = await self._rates.get_candidates(user_id, day)
        # ordenação estável: taxas do usuário antes das do escritório
        candidates.sort(key=lambda r: r.user_id is None)

        if matter_id is not None:
            for rate in candidates:
                if rate.matter_id == matter_id:
                    return rate.hourly_rate, BillingRateSource.MATTER_SPECIFIC

        if service_type:
            for rate in candidates:
                if rate.matter_id is None and rate.service_type == service_type:
                    return rate.hourly_rate, BillingRateSource.SERVICE_TYPE

        for rate in candidates:
            if (
                rate.user_id == user_id
                and rate.service_type is None
                and rate.matter_id is None
            ):
                return rate.hourly_rate, BillingRateSource.USER_DEFAULT

        escritorio = await self._escritorios.get_by_id(self._escritorio_id)
        default = escritorio.default_hourly_rate if escritorio else None
        return (default if default is not None else Decimal("0")), BillingRateSource.TENANT_DEFAULT


class BillingRateService:
    """Gestão do histórico de taxas horárias do escritório."""

    def __init__(self, db: AsyncSession, escritorio_id: UUID):
        self._db = db
        self._escritorio_id = escritorio_id
        self._repo = BillingRateRepository(db, escritorio_id)
        self._usuarios = UsuarioRepository(db, escritorio_id)
        self.resolver = RateResolver(db, escritorio_id)

    async def create_rate(self, dados: BillingRateCreate) -> BillingRate:
        """
        Cadastra uma taxa.

        Rejeita a taxa se já houver outra ativa com o mesmo escopo
        (usuário, tipo de serviço, processo) e vigência sobreposta.
        """
        if dados.user_id is not None:
            await self._usuarios.get_or_fail(dados.user_id)

        scope_key = lock_key(
            "billing_rate",
            self._escritorio_id,
            dados.user_id,
            dados.service_type,
            dados.matter_id,
        )
        async with atomic(self._db, scope_key):
            conflicting = await self._repo.find_overlapping_active(
                user_id=dados.user_id,
                service_type=dados.service_type,
                matter_id=dados.matter_id,
                effective_from=dados.effective_from,
                effective_until=dados.effective_until,
            )
            if conflicting:
                raise BusinessRuleError(
                    f"Vigência sobrepõe a taxa ativa {conflicting.id}",
                    rule="BILLING_RATE_OVERLAP",
                )
            rate = await self._repo.create(**dados.model_dump(), is_active=True)

        logger.info(
            "Taxa horária cadastrada",
            billing_rate_id=str(rate.id),
            user_id=str(rate.user_id) if rate.user_id else None,
            hourly_rate=str(rate.hourly_rate),
        )
        return rate

    async def deactivate_rate(self, rate_id: UUID) -> BillingRate:
        """Desativa uma taxa; lançamentos já calculados não mudam."""
        async with atomic(self._db):
            rate = await self._repo.get_or_fail(rate_id)
            rate.is_active = False
            await self._db.flush()

        logger.info("Taxa horária desativada", billing_rate_id=str(rate_id))
        return rate

    async def list_rates(
        self,
        user_id: UUID | None = None,
        only_active: bool = False,
    ) -> list[BillingRate]:
        return await self._repo.get_by_user(user_id, only_active=only_active)

    async def get_rate(self, rate_id: UUID) -> BillingRate:
        rate = await self._repo.get_by_id(rate_id)
        if not rate:
            raise NotFoundError("Taxa horária", rate_id)
        return rate
