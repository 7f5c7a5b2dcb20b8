"""
Testes das unidades de trabalho, locks por agregado e retry em conflito.
"""
import asyncio

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import ConflictError, NotFoundError
from faturamento.db.transaction import (
    KeyedLocks,
    aggregate_locks,
    atomic,
    hold_locks,
    lock_key,
    retry_on_conflict,
)
from faturamento.models.escritorio import Escritorio


def test_lock_key():
    assert lock_key("invoice", "abc") == "invoice:abc"
    assert lock_key("time_entries", 1, 2) == "time_entries:1:2"


@pytest.mark.asyncio
async def test_keyed_locks_serializa_mesma_chave():
    locks = KeyedLocks()
    events: list[str] = []

    async def worker(name: str):
        async with locks.hold("invoice:1"):
            events.append(f"{name}-in")
            await asyncio.sleep(0.01)
            events.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert events in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )
    assert not locks.is_locked("invoice:1")


@pytest.mark.asyncio
async def test_keyed_locks_chaves_distintas_nao_bloqueiam():
    locks = KeyedLocks()

    async with locks.hold("invoice:1"):
        async with locks.hold("invoice:2"):
            assert locks.is_locked("invoice:1")
            assert locks.is_locked("invoice:2")


@pytest.mark.asyncio
async def test_atomic_faz_commit(session_factory, test_escritorio: Escritorio):
    async with session_factory() as session:
        async with atomic(session, lock_key("escritorio", test_escritorio.id)):
            escritorio = await session.get(Escritorio, test_escritorio.id)
            escritorio.nome = "Nome Novo"

    async with session_factory() as session:
        escritorio = await session.get(Escritorio, test_escritorio.id)
        assert escritorio.nome == "Nome Novo"


@pytest.mark.asyncio
async def test_atomic_faz_rollback(session_factory, test_escritorio: Escritorio):
    key = lock_key("escritorio", test_escritorio.id)

    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            async with atomic(session, key):
                escritorio = await session.get(Escritorio, test_escritorio.id)
                escritorio.nome = "Nome Descartado"
                await session.flush()
                raise NotFoundError("Teste")

    assert not aggregate_locks.is_locked(key)

    async with session_factory() as session:
        result = await session.execute(
            select(Escritorio.nome).where(Escritorio.id == test_escritorio.id)
        )
        assert result.scalar_one() == "Escritório Teste"


@pytest.mark.asyncio
async def test_integridade_vira_conflito(session_factory, test_escritorio: Escritorio):
    async with session_factory() as session:
        with pytest.raises(ConflictError):
            async with atomic(session):
                session.add(
                    Escritorio(
                        nome="Duplicado",
                        cnpj=test_escritorio.cnpj,
                        email="dup@teste.com",
                    )
                )
                await session.flush()


@pytest.mark.asyncio
async def test_locks_retidos_ate_o_commit(db_session: AsyncSession):
    outer, inner = lock_key("invoice", 1), lock_key("time_entries", 1)

    async with atomic(db_session, outer):
        async with hold_locks(db_session, inner):
            pass
        # a chave interna continua retida até o fim da transação
        assert aggregate_locks.is_locked(inner)

    assert not aggregate_locks.is_locked(outer)
    assert not aggregate_locks.is_locked(inner)


@pytest.mark.asyncio
async def test_retry_on_conflict_tenta_novamente(no_retry_wait):
    calls = 0

    async def flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise ConflictError()
        return "ok"

    assert await retry_on_conflict(flaky) == "ok"
    assert calls == 3


@pytest.mark.asyncio
async def test_retry_on_conflict_desiste(no_retry_wait):
    from faturamento.core.config import settings

    calls = 0

    async def always_conflict() -> None:
        nonlocal calls
        calls += 1
        raise ConflictError()

    with pytest.raises(ConflictError):
        await retry_on_conflict(always_conflict)
    assert calls == settings.CONFLICT_RETRY_ATTEMPTS


@pytest.mark.asyncio
async def test_retry_on_conflict_nao_repete_outros_erros(no_retry_wait):
    calls = 0

    async def broken() -> None:
        nonlocal calls
        calls += 1
        raise NotFoundError("Fatura")

    with pytest.raises(NotFoundError):
        await retry_on_conflict(broken)
    assert calls == 1
