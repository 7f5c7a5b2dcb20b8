"""
Pytest fixtures para testes do núcleo de faturamento.

Cada teste recebe um banco SQLite próprio em arquivo temporário.
NullPool garante conexões reais e independentes por sessão, o que
permite testar chamadas concorrentes com sessões distintas.
"""
from typing import AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

import faturamento.models  # noqa: F401  (registra as tabelas no metadata)
from faturamento.core.dependencies import get_db
from faturamento.db.base import Base
from faturamento.db.session import build_engine, build_session_maker
from faturamento.main import app
from faturamento.models.cliente import Cliente, TipoPessoa
from faturamento.models.escritorio import Escritorio
from faturamento.models.usuario import UserRole, Usuario
from factories import CNPJ_VALIDO, CNPJ_VALIDO_2, CPF_VALIDO, CPF_VALIDO_2


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine com schema criado em um arquivo SQLite descartável."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'faturamento.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Cria sessão de banco de dados para cada teste."""
    async with session_factory() as session:
        yield session


async def _add(factory: async_sessionmaker[AsyncSession], instance):
    """Grava em sessão própria; o objeto volta desanexado e já carregado."""
    async with factory() as session:
        session.add(instance)
        await session.commit()
        await session.refresh(instance)
    return instance


@pytest_asyncio.fixture
async def test_escritorio(session_factory) -> Escritorio:
    """Cria escritório de teste."""
    return await _add(
        session_factory,
        Escritorio(
            id=uuid4(),
            nome="Escritório Teste",
            cnpj=CNPJ_VALIDO,
            email="escritorio@teste.com",
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def other_escritorio(session_factory) -> Escritorio:
    """Segundo escritório, para testes de isolamento."""
    return await _add(
        session_factory,
        Escritorio(
            id=uuid4(),
            nome="Outro Escritório",
            cnpj=CNPJ_VALIDO_2,
            email="outro@teste.com",
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def test_user(session_factory, test_escritorio: Escritorio) -> Usuario:
    """Cria usuário de teste."""
    return await _add(
        session_factory,
        Usuario(
            id=uuid4(),
            email="advogado@teste.com",
            nome="Usuário Teste",
            role=UserRole.ADVOGADO,
            escritorio_id=test_escritorio.id,
        ),
    )


@pytest_asyncio.fixture
async def approver(session_factory, test_escritorio: Escritorio) -> Usuario:
    """Sócio que aprova lançamentos."""
    return await _add(
        session_factory,
        Usuario(
            id=uuid4(),
            email="socio@teste.com",
            nome="Sócio",
            role=UserRole.ADMIN,
            escritorio_id=test_escritorio.id,
        ),
    )


@pytest_asyncio.fixture
async def other_user(session_factory, other_escritorio: Escritorio) -> Usuario:
    """Usuário do segundo escritório."""
    return await _add(
        session_factory,
        Usuario(
            id=uuid4(),
            email="advogado@outro.com",
            nome="Usuário de Outro Escritório",
            role=UserRole.ADVOGADO,
            escritorio_id=other_escritorio.id,
        ),
    )


@pytest_asyncio.fixture
async def test_cliente(session_factory, test_escritorio: Escritorio) -> Cliente:
    """Cliente pessoa física do escritório de teste."""
    return await _add(
        session_factory,
        Cliente(
            id=uuid4(),
            escritorio_id=test_escritorio.id,
            tipo_pessoa=TipoPessoa.FISICA,
            nome="Maria da Silva",
            cpf=CPF_VALIDO,
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def other_cliente(session_factory, other_escritorio: Escritorio) -> Cliente:
    """Cliente do segundo escritório."""
    return await _add(
        session_factory,
        Cliente(
            id=uuid4(),
            escritorio_id=other_escritorio.id,
            tipo_pessoa=TipoPessoa.FISICA,
            nome="José Souza",
            cpf=CPF_VALIDO_2,
            is_active=True,
        ),
    )


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    test_user: Usuario,
    test_escritorio: Escritorio,
) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP com os headers de escritório e usuário."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={
            "X-Escritorio-ID": str(test_escritorio.id),
            "X-Usuario-ID": str(test_user.id),
        },
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anonymous_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP sem headers de escritório/usuário."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Remove o backoff do retry em conflitos."""
    from faturamento.core.config import settings

    monkeypatch.setattr(settings, "CONFLICT_RETRY_WAIT_MIN", 0)
    monkeypatch.setattr(settings, "CONFLICT_RETRY_WAIT_MAX", 0)
