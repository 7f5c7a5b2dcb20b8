"""
Engine e sessões assíncronas do banco.

PostgreSQL (asyncpg) em produção, com pool dimensionado pelas
configurações ou NullPool quando DATABASE_NULLPOOL está ligado
(Cloud Run). SQLite (aiosqlite) nos testes, sempre com NullPool para
que cada sessão tenha sua própria conexão.
"""

from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from faturamento.core.config import settings
from faturamento.core.logging import SERVICE_NAME


def engine_options(url: str) -> dict[str, Any]:
    """Argumentos de `create_async_engine` para a URL informada."""
    options: dict[str, Any] = {"echo": settings.DEBUG}

    if url.startswith("sqlite"):
        options["poolclass"] = NullPool
        return options

    if settings.DATABASE_NULLPOOL:
        options["poolclass"] = NullPool
    else:
        options["pool_size"] = settings.DATABASE_POOL_SIZE
        options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
        options["pool_pre_ping"] = True

    if url.startswith("postgresql+asyncpg"):
        # Datas de lançamento são derivadas em Python; a sessão fica em UTC
        options["connect_args"] = {
            "server_settings": {
                "application_name": SERVICE_NAME,
                "timezone": "UTC",
            },
        }
    return options


def build_engine(url: str | None = None) -> AsyncEngine:
    url = url or str(settings.DATABASE_URL)
    return create_async_engine(url, **engine_options(url))


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Fábrica de sessões usada pela API e pelos testes.

    expire_on_commit=False: os services devolvem objetos já commitados.
    autoflush=False: cada escrita faz flush explícito dentro de `atomic()`.
    """
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()
async_session_maker = build_session_maker(engine)
