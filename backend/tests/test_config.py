"""
Testes de configuração: URL do banco, opções da engine e logging.
"""
import logging

import structlog
from sqlalchemy.pool import NullPool

from faturamento.core.config import Settings, settings
from faturamento.core.logging import (
    SERVICE_NAME,
    add_app_context,
    build_processors,
    drop_empty_context,
    resolve_log_level,
)
from faturamento.db.session import engine_options


def test_url_postgres_usa_asyncpg():
    config = Settings(DATABASE_URL="postgresql://app:secret@db:5432/crm")

    assert str(config.DATABASE_URL) == "postgresql+asyncpg://app:secret@db:5432/crm"


def test_engine_sqlite_sempre_nullpool():
    options = engine_options("sqlite+aiosqlite:///:memory:")

    assert options["poolclass"] is NullPool
    assert "pool_size" not in options
    assert "connect_args" not in options


def test_engine_postgres_com_pool(monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_NULLPOOL", False)

    options = engine_options("postgresql+asyncpg://app:secret@db:5432/crm")

    assert options["pool_size"] == settings.DATABASE_POOL_SIZE
    assert options["max_overflow"] == settings.DATABASE_MAX_OVERFLOW
    assert options["pool_pre_ping"] is True
    server_settings = options["connect_args"]["server_settings"]
    assert server_settings["timezone"] == "UTC"
    assert server_settings["application_name"] == SERVICE_NAME


def test_engine_postgres_serverless(monkeypatch):
    """Com DATABASE_NULLPOOL cada requisição abre sua conexão."""
    monkeypatch.setattr(settings, "DATABASE_NULLPOOL", True)

    options = engine_options("postgresql+asyncpg://app:secret@db:5432/crm")

    assert options["poolclass"] is NullPool
    assert "pool_size" not in options


def test_eventos_identificam_a_aplicacao():
    event = add_app_context(None, "info", {"event": "Fatura enviada"})

    assert event["service"] == SERVICE_NAME
    assert event["environment"] == settings.ENVIRONMENT
    assert event["version"] == settings.VERSION


def test_contexto_vazio_omitido():
    event = drop_empty_context(
        None,
        "info",
        {"event": "Requisição rejeitada", "escritorio_id": None, "usuario_id": "u-1"},
    )

    assert "escritorio_id" not in event
    assert event["usuario_id"] == "u-1"


def test_renderizador_por_modo():
    assert isinstance(build_processors(debug=False)[-1], structlog.processors.JSONRenderer)
    assert isinstance(build_processors(debug=True)[-1], structlog.dev.ConsoleRenderer)


def test_nivel_de_log(monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", False)
    monkeypatch.setattr(settings, "LOG_LEVEL", None)
    assert resolve_log_level() == logging.INFO

    monkeypatch.setattr(settings, "LOG_LEVEL", "warning")
    assert resolve_log_level() == logging.WARNING

    monkeypatch.setattr(settings, "LOG_LEVEL", None)
    monkeypatch.setattr(settings, "DEBUG", True)
    assert resolve_log_level() == logging.DEBUG
