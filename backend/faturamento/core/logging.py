"""
Configuração de logging estruturado com structlog.

Toda linha carrega o serviço, o ambiente e a versão; dentro de uma
requisição, também o request_id, o escritório e o usuário vinculados
pelo RequestContextMiddleware. JSON fora do modo debug.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from faturamento.core.config import settings

SERVICE_NAME = "faturamento"

# Chaves de contexto omitidas quando vazias (ex: rotas sem escritório)
OPTIONAL_CONTEXT_KEYS = ("escritorio_id", "usuario_id")

# Loggers de bibliotecas com nível fixo
LIBRARY_LOG_LEVELS = {
    "uvicorn.access": logging.WARNING,
    "asyncio": logging.WARNING,
}


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Identifica a aplicação em cada evento."""
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    event_dict.setdefault("version", settings.VERSION)
    return event_dict


def drop_empty_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    for key in OPTIONAL_CONTEXT_KEYS:
        if key in event_dict and not event_dict[key]:
            del event_dict[key]
    return event_dict


def build_processors(debug: bool) -> list[Processor]:
    """Cadeia de processadores: console colorido em debug, JSON nos demais."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        drop_empty_context,
        add_app_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if debug:
        return shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    return shared_processors + [
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]


def resolve_log_level() -> int:
    """LOG_LEVEL explícito; senão DEBUG em modo debug e INFO nos demais."""
    if settings.LOG_LEVEL:
        return logging.getLevelNamesMapping().get(settings.LOG_LEVEL.upper(), logging.INFO)
    return logging.DEBUG if settings.DEBUG else logging.INFO


def setup_logging() -> None:
    """Configura logging estruturado para a aplicação."""
    structlog.configure(
        processors=build_processors(settings.DEBUG),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=resolve_log_level(),
    )

    # SQL só em modo debug
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(level)
