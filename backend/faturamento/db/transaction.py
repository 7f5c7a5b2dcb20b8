"""
Unidades de trabalho transacionais e locks por agregado.

Substitui os triggers do banco: cada operação de escrita roda dentro de
`atomic()`, que serializa por chave (fatura, dia do usuário, contador de
numeração) e faz commit completo ou rollback completo.

Locks são sempre estreitos (uma chave por agregado), nunca globais:
- em processo, um `asyncio.Lock` por chave;
- no PostgreSQL, também um advisory lock com escopo de transação.
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, TypeVar

import structlog
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from faturamento.core.config import settings
from faturamento.core.exceptions import ConflictError

logger = structlog.get_logger()

T = TypeVar("T")

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def lock_key(*parts: Any) -> str:
    """Monta a chave de lock de um agregado, ex: invoice:<id>."""
    return ":".join(str(p) for p in parts)


class KeyedLocks:
    """
    Registro de `asyncio.Lock` por chave.

    Locks são criados sob demanda e descartados quando ninguém mais
    espera por eles. Múltiplas chaves são adquiridas em ordem lexicográfica.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def _retain(self, key: str) -> asyncio.Lock:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        return lock

    def _release(self, key: str) -> None:
        self._refs[key] -= 1
        if self._refs[key] == 0:
            del self._refs[key]
            del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        acquired: list[str] = []
        try:
            for key in sorted(set(keys)):
                lock = self._retain(key)
                try:
                    await lock.acquire()
                except BaseException:
                    self._release(key)
                    raise
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._release(key)


aggregate_locks = KeyedLocks()


_LOCK_STACK = "faturamento.lock_stack"
_HELD_KEYS = "faturamento.held_keys"


def _is_postgres(session: AsyncSession) -> bool:
    return session.get_bind().dialect.name == "postgresql"


async def _acquire(session: AsyncSession, stack: AsyncExitStack, keys: tuple[str, ...]) -> None:
    held: set[str] = session.info.setdefault(_HELD_KEYS, set())
    new_keys = sorted(set(keys) - held)
    if not new_keys:
        return
    await stack.enter_async_context(aggregate_locks.hold(*new_keys))
    held.update(new_keys)
    if _is_postgres(session):
        for key in new_keys:
            await session.execute(
                text("SELECT pg_advisory_xact_lock(hashtextextended(:key, 0))"),
                {"key": key},
            )


@asynccontextmanager
async def hold_locks(session: AsyncSession, *keys: str) -> AsyncIterator[None]:
    """
    Adquire locks adicionais dentro da transação corrente (sem commit).

    Dentro de `atomic()` os locks ficam retidos até o fim da transação,
    não apenas até o fim do bloco; chaves já retidas são ignoradas.
    """
    stack = session.info.get(_LOCK_STACK)
    if stack is not None:
        await _acquire(session, stack, keys)
        yield
        return

    async with AsyncExitStack() as local_stack:
        try:
            await _acquire(session, local_stack, keys)
            yield
        finally:
            session.info.pop(_HELD_KEYS, None)


def _is_retryable(exc: DBAPIError) -> bool:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return sqlstate in RETRYABLE_SQLSTATES


@asynccontextmanager
async def atomic(session: AsyncSession, *keys: str) -> AsyncIterator[AsyncSession]:
    """
    Executa o bloco como uma unidade de trabalho serializada por chave.

    Uso:
        async with atomic(self._db, lock_key("invoice", invoice_id)):
            ...  # escritas + recálculo de invariantes

    Conflitos de escrita (violação de unicidade em corrida, falha de
    serialização, deadlock) viram `ConflictError`.
    """
    async with AsyncExitStack() as stack:
        session.info[_LOCK_STACK] = stack
        session.info[_HELD_KEYS] = set()
        try:
            await _acquire(session, stack, keys)
            yield session
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            logger.warning("Conflito de integridade", keys=list(keys), erro=str(exc.orig))
            raise ConflictError() from exc
        except DBAPIError as exc:
            await session.rollback()
            if _is_retryable(exc):
                logger.warning("Falha de serialização", keys=list(keys))
                raise ConflictError() from exc
            raise
        except BaseException:
            await session.rollback()
            raise
        finally:
            session.info.pop(_LOCK_STACK, None)
            session.info.pop(_HELD_KEYS, None)


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "Conflito de escrita, nova tentativa",
        tentativa=retry_state.attempt_number,
    )


async def retry_on_conflict(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Executa `func` re-tentando com backoff exponencial em `ConflictError`.

    Qualquer outra exceção é propagada imediatamente.
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ConflictError),
        stop=stop_after_attempt(settings.CONFLICT_RETRY_ATTEMPTS),
        wait=wait_exponential(
            multiplier=settings.CONFLICT_RETRY_WAIT_MIN,
            min=settings.CONFLICT_RETRY_WAIT_MIN,
            max=settings.CONFLICT_RETRY_WAIT_MAX,
        ),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await func(*args, **kwargs)
    raise AssertionError("unreachable")  # pragma: no cover
