"""
Dependências injetáveis do FastAPI.

Autenticação é externa ao núcleo: o gateway repassa o escritório e o
usuário da requisição nos headers X-Escritorio-ID e X-Usuario-ID.
"""

from typing import Annotated, AsyncGenerator
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.db.session import async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency que fornece uma sessão de banco de dados.

    Uso:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_escritorio_id(
    x_escritorio_id: Annotated[UUID | None, Header()] = None,
) -> UUID:
    """Escritório (tenant) da requisição."""
    if x_escritorio_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Header X-Escritorio-ID obrigatório",
        )
    return x_escritorio_id


async def get_usuario_id(
    x_usuario_id: Annotated[UUID | None, Header()] = None,
) -> UUID:
    """Usuário que executa a requisição."""
    if x_usuario_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Header X-Usuario-ID obrigatório",
        )
    return x_usuario_id


# Type aliases para facilitar uso nas rotas
DBSession = Annotated[AsyncSession, Depends(get_db)]
EscritorioID = Annotated[UUID, Depends(get_escritorio_id)]
UsuarioID = Annotated[UUID, Depends(get_usuario_id)]
