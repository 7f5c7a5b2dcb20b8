"""
Schemas da validação de documentos.
"""

from pydantic import BaseModel, Field


class DocumentoRequest(BaseModel):
    """Documento a validar, com ou sem pontuação."""

    documento: str = Field(..., max_length=32)
