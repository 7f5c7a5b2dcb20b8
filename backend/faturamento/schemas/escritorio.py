"""
Schemas do Escritório.
"""

from decimal import Decimal

from pydantic import EmailStr, Field

from faturamento.schemas.base import BaseSchema, IDMixin, TimestampMixin


class EscritorioBase(BaseSchema):
    """Campos base do escritório."""

    nome: str = Field(..., min_length=2, max_length=255)
    razao_social: str | None = None
    # Aceita com ou sem pontuação; gravado no formato canônico
    cnpj: str | None = None
    email: EmailStr
    default_hourly_rate: Decimal | None = Field(None, ge=0, decimal_places=2)


class EscritorioCreate(EscritorioBase):
    """Schema para criação de escritório."""
    pass


class EscritorioUpdate(BaseSchema):
    """Schema para atualização parcial de escritório."""

    nome: str | None = Field(None, min_length=2, max_length=255)
    razao_social: str | None = None
    email: EmailStr | None = None
    default_hourly_rate: Decimal | None = Field(None, ge=0, decimal_places=2)


class EscritorioResponse(EscritorioBase, IDMixin, TimestampMixin):
    """Schema de resposta do escritório."""

    is_active: bool


class TaxaPadraoUpdate(BaseSchema):
    """Taxa horária padrão do escritório; null remove a taxa."""

    default_hourly_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
