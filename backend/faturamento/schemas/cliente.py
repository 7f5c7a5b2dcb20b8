"""
Schemas do Cliente e do Fornecedor.

CPF/CNPJ chegam em qualquer formato; a validação dos dígitos
verificadores e a canonicalização acontecem no service.
"""

from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from faturamento.models.cliente import TipoPessoa
from faturamento.schemas.base import BaseSchema, IDMixin, TenantMixin, TimestampMixin


class ClienteBase(BaseSchema):
    """Campos base do cliente."""

    tipo_pessoa: TipoPessoa = TipoPessoa.FISICA
    nome: str = Field(..., min_length=2, max_length=255)

    # Documentos (mutuamente exclusivos conforme tipo_pessoa)
    cpf: str | None = None
    cnpj: str | None = None
    razao_social: str | None = None

    # Contato
    email: EmailStr | None = None
    telefone: str | None = None

    observacoes: str | None = None


class ClienteCreate(ClienteBase):
    """Schema para criação de cliente."""

    @model_validator(mode="after")
    def check_documento(self) -> "ClienteCreate":
        """Pessoa física usa CPF; pessoa jurídica usa CNPJ."""
        if self.tipo_pessoa == TipoPessoa.FISICA and self.cnpj:
            raise ValueError("Pessoa física não possui CNPJ")
        if self.tipo_pessoa == TipoPessoa.JURIDICA and self.cpf:
            raise ValueError("Pessoa jurídica não possui CPF")
        return self


class ClienteUpdate(BaseSchema):
    """Schema para atualização parcial de cliente."""

    nome: str | None = None
    email: EmailStr | None = None
    telefone: str | None = None
    razao_social: str | None = None
    observacoes: str | None = None
    is_active: bool | None = None


class ClienteResponse(ClienteBase, IDMixin, TenantMixin, TimestampMixin):
    """Schema de resposta do cliente."""

    is_active: bool


class ClienteListResponse(BaseSchema):
    """Schema simplificado para listagem."""

    id: UUID
    nome: str
    tipo_pessoa: TipoPessoa
    cpf: str | None
    cnpj: str | None
    is_active: bool
    created_at: datetime


class VendorCreate(BaseSchema):
    """Schema para cadastro de fornecedor."""

    nome: str = Field(..., min_length=2, max_length=255)
    cnpj: str
    email: EmailStr | None = None
    telefone: str | None = None


class VendorResponse(VendorCreate, IDMixin, TenantMixin, TimestampMixin):
    """Schema de resposta do fornecedor."""

    email: str | None = None
    is_active: bool
