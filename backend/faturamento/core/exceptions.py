"""
Exceções customizadas do núcleo de faturamento.

Define hierarquia de exceções para tratamento consistente de erros.
Toda violação de invariante gera uma exceção tipada com código próprio.
"""

from typing import Any
from uuid import UUID


class CRMException(Exception):
    """Exceção base do CRM Jurídico."""

    def __init__(
        self,
        message: str,
        code: str = "CRM_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


# === Exceções de Autorização ===

class AuthorizationError(CRMException):
    """Erro de autorização/permissão."""

    def __init__(self, message: str = "Acesso negado"):
        super().__init__(message, code="AUTHORIZATION_ERROR")


class CrossTenantAccessError(AuthorizationError):
    """
    Tentativa de acesso a dados de outro escritório.

    Sempre fatal para a requisição; nunca deve ser re-tentada.
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str | None = None,
    ):
        super().__init__("Acesso não permitido a este recurso")
        self.code = "CROSS_TENANT_ACCESS"
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.details = {
            "resource_type": resource_type,
            "resource_id": str(resource_id) if resource_id else None,
        }


# === Exceções de Recursos ===

class NotFoundError(CRMException):
    """Recurso não encontrado."""

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str | None = None,
    ):
        message = f"{resource_type} não encontrado"
        if resource_id:
            message = f"{resource_type} com ID {resource_id} não encontrado"
        super().__init__(message, code="NOT_FOUND")
        self.resource_type = resource_type
        self.resource_id = resource_id


class ResourceAlreadyExistsError(CRMException):
    """Recurso já existe (conflito de unicidade)."""

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: str,
    ):
        message = f"{resource_type} com {field}='{value}' já existe"
        super().__init__(message, code="ALREADY_EXISTS")
        self.resource_type = resource_type
        self.field = field
        self.value = value


class ConflictError(CRMException):
    """
    Escrita concorrente detectada.

    Única exceção que pode ser re-tentada pelo chamador (com backoff).
    """

    def __init__(self, message: str = "Conflito de escrita concorrente"):
        super().__init__(message, code="WRITE_CONFLICT")


# === Exceções de Validação ===

class ValidationError(CRMException):
    """Erro de validação de dados."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field
        self.errors = errors or []
        if field:
            self.details = {"field": field}


class InvalidCPFError(ValidationError):
    """CPF inválido."""

    def __init__(self, cpf: str, reason: str | None = None):
        message = f"CPF inválido: {cpf}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, field="cpf")
        self.code = "INVALID_CPF"


class InvalidCNPJError(ValidationError):
    """CNPJ inválido."""

    def __init__(self, cnpj: str, reason: str | None = None):
        message = f"CNPJ inválido: {cnpj}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, field="cnpj")
        self.code = "INVALID_CNPJ"


# === Exceções de Negócio ===

class BusinessRuleError(CRMException):
    """Violação de regra de negócio."""

    def __init__(self, message: str, rule: str | None = None):
        super().__init__(message, code="BUSINESS_RULE_VIOLATION")
        self.rule = rule


class ImmutableStateError(BusinessRuleError):
    """Alteração em entidade aprovada, enviada, paga ou faturada."""

    def __init__(self, resource_type: str, resource_id: UUID | str, status: str):
        super().__init__(
            f"{resource_type} {resource_id} está com status '{status}' e não pode ser alterado",
            rule="IMMUTABLE_STATE",
        )
        self.code = "IMMUTABLE_STATE"
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.status = status


class OverlapError(BusinessRuleError):
    """Intervalo de lançamento sobrepõe outro lançamento do mesmo usuário."""

    def __init__(self, conflicting_id: UUID):
        super().__init__(
            f"Intervalo sobrepõe o lançamento {conflicting_id}",
            rule="TIME_ENTRY_OVERLAP",
        )
        self.code = "TIME_ENTRY_OVERLAP"
        self.conflicting_id = conflicting_id
        self.details = {"conflicting_id": str(conflicting_id)}
