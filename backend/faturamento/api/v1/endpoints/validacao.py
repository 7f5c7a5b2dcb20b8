"""
Endpoints de validação de documentos.

Falhas de validação não são erros HTTP: a resposta sempre traz
`valid` e, quando inválido, o motivo.
"""

from fastapi import APIRouter

from faturamento.core.validators import ValidationResult, validate_cnpj, validate_cpf
from faturamento.schemas.validacao import DocumentoRequest

router = APIRouter(prefix="/validacao", tags=["Validação"])


@router.post("/cpf", response_model=ValidationResult)
async def validar_cpf(dados: DocumentoRequest) -> ValidationResult:
    """Valida CPF com ou sem pontuação."""
    return validate_cpf(dados.documento)


@router.post("/cnpj", response_model=ValidationResult)
async def validar_cnpj(dados: DocumentoRequest) -> ValidationResult:
    """Valida CNPJ com ou sem pontuação."""
    return validate_cnpj(dados.documento)
