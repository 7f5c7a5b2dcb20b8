"""
Validação de CPF e CNPJ.

Algoritmos de dígito verificador (módulo 11) usados para admitir clientes,
fornecedores e escritórios. Nunca levantam exceção: o resultado sempre
informa `valid` e, em caso de falha, o motivo para exibir ao usuário.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict

CPF_WEIGHTS_D1 = list(range(10, 1, -1))
CPF_WEIGHTS_D2 = list(range(11, 1, -1))

CNPJ_WEIGHTS_D1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
CNPJ_WEIGHTS_D2 = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]


class ValidationResult(BaseModel):
    """Resultado da validação de um documento."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    canonical: str | None = None
    reason: str | None = None


def only_digits(raw: str) -> str:
    """Remove tudo que não for dígito."""
    return "".join(c for c in raw if c in "0123456789")


def _check_digit(digits: str, weights: list[int]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights))
    digit = 11 - (total % 11)
    return 0 if digit >= 10 else digit


def _validate(
    raw: Any,
    size: int,
    label: str,
    weights_d1: list[int],
    weights_d2: list[int],
) -> tuple[str | None, str | None]:
    """Retorna (dígitos, motivo_da_falha)."""
    if not isinstance(raw, str):
        return None, f"{label} deve ser texto"

    digits = only_digits(raw)
    if len(digits) != size:
        return None, f"{label} deve conter {size} dígitos"

    if digits == digits[0] * size:
        return None, f"{label} com todos os dígitos iguais"

    base = digits[: size - 2]
    d1 = _check_digit(base, weights_d1)
    d2 = _check_digit(base + str(d1), weights_d2)

    if digits[-2:] != f"{d1}{d2}":
        return None, "Dígitos verificadores não conferem"

    return digits, None


def format_cpf(digits: str) -> str:
    """Formata 11 dígitos como ###.###.###-##."""
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_cnpj(digits: str) -> str:
    """Formata 14 dígitos como ##.###.###/####-##."""
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def validate_cpf(raw: Any) -> ValidationResult:
    """
    Valida CPF com ou sem pontuação.

    Exemplo:
        >>> validate_cpf("529.982.247-25").canonical
        '529.982.247-25'
        >>> validate_cpf("52998224725").canonical
        '529.982.247-25'
    """
    digits, reason = _validate(raw, 11, "CPF", CPF_WEIGHTS_D1, CPF_WEIGHTS_D2)
    if digits is None:
        return ValidationResult(valid=False, reason=reason)
    return ValidationResult(valid=True, canonical=format_cpf(digits))


def validate_cnpj(raw: Any) -> ValidationResult:
    """Valida CNPJ com ou sem pontuação."""
    digits, reason = _validate(raw, 14, "CNPJ", CNPJ_WEIGHTS_D1, CNPJ_WEIGHTS_D2)
    if digits is None:
        return ValidationResult(valid=False, reason=reason)
    return ValidationResult(valid=True, canonical=format_cnpj(digits))
