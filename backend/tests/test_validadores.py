"""
Testes para validação de CPF e CNPJ.
"""
import pytest
from httpx import AsyncClient

from faturamento.core.validators import only_digits, validate_cnpj, validate_cpf
from factories import CNPJ_VALIDO, CNPJ_VALIDO_2, CPF_VALIDO, CPF_VALIDO_2


def _flip(document: str, position: int) -> str:
    """Troca o dígito na posição (contando só dígitos) por outro."""
    digits = only_digits(document)
    changed = str((int(digits[position]) + 1) % 10)
    return digits[:position] + changed + digits[position + 1:]


@pytest.mark.parametrize("cpf", [CPF_VALIDO, CPF_VALIDO_2])
def test_cpf_valido_com_e_sem_pontuacao(cpf: str):
    formatted = validate_cpf(cpf)
    raw = validate_cpf(only_digits(cpf))

    assert formatted.valid is True
    assert raw.valid is True
    assert formatted.canonical == raw.canonical == cpf


@pytest.mark.parametrize("cnpj", [CNPJ_VALIDO, CNPJ_VALIDO_2])
def test_cnpj_valido_com_e_sem_pontuacao(cnpj: str):
    formatted = validate_cnpj(cnpj)
    raw = validate_cnpj(only_digits(cnpj))

    assert formatted.valid is True
    assert raw.valid is True
    assert formatted.canonical == raw.canonical == cnpj


@pytest.mark.parametrize("position", range(11))
def test_cpf_com_um_digito_alterado_e_invalido(position: int):
    assert validate_cpf(_flip(CPF_VALIDO, position)).valid is False


@pytest.mark.parametrize("position", range(14))
def test_cnpj_com_um_digito_alterado_e_invalido(position: int):
    assert validate_cnpj(_flip(CNPJ_VALIDO, position)).valid is False


@pytest.mark.parametrize(
    "value",
    ["", "123", "529.982.247-2", "5299822472500", "111.111.111-11", "000.000.000-00"],
)
def test_cpf_formato_invalido(value: str):
    result = validate_cpf(value)
    assert result.valid is False
    assert result.canonical is None
    assert result.reason


def test_cnpj_todos_digitos_iguais():
    result = validate_cnpj("11.111.111/1111-11")
    assert result.valid is False
    assert "iguais" in result.reason


def test_documento_nao_texto():
    assert validate_cpf(52998224725).valid is False
    assert validate_cnpj(None).valid is False


def test_digitos_nao_ascii_sao_ignorados():
    # dígitos arábicos-índicos não contam como dígitos do documento
    assert validate_cpf("٥٢٩٩٨٢٢٤٧٢٥").valid is False


@pytest.mark.asyncio
async def test_endpoint_validar_cpf(anonymous_client: AsyncClient):
    response = await anonymous_client.post(
        "/api/v1/validacao/cpf",
        json={"documento": "52998224725"},
    )
    assert response.status_code == 200
    assert response.json() == {"valid": True, "canonical": CPF_VALIDO, "reason": None}


@pytest.mark.asyncio
async def test_endpoint_validar_cnpj_invalido(anonymous_client: AsyncClient):
    response = await anonymous_client.post(
        "/api/v1/validacao/cnpj",
        json={"documento": "11.222.333/0001-82"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["valid"] is False
    assert data["reason"] == "Dígitos verificadores não conferem"
