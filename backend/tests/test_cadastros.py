"""
Testes de cadastro: escritórios, clientes e fornecedores.
"""
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from faturamento.core.exceptions import (
    InvalidCNPJError,
    InvalidCPFError,
    NotFoundError,
    ResourceAlreadyExistsError,
    ValidationError,
)
from faturamento.models.cliente import Cliente, TipoPessoa
from faturamento.models.escritorio import Escritorio
from faturamento.schemas.cliente import ClienteCreate, ClienteUpdate, VendorCreate
from faturamento.schemas.escritorio import EscritorioCreate
from faturamento.services.cliente_service import ClienteService
from faturamento.services.escritorio_service import EscritorioService
from faturamento.services.vendor_service import VendorService
from factories import CNPJ_VALIDO, CNPJ_VALIDO_2, CPF_VALIDO, CPF_VALIDO_2


# === Escritório ===


@pytest.mark.asyncio
async def test_criar_escritorio_cnpj_canonico(db_session: AsyncSession):
    service = EscritorioService(db_session)

    escritorio = await service.criar_escritorio(
        EscritorioCreate(nome="Silva Advogados", cnpj="11222333000181", email="contato@silva.adv.br")
    )

    assert escritorio.cnpj == CNPJ_VALIDO
    assert escritorio.is_active is True
    assert escritorio.default_hourly_rate is None


@pytest.mark.asyncio
async def test_escritorio_cnpj_invalido(db_session: AsyncSession):
    service = EscritorioService(db_session)

    with pytest.raises(InvalidCNPJError):
        await service.criar_escritorio(
            EscritorioCreate(nome="Silva Advogados", cnpj="11.222.333/0001-82", email="a@b.com")
        )


@pytest.mark.asyncio
async def test_escritorio_cnpj_duplicado(db_session: AsyncSession, test_escritorio: Escritorio):
    service = EscritorioService(db_session)

    with pytest.raises(ResourceAlreadyExistsError):
        await service.criar_escritorio(
            EscritorioCreate(nome="Cópia", cnpj="11222333000181", email="copia@teste.com")
        )


@pytest.mark.asyncio
async def test_desativar_e_reativar_escritorio(db_session: AsyncSession, test_escritorio: Escritorio):
    service = EscritorioService(db_session)

    escritorio = await service.desativar_escritorio(test_escritorio.id)
    assert escritorio.is_active is False

    escritorio = await service.reativar_escritorio(test_escritorio.id)
    assert escritorio.is_active is True


@pytest.mark.asyncio
async def test_taxa_padrao_do_escritorio(db_session: AsyncSession, test_escritorio: Escritorio):
    service = EscritorioService(db_session)

    escritorio = await service.definir_taxa_padrao(test_escritorio.id, Decimal("180.00"))
    assert escritorio.default_hourly_rate == Decimal("180.00")

    escritorio = await service.definir_taxa_padrao(test_escritorio.id, None)
    assert escritorio.default_hourly_rate is None

    with pytest.raises(ValidationError):
        await service.definir_taxa_padrao(test_escritorio.id, Decimal("-1"))


# === Cliente ===


@pytest.mark.asyncio
async def test_criar_cliente_cpf_sem_pontuacao(
    db_session: AsyncSession,
    other_escritorio: Escritorio,
):
    service = ClienteService(db_session, other_escritorio.id)

    cliente = await service.criar(
        ClienteCreate(nome="Ana Pereira", cpf="52998224725", email="ana@exemplo.com")
    )

    assert cliente.cpf == CPF_VALIDO
    assert cliente.escritorio_id == other_escritorio.id


@pytest.mark.asyncio
async def test_cliente_pessoa_juridica(db_session: AsyncSession, test_escritorio: Escritorio):
    service = ClienteService(db_session, test_escritorio.id)

    cliente = await service.criar(
        ClienteCreate(
            tipo_pessoa=TipoPessoa.JURIDICA,
            nome="Empresa Ltda",
            cnpj="12345678000195",
        )
    )

    assert cliente.cnpj == CNPJ_VALIDO_2
    assert cliente.cpf is None


@pytest.mark.asyncio
async def test_pessoa_juridica_exige_cnpj(db_session: AsyncSession, test_escritorio: Escritorio):
    service = ClienteService(db_session, test_escritorio.id)

    with pytest.raises(ValidationError):
        await service.criar(ClienteCreate(tipo_pessoa=TipoPessoa.JURIDICA, nome="Empresa Ltda"))


@pytest.mark.asyncio
async def test_cliente_cpf_invalido(db_session: AsyncSession, test_escritorio: Escritorio):
    service = ClienteService(db_session, test_escritorio.id)

    with pytest.raises(InvalidCPFError) as exc_info:
        await service.criar(ClienteCreate(nome="Ana Pereira", cpf="529.982.247-26"))

    assert exc_info.value.code == "INVALID_CPF"
    assert await service.listar() == []


@pytest.mark.asyncio
async def test_cpf_unico_por_escritorio(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = ClienteService(db_session, test_escritorio.id)

    # mesmo CPF em outro formato
    with pytest.raises(ResourceAlreadyExistsError):
        await service.criar(ClienteCreate(nome="Maria Duplicada", cpf="52998224725"))


@pytest.mark.asyncio
async def test_mesmo_cpf_em_outro_escritorio(
    db_session: AsyncSession,
    other_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = ClienteService(db_session, other_escritorio.id)

    cliente = await service.criar(ClienteCreate(nome="Maria da Silva", cpf=CPF_VALIDO))

    assert cliente.id != test_cliente.id


@pytest.mark.asyncio
async def test_atualizar_e_desativar_cliente(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    service = ClienteService(db_session, test_escritorio.id)

    cliente = await service.atualizar(test_cliente.id, ClienteUpdate(telefone="11999990000"))
    assert cliente.telefone == "11999990000"
    assert cliente.cpf == CPF_VALIDO

    await service.desativar(test_cliente.id)
    assert await service.listar() == []
    assert len(await service.listar(apenas_ativos=False)) == 1


@pytest.mark.asyncio
async def test_pesquisar_cliente(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
    other_cliente: Cliente,
):
    service = ClienteService(db_session, test_escritorio.id)

    resultado = await service.pesquisar("Silva")
    assert [c.id for c in resultado] == [test_cliente.id]

    # cliente de outro escritório não aparece
    assert await service.pesquisar("Souza") == []


@pytest.mark.asyncio
async def test_cliente_inexistente(db_session: AsyncSession, test_escritorio: Escritorio):
    service = ClienteService(db_session, test_escritorio.id)

    with pytest.raises(NotFoundError):
        await service.buscar_por_id(uuid4())


# === Fornecedor ===


@pytest.mark.asyncio
async def test_fornecedor_cnpj_unico_por_escritorio(
    db_session: AsyncSession,
    test_escritorio: Escritorio,
    other_escritorio: Escritorio,
):
    service = VendorService(db_session, test_escritorio.id)
    vendor = await service.criar(VendorCreate(nome="Gráfica Central", cnpj="11222333000181"))
    assert vendor.cnpj == CNPJ_VALIDO

    with pytest.raises(ResourceAlreadyExistsError):
        await service.criar(VendorCreate(nome="Gráfica Central", cnpj=CNPJ_VALIDO))

    outro = await VendorService(db_session, other_escritorio.id).criar(
        VendorCreate(nome="Gráfica Central", cnpj=CNPJ_VALIDO)
    )
    assert outro.escritorio_id == other_escritorio.id
    assert len(await service.listar()) == 1


@pytest.mark.asyncio
async def test_fornecedor_cnpj_invalido(db_session: AsyncSession, test_escritorio: Escritorio):
    service = VendorService(db_session, test_escritorio.id)

    with pytest.raises(InvalidCNPJError):
        await service.criar(VendorCreate(nome="Gráfica Central", cnpj="11111111111111"))
