"""
Testes dos endpoints HTTP: formato de resposta, códigos de erro e o
fluxo completo de lançamento, aprovação e faturamento.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from faturamento.models.cliente import Cliente
from faturamento.models.escritorio import Escritorio
from faturamento.models.usuario import Usuario
from factories import CPF_VALIDO_2

START = "2024-03-15T13:00:00Z"
END = "2024-03-15T15:00:00Z"


def entry_payload(start: str = START, end: str = END, **kwargs) -> dict:
    return {
        "entry_type": "case_work",
        "activity_description": "Elaboração de petição inicial",
        "start_time": start,
        "end_time": end,
        "billable_rate": "200.00",
        **kwargs,
    }


# === Cabeçalhos e formato de erro ===


@pytest.mark.asyncio
async def test_sem_header_de_escritorio(anonymous_client: AsyncClient):
    response = await anonymous_client.get("/api/v1/clientes")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_criar_cliente(client: AsyncClient):
    response = await client.post(
        "/api/v1/clientes",
        json={"nome": "José Souza", "cpf": "11144477735", "email": "jose@exemplo.com"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["cpf"] == CPF_VALIDO_2


@pytest.mark.asyncio
async def test_cliente_cpf_invalido(client: AsyncClient):
    response = await client.post(
        "/api/v1/clientes",
        json={"nome": "José Souza", "cpf": "111.444.777-36"},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_CPF"
    assert body["error"]["details"] == {"field": "cpf"}


@pytest.mark.asyncio
async def test_cliente_duplicado(client: AsyncClient, test_cliente: Cliente):
    response = await client.post(
        "/api/v1/clientes",
        json={"nome": "Maria Repetida", "cpf": "52998224725"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_cliente_inexistente(client: AsyncClient):
    response = await client.get("/api/v1/clientes/00000000-0000-0000-0000-000000000000")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


# === Escritórios ===


@pytest.mark.asyncio
async def test_cadastro_de_escritorio(anonymous_client: AsyncClient):
    response = await anonymous_client.post(
        "/api/v1/escritorios",
        json={"nome": "Costa & Lima", "cnpj": "11222333000181", "email": "contato@costalima.adv.br"},
    )
    assert response.status_code == 201
    escritorio = response.json()["data"]
    assert escritorio["cnpj"] == "11.222.333/0001-81"

    response = await anonymous_client.put(
        f"/api/v1/escritorios/{escritorio['id']}/taxa-padrao",
        json={"default_hourly_rate": "175.00"},
    )
    assert response.status_code == 200
    assert Decimal(response.json()["data"]["default_hourly_rate"]) == Decimal("175.00")


# === Lançamentos ===


@pytest.mark.asyncio
async def test_registrar_lancamento(client: AsyncClient, test_user: Usuario):
    response = await client.post("/api/v1/lancamentos", json=entry_payload(break_minutes=20))

    assert response.status_code == 201
    entry = response.json()["data"]
    assert entry["user_id"] == str(test_user.id)
    assert entry["duration_minutes"] == 120
    assert entry["effective_minutes"] == 100
    assert Decimal(entry["billable_amount"]) == Decimal("333.33")
    assert entry["entry_date"] == "2024-03-15"


@pytest.mark.asyncio
async def test_intervalo_invalido_responde_422(client: AsyncClient):
    response = await client.post(
        "/api/v1/lancamentos",
        json=entry_payload(end="2024-03-15T12:00:00Z"),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_sobreposicao_responde_409(client: AsyncClient):
    first = await client.post("/api/v1/lancamentos", json=entry_payload())
    entry_id = first.json()["data"]["id"]

    response = await client.post(
        "/api/v1/lancamentos",
        json=entry_payload(start="2024-03-15T14:00:00Z", end="2024-03-15T16:00:00Z"),
    )

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "TIME_ENTRY_OVERLAP"
    assert error["details"]["conflicting_id"] == entry_id


@pytest.mark.asyncio
async def test_lancamento_aprovado_e_imutavel(client: AsyncClient):
    created = await client.post("/api/v1/lancamentos", json=entry_payload())
    entry_id = created.json()["data"]["id"]

    response = await client.post(f"/api/v1/lancamentos/{entry_id}/aprovar", json={})
    assert response.status_code == 200
    assert response.json()["data"]["entry_status"] == "approved"

    response = await client.patch(f"/api/v1/lancamentos/{entry_id}", json={"break_minutes": 10})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "IMMUTABLE_STATE"


@pytest.mark.asyncio
async def test_rejeitar_e_reabrir_lancamento(client: AsyncClient):
    created = await client.post("/api/v1/lancamentos", json=entry_payload())
    entry_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/lancamentos/{entry_id}/enviar")

    response = await client.post(
        f"/api/v1/lancamentos/{entry_id}/rejeitar",
        json={"reason": "Sem processo vinculado"},
    )
    assert response.json()["data"]["entry_status"] == "rejected"

    response = await client.post(f"/api/v1/lancamentos/{entry_id}/reabrir")
    assert response.status_code == 200
    assert response.json()["data"]["entry_status"] == "draft"
    assert response.json()["data"]["rejected_reason"] is None

    response = await client.post(f"/api/v1/lancamentos/{entry_id}/reabrir")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_resumo_diario(client: AsyncClient, test_user: Usuario):
    await client.post("/api/v1/lancamentos", json=entry_payload())

    response = await client.get(f"/api/v1/resumos-diarios/{test_user.id}/2024-03-15")

    assert response.status_code == 200
    summary = response.json()["data"]
    assert summary["total_minutes"] == 120
    assert summary["case_work_minutes"] == 120
    assert Decimal(summary["total_billable_amount"]) == Decimal("400.00")
    assert summary["total_entries"] == 1

    response = await client.get(
        f"/api/v1/resumos-diarios/{test_user.id}",
        params={"data_inicio": "2024-03-16", "data_fim": "2024-03-15"},
    )
    assert response.status_code == 400


# === Faturas ===


@pytest.mark.asyncio
async def test_fatura_nao_aceita_totais(client: AsyncClient, test_cliente: Cliente):
    response = await client.post(
        "/api/v1/faturas",
        json={
            "cliente_id": str(test_cliente.id),
            "invoice_type": "case_billing",
            "due_date": (date.today() + timedelta(days=30)).isoformat(),
            "total_amount": "1000.00",
        },
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_fluxo_de_faturamento(
    client: AsyncClient,
    test_escritorio: Escritorio,
    test_cliente: Cliente,
):
    created = await client.post("/api/v1/lancamentos", json=entry_payload())
    entry_id = created.json()["data"]["id"]
    await client.post(f"/api/v1/lancamentos/{entry_id}/aprovar", json={"notes": "ok"})

    response = await client.post(
        "/api/v1/faturas",
        json={
            "cliente_id": str(test_cliente.id),
            "invoice_type": "time_based",
            "due_date": (date.today() + timedelta(days=30)).isoformat(),
        },
    )
    assert response.status_code == 201
    invoice = response.json()["data"]
    invoice_id = invoice["id"]
    assert invoice["invoice_status"] == "draft"
    assert invoice["invoice_number"].startswith("TIME-")
    assert invoice["escritorio_id"] == str(test_escritorio.id)

    response = await client.post(
        f"/api/v1/faturas/{invoice_id}/lancamentos",
        json={"time_entry_ids": [entry_id]},
    )
    assert response.status_code == 200
    invoice = response.json()["data"]
    assert Decimal(invoice["total_amount"]) == Decimal("400.00")
    assert len(invoice["line_items"]) == 1

    response = await client.post(
        f"/api/v1/faturas/{invoice_id}/itens",
        json={
            "line_type": "expense",
            "description": "Custas processuais",
            "quantity": "1",
            "unit_price": "100.00",
            "tax_rate": "10",
        },
    )
    invoice = response.json()["data"]
    assert Decimal(invoice["subtotal"]) == Decimal("500.00")
    assert Decimal(invoice["tax_amount"]) == Decimal("10.00")
    assert Decimal(invoice["total_amount"]) == Decimal("510.00")

    entry = (await client.get(f"/api/v1/lancamentos/{entry_id}")).json()["data"]
    assert entry["entry_status"] == "billed"
    assert entry["invoice_id"] == invoice_id

    response = await client.post(f"/api/v1/faturas/{invoice_id}/enviar")
    assert response.json()["data"]["invoice_status"] == "sent"

    response = await client.post(
        f"/api/v1/faturas/{invoice_id}/pagamentos",
        json={
            "payment_amount": "210.00",
            "payment_date": date.today().isoformat(),
            "payment_method": "pix",
        },
    )
    assert response.status_code == 201
    invoice = response.json()["data"]
    assert invoice["invoice_status"] == "partial_paid"
    assert Decimal(invoice["balance_due"]) == Decimal("300.00")

    response = await client.post(
        f"/api/v1/faturas/{invoice_id}/pagamentos",
        json={
            "payment_amount": "300.01",
            "payment_date": date.today().isoformat(),
            "payment_method": "pix",
        },
    )
    assert response.status_code == 422

    payments = (await client.get(f"/api/v1/faturas/{invoice_id}/pagamentos")).json()["data"]
    assert len(payments) == 1

    response = await client.post(f"/api/v1/faturas/{invoice_id}/cancelar")
    assert response.status_code == 400

    listed = await client.get("/api/v1/faturas", params={"cliente_id": str(test_cliente.id)})
    assert [i["id"] for i in listed.json()["data"]] == [invoice_id]
