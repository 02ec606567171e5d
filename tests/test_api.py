"""
Testes da API HTTP (FastAPI TestClient).
"""

import json

import pytest
from fastapi.testclient import TestClient

from modbus_formatter.api.main import app
from modbus_formatter.core.aggregator import aggregate
from modbus_formatter.database.repositorio import (
    TelemetriaRepositorio,
    lote_para_telemetrias,
)
from fabricas import registros_completos


@pytest.fixture
def client():
    return TestClient(app)


def _corpo(device_id="PM-0001"):
    return json.dumps([r.model_dump() for r in registros_completos(device_id)])


def test_ping(client):
    resp = client.get("/ping")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_formatar_devolve_telemetry_batch(client):
    resp = client.post("/formatar", content=_corpo())

    assert resp.status_code == 200
    corpo = resp.json()
    assert len(corpo) == 1
    assert corpo[0]["deviceId"] == "PM-0001"
    assert corpo[0]["voltsL3toNeutral"] == 231.75


def test_formatar_com_preenchimento_por_query(client):
    corpo = json.dumps(
        [
            {"DisplayName": "kW L1", "HwId": "PM-1", "Value": "16256"},
            {"DisplayName": "kW L1", "HwId": "PM-1", "Value": "0"},
        ]
    )

    resp = client.post("/formatar?preencher_palavras=true", content=corpo)

    assert resp.status_code == 200
    assert resp.json()[0]["kwL1"] == 1.0


def test_formatar_valor_malformado_retorna_422(client):
    corpo = json.dumps([{"DisplayName": "kW L1", "HwId": "PM-1", "Value": "abc"}])

    resp = client.post("/formatar", content=corpo)

    assert resp.status_code == 422
    assert "abc" in resp.json()["detail"]


def test_formatar_payload_invalido_retorna_422(client):
    resp = client.post("/formatar", content="{}")

    assert resp.status_code == 422


def test_leitura_da_telemetria_gravada(client):
    repositorio = TelemetriaRepositorio()
    lote = aggregate(registros_completos("PM-A") + registros_completos("PM-B"))
    repositorio.salvar_em_batch(lote_para_telemetrias(lote, sequencia=1))

    recentes = client.get("/telemetria/recentes", params={"limite": 10})
    assert recentes.status_code == 200
    assert {t["device_id"] for t in recentes.json()} == {"PM-A", "PM-B"}

    por_device = client.get("/telemetria/PM-A/ultimas")
    assert por_device.status_code == 200
    linhas = por_device.json()
    assert len(linhas) == 1
    assert linhas[0]["kw_system"] == 17.078125
    assert linhas[0]["sequencia"] == 1

    dispositivos = client.get("/dispositivos")
    assert dispositivos.json() == [{"device_id": "PM-A"}, {"device_id": "PM-B"}]


def test_limite_fora_da_faixa(client):
    resp = client.get("/telemetria/recentes", params={"limite": 0})

    assert resp.status_code == 422
