"""
test_telemetria_repositorio.py

Testes do TelemetriaRepositorio sobre o SQLite em memória do conftest.

Objetivos:
- Garantir que salvar_em_batch insere as linhas de um TelemetryBatch.
- Garantir que salvar_em_batch com lista vazia não quebra e retorna 0.
- Conferir as consultas de leitura usadas pela API.
"""

from modbus_formatter.core.aggregator import aggregate
from modbus_formatter.database.modelagem_banco import criar_sessao, Telemetria
from modbus_formatter.database.repositorio import (
    TelemetriaRepositorio,
    lote_para_telemetrias,
)
from fabricas import EXEMPLOS_POR_PARAMETRO, PALAVRAS_NAN, registros_completos, registro


def test_lote_para_telemetrias_mapeia_campos_para_colunas():
    lote = aggregate(registros_completos("PM-0001"))

    telemetrias = lote_para_telemetrias(lote, sequencia=7, raw_payload="[]")

    assert len(telemetrias) == 1
    t = telemetrias[0]
    assert t.sequencia == 7
    assert t.device_id == "PM-0001"
    assert t.amps_avg == 100.25
    assert t.kw_l2 == 5.564453125
    assert t.kw_system == 17.078125
    assert t.volts_l2_to_neutral == 229.25
    assert t.raw_payload == "[]"


def test_lote_para_telemetrias_grava_valores_nao_finitos_como_null(caplog):
    exemplos = dict(EXEMPLOS_POR_PARAMETRO)
    exemplos["Amps L1"] = (*PALAVRAS_NAN, "7FC0FFFF", None)
    # 0x7F800000: +Inf; a palavra baixa zero só forma 8 dígitos com preenchimento
    exemplos["kW L3"] = ("32640", "0", "7F800000", None)
    lote = aggregate(
        registros_completos("PM-0001", exemplos=exemplos), preencher_palavras=True
    )

    telemetrias = lote_para_telemetrias(lote, sequencia=3)

    t = telemetrias[0]
    assert t.amps_l1 is None
    assert t.kw_l3 is None
    assert t.amps_l2 == 20.3125
    assert "Amps L1 decodificado como nan" in caplog.text
    assert "kW L3 decodificado como inf" in caplog.text

    TelemetriaRepositorio().salvar_em_batch(telemetrias)
    salvo = TelemetriaRepositorio().listar_ultimas_por_device("PM-0001")[0]
    assert salvo.amps_l1 is None
    assert salvo.kw_system == 17.078125


def test_salvar_em_batch_insere_registros():
    repositorio = TelemetriaRepositorio()
    lote = aggregate(registros_completos("PM-0001") + registros_completos("PM-0002"))

    quantidade = repositorio.salvar_em_batch(lote_para_telemetrias(lote, sequencia=1))

    assert quantidade == 2

    sessao = criar_sessao()
    try:
        assert sessao.query(Telemetria).count() == 2
    finally:
        sessao.close()


def test_salvar_em_batch_lista_vazia():
    repositorio = TelemetriaRepositorio()

    assert repositorio.salvar_em_batch([]) == 0

    sessao = criar_sessao()
    try:
        assert sessao.query(Telemetria).count() == 0
    finally:
        sessao.close()


def test_listagens():
    repositorio = TelemetriaRepositorio()
    for sequencia, device_id in enumerate(["PM-B", "PM-A", "PM-B"], start=1):
        lote = aggregate([registro("Amps L1", str(sequencia), device_id=device_id)])
        repositorio.salvar_em_batch(lote_para_telemetrias(lote, sequencia=sequencia))

    ultimas = repositorio.listar_ultimas(limite=2)
    assert [t.sequencia for t in ultimas] == [3, 2]

    por_device = repositorio.listar_ultimas_por_device("PM-B")
    assert [t.sequencia for t in por_device] == [3, 1]

    assert repositorio.listar_dispositivos() == ["PM-A", "PM-B"]
