"""
aggregator.py

Agrupa os registros brutos de um lote por dispositivo e monta um
DeviceTelemetry por deviceId, percorrendo a tabela PARAMETROS.

Transformação pura: sem I/O e sem estado compartilhado, então pode ser
chamada em paralelo para lotes diferentes.
"""

from typing import Dict, Iterable, List

from modbus_formatter.core.decoder import decode
from modbus_formatter.core.parametros import PARAMETROS
from modbus_formatter.core.schemas import DeviceTelemetry, RawRecord, TelemetryBatch


def agrupar_por_dispositivo(batch: Iterable[RawRecord]) -> Dict[str, List[RawRecord]]:
    """
    Particiona o lote por deviceId.

    dict preserva a ordem de inserção: os grupos saem na ordem em que
    cada deviceId apareceu pela primeira vez, e cada grupo mantém a
    ordem original dos registros.
    """
    grupos: Dict[str, List[RawRecord]] = {}
    for registro in batch:
        grupos.setdefault(registro.deviceId, []).append(registro)
    return grupos


def montar_telemetria(
    registros: List[RawRecord],
    preencher_palavras: bool = False,
) -> DeviceTelemetry:
    valores = {}
    for parametro in PARAMETROS:
        leituras = [r for r in registros if r.displayName == parametro.nome]
        valores[parametro.campo] = decode(leituras, parametro.nome, preencher_palavras)

    return DeviceTelemetry(deviceId=registros[0].deviceId, **valores)


def aggregate(
    batch: Iterable[RawRecord],
    preencher_palavras: bool = False,
) -> TelemetryBatch:
    """
    Converte um lote de RawRecord em TelemetryBatch.

    - Um DeviceTelemetry por deviceId distinto, na ordem da primeira aparição.
    - displayName fora de PARAMETROS é ignorado.
    - MalformedValueError em qualquer registro usado derruba o lote inteiro.
    """
    grupos = agrupar_por_dispositivo(batch)
    return TelemetryBatch(
        [montar_telemetria(registros, preencher_palavras) for registros in grupos.values()]
    )
