"""
parametros.py

Tabela declarativa dos parâmetros elétricos reconhecidos pelo formatter.

Cada linha liga:
- o displayName publicado pelo poller Modbus (chave de busca exata);
- o campo de saída em DeviceTelemetry;
- a coluna correspondente na tabela `telemetrias`.

Adicionar um parâmetro = adicionar uma linha aqui (e a coluna no ORM).
"""

from typing import NamedTuple, Tuple


class Parametro(NamedTuple):
    nome: str
    campo: str
    coluna: str


PARAMETROS: Tuple[Parametro, ...] = (
    Parametro("Amps System Avg", "ampsAvg", "amps_avg"),
    Parametro("Amps L1", "ampsL1", "amps_l1"),
    Parametro("Amps L2", "ampsL2", "amps_l2"),
    Parametro("Amps L3", "ampsL3", "amps_l3"),
    Parametro("kW L1", "kwL1", "kw_l1"),
    Parametro("kW L2", "kwL2", "kw_l2"),
    Parametro("kW L3", "kwL3", "kw_l3"),
    Parametro("kW System", "kwSystem", "kw_system"),
    Parametro("Volts L1 to Neutral", "voltsL1toNeutral", "volts_l1_to_neutral"),
    Parametro("Volts L2 to Neutral", "voltsL2toNeutral", "volts_l2_to_neutral"),
    Parametro("Volts L3 to Neutral", "voltsL3toNeutral", "volts_l3_to_neutral"),
)

# Parâmetro não reportado no ciclo: padrão de bits 0x00000000 → 0.0
BITS_AUSENTE = 0x00000000
HEX_AUSENTE = "00000000"
VALOR_AUSENTE = 0.0
