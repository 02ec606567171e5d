"""
decoder.py

Reconstrói um float IEEE-754 de 32 bits a partir de uma ou duas leituras
de registro Modbus (palavras de 16 bits, palavra alta primeiro).

Fluxo de `decode`:
- filtra os registros do parâmetro, mantendo a ordem do lote;
- usa no máximo os dois primeiros;
- converte cada `value` (inteiro base 10) para hexadecimal e concatena;
- sem registros → HEX_AUSENTE ("00000000");
- interpreta o hex como inteiro sem sinal de 32 bits e reinterpreta os
  bits como float32 (não é conversão numérica).

Por padrão o hex de cada palavra NÃO tem largura fixa, mantendo a saída
bit a bit igual à dos lotes já publicados. Com `preencher_palavras=True` cada palavra
vira exatamente 4 dígitos hex, o que corrige o desalinhamento quando uma
palavra precisa de menos dígitos (ex.: 0x3F80 + 0x0000 → "3F800").
"""

import re
import struct
from typing import Iterable, List

from modbus_formatter.core.erros import MalformedValueError
from modbus_formatter.core.parametros import HEX_AUSENTE
from modbus_formatter.core.schemas import RawRecord
from modbus_formatter.utils.logger import get_logger

logger = get_logger(__name__)

_INTEIRO_BASE10 = re.compile(r"^\s*[+-]?[0-9]+\s*$")

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_WORD_MIN = -(2**15)
_WORD_MAX = 2**16 - 1
_UINT32_MAX = 2**32 - 1


def _parse_inteiro(valor: str, parametro: str) -> int:
    if not _INTEIRO_BASE10.match(valor):
        raise MalformedValueError(
            f"Valor '{valor}' de '{parametro}' não é um inteiro base 10.",
            parametro=parametro,
            valor=valor,
        )

    inteiro = int(valor)
    if not _INT32_MIN <= inteiro <= _INT32_MAX:
        raise MalformedValueError(
            f"Valor '{valor}' de '{parametro}' fora da faixa de 32 bits.",
            parametro=parametro,
            valor=valor,
        )
    return inteiro


def palavra_para_hex(valor: str, parametro: str = "", preencher: bool = False) -> str:
    """
    Converte o `value` de um registro para hexadecimal maiúsculo.

    Sem preenchimento: largura livre; negativos viram complemento de dois
    em 32 bits (ex.: "-1" → "FFFFFFFF").
    Com preenchimento: o valor precisa caber em 16 bits (com ou sem sinal)
    e sai sempre com 4 dígitos (ex.: "0" → "0000", "-1" → "FFFF").
    """
    inteiro = _parse_inteiro(valor, parametro)

    if not preencher:
        return format(inteiro & _UINT32_MAX, "X")

    if not _WORD_MIN <= inteiro <= _WORD_MAX:
        raise MalformedValueError(
            f"Valor '{valor}' de '{parametro}' não cabe em um registro de 16 bits.",
            parametro=parametro,
            valor=valor,
        )
    return format(inteiro & 0xFFFF, "04X")


def bits_para_float32(bits: int) -> float:
    """
    Reinterpreta um inteiro sem sinal de 32 bits como float IEEE-754.
    """
    return struct.unpack(">f", struct.pack(">I", bits))[0]


def decode(
    entries: Iterable[RawRecord],
    parameter_name: str,
    preencher_palavras: bool = False,
) -> float:
    """
    Decodifica o valor de um parâmetro a partir das suas leituras.

    Leituras além da segunda são ignoradas. Parâmetro sem leituras
    resulta em 0.0. Levanta MalformedValueError se algum `value` usado
    não for uma palavra válida.
    """
    leituras: List[RawRecord] = [e for e in entries if e.displayName == parameter_name]

    hex_value = "".join(
        palavra_para_hex(e.value, parameter_name, preencher_palavras)
        for e in leituras[:2]
    )
    if not hex_value:
        hex_value = HEX_AUSENTE

    bits = int(hex_value, 16)
    if bits > _UINT32_MAX:
        raise MalformedValueError(
            f"Palavras de '{parameter_name}' somam mais de 32 bits (0x{hex_value}).",
            parametro=parameter_name,
            valor=hex_value,
        )

    valor = bits_para_float32(bits)
    logger.debug(
        "Parâmetro %s: %s leitura(s), hex=%s → %r",
        parameter_name,
        len(leituras),
        hex_value,
        valor,
    )
    return valor
