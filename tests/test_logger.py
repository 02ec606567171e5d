"""
Testes da padronização de logs.

- O número da mensagem sai como campo `sequencia` no JSON.
- Logs fora de uma mensagem não quebram o formato texto.
"""

import json
import logging

from modbus_formatter.utils.logger import (
    SequenciaFilter,
    criar_formatter,
    logger_da_mensagem,
)


class _Captura(logging.Handler):
    def __init__(self, json_logs):
        super().__init__()
        self.linhas = []
        self.addFilter(SequenciaFilter())
        self.setFormatter(criar_formatter(json_logs))

    def emit(self, record):
        self.linhas.append(self.format(record))


def _logger_isolado(nome, handler):
    logger = logging.getLogger(nome)
    logger.propagate = False
    logger.setLevel(logging.INFO)
    logger.handlers = [handler]
    return logger


def test_json_inclui_sequencia_da_mensagem():
    handler = _Captura(json_logs=True)
    logger = _logger_isolado("teste.json.sequencia", handler)

    logger_da_mensagem(logger, 42).info("Mensagem recebida em %s.", "formatter/input1")
    logger.info("Consumer iniciado.")

    com_sequencia, sem_sequencia = (json.loads(linha) for linha in handler.linhas)
    assert com_sequencia["sequencia"] == 42
    assert com_sequencia["message"] == "Mensagem recebida em formatter/input1."
    assert "sequencia" not in sem_sequencia


def test_formato_texto_sem_mensagem_usa_marcador():
    handler = _Captura(json_logs=False)
    logger = _logger_isolado("teste.texto.sequencia", handler)

    logger.warning("Broker desconectado.")
    logger_da_mensagem(logger, 7).warning("Payload não é UTF-8.")

    assert "[msg -] - Broker desconectado." in handler.linhas[0]
    assert "[msg 7] - Payload não é UTF-8." in handler.linhas[1]
