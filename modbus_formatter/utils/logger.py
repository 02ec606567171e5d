"""
logger.py

Padroniza os logs do formatter.

- Respeita `settings.LOG_LEVEL` e `settings.LOG_JSON`.
- Instala um único handler de console no logger raiz.
- Todo evento carrega `sequencia`: o número da mensagem MQTT que está
  sendo processada, ou "-" fora do processamento de uma mensagem.
- Exponibiliza `get_logger(name)` e `logger_da_mensagem(logger, sequencia)`.
"""

import json
import logging
from typing import Any, Dict

from modbus_formatter.config.settings import settings

SEM_SEQUENCIA = "-"

_CONFIGURED = False


class SequenciaFilter(logging.Filter):
    """
    Garante o atributo `sequencia` em todo LogRecord, para que o formato
    texto possa usar %(sequencia)s mesmo em logs de inicialização.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "sequencia"):
            record.sequencia = SEM_SEQUENCIA
        return True


class JSONFormatter(logging.Formatter):
    """
    Uma linha JSON por evento. `sequencia` sai como campo inteiro quando o
    evento pertence a uma mensagem, permitindo filtrar por mensagem.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
        }
        sequencia = getattr(record, "sequencia", SEM_SEQUENCIA)
        if sequencia != SEM_SEQUENCIA:
            payload["sequencia"] = sequencia
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def criar_formatter(json_logs: bool) -> logging.Formatter:
    if json_logs:
        return JSONFormatter()
    return logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s [msg %(sequencia)s] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _configure_logging() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return

    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)

    handler = logging.StreamHandler()
    handler.addFilter(SequenciaFilter())
    handler.setFormatter(criar_formatter(settings.LOG_JSON))

    # Evita handlers duplicados quando o módulo é importado várias vezes
    root.handlers.clear()
    root.addHandler(handler)

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """
    Retorna um logger do módulo, configurando o logging na primeira chamada.
    """
    if not _CONFIGURED:
        _configure_logging()
    return logging.getLogger(name)


def logger_da_mensagem(logger: logging.Logger, sequencia: int) -> logging.LoggerAdapter:
    """
    Logger que anexa `sequencia` a todos os eventos de uma mensagem.
    """
    return logging.LoggerAdapter(logger, {"sequencia": sequencia})
