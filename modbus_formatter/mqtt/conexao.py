"""
conexao.py

Conexão e publicação MQTT com retries e backoff exponencial, usadas
pelo consumer e pelo simulador.
"""

import time

from paho.mqtt import client as mqtt

from modbus_formatter.config.settings import settings
from modbus_formatter.utils.logger import get_logger

logger = get_logger(__name__)


def conectar_com_retries(client: mqtt.Client, rotulo: str = "formatter"):
    """
    Conecta `client` ao broker de settings.

    `rotulo` identifica nos logs quem está conectando ("formatter",
    "simulador"). Após MQTT_CONNECT_MAX_RETRIES falhas, relança o erro.
    """
    delay = settings.MQTT_CONNECT_BACKOFF_BASE
    max_retries = settings.MQTT_CONNECT_MAX_RETRIES

    for attempt in range(1, max_retries + 1):
        try:
            client.connect(
                settings.MQTT_BROKER_HOST,
                settings.MQTT_BROKER_PORT,
                keepalive=60,
            )
            logger.info(
                "%s: conexão aceita por %s:%s.",
                rotulo,
                settings.MQTT_BROKER_HOST,
                settings.MQTT_BROKER_PORT,
            )
            return
        except Exception:
            if attempt >= max_retries:
                logger.exception(
                    "%s: falha ao conectar ao broker MQTT após %s tentativas.",
                    rotulo,
                    attempt,
                )
                raise

            logger.warning(
                "%s: erro ao conectar ao broker MQTT (tentativa %s/%s). Retentando em %.2fs.",
                rotulo,
                attempt,
                max_retries,
                delay,
                exc_info=True,
            )
            time.sleep(delay)
            delay *= 2


def publicar_com_retries(client: mqtt.Client, topic: str, payload: str) -> bool:
    """
    Publica no tópico com retries e backoff exponencial.

    Retorna True se o paho aceitou a publicação.
    """
    delay = settings.MQTT_PUBLISH_BACKOFF_BASE
    max_retries = settings.MQTT_PUBLISH_MAX_RETRIES

    for attempt in range(1, max_retries + 1):
        result = client.publish(topic, payload)

        if result.rc == mqtt.MQTT_ERR_SUCCESS:
            return True

        if attempt >= max_retries:
            logger.error(
                "Falha ao publicar em %s após %s tentativas. RC=%s",
                topic,
                attempt,
                result.rc,
            )
            return False

        logger.warning(
            "Erro ao publicar em %s (tentativa %s/%s, RC=%s). Retentando em %.2fs.",
            topic,
            attempt,
            max_retries,
            result.rc,
            delay,
        )
        time.sleep(delay)
        delay *= 2

    return False
