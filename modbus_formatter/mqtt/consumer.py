"""
consumer.py

Consumer MQTT do formatter.

Responsável por:
- Conectar ao broker MQTT e assinar settings.MQTT_INPUT_TOPIC.
- Receber lotes JSON de leituras de registro (RawRecord).
- Decodificar e agregar o lote em TelemetryBatch (core.aggregator).
- Publicar o resultado em settings.MQTT_OUTPUT_TOPIC.
- Opcionalmente, gravar a telemetria no banco em batches.

Erros de conteúdo (payload inválido, valor malformado) descartam apenas a
mensagem em questão; o loop continua.
"""

import json
import threading
import time
from typing import List, Optional

from paho.mqtt import client as mqtt
from pydantic import TypeAdapter, ValidationError

from modbus_formatter.config.settings import settings
from modbus_formatter.core.aggregator import aggregate
from modbus_formatter.core.erros import InvalidPayloadError, MalformedValueError
from modbus_formatter.core.schemas import RawRecord, TelemetryBatch
from modbus_formatter.database.modelagem_banco import Telemetria, inicializar_banco
from modbus_formatter.database.repositorio import (
    TelemetriaRepositorio,
    lote_para_telemetrias,
)
from modbus_formatter.mqtt.conexao import conectar_com_retries, publicar_com_retries
from modbus_formatter.utils.logger import get_logger, logger_da_mensagem

logger = get_logger(__name__)

_REGISTROS = TypeAdapter(List[RawRecord])


class ContadorMensagens:
    """
    Número de sequência das mensagens recebidas por este consumer.

    Incrementado sob lock: callbacks do paho podem vir de outra thread.
    """

    def __init__(self):
        self._valor = 0
        self._lock = threading.Lock()

    def incrementar(self) -> int:
        with self._lock:
            self._valor += 1
            return self._valor

    @property
    def valor(self) -> int:
        return self._valor


class TelemetriaBuffer:
    """
    Buffer simples para acumular telemetrias antes de gravar no banco.

    - Acumula objetos Telemetria (ORM).
    - Quando atinge batch_size, o consumer dispara flush.
    """

    def __init__(self, batch_size: int, repositorio: TelemetriaRepositorio):
        self.batch_size = batch_size
        self._buffer: List[Telemetria] = []
        self.repositorio = repositorio

    def adicionar(self, telemetria: Telemetria):
        self._buffer.append(telemetria)

    def tamanho(self) -> int:
        return len(self._buffer)

    def cheio(self) -> bool:
        return self.tamanho() >= self.batch_size

    def flush(self):
        """
        Envia o conteúdo do buffer para o banco, em uma transação.
        Após sucesso, limpa o buffer; após esgotar as tentativas, mantém.
        """
        if not self._buffer:
            return

        delay = settings.DB_FLUSH_BACKOFF_BASE
        max_retries = settings.DB_FLUSH_MAX_RETRIES

        for attempt in range(1, max_retries + 1):
            try:
                gravadas = self.repositorio.salvar_em_batch(self._buffer)
                logger.info("Gravadas %s telemetrias no banco.", gravadas)
                self._buffer.clear()
                return
            except Exception:
                if attempt >= max_retries:
                    logger.exception(
                        "Falha ao salvar telemetrias após %s tentativas; buffer será mantido.",
                        attempt,
                    )
                    return

                logger.warning(
                    "Erro ao salvar telemetrias (tentativa %s/%s). Retentando em %.2fs.",
                    attempt,
                    max_retries,
                    delay,
                    exc_info=True,
                )
                time.sleep(delay)
                delay *= 2


def converter_payload_para_registros(raw_payload: str) -> List[RawRecord]:
    """
    Converte a string JSON recebida via MQTT em uma lista de RawRecord.

    Levanta InvalidPayloadError se o JSON for inválido, se não for uma
    lista ou se algum item não seguir o schema. Não há isolamento por
    item: um item ruim invalida o lote.
    """
    try:
        dados = json.loads(raw_payload)
    except json.JSONDecodeError as exc:
        raise InvalidPayloadError(f"JSON inválido: {exc}") from exc

    if not isinstance(dados, list):
        raise InvalidPayloadError("Payload inválido: esperado uma lista de registros.")

    try:
        return _REGISTROS.validate_python(dados)
    except ValidationError as exc:
        raise InvalidPayloadError(f"Registro fora do schema RawRecord: {exc}") from exc


def formatar_payload(raw_payload: str, preencher_palavras: bool = False) -> TelemetryBatch:
    """
    Transformação mensagem → mensagem: JSON de RawRecord → TelemetryBatch.
    """
    registros = converter_payload_para_registros(raw_payload)
    return aggregate(registros, preencher_palavras=preencher_palavras)


def on_message(client: mqtt.Client, userdata, msg: mqtt.MQTTMessage):
    """
    Callback chamada toda vez que uma mensagem é recebida.

    - Numera a mensagem (o número vai em cada log como `sequencia`).
    - Decodifica e agrega o lote.
    - Publica a telemetria no tópico de saída.
    - Adiciona as linhas ao buffer (se houver) e faz flush quando cheio.
    """
    contador: ContadorMensagens = userdata["contador"]
    buffer: Optional[TelemetriaBuffer] = userdata.get("buffer")
    preencher = userdata.get("preencher_palavras", False)

    log = logger_da_mensagem(logger, contador.incrementar())
    sequencia = log.extra["sequencia"]

    try:
        payload_str = msg.payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        log.warning("Payload não é UTF-8: %s", exc)
        return

    log.info("Mensagem recebida em %s.", msg.topic)
    log.debug("Corpo: %s", payload_str)

    try:
        lote = formatar_payload(payload_str, preencher_palavras=preencher)
    except (InvalidPayloadError, MalformedValueError):
        log.exception("Mensagem descartada.")
        return

    saida = lote.model_dump_json()
    if publicar_com_retries(client, settings.MQTT_OUTPUT_TOPIC, saida):
        log.info(
            "%s dispositivo(s) publicados em %s.",
            len(lote),
            settings.MQTT_OUTPUT_TOPIC,
        )

    if buffer is None:
        return

    raw = payload_str if settings.SAVE_RAW_PAYLOAD else None
    for telemetria in lote_para_telemetrias(lote, sequencia, raw_payload=raw):
        buffer.adicionar(telemetria)

    if buffer.cheio():
        buffer.flush()


def criar_cliente_mqtt(userdata: dict) -> mqtt.Client:
    """
    Cria e configura o cliente MQTT do formatter.

    - Define callbacks de conexão, desconexão e mensagem.
    - userdata carrega contador, buffer e o modo de decodificação.
    - Conecta ao broker com os parâmetros de settings.
    """

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

    def on_connect(client, userdata, flags, reason_code, properties):
        logger.info("Conectado ao broker MQTT. RC=%s", reason_code)
        # (Re)assina a cada conexão: o broker não guarda a sessão
        client.subscribe(settings.MQTT_INPUT_TOPIC)
        logger.info("Assinado tópico de entrada: %s", settings.MQTT_INPUT_TOPIC)

    def on_disconnect(client, userdata, flags, reason_code, properties):
        logger.warning("Desconectado do broker MQTT. RC=%s", reason_code)

    client.on_connect = on_connect
    client.on_disconnect = on_disconnect
    client.on_message = on_message

    client.user_data_set(userdata)

    conectar_com_retries(client, rotulo="formatter")

    return client


def run_consumer():
    """
    Função principal do formatter.

    - cria contador e, se PERSIST_TELEMETRY, banco + repositório + buffer;
    - cria o cliente MQTT e entra no loop;
    - no encerramento, grava o que restou no buffer.
    """

    buffer: Optional[TelemetriaBuffer] = None
    if settings.PERSIST_TELEMETRY:
        inicializar_banco()
        buffer = TelemetriaBuffer(
            batch_size=settings.BATCH_SIZE,
            repositorio=TelemetriaRepositorio(),
        )

    userdata = {
        "contador": ContadorMensagens(),
        "buffer": buffer,
        "preencher_palavras": settings.REGISTER_WORD_PADDING,
    }
    client = criar_cliente_mqtt(userdata)

    logger.info(
        "Iniciando formatter. Broker=%s:%s, entrada=%s, saída=%s, preenchimento=%s",
        settings.MQTT_BROKER_HOST,
        settings.MQTT_BROKER_PORT,
        settings.MQTT_INPUT_TOPIC,
        settings.MQTT_OUTPUT_TOPIC,
        settings.REGISTER_WORD_PADDING,
    )

    try:
        client.loop_forever()
    except KeyboardInterrupt:
        logger.info("Encerrando formatter (Ctrl+C).")
    finally:
        if buffer is not None:
            buffer.flush()
        client.disconnect()


if __name__ == "__main__":
    run_consumer()
