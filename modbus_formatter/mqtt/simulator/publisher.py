"""
publisher.py

Simulador do poller Modbus que alimenta o formatter.

Responsável por:
- Simular medidores trifásicos com leituras elétricas plausíveis.
- Quebrar cada leitura float32 em duas palavras de 16 bits (alta, baixa).
- Publicar um lote plano de registros no tópico de entrada, no mesmo
  formato do poller real (chaves DisplayName, HwId, Address, Value,
  SourceTimestamp, com Value em string decimal).
"""

import json
import random
import struct
import time
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from paho.mqtt import client as mqtt

from modbus_formatter.config.settings import settings
from modbus_formatter.core.parametros import PARAMETROS
from modbus_formatter.mqtt.conexao import conectar_com_retries, publicar_com_retries
from modbus_formatter.utils.logger import get_logger

logger = get_logger(__name__)

# Primeiro holding register do mapa simulado; cada float ocupa 2 registros
ENDERECO_BASE = 40001


def float32_para_palavras(valor: float) -> Tuple[int, int]:
    """
    Quebra um float32 em (palavra alta, palavra baixa), big-endian.
    """
    alta, baixa = struct.unpack(">HH", struct.pack(">f", valor))
    return alta, baixa


class MedidorSimulado:
    """
    Medidor de energia trifásico simulado.

    Cada instância possui um HwId próprio e gera, a cada ciclo, um valor
    para cada parâmetro de PARAMETROS.
    """

    def __init__(self, device_id: str, rng: random.Random = None):
        self.device_id = device_id
        self.rng = rng or random.Random()

    def gerar_leituras(self) -> Dict[str, float]:
        """
        Gera as grandezas de um ciclo, coerentes entre si
        (kW System = soma das fases; Amps System Avg = média das fases).
        """
        amps = [self.rng.uniform(5.0, 80.0) for _ in range(3)]
        volts = [self.rng.uniform(218.0, 242.0) for _ in range(3)]
        kw = [a * v * self.rng.uniform(0.85, 0.99) / 1000.0 for a, v in zip(amps, volts)]

        return {
            "Amps System Avg": sum(amps) / 3,
            "Amps L1": amps[0],
            "Amps L2": amps[1],
            "Amps L3": amps[2],
            "kW L1": kw[0],
            "kW L2": kw[1],
            "kW L3": kw[2],
            "kW System": sum(kw),
            "Volts L1 to Neutral": volts[0],
            "Volts L2 to Neutral": volts[1],
            "Volts L3 to Neutral": volts[2],
        }

    def gerar_registros(self) -> List[dict]:
        """
        Gera os registros planos do ciclo: dois por parâmetro, palavra
        alta primeiro.

        [
          {
            "DisplayName": "Volts L1 to Neutral",
            "HwId": "PM-SIM-001",
            "Address": "40017",
            "Value": "17254",
            "SourceTimestamp": "2024-10-17T12:00:00.000000+00:00"
          },
          ...
        ]
        """
        timestamp = datetime.now(tz=timezone.utc).isoformat()
        leituras = self.gerar_leituras()

        registros = []
        for indice, parametro in enumerate(PARAMETROS):
            endereco = ENDERECO_BASE + 2 * indice
            palavras = float32_para_palavras(leituras[parametro.nome])

            for deslocamento, palavra in enumerate(palavras):
                registros.append(
                    {
                        "DisplayName": parametro.nome,
                        "HwId": self.device_id,
                        "Address": str(endereco + deslocamento),
                        "Value": str(palavra),
                        "SourceTimestamp": timestamp,
                    }
                )

        return registros


def criar_medidores_simulados() -> List[MedidorSimulado]:
    """
    Cria SIMULATOR_DEVICE_COUNT medidores com HwId <prefixo>-NNN.
    """
    return [
        MedidorSimulado(device_id=f"{settings.SIMULATOR_DEVICE_PREFIX}-{i:03d}")
        for i in range(1, settings.SIMULATOR_DEVICE_COUNT + 1)
    ]


def gerar_lote(medidores: List[MedidorSimulado]) -> List[dict]:
    """
    Um ciclo de polling: registros de todos os medidores em um só lote.
    """
    lote: List[dict] = []
    for medidor in medidores:
        lote.extend(medidor.gerar_registros())
    return lote


def publicar_lote(client: mqtt.Client, medidores: List[MedidorSimulado]) -> bool:
    """
    Gera um ciclo de leituras e publica no tópico de entrada com retries.
    """
    payload_str = json.dumps(gerar_lote(medidores))
    publicado = publicar_com_retries(client, settings.MQTT_INPUT_TOPIC, payload_str)
    if publicado:
        logger.debug("Publicado em %s: %s", settings.MQTT_INPUT_TOPIC, payload_str)
    return publicado


def criar_cliente_mqtt() -> mqtt.Client:
    """
    Cria um cliente MQTT básico (sem usuário/senha/TLS) e inicia o
    loop de rede em background.
    """

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)

    def on_connect(client, userdata, flags, reason_code, properties):
        logger.info("Simulador conectado ao broker MQTT. RC=%s", reason_code)

    def on_disconnect(client, userdata, flags, reason_code, properties):
        logger.warning("Simulador desconectado do broker MQTT. RC=%s", reason_code)

    client.on_connect = on_connect
    client.on_disconnect = on_disconnect

    conectar_com_retries(client, rotulo="simulador")

    client.loop_start()

    return client


def run_simulator():
    """
    Publica um lote a cada SIMULATOR_INTERVAL_SECONDS até Ctrl+C.
    """

    client = criar_cliente_mqtt()
    medidores = criar_medidores_simulados()
    intervalo = settings.SIMULATOR_INTERVAL_SECONDS

    logger.info(
        "Iniciando simulador com %s medidores, tópico %s, intervalo %ss.",
        len(medidores),
        settings.MQTT_INPUT_TOPIC,
        intervalo,
    )

    try:
        while True:
            publicar_lote(client, medidores)
            time.sleep(intervalo)

    except KeyboardInterrupt:
        logger.info("Encerrando simulador (Ctrl+C recebido).")
    finally:
        client.loop_stop()
        client.disconnect()


if __name__ == "__main__":
    run_simulator()
