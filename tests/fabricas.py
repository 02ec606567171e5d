"""
fabricas.py

Fábricas de RawRecord, exemplos calculados à mão e um cliente MQTT falso,
usados pelos testes.
"""

from paho.mqtt import client as mqtt

from modbus_formatter.core.schemas import RawRecord


def registro(display_name, value, device_id="PM-0001", address="40001"):
    return RawRecord(
        displayName=display_name,
        deviceId=device_id,
        address=address,
        value=value,
        sourceTimestamp="2019-03-13T10:15:02Z",
    )


# Exemplos calculados à mão: (palavra alta, palavra baixa) → hex → float32
EXEMPLOS_POR_PARAMETRO = {
    "Amps System Avg": ("17096", "32768", "42C88000", 100.25),
    "Amps L1": ("16804", "49152", "41A4C000", 20.59375),
    "Amps L2": ("16802", "32768", "41A28000", 20.3125),
    "Amps L3": ("16801", "16384", "41A14000", 20.15625),
    "kW L1": ("16553", "32768", "40A98000", 5.296875),
    "kW L2": ("16562", "4096", "40B21000", 5.564453125),
    "kW L3": ("16580", "8192", "40C42000", 6.12890625),
    "kW System": ("16776", "40960", "4188A000", 17.078125),
    "Volts L1 to Neutral": ("17254", "32768", "43668000", 230.5),
    "Volts L2 to Neutral": ("17253", "16384", "43654000", 229.25),
    "Volts L3 to Neutral": ("17255", "49152", "4367C000", 231.75),
}


def registros_completos(device_id, exemplos=EXEMPLOS_POR_PARAMETRO):
    """
    Lista de RawRecord com as duas palavras de cada um dos 11 parâmetros.
    """
    registros = []
    for nome, (alta, baixa, _hex, _valor) in exemplos.items():
        registros.append(registro(nome, alta, device_id=device_id))
        registros.append(registro(nome, baixa, device_id=device_id))
    return registros


# Palavras de Amps L1 que formam 0x7FC0FFFF, um NaN silencioso
PALAVRAS_NAN = ("32704", "65535")


class _Resultado:
    def __init__(self, rc):
        self.rc = rc


class ClienteFalso:
    """
    Substitui mqtt.Client: registra publicações e conexões e devolve RCs
    programados. `falhas_conexao` é quantas chamadas a connect levantam erro.
    """

    def __init__(self, rcs=None, falhas_conexao=0):
        self.publicados = []
        self.conexoes = 0
        self._rcs = list(rcs or [])
        self._falhas_conexao = falhas_conexao

    def publish(self, topic, payload):
        self.publicados.append((topic, payload))
        rc = self._rcs.pop(0) if self._rcs else mqtt.MQTT_ERR_SUCCESS
        return _Resultado(rc)

    def connect(self, host, port, keepalive=60):
        self.conexoes += 1
        if self._falhas_conexao:
            self._falhas_conexao -= 1
            raise ConnectionRefusedError("broker indisponível")
        return mqtt.MQTT_ERR_SUCCESS
