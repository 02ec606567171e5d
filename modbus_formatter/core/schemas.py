"""
schemas.py

Schemas Pydantic do formatter (Pydantic v2).

- RawRecord: uma leitura de registro publicada pelo poller Modbus.
- DeviceTelemetry: telemetria decodificada de um dispositivo.
- TelemetryBatch: lista ordenada de DeviceTelemetry (raiz da saída).
"""

from typing import Iterator, List

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel

from modbus_formatter.core.parametros import VALOR_AUSENTE


class RawRecord(BaseModel):
    """
    Representa uma única leitura de registro Modbus.

    Aceita tanto o formato camelCase quanto o formato publicado pelo poller:

        {
          "DisplayName": "Volts L1 to Neutral",
          "HwId": "PM-0001",
          "Address": "40101",
          "Value": "17254",
          "SourceTimestamp": "2019-03-13T10:15:02.1234567Z"
        }

    `address` e `sourceTimestamp` são carregados, mas não usados na
    decodificação.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    displayName: str = Field(
        validation_alias=AliasChoices("displayName", "DisplayName"),
    )
    deviceId: str = Field(
        min_length=1,
        validation_alias=AliasChoices("deviceId", "HwId", "hwId"),
    )
    address: str = Field(
        "",
        validation_alias=AliasChoices("address", "Address"),
    )
    value: str = Field(
        validation_alias=AliasChoices("value", "Value"),
    )
    sourceTimestamp: str = Field(
        "",
        validation_alias=AliasChoices("sourceTimestamp", "SourceTimestamp"),
    )


class DeviceTelemetry(BaseModel):
    """
    Telemetria agregada de um dispositivo em um ciclo de processamento.

    Parâmetros não reportados ficam com VALOR_AUSENTE (0.0).
    """

    deviceId: str
    ampsAvg: float = VALOR_AUSENTE
    ampsL1: float = VALOR_AUSENTE
    ampsL2: float = VALOR_AUSENTE
    ampsL3: float = VALOR_AUSENTE
    kwL1: float = VALOR_AUSENTE
    kwL2: float = VALOR_AUSENTE
    kwL3: float = VALOR_AUSENTE
    kwSystem: float = VALOR_AUSENTE
    voltsL1toNeutral: float = VALOR_AUSENTE
    voltsL2toNeutral: float = VALOR_AUSENTE
    voltsL3toNeutral: float = VALOR_AUSENTE


class TelemetryBatch(RootModel[List[DeviceTelemetry]]):
    """
    Saída de um lote: um DeviceTelemetry por deviceId, na ordem em que
    cada deviceId apareceu pela primeira vez. Serializa como array JSON.
    """

    root: List[DeviceTelemetry] = Field(default_factory=list)

    def __iter__(self) -> Iterator[DeviceTelemetry]:
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, item: int) -> DeviceTelemetry:
        return self.root[item]
