"""
schemas.py

Modelos Pydantic usados nas respostas da API de leitura.
Compatíveis com o ORM (Telemetria) via from_attributes.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class TelemetriaOut(BaseModel):
    """
    Representa uma linha de telemetria retornada pela API.
    """

    model_config = ConfigDict(from_attributes=True)

    id: int
    sequencia: int
    device_id: str
    amps_avg: Optional[float]
    amps_l1: Optional[float]
    amps_l2: Optional[float]
    amps_l3: Optional[float]
    kw_l1: Optional[float]
    kw_l2: Optional[float]
    kw_l3: Optional[float]
    kw_system: Optional[float]
    volts_l1_to_neutral: Optional[float]
    volts_l2_to_neutral: Optional[float]
    volts_l3_to_neutral: Optional[float]
    ingested_at: datetime


class DispositivoOut(BaseModel):
    device_id: str
