"""
main.py

API HTTP do formatter usando FastAPI.

Rotas principais:
- GET  /ping
- POST /formatar
- GET  /telemetria/recentes
- GET  /telemetria/{device_id}/ultimas
- GET  /dispositivos
"""

from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request

from modbus_formatter.config.settings import settings
from modbus_formatter.core.erros import InvalidPayloadError, MalformedValueError
from modbus_formatter.core.schemas import TelemetryBatch
from modbus_formatter.database.repositorio import TelemetriaRepositorio
from modbus_formatter.mqtt.consumer import formatar_payload
from modbus_formatter.api.schemas import TelemetriaOut, DispositivoOut
from modbus_formatter.utils.logger import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="modbus-formatter API",
    version="0.1.0",
    description="Decodificação sob demanda e leitura da telemetria gravada pelo formatter.",
)


def get_repositorio() -> TelemetriaRepositorio:
    return TelemetriaRepositorio()


# ------------------- HEALTHCHECK ------------------- #


@app.get("/ping")
def ping():
    return {"status": "ok"}


# ------------------- FORMATAÇÃO ------------------- #


@app.post(
    "/formatar",
    response_model=TelemetryBatch,
    summary="Decodifica um lote de registros brutos",
)
async def formatar(
    request: Request,
    preencher_palavras: Optional[bool] = Query(
        None,
        description="Sobrescreve REGISTER_WORD_PADDING para esta chamada.",
    ),
):
    """
    Aplica a mesma transformação do consumer MQTT ao corpo da requisição
    (array JSON de registros) e devolve o TelemetryBatch. Nada é gravado.
    """
    if preencher_palavras is None:
        preencher_palavras = settings.REGISTER_WORD_PADDING

    corpo = await request.body()
    try:
        return formatar_payload(corpo.decode("utf-8"), preencher_palavras=preencher_palavras)
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail=f"Corpo não é UTF-8: {exc}")
    except (InvalidPayloadError, MalformedValueError) as exc:
        logger.warning("Lote rejeitado em /formatar: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))


# ------------------- TELEMETRIA ------------------- #


@app.get(
    "/telemetria/recentes",
    response_model=List[TelemetriaOut],
    summary="Lista as últimas telemetrias gravadas",
)
def listar_telemetria_recente(
    limite: int = Query(100, ge=1, le=1000, description="Quantidade de linhas"),
):
    repo = get_repositorio()
    return repo.listar_ultimas(limite=limite)


@app.get(
    "/telemetria/{device_id}/ultimas",
    response_model=List[TelemetriaOut],
    summary="Lista as últimas telemetrias de um dispositivo",
)
def listar_telemetria_por_device(
    device_id: str,
    limite: int = Query(100, ge=1, le=1000, description="Quantidade de linhas"),
):
    repo = get_repositorio()
    return repo.listar_ultimas_por_device(device_id=device_id, limite=limite)


# ------------------- DISPOSITIVOS ------------------- #


@app.get(
    "/dispositivos",
    response_model=List[DispositivoOut],
    summary="Lista dispositivos conhecidos",
)
def listar_dispositivos():
    """
    Retorna a lista de device_id distintos presentes na base.
    """
    repo = get_repositorio()
    ids = repo.listar_dispositivos()
    return [DispositivoOut(device_id=d) for d in ids]
