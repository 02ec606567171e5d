"""
repositorio.py

Camada de acesso a dados (Repository) para o modelo Telemetria.

Objetivos:
- Isolar a lógica de persistência (inserts em batch, leitura, rollback).
- Evitar espalhar 'criar_sessao()' por todo o código.
- Facilitar testes unitários (podemos mockar o repositório).
"""

import math
from typing import Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from modbus_formatter.core.parametros import PARAMETROS
from modbus_formatter.core.schemas import TelemetryBatch
from modbus_formatter.database.modelagem_banco import criar_sessao, Telemetria
from modbus_formatter.utils.logger import get_logger

logger = get_logger(__name__)


def lote_para_telemetrias(
    lote: TelemetryBatch,
    sequencia: int,
    raw_payload: Optional[str] = None,
) -> List[Telemetria]:
    """
    Converte um TelemetryBatch em linhas ORM, uma por dispositivo.

    O mapeamento campo → coluna vem de PARAMETROS. Valores não finitos
    (palavras que formam NaN/±Inf) viram NULL: NaN não é armazenável em
    todos os bancos e quebraria o batch inteiro.
    """
    telemetrias: List[Telemetria] = []
    for dispositivo in lote:
        colunas = {}
        for p in PARAMETROS:
            valor = getattr(dispositivo, p.campo)
            if not math.isfinite(valor):
                logger.warning(
                    "Mensagem %s, %s: %s decodificado como %r; gravado como NULL.",
                    sequencia,
                    dispositivo.deviceId,
                    p.nome,
                    valor,
                )
                valor = None
            colunas[p.coluna] = valor
        telemetrias.append(
            Telemetria(
                sequencia=sequencia,
                device_id=dispositivo.deviceId,
                raw_payload=raw_payload,
                **colunas,
            )
        )
    return telemetrias


class TelemetriaRepositorio:
    """
    Repositório de leitura e escrita da entidade Telemetria.
    """

    # ---------------- GRAVAÇÃO ---------------- #

    def salvar_em_batch(self, telemetrias: Iterable[Telemetria]) -> int:
        """
        Salva uma coleção de Telemetria em uma única transação.

        Retorna a quantidade de linhas persistidas. Em caso de erro faz
        rollback e relança a exceção.
        """
        telemetrias = list(telemetrias)
        if not telemetrias:
            return 0

        sessao = criar_sessao()
        try:
            sessao.add_all(telemetrias)
            sessao.commit()
            return len(telemetrias)
        except SQLAlchemyError:
            sessao.rollback()
            logger.error("Erro ao salvar %s telemetrias em batch.", len(telemetrias))
            raise
        finally:
            sessao.close()

    # ---------------- LEITURA ---------------- #

    def listar_ultimas(self, limite: int = 100) -> List[Telemetria]:
        """
        Retorna as últimas 'limite' telemetrias, ordenadas por id desc.
        """
        sessao = criar_sessao()
        try:
            stmt = (
                select(Telemetria)
                .order_by(Telemetria.id.desc())
                .limit(limite)
            )
            return list(sessao.execute(stmt).scalars().all())
        finally:
            sessao.close()

    def listar_ultimas_por_device(self, device_id: str, limite: int = 100) -> List[Telemetria]:
        """
        Retorna as últimas telemetrias de um dispositivo específico.
        """
        sessao = criar_sessao()
        try:
            stmt = (
                select(Telemetria)
                .where(Telemetria.device_id == device_id)
                .order_by(Telemetria.id.desc())
                .limit(limite)
            )
            return list(sessao.execute(stmt).scalars().all())
        finally:
            sessao.close()

    def listar_dispositivos(self) -> List[str]:
        """
        Retorna a lista de device_id distintos presentes na tabela.
        """
        sessao = criar_sessao()
        try:
            stmt = select(func.distinct(Telemetria.device_id)).order_by(Telemetria.device_id)
            result = sessao.execute(stmt).all()
            return [row[0] for row in result]
        finally:
            sessao.close()
