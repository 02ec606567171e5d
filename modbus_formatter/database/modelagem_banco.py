"""
modelagem_banco.py

Responsável por:
- Criar o engine do SQLAlchemy usando settings.DB_URL.
- Definir a tabela 'telemetrias' (uma linha por dispositivo por mensagem).
- Expor funções para criar sessão e inicializar o banco.
"""

from sqlalchemy import (
    create_engine,
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    func,
)
from sqlalchemy.orm import declarative_base, sessionmaker

from modbus_formatter.config.settings import settings

# --------------------------------------------------------------------
# Engine e Base
# --------------------------------------------------------------------

engine = create_engine(settings.DB_URL, echo=False, future=True)

Base = declarative_base()

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def criar_sessao():
    """
    Cria e retorna uma nova sessão de banco de dados.

    Uso típico:

        sessao = criar_sessao()
        try:
            # operações com o banco
        finally:
            sessao.close()
    """
    return SessionLocal()


# --------------------------------------------------------------------
# Telemetria decodificada
# --------------------------------------------------------------------


class Telemetria(Base):
    """
    Telemetria decodificada de um medidor, como publicada no tópico de saída.

    - sequencia: número da mensagem de entrada que gerou a linha.
    - device_id: HwId do medidor.
    - uma coluna float por parâmetro (ver core.parametros.PARAMETROS);
      NULL quando o valor decodificado não é finito (NaN, ±Inf).
    - ingested_at: instante em que a linha entrou na base.
    - raw_payload: opcional, JSON bruto de entrada para auditoria.
    """

    __tablename__ = "telemetrias"

    id = Column(Integer, primary_key=True, index=True)

    sequencia = Column(Integer, nullable=False, index=True)

    device_id = Column(String(100), nullable=False, index=True)

    # Correntes (A)
    amps_avg = Column(Float, nullable=True)
    amps_l1 = Column(Float, nullable=True)
    amps_l2 = Column(Float, nullable=True)
    amps_l3 = Column(Float, nullable=True)

    # Potência ativa (kW)
    kw_l1 = Column(Float, nullable=True)
    kw_l2 = Column(Float, nullable=True)
    kw_l3 = Column(Float, nullable=True)
    kw_system = Column(Float, nullable=True)

    # Tensão fase-neutro (V)
    volts_l1_to_neutral = Column(Float, nullable=True)
    volts_l2_to_neutral = Column(Float, nullable=True)
    volts_l3_to_neutral = Column(Float, nullable=True)

    ingested_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    raw_payload = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<Telemetria(id={self.id}, sequencia={self.sequencia}, "
            f"device_id={self.device_id}, kw_system={self.kw_system})>"
        )


# --------------------------------------------------------------------
# Inicialização do banco
# --------------------------------------------------------------------


def inicializar_banco():
    """
    Cria todas as tabelas definidas em Base.metadata, se ainda não existirem.
    """
    Base.metadata.create_all(engine)


# Permite rodar diretamente: `python -m modbus_formatter.database.modelagem_banco`
if __name__ == "__main__":
    inicializar_banco()
    print("Tabelas criadas com sucesso em:", settings.DB_URL)
