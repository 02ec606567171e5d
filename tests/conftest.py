"""
conftest.py

Configuração de testes do modbus-formatter.

Aqui:
- Criamos um banco SQLite em memória para os testes.
- Reconfiguramos o engine e o SessionLocal do módulo modelagem_banco
  para usar esse banco de teste.
- Limpamos a tabela de telemetrias entre os testes.
"""

import pytest
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from modbus_formatter.database import modelagem_banco as db


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """
    Engine SQLite em memória compartilhado pela sessão de testes.

    StaticPool + check_same_thread=False: o TestClient do FastAPI executa
    as rotas síncronas em outra thread e precisa enxergar o mesmo banco.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    db.engine = engine
    db.SessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
    )

    db.inicializar_banco()

    yield

    engine.dispose()


@pytest.fixture(autouse=True)
def limpar_telemetrias():
    yield
    sessao = db.criar_sessao()
    try:
        sessao.execute(delete(db.Telemetria))
        sessao.commit()
    finally:
        sessao.close()
