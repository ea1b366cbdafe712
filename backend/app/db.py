"""
Configuração do banco de dados SQLAlchemy (armazenamento local)
"""

import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from app.core.config import settings
from app.models.base import Base

# Importa modelos para garantir registro no metadata
from app.models import ItemArmazenamento  # noqa: F401

logger = logging.getLogger(__name__)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Habilita WAL mode e outras otimizações do SQLite"""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def criar_engine(database_url: str):
    """Cria engine com as configurações adequadas ao SQLite (evita 'database is locked')"""
    connect_args = {}
    poolclass = None

    if "sqlite" in database_url:
        connect_args = {
            "check_same_thread": False,
            "timeout": 20.0  # Timeout de 20 segundos
        }
        # NullPool evita pool de conexões que pode causar locks
        poolclass = NullPool

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        poolclass=poolclass,
        pool_pre_ping=True,  # Verifica conexão antes de usar
        echo=False
    )

    if "sqlite" in database_url:
        event.listen(engine, "connect", _set_sqlite_pragma)

    return engine


engine = criar_engine(settings.database_url)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Cria todas as tabelas no banco de dados"""
    Base.metadata.create_all(bind=bind or engine)

