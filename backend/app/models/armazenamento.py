"""
Modelo SQLAlchemy do armazenamento local (chave/valor)
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from app.models.base import Base


class ItemArmazenamento(Base):
    """Par chave/valor persistido localmente (sessão, notificações lidas)"""

    __tablename__ = "armazenamento_local"

    chave = Column(String(100), primary_key=True)
    valor = Column(Text, nullable=False)  # JSON serializado
    atualizado_em = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
