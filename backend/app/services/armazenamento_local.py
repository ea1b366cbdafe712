"""
Armazenamento local persistente (equivalente ao localStorage do navegador)
"""

import json
import logging
from typing import Any, Iterable, Optional, Set

from sqlalchemy.orm import sessionmaker

from app.core.models import User
from app.models.armazenamento import ItemArmazenamento

logger = logging.getLogger(__name__)

CHAVE_USUARIO = "sle_user"
CHAVE_NOTIFICACOES_LIDAS = "sle_read_notifs"


class ArmazenamentoLocal:
    """Chave/valor JSON sobre uma tabela SQLAlchemy"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, chave: str, padrao: Any = None) -> Any:
        db = self._session_factory()
        try:
            item = db.get(ItemArmazenamento, chave)
            if item is None:
                return padrao
            try:
                return json.loads(item.valor)
            except json.JSONDecodeError:
                logger.warning(f"Valor corrompido em '{chave}', ignorando")
                return padrao
        finally:
            db.close()

    def set(self, chave: str, valor: Any) -> None:
        db = self._session_factory()
        try:
            item = db.get(ItemArmazenamento, chave)
            texto = json.dumps(valor)
            if item is None:
                db.add(ItemArmazenamento(chave=chave, valor=texto))
            else:
                item.valor = texto
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def remove(self, chave: str) -> None:
        db = self._session_factory()
        try:
            db.query(ItemArmazenamento).filter(ItemArmazenamento.chave == chave).delete()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ------------------------------------------------------------------
    # Sessão
    # ------------------------------------------------------------------

    def carregar_usuario(self) -> Optional[User]:
        dados = self.get(CHAVE_USUARIO)
        if not dados:
            return None
        try:
            return User.model_validate(dados)
        except ValueError as e:
            logger.warning(f"Sessão salva inválida, descartando: {e}")
            self.remove(CHAVE_USUARIO)
            return None

    def salvar_usuario(self, user: User) -> None:
        self.set(CHAVE_USUARIO, user.model_dump(mode="json"))

    def limpar_usuario(self) -> None:
        self.remove(CHAVE_USUARIO)

    # ------------------------------------------------------------------
    # Notificações lidas
    # ------------------------------------------------------------------

    def notificacoes_lidas(self) -> Set[str]:
        return set(self.get(CHAVE_NOTIFICACOES_LIDAS, []) or [])

    def marcar_notificacoes_lidas(self, ids: Iterable[str]) -> Set[str]:
        lidas = self.notificacoes_lidas() | set(ids)
        self.set(CHAVE_NOTIFICACOES_LIDAS, sorted(lidas))
        return lidas
