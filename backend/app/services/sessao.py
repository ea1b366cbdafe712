"""
Contexto de sessão: usuário autenticado, estado do painel e atualização automática
"""

import logging
from typing import Optional

from app.core.config import settings
from app.core.erros import ErroSessao
from app.core.models import User
from app.services.armazenamento_local import ArmazenamentoLocal
from app.services.autenticacao import authenticate_user
from app.services.integracao.apps_script import ClienteApi
from app.services.sincronizacao import AgendadorAtualizacao, EstadoPainel, ServicoAtualizacao

logger = logging.getLogger(__name__)


class ContextoSessao:
    """
    Ciclo de vida explícito da sessão.

    - restaurar(): lê o usuário salvo no armazenamento local
    - login(): autentica, persiste, carrega dados e liga o agendador
    - logout(): para o agendador, descarta o estado e limpa o armazenamento
    """

    def __init__(
        self,
        cliente: ClienteApi,
        armazenamento: ArmazenamentoLocal,
        intervalo_segundos: Optional[float] = None,
        atualizacao: Optional[ServicoAtualizacao] = None,
    ):
        self.cliente = cliente
        self.armazenamento = armazenamento
        self.atualizacao = atualizacao or ServicoAtualizacao(cliente)
        self.agendador = AgendadorAtualizacao(
            self.atualizacao.atualizar,
            intervalo_segundos if intervalo_segundos is not None else settings.intervalo_atualizacao_segundos,
        )
        self._user: Optional[User] = None

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def estado(self) -> EstadoPainel:
        return self.atualizacao.estado

    def exigir_usuario(self) -> User:
        if self._user is None:
            raise ErroSessao("Nenhum usuário autenticado")
        return self._user

    def restaurar(self) -> Optional[User]:
        user = self.armazenamento.carregar_usuario()
        if user is not None:
            logger.info(f"Sessão restaurada para '{user.username}'")
            self._iniciar(user)
        return user

    def login(self, username: str, password: str) -> User:
        user = authenticate_user(self.cliente, username, password)
        if self._user is not None:
            self.logout()
        self.armazenamento.salvar_usuario(user)
        self._iniciar(user)
        return user

    def logout(self) -> None:
        self.agendador.parar()
        self.atualizacao.invalidar()
        self.armazenamento.limpar_usuario()
        if self._user is not None:
            logger.info(f"Logout de '{self._user.username}'")
        self._user = None

    def atualizar_agora(self) -> bool:
        """Atualização manual"""
        self.exigir_usuario()
        return self.atualizacao.atualizar()

    def encerrar(self) -> None:
        """Desligamento da aplicação: para o agendador sem apagar a sessão salva."""
        self.agendador.parar()

    def _iniciar(self, user: User) -> None:
        self._user = user
        self.atualizacao.atualizar()
        self.agendador.iniciar()
