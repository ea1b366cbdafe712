"""
Atualização periódica do estado do painel (pendências + notas + processos em aberto)
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.models import Note, Pendencia
from app.services.integracao.apps_script import ClienteApi
from app.services.pendencias.enriquecimento import enriquecer_pendencias

logger = logging.getLogger(__name__)


class EstadoPainel(BaseModel):
    """Snapshot imutável do último carregamento bem-sucedido"""
    model_config = ConfigDict(frozen=True)

    pendencias: List[Pendencia] = Field(default_factory=list)
    notas: List[Note] = Field(default_factory=list)
    atualizado_em: Optional[datetime] = None


class ServicoAtualizacao:
    """
    Carrega as três fontes em paralelo e publica um novo EstadoPainel.

    Tudo ou nada: se qualquer chamada falhar, o estado anterior é mantido.
    Atualizações concorrentes são permitidas; a última a terminar prevalece.
    Resultados que chegam depois de invalidar() (logout) são descartados.
    """

    def __init__(self, cliente: ClienteApi, hoje: Callable[[], date] = date.today):
        self.cliente = cliente
        self._hoje = hoje
        self._estado = EstadoPainel()
        self._geracao = 0
        self._lock = threading.Lock()

    @property
    def estado(self) -> EstadoPainel:
        return self._estado

    def atualizar(self) -> bool:
        """Executa uma atualização completa. Retorna True se o estado foi substituído."""
        geracao = self._geracao
        inicio = time.time()
        hoje = self._hoje()

        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="atualizacao") as executor:
            futuro_pendencias = executor.submit(self.cliente.fetch_pendencias, hoje, True)
            futuro_notas = executor.submit(self.cliente.fetch_notes, None, True)
            futuro_abertos = executor.submit(self.cliente.fetch_open_processes, True)

            try:
                pendencias = futuro_pendencias.result()
                notas = futuro_notas.result()
                abertos = futuro_abertos.result()
            except Exception as e:
                logger.error(f"[BG] Erro ao carregar dados, mantendo estado anterior: {type(e).__name__}: {e}")
                return False

        novo_estado = EstadoPainel(
            pendencias=enriquecer_pendencias(pendencias, notas, abertos),
            notas=notas,
            atualizado_em=datetime.now(),
        )

        with self._lock:
            if geracao != self._geracao:
                logger.info("[BG] Atualização descartada: sessão encerrada durante o carregamento")
                return False
            self._estado = novo_estado

        logger.info(
            f"[BG] Estado atualizado em {time.time() - inicio:.2f}s: "
            f"{len(novo_estado.pendencias)} pendências, {len(notas)} notas"
        )
        return True

    def invalidar(self) -> None:
        """Descarta o estado atual e qualquer atualização em andamento."""
        with self._lock:
            self._geracao += 1
            self._estado = EstadoPainel()


class AgendadorAtualizacao:
    """Tarefa periódica cancelável executada em thread daemon"""

    def __init__(self, tarefa: Callable[[], Any], intervalo_segundos: float):
        self.tarefa = tarefa
        self.intervalo_segundos = intervalo_segundos
        self._parar = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def ativo(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def iniciar(self) -> None:
        if self.ativo:
            return
        self._parar = threading.Event()
        self._thread = threading.Thread(target=self._loop, name="agendador-atualizacao", daemon=True)
        self._thread.start()
        logger.info(f"Atualização automática a cada {self.intervalo_segundos:.0f}s iniciada")

    def parar(self, timeout: Optional[float] = 5.0) -> None:
        self._parar.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Atualização automática parada")

    def _loop(self) -> None:
        parar = self._parar
        while not parar.wait(self.intervalo_segundos):
            try:
                self.tarefa()
            except Exception:
                # A tarefa já registra suas falhas; o agendador não pode morrer
                logger.exception("[BG] Erro inesperado na atualização automática")
