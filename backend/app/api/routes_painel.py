"""
Rotas FastAPI do painel gerencial e das notificações
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencias import get_contexto, get_usuario
from app.api.schemas import NotificacoesLidasRequest
from app.core.models import DashboardStats, Notificacao, StatusPendencia, User
from app.core.permissoes import exigir_permissao
from app.services.notificacoes import gerar_notificacoes
from app.services.pendencias.estatisticas import calcular_estatisticas
from app.services.pendencias.visoes import exigir_acesso_painel
from app.services.sessao import ContextoSessao

logger = logging.getLogger(__name__)

router = APIRouter(tags=["painel"])


@router.get("/dashboard", response_model=DashboardStats)
def obter_dashboard(
    unidade: Optional[str] = None,
    status: Optional[List[StatusPendencia]] = Query(None),
    pagamento: Optional[List[str]] = Query(None),
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Indicadores por status, unidade de destino e tipo de pagamento"""
    exigir_acesso_painel(user)
    return calcular_estatisticas(contexto.estado.pendencias, unidade, status, pagamento)


@router.get("/notificacoes", response_model=List[Notificacao])
def listar_notificacoes(
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Notificações não lidas (mais recentes primeiro)"""
    exigir_permissao(user, "receive_notifications")
    estado = contexto.estado
    return gerar_notificacoes(
        user,
        estado.pendencias,
        estado.notas,
        contexto.armazenamento.notificacoes_lidas(),
    )


@router.post("/notificacoes/lidas", status_code=204)
def marcar_notificacoes_lidas(
    dados: NotificacoesLidasRequest,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    contexto.armazenamento.marcar_notificacoes_lidas(dados.ids)
