"""
Geração de notificações a partir do estado atual das pendências e notas
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from app.core.models import (
    Note,
    Notificacao,
    Pendencia,
    StatusPendencia,
    TipoNotificacao,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


def _data_nota(data_str: str, padrao: datetime) -> datetime:
    """Notas vêm com data ISO do Apps Script; fallback para 'agora'"""
    if not data_str:
        return padrao
    try:
        return datetime.fromisoformat(str(data_str).replace('Z', '+00:00'))
    except ValueError:
        return padrao


def _pendencia_e_do_usuario(user: User, p: Pendencia) -> bool:
    return (
        user.role in (UserRole.ADMIN, UserRole.LEITOR)
        or p.entrega == user.linked_dest_unit
        or p.coleta == user.linked_origin_unit
    )


def gerar_notificacoes(
    user: User,
    pendencias: List[Pendencia],
    notas: List[Note],
    lidas: Optional[Iterable[str]] = None,
    agora: Optional[datetime] = None
) -> List[Notificacao]:
    """
    Gera alertas de pendências vencidas, processos em aberto e notas novas.

    Notificações já lidas são removidas; a lista sai da mais recente para a mais antiga.
    """
    agora = agora or datetime.now()
    lidas = set(lidas or [])
    geradas: List[Notificacao] = []

    for p in pendencias:
        if p.calculated_status == StatusPendencia.OVERDUE and _pendencia_e_do_usuario(user, p):
            geradas.append(Notificacao(
                id=f"alert-{p.cte}",
                type=TipoNotificacao.ALERT,
                title="Crítico",
                message=f"CTE {p.cte} vencido!",
                timestamp=agora,
                related_cte=p.cte,
            ))

        if p.has_open_process:
            geradas.append(Notificacao(
                id=f"proc-{p.cte}",
                type=TipoNotificacao.PROCESS,
                title="Processo em Aberto",
                message=f"CTE {p.cte} com processo marcado!",
                timestamp=agora,
                related_cte=p.cte,
            ))

    por_cte = {}
    for p in pendencias:
        por_cte.setdefault(str(p.cte), p)

    for nota in notas:
        if nota.autor == user.username:
            continue
        pendencia = por_cte.get(str(nota.cte))
        if pendencia is None:
            continue

        if user.role == UserRole.ADMIN:
            notificar = True
        elif user.role == UserRole.UNIDADE:
            notificar = (
                pendencia.coleta == user.linked_origin_unit
                or pendencia.entrega == user.linked_dest_unit
            )
        else:
            notificar = False

        if notificar:
            geradas.append(Notificacao(
                id=f"note-{nota.cte}-{nota.id}",
                type=TipoNotificacao.NEW_NOTE,
                title="Nova Nota",
                message=f"{nota.autor} comentou no CTE {nota.cte}",
                timestamp=_data_nota(nota.data, agora),
                related_cte=nota.cte,
            ))

    nao_lidas = [n for n in geradas if n.id not in lidas]
    nao_lidas.reverse()
    return nao_lidas
