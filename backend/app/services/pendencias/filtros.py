"""
Filtro de acesso: escopo por perfil/unidade seguido dos filtros do usuário
"""

import logging
from typing import List, Optional

from app.core.models import (
    FiltroNota,
    FiltroPendencias,
    ModoVisao,
    Pendencia,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


def _escopo_unidade(
    pendencias: List[Pendencia],
    user: User,
    filtro: FiltroPendencias
) -> List[Pendencia]:
    """
    Restringe pelo perfil antes de qualquer filtro escolhido pelo usuário.

    UNIDADE vê apenas a própria unidade (destino ou origem, conforme o modo),
    a menos que a visão force todas as unidades. Demais perfis veem tudo e
    podem estreitar pelo seletor de unidade (comparado com 'entrega').
    """
    if user.role == UserRole.UNIDADE and not filtro.forcar_todas_unidades:
        if filtro.modo_visao == ModoVisao.DESTINATION:
            if user.linked_dest_unit:
                return [p for p in pendencias if p.entrega == user.linked_dest_unit]
        else:
            if user.linked_origin_unit:
                return [p for p in pendencias if p.coleta == user.linked_origin_unit]
        return list(pendencias)

    if filtro.unidade and filtro.unidade != "ALL":
        return [p for p in pendencias if p.entrega == filtro.unidade]
    return list(pendencias)


def _casa_busca(p: Pendencia, termo: str) -> bool:
    return (
        termo in p.cte.lower()
        or termo in p.destinatario.lower()
        or termo in p.codigo.lower()
    )


def filtrar_pendencias(
    pendencias: List[Pendencia],
    user: User,
    filtro: Optional[FiltroPendencias] = None
) -> List[Pendencia]:
    """
    Retorna o subconjunto de pendências visível ao usuário com os filtros aplicados.

    Ordem: processo em aberto -> escopo de unidade -> busca -> status -> pagamento -> notas.
    """
    filtro = filtro or FiltroPendencias()
    res = list(pendencias)

    if filtro.somente_processo_aberto:
        res = [p for p in res if p.has_open_process]

    res = _escopo_unidade(res, user, filtro)

    if filtro.busca:
        termo = filtro.busca.strip().lower()
        if termo:
            res = [p for p in res if _casa_busca(p, termo)]

    if filtro.status is not None:
        status_permitidos = set(filtro.status)
        res = [p for p in res if p.calculated_status in status_permitidos]

    if filtro.pagamentos is not None:
        pagamentos = [pg.strip().upper() for pg in filtro.pagamentos if pg and pg.strip()]
        res = [
            p for p in res
            if any(pg in (p.frete_pago or '').upper() for pg in pagamentos)
        ]

    if filtro.filtro_nota == FiltroNota.WITH_NOTE:
        res = [p for p in res if p.note_count > 0]
    elif filtro.filtro_nota == FiltroNota.WITHOUT_NOTE:
        res = [p for p in res if p.note_count == 0]

    return res


def unidades_disponiveis(
    pendencias: List[Pendencia],
    user: User,
    forcar_todas_unidades: bool = False
) -> List[str]:
    """Unidades de destino para o seletor (vazio para UNIDADE sem visão global)."""
    if user.role == UserRole.UNIDADE and not forcar_todas_unidades:
        return []
    return sorted({p.entrega for p in pendencias if p.entrega})
