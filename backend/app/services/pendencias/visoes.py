"""
Composição das visões de lista (geral, críticos, em buscas) com controle de acesso
"""

from enum import Enum
from typing import List, Optional

from app.core.models import FiltroPendencias, Pendencia, StatusPendencia, User, UserRole
from app.core.erros import ErroPermissao
from app.core.permissoes import exigir_permissao
from app.services.pendencias.filtros import filtrar_pendencias
from app.services.pendencias.ordenacao import OrdenacaoConfig, ordenar_pendencias


class Visao(str, Enum):
    LIST = "list"
    CRITICAL = "critical"
    OPEN_PROCESS = "open_process"


# Permissões que liberam cada visão (qualquer uma basta)
PERMISSOES_VISAO = {
    Visao.LIST: ("view_all_pendencias", "view_unit_dest"),
    Visao.CRITICAL: ("view_critical",),
    Visao.OPEN_PROCESS: ("search_cte",),
}

# Qualquer visão de lista libera o detalhe da pendência
PERMISSOES_LEITURA = ("view_all_pendencias", "view_unit_dest", "view_critical", "search_cte")


def ajustar_filtro_visao(visao: Visao, filtro: FiltroPendencias) -> FiltroPendencias:
    """Aplica o que cada visão impõe sobre os filtros do usuário."""
    if visao == Visao.CRITICAL:
        return filtro.model_copy(update={"status": [StatusPendencia.OVERDUE]})
    if visao == Visao.OPEN_PROCESS:
        return filtro.model_copy(update={
            "somente_processo_aberto": True,
            "forcar_todas_unidades": True,
        })
    return filtro


def montar_lista(
    pendencias: List[Pendencia],
    user: User,
    visao: Visao = Visao.LIST,
    filtro: Optional[FiltroPendencias] = None,
    ordenacao: Optional[OrdenacaoConfig] = None,
) -> List[Pendencia]:
    """
    Verifica a permissão da visão, filtra e ordena.

    Raises:
        ErroPermissao: se o usuário não puder acessar a visão
    """
    exigir_permissao(user, *PERMISSOES_VISAO[visao])

    filtro = ajustar_filtro_visao(visao, filtro or FiltroPendencias())
    ordenacao = ordenacao or OrdenacaoConfig()

    filtradas = filtrar_pendencias(pendencias, user, filtro)
    return ordenar_pendencias(filtradas, ordenacao.chave, ordenacao.direcao)


def exigir_acesso_painel(user: User) -> None:
    """Painel gerencial: exige view_dashboard e não é liberado para UNIDADE."""
    if user.role == UserRole.UNIDADE:
        raise ErroPermissao("view_dashboard")
    exigir_permissao(user, "view_dashboard")
