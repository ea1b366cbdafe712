"""
Testes do filtro de acesso por perfil/unidade e dos filtros da lista
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from app.core.erros import ErroPermissao
from app.core.models import FiltroNota, FiltroPendencias, ModoVisao, StatusPendencia, User, UserRole
from app.services.pendencias.filtros import filtrar_pendencias, unidades_disponiveis
from app.services.pendencias.visoes import Visao, exigir_acesso_painel, montar_lista


def _ctes(pendencias):
    return [p.cte for p in pendencias]


# ============================================================================
# Escopo por perfil
# ============================================================================

def test_unidade_destino_ve_apenas_entrega_da_unidade(pendencias_base, usuario_sp):
    resultado = filtrar_pendencias(pendencias_base, usuario_sp, FiltroPendencias())
    assert _ctes(resultado) == ["100", "300"]
    assert all(p.entrega == "SP" for p in resultado)


def test_unidade_ignora_seletor_de_unidade(pendencias_base, usuario_sp):
    filtro = FiltroPendencias(unidade="RJ", status=list(StatusPendencia))
    resultado = filtrar_pendencias(pendencias_base, usuario_sp, filtro)
    assert all(p.entrega == "SP" for p in resultado)


def test_unidade_modo_origem(pendencias_base, usuario_sp):
    filtro = FiltroPendencias(modo_visao=ModoVisao.ORIGIN)
    assert _ctes(filtrar_pendencias(pendencias_base, usuario_sp, filtro)) == ["200"]


def test_unidade_sem_vinculo_nao_restringe(pendencias_base):
    user = User(username="x", role=UserRole.UNIDADE)
    assert len(filtrar_pendencias(pendencias_base, user)) == len(pendencias_base)


def test_unidade_com_visao_global_forcada(pendencias_base, usuario_sp):
    filtro = FiltroPendencias(forcar_todas_unidades=True)
    assert len(filtrar_pendencias(pendencias_base, usuario_sp, filtro)) == 4


@pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.LEITOR])
def test_admin_e_leitor_veem_tudo_e_podem_escolher_unidade(pendencias_base, role):
    user = User(username="u", role=role)
    assert len(filtrar_pendencias(pendencias_base, user)) == 4
    assert _ctes(filtrar_pendencias(pendencias_base, user, FiltroPendencias(unidade="SP"))) == ["100", "300"]
    assert len(filtrar_pendencias(pendencias_base, user, FiltroPendencias(unidade="ALL"))) == 4


# ============================================================================
# Filtros do usuário
# ============================================================================

@pytest.mark.parametrize("busca,esperado", [
    ("alfa", ["100"]),      # destinatário
    ("MERCADO", ["200"]),   # sem diferenciar maiúsculas
    ("30", ["300"]),        # CTE
    ("d4", ["400"]),        # código
    ("inexistente", []),
])
def test_busca_textual(pendencias_base, admin, busca, esperado):
    assert _ctes(filtrar_pendencias(pendencias_base, admin, FiltroPendencias(busca=busca))) == esperado


def test_filtro_status(pendencias_base, admin):
    filtro = FiltroPendencias(status=[StatusPendencia.OVERDUE, StatusPendencia.TOMORROW])
    assert _ctes(filtrar_pendencias(pendencias_base, admin, filtro)) == ["100", "300"]


def test_filtro_status_vazio_nao_retorna_nada(pendencias_base, admin):
    assert filtrar_pendencias(pendencias_base, admin, FiltroPendencias(status=[])) == []


def test_filtro_pagamento_por_substring(pendencias_base, admin):
    filtro = FiltroPendencias(pagamentos=["faturar_dest"])
    assert _ctes(filtrar_pendencias(pendencias_base, admin, filtro)) == ["200"]

    filtro = FiltroPendencias(pagamentos=["CIF", "FOB"])
    assert _ctes(filtrar_pendencias(pendencias_base, admin, filtro)) == ["100", "300"]


@pytest.mark.parametrize("filtro_nota,esperado", [
    (FiltroNota.ALL, ["100", "200", "300", "400"]),
    (FiltroNota.WITH_NOTE, ["200", "400"]),
    (FiltroNota.WITHOUT_NOTE, ["100", "300"]),
])
def test_filtro_presenca_de_notas(pendencias_base, admin, filtro_nota, esperado):
    filtro = FiltroPendencias(filtro_nota=filtro_nota)
    assert _ctes(filtrar_pendencias(pendencias_base, admin, filtro)) == esperado


def test_filtros_combinados_respeitam_escopo(pendencias_base, usuario_sp):
    filtro = FiltroPendencias(busca="gama", pagamentos=["FOB"])
    assert _ctes(filtrar_pendencias(pendencias_base, usuario_sp, filtro)) == ["300"]


def test_unidades_disponiveis(pendencias_base, admin, usuario_sp):
    assert unidades_disponiveis(pendencias_base, admin) == ["BH", "RJ", "SP"]
    assert unidades_disponiveis(pendencias_base, usuario_sp) == []
    assert unidades_disponiveis(pendencias_base, usuario_sp, forcar_todas_unidades=True) == ["BH", "RJ", "SP"]


# ============================================================================
# Visões
# ============================================================================

def test_visao_criticos_exige_permissao(pendencias_base, usuario_sp):
    with pytest.raises(ErroPermissao):
        montar_lista(pendencias_base, usuario_sp, Visao.CRITICAL)


def test_visao_criticos_somente_vencidas(pendencias_base, admin):
    resultado = montar_lista(pendencias_base, admin, Visao.CRITICAL, FiltroPendencias(status=[StatusPendencia.ON_TIME]))
    assert _ctes(resultado) == ["100"]


def test_visao_processos_abertos_ignora_unidade(pendencias_base):
    user = User(
        username="op.sp", role=UserRole.UNIDADE, linked_dest_unit="SP",
        permissions=frozenset({"search_cte"}),
    )
    resultado = montar_lista(pendencias_base, user, Visao.OPEN_PROCESS)
    assert _ctes(resultado) == ["300", "400"]


def test_lista_ordenada_por_data_limite(pendencias_base, admin):
    resultado = montar_lista(list(reversed(pendencias_base)), admin)
    assert _ctes(resultado) == ["100", "200", "300", "400"]


def test_acesso_painel(admin, leitor, usuario_sp):
    exigir_acesso_painel(admin)
    exigir_acesso_painel(leitor)
    with pytest.raises(ErroPermissao):
        exigir_acesso_painel(usuario_sp)
    with pytest.raises(ErroPermissao):
        exigir_acesso_painel(User(username="c", role=UserRole.CUSTOM))
