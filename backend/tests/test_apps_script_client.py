"""
Testes do cliente HTTP (Apps Script + CSV) com sessão requests simulada
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import requests

from app.core.erros import ErroApi
from app.core.models import Note, Profile, StatusPendencia
from app.services.integracao.apps_script import ClienteApi, UsuarioRemoto
from conftest import HOJE


class RespostaFake:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)
        self.encoding = "utf-8"

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("sem JSON")
        return self._payload


class SessaoFake:
    """Responde por 'action' (GET) e registra as chamadas"""

    def __init__(self, respostas=None, csv=None, erro=None):
        self.respostas = respostas or {}
        self.csv = csv
        self.erro = erro
        self.gets = []
        self.posts = []
        self.resposta_post = RespostaFake({"success": True})

    def get(self, url, params=None, timeout=None):
        self.gets.append((url, dict(params or {}), timeout))
        if self.erro:
            raise self.erro
        if url == "http://csv":
            return self.csv
        return self.respostas[params["action"]]

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append((url, json.loads(data.decode("utf-8")), headers, timeout))
        if self.erro:
            raise self.erro
        return self.resposta_post


def _cliente(sessao, verificar_mutacoes=False):
    return ClienteApi(
        csv_url="http://csv",
        apps_script_url="http://script",
        timeout=3.0,
        verificar_mutacoes=verificar_mutacoes,
        session=sessao,
    )


def _dados(lista):
    return RespostaFake({"success": True, "data": lista})


# ============================================================================
# Leituras
# ============================================================================

def test_fetch_pendencias_le_csv_com_cache_buster():
    csv_texto = (
        "CTE,SERIE,CODIGO,EMISSAO,PRAZO,LIMITE,STATUS,COLETA,ENTREGA,VALOR,TX,VOL,PESO,FRETE,DEST,JUST\n"
        "123,1,X9,01/01/2025,5,09/01/2025,PENDENTE,cps,sp,\"1.500,00\",0,2,10,CIF,\"Loja, Filial\",\n"
    )
    sessao = SessaoFake(csv=RespostaFake(text=csv_texto))
    pendencias = _cliente(sessao).fetch_pendencias(hoje=HOJE)

    assert len(pendencias) == 1
    p = pendencias[0]
    assert p.id == "123-1-0"
    assert p.entrega == "SP"
    assert p.valor_cte == 1500.0
    assert p.destinatario == "Loja, Filial"
    assert p.calculated_status == StatusPendencia.OVERDUE

    url, params, timeout = sessao.gets[0]
    assert "t" in params
    assert timeout == 3.0


def test_fetch_notes_normaliza_chaves():
    sessao = SessaoFake(respostas={"getNotes": _dados([
        {"ID": 1, "CTE": 123, "Serie": "1", "Data": "2025-01-09T10:00:00Z",
         "Autor": "op", "Texto": "ok", "LinkImagem": "http://img"},
        {"cte": "456", "texto": "sem imagem"},
        "lixo",
    ])})
    notas = _cliente(sessao).fetch_notes()

    assert notas[0] == Note(
        id="1", cte="123", serie="1", data="2025-01-09T10:00:00Z",
        autor="op", texto="ok", link_imagem="http://img",
    )
    assert notas[1].link_imagem is None
    assert len(notas) == 2
    assert sessao.gets[0][1]["action"] == "getNotes"


def test_fetch_notes_por_cte():
    sessao = SessaoFake(respostas={"getNotes": _dados([])})
    _cliente(sessao).fetch_notes(cte="123")
    assert sessao.gets[0][1]["cte"] == "123"


def test_fetch_open_processes_descarta_vazios():
    sessao = SessaoFake(respostas={"getProcessStatus": _dados(["100", " 200 ", "", None])})
    assert _cliente(sessao).fetch_open_processes() == ["100", "200"]


def test_fetch_users_descarta_linha_de_cabecalho():
    sessao = SessaoFake(respostas={"getUsers": _dados([
        {"username": "username", "password": "password", "role": "role"},
        {"Username": "op.sp", "Password": "123", "Role": "UNIDADE",
         "LinkedOriginUnit": "CPS", "LinkedDestUnit": "SP",
         "Permissions": '["view_unit_dest"]'},
    ])})
    usuarios = _cliente(sessao).fetch_users()

    assert usuarios == [UsuarioRemoto(
        username="op.sp", password="123", role="UNIDADE",
        linked_origin_unit="CPS", linked_dest_unit="SP",
        permissions=frozenset({"view_unit_dest"}),
    )]


def test_fetch_profiles_nomes_alternativos_e_cabecalho():
    sessao = SessaoFake(respostas={"getProfiles": _dados([
        {"ID": "ID", "Name": "Name"},
        {"id": "1", "ProfileName": "Financeiro", "Permissions": '["export_xls"]'},
        {"id": "2"},
    ])})
    perfis = _cliente(sessao).fetch_profiles()

    assert [p.name for p in perfis] == ["Financeiro", "Sem Nome"]
    assert perfis[0].permissions == {"export_xls"}


def test_falha_nao_estrita_retorna_vazio():
    cliente = _cliente(SessaoFake(erro=requests.ConnectionError("offline")))
    assert cliente.fetch_pendencias() == []
    assert cliente.fetch_notes() == []
    assert cliente.fetch_open_processes() == []
    assert cliente.fetch_users() == []
    assert cliente.fetch_profiles() == []


def test_falha_estrita_levanta_erro():
    cliente = _cliente(SessaoFake(erro=requests.ConnectionError("offline")))
    with pytest.raises(ErroApi):
        cliente.fetch_notes(strict=True)
    with pytest.raises(ErroApi):
        cliente.fetch_pendencias(strict=True)


@pytest.mark.parametrize("resposta", [
    RespostaFake({"success": False, "data": []}),
    RespostaFake({"success": True}),
    RespostaFake(None, text="<html>"),
    RespostaFake({"success": True, "data": []}, status_code=500),
])
def test_resposta_invalida_estrita(resposta):
    cliente = _cliente(SessaoFake(respostas={"getProcessStatus": resposta}))
    with pytest.raises(ErroApi):
        cliente.fetch_open_processes(strict=True)
    assert cliente.fetch_open_processes() == []


# ============================================================================
# Mutações
# ============================================================================

def test_send_note_envia_texto_plano():
    sessao = SessaoFake()
    nota = Note(cte=" 123 ", serie="1 ", codigo="X", autor="op", texto="Reagendado")
    assert _cliente(sessao).send_note(nota, imagem_base64="data:image/png;base64,AAA") is True

    url, corpo, headers, timeout = sessao.posts[0]
    assert url == "http://script"
    assert headers["Content-Type"].startswith("text/plain")
    assert corpo == {
        "action": "addNote", "cte": "123", "serie": "1", "codigo": "X",
        "autor": "op", "texto": "Reagendado", "image": "data:image/png;base64,AAA",
    }


def test_mutacao_sem_verificacao_ignora_resposta():
    sessao = SessaoFake()
    sessao.resposta_post = RespostaFake({"success": False}, status_code=500)
    assert _cliente(sessao).toggle_process_status("123", True, "op") is True
    assert sessao.posts[0][1] == {"action": "toggleProcess", "cte": "123", "status": True, "user": "op"}


def test_mutacao_verificada_exige_confirmacao():
    sessao = SessaoFake()
    cliente = _cliente(sessao, verificar_mutacoes=True)

    sessao.resposta_post = RespostaFake({"success": False})
    assert cliente.delete_user("op") is False

    sessao.resposta_post = RespostaFake({"success": True}, status_code=500)
    assert cliente.delete_user("op") is False

    sessao.resposta_post = RespostaFake(None, text="ok")
    assert cliente.delete_user("op") is False

    sessao.resposta_post = RespostaFake({"success": True})
    assert cliente.delete_user("op") is True


def test_mutacao_com_erro_de_rede_retorna_false():
    cliente = _cliente(SessaoFake(erro=requests.Timeout("lento")))
    assert cliente.delete_profile("Financeiro") is False


def test_save_user_e_save_profile_serializam_permissoes():
    sessao = SessaoFake()
    cliente = _cliente(sessao)
    cliente.save_user(UsuarioRemoto(username="u", password="p", role="LEITOR",
                                    permissions=frozenset({"b", "a"})))
    cliente.save_profile(Profile(id="7", name="Leitor", permissions=frozenset({"view_dashboard"})))

    usuario = sessao.posts[0][1]
    assert usuario["action"] == "saveUser"
    assert usuario["linkedOriginUnit"] == ""
    assert json.loads(usuario["permissions"]) == ["a", "b"]

    perfil = sessao.posts[1][1]
    assert perfil["name"] == perfil["profileName"] == "Leitor"
    assert json.loads(perfil["permissions"]) == ["view_dashboard"]


def test_change_password_regrava_usuario():
    sessao = SessaoFake(respostas={"getUsers": _dados([
        {"username": "Op.SP", "password": "velha", "role": "UNIDADE", "linkedDestUnit": "SP"},
    ])})
    cliente = _cliente(sessao)

    assert cliente.change_password("op.sp", "nova") is True
    corpo = sessao.posts[0][1]
    assert corpo["username"] == "Op.SP"
    assert corpo["password"] == "nova"
    assert corpo["linkedDestUnit"] == "SP"

    assert cliente.change_password("ninguem", "x") is False


# ============================================================================
# Conectividade
# ============================================================================

def test_testar_conexao():
    sessao = SessaoFake(
        respostas={"ping": RespostaFake({"status": "online"})},
        csv=RespostaFake(text="a,b"),
    )
    assert _cliente(sessao).testar_conexao() == {
        "script": {"success": True, "message": "Online"},
        "csv": {"success": True, "message": "Leitura OK"},
    }


def test_testar_conexao_offline():
    cliente = _cliente(SessaoFake(erro=requests.ConnectionError("offline")))
    resultado = cliente.testar_conexao()
    assert resultado["script"] == {"success": False, "message": "Sem conexão"}
    assert resultado["csv"] == {"success": False, "message": "Sem conexão"}
    assert cliente.verificar_conexao() is False
