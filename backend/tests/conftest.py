"""
Fixtures compartilhadas dos testes
"""

import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from app.core.erros import ErroApi
from app.core.models import Note, Pendencia, Profile, StatusPendencia, User, UserRole
from app.core.permissoes import normalizar_permissoes
from app.db import criar_engine, init_db
from app.services.armazenamento_local import ArmazenamentoLocal
from app.services.integracao.apps_script import UsuarioRemoto
from sqlalchemy.orm import sessionmaker


HOJE = date(2025, 1, 10)


def nova_pendencia(cte: str, **campos) -> Pendencia:
    """Pendência mínima para testes de filtro/ordenação"""
    dados = {
        "id": f"{cte}-{campos.get('serie', '1')}-0",
        "cte": cte,
        "serie": "1",
        "data_limite_baixa": "10/01/2025",
        "calculated_status": StatusPendencia.PRIORITY,
    }
    dados.update(campos)
    return Pendencia(**dados)


class ClienteFake:
    """Substitui o ClienteApi: dados em memória, registra mutações"""

    def __init__(self, pendencias=None, notas=None, abertos=None, usuarios=None, perfis=None):
        self.pendencias = list(pendencias or [])
        self.notas = list(notas or [])
        self.abertos = list(abertos or [])
        self.usuarios = list(usuarios or [])
        self.perfis = list(perfis or [])
        self.falhar = set()  # nomes de métodos que devem levantar ErroApi
        self.mutacoes = []
        self.resultado_mutacao = True

    def _verificar(self, nome):
        if nome in self.falhar:
            raise ErroApi(f"falha simulada em {nome}")

    def fetch_pendencias(self, hoje=None, strict=False):
        self._verificar("fetch_pendencias")
        return list(self.pendencias)

    def fetch_notes(self, cte=None, strict=False):
        self._verificar("fetch_notes")
        if cte:
            return [n for n in self.notas if n.cte == cte]
        return list(self.notas)

    def fetch_open_processes(self, strict=False):
        self._verificar("fetch_open_processes")
        return list(self.abertos)

    def fetch_users(self, strict=False):
        self._verificar("fetch_users")
        return list(self.usuarios)

    def fetch_profiles(self, strict=False):
        self._verificar("fetch_profiles")
        return list(self.perfis)

    def _mutacao(self, nome, *args):
        self.mutacoes.append((nome, args))
        return self.resultado_mutacao

    def send_note(self, note, imagem_base64=None):
        return self._mutacao("addNote", note, imagem_base64)

    def toggle_process_status(self, cte, status, user):
        return self._mutacao("toggleProcess", cte, status, user)

    def save_user(self, usuario):
        return self._mutacao("saveUser", usuario)

    def delete_user(self, username):
        return self._mutacao("deleteUser", username)

    def change_password(self, username, nova_senha):
        return self._mutacao("changePassword", username, nova_senha)

    def save_profile(self, perfil):
        return self._mutacao("saveProfile", perfil)

    def delete_profile(self, name):
        return self._mutacao("deleteProfile", name)

    def testar_conexao(self):
        return {"script": {"success": True, "message": "Online"}, "csv": {"success": True, "message": "Leitura OK"}}

    def verificar_conexao(self):
        return True


@pytest.fixture
def hoje():
    return HOJE


@pytest.fixture
def armazenamento(tmp_path):
    engine = criar_engine(f"sqlite:///{tmp_path / 'local.db'}")
    init_db(bind=engine)
    return ArmazenamentoLocal(sessionmaker(autocommit=False, autoflush=False, bind=engine))


@pytest.fixture
def admin():
    return User(username="admin", role=UserRole.ADMIN)


@pytest.fixture
def leitor():
    return User(
        username="leitor",
        role=UserRole.LEITOR,
        permissions=frozenset({"view_all_pendencias", "view_dashboard"}),
    )


@pytest.fixture
def usuario_sp():
    return User(
        username="op.sp",
        role=UserRole.UNIDADE,
        linked_origin_unit="CPS",
        linked_dest_unit="SP",
        permissions=frozenset({"view_unit_dest", "add_notes", "receive_notifications"}),
    )


@pytest.fixture
def pendencias_base():
    return [
        nova_pendencia("100", entrega="SP", coleta="RJ", destinatario="Loja Alfa",
                       codigo="A1", frete_pago="CIF", valor_cte=100.0,
                       data_limite_baixa="05/01/2025", calculated_status=StatusPendencia.OVERDUE),
        nova_pendencia("200", entrega="RJ", coleta="CPS", destinatario="Mercado Beta",
                       codigo="B2", frete_pago="FATURAR_DESTINATARIO", valor_cte=250.0,
                       data_limite_baixa="10/01/2025", calculated_status=StatusPendencia.PRIORITY,
                       note_count=2),
        nova_pendencia("300", entrega="SP", coleta="BH", destinatario="Atacado Gama",
                       codigo="C3", frete_pago="FOB", valor_cte=50.0,
                       data_limite_baixa="11/01/2025", calculated_status=StatusPendencia.TOMORROW,
                       has_open_process=True),
        nova_pendencia("400", entrega="BH", coleta="SP", destinatario="Distribuidora Delta",
                       codigo="D4", frete_pago="FATURAR_REMETENTE", valor_cte=75.5,
                       data_limite_baixa="20/12/2025", calculated_status=StatusPendencia.ON_TIME,
                       note_count=1, has_open_process=True),
    ]


@pytest.fixture
def usuarios_remotos():
    return [
        UsuarioRemoto(username="admin2", password="segredo", role="ADMIN"),
        UsuarioRemoto(
            username="Op.SP", password="123", role="UNIDADE",
            linked_origin_unit="CPS", linked_dest_unit="SP",
            permissions=normalizar_permissoes('["view_unit_dest"]'),
        ),
        UsuarioRemoto(
            username="financeiro", password="abc", role="FINANCEIRO",
            permissions=normalizar_permissoes('["export_xls"]'),
        ),
    ]


@pytest.fixture
def perfis_remotos():
    return [
        Profile(id="1", name="unidade", permissions=frozenset({"view_unit_dest", "add_notes"})),
    ]


@pytest.fixture
def notas_base():
    return [
        Note(id="n1", cte="200", serie="1", data="2025-01-08T10:00:00Z", autor="leitor", texto="Cliente ausente"),
        Note(id="n2", cte="200", serie="1", data="2025-01-09T15:30:00Z", autor="op.sp", texto="Reagendado"),
        Note(id="n3", cte="400", serie="1", data="2025-01-07T09:00:00Z", autor="admin", texto="Em buscas"),
    ]
