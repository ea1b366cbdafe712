"""
Cliente do Apps Script (notas, processos, usuários, perfis) e da planilha CSV publicada
"""

import json
import logging
import time
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional

import requests
from pydantic import BaseModel

from app.core.config import settings
from app.core.erros import ErroApi
from app.core.models import Note, Pendencia, Profile, User, UserRole
from app.core.permissoes import normalizar_permissoes
from app.services.parsers.pendencias_csv_parser import parse_pendencias_csv

logger = logging.getLogger(__name__)


class UsuarioRemoto(BaseModel):
    """Linha da aba de usuários, incluindo a senha (nunca sai do cliente)"""
    username: str
    password: str = ""
    role: str = UserRole.UNIDADE.value  # Nome livre: também identifica o perfil
    linked_origin_unit: str = ""
    linked_dest_unit: str = ""
    permissions: FrozenSet[str] = frozenset()

    @property
    def user_role(self) -> UserRole:
        try:
            return UserRole(self.role.strip().upper())
        except ValueError:
            return UserRole.CUSTOM

    def para_sessao(self, permissoes: FrozenSet[str]) -> User:
        return User(
            username=self.username,
            role=self.user_role,
            linked_origin_unit=self.linked_origin_unit,
            linked_dest_unit=self.linked_dest_unit,
            permissions=permissoes,
        )


def _chaves_minusculas(item: Dict[str, Any]) -> Dict[str, Any]:
    """O Apps Script devolve chaves com capitalização variável"""
    return {str(k).lower(): v for k, v in item.items()}


def _texto(valor: Any) -> str:
    return "" if valor is None else str(valor).strip()


class ClienteApi:
    """
    Acesso às fontes remotas.

    Leituras aceitam strict: se False, falhas são registradas em log e viram
    valor vazio; se True, levantam ErroApi.
    Mutações retornam bool. Por padrão (verificar_mutacoes=False) qualquer
    resposta sem exceção de rede é tratada como sucesso.
    """

    def __init__(
        self,
        csv_url: Optional[str] = None,
        apps_script_url: Optional[str] = None,
        timeout: Optional[float] = None,
        verificar_mutacoes: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ):
        self.csv_url = csv_url or settings.csv_url
        self.apps_script_url = apps_script_url or settings.apps_script_url
        self.timeout = timeout if timeout is not None else settings.timeout_requisicao_segundos
        self.verificar_mutacoes = (
            verificar_mutacoes if verificar_mutacoes is not None else settings.verificar_mutacoes
        )
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # Infra HTTP
    # ------------------------------------------------------------------

    @staticmethod
    def _cache_buster() -> int:
        return int(time.time() * 1000)

    def _get(self, url: str, params: Dict[str, Any]) -> requests.Response:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ErroApi(f"Sem conexão com {url}: {e}") from e
        if resp.status_code // 100 != 2:
            raise ErroApi(f"Erro HTTP {resp.status_code} em {url}", status_code=resp.status_code)
        return resp

    def _get_action(self, action: str, **params) -> List[Any]:
        """GET ?action=... e retorna json['data'] (lista)"""
        query = {"action": action, **params, "t": self._cache_buster()}
        resp = self._get(self.apps_script_url, query)
        try:
            payload = resp.json()
        except ValueError as e:
            raise ErroApi(f"Resposta inválida para {action}: {e}", status_code=resp.status_code) from e

        if not isinstance(payload, dict) or not payload.get("success") or not isinstance(payload.get("data"), list):
            raise ErroApi(f"Resposta sem dados para {action}", status_code=resp.status_code)
        return payload["data"]

    def _post(self, action: str, payload: Dict[str, Any]) -> bool:
        """POST {action, ...payload} como text/plain (formato aceito pelo Apps Script)"""
        body = json.dumps({"action": action, **payload})
        try:
            resp = self.session.post(
                self.apps_script_url,
                data=body.encode("utf-8"),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Erro no POST {action}: {e}")
            return False

        if not self.verificar_mutacoes:
            return True

        if resp.status_code // 100 != 2:
            logger.error(f"POST {action} retornou HTTP {resp.status_code}")
            return False
        try:
            resultado = resp.json()
        except ValueError:
            logger.error(f"POST {action} sem JSON de confirmação")
            return False
        if not isinstance(resultado, dict) or not resultado.get("success"):
            logger.error(f"POST {action} não confirmado: {str(resultado)[:200]}")
            return False
        return True

    # ------------------------------------------------------------------
    # Pendências (CSV)
    # ------------------------------------------------------------------

    def fetch_pendencias_csv(self) -> str:
        resp = self._get(self.csv_url, {"t": self._cache_buster()})
        resp.encoding = resp.encoding or "utf-8"
        return resp.text

    def fetch_pendencias(self, hoje: Optional[date] = None, strict: bool = False) -> List[Pendencia]:
        try:
            texto = self.fetch_pendencias_csv()
            pendencias, _issues = parse_pendencias_csv(texto, hoje=hoje)
            return pendencias
        except Exception as e:
            if strict:
                raise
            logger.error(f"Falha ao carregar pendências: {e}")
            return []

    # ------------------------------------------------------------------
    # Notas e processos em aberto
    # ------------------------------------------------------------------

    def fetch_notes(self, cte: Optional[str] = None, strict: bool = False) -> List[Note]:
        params = {"cte": cte} if cte else {}
        try:
            dados = self._get_action("getNotes", **params)
        except ErroApi as e:
            if strict:
                raise
            logger.error(f"Falha ao carregar notas: {e}")
            return []

        notas = []
        for item in dados:
            if not isinstance(item, dict):
                continue
            n = _chaves_minusculas(item)
            notas.append(Note(
                id=_texto(n.get("id")),
                cte=_texto(n.get("cte")),
                serie=_texto(n.get("serie")),
                codigo=_texto(n.get("codigo")),
                data=_texto(n.get("data")),
                autor=_texto(n.get("autor")),
                texto=_texto(n.get("texto")),
                link_imagem=_texto(n.get("linkimagem")) or None,
            ))
        return notas

    def fetch_open_processes(self, strict: bool = False) -> List[str]:
        try:
            dados = self._get_action("getProcessStatus")
        except ErroApi as e:
            if strict:
                raise
            logger.error(f"Falha ao carregar processos em aberto: {e}")
            return []
        return [_texto(cte) for cte in dados if _texto(cte)]

    def toggle_process_status(self, cte: str, status: bool, user: str) -> bool:
        return self._post("toggleProcess", {"cte": cte, "status": status, "user": user})

    def send_note(self, note: Note, imagem_base64: Optional[str] = None) -> bool:
        return self._post("addNote", {
            "cte": note.cte.strip(),
            "serie": note.serie.strip(),
            "codigo": note.codigo,
            "autor": note.autor,
            "texto": note.texto,
            "image": imagem_base64 or "",
        })

    # ------------------------------------------------------------------
    # Usuários
    # ------------------------------------------------------------------

    def fetch_users(self, strict: bool = False) -> List[UsuarioRemoto]:
        try:
            dados = self._get_action("getUsers")
        except ErroApi as e:
            if strict:
                raise
            logger.error(f"Falha ao carregar usuários: {e}")
            return []

        usuarios = []
        for item in dados:
            if not isinstance(item, dict):
                continue
            u = _chaves_minusculas(item)
            username = _texto(u.get("username"))
            # Linha de cabeçalho que às vezes vem como dado
            if username.lower() in ("username", "user"):
                continue
            usuarios.append(UsuarioRemoto(
                username=username,
                password=_texto(u.get("password")),
                role=_texto(u.get("role")) or UserRole.UNIDADE.value,
                linked_origin_unit=_texto(u.get("linkedoriginunit")),
                linked_dest_unit=_texto(u.get("linkeddestunit")),
                permissions=normalizar_permissoes(u.get("permissions")),
            ))
        return usuarios

    def save_user(self, usuario: UsuarioRemoto) -> bool:
        return self._post("saveUser", {
            "username": usuario.username,
            "password": usuario.password,
            "role": usuario.role,
            "linkedOriginUnit": usuario.linked_origin_unit,
            "linkedDestUnit": usuario.linked_dest_unit,
            "permissions": json.dumps(sorted(usuario.permissions)),
        })

    def delete_user(self, username: str) -> bool:
        return self._post("deleteUser", {"username": username})

    def change_password(self, username: str, nova_senha: str) -> bool:
        """Relê a linha do usuário e regrava com a nova senha"""
        try:
            usuarios = self.fetch_users(strict=True)
        except ErroApi as e:
            logger.error(f"Falha ao alterar senha de {username}: {e}")
            return False

        atual = next((u for u in usuarios if u.username.lower() == username.lower()), None)
        if atual is None:
            return False
        return self.save_user(atual.model_copy(update={"password": nova_senha}))

    # ------------------------------------------------------------------
    # Perfis
    # ------------------------------------------------------------------

    def fetch_profiles(self, strict: bool = False) -> List[Profile]:
        try:
            dados = self._get_action("getProfiles")
        except ErroApi as e:
            if strict:
                raise
            logger.error(f"Falha ao carregar perfis: {e}")
            return []

        perfis = []
        for item in dados:
            if not isinstance(item, dict):
                continue
            p = _chaves_minusculas(item)
            nome = _texto(p.get("name")) or _texto(p.get("profilename")) or "Sem Nome"
            perfil_id = _texto(p.get("id")) or None
            # Linha de cabeçalho que às vezes vem como dado
            if nome in ("Name", "name") or perfil_id == "ID":
                continue
            perfis.append(Profile(
                id=perfil_id,
                name=nome,
                description=_texto(p.get("description")),
                permissions=normalizar_permissoes(p.get("permissions")),
            ))
        return perfis

    def save_profile(self, perfil: Profile) -> bool:
        return self._post("saveProfile", {
            "id": perfil.id,
            "name": perfil.name,
            "profileName": perfil.name,
            "description": perfil.description,
            "permissions": json.dumps(sorted(perfil.permissions)),
        })

    def delete_profile(self, name: str) -> bool:
        return self._post("deleteProfile", {"name": name})

    # ------------------------------------------------------------------
    # Conectividade
    # ------------------------------------------------------------------

    def testar_conexao(self) -> Dict[str, Dict[str, Any]]:
        """Diagnóstico das duas fontes (Apps Script e CSV)"""
        resultado = {
            "script": {"success": False, "message": ""},
            "csv": {"success": False, "message": ""},
        }

        try:
            resp = self.session.get(
                self.apps_script_url,
                params={"action": "ping", "t": self._cache_buster()},
                timeout=self.timeout,
            )
            if resp.ok:
                try:
                    dados = resp.json()
                except ValueError:
                    dados = None
                online = isinstance(dados, dict) and dados.get("status") == "online"
                resultado["script"] = (
                    {"success": True, "message": "Online"} if online
                    else {"success": False, "message": "Erro Lógico"}
                )
            else:
                resultado["script"] = {"success": False, "message": "Erro HTTP"}
        except requests.RequestException:
            resultado["script"] = {"success": False, "message": "Sem conexão"}

        try:
            resp = self.session.get(self.csv_url, params={"t": self._cache_buster()}, timeout=self.timeout)
            resultado["csv"] = (
                {"success": True, "message": "Leitura OK"} if resp.ok
                else {"success": False, "message": "Erro HTTP"}
            )
        except requests.RequestException:
            resultado["csv"] = {"success": False, "message": "Sem conexão"}

        return resultado

    def verificar_conexao(self) -> bool:
        try:
            resp = self.session.get(self.apps_script_url, params={"action": "ping"}, timeout=self.timeout)
            return resp.ok
        except requests.RequestException:
            return False
