"""
Autenticação contra a aba de usuários e resolução de permissões por perfil
"""

import logging
from typing import FrozenSet, List, Optional

from app.core.erros import CodigoErroAuth, ErroAutenticacao
from app.core.models import Profile, User, UserRole
from app.core.permissoes import TODAS_PERMISSOES
from app.services.integracao.apps_script import ClienteApi, UsuarioRemoto

logger = logging.getLogger(__name__)


def resolver_permissoes(usuario: UsuarioRemoto, perfis: List[Profile]) -> FrozenSet[str]:
    """
    ADMIN recebe todas as permissões.
    Demais: permissões do perfil com o mesmo nome do role (sem diferenciar
    maiúsculas); sem perfil correspondente, usa as permissões gravadas no usuário.
    """
    if usuario.user_role == UserRole.ADMIN:
        return TODAS_PERMISSOES

    nome_role = usuario.role.strip().lower()
    perfil: Optional[Profile] = next(
        (p for p in perfis if p.name.strip().lower() == nome_role),
        None,
    )
    if perfil is not None:
        return perfil.permissions
    return usuario.permissions


def authenticate_user(cliente: ClienteApi, username: str, password: str) -> User:
    """
    Valida usuário e senha e devolve o usuário de sessão com permissões efetivas.

    Raises:
        ErroAutenticacao: USER_NOT_FOUND, WRONG_PASSWORD ou CONNECTION_ERROR
    """
    nome = (username or "").strip().lower()

    try:
        usuarios = cliente.fetch_users(strict=True)
        perfis = cliente.fetch_profiles(strict=True)
    except Exception as e:
        logger.error(f"Falha de conexão no login de '{nome}': {e}")
        raise ErroAutenticacao(CodigoErroAuth.CONNECTION_ERROR) from e

    encontrado = next((u for u in usuarios if u.username.strip().lower() == nome), None)
    if encontrado is None:
        logger.info(f"Login recusado: usuário '{nome}' não encontrado")
        raise ErroAutenticacao(CodigoErroAuth.USER_NOT_FOUND)

    if encontrado.password.strip() != password:
        logger.info(f"Login recusado: senha incorreta para '{nome}'")
        raise ErroAutenticacao(CodigoErroAuth.WRONG_PASSWORD)

    permissoes = resolver_permissoes(encontrado, perfis)
    logger.info(f"Login de '{encontrado.username}' ({encontrado.role}) com {len(permissoes)} permissões")
    return encontrado.para_sessao(permissoes)
