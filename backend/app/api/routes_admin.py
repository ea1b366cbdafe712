"""
Rotas FastAPI de administração: usuários e perfis
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencias import get_contexto, get_usuario
from app.api.schemas import PerfilSave, UsuarioResumo, UsuarioSave
from app.core.models import Profile, User
from app.core.permissoes import PERMISSIONS_LIST, exigir_permissao
from app.services.integracao.apps_script import UsuarioRemoto
from app.services.sessao import ContextoSessao

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/permissoes")
def listar_permissoes(user: User = Depends(get_usuario)):
    """Catálogo de permissões disponíveis para perfis e usuários"""
    exigir_permissao(user, "access_settings", "manage_users", "manage_profiles")
    return PERMISSIONS_LIST


# ============================================================================
# USUÁRIOS
# ============================================================================

@router.get("/usuarios", response_model=List[UsuarioResumo])
def listar_usuarios(
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    exigir_permissao(user, "manage_users")
    return [
        UsuarioResumo(
            username=u.username,
            role=u.role,
            linked_origin_unit=u.linked_origin_unit,
            linked_dest_unit=u.linked_dest_unit,
            permissions=sorted(u.permissions),
        )
        for u in contexto.cliente.fetch_users()
    ]


@router.post("/usuarios", status_code=201)
def salvar_usuario(
    dados: UsuarioSave,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    exigir_permissao(user, "manage_users")

    if not dados.username.strip():
        raise HTTPException(status_code=400, detail="Nome de usuário é obrigatório")

    usuario = UsuarioRemoto(
        username=dados.username.strip(),
        password=dados.password,
        role=dados.role.strip().upper() or "UNIDADE",
        linked_origin_unit=dados.linked_origin_unit.strip().upper(),
        linked_dest_unit=dados.linked_dest_unit.strip().upper(),
        permissions=frozenset(dados.permissions),
    )
    if not contexto.cliente.save_user(usuario):
        raise HTTPException(status_code=502, detail="Erro ao salvar usuário")

    logger.info(f"Usuário '{usuario.username}' salvo por '{user.username}'")
    return {"success": True}


@router.delete("/usuarios/{username}", status_code=204)
def excluir_usuario(
    username: str,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    exigir_permissao(user, "manage_users")

    if username.strip().lower() == user.username.lower():
        raise HTTPException(status_code=400, detail="Não é possível excluir o próprio usuário")
    if not contexto.cliente.delete_user(username):
        raise HTTPException(status_code=502, detail="Erro ao excluir usuário")

    logger.info(f"Usuário '{username}' excluído por '{user.username}'")


# ============================================================================
# PERFIS
# ============================================================================

@router.get("/perfis", response_model=List[Profile])
def listar_perfis(
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    exigir_permissao(user, "manage_profiles", "manage_users")
    return contexto.cliente.fetch_profiles()


@router.post("/perfis", status_code=201)
def salvar_perfil(
    dados: PerfilSave,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    exigir_permissao(user, "manage_profiles")

    if not dados.name.strip():
        raise HTTPException(status_code=400, detail="Nome do perfil é obrigatório")

    perfil = Profile(
        id=dados.id,
        name=dados.name.strip(),
        description=dados.description,
        permissions=frozenset(dados.permissions),
    )
    if not contexto.cliente.save_profile(perfil):
        raise HTTPException(status_code=502, detail="Erro ao salvar perfil")

    logger.info(f"Perfil '{perfil.name}' salvo por '{user.username}'")
    return {"success": True}


@router.delete("/perfis/{name}", status_code=204)
def excluir_perfil(
    name: str,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    exigir_permissao(user, "manage_profiles")

    if not contexto.cliente.delete_profile(name):
        raise HTTPException(status_code=502, detail="Erro ao excluir perfil")
