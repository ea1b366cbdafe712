"""
Rotas FastAPI de autenticação e sessão
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencias import get_contexto, get_usuario
from app.api.schemas import LoginRequest, SenhaUpdate
from app.core.erros import CodigoErroAuth, ErroAutenticacao
from app.core.models import User
from app.services.sessao import ContextoSessao

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

STATUS_ERRO_AUTH = {
    CodigoErroAuth.USER_NOT_FOUND: 401,
    CodigoErroAuth.WRONG_PASSWORD: 401,
    CodigoErroAuth.CONNECTION_ERROR: 503,
}


@router.post("/login", response_model=User)
def login(dados: LoginRequest, contexto: ContextoSessao = Depends(get_contexto)):
    """
    Autentica na aba de usuários.
    Em caso de falha, 'detail' traz o código: USER_NOT_FOUND, WRONG_PASSWORD ou CONNECTION_ERROR.
    """
    try:
        return contexto.login(dados.username, dados.password)
    except ErroAutenticacao as e:
        raise HTTPException(status_code=STATUS_ERRO_AUTH[e.codigo], detail=e.codigo.value)


@router.post("/logout", status_code=204)
def logout(contexto: ContextoSessao = Depends(get_contexto)):
    contexto.logout()


@router.get("/me", response_model=User)
def usuario_atual(user: User = Depends(get_usuario)):
    return user


@router.post("/senha", status_code=204)
def alterar_senha(
    dados: SenhaUpdate,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Altera a senha do próprio usuário"""
    if not contexto.cliente.change_password(user.username, dados.nova_senha):
        logger.error(f"Falha ao alterar senha de '{user.username}'")
        raise HTTPException(status_code=502, detail="Erro ao alterar senha")
