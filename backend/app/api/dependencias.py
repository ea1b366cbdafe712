"""
Dependências FastAPI compartilhadas pelas rotas
"""

from fastapi import Depends, HTTPException, Request

from app.core.models import User
from app.services.sessao import ContextoSessao


def get_contexto(request: Request) -> ContextoSessao:
    return request.app.state.contexto


def get_usuario(contexto: ContextoSessao = Depends(get_contexto)) -> User:
    """Usuário autenticado; 401 se não houver sessão"""
    if contexto.user is None:
        raise HTTPException(status_code=401, detail="Faça login para continuar")
    return contexto.user
