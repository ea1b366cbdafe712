"""
Rotas FastAPI de diagnóstico de conexão com as fontes remotas
"""

from fastapi import APIRouter, Depends

from app.api.dependencias import get_contexto
from app.services.sessao import ContextoSessao

router = APIRouter(prefix="/conexao", tags=["conexao"])


@router.get("/")
def testar_conexao(contexto: ContextoSessao = Depends(get_contexto)):
    """Testa Apps Script (ping) e leitura do CSV"""
    return contexto.cliente.testar_conexao()


@router.get("/status")
def status_conexao(contexto: ContextoSessao = Depends(get_contexto)):
    return {"online": contexto.cliente.verificar_conexao()}
