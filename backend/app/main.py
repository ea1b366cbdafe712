"""
Painel de Pendências - CTEs com baixa pendente
API principal FastAPI
"""

import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.erros import ErroPermissao, ErroSessao
from app.db import SessionLocal, init_db
from app.api.routes_admin import router as admin_router
from app.api.routes_auth import router as auth_router
from app.api.routes_conexao import router as conexao_router
from app.api.routes_painel import router as painel_router
from app.api.routes_pendencias import router as pendencias_router
from app.services.armazenamento_local import ArmazenamentoLocal
from app.services.integracao.apps_script import ClienteApi
from app.services.sessao import ContextoSessao

logger = logging.getLogger(__name__)


def criar_contexto_padrao() -> ContextoSessao:
    return ContextoSessao(
        cliente=ClienteApi(),
        armazenamento=ArmazenamentoLocal(SessionLocal),
    )


def create_app(contexto: Optional[ContextoSessao] = None) -> FastAPI:
    app = FastAPI(
        title="Painel de Pendências",
        description="Controle de CTEs com baixa pendente por unidade",
        version="1.0.0",
        redirect_slashes=False  # Evita redirect 307 de /pendencias para /pendencias/
    )
    app.state.contexto = contexto or criar_contexto_padrao()

    # CORS - DEVE estar antes de include_router
    cors_origins_str = os.getenv("CORS_ORIGINS") or settings.cors_origins
    cors_origins = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
    logger.info(f"CORS origins list: {cors_origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(ErroPermissao)
    async def erro_permissao_handler(request: Request, exc: ErroPermissao):
        return JSONResponse(status_code=403, content={"detail": "Acesso Negado", "permissao": exc.permissao})

    @app.exception_handler(ErroSessao)
    async def erro_sessao_handler(request: Request, exc: ErroSessao):
        return JSONResponse(status_code=401, content={"detail": "Faça login para continuar"})

    # Inicializa armazenamento local e restaura sessão salva.
    # restaurar() faz a primeira atualização (requests bloqueante): fora do event loop
    @app.on_event("startup")
    async def on_startup():
        await run_in_threadpool(init_db)
        await run_in_threadpool(app.state.contexto.restaurar)

    @app.on_event("shutdown")
    async def on_shutdown():
        await run_in_threadpool(app.state.contexto.encerrar)

    # Rotas
    app.include_router(auth_router)
    app.include_router(pendencias_router)
    app.include_router(painel_router)
    app.include_router(admin_router)
    app.include_router(conexao_router)

    @app.get("/health")
    async def health_check():
        """Endpoint de saúde da API"""
        return {
            "status": "ok",
            "service": "Painel de Pendências",
            "version": "1.0.0"
        }

    @app.get("/")
    async def root():
        """Endpoint raiz"""
        return {
            "message": "Painel de Pendências - CTEs com baixa pendente",
            "docs": "/docs",
            "endpoints": {
                "auth": "/auth",
                "pendencias": "/pendencias",
                "dashboard": "/dashboard",
                "notificacoes": "/notificacoes",
                "admin": "/admin",
                "conexao": "/conexao",
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    # Desenvolvimento: python -m app.main (a partir de backend/)
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
