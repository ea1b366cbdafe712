"""
Rotas FastAPI para pendências (lista, detalhe, notas, processos e exportação)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from app.api.dependencias import get_contexto, get_usuario
from app.api.schemas import (
    AtualizacaoResponse,
    NotaCreate,
    PendenciaDetalhe,
    PendenciasResponse,
    ProcessoToggle,
)
from app.core.models import (
    FiltroNota,
    FiltroPendencias,
    ModoVisao,
    Note,
    StatusPendencia,
    User,
)
from app.core.permissoes import exigir_permissao
from app.services.exportacao import exportar_pendencias_xlsx, nome_arquivo_exportacao
from app.services.pendencias.filtros import unidades_disponiveis
from app.services.pendencias.ordenacao import CAMPO_DATA_LIMITE, OrdenacaoConfig, alternar_ordenacao
from app.services.pendencias.visoes import PERMISSOES_LEITURA, Visao, ajustar_filtro_visao, montar_lista
from app.services.sessao import ContextoSessao

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pendencias", tags=["pendencias"])


def _filtro_da_query(
    busca: str = "",
    status: Optional[List[StatusPendencia]] = Query(None),
    pagamento: Optional[List[str]] = Query(None),
    unidade: Optional[str] = None,
    filtro_nota: FiltroNota = FiltroNota.ALL,
    modo_visao: ModoVisao = ModoVisao.DESTINATION,
) -> FiltroPendencias:
    return FiltroPendencias(
        busca=busca,
        status=status,
        pagamentos=pagamento,
        unidade=unidade,
        filtro_nota=filtro_nota,
        modo_visao=modo_visao,
    )


def _ordenacao_da_query(
    ordenar_por: str = CAMPO_DATA_LIMITE,
    direcao: str = Query("asc", pattern="^(asc|desc)$"),
    alternar: Optional[str] = None,
) -> OrdenacaoConfig:
    """
    Ordenação atual (ordenar_por/direcao) e, opcionalmente, o campo clicado.
    Com alternar, mesmo campo inverte a direção e campo novo começa em asc.
    """
    atual = OrdenacaoConfig(chave=ordenar_por, direcao=direcao)
    if alternar:
        return alternar_ordenacao(atual, alternar)
    return atual


# ============================================================================
# LISTAGEM
# ============================================================================

@router.get("/", response_model=PendenciasResponse)
def listar_pendencias(
    visao: Visao = Visao.LIST,
    filtro: FiltroPendencias = Depends(_filtro_da_query),
    ordenacao: OrdenacaoConfig = Depends(_ordenacao_da_query),
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """
    Lista pendências visíveis ao usuário.

    - visao=list: lista geral (UNIDADE vê apenas a própria unidade)
    - visao=critical: somente vencidas
    - visao=open_process: processos em aberto de todas as unidades

    A resposta traz ordenar_por/direcao efetivos; o cliente os devolve junto
    com alternar=<campo> para alternar a ordenação.
    """
    estado = contexto.estado
    try:
        pendencias = montar_lista(estado.pendencias, user, visao, filtro, ordenacao)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    filtro_efetivo = ajustar_filtro_visao(visao, filtro)
    return PendenciasResponse(
        total=len(pendencias),
        pendencias=pendencias,
        unidades=unidades_disponiveis(estado.pendencias, user, filtro_efetivo.forcar_todas_unidades),
        ordenar_por=ordenacao.chave,
        direcao=ordenacao.direcao,
        atualizado_em=estado.atualizado_em,
    )


@router.get("/exportar")
def exportar_pendencias(
    visao: Visao = Visao.LIST,
    filtro: FiltroPendencias = Depends(_filtro_da_query),
    ordenacao: OrdenacaoConfig = Depends(_ordenacao_da_query),
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Exporta a lista filtrada para Excel (.xlsx)"""
    exigir_permissao(user, "export_xls")

    estado = contexto.estado
    try:
        pendencias = montar_lista(estado.pendencias, user, visao, filtro, ordenacao)
        conteudo = exportar_pendencias_xlsx(pendencias, estado.notas)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=conteudo,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{nome_arquivo_exportacao()}"'},
    )


@router.post("/atualizar", response_model=AtualizacaoResponse)
def atualizar_agora(
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Atualização manual; falhas mantêm os dados anteriores"""
    atualizado = contexto.atualizar_agora()
    estado = contexto.estado
    return AtualizacaoResponse(
        atualizado=atualizado,
        atualizado_em=estado.atualizado_em,
        total_pendencias=len(estado.pendencias),
    )


# ============================================================================
# DETALHE, NOTAS E PROCESSO
# ============================================================================

@router.get("/{cte}", response_model=PendenciaDetalhe)
def obter_pendencia(
    cte: str,
    serie: Optional[str] = None,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Pendência com o histórico de notas (mesmo CTE e série)"""
    exigir_permissao(user, *PERMISSOES_LEITURA)

    cte = cte.strip()
    pendencia = next(
        (
            p for p in contexto.estado.pendencias
            if p.cte == cte and (serie is None or p.serie == serie.strip())
        ),
        None,
    )
    if pendencia is None:
        raise HTTPException(status_code=404, detail="Pendência não encontrada")

    notas = [
        n for n in contexto.cliente.fetch_notes(cte)
        if n.cte.strip() == pendencia.cte and n.serie.strip() == pendencia.serie
    ]
    return PendenciaDetalhe(pendencia=pendencia, notas=notas)


@router.post("/{cte}/notas", status_code=201)
def adicionar_nota(
    cte: str,
    dados: NotaCreate,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Adiciona justificativa/nota (anexo exige upload_image)"""
    exigir_permissao(user, "add_notes")
    if dados.imagem_base64:
        exigir_permissao(user, "upload_image")

    if not dados.texto.strip():
        raise HTTPException(status_code=400, detail="Texto da nota é obrigatório")

    pendencia = next(
        (p for p in contexto.estado.pendencias if p.cte == cte.strip() and p.serie == dados.serie.strip()),
        None,
    )
    nota = Note(
        cte=cte.strip(),
        serie=dados.serie.strip(),
        codigo=pendencia.codigo if pendencia else "",
        autor=user.username,
        texto=dados.texto.strip(),
    )
    if not contexto.cliente.send_note(nota, dados.imagem_base64):
        raise HTTPException(status_code=502, detail="Erro ao salvar nota")

    contexto.atualizacao.atualizar()
    return {"success": True}


@router.post("/{cte}/processo")
def alternar_processo(
    cte: str,
    dados: ProcessoToggle,
    user: User = Depends(get_usuario),
    contexto: ContextoSessao = Depends(get_contexto),
):
    """Marca/desmarca processo em aberto (mercadoria em buscas)"""
    exigir_permissao(user, "manage_open_process")

    if not contexto.cliente.toggle_process_status(cte.strip(), dados.aberto, user.username):
        raise HTTPException(status_code=502, detail="Erro ao alterar status do processo.")

    contexto.atualizacao.atualizar()
    return {"cte": cte.strip(), "aberto": dados.aberto}
