"""
Exportação da lista filtrada de pendências para Excel
"""

import io
import logging
from datetime import datetime
from typing import Dict, List, Optional

import pandas as pd

from app.core.models import Note, Pendencia, StatusPendencia

logger = logging.getLogger(__name__)

COLUNAS_EXPORTACAO = [
    "PROCESSO ABERTO?",
    "STATUS",
    "PAGAMENTO",
    "CTE",
    "SÉRIE",
    "CÓDIGO",
    "EMISSÃO",
    "DATA LIMITE",
    "ORIGEM (COLETA)",
    "DESTINO (ENTREGA)",
    "DESTINATÁRIO",
    "VALOR",
    "JUSTIFICATIVA / ÚLTIMA NOTA",
]


def _data_nota(nota: Note) -> datetime:
    try:
        return datetime.fromisoformat(str(nota.data).replace('Z', '+00:00')).replace(tzinfo=None)
    except ValueError:
        return datetime.min


def _ultima_nota_por_cte(notas: List[Note]) -> Dict[str, Note]:
    ultimas: Dict[str, Note] = {}
    for nota in notas:
        cte = str(nota.cte).strip()
        atual = ultimas.get(cte)
        if atual is None or _data_nota(nota) > _data_nota(atual):
            ultimas[cte] = nota
    return ultimas


def _observacao(p: Pendencia, ultima: Optional[Note]) -> str:
    if ultima is None:
        return p.justificativa or ''
    data = _data_nota(ultima)
    data_fmt = data.strftime('%d/%m/%Y') if data != datetime.min else ultima.data
    return f"[{data_fmt}] {ultima.autor}: {ultima.texto}"


def montar_tabela_exportacao(pendencias: List[Pendencia], notas: List[Note]) -> pd.DataFrame:
    """Monta o DataFrame com as colunas do relatório de pendências."""
    ultimas = _ultima_nota_por_cte(notas)

    linhas = []
    for p in pendencias:
        status = "CRÍTICO" if p.calculated_status == StatusPendencia.OVERDUE else p.calculated_status.value
        linhas.append([
            "SIM" if p.has_open_process else "NÃO",
            status,
            p.frete_pago,
            p.cte,
            p.serie,
            p.codigo,
            p.data_emissao,
            p.data_limite_baixa,
            p.coleta,
            p.entrega,
            p.destinatario,
            f"{p.valor_cte:.2f}".replace('.', ','),
            _observacao(p, ultimas.get(p.cte.strip())),
        ])

    return pd.DataFrame(linhas, columns=COLUNAS_EXPORTACAO)


def exportar_pendencias_xlsx(pendencias: List[Pendencia], notas: List[Note]) -> bytes:
    """
    Gera o arquivo .xlsx do relatório.

    Raises:
        ValueError: se não houver pendências para exportar
    """
    if not pendencias:
        raise ValueError("Não há dados filtrados para exportar.")

    df = montar_tabela_exportacao(pendencias, notas)

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Pendencias")

    logger.info(f"Relatório exportado: {len(df)} linhas")
    return buffer.getvalue()


def nome_arquivo_exportacao(hoje: Optional[datetime] = None) -> str:
    hoje = hoje or datetime.now()
    return f"Relatorio_Pendencias_{hoje.strftime('%d-%m-%Y')}.xlsx"
