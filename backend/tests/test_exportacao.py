"""
Testes da exportação para Excel
"""

import io
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
import pytest

from app.services.exportacao import (
    COLUNAS_EXPORTACAO,
    exportar_pendencias_xlsx,
    montar_tabela_exportacao,
    nome_arquivo_exportacao,
)


def test_tabela_exportacao(pendencias_base, notas_base):
    df = montar_tabela_exportacao(pendencias_base, notas_base)

    assert list(df.columns) == COLUNAS_EXPORTACAO
    assert len(df) == 4

    linhas = df.set_index("CTE")
    assert linhas.loc["100", "STATUS"] == "CRÍTICO"
    assert linhas.loc["100", "PROCESSO ABERTO?"] == "NÃO"
    assert linhas.loc["300", "PROCESSO ABERTO?"] == "SIM"
    assert linhas.loc["400", "VALOR"] == "75,50"
    assert linhas.loc["200", "JUSTIFICATIVA / ÚLTIMA NOTA"] == "[09/01/2025] op.sp: Reagendado"
    assert linhas.loc["400", "JUSTIFICATIVA / ÚLTIMA NOTA"] == "[07/01/2025] admin: Em buscas"


def test_sem_notas_usa_justificativa_da_planilha(pendencias_base):
    pendencias = [pendencias_base[0].model_copy(update={"justificativa": "Aguardando cliente"})]
    df = montar_tabela_exportacao(pendencias, [])
    assert df.iloc[0]["JUSTIFICATIVA / ÚLTIMA NOTA"] == "Aguardando cliente"


def test_arquivo_xlsx_pode_ser_lido(pendencias_base, notas_base):
    conteudo = exportar_pendencias_xlsx(pendencias_base, notas_base)
    df = pd.read_excel(io.BytesIO(conteudo), dtype=str)

    assert list(df.columns) == COLUNAS_EXPORTACAO
    assert list(df["CTE"]) == ["100", "200", "300", "400"]


def test_exportacao_vazia():
    with pytest.raises(ValueError, match="Não há dados"):
        exportar_pendencias_xlsx([], [])


def test_nome_arquivo():
    assert nome_arquivo_exportacao(datetime(2025, 1, 10)) == "Relatorio_Pendencias_10-01-2025.xlsx"
