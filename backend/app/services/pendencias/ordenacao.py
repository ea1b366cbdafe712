"""
Ordenação da lista de pendências
"""

from typing import Any, List, Literal

from pydantic import BaseModel

from app.core.datas import chave_ordenacao_data
from app.core.models import Pendencia

Direcao = Literal["asc", "desc"]

CAMPO_DATA_LIMITE = "data_limite_baixa"


class OrdenacaoConfig(BaseModel):
    chave: str = CAMPO_DATA_LIMITE
    direcao: Direcao = "asc"


def _valor_ordenacao(p: Pendencia, chave: str) -> Any:
    valor = getattr(p, chave)
    if chave == CAMPO_DATA_LIMITE:
        # Comparação cronológica, não lexicográfica
        return chave_ordenacao_data(valor)
    if hasattr(valor, "value"):
        return valor.value
    return valor


def ordenar_pendencias(
    pendencias: List[Pendencia],
    chave: str = CAMPO_DATA_LIMITE,
    direcao: Direcao = "asc"
) -> List[Pendencia]:
    """
    Ordenação estável por um único campo.
    Empates mantêm a ordem de entrada também em ordem decrescente.
    """
    if chave not in Pendencia.model_fields:
        raise ValueError(f"Campo de ordenação inválido: {chave}")

    return sorted(
        pendencias,
        key=lambda p: _valor_ordenacao(p, chave),
        reverse=(direcao == "desc"),
    )


def alternar_ordenacao(atual: OrdenacaoConfig, chave: str) -> OrdenacaoConfig:
    """Mesmo campo alterna asc/desc; campo novo começa em asc."""
    if atual.chave == chave and atual.direcao == "asc":
        return OrdenacaoConfig(chave=chave, direcao="desc")
    return OrdenacaoConfig(chave=chave, direcao="asc")
