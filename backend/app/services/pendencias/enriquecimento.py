"""
Enriquecimento das pendências com contagem de notas e processo em aberto
"""

import logging
from collections import Counter
from typing import Iterable, List

from app.core.models import Note, Pendencia

logger = logging.getLogger(__name__)


def _chave_cte(cte) -> str:
    return str(cte).strip()


def enriquecer_pendencias(
    pendencias: List[Pendencia],
    notas: List[Note],
    ctes_abertos: Iterable[str]
) -> List[Pendencia]:
    """
    Junta note_count e has_open_process em cada pendência.

    Comparação pelo CTE aparado (sensível a maiúsculas). CTEs duplicados
    recebem a mesma contagem. Retorna cópias; as entradas não são alteradas.
    """
    notas_por_cte = Counter(_chave_cte(n.cte) for n in notas)
    abertos = {_chave_cte(c) for c in ctes_abertos}

    enriquecidas = [
        p.model_copy(update={
            "note_count": notas_por_cte.get(_chave_cte(p.cte), 0),
            "has_open_process": _chave_cte(p.cte) in abertos,
        })
        for p in pendencias
    ]

    logger.debug(
        f"Enriquecimento: {len(enriquecidas)} pendências, {len(notas)} notas, "
        f"{len(abertos)} processos em aberto"
    )
    return enriquecidas
