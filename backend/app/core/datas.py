"""
Utilitários de data compartilhados (planilha usa DD/MM/YYYY)
"""

import logging
import re
from datetime import date
from typing import Optional

from app.core.models import StatusPendencia

logger = logging.getLogger(__name__)

# Aceita "05/01/2025" e também "05/01/2025 14:30" (hora é ignorada)
_DATA_BR = re.compile(r'^\s*(\d{1,2})/(\d{1,2})/(\d{4})')


def parse_data_br(data_str: Optional[str]) -> Optional[date]:
    """
    Converte 'DD/MM/YYYY' em date.
    Retorna None para string vazia ou fora do formato (ex: '2025-01-05', '31/02/2025').
    """
    if not data_str:
        return None

    match = _DATA_BR.match(str(data_str))
    if not match:
        return None

    dia, mes, ano = (int(g) for g in match.groups())
    try:
        return date(ano, mes, dia)
    except ValueError:
        logger.debug(f"Data inexistente ignorada: {data_str}")
        return None


def calcular_status(data_limite: date, hoje: date) -> StatusPendencia:
    """
    Deriva a situação do prazo a partir da diferença em dias.

    < 0 -> OVERDUE, 0 -> PRIORITY, 1 -> TOMORROW, demais -> ON_TIME
    """
    diff_dias = (data_limite - hoje).days

    if diff_dias < 0:
        return StatusPendencia.OVERDUE
    if diff_dias == 0:
        return StatusPendencia.PRIORITY
    if diff_dias == 1:
        return StatusPendencia.TOMORROW
    return StatusPendencia.ON_TIME


def chave_ordenacao_data(data_str: Optional[str]) -> date:
    """Chave de ordenação cronológica; datas inválidas vão para o início."""
    return parse_data_br(data_str) or date.min
