"""
Indicadores do painel gerencial
"""

from typing import Iterable, List, Optional

from app.core.models import (
    DashboardStats,
    Pendencia,
    RankingUnidade,
    ResumoValor,
    StatusPendencia,
)

PAGAMENTOS_PADRAO = ["CIF", "FOB", "FATURAR_REMETENTE", "FATURAR_DEST"]

TOP_UNIDADES = 10


def _bucket_pagamento(frete_pago: str) -> str:
    """Agrupa o tipo de frete para o gráfico de pagamentos"""
    tipo = frete_pago or ''
    if 'CIF' in tipo:
        return 'CIF'
    if 'FOB' in tipo:
        return 'FOB'
    if 'REMETENTE' in tipo:
        return 'REM'
    if 'DEST' in tipo:
        return 'DEST'
    return 'OUTROS'


def filtrar_para_painel(
    pendencias: List[Pendencia],
    unidade: Optional[str] = None,
    status: Optional[Iterable[StatusPendencia]] = None,
    pagamentos: Optional[Iterable[str]] = None
) -> List[Pendencia]:
    """Filtros do painel: unidade de destino, status ativos e pagamentos ativos."""
    status_ativos = set(status) if status is not None else set(StatusPendencia)
    pagamentos_ativos = list(pagamentos) if pagamentos is not None else PAGAMENTOS_PADRAO

    res = []
    for p in pendencias:
        if unidade and unidade != "ALL" and p.entrega != unidade:
            continue
        if p.calculated_status not in status_ativos:
            continue
        pagamento = (p.frete_pago or '').upper()
        if not any(f in pagamento for f in pagamentos_ativos):
            continue
        res.append(p)
    return res


def calcular_estatisticas(
    pendencias: List[Pendencia],
    unidade: Optional[str] = None,
    status: Optional[Iterable[StatusPendencia]] = None,
    pagamentos: Optional[Iterable[str]] = None
) -> DashboardStats:
    """
    Calcula contagens e valores por status, unidade de destino e tipo de pagamento.
    """
    filtradas = filtrar_para_painel(pendencias, unidade, status, pagamentos)

    stats = DashboardStats(
        total_count=len(filtradas),
        total_value=sum(p.valor_cte or 0 for p in filtradas),
        by_status={s.value: ResumoValor() for s in StatusPendencia},
    )

    for p in filtradas:
        valor = p.valor_cte or 0

        resumo_status = stats.by_status[p.calculated_status.value]
        resumo_status.count += 1
        resumo_status.value += valor

        if p.entrega:
            resumo_unidade = stats.by_unit.setdefault(p.entrega, ResumoValor())
            resumo_unidade.count += 1
            resumo_unidade.value += valor

        resumo_pagamento = stats.by_payment.setdefault(_bucket_pagamento(p.frete_pago), ResumoValor())
        resumo_pagamento.count += 1
        resumo_pagamento.value += valor

    ranking = [
        RankingUnidade(name=nome, count=r.count, value=r.value)
        for nome, r in stats.by_unit.items()
    ]
    stats.top_unidades_volume = sorted(ranking, key=lambda r: r.count, reverse=True)[:TOP_UNIDADES]
    stats.top_unidades_valor = sorted(ranking, key=lambda r: r.value, reverse=True)[:TOP_UNIDADES]

    return stats
