"""
Modelos Pydantic para dados em memória
"""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusPendencia(str, Enum):
    """Situação do prazo de baixa, derivada da data limite"""
    OVERDUE = "OVERDUE"
    PRIORITY = "PRIORITY"
    TOMORROW = "TOMORROW"
    ON_TIME = "ON_TIME"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    UNIDADE = "UNIDADE"
    LEITOR = "LEITOR"
    CUSTOM = "CUSTOM"


class ModoVisao(str, Enum):
    """Perspectiva do usuário de unidade: destino (entrega) ou origem (coleta)"""
    DESTINATION = "DESTINATION"
    ORIGIN = "ORIGIN"


class FiltroNota(str, Enum):
    ALL = "ALL"
    WITH_NOTE = "WITH_NOTE"
    WITHOUT_NOTE = "WITHOUT_NOTE"


class Pendencia(BaseModel):
    """Pendência de baixa de um CTE"""
    id: str
    cte: str
    serie: str = ""
    codigo: str = ""
    data_emissao: str = ""
    prazo_para_baixa: int = 0
    data_limite_baixa: str = ""  # DD/MM/YYYY, como vem da planilha
    status: str = ""  # Status textual da planilha ("PENDENTE", "BAIXADO", ...)
    coleta: str = ""  # Unidade de origem
    entrega: str = ""  # Unidade de destino
    valor_cte: float = 0.0
    tx_entrega: float = 0.0
    volumes: int = 0
    peso: float = 0.0
    frete_pago: str = ""
    destinatario: str = ""
    justificativa: str = ""

    # Campos calculados
    calculated_status: StatusPendencia = StatusPendencia.ON_TIME
    note_count: int = 0
    has_open_process: bool = False


class Note(BaseModel):
    """Nota/justificativa vinculada a um CTE"""
    id: str = ""
    cte: str
    serie: str = ""
    codigo: str = ""
    data: str = ""
    autor: str = ""
    texto: str = ""
    link_imagem: Optional[str] = None


class User(BaseModel):
    """Usuário autenticado (sem senha)"""
    model_config = ConfigDict(frozen=True)

    username: str
    role: UserRole = UserRole.UNIDADE
    linked_origin_unit: str = ""
    linked_dest_unit: str = ""
    permissions: FrozenSet[str] = frozenset()


class Profile(BaseModel):
    """Perfil: conjunto nomeado de permissões"""
    id: Optional[str] = None
    name: str
    description: str = ""
    permissions: FrozenSet[str] = frozenset()


class FiltroPendencias(BaseModel):
    """Parâmetros de filtro escolhidos pelo usuário na lista"""
    busca: str = ""
    status: Optional[List[StatusPendencia]] = None  # None = todos
    pagamentos: Optional[List[str]] = None  # None = todos
    unidade: Optional[str] = None  # None ou "ALL" = todas
    filtro_nota: FiltroNota = FiltroNota.ALL
    modo_visao: ModoVisao = ModoVisao.DESTINATION
    forcar_todas_unidades: bool = False
    somente_processo_aberto: bool = False


class ResumoValor(BaseModel):
    count: int = 0
    value: float = 0.0


class RankingUnidade(BaseModel):
    name: str
    count: int = 0
    value: float = 0.0


class DashboardStats(BaseModel):
    """Indicadores do painel gerencial"""
    total_count: int = 0
    total_value: float = 0.0
    by_status: Dict[str, ResumoValor] = Field(default_factory=dict)
    by_unit: Dict[str, ResumoValor] = Field(default_factory=dict)
    by_payment: Dict[str, ResumoValor] = Field(default_factory=dict)
    top_unidades_volume: List[RankingUnidade] = Field(default_factory=list)
    top_unidades_valor: List[RankingUnidade] = Field(default_factory=list)


class TipoNotificacao(str, Enum):
    NEW_ISSUE = "NEW_ISSUE"
    NEW_NOTE = "NEW_NOTE"
    ALERT = "ALERT"
    PROCESS = "PROCESS"


class Notificacao(BaseModel):
    id: str
    type: TipoNotificacao
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    related_cte: Optional[str] = None
