"""
Catálogo de permissões e verificação de acesso
"""

import json
import logging
from typing import Any, FrozenSet, Optional

from app.core.erros import ErroPermissao
from app.core.models import User, UserRole

logger = logging.getLogger(__name__)


PERMISSIONS_LIST = [
    {"key": "view_all_pendencias", "label": "Visualizar Todas Pendências"},
    {"key": "view_unit_dest", "label": "Visualizar Apenas Destino (Unidade)"},
    {"key": "filter_payment", "label": "Filtrar por Pagamento"},
    {"key": "search_cte", "label": "Buscar por CTE/Série"},
    {"key": "add_notes", "label": "Adicionar Justificativas/Notas"},
    {"key": "upload_image", "label": "Upload de Imagens"},
    {"key": "export_xls", "label": "Exportar Excel (XLS)"},
    {"key": "view_dashboard", "label": "Acessar Dashboard Gerencial"},
    {"key": "manage_users", "label": "Gerenciar Usuários"},
    {"key": "manage_profiles", "label": "Gerenciar Perfis"},
    {"key": "access_settings", "label": "Acessar Configurações"},
    {"key": "view_critical", "label": "Visualizar Pendências Críticas (>10 dias)"},
    {"key": "receive_notifications", "label": "Receber Notificações"},
    {"key": "manage_open_process", "label": "Gerenciar Processos em Aberto (Marcação)"},
]

TODAS_PERMISSOES: FrozenSet[str] = frozenset(p["key"] for p in PERMISSIONS_LIST)


def normalizar_permissoes(raw: Any) -> FrozenSet[str]:
    """
    Converte o campo de permissões vindo da planilha em um conjunto canônico.

    Aceita string JSON ('["add_notes"]'), lista/tupla/set ou vazio.
    JSON malformado ou formato desconhecido resulta em conjunto vazio.
    """
    if raw is None or raw == "":
        return frozenset()

    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(str(p).strip() for p in raw if str(p).strip())

    if isinstance(raw, str):
        texto = raw.strip()
        if not texto.startswith('['):
            return frozenset()
        try:
            valores = json.loads(texto)
        except json.JSONDecodeError as e:
            logger.warning(f"Permissões malformadas ignoradas: {texto[:80]} ({e})")
            return frozenset()
        if not isinstance(valores, list):
            return frozenset()
        return frozenset(str(p).strip() for p in valores if str(p).strip())

    logger.warning(f"Tipo de permissões não suportado: {type(raw).__name__}")
    return frozenset()


def has_permission(user: Optional[User], permissao: str) -> bool:
    """ADMIN sempre passa; demais perfis dependem do conjunto de permissões."""
    if user is None:
        return False
    if user.role == UserRole.ADMIN:
        return True
    return permissao in user.permissions


def exigir_permissao(user: Optional[User], *permissoes: str) -> None:
    """Levanta ErroPermissao se o usuário não tiver nenhuma das permissões."""
    if any(has_permission(user, p) for p in permissoes):
        return
    raise ErroPermissao(" | ".join(permissoes))
