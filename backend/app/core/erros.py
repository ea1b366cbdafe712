"""
Exceções de domínio
"""

from enum import Enum


class CodigoErroAuth(str, Enum):
    USER_NOT_FOUND = "USER_NOT_FOUND"
    WRONG_PASSWORD = "WRONG_PASSWORD"
    CONNECTION_ERROR = "CONNECTION_ERROR"


class ErroAutenticacao(Exception):
    """Falha de login com código padronizado"""

    def __init__(self, codigo: CodigoErroAuth):
        super().__init__(codigo.value)
        self.codigo = codigo


class ErroApi(Exception):
    """Falha de comunicação com o Apps Script ou com a planilha CSV"""

    def __init__(self, mensagem: str, status_code: int | None = None):
        super().__init__(mensagem)
        self.status_code = status_code


class ErroPermissao(Exception):
    """Usuário sem a permissão exigida"""

    def __init__(self, permissao: str):
        super().__init__(f"Permissão necessária: {permissao}")
        self.permissao = permissao


class ErroSessao(Exception):
    """Nenhum usuário autenticado"""
    pass
