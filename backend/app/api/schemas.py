"""
Schemas Pydantic para a API do painel
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.models import Note, Pendencia


class LoginRequest(BaseModel):
    username: str
    password: str


class SenhaUpdate(BaseModel):
    nova_senha: str = Field(min_length=1)


class PendenciasResponse(BaseModel):
    """Lista filtrada e ordenada"""

    total: int
    pendencias: List[Pendencia]
    unidades: List[str] = []  # Opções do seletor de unidade
    ordenar_por: str
    direcao: str
    atualizado_em: Optional[datetime] = None


class PendenciaDetalhe(BaseModel):
    pendencia: Pendencia
    notas: List[Note]


class NotaCreate(BaseModel):
    serie: str = ""
    texto: str
    imagem_base64: Optional[str] = None  # data URL do anexo


class ProcessoToggle(BaseModel):
    aberto: bool


class NotificacoesLidasRequest(BaseModel):
    ids: List[str]


class UsuarioSave(BaseModel):
    """Criação/edição de usuário na planilha"""

    username: str
    password: str = ""
    role: str = "UNIDADE"
    linked_origin_unit: str = ""
    linked_dest_unit: str = ""
    permissions: List[str] = []


class UsuarioResumo(BaseModel):
    """Usuário sem senha, para listagem"""

    username: str
    role: str
    linked_origin_unit: str = ""
    linked_dest_unit: str = ""
    permissions: List[str] = []


class PerfilSave(BaseModel):
    id: Optional[str] = None
    name: str
    description: str = ""
    permissions: List[str] = []


class AtualizacaoResponse(BaseModel):
    atualizado: bool
    atualizado_em: Optional[datetime] = None
    total_pendencias: int
