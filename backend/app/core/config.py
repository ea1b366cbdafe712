"""
Configurações da aplicação
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configurações da aplicação carregadas do .env"""

    # Ambiente
    environment: str = "development"
    debug: bool = True

    # Armazenamento local (sessão e notificações lidas)
    database_url: str = "sqlite:///./data/painel_pendencias.db"

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"  # Separado por vírgula

    # Paths
    data_dir: Path = Path("./data")

    # Fontes remotas
    csv_url: str = (
        "https://docs.google.com/spreadsheets/d/e/"
        "2PACX-1vQBIokGV3Yw_J9VBIw1x8lw-cPXJt-jDRMmMlv4Cp8cvHYDvQz_1DA0TCjsk6YBQzdvFwNmq_FxF4Ti"
        "/pub?gid=1334351946&single=true&output=csv"
    )
    apps_script_url: str = (
        "https://script.google.com/macros/s/"
        "AKfycbzv-z2U4IAX6NfXkIjZw6EHlGBXGPxc1P-6YNpRJeMVEXSFY0jve2K4HxpsNfR5V0R_/exec"
    )
    timeout_requisicao_segundos: float = 15.0

    # Atualização periódica
    intervalo_atualizacao_segundos: float = 30.0

    # Se True, mutações exigem HTTP 2xx e {"success": true} na resposta
    verificar_mutacoes: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Instância global de settings
settings = Settings()


# Garantir que os diretórios existam
def ensure_directories():
    """Cria os diretórios necessários se não existirem"""
    settings.data_dir.mkdir(parents=True, exist_ok=True)


# Inicializar diretórios ao importar
ensure_directories()
