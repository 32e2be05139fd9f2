"""
Configurazione FastClub
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
TEMPLATES_DIR = PROJECT_ROOT / "templates"


class Settings(BaseSettings):
    """Impostazioni dell'applicazione (lette da variabili d'ambiente o .env)"""

    # Supabase
    supabase_url: str = Field(default="", description="Supabase Project URL")
    supabase_key: str = Field(default="", description="Supabase anon key")
    supabase_service_key: str = Field(default="", description="Supabase service role key")
    supabase_jwt_secret: Optional[str] = Field(
        default=None,
        description="Segreto JWT del progetto; se presente i token sono verificati localmente"
    )
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Modalità test (sessione fissa, come CLUB_TEST_MODE)
    club_test_mode: bool = Field(default=False, description="Sessione di test senza token")

    # Admin
    snapshot_window_hours: int = Field(default=24, description="Finestra dei backup visibili (ore)")
    activity_log_limit: int = Field(default=100, description="Righe massime del log attività")

    # Pagina pubblica
    public_site_url: str = "https://fastclub.it"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    class Config:
        env_file = ".env"
        env_prefix = ""
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
