# ventas_etl/core/config.py
from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import List, Optional


class CompanyConfig(BaseModel):
    """Empresa Bsale tal como se declara en BSALE_COMPANIES (JSON)."""
    name: str
    token: str


class Settings(BaseSettings):
    # PostgreSQL (obligatorio para ejecutar la carga)
    DATABASE_URL: Optional[str] = None
    # "production" relaja la validación del certificado TLS de la base
    ENVIRONMENT: str = "development"
    DB_POOL_MIN: int = 1
    DB_POOL_MAX: int = 5

    # Bsale
    BSALE_API_URL: str = "https://api.bsale.io/v1"
    BSALE_COMPANIES: List[CompanyConfig] = []
    BSALE_PAGE_SIZE: int = 50
    BSALE_TIMEOUT: int = 60
    BSALE_REQUEST_PAUSE: float = 0.2
    BSALE_MAX_RETRIES: int = 3
    BSALE_BACKOFF_FACTOR: float = 1.0
    ENRICHMENT_MAX_WORKERS: int = 4

    # Rango por defecto del backfill histórico (fechas locales de negocio)
    DEFAULT_START_DATE: str = "2024-01-01"
    DEFAULT_END_DATE: str = "2025-12-31"
    RESUME_FROM_CHECKPOINT: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def db_sslmode(self) -> str:
        # require = cifrado sin verificar el certificado del servidor
        return "require" if self.ENVIRONMENT == "production" else "disable"


settings = Settings()
