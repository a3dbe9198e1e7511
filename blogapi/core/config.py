from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List

class Settings(BaseSettings):
    # Configurações básicas
    PROJECT_NAME: str = "Blog API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = ""
    LOG_LEVEL: str = "INFO"

    # Configurações do banco de dados
    DATABASE_URL: str = "sqlite:///./blog.db"

    # Configurações de segurança (JWT_SECRET vazio desabilita a emissão de tokens)
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "https://blog.connortran.io.vn",
        "https://blog-api.connortran.io.vn",
    ]

    # Rate limiting
    RATE_LIMIT_INTERVAL_MS: int = 100
    RATE_LIMIT_BURST: int = 5
    RATE_LIMIT_IDLE_SECONDS: int = 300
    RATE_LIMIT_SWEEP_SECONDS: int = 60

    # Celery
    CELERY_BROKER_URL: str = "pyamqp://guest@localhost//"

    class Config:
        case_sensitive = True
        env_file = ".env"

@lru_cache()
def get_settings() -> Settings:
    return Settings()
