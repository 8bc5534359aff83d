# hrms_lite/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"

    # Startup connection warmup (the database may be asleep)
    DB_CONNECT_RETRIES: int = 5
    DB_CONNECT_DELAY_MS: int = 1500

    # .env.local overrides .env
    model_config = SettingsConfigDict(env_file=(".env", ".env.local"), extra="ignore")

def get_settings() -> Settings:
    return Settings()
