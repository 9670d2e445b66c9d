from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # 🌐 API remota de inventario
    API_URL: str = "http://localhost:3001"
    API_TIMEOUT: float = 10.0

    # 📋 Logs
    LOG_LEVEL: str = "INFO"

    # 📦 Reglas de stock
    HISTORY_PAGE_LIMIT: int = 50
    LOW_STOCK_THRESHOLD: int = 10
    OTHER_RECIPIENT: str = "other"

    class Config:
        env_file = ".env"
        extra = "forbid"

settings = Settings()
