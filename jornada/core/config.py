from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database – SQLite für lokale Entwicklung, Postgres in Produktion
    DATABASE_URL: str = "sqlite+aiosqlite:///./jornada.db"

    # Obergrenze für jede Abfrage an den Datenspeicher. Überschreitung → DataUnavailable,
    # es wird nicht erneut versucht.
    DATA_FETCH_TIMEOUT_SECONDS: float = 10.0

    # Nur für Tenants ohne gespeicherte Zeitzone
    DEFAULT_TIMEZONE: str = "Europe/Madrid"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
