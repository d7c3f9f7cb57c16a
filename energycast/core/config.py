from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./energycast.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # "live" or "simulated". Simulated mode returns a neutral placeholder
    # summary when no biometric samples are supplied.
    DATA_MODE: str = "live"

    # IANA zone used by the system clock to decide what "today" is.
    TIMEZONE: str = "UTC"

    # Upper bound on the look-back window accepted per request.
    MAX_HISTORY_DAYS: int = 60

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_simulated(self) -> bool:
        return self.DATA_MODE.strip().lower() == "simulated"


settings = Settings()
