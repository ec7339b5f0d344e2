from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "NetPulse"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "*"

    # Monitoring defaults (runtime values live in MonitorSettings)
    PING_INTERVAL_SECONDS: float = 2.0
    WARNING_THRESHOLD_MS: int = 150
    TIMEFRAME_MINUTES: int = 120
    PROBE_BATCH_SIZE: int = 5

    # Executors
    PROBE_MODE: str = "system"   # system, simulated
    PROBE_TIMEOUT_MS: int = 800
    TRACE_MAX_HOPS: int = 20
    TRACE_TIMEOUT_MS: int = 500

    # Name resolution
    RESOLVE_HOSTNAMES: bool = True
    RESOLVE_TIMEOUT_SECONDS: float = 2.0

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
