from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    # Redis (presence mirror)
    REDIS_HOST: str = Field("redis")
    REDIS_PORT: int = Field(6379)
    REDIS_DB: int = Field(0)
    REDIS_PASSWORD: str | None = Field(None)
    PRESENCE_MIRROR_ENABLED: bool = Field(False)
    PRESENCE_TTL_SECONDS: int = Field(60)

    # App
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8080)
    DEBUG: bool = Field(True)
    LOG_LEVEL: str = Field("INFO")
    CORS_ORIGIN_REGEX: str = Field(r"http://(localhost|127\.0\.0\.1)(:\d+)?")
    JWT_SECRET_KEY: str = Field("supersecret")
    JWT_ALGORITHM: str = Field("HS256")
    JWT_EXP_DAYS: int = Field(7)

    # WebSocket
    WS_SEND_TIMEOUT_SECONDS: float = Field(5.0)

    # Metrics
    METRICS_ENABLED: bool = Field(False)
    METRICS_PORT: int = Field(8001)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


settings = Settings()
