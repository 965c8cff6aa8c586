from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field


class Settings(BaseSettings):
    # Listeners
    HTTPS_HOST: str = Field("0.0.0.0")
    HTTPS_PORT: int = Field(8083, validation_alias=AliasChoices("HTTPS_PORT", "PORT"))
    HTTP_HOST: str = Field("127.0.0.1")
    HTTP_PORT: int = Field(8084)
    HTTPS_ENABLED: bool = Field(True)
    SSL_DIR: str = Field(".ssl")
    SHUTDOWN_GRACE_SEC: int = Field(5)

    # Storage
    GRAPH_PATH: str | None = Field(None)
    MAX_IMAGE_BYTES: int = Field(25 * 1024 * 1024)

    # Sender page served to the phone
    SENDER_PAGE_PATH: str = Field("sender/index.html")

    # Signaling
    MAX_SIGNAL_BODY_BYTES: int = Field(64 * 1024)
    SIGNAL_PARSE_ERROR_STATUS: int = Field(400)
    SSE_KEEPALIVE_SEC: float = Field(15.0)
    EVENT_QUEUE_MAX_SIZE: int = Field(256)

    # Observability
    METRICS_PORT: int | None = Field(None)
    LOG_LEVEL: str = Field("INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_file_encoding="utf-8"
    )


settings = Settings()
