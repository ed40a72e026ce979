from typing import List, Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "GratitudeBee"
    API_V1_STR: str = "/api/v1"
    SERVER_HOST: str = "http://localhost:8000"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BACKEND_CORS_ORIGINS: Union[List[str], str] = []
    LOG_LEVEL: str = "INFO"

    # Database
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///gratitudebee.db"

    # Auth
    GOOGLE_CLIENT_ID: str | None = None
    GOOGLE_CLIENT_SECRET: str | None = None

    # Invites
    INVITE_CODE_LENGTH: int = 8
    INVITE_CODE_MIN_LENGTH: int = 6
    INVITE_CODE_MAX_ATTEMPTS: int = 5
    INVITE_BASE_URL: str = "https://gratitudebee.app/invite"
    APP_SCHEME: str = "com.gratitudebee"
    PENDING_INVITE_TTL_HOURS: int = 72

    # Delivery
    EXPO_PUSH_URL: str = "https://exp.host/--/api/v2/push/send"
    EXPO_ACCESS_TOKEN: str | None = None
    PUSH_TIMEOUT_SECONDS: float = 10.0
    REALTIME_QUEUE_SIZE: int = 100


    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, env_ignore_empty=True, extra="ignore"
    )

settings = Settings()
