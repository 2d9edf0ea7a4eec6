from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Token Rotation Demo"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Storage: "json" keeps everything in a single document, "sql" uses SQLModel
    STORE_BACKEND: str = "json"
    DB_PATH: str = "./data/db.json"
    DATABASE_URL: str = "sqlite:///./data/tokendemo.db"

    # Auth Config
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_SECRET: str
    REFRESH_TOKEN_SECRET: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    ACCESS_TOKEN_MAX_AGE_LIMIT: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    TOKEN_TRANSPORT: Literal["cookie", "header", "both"] = "cookie"
    CORS_ORIGINS: str = "http://localhost:5173"

    # Security
    PASSWORD_PEPPER: str = ""

    SEED_DEMO_USERS: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def secure_cookies(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def uses_cookie_transport(self) -> bool:
        return self.TOKEN_TRANSPORT in ("cookie", "both")

    @property
    def uses_header_transport(self) -> bool:
        return self.TOKEN_TRANSPORT in ("header", "both")

settings = Settings()
