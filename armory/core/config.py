from functools import lru_cache
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_env: str = "development"
    bind_addr: str = "0.0.0.0:8080"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Database
    database_url: str
    db_pool_size: int = 10
    auto_create_tables: bool = True

    # Tripo
    tripo_base_url: str = "https://api.tripo3d.ai/v2/openapi"
    tripo_api_key: str

    class Config:
        env_file = ".env"
        case_sensitive = False

    @field_validator("bind_addr")
    @classmethod
    def check_bind_addr(cls, value: str) -> str:
        host, sep, port = value.rpartition(":")
        if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError(f"Invalid BIND_ADDR: {value}")
        return value

    @field_validator("tripo_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def host(self) -> str:
        return self.bind_addr.rpartition(":")[0]

    @property
    def port(self) -> int:
        return int(self.bind_addr.rpartition(":")[2])

    def get_async_database_url(self) -> str:
        # Hosted Postgres hands out postgresql:// URLs; the async engine needs the asyncpg driver
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
