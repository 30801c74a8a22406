from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_KEY = "sm-dev-api-key"
DEFAULT_TOKEN_SIGNING_SECRET = "salesmaster-dev-token-secret-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SM_", extra="ignore")

    app_name: str = "SalesMaster"
    env: str = "dev"
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    database_url: str = "sqlite+pysqlite:///./salesmaster.db"

    timezone: str = Field(default="UTC", description="IANA zone used for daily/monthly/yearly windows")

    # Export backend: local | minio
    export_backend: str = "local"
    exports_root: Path = Path("/tmp/salesmaster/exports")
    minio_endpoint: str = "minio:9000"
    minio_access_key: str = "minioadmin"
    minio_secret_key: str = "minioadmin"
    minio_bucket: str = "reports"
    minio_secure: bool = False
    share_link_ttl_seconds: int = 3600

    auth_enabled: bool = True
    api_key: str = DEFAULT_API_KEY
    token_signing_secret: str = DEFAULT_TOKEN_SIGNING_SECRET
    session_ttl_seconds: int = 60 * 60 * 24 * 30
    session_file: Path = Path("~/.salesmaster/session.json")

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        insecure_items: list[str] = []
        if self.api_key == DEFAULT_API_KEY:
            insecure_items.append("SM_API_KEY")
        if self.token_signing_secret == DEFAULT_TOKEN_SIGNING_SECRET:
            insecure_items.append("SM_TOKEN_SIGNING_SECRET")

        if insecure_items:
            raise ValueError(
                "insecure default secrets are not allowed outside dev mode; set env vars: "
                + ", ".join(sorted(insecure_items))
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
